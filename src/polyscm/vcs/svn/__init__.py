"""SubVersion VCS implementation for polyscm."""

from polyscm.vcs.svn.repository import SVNRepository

__all__ = [
    "SVNRepository",
]
