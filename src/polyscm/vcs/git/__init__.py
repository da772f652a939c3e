"""Git VCS implementation for polyscm."""

from polyscm.vcs.git.repository import GitRepository

__all__ = [
    "GitRepository",
]
