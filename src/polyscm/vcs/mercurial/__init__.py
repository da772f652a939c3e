"""Mercurial VCS implementation for polyscm."""

from polyscm.vcs.mercurial.repository import HgRepository

__all__ = [
    "HgRepository",
]
