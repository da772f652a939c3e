"""Version Control System abstraction for polyscm.

This module provides a unified interface for working with different
version control systems (Git, Mercurial, SubVersion).
"""

from polyscm.vcs.base import Repository
from polyscm.vcs.exceptions import (
    CloneError,
    RepositoryInitError,
    UnknownSCMError,
    UnparseableOutputError,
    UnsupportedOperationError,
    VCSError,
    VCSOperationError,
    VCSTimeoutError,
)
from polyscm.vcs.factory import VCSFactory
from polyscm.vcs.git import GitRepository
from polyscm.vcs.mercurial import HgRepository
from polyscm.vcs.models import (
    Commit,
    FileStatus,
    GitCommit,
    HgCommit,
    RemoteReference,
    SVNCommit,
    VCSType,
)
from polyscm.vcs.svn import SVNRepository

__all__ = [
    "CloneError",
    "Commit",
    "FileStatus",
    "GitCommit",
    "GitRepository",
    "HgCommit",
    "HgRepository",
    "RemoteReference",
    "Repository",
    "RepositoryInitError",
    "SVNCommit",
    "SVNRepository",
    "UnknownSCMError",
    "UnparseableOutputError",
    "UnsupportedOperationError",
    "VCSError",
    "VCSFactory",
    "VCSOperationError",
    "VCSTimeoutError",
    "VCSType",
]
