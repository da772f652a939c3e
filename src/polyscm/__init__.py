"""polyscm: one interface over Git, Mercurial and SubVersion."""

from pathlib import Path
from typing import Any

from polyscm.config import ScmConfig
from polyscm.vcs import (
    Commit,
    FileStatus,
    GitRepository,
    HgRepository,
    Repository,
    SVNRepository,
    VCSFactory,
    VCSType,
)

__version__ = "0.1.0"


def detect(path: str | Path = ".", config: ScmConfig | None = None) -> Repository:
    """Open the repository at ``path``, whatever its VCS."""
    return VCSFactory.detect(path, config)


def clone(uri: str, dest: str | Path | None = None, config: ScmConfig | None = None, **options: Any) -> Repository:
    """Clone the repository at ``uri``, whatever its VCS."""
    return VCSFactory.clone(uri, dest, config, **options)


__all__ = [
    "Commit",
    "FileStatus",
    "GitRepository",
    "HgRepository",
    "Repository",
    "SVNRepository",
    "ScmConfig",
    "VCSFactory",
    "VCSType",
    "__version__",
    "clone",
    "detect",
]
