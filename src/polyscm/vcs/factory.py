"""VCS detection and dispatch.

This module maps control directories, URI schemes and URI extensions to the
repository class of each VCS, and uses them to open existing repositories,
clone remote ones and create new ones.
"""

import logging
from pathlib import Path, PurePosixPath
from types import MappingProxyType
from typing import Any
from urllib.parse import urlparse

from polyscm.config import ScmConfig
from polyscm.vcs.base import Repository
from polyscm.vcs.exceptions import CloneError, UnknownSCMError
from polyscm.vcs.git.repository import GitRepository
from polyscm.vcs.mercurial.repository import HgRepository
from polyscm.vcs.models import RemoteReference, VCSType
from polyscm.vcs.svn.repository import SVNRepository

logger = logging.getLogger(__name__)

REPOSITORIES: MappingProxyType[VCSType, type[Repository]] = MappingProxyType({
    VCSType.GIT: GitRepository,
    VCSType.MERCURIAL: HgRepository,
    VCSType.SUBVERSION: SVNRepository,
})

# Checked in this order
CONTROL_DIRS: MappingProxyType[str, VCSType] = MappingProxyType({
    ".git": VCSType.GIT,
    ".hg": VCSType.MERCURIAL,
    ".svn": VCSType.SUBVERSION,
})

SCHEMES: MappingProxyType[str, VCSType] = MappingProxyType({
    "git": VCSType.GIT,
    "hg": VCSType.MERCURIAL,
    "svn": VCSType.SUBVERSION,
})

EXTENSIONS: MappingProxyType[str, VCSType] = MappingProxyType({
    ".git": VCSType.GIT,
    ".hg": VCSType.MERCURIAL,
    ".svn": VCSType.SUBVERSION,
})


class VCSFactory:
    """Factory for repositories of the supported VCSs."""

    @staticmethod
    def repository_class(vcs_type: VCSType) -> type[Repository]:
        """Get the repository class of a VCS.

        Args:
            vcs_type: The VCS

        Returns:
            The repository class

        Raises:
            ValueError: If the VCS type is not supported
        """
        try:
            return REPOSITORIES[VCSType(vcs_type)]
        except (KeyError, ValueError) as e:
            raise ValueError(f"Unsupported VCS type: {vcs_type}") from e

    @staticmethod
    def detect_vcs(path: str | Path) -> VCSType:
        """Detect which VCS controls a directory.

        The control directories are checked in the order Git, Mercurial,
        SubVersion; the first one present wins. Parent directories are not
        searched.

        Args:
            path: The directory to check

        Returns:
            The detected VCS

        Raises:
            UnknownSCMError: If no control directory is present
        """
        path = Path(path).expanduser().resolve()

        for control_dir, vcs_type in CONTROL_DIRS.items():
            if (path / control_dir).is_dir():
                logger.debug(f"Detected {vcs_type.display_name} repository at {path}")
                return vcs_type

        raise UnknownSCMError(f"Could not determine the SCM of {str(path)!r}")

    @staticmethod
    def detect(path: str | Path, config: ScmConfig | None = None) -> Repository:
        """Open the repository at a directory, whatever its VCS.

        Args:
            path: The repository directory
            config: Configuration for the repository

        Returns:
            The repository

        Raises:
            UnknownSCMError: If no control directory is present
        """
        vcs_type = VCSFactory.detect_vcs(path)
        return VCSFactory.repository_class(vcs_type)(path, config)

    @staticmethod
    def detect_uri(uri: str) -> VCSType:
        """Determine the VCS of a remote repository from its URI.

        The scheme decides first (``git://``, ``hg://``, ``svn://``, also as
        the first part of combined schemes such as ``svn+ssh://``), then the
        extension of the path (``.git``, ``.hg``, ``.svn``).

        Args:
            uri: The repository URI

        Returns:
            The VCS of the repository

        Raises:
            UnknownSCMError: If neither scheme nor extension is recognized
        """
        parsed = urlparse(uri)
        scheme = parsed.scheme.split("+", 1)[0].lower()

        vcs_type = SCHEMES.get(scheme)
        if vcs_type is None:
            vcs_type = EXTENSIONS.get(PurePosixPath(parsed.path.rstrip("/")).suffix.lower())
        if vcs_type is None:
            raise UnknownSCMError(f"Could not determine the SCM of {uri!r}")
        return vcs_type

    @staticmethod
    def default_destination(uri: str, bare: bool = False, mirror: bool = False) -> Path:
        """Get the directory a clone ends up in when no destination is given.

        Like `git clone`, this is the last path component of the URI without
        its extension (kept as ``.git`` for bare and mirror clones), in the
        current directory.

        Args:
            uri: The repository URI
            bare: Whether the clone is bare
            mirror: Whether the clone is a mirror

        Returns:
            The destination path
        """
        name = PurePosixPath(urlparse(uri).path.rstrip("/")).name
        stem = PurePosixPath(name).stem if PurePosixPath(name).suffix in EXTENSIONS else name
        if not stem:
            raise CloneError(f"Could not derive a destination directory from {uri!r}", uri)
        if bare or mirror:
            stem = f"{stem}.git"
        return Path.cwd() / stem

    @staticmethod
    def clone(
        uri: str,
        dest: str | Path | None = None,
        config: ScmConfig | None = None,
        **options: Any,
    ) -> Repository:
        """Clone a remote repository, whatever its VCS.

        Args:
            uri: The repository URI
            dest: Destination directory (default: derived from the URI)
            config: Configuration for the repository
            **options: VCS-specific clone options

        Returns:
            The cloned repository

        Raises:
            UnknownSCMError: If the VCS of the URI cannot be determined
            CloneError: If the clone failed
        """
        vcs_type = VCSFactory.detect_uri(uri)
        repository_class = VCSFactory.repository_class(vcs_type)

        if dest is None:
            dest = VCSFactory.default_destination(
                uri,
                bare=bool(options.get("bare")),
                mirror=bool(options.get("mirror")),
            )
        dest = Path(dest).expanduser().resolve()

        if not repository_class.clone(uri, dest=dest, config=config, **options):
            logger.error(f"Failed to clone {uri} into {dest}")
            raise CloneError(f"Unable to clone {vcs_type.display_name} repository {uri!r}", uri)

        return repository_class(dest, config)

    @staticmethod
    def create(
        path: str | Path,
        vcs_type: VCSType,
        *,
        bare: bool = False,
        config: ScmConfig | None = None,
    ) -> Repository | RemoteReference:
        """Create a new repository.

        Args:
            path: Path of the new repository
            vcs_type: The VCS to create it with
            bare: Whether to create a repository without a working copy
            config: Configuration for the repository

        Returns:
            The new repository, or a reference to it when it was created remotely

        Raises:
            RepositoryInitError: If the VCS failed to initialize the repository
            UnsupportedOperationError: If the VCS cannot create the requested kind
        """
        repository_class = VCSFactory.repository_class(vcs_type)
        result: Repository | RemoteReference = repository_class.create(path, bare=bare, config=config)
        return result
