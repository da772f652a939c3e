"""Mercurial repositories driven through the hg CLI."""

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path
from types import MappingProxyType
from typing import Any

from polyscm.config import ScmConfig
from polyscm.vcs import process
from polyscm.vcs.base import Repository, as_paths
from polyscm.vcs.exceptions import RepositoryInitError, UnsupportedOperationError
from polyscm.vcs.mercurial import parser
from polyscm.vcs.models import FileStatus, HgCommit, RemoteReference, VCSType
from polyscm.vcs.process import Environment

logger = logging.getLogger(__name__)

SSH_SCHEME = "ssh://"

# Keeps user aliases and log templates out of hg output
PLAIN_ENVIRONMENT: Environment = MappingProxyType({"HGPLAIN": "1", "HGPLAINEXCEPT": None})


class HgRepository(Repository):
    """Interacts with Mercurial (Hg) repositories."""

    vcs_type = VCSType.MERCURIAL
    control_dir = ".hg"

    @classmethod
    def executable(cls, config: ScmConfig) -> str:
        """Get the configured hg executable."""
        return config.hg_executable

    @classmethod
    def environment(cls) -> Environment:
        """Run hg in plain mode so its output does not depend on user configuration."""
        return PLAIN_ENVIRONMENT

    @classmethod
    def create(
        cls,
        path: str | Path,
        *,
        bare: bool = False,
        config: ScmConfig | None = None,
    ) -> "HgRepository | RemoteReference":
        """Create a Mercurial repository.

        Repositories on ``ssh://`` paths are initialized remotely by hg itself
        and are returned as a :class:`RemoteReference`, since there is no local
        working copy to operate on.

        Args:
            path: Local path or ``ssh://`` URI of the repository
            bare: Not supported by Mercurial
            config: Configuration for the repository

        Returns:
            The local repository, or a reference to the remote one

        Raises:
            UnsupportedOperationError: If a bare repository was requested
            RepositoryInitError: If `hg init` failed
        """
        if bare:
            raise UnsupportedOperationError("Mercurial does not support bare repositories")

        config = config or ScmConfig()
        remote = str(path).startswith(SSH_SCHEME)
        target: str | Path = str(path) if remote else Path(path).expanduser().resolve()

        if isinstance(target, Path):
            target.mkdir(parents=True, exist_ok=True)

        if not process.run(
            cls.executable(config),
            "init",
            target,
            timeout=config.command_timeout,
            env=cls.environment(),
        ):
            logger.error(f"hg init failed for {target}")
            raise RepositoryInitError(f"Unable to initialize Hg repository {str(target)!r}", target)

        if isinstance(target, Path):
            return cls(target, config)
        return RemoteReference(uri=target, vcs_type=cls.vcs_type)

    @classmethod
    def clone(
        cls,
        uri: str,
        *,
        dest: str | Path | None = None,
        config: ScmConfig | None = None,
        branch: str | None = None,
        revision: str | None = None,
        noupdate: bool = False,
        bare: bool = False,
        **options: Any,
    ) -> bool:
        """Clone a remote Mercurial repository.

        Args:
            uri: URI of the remote repository
            dest: Destination directory
            config: Configuration holding the executable override
            branch: Clone only this branch
            revision: Clone only up to this revision
            noupdate: Do not check out a working copy
            bare: Not supported by Mercurial
            **options: Unused options of other VCSs

        Returns:
            True if the clone succeeded

        Raises:
            UnsupportedOperationError: If a bare clone was requested
        """
        if bare:
            raise UnsupportedOperationError("Mercurial does not support bare repositories")

        config = config or ScmConfig()
        arguments: list[Any] = []

        if branch:
            arguments.extend(["--branch", branch])
        if revision:
            arguments.extend(["--rev", revision])
        if noupdate:
            arguments.append("--noupdate")
        if arguments:
            arguments.append("--")

        arguments.append(uri)
        if dest is not None:
            arguments.append(dest)

        return process.run(
            cls.executable(config),
            "clone",
            *arguments,
            timeout=config.command_timeout,
            env=cls.environment(),
        )

    def status(self, *paths: str | Path) -> dict[str, FileStatus]:
        """Get the status of changed files in the working copy.

        Args:
            *paths: Restrict the status to these paths

        Returns:
            Mapping of path to status
        """
        with self._popen("status", *paths) as lines:
            return parser.parse_status(lines, strict=self.config.strict_parsing)

    def add(self, *paths: str | Path) -> bool:
        """Schedule files for addition.

        Args:
            *paths: Files to add

        Returns:
            True if the files were scheduled
        """
        return self._run("add", *paths)

    def move(self, source: str | Path, dest: str | Path, force: bool = False) -> bool:
        """Move or rename a tracked file.

        Args:
            source: Current path
            dest: New path
            force: Overwrite an existing destination

        Returns:
            True if the file was moved
        """
        return self._run("mv", "--force" if force else None, source, dest)

    def remove(
        self,
        paths: str | Path | Iterable[str | Path],
        force: bool = False,
        recursive: bool = False,
    ) -> bool:
        """Remove files or directories.

        Mercurial always removes directories recursively, so ``recursive`` has
        no effect.

        Args:
            paths: Files or directories to remove
            force: Remove added or modified files
            recursive: Ignored

        Returns:
            True if the files were removed
        """
        return self._run("rm", "--force" if force else None, "--", *as_paths(paths))

    def commit(self, message: str | None = None, paths: Iterable[str | Path] | None = None) -> bool:
        """Commit changes to the repository.

        Args:
            message: Commit message (hg opens an editor without one)
            paths: Commit only these paths

        Returns:
            True if the changeset was created
        """
        arguments: list[Any] = []
        if message is not None:
            arguments.extend(["-m", message])
        if paths:
            arguments.extend(["--", *as_paths(paths)])
        return self._run("commit", *arguments)

    def branches(self) -> list[str]:
        """List open named branches.

        Returns:
            Branch names
        """
        with self._popen("branches") as lines:
            return parser.parse_listing(lines)

    def current_branch(self) -> str | None:
        """Get the branch of the working copy parent.

        Returns:
            The branch name
        """
        with self._popen("branch") as lines:
            for line in lines:
                if line.strip():
                    return line.strip()
        return None

    def switch_branch(self, name: str) -> bool:
        """Update the working copy to another branch.

        Unlike the other VCSs this rewrites the files of the working copy in
        place.

        Args:
            name: The branch to update to

        Returns:
            True if the working copy was updated
        """
        return self._run("update", name)

    def delete_branch(self, name: str) -> bool:
        """Close a branch.

        Mercurial cannot delete named branches. The branch is closed with a
        commit instead, so it keeps existing in history but is no longer
        listed by `hg branches`. The working copy is updated to the branch
        first when it is not the current one.

        Args:
            name: The branch to close

        Returns:
            True if the closing commit was created
        """
        if self.current_branch() != name and not self.switch_branch(name):
            return False
        return self._run("commit", "--close-branch", "-m", f"Closing {name}")

    def tags(self) -> list[str]:
        """List tags, without the ``tip`` pseudo-tag."""
        with self._popen("tags") as lines:
            return [name for name in parser.parse_listing(lines) if name != "tip"]

    def tag(self, name: str, commit: str | None = None) -> bool:
        """Tag a changeset.

        Args:
            name: The tag name
            commit: Changeset to tag (default: the working copy parent)

        Returns:
            True if the tag was created
        """
        arguments: list[Any] = ["-r", commit] if commit else []
        return self._run("tag", *arguments, name)

    def delete_tag(self, name: str) -> bool:
        """Remove a tag with a new changeset.

        Args:
            name: The tag to remove

        Returns:
            True if the tag was removed
        """
        return self._run("tag", "--remove", name)

    def log(self, commit: str | None = None, paths: Iterable[str | Path] | None = None) -> bool:
        """Show the history on the terminal.

        Args:
            commit: Revision set to show
            paths: Only show changesets touching these paths

        Returns:
            True if hg exited successfully
        """
        arguments: list[Any] = ["-r", commit] if commit else []
        if paths:
            arguments.extend(["--", *as_paths(paths)])
        return self._run("log", *arguments)

    def push(
        self,
        repository: str | None = None,
        force: bool = False,
        branch: str | None = None,
        **options: Any,
    ) -> bool:
        """Push changesets to the remote Mercurial repository.

        Args:
            repository: Destination (default: the `default-push`/`default` path)
            force: Push even when creating new remote heads
            branch: Push only this branch
            **options: Unused options of other VCSs

        Returns:
            True if the changesets were pushed
        """
        arguments: list[Any] = []
        if force:
            arguments.append("--force")
        if branch:
            arguments.extend(["--branch", branch])
        return self._run("push", *arguments, repository)

    def pull(
        self,
        repository: str | None = None,
        force: bool = False,
        update: bool = False,
        **options: Any,
    ) -> bool:
        """Pull changesets from the remote Mercurial repository.

        Args:
            repository: Source (default: the `default` path)
            force: Pull even from an unrelated repository
            update: Update the working copy after pulling
            **options: Unused options of other VCSs

        Returns:
            True if the changesets were pulled
        """
        return self._run(
            "pull",
            "--force" if force else None,
            "--update" if update else None,
            repository,
        )

    def commits(
        self,
        commit: str | None = None,
        branch: str | None = None,
        limit: int | None = None,
        paths: Iterable[str | Path] | None = None,
    ) -> Iterator[HgCommit]:
        """Lazily list changesets, newest first.

        Args:
            commit: Revision set to list
            branch: Only changesets on this branch
            limit: Maximum number of changesets
            paths: Only changesets touching these paths

        Yields:
            Parsed changesets
        """
        arguments: list[Any] = ["--verbose"]

        if commit:
            arguments.extend(["-r", commit])
        if branch:
            arguments.extend(["-b", branch])
        if limit is not None:
            arguments.extend(["-l", limit])
        if paths:
            arguments.extend(["--", *as_paths(paths)])

        with self._popen("log", *arguments) as lines:
            yield from parser.parse_log(lines)

    def files(self, pattern: str | None = None) -> Iterator[str]:
        """Lazily list tracked files.

        Args:
            pattern: Only files matching this pattern

        Yields:
            File paths
        """
        arguments = ["--include", pattern] if pattern else []

        with self._popen("files", *arguments) as lines:
            for line in lines:
                if line:
                    yield line
