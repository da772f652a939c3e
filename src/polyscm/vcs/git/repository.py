"""Git repositories driven through the git CLI."""

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from polyscm.config import ScmConfig
from polyscm.vcs import process
from polyscm.vcs.base import Repository, as_paths
from polyscm.vcs.exceptions import RepositoryInitError
from polyscm.vcs.git import parser
from polyscm.vcs.models import FileStatus, GitCommit, VCSType

logger = logging.getLogger(__name__)


class GitRepository(Repository):
    """Interacts with Git repositories."""

    vcs_type = VCSType.GIT
    control_dir = ".git"

    @classmethod
    def executable(cls, config: ScmConfig) -> str:
        """Get the configured git executable."""
        return config.git_executable

    @classmethod
    def create(
        cls,
        path: str | Path,
        *,
        bare: bool = False,
        config: ScmConfig | None = None,
    ) -> "GitRepository":
        """Create a Git repository.

        Args:
            path: Path to the repository, created if missing
            bare: Whether to create a bare repository
            config: Configuration for the repository

        Returns:
            The initialized repository

        Raises:
            RepositoryInitError: If `git init` failed
        """
        config = config or ScmConfig()
        path = Path(path).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)

        arguments = ["--bare"] if bare else []
        if not process.run(
            cls.executable(config),
            "init",
            *arguments,
            path,
            timeout=config.command_timeout,
        ):
            logger.error(f"git init failed for {path}")
            raise RepositoryInitError(f"Unable to initialize Git repository {str(path)!r}", path)

        return cls(path, config)

    @classmethod
    def clone(
        cls,
        uri: str,
        *,
        dest: str | Path | None = None,
        config: ScmConfig | None = None,
        bare: bool = False,
        mirror: bool = False,
        depth: int | None = None,
        branch: str | None = None,
        submodules: bool = False,
        **options: Any,
    ) -> bool:
        """Clone a remote Git repository.

        Args:
            uri: URI of the remote repository
            dest: Destination directory
            config: Configuration holding the executable override
            bare: Perform a bare clone
            mirror: Mirror the remote repository
            depth: Perform a shallow clone of this depth
            branch: The branch to check out
            submodules: Recursively initialize submodules
            **options: Unused options of other VCSs

        Returns:
            True if the clone succeeded
        """
        config = config or ScmConfig()
        arguments: list[Any] = []

        if bare:
            arguments.append("--bare")
        if mirror:
            arguments.append("--mirror")
        if depth is not None:
            arguments.extend(["--depth", depth])
        if branch:
            arguments.extend(["--branch", branch])
        if submodules:
            arguments.append("--recurse-submodules")

        # keeps a URI starting with "-" from being read as a flag
        if arguments:
            arguments.append("--")

        arguments.append(uri)
        if dest is not None:
            arguments.append(dest)

        return process.run(cls.executable(config), "clone", *arguments, timeout=config.command_timeout)

    def status(self, *paths: str | Path) -> dict[str, FileStatus]:
        """Get the status of changed files in the working tree.

        Args:
            *paths: Restrict the status to these paths

        Returns:
            Mapping of path to status, renamed files keyed by their new path
        """
        arguments = ["--", *paths] if paths else []
        with self._popen("status", "--porcelain", *arguments) as lines:
            return parser.parse_status(lines, strict=self.config.strict_parsing)

    def add(self, *paths: str | Path) -> bool:
        """Stage files for the next commit.

        Args:
            *paths: Files to stage

        Returns:
            True if the files were staged
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
        return self._run("mv", "-f" if force else None, source, dest)

    def remove(
        self,
        paths: str | Path | Iterable[str | Path],
        force: bool = False,
        recursive: bool = False,
    ) -> bool:
        """Remove files from the working tree and the index.

        Args:
            paths: Files to remove
            force: Remove files with local modifications
            recursive: Remove directories recursively

        Returns:
            True if the files were removed
        """
        return self._run(
            "rm",
            "-f" if force else None,
            "-r" if recursive else None,
            "--",
            *as_paths(paths),
        )

    def commit(self, message: str | None = None, paths: Iterable[str | Path] | None = None) -> bool:
        """Commit staged changes.

        Args:
            message: Commit message (git opens an editor without one)
            paths: Commit only these paths

        Returns:
            True if the commit was created
        """
        arguments: list[Any] = []
        if message is not None:
            arguments.extend(["-m", message])
        if paths:
            arguments.extend(["--", *as_paths(paths)])
        return self._run("commit", *arguments)

    def branches(self) -> list[str]:
        """List local branches.

        Returns:
            Branch names
        """
        with self._popen("branch") as lines:
            return parser.parse_branches(lines)

    def current_branch(self) -> str | None:
        """Get the checked out branch.

        Returns:
            The branch name, or None before the first commit
        """
        with self._popen("branch") as lines:
            return parser.parse_current_branch(lines)

    def switch_branch(self, name: str, quiet: bool = False) -> bool:
        """Check out another branch.

        Args:
            name: The branch to switch to
            quiet: Suppress feedback messages

        Returns:
            True if the branch was checked out
        """
        return self._run("checkout", "-q" if quiet else None, name)

    def delete_branch(self, name: str) -> bool:
        """Delete a fully merged branch.

        Args:
            name: The branch to delete

        Returns:
            True if the branch was deleted
        """
        return self._run("branch", "-d", name)

    def tags(self) -> list[str]:
        """List tags.

        Returns:
            Tag names
        """
        with self._popen("tag") as lines:
            return parser.parse_tags(lines)

    def tag(self, name: str, commit: str | None = None) -> bool:
        """Create a lightweight tag.

        Args:
            name: The tag name
            commit: Commit to tag (default: HEAD)

        Returns:
            True if the tag was created
        """
        return self._run("tag", name, commit)

    def delete_tag(self, name: str) -> bool:
        """Delete a tag.

        Args:
            name: The tag to delete

        Returns:
            True if the tag was deleted
        """
        return self._run("tag", "-d", name)

    def log(self, commit: str | None = None, paths: Iterable[str | Path] | None = None) -> bool:
        """Show the history on the terminal.

        Args:
            commit: Commit or range to show
            paths: Only show commits touching these paths

        Returns:
            True if git exited successfully
        """
        arguments: list[Any] = [commit]
        if paths:
            arguments.extend(["--", *as_paths(paths)])
        return self._run("log", *arguments)

    def push(
        self,
        mirror: bool = False,
        all: bool = False,  # noqa: A002
        tags: bool = False,
        force: bool = False,
        repository: str | None = None,
        branch: str | None = None,
        **options: Any,
    ) -> bool:
        """Push changes to the remote Git repository.

        Args:
            mirror: Push all refs under refs/
            all: Push all branches
            tags: Push all tags
            force: Force the push
            repository: The remote to push to
            branch: The branch to push (remote defaults to origin)
            **options: Unused options of other VCSs

        Returns:
            True if the changes were pushed
        """
        arguments: list[Any] = []

        if mirror:
            arguments.append("--mirror")
        elif all:
            arguments.append("--all")
        elif tags:
            arguments.append("--tags")

        if force:
            arguments.append("-f")
        if repository:
            arguments.append(repository)
        if branch:
            if not repository:
                arguments.append("origin")
            arguments.append(branch)

        return self._run("push", *arguments)

    def pull(self, force: bool = False, repository: str | None = None, **options: Any) -> bool:
        """Pull changes from the remote Git repository.

        Args:
            force: Force the fetch
            repository: The remote to pull from
            **options: Unused options of other VCSs

        Returns:
            True if the changes were pulled
        """
        return self._run("pull", "-f" if force else None, repository)

    def commits(
        self,
        commit: str | None = None,
        branch: str | None = None,
        limit: int | None = None,
        paths: Iterable[str | Path] | None = None,
    ) -> Iterator[GitCommit]:
        """Lazily list commits, newest first.

        Args:
            commit: Commit or range to list
            branch: Branch to list when no commit is given
            limit: Maximum number of commits
            paths: Only commits touching these paths

        Yields:
            Parsed commits
        """
        arguments: list[Any] = [parser.LOG_FORMAT]

        if limit is not None:
            arguments.append(f"-{limit}")
        arguments.append(commit or branch)
        if paths:
            arguments.extend(["--", *as_paths(paths)])

        with self._popen("log", *arguments) as lines:
            yield from parser.parse_log(lines)

    def files(self, pattern: str | None = None) -> Iterator[str]:
        """Lazily list tracked files.

        Args:
            pattern: Only files matching this pathspec glob

        Yields:
            File paths relative to the repository root
        """
        arguments = ["--", pattern] if pattern else []

        with self._popen("ls-files", *arguments) as lines:
            yield from parser.parse_files(lines)
