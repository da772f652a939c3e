"""Abstract base class for version control repositories.

This module defines the common interface that the Git, Mercurial and
SubVersion repositories implement. Every operation translates to one or more
invocations of the VCS executable; operations that change the repository
report success as a boolean, while listing operations parse the command
output into Python values.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any, ClassVar

from polyscm.config import ScmConfig
from polyscm.vcs import process
from polyscm.vcs.models import Commit, FileStatus, VCSType
from polyscm.vcs.process import Argument, Environment, LineStream


class Repository(ABC):
    """A working copy or repository store of one VCS at a filesystem path.

    A repository is identified by its resolved absolute path. It holds no
    state besides the path and its configuration; commits and statuses are
    produced fresh by each call.
    """

    vcs_type: ClassVar[VCSType]
    control_dir: ClassVar[str]

    def __init__(self, path: str | Path, config: ScmConfig | None = None) -> None:
        """Wrap an existing repository.

        Args:
            path: Path to the repository
            config: Configuration (default: loaded from the environment)
        """
        self._path = Path(path).expanduser().resolve()
        self.config = config or ScmConfig()

    @property
    def path(self) -> Path:
        """The path the repository currently operates against."""
        return self._path

    @classmethod
    def environment(cls) -> Environment:
        """Environment overrides for every invocation of the VCS executable.

        Returns:
            Variables to set, with None for variables to remove
        """
        return {}

    @classmethod
    @abstractmethod
    def executable(cls, config: ScmConfig) -> str:
        """Get the VCS program configured for this repository type.

        Args:
            config: Configuration holding the executable overrides

        Returns:
            Program name or path
        """

    @classmethod
    @abstractmethod
    def create(cls, path: str | Path, *, bare: bool = False, config: ScmConfig | None = None) -> Any:
        """Create a new repository.

        Args:
            path: Path of the new repository, created if missing
            bare: Whether to create a repository without a working copy
            config: Configuration for the new repository

        Returns:
            The new repository

        Raises:
            RepositoryInitError: If the VCS failed to initialize the repository
            UnsupportedOperationError: If the VCS cannot create the requested kind
        """

    @classmethod
    @abstractmethod
    def clone(
        cls,
        uri: str,
        *,
        dest: str | Path | None = None,
        config: ScmConfig | None = None,
        **options: Any,
    ) -> bool:
        """Clone a remote repository.

        Args:
            uri: Location of the remote repository
            dest: Destination directory (default: chosen by the VCS)
            config: Configuration holding the executable overrides
            **options: VCS-specific clone options

        Returns:
            True if the clone succeeded
        """

    @abstractmethod
    def status(self, *paths: str | Path) -> dict[str, FileStatus]:
        """Query the status of files.

        Args:
            *paths: Optional paths to restrict the query to

        Returns:
            Mapping of file path to status
        """

    @abstractmethod
    def add(self, *paths: str | Path) -> bool:
        """Schedule paths for addition.

        Args:
            *paths: Files or directories to add

        Returns:
            True if the paths were added
        """

    @abstractmethod
    def move(self, source: str | Path, dest: str | Path, force: bool = False) -> bool:
        """Move a file or directory.

        Args:
            source: Path to move
            dest: New path
            force: Whether to force the move

        Returns:
            True if the path was moved
        """

    @abstractmethod
    def remove(
        self,
        paths: str | Path | Iterable[str | Path],
        force: bool = False,
        recursive: bool = False,
    ) -> bool:
        """Remove files or directories.

        Args:
            paths: Path or paths to remove
            force: Whether to remove modified files
            recursive: Whether to remove directories recursively (where the VCS needs it)

        Returns:
            True if the paths were removed
        """

    @abstractmethod
    def commit(self, message: str | None = None, paths: Iterable[str | Path] | None = None) -> bool:
        """Make a commit.

        Args:
            message: Commit message
            paths: Restrict the commit to these paths

        Returns:
            True if the commit was made
        """

    @abstractmethod
    def branches(self) -> list[str]:
        """List branch names.

        Returns:
            Branch names
        """

    @abstractmethod
    def current_branch(self) -> str | None:
        """Get the name of the current branch.

        Returns:
            The branch name, or None if it cannot be determined
        """

    def branch(self) -> str | None:
        """Alias of :meth:`current_branch`."""
        return self.current_branch()

    @abstractmethod
    def switch_branch(self, name: str) -> bool:
        """Switch to another branch.

        Args:
            name: The branch to switch to

        Returns:
            True if the branch was switched
        """

    @abstractmethod
    def delete_branch(self, name: str) -> bool:
        """Delete a branch.

        Args:
            name: The branch to delete

        Returns:
            True if the branch was deleted
        """

    @abstractmethod
    def tags(self) -> list[str]:
        """List tag names.

        Returns:
            Tag names
        """

    @abstractmethod
    def tag(self, name: str, commit: str | None = None) -> bool:
        """Create a tag.

        Args:
            name: Name of the tag
            commit: The commit to tag (default: the current one)

        Returns:
            True if the tag was created
        """

    @abstractmethod
    def delete_tag(self, name: str) -> bool:
        """Delete a tag.

        Args:
            name: Name of the tag

        Returns:
            True if the tag was deleted
        """

    @abstractmethod
    def log(self, commit: str | None = None, paths: Iterable[str | Path] | None = None) -> bool:
        """Print the native log of the VCS to standard output.

        Args:
            commit: Commit to begin the log at
            paths: Restrict the log to these paths

        Returns:
            True if the log command succeeded
        """

    @abstractmethod
    def push(self, **options: Any) -> bool:
        """Push changes to the remote repository.

        Args:
            **options: VCS-specific push options

        Returns:
            True if the changes were pushed
        """

    @abstractmethod
    def pull(self, **options: Any) -> bool:
        """Pull changes from the remote repository.

        Args:
            **options: VCS-specific pull options

        Returns:
            True if the changes were pulled
        """

    @abstractmethod
    def commits(
        self,
        commit: str | None = None,
        branch: str | None = None,
        limit: int | None = None,
        paths: Iterable[str | Path] | None = None,
    ) -> Iterator[Commit]:
        """Lazily list commits, newest first.

        The VCS process runs while the iterator is consumed and is released
        when the iterator is exhausted or closed.

        Args:
            commit: Commit to start at
            branch: Branch to list commits within
            limit: Maximum number of commits
            paths: Restrict to commits touching these paths

        Returns:
            Iterator of parsed commits
        """

    @abstractmethod
    def files(self, pattern: str | None = None) -> Iterator[str]:
        """Lazily list tracked files.

        Args:
            pattern: Optional pattern to filter the files by

        Returns:
            Iterator of file paths
        """

    def _run(self, subcommand: str, *arguments: Argument) -> bool:
        """Run a VCS sub-command within the repository.

        Args:
            subcommand: The VCS sub-command
            *arguments: Arguments for the sub-command

        Returns:
            True if the command exited successfully
        """
        return process.run(
            self.executable(self.config),
            subcommand,
            *arguments,
            cwd=self.path,
            timeout=self.config.command_timeout,
            env=self.environment(),
        )

    def _popen(self, subcommand: str, *arguments: Argument) -> LineStream:
        """Stream the output of a VCS sub-command run within the repository.

        Args:
            subcommand: The VCS sub-command
            *arguments: Arguments for the sub-command

        Returns:
            The line stream of the command
        """
        return process.popen(
            self.executable(self.config),
            subcommand,
            *arguments,
            cwd=self.path,
            timeout=self.config.command_timeout,
            env=self.environment(),
        )

    def __str__(self) -> str:
        return str(self.path)

    def __repr__(self) -> str:
        return f"<{type(self).__name__}: {self.path}>"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Repository):
            return NotImplemented
        return type(self) is type(other) and self.path == other.path

    def __hash__(self) -> int:
        return hash((type(self), self.path))


def as_paths(paths: str | Path | Iterable[str | Path] | None) -> list[str]:
    """Normalize one path or many paths to a list of strings.

    Args:
        paths: A single path, several paths, or None

    Returns:
        List of path strings
    """
    if paths is None:
        return []
    if isinstance(paths, str | Path):
        return [str(paths)]
    return [str(path) for path in paths]
