"""SubVersion repositories driven through the svn CLI.

SubVersion has no branch objects of its own. Branches and tags follow the
conventional layout of a repository root with ``trunk``, ``branches/<name>``
and ``tags/<name>`` directories, all checked out side by side.
"""

import fnmatch
import logging
import os
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from polyscm.config import ScmConfig
from polyscm.vcs import process
from polyscm.vcs.base import Repository, as_paths
from polyscm.vcs.exceptions import RepositoryInitError, UnsupportedOperationError
from polyscm.vcs.models import FileStatus, SVNCommit, VCSType
from polyscm.vcs.process import Environment
from polyscm.vcs.svn import parser

logger = logging.getLogger(__name__)

TRUNK = "trunk"


class SVNRepository(Repository):
    """Interacts with SubVersion (SVN) working copies."""

    vcs_type = VCSType.SUBVERSION
    control_dir = ".svn"

    def __init__(self, path: str | Path, config: ScmConfig | None = None) -> None:
        """Wrap an existing working copy.

        Args:
            path: Path to the working copy, either the layout root or its trunk
            config: Configuration (default: loaded from the environment)
        """
        super().__init__(path, config)

        self.root = self._path.parent if self._path.name == TRUNK else self._path
        self.trunk = self.root / TRUNK
        self.branches_dir = self.root / "branches"
        self.tags_dir = self.root / "tags"

    @classmethod
    def executable(cls, config: ScmConfig) -> str:
        """Get the configured svn executable."""
        return config.svn_executable

    @classmethod
    def environment(cls) -> Environment:
        """Untranslated svn messages with the character set of the current locale.

        The log parser relies on the English ``Changed paths:`` label, while
        the character set must stay as it is for svn to handle non-ASCII
        paths, so only the message catalog is reset.

        Returns:
            Variables to set, with None for variables to remove
        """
        overrides: dict[str, str | None] = {"LC_MESSAGES": "C", "LANGUAGE": None}
        lc_all = os.environ.get("LC_ALL")
        if lc_all:
            # LC_ALL overrides every category, LC_MESSAGES included
            overrides["LC_ALL"] = None
            overrides["LC_CTYPE"] = lc_all
        return overrides

    @classmethod
    def create(
        cls,
        path: str | Path,
        *,
        bare: bool = False,
        config: ScmConfig | None = None,
    ) -> "SVNRepository":
        """Create a SubVersion repository with `svnadmin create`.

        This produces the repository store itself, not a working copy, so
        ``bare`` makes no difference.

        Args:
            path: Path to the repository
            bare: Ignored
            config: Configuration for the repository

        Returns:
            The new repository

        Raises:
            RepositoryInitError: If `svnadmin create` failed
        """
        config = config or ScmConfig()
        path = Path(path).expanduser().resolve()
        path.parent.mkdir(parents=True, exist_ok=True)

        if not process.run(
            config.svnadmin_executable,
            "create",
            path,
            timeout=config.command_timeout,
            env=cls.environment(),
        ):
            logger.error(f"svnadmin create failed for {path}")
            raise RepositoryInitError(f"Unable to create SVN repository {str(path)!r}", path)

        return cls(path, config)

    @classmethod
    def checkout(
        cls,
        uri: str,
        *,
        dest: str | Path | None = None,
        config: ScmConfig | None = None,
        revision: str | int | None = None,
        **options: Any,
    ) -> bool:
        """Check out a remote SubVersion repository.

        Args:
            uri: URI of the remote repository
            dest: Destination directory
            config: Configuration holding the executable override
            revision: The revision to check out
            **options: Unused options of other VCSs

        Returns:
            True if the checkout succeeded
        """
        config = config or ScmConfig()
        arguments: list[Any] = []

        if revision is not None:
            arguments.extend(["--revision", revision])

        arguments.append(uri)
        if dest is not None:
            arguments.append(dest)

        return process.run(
            cls.executable(config),
            "checkout",
            *arguments,
            timeout=config.command_timeout,
            env=cls.environment(),
        )

    @classmethod
    def clone(
        cls,
        uri: str,
        *,
        dest: str | Path | None = None,
        config: ScmConfig | None = None,
        **options: Any,
    ) -> bool:
        """Same as :meth:`checkout`."""
        return cls.checkout(uri, dest=dest, config=config, **options)

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
        """Move or rename a versioned file.

        Args:
            source: Current path
            dest: New path
            force: Move files with local modifications

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
        """Schedule files or directories for removal.

        SubVersion always removes directories recursively, so ``recursive``
        has no effect.

        Args:
            paths: Files or directories to remove
            force: Remove files with local modifications
            recursive: Ignored

        Returns:
            True if the files were scheduled for removal
        """
        return self._run("rm", "--force" if force else None, "--", *as_paths(paths))

    def commit(self, message: str | None = None, paths: Iterable[str | Path] | None = None) -> bool:
        """Commit local changes to the server.

        Args:
            message: Commit message (svn opens an editor without one)
            paths: Commit only these paths

        Returns:
            True if the commit was created
        """
        arguments: list[Any] = []
        if message is not None:
            arguments.extend(["-m", message])
        return self._run("commit", *arguments, *as_paths(paths))

    def branches(self) -> list[str]:
        """List the directories under ``branches``.

        Returns:
            Branch names, sorted
        """
        return _subdirectories(self.branches_dir)

    def current_branch(self) -> str:
        """Get the branch the repository points at.

        Returns:
            ``trunk``, or the name of the branch directory
        """
        if self.path == self.trunk:
            return TRUNK
        return self.path.name

    def switch_branch(self, name: str) -> bool:
        """Point the repository at another branch directory.

        No svn command runs: the branch directories are already checked out
        next to trunk, and only the path later commands run in changes.

        Args:
            name: A branch name, or ``trunk``

        Returns:
            True if the branch directory exists
        """
        branch_dir = self.trunk if name == TRUNK else self.branches_dir / name

        if not branch_dir.is_dir():
            return False

        self._path = branch_dir
        return True

    def delete_branch(self, name: str) -> bool:
        """Schedule a branch directory for removal.

        Args:
            name: The branch to delete

        Returns:
            True if the branch exists and was scheduled for removal
        """
        branch_dir = self.branches_dir / name
        if not branch_dir.is_dir():
            return False
        return self._run("rm", branch_dir)

    def tags(self) -> list[str]:
        """List the directories under ``tags``.

        Returns:
            Tag names, sorted
        """
        return _subdirectories(self.tags_dir)

    def tag(self, name: str, commit: str | None = None) -> bool:
        """Tag trunk by copying it to ``tags/<name>``.

        Args:
            name: Name of the tag
            commit: Not supported, tags are always copies of the trunk working copy

        Returns:
            True if the tag was created

        Raises:
            UnsupportedOperationError: If a commit was given
        """
        if commit is not None:
            raise UnsupportedOperationError("The commit argument is not supported by SVN tags")

        if not self.trunk.is_dir():
            return False
        if not self.tags_dir.is_dir() and not self._run("mkdir", self.tags_dir):
            return False

        return self._run("cp", self.trunk, self.tags_dir / name)

    def delete_tag(self, name: str) -> bool:
        """Schedule a tag directory for removal.

        Args:
            name: The tag to delete

        Returns:
            True if the tag exists and was scheduled for removal
        """
        tag_dir = self.tags_dir / name
        if not tag_dir.is_dir():
            return False
        return self._run("rm", tag_dir)

    def log(self, commit: str | None = None, paths: Iterable[str | Path] | None = None) -> bool:
        """Show the history on the terminal.

        Args:
            commit: Revision whose change to show
            paths: Only show revisions touching these paths

        Returns:
            True if svn exited successfully
        """
        arguments: list[Any] = ["-c", commit] if commit else []
        return self._run("log", *arguments, *as_paths(paths))

    def push(self, **options: Any) -> bool:
        """Do nothing: SubVersion commits go straight to the server."""
        return True

    def pull(self, force: bool = False, **options: Any) -> bool:
        """Update the working copy from the server.

        Args:
            force: Force the update over obstructing unversioned files
            **options: Unused options of other VCSs

        Returns:
            True if the working copy was updated
        """
        return self._run("update", "--force" if force else None)

    def commits(
        self,
        commit: str | None = None,
        branch: str | None = None,
        limit: int | None = None,
        paths: Iterable[str | Path] | None = None,
    ) -> Iterator[SVNCommit]:
        """Lazily list revisions, newest first.

        Args:
            commit: Revision or range such as ``10:HEAD``
            branch: List the history of this branch, or ``trunk``
            limit: Maximum number of revisions
            paths: Only revisions touching these paths

        Yields:
            Parsed revisions
        """
        arguments: list[Any] = ["--verbose"]

        if commit:
            arguments.extend(["--revision", commit])
        if limit is not None:
            arguments.extend(["--limit", limit])
        if branch:
            arguments.append(self.trunk if branch == TRUNK else self.branches_dir / branch)
        arguments.extend(as_paths(paths))

        with self._popen("log", *arguments) as lines:
            yield from parser.parse_log(lines)

    def files(self, pattern: str | None = None) -> Iterator[str]:
        """Lazily list versioned files.

        Args:
            pattern: Only files matching this glob

        Yields:
            File paths relative to the working path
        """
        with self._popen("list", "--recursive") as lines:
            for line in lines:
                if not line or line.endswith("/"):
                    continue
                if pattern is None or fnmatch.fnmatch(line, pattern):
                    yield line

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SVNRepository):
            return NotImplemented
        return self.root == other.root

    def __hash__(self) -> int:
        # the working path moves with switch_branch, the layout root does not
        return hash((type(self), self.root))


def _subdirectories(path: Path) -> list[str]:
    if not path.is_dir():
        return []
    return sorted(child.name for child in path.iterdir() if child.is_dir() and not child.name.startswith("."))
