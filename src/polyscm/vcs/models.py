"""Models for parsed VCS output."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class VCSType(str, Enum):
    """Supported version control systems."""

    GIT = "git"
    MERCURIAL = "hg"
    SUBVERSION = "svn"

    @property
    def display_name(self) -> str:
        """Get display name for the VCS type.

        Returns:
            Human-readable name
        """
        return {
            VCSType.GIT: "Git",
            VCSType.MERCURIAL: "Mercurial",
            VCSType.SUBVERSION: "SubVersion",
        }[self]


class FileStatus(str, Enum):
    """Working copy status of a single path.

    The union of the Git, Mercurial and SubVersion status vocabularies.
    """

    MODIFIED = "modified"
    STAGED = "staged"
    ADDED = "added"
    DELETED = "deleted"
    RENAMED = "renamed"
    COPIED = "copied"
    UNMERGED = "unmerged"
    UNTRACKED = "untracked"
    REMOVED = "removed"
    CLEAN = "clean"
    MISSING = "missing"
    IGNORED = "ignored"
    ORIGIN = "origin"
    CONFLICTED = "conflicted"
    REPLACED = "replaced"
    UNVERSIONED = "unversioned"
    OBSTRUCTED = "obstructed"
    UNKNOWN = "unknown"


class Commit(BaseModel):
    """Base record for a commit parsed from a VCS log."""

    model_config = ConfigDict(frozen=True)

    identifier: str | int = Field(description="Commit hash or revision number")
    date: datetime = Field(description="When the commit was made")
    author: str = Field(description="Author or committer name")
    summary: str = Field(description="First line of the commit message")
    message: str = Field(default="", description="Full commit message")
    files: tuple[str, ...] = Field(default=(), description="Paths changed by the commit")

    @field_validator("identifier")
    @classmethod
    def validate_identifier(cls, v: str | int) -> str | int:
        """Reject empty hashes and negative revisions."""
        if isinstance(v, str) and not v.strip():
            raise ValueError("commit identifier must not be empty")
        if isinstance(v, int) and v < 0:
            raise ValueError(f"revision must not be negative, got {v}")
        return v

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: datetime) -> datetime:
        """Require an absolute (timezone-aware) timestamp."""
        if v.tzinfo is None or v.utcoffset() is None:
            raise ValueError("commit date must be timezone-aware")
        return v

    @model_validator(mode="before")
    @classmethod
    def default_message(cls, data: Any) -> Any:
        """Default the message to the summary."""
        if isinstance(data, dict) and not data.get("message"):
            data = {**data, "message": data.get("summary", "")}
        return data

    def __str__(self) -> str:
        return str(self.identifier)


class GitCommit(Commit):
    """A commit in a Git repository."""

    identifier: str = Field(description="Full SHA1 of the commit")
    parents: tuple[str, ...] = Field(default=(), description="SHA1s of the parent commits")
    tree: str = Field(description="SHA1 of the commit tree")
    email: str = Field(description="Email of the author")

    @property
    def sha1(self) -> str:
        """The SHA1 of the commit."""
        return self.identifier

    @property
    def parent(self) -> str | None:
        """The first parent, or None for a root commit."""
        return self.parents[0] if self.parents else None


class HgCommit(Commit):
    """A changeset in a Mercurial repository."""

    identifier: int = Field(description="Local revision number")
    hash: str = Field(description="Global changeset hash")
    branch: str = Field(default="default", description="Named branch of the changeset")
    tags: tuple[str, ...] = Field(default=(), description="Tags on the changeset")

    @property
    def revision(self) -> int:
        """The local revision number."""
        return self.identifier

    @property
    def user(self) -> str:
        """The Mercurial user that made the changeset."""
        return self.author

    def __int__(self) -> int:
        return self.identifier


class SVNCommit(Commit):
    """A revision in a SubVersion repository."""

    identifier: int = Field(description="Global revision number")

    @property
    def revision(self) -> int:
        """The revision number."""
        return self.identifier

    @property
    def user(self) -> str:
        """The SubVersion committer."""
        return self.author

    def __int__(self) -> int:
        return self.identifier


class RemoteReference(BaseModel):
    """A repository that lives at a remote location rather than on local disk."""

    model_config = ConfigDict(frozen=True)

    uri: str = Field(description="Location of the remote repository")
    vcs_type: VCSType = Field(description="VCS of the remote repository")

    def __str__(self) -> str:
        return self.uri
