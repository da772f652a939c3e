"""Parsing of Mercurial command output.

`hg log -v` prints one stanza of ``key: value`` lines per changeset, ending
with a blank line::

    changeset:   1:5fe4b0a5e7a3
    branch:      stable
    tag:         tip
    user:        Alice <alice@example.com>
    date:        Wed Jan 01 12:00:00 2020 +0000
    files:       README setup.py
    description:
    Fix the build

    Longer explanation.


A stanza ends at a blank line. The description is the exception, because it
may contain blank lines itself: there a blank line only ends the stanza when
the next non-blank line starts a new ``changeset:`` or the output ends.
"""

import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime

from polyscm.vcs.exceptions import UnparseableOutputError
from polyscm.vcs.models import FileStatus, HgCommit

logger = logging.getLogger(__name__)

# One-letter codes of `hg status`
STATUSES: dict[str, FileStatus] = {
    "M": FileStatus.MODIFIED,
    "A": FileStatus.ADDED,
    "R": FileStatus.REMOVED,
    "C": FileStatus.CLEAN,
    "!": FileStatus.MISSING,
    "?": FileStatus.UNTRACKED,
    "I": FileStatus.IGNORED,
    " ": FileStatus.ORIGIN,
}

DATE_FORMATS = (
    "%a %b %d %H:%M:%S %Y %z",
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M %z",
)

# "name    12:0123abcd" optionally followed by "(inactive)" or "(closed)"
_LISTING_RE = re.compile(r"^(?P<name>.+?)\s+(?P<rev>-?\d+):(?P<node>[0-9a-f]+)(?:\s+\((?P<state>[^)]*)\))?$")
_KEY_RE = re.compile(r"^[a-z][\w+-]*$")


def parse_status(lines: Iterable[str], strict: bool = False) -> dict[str, FileStatus]:
    """Parse `hg status` output.

    Args:
        lines: Output lines
        strict: Raise on unrecognized status codes instead of mapping them to UNKNOWN

    Returns:
        Mapping of path to status

    Raises:
        UnparseableOutputError: If a line is malformed, or has an unknown code in strict mode
    """
    statuses: dict[str, FileStatus] = {}

    for line in lines:
        if not line:
            continue
        if len(line) < 3 or line[1] != " ":
            raise UnparseableOutputError("Malformed hg status line", line)

        code, path = line[0], line[2:]
        status = STATUSES.get(code)
        if status is None:
            if strict:
                raise UnparseableOutputError(f"Unknown hg status code {code!r}", line)
            logger.warning(f"Unknown hg status code {code!r} for {path}")
            status = FileStatus.UNKNOWN

        statuses[path] = status

    return statuses


def parse_listing(lines: Iterable[str]) -> list[str]:
    """Parse the names out of `hg branches` or `hg tags` output.

    Args:
        lines: Output lines

    Returns:
        The listed names, in output order

    Raises:
        UnparseableOutputError: If a line is not ``name rev:node``
    """
    names = []
    for line in lines:
        if not line.strip():
            continue
        match = _LISTING_RE.match(line.rstrip())
        if match is None:
            raise UnparseableOutputError("Malformed hg listing line", line)
        names.append(match.group("name"))
    return names


def parse_date(value: str) -> datetime:
    """Parse a date as printed by Mercurial.

    Raises:
        UnparseableOutputError: If the date is in none of the known formats
    """
    for date_format in DATE_FORMATS:
        try:
            return datetime.strptime(value, date_format)
        except ValueError:
            continue
    raise UnparseableOutputError("Unrecognized hg date", value)


@dataclass
class _Stanza:
    """Fields collected for one changeset."""

    changeset: str | None = None
    branch: str = "default"
    user: str | None = None
    date: str | None = None
    summary: str | None = None
    files: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    description: list[str] | None = None

    def add(self, key: str, value: str, line: str) -> None:
        if key == "changeset":
            if self.changeset is not None:
                raise UnparseableOutputError("Unterminated hg log stanza", line)
            self.changeset = value
        elif key == "branch":
            self.branch = value
        elif key == "user":
            self.user = value
        elif key == "date":
            self.date = value
        elif key == "summary":
            self.summary = value
        elif key == "files":
            self.files.extend(value.split())
        elif key == "tag":
            self.tags.append(value)
        else:
            logger.debug(f"Ignoring hg log key {key!r}")

    def build(self) -> HgCommit:
        if self.changeset is None or self.user is None or self.date is None:
            raise UnparseableOutputError(
                "Incomplete hg log stanza",
                f"changeset={self.changeset} user={self.user} date={self.date}",
            )

        revision, sep, node = self.changeset.partition(":")
        if not sep or not revision.lstrip("-").isdigit():
            raise UnparseableOutputError("Malformed hg changeset", self.changeset)

        if self.description is not None:
            message = "\n".join(self.description)
            summary = self.description[0] if self.description else ""
        else:
            summary = self.summary or ""
            message = summary

        return HgCommit(
            identifier=int(revision),
            hash=node,
            branch=self.branch,
            author=self.user,
            date=parse_date(self.date),
            summary=summary,
            message=message,
            files=tuple(self.files),
            tags=tuple(self.tags),
        )


def parse_log(lines: Iterable[str]) -> Iterator[HgCommit]:
    """Lazily parse `hg log` output into commits.

    Args:
        lines: Output lines

    Yields:
        Parsed commits

    Raises:
        UnparseableOutputError: If a line is not ``key: value`` or a stanza is incomplete
    """
    stanza = _Stanza()
    blank_lines = 0

    for line in lines:
        if stanza.description is not None:
            if not line:
                blank_lines += 1
                continue
            if not (blank_lines and line.startswith("changeset:")):
                stanza.description.extend([""] * blank_lines)
                stanza.description.append(line)
                blank_lines = 0
                continue

            yield stanza.build()
            stanza = _Stanza()
            blank_lines = 0

        if not line.strip():
            if stanza.changeset is not None:
                yield stanza.build()
                stanza = _Stanza()
            continue

        key, sep, value = line.partition(":")
        if not sep or not _KEY_RE.match(key):
            raise UnparseableOutputError("Malformed hg log line", line)

        value = value.strip()
        if key == "description":
            stanza.description = [value] if value else []
        else:
            stanza.add(key, value, line)

    if stanza.changeset is not None:
        yield stanza.build()
