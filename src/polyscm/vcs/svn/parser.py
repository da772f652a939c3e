"""Parsing of SubVersion command output.

`svn log --verbose` prints revisions as blocks between separator lines::

    ------------------------------------------------------------------------
    r42 | alice | 2020-01-01 12:00:00 +0000 (Wed, 01 Jan 2020) | 2 lines
    Changed paths:
       M /trunk/README
       A /trunk/setup.py (from /trunk/setup.in:41)

    Add setup script
    Replaces the old build.
    ------------------------------------------------------------------------

The message length in the header decides how many lines belong to the
message, so a message line that looks like the separator is still read as
part of the message.
"""

import logging
import re
from collections.abc import Iterable, Iterator
from datetime import datetime

from polyscm.vcs.exceptions import UnparseableOutputError
from polyscm.vcs.models import FileStatus, SVNCommit

logger = logging.getLogger(__name__)

# Codes of the first column of `svn status`
STATUSES: dict[str, FileStatus] = {
    "A": FileStatus.ADDED,
    "C": FileStatus.CONFLICTED,
    "D": FileStatus.DELETED,
    "I": FileStatus.IGNORED,
    "M": FileStatus.MODIFIED,
    "R": FileStatus.REPLACED,
    "X": FileStatus.UNVERSIONED,
    "?": FileStatus.UNTRACKED,
    "!": FileStatus.MISSING,
    "~": FileStatus.OBSTRUCTED,
}

# `svn status` reserves the first eight columns for status flags
PATH_COLUMN = 8

EXTERNAL_HEADER = "Performing status on external item"
CHANGELIST_HEADER = "--- Changelist "
# Trailer printed after the entries when the working copy has conflicts
CONFLICT_SUMMARY = "Summary of conflicts:"

LOG_SEPARATOR = "-" * 72
CHANGED_PATHS = "Changed paths:"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z"

_LINE_COUNT_RE = re.compile(r"^(\d+) lines?$")
_COPY_SOURCE_RE = re.compile(r" \(from .+:\d+\)$")


def parse_status(lines: Iterable[str], strict: bool = False) -> dict[str, FileStatus]:
    """Parse `svn status` output.

    Only the first status column is inspected. Lines with an empty first
    column (property-only changes, tree conflict details), changelist and
    external item headers are skipped, and reading stops at the summary of
    conflicts.

    Args:
        lines: Output lines
        strict: Raise on unrecognized status codes instead of mapping them to UNKNOWN

    Returns:
        Mapping of path to status

    Raises:
        UnparseableOutputError: If a line is too short, or has an unknown code in strict mode
    """
    statuses: dict[str, FileStatus] = {}

    for line in lines:
        if not line or line[0] == " ":
            continue
        if line == CONFLICT_SUMMARY:
            break
        if line.startswith((EXTERNAL_HEADER, CHANGELIST_HEADER)):
            continue
        if len(line) <= PATH_COLUMN:
            raise UnparseableOutputError("Malformed svn status line", line)

        code, path = line[0], line[PATH_COLUMN:]
        status = STATUSES.get(code)
        if status is None:
            if strict:
                raise UnparseableOutputError(f"Unknown svn status code {code!r}", line)
            logger.warning(f"Unknown svn status code {code!r} for {path}")
            status = FileStatus.UNKNOWN

        statuses[path] = status

    return statuses


def parse_date(value: str) -> datetime:
    """Parse a log date, ignoring the human readable part in parentheses.

    Raises:
        UnparseableOutputError: If the date is not ``YYYY-MM-DD HH:MM:SS +ZZZZ``
    """
    text = value.split(" (", 1)[0].strip()
    try:
        return datetime.strptime(text, DATE_FORMAT)
    except ValueError as e:
        raise UnparseableOutputError("Unrecognized svn date", value) from e


def parse_header(line: str) -> tuple[int, str, datetime, int | None]:
    """Parse a log block header.

    Args:
        line: A header such as ``r42 | alice | 2020-01-01 12:00:00 +0000 | 1 line``

    Returns:
        Revision, author, date and message line count (None when not given)

    Raises:
        UnparseableOutputError: If the line is not a revision header
    """
    fields = line.split(" | ")
    if len(fields) < 3 or not fields[0].startswith("r") or not fields[0][1:].isdigit():
        raise UnparseableOutputError("Malformed svn log header", line)

    revision = int(fields[0][1:])
    author = fields[1]
    date = parse_date(fields[2])

    line_count = None
    if len(fields) > 3:
        match = _LINE_COUNT_RE.match(fields[3].strip())
        if match is not None:
            line_count = int(match.group(1))

    return revision, author, date, line_count


def parse_changed_path(line: str) -> str:
    """Extract the path from a ``Changed paths:`` entry such as ``   M /trunk/README``."""
    entry = line.strip()
    if len(entry) < 3 or entry[1] != " ":
        raise UnparseableOutputError("Malformed svn changed path", line)
    return _COPY_SOURCE_RE.sub("", entry[2:])


def parse_log(lines: Iterable[str]) -> Iterator[SVNCommit]:
    """Lazily parse `svn log` output into commits.

    Args:
        lines: Output lines

    Yields:
        Parsed commits

    Raises:
        UnparseableOutputError: If the output is not a sequence of log blocks
    """
    stream = iter(lines)

    first = next(stream, None)
    if first is None:
        return
    if first != LOG_SEPARATOR:
        raise UnparseableOutputError("Expected svn log separator", first)

    for header in stream:
        if not header:
            continue
        revision, author, date, line_count = parse_header(header)

        files: list[str] = []
        line = next(stream, None)
        if line == CHANGED_PATHS:
            for line in stream:
                if not line:
                    break
                files.append(parse_changed_path(line))
        elif line:
            raise UnparseableOutputError("Expected blank line after svn log header", line)

        message_lines: list[str] = []
        if line_count is not None:
            for _ in range(line_count):
                line = next(stream, None)
                if line is None:
                    raise UnparseableOutputError("Truncated svn log message", header)
                message_lines.append(line)
            line = next(stream, None)
            if line is not None and line != LOG_SEPARATOR:
                raise UnparseableOutputError("Expected svn log separator", line)
        else:
            for line in stream:
                if line == LOG_SEPARATOR:
                    break
                message_lines.append(line)

        message = "\n".join(message_lines).strip("\n")
        yield SVNCommit(
            identifier=revision,
            author=author,
            date=date,
            summary=message.split("\n", 1)[0],
            message=message,
            files=tuple(files),
        )
