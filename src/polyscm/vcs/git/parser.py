"""Parsing of Git command output."""

import logging
import re
from collections.abc import Iterable, Iterator
from datetime import datetime, timezone

from polyscm.vcs.exceptions import UnparseableOutputError
from polyscm.vcs.models import FileStatus, GitCommit

logger = logging.getLogger(__name__)

# Two-letter codes of `git status --porcelain`
STATUSES: dict[str, FileStatus] = {
    " M": FileStatus.MODIFIED,
    "M ": FileStatus.STAGED,
    "A ": FileStatus.ADDED,
    "D ": FileStatus.DELETED,
    "R ": FileStatus.RENAMED,
    "C ": FileStatus.COPIED,
    "U ": FileStatus.UNMERGED,
    "??": FileStatus.UNTRACKED,
}

# %H|%P|%T|%at|%an|%ae|%s
LOG_FIELDS = ("%H", "%P", "%T", "%at", "%an", "%ae", "%s")
LOG_FORMAT = "--pretty=format:" + "|".join(LOG_FIELDS)

# Backslash escapes git uses when quoting a path, besides octal bytes
ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
}

EMAIL_PATTERN = re.compile(r"[^\s|]*@[^\s|]*")


def unquote_path(text: str) -> str:
    """Undo the C-style quoting git applies to unusual paths.

    Git wraps a path in double quotes when it contains spaces, control
    characters or, unless ``core.quotePath`` is off, non-ASCII bytes, which
    it writes as octal escapes of their UTF-8 encoding.

    Args:
        text: A path as printed by git

    Returns:
        The path as it is named on disk

    Raises:
        UnparseableOutputError: If the quoted path ends in the middle of an escape
    """
    if len(text) < 2 or not (text.startswith('"') and text.endswith('"')):
        return text

    body = text[1:-1]
    raw = bytearray()
    index = 0
    while index < len(body):
        char = body[index]
        if char != "\\":
            raw += char.encode("utf-8")
            index += 1
            continue

        escape = body[index + 1 : index + 2]
        if not escape:
            raise UnparseableOutputError("Dangling escape in quoted git path", text)
        if escape in "01234567":
            digits = body[index + 1 : index + 4]
            raw.append(int(digits, 8) & 0xFF)
            index += 1 + len(digits)
        else:
            raw += ESCAPES.get(escape, escape).encode("utf-8")
            index += 2

    return raw.decode("utf-8", errors="replace")


def _split_quoted(text: str) -> tuple[str, str]:
    """Split a leading quoted path from the rest of ``text``."""
    index = 1
    while index < len(text):
        if text[index] == "\\":
            index += 2
            continue
        if text[index] == '"':
            return text[: index + 1], text[index + 1 :]
        index += 1
    raise UnparseableOutputError("Unterminated quoted git path", text)


def parse_rename(path: str) -> tuple[str, str]:
    """Split the ``source -> dest`` path of a renamed or copied entry.

    Args:
        path: The path part of a status line

    Returns:
        The unquoted source and destination paths
    """
    if path.startswith('"'):
        source, rest = _split_quoted(path)
        if not rest.startswith(" -> "):
            raise UnparseableOutputError("Malformed git rename entry", path)
        dest = rest[len(" -> ") :]
    else:
        source, separator, dest = path.partition(" -> ")
        if not separator:
            raise UnparseableOutputError("Malformed git rename entry", path)
    return unquote_path(source), unquote_path(dest)


def parse_status(lines: Iterable[str], strict: bool = False) -> dict[str, FileStatus]:
    """Parse `git status --porcelain` output.

    Renamed and copied files are keyed by their new path.

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
        if not line:
            continue
        if len(line) < 4:
            raise UnparseableOutputError("Malformed git status line", line)

        code, path = line[:2], line[3:]
        if code[0] in "RC":
            _, path = parse_rename(path)
        else:
            path = unquote_path(path)

        status = STATUSES.get(code)
        if status is None:
            if strict:
                raise UnparseableOutputError(f"Unknown git status code {code!r}", line)
            logger.warning(f"Unknown git status code {code!r} for {path}")
            status = FileStatus.UNKNOWN

        statuses[path] = status

    return statuses


def parse_files(lines: Iterable[str]) -> Iterator[str]:
    """Parse `git ls-files` output into unquoted paths."""
    for line in lines:
        if line:
            yield unquote_path(line)


def parse_branches(lines: Iterable[str]) -> list[str]:
    """Parse `git branch` output into branch names."""
    return [line[2:] for line in lines if line]


def parse_current_branch(lines: Iterable[str]) -> str | None:
    """Find the branch marked with ``*`` in `git branch` output."""
    for line in lines:
        if line.startswith("*"):
            return line[2:]
    return None


def parse_tags(lines: Iterable[str]) -> list[str]:
    """Parse `git tag` output, which lists one bare name per line."""
    return [line.strip() for line in lines if line.strip()]


def _split_identity(fields: list[str]) -> tuple[str, str, str]:
    """Split the trailing author, email and summary fields of a log line.

    Author names and summaries may contain the separator themselves. The
    email is taken to be the first field after the author that looks like an
    address; without one the fields are split at the first two separators.
    """
    index = next(
        (i for i in range(1, len(fields) - 1) if EMAIL_PATTERN.fullmatch(fields[i])),
        1,
    )
    return "|".join(fields[:index]), fields[index], "|".join(fields[index + 1 :])


def parse_commit(line: str) -> GitCommit:
    """Parse one line of `git log` produced with :data:`LOG_FORMAT`.

    Args:
        line: A single log line

    Returns:
        The parsed commit

    Raises:
        UnparseableOutputError: If the line has fewer than seven fields
    """
    fields = line.split("|")
    if len(fields) < len(LOG_FIELDS):
        raise UnparseableOutputError(
            f"Expected {len(LOG_FIELDS)} fields in git log line, got {len(fields)}",
            line,
        )

    sha1, parents, tree, timestamp = fields[:4]
    author, email, summary = _split_identity(fields[4:])
    if not sha1:
        raise UnparseableOutputError("Missing commit hash in git log line", line)

    try:
        date = datetime.fromtimestamp(int(timestamp), tz=timezone.utc)
    except ValueError as e:
        raise UnparseableOutputError(f"Invalid timestamp {timestamp!r} in git log line", line) from e

    return GitCommit(
        identifier=sha1,
        parents=tuple(parents.split()),
        tree=tree,
        date=date,
        author=author,
        email=email,
        summary=summary,
    )


def parse_log(lines: Iterable[str]) -> Iterator[GitCommit]:
    """Lazily parse `git log` output, one commit per line.

    Args:
        lines: Output lines

    Yields:
        Parsed commits
    """
    for line in lines:
        if line:
            yield parse_commit(line)
