"""Tests for SubVersion output parsing."""

from datetime import datetime, timedelta, timezone

import pytest

from polyscm.vcs.exceptions import UnparseableOutputError
from polyscm.vcs.models import FileStatus
from polyscm.vcs.svn import parser

SEPARATOR = "-" * 72


class TestParseStatus:
    """Tests for `svn status` parsing."""

    def test_known_codes(self) -> None:
        """Test that the first column maps to a status and the path starts at column eight."""
        lines = [
            "M       trunk/setup.py",
            "A  +    trunk/copy.py",
            "D       trunk/old.py",
            "?       trunk/scratch.txt",
            "!       trunk/lost.py",
            "C       trunk/conflict.py",
            "~       trunk/obstructed",
            "X       trunk/external",
            "R       trunk/replaced.py",
            "I       trunk/ignored.o",
        ]

        statuses = parser.parse_status(lines)

        assert statuses == {
            "trunk/setup.py": FileStatus.MODIFIED,
            "trunk/copy.py": FileStatus.ADDED,
            "trunk/old.py": FileStatus.DELETED,
            "trunk/scratch.txt": FileStatus.UNTRACKED,
            "trunk/lost.py": FileStatus.MISSING,
            "trunk/conflict.py": FileStatus.CONFLICTED,
            "trunk/obstructed": FileStatus.OBSTRUCTED,
            "trunk/external": FileStatus.UNVERSIONED,
            "trunk/replaced.py": FileStatus.REPLACED,
            "trunk/ignored.o": FileStatus.IGNORED,
        }

    def test_skips_detail_and_external_lines(self) -> None:
        """Test that property-only lines and external headers are skipped."""
        lines = [
            " M      trunk",
            "",
            "Performing status on external item at 'trunk/external':",
            "M       trunk/external/file.c",
        ]

        assert parser.parse_status(lines) == {"trunk/external/file.c": FileStatus.MODIFIED}

    def test_skips_changelist_headers(self) -> None:
        """Test that entries grouped under a changelist keep their own paths."""
        lines = [
            "?       scratch.txt",
            "",
            "--- Changelist 'fixes':",
            "M       a.txt",
            "A       b.txt",
        ]

        assert parser.parse_status(lines) == {
            "scratch.txt": FileStatus.UNTRACKED,
            "a.txt": FileStatus.MODIFIED,
            "b.txt": FileStatus.ADDED,
        }

    def test_stops_at_conflict_summary(self) -> None:
        """Test that the conflict summary trailer is not read as entries, even when strict."""
        lines = [
            "C       conflicted.txt",
            "M       other.txt",
            "Summary of conflicts:",
            "  Text conflicts: 1",
        ]

        assert parser.parse_status(lines, strict=True) == {
            "conflicted.txt": FileStatus.CONFLICTED,
            "other.txt": FileStatus.MODIFIED,
        }

    def test_unknown_code(self) -> None:
        """Test that unrecognized codes map to UNKNOWN unless strict."""
        assert parser.parse_status(["Z       odd"]) == {"odd": FileStatus.UNKNOWN}

        with pytest.raises(UnparseableOutputError, match="Unknown svn status code"):
            parser.parse_status(["Z       odd"], strict=True)

    def test_short_line(self) -> None:
        """Test that a line ending before the path column is rejected."""
        with pytest.raises(UnparseableOutputError, match="Malformed svn status line"):
            parser.parse_status(["M"])


class TestParseHeader:
    """Tests for `svn log` header parsing."""

    def test_header(self) -> None:
        """Test that revision, author, date and line count are read."""
        revision, author, date, line_count = parser.parse_header(
            "r7 | bob | 2021-06-15 08:30:00 +0200 (Tue, 15 Jun 2021) | 3 lines"
        )

        assert revision == 7
        assert author == "bob"
        assert date == datetime(2021, 6, 15, 8, 30, tzinfo=timezone(timedelta(hours=2)))
        assert line_count == 3

    def test_header_without_line_count(self) -> None:
        """Test that the line count is optional."""
        *_, line_count = parser.parse_header("r7 | bob | 2021-06-15 08:30:00 +0200")

        assert line_count is None

    def test_not_a_header(self) -> None:
        """Test that other lines are rejected."""
        with pytest.raises(UnparseableOutputError, match="Malformed svn log header"):
            parser.parse_header("Some message text")


class TestParseLog:
    """Tests for `svn log` parsing."""

    def test_single_block(self) -> None:
        """Test the smallest complete log block."""
        lines = [
            SEPARATOR,
            "r42 | alice | 2020-01-01 12:00:00 +0000 | 1 line",
            "",
            "Add the README",
            SEPARATOR,
        ]

        (commit,) = parser.parse_log(lines)

        assert commit.revision == 42
        assert int(commit) == 42
        assert commit.author == "alice"
        assert commit.user == "alice"
        assert commit.date == datetime(2020, 1, 1, 12, 0, tzinfo=timezone.utc)
        assert commit.summary == "Add the README"
        assert commit.files == ()

    def test_verbose_blocks(self) -> None:
        """Test changed paths and multi-line messages across several blocks."""
        lines = [
            SEPARATOR,
            "r42 | alice | 2020-01-01 12:00:00 +0000 (Wed, 01 Jan 2020) | 2 lines",
            "Changed paths:",
            "   M /trunk/README",
            "   A /trunk/setup.py (from /trunk/setup.in:41)",
            "",
            "Add setup script",
            "Replaces the old build.",
            SEPARATOR,
            "r41 | bob | 2019-12-31 23:00:00 -0100 (Tue, 31 Dec 2019) | 1 line",
            "Changed paths:",
            "   A /trunk/setup.in",
            "",
            "Initial import",
            SEPARATOR,
        ]

        commits = list(parser.parse_log(lines))

        assert [commit.revision for commit in commits] == [42, 41]
        assert commits[0].files == ("/trunk/README", "/trunk/setup.py")
        assert commits[0].summary == "Add setup script"
        assert commits[0].message == "Add setup script\nReplaces the old build."
        assert commits[1].files == ("/trunk/setup.in",)
        assert commits[1].date == datetime(2020, 1, 1, 0, 0, tzinfo=timezone.utc)

    def test_message_line_that_looks_like_separator(self) -> None:
        """Test that the line count wins over separator-looking message lines."""
        lines = [
            SEPARATOR,
            "r3 | alice | 2020-01-01 12:00:00 +0000 | 2 lines",
            "",
            "Above the line",
            SEPARATOR,
            SEPARATOR,
        ]

        (commit,) = parser.parse_log(lines)

        assert commit.message == f"Above the line\n{SEPARATOR}"

    def test_empty_output(self) -> None:
        """Test that no output yields no commits."""
        assert list(parser.parse_log([])) == []

    def test_missing_separator(self) -> None:
        """Test that output not starting with a separator is rejected."""
        with pytest.raises(UnparseableOutputError, match="Expected svn log separator"):
            list(parser.parse_log(["r1 | alice | 2020-01-01 12:00:00 +0000 | 1 line"]))

    def test_truncated_message(self) -> None:
        """Test that a message shorter than announced is rejected."""
        lines = [
            SEPARATOR,
            "r3 | alice | 2020-01-01 12:00:00 +0000 | 2 lines",
            "",
            "Only one",
        ]

        with pytest.raises(UnparseableOutputError, match="Truncated svn log message"):
            list(parser.parse_log(lines))
