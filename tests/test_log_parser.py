"""
Tests for migration log parsing.
"""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING

import pytest

from gh_migration_reporter.log_parser import (
    extract_log_block,
    format_timestamp,
    iter_log_events,
    parse_migration_log,
    parse_timestamp,
)
from gh_migration_reporter.models import LogEvent, MigrationSummary

if TYPE_CHECKING:
    from collections.abc import Callable

START_LINE = "[2024-01-01T00:00:00.000Z] INFO -- Migration started by alice from https://github.com/org/src to org/dst"


@pytest.mark.unit
class TestGates:
    """Comments that are not migration logs produce no summary."""

    def test_comment_without_marker(self) -> None:
        body = "```\n[2024-01-01T00:00:00.000Z] INFO -- Migration complete\n```"
        assert parse_migration_log(body) is None

    def test_plain_comment(self) -> None:
        assert parse_migration_log("Looks good to me!") is None

    def test_empty_comment(self) -> None:
        assert parse_migration_log("") is None

    def test_marker_without_code_block(self) -> None:
        assert parse_migration_log("<details><summary>Log Chunk 1</summary>\nno log here\n</details>") is None

    def test_marker_with_unterminated_code_block(self) -> None:
        body = "<details><summary>Log Chunk 1</summary>\n```\n[2024-01-01T00:00:00.000Z] INFO -- hi\n"
        assert parse_migration_log(body) is None

    def test_marker_with_empty_code_block(self) -> None:
        assert parse_migration_log("<details><summary>Log Chunk 1</summary>\n```\n\n```\n</details>") is None


@pytest.mark.unit
class TestParseMigrationLog:
    """Extraction of the summary fields."""

    def test_completed_migration(self, completed_migration_comment: str) -> None:
        summary = parse_migration_log(completed_migration_comment)

        assert summary == MigrationSummary(
            migration_id="1234abcd-0000-0000-0000-000000000000",
            source_repo="https://github.com/org/src",
            target_repo="org/dst",
            started_by="alice",
            start_time="2024-01-01T00:00:00.000Z",
            completion_time="2024-01-01T00:02:05.000Z",
            duration=125,
            status="completed",
            warnings=("slow clone",),
            errors=(),
        )

    def test_json_shape(self, completed_migration_comment: str) -> None:
        summary = parse_migration_log(completed_migration_comment)
        assert summary is not None

        assert summary.to_dict() == {
            "migrationId": "1234abcd-0000-0000-0000-000000000000",
            "sourceRepo": "https://github.com/org/src",
            "targetRepo": "org/dst",
            "startedBy": "alice",
            "startTime": "2024-01-01T00:00:00.000Z",
            "completionTime": "2024-01-01T00:02:05.000Z",
            "duration": 125,
            "status": "completed",
            "warnings": ["slow clone"],
            "errors": [],
        }

    def test_parsing_is_repeatable(self, completed_migration_comment: str) -> None:
        assert parse_migration_log(completed_migration_comment) == parse_migration_log(completed_migration_comment)

    def test_log_without_known_events_returns_defaults(self, log_comment: Callable[..., str]) -> None:
        summary = parse_migration_log(log_comment(["just some text", "[2024-01-01T00:00:00Z] INFO -- Hello"]))
        assert summary == MigrationSummary()

    def test_in_progress_migration(self, log_comment: Callable[..., str]) -> None:
        summary = parse_migration_log(log_comment([START_LINE]))
        assert summary is not None

        assert summary.status == "unknown"
        assert summary.started_by == "alice"
        assert summary.start_time == "2024-01-01T00:00:00.000Z"
        assert summary.completion_time == ""
        assert summary.duration == 0

    def test_completion_without_start(self, log_comment: Callable[..., str]) -> None:
        summary = parse_migration_log(log_comment(["[2024-01-01T00:02:05.000Z] INFO -- Migration complete"]))
        assert summary is not None

        assert summary.status == "completed"
        assert summary.completion_time == "2024-01-01T00:02:05.000Z"
        assert summary.start_time == ""
        assert summary.duration == 0

    def test_completion_must_match_exactly(self, log_comment: Callable[..., str]) -> None:
        summary = parse_migration_log(
            log_comment([START_LINE, "[2024-01-01T00:02:05.000Z] INFO -- Migration complete with errors"])
        )
        assert summary is not None
        assert summary.status == "unknown"
        assert summary.completion_time == ""

    def test_completion_must_be_info(self, log_comment: Callable[..., str]) -> None:
        summary = parse_migration_log(log_comment([START_LINE, "[2024-01-01T00:02:05.000Z] WARN -- Migration complete"]))
        assert summary is not None
        assert summary.status == "unknown"
        assert summary.warnings == ("Migration complete",)

    def test_negative_duration_is_kept(self, log_comment: Callable[..., str]) -> None:
        summary = parse_migration_log(
            log_comment(
                [
                    "[2024-01-01T00:10:00.000Z] INFO -- Migration started by bob from https://github.com/a/b to c/d",
                    "[2024-01-01T00:09:30.000Z] INFO -- Migration complete",
                ]
            )
        )
        assert summary is not None
        assert summary.duration == -30

    def test_duration_rounds_half_up(self, log_comment: Callable[..., str]) -> None:
        summary = parse_migration_log(
            log_comment(
                [
                    "[2024-01-01T00:00:00.000Z] INFO -- Migration started by bob from https://github.com/a/b to c/d",
                    "[2024-01-01T00:00:02.500Z] INFO -- Migration complete",
                ]
            )
        )
        assert summary is not None
        assert summary.duration == 3

    def test_first_start_line_wins(self, log_comment: Callable[..., str]) -> None:
        summary = parse_migration_log(
            log_comment(
                [
                    START_LINE,
                    "[2024-01-01T00:05:00.000Z] INFO -- Migration started by bob from https://github.com/x/y to x/z",
                ]
            )
        )
        assert summary is not None
        assert summary.started_by == "alice"
        assert summary.start_time == "2024-01-01T00:00:00.000Z"

    def test_malformed_first_start_line_is_not_skipped(self, log_comment: Callable[..., str]) -> None:
        """Only the first start line is considered, even if its details cannot be read."""
        summary = parse_migration_log(
            log_comment(
                [
                    "[2024-01-01T00:00:00.000Z] INFO -- Migration started by alice from gitlab.example.com",
                    START_LINE,
                ]
            )
        )
        assert summary is not None
        assert summary.started_by == ""
        assert summary.source_repo == ""
        assert summary.start_time == ""

    def test_source_must_be_github_url(self, log_comment: Callable[..., str]) -> None:
        summary = parse_migration_log(
            log_comment(
                ["[2024-01-01T00:00:00.000Z] INFO -- Migration started by alice from http://github.com/org/src to o/d"]
            )
        )
        assert summary is not None
        assert summary.source_repo == ""

    def test_migration_id_takes_hex_prefix(self, log_comment: Callable[..., str]) -> None:
        summary = parse_migration_log(
            log_comment(["[2024-01-01T00:00:00.000Z] INFO -- Migration ID: 0a1b-2c3d (RM_kgDOAbc)"])
        )
        assert summary is not None
        assert summary.migration_id == "0a1b-2c3d"

    def test_migration_id_without_hex_digits(self, log_comment: Callable[..., str]) -> None:
        summary = parse_migration_log(log_comment(["[2024-01-01T00:00:00.000Z] INFO -- Migration ID: RM_kgDOAbc"]))
        assert summary is not None
        assert summary.migration_id == ""

    def test_all_warnings_and_errors_in_order(self, log_comment: Callable[..., str]) -> None:
        summary = parse_migration_log(
            log_comment(
                [
                    "[2024-01-01T00:00:01.000Z] WARN -- first",
                    "[2024-01-01T00:00:02.000Z] ERROR -- broken",
                    "[2024-01-01T00:00:03.000Z] WARN -- second",
                    "[2024-01-01T00:00:04.000Z] WARN -- first",
                    "[2024-01-01T00:00:05.000Z] ERROR -- broken again",
                ]
            )
        )
        assert summary is not None
        assert summary.warnings == ("first", "second", "first")
        assert summary.errors == ("broken", "broken again")

    def test_unknown_level_is_dropped(self, log_comment: Callable[..., str]) -> None:
        summary = parse_migration_log(
            log_comment(["[2024-01-01T00:00:01.000Z] DEBUG -- noise", "[2024-01-01T00:00:01.000Z] WARN -- kept"])
        )
        assert summary is not None
        assert summary.warnings == ("kept",)

    def test_malformed_timestamp_does_not_abort(self, log_comment: Callable[..., str]) -> None:
        summary = parse_migration_log(
            log_comment(
                [
                    "[not a date] INFO -- Migration started by alice from https://github.com/org/src to org/dst",
                    "[2024-01-01T00:00:00.000Z] INFO -- Migration ID: abc-123",
                    "[2024-01-01T00:02:05.000Z] INFO -- Migration complete",
                ]
            )
        )
        assert summary is not None
        assert summary.started_by == "alice"
        assert summary.start_time == ""
        assert summary.migration_id == "abc-123"
        assert summary.completion_time == "2024-01-01T00:02:05.000Z"
        assert summary.status == "completed"
        assert summary.duration == 0

    def test_only_first_code_block_is_read(self, log_comment: Callable[..., str]) -> None:
        body = (
            log_comment(["[2024-01-01T00:00:01.000Z] WARN -- from first chunk"])
            + "\n"
            + log_comment(["[2024-01-01T00:00:02.000Z] WARN -- from second chunk"], chunk=2)
        )
        summary = parse_migration_log(body)
        assert summary is not None
        assert summary.warnings == ("from first chunk",)

    def test_timestamps_with_offset_are_normalized_to_utc(self, log_comment: Callable[..., str]) -> None:
        summary = parse_migration_log(
            log_comment(
                [
                    "[2024-01-01T02:00:00+02:00] INFO -- Migration started by alice from https://github.com/o/s to o/d",
                    "[2024-01-01T00:01:00Z] INFO -- Migration complete",
                ]
            )
        )
        assert summary is not None
        assert summary.start_time == "2024-01-01T00:00:00.000Z"
        assert summary.completion_time == "2024-01-01T00:01:00.000Z"
        assert summary.duration == 60


@pytest.mark.unit
class TestLogEvents:
    """Line scanning and block extraction."""

    def test_extract_log_block(self, log_comment: Callable[..., str]) -> None:
        assert extract_log_block(log_comment(["line one", "line two"])) == "line one\nline two"

    def test_extract_log_block_requires_marker(self) -> None:
        assert extract_log_block("```\nline\n```") is None

    def test_iter_log_events(self) -> None:
        events = list(
            iter_log_events(
                "[2024-01-01T00:00:00.000Z] INFO -- hello\n"
                "garbage line\n"
                "[2024-01-01T00:00:01.000Z] ERROR -- failed -- badly"
            )
        )

        assert events == [
            LogEvent(dt.datetime(2024, 1, 1, tzinfo=dt.UTC), "INFO", "hello"),
            LogEvent(dt.datetime(2024, 1, 1, 0, 0, 1, tzinfo=dt.UTC), "ERROR", "failed -- badly"),
        ]

    def test_iter_log_events_keeps_unparseable_timestamp(self) -> None:
        events = list(iter_log_events("[yesterday] WARN -- late"))
        assert events == [LogEvent(None, "WARN", "late")]

    def test_iter_log_events_is_lazy(self) -> None:
        events = iter_log_events("[2024-01-01T00:00:00Z] INFO -- a\n[2024-01-01T00:00:00Z] INFO -- b")
        assert next(events).message == "a"


@pytest.mark.unit
class TestTimestamps:
    """Timestamp parsing and formatting."""

    def test_parse_utc(self) -> None:
        assert parse_timestamp("2024-01-15T10:30:45.123Z") == dt.datetime(2024, 1, 15, 10, 30, 45, 123000, tzinfo=dt.UTC)

    def test_parse_naive_is_utc(self) -> None:
        assert parse_timestamp("2024-01-15T10:30:45") == dt.datetime(2024, 1, 15, 10, 30, 45, tzinfo=dt.UTC)

    def test_parse_invalid(self) -> None:
        assert parse_timestamp("2024-13-45T99:99:99Z") is None
        assert parse_timestamp("") is None

    def test_format(self) -> None:
        value = dt.datetime(2024, 1, 15, 10, 30, 45, 123456, tzinfo=dt.UTC)
        assert format_timestamp(value) == "2024-01-15T10:30:45.123Z"

    def test_format_none(self) -> None:
        assert format_timestamp(None) == ""


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
