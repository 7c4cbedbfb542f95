"""
Parse migration logs embedded in issue comments.

The GitHub Enterprise Importer posts its log to the migration issue as a
collapsible "Log Chunk" comment:

    <details><summary>Log Chunk 1</summary>
    ```
    [2024-01-01T00:00:00.000Z] INFO -- Migration started by alice from https://github.com/org/src to org/dst
    [2024-01-01T00:00:00.000Z] INFO -- Migration ID: 1234abcd-0000-0000-0000-000000000000
    [2024-01-01T00:02:05.000Z] INFO -- Migration complete
    ```
    </details>

Only the first fenced block of a comment is read.
"""

from __future__ import annotations

import datetime as dt
import math
import re
from collections.abc import Iterator
from typing import Final, cast

from .models import LOG_LEVELS, LogEvent, LogLevel, MigrationStatus, MigrationSummary

LOG_CHUNK_MARKER: Final[str] = "<details><summary>Log Chunk"

_CODE_BLOCK_RE: Final[re.Pattern[str]] = re.compile(r"```\n(.*?)\n```", re.DOTALL)
_LOG_LINE_RE: Final[re.Pattern[str]] = re.compile(r"\[(.+?)\] (\w+) -- (.*)", re.ASCII)
_START_RE: Final[re.Pattern[str]] = re.compile(
    r"Migration started by (\w+) from (https://github\.com/\S+) to (\S+)", re.ASCII
)
_MIGRATION_ID_RE: Final[re.Pattern[str]] = re.compile(r"Migration ID: ([a-f0-9-]+)")

_START_TEXT: Final[str] = "Migration started by"
_MIGRATION_ID_TEXT: Final[str] = "Migration ID:"
_COMPLETE_MESSAGE: Final[str] = "Migration complete"


def parse_timestamp(text: str) -> dt.datetime | None:
    """Parse an ISO 8601 timestamp.

    Values without an offset are taken as UTC so that results do not depend on
    the local timezone.

    Args:
        text: Timestamp text (e.g., "2024-01-15T10:30:45.123Z")

    Returns:
        Datetime in UTC, or None if the text is not a valid timestamp.
    """
    try:
        parsed = dt.datetime.fromisoformat(text.strip())
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=dt.UTC)
        return parsed.astimezone(dt.UTC)
    except (ValueError, OverflowError):
        return None


def format_timestamp(value: dt.datetime | None) -> str:
    """Format a datetime as UTC ISO 8601 with millisecond precision (e.g., "2024-01-15T10:30:45.123Z")."""
    if value is None:
        return ""
    formatted = value.astimezone(dt.UTC).isoformat(timespec="milliseconds")
    return formatted.replace("+00:00", "Z")


def _to_milliseconds(value: dt.datetime) -> int:
    return math.floor(value.timestamp() * 1000)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def extract_log_block(comment_body: str) -> str | None:
    """Return the text of the first fenced code block of a log chunk comment, if any."""
    if LOG_CHUNK_MARKER not in comment_body:
        return None

    match = _CODE_BLOCK_RE.search(comment_body)
    if not match or not match.group(1):
        return None
    return match.group(1)


def iter_log_events(log_text: str) -> Iterator[LogEvent]:
    """Yield the well-formed log lines of a log block in order.

    Lines that do not look like `[timestamp] LEVEL -- message`, or whose level
    is not INFO, WARN or ERROR, are skipped.
    """
    for line in log_text.split("\n"):
        match = _LOG_LINE_RE.search(line)
        if not match:
            continue
        timestamp_text, level, message = match.groups()
        if level not in LOG_LEVELS:
            continue
        yield LogEvent(
            timestamp=parse_timestamp(timestamp_text),
            level=cast("LogLevel", level),
            message=message,
        )


def _first_info(events: list[LogEvent], predicate_text: str, *, exact: bool = False) -> LogEvent | None:
    for event in events:
        if event.level != "INFO":
            continue
        if event.message == predicate_text if exact else predicate_text in event.message:
            return event
    return None


def parse_migration_log(comment_body: str) -> MigrationSummary | None:
    """Extract a migration summary from an issue comment body.

    Args:
        comment_body: Raw markdown body of the comment

    Returns:
        A MigrationSummary as soon as the comment carries a log chunk with a
        code block (fields that cannot be found keep their defaults), or None
        if the comment is not a migration log.
    """
    log_text = extract_log_block(comment_body)
    if log_text is None:
        return None

    events = list(iter_log_events(log_text))

    started_by = source_repo = target_repo = ""
    start: dt.datetime | None = None
    start_event = _first_info(events, _START_TEXT)
    if start_event:
        start_match = _START_RE.search(start_event.message)
        if start_match:
            started_by, source_repo, target_repo = start_match.groups()
            start = start_event.timestamp

    migration_id = ""
    id_event = _first_info(events, _MIGRATION_ID_TEXT)
    if id_event:
        id_match = _MIGRATION_ID_RE.search(id_event.message)
        if id_match:
            migration_id = id_match.group(1)

    completion: dt.datetime | None = None
    status: MigrationStatus = "unknown"
    duration = 0
    complete_event = _first_info(events, _COMPLETE_MESSAGE, exact=True)
    if complete_event:
        completion = complete_event.timestamp
        status = "completed"
        # Negative durations from out-of-order logs are reported as-is
        if start is not None and completion is not None:
            elapsed_ms = _to_milliseconds(completion) - _to_milliseconds(start)
            duration = _round_half_up(elapsed_ms / 1000)

    return MigrationSummary(
        migration_id=migration_id,
        source_repo=source_repo,
        target_repo=target_repo,
        started_by=started_by,
        start_time=format_timestamp(start),
        completion_time=format_timestamp(completion),
        duration=duration,
        status=status,
        warnings=tuple(event.message for event in events if event.level == "WARN"),
        errors=tuple(event.message for event in events if event.level == "ERROR"),
    )
