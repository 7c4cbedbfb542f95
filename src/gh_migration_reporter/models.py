"""Data models for parsed migration logs and the GitHub objects they come from.

A migration log issue carries one or more comments with an embedded
"Log Chunk". Each chunk is parsed into a stream of LogEvent records which are
then condensed into a single MigrationSummary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Final, Literal

LogLevel = Literal["INFO", "WARN", "ERROR"]
LOG_LEVELS: Final[frozenset[str]] = frozenset({"INFO", "WARN", "ERROR"})

MigrationStatus = Literal["unknown", "completed"]


@dataclass(frozen=True)
class LogEvent:
    """A single `[timestamp] LEVEL -- message` line of a migration log.

    The timestamp is None when the bracketed text is not a valid ISO-8601
    value; the event is kept anyway.
    """

    timestamp: datetime | None
    level: LogLevel
    message: str


@dataclass(frozen=True)
class MigrationSummary:
    """Summary of one migration attempt, built from one log chunk."""

    migration_id: str = ""
    source_repo: str = ""
    target_repo: str = ""
    started_by: str = ""
    start_time: str = ""  # ISO-8601 with milliseconds and "Z", or ""
    completion_time: str = ""
    duration: int = 0  # Seconds, only set when both times are known
    status: MigrationStatus = "unknown"
    warnings: tuple[str, ...] = field(default_factory=tuple)
    errors: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation used in report files."""
        return {
            "migrationId": self.migration_id,
            "sourceRepo": self.source_repo,
            "targetRepo": self.target_repo,
            "startedBy": self.started_by,
            "startTime": self.start_time,
            "completionTime": self.completion_time,
            "duration": self.duration,
            "status": self.status,
            "warnings": list(self.warnings),
            "errors": list(self.errors),
        }


@dataclass(frozen=True)
class MigrationIssue:
    """The issue holding the migration log of a repository."""

    number: int
    title: str
