"""
Report formatting and output files for migration summaries and repository lists.

CSV values are written verbatim. Embedded quotes or commas are not escaped, so
the files are meant for quick viewing; the JSON files carry the full data.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
from typing import TYPE_CHECKING, Final

from .log_parser import format_timestamp

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from .models import MigrationSummary

logger: logging.Logger = logging.getLogger(__name__)

MIGRATION_SUMMARY_HEADERS: Final[tuple[str, ...]] = (
    "Migration ID",
    "Source Repository",
    "Target Repository",
    "Started By",
    "Start Time",
    "Completion Time",
    "Duration (seconds)",
    "Status",
    "Warning Count",
    "Error Count",
)
REPOSITORY_NAME_HEADER: Final[str] = "Repository Name"


def migration_summaries_to_csv(summaries: Sequence[MigrationSummary]) -> str:
    """Format migration summaries as CSV with one quoted row per summary.

    Warnings and errors are reported as counts.
    """
    lines = [",".join(MIGRATION_SUMMARY_HEADERS)]
    for summary in summaries:
        values = (
            summary.migration_id,
            summary.source_repo,
            summary.target_repo,
            summary.started_by,
            summary.start_time,
            summary.completion_time,
            summary.duration,
            summary.status,
            len(summary.warnings),
            len(summary.errors),
        )
        lines.append(",".join(f'"{value}"' for value in values))
    return "\n".join(lines)


def migration_summaries_to_json(summaries: Sequence[MigrationSummary]) -> str:
    """Format migration summaries as a pretty-printed JSON array."""
    return json.dumps([summary.to_dict() for summary in summaries], indent=2)


def repository_names_to_csv(names: Sequence[str]) -> str:
    """Format repository names as a single-column CSV."""
    return f"{REPOSITORY_NAME_HEADER}\n" + "\n".join(names)


def repository_names_to_json(names: Sequence[str]) -> str:
    return json.dumps(list(names), indent=2)


def file_timestamp(now: dt.datetime | None = None) -> str:
    """Return an ISO 8601 timestamp usable in file names (":" replaced by "-")."""
    return format_timestamp(now or dt.datetime.now(dt.UTC)).replace(":", "-")


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    _ = path.write_text(content, encoding="utf-8")
    return path


def write_migration_report(
    output_dir: Path, org: str, summaries: Sequence[MigrationSummary], timestamp: str
) -> list[Path]:
    """Write migration summaries of an organization as CSV and JSON.

    Returns:
        Paths of the written files.
    """
    base_name = f"{org}-migration-summary-{timestamp}"
    written: list[Path] = []

    csv_path = _write(output_dir / f"{base_name}.csv", migration_summaries_to_csv(summaries))
    logger.info(f"Migration summary saved to {csv_path}")
    written.append(csv_path)

    json_path = _write(output_dir / f"{base_name}.json", migration_summaries_to_json(summaries))
    logger.info(f"Migration summary saved to {json_path}")
    written.append(json_path)

    return written


def write_repos_without_issue_report(
    output_dir: Path, org: str, names: Sequence[str], timestamp: str
) -> list[Path]:
    """Write the repositories that have no migration issue as JSON and CSV."""
    base_name = f"{org}-repos-without-migration-issues-{timestamp}"
    written: list[Path] = []

    json_path = _write(output_dir / f"{base_name}.json", repository_names_to_json(names))
    logger.info(f"Repos without migration issues saved to {json_path}")
    written.append(json_path)

    csv_path = _write(output_dir / f"{base_name}.csv", repository_names_to_csv(names))
    logger.info(f"Repos without migration issues saved to {csv_path}")
    written.append(csv_path)

    return written


def write_missing_repos_report(
    output_dir: Path, source_org: str, target_org: str, names: Sequence[str], timestamp: str
) -> Path:
    """Write the source repositories missing from the target organization as CSV."""
    csv_path = _write(
        output_dir / f"missing-repos-{source_org}-to-{target_org}-{timestamp}.csv",
        repository_names_to_csv(names),
    )
    logger.info(f"Missing repositories saved to {csv_path}")
    return csv_path
