"""
The two reporting commands: migration log summaries and missing repositories.

Both commands run in two steps. A collect step walks the GitHub listings and
builds an in-memory result, then a run step writes the result files.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from . import github_utils as ghu
from .log_parser import parse_migration_log
from .reconcile import find_missing_repos, index_by_lowercase_name
from .report import (
    file_timestamp,
    write_migration_report,
    write_missing_repos_report,
    write_repos_without_issue_report,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from github import Github

    from .models import MigrationSummary

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_ISSUE_TITLE = "Migration Log"


@dataclass
class MigrationIssueResult:
    """Outcome of scanning an organization for migration logs."""

    summaries: list[MigrationSummary] = field(default_factory=list)
    repos_without_issue: list[str] = field(default_factory=list)


@dataclass
class MissingReposResult:
    """Outcome of comparing the repositories of two organizations."""

    source_count: int
    target_count: int
    missing: list[str]


def collect_migration_summaries(
    client: Github,
    org: str,
    *,
    issue_title: str = DEFAULT_ISSUE_TITLE,
    comment_parser: Callable[[str], MigrationSummary | None] = parse_migration_log,
    rate_limit_monitor: ghu.RateLimitMonitor | None = None,
) -> MigrationIssueResult:
    """Parse the migration log comments of every repository of an organization."""
    result = MigrationIssueResult()

    for repo_name in ghu.list_org_repo_names(client, org):
        if rate_limit_monitor:
            rate_limit_monitor.check()
        logger.info(f"Processing repo: {repo_name}")

        migration_issue = ghu.find_migration_issue(client, org, repo_name, issue_title)
        if migration_issue is None:
            logger.info(f"No migration issue found for {repo_name}")
            result.repos_without_issue.append(repo_name)
            continue

        logger.info(f"Migration issue found for {repo_name}: {migration_issue.title}")
        for body in ghu.list_issue_comment_bodies(client, org, repo_name, migration_issue.number):
            summary = comment_parser(body)
            if summary is not None:
                logger.info(f"Found migration log for {repo_name}")
                result.summaries.append(summary)

    logger.info(f"Found {len(result.summaries)} migration logs")
    logger.info(f"Found {len(result.repos_without_issue)} repos without migration issues")
    return result


def collect_missing_repos(
    source_client: Github,
    source_org: str,
    target_client: Github,
    target_org: str,
) -> MissingReposResult:
    """Find repositories of the source organization that do not exist in the target organization."""
    logger.info(f"Collecting repositories from source organization: {source_org}")
    # Listings are fully drained before comparing so a paging failure aborts the run
    source_index = index_by_lowercase_name(ghu.list_org_repo_names(source_client, source_org))
    logger.info(f"Found {len(source_index)} repositories in source organization {source_org}")

    logger.info(f"Collecting repositories from target organization: {target_org}")
    target_names = list(ghu.list_org_repo_names(target_client, target_org))
    target_count = len({name.lower() for name in target_names})
    logger.info(f"Found {target_count} repositories in target organization {target_org}")

    missing = find_missing_repos(source_index.values(), target_names)
    logger.info(f"Found {len(missing)} repositories in {source_org} that are not present in {target_org}")

    return MissingReposResult(source_count=len(source_index), target_count=target_count, missing=missing)


def run_get_migration_issues(
    settings: ghu.ClientSettings, output_dir: Path, *, issue_title: str = DEFAULT_ISSUE_TITLE
) -> MigrationIssueResult:
    """Collect migration summaries of an organization and write the report files."""
    client = ghu.get_client(settings)
    monitor = ghu.RateLimitMonitor(client, settings.rate_limit_check_interval)

    logger.info("Starting get migration issues...")
    result = collect_migration_summaries(
        client, settings.org_name, issue_title=issue_title, rate_limit_monitor=monitor
    )

    if result.summaries or result.repos_without_issue:
        timestamp = file_timestamp()
        if result.summaries:
            _ = write_migration_report(output_dir, settings.org_name, result.summaries, timestamp)
        if result.repos_without_issue:
            _ = write_repos_without_issue_report(output_dir, settings.org_name, result.repos_without_issue, timestamp)

    logger.info("Get migration issues completed.")
    return result


def run_get_missing_repos(
    source_settings: ghu.ClientSettings, target_settings: ghu.ClientSettings, output_dir: Path
) -> MissingReposResult:
    """Compare two organizations and write the missing repositories to a CSV file."""
    source_org = source_settings.org_name
    target_org = target_settings.org_name
    logger.info(f"Starting comparison between {source_org} (source) and {target_org} (target)...")

    result = collect_missing_repos(
        ghu.get_client(source_settings),
        source_org,
        ghu.get_client(target_settings),
        target_org,
    )

    if result.missing:
        _ = write_missing_repos_report(output_dir, source_org, target_org, result.missing, file_timestamp())

    logger.info("Repository comparison completed.")
    return result
