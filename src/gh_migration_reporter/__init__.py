"""
GitHub Migration Log Reporter

Summarizes GitHub Enterprise Importer migration logs posted to repository
issues, and lists repositories that are missing from a target organization.
"""

from __future__ import annotations

from .cli import main
from .exceptions import ConfigurationError, ReporterError
from .log_parser import parse_migration_log
from .models import LogEvent, MigrationSummary
from .reconcile import find_missing_repos
from .report import migration_summaries_to_csv, migration_summaries_to_json, repository_names_to_csv
from .utils import setup_logging
from .version import VERSION

# Package version
__version__ = VERSION

__all__ = [
    "ConfigurationError",
    "LogEvent",
    "MigrationSummary",
    "ReporterError",
    "find_missing_repos",
    "main",
    "migration_summaries_to_csv",
    "migration_summaries_to_json",
    "parse_migration_log",
    "repository_names_to_csv",
    "setup_logging",
]
