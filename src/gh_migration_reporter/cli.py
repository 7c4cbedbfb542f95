"""
Command-line interface for the migration log reporter.

Every option can also be given as an environment variable, and a `.env` file
in the working directory is loaded before the command line is parsed.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from . import commands
from .github_utils import DEFAULT_BASE_URL, ClientSettings
from .utils import log_file_name, setup_logging
from .version import VERSION

if TYPE_CHECKING:
    from collections.abc import Sequence

logger: logging.Logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        msg = f"invalid integer value: {value!r}"
        raise argparse.ArgumentTypeError(msg) from None
    if number < 1:
        msg = f"must be a positive integer: {value!r}"
        raise argparse.ArgumentTypeError(msg)
    return number


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        msg = f"invalid integer value: {value!r}"
        raise argparse.ArgumentTypeError(msg) from None
    if number < 0:
        msg = f"must not be negative: {value!r}"
        raise argparse.ArgumentTypeError(msg)
    return number


def _env_flag(name: str) -> int:
    return 1 if os.environ.get(name, "").strip().lower() in _TRUE_VALUES else 0


def _add_credential_options(parser: argparse.ArgumentParser, *, prefix: str = "", env_prefix: str = "") -> None:
    """Add token and GitHub App options, e.g. --source-app-id / SOURCE_APP_ID for prefix "source-"."""
    label = f"{prefix.rstrip('-')} " if prefix else ""
    flags = ["-t", "--access-token"] if not prefix else [f"--{prefix}access-token"]
    _ = parser.add_argument(
        *flags,
        default=os.environ.get(f"{env_prefix}ACCESS_TOKEN"),
        help=f"GitHub {label}access token (env: {env_prefix}ACCESS_TOKEN)",
    )
    _ = parser.add_argument(
        f"--{prefix}access-token-pass",
        default=os.environ.get(f"{env_prefix}ACCESS_TOKEN_PASS"),
        help=f"Path of the GitHub {label}token in the pass utility",
    )
    _ = parser.add_argument(
        f"--{prefix}app-id", default=os.environ.get(f"{env_prefix}APP_ID"), help=f"GitHub {label}App ID"
    )
    _ = parser.add_argument(
        f"--{prefix}private-key",
        default=os.environ.get(f"{env_prefix}PRIVATE_KEY"),
        help=f"GitHub {label}App private key",
    )
    _ = parser.add_argument(
        f"--{prefix}private-key-file",
        default=os.environ.get(f"{env_prefix}PRIVATE_KEY_FILE"),
        help=f"Path to GitHub {label}App private key file",
    )
    _ = parser.add_argument(
        f"--{prefix}app-installation-id",
        default=os.environ.get(f"{env_prefix}APP_INSTALLATION_ID"),
        help=f"GitHub {label}App installation ID",
    )


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    _ = parser.add_argument(
        "--org-name", "-o", default=os.environ.get("ORG_NAME"), help="The name of the organization to process"
    )
    _add_credential_options(parser)
    _ = parser.add_argument(
        "--base-url", "-u", default=os.environ.get("BASE_URL", DEFAULT_BASE_URL), help="GitHub API base URL"
    )
    _ = parser.add_argument("--proxy-url", default=os.environ.get("PROXY_URL"), help="Proxy URL if required")
    _ = parser.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=_env_flag("VERBOSE"),
        help="Increase console verbosity (-v for info, -vv for debug)",
    )
    _ = parser.add_argument(
        "--page-size", type=_positive_int, default=os.environ.get("PAGE_SIZE", "10"), help="Number of items per page"
    )
    _ = parser.add_argument(
        "--rate-limit-check-interval",
        type=_non_negative_int,
        default=os.environ.get("RATE_LIMIT_CHECK_INTERVAL", "60"),
        help="Interval for rate limit checks in seconds",
    )
    _ = parser.add_argument(
        "--retry-max-attempts",
        type=_non_negative_int,
        default=os.environ.get("RETRY_MAX_ATTEMPTS", "3"),
        help="Maximum number of retry attempts",
    )
    _ = parser.add_argument(
        "--retry-initial-delay",
        type=_non_negative_int,
        default=os.environ.get("RETRY_INITIAL_DELAY", "1000"),
        help="Initial delay for retry in milliseconds",
    )
    _ = parser.add_argument(
        "--retry-max-delay",
        type=_non_negative_int,
        default=os.environ.get("RETRY_MAX_DELAY", "30000"),
        help="Maximum delay for retry in milliseconds",
    )
    _ = parser.add_argument(
        "--retry-backoff-factor",
        type=float,
        default=os.environ.get("RETRY_BACKOFF_FACTOR", "2"),
        help="Backoff factor for retry delays",
    )
    _ = parser.add_argument(
        "--output-dir",
        type=Path,
        default=os.environ.get("OUTPUT_DIR", "output"),
        help="Directory for the report files (default: ./output)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fetches and processes repository statistics from GitHub organizations"
    )
    _ = parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    issues_parser = subparsers.add_parser(
        "get-migration-issues", help="Summarize the migration log issues of an organization's repositories"
    )
    _add_common_options(issues_parser)
    _ = issues_parser.add_argument(
        "--issue-title",
        default=os.environ.get("ISSUE_TITLE", commands.DEFAULT_ISSUE_TITLE),
        help="Text identifying the migration log issue by title (case-insensitive)",
    )

    missing_parser = subparsers.add_parser(
        "get-missing-repos",
        help="Identify repositories in source organization that are not present in target organization",
    )
    _add_common_options(missing_parser)
    _ = missing_parser.add_argument(
        "--source-org-name",
        "-s",
        default=os.environ.get("SOURCE_ORG_NAME"),
        help="The name of the source organization to process",
    )
    _add_credential_options(missing_parser, prefix="source-", env_prefix="SOURCE_")

    return parser


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.org_name:
        parser.error("--org-name (or ORG_NAME) is required")
    if args.command == "get-missing-repos" and not args.source_org_name:
        parser.error("--source-org-name (or SOURCE_ORG_NAME) is required")

    return args


def _client_settings(args: argparse.Namespace, org_name: str, *, prefix: str = "") -> ClientSettings:
    """Build client settings, reading credentials from the options with the given prefix."""

    def credential(name: str) -> str | None:
        value: str | None = getattr(args, f"{prefix}{name}")
        return value

    return ClientSettings(
        org_name=org_name,
        token=credential("access_token"),
        token_pass_path=credential("access_token_pass"),
        base_url=args.base_url,
        proxy_url=args.proxy_url,
        app_id=credential("app_id"),
        private_key=credential("private_key"),
        private_key_file=credential("private_key_file"),
        app_installation_id=credential("app_installation_id"),
        page_size=args.page_size,
        rate_limit_check_interval=args.rate_limit_check_interval,
        retry_max_attempts=args.retry_max_attempts,
        retry_initial_delay=args.retry_initial_delay,
        retry_max_delay=args.retry_max_delay,
        retry_backoff_factor=args.retry_backoff_factor,
    )


def _has_source_credentials(args: argparse.Namespace) -> bool:
    return any(
        getattr(args, f"source_{name}")
        for name in (
            "access_token",
            "access_token_pass",
            "app_id",
            "private_key",
            "private_key_file",
            "app_installation_id",
        )
    )


def _print_migration_issues_report(org: str, result: commands.MigrationIssueResult) -> None:
    print(f"Organization: {org}")
    print(f"Migration logs found: {len(result.summaries)}")
    completed = sum(1 for summary in result.summaries if summary.status == "completed")
    print(f"Completed migrations: {completed}")
    print(f"Repositories without migration issue: {len(result.repos_without_issue)}")


def _print_missing_repos_report(source_org: str, target_org: str, result: commands.MissingReposResult) -> None:
    print(f"Source: {source_org} ({result.source_count} repositories)")
    print(f"Target: {target_org} ({result.target_count} repositories)")
    print(f"Missing in target: {len(result.missing)}")
    for name in result.missing:
        print(f"  - {name}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point."""
    _ = load_dotenv()
    args = parse_arguments(argv)

    log_org = args.source_org_name if args.command == "get-missing-repos" else args.org_name
    setup_logging(verbosity=args.verbose, log_file=log_file_name(log_org))

    try:
        if args.command == "get-migration-issues":
            settings = _client_settings(args, args.org_name)
            issues_result = commands.run_get_migration_issues(settings, args.output_dir, issue_title=args.issue_title)
            _print_migration_issues_report(args.org_name, issues_result)
        else:
            # Without source credentials the target credentials are used for both organizations
            source_prefix = "source_" if _has_source_credentials(args) else ""
            source_settings = _client_settings(args, args.source_org_name, prefix=source_prefix)
            target_settings = _client_settings(args, args.org_name)
            missing_result = commands.run_get_missing_repos(source_settings, target_settings, args.output_dir)
            _print_missing_repos_report(args.source_org_name, args.org_name, missing_result)
    except Exception:
        logger.exception(f"{args.command} failed")
        sys.exit(1)

    sys.exit(0)
