"""
GitHub API access: authentication, retries, and the paginated listings the reports need.
"""

from __future__ import annotations

import datetime as dt
import logging
import os
import time
from dataclasses import dataclass
from itertools import takewhile
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final, Self

from typing_extensions import override

from github import Auth, Github, GithubException, GithubRetry

from . import utils
from .exceptions import ConfigurationError, ReporterError
from .models import MigrationIssue

if TYPE_CHECKING:
    from collections.abc import Iterator

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_BASE_URL: Final[str] = "https://api.github.com"
# Warn when fewer requests than this remain in the current rate limit window
_LOW_RATE_LIMIT: Final[int] = 100


@dataclass
class ClientSettings:
    """Connection settings for one GitHub organization."""

    org_name: str
    token: str | None = None
    token_pass_path: str | None = None
    base_url: str = DEFAULT_BASE_URL
    proxy_url: str | None = None
    app_id: str | None = None
    private_key: str | None = None
    private_key_file: str | None = None
    app_installation_id: str | None = None
    page_size: int = 10
    rate_limit_check_interval: int = 60  # seconds
    retry_max_attempts: int = 3
    retry_initial_delay: int = 1000  # milliseconds
    retry_max_delay: int = 30000  # milliseconds
    retry_backoff_factor: float = 2.0


class BackoffRetry(GithubRetry):
    """GithubRetry whose delays grow by a configurable factor instead of a fixed 2.

    The n-th consecutive retry waits ``backoff_factor * growth_factor ** (n - 1)``
    seconds, capped at ``backoff_max``.
    """

    def __init__(self, *, growth_factor: float = 2.0, **kwargs: Any) -> None:
        self.growth_factor: float = growth_factor
        super().__init__(**kwargs)

    @override
    def new(self, **kw: Any) -> Self:
        kw.setdefault("growth_factor", self.growth_factor)
        return super().new(**kw)

    @override
    def get_backoff_time(self) -> float:
        consecutive_errors = len(list(takewhile(lambda h: h.redirect_location is None, reversed(self.history))))
        if consecutive_errors == 0:
            return 0
        backoff = self.backoff_factor * self.growth_factor ** (consecutive_errors - 1)
        return float(max(0, min(self.backoff_max, backoff)))


def get_token(token: str | None = None, pass_path: str | None = None) -> str | None:
    """Get a GitHub token, either given directly or looked up in the pass store."""
    if token:
        return token
    if pass_path:
        return utils.get_pass_value(pass_path)
    return None


def _read_private_key(settings: ClientSettings) -> str:
    if settings.private_key:
        return settings.private_key
    if settings.private_key_file:
        try:
            return Path(settings.private_key_file).read_text(encoding="utf-8")
        except OSError as e:
            msg = f"Cannot read private key file '{settings.private_key_file}': {e}"
            raise ConfigurationError(msg) from e
    msg = "GitHub App authentication requires --private-key or --private-key-file"
    raise ConfigurationError(msg)


def _build_auth(settings: ClientSettings) -> Auth.Auth | None:
    if settings.app_id or settings.app_installation_id:
        if not (settings.app_id and settings.app_installation_id):
            msg = "GitHub App authentication requires both --app-id and --app-installation-id"
            raise ConfigurationError(msg)
        try:
            app_id = int(settings.app_id)
            installation_id = int(settings.app_installation_id)
        except ValueError as e:
            msg = f"GitHub App and installation IDs must be numeric: {e}"
            raise ConfigurationError(msg) from e
        app_auth = Auth.AppAuth(app_id, _read_private_key(settings))
        logger.debug(f"Using GitHub App {app_id} installation {installation_id} for {settings.org_name}")
        return app_auth.get_installation_auth(installation_id)

    token = get_token(settings.token, settings.token_pass_path)
    if token:
        return Auth.Token(token)

    logger.warning(f"No GitHub credentials given for {settings.org_name}, using anonymous access")
    return None


def get_client(settings: ClientSettings) -> Github:
    """Get a GitHub client configured for pagination, retries and authentication."""
    if settings.proxy_url:
        # requests, used by PyGithub, picks the proxy up from the environment
        os.environ["HTTPS_PROXY"] = settings.proxy_url
        os.environ["HTTP_PROXY"] = settings.proxy_url

    retry = BackoffRetry(
        total=settings.retry_max_attempts,
        backoff_factor=settings.retry_initial_delay / 1000,
        backoff_max=settings.retry_max_delay / 1000,
        growth_factor=settings.retry_backoff_factor,
    )
    return Github(
        auth=_build_auth(settings),
        base_url=settings.base_url,
        per_page=settings.page_size,
        retry=retry,
    )


def list_org_repo_names(client: Github, org: str) -> Iterator[str]:
    """Yield the names of all repositories of an organization, page by page."""
    try:
        organization = client.get_organization(org)
        for repo in organization.get_repos(type="all"):
            yield repo.name
    except GithubException as e:
        msg = f"Error fetching repositories from organization {org}: {e}"
        raise ReporterError(msg) from e


def find_migration_issue(client: Github, org: str, repo_name: str, title_text: str) -> MigrationIssue | None:
    """Find the issue holding the migration log of a repository.

    The first issue, open or closed, whose title contains ``title_text``
    (case-insensitive) is returned. Pull requests are ignored.

    Returns:
        The matching issue, or None if there is none or the repository has issues disabled.
    """
    wanted = title_text.lower()
    try:
        repo = client.get_repo(f"{org}/{repo_name}", lazy=True)
        for issue in repo.get_issues(state="all"):
            if issue.pull_request is not None:
                continue
            if wanted in issue.title.lower():
                return MigrationIssue(number=issue.number, title=issue.title)
    except GithubException as e:
        if e.status in (404, 410):
            logger.debug(f"Issues not available for {org}/{repo_name}: {e.status}")
            return None
        msg = f"Error searching migration issue in {org}/{repo_name}: {e}"
        raise ReporterError(msg) from e
    return None


def list_issue_comment_bodies(client: Github, org: str, repo_name: str, issue_number: int) -> Iterator[str]:
    """Yield the bodies of all comments of an issue in chronological order."""
    try:
        repo = client.get_repo(f"{org}/{repo_name}", lazy=True)
        issue = repo.get_issue(issue_number)
        for comment in issue.get_comments():
            yield comment.body or ""
    except GithubException as e:
        msg = f"Error fetching comments of {org}/{repo_name}#{issue_number}: {e}"
        raise ReporterError(msg) from e


def log_rate_limit(client: Github) -> None:
    """Log the remaining API requests of the current rate limit window."""
    remaining, limit = client.rate_limiting
    reset_at = dt.datetime.fromtimestamp(client.rate_limiting_resettime, tz=dt.UTC)
    message = f"GitHub rate limit: {remaining}/{limit} requests remaining, resets at {reset_at.isoformat()}"
    if remaining < _LOW_RATE_LIMIT:
        logger.warning(message)
    else:
        logger.info(message)


class RateLimitMonitor:
    """Logs the rate limit status at most once per interval."""

    def __init__(self, client: Github, interval_seconds: float) -> None:
        self.client: Github = client
        self.interval_seconds: float = interval_seconds
        self._last_check: float | None = None

    def check(self) -> None:
        now = time.monotonic()
        if self._last_check is not None and now - self._last_check < self.interval_seconds:
            return
        self._last_check = now
        try:
            log_rate_limit(self.client)
        except GithubException as e:
            logger.warning(f"Could not read GitHub rate limit: {e}")
