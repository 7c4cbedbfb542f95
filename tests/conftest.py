"""
Pytest configuration and fixtures.

- Shared builders for migration log comments
- Integration tests are skipped without a test organization and fail on any
  WARNING logged by the code under test
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from typing_extensions import override

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

INTEGRATION_ENV_VARS = ("GITHUB_TEST_ORG", "GITHUB_TEST_TOKEN")

# Warning records captured per integration test
_captured_warnings: dict[str, list[logging.LogRecord]] = {}


def make_log_comment(lines: list[str], *, chunk: int = 1) -> str:
    """Build a comment body the way the importer posts a log chunk."""
    log_text = "\n".join(lines)
    return f"<details><summary>Log Chunk {chunk}</summary>\n```\n{log_text}\n```\n</details>"


@pytest.fixture
def log_comment() -> Callable[..., str]:
    return make_log_comment


@pytest.fixture
def completed_migration_comment() -> str:
    return make_log_comment(
        [
            "[2024-01-01T00:00:00.000Z] INFO -- Migration started by alice from https://github.com/org/src to org/dst",
            "[2024-01-01T00:00:00.000Z] INFO -- Migration ID: 1234abcd-0000-0000-0000-000000000000",
            "[2024-01-01T00:02:05.000Z] WARN -- slow clone",
            "[2024-01-01T00:02:05.000Z] INFO -- Migration complete",
        ]
    )


class WarningCaptureHandler(logging.Handler):
    """Logging handler collecting WARNING and above records of one test."""

    test_nodeid: str

    def __init__(self, test_nodeid: str) -> None:
        super().__init__()
        self.test_nodeid = test_nodeid
        self.setLevel(logging.WARNING)

    @override
    def emit(self, record: logging.LogRecord) -> None:
        _captured_warnings.setdefault(self.test_nodeid, []).append(record)


@pytest.fixture(autouse=True)
def integration_test_guard(request: pytest.FixtureRequest) -> Generator[None]:
    """Skip integration tests without credentials and capture their logger warnings."""
    if request.node.get_closest_marker("integration") is None:
        yield
        return

    missing = [name for name in INTEGRATION_ENV_VARS if not os.environ.get(name)]
    if missing:
        pytest.skip(f"Integration test requires environment variables: {', '.join(missing)}")

    test_nodeid = request.node.nodeid
    _captured_warnings[test_nodeid] = []
    handler = WarningCaptureHandler(test_nodeid)
    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    try:
        yield
    finally:
        root_logger.removeHandler(handler)


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item: pytest.Item, call: pytest.CallInfo[None]) -> Generator[None]:  # type: ignore[misc]
    """Mark a passed integration test as failed when it logged warnings."""
    outcome = yield
    report = outcome.get_result()

    if call.when == "call" and report.outcome == "passed":
        records = _captured_warnings.pop(item.nodeid, [])
        if records:
            messages = [f"{r.levelname}: {r.getMessage()} (in {r.name}:{r.lineno})" for r in records]
            report.outcome = "failed"
            report.longrepr = f"Integration test failed: {len(records)} warning(s) detected:\n" + "\n".join(
                f"  - {msg}" for msg in messages
            )
