"""
Utility functions for the migration log reporter.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
import subprocess
from pathlib import Path
from subprocess import CompletedProcess

_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


class PassError(Exception):
    """Base class for pass-related errors."""


class InvalidPassPathError(PassError):
    """Raised when the pass path format is invalid or not in the store."""


def log_file_name(org: str, today: dt.date | None = None) -> str:
    """Return the log file name for a run against an organization (e.g., "my-org-repo-stats-2024-01-15.log")."""
    day = today or dt.datetime.now(dt.UTC).date()
    return f"{org}-repo-stats-{day.isoformat()}.log"


def setup_logging(*, verbosity: int = 0, log_file: str | Path | None = None) -> None:
    """Configure logging for a reporting run.

    The console shows warnings by default, info with -v and debug with -vv.
    The log file, if any, always receives debug output.
    """
    if verbosity >= 2:
        console_level = logging.DEBUG
    elif verbosity == 1:
        console_level = logging.INFO
    else:
        console_level = logging.WARNING

    formatter = logging.Formatter(_LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [console_handler]

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(level=logging.DEBUG, handlers=handlers, force=True)

    # PyGithub and urllib3 are chatty at debug level
    for noisy in ("github", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.INFO if verbosity < 3 else logging.DEBUG)


def _validate_pass_path(pass_path: str) -> None:
    if not re.fullmatch(r"(?:[A-Za-z0-9_-]+)(?:/[A-Za-z0-9_-]+)*", pass_path):
        msg = f"Invalid pass path: {pass_path}"
        raise InvalidPassPathError(msg)


def get_pass_value(pass_path: str) -> str:
    """Get value from pass utility at specified path."""
    _validate_pass_path(pass_path)

    try:
        result: CompletedProcess[str] = subprocess.run(  # noqa: S603
            ["pass", pass_path], capture_output=True, text=True, check=True
        )
    except FileNotFoundError as e:
        msg = "The 'pass' utility is not installed or not on PATH."
        raise PassError(msg) from e
    except subprocess.CalledProcessError as e:
        if e.returncode == 1 and "not in the password store" in e.stderr.lower():
            msg = f"Pass path '{pass_path}' not found or invalid."
            raise InvalidPassPathError(msg) from e
        msg = (
            f"Failed to get value from pass at '{pass_path}'.\n"
            f"Error: {e.stderr.strip()}\n"
            f"Return code: {e.returncode}"
        )
        raise PassError(msg) from e

    return result.stdout.strip()
