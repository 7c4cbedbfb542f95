"""
Custom exception classes for the migration log reporter.
"""

from __future__ import annotations


class ReporterError(Exception):
    """Base exception for reporting errors."""


class ConfigurationError(ReporterError):
    """Raised when command options are missing or inconsistent."""
