"""Centralized constants for the test run notifier.

This module provides frozen dataclass-based configuration groups for the
magic numbers used by the reporter pipeline. Using dataclasses provides:
- Immutability (frozen=True prevents accidental modification)
- Clear documentation via docstrings
- Grouped related constants logically

Usage:
    from src.shared.constants import DELIVERY, FORMATTING

    timeout = DELIVERY.TIMEOUT
    limit = FORMATTING.MAX_FAILURES_TO_SHOW
"""

from dataclasses import dataclass

__all__ = [
    'COLORS',
    'ColorDefaults',
    'DELIVERY',
    'DeliveryDefaults',
    'FORMATTING',
    'FormattingDefaults',
    'LOGGING',
    'LoggingDefaults',
]


@dataclass(frozen=True)
class DeliveryDefaults:
    """Webhook delivery configuration defaults.

    With the defaults, a delivery that keeps failing waits 2s after the
    first attempt and 4s after the second, then gives up.
    """

    MAX_ATTEMPTS: int = 3
    """Maximum number of POST attempts per payload."""

    BACKOFF_BASE: float = 1.0
    """Multiplier for the 2**attempt backoff, in seconds."""

    TIMEOUT: int = 10
    """Request timeout in seconds."""


@dataclass(frozen=True)
class FormattingDefaults:
    """Message formatting limits."""

    MAX_FAILURES_TO_SHOW: int = 5
    """Number of failure entries kept in a summary."""

    SLACK_ERROR_MAX_LENGTH: int = 200
    """Characters of error text shown per Slack failure entry."""

    TEAMS_ERROR_MAX_LENGTH: int = 150
    """Characters of error text shown per Teams failure entry."""

    ELLIPSIS: str = '...'
    """Marker appended to truncated error text."""

    TITLE: str = 'Test Run'
    """Base title for notifications."""


@dataclass(frozen=True)
class ColorDefaults:
    """Attachment/theme colors shared by Slack and Teams."""

    SUCCESS: str = '#36a64f'
    FAILURE: str = '#ff0000'
    WARNING: str = '#ffaa00'
    INFO: str = '#2196f3'


@dataclass(frozen=True)
class LoggingDefaults:
    """Logging configuration.

    Controls log file rotation settings.
    """

    MAX_BYTES: int = 10 * 1024 * 1024
    """Maximum log file size before rotation (10MB)."""

    BACKUP_COUNT: int = 5
    """Number of backup log files to keep."""

    LOG_FILE: str = 'logs/reporter.log'
    """Default log file path."""


DELIVERY = DeliveryDefaults()
FORMATTING = FormattingDefaults()
COLORS = ColorDefaults()
LOGGING = LoggingDefaults()
