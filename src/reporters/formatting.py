"""Formatting helpers shared by the Slack and Teams message builders."""

import re
from datetime import datetime
from typing import Optional

from src.shared.constants import COLORS, FORMATTING
from src.shared.models import TestSummary


__all__ = [
    'ENVIRONMENT_EMOJIS',
    'environment_prefix',
    'format_duration',
    'format_timestamp',
    'more_failures_text',
    'notification_title',
    'status_color',
    'status_emoji',
    'summary_emoji',
    'truncate_error',
]


ENVIRONMENT_EMOJIS = {
    'production': '🚀',
    'staging': '🎭',
    'development': '🔧',
    'testing': '🧪',
    'qa': '🔍',
}

_NEWLINES = re.compile(r'[\r\n]+')


def format_duration(duration_ms: float) -> str:
    """Format a duration in human-readable form.

    Durations under a second render as milliseconds; longer ones drop
    leading zero units (45s, 2m 5s, 1h 0m 12s).
    """
    if duration_ms < 1000:
        return f"{int(duration_ms)}ms"

    seconds = int(duration_ms // 1000)
    minutes = seconds // 60
    hours = minutes // 60

    if hours > 0:
        return f"{hours}h {minutes % 60}m {seconds % 60}s"
    elif minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    else:
        return f"{seconds}s"


def truncate_error(error: str, max_length: int) -> str:
    """Collapse newlines and cut error text to max_length characters."""
    text = _NEWLINES.sub(' ', error or '').strip()
    if len(text) > max_length:
        return text[:max_length] + FORMATTING.ELLIPSIS
    return text


def summary_emoji(summary: TestSummary) -> str:
    return status_emoji(summary.passed, summary.failed, summary.skipped)


def status_color(summary: TestSummary) -> str:
    """Red on failures, amber when nothing passed, green otherwise."""
    if summary.failed > 0:
        return COLORS.FAILURE
    if summary.passed == 0:
        return COLORS.WARNING
    return COLORS.SUCCESS


def status_emoji(passed: int, failed: int, skipped: int) -> str:
    """Emoji describing a run from its counts."""
    if failed > 0:
        return '❌'
    if skipped > 0 and passed == 0:
        return '⏭️'
    if passed > 0:
        return '✅'
    return '⚪'


def environment_prefix(environment: Optional[str]) -> str:
    """Prefix such as '🚀 PRODUCTION ' for an environment label."""
    if not environment:
        return ''
    emoji = ENVIRONMENT_EMOJIS.get(environment.lower(), '🏷️')
    return f"{emoji} {environment.upper()} "


def notification_title(summary: TestSummary) -> str:
    if summary.project_name:
        return f"{FORMATTING.TITLE} Results - {summary.project_name}"
    return f"{FORMATTING.TITLE} Results"


def more_failures_text(omitted: int) -> str:
    noun = 'failure' if omitted == 1 else 'failures'
    return f"... and {omitted} more {noun}"


def format_timestamp(moment: datetime) -> str:
    """Local-time rendering of a timestamp; varies with the host timezone."""
    return moment.astimezone().strftime('%Y-%m-%d %H:%M:%S %Z').strip()
