"""Slack channel: Block Kit messages posted to an incoming webhook."""

from typing import Any, Dict, List
from urllib.parse import urlparse

from src.reporters.base import NotificationChannel, Payload
from src.reporters.formatting import (
    environment_prefix,
    format_duration,
    format_timestamp,
    more_failures_text,
    notification_title,
    summary_emoji,
    truncate_error,
)
from src.shared.constants import FORMATTING
from src.shared.models import TestFailure, TestSummary


__all__ = [
    'SlackChannel',
]


def _mrkdwn(text: str) -> Dict[str, str]:
    return {'type': 'mrkdwn', 'text': text}


def _section(text: str) -> Dict[str, Any]:
    return {'type': 'section', 'text': _mrkdwn(text)}


class SlackChannel(NotificationChannel):
    """Slack notification channel using incoming webhooks."""

    @property
    def name(self) -> str:
        return "Slack"

    @staticmethod
    def validate_webhook_url(url: str) -> bool:
        """Slack webhooks live under https://hooks.slack.com/services/..."""
        try:
            parsed = urlparse(url)
        except ValueError:
            return False
        return parsed.hostname == 'hooks.slack.com' and '/services/' in parsed.path

    def summary_fields(self, summary: TestSummary) -> List[Dict[str, str]]:
        """Count fields in display order."""
        fields = [
            _mrkdwn(f"*Total:* {summary.total}"),
            _mrkdwn(f"*Passed:* {summary.passed}"),
            _mrkdwn(f"*Failed:* {summary.failed}"),
            _mrkdwn(f"*Skipped:* {summary.skipped}"),
            _mrkdwn(f"*Duration:* {format_duration(summary.duration_ms)}"),
        ]
        if summary.flaky > 0:
            fields.append(_mrkdwn(f"*Flaky:* {summary.flaky}"))
        if summary.environment:
            fields.append(_mrkdwn(f"*Environment:* {summary.environment}"))
        return fields

    def format_failure(self, index: int, failure: TestFailure) -> str:
        """Single mrkdwn block describing one failed test."""
        error = truncate_error(failure.error, FORMATTING.SLACK_ERROR_MAX_LENGTH)
        text = f"{index}. *{failure.title}*\n"
        text += f"  📁 `{failure.file_name}`\n"
        text += f"  ⚠️ {error}"
        if self.include_screenshots and failure.screenshot_path:
            text += "\n  📸 Screenshot available"
        return text

    def build_full_message(self, summary: TestSummary) -> Payload:
        emoji = summary_emoji(summary)

        blocks: List[Dict[str, Any]] = [
            {
                'type': 'header',
                'text': {'type': 'plain_text', 'text': notification_title(summary)},
            },
            {
                'type': 'section',
                'fields': self.summary_fields(summary),
            },
        ]

        if summary.failed > 0 and summary.failures:
            blocks.append({'type': 'divider'})
            blocks.append(_section('*Failed Tests:*'))
            for index, failure in enumerate(summary.failures, start=1):
                blocks.append(_section(self.format_failure(index, failure)))

        if summary.omitted_failures > 0:
            if not summary.failures:
                blocks.append({'type': 'divider'})
            blocks.append(_section(f"_{more_failures_text(summary.omitted_failures)}_"))

        if summary.ci_url:
            blocks.append(_section(f"<{summary.ci_url}|View Full Report>"))

        blocks.append({
            'type': 'context',
            'elements': [_mrkdwn(f"Report generated at {format_timestamp(summary.end_time)}")],
        })

        return {
            'blocks': blocks,
            'text': (
                f"{emoji} {FORMATTING.TITLE} {summary.status_label}: "
                f"{summary.passed}/{summary.total} passed"
            ),
        }

    def build_fallback_message(self, summary: TestSummary) -> Payload:
        emoji = summary_emoji(summary)
        title = f"{FORMATTING.TITLE} {summary.status_label}"
        if summary.project_name:
            title += f" - {summary.project_name}"

        text = f"{emoji} {environment_prefix(summary.environment)}*{title}*\n"
        text += (
            f"• Total: {summary.total} | Passed: {summary.passed} | "
            f"Failed: {summary.failed} | Skipped: {summary.skipped}"
        )
        text += f"\n• Duration: {format_duration(summary.duration_ms)}"
        return {'text': text}

    def build_text_message(self, text: str) -> Payload:
        return {'text': text}
