"""Microsoft Teams channel: MessageCard payloads for incoming webhooks."""

from typing import Any, Dict, List
from urllib.parse import urlparse

from src.reporters.base import NotificationChannel, Payload
from src.reporters.formatting import (
    environment_prefix,
    format_duration,
    more_failures_text,
    notification_title,
    status_color,
    summary_emoji,
    truncate_error,
)
from src.shared.constants import COLORS, FORMATTING
from src.shared.models import TestSummary


__all__ = [
    'TeamsChannel',
]


_CARD_CONTEXT = 'https://schema.org/extensions'


def _fact(name: str, value) -> Dict[str, str]:
    return {'name': name, 'value': str(value)}


class TeamsChannel(NotificationChannel):
    """Teams notification channel using Office 365 connector webhooks."""

    @property
    def name(self) -> str:
        return "Teams"

    @staticmethod
    def validate_webhook_url(url: str) -> bool:
        """Teams webhooks are served from webhook.office.com or outlook.office.com."""
        try:
            hostname = urlparse(url).hostname or ''
        except ValueError:
            return False
        return 'webhook.office.com' in hostname or 'outlook.office.com' in hostname

    def summary_facts(self, summary: TestSummary) -> List[Dict[str, str]]:
        """Count facts in display order."""
        facts = [
            _fact('Total', summary.total),
            _fact('Passed', summary.passed),
            _fact('Failed', summary.failed),
            _fact('Skipped', summary.skipped),
            _fact('Duration', format_duration(summary.duration_ms)),
        ]
        if summary.flaky > 0:
            facts.append(_fact('Flaky', summary.flaky))
        if summary.environment:
            facts.append(_fact('Environment', summary.environment))
        return facts

    def _card(self, summary: TestSummary, sections: List[Dict[str, Any]]) -> Payload:
        return {
            '@type': 'MessageCard',
            '@context': _CARD_CONTEXT,
            'summary': f"{FORMATTING.TITLE}: {summary.passed}/{summary.total} passed",
            'themeColor': status_color(summary),
            'sections': sections,
        }

    def build_full_message(self, summary: TestSummary) -> Payload:
        subtitle = f"{summary.passed}/{summary.total} tests passed"
        prefix = environment_prefix(summary.environment)
        if prefix:
            subtitle = f"{prefix}| {subtitle}"

        sections: List[Dict[str, Any]] = [{
            'activityTitle': f"{summary_emoji(summary)} {notification_title(summary)}",
            'activitySubtitle': subtitle,
            'facts': self.summary_facts(summary),
            'markdown': True,
        }]

        if summary.failed > 0 and summary.failures:
            failure_facts = []
            for index, failure in enumerate(summary.failures, start=1):
                error = truncate_error(failure.error, FORMATTING.TEAMS_ERROR_MAX_LENGTH)
                value = f"**File:** {failure.file_name}  \n**Error:** {error}"
                if self.include_screenshots and failure.screenshot_path:
                    value += "  \n📸 Screenshot available"
                failure_facts.append(_fact(f"{index}. {failure.title}", value))

            sections.append({
                'activityTitle': 'Failed Tests',
                'facts': failure_facts,
                'markdown': True,
            })

        if summary.omitted_failures > 0:
            sections.append({
                'activityTitle': 'Additional Failures',
                'facts': [_fact(
                    'More failures',
                    f"{more_failures_text(summary.omitted_failures)}. Check the full report for details.",
                )],
                'markdown': True,
            })

        card = self._card(summary, sections)
        if summary.ci_url:
            card['potentialAction'] = [{
                '@type': 'OpenUri',
                'name': 'View Full Report',
                'targets': [{'os': 'default', 'uri': summary.ci_url}],
            }]
        return card

    def build_fallback_message(self, summary: TestSummary) -> Payload:
        return self._card(summary, [{
            'activityTitle': f"{summary_emoji(summary)} {notification_title(summary)}",
            'facts': [
                _fact('Total', summary.total),
                _fact('Passed', summary.passed),
                _fact('Failed', summary.failed),
                _fact('Skipped', summary.skipped),
                _fact('Duration', format_duration(summary.duration_ms)),
            ],
            'markdown': False,
        }])

    def build_text_message(self, text: str) -> Payload:
        return {
            '@type': 'MessageCard',
            '@context': _CARD_CONTEXT,
            'summary': text,
            'themeColor': COLORS.INFO,
            'text': text,
        }
