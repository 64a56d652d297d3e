"""Reporter orchestrator: runner lifecycle -> summary -> chat notifications.

The runner drives three calls in a fixed order: on_begin, on_test_end for
every finished test, then on_end. At run end each configured channel is
notified independently and concurrently; a failure in one channel never
affects another, and no delivery problem ever propagates to the runner.

Usage:
    reporter = TestRunReporter(ReporterConfig.from_env())
    reporter.on_begin(total_tests=42)
    reporter.on_test_end(outcome)
    results = reporter.on_end()
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from src.reporters.base import NotificationChannel
from src.reporters.formatting import format_duration
from src.reporters.slack import SlackChannel
from src.reporters.teams import TeamsChannel
from src.shared.aggregator import ResultAggregator
from src.shared.config import ReporterConfig
from src.shared.delivery import sanitize_webhook_url
from src.shared.exceptions import DeliveryError
from src.shared.models import TestOutcome, TestStatus, TestSummary


__all__ = [
    'DeliveryOutcome',
    'DeliveryStatus',
    'TestRunReporter',
    'default_channels',
]


class DeliveryStatus(str, Enum):
    """What happened to one channel's notification."""
    SENT = 'sent'
    FALLBACK_SENT = 'fallback_sent'
    FAILED = 'failed'
    SKIPPED = 'skipped'


@dataclass(frozen=True)
class DeliveryOutcome:
    """Per-channel result of the run-end notification."""
    channel: str
    status: DeliveryStatus
    reason: str = ''
    error: Optional[BaseException] = None


def default_channels(config: ReporterConfig) -> List[Tuple[NotificationChannel, Optional[str]]]:
    """Slack and Teams channels paired with their configured webhook URLs."""
    return [
        (SlackChannel(include_screenshots=config.include_screenshots), config.slack_webhook_url),
        (TeamsChannel(include_screenshots=config.include_screenshots), config.teams_webhook_url),
    ]


class TestRunReporter:
    """Collect a run's outcomes and notify chat channels when it ends."""

    __test__ = False

    def __init__(
        self,
        config: Optional[ReporterConfig] = None,
        channels: Optional[Sequence[Tuple[NotificationChannel, Optional[str]]]] = None,
        concurrent: bool = True,
    ):
        """Initialize reporter.

        Args:
            config: Resolved reporter options (defaults if None)
            channels: (channel, webhook_url) pairs; Slack and Teams from config if None
            concurrent: Deliver to channels in parallel threads

        Raises:
            ValueError: If two channels share a name
        """
        self.config = config or ReporterConfig()
        self.channels = list(channels) if channels is not None else default_channels(self.config)
        names = [channel.name for channel, _ in self.channels]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate channel names: {', '.join(duplicates)}")
        self.concurrent = concurrent
        self.aggregator = ResultAggregator(
            max_failures_to_show=self.config.max_failures_to_show,
            include_screenshots=self.config.include_screenshots,
        )
        self.delivery_results: Dict[str, DeliveryOutcome] = {}

        for channel, url in self.channels:
            if url and not channel.validate_webhook_url(url):
                logging.warning(
                    f"{channel.name} webhook URL {sanitize_webhook_url(url)} does not look like a "
                    f"{channel.name} webhook; delivery will still be attempted"
                )

        logging.debug("Test run reporter initialized")

    @property
    def summary(self) -> Optional[TestSummary]:
        return self.aggregator.summary

    def on_begin(self, total_tests: Optional[int] = None, start_time: Optional[datetime] = None) -> None:
        """Start of the run.

        Args:
            total_tests: Number of tests the runner plans to execute, if known
            start_time: Run start time (defaults to now)
        """
        self.aggregator.begin(start_time=start_time, expected_total=total_tests)
        if total_tests is not None:
            logging.info(f"Starting test run with {total_tests} tests")
        else:
            logging.info("Starting test run")
        if self.config.environment:
            logging.info(f"Environment: {self.config.environment}")

    def set_expected_total(self, total_tests: int) -> None:
        """Record the planned test count once the runner knows it."""
        self.aggregator.expected_total = total_tests
        logging.info(f"Collected {total_tests} tests")

    def on_test_end(self, outcome: TestOutcome) -> None:
        """One test finished."""
        self.aggregator.record_outcome(outcome)
        if outcome.status.is_failure:
            logging.info(f"Test failed: {outcome.title}")
        elif outcome.status is TestStatus.PASSED:
            logging.debug(f"Test passed: {outcome.title}")

    def on_end(self, end_time: Optional[datetime] = None) -> Dict[str, DeliveryOutcome]:
        """End of the run: build the summary and notify every channel.

        Returns:
            Dictionary mapping channel names to their delivery outcome

        Raises:
            ReporterStateError: If called before on_begin or more than once
        """
        summary = self.aggregator.finalize(
            end_time=end_time,
            project_name=self.config.project_name,
            ci_url=self.config.ci_url,
            environment=self.config.environment,
        )

        logging.info(
            f"Test summary: Total: {summary.total}, Passed: {summary.passed}, "
            f"Failed: {summary.failed}, Skipped: {summary.skipped}, Flaky: {summary.flaky}"
        )
        logging.info(f"Duration: {format_duration(summary.duration_ms)}")

        self.delivery_results = self.notify(summary)
        return self.delivery_results

    def notify(self, summary: TestSummary) -> Dict[str, DeliveryOutcome]:
        """Send the summary to every channel, independently of each other."""
        if not self.channels:
            return {}

        if self.concurrent and len(self.channels) > 1:
            with ThreadPoolExecutor(max_workers=len(self.channels)) as executor:
                futures = [
                    executor.submit(self._notify_channel, channel, url, summary)
                    for channel, url in self.channels
                ]
                outcomes = [future.result() for future in futures]
        else:
            outcomes = [self._notify_channel(channel, url, summary) for channel, url in self.channels]

        return {outcome.channel: outcome for outcome in outcomes}

    def _notify_channel(
        self,
        channel: NotificationChannel,
        webhook_url: Optional[str],
        summary: TestSummary,
    ) -> DeliveryOutcome:
        """Full message, then one fallback attempt. Never raises."""
        if not webhook_url:
            reason = 'no webhook URL configured'
            logging.info(f"Skipping {channel.name} notification ({reason})")
            return DeliveryOutcome(channel.name, DeliveryStatus.SKIPPED, reason)

        if self.config.only_on_failure and summary.failed == 0:
            reason = 'no failures and only_on_failure=true'
            logging.info(f"Skipping {channel.name} notification ({reason})")
            return DeliveryOutcome(channel.name, DeliveryStatus.SKIPPED, reason)

        try:
            logging.info(f"Sending test results to {channel.name}...")
            channel.send(webhook_url, channel.build_full_message(summary))
            logging.info(f"Successfully sent test results to {channel.name}")
            return DeliveryOutcome(channel.name, DeliveryStatus.SENT)
        except DeliveryError as e:
            logging.error(f"Failed to send test results to {channel.name}: {e}")
        except Exception as e:
            # Top-level safety net: formatting bugs must not fail the run
            logging.error(f"Unexpected error building {channel.name} message: {e}", exc_info=True)

        try:
            channel.send(webhook_url, channel.build_fallback_message(summary))
            logging.info(f"Sent simplified message to {channel.name} as fallback")
            return DeliveryOutcome(channel.name, DeliveryStatus.FALLBACK_SENT)
        except DeliveryError as e:
            logging.error(f"{channel.name} fallback message also failed: {e}")
            return DeliveryOutcome(channel.name, DeliveryStatus.FAILED, str(e), e)
        except Exception as e:
            logging.error(f"Unexpected error sending {channel.name} fallback: {e}", exc_info=True)
            return DeliveryOutcome(channel.name, DeliveryStatus.FAILED, str(e), e)
