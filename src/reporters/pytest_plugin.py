"""pytest plugin: send a run summary to Slack/Teams when the session ends.

Registered through the `pytest11` entry point but inert unless enabled with
`--notify` or `NOTIFY_RESULTS=true`. Options on the command line override
the environment (see src.shared.config.ENV_VARS).

Usage:
    pytest --notify --notify-project shop-e2e --notify-only-on-failure
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pytest

from src.reporters.orchestrator import TestRunReporter
from src.shared.config import ReporterConfig, parse_bool
from src.shared.exceptions import ConfigurationError
from src.shared.models import Attachment, TestOutcome, TestStatus


__all__ = [
    'NotifierPlugin',
    'outcome_from_reports',
]


_PLUGIN_NAME = 'test-run-notifier'


def pytest_addoption(parser):
    group = parser.getgroup('notify', 'test run chat notifications')
    group.addoption('--notify', action='store_true', default=False,
                    help='Send a run summary to the configured Slack/Teams webhooks.')
    group.addoption('--slack-webhook-url', default=None, help='Slack incoming webhook URL.')
    group.addoption('--teams-webhook-url', default=None, help='Teams incoming webhook URL.')
    group.addoption('--notify-environment', default=None, help='Environment label for the summary.')
    group.addoption('--notify-project', default=None, help='Project name for the summary.')
    group.addoption('--notify-only-on-failure', action='store_true', default=None,
                    help='Only notify when at least one test failed.')
    group.addoption('--notify-max-failures', type=int, default=None,
                    help='Number of failures detailed in the message.')
    group.addoption('--notify-ci-url', default=None, help='Link to the full CI report.')


def _enabled(config) -> bool:
    if config.getoption('notify'):
        return True
    return parse_bool(os.environ.get('NOTIFY_RESULTS', ''), 'NOTIFY_RESULTS')


def pytest_configure(config):
    # xdist workers report to the controller; only the controller notifies
    if hasattr(config, 'workerinput'):
        return
    try:
        if not _enabled(config):
            return
        reporter_config = ReporterConfig.from_env().merged(
            slack_webhook_url=config.getoption('slack_webhook_url'),
            teams_webhook_url=config.getoption('teams_webhook_url'),
            environment=config.getoption('notify_environment'),
            project_name=config.getoption('notify_project'),
            only_on_failure=config.getoption('notify_only_on_failure'),
            max_failures_to_show=config.getoption('notify_max_failures'),
            ci_url=config.getoption('notify_ci_url'),
        )
    except ConfigurationError as e:
        # The session goes ahead without notifications
        logging.error(f"Test run notifications disabled: {e}")
        return
    config.pluginmanager.register(NotifierPlugin(TestRunReporter(reporter_config)), _PLUGIN_NAME)


@dataclass
class _PendingTest:
    """Reports seen so far for one test item."""
    nodeid: str
    location: tuple
    reports: List = field(default_factory=list)


def _split_nodeid(nodeid: str, location) -> tuple:
    """(file, parent title, title) for a test node."""
    parts = nodeid.split('::')
    file = location[0] if location and location[0] else parts[0]
    title = parts[-1] if len(parts) > 1 else nodeid
    parent = '::'.join(parts[1:-1]) or parts[0]
    return file, parent, title


def _report_status(report) -> Optional[TestStatus]:
    """Status contributed by one phase report, or None if it adds nothing."""
    if report.failed:
        return TestStatus.FAILED
    if report.skipped:
        # skips and xfails both count as skipped
        return TestStatus.SKIPPED
    if report.passed and report.when == 'call':
        return TestStatus.PASSED
    return None


def outcome_from_reports(nodeid: str, location, reports) -> TestOutcome:
    """Combine setup/call/teardown reports of one test into a TestOutcome.

    The first failing phase decides the error; a passing call followed by a
    teardown error counts as failed. Tests with no call and no skip (the
    run stopped mid-test) count as interrupted.
    """
    file, parent, title = _split_nodeid(nodeid, location)

    status = None
    error = None
    for report in reports:
        phase_status = _report_status(report)
        if phase_status is TestStatus.FAILED:
            if status is not TestStatus.FAILED:
                status = TestStatus.FAILED
                error = getattr(report, 'longreprtext', '') or f"{report.when} failed"
        elif phase_status is not None and status is None:
            status = phase_status

    attachments = tuple(
        Attachment(name=str(name), path=str(value))
        for report in reports
        for name, value in getattr(report, 'user_properties', ())
        if name == 'screenshot'
    )

    retry = max((getattr(report, 'rerun', 0) or 0 for report in reports), default=0)

    return TestOutcome(
        title=title,
        parent_title=parent,
        file=file,
        status=status or TestStatus.INTERRUPTED,
        duration_ms=sum(getattr(report, 'duration', 0) or 0 for report in reports) * 1000,
        retry=retry,
        error=error,
        attachments=attachments,
    )


class NotifierPlugin:
    """Adapts pytest hooks to TestRunReporter lifecycle calls."""

    def __init__(self, reporter: TestRunReporter):
        self.reporter = reporter
        self._pending: Dict[str, _PendingTest] = {}

    @pytest.hookimpl(tryfirst=True)
    def pytest_sessionstart(self, session):
        self.reporter.on_begin()

    def pytest_collection_finish(self, session):
        self.reporter.set_expected_total(len(session.items))

    def pytest_runtest_logreport(self, report):
        if report.outcome == 'rerun':
            # pytest-rerunfailures: an intermediate attempt; the final one carries report.rerun
            self._pending.pop(report.nodeid, None)
            return

        pending = self._pending.setdefault(report.nodeid, _PendingTest(report.nodeid, report.location))
        pending.reports.append(report)
        if report.when == 'teardown':
            del self._pending[report.nodeid]
            self.reporter.on_test_end(outcome_from_reports(pending.nodeid, pending.location, pending.reports))

    @pytest.hookimpl(trylast=True)
    def pytest_sessionfinish(self, session, exitstatus):
        # Tests cut off before teardown (e.g. KeyboardInterrupt)
        for pending in list(self._pending.values()):
            self.reporter.on_test_end(outcome_from_reports(pending.nodeid, pending.location, pending.reports))
        self._pending.clear()

        try:
            self.reporter.on_end()
        except Exception as e:
            logging.error(f"Test run notification failed: {e}", exc_info=True)
