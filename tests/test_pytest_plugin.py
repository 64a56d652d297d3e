"""Tests for the pytest plugin adapter.

Hooks are driven directly with stand-in report objects rather than a nested
pytest session.
"""

from types import SimpleNamespace
from unittest.mock import Mock, patch

import pytest

from src.reporters import pytest_plugin
from src.reporters.pytest_plugin import NotifierPlugin, outcome_from_reports
from src.shared.models import TestStatus


NODEID = 'tests/test_cart.py::TestCart::test_total'
LOCATION = ('tests/test_cart.py', 10, 'TestCart.test_total')


def _report(when, outcome='passed', duration=0.1, nodeid=NODEID, longreprtext='', user_properties=(), rerun=None):
    report = SimpleNamespace(
        nodeid=nodeid,
        location=LOCATION,
        when=when,
        outcome=outcome,
        passed=outcome == 'passed',
        failed=outcome == 'failed',
        skipped=outcome == 'skipped',
        duration=duration,
        longreprtext=longreprtext,
        user_properties=list(user_properties),
    )
    if rerun is not None:
        report.rerun = rerun
    return report


def _phases(call='passed', setup='passed', teardown='passed', **kwargs):
    return [_report('setup', setup), _report('call', call, **kwargs), _report('teardown', teardown)]


class TestOutcomeFromReports:

    def test_passed(self):
        outcome = outcome_from_reports(NODEID, LOCATION, _phases())
        assert outcome.status is TestStatus.PASSED
        assert outcome.title == 'test_total'
        assert outcome.parent_title == 'TestCart'
        assert outcome.file == 'tests/test_cart.py'
        assert outcome.duration_ms == pytest.approx(300)

    def test_call_failure_carries_error(self):
        outcome = outcome_from_reports(NODEID, LOCATION, _phases(call='failed', longreprtext='assert 2 == 3'))
        assert outcome.status is TestStatus.FAILED
        assert outcome.error == 'assert 2 == 3'

    def test_setup_skip(self):
        reports = [_report('setup', 'skipped'), _report('teardown', 'passed')]
        assert outcome_from_reports(NODEID, LOCATION, reports).status is TestStatus.SKIPPED

    def test_teardown_error_after_pass_is_failure(self):
        reports = _phases(teardown='failed')
        outcome = outcome_from_reports(NODEID, LOCATION, reports)
        assert outcome.status is TestStatus.FAILED
        assert outcome.error == 'teardown failed'

    def test_no_call_is_interrupted(self):
        outcome = outcome_from_reports(NODEID, LOCATION, [_report('setup', 'passed')])
        assert outcome.status is TestStatus.INTERRUPTED

    def test_rerun_count_and_screenshot(self):
        reports = _phases(rerun=2, user_properties=[('screenshot', 'shots/total.png'), ('owner', 'qa')])
        outcome = outcome_from_reports(NODEID, LOCATION, reports)
        assert outcome.retry == 2
        assert outcome.is_flaky
        assert outcome.screenshot_path() == 'shots/total.png'

    def test_module_level_test(self):
        outcome = outcome_from_reports('tests/test_smoke.py::test_home', ('tests/test_smoke.py', 1, 'test_home'), _phases())
        assert outcome.title == 'test_home'
        assert outcome.parent_title == 'tests/test_smoke.py'


class TestNotifierPlugin:

    def _plugin(self):
        reporter = Mock()
        return NotifierPlugin(reporter), reporter

    def test_lifecycle(self):
        plugin, reporter = self._plugin()
        session = SimpleNamespace(items=[object(), object()])

        plugin.pytest_sessionstart(session)
        plugin.pytest_collection_finish(session)
        for report in _phases(call='failed', longreprtext='boom'):
            plugin.pytest_runtest_logreport(report)
        plugin.pytest_sessionfinish(session, 1)

        reporter.on_begin.assert_called_once_with()
        reporter.set_expected_total.assert_called_once_with(2)
        outcome = reporter.on_test_end.call_args.args[0]
        assert outcome.status is TestStatus.FAILED
        reporter.on_end.assert_called_once_with()

    def test_outcome_recorded_only_after_teardown(self):
        plugin, reporter = self._plugin()
        plugin.pytest_runtest_logreport(_report('setup'))
        plugin.pytest_runtest_logreport(_report('call'))
        reporter.on_test_end.assert_not_called()
        plugin.pytest_runtest_logreport(_report('teardown'))
        reporter.on_test_end.assert_called_once()

    def test_rerun_reports_are_discarded(self):
        plugin, reporter = self._plugin()
        plugin.pytest_runtest_logreport(_report('setup'))
        plugin.pytest_runtest_logreport(_report('call', 'rerun'))
        for report in _phases(rerun=1):
            plugin.pytest_runtest_logreport(report)

        assert reporter.on_test_end.call_count == 1
        outcome = reporter.on_test_end.call_args.args[0]
        assert outcome.status is TestStatus.PASSED
        assert outcome.retry == 1

    def test_unfinished_tests_flushed_at_session_end(self):
        plugin, reporter = self._plugin()
        plugin.pytest_runtest_logreport(_report('setup'))
        plugin.pytest_sessionfinish(SimpleNamespace(items=[]), 2)
        outcome = reporter.on_test_end.call_args.args[0]
        assert outcome.status is TestStatus.INTERRUPTED

    def test_notification_errors_do_not_escape(self, caplog):
        plugin, reporter = self._plugin()
        reporter.on_end.side_effect = RuntimeError('boom')
        plugin.pytest_sessionfinish(SimpleNamespace(items=[]), 0)
        assert any('Test run notification failed' in r.message for r in caplog.records)


class TestPluginRegistration:

    def _config(self, notify=False, **options):
        values = {
            'notify': notify,
            'slack_webhook_url': None,
            'teams_webhook_url': None,
            'notify_environment': None,
            'notify_project': None,
            'notify_only_on_failure': None,
            'notify_max_failures': None,
            'notify_ci_url': None,
        }
        values.update(options)
        config = Mock(spec=['getoption', 'pluginmanager'])
        config.getoption.side_effect = values.__getitem__
        return config

    def test_inert_by_default(self, monkeypatch):
        monkeypatch.delenv('NOTIFY_RESULTS', raising=False)
        config = self._config()
        pytest_plugin.pytest_configure(config)
        config.pluginmanager.register.assert_not_called()

    def test_enabled_by_environment(self, monkeypatch):
        monkeypatch.setenv('NOTIFY_RESULTS', 'true')
        config = self._config()
        with patch.object(pytest_plugin.ReporterConfig, 'from_env', return_value=pytest_plugin.ReporterConfig()):
            pytest_plugin.pytest_configure(config)
        config.pluginmanager.register.assert_called_once()

    def test_cli_options_override_environment(self, monkeypatch):
        monkeypatch.setenv('PROJECT_NAME', 'from-env')
        monkeypatch.setenv('TEST_ENVIRONMENT', 'qa')
        config = self._config(notify=True, notify_project='from-cli', notify_max_failures=2)
        pytest_plugin.pytest_configure(config)

        plugin, name = config.pluginmanager.register.call_args.args
        assert name == 'test-run-notifier'
        reporter_config = plugin.reporter.config
        assert reporter_config.project_name == 'from-cli'
        assert reporter_config.environment == 'qa'
        assert reporter_config.max_failures_to_show == 2

    def test_malformed_enable_flag_leaves_session_alone(self, monkeypatch, caplog):
        monkeypatch.setenv('NOTIFY_RESULTS', 'slack')
        config = self._config()
        pytest_plugin.pytest_configure(config)
        config.pluginmanager.register.assert_not_called()
        assert any('notifications disabled' in r.message and 'NOTIFY_RESULTS' in r.message for r in caplog.records)

    def test_malformed_environment_option_leaves_session_alone(self, monkeypatch, caplog):
        monkeypatch.setenv('MAX_FAILURES_TO_SHOW', 'five')
        config = self._config(notify=True)
        pytest_plugin.pytest_configure(config)
        config.pluginmanager.register.assert_not_called()
        assert any('max_failures_to_show' in r.message for r in caplog.records)

    def test_negative_cli_max_failures_leaves_session_alone(self):
        config = self._config(notify=True, notify_max_failures=-1)
        pytest_plugin.pytest_configure(config)
        config.pluginmanager.register.assert_not_called()

    def test_xdist_worker_skipped(self):
        config = self._config(notify=True)
        config.workerinput = {}
        pytest_plugin.pytest_configure(config)
        config.pluginmanager.register.assert_not_called()
