"""Test run notifier: Slack/Teams summaries for end-to-end test runs."""

__version__ = '1.0.0'
