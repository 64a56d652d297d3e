"""Pytest configuration and fixtures for reporter tests"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from unittest.mock import Mock, patch

from src.shared.models import Attachment, TestFailure, TestOutcome, TestStatus, TestSummary


RUN_START = datetime(2026, 3, 14, 9, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def run_start():
    """Fixed run start time"""
    return RUN_START


@pytest.fixture
def make_outcome():
    """Factory for TestOutcome records.

    Usage:
        outcome = make_outcome('login works')
        outcome = make_outcome('cart total', status='failed', error='Expected 3 items')
    """
    def _create(
        title: str = 'adds item to cart',
        status='passed',
        retry: int = 0,
        error: Optional[str] = None,
        file: str = 'tests/cart-workflow.spec.ts',
        parent_title: str = 'Cart workflow',
        duration_ms: float = 1200,
        screenshot: Optional[str] = None,
    ) -> TestOutcome:
        attachments = ()
        if screenshot:
            attachments = (Attachment(name='screenshot', path=screenshot, content_type='image/png'),)
        return TestOutcome(
            title=title,
            parent_title=parent_title,
            file=file,
            status=status,
            duration_ms=duration_ms,
            retry=retry,
            error=error,
            attachments=attachments,
        )

    return _create


@pytest.fixture
def make_summary():
    """Factory for TestSummary values with consistent counts.

    `failed` defaults to the number of failure records given.
    """
    def _create(
        passed: int = 5,
        failed: Optional[int] = None,
        skipped: int = 0,
        flaky: int = 0,
        failures=(),
        duration_ms: int = 125000,
        project_name: Optional[str] = None,
        ci_url: Optional[str] = None,
        environment: Optional[str] = None,
    ) -> TestSummary:
        if failed is None:
            failed = len(failures)
        return TestSummary(
            total=passed + failed + skipped,
            passed=passed,
            failed=failed,
            skipped=skipped,
            flaky=flaky,
            duration_ms=duration_ms,
            start_time=RUN_START,
            end_time=RUN_START + timedelta(milliseconds=duration_ms),
            failures=tuple(failures),
            project_name=project_name,
            ci_url=ci_url,
            environment=environment,
        )

    return _create


@pytest.fixture
def make_failure():
    """Factory for TestFailure records"""
    def _create(
        title: str = 'checkout completes',
        file: str = '/home/runner/work/shop/tests/checkout.spec.ts',
        error: str = 'Timeout 30000ms exceeded',
        screenshot_path: Optional[str] = None,
    ) -> TestFailure:
        return TestFailure(title=title, file=file, error=error, duration_ms=3000, screenshot_path=screenshot_path)

    return _create


@pytest.fixture
def mock_response_factory():
    """Factory for creating mock HTTP responses.

    Usage:
        response = mock_response_factory(status_code=200)
        response = mock_response_factory(status_code=500, text="Internal Server Error")
    """
    def _create_response(status_code: int = 200, text: str = "", reason: str = ""):
        response = Mock()
        response.status_code = status_code
        response.text = text
        response.reason = reason or ('OK' if status_code < 400 else 'Error')
        return response

    return _create_response


@pytest.fixture
def no_sleep():
    """Patch out backoff sleeps in the delivery module"""
    with patch('src.shared.delivery.time.sleep') as mock_sleep:
        yield mock_sleep


SLACK_URL = 'https://hooks.slack.com/services/T000/B000/XXXXXXXX'
TEAMS_URL = 'https://example.webhook.office.com/webhookb2/abc@def/IncomingWebhook/123/456'


@pytest.fixture
def slack_url():
    return SLACK_URL


@pytest.fixture
def teams_url():
    return TEAMS_URL
