"""Tests for the summary builder."""

import logging
from datetime import timedelta

import pytest

from src.shared.aggregator import RunCounters
from src.shared.models import RunMetadata, TestFailure, TestStatus
from src.shared.summary import build_summary, compute_duration_ms


def _failures(count):
    return [TestFailure(title=f'f{i}', file='a.spec.ts', error='e') for i in range(count)]


def _counters(passed=0, failed=0, skipped=0):
    counters = RunCounters()
    for _ in range(passed):
        counters.add(TestStatus.PASSED)
    for _ in range(failed):
        counters.add(TestStatus.FAILED)
    for _ in range(skipped):
        counters.add(TestStatus.SKIPPED)
    return counters


class TestBuildSummary:

    def test_copies_metadata(self, run_start):
        metadata = RunMetadata(
            start_time=run_start,
            end_time=run_start + timedelta(minutes=2, seconds=5),
            project_name='shop-e2e',
            ci_url='https://ci.example.com/run/1',
            environment='staging',
        )
        summary = build_summary(_counters(passed=2), [], metadata)
        assert summary.duration_ms == 125000
        assert summary.project_name == 'shop-e2e'
        assert summary.ci_url == 'https://ci.example.com/run/1'
        assert summary.environment == 'staging'

    def test_truncates_failures(self, run_start):
        metadata = RunMetadata(start_time=run_start, end_time=run_start)
        summary = build_summary(_counters(failed=8), _failures(8), metadata, max_failures_to_show=5)
        assert len(summary.failures) == 5
        assert summary.failed == 8

    def test_zero_failures_to_show(self, run_start):
        metadata = RunMetadata(start_time=run_start, end_time=run_start)
        summary = build_summary(_counters(failed=2), _failures(2), metadata, max_failures_to_show=0)
        assert summary.failures == ()
        assert summary.omitted_failures == 2

    def test_negative_limit_rejected(self, run_start):
        metadata = RunMetadata(start_time=run_start, end_time=run_start)
        with pytest.raises(ValueError):
            build_summary(_counters(), [], metadata, max_failures_to_show=-1)


class TestComputeDuration:

    def test_duration_in_milliseconds(self, run_start):
        metadata = RunMetadata(start_time=run_start, end_time=run_start + timedelta(milliseconds=1500))
        assert compute_duration_ms(metadata) == 1500

    def test_end_before_start_is_clamped_and_logged(self, run_start, caplog):
        metadata = RunMetadata(start_time=run_start, end_time=run_start - timedelta(seconds=3))
        with caplog.at_level(logging.WARNING):
            assert compute_duration_ms(metadata) == 0
        assert any("precedes start time" in record.message for record in caplog.records)

    def test_clamped_summary_is_valid(self, run_start):
        metadata = RunMetadata(start_time=run_start, end_time=run_start - timedelta(seconds=3))
        summary = build_summary(_counters(passed=1), [], metadata)
        assert summary.duration_ms == 0
