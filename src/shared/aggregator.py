"""Result aggregation for a single test run.

The aggregator is fed one TestOutcome per finished test and produces the
run's TestSummary exactly once. Lifecycle calls arrive serially from the
runner, so counters are plain integers without locking.

Usage:
    aggregator = ResultAggregator(max_failures_to_show=5)
    aggregator.begin()
    for outcome in outcomes:
        aggregator.record_outcome(outcome)
    summary = aggregator.finalize(project_name='shop-e2e')
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from src.shared.constants import FORMATTING
from src.shared.exceptions import ReporterStateError
from src.shared.models import RunMetadata, TestFailure, TestOutcome, TestStatus, TestSummary
from src.shared.summary import build_summary


__all__ = [
    'AggregatorPhase',
    'ResultAggregator',
    'RunCounters',
]


def _as_utc(moment: Optional[datetime]) -> datetime:
    """Current time when missing; naive datetimes are taken as UTC."""
    if moment is None:
        return datetime.now(timezone.utc)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class AggregatorPhase(str, Enum):
    """Lifecycle phases of a run."""
    IDLE = 'idle'
    COLLECTING = 'collecting'
    FINALIZED = 'finalized'


@dataclass
class RunCounters:
    """Running counters for a test run."""
    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    flaky: int = 0

    def add(self, status: TestStatus, retry: int = 0) -> None:
        """Count one outcome. Every call increments total exactly once."""
        self.total += 1
        if status is TestStatus.PASSED:
            self.passed += 1
            if retry > 0:
                self.flaky += 1
        elif status.is_failure:
            self.failed += 1
        else:
            # skipped and interrupted
            self.skipped += 1


class ResultAggregator:
    """Accumulate per-test outcomes into counters and failure records."""

    def __init__(
        self,
        max_failures_to_show: int = FORMATTING.MAX_FAILURES_TO_SHOW,
        include_screenshots: bool = True,
    ):
        """Initialize aggregator.

        Args:
            max_failures_to_show: Failure records kept in the summary
            include_screenshots: Record screenshot paths on failures
        """
        self.max_failures_to_show = max_failures_to_show
        self.include_screenshots = include_screenshots
        self.counters = RunCounters()
        self.failures: List[TestFailure] = []
        self.phase = AggregatorPhase.IDLE
        self.start_time: Optional[datetime] = None
        self.expected_total: Optional[int] = None
        self._summary: Optional[TestSummary] = None

    def begin(self, start_time: Optional[datetime] = None, expected_total: Optional[int] = None) -> None:
        """Start collecting outcomes.

        Args:
            start_time: Run start time (defaults to now; naive values are UTC)
            expected_total: Number of tests the runner plans to execute, if known

        Raises:
            ReporterStateError: If the run already began
        """
        if self.phase is not AggregatorPhase.IDLE:
            raise ReporterStateError(f"Run already started (phase: {self.phase.value})")
        self.start_time = _as_utc(start_time)
        self.expected_total = expected_total
        self.phase = AggregatorPhase.COLLECTING

    def record_outcome(self, outcome: TestOutcome) -> None:
        """Count one finished test.

        Args:
            outcome: The test's terminal outcome

        Raises:
            ReporterStateError: If the run has not begun or is already finalized
        """
        if self.phase is AggregatorPhase.IDLE:
            raise ReporterStateError(f"Outcome for {outcome.title!r} recorded before the run began")
        if self.phase is AggregatorPhase.FINALIZED:
            raise ReporterStateError(f"Outcome for {outcome.title!r} recorded after the run was finalized")

        self.counters.add(outcome.status, outcome.retry)
        if outcome.status.is_failure:
            self.failures.append(TestFailure.from_outcome(outcome, self.include_screenshots))

    def finalize(
        self,
        end_time: Optional[datetime] = None,
        project_name: Optional[str] = None,
        ci_url: Optional[str] = None,
        environment: Optional[str] = None,
    ) -> TestSummary:
        """Build the run summary. May be called exactly once.

        Raises:
            ReporterStateError: If the run has not begun or was already finalized
        """
        if self.phase is AggregatorPhase.IDLE:
            raise ReporterStateError("Cannot finalize a run that has not begun")
        if self.phase is AggregatorPhase.FINALIZED:
            raise ReporterStateError("Run already finalized")

        metadata = RunMetadata(
            start_time=self.start_time,
            end_time=_as_utc(end_time),
            project_name=project_name,
            ci_url=ci_url,
            environment=environment,
        )
        self._summary = build_summary(
            self.counters,
            self.failures,
            metadata,
            max_failures_to_show=self.max_failures_to_show,
        )
        self.phase = AggregatorPhase.FINALIZED

        if self.expected_total is not None and self.counters.total != self.expected_total:
            logging.info(
                f"Recorded {self.counters.total} of {self.expected_total} planned tests"
            )
        return self._summary

    @property
    def summary(self) -> Optional[TestSummary]:
        """The finalized summary, or None before finalize()."""
        return self._summary
