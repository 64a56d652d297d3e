"""Summary builder: counters + failures + run metadata -> TestSummary."""

import logging
from typing import Sequence

from src.shared.constants import FORMATTING
from src.shared.models import RunMetadata, TestFailure, TestSummary


__all__ = [
    'build_summary',
    'compute_duration_ms',
]


def compute_duration_ms(metadata: RunMetadata) -> int:
    """Milliseconds between run start and end, clamped at zero.

    A run that appears to end before it started (clock adjustment between
    the two timestamps) is logged as an anomaly and reported as 0ms.
    """
    delta = metadata.end_time - metadata.start_time
    duration_ms = int(delta.total_seconds() * 1000)
    if duration_ms < 0:
        logging.warning(
            f"Run end time {metadata.end_time.isoformat()} precedes start time "
            f"{metadata.start_time.isoformat()}; reporting duration as 0ms"
        )
        return 0
    return duration_ms


def build_summary(
    counters,
    failures: Sequence[TestFailure],
    metadata: RunMetadata,
    max_failures_to_show: int = FORMATTING.MAX_FAILURES_TO_SHOW,
) -> TestSummary:
    """Build the channel-agnostic summary of a run.

    Args:
        counters: RunCounters (or any object with total/passed/failed/skipped/flaky)
        failures: Failure records in the order they were recorded
        metadata: Start/end times and labels for the run
        max_failures_to_show: Number of failure records to keep

    Returns:
        Immutable TestSummary; `failed` keeps the true count even when
        `failures` is truncated

    Raises:
        ValueError: If max_failures_to_show is negative
    """
    if max_failures_to_show < 0:
        raise ValueError(f"max_failures_to_show must be >= 0, got {max_failures_to_show}")

    return TestSummary(
        total=counters.total,
        passed=counters.passed,
        failed=counters.failed,
        skipped=counters.skipped,
        flaky=counters.flaky,
        duration_ms=compute_duration_ms(metadata),
        start_time=metadata.start_time,
        end_time=metadata.end_time,
        failures=tuple(failures[:max_failures_to_show]),
        project_name=metadata.project_name,
        ci_url=metadata.ci_url,
        environment=metadata.environment,
    )
