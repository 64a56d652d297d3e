"""
Test Run Models - Fixed-shape records flowing through the reporter pipeline.

A runner produces one TestOutcome per executed test. Failing outcomes are
reduced to TestFailure records, and the whole run is described once, at the
end, by an immutable TestSummary.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import PurePath
from typing import Optional, Tuple


__all__ = [
    'Attachment',
    'RunMetadata',
    'TestFailure',
    'TestOutcome',
    'TestStatus',
    'TestSummary',
]


class TestStatus(str, Enum):
    """Terminal status of one executed test."""
    PASSED = 'passed'
    FAILED = 'failed'
    TIMED_OUT = 'timedOut'
    SKIPPED = 'skipped'
    INTERRUPTED = 'interrupted'

    # Keeps pytest from collecting this class
    __test__ = False

    @classmethod
    def parse(cls, value) -> 'TestStatus':
        """Normalize a runner-supplied status value.

        Args:
            value: A TestStatus or a status string in any common spelling

        Returns:
            Matching TestStatus

        Raises:
            ValueError: If the value is not a recognized status
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Unknown test status: {value!r}")

        key = value.strip().lower().replace('-', '_')
        status = _STATUS_ALIASES.get(key)
        if status is None:
            raise ValueError(f"Unknown test status: {value!r}")
        return status

    @property
    def is_failure(self) -> bool:
        return self in (TestStatus.FAILED, TestStatus.TIMED_OUT)

    @property
    def is_skip(self) -> bool:
        return self in (TestStatus.SKIPPED, TestStatus.INTERRUPTED)


_STATUS_ALIASES = {
    'passed': TestStatus.PASSED,
    'pass': TestStatus.PASSED,
    'failed': TestStatus.FAILED,
    'fail': TestStatus.FAILED,
    'error': TestStatus.FAILED,
    'timedout': TestStatus.TIMED_OUT,
    'timed_out': TestStatus.TIMED_OUT,
    'timeout': TestStatus.TIMED_OUT,
    'skipped': TestStatus.SKIPPED,
    'skip': TestStatus.SKIPPED,
    'interrupted': TestStatus.INTERRUPTED,
}


@dataclass(frozen=True)
class Attachment:
    """A file or blob the runner attached to a test result."""
    name: str
    path: Optional[str] = None
    content_type: Optional[str] = None

    @property
    def is_screenshot(self) -> bool:
        return self.name == 'screenshot' or (self.path is not None and 'screenshot' in self.path)


@dataclass(frozen=True)
class TestOutcome:
    """Result of one executed test, as reported by the runner.

    Attributes:
        title: Test title
        parent_title: Title of the enclosing suite (class/module for pytest)
        file: Path of the file that defines the test
        status: Terminal status; strings are normalized through TestStatus.parse
        duration_ms: Test duration in milliseconds
        retry: Retry index of this result (0 for the first attempt)
        error: Error message for failing tests
        attachments: Files attached to the result
    """
    title: str
    parent_title: str = ''
    file: str = ''
    status: TestStatus = TestStatus.PASSED
    duration_ms: float = 0
    retry: int = 0
    error: Optional[str] = None
    attachments: Tuple[Attachment, ...] = ()

    __test__ = False

    def __post_init__(self):
        # frozen dataclass, so normalization goes through object.__setattr__
        object.__setattr__(self, 'status', TestStatus.parse(self.status))
        object.__setattr__(self, 'attachments', tuple(self.attachments))
        if self.duration_ms < 0:
            raise ValueError(f"Negative duration for test {self.title!r}: {self.duration_ms}")
        if self.retry < 0:
            raise ValueError(f"Negative retry count for test {self.title!r}: {self.retry}")

    @property
    def is_flaky(self) -> bool:
        """Passed, but only after at least one retry."""
        return self.status is TestStatus.PASSED and self.retry > 0

    def screenshot_path(self) -> Optional[str]:
        """Path of the first screenshot attachment, if any."""
        for attachment in self.attachments:
            if attachment.is_screenshot:
                return attachment.path
        return None


@dataclass(frozen=True)
class TestFailure:
    """Failure details kept for notification messages."""
    title: str
    file: str
    error: str
    duration_ms: float = 0
    screenshot_path: Optional[str] = None

    __test__ = False

    @classmethod
    def from_outcome(cls, outcome: TestOutcome, include_screenshots: bool = True) -> 'TestFailure':
        return cls(
            title=outcome.title,
            file=outcome.file,
            error=outcome.error or 'Unknown error',
            duration_ms=outcome.duration_ms,
            screenshot_path=outcome.screenshot_path() if include_screenshots else None,
        )

    @property
    def file_name(self) -> str:
        """File path with the directory stripped."""
        if not self.file:
            return self.file
        # Runners on Windows report backslash paths
        return PurePath(self.file.replace('\\', '/')).name or self.file


@dataclass(frozen=True)
class RunMetadata:
    """Run-level facts that do not come from individual outcomes."""
    start_time: datetime
    end_time: datetime
    project_name: Optional[str] = None
    ci_url: Optional[str] = None
    environment: Optional[str] = None


@dataclass(frozen=True)
class TestSummary:
    """Immutable aggregate describing an entire test run.

    `failures` may be truncated for display; `failed` always holds the true
    count, so `omitted_failures` tells how many entries were dropped.
    """
    total: int
    passed: int
    failed: int
    skipped: int
    flaky: int
    duration_ms: int
    start_time: datetime
    end_time: datetime
    failures: Tuple[TestFailure, ...] = field(default_factory=tuple)
    project_name: Optional[str] = None
    ci_url: Optional[str] = None
    environment: Optional[str] = None

    __test__ = False

    def __post_init__(self):
        object.__setattr__(self, 'failures', tuple(self.failures))
        if self.total != self.passed + self.failed + self.skipped:
            raise ValueError(
                f"Inconsistent totals: {self.total} != "
                f"{self.passed} + {self.failed} + {self.skipped}"
            )
        if len(self.failures) > self.failed:
            raise ValueError(f"{len(self.failures)} failure records for {self.failed} failed tests")
        if self.flaky > self.passed:
            raise ValueError(f"Flaky count {self.flaky} exceeds passed count {self.passed}")
        if self.duration_ms < 0:
            raise ValueError(f"Negative run duration: {self.duration_ms}")

    @property
    def omitted_failures(self) -> int:
        """Failed tests not represented in `failures`."""
        return self.failed - len(self.failures)

    @property
    def succeeded(self) -> bool:
        """Skips alone do not make a run unsuccessful."""
        return self.failed == 0

    @property
    def status_label(self) -> str:
        if self.failed > 0:
            return 'FAILED'
        if self.passed > 0:
            return 'PASSED'
        return 'NO_TESTS'
