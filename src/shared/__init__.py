"""Shared building blocks for the reporter pipeline"""

from .aggregator import (
    AggregatorPhase,
    ResultAggregator,
    RunCounters,
)

from .config import (
    ReporterConfig,
    resolve_ci_url,
)

from .delivery import (
    deliver,
    sanitize_webhook_url,
)

from .exceptions import (
    ConfigurationError,
    DeliveryError,
    ReporterError,
    ReporterStateError,
)

from .logging_config import setup_logging

from .models import (
    Attachment,
    RunMetadata,
    TestFailure,
    TestOutcome,
    TestStatus,
    TestSummary,
)

from .summary import build_summary


__all__ = [
    # Aggregation
    'AggregatorPhase',
    'ResultAggregator',
    'RunCounters',
    'build_summary',
    # Configuration
    'ReporterConfig',
    'resolve_ci_url',
    # Delivery
    'deliver',
    'sanitize_webhook_url',
    # Errors
    'ConfigurationError',
    'DeliveryError',
    'ReporterError',
    'ReporterStateError',
    # Logging
    'setup_logging',
    # Models
    'Attachment',
    'RunMetadata',
    'TestFailure',
    'TestOutcome',
    'TestStatus',
    'TestSummary',
]
