"""Chat notification channels and the run reporter"""

from .base import NotificationChannel
from .orchestrator import (
    DeliveryOutcome,
    DeliveryStatus,
    TestRunReporter,
    default_channels,
)
from .slack import SlackChannel
from .teams import TeamsChannel


__all__ = [
    'DeliveryOutcome',
    'DeliveryStatus',
    'NotificationChannel',
    'SlackChannel',
    'TeamsChannel',
    'TestRunReporter',
    'default_channels',
]
