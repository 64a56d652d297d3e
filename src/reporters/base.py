"""
Notification channels for test run summaries.

A channel knows how to turn a TestSummary into its own rich-message payload
(full and fallback variants) and how to recognize its webhook URLs.
Delivery itself goes through the shared retry primitive in
src.shared.delivery so every channel retries the same way.

Additional channels can be added by subclassing NotificationChannel.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests

from src.shared.constants import DELIVERY
from src.shared.delivery import deliver
from src.shared.models import TestSummary


__all__ = [
    'NotificationChannel',
    'Payload',
]


Payload = Dict[str, Any]


class NotificationChannel(ABC):
    """Abstract base class for chat notification channels."""

    def __init__(
        self,
        max_attempts: int = DELIVERY.MAX_ATTEMPTS,
        backoff_base: float = DELIVERY.BACKOFF_BASE,
        timeout: int = DELIVERY.TIMEOUT,
        session: Optional[requests.Session] = None,
        include_screenshots: bool = True,
    ):
        """Initialize channel.

        Args:
            max_attempts: POST attempts per payload
            backoff_base: Backoff multiplier in seconds
            timeout: Request timeout in seconds
            session: Session to send with; a fresh one per delivery if None
            include_screenshots: Mention screenshots on failure entries
        """
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base
        self.timeout = timeout
        self.session = session
        self.include_screenshots = include_screenshots

    @property
    @abstractmethod
    def name(self) -> str:
        """Channel name for logging."""

    @staticmethod
    @abstractmethod
    def validate_webhook_url(url: str) -> bool:
        """Heuristic check that a URL looks like this channel's webhook."""

    @abstractmethod
    def build_full_message(self, summary: TestSummary) -> Payload:
        """Payload with counts, failure details and the CI link."""

    @abstractmethod
    def build_fallback_message(self, summary: TestSummary) -> Payload:
        """Reduced payload with counts, duration and status only."""

    @abstractmethod
    def build_text_message(self, text: str) -> Payload:
        """Plain message, used for connectivity checks."""

    def send(self, webhook_url: str, payload: Payload) -> requests.Response:
        """Deliver a payload with retries.

        Raises:
            DeliveryError: If every attempt failed
        """
        return deliver(
            webhook_url,
            payload,
            session=self.session,
            max_attempts=self.max_attempts,
            backoff_base=self.backoff_base,
            timeout=self.timeout,
            channel=self.name,
        )
