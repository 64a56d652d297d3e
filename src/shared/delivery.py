"""Webhook delivery with bounded retries.

This module provides the single delivery primitive shared by every chat
channel: POST a JSON payload, retry non-2xx responses and transport errors
with exponential backoff, and raise DeliveryError once attempts run out.
"""

import logging
import time
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import requests

from src.shared.constants import DELIVERY
from src.shared.exceptions import DeliveryError

__all__ = [
    'deliver',
    'is_success_status',
    'sanitize_webhook_url',
]


def sanitize_webhook_url(url: str) -> str:
    """Redact the path of a webhook URL for safe logging.

    Chat webhook paths embed the channel secret, so only scheme and host
    are kept.

    Args:
        url: URL to sanitize

    Returns:
        Sanitized URL with the path and query replaced by [REDACTED]
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return "[INVALID_URL]"
    if not parsed.scheme or not parsed.netloc:
        return "[INVALID_URL]"
    safe_url = f"{parsed.scheme}://{parsed.netloc}"
    if parsed.path.strip('/') or parsed.query:
        safe_url += "/[REDACTED]"
    return safe_url


def is_success_status(status_code: int) -> bool:
    return 200 <= status_code < 300


def _describe_error_response(channel: str, response: requests.Response) -> str:
    """One-line description of a non-2xx webhook response."""
    parts = [f"{channel} API error: {response.status_code}"]
    reason = getattr(response, 'reason', None)
    if isinstance(reason, str) and reason:
        parts.append(reason)
    text = getattr(response, 'text', None)
    if isinstance(text, str) and text:
        parts.append(f"- {text[:200]}")
    return ' '.join(parts)


def deliver(
    webhook_url: str,
    payload: Dict[str, Any],
    session: Optional[requests.Session] = None,
    max_attempts: int = DELIVERY.MAX_ATTEMPTS,
    backoff_base: float = DELIVERY.BACKOFF_BASE,
    timeout: int = DELIVERY.TIMEOUT,
    channel: str = 'webhook',
) -> requests.Response:
    """POST a JSON payload to a webhook with exponential backoff retry.

    After failed attempt N (starting at 1) the call waits
    `(2 ** N) * backoff_base` seconds before trying again. No wait follows
    the final attempt.

    Args:
        webhook_url: Destination URL
        payload: JSON-serializable document
        session: requests.Session to use (a one-off session if None)
        max_attempts: Maximum number of POST attempts
        backoff_base: Backoff multiplier in seconds
        timeout: Request timeout in seconds
        channel: Channel name used in log lines and errors

    Returns:
        The first 2xx response

    Raises:
        DeliveryError: If every attempt failed; `last_error` holds the
            final underlying error
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    safe_url = sanitize_webhook_url(webhook_url)
    owns_session = session is None
    if owns_session:
        session = requests.Session()

    last_error: Optional[BaseException] = None
    try:
        for attempt in range(1, max_attempts + 1):
            try:
                response = session.post(
                    webhook_url,
                    json=payload,
                    headers={'Content-Type': 'application/json'},
                    timeout=timeout,
                )
                if is_success_status(response.status_code):
                    logging.debug(f"{channel} message delivered to {safe_url} (attempt {attempt}/{max_attempts})")
                    return response

                last_error = requests.HTTPError(_describe_error_response(channel, response), response=response)
            except requests.RequestException as e:
                last_error = e

            logging.warning(
                f"{channel} delivery attempt {attempt}/{max_attempts} to {safe_url} failed: {last_error}"
            )
            if attempt < max_attempts:
                wait_time = (2 ** attempt) * backoff_base
                time.sleep(wait_time)
    finally:
        if owns_session:
            session.close()

    raise DeliveryError(
        f"Failed to send {channel} message after {max_attempts} attempts. Last error: {last_error}",
        channel=channel,
        attempts=max_attempts,
        last_error=last_error,
    )
