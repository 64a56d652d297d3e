"""Exception types raised by the reporter pipeline."""

from typing import Optional

__all__ = [
    'ConfigurationError',
    'DeliveryError',
    'ReporterError',
    'ReporterStateError',
]


class ReporterError(Exception):
    """Base class for reporter errors."""


class ReporterStateError(ReporterError):
    """A lifecycle call arrived in the wrong phase.

    Raised for recording an outcome before the run began or after it was
    finalized, and for finalizing twice. These are caller bugs.
    """


class ConfigurationError(ReporterError):
    """A configuration value could not be parsed."""


class DeliveryError(ReporterError):
    """A webhook payload could not be delivered after all attempts.

    Attributes:
        channel: Channel name the payload was meant for
        attempts: Number of attempts made
        last_error: The underlying error from the final attempt
    """

    def __init__(
        self,
        message: str,
        channel: str = '',
        attempts: int = 0,
        last_error: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.channel = channel
        self.attempts = attempts
        self.last_error = last_error
