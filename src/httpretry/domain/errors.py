"""Error taxonomy for the retry engine.

All errors raised by httpretry derive from HttpRetryError so callers can
catch the whole family at once.
"""

from typing import Optional


class HttpRetryError(Exception):
    """Base class for httpretry errors"""


class InvalidArgument(HttpRetryError, ValueError):
    """Missing or malformed input detected before any attempt is made."""


class TransportError(HttpRetryError):
    """Network-level failure reported by an executor.

    The flags replace runtime capability checks: a transport layer tags each
    failure as a timeout and/or a temporary condition, and only tagged
    failures are retried.

    Attributes:
        timeout: The exchange did not complete in time
        temporary: The condition is expected to clear on its own
    """

    def __init__(self, message: str, *, timeout: bool = False, temporary: bool = False):
        super().__init__(message)
        self.timeout = timeout
        self.temporary = temporary

    def is_timeout(self) -> bool:
        return self.timeout

    def is_temporary(self) -> bool:
        return self.temporary


class MaxAttemptsExceeded(HttpRetryError):
    """A retryable condition persisted through every allowed attempt."""

    def __init__(self, attempts: int):
        super().__init__(f"max attempt exceeded ({attempts} attempts)")
        self.attempts = attempts


class RetryCancelled(HttpRetryError):
    """The retry loop was cancelled through its cancellation token."""

    def __init__(self, attempts: int):
        super().__init__(f"retry cancelled after {attempts} attempts")
        self.attempts = attempts


class RetryAfterParseError(HttpRetryError, ValueError):
    """Retry-After header value is neither an HTTP-date nor delta-seconds."""

    def __init__(self, value: Optional[str]):
        super().__init__(f"invalid Retry-After value: {value!r}")
        self.value = value


class ConfigurationError(HttpRetryError):
    """Configuration validation error."""

    pass
