"""Retry-After header interpretation (RFC 7231 section 7.1.3)."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Callable, Optional

import requests

from httpretry.domain.errors import RetryAfterParseError

logger = logging.getLogger(__name__)

RETRY_AFTER_HEADER = "Retry-After"

_DELTA_SECONDS = re.compile(r"[0-9]+")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_retry_after(value: Optional[str], now: datetime) -> float:
    """Parse a Retry-After value into a wait in seconds.

    The value is tried as an HTTP-date first, then as delta-seconds. A date
    in the past yields a zero wait.

    Args:
        value: Raw header value
        now: Current time (timezone-aware)

    Returns:
        Wait duration in seconds (>= 0)

    Raises:
        RetryAfterParseError: If the value is neither form
    """
    if value is None:
        raise RetryAfterParseError(value)
    text = value.strip()

    try:
        when = parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError, OverflowError):
        when = None

    if when is not None:
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return max(0.0, (when - now).total_seconds())

    if _DELTA_SECONDS.fullmatch(text):
        return float(int(text))

    raise RetryAfterParseError(value)


def retry_after_from_response(
    response: requests.Response,
    clock: Callable[[], datetime] = utcnow,
) -> Optional[float]:
    """Wait hinted by the response, or None when absent or unparseable."""
    value = response.headers.get(RETRY_AFTER_HEADER)
    if value is None:
        return None
    try:
        return parse_retry_after(value, clock())
    except RetryAfterParseError as e:
        logger.debug(f"Ignoring Retry-After hint: {e}")
        return None
