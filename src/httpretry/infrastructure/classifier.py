"""Transient-failure classification.

Transport errors are retried only when tagged as a timeout or a temporary
condition. Responses are retried only for an explicit allow-list of status
codes; every other status, 4xx included, is handed back to the caller.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Optional

import requests

from httpretry.domain.errors import TransportError
from httpretry.domain.models.outcome import Classification

RETRYABLE_STATUSES = frozenset(
    {
        HTTPStatus.INTERNAL_SERVER_ERROR,
        HTTPStatus.BAD_GATEWAY,
        HTTPStatus.SERVICE_UNAVAILABLE,
        HTTPStatus.GATEWAY_TIMEOUT,
        HTTPStatus.REQUEST_TIMEOUT,
        HTTPStatus.TOO_MANY_REQUESTS,
    }
)


def classify_error(error: BaseException) -> Classification:
    """Classify an exception raised by an executor."""
    if isinstance(error, TransportError) and (error.is_timeout() or error.is_temporary()):
        return Classification.RETRYABLE
    return Classification.PERMANENT


def classify_status(status_code: Optional[int]) -> Classification:
    """Classify a response status code."""
    if status_code in RETRYABLE_STATUSES:
        return Classification.RETRYABLE
    return Classification.PERMANENT


def is_retryable_error(error: BaseException) -> bool:
    return classify_error(error).is_retryable


def is_retryable_response(response: Optional[requests.Response]) -> bool:
    if response is None:
        return False
    return classify_status(response.status_code).is_retryable
