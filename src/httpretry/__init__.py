"""httpretry - retry, backoff and transient-failure classification for HTTP requests"""

from httpretry.application.client import RetryingClient
from httpretry.domain.errors import (
    ConfigurationError,
    HttpRetryError,
    InvalidArgument,
    MaxAttemptsExceeded,
    RetryAfterParseError,
    RetryCancelled,
    TransportError,
)
from httpretry.domain.models.outcome import Classification
from httpretry.infrastructure.backoff import (
    BackoffStrategy,
    ConstantBackoff,
    ExponentialBackoff,
    TruncatedExponentialBackoff,
)
from httpretry.infrastructure.cancellation import CancellationToken
from httpretry.infrastructure.classifier import classify_error, classify_status
from httpretry.infrastructure.debug import DebugExecutor, inject_debug, remove_debug
from httpretry.infrastructure.executor import Executor, RequestsExecutor
from httpretry.infrastructure.request_builder import RequestBuilder, new_request
from httpretry.infrastructure.retry import RetryOptions, retry
from httpretry.infrastructure.retry_after import parse_retry_after

__all__ = [
    "BackoffStrategy",
    "CancellationToken",
    "Classification",
    "ConfigurationError",
    "ConstantBackoff",
    "DebugExecutor",
    "Executor",
    "ExponentialBackoff",
    "HttpRetryError",
    "InvalidArgument",
    "MaxAttemptsExceeded",
    "RequestBuilder",
    "RequestsExecutor",
    "RetryAfterParseError",
    "RetryCancelled",
    "RetryOptions",
    "RetryingClient",
    "TransportError",
    "TruncatedExponentialBackoff",
    "classify_error",
    "classify_status",
    "inject_debug",
    "new_request",
    "parse_retry_after",
    "remove_debug",
    "retry",
]
