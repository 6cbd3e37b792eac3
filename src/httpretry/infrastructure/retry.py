"""Retry engine: drives attempts through an executor until a final outcome.

Each attempt sends the request once. Transport errors and responses are
classified; transient outcomes are retried after a wait taken from the
response's Retry-After hint or, failing that, from the backoff strategy.
Discarded responses are drained and closed before the loop moves on.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Union

import requests
from requests.utils import rewind_body
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    retry_if_result,
    stop_after_attempt,
)
from tenacity.wait import wait_base

from httpretry.domain.config.retry import RetryConfig
from httpretry.domain.errors import InvalidArgument, MaxAttemptsExceeded, RetryCancelled
from httpretry.infrastructure.backoff import (
    BackoffStrategy,
    TruncatedExponentialBackoff,
    backoff_from_config,
)
from httpretry.infrastructure.cancellation import CancellationToken
from httpretry.infrastructure.classifier import is_retryable_error, is_retryable_response
from httpretry.infrastructure.executor import Executor
from httpretry.infrastructure.retry_after import retry_after_from_response, utcnow

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 15
DEFAULT_MAX_EXPONENT = 6

Sleeper = Callable[[float], Any]
Clock = Callable[[], datetime]


def _default_backoff() -> BackoffStrategy:
    return TruncatedExponentialBackoff(DEFAULT_MAX_EXPONENT)


@dataclass(frozen=True)
class RetryOptions:
    """Immutable per-call retry configuration.

    Attributes:
        max_attempts: Attempt ceiling, first attempt included
        backoff: Wait policy used when no Retry-After hint applies
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    backoff: BackoffStrategy = field(default_factory=_default_backoff)

    def __post_init__(self) -> None:
        if isinstance(self.max_attempts, bool) or not isinstance(self.max_attempts, int):
            raise InvalidArgument("max_attempts must be an integer")
        if self.max_attempts < 1:
            raise InvalidArgument("max_attempts must be at least 1")
        if not isinstance(self.backoff, BackoffStrategy):
            raise InvalidArgument("backoff must be a BackoffStrategy")


def retry_options_from_config(config: Union[RetryConfig, Dict[str, Any], None]) -> RetryOptions:
    """Build RetryOptions from the retry config section, supporting legacy aliases."""
    if config is None:
        return RetryOptions()
    if isinstance(config, RetryConfig):
        return RetryOptions(
            max_attempts=config.max_attempts,
            backoff=backoff_from_config(config.backoff),
        )

    max_attempts = config.get("max_attempts")
    # Legacy aliases
    if max_attempts is None:
        max_attempts = config.get("max_retries", config.get("max_attempt", DEFAULT_MAX_ATTEMPTS))
    try:
        max_attempts = int(max_attempts)
    except (TypeError, ValueError) as e:
        raise InvalidArgument(f"max_attempts must be an integer: {max_attempts!r}") from e

    backoff = config.get("backoff")
    if backoff is None:
        backoff = _default_backoff()
    elif not isinstance(backoff, BackoffStrategy):
        backoff = backoff_from_config(backoff)
    return RetryOptions(max_attempts=max_attempts, backoff=backoff)


class wait_retry_after(wait_base):
    """Wait for the Retry-After hint of the last response, else back off."""

    def __init__(self, fallback: BackoffStrategy, clock: Clock = utcnow, limit: Optional[int] = None):
        self.fallback = fallback
        self.clock = clock
        self.limit = limit

    def __call__(self, retry_state: RetryCallState) -> float:
        # No wait follows the last allowed attempt
        if self.limit is not None and retry_state.attempt_number >= self.limit:
            return 0.0
        outcome = retry_state.outcome
        if outcome is not None and not outcome.failed:
            hinted = retry_after_from_response(outcome.result(), self.clock)
            if hinted is not None:
                logger.debug(f"Using Retry-After hint of {hinted:.2f}s")
                return hinted
        return self.fallback.backoff(retry_state.attempt_number)


def discard_response(response: requests.Response) -> None:
    """Drain and close a response that will not reach the caller."""
    try:
        _ = response.content
    except (requests.exceptions.RequestException, RuntimeError, OSError) as e:
        logger.debug(f"Failed to drain discarded response body: {e}")
    finally:
        response.close()


def is_replayable(request: requests.PreparedRequest) -> bool:
    """Whether the request body can be sent again from the start."""
    body = request.body
    if body is None or isinstance(body, (bytes, str)):
        return True
    return isinstance(getattr(request, "_body_position", None), int)


def _describe(retry_state: RetryCallState) -> str:
    outcome = retry_state.outcome
    if outcome is None:
        return "no outcome"
    if outcome.failed:
        return str(outcome.exception())
    return f"HTTP {outcome.result().status_code}"


def retry(
    executor: Executor,
    request: requests.PreparedRequest,
    options: Optional[RetryOptions] = None,
    *,
    max_attempts: Optional[int] = None,
    backoff: Optional[BackoffStrategy] = None,
    sleep: Optional[Sleeper] = None,
    clock: Optional[Clock] = None,
    cancel: Optional[CancellationToken] = None,
) -> requests.Response:
    """Send a request, retrying transient failures.

    Args:
        executor: Executor performing each exchange
        request: Replayable prepared request
        options: Retry options (default: 15 attempts, truncated exponential backoff)
        max_attempts: Per-call override of options.max_attempts
        backoff: Per-call override of options.backoff
        sleep: Sleeper used between attempts (default: time.sleep)
        clock: Source of the current time for Retry-After dates
        cancel: Token aborting the loop and interrupting waits

    Returns:
        The first response whose status is not retryable

    Raises:
        InvalidArgument: Missing executor/request or invalid options
        TransportError: Permanent transport failure (or any non-transport
            error raised by the executor), unchanged
        MaxAttemptsExceeded: Every allowed attempt was transient
        RetryCancelled: The cancellation token was triggered
    """
    if executor is None:
        raise InvalidArgument("missing executor")
    if request is None:
        raise InvalidArgument("missing request")
    if not getattr(request, "url", None):
        raise InvalidArgument("missing request url")

    options = options or RetryOptions()
    overrides: Dict[str, Any] = {}
    if max_attempts is not None:
        overrides["max_attempts"] = max_attempts
    if backoff is not None:
        overrides["backoff"] = backoff
    if overrides:
        options = replace(options, **overrides)

    if options.max_attempts > 1 and not is_replayable(request):
        raise InvalidArgument("request body cannot be replayed; materialise it before retrying")

    if sleep is None:
        # Token waits return early once cancelled; the next attempt then aborts
        sleep = cancel.wait if cancel is not None else time.sleep

    limit = options.max_attempts

    def before_attempt(retry_state: RetryCallState) -> None:
        attempt = retry_state.attempt_number
        if cancel is not None and cancel.cancelled:
            logger.info(f"HTTP {request.method} {request.url} cancelled after {attempt - 1} attempts")
            raise RetryCancelled(attempt - 1)
        # A connection that just failed must not be picked up again
        request.headers["Connection"] = "close"
        if attempt > 1 and getattr(request, "_body_position", None) is not None:
            rewind_body(request)
        logger.debug(f"HTTP attempt {attempt}/{limit}: {request.method} {request.url}")

    def after_attempt(retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        if outcome is not None and not outcome.failed:
            discard_response(outcome.result())

    def before_sleep(retry_state: RetryCallState) -> None:
        wait = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            f"HTTP attempt {retry_state.attempt_number}/{limit} failed "
            f"({_describe(retry_state)}). Retrying in {wait:.2f}s..."
        )

    def exhausted(retry_state: RetryCallState) -> None:
        logger.error(
            f"HTTP {request.method} {request.url} failed after {retry_state.attempt_number} attempts "
            f"({_describe(retry_state)})"
        )
        raise MaxAttemptsExceeded(retry_state.attempt_number) from None

    retrying = Retrying(
        sleep=sleep,
        stop=stop_after_attempt(limit),
        wait=wait_retry_after(options.backoff, clock or utcnow, limit),
        retry=retry_if_exception(is_retryable_error) | retry_if_result(is_retryable_response),
        before=before_attempt,
        after=after_attempt,
        before_sleep=before_sleep,
        retry_error_callback=exhausted,
    )
    return retrying(executor.send, request)
