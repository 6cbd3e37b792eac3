"""Retrying HTTP client: request builder + executor + retry engine."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import requests

from httpretry.domain.config import AppConfig
from httpretry.infrastructure.cancellation import CancellationToken
from httpretry.infrastructure.debug import DebugExecutor
from httpretry.infrastructure.executor import Executor, RequestsExecutor
from httpretry.infrastructure.request_builder import RequestBuilder
from httpretry.infrastructure.retry import (
    Clock,
    RetryOptions,
    Sleeper,
    retry,
    retry_options_from_config,
)

logger = logging.getLogger(__name__)


class RetryingClient:
    """Sends requests relative to a base URL, retrying transient failures"""

    def __init__(
        self,
        base_url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        executor: Optional[Executor] = None,
        options: Optional[RetryOptions] = None,
        timeout: Optional[float] = None,
        verify: bool = True,
        debug: bool = False,
        sleep: Optional[Sleeper] = None,
        clock: Optional[Clock] = None,
    ):
        """Initialize client

        Args:
            base_url: Absolute base URL
            headers: Default headers for every request
            executor: Executor to send through (default: RequestsExecutor)
            options: Retry options (default: RetryOptions())
            timeout: Per-attempt timeout for the default executor
            verify: TLS verification for the default executor
            debug: Dump every exchange through DebugExecutor
            sleep: Sleeper used between attempts
            clock: Clock used for Retry-After dates
        """
        self.builder = RequestBuilder(base_url, headers)
        self._owned: Optional[RequestsExecutor] = None
        if executor is None:
            executor = self._owned = RequestsExecutor(timeout=timeout, verify=verify)
        if debug:
            executor = DebugExecutor(executor)
        self.executor = executor
        self.options = options or RetryOptions()
        self._sleep = sleep
        self._clock = clock
        logger.info(
            f"HTTP client initialized for {self.builder.base_url} "
            f"(max_attempts={self.options.max_attempts}, backoff={self.options.backoff!r})"
        )

    @classmethod
    def from_config(cls, config: AppConfig, **overrides: Any) -> "RetryingClient":
        """Create client from application configuration

        Args:
            config: Validated application configuration
            **overrides: Constructor arguments taking precedence over config

        Raises:
            ValueError: If no base_url is configured or given
        """
        http = config.http
        base_url = overrides.pop("base_url", None) or http.base_url
        if not base_url:
            raise ValueError(
                "Base URL is required. "
                "Set HTTPRETRY_BASE_URL environment variable or provide http.base_url in config."
            )
        kwargs: dict = {
            "headers": http.headers,
            "options": retry_options_from_config(config.retry),
            "timeout": http.timeout,
            "verify": http.verify,
            "debug": http.debug,
        }
        kwargs.update(overrides)
        return cls(base_url, **kwargs)

    def request(
        self,
        method: str,
        path: str = "",
        *,
        cancel: Optional[CancellationToken] = None,
        **request_options: Any,
    ) -> requests.Response:
        """Build and send a request through the retry engine

        Args:
            method: HTTP method
            path: Path relative to the base URL
            cancel: Optional cancellation token
            **request_options: headers, params, body, json, form, xml, binary

        Returns:
            Final response (any non-retryable status)
        """
        prepared = self.builder.new_request(method, path, **request_options)
        return retry(
            self.executor,
            prepared,
            self.options,
            sleep=self._sleep,
            clock=self._clock,
            cancel=cancel,
        )

    def close(self) -> None:
        """Close the default executor; a caller-supplied one is left open"""
        if self._owned is not None:
            self._owned.close()

    def __enter__(self) -> "RetryingClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def get(self, path: str = "", **kwargs: Any) -> requests.Response:
        return self.request("GET", path, **kwargs)

    def post(self, path: str = "", **kwargs: Any) -> requests.Response:
        return self.request("POST", path, **kwargs)

    def put(self, path: str = "", **kwargs: Any) -> requests.Response:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str = "", **kwargs: Any) -> requests.Response:
        return self.request("DELETE", path, **kwargs)
