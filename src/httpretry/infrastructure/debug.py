"""Debug executor: dumps every exchange passing through an executor."""

from __future__ import annotations

import logging
from typing import List, Optional, TextIO, Union

import requests

from httpretry.domain.errors import InvalidArgument
from httpretry.infrastructure.executor import Executor

logger = logging.getLogger(__name__)

PREFIX = "debug-transport:"


def _format_body(body: Union[None, str, bytes]) -> str:
    if body is None:
        return ""
    if isinstance(body, bytes):
        return body.decode("utf-8", errors="replace")
    if isinstance(body, str):
        return body
    return f"<{type(body).__name__} body>"


def dump_request(request: requests.PreparedRequest) -> str:
    lines: List[str] = [f"{request.method} {request.url}"]
    lines.extend(f"{name}: {value}" for name, value in request.headers.items())
    lines.append("")
    lines.append(_format_body(request.body))
    return "\n".join(lines)


def dump_response(response: requests.Response) -> str:
    lines: List[str] = [f"HTTP {response.status_code} {response.reason or ''}".rstrip()]
    lines.extend(f"{name}: {value}" for name, value in response.headers.items())
    lines.append("")
    # Reading .content caches the body, so the caller can still consume it
    lines.append(_format_body(response.content))
    return "\n".join(lines)


class DebugExecutor(Executor):
    """Executor decorator that dumps requests and responses.

    Without a writer the dump goes to this module's logger at DEBUG level.
    """

    def __init__(self, inner: Executor, writer: Optional[TextIO] = None):
        if inner is None:
            raise InvalidArgument("missing executor")
        self.inner = inner
        self.writer = writer

    def _emit(self, message: str) -> None:
        if self.writer is None:
            logger.debug(f"{PREFIX} {message}")
        else:
            print(f"{PREFIX} {message}", file=self.writer)

    def send(self, request: requests.PreparedRequest) -> requests.Response:
        self._emit("======== request ==========")
        self._emit(dump_request(request))

        try:
            response = self.inner.send(request)
        except Exception as e:
            self._emit(f"failed to request: {e}")
            raise

        self._emit("======== response =========")
        try:
            self._emit(dump_response(response))
        except requests.exceptions.RequestException as e:
            self._emit(f"failed to dump response: {e}")
        return response


def inject_debug(executor: Executor, writer: Optional[TextIO] = None) -> DebugExecutor:
    """Wrap an executor so that every exchange is dumped."""
    if executor is None:
        raise InvalidArgument("missing executor")
    if isinstance(executor, DebugExecutor):
        return executor
    return DebugExecutor(executor, writer)


def remove_debug(executor: Executor) -> Executor:
    """Undo inject_debug; executors that are not wrapped are returned as-is."""
    if executor is None:
        raise InvalidArgument("missing executor")
    if isinstance(executor, DebugExecutor):
        return executor.inner
    return executor
