"""Shared fixtures: scripted executors and real requests.Response objects"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

import pytest
import requests

from httpretry.domain.errors import TransportError
from httpretry.infrastructure.executor import Executor


class TrackedResponse(requests.Response):
    """Response that records whether it was closed"""

    def __init__(self):
        super().__init__()
        self.close_calls = 0

    @property
    def closed(self) -> bool:
        return self.close_calls > 0

    def close(self):
        self.close_calls += 1
        super().close()


def build_response(
    status_code: int,
    body: bytes = b"",
    headers: Optional[Dict[str, str]] = None,
) -> TrackedResponse:
    r = TrackedResponse()
    r.status_code = status_code
    r.url = "http://example.test/"
    r._content = body  # type: ignore[attr-defined]
    r._content_consumed = True  # type: ignore[attr-defined]
    for name, value in (headers or {}).items():
        r.headers[name] = value
    return r


Step = Union[int, TrackedResponse, BaseException]


class ScriptedExecutor(Executor):
    """Executor replaying a fixed script of statuses, responses or errors.

    Once the script is exhausted it answers 200.
    """

    def __init__(self, script: List[Step]):
        self.script = list(script)
        self.calls = 0
        self.requests: List[requests.PreparedRequest] = []
        self.responses: List[TrackedResponse] = []

    def send(self, request):
        self.calls += 1
        self.requests.append(request)
        step = self.script.pop(0) if self.script else 200
        if isinstance(step, BaseException):
            raise step
        if isinstance(step, int):
            step = build_response(step, b"body")
        self.responses.append(step)
        return step


class RecordingSleeper:
    """Sleeper recording requested waits instead of sleeping"""

    def __init__(self):
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(float(seconds))


@pytest.fixture
def prepared_request() -> requests.PreparedRequest:
    return requests.Request("GET", "http://example.test/resource").prepare()


@pytest.fixture
def sleeper() -> RecordingSleeper:
    return RecordingSleeper()


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def timeout_error() -> TransportError:
    return TransportError("timeout", timeout=True)


@pytest.fixture
def temporary_error() -> TransportError:
    return TransportError("temporary", temporary=True)


@pytest.fixture
def make_response():
    return build_response


@pytest.fixture
def make_executor():
    return ScriptedExecutor
