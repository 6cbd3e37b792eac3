"""Tests for RetryingClient"""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest

from httpretry.application.client import RetryingClient
from httpretry.domain.config import AppConfig
from httpretry.domain.errors import InvalidArgument, MaxAttemptsExceeded
from httpretry.infrastructure.backoff import ConstantBackoff
from httpretry.infrastructure.debug import DebugExecutor
from httpretry.infrastructure.executor import RequestsExecutor
from httpretry.infrastructure.retry import RetryOptions


class TestRetryingClient:
    """Tests for sending through the client"""

    def test_request_built_and_retried(self, make_executor, sleeper):
        """Test requests resolve against the base URL and are retried"""
        executor = make_executor([503, 429])
        client = RetryingClient(
            "https://api.example.test/v1",
            headers={"User-Agent": "httpretry-tests"},
            executor=executor,
            options=RetryOptions(max_attempts=3, backoff=ConstantBackoff(0.5)),
            sleep=sleeper,
        )

        resp = client.post("items", json={"name": "widget"}, params={"dry_run": "1"})

        assert resp.status_code == 200
        assert executor.calls == 3
        sent = executor.requests[-1]
        assert sent.url == "https://api.example.test/v1/items?dry_run=1"
        assert sent.headers["User-Agent"] == "httpretry-tests"
        assert json.loads(sent.body) == {"name": "widget"}
        assert sleeper.calls == [0.5, 0.5]

    def test_exhaustion_surfaces(self, make_executor, sleeper):
        executor = make_executor([500, 500])
        client = RetryingClient(
            "https://api.example.test", executor=executor, options=RetryOptions(max_attempts=2), sleep=sleeper
        )
        with pytest.raises(MaxAttemptsExceeded):
            client.get("health")

    @pytest.mark.parametrize("method", ["get", "post", "put", "delete"])
    def test_method_shortcuts(self, make_executor, sleeper, method):
        executor = make_executor([200])
        client = RetryingClient("https://api.example.test", executor=executor, sleep=sleeper)
        getattr(client, method)("x")
        assert executor.requests[0].method == method.upper()

    def test_debug_wraps_executor(self, make_executor):
        client = RetryingClient("https://api.example.test", executor=make_executor([]), debug=True)
        assert isinstance(client.executor, DebugExecutor)

    def test_default_executor(self):
        client = RetryingClient("https://api.example.test", timeout=3.0)
        assert isinstance(client.executor, RequestsExecutor)
        assert client.executor.timeout == 3.0
        assert client.options.max_attempts == 15

    def test_invalid_base_url(self):
        with pytest.raises(InvalidArgument):
            RetryingClient("nowhere")


class TestFromConfig:
    """Tests for RetryingClient.from_config"""

    def test_from_config(self):
        config = AppConfig(
            retry={"max_attempts": 4, "backoff": {"strategy": "constant", "duration": 1.0}},
            http={"base_url": "https://api.example.test", "timeout": 7.0, "verify": False},
        )
        client = RetryingClient.from_config(config)
        assert client.options.max_attempts == 4
        assert isinstance(client.options.backoff, ConstantBackoff)
        assert client.executor.timeout == 7.0
        assert client.executor.verify is False
        assert client.builder.base_url == "https://api.example.test"

    def test_overrides_take_precedence(self, make_executor):
        config = AppConfig(http={"base_url": "https://api.example.test"})
        executor = make_executor([])
        client = RetryingClient.from_config(config, base_url="https://other.example.test", executor=executor)
        assert client.executor is executor
        assert client.builder.base_url == "https://other.example.test"

    def test_missing_base_url(self):
        with pytest.raises(ValueError, match="Base URL is required"):
            RetryingClient.from_config(AppConfig())

    def test_debug_from_config(self):
        config = AppConfig(http={"base_url": "https://api.example.test", "debug": True})
        with patch("httpretry.application.client.DebugExecutor") as mock_debug:
            RetryingClient.from_config(config)
        mock_debug.assert_called_once()

    def test_timeout_override(self):
        """Test a timeout override reaches the default executor"""
        config = AppConfig(http={"base_url": "https://api.example.test", "timeout": 30.0})
        client = RetryingClient.from_config(config, timeout=5.0)
        assert client.executor.timeout == 5.0

    def test_verify_override(self):
        config = AppConfig(http={"base_url": "https://api.example.test"})
        client = RetryingClient.from_config(config, verify=False)
        assert client.executor.verify is False


class TestClientLifecycle:
    """Tests for closing the client"""

    def test_close_closes_default_session(self):
        """Test the session of the default executor is closed with the client"""
        client = RetryingClient("https://api.example.test")
        with patch.object(client.executor.session, "close") as mock_close:
            client.close()
        mock_close.assert_called_once()

    def test_context_manager_closes_debug_wrapped_executor(self):
        """Test the owned executor is closed even behind the debug wrapper"""
        with patch("httpretry.application.client.RequestsExecutor") as mock_executor_cls:
            with RetryingClient("https://api.example.test", debug=True) as client:
                assert isinstance(client.executor, DebugExecutor)
        mock_executor_cls.return_value.close.assert_called_once()

    def test_supplied_executor_left_open(self):
        """Test a caller-supplied executor is not closed by the client"""
        executor = MagicMock(spec=RequestsExecutor)
        with RetryingClient("https://api.example.test", executor=executor):
            pass
        executor.close.assert_not_called()
