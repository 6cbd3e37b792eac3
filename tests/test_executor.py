"""Tests for RequestsExecutor"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from httpretry.domain.errors import TransportError
from httpretry.infrastructure.classifier import is_retryable_error
from httpretry.infrastructure.executor import Executor, RequestsExecutor


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


class TestRequestsExecutor:
    """Tests for sending through a requests.Session"""

    def test_is_executor(self):
        assert isinstance(RequestsExecutor(), Executor)

    def test_send_passes_options(self, session, prepared_request, make_response):
        """Test timeout, verify and redirects are forwarded to the session"""
        session.send.return_value = make_response(200)
        executor = RequestsExecutor(session=session, timeout=(1.0, 5.0), verify=False, allow_redirects=False)

        resp = executor.send(prepared_request)

        assert resp.status_code == 200
        session.send.assert_called_once_with(
            prepared_request, timeout=(1.0, 5.0), verify=False, allow_redirects=False
        )

    def test_error_status_is_returned(self, session, prepared_request, make_response):
        """Test HTTP error statuses are responses, not exceptions"""
        session.send.return_value = make_response(503)
        assert RequestsExecutor(session=session).send(prepared_request).status_code == 503

    @pytest.mark.parametrize(
        "raised, timeout, temporary",
        [
            (requests.exceptions.ReadTimeout("read"), True, False),
            (requests.exceptions.ConnectTimeout("connect"), True, False),
            (requests.exceptions.ConnectionError("reset"), False, True),
            (requests.exceptions.ChunkedEncodingError("chunk"), False, True),
            (requests.exceptions.SSLError("cert"), False, False),
            (requests.exceptions.ProxyError("proxy"), False, False),
            (requests.exceptions.InvalidURL("url"), False, False),
            (requests.exceptions.TooManyRedirects("loop"), False, False),
        ],
    )
    def test_exception_mapping(self, session, prepared_request, raised, timeout, temporary):
        """Test requests exceptions are tagged for classification"""
        session.send.side_effect = raised
        executor = RequestsExecutor(session=session)

        with pytest.raises(TransportError) as exc_info:
            executor.send(prepared_request)

        error = exc_info.value
        assert error.is_timeout() is timeout
        assert error.is_temporary() is temporary
        assert error.__cause__ is raised
        assert is_retryable_error(error) is (timeout or temporary)

    def test_unrelated_errors_propagate(self, session, prepared_request):
        """Test non-requests errors are not wrapped"""
        session.send.side_effect = KeyError("x")
        with pytest.raises(KeyError):
            RequestsExecutor(session=session).send(prepared_request)


class TestSessionLifecycle:
    """Tests for session ownership"""

    def test_owned_session_closed(self):
        with patch("httpretry.infrastructure.executor.requests.Session") as mock_session_class:
            mock_session = MagicMock()
            mock_session_class.return_value = mock_session
            with RequestsExecutor():
                pass
            mock_session.close.assert_called_once()

    def test_borrowed_session_left_open(self, session):
        executor = RequestsExecutor(session=session)
        executor.close()
        session.close.assert_not_called()
