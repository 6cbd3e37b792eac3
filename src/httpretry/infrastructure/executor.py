"""HTTP executors: perform exactly one request/response exchange.

Executors never retry. They report network-level failures as TransportError
tagged with timeout/temporary flags so the retry engine can classify them.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional, Tuple, Union

import requests

from httpretry.domain.errors import TransportError

logger = logging.getLogger(__name__)

Timeout = Union[None, float, Tuple[float, float]]


class Executor(ABC):
    """Abstract base class for HTTP executors"""

    @abstractmethod
    def send(self, request: requests.PreparedRequest) -> requests.Response:
        """Send one request

        Args:
            request: Prepared request to send

        Returns:
            Response (any status code)

        Raises:
            TransportError: If the exchange failed below the HTTP layer
        """
        pass


class RequestsExecutor(Executor):
    """Executor backed by a requests.Session"""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: Timeout = None,
        verify: bool = True,
        allow_redirects: bool = True,
    ):
        """Initialize executor

        Args:
            session: Session to send through (a private one is created if None)
            timeout: Per-attempt timeout in seconds, or (connect, read)
            verify: Verify TLS certificates
            allow_redirects: Follow redirects
        """
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.verify = verify
        self.allow_redirects = allow_redirects

    def send(self, request: requests.PreparedRequest) -> requests.Response:
        logger.debug(f"HTTP {request.method} {request.url}")
        try:
            return self.session.send(
                request,
                timeout=self.timeout,
                verify=self.verify,
                allow_redirects=self.allow_redirects,
            )
        except requests.exceptions.Timeout as e:
            # ConnectTimeout is also a ConnectionError, so this goes first
            raise TransportError(f"request timed out: {e}", timeout=True) from e
        except (requests.exceptions.SSLError, requests.exceptions.ProxyError) as e:
            raise TransportError(f"connection failed: {e}") from e
        except (requests.exceptions.ConnectionError, requests.exceptions.ChunkedEncodingError) as e:
            raise TransportError(f"connection failed: {e}", temporary=True) from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"HTTP request failed: {e}") from e

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "RequestsExecutor":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
