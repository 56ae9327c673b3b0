"""HTTP transport used by the Szene1 API client.

The client only needs a way to send one request and get back the status,
reason phrase and raw body. :class:`HttpxTransport` does this with httpx;
anything implementing :class:`Transport` can be injected instead.
"""

import threading
from dataclasses import dataclass
from typing import Protocol

import httpx


@dataclass(frozen=True)
class TransportResponse:
    """Status line and raw body of an HTTP response."""

    status_code: int
    reason_phrase: str
    content: bytes


class Transport(Protocol):
    """Sends a single HTTP request.

    Low-level I/O failures (connection refused, DNS, timeouts) are raised as
    is, either as httpx.RequestError or as OSError; HTTP error statuses are
    returned, not raised.
    """

    def send(
        self,
        method: str,
        url: str,
        *,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
        timeout: float,
    ) -> TransportResponse: ...

    def close(self) -> None: ...


class HttpxTransport:
    """Transport backed by httpx.

    Thread-safe through thread-local storage of httpx.Client instances.
    Can be used as a context manager for automatic cleanup.
    """

    def __init__(self, transport: httpx.BaseTransport | None = None):
        """Initialize the transport.

        Args:
            transport: Optional httpx transport for the underlying clients,
                e.g. ``httpx.MockTransport`` in tests.
        """
        self._transport = transport
        self._local = threading.local()

    @property
    def client(self) -> httpx.Client:
        """Get or create the thread-local httpx client.

        Returns:
            Thread-local httpx.Client instance.
        """
        if not hasattr(self._local, "client") or self._local.client.is_closed:
            self._local.client = httpx.Client(
                transport=self._transport,
                follow_redirects=True,
            )
        return self._local.client

    def __enter__(self):
        """Enter context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager and cleanup resources."""
        self.close()

    def close(self):
        """Close the thread-local HTTP client if open."""
        if hasattr(self._local, "client") and not self._local.client.is_closed:
            self._local.client.close()

    def send(
        self,
        method: str,
        url: str,
        *,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
        timeout: float,
    ) -> TransportResponse:
        """Send a request and read the whole response.

        Raises:
            httpx.RequestError: On network failure or timeout.
        """
        response = self.client.request(
            method,
            url,
            content=content,
            headers=headers,
            timeout=timeout,
        )
        return TransportResponse(
            status_code=response.status_code,
            reason_phrase=response.reason_phrase,
            content=response.content,
        )
