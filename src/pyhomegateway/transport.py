"""HTTP transport shared by all platform adapters.

This module performs raw HTTP requests and classifies transport failures into
gateway errors. All request methods return (status_code, response_data) tuples
so adapters can map platform-specific status codes themselves.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

from aiohttp import ClientError, ClientSession, ClientTimeout

from pyhomegateway.const import DEFAULT_TIMEOUT, PROBE_TIMEOUT
from pyhomegateway.exceptions import GatewayConnectionError, GatewayTimeoutError, NetworkError, RateLimitError


if TYPE_CHECKING:
    from types import TracebackType

_LOGGER = logging.getLogger(__name__)


def bearer_headers(token: str | None) -> dict[str, str]:
    """Build an Authorization header for a bearer token."""
    return {"Authorization": f"Bearer {token or ''}"}


def parse_retry_after(value: str | None) -> float | None:
    """Parse a Retry-After header given in seconds.

    Returns:
        Seconds to wait, or None when the header is missing or not numeric.
    """
    if value is None:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


class HttpTransport:
    """Thin wrapper around an aiohttp session.

    The transport either owns its session (created on ``async with``) or uses
    an injected one, which it never closes.

    Example:
        ```python
        async with HttpTransport() as transport:
            status, data = await transport.request(
                "GET",
                "https://api.lifx.com/v1/lights/all",
                headers=bearer_headers(api_key),
            )
        ```

    Attributes:
        timeout: Total timeout in seconds applied to every request.
    """

    def __init__(
        self,
        *,
        session: ClientSession | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the transport.

        Args:
            session: Optional aiohttp ClientSession. If not provided, one will be
                created when entering the context manager.
            timeout: Total timeout in seconds for each request.
        """
        self._session = session
        self._owns_session = session is None
        self.timeout = timeout

    def set_session(self, session: ClientSession) -> None:
        """Set the aiohttp session for this transport.

        The transport will not take ownership and will not close this session.

        Args:
            session: The aiohttp ClientSession to use for requests.
        """
        self._session = session
        self._owns_session = False

    @property
    def session(self) -> ClientSession | None:
        """Get the current session, if any."""
        return self._session

    async def __aenter__(self) -> HttpTransport:
        """Enter the context manager, creating a session if none was provided."""
        if self._session is None:
            self._session = ClientSession()
            self._owns_session = True
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the context manager, closing the session if this transport created it."""
        await self.close()

    async def close(self) -> None:
        """Close the session if it is owned by this transport."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def _validate_session(self) -> ClientSession:
        if self._session is None:
            msg = "Session not initialized. Use 'async with' or provide a session."
            raise RuntimeError(msg)

        if self._session.closed:
            msg = "Session is closed. Cannot make requests."
            raise RuntimeError(msg)

        return self._session

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        json_data: Any = None,
        form_data: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> tuple[int, Any]:
        """Make an HTTP request.

        Response bodies are decoded as JSON whenever the server declares a JSON
        content type, regardless of status, because several platforms report
        errors in JSON bodies.

        Args:
            method: HTTP method (GET, PUT, POST, DELETE).
            url: Absolute request URL.
            headers: Optional request headers.
            json_data: Optional JSON body.
            form_data: Optional form-encoded body.
            params: Optional query parameters.
            timeout: Optional per-request timeout overriding the default.

        Returns:
            Tuple of (status_code, response_data). Response data is None if the
            response is not JSON or cannot be decoded.

        Raises:
            RuntimeError: If session is not initialized or is closed.
            RateLimitError: If the server answers 429.
            GatewayTimeoutError: If the request times out.
            GatewayConnectionError: If the connection fails.
        """
        session = self._validate_session()
        client_timeout = ClientTimeout(total=timeout if timeout is not None else self.timeout)

        _LOGGER.debug("%s %s", method, url)

        try:
            async with session.request(
                method,
                url,
                headers=headers,
                json=json_data,
                data=form_data,
                params=params,
                timeout=client_timeout,
            ) as response:
                if response.status == HTTPStatus.TOO_MANY_REQUESTS:
                    retry_after = parse_retry_after(response.headers.get("Retry-After"))
                    msg = f"Rate limited by {response.url.host}"
                    raise RateLimitError(msg, retry_after=retry_after)

                response_data = None
                # Substring match handles charset parameters
                if "json" in response.content_type:
                    try:
                        response_data = await response.json(content_type=None)
                    except ValueError:
                        _LOGGER.debug("Invalid JSON body from %s", url)

                return response.status, response_data

        except TimeoutError as exc:
            msg = f"Request to {url} timed out"
            raise GatewayTimeoutError(msg) from exc

        except ClientError as exc:
            msg = f"Failed to connect to {url}: {exc}"
            raise GatewayConnectionError(msg) from exc

    async def probe(self, url: str, *, timeout: float = PROBE_TIMEOUT) -> bool:
        """Check whether a URL answers 200 OK.

        Args:
            url: URL to probe.
            timeout: Timeout in seconds for the probe.

        Returns:
            True if the URL answered 200, False on any other status or network failure.
        """
        try:
            status, _ = await self.request("GET", url, timeout=timeout)
        except NetworkError as exc:
            _LOGGER.debug("Probe of %s failed: %s", url, exc)
            return False
        return status == HTTPStatus.OK
