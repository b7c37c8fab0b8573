"""OAuth2 authorization-code flow shared by the cloud platforms.

The interactive part of the flow (showing the platform's login page and
capturing the redirect) is delegated to a :data:`WebAuthSession`, an async
callable that takes the authorization URL and the callback scheme and returns
the full callback URL. :class:`LoopbackWebAuth` is a ready-made session that
opens the system browser and captures the redirect on a local aiohttp server.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import webbrowser
from collections.abc import Awaitable, Callable
from datetime import timedelta
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

from aiohttp import web
from yarl import URL

from pyhomegateway.const import OAUTH_STATE_BYTES
from pyhomegateway.exceptions import AuthenticationFailedError, InvalidCredentialsError
from pyhomegateway.models import Credentials, utcnow


if TYPE_CHECKING:
    from pyhomegateway.config import OAuthClientConfig
    from pyhomegateway.models import Platform
    from pyhomegateway.transport import HttpTransport

_LOGGER = logging.getLogger(__name__)

WebAuthSession = Callable[[str, str], Awaitable[str]]


def credentials_from_token_response(platform: Platform, data: Any) -> Credentials:
    """Build credentials from an OAuth2 token endpoint response.

    Args:
        platform: Platform the token belongs to.
        data: Decoded JSON body with ``access_token`` and optionally
            ``refresh_token`` and ``expires_in``.

    Returns:
        Credentials with expiry computed from ``expires_in``.

    Raises:
        AuthenticationFailedError: If the response carries no access token.
    """
    if not isinstance(data, dict) or not data.get("access_token"):
        msg = "token response did not include an access token"
        raise AuthenticationFailedError(msg)

    expires_at = None
    expires_in = data.get("expires_in")
    if isinstance(expires_in, int | float) and not isinstance(expires_in, bool):
        expires_at = utcnow() + timedelta(seconds=expires_in)

    return Credentials(
        platform=platform,
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token"),
        expires_at=expires_at,
        user_id=data.get("user_id"),
    )


class OAuth2Flow:
    """Authorization-code grant for one platform.

    Example:
        ```python
        flow = OAuth2Flow(
            platform=Platform.NEST,
            transport=transport,
            client=OAuthClientConfig(client_id="id", client_secret="secret"),
            authorize_url=NEST_AUTH_URL,
            token_url=NEST_TOKEN_URL,
            scope=NEST_SCOPE,
            extra_params={"access_type": "offline", "prompt": "consent"},
        )
        credentials = await flow.run(LoopbackWebAuth())
        ```
    """

    def __init__(
        self,
        *,
        platform: Platform,
        transport: HttpTransport,
        client: OAuthClientConfig,
        authorize_url: str,
        token_url: str,
        scope: str,
        extra_params: dict[str, str] | None = None,
    ) -> None:
        """Initialize the flow.

        Args:
            platform: Platform being authorized.
            transport: HTTP transport for the token exchange.
            client: Client registration for the platform.
            authorize_url: Platform authorization endpoint.
            token_url: Platform token endpoint.
            scope: Default scope, overridden by ``client.scope`` when set.
            extra_params: Additional authorization URL parameters.
        """
        self.platform = platform
        self._transport = transport
        self._client = client
        self._authorize_url = authorize_url
        self._token_url = token_url
        self._scope = client.scope or scope
        self._extra_params = extra_params or {}

    @property
    def redirect_uri(self) -> str:
        """Get the redirect URI sent to the platform."""
        return self._client.redirect_uri_for(self.platform)

    @property
    def callback_scheme(self) -> str:
        """Get the scheme of the redirect URI."""
        return URL(self.redirect_uri).scheme

    def build_authorization_url(self, state: str) -> str:
        """Build the URL of the platform's consent page.

        Args:
            state: Anti-CSRF value echoed back in the callback.
        """
        query = {
            "response_type": "code",
            "client_id": self._client.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": self._scope,
            "state": state,
            **self._extra_params,
        }
        return str(URL(self._authorize_url).update_query(query))

    def extract_code(self, callback_url: str, expected_state: str) -> str:
        """Extract the authorization code from a callback URL.

        Raises:
            AuthenticationFailedError: If the platform returned an error, the
                state does not match, or no code was received.
        """
        query = URL(callback_url).query

        if "error" in query:
            reason = query.get("error_description") or query["error"]
            raise AuthenticationFailedError(reason)

        if query.get("state") != expected_state:
            msg = "state mismatch in authorization callback"
            raise AuthenticationFailedError(msg)

        code = query.get("code")
        if not code:
            msg = "No authorization code received"
            raise AuthenticationFailedError(msg)

        return code

    async def exchange_code(self, code: str) -> Credentials:
        """Exchange an authorization code for tokens.

        Raises:
            InvalidCredentialsError: If the platform rejects the client or code.
            AuthenticationFailedError: If the exchange fails otherwise.
        """
        return await self._token_request(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.redirect_uri,
            }
        )

    async def refresh(self, credentials: Credentials) -> Credentials:
        """Obtain a new access token with a refresh token.

        The refresh token is carried over when the platform does not rotate it.

        Raises:
            AuthenticationFailedError: If there is no refresh token or the
                refresh fails.
        """
        if not credentials.refresh_token:
            msg = "no refresh token available"
            raise AuthenticationFailedError(msg)

        refreshed = await self._token_request(
            {"grant_type": "refresh_token", "refresh_token": credentials.refresh_token}
        )
        if refreshed.refresh_token is None:
            refreshed = Credentials(
                platform=refreshed.platform,
                access_token=refreshed.access_token,
                refresh_token=credentials.refresh_token,
                expires_at=refreshed.expires_at,
                user_id=refreshed.user_id or credentials.user_id,
            )
        return refreshed

    async def _token_request(self, form: dict[str, str]) -> Credentials:
        form = {
            **form,
            "client_id": self._client.client_id,
            "client_secret": self._client.client_secret,
        }
        status, data = await self._transport.request("POST", self._token_url, form_data=form)

        if status in (HTTPStatus.BAD_REQUEST, HTTPStatus.UNAUTHORIZED):
            _LOGGER.debug("Token endpoint for %s rejected request: %s", self.platform.value, data)
            raise InvalidCredentialsError

        if status != HTTPStatus.OK:
            msg = f"token exchange failed with status {status}"
            raise AuthenticationFailedError(msg)

        return credentials_from_token_response(self.platform, data)

    async def run(self, web_auth: WebAuthSession) -> Credentials:
        """Run the whole flow: consent page, callback and token exchange.

        Args:
            web_auth: Interactive session that returns the callback URL.

        Returns:
            Credentials for the platform.
        """
        state = secrets.token_urlsafe(OAUTH_STATE_BYTES)
        authorization_url = self.build_authorization_url(state)

        _LOGGER.debug("Starting OAuth2 flow for %s", self.platform.value)
        callback_url = await web_auth(authorization_url, self.callback_scheme)

        code = self.extract_code(callback_url, state)
        credentials = await self.exchange_code(code)
        _LOGGER.info("OAuth2 authorization completed for %s", self.platform.value)
        return credentials


async def authorize(
    platform: Platform,
    flow: OAuth2Flow | None,
    web_auth: WebAuthSession | None,
) -> Credentials:
    """Run an adapter's OAuth2 flow, failing cleanly when it is not configured.

    Raises:
        AuthenticationFailedError: If the platform has no client registration
            or no web-auth session is available.
    """
    if flow is None:
        msg = f"no OAuth client configured for {platform.display_name}"
        raise AuthenticationFailedError(msg)
    if web_auth is None:
        msg = "no interactive web authentication session available"
        raise AuthenticationFailedError(msg)
    return await flow.run(web_auth)


class LoopbackWebAuth:
    """Web-auth session that opens a browser and captures the redirect locally.

    The platform's redirect URI must be registered as ``redirect_uri`` of this
    session (``http://127.0.0.1:<port>/oauth`` by default). The callback scheme
    argument is ignored because the redirect always arrives over HTTP.

    Attributes:
        host: Interface the callback server listens on.
        port: Port the callback server listens on.
        timeout: Seconds to wait for the user to finish the consent page.
    """

    def __init__(
        self,
        *,
        host: str = "127.0.0.1",
        port: int = 8765,
        timeout: float = 300.0,
        open_browser: Callable[[str], Any] = webbrowser.open,
    ) -> None:
        """Initialize the session.

        Args:
            host: Interface for the callback server.
            port: Port for the callback server.
            timeout: Seconds to wait for the callback.
            open_browser: Function that shows the authorization URL to the user.
        """
        self.host = host
        self.port = port
        self.timeout = timeout
        self._open_browser = open_browser

    @property
    def redirect_uri(self) -> str:
        """Get the redirect URI served by this session."""
        return f"http://{self.host}:{self.port}/oauth"

    async def __call__(self, authorization_url: str, callback_scheme: str) -> str:
        """Show the consent page and wait for the redirect.

        Returns:
            The full callback URL.

        Raises:
            AuthenticationFailedError: If no callback arrives in time.
        """
        callback: asyncio.Future[str] = asyncio.get_running_loop().create_future()

        async def handle_callback(request: web.Request) -> web.Response:
            if not callback.done():
                callback.set_result(str(request.url))
            return web.Response(text="Authorization complete. You can close this window.")

        app = web.Application()
        app.router.add_get("/{tail:.*}", handle_callback)
        runner = web.AppRunner(app)
        await runner.setup()

        try:
            site = web.TCPSite(runner, self.host, self.port)
            await site.start()
            self._open_browser(authorization_url)
            return await asyncio.wait_for(callback, self.timeout)
        except TimeoutError as exc:
            msg = "timed out waiting for authorization"
            raise AuthenticationFailedError(msg) from exc
        finally:
            await runner.cleanup()
