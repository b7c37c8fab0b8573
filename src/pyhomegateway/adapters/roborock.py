"""Roborock vacuum adapter.

Roborock robots are driven through the cloud with the same ``app_*`` method
names the robots accept locally.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pyhomegateway.actions import Action
from pyhomegateway.adapters.base import (
    as_dict,
    as_int,
    as_list,
    auth_unsupported,
    check_action,
    check_credentials,
    no_command,
    raise_for_status,
)
from pyhomegateway.const import ROBOROCK_AUTH_URL, ROBOROCK_BASE_URL, ROBOROCK_SCOPE, ROBOROCK_TOKEN_URL
from pyhomegateway.exceptions import (
    ActionExecutionFailedError,
    DeviceDiscoveryFailedError,
    DeviceStatusFailedError,
)
from pyhomegateway.models import DeviceStatus, DeviceType, Platform, PlatformDevice
from pyhomegateway.oauth import OAuth2Flow, authorize
from pyhomegateway.transport import bearer_headers


if TYPE_CHECKING:
    from pyhomegateway.actions import ActionParams
    from pyhomegateway.config import OAuthClientConfig
    from pyhomegateway.models import Credentials
    from pyhomegateway.oauth import WebAuthSession
    from pyhomegateway.transport import HttpTransport

_LOGGER = logging.getLogger(__name__)

_METHODS = {
    Action.START_CLEANING: "app_start",
    Action.STOP_CLEANING: "app_stop",
    Action.SPOT_CLEAN: "app_spot",
    Action.RETURN_TO_BASE: "app_charge",
    Action.TURN_ON: "app_start",
    Action.TURN_OFF: "app_stop",
}

# Robot state codes
_CLEANING_STATES = frozenset({5, 11, 17, 18})
_IDLE_STATES = frozenset({2, 3, 8, 100})


class RoborockAdapter:
    """Adapter for Roborock vacuums."""

    platform = Platform.ROBOROCK
    simulated = False
    supported_actions = frozenset(_METHODS)

    def __init__(
        self,
        transport: HttpTransport,
        *,
        client: OAuthClientConfig | None = None,
        web_auth: WebAuthSession | None = None,
        base_url: str = ROBOROCK_BASE_URL,
        authorize_url: str = ROBOROCK_AUTH_URL,
        token_url: str = ROBOROCK_TOKEN_URL,
    ) -> None:
        self._transport = transport
        self._web_auth = web_auth
        self._base_url = base_url.rstrip("/")
        self._flow = (
            OAuth2Flow(
                platform=self.platform,
                transport=transport,
                client=client,
                authorize_url=authorize_url,
                token_url=token_url,
                scope=ROBOROCK_SCOPE,
            )
            if client is not None
            else None
        )

    async def authenticate(self) -> Credentials:
        """Run the Roborock OAuth2 consent flow."""
        return await authorize(self.platform, self._flow, self._web_auth)

    async def authenticate_with_key(self, key: str) -> Credentials:
        """Roborock requires OAuth2."""
        raise auth_unsupported(self.platform, "API key")

    async def authenticate_with_token(self, token: str, host: str | None = None) -> Credentials:
        """Roborock is not a local hub."""
        raise auth_unsupported(self.platform, "hub token")

    async def discover(self, credentials: Credentials) -> list[PlatformDevice]:
        """List every robot bound to the account."""
        check_credentials(self.platform, credentials)

        status, data = await self._transport.request(
            "GET", f"{self._base_url}/devices", headers=bearer_headers(credentials.access_token)
        )
        raise_for_status(status, DeviceDiscoveryFailedError, "Device listing")

        devices = [
            PlatformDevice(
                id=str(item["duid"]),
                name=str(item.get("name") or item["duid"]),
                type=DeviceType.VACUUM,
                platform=self.platform,
                capabilities=("vacuum", "mapping"),
                properties={"model": str(item.get("model", ""))},
                is_online=bool(item.get("online", False)),
            )
            for item in as_list(as_dict(data).get("devices"))
            if isinstance(item, dict) and item.get("duid")
        ]
        _LOGGER.debug("Discovered %d Roborock devices", len(devices))
        return devices

    def build_command(self, action: Action, params: ActionParams | None = None) -> dict[str, Any]:
        """Translate an action into a Roborock method call."""
        if action in _METHODS:
            return {"method": _METHODS[action], "params": []}
        return no_command(self.platform, action, params)

    async def execute(
        self,
        action: Action,
        device: PlatformDevice,
        credentials: Credentials,
        params: ActionParams | None = None,
    ) -> None:
        """Call a method on one robot."""
        check_credentials(self.platform, credentials)
        check_action(self.platform, action, device, self.supported_actions)

        command = self.build_command(action, params)
        if not command:
            return

        status, _ = await self._transport.request(
            "POST",
            f"{self._base_url}/devices/{device.id}/commands",
            headers=bearer_headers(credentials.access_token),
            json_data=command,
        )
        raise_for_status(status, ActionExecutionFailedError, action.display_title)

    async def fetch_status(self, device: PlatformDevice, credentials: Credentials) -> DeviceStatus:
        """Read one robot's state code and battery."""
        check_credentials(self.platform, credentials)

        status, data = await self._transport.request(
            "GET", f"{self._base_url}/devices/{device.id}/status", headers=bearer_headers(credentials.access_token)
        )
        raise_for_status(status, DeviceStatusFailedError, "Robot status")

        details = as_dict(data)
        state = as_int(details.get("state"))

        return DeviceStatus(
            is_online=bool(details.get("online", True)),
            is_on=state is not None and state not in _IDLE_STATES,
            is_cleaning=state in _CLEANING_STATES,
            battery=as_int(details.get("battery")),
        )
