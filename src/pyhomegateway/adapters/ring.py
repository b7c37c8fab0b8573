"""Ring doorbell, camera and chime adapter."""

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
from pyhomegateway.const import RING_AUTH_URL, RING_BASE_URL, RING_SCOPE, RING_TOKEN_URL
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

# Listing key, device type and base capabilities
_DEVICE_GROUPS = (
    ("doorbots", DeviceType.CAMERA, ("camera", "motionDetection", "doorbell", "twoWayAudio")),
    ("stickup_cams", DeviceType.CAMERA, ("camera", "motionDetection", "twoWayAudio")),
    ("chimes", DeviceType.SPEAKER, ("audio", "notifications")),
)

_OPTIONAL_FEATURES = ("videoRecording", "nightVision")

_ENDPOINTS = {
    Action.TAKE_PHOTO: "take_photo",
    Action.START_RECORDING: "recording_status",
    Action.STOP_RECORDING: "recording_status",
}


class RingAdapter:
    """Adapter for Ring doorbells, cameras and chimes."""

    platform = Platform.RING
    simulated = False
    supported_actions = frozenset(_ENDPOINTS)

    def __init__(
        self,
        transport: HttpTransport,
        *,
        client: OAuthClientConfig | None = None,
        web_auth: WebAuthSession | None = None,
        base_url: str = RING_BASE_URL,
        authorize_url: str = RING_AUTH_URL,
        token_url: str = RING_TOKEN_URL,
    ) -> None:
        """Initialize the adapter.

        Args:
            transport: Shared HTTP transport.
            client: OAuth2 client registration; authentication fails without it.
            web_auth: Interactive session used for the consent page.
            base_url: Ring clients API base URL.
            authorize_url: Ring authorization endpoint.
            token_url: Ring token endpoint.
        """
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
                scope=RING_SCOPE,
            )
            if client is not None
            else None
        )

    async def authenticate(self) -> Credentials:
        """Run the Ring OAuth2 consent flow."""
        return await authorize(self.platform, self._flow, self._web_auth)

    async def authenticate_with_key(self, key: str) -> Credentials:
        """Ring requires OAuth2."""
        raise auth_unsupported(self.platform, "API key")

    async def authenticate_with_token(self, token: str, host: str | None = None) -> Credentials:
        """Ring is not a local hub."""
        raise auth_unsupported(self.platform, "hub token")

    async def discover(self, credentials: Credentials) -> list[PlatformDevice]:
        """List doorbells, stick-up cameras and chimes."""
        check_credentials(self.platform, credentials)

        status, data = await self._transport.request(
            "GET", f"{self._base_url}/ring_devices", headers=bearer_headers(credentials.access_token)
        )
        raise_for_status(status, DeviceDiscoveryFailedError, "Device listing")

        listing = as_dict(data)
        devices = []
        for key, device_type, base_capabilities in _DEVICE_GROUPS:
            for item in as_list(listing.get(key)):
                if not isinstance(item, dict) or item.get("id") is None:
                    continue
                features = as_dict(item.get("features"))
                capabilities = [*base_capabilities]
                if device_type is DeviceType.CAMERA:
                    capabilities.extend(feature for feature in _OPTIONAL_FEATURES if features.get(feature))
                devices.append(
                    PlatformDevice(
                        id=str(item["id"]),
                        name=str(item.get("description") or item["id"]),
                        type=device_type,
                        platform=self.platform,
                        capabilities=tuple(capabilities),
                        properties={"kind": str(item.get("kind", key))},
                        is_online=as_dict(item.get("alerts")).get("connection") == "online",
                        is_on=True,
                    )
                )

        _LOGGER.debug("Discovered %d Ring devices", len(devices))
        return devices

    def build_command(self, action: Action, params: ActionParams | None = None) -> dict[str, Any]:
        """Translate an action into a Ring request body."""
        if action is Action.TAKE_PHOTO:
            return {"force": True}
        if action is Action.START_RECORDING:
            return {"recording_status": "start"}
        if action is Action.STOP_RECORDING:
            return {"recording_status": "stop"}
        return no_command(self.platform, action, params)

    async def execute(
        self,
        action: Action,
        device: PlatformDevice,
        credentials: Credentials,
        params: ActionParams | None = None,
    ) -> None:
        """Trigger a snapshot or switch recording on one camera."""
        check_credentials(self.platform, credentials)
        check_action(self.platform, action, device, self.supported_actions)

        body = self.build_command(action, params)
        if not body:
            return

        status, _ = await self._transport.request(
            "POST",
            f"{self._base_url}/devices/{device.id}/{_ENDPOINTS[action]}",
            headers=bearer_headers(credentials.access_token),
            json_data=body,
        )
        raise_for_status(status, ActionExecutionFailedError, action.display_title, ok=(200, 201, 204))

    async def fetch_status(self, device: PlatformDevice, credentials: Credentials) -> DeviceStatus:
        """Read connection and battery state of one device."""
        check_credentials(self.platform, credentials)

        status, data = await self._transport.request(
            "GET", f"{self._base_url}/devices/{device.id}", headers=bearer_headers(credentials.access_token)
        )
        raise_for_status(status, DeviceStatusFailedError, "Device state")

        details = as_dict(data)
        connection = details.get("connection", as_dict(details.get("alerts")).get("connection"))
        online = connection == "online"

        return DeviceStatus(
            is_online=online,
            is_on=online,
            battery=as_int(details.get("battery_life")),
        )
