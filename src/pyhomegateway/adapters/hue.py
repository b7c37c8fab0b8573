"""Philips Hue bridge adapter.

Hue devices are controlled through a bridge on the local network. The bridge
is located with cloud discovery (falling back to probing private addresses),
then paired by creating an application user, which only succeeds shortly
after the bridge's link button is pressed.

The bridge answers most requests with HTTP 200 and reports failures as a list
of ``{"error": {...}}`` entries in the body.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pyhomegateway.actions import Action, BrightnessParams, ColorParams
from pyhomegateway.adapters.base import (
    as_dict,
    as_list,
    auth_unsupported,
    check_action,
    check_credentials,
    no_command,
    percentage,
    raise_for_status,
    resolve_toggle,
)
from pyhomegateway.const import (
    HUE_BRIGHTNESS_MAX,
    HUE_CANDIDATE_HOSTS,
    HUE_DEVICE_TYPE,
    HUE_DISCOVERY_URL,
    HUE_PAIRING_ATTEMPTS,
    HUE_PAIRING_INTERVAL,
)
from pyhomegateway.discovery import create_bridge_user, discover_bridge
from pyhomegateway.exceptions import (
    ActionExecutionFailedError,
    AuthenticationFailedError,
    DeviceDiscoveryFailedError,
    DeviceStatusFailedError,
    InvalidCredentialsError,
)
from pyhomegateway.models import Credentials, DeviceStatus, DeviceType, Platform, PlatformDevice


if TYPE_CHECKING:
    from collections.abc import Iterable

    from pyhomegateway.actions import ActionParams
    from pyhomegateway.exceptions import GatewayError
    from pyhomegateway.transport import HttpTransport

_LOGGER = logging.getLogger(__name__)

# Bridge error type for an unknown application key
_UNAUTHORIZED_USER = 1


def _bridge_errors(data: Any) -> list[dict[str, Any]]:
    return [as_dict(item["error"]) for item in as_list(data) if isinstance(item, dict) and "error" in item]


def _raise_bridge_errors(data: Any, error_cls: type[GatewayError]) -> None:
    errors = _bridge_errors(data)
    if not errors:
        return
    if any(error.get("type") == _UNAUTHORIZED_USER for error in errors):
        msg = "bridge does not recognize this application key"
        raise InvalidCredentialsError(msg)
    raise error_cls(str(errors[0].get("description", "unknown bridge error")))


class HueAdapter:
    """Adapter for lights behind a Philips Hue bridge."""

    platform = Platform.PHILIPS_HUE
    simulated = False
    supported_actions = frozenset(
        {Action.TOGGLE, Action.TURN_ON, Action.TURN_OFF, Action.SET_BRIGHTNESS, Action.SET_COLOR}
    )

    def __init__(
        self,
        transport: HttpTransport,
        *,
        discovery_url: str | None = HUE_DISCOVERY_URL,
        candidates: Iterable[str] = HUE_CANDIDATE_HOSTS,
        pairing_attempts: int = HUE_PAIRING_ATTEMPTS,
        pairing_interval: float = HUE_PAIRING_INTERVAL,
        device_type: str = HUE_DEVICE_TYPE,
    ) -> None:
        """Initialize the adapter.

        Args:
            transport: Shared HTTP transport.
            discovery_url: Cloud bridge discovery endpoint, None to skip it.
            candidates: Local hosts probed when cloud discovery finds nothing.
            pairing_attempts: Pairing attempts before the link-button error is raised.
            pairing_interval: Seconds between pairing attempts.
            device_type: Application identifier registered with the bridge.
        """
        self._transport = transport
        self._discovery_url = discovery_url
        self._candidates = tuple(candidates)
        self._pairing_attempts = pairing_attempts
        self._pairing_interval = pairing_interval
        self._device_type = device_type

    async def _find_bridge(self) -> str:
        bridge = await discover_bridge(
            self._transport, discovery_url=self._discovery_url, candidates=self._candidates
        )
        if bridge is None:
            msg = "no Hue bridge found on the network"
            raise AuthenticationFailedError(msg)
        return bridge

    async def authenticate(self) -> Credentials:
        """Find the bridge and pair with it.

        Returns:
            Credentials with the bridge address and application key.

        Raises:
            AuthenticationFailedError: If no bridge is found.
            LinkButtonNotPressedError: If the link button was not pressed in time.
        """
        bridge = await self._find_bridge()
        username, _client_key = await create_bridge_user(
            self._transport,
            bridge,
            device_type=self._device_type,
            attempts=self._pairing_attempts,
            interval=self._pairing_interval,
        )
        return Credentials(platform=self.platform, api_key=username, bridge_ip=bridge, user_id=username)

    async def authenticate_with_key(self, key: str) -> Credentials:
        """Hue uses bridge pairing, not API keys."""
        raise auth_unsupported(self.platform, "API key")

    async def authenticate_with_token(self, token: str, host: str | None = None) -> Credentials:
        """Reuse an application key from an earlier pairing.

        Args:
            token: Application key (bridge username).
            host: Bridge host, discovered when omitted.

        Raises:
            InvalidCredentialsError: If the bridge does not know the key.
        """
        bridge = host or await self._find_bridge()
        status, data = await self._transport.request("GET", f"http://{bridge}/api/{token}/lights")
        raise_for_status(status, AuthenticationFailedError, "Bridge key validation")
        _raise_bridge_errors(data, AuthenticationFailedError)
        return Credentials(platform=self.platform, api_key=token, bridge_ip=bridge, user_id=token)

    def _lights_url(self, credentials: Credentials) -> str:
        return f"http://{credentials.bridge_ip}/api/{credentials.api_key}/lights"

    async def discover(self, credentials: Credentials) -> list[PlatformDevice]:
        """List every light known to the bridge."""
        check_credentials(self.platform, credentials)

        status, data = await self._transport.request("GET", self._lights_url(credentials))
        raise_for_status(status, DeviceDiscoveryFailedError, "Bridge light listing")
        _raise_bridge_errors(data, DeviceDiscoveryFailedError)

        if not isinstance(data, dict):
            msg = "unexpected bridge light listing response"
            raise DeviceDiscoveryFailedError(msg)

        devices = [self._parse_light(light_id, light) for light_id, light in data.items() if isinstance(light, dict)]
        _LOGGER.debug("Discovered %d lights on bridge %s", len(devices), credentials.bridge_ip)
        return devices

    def _parse_light(self, light_id: str, light: dict[str, Any]) -> PlatformDevice:
        state = as_dict(light.get("state"))

        capabilities = ["on"]
        if "bri" in state:
            capabilities.append("brightness")
        if "xy" in state or "hue" in state:
            capabilities.append("color")
        if "ct" in state:
            capabilities.append("colorTemperature")

        properties = {
            key: str(light[key]) for key in ("type", "modelid", "manufacturername", "productname") if light.get(key)
        }

        return PlatformDevice(
            id=str(light_id),
            name=str(light.get("name") or light_id),
            type=DeviceType.BULB,
            platform=self.platform,
            capabilities=tuple(capabilities),
            properties=properties,
            is_online=bool(state.get("reachable", False)),
            is_on=bool(state.get("on", False)),
        )

    def build_command(self, action: Action, params: ActionParams | None = None) -> dict[str, Any]:
        """Translate an action into a bridge light-state payload."""
        if action is Action.TURN_ON:
            return {"on": True}
        if action is Action.TURN_OFF:
            return {"on": False}
        if action is Action.SET_BRIGHTNESS and isinstance(params, BrightnessParams):
            return {"on": params.level > 0, "bri": round(params.level * HUE_BRIGHTNESS_MAX / 100)}
        if action is Action.SET_COLOR and isinstance(params, ColorParams):
            return {"on": True, "xy": list(params.xy)}
        return no_command(self.platform, action, params)

    async def execute(
        self,
        action: Action,
        device: PlatformDevice,
        credentials: Credentials,
        params: ActionParams | None = None,
    ) -> None:
        """Change one light's state."""
        check_credentials(self.platform, credentials)
        check_action(self.platform, action, device, self.supported_actions)

        payload = self.build_command(resolve_toggle(action, device), params)
        if not payload:
            return

        status, data = await self._transport.request(
            "PUT", f"{self._lights_url(credentials)}/{device.id}/state", json_data=payload
        )
        raise_for_status(status, ActionExecutionFailedError, action.display_title)
        _raise_bridge_errors(data, ActionExecutionFailedError)

    async def fetch_status(self, device: PlatformDevice, credentials: Credentials) -> DeviceStatus:
        """Read one light's state."""
        check_credentials(self.platform, credentials)

        status, data = await self._transport.request("GET", f"{self._lights_url(credentials)}/{device.id}")
        raise_for_status(status, DeviceStatusFailedError, "Bridge light state")
        _raise_bridge_errors(data, DeviceStatusFailedError)

        state = as_dict(as_dict(data).get("state"))
        if not state:
            msg = f"light {device.id} not found"
            raise DeviceStatusFailedError(msg)

        return DeviceStatus(
            is_online=bool(state.get("reachable", False)),
            is_on=bool(state.get("on", False)),
            brightness=percentage(state.get("bri"), HUE_BRIGHTNESS_MAX),
        )
