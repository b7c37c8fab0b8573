"""LIFX cloud adapter.

LIFX authenticates with a personal access token sent as a bearer header. The
token is validated by listing lights, which is read-only.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

from pyhomegateway.actions import Action, BrightnessParams, ColorParams
from pyhomegateway.adapters.base import (
    AUTH_REJECTED,
    as_dict,
    as_list,
    auth_unsupported,
    check_action,
    check_credentials,
    no_command,
    percentage,
    raise_for_status,
)
from pyhomegateway.const import LIFX_BASE_URL
from pyhomegateway.exceptions import (
    ActionExecutionFailedError,
    AuthenticationFailedError,
    DeviceDiscoveryFailedError,
    DeviceStatusFailedError,
    InvalidCredentialsError,
)
from pyhomegateway.models import Credentials, DeviceStatus, DeviceType, Platform, PlatformDevice
from pyhomegateway.transport import bearer_headers


if TYPE_CHECKING:
    from pyhomegateway.actions import ActionParams
    from pyhomegateway.transport import HttpTransport

_LOGGER = logging.getLogger(__name__)

# LIFX answers state changes with 207 Multi-Status and a per-light result
_STATE_OK = (HTTPStatus.OK, HTTPStatus.MULTI_STATUS)

_PRODUCT_CAPABILITIES = {
    "has_color": "color",
    "has_variable_color_temp": "colorTemperature",
    "has_ir": "infrared",
    "has_multizone": "multizone",
}


class LifxAdapter:
    """Adapter for LIFX bulbs via the LIFX HTTP API."""

    platform = Platform.LIFX
    simulated = False
    supported_actions = frozenset(
        {Action.TOGGLE, Action.TURN_ON, Action.TURN_OFF, Action.SET_BRIGHTNESS, Action.SET_COLOR}
    )

    def __init__(self, transport: HttpTransport, *, base_url: str = LIFX_BASE_URL) -> None:
        """Initialize the adapter.

        Args:
            transport: Shared HTTP transport.
            base_url: LIFX API base URL.
        """
        self._transport = transport
        self._base_url = base_url.rstrip("/")

    async def authenticate(self) -> Credentials:
        """LIFX requires an API key."""
        raise auth_unsupported(self.platform, "interactive")

    async def authenticate_with_key(self, key: str) -> Credentials:
        """Validate a LIFX personal access token.

        Args:
            key: Personal access token.

        Returns:
            Credentials carrying the key.

        Raises:
            InvalidCredentialsError: If LIFX rejects the token.
            AuthenticationFailedError: If validation fails for another reason.
        """
        if not key or not key.strip():
            msg = "API key is empty"
            raise InvalidCredentialsError(msg)

        status, _ = await self._transport.request(
            "GET", f"{self._base_url}/lights/all", headers=bearer_headers(key)
        )

        if status in AUTH_REJECTED:
            raise InvalidCredentialsError

        if status != HTTPStatus.OK:
            msg = f"key validation returned status {status}"
            raise AuthenticationFailedError(msg)

        _LOGGER.info("LIFX API key validated")
        return Credentials(platform=self.platform, api_key=key.strip())

    async def authenticate_with_token(self, token: str, host: str | None = None) -> Credentials:
        """LIFX is not a local hub."""
        raise auth_unsupported(self.platform, "hub token")

    async def discover(self, credentials: Credentials) -> list[PlatformDevice]:
        """List every light on the account."""
        check_credentials(self.platform, credentials)

        status, data = await self._transport.request(
            "GET", f"{self._base_url}/lights/all", headers=bearer_headers(credentials.api_key)
        )
        raise_for_status(status, DeviceDiscoveryFailedError, "Light listing")

        if not isinstance(data, list):
            msg = "unexpected light listing response"
            raise DeviceDiscoveryFailedError(msg)

        devices = [self._parse_light(light) for light in data if isinstance(light, dict) and light.get("id")]
        _LOGGER.debug("Discovered %d LIFX lights", len(devices))
        return devices

    def _parse_light(self, light: dict[str, Any]) -> PlatformDevice:
        product = as_dict(light.get("product"))
        product_capabilities = as_dict(product.get("capabilities"))

        capabilities = ["on", "brightness"]
        capabilities.extend(tag for key, tag in _PRODUCT_CAPABILITIES.items() if product_capabilities.get(key))

        properties = {"power": str(light.get("power", "off"))}
        if product.get("name"):
            properties["product"] = str(product["name"])
        if as_dict(light.get("group")).get("name"):
            properties["group"] = str(light["group"]["name"])
        if as_dict(light.get("location")).get("name"):
            properties["location"] = str(light["location"]["name"])

        return PlatformDevice(
            id=str(light["id"]),
            name=str(light.get("label") or light["id"]),
            type=DeviceType.BULB,
            platform=self.platform,
            capabilities=tuple(capabilities),
            properties=properties,
            is_online=bool(light.get("connected", False)),
            is_on=light.get("power") == "on",
        )

    def build_command(self, action: Action, params: ActionParams | None = None) -> dict[str, Any]:
        """Translate an action into a LIFX state payload."""
        if action is Action.TOGGLE:
            return {"duration": 0}
        if action is Action.TURN_ON:
            return {"power": "on"}
        if action is Action.TURN_OFF:
            return {"power": "off"}
        if action is Action.SET_BRIGHTNESS and isinstance(params, BrightnessParams):
            return {"brightness": params.level / 100}
        if action is Action.SET_COLOR and isinstance(params, ColorParams):
            return {"color": params.hex}
        return no_command(self.platform, action, params)

    async def execute(
        self,
        action: Action,
        device: PlatformDevice,
        credentials: Credentials,
        params: ActionParams | None = None,
    ) -> None:
        """Send a state change (or native toggle) to one light."""
        check_credentials(self.platform, credentials)
        check_action(self.platform, action, device, self.supported_actions)

        payload = self.build_command(action, params)
        if not payload:
            return

        selector = f"{self._base_url}/lights/id:{device.id}"
        if action is Action.TOGGLE:
            method, url = "POST", f"{selector}/toggle"
        else:
            method, url = "PUT", f"{selector}/state"

        status, data = await self._transport.request(
            method, url, headers=bearer_headers(credentials.api_key), json_data=payload
        )
        raise_for_status(status, ActionExecutionFailedError, f"{action.display_title}", ok=_STATE_OK)

        for result in as_list(as_dict(data).get("results")):
            if isinstance(result, dict) and result.get("status") not in (None, "ok"):
                msg = f"{result.get('label') or device.name} is {result['status']}"
                raise ActionExecutionFailedError(msg)

    async def fetch_status(self, device: PlatformDevice, credentials: Credentials) -> DeviceStatus:
        """Read one light's state."""
        check_credentials(self.platform, credentials)

        status, data = await self._transport.request(
            "GET", f"{self._base_url}/lights/id:{device.id}", headers=bearer_headers(credentials.api_key)
        )
        raise_for_status(status, DeviceStatusFailedError, "Light state")

        lights = as_list(data)
        if not lights or not isinstance(lights[0], dict):
            msg = f"light {device.id} not found"
            raise DeviceStatusFailedError(msg)

        light = lights[0]
        return DeviceStatus(
            is_online=bool(light.get("connected", False)),
            is_on=light.get("power") == "on",
            brightness=percentage(light.get("brightness")),
        )
