"""Wyze adapter.

Every Wyze call is a POST with a JSON body; results are wrapped in an envelope
whose ``code`` is ``1`` on success.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pyhomegateway.actions import Action, BrightnessParams
from pyhomegateway.adapters.base import (
    as_dict,
    as_int,
    as_list,
    auth_unsupported,
    check_action,
    check_credentials,
    no_command,
    raise_for_status,
    resolve_toggle,
)
from pyhomegateway.const import WYZE_APP_ID, WYZE_AUTH_URL, WYZE_BASE_URL, WYZE_SCOPE, WYZE_TOKEN_URL
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
    from pyhomegateway.exceptions import GatewayError
    from pyhomegateway.models import Credentials
    from pyhomegateway.oauth import WebAuthSession
    from pyhomegateway.transport import HttpTransport

_LOGGER = logging.getLogger(__name__)

_SUCCESS_CODE = "1"

_PRODUCT_TYPES = {
    "bulb": DeviceType.BULB,
    "light": DeviceType.BULB,
    "lock": DeviceType.LOCK,
    "camera": DeviceType.CAMERA,
}

# Model prefix and capabilities, from the Wyze product catalogue
_MODEL_CAPABILITIES = (
    (("wcv", "wyzec", "hl_cam"), ("camera", "motionDetection", "nightVision", "twoWayAudio")),
    (("wbs", "wlpa19c"), ("on", "brightness", "color", "colorTemperature")),
    (("wss", "wlpa"), ("on", "brightness")),
    (("wop", "wlpp"), ("on", "powerMonitoring")),
    (("wsp",), ("audio", "notifications")),
)


def _capabilities(model: str) -> tuple[str, ...]:
    model = model.lower()
    for prefixes, capabilities in _MODEL_CAPABILITIES:
        if model.startswith(prefixes):
            return capabilities
    return ("on",)


def _device_type(product_type: str, capabilities: tuple[str, ...]) -> DeviceType:
    if product_type.lower() in _PRODUCT_TYPES:
        return _PRODUCT_TYPES[product_type.lower()]
    if "camera" in capabilities:
        return DeviceType.CAMERA
    if "brightness" in capabilities:
        return DeviceType.BULB
    return DeviceType.HUB_DEVICE


def _unwrap(data: Any, error_cls: type[GatewayError]) -> Any:
    """Return the envelope's ``data`` or raise with its message."""
    envelope = as_dict(data)
    if str(envelope.get("code")) != _SUCCESS_CODE:
        raise error_cls(str(envelope.get("message") or f"Wyze error code {envelope.get('code')}"))
    return envelope.get("data")


class WyzeAdapter:
    """Adapter for Wyze cameras, bulbs, plugs and locks."""

    platform = Platform.WYZE
    simulated = False
    supported_actions = frozenset(
        {Action.TOGGLE, Action.TURN_ON, Action.TURN_OFF, Action.SET_BRIGHTNESS, Action.LOCK, Action.UNLOCK}
    )

    def __init__(
        self,
        transport: HttpTransport,
        *,
        client: OAuthClientConfig | None = None,
        web_auth: WebAuthSession | None = None,
        app_id: str = WYZE_APP_ID,
        base_url: str = WYZE_BASE_URL,
        authorize_url: str = WYZE_AUTH_URL,
        token_url: str = WYZE_TOKEN_URL,
    ) -> None:
        """Initialize the adapter.

        Args:
            transport: Shared HTTP transport.
            client: OAuth2 client registration; authentication fails without it.
            web_auth: Interactive session used for the consent page.
            app_id: Application id sent with every request.
            base_url: Wyze API base URL.
            authorize_url: Wyze authorization endpoint.
            token_url: Wyze token endpoint.
        """
        self._transport = transport
        self._web_auth = web_auth
        self._app_id = app_id
        self._base_url = base_url.rstrip("/")
        self._flow = (
            OAuth2Flow(
                platform=self.platform,
                transport=transport,
                client=client,
                authorize_url=authorize_url,
                token_url=token_url,
                scope=WYZE_SCOPE,
            )
            if client is not None
            else None
        )

    async def authenticate(self) -> Credentials:
        """Run the Wyze OAuth2 consent flow."""
        return await authorize(self.platform, self._flow, self._web_auth)

    async def authenticate_with_key(self, key: str) -> Credentials:
        """Wyze requires OAuth2."""
        raise auth_unsupported(self.platform, "API key")

    async def authenticate_with_token(self, token: str, host: str | None = None) -> Credentials:
        """Wyze is not a local hub."""
        raise auth_unsupported(self.platform, "hub token")

    async def _post(self, credentials: Credentials, path: str, body: dict[str, Any]) -> tuple[int, Any]:
        return await self._transport.request(
            "POST",
            f"{self._base_url}/{path}",
            headers=bearer_headers(credentials.access_token),
            json_data={"app_id": self._app_id, **body},
        )

    async def discover(self, credentials: Credentials) -> list[PlatformDevice]:
        """List every device on the account."""
        check_credentials(self.platform, credentials)

        status, data = await self._post(credentials, "device/list", {})
        raise_for_status(status, DeviceDiscoveryFailedError, "Device listing")
        payload = _unwrap(data, DeviceDiscoveryFailedError)

        items = payload if isinstance(payload, list) else as_list(as_dict(payload).get("device_list"))
        devices = [self._parse_device(item) for item in items if isinstance(item, dict) and item.get("mac")]
        _LOGGER.debug("Discovered %d Wyze devices", len(devices))
        return devices

    def _parse_device(self, item: dict[str, Any]) -> PlatformDevice:
        model = str(item.get("product_model", ""))
        capabilities = _capabilities(model)
        return PlatformDevice(
            id=str(item["mac"]),
            name=str(item.get("nickname") or item["mac"]),
            type=_device_type(str(item.get("product_type") or model), capabilities),
            platform=self.platform,
            capabilities=capabilities,
            properties={"model": model},
            is_online=bool(item.get("is_online", item.get("conn_state") == 1)),
            is_on=str(item.get("switch_status", "0")) == "1",
        )

    def build_command(self, action: Action, params: ActionParams | None = None) -> dict[str, Any]:
        """Translate an action into a Wyze control body, without the device fields."""
        if action is Action.TURN_ON:
            return {"action": "power_on"}
        if action is Action.TURN_OFF:
            return {"action": "power_off"}
        if action is Action.SET_BRIGHTNESS and isinstance(params, BrightnessParams):
            return {"action": "set_brightness", "value": params.level}
        if action is Action.LOCK:
            return {"action": "remote_lock"}
        if action is Action.UNLOCK:
            return {"action": "remote_unlock"}
        return no_command(self.platform, action, params)

    async def execute(
        self,
        action: Action,
        device: PlatformDevice,
        credentials: Credentials,
        params: ActionParams | None = None,
    ) -> None:
        """Send a control command to one device."""
        check_credentials(self.platform, credentials)
        check_action(self.platform, action, device, self.supported_actions)

        command = self.build_command(resolve_toggle(action, device), params)
        if not command:
            return

        body = {"device_mac": device.id, **command}
        if device.properties.get("model"):
            body["device_model"] = device.properties["model"]

        status, data = await self._post(credentials, "device/control", body)
        raise_for_status(status, ActionExecutionFailedError, action.display_title)
        _unwrap(data, ActionExecutionFailedError)

    async def fetch_status(self, device: PlatformDevice, credentials: Credentials) -> DeviceStatus:
        """Read one device's state."""
        check_credentials(self.platform, credentials)

        status, data = await self._post(credentials, "device/info", {"device_mac": device.id})
        raise_for_status(status, DeviceStatusFailedError, "Device state")
        info = as_dict(_unwrap(data, DeviceStatusFailedError))

        changes: dict[str, Any] = {}
        temperature = info.get("temperature")
        if isinstance(temperature, int | float) and not isinstance(temperature, bool):
            changes["temperature"] = float(temperature)

        return DeviceStatus(
            is_online=bool(info.get("is_online", False)),
            is_on=str(info.get("switch_status", "0")) == "1",
            brightness=as_int(info.get("brightness")),
            battery=as_int(info.get("battery")),
            **changes,
        )
