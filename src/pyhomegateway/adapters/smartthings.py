"""Samsung SmartThings adapter.

SmartThings models every device as components exposing capabilities, and
every command as ``(component, capability, command, arguments)``. Commands are
always sent to the ``main`` component.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pyhomegateway.actions import (
    Action,
    BrightnessParams,
    ColorParams,
    ModeParams,
    TemperatureParams,
    VolumeParams,
)
from pyhomegateway.adapters.base import (
    as_dict,
    as_list,
    auth_unsupported,
    check_action,
    check_credentials,
    no_command,
    raise_for_status,
    resolve_toggle,
)
from pyhomegateway.const import (
    SMARTTHINGS_AUTH_URL,
    SMARTTHINGS_BASE_URL,
    SMARTTHINGS_SCOPE,
    SMARTTHINGS_TOKEN_URL,
)
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

# First matching capability decides the device type
_CAPABILITY_TYPES = (
    ("thermostatHeatingSetpoint", DeviceType.THERMOSTAT),
    ("thermostatMode", DeviceType.THERMOSTAT),
    ("lock", DeviceType.LOCK),
    ("robotCleanerMovement", DeviceType.VACUUM),
    ("videoCamera", DeviceType.CAMERA),
    ("imageCapture", DeviceType.CAMERA),
    ("tvChannel", DeviceType.TV),
    ("mediaPlayback", DeviceType.SPEAKER),
    ("audioVolume", DeviceType.SPEAKER),
    ("colorControl", DeviceType.BULB),
    ("switchLevel", DeviceType.BULB),
)

# Actions that map to a single argument-free command
_SIMPLE_COMMANDS: dict[Action, tuple[str, str, list[Any]]] = {
    Action.TURN_ON: ("switch", "on", []),
    Action.TURN_OFF: ("switch", "off", []),
    Action.PLAY: ("mediaPlayback", "play", []),
    Action.PAUSE: ("mediaPlayback", "pause", []),
    Action.STOP: ("mediaPlayback", "stop", []),
    Action.PREVIOUS: ("mediaTrackControl", "previousTrack", []),
    Action.NEXT: ("mediaTrackControl", "nextTrack", []),
    Action.LOCK: ("lock", "lock", []),
    Action.UNLOCK: ("lock", "unlock", []),
    Action.START_CLEANING: ("robotCleanerMovement", "setRobotCleanerMovement", ["cleaning"]),
    Action.STOP_CLEANING: ("robotCleanerMovement", "setRobotCleanerMovement", ["idle"]),
    Action.RETURN_TO_BASE: ("robotCleanerMovement", "setRobotCleanerMovement", ["homing"]),
    Action.TAKE_PHOTO: ("imageCapture", "take", []),
}


def _command(capability: str, command: str, arguments: list[Any]) -> dict[str, Any]:
    return {
        "commands": [
            {"component": "main", "capability": capability, "command": command, "arguments": arguments}
        ]
    }


def _value(capabilities: dict[str, Any], capability: str, attribute: str) -> Any:
    return as_dict(as_dict(capabilities.get(capability)).get(attribute)).get("value")


class SmartThingsAdapter:
    """Adapter for devices connected to SmartThings."""

    platform = Platform.SMARTTHINGS
    simulated = False
    supported_actions = frozenset(
        {
            Action.TOGGLE,
            Action.SET_BRIGHTNESS,
            Action.SET_COLOR,
            Action.SET_VOLUME,
            Action.SET_TEMPERATURE,
            Action.SET_MODE,
            *_SIMPLE_COMMANDS,
        }
    )

    def __init__(
        self,
        transport: HttpTransport,
        *,
        client: OAuthClientConfig | None = None,
        web_auth: WebAuthSession | None = None,
        base_url: str = SMARTTHINGS_BASE_URL,
        authorize_url: str = SMARTTHINGS_AUTH_URL,
        token_url: str = SMARTTHINGS_TOKEN_URL,
    ) -> None:
        """Initialize the adapter.

        Args:
            transport: Shared HTTP transport.
            client: OAuth2 client registration; authentication fails without it.
            web_auth: Interactive session used for the consent page.
            base_url: SmartThings API base URL.
            authorize_url: SmartThings authorization endpoint.
            token_url: SmartThings token endpoint.
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
                scope=SMARTTHINGS_SCOPE,
            )
            if client is not None
            else None
        )

    async def authenticate(self) -> Credentials:
        """Run the SmartThings OAuth2 consent flow."""
        return await authorize(self.platform, self._flow, self._web_auth)

    async def authenticate_with_key(self, key: str) -> Credentials:
        """SmartThings requires OAuth2."""
        raise auth_unsupported(self.platform, "API key")

    async def authenticate_with_token(self, token: str, host: str | None = None) -> Credentials:
        """SmartThings is not a local hub."""
        raise auth_unsupported(self.platform, "hub token")

    async def discover(self, credentials: Credentials) -> list[PlatformDevice]:
        """List every device on the account."""
        check_credentials(self.platform, credentials)

        status, data = await self._transport.request(
            "GET", f"{self._base_url}/devices", headers=bearer_headers(credentials.access_token)
        )
        raise_for_status(status, DeviceDiscoveryFailedError, "Device listing")

        devices = [
            self._parse_device(item)
            for item in as_list(as_dict(data).get("items"))
            if isinstance(item, dict) and item.get("deviceId")
        ]
        _LOGGER.debug("Discovered %d SmartThings devices", len(devices))
        return devices

    def _parse_device(self, item: dict[str, Any]) -> PlatformDevice:
        capabilities: list[str] = []
        for component in as_list(item.get("components")):
            for capability in as_list(as_dict(component).get("capabilities")):
                capability_id = as_dict(capability).get("id")
                if capability_id and capability_id not in capabilities:
                    capabilities.append(str(capability_id))

        device_type = DeviceType.HUB_DEVICE
        for capability, mapped in _CAPABILITY_TYPES:
            if capability in capabilities:
                device_type = mapped
                break

        properties = {key: str(item[key]) for key in ("type", "manufacturerName", "locationId") if item.get(key)}
        health = as_dict(item.get("healthState")).get("state")

        return PlatformDevice(
            id=str(item["deviceId"]),
            name=str(item.get("label") or item.get("name") or item["deviceId"]),
            type=device_type,
            platform=self.platform,
            capabilities=tuple(capabilities),
            properties=properties,
            is_online=health != "OFFLINE",
        )

    def build_command(self, action: Action, params: ActionParams | None = None) -> dict[str, Any]:
        """Translate an action into a SmartThings commands body."""
        if action in _SIMPLE_COMMANDS:
            return _command(*_SIMPLE_COMMANDS[action])
        if action is Action.SET_BRIGHTNESS and isinstance(params, BrightnessParams):
            return _command("switchLevel", "setLevel", [params.level])
        if action is Action.SET_COLOR and isinstance(params, ColorParams):
            hue, saturation, _brightness = params.hsv
            color = {"hue": round(hue / 3.6), "saturation": round(saturation * 100)}
            return _command("colorControl", "setColor", [color])
        if action is Action.SET_VOLUME and isinstance(params, VolumeParams):
            return _command("audioVolume", "setVolume", [params.level])
        if action is Action.SET_TEMPERATURE and isinstance(params, TemperatureParams):
            return _command("thermostatHeatingSetpoint", "setHeatingSetpoint", [params.fahrenheit])
        if action is Action.SET_MODE and isinstance(params, ModeParams):
            return _command("thermostatMode", "setThermostatMode", [params.mode])
        return no_command(self.platform, action, params)

    async def execute(
        self,
        action: Action,
        device: PlatformDevice,
        credentials: Credentials,
        params: ActionParams | None = None,
    ) -> None:
        """Send a command to one device."""
        check_credentials(self.platform, credentials)
        check_action(self.platform, action, device, self.supported_actions)

        body = self.build_command(resolve_toggle(action, device), params)
        if not body:
            return

        status, _ = await self._transport.request(
            "POST",
            f"{self._base_url}/devices/{device.id}/commands",
            headers=bearer_headers(credentials.access_token),
            json_data=body,
        )
        raise_for_status(status, ActionExecutionFailedError, action.display_title)

    async def fetch_status(self, device: PlatformDevice, credentials: Credentials) -> DeviceStatus:
        """Read the main component's capability values."""
        check_credentials(self.platform, credentials)

        status, data = await self._transport.request(
            "GET", f"{self._base_url}/devices/{device.id}/status", headers=bearer_headers(credentials.access_token)
        )
        raise_for_status(status, DeviceStatusFailedError, "Device status")

        main = as_dict(as_dict(as_dict(data).get("components")).get("main"))
        lock = _value(main, "lock", "lock")
        movement = _value(main, "robotCleanerMovement", "robotCleanerMovement")

        return DeviceStatus(
            is_online=True,
            is_on=_value(main, "switch", "switch") == "on",
            brightness=_value(main, "switchLevel", "level"),
            volume=_value(main, "audioVolume", "volume"),
            temperature=_value(main, "thermostatHeatingSetpoint", "heatingSetpoint"),
            humidity=_value(main, "relativeHumidityMeasurement", "humidity"),
            battery=_value(main, "battery", "battery"),
            is_cleaning=movement == "cleaning",
            is_locked=None if lock is None else lock == "locked",
            mode=_value(main, "thermostatMode", "thermostatMode"),
        )
