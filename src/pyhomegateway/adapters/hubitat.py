"""Hubitat Elevation adapter using the local Maker API.

The hub is found by probing ``localhost`` and then a handful of common
private addresses. The Maker API access token cannot be obtained
automatically; the user copies it from the hub's Maker API app and passes it
to :meth:`HubitatAdapter.authenticate_with_token`.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from yarl import URL

from pyhomegateway.actions import (
    Action,
    BrightnessParams,
    ColorParams,
    ModeParams,
    TemperatureParams,
)
from pyhomegateway.adapters.base import (
    as_dict,
    as_int,
    as_list,
    as_number,
    auth_unsupported,
    check_action,
    check_credentials,
    no_command,
    raise_for_status,
    resolve_toggle,
)
from pyhomegateway.const import HUBITAT_CANDIDATE_HOSTS, HUBITAT_MAKER_APP_ID, HUBITAT_PORT
from pyhomegateway.discovery import find_first_host
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
    from pyhomegateway.transport import HttpTransport

_LOGGER = logging.getLogger(__name__)

# First matching capability decides the device type
_CAPABILITY_TYPES = (
    ("Thermostat", DeviceType.THERMOSTAT),
    ("Lock", DeviceType.LOCK),
    ("VideoCamera", DeviceType.CAMERA),
    ("ImageCapture", DeviceType.CAMERA),
    ("MusicPlayer", DeviceType.SPEAKER),
    ("AudioVolume", DeviceType.SPEAKER),
    ("ColorControl", DeviceType.BULB),
    ("ColorTemperature", DeviceType.BULB),
    ("Bulb", DeviceType.BULB),
    ("Light", DeviceType.BULB),
)


def _capability_names(value: Any) -> list[str]:
    """Normalize capabilities given as names or as ``{"name": ...}`` objects."""
    names = []
    for capability in as_list(value):
        if isinstance(capability, str):
            names.append(capability)
        elif isinstance(capability, dict) and capability.get("name"):
            names.append(str(capability["name"]))
    return names


def _attributes(value: Any) -> dict[str, Any]:
    """Normalize attributes given as a dict or as a list of ``currentValue`` records."""
    if isinstance(value, dict):
        return value
    return {
        str(attribute["name"]): attribute.get("currentValue")
        for attribute in as_list(value)
        if isinstance(attribute, dict) and attribute.get("name")
    }


class HubitatAdapter:
    """Adapter for devices exposed by a Hubitat hub's Maker API."""

    platform = Platform.HUBITAT
    simulated = False
    supported_actions = frozenset(
        {
            Action.TOGGLE,
            Action.TURN_ON,
            Action.TURN_OFF,
            Action.SET_BRIGHTNESS,
            Action.SET_COLOR,
            Action.SET_TEMPERATURE,
            Action.SET_MODE,
            Action.LOCK,
            Action.UNLOCK,
        }
    )

    def __init__(
        self,
        transport: HttpTransport,
        *,
        candidates: Iterable[str] = HUBITAT_CANDIDATE_HOSTS,
        port: int = HUBITAT_PORT,
        app_id: str = HUBITAT_MAKER_APP_ID,
    ) -> None:
        """Initialize the adapter.

        Args:
            transport: Shared HTTP transport.
            candidates: Hosts probed for a hub, in order of preference.
            port: Hub HTTP port.
            app_id: Id of the Maker API app instance on the hub.
        """
        self._transport = transport
        self._candidates = tuple(candidates)
        self._port = port
        self._app_id = app_id
        self.discovered_host: str | None = None

    async def find_hub(self) -> str | None:
        """Probe the candidate hosts for a hub.

        Returns:
            The first responding host, also kept as ``discovered_host``.
        """
        host = await find_first_host(
            self._transport, self._candidates, lambda candidate: f"http://{candidate}:{self._port}/hub/status"
        )
        if host is not None:
            _LOGGER.info("Hubitat hub found at %s", host)
            self.discovered_host = host
        return host

    async def authenticate(self) -> Credentials:
        """Locate the hub, then ask for a Maker API token.

        Raises:
            AuthenticationFailedError: Always. The hub is located so a later
                :meth:`authenticate_with_token` call can omit the host, but a
                token must be supplied by the user.
        """
        host = await self.find_hub()
        if host is None:
            msg = "no Hubitat hub found on the local network"
            raise AuthenticationFailedError(msg)

        msg = f"hub found at {host}; supply a Maker API access token"
        raise AuthenticationFailedError(msg)

    async def authenticate_with_key(self, key: str) -> Credentials:
        """Hubitat uses a hub token together with the hub address."""
        raise auth_unsupported(self.platform, "API key")

    async def authenticate_with_token(self, token: str, host: str | None = None) -> Credentials:
        """Validate a Maker API access token against the hub.

        Args:
            token: Maker API access token.
            host: Hub host. The previously discovered hub is used when omitted.

        Returns:
            Credentials carrying the hub address and token.

        Raises:
            AuthenticationFailedError: If no hub can be found.
            InvalidCredentialsError: If the hub rejects the token.
        """
        if not token:
            msg = "Maker API token is empty"
            raise InvalidCredentialsError(msg)

        hub = host or self.discovered_host or await self.find_hub()
        if hub is None:
            msg = "no Hubitat hub found on the local network"
            raise AuthenticationFailedError(msg)

        status, _ = await self._transport.request("GET", self._url(hub, "devices"), params={"access_token": token})
        raise_for_status(status, AuthenticationFailedError, "Maker API token validation")

        return Credentials(platform=self.platform, api_key=token, local_ip=hub)

    def _url(self, hub: str, *segments: str) -> str:
        url = URL(f"http://{hub}:{self._port}/apps/api/{self._app_id}")
        for segment in segments:
            url /= segment
        return str(url)

    async def _get(self, credentials: Credentials, *segments: str) -> tuple[int, Any]:
        return await self._transport.request(
            "GET",
            self._url(credentials.local_ip or "", *segments),
            params={"access_token": credentials.api_key or ""},
        )

    async def discover(self, credentials: Credentials) -> list[PlatformDevice]:
        """List every device shared with the Maker API app."""
        check_credentials(self.platform, credentials)

        status, data = await self._get(credentials, "devices", "all")
        raise_for_status(status, DeviceDiscoveryFailedError, "Maker API device listing")

        if not isinstance(data, list):
            msg = "unexpected Maker API device listing"
            raise DeviceDiscoveryFailedError(msg)

        return [self._parse_device(device) for device in data if isinstance(device, dict) and "id" in device]

    def _parse_device(self, device: dict[str, Any]) -> PlatformDevice:
        capabilities = _capability_names(device.get("capabilities"))
        attributes = _attributes(device.get("attributes"))

        device_type = DeviceType.HUB_DEVICE
        for capability, mapped in _CAPABILITY_TYPES:
            if capability in capabilities:
                device_type = mapped
                break

        properties = {"type": str(device.get("type", ""))}
        properties.update({key: str(value) for key, value in attributes.items() if value is not None})

        return PlatformDevice(
            id=str(device["id"]),
            name=str(device.get("label") or device.get("name") or device["id"]),
            type=device_type,
            platform=self.platform,
            capabilities=tuple(capabilities),
            properties=properties,
            is_online=device.get("healthStatus", "online") != "offline",
            is_on=attributes.get("switch") == "on",
        )

    def build_command(self, action: Action, params: ActionParams | None = None) -> dict[str, Any]:
        """Translate an action into a Maker API command and optional value."""
        if action is Action.TURN_ON:
            return {"command": "on"}
        if action is Action.TURN_OFF:
            return {"command": "off"}
        if action is Action.LOCK:
            return {"command": "lock"}
        if action is Action.UNLOCK:
            return {"command": "unlock"}
        if action is Action.SET_BRIGHTNESS and isinstance(params, BrightnessParams):
            return {"command": "setLevel", "value": str(params.level)}
        if action is Action.SET_COLOR and isinstance(params, ColorParams):
            hue, saturation, value = params.hsv
            color = {"hue": round(hue / 3.6), "saturation": round(saturation * 100), "level": round(value * 100)}
            return {"command": "setColor", "value": json.dumps(color, separators=(",", ":"))}
        if action is Action.SET_TEMPERATURE and isinstance(params, TemperatureParams):
            return {"command": "setHeatingSetpoint", "value": str(params.fahrenheit)}
        if action is Action.SET_MODE and isinstance(params, ModeParams):
            return {"command": "setThermostatMode", "value": params.mode}
        return no_command(self.platform, action, params)

    async def execute(
        self,
        action: Action,
        device: PlatformDevice,
        credentials: Credentials,
        params: ActionParams | None = None,
    ) -> None:
        """Send a Maker API command to one device."""
        check_credentials(self.platform, credentials)
        check_action(self.platform, action, device, self.supported_actions)

        command = self.build_command(resolve_toggle(action, device), params)
        if not command:
            return

        segments = ["devices", device.id, command["command"]]
        if "value" in command:
            segments.append(command["value"])

        status, _ = await self._get(credentials, *segments)
        raise_for_status(status, ActionExecutionFailedError, action.display_title)

    async def fetch_status(self, device: PlatformDevice, credentials: Credentials) -> DeviceStatus:
        """Read one device's attributes."""
        check_credentials(self.platform, credentials)

        status, data = await self._get(credentials, "devices", device.id)
        raise_for_status(status, DeviceStatusFailedError, "Maker API device state")

        details = as_dict(data)
        if not details:
            msg = f"device {device.id} not found"
            raise DeviceStatusFailedError(msg)

        attributes = _attributes(details.get("attributes"))
        lock = attributes.get("lock")

        return DeviceStatus(
            is_online=details.get("healthStatus", "online") != "offline",
            is_on=attributes.get("switch") == "on",
            brightness=as_int(attributes.get("level")),
            volume=as_int(attributes.get("volume")),
            temperature=as_number(attributes.get("heatingSetpoint", attributes.get("temperature"))),
            humidity=as_number(attributes.get("humidity")),
            battery=as_int(attributes.get("battery")),
            is_locked=None if lock is None else lock == "locked",
            mode=attributes.get("thermostatMode"),
        )
