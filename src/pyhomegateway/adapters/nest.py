"""Google Nest adapter using the Smart Device Management (SDM) API."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

from pyhomegateway.actions import Action, ModeParams, TemperatureParams
from pyhomegateway.adapters.base import (
    as_dict,
    as_list,
    auth_unsupported,
    check_action,
    check_credentials,
    no_command,
    raise_for_status,
)
from pyhomegateway.const import NEST_AUTH_URL, NEST_BASE_URL, NEST_SCOPE, NEST_TOKEN_URL
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

_TRAIT = "sdm.devices.traits."
_COMMAND = "sdm.devices.commands."

_DEVICE_TYPES = {
    "THERMOSTAT": DeviceType.THERMOSTAT,
    "CAMERA": DeviceType.CAMERA,
    "DOORBELL": DeviceType.CAMERA,
    "DISPLAY": DeviceType.SPEAKER,
}


def _celsius_to_fahrenheit(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return round(value * 9 / 5 + 32, 1)


class NestAdapter:
    """Adapter for Google Nest thermostats, cameras and displays."""

    platform = Platform.NEST
    simulated = False
    supported_actions = frozenset({Action.SET_TEMPERATURE, Action.SET_MODE, Action.TURN_OFF})

    def __init__(
        self,
        transport: HttpTransport,
        *,
        client: OAuthClientConfig | None = None,
        web_auth: WebAuthSession | None = None,
        project_id: str | None = None,
        base_url: str = NEST_BASE_URL,
        authorize_url: str = NEST_AUTH_URL,
        token_url: str = NEST_TOKEN_URL,
    ) -> None:
        """Initialize the adapter.

        Args:
            transport: Shared HTTP transport.
            client: OAuth2 client registration; authentication fails without it.
            web_auth: Interactive session used for the consent page.
            project_id: Device Access project id. When omitted the first
                enterprise visible to the account is used.
            base_url: SDM API base URL.
            authorize_url: Google authorization endpoint.
            token_url: Google token endpoint.
        """
        self._transport = transport
        self._web_auth = web_auth
        self._project_id = project_id
        self._base_url = base_url.rstrip("/")
        self._flow = (
            OAuth2Flow(
                platform=self.platform,
                transport=transport,
                client=client,
                authorize_url=authorize_url,
                token_url=token_url,
                scope=NEST_SCOPE,
                extra_params={"access_type": "offline", "prompt": "consent"},
            )
            if client is not None
            else None
        )

    async def authenticate(self) -> Credentials:
        """Run the Google OAuth2 consent flow."""
        return await authorize(self.platform, self._flow, self._web_auth)

    async def authenticate_with_key(self, key: str) -> Credentials:
        """Nest requires OAuth2."""
        raise auth_unsupported(self.platform, "API key")

    async def authenticate_with_token(self, token: str, host: str | None = None) -> Credentials:
        """Nest is not a local hub."""
        raise auth_unsupported(self.platform, "hub token")

    async def _enterprise(self, credentials: Credentials) -> str:
        if self._project_id:
            return f"enterprises/{self._project_id}"

        status, data = await self._transport.request(
            "GET", f"{self._base_url}/enterprises", headers=bearer_headers(credentials.access_token)
        )
        raise_for_status(status, DeviceDiscoveryFailedError, "Enterprise listing")

        enterprises = as_list(as_dict(data).get("enterprises"))
        if not enterprises or not as_dict(enterprises[0]).get("name"):
            msg = "no Device Access enterprise found"
            raise DeviceDiscoveryFailedError(msg)
        return str(enterprises[0]["name"])

    async def discover(self, credentials: Credentials) -> list[PlatformDevice]:
        """List every device in the enterprise."""
        check_credentials(self.platform, credentials)

        enterprise = await self._enterprise(credentials)
        status, data = await self._transport.request(
            "GET", f"{self._base_url}/{enterprise}/devices", headers=bearer_headers(credentials.access_token)
        )
        raise_for_status(status, DeviceDiscoveryFailedError, "Device listing")

        devices = [
            self._parse_device(device)
            for device in as_list(as_dict(data).get("devices"))
            if isinstance(device, dict) and device.get("name")
        ]
        _LOGGER.debug("Discovered %d Nest devices in %s", len(devices), enterprise)
        return devices

    def _parse_device(self, device: dict[str, Any]) -> PlatformDevice:
        traits = as_dict(device.get("traits"))
        kind = str(device.get("type", "")).rsplit(".", 1)[-1]

        name = as_dict(traits.get(f"{_TRAIT}Info")).get("customName")
        if not name:
            relations = as_list(device.get("parentRelations"))
            name = as_dict(relations[0]).get("displayName") if relations else None

        properties = {"type": kind}
        mode = as_dict(traits.get(f"{_TRAIT}ThermostatMode")).get("mode")
        if mode:
            properties["mode"] = str(mode)

        return PlatformDevice(
            id=str(device["name"]),
            name=str(name or device["name"].rsplit("/", 1)[-1]),
            type=_DEVICE_TYPES.get(kind, DeviceType.HUB_DEVICE),
            platform=self.platform,
            capabilities=tuple(trait.removeprefix(_TRAIT) for trait in traits),
            properties=properties,
            is_online=as_dict(traits.get(f"{_TRAIT}Connectivity")).get("status") == "ONLINE",
            is_on=mode not in (None, "OFF"),
        )

    def build_command(self, action: Action, params: ActionParams | None = None) -> dict[str, Any]:
        """Translate an action into an SDM ``executeCommand`` body."""
        if action is Action.SET_TEMPERATURE and isinstance(params, TemperatureParams):
            return {
                "command": f"{_COMMAND}ThermostatTemperatureSetpoint.SetHeat",
                "params": {"heatCelsius": params.celsius},
            }
        if action is Action.SET_MODE and isinstance(params, ModeParams):
            return {"command": f"{_COMMAND}ThermostatMode.SetMode", "params": {"mode": params.mode.upper()}}
        if action is Action.TURN_OFF:
            return {"command": f"{_COMMAND}ThermostatMode.SetMode", "params": {"mode": "OFF"}}
        return no_command(self.platform, action, params)

    async def execute(
        self,
        action: Action,
        device: PlatformDevice,
        credentials: Credentials,
        params: ActionParams | None = None,
    ) -> None:
        """Execute an SDM command on one device."""
        check_credentials(self.platform, credentials)
        check_action(self.platform, action, device, self.supported_actions)

        command = self.build_command(action, params)
        if not command:
            return

        status, data = await self._transport.request(
            "POST",
            f"{self._base_url}/{device.id}:executeCommand",
            headers=bearer_headers(credentials.access_token),
            json_data=command,
        )
        if status == HTTPStatus.BAD_REQUEST:
            reason = as_dict(as_dict(data).get("error")).get("message", "command rejected")
            raise ActionExecutionFailedError(str(reason))
        raise_for_status(status, ActionExecutionFailedError, action.display_title)

    async def fetch_status(self, device: PlatformDevice, credentials: Credentials) -> DeviceStatus:
        """Read one device's traits."""
        check_credentials(self.platform, credentials)

        status, data = await self._transport.request(
            "GET", f"{self._base_url}/{device.id}", headers=bearer_headers(credentials.access_token)
        )
        raise_for_status(status, DeviceStatusFailedError, "Device state")

        traits = as_dict(as_dict(data).get("traits"))
        mode = as_dict(traits.get(f"{_TRAIT}ThermostatMode")).get("mode")
        setpoint = as_dict(traits.get(f"{_TRAIT}ThermostatTemperatureSetpoint")).get("heatCelsius")
        ambient = as_dict(traits.get(f"{_TRAIT}Temperature")).get("ambientTemperatureCelsius")

        return DeviceStatus(
            is_online=as_dict(traits.get(f"{_TRAIT}Connectivity")).get("status") == "ONLINE",
            is_on=mode not in (None, "OFF"),
            temperature=_celsius_to_fahrenheit(setpoint if setpoint is not None else ambient),
            humidity=as_dict(traits.get(f"{_TRAIT}Humidity")).get("ambientHumidityPercent"),
            mode=mode.lower() if isinstance(mode, str) else None,
        )
