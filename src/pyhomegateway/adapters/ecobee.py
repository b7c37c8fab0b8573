"""Ecobee thermostat adapter.

Ecobee authorizes third-party apps with a PIN: the app requests a PIN, the
user enters it in the Ecobee portal under *My Apps*, and the app polls the
token endpoint until the PIN is accepted.

Temperatures on the wire are tenths of a degree Fahrenheit.
"""

from __future__ import annotations

import asyncio
import inspect
import json
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
    resolve_toggle,
)
from pyhomegateway.const import (
    ECOBEE_AUTH_URL,
    ECOBEE_BASE_URL,
    ECOBEE_PIN_POLL_ATTEMPTS,
    ECOBEE_PIN_POLL_INTERVAL,
    ECOBEE_SCOPE,
    ECOBEE_TOKEN_URL,
)
from pyhomegateway.exceptions import (
    ActionExecutionFailedError,
    AuthenticationFailedError,
    DeviceDiscoveryFailedError,
    DeviceStatusFailedError,
    InvalidCredentialsError,
)
from pyhomegateway.models import DeviceStatus, DeviceType, Platform, PlatformDevice
from pyhomegateway.oauth import credentials_from_token_response
from pyhomegateway.transport import bearer_headers


if TYPE_CHECKING:
    from collections.abc import Callable

    from pyhomegateway.actions import ActionParams
    from pyhomegateway.config import OAuthClientConfig
    from pyhomegateway.exceptions import GatewayError
    from pyhomegateway.models import Credentials
    from pyhomegateway.transport import HttpTransport

_LOGGER = logging.getLogger(__name__)

# Ecobee API status codes for expired and revoked tokens
_TOKEN_EXPIRED = 14
_TOKEN_DEAUTHORIZED = 16

_PENDING_ERRORS = ("authorization_pending", "slow_down")

_OPTIONAL_EQUIPMENT = {
    "hasHeatPump": "heatPump",
    "hasDehumidifier": "dehumidifier",
    "hasHumidifier": "humidifier",
    "hasHrv": "hrv",
}


def _raise_api_status(data: Any, error_cls: type[GatewayError]) -> None:
    """Raise for a non-zero ``status.code`` in an Ecobee response body.

    Ecobee reports token errors with HTTP 500, so this runs before the HTTP
    status is classified.
    """
    api_status = as_dict(as_dict(data).get("status"))
    code = api_status.get("code", 0)
    if code == 0:
        return
    if code in (_TOKEN_EXPIRED, _TOKEN_DEAUTHORIZED):
        raise InvalidCredentialsError(str(api_status.get("message", "")))
    raise error_cls(str(api_status.get("message") or f"status code {code}"))


def _tenths(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return value / 10


def _selection(identifier: str | None = None) -> dict[str, Any]:
    if identifier is None:
        selection: dict[str, Any] = {"selectionType": "registered", "selectionMatch": ""}
    else:
        selection = {"selectionType": "thermostats", "selectionMatch": identifier}
    return selection


class EcobeeAdapter:
    """Adapter for Ecobee thermostats."""

    platform = Platform.ECOBEE
    simulated = False
    supported_actions = frozenset(
        {Action.TOGGLE, Action.TURN_ON, Action.TURN_OFF, Action.SET_TEMPERATURE, Action.SET_MODE}
    )

    def __init__(
        self,
        transport: HttpTransport,
        *,
        client: OAuthClientConfig | None = None,
        on_pin: Callable[[str], Any] | None = None,
        base_url: str = ECOBEE_BASE_URL,
        authorize_url: str = ECOBEE_AUTH_URL,
        token_url: str = ECOBEE_TOKEN_URL,
        poll_attempts: int = ECOBEE_PIN_POLL_ATTEMPTS,
        poll_interval: float | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            transport: Shared HTTP transport.
            client: App registration; ``client_id`` is the Ecobee API key.
            on_pin: Called with the PIN the user must enter. May be a coroutine
                function. When omitted the PIN is only logged.
            base_url: Ecobee API base URL.
            authorize_url: PIN request endpoint.
            token_url: Token endpoint.
            poll_attempts: Maximum token polls before giving up.
            poll_interval: Seconds between polls, overriding the server's value.
        """
        self._transport = transport
        self._client = client
        self._on_pin = on_pin
        self._base_url = base_url.rstrip("/")
        self._authorize_url = authorize_url
        self._token_url = token_url
        self._poll_attempts = poll_attempts
        self._poll_interval = poll_interval

    async def request_pin(self) -> dict[str, Any]:
        """Ask Ecobee for a PIN.

        Returns:
            Response with ``ecobeePin``, ``code``, ``interval`` and ``expires_in``.

        Raises:
            AuthenticationFailedError: If no app is configured or the request fails.
            InvalidCredentialsError: If the API key is rejected.
        """
        if self._client is None:
            msg = "no Ecobee API key configured"
            raise AuthenticationFailedError(msg)

        status, data = await self._transport.request(
            "GET",
            self._authorize_url,
            params={"response_type": "ecobeePin", "client_id": self._client.client_id, "scope": ECOBEE_SCOPE},
        )
        raise_for_status(status, AuthenticationFailedError, "PIN request")

        pin = as_dict(data)
        if not pin.get("ecobeePin") or not pin.get("code"):
            msg = "PIN response did not include a PIN"
            raise AuthenticationFailedError(msg)
        return pin

    async def poll_token(self, code: str, interval: float) -> Credentials:
        """Poll the token endpoint until the PIN is authorized.

        Raises:
            AuthenticationFailedError: If the PIN expires, is denied, or is not
                authorized within the polling budget.
        """
        client_id = self._client.client_id if self._client is not None else ""
        form = {"grant_type": "ecobeePin", "code": code, "client_id": client_id}

        for attempt in range(self._poll_attempts):
            status, data = await self._transport.request("POST", self._token_url, form_data=form)
            if status == HTTPStatus.OK:
                _LOGGER.info("Ecobee PIN authorized")
                return credentials_from_token_response(self.platform, data)

            error = as_dict(data).get("error")
            if error not in _PENDING_ERRORS:
                reason = as_dict(data).get("error_description") or error or f"token request returned status {status}"
                raise AuthenticationFailedError(str(reason))

            _LOGGER.debug("Ecobee PIN not yet authorized (poll %d/%d)", attempt + 1, self._poll_attempts)
            await asyncio.sleep(interval)

        msg = "PIN was not authorized in time"
        raise AuthenticationFailedError(msg)

    async def authenticate(self) -> Credentials:
        """Run the PIN flow: request a PIN, show it, poll for tokens."""
        pin = await self.request_pin()

        if self._on_pin is not None:
            result = self._on_pin(str(pin["ecobeePin"]))
            if inspect.isawaitable(result):
                await result
        else:
            _LOGGER.warning("Enter PIN %s under My Apps in the Ecobee portal", pin["ecobeePin"])

        interval = self._poll_interval
        if interval is None:
            interval = float(pin.get("interval") or ECOBEE_PIN_POLL_INTERVAL)
        return await self.poll_token(str(pin["code"]), interval)

    async def authenticate_with_key(self, key: str) -> Credentials:
        """Ecobee API keys only identify the app; users authorize with a PIN."""
        raise auth_unsupported(self.platform, "API key")

    async def authenticate_with_token(self, token: str, host: str | None = None) -> Credentials:
        """Ecobee is not a local hub."""
        raise auth_unsupported(self.platform, "hub token")

    async def _thermostats(
        self, credentials: Credentials, identifier: str | None, error_cls: type[GatewayError]
    ) -> list[dict[str, Any]]:
        selection = {**_selection(identifier), "includeRuntime": True, "includeSettings": True}
        status, data = await self._transport.request(
            "GET",
            f"{self._base_url}/thermostat",
            headers=bearer_headers(credentials.access_token),
            params={"json": json.dumps({"selection": selection})},
        )
        _raise_api_status(data, error_cls)
        raise_for_status(status, error_cls, "Thermostat request")
        return [thermostat for thermostat in as_list(as_dict(data).get("thermostatList")) if isinstance(thermostat, dict)]

    async def discover(self, credentials: Credentials) -> list[PlatformDevice]:
        """List every registered thermostat."""
        check_credentials(self.platform, credentials)
        thermostats = await self._thermostats(credentials, None, DeviceDiscoveryFailedError)
        return [self._parse_thermostat(thermostat) for thermostat in thermostats if thermostat.get("identifier")]

    def _parse_thermostat(self, thermostat: dict[str, Any]) -> PlatformDevice:
        settings = as_dict(thermostat.get("settings"))
        runtime = as_dict(thermostat.get("runtime"))

        capabilities = ["temperature", "heating", "cooling", "fan"]
        capabilities.extend(tag for key, tag in _OPTIONAL_EQUIPMENT.items() if settings.get(key))

        properties = {"hvacMode": str(settings.get("hvacMode", ""))}
        if thermostat.get("modelNumber"):
            properties["model"] = str(thermostat["modelNumber"])

        return PlatformDevice(
            id=str(thermostat["identifier"]),
            name=str(thermostat.get("name") or thermostat["identifier"]),
            type=DeviceType.THERMOSTAT,
            platform=self.platform,
            capabilities=tuple(capabilities),
            properties=properties,
            is_online=bool(runtime.get("connected", thermostat.get("isConnected", False))),
            is_on=settings.get("hvacMode", "off") != "off",
        )

    def build_command(self, action: Action, params: ActionParams | None = None) -> dict[str, Any]:
        """Translate an action into an Ecobee thermostat update body, without the selection."""
        if action is Action.SET_TEMPERATURE and isinstance(params, TemperatureParams):
            hold = round(params.fahrenheit * 10)
            return {
                "functions": [
                    {
                        "type": "setHold",
                        "params": {"holdType": "nextTransition", "heatHoldTemp": hold, "coolHoldTemp": hold},
                    }
                ]
            }
        if action is Action.SET_MODE and isinstance(params, ModeParams):
            return {"thermostat": {"settings": {"hvacMode": params.mode}}}
        if action is Action.TURN_OFF:
            return {"thermostat": {"settings": {"hvacMode": "off"}}}
        if action is Action.TURN_ON:
            return {"thermostat": {"settings": {"hvacMode": "auto"}}}
        return no_command(self.platform, action, params)

    async def execute(
        self,
        action: Action,
        device: PlatformDevice,
        credentials: Credentials,
        params: ActionParams | None = None,
    ) -> None:
        """Update one thermostat."""
        check_credentials(self.platform, credentials)
        check_action(self.platform, action, device, self.supported_actions)

        command = self.build_command(resolve_toggle(action, device), params)
        if not command:
            return

        status, data = await self._transport.request(
            "POST",
            f"{self._base_url}/thermostat",
            headers=bearer_headers(credentials.access_token),
            params={"format": "json"},
            json_data={"selection": _selection(device.id), **command},
        )
        _raise_api_status(data, ActionExecutionFailedError)
        raise_for_status(status, ActionExecutionFailedError, action.display_title)

    async def fetch_status(self, device: PlatformDevice, credentials: Credentials) -> DeviceStatus:
        """Read one thermostat's runtime and settings."""
        check_credentials(self.platform, credentials)

        thermostats = await self._thermostats(credentials, device.id, DeviceStatusFailedError)
        if not thermostats:
            msg = "Thermostat not found"
            raise DeviceStatusFailedError(msg)

        thermostat = thermostats[0]
        settings = as_dict(thermostat.get("settings"))
        runtime = as_dict(thermostat.get("runtime"))
        target = _tenths(runtime.get("desiredHeat"))
        humidity = runtime.get("actualHumidity")

        return DeviceStatus(
            is_online=bool(runtime.get("connected", False)),
            is_on=settings.get("hvacMode", "off") != "off",
            temperature=target if target is not None else _tenths(runtime.get("actualTemperature")),
            humidity=float(humidity) if isinstance(humidity, int | float) else None,
            mode=settings.get("hvacMode"),
        )
