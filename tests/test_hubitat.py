"""Tests for the Hubitat Maker API adapter against a fake hub."""

from __future__ import annotations

import json
from http import HTTPStatus
from typing import TYPE_CHECKING

import pytest
from aiohttp import web

from pyhomegateway.actions import Action, ColorParams, ModeParams, TemperatureParams, TemperatureScale
from pyhomegateway.adapters.hubitat import HubitatAdapter
from pyhomegateway.exceptions import (
    ActionUnsupportedError,
    AuthenticationFailedError,
    AuthUnsupportedError,
    InvalidCredentialsError,
)
from pyhomegateway.models import Credentials, DeviceType, Platform, PlatformDevice


if TYPE_CHECKING:
    from collections.abc import Callable

    from aiohttp.test_utils import TestClient

TOKEN = "maker-token"

DEVICES = [
    {
        "id": "12",
        "name": "Generic Z-Wave Lock",
        "label": "Front Door",
        "type": "Generic Z-Wave Lock",
        "capabilities": ["Lock", "Battery", {"name": "Refresh"}],
        "attributes": [{"name": "lock", "currentValue": "locked"}, {"name": "battery", "currentValue": "87"}],
    },
    {
        "id": "20",
        "label": "Living Room Thermostat",
        "type": "Virtual Thermostat",
        "capabilities": ["Thermostat", "TemperatureMeasurement"],
        "attributes": {"thermostatMode": "heat", "heatingSetpoint": "68", "humidity": 41},
    },
    {
        "id": "31",
        "label": "Porch Light",
        "type": "Generic Zigbee RGBW Light",
        "capabilities": ["ColorControl", "Switch", "SwitchLevel"],
        "attributes": {"switch": "on", "level": 80},
        "healthStatus": "offline",
    },
    {"id": "40", "label": "Motion Sensor", "capabilities": ["MotionSensor"], "attributes": {}},
]


@pytest.fixture
def hub() -> web.Application:
    """Fake Hubitat hub with a Maker API app."""
    app = web.Application()
    app["commands"] = []

    @web.middleware
    async def check_token(request: web.Request, handler: Callable) -> web.StreamResponse:
        if request.path.startswith("/apps/") and request.query.get("access_token") != TOKEN:
            return web.Response(status=HTTPStatus.UNAUTHORIZED)
        return await handler(request)

    app.middlewares.append(check_token)

    async def status(request: web.Request) -> web.Response:
        return web.json_response({"status": "running"})

    async def devices(request: web.Request) -> web.Response:
        return web.json_response([{"id": device["id"], "label": device["label"]} for device in DEVICES])

    async def devices_all(request: web.Request) -> web.Response:
        return web.json_response(DEVICES)

    async def device(request: web.Request) -> web.Response:
        for details in DEVICES:
            if details["id"] == request.match_info["device"]:
                return web.json_response(details)
        return web.Response(status=HTTPStatus.NOT_FOUND)

    async def command(request: web.Request) -> web.Response:
        app["commands"].append(
            (request.match_info["device"], request.match_info["command"], request.match_info.get("value"))
        )
        return web.json_response({"id": request.match_info["device"]})

    app.router.add_get("/hub/status", status)
    app.router.add_get("/apps/api/{app}/devices", devices)
    app.router.add_get("/apps/api/{app}/devices/all", devices_all)
    app.router.add_get("/apps/api/{app}/devices/{device}", device)
    app.router.add_get("/apps/api/{app}/devices/{device}/{command}", command)
    app.router.add_get("/apps/api/{app}/devices/{device}/{command}/{value:[^/]+}", command)
    return app


@pytest.fixture
async def hub_client(aiohttp_client: Callable, hub: web.Application) -> TestClient:
    """Start the fake hub."""
    return await aiohttp_client(hub)


@pytest.fixture
def adapter(hub_client: TestClient, transport_for: Callable) -> HubitatAdapter:
    """Hubitat adapter probing the fake hub."""
    return HubitatAdapter(transport_for(hub_client), candidates=("127.0.0.1",), port=hub_client.make_url("").port)


@pytest.fixture
def credentials() -> Credentials:
    """Maker API credentials."""
    return Credentials(platform=Platform.HUBITAT, api_key=TOKEN, local_ip="127.0.0.1")


def hub_device(device_id: str, device_type: DeviceType, *, is_on: bool = False) -> PlatformDevice:
    return PlatformDevice(id=device_id, name=device_id, type=device_type, platform=Platform.HUBITAT, is_on=is_on)


class TestAuthentication:
    """Test locating the hub and validating tokens."""

    async def test_authenticate_finds_hub(self, adapter: HubitatAdapter) -> None:
        """Test that the zero-argument flow locates the hub but needs a token."""
        with pytest.raises(AuthenticationFailedError, match="hub found at 127.0.0.1"):
            await adapter.authenticate()

        assert adapter.discovered_host == "127.0.0.1"

    async def test_token_with_discovered_hub(self, adapter: HubitatAdapter) -> None:
        """Test that a token is validated against the probed hub."""
        credentials = await adapter.authenticate_with_token(TOKEN)

        assert credentials.platform is Platform.HUBITAT
        assert credentials.api_key == TOKEN
        assert credentials.local_ip == "127.0.0.1"

    async def test_rejected_token(self, adapter: HubitatAdapter) -> None:
        """Test a token the hub does not accept."""
        with pytest.raises(InvalidCredentialsError):
            await adapter.authenticate_with_token("wrong", "127.0.0.1")

    async def test_empty_token(self, adapter: HubitatAdapter) -> None:
        """Test that an empty token is refused."""
        with pytest.raises(InvalidCredentialsError, match="empty"):
            await adapter.authenticate_with_token("", "127.0.0.1")

    async def test_no_hub(self, hub_client: TestClient, transport_for: Callable) -> None:
        """Test authentication when no candidate answers."""
        adapter = HubitatAdapter(transport_for(hub_client), candidates=(), port=hub_client.make_url("").port)

        with pytest.raises(AuthenticationFailedError, match="no Hubitat hub found"):
            await adapter.authenticate_with_token(TOKEN)

    async def test_api_key_unsupported(self, adapter: HubitatAdapter) -> None:
        """Test that Hubitat does not take API keys."""
        with pytest.raises(AuthUnsupportedError):
            await adapter.authenticate_with_key("key")


class TestDiscovery:
    """Test device listing."""

    async def test_discover(self, adapter: HubitatAdapter, credentials: Credentials) -> None:
        """Test device types, attributes and health."""
        devices = {device.id: device for device in await adapter.discover(credentials)}

        lock = devices["12"]
        assert lock.name == "Front Door"
        assert lock.type is DeviceType.LOCK
        assert lock.capabilities == ("Lock", "Battery", "Refresh")
        assert lock.properties["lock"] == "locked"

        assert devices["20"].type is DeviceType.THERMOSTAT

        light = devices["31"]
        assert light.type is DeviceType.BULB
        assert light.is_on is True
        assert light.is_online is False

        assert devices["40"].type is DeviceType.HUB_DEVICE
        assert devices["40"].is_online is True


class TestExecute:
    """Test Maker API commands."""

    async def test_lock(self, adapter: HubitatAdapter, hub: web.Application, credentials: Credentials) -> None:
        """Test a command without a value."""
        await adapter.execute(Action.LOCK, hub_device("12", DeviceType.LOCK), credentials)

        assert hub["commands"] == [("12", "lock", None)]

    async def test_toggle(self, adapter: HubitatAdapter, hub: web.Application, credentials: Credentials) -> None:
        """Test that a toggle of a lit light sends off."""
        await adapter.execute(Action.TOGGLE, hub_device("31", DeviceType.BULB, is_on=True), credentials)

        assert hub["commands"] == [("31", "off", None)]

    async def test_set_color(self, adapter: HubitatAdapter, hub: web.Application, credentials: Credentials) -> None:
        """Test that color is sent as a JSON path segment."""
        await adapter.execute(Action.SET_COLOR, hub_device("31", DeviceType.BULB), credentials, ColorParams("#00FF00"))

        device_id, command, value = hub["commands"][0]
        assert (device_id, command) == ("31", "setColor")
        assert json.loads(value) == {"hue": 33, "saturation": 100, "level": 100}

    async def test_thermostat(self, adapter: HubitatAdapter, hub: web.Application, credentials: Credentials) -> None:
        """Test setpoints in Fahrenheit and mode changes."""
        thermostat = hub_device("20", DeviceType.THERMOSTAT)

        await adapter.execute(
            Action.SET_TEMPERATURE, thermostat, credentials, TemperatureParams(21, TemperatureScale.CELSIUS)
        )
        await adapter.execute(Action.SET_MODE, thermostat, credentials, ModeParams("cool"))

        assert hub["commands"] == [("20", "setHeatingSetpoint", "69.8"), ("20", "setThermostatMode", "cool")]

    async def test_unsupported_action(self, adapter: HubitatAdapter, credentials: Credentials) -> None:
        """Test an action the Maker API mapping lacks."""
        with pytest.raises(ActionUnsupportedError, match="Hubitat does not support"):
            await adapter.execute(Action.PLAY, hub_device("50", DeviceType.SPEAKER), credentials)


class TestFetchStatus:
    """Test reading device attributes."""

    async def test_lock_status(self, adapter: HubitatAdapter, credentials: Credentials) -> None:
        """Test list-shaped attributes."""
        status = await adapter.fetch_status(hub_device("12", DeviceType.LOCK), credentials)

        assert status.is_online is True
        assert status.is_locked is True
        assert status.battery == 87

    async def test_thermostat_status(self, adapter: HubitatAdapter, credentials: Credentials) -> None:
        """Test dict-shaped attributes."""
        status = await adapter.fetch_status(hub_device("20", DeviceType.THERMOSTAT), credentials)

        assert status.temperature == 68.0
        assert status.humidity == 41.0
        assert status.mode == "heat"
        assert status.is_locked is None
