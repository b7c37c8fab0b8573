"""Tests for the Ring, Wyze, iRobot and Roborock adapters against one fake cloud."""

from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING

import pytest
from aiohttp import web

from pyhomegateway.actions import Action, BrightnessParams
from pyhomegateway.adapters.irobot import IRobotAdapter
from pyhomegateway.adapters.ring import RingAdapter
from pyhomegateway.adapters.roborock import RoborockAdapter
from pyhomegateway.adapters.wyze import WyzeAdapter
from pyhomegateway.const import WYZE_APP_ID
from pyhomegateway.exceptions import (
    ActionExecutionFailedError,
    ActionUnsupportedError,
    AuthenticationFailedError,
    AuthUnsupportedError,
    DeviceDiscoveryFailedError,
    InvalidCredentialsError,
)
from pyhomegateway.models import Credentials, DeviceType, Platform, PlatformDevice


if TYPE_CHECKING:
    from collections.abc import Callable

    from aiohttp.test_utils import TestClient


@pytest.fixture
def cloud_app() -> web.Application:
    """Fake cloud APIs for the OAuth2 platforms, one prefix each."""
    app = web.Application()
    app["requests"] = []
    app["wyze_control"] = {"code": "1", "msg": "SUCCESS"}
    app["wyze_list_code"] = "1"
    app["robot_state"] = 8

    @web.middleware
    async def check_token(request: web.Request, handler: Callable) -> web.StreamResponse:
        if request.headers.get("Authorization") != "Bearer access-token":
            return web.json_response({"error": "invalid_token"}, status=HTTPStatus.UNAUTHORIZED)
        return await handler(request)

    app.middlewares.append(check_token)

    async def record(request: web.Request) -> dict:
        body = await request.json() if request.can_read_body else None
        app["requests"].append((request.path, body))
        return body

    # Ring
    async def ring_devices(request: web.Request) -> web.Response:
        return web.json_response(
            {
                "doorbots": [
                    {
                        "id": 101,
                        "description": "Front Door",
                        "kind": "doorbell_v3",
                        "features": {"videoRecording": True},
                        "alerts": {"connection": "online"},
                    }
                ],
                "stickup_cams": [
                    {"id": 202, "description": "Garage", "features": {"nightVision": True}, "alerts": {"connection": "offline"}}
                ],
                "chimes": [{"id": 303, "description": "Hall Chime", "kind": "chime", "alerts": {"connection": "online"}}],
            }
        )

    async def ring_action(request: web.Request) -> web.Response:
        await record(request)
        return web.Response(status=HTTPStatus.NO_CONTENT)

    async def ring_device(request: web.Request) -> web.Response:
        return web.json_response({"id": 101, "battery_life": "86", "alerts": {"connection": "online"}})

    # Wyze
    async def wyze_list(request: web.Request) -> web.Response:
        body = await record(request)
        assert body["app_id"] == WYZE_APP_ID
        return web.json_response(
            {
                "code": app["wyze_list_code"],
                "msg": "SUCCESS" if app["wyze_list_code"] == "1" else "AccessTokenError",
                "data": {
                    "device_list": [
                        {
                            "mac": "7C78B2000001",
                            "nickname": "Porch Bulb",
                            "product_model": "WLPA19C",
                            "product_type": "Light",
                            "is_online": True,
                            "switch_status": "1",
                        },
                        {"mac": "2CAA8E000002", "nickname": "Garage Cam", "product_model": "WYZEC1-JZ", "conn_state": 1},
                        {"nickname": "no mac"},
                    ]
                },
            }
        )

    async def wyze_control(request: web.Request) -> web.Response:
        await record(request)
        return web.json_response(app["wyze_control"])

    async def wyze_info(request: web.Request) -> web.Response:
        await record(request)
        return web.json_response(
            {"code": "1", "data": {"is_online": True, "switch_status": "1", "brightness": "40", "temperature": 2700}}
        )

    # iRobot
    async def irobot_robots(request: web.Request) -> web.Response:
        return web.json_response(
            {
                "robots": [
                    {
                        "serialNumber": "R98-1",
                        "name": "Roomba",
                        "sku": "j755020",
                        "isOnline": True,
                        "capabilities": ["selfEmpty", "camera", "ota"],
                    }
                ]
            }
        )

    async def irobot_command(request: web.Request) -> web.Response:
        await record(request)
        return web.json_response({"accepted": True})

    async def irobot_status(request: web.Request) -> web.Response:
        return web.json_response({"status": {"state": "cleaning", "isOnline": True, "batteryPercentage": 72}})

    # Roborock
    async def roborock_devices(request: web.Request) -> web.Response:
        return web.json_response(
            {"devices": [{"duid": "rr-1", "name": "Roborock S7", "model": "roborock.vacuum.a15", "online": True}]}
        )

    async def roborock_command(request: web.Request) -> web.Response:
        await record(request)
        if request.match_info["device"] == "rr-gone":
            return web.json_response({"msg": "device not found"}, status=HTTPStatus.NOT_FOUND)
        return web.json_response({"result": ["ok"]})

    async def roborock_status(request: web.Request) -> web.Response:
        return web.json_response({"state": app["robot_state"], "battery": 100, "online": True})

    app.router.add_get("/ring/ring_devices", ring_devices)
    app.router.add_post("/ring/devices/{device}/{endpoint}", ring_action)
    app.router.add_get("/ring/devices/{device}", ring_device)
    app.router.add_post("/wyze/device/list", wyze_list)
    app.router.add_post("/wyze/device/control", wyze_control)
    app.router.add_post("/wyze/device/info", wyze_info)
    app.router.add_get("/irobot/robots", irobot_robots)
    app.router.add_post("/irobot/robots/{device}/commands", irobot_command)
    app.router.add_get("/irobot/robots/{device}/status", irobot_status)
    app.router.add_get("/roborock/devices", roborock_devices)
    app.router.add_post("/roborock/devices/{device}/commands", roborock_command)
    app.router.add_get("/roborock/devices/{device}/status", roborock_status)
    return app


@pytest.fixture
async def cloud_client(aiohttp_client: Callable, cloud_app: web.Application) -> TestClient:
    """Start the fake cloud."""
    return await aiohttp_client(cloud_app)


def device(platform: Platform, device_id: str, device_type: DeviceType, **kwargs) -> PlatformDevice:
    return PlatformDevice(id=device_id, name=device_id, type=device_type, platform=platform, **kwargs)


class TestRing:
    """Test the Ring adapter."""

    @pytest.fixture
    def adapter(self, cloud_client: TestClient, transport_for: Callable) -> RingAdapter:
        """Ring adapter pointed at the fake cloud."""
        return RingAdapter(transport_for(cloud_client), base_url=str(cloud_client.make_url("/ring")))

    async def test_discover(self, adapter: RingAdapter, cloud_credentials: Callable) -> None:
        """Test doorbells, cameras and chimes."""
        devices = {d.id: d for d in await adapter.discover(cloud_credentials(Platform.RING))}

        front = devices["101"]
        assert front.name == "Front Door"
        assert front.type is DeviceType.CAMERA
        assert front.capabilities == ("camera", "motionDetection", "doorbell", "twoWayAudio", "videoRecording")
        assert front.properties == {"kind": "doorbell_v3"}
        assert front.is_online is True

        garage = devices["202"]
        assert garage.capabilities == ("camera", "motionDetection", "twoWayAudio", "nightVision")
        assert garage.properties == {"kind": "stickup_cams"}
        assert garage.is_online is False

        chime = devices["303"]
        assert chime.type is DeviceType.SPEAKER
        assert chime.capabilities == ("audio", "notifications")

    async def test_camera_actions(
        self, adapter: RingAdapter, cloud_app: web.Application, cloud_credentials: Callable
    ) -> None:
        """Test snapshots and recording."""
        camera = device(Platform.RING, "101", DeviceType.CAMERA)
        credentials = cloud_credentials(Platform.RING)

        await adapter.execute(Action.TAKE_PHOTO, camera, credentials)
        await adapter.execute(Action.START_RECORDING, camera, credentials)
        await adapter.execute(Action.STOP_RECORDING, camera, credentials)

        assert cloud_app["requests"] == [
            ("/ring/devices/101/take_photo", {"force": True}),
            ("/ring/devices/101/recording_status", {"recording_status": "start"}),
            ("/ring/devices/101/recording_status", {"recording_status": "stop"}),
        ]

    async def test_power_unsupported(self, adapter: RingAdapter, cloud_credentials: Callable) -> None:
        """Test that Ring cameras cannot be switched."""
        with pytest.raises(ActionUnsupportedError, match="Ring does not support Turn Off"):
            await adapter.execute(
                Action.TURN_OFF, device(Platform.RING, "101", DeviceType.CAMERA), cloud_credentials(Platform.RING)
            )

    async def test_status(self, adapter: RingAdapter, cloud_credentials: Callable) -> None:
        """Test connection and battery."""
        status = await adapter.fetch_status(
            device(Platform.RING, "101", DeviceType.CAMERA), cloud_credentials(Platform.RING)
        )

        assert status.is_online is True
        assert status.battery == 86

    async def test_authenticate_without_client(self, adapter: RingAdapter) -> None:
        """Test that Ring needs a client registration."""
        with pytest.raises(AuthenticationFailedError, match="no OAuth client configured for Ring"):
            await adapter.authenticate()


class TestWyze:
    """Test the Wyze adapter."""

    @pytest.fixture
    def adapter(self, cloud_client: TestClient, transport_for: Callable) -> WyzeAdapter:
        """Wyze adapter pointed at the fake cloud."""
        return WyzeAdapter(transport_for(cloud_client), base_url=str(cloud_client.make_url("/wyze")))

    @pytest.fixture
    def porch(self) -> PlatformDevice:
        """The porch bulb, currently on."""
        return device(Platform.WYZE, "7C78B2000001", DeviceType.BULB, properties={"model": "WLPA19C"}, is_on=True)

    async def test_discover(self, adapter: WyzeAdapter, cloud_credentials: Callable) -> None:
        """Test device types from product type and model."""
        devices = {d.id: d for d in await adapter.discover(cloud_credentials(Platform.WYZE))}

        assert set(devices) == {"7C78B2000001", "2CAA8E000002"}

        bulb = devices["7C78B2000001"]
        assert bulb.name == "Porch Bulb"
        assert bulb.type is DeviceType.BULB
        assert bulb.capabilities == ("on", "brightness", "color", "colorTemperature")
        assert bulb.is_on is True

        camera = devices["2CAA8E000002"]
        assert camera.type is DeviceType.CAMERA
        assert camera.is_online is True

    async def test_envelope_error(
        self, adapter: WyzeAdapter, cloud_app: web.Application, cloud_credentials: Callable
    ) -> None:
        """Test that a failed envelope fails discovery."""
        cloud_app["wyze_list_code"] = "2001"

        with pytest.raises(DeviceDiscoveryFailedError, match="Wyze error code 2001"):
            await adapter.discover(cloud_credentials(Platform.WYZE))

    async def test_control(
        self,
        adapter: WyzeAdapter,
        cloud_app: web.Application,
        cloud_credentials: Callable,
        porch: PlatformDevice,
    ) -> None:
        """Test control bodies, including toggle from the known state."""
        credentials = cloud_credentials(Platform.WYZE)

        await adapter.execute(Action.SET_BRIGHTNESS, porch, credentials, BrightnessParams(40))
        await adapter.execute(Action.TOGGLE, porch, credentials)

        base = {"app_id": WYZE_APP_ID, "device_mac": "7C78B2000001", "device_model": "WLPA19C"}
        assert cloud_app["requests"] == [
            ("/wyze/device/control", {**base, "action": "set_brightness", "value": 40}),
            ("/wyze/device/control", {**base, "action": "power_off"}),
        ]

    async def test_control_rejected(
        self,
        adapter: WyzeAdapter,
        cloud_app: web.Application,
        cloud_credentials: Callable,
        porch: PlatformDevice,
    ) -> None:
        """Test that the envelope message is surfaced."""
        cloud_app["wyze_control"] = {"code": "3044", "message": "Device offline"}

        with pytest.raises(ActionExecutionFailedError, match="Device offline"):
            await adapter.execute(Action.TURN_ON, porch, cloud_credentials(Platform.WYZE))

    async def test_status(self, adapter: WyzeAdapter, cloud_credentials: Callable, porch: PlatformDevice) -> None:
        """Test reading device info."""
        status = await adapter.fetch_status(porch, cloud_credentials(Platform.WYZE))

        assert status.is_online is True
        assert status.is_on is True
        assert status.brightness == 40
        assert status.temperature == 2700.0

    async def test_revoked_token(self, adapter: WyzeAdapter) -> None:
        """Test that a rejected token means invalid credentials."""
        with pytest.raises(InvalidCredentialsError):
            await adapter.discover(Credentials(platform=Platform.WYZE, access_token="revoked"))


class TestIRobot:
    """Test the iRobot adapter."""

    @pytest.fixture
    def adapter(self, cloud_client: TestClient, transport_for: Callable) -> IRobotAdapter:
        """iRobot adapter pointed at the fake cloud."""
        return IRobotAdapter(transport_for(cloud_client), base_url=str(cloud_client.make_url("/irobot")))

    async def test_discover(self, adapter: IRobotAdapter, cloud_credentials: Callable) -> None:
        """Test robot capabilities."""
        robots = await adapter.discover(cloud_credentials(Platform.IROBOT))

        assert len(robots) == 1
        assert robots[0].id == "R98-1"
        assert robots[0].type is DeviceType.VACUUM
        assert robots[0].capabilities == ("vacuum", "navigation", "mapping", "selfEmpty", "camera")
        assert robots[0].properties == {"model": "j755020"}

    async def test_commands(
        self, adapter: IRobotAdapter, cloud_app: web.Application, cloud_credentials: Callable
    ) -> None:
        """Test mission commands."""
        robot = device(Platform.IROBOT, "R98-1", DeviceType.VACUUM)
        credentials = cloud_credentials(Platform.IROBOT)

        await adapter.execute(Action.START_CLEANING, robot, credentials)
        await adapter.execute(Action.RETURN_TO_BASE, robot, credentials)

        assert cloud_app["requests"] == [
            ("/irobot/robots/R98-1/commands", {"command": "start", "initiator": "localApp"}),
            ("/irobot/robots/R98-1/commands", {"command": "dock", "initiator": "localApp"}),
        ]

    async def test_status(self, adapter: IRobotAdapter, cloud_credentials: Callable) -> None:
        """Test mission state."""
        status = await adapter.fetch_status(
            device(Platform.IROBOT, "R98-1", DeviceType.VACUUM), cloud_credentials(Platform.IROBOT)
        )

        assert status.is_cleaning is True
        assert status.is_on is True
        assert status.battery == 72

    async def test_hub_token_unsupported(self, adapter: IRobotAdapter) -> None:
        """Test that iRobot is not a local hub."""
        with pytest.raises(AuthUnsupportedError):
            await adapter.authenticate_with_token("token", "192.168.1.10")


class TestRoborock:
    """Test the Roborock adapter."""

    @pytest.fixture
    def adapter(self, cloud_client: TestClient, transport_for: Callable) -> RoborockAdapter:
        """Roborock adapter pointed at the fake cloud."""
        return RoborockAdapter(transport_for(cloud_client), base_url=str(cloud_client.make_url("/roborock")))

    async def test_discover(self, adapter: RoborockAdapter, cloud_credentials: Callable) -> None:
        """Test the device listing."""
        robots = await adapter.discover(cloud_credentials(Platform.ROBOROCK))

        assert [(robot.id, robot.name, robot.is_online) for robot in robots] == [("rr-1", "Roborock S7", True)]
        assert robots[0].properties == {"model": "roborock.vacuum.a15"}

    async def test_spot_clean(
        self, adapter: RoborockAdapter, cloud_app: web.Application, cloud_credentials: Callable
    ) -> None:
        """Test the method call body."""
        await adapter.execute(
            Action.SPOT_CLEAN, device(Platform.ROBOROCK, "rr-1", DeviceType.VACUUM), cloud_credentials(Platform.ROBOROCK)
        )

        assert cloud_app["requests"] == [("/roborock/devices/rr-1/commands", {"method": "app_spot", "params": []})]

    async def test_command_failure(self, adapter: RoborockAdapter, cloud_credentials: Callable) -> None:
        """Test a command for an unknown robot."""
        with pytest.raises(ActionExecutionFailedError, match="status 404"):
            await adapter.execute(
                Action.STOP_CLEANING,
                device(Platform.ROBOROCK, "rr-gone", DeviceType.VACUUM),
                cloud_credentials(Platform.ROBOROCK),
            )

    @pytest.mark.parametrize(("state", "is_on", "is_cleaning"), [(8, False, False), (5, True, True), (6, True, False)])
    async def test_status(
        self,
        adapter: RoborockAdapter,
        cloud_app: web.Application,
        cloud_credentials: Callable,
        state: int,
        is_on: bool,
        is_cleaning: bool,
    ) -> None:
        """Test state codes."""
        cloud_app["robot_state"] = state

        status = await adapter.fetch_status(
            device(Platform.ROBOROCK, "rr-1", DeviceType.VACUUM), cloud_credentials(Platform.ROBOROCK)
        )

        assert status.is_on is is_on
        assert status.is_cleaning is is_cleaning
        assert status.battery == 100
