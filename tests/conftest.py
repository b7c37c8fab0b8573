"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock

import pytest
from aiohttp import ClientSession

from pyhomegateway.adapters import SimulatedAdapter
from pyhomegateway.models import Credentials, DeviceType, Platform, PlatformDevice, utcnow
from pyhomegateway.registry import DeviceRegistry
from pyhomegateway.transport import HttpTransport


if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from aiohttp.test_utils import TestClient


@pytest.fixture
async def mock_session() -> AsyncGenerator[ClientSession]:
    """Create a mock aiohttp ClientSession.

    Yields:
        Mock ClientSession for testing.
    """
    session = AsyncMock(spec=ClientSession)
    session.closed = False

    async def mock_close() -> None:
        session.closed = True

    session.close = mock_close

    yield session

    if not session.closed:
        await session.close()


@pytest.fixture
def transport_for():
    """Build an HttpTransport that talks to an aiohttp test client's server."""

    def _make(client: TestClient) -> HttpTransport:
        return HttpTransport(session=client.session)

    return _make


@pytest.fixture
def lifx_credentials() -> Credentials:
    """Credentials for LIFX."""
    return Credentials(platform=Platform.LIFX, api_key="lifx-key")


@pytest.fixture
def cloud_credentials():
    """Build OAuth2 credentials for a cloud platform."""

    def _make(platform: Platform) -> Credentials:
        return Credentials(
            platform=platform,
            access_token="access-token",
            refresh_token="refresh-token",
            expires_at=utcnow() + timedelta(hours=1),
        )

    return _make


@pytest.fixture
def lamp() -> PlatformDevice:
    """A LIFX bulb as reported by discovery."""
    return PlatformDevice(
        id="d073d5000001",
        name="Desk Lamp",
        type=DeviceType.BULB,
        platform=Platform.LIFX,
        capabilities=("on", "brightness", "color"),
        is_online=True,
    )


@pytest.fixture
def simulated_lifx(lamp: PlatformDevice) -> SimulatedAdapter:
    """A simulated LIFX account with one bulb."""
    return SimulatedAdapter(Platform.LIFX, devices=[lamp])


@pytest.fixture
def simulated_nest() -> SimulatedAdapter:
    """A simulated Nest account with one thermostat."""
    return SimulatedAdapter(
        Platform.NEST,
        devices=[
            PlatformDevice(
                id="enterprises/p/devices/t1",
                name="Hallway",
                type=DeviceType.THERMOSTAT,
                platform=Platform.NEST,
                is_online=True,
                is_on=True,
            )
        ],
    )


@pytest.fixture
def registry(simulated_lifx: SimulatedAdapter, simulated_nest: SimulatedAdapter) -> DeviceRegistry:
    """A registry with simulated LIFX and Nest adapters."""
    return DeviceRegistry({Platform.LIFX: simulated_lifx, Platform.NEST: simulated_nest})
