"""Integration tests against a real Hubitat hub on the local network."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from pyhomegateway import Platform


if TYPE_CHECKING:
    from pyhomegateway import DeviceRegistry


pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


class TestHubitat:
    """Test the Maker API on a live hub."""

    async def test_token_and_discovery(
        self, live_registry: DeviceRegistry, hubitat_settings: tuple[str, str]
    ) -> None:
        """Test that the token is accepted and devices are listed."""
        host, token = hubitat_settings

        credentials = await live_registry.authenticate_with_token(Platform.HUBITAT, token, host)

        assert credentials.local_ip == host
        assert live_registry.is_platform_connected(Platform.HUBITAT)
        assert Platform.HUBITAT not in live_registry.discovery_errors

    async def test_status_of_first_device(
        self, live_registry: DeviceRegistry, hubitat_settings: tuple[str, str]
    ) -> None:
        """Test reading one device's attributes."""
        host, token = hubitat_settings
        await live_registry.authenticate_with_token(Platform.HUBITAT, token, host)

        devices = live_registry.devices_for_platform(Platform.HUBITAT)
        if not devices:
            pytest.skip("Hub has no devices shared with the Maker API")

        status = await live_registry.fetch_status(devices[0])

        assert live_registry.status_for(devices[0].id) == status
