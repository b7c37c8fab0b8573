"""Pytest configuration and fixtures for integration tests."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from dotenv import load_dotenv

from pyhomegateway import DeviceRegistry, GatewayConfig


if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


# Load .env file from project root
env_path = Path(__file__).parents[2] / ".env"
load_dotenv(env_path)


@pytest.fixture(scope="session")
def lifx_api_key() -> str:
    """Get the LIFX token, skipping when none is configured."""
    key = os.getenv("LIFX_API_KEY")
    if not key:
        pytest.skip("LIFX_API_KEY is not set")
    return key


@pytest.fixture(scope="session")
def lifx_device_id() -> str | None:
    """Get the LIFX light to control, or None to use the first discovered one."""
    return os.getenv("LIFX_TEST_DEVICE_ID")


@pytest.fixture(scope="session")
def hubitat_settings() -> tuple[str, str]:
    """Get the Hubitat hub address and Maker API token."""
    host = os.getenv("HUBITAT_HOST")
    token = os.getenv("HUBITAT_TOKEN")
    if not host or not token:
        pytest.skip("HUBITAT_HOST and HUBITAT_TOKEN are not set")
    return host, token


@pytest.fixture
async def live_registry() -> AsyncGenerator[DeviceRegistry]:
    """Registry with live adapters configured from the environment."""
    async with DeviceRegistry.from_config(GatewayConfig.from_env()) as registry:
        yield registry


@pytest.fixture(autouse=True)
async def rate_limit_delay(request: pytest.FixtureRequest) -> AsyncGenerator[None]:
    """Pause after each integration test so platform rate limits are not hit."""
    yield
    if "integration" in request.keywords:
        await asyncio.sleep(2.0)
