"""Python device control gateway for smart-home platforms.

This package gives one async interface over LIFX, Philips Hue, Hubitat,
Google Nest, SmartThings, Ecobee, Ring, Wyze, iRobot and Roborock.

The library is organized into three layers:
1. **Transport Layer** (pyhomegateway.transport, pyhomegateway.oauth): HTTP
   requests, OAuth2 flows and local-network discovery
2. **Adapter Layer** (pyhomegateway.adapters): One adapter per platform that
   translates generic actions into platform commands
3. **Registry Layer** (pyhomegateway.registry): Devices, auth state and the
   cached status of every device

Example:
    Basic usage:

    ```python
    from pyhomegateway import Action, DeviceRegistry, GatewayConfig, Platform

    async with DeviceRegistry.from_config(GatewayConfig.from_env()) as registry:
        # Authenticating a platform also discovers its devices
        await registry.authenticate(Platform.LIFX, api_key="c1234...")

        for device in registry.devices_for_platform(Platform.LIFX):
            status = await registry.execute(Action.TOGGLE, device)
            print(f"{device.name}: {'on' if status.is_on else 'off'}")
    ```

    Persisting the registry:

    ```python
    from pyhomegateway import DeviceRegistry, serialize_snapshot

    registry = DeviceRegistry.from_config(
        on_snapshot=lambda snapshot: store.save(serialize_snapshot(snapshot)),
    )
    ```
"""

from __future__ import annotations

from pyhomegateway.actions import (
    Action,
    ActionParams,
    BrightnessParams,
    ColorParams,
    ModeParams,
    TemperatureParams,
    TemperatureScale,
    VolumeParams,
    parse_action_params,
)
from pyhomegateway.adapters import PlatformAdapter, SimulatedAdapter, create_adapters
from pyhomegateway.auth import AuthState, AuthStateMachine, AuthStatus
from pyhomegateway.config import GatewayConfig, OAuthClientConfig
from pyhomegateway.exceptions import (
    ActionExecutionFailedError,
    ActionUnsupportedError,
    AuthenticationFailedError,
    AuthUnsupportedError,
    DeviceDiscoveryFailedError,
    DeviceNotFoundError,
    DeviceStatusFailedError,
    ErrorKind,
    GatewayConnectionError,
    GatewayError,
    GatewayTimeoutError,
    InvalidCredentialsError,
    LinkButtonNotPressedError,
    NetworkError,
    PlatformNotAuthenticatedError,
    PlatformNotSupportedError,
    RateLimitError,
)
from pyhomegateway.models import (
    AuthType,
    Credentials,
    Device,
    DeviceStatus,
    DeviceType,
    Platform,
    PlatformDevice,
    Position,
    RegistrySnapshot,
    Room,
)
from pyhomegateway.oauth import LoopbackWebAuth
from pyhomegateway.registry import DeviceRegistry, DiscoveryReport
from pyhomegateway.resilience import ExponentialBackoff, RateLimiter, retry_with_backoff
from pyhomegateway.serializers import (
    deserialize_credentials,
    deserialize_snapshot,
    serialize_credentials,
    serialize_snapshot,
)
from pyhomegateway.transport import HttpTransport


__version__ = "0.1.0"

__all__ = [
    "Action",
    "ActionExecutionFailedError",
    "ActionParams",
    "ActionUnsupportedError",
    "AuthState",
    "AuthStateMachine",
    "AuthStatus",
    "AuthType",
    "AuthUnsupportedError",
    "AuthenticationFailedError",
    "BrightnessParams",
    "ColorParams",
    "Credentials",
    "Device",
    "DeviceDiscoveryFailedError",
    "DeviceNotFoundError",
    "DeviceRegistry",
    "DeviceStatus",
    "DeviceStatusFailedError",
    "DeviceType",
    "DiscoveryReport",
    "ErrorKind",
    "ExponentialBackoff",
    "GatewayConfig",
    "GatewayConnectionError",
    "GatewayError",
    "GatewayTimeoutError",
    "HttpTransport",
    "InvalidCredentialsError",
    "LinkButtonNotPressedError",
    "LoopbackWebAuth",
    "ModeParams",
    "NetworkError",
    "OAuthClientConfig",
    "Platform",
    "PlatformAdapter",
    "PlatformDevice",
    "PlatformNotAuthenticatedError",
    "PlatformNotSupportedError",
    "Position",
    "RateLimitError",
    "RateLimiter",
    "RegistrySnapshot",
    "Room",
    "SimulatedAdapter",
    "TemperatureParams",
    "TemperatureScale",
    "VolumeParams",
    "__version__",
    "create_adapters",
    "deserialize_credentials",
    "deserialize_snapshot",
    "parse_action_params",
    "retry_with_backoff",
    "serialize_credentials",
    "serialize_snapshot",
]
