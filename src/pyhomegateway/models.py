"""Data models for the device control gateway."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pyhomegateway.const import DEFAULT_TEMPERATURE, DEFAULT_VOLUME


__all__ = [
    "AuthType",
    "Credentials",
    "Device",
    "DeviceStatus",
    "DeviceType",
    "Platform",
    "PlatformDevice",
    "PlatformInfo",
    "Position",
    "RegistrySnapshot",
    "Room",
]


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


class AuthType(Enum):
    """How a platform establishes credentials."""

    API_KEY = "api_key"
    OAUTH2 = "oauth2"
    LOCAL_NETWORK = "local_network"
    BRIDGE = "bridge"


@dataclass(frozen=True)
class PlatformInfo:
    """Immutable presentation and auth metadata for a platform.

    Attributes:
        display_name: Human-readable name.
        icon: Symbol name used by user interfaces.
        color: Accent color name.
        description: One-line description of the platform.
        auth_type: How the platform authenticates.
    """

    display_name: str
    icon: str
    color: str
    description: str
    auth_type: AuthType


class Platform(Enum):
    """Supported smart-home platforms."""

    LIFX = "lifx"
    SMARTTHINGS = "smartthings"
    ROBOROCK = "roborock"
    IROBOT = "irobot"
    HUBITAT = "hubitat"
    PHILIPS_HUE = "philips_hue"
    NEST = "nest"
    ECOBEE = "ecobee"
    RING = "ring"
    WYZE = "wyze"

    @property
    def info(self) -> PlatformInfo:
        """Get the platform's metadata."""
        return _PLATFORM_INFO[self]

    @property
    def display_name(self) -> str:
        """Get the human-readable platform name."""
        return self.info.display_name

    @property
    def icon(self) -> str:
        """Get the platform icon name."""
        return self.info.icon

    @property
    def color(self) -> str:
        """Get the platform accent color."""
        return self.info.color

    @property
    def description(self) -> str:
        """Get the platform description."""
        return self.info.description

    @property
    def auth_type(self) -> AuthType:
        """Get how the platform authenticates."""
        return self.info.auth_type


_PLATFORM_INFO: dict[Platform, PlatformInfo] = {
    Platform.LIFX: PlatformInfo(
        "LIFX", "lightbulb.fill", "orange", "Smart WiFi light bulbs", AuthType.API_KEY
    ),
    Platform.SMARTTHINGS: PlatformInfo(
        "SmartThings", "house.fill", "blue", "Samsung smart home hub and devices", AuthType.OAUTH2
    ),
    Platform.ROBOROCK: PlatformInfo(
        "Roborock", "gearshape.fill", "gray", "Robot vacuum cleaners", AuthType.OAUTH2
    ),
    Platform.IROBOT: PlatformInfo(
        "iRobot", "gearshape.fill", "green", "Roomba robot vacuums", AuthType.OAUTH2
    ),
    Platform.HUBITAT: PlatformInfo(
        "Hubitat", "house.fill", "purple", "Local smart home automation hub", AuthType.LOCAL_NETWORK
    ),
    Platform.PHILIPS_HUE: PlatformInfo(
        "Philips Hue", "lightbulb.fill", "yellow", "Smart lighting via the Hue bridge", AuthType.BRIDGE
    ),
    Platform.NEST: PlatformInfo(
        "Google Nest", "thermometer", "red", "Thermostats, cameras and displays", AuthType.OAUTH2
    ),
    Platform.ECOBEE: PlatformInfo(
        "Ecobee", "thermometer", "teal", "Smart thermostats and sensors", AuthType.OAUTH2
    ),
    Platform.RING: PlatformInfo(
        "Ring", "camera.fill", "cyan", "Video doorbells and security cameras", AuthType.OAUTH2
    ),
    Platform.WYZE: PlatformInfo(
        "Wyze", "camera.fill", "indigo", "Affordable cameras, plugs and bulbs", AuthType.OAUTH2
    ),
}


class DeviceType(Enum):
    """Kinds of device the gateway can control."""

    BULB = "bulb"
    TV = "tv"
    VACUUM = "vacuum"
    HUB_DEVICE = "hub_device"
    SPEAKER = "speaker"
    THERMOSTAT = "thermostat"
    LOCK = "lock"
    CAMERA = "camera"


@dataclass(frozen=True)
class Position:
    """Opaque 3D placement owned by the scanning collaborator."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass(frozen=True)
class Credentials:
    """Platform credentials.

    Only the fields relevant to the platform's auth type are populated.
    Secret values are kept out of ``repr`` so credentials can be logged safely.

    Attributes:
        platform: Platform these credentials belong to.
        access_token: OAuth2 access token.
        refresh_token: OAuth2 refresh token.
        api_key: API key or local hub token.
        local_ip: Address of a local hub.
        bridge_ip: Address of a bridge.
        expires_at: Expiry time, None when the credentials do not expire.
        user_id: Platform user id, or the bridge username for Hue.
    """

    platform: Platform
    access_token: str | None = field(default=None, repr=False)
    refresh_token: str | None = field(default=None, repr=False)
    api_key: str | None = field(default=None, repr=False)
    local_ip: str | None = None
    bridge_ip: str | None = None
    expires_at: datetime | None = None
    user_id: str | None = None

    @property
    def is_expired(self) -> bool:
        """Check whether the credentials have passed their expiry."""
        return self.expires_at is not None and self.expires_at <= utcnow()

    @property
    def is_valid(self) -> bool:
        """Check that the credentials are unexpired and carry something usable."""
        if self.is_expired:
            return False
        return any((self.access_token, self.api_key, self.local_ip, self.bridge_ip))


@dataclass(frozen=True)
class PlatformDevice:
    """A device as reported by a platform adapter.

    Attributes:
        id: Platform-native device identifier.
        name: Device name reported by the platform.
        type: Kind of device.
        platform: Platform that owns the device.
        capabilities: Capability tags reported during discovery.
        properties: Free-form platform properties.
        is_online: Whether the platform reports the device reachable.
        is_on: Whether the device is powered on.
    """

    id: str
    name: str
    type: DeviceType
    platform: Platform
    capabilities: tuple[str, ...] = ()
    properties: dict[str, str] = field(default_factory=dict)
    is_online: bool = False
    is_on: bool = False


@dataclass(frozen=True)
class Device:
    """A device known to the registry.

    Attributes:
        id: Registry-unique identifier.
        name: Display name.
        type: Kind of device.
        position: Placement in the scanned room.
        platform: Owning platform, None for devices placed but not yet linked.
        is_online: Last known reachability.
        is_on: Last known power state.
        properties: Free-form string properties.
        last_updated: When the record last changed.
        native_id: The platform's own id, when it differs from ``id``.
        capabilities: Capability tags from discovery.
    """

    id: str
    name: str
    type: DeviceType
    position: Position = field(default_factory=Position)
    platform: Platform | None = None
    is_online: bool = False
    is_on: bool = False
    properties: dict[str, str] = field(default_factory=dict)
    last_updated: datetime = field(default_factory=utcnow)
    native_id: str | None = None
    capabilities: tuple[str, ...] = ()

    @classmethod
    def from_platform_device(cls, platform_device: PlatformDevice) -> Device:
        """Build a registry device from a discovery result.

        The registry id is namespaced by platform so ids from different
        platforms cannot collide.
        """
        return cls(
            id=f"{platform_device.platform.value}:{platform_device.id}",
            name=platform_device.name,
            type=platform_device.type,
            platform=platform_device.platform,
            is_online=platform_device.is_online,
            is_on=platform_device.is_on,
            properties=dict(platform_device.properties),
            native_id=platform_device.id,
            capabilities=platform_device.capabilities,
        )

    def to_platform_device(self) -> PlatformDevice:
        """Convert to the form adapters operate on.

        Raises:
            ValueError: If the device has no platform.
        """
        if self.platform is None:
            msg = f"Device {self.id} has no platform"
            raise ValueError(msg)

        return PlatformDevice(
            id=self.native_id or self.id,
            name=self.name,
            type=self.type,
            platform=self.platform,
            capabilities=self.capabilities,
            properties=dict(self.properties),
            is_online=self.is_online,
            is_on=self.is_on,
        )

    def merged_with(self, discovered: Device) -> Device:
        """Refresh platform-reported fields while keeping local placement."""
        return replace(
            discovered,
            position=self.position,
            properties={**self.properties, **discovered.properties},
        )


@dataclass(frozen=True)
class DeviceStatus:
    """Cached status of a device.

    Attributes:
        is_online: Whether the device is reachable.
        is_on: Power state.
        brightness: Brightness percentage (0-100).
        volume: Volume percentage (0-100).
        temperature: Target temperature.
        humidity: Relative humidity percentage.
        battery: Battery percentage.
        is_cleaning: Whether a vacuum is cleaning.
        is_locked: Lock state, None when unknown.
        mode: Operating mode (thermostat HVAC mode and similar).
        last_updated: Producer timestamp used to discard out-of-order writes.
        last_error: Message of the last failed operation on the device.
    """

    is_online: bool = False
    is_on: bool = False
    brightness: int | None = None
    volume: int | None = DEFAULT_VOLUME
    temperature: float | None = DEFAULT_TEMPERATURE
    humidity: float | None = None
    battery: int | None = None
    is_cleaning: bool = False
    is_locked: bool | None = None
    mode: str | None = None
    last_updated: datetime = field(default_factory=utcnow)
    last_error: str | None = None

    def with_changes(self, **changes: Any) -> DeviceStatus:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


@dataclass(frozen=True)
class Room:
    """A room from the scanning collaborator, reduced to what the gateway needs."""

    name: str
    device_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class RegistrySnapshot:
    """Point-in-time copy of the registry handed to the persistence collaborator.

    Attributes:
        devices: All known devices.
        platforms: Platforms that were authenticated when the snapshot was taken.
        taken_at: When the snapshot was produced.
    """

    devices: tuple[Device, ...] = ()
    platforms: tuple[Platform, ...] = ()
    taken_at: datetime = field(default_factory=utcnow)
