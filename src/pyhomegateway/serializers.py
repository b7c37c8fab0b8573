"""Serialization of registry state for the persistence boundary.

This module provides stateless functions that turn devices, statuses,
snapshots and credentials into JSON-ready dicts and back. Timestamps are ISO
8601 strings and enums are stored by value.

Design Philosophy:
    - Stateless functions (no classes, no state)
    - Output contains only JSON types
    - Missing optional keys fall back to model defaults
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pyhomegateway.models import (
    Credentials,
    Device,
    DeviceStatus,
    DeviceType,
    Platform,
    Position,
    RegistrySnapshot,
    utcnow,
)


def _timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_timestamp(value: Any) -> datetime | None:
    return datetime.fromisoformat(value) if isinstance(value, str) and value else None


def serialize_device(device: Device) -> dict[str, Any]:
    """Serialize a device.

    Example:
        >>> serialize_device(Device(id="lamp", name="Lamp", type=DeviceType.BULB))["type"]
        'bulb'
    """
    return {
        "id": device.id,
        "name": device.name,
        "type": device.type.value,
        "position": [device.position.x, device.position.y, device.position.z],
        "platform": device.platform.value if device.platform is not None else None,
        "is_online": device.is_online,
        "is_on": device.is_on,
        "properties": dict(device.properties),
        "last_updated": _timestamp(device.last_updated),
        "native_id": device.native_id,
        "capabilities": list(device.capabilities),
    }


def deserialize_device(data: dict[str, Any]) -> Device:
    """Deserialize a device produced by :func:`serialize_device`.

    Raises:
        KeyError: If ``id``, ``name`` or ``type`` is missing.
        ValueError: If the type or platform is unknown.
    """
    x, y, z = (float(value) for value in data.get("position") or (0.0, 0.0, 0.0))
    platform = data.get("platform")

    return Device(
        id=data["id"],
        name=data["name"],
        type=DeviceType(data["type"]),
        position=Position(x, y, z),
        platform=Platform(platform) if platform else None,
        is_online=bool(data.get("is_online", False)),
        is_on=bool(data.get("is_on", False)),
        properties={str(key): str(value) for key, value in (data.get("properties") or {}).items()},
        last_updated=_parse_timestamp(data.get("last_updated")) or utcnow(),
        native_id=data.get("native_id"),
        capabilities=tuple(data.get("capabilities") or ()),
    )


def serialize_status(status: DeviceStatus) -> dict[str, Any]:
    """Serialize a cached device status."""
    return {
        "is_online": status.is_online,
        "is_on": status.is_on,
        "brightness": status.brightness,
        "volume": status.volume,
        "temperature": status.temperature,
        "humidity": status.humidity,
        "battery": status.battery,
        "is_cleaning": status.is_cleaning,
        "is_locked": status.is_locked,
        "mode": status.mode,
        "last_updated": _timestamp(status.last_updated),
        "last_error": status.last_error,
    }


def deserialize_status(data: dict[str, Any]) -> DeviceStatus:
    """Deserialize a status produced by :func:`serialize_status`."""
    defaults = DeviceStatus()
    return DeviceStatus(
        is_online=bool(data.get("is_online", False)),
        is_on=bool(data.get("is_on", False)),
        brightness=data.get("brightness"),
        volume=data.get("volume", defaults.volume),
        temperature=data.get("temperature", defaults.temperature),
        humidity=data.get("humidity"),
        battery=data.get("battery"),
        is_cleaning=bool(data.get("is_cleaning", False)),
        is_locked=data.get("is_locked"),
        mode=data.get("mode"),
        last_updated=_parse_timestamp(data.get("last_updated")) or defaults.last_updated,
        last_error=data.get("last_error"),
    )


def serialize_snapshot(snapshot: RegistrySnapshot) -> dict[str, Any]:
    """Serialize a registry snapshot."""
    return {
        "devices": [serialize_device(device) for device in snapshot.devices],
        "platforms": [platform.value for platform in snapshot.platforms],
        "taken_at": _timestamp(snapshot.taken_at),
    }


def deserialize_snapshot(data: dict[str, Any]) -> RegistrySnapshot:
    """Deserialize a snapshot produced by :func:`serialize_snapshot`.

    Unknown platform values are dropped so a snapshot written by a newer
    version still loads.
    """
    known = {platform.value for platform in Platform}
    return RegistrySnapshot(
        devices=tuple(deserialize_device(device) for device in data.get("devices") or ()),
        platforms=tuple(Platform(value) for value in data.get("platforms") or () if value in known),
        taken_at=_parse_timestamp(data.get("taken_at")) or utcnow(),
    )


def serialize_credentials(credentials: Credentials) -> dict[str, Any]:
    """Serialize credentials, secrets included.

    The result holds tokens in clear text and must be stored in a secure
    store such as the system keyring.
    """
    return {
        "platform": credentials.platform.value,
        "access_token": credentials.access_token,
        "refresh_token": credentials.refresh_token,
        "api_key": credentials.api_key,
        "local_ip": credentials.local_ip,
        "bridge_ip": credentials.bridge_ip,
        "expires_at": _timestamp(credentials.expires_at),
        "user_id": credentials.user_id,
    }


def deserialize_credentials(data: dict[str, Any]) -> Credentials:
    """Deserialize credentials produced by :func:`serialize_credentials`.

    Raises:
        KeyError: If ``platform`` is missing.
        ValueError: If the platform is unknown.
    """
    return Credentials(
        platform=Platform(data["platform"]),
        access_token=data.get("access_token"),
        refresh_token=data.get("refresh_token"),
        api_key=data.get("api_key"),
        local_ip=data.get("local_ip"),
        bridge_ip=data.get("bridge_ip"),
        expires_at=_parse_timestamp(data.get("expires_at")),
        user_id=data.get("user_id"),
    )
