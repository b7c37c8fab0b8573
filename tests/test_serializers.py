"""Tests for serializers module."""

from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest

from pyhomegateway.models import (
    Credentials,
    Device,
    DeviceStatus,
    DeviceType,
    Platform,
    Position,
    RegistrySnapshot,
)
from pyhomegateway.serializers import (
    deserialize_credentials,
    deserialize_device,
    deserialize_snapshot,
    deserialize_status,
    serialize_credentials,
    serialize_device,
    serialize_snapshot,
    serialize_status,
)


UPDATED = datetime(2025, 3, 1, 18, 30, tzinfo=UTC)


@pytest.fixture
def bulb() -> Device:
    """A linked bulb placed in a room."""
    return Device(
        id="lifx:d073d5000001",
        name="Desk Lamp",
        type=DeviceType.BULB,
        position=Position(1.5, 0.8, -2.0),
        platform=Platform.LIFX,
        is_online=True,
        is_on=True,
        properties={"group": "Office"},
        last_updated=UPDATED,
        native_id="d073d5000001",
        capabilities=("on", "brightness"),
    )


class TestDevices:
    """Test device serialization."""

    def test_serialize(self, bulb: Device) -> None:
        """Test the stored layout."""
        data = serialize_device(bulb)

        assert data == {
            "id": "lifx:d073d5000001",
            "name": "Desk Lamp",
            "type": "bulb",
            "position": [1.5, 0.8, -2.0],
            "platform": "lifx",
            "is_online": True,
            "is_on": True,
            "properties": {"group": "Office"},
            "last_updated": "2025-03-01T18:30:00+00:00",
            "native_id": "d073d5000001",
            "capabilities": ["on", "brightness"],
        }
        json.dumps(data)

    def test_restores_equal_device(self, bulb: Device) -> None:
        """Test that a stored device loads back unchanged."""
        assert deserialize_device(serialize_device(bulb)) == bulb

    def test_placed_but_unlinked(self) -> None:
        """Test a minimal record for a device without a platform."""
        device = deserialize_device({"id": "tv", "name": "TV", "type": "tv"})

        assert device.platform is None
        assert device.position == Position()
        assert device.properties == {}
        assert device.capabilities == ()
        assert device.native_id is None

    def test_properties_coerced_to_strings(self) -> None:
        """Test that property values are stored as strings."""
        device = deserialize_device({"id": "x", "name": "X", "type": "lock", "properties": {"battery": 87}})

        assert device.properties == {"battery": "87"}

    def test_unknown_type(self) -> None:
        """Test that an unknown device type is refused."""
        with pytest.raises(ValueError, match="toaster"):
            deserialize_device({"id": "x", "name": "X", "type": "toaster"})

    def test_missing_required_key(self) -> None:
        """Test that id, name and type are required."""
        with pytest.raises(KeyError):
            deserialize_device({"id": "x", "type": "bulb"})


class TestStatuses:
    """Test status serialization."""

    def test_restores_equal_status(self) -> None:
        """Test that a stored status loads back unchanged."""
        status = DeviceStatus(
            is_online=True,
            is_on=True,
            brightness=40,
            temperature=68.0,
            battery=91,
            is_locked=False,
            mode="heat",
            last_updated=UPDATED,
            last_error="Action failed: timeout",
        )

        assert deserialize_status(serialize_status(status)) == status

    def test_empty_record_uses_defaults(self) -> None:
        """Test the defaults for a record with no fields."""
        status = deserialize_status({})

        assert status.is_online is False
        assert status.volume == 50
        assert status.temperature == 72.0
        assert status.is_locked is None
        assert status.last_error is None

    def test_explicit_none_kept(self) -> None:
        """Test that a stored null overrides the default."""
        assert deserialize_status({"volume": None}).volume is None


class TestSnapshots:
    """Test snapshot serialization."""

    def test_round_trip(self, bulb: Device) -> None:
        """Test devices, platforms and timestamp."""
        snapshot = RegistrySnapshot(devices=(bulb,), platforms=(Platform.LIFX, Platform.NEST), taken_at=UPDATED)

        data = serialize_snapshot(snapshot)

        assert data["platforms"] == ["lifx", "nest"]
        assert data["taken_at"] == "2025-03-01T18:30:00+00:00"
        assert deserialize_snapshot(data) == snapshot

    def test_unknown_platform_dropped(self) -> None:
        """Test that platforms from a newer version are skipped."""
        snapshot = deserialize_snapshot({"platforms": ["lifx", "matter"], "taken_at": "2025-03-01T18:30:00+00:00"})

        assert snapshot.platforms == (Platform.LIFX,)
        assert snapshot.devices == ()
        assert snapshot.taken_at == UPDATED


class TestCredentials:
    """Test credential serialization."""

    def test_oauth_credentials(self) -> None:
        """Test that tokens and expiry survive storage."""
        credentials = Credentials(
            platform=Platform.NEST,
            access_token="access",
            refresh_token="refresh",
            expires_at=UPDATED,
            user_id="enterprises/p",
        )

        data = serialize_credentials(credentials)

        assert data["platform"] == "nest"
        assert data["expires_at"] == "2025-03-01T18:30:00+00:00"
        assert deserialize_credentials(data) == credentials

    def test_local_credentials(self) -> None:
        """Test a bridge user with no expiry."""
        credentials = deserialize_credentials(
            {"platform": "philips_hue", "api_key": "bridge-user", "bridge_ip": "192.168.1.20"}
        )

        assert credentials.platform is Platform.PHILIPS_HUE
        assert credentials.api_key == "bridge-user"
        assert credentials.bridge_ip == "192.168.1.20"
        assert credentials.expires_at is None

    def test_unknown_platform(self) -> None:
        """Test that credentials for an unknown platform are refused."""
        with pytest.raises(ValueError, match="matter"):
            deserialize_credentials({"platform": "matter"})
