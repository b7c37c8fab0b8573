"""In-memory adapter for platforms without a live backend.

:class:`SimulatedAdapter` accepts any credentials of its platform, serves a
fixed device list, and applies actions to an in-memory status table. It is
useful for demos and for exercising the registry without network access.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from pyhomegateway.actions import Action, status_changes
from pyhomegateway.adapters.base import check_action, check_credentials
from pyhomegateway.exceptions import DeviceStatusFailedError, InvalidCredentialsError
from pyhomegateway.models import Credentials, DeviceStatus, utcnow


if TYPE_CHECKING:
    from collections.abc import Iterable

    from pyhomegateway.actions import ActionParams
    from pyhomegateway.models import Platform, PlatformDevice

_LOGGER = logging.getLogger(__name__)

_SIMULATED_TOKEN = "simulated"  # noqa: S105


class SimulatedAdapter:
    """Adapter that simulates a platform in memory.

    Attributes:
        platform: Platform being simulated.
        commands: Every command executed, in order, as
            ``(device_id, action, params)``.
    """

    simulated = True
    supported_actions = frozenset(Action)

    def __init__(self, platform: Platform, *, devices: Iterable[PlatformDevice] = ()) -> None:
        """Initialize the adapter.

        Args:
            platform: Platform being simulated.
            devices: Devices returned by discovery.
        """
        self.platform = platform
        self._devices = {device.id: device for device in devices}
        self._statuses: dict[str, DeviceStatus] = {}
        self.commands: list[tuple[str, Action, ActionParams | None]] = []

    def add_device(self, device: PlatformDevice) -> None:
        """Add or replace a device served by discovery."""
        self._devices[device.id] = device

    async def authenticate(self) -> Credentials:
        """Return simulated credentials."""
        _LOGGER.info("Authenticated simulated %s", self.platform.display_name)
        return Credentials(platform=self.platform, access_token=_SIMULATED_TOKEN)

    async def authenticate_with_key(self, key: str) -> Credentials:
        """Accept any non-empty key."""
        if not key.strip():
            raise InvalidCredentialsError
        return Credentials(platform=self.platform, api_key=key.strip())

    async def authenticate_with_token(self, token: str, host: str | None = None) -> Credentials:
        """Accept any non-empty token."""
        if not token:
            raise InvalidCredentialsError
        return Credentials(platform=self.platform, api_key=token, local_ip=host or "127.0.0.1")

    async def discover(self, credentials: Credentials) -> list[PlatformDevice]:
        """Return the configured devices."""
        check_credentials(self.platform, credentials)
        return list(self._devices.values())

    def build_command(self, action: Action, params: ActionParams | None = None) -> dict[str, Any]:
        """Describe the action as a plain dict."""
        command: dict[str, Any] = {"action": action.value}
        if params is not None:
            command["params"] = asdict(params)
        return command

    async def execute(
        self,
        action: Action,
        device: PlatformDevice,
        credentials: Credentials,
        params: ActionParams | None = None,
    ) -> None:
        """Record the command and apply it to the in-memory status."""
        check_credentials(self.platform, credentials)
        check_action(self.platform, action, device, self.supported_actions)

        _LOGGER.debug("Simulated %s on %s: %s", action.value, device.id, self.build_command(action, params))
        self.commands.append((device.id, action, params))

        current = self._statuses.get(device.id) or DeviceStatus(is_online=device.is_online, is_on=device.is_on)
        self._statuses[device.id] = current.with_changes(
            **status_changes(action, params, current), last_updated=utcnow()
        )

    async def fetch_status(self, device: PlatformDevice, credentials: Credentials) -> DeviceStatus:
        """Return the in-memory status of a device."""
        check_credentials(self.platform, credentials)

        if device.id in self._statuses:
            return self._statuses[device.id]
        if device.id in self._devices:
            known = self._devices[device.id]
            return DeviceStatus(is_online=known.is_online, is_on=known.is_on)

        msg = f"unknown simulated device {device.id}"
        raise DeviceStatusFailedError(msg)
