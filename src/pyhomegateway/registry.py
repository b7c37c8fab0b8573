"""Device registry and status store.

:class:`DeviceRegistry` is the facade callers use: it authenticates
platforms, discovers and stores devices, executes actions through the right
adapter and keeps a timestamp-ordered status cache.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from pyhomegateway.actions import Action, parse_action_params, status_changes
from pyhomegateway.adapters import create_adapters
from pyhomegateway.auth import AuthStateMachine
from pyhomegateway.config import GatewayConfig
from pyhomegateway.exceptions import (
    ActionUnsupportedError,
    AuthenticationFailedError,
    DeviceDiscoveryFailedError,
    DeviceNotFoundError,
    GatewayError,
    PlatformNotAuthenticatedError,
    PlatformNotSupportedError,
)
from pyhomegateway.models import Device, DeviceStatus, RegistrySnapshot, utcnow
from pyhomegateway.transport import HttpTransport


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable, Mapping
    from types import TracebackType

    from aiohttp import ClientSession

    from pyhomegateway.actions import ActionParams
    from pyhomegateway.adapters import PlatformAdapter
    from pyhomegateway.auth import AuthState
    from pyhomegateway.models import Credentials, Platform, PlatformDevice, Position, Room
    from pyhomegateway.oauth import WebAuthSession

_LOGGER = logging.getLogger(__name__)


@dataclass
class DiscoveryReport:
    """Outcome of discovering every authenticated platform.

    Attributes:
        added: Ids of devices seen for the first time, per platform.
        updated: Ids of already known devices refreshed, per platform.
        errors: Failure of each platform whose discovery failed.
    """

    added: dict[Platform, list[str]] = field(default_factory=dict)
    updated: dict[Platform, list[str]] = field(default_factory=dict)
    errors: dict[Platform, GatewayError] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        """Check if every platform was discovered."""
        return not self.errors

    @property
    def device_count(self) -> int:
        """Get the number of devices added or updated."""
        return sum(len(ids) for ids in self.added.values()) + sum(len(ids) for ids in self.updated.values())


class DeviceRegistry:
    """Registry of devices, platforms and their cached status.

    All writes are serialized through one lock and every network call happens
    outside it. Stored devices and statuses are immutable and replaced
    wholesale, so readers always see a complete value.

    Example:
        ```python
        async with DeviceRegistry.from_config(GatewayConfig.from_env()) as registry:
            await registry.authenticate(Platform.LIFX, api_key="c1234...")

            for device in registry.devices_for_platform(Platform.LIFX):
                await registry.execute(Action.SET_BRIGHTNESS, device, {"brightness": 40})
                print(device.name, registry.status_for(device.id))
        ```

    Attributes:
        last_error: Most recent failure of any registry operation.
        discovery_errors: Latest discovery failure per platform.
    """

    def __init__(
        self,
        adapters: Mapping[Platform, PlatformAdapter] | None = None,
        *,
        transport: HttpTransport | None = None,
        on_snapshot: Callable[[RegistrySnapshot], None] | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            adapters: Adapter per platform. Platforms without one are
                unsupported.
            transport: Transport shared by the adapters. The registry opens
                and closes it when used as an async context manager.
            on_snapshot: Called with a snapshot after every successful
                mutation, for persistence.

        Raises:
            ValueError: If an adapter is registered under another platform.
        """
        self._adapters: dict[Platform, PlatformAdapter] = {}
        for platform, adapter in (adapters or {}).items():
            if adapter.platform is not platform:
                msg = f"{type(adapter).__name__} serves {adapter.platform.value}, not {platform.value}"
                raise ValueError(msg)
            self._adapters[platform] = adapter

        self._transport = transport
        self._on_snapshot = on_snapshot
        self._devices: dict[str, Device] = {}
        self._statuses: dict[str, DeviceStatus] = {}
        self._auth = AuthStateMachine()
        self._lock = asyncio.Lock()

        self.last_error: GatewayError | None = None
        self.discovery_errors: dict[Platform, GatewayError] = {}

    @classmethod
    def from_config(
        cls,
        config: GatewayConfig | None = None,
        *,
        session: ClientSession | None = None,
        web_auth: WebAuthSession | None = None,
        on_pin: Callable[[str], Any] | None = None,
        on_snapshot: Callable[[RegistrySnapshot], None] | None = None,
    ) -> DeviceRegistry:
        """Build a registry with a live adapter for every platform.

        Args:
            config: Gateway configuration, defaults when omitted.
            session: Optional aiohttp ClientSession. If not provided, one will
                be created when entering the context manager.
            web_auth: Interactive session for OAuth2 consent pages.
            on_pin: Callback receiving the Ecobee authorization PIN.
            on_snapshot: Persistence callback.
        """
        config = config or GatewayConfig()
        transport = HttpTransport(session=session, timeout=config.timeout)
        adapters = create_adapters(transport, config, web_auth=web_auth, on_pin=on_pin)
        return cls(adapters, transport=transport, on_snapshot=on_snapshot)

    async def __aenter__(self) -> DeviceRegistry:
        """Enter the context manager, opening the transport."""
        if self._transport is not None:
            await self._transport.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the context manager, closing the transport."""
        await self.close()

    async def close(self) -> None:
        """Close the transport if the registry was given one."""
        if self._transport is not None:
            await self._transport.close()

    # -------------------------------------------------------------------------
    # Projections
    # -------------------------------------------------------------------------

    @property
    def auth(self) -> AuthStateMachine:
        """Get the auth state machine, for registering listeners."""
        return self._auth

    @property
    def devices(self) -> list[Device]:
        """Get every known device."""
        return list(self._devices.values())

    @property
    def connected_platforms(self) -> list[Platform]:
        """Get the platforms currently authenticated."""
        return self._auth.authenticated_platforms

    def adapter_for(self, platform: Platform) -> PlatformAdapter | None:
        """Get the adapter registered for a platform."""
        return self._adapters.get(platform)

    def device_by_id(self, device_id: str) -> Device | None:
        """Get a device by id."""
        return self._devices.get(device_id)

    def devices_for_platform(self, platform: Platform) -> list[Device]:
        """Get the devices belonging to a platform."""
        return [device for device in self._devices.values() if device.platform is platform]

    def devices_for_room(self, room: Room) -> list[Device]:
        """Get the known devices placed in a room, in the room's order."""
        return [self._devices[device_id] for device_id in room.device_ids if device_id in self._devices]

    def status_for(self, device_id: str) -> DeviceStatus | None:
        """Get the cached status of a device."""
        return self._statuses.get(device_id)

    def auth_state(self, platform: Platform) -> AuthState:
        """Get the authentication state of a platform."""
        return self._auth.state(platform)

    def is_platform_connected(self, platform: Platform) -> bool:
        """Check if a platform is authenticated."""
        return self._auth.state(platform).is_authenticated

    def snapshot(self) -> RegistrySnapshot:
        """Take a snapshot of devices and authenticated platforms."""
        return RegistrySnapshot(
            devices=tuple(self._devices.values()),
            platforms=tuple(self._auth.authenticated_platforms),
        )

    # -------------------------------------------------------------------------
    # Device store
    # -------------------------------------------------------------------------

    async def add_device(self, device: Device) -> None:
        """Insert or replace a device.

        Adding a device with an existing id replaces the stored one.

        Raises:
            ValueError: If the stored device already belongs to another platform.
        """
        async with self._lock:
            self._check_platform_change(device)
            self._devices[device.id] = device
            if device.id not in self._statuses:
                self._statuses[device.id] = DeviceStatus(
                    is_online=device.is_online, is_on=device.is_on, last_updated=device.last_updated
                )
        self._emit_snapshot()

    async def remove_device(self, device_id: str) -> None:
        """Remove a device and its cached status. Unknown ids are ignored."""
        async with self._lock:
            removed = self._devices.pop(device_id, None)
            self._statuses.pop(device_id, None)
        if removed is not None:
            self._emit_snapshot()

    async def update_device(self, device: Device) -> None:
        """Replace a known device.

        Raises:
            DeviceNotFoundError: If the device is unknown.
            ValueError: If the update changes the device's platform.
        """
        async with self._lock:
            if device.id not in self._devices:
                raise DeviceNotFoundError(device_id=device.id)
            self._check_platform_change(device)
            self._devices[device.id] = device
        self._emit_snapshot()

    async def update_position(self, device_id: str, position: Position) -> None:
        """Move a device within its room.

        Raises:
            DeviceNotFoundError: If the device is unknown.
        """
        async with self._lock:
            device = self._devices.get(device_id)
            if device is None:
                raise DeviceNotFoundError(device_id=device_id)
            self._devices[device_id] = replace(device, position=position, last_updated=utcnow())
        self._emit_snapshot()

    async def update_status(self, device_id: str, status: DeviceStatus) -> bool:
        """Store a status unless a newer one is already cached.

        Returns:
            True if the status was stored, False if it was older than the cache.

        Raises:
            DeviceNotFoundError: If the device is unknown.
        """
        async with self._lock:
            if device_id not in self._devices:
                raise DeviceNotFoundError(device_id=device_id)
            applied = self._apply_status(device_id, status)
        if applied:
            self._emit_snapshot()
        return applied

    def _check_platform_change(self, device: Device) -> None:
        existing = self._devices.get(device.id)
        if existing is not None and existing.platform is not None and device.platform is not existing.platform:
            msg = f"Device {device.id} belongs to {existing.platform.value}; remove it before reassigning"
            raise ValueError(msg)

    def _apply_status(self, device_id: str, status: DeviceStatus) -> bool:
        """Store a status if it is not older than the cached one. Caller holds the lock."""
        current = self._statuses.get(device_id)
        if current is not None and status.last_updated < current.last_updated:
            _LOGGER.debug(
                "Ignoring out-of-order status for %s (%s < %s)",
                device_id,
                status.last_updated.isoformat(),
                current.last_updated.isoformat(),
            )
            return False

        self._statuses[device_id] = status
        device = self._devices.get(device_id)
        if device is not None and (device.is_on, device.is_online) != (status.is_on, status.is_online):
            self._devices[device_id] = replace(
                device, is_on=status.is_on, is_online=status.is_online, last_updated=status.last_updated
            )
        return True

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    async def authenticate(self, platform: Platform, api_key: str | None = None) -> Credentials:
        """Authenticate a platform and discover every authenticated platform.

        Args:
            platform: Platform to authenticate.
            api_key: API key for key-based platforms. When omitted the
                platform's interactive or discovery flow runs.

        Returns:
            The platform's new credentials.

        Raises:
            PlatformNotSupportedError: If no adapter is registered.
            AuthenticationFailedError: If the flow fails or was superseded.
            InvalidCredentialsError: If the key or token is rejected.
            AuthUnsupportedError: If the platform needs another entry point.
        """
        adapter = self._require_adapter(platform)
        if api_key is not None:
            return await self._run_auth(platform, lambda: adapter.authenticate_with_key(api_key))
        return await self._run_auth(platform, adapter.authenticate)

    async def authenticate_with_token(self, platform: Platform, token: str, host: str | None = None) -> Credentials:
        """Authenticate a local hub with a token, then discover.

        Raises:
            PlatformNotSupportedError: If no adapter is registered.
            AuthUnsupportedError: If the platform is not a local hub.
            InvalidCredentialsError: If the hub rejects the token.
        """
        adapter = self._require_adapter(platform)
        return await self._run_auth(platform, lambda: adapter.authenticate_with_token(token, host))

    async def _run_auth(self, platform: Platform, flow: Callable[[], Awaitable[Credentials]]) -> Credentials:
        async with self._lock:
            version = self._auth.begin(platform)

        try:
            credentials = await flow()
        except Exception as exc:
            async with self._lock:
                self._auth.fail(platform, version, str(exc) or type(exc).__name__)
            if isinstance(exc, GatewayError):
                self.last_error = exc
            raise

        async with self._lock:
            applied = self._auth.succeed(platform, version, credentials)
        if not applied:
            msg = f"{platform.display_name} authentication was superseded"
            error = AuthenticationFailedError(msg)
            self.last_error = error
            raise error

        _LOGGER.info("Authenticated %s", platform.display_name)
        self._emit_snapshot()
        await self.discover_all()
        return credentials

    async def disconnect(self, platform: Platform) -> None:
        """Forget a platform's credentials. Its devices are kept."""
        async with self._lock:
            self._auth.disconnect(platform)
            self.discovery_errors.pop(platform, None)
        _LOGGER.info("Disconnected %s", platform.display_name)
        self._emit_snapshot()

    async def restore(
        self,
        snapshot: RegistrySnapshot,
        credentials: Iterable[Credentials] = (),
    ) -> None:
        """Rehydrate devices and platform credentials saved earlier.

        Expired or empty credentials are skipped. No snapshot is emitted.
        """
        async with self._lock:
            for device in snapshot.devices:
                self._devices[device.id] = device
                if device.id not in self._statuses:
                    self._statuses[device.id] = DeviceStatus(
                        is_online=device.is_online, is_on=device.is_on, last_updated=device.last_updated
                    )

            for stored in credentials:
                if not stored.is_valid:
                    _LOGGER.warning("Skipping expired credentials for %s", stored.platform.value)
                    continue
                self._auth.restore(stored.platform, stored)

        _LOGGER.debug(
            "Restored %d devices and %d platforms",
            len(snapshot.devices),
            len(self._auth.authenticated_platforms),
        )

    async def reset_all(self) -> None:
        """Drop every device and status and disconnect every platform."""
        async with self._lock:
            self._devices.clear()
            self._statuses.clear()
            self.discovery_errors.clear()
            self.last_error = None
            self._auth.reset()
        self._emit_snapshot()

    # -------------------------------------------------------------------------
    # Discovery
    # -------------------------------------------------------------------------

    async def discover_all(self) -> DiscoveryReport:
        """Discover every authenticated platform concurrently.

        A failing platform does not affect the others; its error is logged,
        kept in :attr:`discovery_errors` and returned in the report.
        """
        platforms = [platform for platform in self._auth.authenticated_platforms if platform in self._adapters]
        results = await asyncio.gather(*(self._discover_platform(platform) for platform in platforms))

        report = DiscoveryReport()
        async with self._lock:
            for platform, result in zip(platforms, results, strict=True):
                if isinstance(result, GatewayError):
                    _LOGGER.warning("Discovery failed for %s: %s", platform.display_name, result)
                    report.errors[platform] = result
                    self.discovery_errors[platform] = result
                    self.last_error = result
                    continue

                self.discovery_errors.pop(platform, None)
                for platform_device in result:
                    self._merge_discovered(platform_device, report)

        _LOGGER.info(
            "Discovered %d devices on %d platforms (%d failed)",
            report.device_count,
            len(platforms),
            len(report.errors),
        )
        if report.device_count:
            self._emit_snapshot()
        return report

    async def _discover_platform(self, platform: Platform) -> list[PlatformDevice] | GatewayError:
        credentials = self._auth.credentials(platform)
        if credentials is None:
            return PlatformNotAuthenticatedError()
        try:
            return await self._adapters[platform].discover(credentials)
        except GatewayError as exc:
            return exc
        except Exception as exc:
            _LOGGER.exception("Unexpected error discovering %s", platform.display_name)
            error = DeviceDiscoveryFailedError(str(exc))
            error.__cause__ = exc
            return error

    def _merge_discovered(self, platform_device: PlatformDevice, report: DiscoveryReport) -> None:
        """Upsert one discovered device. Caller holds the lock."""
        discovered = Device.from_platform_device(platform_device)
        existing = self._devices.get(discovered.id)

        if existing is None:
            self._devices[discovered.id] = discovered
            report.added.setdefault(platform_device.platform, []).append(discovered.id)
        else:
            self._devices[discovered.id] = existing.merged_with(discovered)
            report.updated.setdefault(platform_device.platform, []).append(discovered.id)

        current = self._statuses.get(discovered.id) or DeviceStatus()
        self._apply_status(
            discovered.id,
            current.with_changes(
                is_online=platform_device.is_online, is_on=platform_device.is_on, last_updated=utcnow()
            ),
        )

    # -------------------------------------------------------------------------
    # Control
    # -------------------------------------------------------------------------

    async def execute(
        self,
        action: Action,
        device: Device,
        params: Mapping[str, Any] | ActionParams | None = None,
    ) -> DeviceStatus:
        """Execute an action on a device and update its cached status.

        The status change is optimistic: it is derived from the action once
        the platform accepts it.

        Args:
            action: Action to perform.
            device: Target device.
            params: Parameter bag such as ``{"brightness": 40}``, or typed params.

        Returns:
            The device's cached status after the action.

        Raises:
            PlatformNotSupportedError: If the device has no platform or the
                platform has no adapter. The status is left untouched.
            ActionUnsupportedError: If the action does not apply to the device.
            PlatformNotAuthenticatedError: If the platform is not authenticated.
            GatewayError: Any adapter failure, also stored as the status'
                ``last_error``.
        """
        try:
            adapter, credentials = self._prepare(device, action)
        except GatewayError as exc:
            self.last_error = exc
            raise

        typed_params = parse_action_params(action, params)
        current = self._statuses.get(device.id) or DeviceStatus(is_online=device.is_online, is_on=device.is_on)
        target = replace(device.to_platform_device(), is_on=current.is_on)

        wire_action = action
        if action is Action.TOGGLE and Action.TOGGLE not in adapter.supported_actions:
            wire_action = Action.TURN_OFF if current.is_on else Action.TURN_ON

        try:
            await adapter.execute(wire_action, target, credentials, typed_params)
        except GatewayError as exc:
            await self._record_failure(device.id, exc)
            raise

        changes = status_changes(action, typed_params, current)
        updated = current.with_changes(**changes, last_updated=utcnow(), last_error=None)
        applied = False
        async with self._lock:
            # The device may have been removed while the call was in flight
            if device.id in self._devices:
                latest = self._statuses.get(device.id) or current
                updated = latest.with_changes(**changes, last_updated=utcnow(), last_error=None)
                applied = self._apply_status(device.id, updated)
        _LOGGER.debug("Executed %s on %s", action.value, device.id)
        if applied:
            self._emit_snapshot()
        return self._statuses.get(device.id, updated)

    async def fetch_status(self, device: Device) -> DeviceStatus:
        """Read a device's status from its platform into the cache.

        Raises:
            PlatformNotSupportedError: If the device has no platform or adapter.
            PlatformNotAuthenticatedError: If the platform is not authenticated.
            DeviceStatusFailedError: If the platform read fails.
        """
        try:
            adapter, credentials = self._prepare(device)
        except GatewayError as exc:
            self.last_error = exc
            raise

        try:
            status = await adapter.fetch_status(device.to_platform_device(), credentials)
        except GatewayError as exc:
            await self._record_failure(device.id, exc)
            raise

        applied = False
        async with self._lock:
            if device.id in self._devices:
                applied = self._apply_status(device.id, status)
        if applied:
            self._emit_snapshot()
        return self._statuses.get(device.id, status)

    def _require_adapter(self, platform: Platform) -> PlatformAdapter:
        adapter = self._adapters.get(platform)
        if adapter is None:
            msg = f"{platform.display_name} has no adapter"
            error = PlatformNotSupportedError(msg)
            self.last_error = error
            raise error
        return adapter

    def _prepare(self, device: Device, action: Action | None = None) -> tuple[PlatformAdapter, Credentials]:
        """Resolve the adapter and credentials for a device, checking the action first."""
        if device.platform is None:
            msg = f"Device {device.name} is not linked to a platform"
            raise PlatformNotSupportedError(msg)

        adapter = self._adapters.get(device.platform)
        if adapter is None:
            msg = f"{device.platform.display_name} has no adapter"
            raise PlatformNotSupportedError(msg)

        if action is not None and not action.is_available_for(device.type):
            msg = f"{action.display_title} is not available for {device.type.value} devices"
            raise ActionUnsupportedError(msg)

        credentials = self._auth.credentials(device.platform)
        if credentials is None:
            msg = f"{device.platform.display_name} is not authenticated"
            raise PlatformNotAuthenticatedError(msg)

        return adapter, credentials

    async def _record_failure(self, device_id: str, error: GatewayError) -> None:
        self.last_error = error
        _LOGGER.warning("Operation on %s failed: %s", device_id, error)
        async with self._lock:
            current = self._statuses.get(device_id)
            if device_id in self._devices and current is not None:
                self._apply_status(device_id, current.with_changes(last_error=str(error), last_updated=utcnow()))

    def _emit_snapshot(self) -> None:
        """Hand a snapshot to the persistence callback.

        If the callback raises an exception, it is logged and the registry
        operation still succeeds.
        """
        if self._on_snapshot is None:
            return
        try:
            self._on_snapshot(self.snapshot())
        except Exception:
            _LOGGER.exception("Error in snapshot callback")
