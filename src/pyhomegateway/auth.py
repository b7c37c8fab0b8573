"""Per-platform authentication state machine.

Each platform moves through::

    NOT_AUTHENTICATED -> AUTHENTICATING -> AUTHENTICATED | FAILED

Any state returns to NOT_AUTHENTICATED on disconnect, and FAILED,
NOT_AUTHENTICATED or AUTHENTICATED may start a new attempt. No transition
skips AUTHENTICATING.

Every attempt is stamped with a version. A result is only applied while its
version is still current, so an attempt that was superseded by a newer one or
by a disconnect cannot overwrite newer state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Callable

    from pyhomegateway.models import Credentials, Platform

_LOGGER = logging.getLogger(__name__)


class AuthStatus(Enum):
    """Authentication status of a platform."""

    NOT_AUTHENTICATED = "not_authenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


@dataclass(frozen=True)
class AuthState:
    """Authentication state of one platform.

    Attributes:
        status: Current status.
        credentials: Credentials, set only while AUTHENTICATED.
        reason: Failure reason, set only while FAILED.
        version: Attempt counter used to discard stale results.
    """

    status: AuthStatus = AuthStatus.NOT_AUTHENTICATED
    credentials: Credentials | None = None
    reason: str | None = None
    version: int = 0

    @property
    def is_authenticated(self) -> bool:
        """Check if the platform is authenticated."""
        return self.status is AuthStatus.AUTHENTICATED


class AuthStateMachine:
    """Track authentication state for every platform.

    Example:
        ```python
        machine = AuthStateMachine()
        version = machine.begin(Platform.LIFX)
        try:
            credentials = await adapter.authenticate_with_key(key)
        except GatewayError as exc:
            machine.fail(Platform.LIFX, version, str(exc))
        else:
            machine.succeed(Platform.LIFX, version, credentials)
        ```
    """

    def __init__(self) -> None:
        """Initialize with every platform NOT_AUTHENTICATED."""
        self._states: dict[Platform, AuthState] = {}
        self._listeners: list[Callable[[Platform, AuthState], None]] = []

    def state(self, platform: Platform) -> AuthState:
        """Get the current state of a platform."""
        return self._states.get(platform, AuthState())

    def credentials(self, platform: Platform) -> Credentials | None:
        """Get a platform's credentials if it is authenticated."""
        state = self.state(platform)
        return state.credentials if state.is_authenticated else None

    @property
    def authenticated_platforms(self) -> list[Platform]:
        """List platforms currently AUTHENTICATED."""
        return [platform for platform, state in self._states.items() if state.is_authenticated]

    def begin(self, platform: Platform) -> int:
        """Start an authentication attempt.

        Args:
            platform: Platform being authenticated.

        Returns:
            Version token to pass to :meth:`succeed` or :meth:`fail`.
        """
        version = self.state(platform).version + 1
        self._set(platform, AuthState(AuthStatus.AUTHENTICATING, version=version))
        return version

    def succeed(self, platform: Platform, version: int, credentials: Credentials) -> bool:
        """Complete an attempt successfully.

        Args:
            platform: Platform being authenticated.
            version: Token returned by :meth:`begin`.
            credentials: Credentials produced by the attempt.

        Returns:
            True if applied, False if the attempt was stale.

        Raises:
            ValueError: If the credentials belong to another platform.
        """
        if credentials.platform is not platform:
            msg = f"Credentials for {credentials.platform.value} cannot authenticate {platform.value}"
            raise ValueError(msg)

        if not self._is_current(platform, version):
            return False

        self._set(platform, AuthState(AuthStatus.AUTHENTICATED, credentials=credentials, version=version))
        return True

    def fail(self, platform: Platform, version: int, reason: str) -> bool:
        """Complete an attempt with a failure.

        Returns:
            True if applied, False if the attempt was stale.
        """
        if not self._is_current(platform, version):
            return False

        self._set(platform, AuthState(AuthStatus.FAILED, reason=reason, version=version))
        return True

    def disconnect(self, platform: Platform) -> None:
        """Return a platform to NOT_AUTHENTICATED, invalidating any attempt in flight."""
        version = self.state(platform).version + 1
        self._set(platform, AuthState(AuthStatus.NOT_AUTHENTICATED, version=version))

    def restore(self, platform: Platform, credentials: Credentials) -> None:
        """Mark a platform authenticated from previously stored credentials."""
        self.succeed(platform, self.begin(platform), credentials)

    def reset(self) -> None:
        """Disconnect every platform that has state."""
        for platform in list(self._states):
            self.disconnect(platform)

    def _is_current(self, platform: Platform, version: int) -> bool:
        state = self.state(platform)
        if state.version != version or state.status is not AuthStatus.AUTHENTICATING:
            _LOGGER.warning(
                "Discarding stale authentication result for %s (attempt %d, current %d)",
                platform.value,
                version,
                state.version,
            )
            return False
        return True

    def _set(self, platform: Platform, state: AuthState) -> None:
        self._states[platform] = state
        _LOGGER.debug("%s auth state -> %s", platform.value, state.status.value)
        self._notify_listeners(platform, state)

    def _notify_listeners(self, platform: Platform, state: AuthState) -> None:
        """Notify all registered listeners of a state change.

        If a listener raises an exception, it is logged but doesn't affect
        other listeners.
        """
        for listener in self._listeners:
            try:
                listener(platform, state)
            except Exception:
                _LOGGER.exception("Error in auth state listener for %s", platform.value)

    def add_listener(self, callback: Callable[[Platform, AuthState], None]) -> None:
        """Register a callback invoked on every state change."""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[Platform, AuthState], None]) -> None:
        """Remove a previously registered callback."""
        if callback in self._listeners:
            self._listeners.remove(callback)
