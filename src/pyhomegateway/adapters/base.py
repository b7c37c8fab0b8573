"""Platform adapter contract and shared helpers.

Every platform implements :class:`PlatformAdapter`. Adapters share plumbing
through the small functions in this module rather than through inheritance,
because each platform's auth and wire quirks differ.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pyhomegateway.actions import Action
from pyhomegateway.exceptions import (
    ActionUnsupportedError,
    AuthUnsupportedError,
    InvalidCredentialsError,
)


if TYPE_CHECKING:
    from pyhomegateway.actions import ActionParams
    from pyhomegateway.exceptions import GatewayError
    from pyhomegateway.models import Credentials, DeviceStatus, Platform, PlatformDevice

_LOGGER = logging.getLogger(__name__)

AUTH_REJECTED = (HTTPStatus.UNAUTHORIZED, HTTPStatus.FORBIDDEN)


@runtime_checkable
class PlatformAdapter(Protocol):
    """Contract every platform adapter implements.

    Attributes:
        platform: Platform served by the adapter.
        supported_actions: Actions the platform has a wire mapping for.
        simulated: True when the adapter does not talk to a live backend.
    """

    platform: Platform
    supported_actions: frozenset[Action]
    simulated: bool

    async def authenticate(self) -> Credentials:
        """Run the platform's zero-argument auth flow.

        Raises:
            AuthUnsupportedError: If the platform needs another entry point.
        """
        ...

    async def authenticate_with_key(self, key: str) -> Credentials:
        """Authenticate with an API key.

        Raises:
            AuthUnsupportedError: If the platform does not use API keys.
            InvalidCredentialsError: If the key is rejected.
        """
        ...

    async def authenticate_with_token(self, token: str, host: str | None = None) -> Credentials:
        """Authenticate a local hub with a pre-shared token.

        Raises:
            AuthUnsupportedError: If the platform is not a local hub.
        """
        ...

    async def discover(self, credentials: Credentials) -> list[PlatformDevice]:
        """List the devices visible under the credentials.

        Raises:
            DeviceDiscoveryFailedError: If the listing fails.
        """
        ...

    async def execute(
        self,
        action: Action,
        device: PlatformDevice,
        credentials: Credentials,
        params: ActionParams | None = None,
    ) -> None:
        """Translate and perform an action.

        Raises:
            ActionUnsupportedError: If the action does not apply to the device
                type or the platform has no mapping for it.
            ActionExecutionFailedError: If the platform rejects the command.
        """
        ...

    async def fetch_status(self, device: PlatformDevice, credentials: Credentials) -> DeviceStatus:
        """Read a device's current state.

        Raises:
            DeviceStatusFailedError: If the read fails.
        """
        ...

    def build_command(self, action: Action, params: ActionParams | None = None) -> dict[str, Any]:
        """Translate an action into the platform's wire payload.

        Returns:
            The payload, or an empty dict (with a logged warning) when the
            action or its parameters cannot be mapped.
        """
        ...


def auth_unsupported(platform: Platform, method: str) -> AuthUnsupportedError:
    """Build the error raised by an auth entry point the platform does not use."""
    msg = f"{platform.display_name} does not support {method} authentication"
    return AuthUnsupportedError(msg)


def check_credentials(platform: Platform, credentials: Credentials) -> None:
    """Ensure credentials belong to the platform and are still usable.

    Raises:
        InvalidCredentialsError: If the credentials are for another platform,
            expired, or empty.
    """
    if credentials.platform is not platform:
        msg = f"Credentials for {credentials.platform.display_name} passed to {platform.display_name}"
        raise InvalidCredentialsError(msg)

    if not credentials.is_valid:
        msg = f"{platform.display_name} credentials are expired or empty"
        raise InvalidCredentialsError(msg)


def check_action(
    platform: Platform,
    action: Action,
    device: PlatformDevice,
    supported_actions: frozenset[Action],
) -> None:
    """Ensure an action can be executed on a device.

    Raises:
        ActionUnsupportedError: If the action does not apply to the device type
            or the platform has no mapping for it.
    """
    if not action.is_available_for(device.type):
        msg = f"{action.display_title} is not available for {device.type.value} devices"
        raise ActionUnsupportedError(msg)

    if action not in supported_actions:
        msg = f"{platform.display_name} does not support {action.display_title}"
        raise ActionUnsupportedError(msg)


def resolve_toggle(action: Action, device: PlatformDevice) -> Action:
    """Turn a toggle into an explicit on/off based on the device's known state."""
    if action is Action.TOGGLE:
        return Action.TURN_OFF if device.is_on else Action.TURN_ON
    return action


def no_command(platform: Platform, action: Action, params: ActionParams | None) -> dict[str, Any]:
    """Log and return the empty payload for an unmappable action."""
    _LOGGER.warning(
        "%s has no command for %s with parameters %r",
        platform.display_name,
        action.value,
        params,
    )
    return {}


def raise_for_status(
    status: int,
    error_cls: type[GatewayError],
    what: str,
    ok: tuple[int, ...] = (HTTPStatus.OK,),
) -> None:
    """Classify an HTTP status returned by a platform API.

    Args:
        status: HTTP status code.
        error_cls: Reason-carrying error raised for unexpected statuses.
        what: Description of the request, used in the error reason.
        ok: Statuses considered successful.

    Raises:
        InvalidCredentialsError: On 401 or 403.
        GatewayError: ``error_cls`` on any other non-successful status.
    """
    if status in ok:
        return
    if status in AUTH_REJECTED:
        raise InvalidCredentialsError
    msg = f"{what} returned status {status}"
    raise error_cls(msg)


def as_dict(value: Any) -> dict[str, Any]:
    """Return ``value`` if it is a dict, otherwise an empty dict."""
    return value if isinstance(value, dict) else {}


def as_list(value: Any) -> list[Any]:
    """Return ``value`` if it is a list, otherwise an empty list."""
    return value if isinstance(value, list) else []


def percentage(value: Any, scale: float = 1.0) -> int | None:
    """Convert a numeric platform value to a 0-100 percentage.

    Args:
        value: Raw value from the platform.
        scale: Maximum of the platform's range (1.0 for fractions, 254 for Hue).

    Returns:
        Rounded percentage, or None when the value is not numeric.
    """
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return round(value * 100 / scale)


def as_number(value: Any) -> float | None:
    """Return a numeric or numeric-string value as a float, otherwise None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def as_int(value: Any) -> int | None:
    """Return :func:`as_number` rounded to an int."""
    number = as_number(value)
    return round(number) if number is not None else None
