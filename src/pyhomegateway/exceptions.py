"""Custom exceptions for pyhomegateway library.

Every failure raised by the gateway is a GatewayError carrying an ErrorKind,
so callers can branch on ``exc.kind`` and show ``str(exc)`` to a user.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    """Machine-checkable category of a gateway failure."""

    PLATFORM_NOT_SUPPORTED = "platform_not_supported"
    PLATFORM_NOT_AUTHENTICATED = "platform_not_authenticated"
    AUTH_UNSUPPORTED = "auth_unsupported"
    AUTHENTICATION_FAILED = "authentication_failed"
    INVALID_CREDENTIALS = "invalid_credentials"
    ACTION_UNSUPPORTED = "action_unsupported"
    DEVICE_NOT_FOUND = "device_not_found"
    DEVICE_DISCOVERY_FAILED = "device_discovery_failed"
    ACTION_EXECUTION_FAILED = "action_execution_failed"
    DEVICE_STATUS_FAILED = "device_status_failed"
    NETWORK_ERROR = "network_error"


class GatewayError(Exception):
    """Base exception for all gateway errors.

    Attributes:
        kind: Category of the failure.
    """

    kind: ErrorKind = ErrorKind.NETWORK_ERROR
    default_message = "Gateway error"

    def __init__(self, message: str = "") -> None:
        """Initialize GatewayError.

        Args:
            message: Error message. Falls back to the class default when empty.
        """
        super().__init__(message or self.default_message)


class _ReasonError(GatewayError):
    """Gateway error that carries a free-form reason."""

    def __init__(self, reason: str = "") -> None:
        """Initialize the error.

        Args:
            reason: Human-readable cause of the failure.
        """
        self.reason = reason
        super().__init__(f"{self.default_message}: {reason}" if reason else "")


class PlatformNotSupportedError(GatewayError):
    """Raised when a device has no platform or no adapter is registered for it."""

    kind = ErrorKind.PLATFORM_NOT_SUPPORTED
    default_message = "Platform not supported"


class PlatformNotAuthenticatedError(GatewayError):
    """Raised when an operation needs a platform that is not authenticated."""

    kind = ErrorKind.PLATFORM_NOT_AUTHENTICATED
    default_message = "Platform not authenticated"


class AuthUnsupportedError(GatewayError):
    """Raised when an auth entry point does not apply to the platform."""

    kind = ErrorKind.AUTH_UNSUPPORTED
    default_message = "This authentication method is not supported for this platform"


class AuthenticationFailedError(_ReasonError):
    """Raised when an authentication flow fails.

    Attributes:
        reason: Why authentication failed.
    """

    kind = ErrorKind.AUTHENTICATION_FAILED
    default_message = "Authentication failed"


class LinkButtonNotPressedError(AuthenticationFailedError):
    """Raised when bridge pairing is attempted before the link button is pressed."""

    def __init__(self, reason: str = "link button not pressed") -> None:
        """Initialize LinkButtonNotPressedError.

        Args:
            reason: Description reported by the bridge.
        """
        super().__init__(reason)


class InvalidCredentialsError(GatewayError):
    """Raised when the platform rejects the supplied credentials."""

    kind = ErrorKind.INVALID_CREDENTIALS
    default_message = "Invalid credentials"


class ActionUnsupportedError(GatewayError):
    """Raised when an action is not available for a device."""

    kind = ErrorKind.ACTION_UNSUPPORTED
    default_message = "This action is not supported for this device"


class DeviceNotFoundError(GatewayError):
    """Raised when a device id is unknown.

    Attributes:
        device_id: Optional id of the missing device.
    """

    kind = ErrorKind.DEVICE_NOT_FOUND
    default_message = "Device not found"

    def __init__(self, message: str = "", device_id: str | None = None) -> None:
        """Initialize DeviceNotFoundError.

        Args:
            message: Error message.
            device_id: Optional id of the missing device.
        """
        super().__init__(message)
        self.device_id = device_id


class DeviceDiscoveryFailedError(_ReasonError):
    """Raised when a platform's device listing fails."""

    kind = ErrorKind.DEVICE_DISCOVERY_FAILED
    default_message = "Device discovery failed"


class ActionExecutionFailedError(_ReasonError):
    """Raised when a platform rejects or fails an action."""

    kind = ErrorKind.ACTION_EXECUTION_FAILED
    default_message = "Action failed"


class DeviceStatusFailedError(_ReasonError):
    """Raised when a device status read fails."""

    kind = ErrorKind.DEVICE_STATUS_FAILED
    default_message = "Device status failed"


class NetworkError(GatewayError):
    """Base exception for transport failures."""

    kind = ErrorKind.NETWORK_ERROR
    default_message = "Network error occurred"


class GatewayConnectionError(NetworkError):
    """Exception raised for connection failures."""


class GatewayTimeoutError(NetworkError):
    """Exception raised when a request times out."""


class RateLimitError(NetworkError):
    """Exception raised when a platform rate limit is exceeded.

    Attributes:
        retry_after: Optional number of seconds to wait before retrying.
    """

    def __init__(self, message: str = "", retry_after: float | None = None) -> None:
        """Initialize RateLimitError.

        Args:
            message: Error message.
            retry_after: Optional number of seconds to wait before retrying.
        """
        super().__init__(message or "Rate limit exceeded")
        self.retry_after = retry_after
