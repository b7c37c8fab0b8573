"""Tests for custom exceptions."""

from __future__ import annotations

import pytest

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


class TestErrorKinds:
    """Test that every error carries its kind."""

    @pytest.mark.parametrize(
        ("error_cls", "kind"),
        [
            (PlatformNotSupportedError, ErrorKind.PLATFORM_NOT_SUPPORTED),
            (PlatformNotAuthenticatedError, ErrorKind.PLATFORM_NOT_AUTHENTICATED),
            (AuthUnsupportedError, ErrorKind.AUTH_UNSUPPORTED),
            (AuthenticationFailedError, ErrorKind.AUTHENTICATION_FAILED),
            (LinkButtonNotPressedError, ErrorKind.AUTHENTICATION_FAILED),
            (InvalidCredentialsError, ErrorKind.INVALID_CREDENTIALS),
            (ActionUnsupportedError, ErrorKind.ACTION_UNSUPPORTED),
            (DeviceNotFoundError, ErrorKind.DEVICE_NOT_FOUND),
            (DeviceDiscoveryFailedError, ErrorKind.DEVICE_DISCOVERY_FAILED),
            (ActionExecutionFailedError, ErrorKind.ACTION_EXECUTION_FAILED),
            (DeviceStatusFailedError, ErrorKind.DEVICE_STATUS_FAILED),
            (GatewayConnectionError, ErrorKind.NETWORK_ERROR),
            (GatewayTimeoutError, ErrorKind.NETWORK_ERROR),
            (RateLimitError, ErrorKind.NETWORK_ERROR),
        ],
    )
    def test_kind(self, error_cls: type[GatewayError], kind: ErrorKind) -> None:
        """Test the kind and base class."""
        error = error_cls()

        assert error.kind is kind
        assert isinstance(error, GatewayError)
        assert str(error)


class TestMessages:
    """Test error messages."""

    def test_default_message(self) -> None:
        """Test the fallback message."""
        assert str(PlatformNotAuthenticatedError()) == "Platform not authenticated"
        assert str(InvalidCredentialsError()) == "Invalid credentials"

    def test_custom_message(self) -> None:
        """Test that an explicit message replaces the default."""
        assert str(PlatformNotSupportedError("Ring has no adapter")) == "Ring has no adapter"

    def test_reason_is_prefixed(self) -> None:
        """Test reason-carrying errors."""
        error = ActionExecutionFailedError("bulb offline")

        assert error.reason == "bulb offline"
        assert str(error) == "Action failed: bulb offline"
        assert str(DeviceStatusFailedError()) == "Device status failed"

    def test_link_button(self) -> None:
        """Test the bridge pairing error."""
        error = LinkButtonNotPressedError()

        assert isinstance(error, AuthenticationFailedError)
        assert error.reason == "link button not pressed"

    def test_device_not_found(self) -> None:
        """Test that the device id is kept."""
        error = DeviceNotFoundError(device_id="lamp-1")

        assert error.device_id == "lamp-1"
        assert str(error) == "Device not found"


class TestNetworkErrors:
    """Test the network error hierarchy."""

    def test_hierarchy(self) -> None:
        """Test that transport failures share a base."""
        assert issubclass(GatewayConnectionError, NetworkError)
        assert issubclass(GatewayTimeoutError, NetworkError)
        assert issubclass(RateLimitError, NetworkError)

    def test_rate_limit_retry_after(self) -> None:
        """Test the Retry-After value."""
        error = RateLimitError(retry_after=30.0)

        assert error.retry_after == 30.0
        assert str(error) == "Rate limit exceeded"

    def test_can_be_caught_as_gateway_error(self) -> None:
        """Test catching any failure."""
        with pytest.raises(GatewayError):
            raise GatewayTimeoutError("timed out")
