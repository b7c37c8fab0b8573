"""iRobot Roomba adapter."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pyhomegateway.actions import Action
from pyhomegateway.adapters.base import (
    as_dict,
    as_int,
    as_list,
    auth_unsupported,
    check_action,
    check_credentials,
    no_command,
    raise_for_status,
)
from pyhomegateway.const import IROBOT_AUTH_URL, IROBOT_BASE_URL, IROBOT_SCOPE, IROBOT_TOKEN_URL
from pyhomegateway.exceptions import (
    ActionExecutionFailedError,
    DeviceDiscoveryFailedError,
    DeviceStatusFailedError,
)
from pyhomegateway.models import DeviceStatus, DeviceType, Platform, PlatformDevice
from pyhomegateway.oauth import OAuth2Flow, authorize
from pyhomegateway.transport import bearer_headers


if TYPE_CHECKING:
    from pyhomegateway.actions import ActionParams
    from pyhomegateway.config import OAuthClientConfig
    from pyhomegateway.models import Credentials
    from pyhomegateway.oauth import WebAuthSession
    from pyhomegateway.transport import HttpTransport

_LOGGER = logging.getLogger(__name__)

_COMMANDS = {
    Action.START_CLEANING: "start",
    Action.STOP_CLEANING: "stop",
    Action.SPOT_CLEAN: "spot",
    Action.RETURN_TO_BASE: "dock",
    Action.TURN_ON: "start",
    Action.TURN_OFF: "stop",
}

_OPTIONAL_CAPABILITIES = ("mop", "selfEmpty", "selfWash", "camera")


class IRobotAdapter:
    """Adapter for iRobot vacuums."""

    platform = Platform.IROBOT
    simulated = False
    supported_actions = frozenset(_COMMANDS)

    def __init__(
        self,
        transport: HttpTransport,
        *,
        client: OAuthClientConfig | None = None,
        web_auth: WebAuthSession | None = None,
        base_url: str = IROBOT_BASE_URL,
        authorize_url: str = IROBOT_AUTH_URL,
        token_url: str = IROBOT_TOKEN_URL,
    ) -> None:
        self._transport = transport
        self._web_auth = web_auth
        self._base_url = base_url.rstrip("/")
        self._flow = (
            OAuth2Flow(
                platform=self.platform,
                transport=transport,
                client=client,
                authorize_url=authorize_url,
                token_url=token_url,
                scope=IROBOT_SCOPE,
            )
            if client is not None
            else None
        )

    async def authenticate(self) -> Credentials:
        """Run the iRobot OAuth2 consent flow."""
        return await authorize(self.platform, self._flow, self._web_auth)

    async def authenticate_with_key(self, key: str) -> Credentials:
        """iRobot requires OAuth2."""
        raise auth_unsupported(self.platform, "API key")

    async def authenticate_with_token(self, token: str, host: str | None = None) -> Credentials:
        """iRobot is not a local hub."""
        raise auth_unsupported(self.platform, "hub token")

    async def discover(self, credentials: Credentials) -> list[PlatformDevice]:
        """List every robot on the account."""
        check_credentials(self.platform, credentials)

        status, data = await self._transport.request(
            "GET", f"{self._base_url}/robots", headers=bearer_headers(credentials.access_token)
        )
        raise_for_status(status, DeviceDiscoveryFailedError, "Robot listing")

        robots = []
        for robot in as_list(as_dict(data).get("robots")):
            if not isinstance(robot, dict) or not robot.get("serialNumber"):
                continue
            features = as_list(robot.get("capabilities"))
            robots.append(
                PlatformDevice(
                    id=str(robot["serialNumber"]),
                    name=str(robot.get("name") or robot["serialNumber"]),
                    type=DeviceType.VACUUM,
                    platform=self.platform,
                    capabilities=(
                        "vacuum",
                        "navigation",
                        "mapping",
                        *(feature for feature in _OPTIONAL_CAPABILITIES if feature in features),
                    ),
                    properties={"model": str(robot.get("sku", ""))},
                    is_online=bool(robot.get("isOnline", False)),
                )
            )

        _LOGGER.debug("Discovered %d iRobot robots", len(robots))
        return robots

    def build_command(self, action: Action, params: ActionParams | None = None) -> dict[str, Any]:
        """Translate an action into an iRobot command body."""
        if action in _COMMANDS:
            return {"command": _COMMANDS[action], "initiator": "localApp"}
        return no_command(self.platform, action, params)

    async def execute(
        self,
        action: Action,
        device: PlatformDevice,
        credentials: Credentials,
        params: ActionParams | None = None,
    ) -> None:
        """Send a mission command to one robot."""
        check_credentials(self.platform, credentials)
        check_action(self.platform, action, device, self.supported_actions)

        command = self.build_command(action, params)
        if not command:
            return

        status, _ = await self._transport.request(
            "POST",
            f"{self._base_url}/robots/{device.id}/commands",
            headers=bearer_headers(credentials.access_token),
            json_data=command,
        )
        raise_for_status(status, ActionExecutionFailedError, action.display_title)

    async def fetch_status(self, device: PlatformDevice, credentials: Credentials) -> DeviceStatus:
        """Read one robot's mission state."""
        check_credentials(self.platform, credentials)

        status, data = await self._transport.request(
            "GET", f"{self._base_url}/robots/{device.id}/status", headers=bearer_headers(credentials.access_token)
        )
        raise_for_status(status, DeviceStatusFailedError, "Robot status")

        state = as_dict(as_dict(data).get("status"))
        phase = state.get("state", "idle")

        return DeviceStatus(
            is_online=bool(state.get("isOnline", False)),
            is_on=phase != "idle",
            is_cleaning=phase == "cleaning",
            battery=as_int(state.get("batteryPercentage")),
        )
