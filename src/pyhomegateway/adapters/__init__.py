"""Platform adapters.

Use :func:`create_adapters` to build one adapter per platform from a
:class:`~pyhomegateway.config.GatewayConfig`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pyhomegateway.adapters.base import PlatformAdapter
from pyhomegateway.adapters.ecobee import EcobeeAdapter
from pyhomegateway.adapters.hubitat import HubitatAdapter
from pyhomegateway.adapters.hue import HueAdapter
from pyhomegateway.adapters.irobot import IRobotAdapter
from pyhomegateway.adapters.lifx import LifxAdapter
from pyhomegateway.adapters.nest import NestAdapter
from pyhomegateway.adapters.ring import RingAdapter
from pyhomegateway.adapters.roborock import RoborockAdapter
from pyhomegateway.adapters.simulated import SimulatedAdapter
from pyhomegateway.adapters.smartthings import SmartThingsAdapter
from pyhomegateway.adapters.wyze import WyzeAdapter
from pyhomegateway.config import GatewayConfig
from pyhomegateway.models import Platform


if TYPE_CHECKING:
    from collections.abc import Callable

    from pyhomegateway.oauth import WebAuthSession
    from pyhomegateway.transport import HttpTransport

__all__ = [
    "EcobeeAdapter",
    "HubitatAdapter",
    "HueAdapter",
    "IRobotAdapter",
    "LifxAdapter",
    "NestAdapter",
    "PlatformAdapter",
    "RingAdapter",
    "RoborockAdapter",
    "SimulatedAdapter",
    "SmartThingsAdapter",
    "WyzeAdapter",
    "create_adapters",
]

_OAUTH_ADAPTERS = {
    Platform.SMARTTHINGS: SmartThingsAdapter,
    Platform.RING: RingAdapter,
    Platform.WYZE: WyzeAdapter,
    Platform.IROBOT: IRobotAdapter,
    Platform.ROBOROCK: RoborockAdapter,
}


def create_adapters(
    transport: HttpTransport,
    config: GatewayConfig | None = None,
    *,
    web_auth: WebAuthSession | None = None,
    on_pin: Callable[[str], Any] | None = None,
) -> dict[Platform, PlatformAdapter]:
    """Build the live adapter for every platform.

    Args:
        transport: HTTP transport shared by all adapters.
        config: Gateway configuration, defaults when omitted.
        web_auth: Interactive session for OAuth2 consent pages.
        on_pin: Callback receiving the Ecobee authorization PIN.

    Returns:
        Adapters keyed by platform.
    """
    config = config or GatewayConfig()

    adapters: dict[Platform, PlatformAdapter] = {
        Platform.LIFX: LifxAdapter(transport),
        Platform.PHILIPS_HUE: HueAdapter(
            transport,
            candidates=config.hue_candidates,
            pairing_attempts=config.hue_pairing_attempts,
            pairing_interval=config.hue_pairing_interval,
        ),
        Platform.HUBITAT: HubitatAdapter(
            transport, candidates=config.hubitat_candidates, app_id=config.hubitat_app_id
        ),
        Platform.NEST: NestAdapter(
            transport,
            client=config.oauth_for(Platform.NEST),
            web_auth=web_auth,
            project_id=config.nest_project_id,
        ),
        Platform.ECOBEE: EcobeeAdapter(transport, client=config.oauth_for(Platform.ECOBEE), on_pin=on_pin),
    }
    for platform, adapter_cls in _OAUTH_ADAPTERS.items():
        adapters[platform] = adapter_cls(transport, client=config.oauth_for(platform), web_auth=web_auth)

    return adapters
