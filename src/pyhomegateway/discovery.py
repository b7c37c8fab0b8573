"""Local-network discovery and bridge pairing.

Hosts are given as ``host`` or ``host:port`` strings and probed over plain
HTTP. Probes run concurrently, but the first responding host in candidate
order wins, so preferred hosts (such as ``localhost``) should come first.
"""

from __future__ import annotations

import asyncio
import logging
from http import HTTPStatus
from typing import TYPE_CHECKING

from pyhomegateway.const import (
    HUE_CANDIDATE_HOSTS,
    HUE_DEVICE_TYPE,
    HUE_DISCOVERY_URL,
    HUE_LINK_BUTTON_ERROR,
    HUE_PAIRING_ATTEMPTS,
    HUE_PAIRING_INTERVAL,
)
from pyhomegateway.exceptions import AuthenticationFailedError, LinkButtonNotPressedError, NetworkError


if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from pyhomegateway.transport import HttpTransport

_LOGGER = logging.getLogger(__name__)


async def find_first_host(
    transport: HttpTransport,
    hosts: Iterable[str],
    url_for: Callable[[str], str],
) -> str | None:
    """Find the first host whose probe URL answers 200.

    Args:
        transport: HTTP transport used for the probes.
        hosts: Candidate hosts in order of preference.
        url_for: Builds the probe URL for a host.

    Returns:
        The first responding host in candidate order, or None.
    """
    candidates = list(hosts)
    results = await asyncio.gather(*(transport.probe(url_for(host)) for host in candidates))

    for host, found in zip(candidates, results, strict=True):
        if found:
            _LOGGER.debug("Found responding host %s", host)
            return host
    return None


async def discover_bridge(
    transport: HttpTransport,
    *,
    discovery_url: str | None = HUE_DISCOVERY_URL,
    candidates: Iterable[str] = HUE_CANDIDATE_HOSTS,
) -> str | None:
    """Locate a Hue bridge.

    The cloud discovery endpoint is asked first. If it fails or knows no
    bridge, the local candidates are probed with ``GET /api/config``.

    Args:
        transport: HTTP transport.
        discovery_url: Cloud discovery endpoint, None to skip it.
        candidates: Local hosts to probe when cloud discovery finds nothing.

    Returns:
        The bridge host, or None if none was found.
    """
    if discovery_url is not None:
        try:
            status, data = await transport.request("GET", discovery_url)
        except NetworkError as exc:
            _LOGGER.warning("Bridge cloud discovery failed, probing local network: %s", exc)
        else:
            if status == HTTPStatus.OK and isinstance(data, list):
                for bridge in data:
                    if isinstance(bridge, dict) and bridge.get("internalipaddress"):
                        _LOGGER.info("Bridge %s found via cloud discovery", bridge.get("id"))
                        return str(bridge["internalipaddress"])
            _LOGGER.debug("Cloud discovery returned no bridges (status %s)", status)

    return await find_first_host(transport, candidates, lambda host: f"http://{host}/api/config")


async def create_bridge_user(
    transport: HttpTransport,
    bridge: str,
    *,
    device_type: str = HUE_DEVICE_TYPE,
    attempts: int = HUE_PAIRING_ATTEMPTS,
    interval: float = HUE_PAIRING_INTERVAL,
) -> tuple[str, str | None]:
    """Pair with a bridge by creating an application user.

    The bridge only accepts the request within a short window after its link
    button is pressed. Pairing is retried up to ``attempts`` times while the
    bridge reports the link-button error.

    Args:
        transport: HTTP transport.
        bridge: Bridge host.
        device_type: Application identifier registered with the bridge.
        attempts: Number of pairing attempts.
        interval: Seconds between attempts.

    Returns:
        Tuple of (username, client_key).

    Raises:
        LinkButtonNotPressedError: If the link button was not pressed in time.
        AuthenticationFailedError: If the bridge rejects pairing for another reason.
    """
    url = f"http://{bridge}/api"
    payload = {"devicetype": device_type, "generateclientkey": True}

    for attempt in range(max(1, attempts)):
        status, data = await transport.request("POST", url, json_data=payload)

        if status != HTTPStatus.OK or not isinstance(data, list) or not data:
            msg = f"bridge pairing failed with status {status}"
            raise AuthenticationFailedError(msg)

        result = data[0] if isinstance(data[0], dict) else {}
        if "success" in result:
            success = result["success"] if isinstance(result["success"], dict) else {}
            username = success.get("username")
            if not username:
                msg = "bridge pairing returned no username"
                raise AuthenticationFailedError(msg)
            _LOGGER.info("Paired with bridge %s", bridge)
            return username, success.get("clientkey")

        error = result.get("error") if isinstance(result.get("error"), dict) else {}
        description = error.get("description", "unknown bridge error")
        if error.get("type") != HUE_LINK_BUTTON_ERROR:
            raise AuthenticationFailedError(description)

        if attempt < attempts - 1:
            _LOGGER.info("Press the link button on bridge %s (attempt %d/%d)", bridge, attempt + 1, attempts)
            await asyncio.sleep(interval)

    raise LinkButtonNotPressedError(description)
