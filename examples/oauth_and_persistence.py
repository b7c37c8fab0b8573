"""Example running an OAuth2 consent flow and persisting the registry.

Set PYHOMEGATEWAY_SMARTTHINGS_CLIENT_ID, PYHOMEGATEWAY_SMARTTHINGS_CLIENT_SECRET and
PYHOMEGATEWAY_SMARTTHINGS_REDIRECT_URI=http://127.0.0.1:8765/oauth/smartthings before
running. The consent page opens in the default browser and redirects back to a
loopback listener.
"""

import asyncio
import json
from pathlib import Path

from aiohttp import ClientSession

from pyhomegateway import (
    DeviceRegistry,
    GatewayConfig,
    LoopbackWebAuth,
    Platform,
    deserialize_credentials,
    deserialize_snapshot,
    serialize_credentials,
    serialize_snapshot,
)


STATE_FILE = Path("gateway_state.json")
# Tokens are stored in clear text here; use a keyring in real applications
CREDENTIALS_FILE = Path("gateway_credentials.json")


async def main() -> None:
    """Restore saved state, or authenticate SmartThings and save it."""
    async with ClientSession() as session:
        registry = DeviceRegistry.from_config(
            GatewayConfig.from_env(),
            session=session,
            web_auth=LoopbackWebAuth(port=8765),
            on_snapshot=lambda snapshot: STATE_FILE.write_text(json.dumps(serialize_snapshot(snapshot))),
        )

        async with registry:
            if STATE_FILE.exists() and CREDENTIALS_FILE.exists():
                stored = json.loads(CREDENTIALS_FILE.read_text())
                await registry.restore(
                    deserialize_snapshot(json.loads(STATE_FILE.read_text())),
                    [deserialize_credentials(entry) for entry in stored],
                )
                await registry.discover_all()
            else:
                credentials = await registry.authenticate(Platform.SMARTTHINGS)
                CREDENTIALS_FILE.write_text(json.dumps([serialize_credentials(credentials)]))

            for device in registry.devices_for_platform(Platform.SMARTTHINGS):
                status = await registry.fetch_status(device)
                print(f"{device.name}: online={status.is_online} on={status.is_on} battery={status.battery}")

        # Session remains open after the registry exits
        print("Registry closed, session still available")


if __name__ == "__main__":
    asyncio.run(main())
