"""Example pairing a Hue bridge and connecting a Hubitat hub."""

import asyncio

from pyhomegateway import (
    Action,
    DeviceRegistry,
    GatewayConfig,
    LinkButtonNotPressedError,
    Platform,
)


async def main() -> None:
    """Pair with the Hue bridge, then add a Hubitat hub by token."""
    async with DeviceRegistry.from_config(GatewayConfig.from_env()) as registry:
        print("Press the link button on your Hue bridge...")
        try:
            credentials = await registry.authenticate(Platform.PHILIPS_HUE)
        except LinkButtonNotPressedError:
            print("The link button was not pressed in time")
        else:
            # Store credentials.api_key to skip pairing next time
            print(f"Paired with bridge at {credentials.bridge_ip}")

        # The Maker API token comes from the hub's Apps page
        await registry.authenticate_with_token(Platform.HUBITAT, "your_maker_api_token", "192.168.1.50")

        for platform, error in registry.discovery_errors.items():
            print(f"{platform.display_name} discovery failed: {error}")

        for device in registry.devices:
            print(f"{device.platform.display_name}: {device.name} ({device.type.value})")

        locks = [device for device in registry.devices if Action.LOCK.is_available_for(device.type)]
        for lock in locks:
            status = await registry.execute(Action.LOCK, lock)
            print(f"{lock.name} locked: {status.is_locked}")


if __name__ == "__main__":
    asyncio.run(main())
