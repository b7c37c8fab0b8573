"""Basic usage example for pyhomegateway library."""

import asyncio

from pyhomegateway import Action, DeviceRegistry, GatewayConfig, Platform


async def main() -> None:
    """Authenticate LIFX, list its lights and toggle each one."""
    async with DeviceRegistry.from_config(GatewayConfig.from_env()) as registry:
        # Authenticating also discovers the platform's devices
        await registry.authenticate(Platform.LIFX, api_key="your_lifx_token")
        print(f"Connected platforms: {[platform.display_name for platform in registry.connected_platforms]}")

        lights = registry.devices_for_platform(Platform.LIFX)
        print(f"Found {len(lights)} light(s)")

        for light in lights:
            print(f"\nDevice: {light.name}")
            print(f"  ID: {light.id}")
            print(f"  Online: {light.is_online}")
            print(f"  Capabilities: {', '.join(light.capabilities)}")
            print(f"  Actions: {[action.display_title for action in Action.available_for(light.type)]}")

            if light.is_online:
                status = await registry.execute(Action.TOGGLE, light)
                print(f"  Toggled, now {'on' if status.is_on else 'off'}")

                status = await registry.execute(Action.SET_BRIGHTNESS, light, {"brightness": 60})
                print(f"  Brightness: {status.brightness}%")


if __name__ == "__main__":
    asyncio.run(main())
