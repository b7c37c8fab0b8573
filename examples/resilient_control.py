"""Example retrying gateway calls with exponential backoff."""

import asyncio

from pyhomegateway import (
    Action,
    DeviceRegistry,
    ExponentialBackoff,
    GatewayError,
    Platform,
    RateLimiter,
    retry_with_backoff,
)


async def main() -> None:
    """Turn on every LIFX light, retrying network failures and rate limits."""
    backoff = ExponentialBackoff(base_delay=0.5, max_delay=10.0, max_attempts=4)
    rate_limiter = RateLimiter(default_delay=5.0)

    async with DeviceRegistry.from_config() as registry:
        await retry_with_backoff(
            lambda: registry.authenticate(Platform.LIFX, api_key="your_lifx_token"),
            backoff=backoff,
            rate_limiter=rate_limiter,
        )

        for light in registry.devices_for_platform(Platform.LIFX):
            try:
                status = await retry_with_backoff(
                    lambda light=light: registry.execute(Action.TURN_ON, light),
                    backoff=backoff,
                    rate_limiter=rate_limiter,
                )
            except GatewayError as err:
                # Failures are also kept on the cached status
                print(f"{light.name}: {err.kind.value}: {err}")
                print(f"  last_error: {registry.status_for(light.id).last_error}")
            else:
                print(f"{light.name}: on={status.is_on}")


if __name__ == "__main__":
    asyncio.run(main())
