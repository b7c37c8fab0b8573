"""Generic retry policy for gateway operations (exponential backoff, rate limits).

Single adapter and registry calls fail fast with a classified error. Callers
that want retries wrap the call in :func:`retry_with_backoff`.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from pyhomegateway.const import DEFAULT_RATE_LIMIT_DELAY
from pyhomegateway.exceptions import NetworkError, RateLimitError


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ExponentialBackoffConfig:
    """Configuration for exponential backoff.

    Attributes:
        base_delay: Initial delay in seconds.
        max_delay: Maximum delay in seconds.
        max_attempts: Total attempts, including the first one.
        exponential_base: Multiplier for exponential growth.
        jitter: Randomize delays so clients do not retry in lockstep.
    """

    base_delay: float = 1.0
    max_delay: float = 60.0
    max_attempts: int = 4
    exponential_base: float = 2.0
    jitter: bool = True


class ExponentialBackoff:
    """Exponential backoff calculator for retry delays.

    Example:
        ```python
        backoff = ExponentialBackoff(base_delay=0.5, max_attempts=3)
        backoff.calculate_delay(0)  # up to 0.5 seconds
        backoff.calculate_delay(2)  # up to 2.0 seconds
        ```
    """

    def __init__(
        self,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        max_attempts: int = 4,
        exponential_base: float = 2.0,
        *,
        jitter: bool = True,
    ) -> None:
        """Initialize the calculator.

        Args:
            base_delay: Initial delay in seconds.
            max_delay: Maximum delay in seconds.
            max_attempts: Total attempts, including the first one.
            exponential_base: Multiplier for exponential growth.
            jitter: Randomize each delay between zero and its computed value.

        Raises:
            ValueError: If ``max_attempts`` is less than one.
        """
        if max_attempts < 1:
            msg = "max_attempts must be at least 1"
            raise ValueError(msg)

        self.config = ExponentialBackoffConfig(
            base_delay=base_delay,
            max_delay=max_delay,
            max_attempts=max_attempts,
            exponential_base=exponential_base,
            jitter=jitter,
        )

    @property
    def max_attempts(self) -> int:
        """Get the total number of attempts."""
        return self.config.max_attempts

    def calculate_delay(self, attempt: int) -> float:
        """Calculate the delay after a failed attempt.

        Args:
            attempt: Failed attempt number (0-indexed).

        Returns:
            Delay in seconds.
        """
        delay = min(self.config.base_delay * (self.config.exponential_base**attempt), self.config.max_delay)
        if self.config.jitter:
            delay = random.uniform(0, delay)  # noqa: S311
        return delay


class RateLimiter:
    """Delay policy for :class:`~pyhomegateway.exceptions.RateLimitError`.

    Attributes:
        default_delay: Seconds to wait when the platform sent no ``Retry-After``.
        max_delay: Upper bound on any rate-limit wait.
    """

    def __init__(
        self,
        default_delay: float = DEFAULT_RATE_LIMIT_DELAY,
        max_delay: float = 300.0,
    ) -> None:
        self.default_delay = default_delay
        self.max_delay = max_delay

    def delay_for(self, error: RateLimitError) -> float:
        """Get the wait before retrying a rate-limited call."""
        delay = error.retry_after if error.retry_after is not None else self.default_delay
        return min(delay, self.max_delay)


async def retry_with_backoff(
    func: Callable[[], Awaitable[T]],
    *,
    backoff: ExponentialBackoff | None = None,
    rate_limiter: RateLimiter | None = None,
    retryable_exceptions: tuple[type[Exception], ...] = (NetworkError,),
) -> T:
    """Call ``func`` until it succeeds or the attempts run out.

    Rate-limited attempts wait for the platform's ``Retry-After`` when a
    ``rate_limiter`` is given, otherwise they back off like any other failure.

    Args:
        func: Zero-argument coroutine function to call.
        backoff: Delay policy, a default :class:`ExponentialBackoff` when omitted.
        rate_limiter: Delay policy for rate-limit errors.
        retryable_exceptions: Exception types that trigger a retry. Anything
            else propagates immediately.

    Returns:
        The result of the first successful call.

    Raises:
        Exception: The last retryable exception once attempts are exhausted.

    Example:
        ```python
        status = await retry_with_backoff(
            lambda: registry.execute(Action.TURN_ON, device),
            backoff=ExponentialBackoff(max_attempts=3),
            rate_limiter=RateLimiter(),
        )
        ```
    """
    if backoff is None:
        backoff = ExponentialBackoff()

    for attempt in range(backoff.max_attempts):
        try:
            return await func()
        except retryable_exceptions as exc:
            if attempt >= backoff.max_attempts - 1:
                _LOGGER.warning("All %d attempts failed: %s", backoff.max_attempts, exc)
                raise

            if rate_limiter is not None and isinstance(exc, RateLimitError):
                delay = rate_limiter.delay_for(exc)
            else:
                delay = backoff.calculate_delay(attempt)

            _LOGGER.warning(
                "Attempt %d/%d failed: %s. Retrying in %.1f seconds",
                attempt + 1,
                backoff.max_attempts,
                exc,
                delay,
            )
            await asyncio.sleep(delay)

    msg = "retry loop exited without a result"
    raise RuntimeError(msg)
