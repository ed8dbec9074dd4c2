"""Exponential backoff around a single gateway operation."""

import asyncio
from typing import Awaitable, Callable, Tuple, Type, TypeVar

import httpx

from nomad_gateway.core.exceptions import GatewayServerError
from nomad_gateway.core.utils.logging import get_logger_with_context

logger = get_logger_with_context(module="retry")

T = TypeVar("T")

# Rate limits are surfaced with their Retry-After hint instead of retried here
RETRYABLE_ERRORS: Tuple[Type[BaseException], ...] = (
    GatewayServerError,
    httpx.TransportError,
)


class RetryPolicy:
    """
    Retry server errors and transport failures with 2^attempt second delays.

    `max_retries` is the total number of attempts; once it is reached the
    last exception propagates unchanged. Anything not in RETRYABLE_ERRORS
    (including cancellation) propagates on the first occurrence.
    """

    def __init__(
        self,
        max_retries: int,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.max_retries = max(max_retries, 1)
        self.consecutive_errors = 0
        self._sleep = sleep

    @staticmethod
    def backoff_delay(attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt."""
        return float(2 ** attempt)

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        attempt = 0
        while True:
            try:
                result = await operation()
                self.consecutive_errors = 0
                return result
            except RETRYABLE_ERRORS as e:
                attempt += 1
                self.consecutive_errors += 1

                if attempt >= self.max_retries:
                    logger.error(f"Operation failed after {attempt} attempts: {e}")
                    raise

                delay = self.backoff_delay(attempt)
                logger.warning(f"Attempt {attempt} failed, retrying in {delay:.0f}s: {e}")
                await self._sleep(delay)
