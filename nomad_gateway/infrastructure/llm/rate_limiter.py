"""Cooperative request pacing shared by all calls on one client."""

import asyncio
import time
from typing import Awaitable, Callable, Optional


class RequestPacer:
    """
    Admission control for outbound requests.

    A semaphore bounds how many callers are being admitted at once, and a
    lock serialises the "measure gap, sleep remainder, stamp" sequence so
    consecutive request starts are at least `min_delay_ms` apart. The delay
    applies at admission only; the permit is released before the network
    round trip begins.
    """

    def __init__(
        self,
        max_concurrent: int,
        min_delay_ms: int,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._lock = asyncio.Lock()
        self._min_delay = max(min_delay_ms, 0) / 1000.0
        self._clock = clock
        self._sleep = sleep
        self._last_request_at: Optional[float] = None

    async def acquire(self) -> None:
        """Wait until a new request may start. Cancellable at every await."""
        async with self._semaphore:
            async with self._lock:
                if self._last_request_at is not None:
                    elapsed = self._clock() - self._last_request_at
                    remaining = self._min_delay - elapsed
                    if remaining > 0:
                        await self._sleep(remaining)
                self._last_request_at = self._clock()
