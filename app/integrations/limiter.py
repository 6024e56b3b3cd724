"""
Bounded worker pool for outbound Shopify calls.

One instance is shared by every in-flight webhook so the total number of
simultaneous writes against the shop stays at `capacity`, however many events
arrive at once. Retry/backoff for transient upstream errors is a policy of the
pool, not of the individual call sites.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from app.core.exceptions import TransientUpstreamError, UpstreamTimeoutError

logger = logging.getLogger(__name__)


class ConcurrencyLimiter:
    def __init__(
        self,
        capacity: int = 2,
        call_timeout: Optional[float] = None,
        max_retries: int = 0,
        backoff_seconds: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Args:
            capacity: Maximum number of calls running at the same time
            call_timeout: Seconds allowed per attempt; None disables the timeout
            max_retries: Extra attempts after a TransientUpstreamError
            backoff_seconds: Base delay, doubled on each retry unless the upstream sent Retry-After
        """
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")
        self.capacity = capacity
        self.call_timeout = call_timeout
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep
        self._semaphore = asyncio.Semaphore(capacity)
        self.in_flight = 0
        self.peak_in_flight = 0

    async def run(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """Run func(*args, **kwargs) inside a slot, retrying transient failures."""
        attempt = 0
        while True:
            try:
                return await self._run_once(func, *args, **kwargs)
            except TransientUpstreamError as e:
                if attempt >= self.max_retries:
                    raise
                delay = self._backoff_delay(attempt, e)
                attempt += 1
                logger.info(
                    f"Transient upstream error ({e}); retry {attempt}/{self.max_retries} in {delay:.2f}s"
                )
                # Slot is free while we wait
                await self._sleep(delay)

    async def _run_once(self, func, *args, **kwargs):
        async with self._semaphore:
            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
            try:
                if self.call_timeout is None:
                    return await func(*args, **kwargs)
                return await asyncio.wait_for(func(*args, **kwargs), timeout=self.call_timeout)
            except asyncio.TimeoutError as e:
                raise UpstreamTimeoutError(f"Call timed out after {self.call_timeout}s") from e
            finally:
                self.in_flight -= 1

    def _backoff_delay(self, attempt: int, error: TransientUpstreamError) -> float:
        if error.retry_after is not None:
            return max(float(error.retry_after), 0.0)
        return self.backoff_seconds * (2 ** attempt)
