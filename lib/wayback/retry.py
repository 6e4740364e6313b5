"""Bounded retry policy for archive lookups."""

import asyncio
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from loguru import logger
from pydantic import BaseModel, Field

from lib.wayback.errors import ArchiveLookupError

T = TypeVar("T")


class RetryPolicy(BaseModel):
    """Fixed number of attempts with a fixed delay between them."""

    max_attempts: int = Field(default=2, ge=1, le=10, description="Total attempts, including the first")
    backoff_ms: int = Field(default=2500, ge=0, description="Delay between attempts in milliseconds")

    async def run(
        self,
        operation: Callable[..., Awaitable[T]],
        *args,
        retry_on: Tuple[Type[BaseException], ...] = (ArchiveLookupError,),
        on_attempt: Optional[Callable[[int], None]] = None,
        stop_event: Optional[asyncio.Event] = None,
    ) -> T:
        """Await `operation(*args)` until it succeeds or attempts run out.

        Only exceptions in `retry_on` are retried; the last one is re-raised.
        Once `stop_event` is set, the backoff ends early and no further
        attempt is made.
        """
        for attempt in range(1, self.max_attempts + 1):
            if on_attempt:
                on_attempt(attempt)
            try:
                return await operation(*args)
            except retry_on as e:
                if attempt >= self.max_attempts:
                    raise
                if stop_event is not None and stop_event.is_set():
                    logger.debug(f"Attempt {attempt}/{self.max_attempts} failed: {e} (stopped, not retrying)")
                    raise
                logger.debug(
                    f"Attempt {attempt}/{self.max_attempts} failed: {e} "
                    f"(retrying in {self.backoff_ms}ms)"
                )
                await self._backoff(stop_event)
                if stop_event is not None and stop_event.is_set():
                    logger.debug(f"Stopped during backoff after attempt {attempt}")
                    raise

    async def _backoff(self, stop_event: Optional[asyncio.Event]) -> None:
        if not self.backoff_ms:
            return
        if stop_event is None:
            await asyncio.sleep(self.backoff_ms / 1000)
            return
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=self.backoff_ms / 1000)
        except asyncio.TimeoutError:
            pass
