from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from ..constants import MIN_REQUEST_INTERVAL_SECONDS
from ..logger import TRACE

logger = logging.getLogger(__name__)


class RateLimiter:
    """Spaces outbound calls at least ``min_interval`` seconds apart.

    One instance is shared by every call a service makes. Waiters queue on an
    ``asyncio.Lock``, which wakes them in arrival order. The queue is
    unbounded: a burst of N callers holds the last one for roughly
    N * min_interval seconds.
    """

    def __init__(
        self,
        requests_per_second: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        if requests_per_second <= 0:
            raise ValueError(
                f"requests_per_second must be positive, got {requests_per_second}"
            )
        self.min_interval = max(MIN_REQUEST_INTERVAL_SECONDS, 1.0 / requests_per_second)
        self._clock = clock
        self._lock = asyncio.Lock()
        self._last_grant: float | None = None

    async def acquire_slot(self) -> None:
        """Wait until a call may be issued, then record the grant."""
        async with self._lock:
            if self._last_grant is not None:
                wait = self.min_interval - (self._clock() - self._last_grant)
                if wait > 0:
                    logger.log(TRACE, "Rate limiter holding caller for %.3fs", wait)
                    await asyncio.sleep(wait)
            self._last_grant = self._clock()
