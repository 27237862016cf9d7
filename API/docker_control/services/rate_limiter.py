import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class RateLimitRecord:
    count: int
    last_request: float


class RateLimiter:
    """
    Sliding-window request counter per client identity.

    A client may send ``limit`` requests as long as no more than ``period``
    seconds pass between two of them; a longer pause resets its counter.
    Records idle for more than two periods are dropped by ``sweep``.
    """

    def __init__(
        self,
        limit: int = 12,
        period: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.period = period
        self._clock = clock
        self._records: Dict[str, RateLimitRecord] = {}
        self._lock = threading.Lock()
        self._sweep_task: Optional[asyncio.Task] = None

    def admit(self, identity: str) -> bool:
        now = self._clock()
        with self._lock:
            record = self._records.get(identity)
            if record is None or now - record.last_request > self.period:
                record = RateLimitRecord(count=1, last_request=now)
                self._records[identity] = record
            else:
                record.count += 1
                record.last_request = now
            allowed = record.count <= self.limit

        if not allowed:
            logger.info("Rate limit exceeded for %s", identity)
        return allowed

    def sweep(self) -> int:
        """Drop records idle for more than twice the period. Returns how many."""
        cutoff = self._clock() - 2 * self.period
        with self._lock:
            stale = [key for key, rec in self._records.items() if rec.last_request < cutoff]
            for key in stale:
                del self._records[key]
        if stale:
            logger.debug("Evicted %d idle rate limit records", len(stale))
        return len(stale)

    def get(self, identity: str) -> Optional[RateLimitRecord]:
        with self._lock:
            return self._records.get(identity)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    # -------------------------------
    # Eviction loop
    # -------------------------------
    def start_eviction_loop(self, interval: Optional[float] = None):
        """
        Start the background sweep, every ``interval`` seconds (default: the period).
        """
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.create_task(self._eviction_loop(interval or self.period))

    async def stop_eviction_loop(self):
        if self._sweep_task is None:
            return
        self._sweep_task.cancel()
        try:
            await self._sweep_task
        except asyncio.CancelledError:
            pass
        self._sweep_task = None

    async def _eviction_loop(self, interval: float):
        while True:
            await asyncio.sleep(interval)
            try:
                self.sweep()
            except Exception:
                logger.exception("Rate limit sweep failed")
