"""Windowed counter stores for the quota arbiter."""

import logging
import math
import threading
import time
from typing import Callable, Dict, Optional, Tuple

import redis

from ..core.exceptions import QuotaUnavailableError
from ..core.interfaces import CounterStore

logger = logging.getLogger(__name__)

# Consumes between sweeps of closed in-memory windows
DEFAULT_SWEEP_INTERVAL = 1000

# INCRBY and start the window on the first hit, in one atomic step.
_CONSUME_SCRIPT = """
local consumed = redis.call('INCRBY', KEYS[1], ARGV[1])
local ttl = redis.call('PTTL', KEYS[1])
if ttl < 0 then
    redis.call('PEXPIRE', KEYS[1], ARGV[2])
    ttl = tonumber(ARGV[2])
end
return {consumed, ttl}
"""


class RedisCounterStore(CounterStore):
    """Counters shared across processes through Redis."""

    def __init__(
        self,
        redis_url: Optional[str] = None,
        timeout: float = 0.5,
        client: Optional[redis.Redis] = None,
    ) -> None:
        """
        Initialize the store.

        Args:
            redis_url: Redis connection URL (ignored when client is given)
            timeout: Socket connect/read timeout in seconds
            client: Preconfigured Redis client
        """
        if client is None:
            if not redis_url:
                raise QuotaUnavailableError("No Redis URL configured")
            client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_timeout=timeout,
                socket_connect_timeout=timeout,
            )
        self._redis = client
        self._consume = self._redis.register_script(_CONSUME_SCRIPT)

    def consume(
        self, key: str, points: int, duration_seconds: float
    ) -> Tuple[int, int]:
        window_ms = max(1, int(duration_seconds * 1000))
        consumed, ttl = self._consume(keys=[key], args=[points, window_ms])
        return int(consumed), max(int(ttl), 0)

    def get(self, key: str) -> Optional[Tuple[int, int]]:
        pipe = self._redis.pipeline()
        pipe.get(key)
        pipe.pttl(key)
        raw, ttl = pipe.execute()
        if raw is None:
            return None
        return int(raw), max(int(ttl), 0)

    def delete(self, key: str) -> None:
        self._redis.delete(key)

    def close(self) -> None:
        self._redis.close()


class InMemoryCounterStore(CounterStore):
    """Process-local fixed-window counters."""

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: int = DEFAULT_SWEEP_INTERVAL,
    ) -> None:
        """
        Initialize the store.

        Args:
            clock: Monotonic time source in seconds
            sweep_interval: Closed windows are dropped every this many consumes
        """
        if sweep_interval < 1:
            raise ValueError("sweep_interval must be at least 1")
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._consumes = 0
        self._windows: Dict[str, Tuple[int, float]] = {}  # key -> (consumed, reset_at)
        self._lock = threading.Lock()

    def _ms_until(self, reset_at: float, now: float) -> int:
        return max(0, math.ceil((reset_at - now) * 1000))

    def _drop_expired(self, now: float) -> int:
        expired = [k for k, (_, reset_at) in self._windows.items() if reset_at <= now]
        for k in expired:
            del self._windows[k]
        return len(expired)

    def consume(
        self, key: str, points: int, duration_seconds: float
    ) -> Tuple[int, int]:
        with self._lock:
            now = self._clock()
            self._consumes += 1
            if self._consumes % self._sweep_interval == 0:
                self._drop_expired(now)
            consumed, reset_at = self._windows.get(key, (0, now))
            if reset_at <= now:
                consumed, reset_at = 0, now + duration_seconds
            consumed += points
            self._windows[key] = (consumed, reset_at)
            return consumed, self._ms_until(reset_at, now)

    def get(self, key: str) -> Optional[Tuple[int, int]]:
        with self._lock:
            now = self._clock()
            entry = self._windows.get(key)
            if entry is None or entry[1] <= now:
                return None
            return entry[0], self._ms_until(entry[1], now)

    def delete(self, key: str) -> None:
        with self._lock:
            self._windows.pop(key, None)

    def clear_expired(self) -> int:
        """Drop closed windows, returning how many were removed."""
        with self._lock:
            return self._drop_expired(self._clock())

    def size(self) -> int:
        with self._lock:
            return len(self._windows)
