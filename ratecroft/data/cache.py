"""In-process TTL cache with single-flight population."""

import logging
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable


logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    value: Any
    expires_at: float


class SeriesCache:
    """
    Time-boxed cache shared by every component that reads upstream data.

    Constructed once per process and passed to the components that need
    it. Reads are cheap; population goes through get_or_load(), which keeps
    at most one loader in flight per key.
    """

    def __init__(
        self, ttl: float = 3600.0, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}
        self._inflight: dict[str, Future] = {}

    def get(self, key: str) -> Any | None:
        """Return the cached value if present and not expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.expires_at > self._clock():
                return entry.value
        return None

    def get_stale(self, key: str) -> Any | None:
        """Return the last stored value for a key, even if expired."""
        with self._lock:
            entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store a value with the default or given TTL."""
        expires_at = self._clock() + (self.ttl if ttl is None else ttl)
        with self._lock:
            self._entries[key] = _Entry(value, expires_at)

    def get_or_load(
        self,
        key: str,
        loader: Callable[[], Any],
        ttl: float | None = None,
        timeout: float | None = None,
    ) -> Any:
        """
        Return the cached value, or run loader once for all concurrent callers.

        The first caller to miss becomes the owner and runs loader outside
        the lock. Concurrent callers for the same key wait on the owner's
        result and get the same value or the same exception. The entry is
        written only after loader returns.

        Args:
            key: Cache key
            loader: Zero-argument callable producing the value
            ttl: TTL override for the stored value
            timeout: Seconds a waiting caller blocks before giving up

        Raises:
            Whatever loader raised; concurrent.futures.TimeoutError for a
            waiter that exceeded timeout
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.expires_at > self._clock():
                return entry.value
            pending = self._inflight.get(key)
            owner = pending is None
            if owner:
                pending = Future()
                self._inflight[key] = pending

        if not owner:
            logger.debug(f"Waiting on in-flight load for {key}")
            return pending.result(timeout=timeout)

        try:
            value = loader()
        except BaseException as e:
            with self._lock:
                self._inflight.pop(key, None)
            pending.set_exception(e)
            raise

        expires_at = self._clock() + (self.ttl if ttl is None else ttl)
        with self._lock:
            self._entries[key] = _Entry(value, expires_at)
            self._inflight.pop(key, None)
        pending.set_result(value)
        return value

    def keys(self) -> list[str]:
        """Keys with unexpired entries."""
        now = self._clock()
        with self._lock:
            return [k for k, e in self._entries.items() if e.expires_at > now]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self.keys())
