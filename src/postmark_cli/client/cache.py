"""Short-lived cache for list endpoint results.

Entries expire ``CACHE_TTL`` seconds after insertion. Nothing is invalidated
on create/update/delete, so a listing may lag behind a mutation for up to
the TTL.
"""

import logging
import threading
import time
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Protocol

log = logging.getLogger(__name__)

CACHE_TTL = 300


class CacheStore(Protocol):
    """Key/value store with per-entry expiry."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl: int) -> None: ...

    def has(self, key: str) -> bool: ...


@dataclass(slots=True)
class _Entry:
    value: Any
    expires_at: float


class MemoryStore:
    """In-process store; expired entries are dropped on access."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: Any, ttl: int) -> None:
        with self._lock:
            self._entries[key] = _Entry(value=value, expires_at=self._clock() + ttl)

    def has(self, key: str) -> bool:
        return self.get(key) is not None


class CacheService:
    """Caches result collections under keys derived from pagination params."""

    prefix = "postmark"

    def __init__(self, store: CacheStore) -> None:
        self._store = store
        self._locks: dict[str, tuple[threading.Lock, int]] = {}
        self._locks_guard = threading.Lock()

    def get(self, key: str) -> list[Any] | None:
        """Return a copy of the cached collection, or None on a miss."""
        try:
            cached = self._store.get(key)
        except Exception:
            # A failing store behaves like an empty one
            log.warning("Cache lookup failed for %s", key, exc_info=True)
            return None
        if cached is None:
            log.debug("Cache miss: %s", key)
            return None
        log.debug("Cache hit: %s", key)
        return list(cached)

    def put(self, key: str, values: Sequence[Any]) -> None:
        """Store a collection; a failing store skips the write."""
        try:
            self._store.set(key, tuple(values), CACHE_TTL)
        except Exception:
            log.warning("Cache write failed for %s", key, exc_info=True)

    def has(self, key: str) -> bool:
        try:
            return self._store.has(key)
        except Exception:
            log.warning("Cache lookup failed for %s", key, exc_info=True)
            return False

    @contextmanager
    def locked(self, key: str) -> Iterator[None]:
        """Serialize the check-then-fetch-then-put sequence for one key.

        A key's lock is dropped once no caller holds or waits for it.
        """
        with self._locks_guard:
            lock, users = self._locks.get(key) or (threading.Lock(), 0)
            self._locks[key] = (lock, users + 1)
        try:
            with lock:
                yield
        finally:
            with self._locks_guard:
                _, users = self._locks[key]
                if users == 1:
                    del self._locks[key]
                else:
                    self._locks[key] = (lock, users - 1)


class ServerCacheService(CacheService):
    prefix = "postmark_servers"

    def generate_key(self, count: int, offset: int, name: str = "") -> str:
        return f"{self.prefix}_{count}_{offset}_{name}"


class SenderCacheService(CacheService):
    prefix = "postmark_senders"

    def generate_key(self, count: int, offset: int) -> str:
        return f"{self.prefix}_{count}_{offset}"
