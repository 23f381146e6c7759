"""Time-bounded memoization of decisions."""

import math
import time
from typing import Callable, Dict, Iterable, Optional

import structlog
from cachetools import TLRUCache

from common.constants import DEFAULT_CACHE_MAXSIZE
from schemas import CacheEntry
from .persistence import HostCachePersister

logger = structlog.get_logger()


class DecisionCache:
    """Decision cache keyed by URL or host.

    An entry is live while ``now - created_at <= ttl``, so entries restored
    from disk keep their original deadline. Changing ``ttl`` re-evaluates
    every stored entry against the new lifetime. Expired entries are
    evicted lazily when the cache is read. When a persister is attached,
    every change schedules a debounced write of the whole cache.
    """

    def __init__(
        self,
        name: str,
        ttl: float,
        maxsize: int = DEFAULT_CACHE_MAXSIZE,
        persister: Optional[HostCachePersister] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize cache.

        Args:
            name: Cache name used in logs (e.g. url, host)
            ttl: Entry lifetime in seconds
            maxsize: Maximum number of entries; least recently used go first
            persister: Optional durable storage for the cache
            clock: Epoch-seconds clock shared with ``CacheEntry.created_at``
        """
        self.name = name
        self.persister = persister
        self._ttl = ttl
        self._clock = clock
        self._entries: TLRUCache = self._new_store(maxsize)

    def _new_store(self, maxsize: int) -> TLRUCache:
        return TLRUCache(maxsize=maxsize, ttu=self._expires_at, timer=self._clock)

    def _expires_at(self, key: str, entry: CacheEntry, now: float) -> float:
        # TLRUCache keeps an item while timer() < deadline
        return math.nextafter(entry.created_at + self._ttl, math.inf)

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at > self._ttl

    @property
    def ttl(self) -> float:
        return self._ttl

    @ttl.setter
    def ttl(self, value: float) -> None:
        """Apply a new lifetime to stored entries as well as future ones."""
        if value == self._ttl:
            return
        self._ttl = value
        now = self._clock()
        self._entries.expire()
        entries = list(self._entries.items())
        self._entries = self._new_store(self._entries.maxsize)
        dropped = 0
        for key, entry in entries:
            if self._expired(entry, now):
                dropped += 1
                continue
            self._entries[key] = entry
        logger.info("Cache TTL changed", cache=self.name, ttl=value, dropped=dropped)
        if dropped:
            self._changed()

    def _changed(self) -> None:
        if self.persister is not None:
            self.persister.schedule(self.get_persisted)

    def now(self) -> float:
        return self._clock()

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the live entry for ``key``; expired entries are evicted."""
        expired = self._entries.expire()
        if expired:
            logger.debug("Evicted expired cache entries", cache=self.name, count=len(expired))
            self._changed()
        return self._entries.get(key)

    def put(self, key: str, entry: CacheEntry) -> None:
        """Store ``entry`` under ``key``, replacing any previous decision."""
        self._entries[key] = entry
        self._changed()

    def invalidate(self, key: str) -> bool:
        """Drop ``key``. Returns True if an entry was removed."""
        removed = self._entries.pop(key, None) is not None
        if removed:
            self._changed()
        return removed

    def invalidate_matching(self, predicate: Callable[[str, CacheEntry], bool]) -> int:
        """Drop every entry for which ``predicate(key, entry)`` is true."""
        keys = [key for key, entry in list(self._entries.items()) if predicate(key, entry)]
        for key in keys:
            self._entries.pop(key, None)
        if keys:
            self._changed()
        return len(keys)

    def clear(self) -> None:
        self._entries.clear()
        self._changed()

    def __len__(self) -> int:
        self._entries.expire()
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get_persisted(self) -> Dict[str, CacheEntry]:
        """Live entries in a form ready for persistence."""
        self._entries.expire()
        return dict(self._entries.items())

    def admit(self, entries: Iterable[CacheEntry]) -> int:
        """
        Insert entries restored from storage, discarding any past their TTL.

        Returns:
            Number of entries admitted
        """
        now = self._clock()
        admitted = 0
        discarded = 0
        for entry in entries:
            if self._expired(entry, now):
                discarded += 1
                continue
            self._entries[entry.key] = entry
            admitted += 1
        logger.info(
            "Cache entries restored",
            cache=self.name,
            admitted=admitted,
            discarded_expired=discarded,
        )
        return admitted

    async def load_persisted(self) -> int:
        """Load entries from the attached persister. Returns the number admitted."""
        if self.persister is None:
            return 0
        return self.admit(await self.persister.load())

    async def flush(self) -> None:
        """Write pending changes to durable storage immediately."""
        if self.persister is not None:
            self.persister.schedule(self.get_persisted)
            await self.persister.flush()
