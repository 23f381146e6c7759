"""Debounced JSON persistence for the host-keyed decision cache."""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set

import structlog
from pydantic import ValidationError as PydanticValidationError

from common import CachePersistenceError
from common.constants import PERSIST_DEBOUNCE_SECONDS
from schemas import CacheEntry

logger = structlog.get_logger()

FORMAT_VERSION = 1

SnapshotFn = Callable[[], Dict[str, CacheEntry]]


class HostCachePersister:
    """Writes the whole cache to a JSON file after a quiet period.

    Every ``schedule()`` call restarts the debounce timer; only the last
    call inside the window results in a write. Writes go to a temporary
    file that is renamed over the target, and are serialized so an older
    snapshot never lands after a newer one.
    """

    def __init__(self, path: str, debounce: float = PERSIST_DEBOUNCE_SECONDS):
        self.path = Path(path)
        self.debounce = debounce
        self._snapshot_fn: Optional[SnapshotFn] = None
        self._pending: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._lock: Optional[asyncio.Lock] = None

    def _write(self, entries: Dict[str, CacheEntry]) -> None:
        payload = {
            "version": FORMAT_VERSION,
            "entries": {key: entry.model_dump(mode="json") for key, entry in entries.items()},
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise CachePersistenceError(
                "Failed to write host cache",
                context={"path": str(self.path), "operation": "save"},
                original_error=e,
            ) from e

    def _read(self) -> List[CacheEntry]:
        if not self.path.exists():
            return []
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise CachePersistenceError(
                "Failed to read host cache",
                context={"path": str(self.path), "operation": "load"},
                original_error=e,
            ) from e

        raw_entries = payload.get("entries", {}) if isinstance(payload, dict) else {}
        entries = []
        for key, raw in raw_entries.items():
            try:
                entries.append(CacheEntry.model_validate({**raw, "key": key}))
            except (PydanticValidationError, TypeError) as e:
                logger.warning("Skipping malformed cache entry", key=key, error=str(e))
        return entries

    def save_sync(self, entries: Dict[str, CacheEntry]) -> bool:
        """Write immediately on the calling thread. Failures are logged."""
        try:
            self._write(entries)
        except CachePersistenceError as e:
            logger.warning("Host cache persistence failed", error=str(e))
            return False
        logger.debug("Host cache persisted", entries=len(entries), path=str(self.path))
        return True

    async def save(self, entries: Optional[Dict[str, CacheEntry]] = None) -> bool:
        """
        Write the cache without blocking the event loop.

        Args:
            entries: Entries to write; the registered snapshot source is
                read at write time when omitted
        """
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            if entries is None:
                entries = self._snapshot_fn() if self._snapshot_fn else {}
            return await asyncio.to_thread(self.save_sync, entries)

    async def load(self) -> List[CacheEntry]:
        """Read persisted entries. A missing or corrupt file yields no entries."""
        try:
            entries = await asyncio.to_thread(self._read)
        except CachePersistenceError as e:
            logger.warning("Host cache load failed", error=str(e))
            return []
        logger.info("Persisted host cache read", entries=len(entries), path=str(self.path))
        return entries

    async def _write_later(self) -> None:
        await asyncio.sleep(self.debounce)
        # Past the debounce window the write must not be cancelled
        self._pending = None
        await self.save()

    def schedule(self, snapshot_fn: SnapshotFn) -> None:
        """
        Request a write of ``snapshot_fn()`` after the debounce window.

        Without a running event loop the write happens synchronously.
        """
        self._snapshot_fn = snapshot_fn
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.save_sync(snapshot_fn())
            return

        if self._pending is not None and not self._pending.done():
            self._pending.cancel()

        task = loop.create_task(self._write_later())
        self._pending = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def flush(self) -> None:
        """Skip the debounce window and write now, waiting for running writes."""
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None
        running = [task for task in self._tasks if not task.done()]
        if running:
            await asyncio.gather(*running, return_exceptions=True)
        if self._snapshot_fn is not None:
            await self.save()
