"""Periodic and manual feed refresh scheduling."""

import asyncio
import time
from typing import Callable, Optional

import structlog

from common.constants import FEED_REFRESH_INTERVAL, MANUAL_REFRESH_MIN_INTERVAL
from schemas import FeedSnapshot, RefreshResult
from .feed_store import FeedStore

logger = structlog.get_logger()


class FeedScheduler:
    """Runs ``FeedStore.refresh`` on a fixed interval and on manual triggers.

    Manual triggers closer together than ``min_manual_interval`` seconds are
    rejected without touching the store.
    """

    def __init__(
        self,
        store: FeedStore,
        interval: float = FEED_REFRESH_INTERVAL,
        min_manual_interval: float = MANUAL_REFRESH_MIN_INTERVAL,
        metrics=None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize scheduler.

        Args:
            store: Feed store to refresh
            interval: Seconds between automatic refreshes
            min_manual_interval: Minimum spacing of manual triggers in seconds
            metrics: Optional ``PrometheusMetrics`` publisher
            clock: Monotonic clock used for rate limiting
        """
        self.store = store
        self.interval = interval
        self.min_manual_interval = min_manual_interval
        self.metrics = metrics
        self._clock = clock
        self._last_manual: Optional[float] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def build_result(self, snapshot: FeedSnapshot, rate_limited: bool = False) -> RefreshResult:
        ok = bool(self.store.last_refresh_ok) and not rate_limited
        return RefreshResult(
            ok=ok,
            per_source_counts=dict(snapshot.source_counts),
            total_hosts=snapshot.total_hosts,
            failed_sources=[] if rate_limited else list(self.store.last_failed_sources),
            rate_limited=rate_limited,
        )

    async def _report(self, snapshot: FeedSnapshot) -> None:
        if self.metrics is None:
            return
        await asyncio.to_thread(
            self.metrics.push_feed_snapshot,
            snapshot,
            bool(self.store.last_refresh_ok),
            list(self.store.last_failed_sources),
        )

    async def refresh_once(self) -> FeedSnapshot:
        """Refresh the store and publish metrics for the outcome."""
        snapshot = await self.store.refresh()
        await self._report(snapshot)
        return snapshot

    async def trigger(self) -> RefreshResult:
        """
        Manually trigger a refresh, subject to rate limiting.

        Returns:
            Refresh outcome; ``rate_limited=True`` with the current counts
            when the trigger came too soon after the previous one
        """
        now = self._clock()
        if (
            self._last_manual is not None
            and now - self._last_manual < self.min_manual_interval
        ):
            logger.warning(
                "Manual feed refresh rate limited",
                seconds_since_last=round(now - self._last_manual, 3),
                min_interval=self.min_manual_interval,
            )
            return self.build_result(self.store.current_snapshot(), rate_limited=True)

        self._last_manual = now
        logger.info("Manual feed refresh triggered")
        snapshot = await self.refresh_once()
        return self.build_result(snapshot)

    async def _run(self) -> None:
        while True:
            try:
                await self.refresh_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(
                    "Scheduled feed refresh failed",
                    error=str(e),
                    error_type=type(e).__name__,
                )
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        """Start the background refresh loop; the first refresh runs immediately."""
        if self.running:
            return
        logger.info("Starting feed scheduler", interval=self.interval)
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        """Cancel the background refresh loop."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Feed scheduler stopped")
