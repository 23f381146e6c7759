"""Feed ingestion into a single published host snapshot."""

import asyncio
from datetime import datetime, UTC
from typing import FrozenSet, Iterable, List, Optional, Set, Tuple

import structlog

from common.constants import DEFAULT_HTTP_BACKOFF, DEFAULT_HTTP_RETRIES, DEFAULT_HTTP_TIMEOUT
from schemas import FeedSnapshot, FeedSourceConfig
from reputation.fetchers import BaseFetcher, FileFetcher, HTTPFetcher
from reputation.matching import HostMatcher
from reputation.parsers import get_parser

logger = structlog.get_logger()


class FeedStore:
    """Owns the published feed snapshot and the matcher built over it.

    Each refresh fetches every configured source in parallel, unions the
    hosts of the sources that succeeded and publishes the result as a new
    snapshot in one attribute assignment, so readers see either the old or
    the new set, never a mix. Concurrent ``refresh()`` calls share a single
    in-flight run.
    """

    def __init__(
        self,
        sources: Iterable[FeedSourceConfig] = (),
        http_timeout: int = DEFAULT_HTTP_TIMEOUT,
        http_retries: int = DEFAULT_HTTP_RETRIES,
        http_backoff: float = DEFAULT_HTTP_BACKOFF,
    ):
        """
        Initialize feed store.

        Args:
            sources: Feed sources to ingest
            http_timeout: Per-request timeout for remote sources
            http_retries: Attempts per remote source
            http_backoff: Initial retry backoff for remote sources
        """
        self._sources: Tuple[FeedSourceConfig, ...] = tuple(sources)
        self.http_timeout = http_timeout
        self.http_retries = http_retries
        self.http_backoff = http_backoff

        empty = FeedSnapshot()
        self._published: Tuple[FeedSnapshot, HostMatcher] = (empty, HostMatcher(empty.hosts))
        self._inflight: Optional[asyncio.Future] = None

        self.last_refresh_ok: Optional[bool] = None
        self.last_failed_sources: Tuple[str, ...] = ()

    @property
    def sources(self) -> Tuple[FeedSourceConfig, ...]:
        return self._sources

    def replace_sources(self, sources: Iterable[FeedSourceConfig]) -> None:
        """Swap the source list; takes effect on the next refresh."""
        self._sources = tuple(sources)

    def current_snapshot(self) -> FeedSnapshot:
        """Latest published snapshot. Never blocks on a running refresh."""
        return self._published[0]

    def current_hosts(self) -> FrozenSet[str]:
        """Host set of the latest published snapshot."""
        return self._published[0].hosts

    def match(self, host: Optional[str]) -> Optional[str]:
        """Match a lowercase host against the published snapshot."""
        return self._published[1].match(host)

    def publish(self, snapshot: FeedSnapshot) -> None:
        """Atomically replace the published snapshot."""
        self._published = (snapshot, HostMatcher(snapshot.hosts))

    def _build_fetcher(self, source: FeedSourceConfig) -> BaseFetcher:
        if source.url:
            return HTTPFetcher(
                source_name=source.name,
                url=source.url,
                timeout=self.http_timeout,
                retries=self.http_retries,
                backoff=self.http_backoff,
            )
        return FileFetcher(source_name=source.name, path=source.path or "")

    async def fetch_source(self, source: FeedSourceConfig) -> Set[str]:
        """
        Fetch and parse a single source.

        Raises:
            FetchError: If the source cannot be read
            ParseError: If the content cannot be parsed
        """
        logger.info(
            "Fetching source",
            source=source.name,
            location=source.location,
            format=source.format,
        )

        fetcher = self._build_fetcher(source)
        result = await fetcher.fetch()

        parser = get_parser(source.name, source.format, strict=source.strict)
        hosts = parser.parse(result["content"], result["metadata"])

        logger.info("Source fetched successfully", source=source.name, hosts=len(hosts))
        return hosts

    async def _fetch_source_isolated(
        self, source: FeedSourceConfig
    ) -> Optional[Set[str]]:
        try:
            return await self.fetch_source(source)
        except Exception as e:
            logger.error(
                "Failed to fetch source",
                source=source.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            # Don't raise - other sources still populate the snapshot
            return None

    async def _run_refresh(self) -> FeedSnapshot:
        sources = self._sources
        logger.info("Starting feed refresh", sources_count=len(sources))

        results = await asyncio.gather(
            *(self._fetch_source_isolated(source) for source in sources)
        )

        hosts: Set[str] = set()
        source_counts = {}
        failed: List[str] = []
        for source, source_hosts in zip(sources, results):
            if source_hosts is None:
                failed.append(source.name)
                continue
            source_counts[source.name] = len(source_hosts)
            hosts.update(source_hosts)

        self.last_failed_sources = tuple(failed)

        if sources and len(failed) == len(sources):
            self.last_refresh_ok = False
            previous = self.current_snapshot()
            logger.warning(
                "All feed sources failed, keeping previous snapshot",
                failed_sources=failed,
                retained_hosts=previous.total_hosts,
            )
            return previous

        snapshot = FeedSnapshot(
            hosts=frozenset(hosts),
            loaded_at=datetime.now(UTC),
            source_counts=source_counts,
            failed_sources=tuple(failed),
        )
        self.publish(snapshot)
        self.last_refresh_ok = True

        logger.info(
            "Feed refresh complete",
            total_hosts=snapshot.total_hosts,
            source_counts=source_counts,
            failed_sources=failed,
        )
        return snapshot

    async def refresh(self) -> FeedSnapshot:
        """
        Refresh all sources and publish a new snapshot.

        Calls made while a refresh is running wait for that run instead of
        starting another one.

        Returns:
            The snapshot published by this run, or the retained previous
            snapshot if every source failed
        """
        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.ensure_future(self._run_refresh())
        return await asyncio.shield(self._inflight)
