"""Layered URL and host decision pipeline."""

import time
import uuid
from typing import Callable, List, Optional, Tuple

import structlog

from common import RemoteLookupError
from monitoring import PrometheusMetrics
from schemas import (
    CacheEntry,
    DecisionSource,
    HealthStatus,
    HostVerdict,
    RefreshResult,
    UrlVerdict,
    clean_host,
    extract_host,
    normalize_host,
    normalize_url,
)
from reputation.cache import DecisionCache, HostCachePersister
from reputation.config import ReputationSettings
from reputation.feeds import FeedScheduler, FeedStore
from reputation.heuristics import ADULT_LABEL, HeuristicClassifier, detect_adult_content
from reputation.parsers import load_packaged_blocklist
from reputation.remote import PhishTankClient, RemoteReputationClient, SafeBrowsingClient
from .allowlist import AllowList
from .events import emit_decision_event

logger = structlog.get_logger()

REASON_FEED = "listed in threat feed"
REASON_UNPARSEABLE_URL = "unparseable URL"
REASON_UNPARSEABLE_HOST = "unparseable host"
REASON_DISABLED = "protection disabled"

# Outcome of one pipeline layer: None means "no determination, continue"
LayerOutcome = Optional[Tuple[bool, DecisionSource, Optional[str], Optional[str]]]


def build_remote_clients(
    settings: ReputationSettings,
) -> Tuple[Optional[RemoteReputationClient], Optional[RemoteReputationClient]]:
    """Primary and secondary remote clients for ``settings``; None where not configured."""
    primary = None
    if settings.safe_browsing_api_key:
        primary = SafeBrowsingClient(
            api_key=settings.safe_browsing_api_key,
            endpoint=settings.safe_browsing_endpoint,
            client_id=settings.safe_browsing_client_id,
            client_version=settings.safe_browsing_client_version,
            timeout=settings.remote_timeout,
        )
    secondary = None
    if settings.phishtank_app_key:
        secondary = PhishTankClient(
            app_key=settings.phishtank_app_key,
            endpoint=settings.phishtank_endpoint,
            timeout=settings.remote_timeout,
        )
    return primary, secondary


class DecisionEngine:
    """Combines allowlist, feeds, heuristics and remote lookups into one verdict.

    Full-URL checks run: URL cache, allowlist, then either the local layers
    (feed match, heuristics) followed by the remote layers (primary,
    secondary), or the reverse when ``prefer_remote_first`` is set. Host
    checks never leave the process: host cache, allowlist, heuristics,
    feed match.

    A remote failure marks the verdict inconclusive; inconclusive verdicts
    are never cached.
    """

    def __init__(
        self,
        settings: ReputationSettings,
        feed_store: Optional[FeedStore] = None,
        allowlist: Optional[AllowList] = None,
        classifier: Optional[HeuristicClassifier] = None,
        url_cache: Optional[DecisionCache] = None,
        host_cache: Optional[DecisionCache] = None,
        scheduler: Optional[FeedScheduler] = None,
        remote_client: Optional[RemoteReputationClient] = None,
        secondary_client: Optional[RemoteReputationClient] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize engine. Components not supplied are built from ``settings``.

        Args:
            settings: Engine settings
            feed_store: Published feed snapshot owner
            allowlist: User-owned allowlist
            classifier: Heuristic rule evaluator
            url_cache: Cache keyed by normalized URL
            host_cache: Cache keyed by the lowercased host as matched against feeds
            scheduler: Feed refresh scheduler
            remote_client: Primary remote reputation client
            secondary_client: Secondary remote reputation client
            clock: Epoch-seconds clock for cache entries
        """
        self._settings = settings
        self._clock = clock

        self.feed_store = feed_store or FeedStore(
            sources=settings.sources,
            http_timeout=settings.http_timeout,
            http_retries=settings.http_retries,
            http_backoff=settings.http_backoff,
        )
        self.allowlist = allowlist if allowlist is not None else (
            AllowList.from_file(settings.allowlist_path) if settings.allowlist_path else AllowList()
        )
        self.classifier = classifier or HeuristicClassifier(
            allowlist=self.allowlist,
            blocklist=load_packaged_blocklist(settings.blocklist_path),
        )
        self.url_cache = url_cache or DecisionCache(
            "url", ttl=settings.url_cache_ttl, maxsize=settings.cache_maxsize, clock=clock
        )
        if host_cache is None:
            persister = (
                HostCachePersister(settings.host_cache_path, debounce=settings.persist_debounce)
                if settings.host_cache_path
                else None
            )
            host_cache = DecisionCache(
                "host",
                ttl=settings.host_cache_ttl,
                maxsize=settings.cache_maxsize,
                persister=persister,
                clock=clock,
            )
        self.host_cache = host_cache
        self.scheduler = scheduler or FeedScheduler(
            self.feed_store,
            interval=settings.feed_refresh_interval,
            min_manual_interval=settings.manual_refresh_min_interval,
            metrics=PrometheusMetrics(pushgateway_url=settings.pushgateway_url)
            if settings.pushgateway_url
            else None,
        )

        if remote_client is None and secondary_client is None:
            remote_client, secondary_client = build_remote_clients(settings)
        self.remote_client = remote_client
        self.secondary_client = secondary_client

        self.allowlist.subscribe(self._on_allowlist_change)

    @classmethod
    def from_settings(cls, settings: ReputationSettings) -> "DecisionEngine":
        return cls(settings)

    @property
    def settings(self) -> ReputationSettings:
        return self._settings

    def update_settings(self, settings: ReputationSettings) -> None:
        """
        Replace the whole configuration.

        Remote clients are rebuilt; cache TTLs, feed sources, the packaged
        blocklist and scheduler intervals follow the new values.
        """
        previous = self._settings
        self._settings = settings

        self.remote_client, self.secondary_client = build_remote_clients(settings)
        self.url_cache.ttl = settings.url_cache_ttl
        self.host_cache.ttl = settings.host_cache_ttl
        self.feed_store.replace_sources(settings.sources)
        self.scheduler.interval = settings.feed_refresh_interval
        self.scheduler.min_manual_interval = settings.manual_refresh_min_interval
        if settings.blocklist_path != previous.blocklist_path:
            self.classifier.replace_blocklist(load_packaged_blocklist(settings.blocklist_path))

        if (
            settings.heuristics_enabled != previous.heuristics_enabled
            or settings.prefer_remote_first != previous.prefer_remote_first
            or settings.host_check_skip_local_blocklist != previous.host_check_skip_local_blocklist
        ):
            self.url_cache.clear()
            self.host_cache.clear()

        logger.info(
            "Settings updated",
            enabled=settings.enabled,
            prefer_remote_first=settings.prefer_remote_first,
            remote_configured=settings.remote_configured,
            secondary_configured=settings.secondary_configured,
        )

    def _on_allowlist_change(self, host: str, allowed: bool) -> None:
        self.host_cache.invalidate_matching(lambda key, entry: normalize_host(key) == host)
        dropped = self.url_cache.invalidate_matching(
            lambda key, entry: normalize_host(extract_host(key) or "") == host
        )
        logger.debug("Cached verdicts invalidated", host=host, allowed=allowed, url_entries=dropped)

    def _entry(self, key: str, safe: bool, source: DecisionSource, reason: Optional[str], matched: Optional[str]) -> CacheEntry:
        return CacheEntry(
            key=key,
            safe=safe,
            reason=reason or "",
            source=source,
            created_at=self._clock(),
            matched_host=matched,
        )

    def _feed_layer(self, raw_host: str) -> LayerOutcome:
        matched = self.feed_store.match(raw_host)
        if matched is not None:
            return False, DecisionSource.FEED, REASON_FEED, matched
        return None

    def _heuristic_layer(self, host: str, skip_local_blocklist: bool = False) -> LayerOutcome:
        if not self._settings.heuristics_enabled:
            return None
        result = self.classifier.evaluate_host(host, skip_local_blocklist=skip_local_blocklist)
        if result.flagged:
            matched = host if result.source == DecisionSource.LOCAL_BLOCKLIST else None
            return False, result.source, result.reason, matched
        return None

    async def _remote_layer(
        self, client: Optional[RemoteReputationClient], url: str, state: dict
    ) -> LayerOutcome:
        if client is None or not client.configured:
            return None
        state["attempted"] = True
        try:
            result = await client.lookup(url)
        except RemoteLookupError as e:
            state["inconclusive"] = True
            logger.warning(
                "Remote lookup inconclusive",
                provider=client.provider,
                host=extract_host(url),
                error=str(e),
            )
            return None
        if result.matched:
            reason = f"flagged by {client.provider}"
            if result.threat_types:
                reason = f"{reason}: {', '.join(result.threat_types)}"
            return False, client.source, reason, None
        return None

    def _labels(self, url: str) -> List[str]:
        if self._settings.label_adult_content and detect_adult_content(url):
            return [ADULT_LABEL]
        return []

    async def check_url(self, url: str, correlation_id: Optional[str] = None) -> UrlVerdict:
        """
        Decide whether ``url`` is safe to visit.

        Args:
            url: URL as requested
            correlation_id: Caller-supplied id carried into the decision event

        Returns:
            Verdict; ``status`` is "unknown" when the URL could not be parsed,
            or when a remote lookup failed and no other layer flagged the URL
        """
        correlation_id = correlation_id or uuid.uuid4().hex
        settings = self._settings

        if not settings.enabled:
            verdict = UrlVerdict(safe=True, source=DecisionSource.DISABLED, reason=REASON_DISABLED)
            self._emit_url(verdict, None, correlation_id)
            return verdict

        key = normalize_url(url)
        raw_host = (extract_host(url) or "").lower() or None
        host = normalize_host(raw_host) if raw_host else None
        if not key or not raw_host or not host:
            verdict = UrlVerdict(
                safe=True,
                source=DecisionSource.UNKNOWN,
                reason=REASON_UNPARSEABLE_URL,
                parse_failed=True,
            )
            self._emit_url(verdict, None, correlation_id)
            return verdict

        labels = self._labels(url)

        cached = self.url_cache.get(key)
        if cached is not None:
            verdict = UrlVerdict(
                safe=cached.safe,
                source=cached.source,
                reason=cached.reason or None,
                cached=True,
                matched_host=cached.matched_host,
                labels=labels,
            )
            self._emit_url(verdict, host, correlation_id)
            return verdict

        if self.allowlist.contains(host):
            return self._finish_url(
                key, host, (True, DecisionSource.ALLOWLIST, None, None), {}, labels, correlation_id
            )

        state = {"attempted": False, "inconclusive": False}
        outcome: LayerOutcome = None

        if settings.prefer_remote_first:
            outcome = await self._remote_layer(self.remote_client, key, state)
            if outcome is None:
                outcome = await self._remote_layer(self.secondary_client, key, state)
            if outcome is None:
                outcome = self._feed_layer(raw_host) or self._heuristic_layer(host)
        else:
            outcome = self._feed_layer(raw_host) or self._heuristic_layer(host)
            if outcome is None:
                outcome = await self._remote_layer(self.remote_client, key, state)
            if outcome is None:
                outcome = await self._remote_layer(self.secondary_client, key, state)

        if outcome is None:
            outcome = (True, DecisionSource.NONE, None, None)
        return self._finish_url(key, host, outcome, state, labels, correlation_id)

    def _finish_url(
        self,
        key: str,
        host: str,
        outcome: Tuple[bool, DecisionSource, Optional[str], Optional[str]],
        state: dict,
        labels: List[str],
        correlation_id: str,
    ) -> UrlVerdict:
        safe, source, reason, matched = outcome
        inconclusive = bool(state.get("inconclusive"))
        verdict = UrlVerdict(
            safe=safe,
            source=source,
            reason=reason,
            matched_host=matched,
            remote_attempted=bool(state.get("attempted")),
            remote_inconclusive=inconclusive,
            labels=labels,
        )
        # A safe verdict after a failed remote lookup is not definitive
        if not (safe and inconclusive):
            self.url_cache.put(key, self._entry(key, safe, source, reason, matched))
        self._emit_url(verdict, host, correlation_id)
        return verdict

    def _emit_url(self, verdict: UrlVerdict, host: Optional[str], correlation_id: str) -> None:
        emit_decision_event(
            check="url",
            host=host,
            blocked=not verdict.safe,
            source=verdict.source,
            reason=verdict.reason,
            cached=verdict.cached,
            correlation_id=correlation_id,
        )

    def check_host(self, host: str, correlation_id: Optional[str] = None) -> HostVerdict:
        """
        Low-latency host-only check. Never calls a remote service.

        Args:
            host: Hostname; a scheme, port or path is tolerated and stripped
            correlation_id: Caller-supplied id carried into the decision event
        """
        correlation_id = correlation_id or uuid.uuid4().hex
        settings = self._settings

        if not settings.enabled:
            verdict = HostVerdict(unsafe=False, source=DecisionSource.DISABLED, reason=REASON_DISABLED)
            self._emit_host(verdict, None, correlation_id)
            return verdict

        raw_host = clean_host(host or "")
        normalized = normalize_host(raw_host) if raw_host else None
        if not normalized:
            verdict = HostVerdict(
                unsafe=False, source=DecisionSource.UNKNOWN, reason=REASON_UNPARSEABLE_HOST
            )
            self._emit_host(verdict, None, correlation_id)
            return verdict

        # Feeds may list www. hosts separately, so the cache key keeps the label
        cached = self.host_cache.get(raw_host)
        if cached is not None:
            verdict = HostVerdict(
                unsafe=not cached.safe,
                matched_host=cached.matched_host,
                source=cached.source,
                reason=cached.reason or None,
                cached=True,
            )
            self._emit_host(verdict, normalized, correlation_id)
            return verdict

        if self.allowlist.contains(normalized):
            outcome: LayerOutcome = (True, DecisionSource.ALLOWLIST, None, None)
        else:
            outcome = self._heuristic_layer(
                normalized, skip_local_blocklist=settings.host_check_skip_local_blocklist
            ) or self._feed_layer(raw_host)
        if outcome is None:
            outcome = (True, DecisionSource.NONE, None, None)

        safe, source, reason, matched = outcome
        self.host_cache.put(raw_host, self._entry(raw_host, safe, source, reason, matched))
        verdict = HostVerdict(unsafe=not safe, matched_host=matched, source=source, reason=reason)
        self._emit_host(verdict, normalized, correlation_id)
        return verdict

    def _emit_host(self, verdict: HostVerdict, host: Optional[str], correlation_id: str) -> None:
        emit_decision_event(
            check="host",
            host=host,
            blocked=verdict.unsafe,
            source=verdict.source,
            reason=verdict.reason,
            cached=verdict.cached,
            correlation_id=correlation_id,
        )

    async def refresh_feeds(self) -> RefreshResult:
        """Manually refresh feeds; rate limited."""
        return await self.scheduler.trigger()

    def health(self) -> HealthStatus:
        snapshot = self.feed_store.current_snapshot()
        return HealthStatus(
            feeds_loaded_at=snapshot.loaded_at,
            feeds_count=snapshot.total_hosts,
            remote_configured=self.remote_client is not None and self.remote_client.configured,
            secondary_configured=self.secondary_client is not None and self.secondary_client.configured,
            url_cache_size=len(self.url_cache),
            host_cache_size=len(self.host_cache),
        )

    async def start(self, background_refresh: bool = True) -> None:
        """
        Restore the persisted host cache and load feeds.

        Args:
            background_refresh: Run the periodic refresh loop; otherwise
                refresh once and return
        """
        await self.host_cache.load_persisted()
        if background_refresh:
            self.scheduler.start()
        else:
            await self.scheduler.refresh_once()
        logger.info("Decision engine started", background_refresh=background_refresh)

    async def stop(self) -> None:
        """Stop refreshing and write the host cache."""
        await self.scheduler.stop()
        await self.host_cache.flush()
        logger.info("Decision engine stopped")
