"""Utilities for publishing feed-refresh metrics to Prometheus."""

from __future__ import annotations

import os
import socket
import time
from dataclasses import dataclass, field
from typing import Iterable, MutableMapping, Optional

import structlog
from prometheus_client import CollectorRegistry, Gauge, push_to_gateway

from schemas import FeedSnapshot

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class PrometheusMetrics:
    """Helper to publish feed snapshot health to Prometheus Pushgateway."""

    pushgateway_url: Optional[str] = None
    job_name: str = "reputation_engine"
    namespace: str = "reputation"
    subsystem: str = "feeds"
    default_labels: MutableMapping[str, str] = field(default_factory=dict)
    timeout_seconds: int = 5
    _hostname: str = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.pushgateway_url:
            self.pushgateway_url = os.getenv(
                "PROMETHEUS_PUSHGATEWAY_URL",
                "http://prometheus-pushgateway:9091",
            )
        if not self.default_labels:
            self.default_labels = {
                "environment": os.getenv(
                    "MONITORING_ENVIRONMENT",
                    os.getenv("ENVIRONMENT", "development"),
                ),
                "component": self.subsystem,
            }
        self._hostname = socket.gethostname()

    @property
    def _metric_prefix(self) -> str:
        return f"{self.namespace}_{self.subsystem}".replace("-", "_")

    def _registry(self) -> CollectorRegistry:
        return CollectorRegistry()

    def build_feed_registry(
        self,
        snapshot: FeedSnapshot,
        ok: bool,
        failed_sources: Iterable[str] = (),
        refreshed_at: Optional[float] = None,
    ) -> CollectorRegistry:
        """Collect the gauges describing one feed refresh."""
        registry = self._registry()
        label_names = sorted(self.default_labels)

        source_metric = Gauge(
            f"{self._metric_prefix}_source_hosts",
            "Hosts contributed by each feed source in the published snapshot",
            labelnames=["source", *label_names],
            registry=registry,
        )
        for source, count in snapshot.source_counts.items():
            source_metric.labels(source=source, **self.default_labels).set(float(count))

        total_metric = Gauge(
            f"{self._metric_prefix}_total_hosts",
            "Hosts in the published feed snapshot",
            labelnames=label_names,
            registry=registry,
        )
        total_metric.labels(**self.default_labels).set(float(snapshot.total_hosts))

        failed_metric = Gauge(
            f"{self._metric_prefix}_failed_sources",
            "Feed sources that failed during the latest refresh",
            labelnames=label_names,
            registry=registry,
        )
        failed_metric.labels(**self.default_labels).set(float(len(list(failed_sources))))

        success_metric = Gauge(
            f"{self._metric_prefix}_refresh_success",
            "Latest refresh outcome (1=published or partially published, 0=all sources failed)",
            labelnames=label_names,
            registry=registry,
        )
        success_metric.labels(**self.default_labels).set(1.0 if ok else 0.0)

        last_refresh_metric = Gauge(
            f"{self._metric_prefix}_last_refresh_timestamp",
            "UTC timestamp of the latest feed refresh attempt",
            labelnames=label_names,
            registry=registry,
        )
        last_refresh_metric.labels(**self.default_labels).set(
            refreshed_at if refreshed_at is not None else time.time()
        )
        return registry

    def push_feed_snapshot(
        self,
        snapshot: FeedSnapshot,
        ok: bool,
        failed_sources: Iterable[str] = (),
    ) -> None:
        """Push the outcome of a feed refresh. Push failures are logged and ignored."""
        registry = self.build_feed_registry(snapshot, ok, failed_sources)

        try:
            push_to_gateway(
                self.pushgateway_url,
                job=self.job_name,
                registry=registry,
                grouping_key={"instance": self._hostname},
                timeout=self.timeout_seconds,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Failed to push metrics to Prometheus Pushgateway",
                pushgateway_url=self.pushgateway_url,
                error=str(exc),
            )
