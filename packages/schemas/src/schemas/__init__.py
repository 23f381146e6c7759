"""Schemas package."""

from schemas.feed import FeedSnapshot, FeedSourceConfig
from schemas.verdict import (
    CacheEntry,
    DecisionEvent,
    DecisionSource,
    HealthStatus,
    HostVerdict,
    RefreshResult,
    UrlVerdict,
    VerdictStatus,
)
from schemas.validation_rules import (
    clean_host,
    extract_host,
    extract_hosts_from_text,
    is_ip_literal,
    is_valid_host,
    normalize_host,
    normalize_url,
    strip_www,
)

__all__ = [
    "CacheEntry",
    "DecisionEvent",
    "DecisionSource",
    "FeedSnapshot",
    "FeedSourceConfig",
    "HealthStatus",
    "HostVerdict",
    "RefreshResult",
    "UrlVerdict",
    "VerdictStatus",
    "clean_host",
    "extract_host",
    "extract_hosts_from_text",
    "is_ip_literal",
    "is_valid_host",
    "normalize_host",
    "normalize_url",
    "strip_www",
]
