"""Decision, cache and status models."""

from datetime import datetime, UTC
from enum import StrEnum
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, computed_field


class DecisionSource(StrEnum):
    """Pipeline layer that produced a verdict."""

    ALLOWLIST = "allowlist"
    LOCAL_BLOCKLIST = "local-blocklist"
    FEED = "feed"
    HEURISTIC = "heuristic"
    SAFEBROWSING = "safebrowsing"
    PHISHTANK = "phishtank"
    NONE = "none"
    UNKNOWN = "unknown"
    DISABLED = "disabled"


class VerdictStatus(StrEnum):
    """Three-way outcome the UI must keep apart."""

    SAFE = "safe"
    UNSAFE = "unsafe"
    UNKNOWN = "unknown"


class CacheEntry(BaseModel):
    """A memoized decision for a URL or host key."""

    key: str = Field(..., description="Normalized URL or host")
    safe: bool
    reason: str = ""
    source: DecisionSource
    created_at: float = Field(..., description="Epoch seconds when the decision was made")
    matched_host: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class UrlVerdict(BaseModel):
    """Result of a full-URL check."""

    safe: bool
    source: DecisionSource
    reason: Optional[str] = None
    cached: bool = False
    matched_host: Optional[str] = None
    remote_attempted: bool = False
    remote_inconclusive: bool = False
    parse_failed: bool = False
    labels: List[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status(self) -> VerdictStatus:
        if not self.safe:
            return VerdictStatus.UNSAFE
        if self.remote_inconclusive or self.parse_failed:
            return VerdictStatus.UNKNOWN
        return VerdictStatus.SAFE


class HostVerdict(BaseModel):
    """Result of a low-latency host-only check."""

    unsafe: bool
    matched_host: Optional[str] = None
    source: DecisionSource
    reason: Optional[str] = None
    cached: bool = False


class RefreshResult(BaseModel):
    """Outcome of a manual feed refresh trigger."""

    ok: bool
    per_source_counts: Dict[str, int] = Field(default_factory=dict)
    total_hosts: int = 0
    failed_sources: List[str] = Field(default_factory=list)
    rate_limited: bool = False


class HealthStatus(BaseModel):
    """Engine health summary."""

    feeds_loaded_at: Optional[datetime] = None
    feeds_count: int = 0
    remote_configured: bool = False
    secondary_configured: bool = False
    url_cache_size: int = 0
    host_cache_size: int = 0


class DecisionEvent(BaseModel):
    """One log record per decision. Carries the host only, never the full URL."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    correlation_id: Optional[str] = None
    check: str = Field(..., description="url or host")
    host: Optional[str] = None
    blocked: bool
    reason: Optional[str] = None
    source: DecisionSource
    cached: bool = False
