"""Feed source configuration and snapshot models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, Literal, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, model_validator


class FeedSourceConfig(BaseModel):
    """One threat-intel source.

    Exactly one of ``url`` (fetched over HTTP) or ``path`` (read from local
    disk) must be set.
    """

    name: str = Field(..., description="Source name (e.g., urlhaus)")
    format: Literal["hosts", "urls"] = Field(
        ..., description="hosts: one hostname per line; urls: text with embedded URLs"
    )
    url: Optional[str] = None
    path: Optional[str] = None
    strict: bool = Field(False, description="Fail the source on any invalid host entry")

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "name": "urlhaus",
                "format": "urls",
                "url": "https://urlhaus.abuse.ch/downloads/text_online/",
            }
        },
    )

    @model_validator(mode="after")
    def _check_location(self) -> "FeedSourceConfig":
        if bool(self.url) == bool(self.path):
            raise ValueError(f"source '{self.name}' needs exactly one of url or path")
        return self

    @property
    def location(self) -> str:
        return self.url or self.path or ""


@dataclass(frozen=True)
class FeedSnapshot:
    """Result of one ingestion cycle. Replaced as a whole, never mutated."""

    hosts: FrozenSet[str] = frozenset()
    loaded_at: Optional[datetime] = None
    source_counts: Dict[str, int] = field(default_factory=dict)
    failed_sources: Tuple[str, ...] = ()

    @property
    def total_hosts(self) -> int:
        return len(self.hosts)

    @property
    def loaded(self) -> bool:
        return self.loaded_at is not None
