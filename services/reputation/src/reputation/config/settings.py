"""Engine configuration: one immutable settings object, loaded from YAML plus environment."""

from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from common import ConfigurationError, get_env, parse_bool
from common.constants import (
    DEFAULT_CACHE_MAXSIZE,
    DEFAULT_HTTP_BACKOFF,
    DEFAULT_HTTP_RETRIES,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_REMOTE_TIMEOUT,
    ENV_PREFIX,
    FEED_REFRESH_INTERVAL,
    HOST_CACHE_TTL,
    MANUAL_REFRESH_MIN_INTERVAL,
    PERSIST_DEBOUNCE_SECONDS,
    PHISHTANK_ENDPOINT,
    SAFE_BROWSING_CLIENT_ID,
    SAFE_BROWSING_CLIENT_VERSION,
    SAFE_BROWSING_ENDPOINT,
    URL_CACHE_TTL,
)
from schemas import FeedSourceConfig

logger = structlog.get_logger()

SAFE_BROWSING_KEY_ENV = "SAFE_BROWSING_API_KEY"
PHISHTANK_KEY_ENV = "PHISHTANK_API_KEY"


class ReputationSettings(BaseModel):
    """Every engine toggle. Replaced as a whole, never mutated field by field."""

    enabled: bool = True
    prefer_remote_first: bool = False
    heuristics_enabled: bool = True
    host_check_skip_local_blocklist: bool = False
    label_adult_content: bool = False

    url_cache_ttl: float = Field(URL_CACHE_TTL, gt=0)
    host_cache_ttl: float = Field(HOST_CACHE_TTL, gt=0)
    cache_maxsize: int = Field(DEFAULT_CACHE_MAXSIZE, gt=0)
    host_cache_path: Optional[str] = None
    persist_debounce: float = Field(PERSIST_DEBOUNCE_SECONDS, ge=0)

    feed_refresh_interval: float = Field(FEED_REFRESH_INTERVAL, gt=0)
    manual_refresh_min_interval: float = Field(MANUAL_REFRESH_MIN_INTERVAL, ge=0)
    http_timeout: int = Field(DEFAULT_HTTP_TIMEOUT, gt=0)
    http_retries: int = Field(DEFAULT_HTTP_RETRIES, ge=1)
    http_backoff: float = Field(DEFAULT_HTTP_BACKOFF, ge=0)

    remote_timeout: float = Field(DEFAULT_REMOTE_TIMEOUT, gt=0)
    safe_browsing_api_key: Optional[str] = Field(None, repr=False)
    safe_browsing_endpoint: str = SAFE_BROWSING_ENDPOINT
    safe_browsing_client_id: str = SAFE_BROWSING_CLIENT_ID
    safe_browsing_client_version: str = SAFE_BROWSING_CLIENT_VERSION
    phishtank_app_key: Optional[str] = Field(None, repr=False)
    phishtank_endpoint: str = PHISHTANK_ENDPOINT

    blocklist_path: Optional[str] = None
    allowlist_path: Optional[str] = None
    pushgateway_url: Optional[str] = None

    sources: Tuple[FeedSourceConfig, ...] = ()

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def remote_configured(self) -> bool:
        return bool(self.safe_browsing_api_key)

    @property
    def secondary_configured(self) -> bool:
        return bool(self.phishtank_app_key)


def _parse_sources(raw: Any, base_dir: Path) -> Tuple[FeedSourceConfig, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, dict):
        raise ConfigurationError("'sources' must be a mapping of name to source settings")

    sources = []
    for name, source_config in raw.items():
        if not isinstance(source_config, dict):
            raise ConfigurationError("Source settings must be a mapping", context={"source": name})
        values = dict(source_config)
        path = values.get("path")
        if path and not Path(path).is_absolute():
            values["path"] = str(base_dir / path)
        try:
            sources.append(
                FeedSourceConfig(
                    name=str(name),
                    format=values.get("format"),
                    url=values.get("url"),
                    path=values.get("path"),
                    strict=bool(values.get("strict", False)),
                )
            )
        except PydanticValidationError as e:
            raise ConfigurationError(
                "Invalid feed source", context={"source": name}, original_error=e
            ) from e
    return tuple(sources)


def _env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for name, field_info in ReputationSettings.model_fields.items():
        if name == "sources":
            continue
        raw = get_env(f"{ENV_PREFIX}{name.upper()}")
        if not raw:
            continue
        if field_info.annotation is bool:
            try:
                overrides[name] = parse_bool(raw)
            except ValueError as e:
                raise ConfigurationError(
                    "Invalid boolean in environment",
                    context={"variable": f"{ENV_PREFIX}{name.upper()}"},
                    original_error=e,
                ) from e
        else:
            overrides[name] = raw

    safe_browsing_key = get_env(SAFE_BROWSING_KEY_ENV)
    if safe_browsing_key:
        overrides["safe_browsing_api_key"] = safe_browsing_key
    phishtank_key = get_env(PHISHTANK_KEY_ENV)
    if phishtank_key:
        overrides["phishtank_app_key"] = phishtank_key
    return overrides


def load_settings(config_path: Optional[str] = None) -> ReputationSettings:
    """
    Load settings from a YAML file, then apply environment overrides.

    Relative source and file paths in the YAML are resolved against the
    directory holding the file.

    Args:
        config_path: Path to the YAML file; defaults only when None

    Returns:
        Validated settings

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    values: Dict[str, Any] = {}

    if config_path is not None:
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(
                "Configuration file not found", context={"config_path": config_path}
            )

        logger.info("Loading configuration", config_path=config_path)
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                "Failed to read configuration",
                context={"config_path": config_path},
                original_error=e,
            ) from e
        if not isinstance(config, dict):
            raise ConfigurationError(
                "Configuration root must be a mapping", context={"config_path": config_path}
            )

        base_dir = config_file.resolve().parent
        settings_section = config.get("settings") or {}
        if not isinstance(settings_section, dict):
            raise ConfigurationError("'settings' must be a mapping", context={"config_path": config_path})
        values.update(settings_section)
        for key in ("host_cache_path", "blocklist_path", "allowlist_path"):
            path = values.get(key)
            if path and not Path(path).is_absolute():
                values[key] = str(base_dir / path)
        values["sources"] = _parse_sources(config.get("sources"), base_dir)

    values.update(_env_overrides())

    try:
        settings = ReputationSettings(**values)
    except PydanticValidationError as e:
        raise ConfigurationError(
            "Invalid configuration",
            context={"config_path": config_path},
            original_error=e,
        ) from e

    logger.info(
        "Configuration loaded",
        sources_count=len(settings.sources),
        sources=[source.name for source in settings.sources],
        remote_configured=settings.remote_configured,
        secondary_configured=settings.secondary_configured,
    )
    return settings
