"""Configuration constants for the reputation engine."""

from typing import Final

# HTTP Fetcher Defaults
DEFAULT_HTTP_TIMEOUT: Final[int] = 30
DEFAULT_HTTP_RETRIES: Final[int] = 3
DEFAULT_HTTP_BACKOFF: Final[float] = 5.0

# Remote reputation lookups
DEFAULT_REMOTE_TIMEOUT: Final[float] = 5.0
SAFE_BROWSING_ENDPOINT: Final[str] = (
    "https://safebrowsing.googleapis.com/v4/threatMatches:find"
)
SAFE_BROWSING_CLIENT_ID: Final[str] = "reputation-engine"
SAFE_BROWSING_CLIENT_VERSION: Final[str] = "1.0.0"
SAFE_BROWSING_THREAT_TYPES: Final[tuple] = (
    "MALWARE",
    "SOCIAL_ENGINEERING",
    "POTENTIALLY_HARMFUL_APPLICATION",
    "UNWANTED_SOFTWARE",
)
PHISHTANK_ENDPOINT: Final[str] = "https://checkurl.phishtank.com/checkurl/"

# Decision caches (seconds)
URL_CACHE_TTL: Final[int] = 10 * 60
HOST_CACHE_TTL: Final[int] = 60 * 60
DEFAULT_CACHE_MAXSIZE: Final[int] = 100_000
PERSIST_DEBOUNCE_SECONDS: Final[float] = 0.3

# Feed refresh (seconds)
FEED_REFRESH_INTERVAL: Final[int] = 10 * 60
MANUAL_REFRESH_MIN_INTERVAL: Final[float] = 2.0

# Heuristics
LONG_HOSTNAME_THRESHOLD: Final[int] = 24
PUNYCODE_PREFIX: Final[str] = "xn--"

# Service Defaults
DEFAULT_LOG_LEVEL: Final[str] = "INFO"
ENV_PREFIX: Final[str] = "REPUTATION_"
