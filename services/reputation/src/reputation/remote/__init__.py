"""Remote reputation clients."""

from .base_client import LookupResult, RemoteReputationClient
from .phishtank import PhishTankClient
from .safe_browsing import SafeBrowsingClient, build_request_body

__all__ = [
    "LookupResult",
    "PhishTankClient",
    "RemoteReputationClient",
    "SafeBrowsingClient",
    "build_request_body",
]
