"""Google Safe Browsing v4 threatMatches:find client."""

import asyncio
from typing import Any, Dict, Optional

import aiohttp
import structlog

from common import RemoteLookupError
from common.constants import (
    DEFAULT_REMOTE_TIMEOUT,
    SAFE_BROWSING_CLIENT_ID,
    SAFE_BROWSING_CLIENT_VERSION,
    SAFE_BROWSING_ENDPOINT,
    SAFE_BROWSING_THREAT_TYPES,
)
from schemas import DecisionSource
from .base_client import LookupResult, RemoteReputationClient

logger = structlog.get_logger()


def build_request_body(
    url: str,
    client_id: str = SAFE_BROWSING_CLIENT_ID,
    client_version: str = SAFE_BROWSING_CLIENT_VERSION,
) -> Dict[str, Any]:
    """Request body asking about one URL across the four threat categories."""
    return {
        "client": {"clientId": client_id, "clientVersion": client_version},
        "threatInfo": {
            "threatTypes": list(SAFE_BROWSING_THREAT_TYPES),
            "platformTypes": ["ANY_PLATFORM"],
            "threatEntryTypes": ["URL"],
            "threatEntries": [{"url": url}],
        },
    }


class SafeBrowsingClient(RemoteReputationClient):
    """Threat-match lookup by URL. A non-empty ``matches`` list means unsafe."""

    provider = "safebrowsing"
    source = DecisionSource.SAFEBROWSING

    def __init__(
        self,
        api_key: str,
        endpoint: str = SAFE_BROWSING_ENDPOINT,
        client_id: str = SAFE_BROWSING_CLIENT_ID,
        client_version: str = SAFE_BROWSING_CLIENT_VERSION,
        timeout: float = DEFAULT_REMOTE_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        super().__init__(timeout=timeout, session=session)
        self.api_key = api_key
        self.endpoint = endpoint
        self.client_id = client_id
        self.client_version = client_version

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def _post(self, session: aiohttp.ClientSession, body: Dict[str, Any]) -> Dict[str, Any]:
        async with session.post(
            self.endpoint,
            params={"key": self.api_key},
            json=body,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as response:
            if response.status >= 300:
                text = await response.text()
                raise RemoteLookupError(
                    "Safe Browsing returned a non-success status",
                    context={
                        "provider": self.provider,
                        "status_code": response.status,
                        "body": text[:200],
                    },
                )
            return await response.json(content_type=None)

    async def lookup(self, url: str) -> LookupResult:
        if not self.configured:
            raise RemoteLookupError("Safe Browsing API key not configured", context={"provider": self.provider})

        body = build_request_body(url, self.client_id, self.client_version)
        try:
            if self._session is not None:
                data = await self._post(self._session, body)
            else:
                async with aiohttp.ClientSession() as session:
                    data = await self._post(session, body)
        except RemoteLookupError as e:
            logger.warning("Safe Browsing lookup failed", error=str(e))
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning(
                "Safe Browsing request failed",
                error=str(e),
                error_type=type(e).__name__,
                timeout=self.timeout,
            )
            raise RemoteLookupError(
                "Safe Browsing request failed",
                context={"provider": self.provider, "timeout": self.timeout},
                original_error=e,
            ) from e

        if not isinstance(data, dict):
            data = {}
        matches = data.get("matches") or []
        threat_types = tuple(
            sorted({m.get("threatType", "") for m in matches if isinstance(m, dict)} - {""})
        )
        return LookupResult(
            matched=bool(matches),
            provider=self.provider,
            threat_types=threat_types,
            raw=data,
        )
