"""PhishTank checkurl client (optional secondary source)."""

import asyncio
from typing import Any, Dict, Optional

import aiohttp
import structlog

from common import RemoteLookupError
from common.constants import DEFAULT_REMOTE_TIMEOUT, PHISHTANK_ENDPOINT
from schemas import DecisionSource
from .base_client import LookupResult, RemoteReputationClient

logger = structlog.get_logger()


class PhishTankClient(RemoteReputationClient):
    """Unsafe when PhishTank reports the URL as both in its database and a verified phish."""

    provider = "phishtank"
    source = DecisionSource.PHISHTANK

    def __init__(
        self,
        app_key: str,
        endpoint: str = PHISHTANK_ENDPOINT,
        timeout: float = DEFAULT_REMOTE_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        super().__init__(timeout=timeout, session=session)
        self.app_key = app_key
        self.endpoint = endpoint

    @property
    def configured(self) -> bool:
        return bool(self.app_key)

    async def _post(self, session: aiohttp.ClientSession, form: Dict[str, str]) -> Dict[str, Any]:
        async with session.post(
            self.endpoint,
            data=form,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as response:
            if response.status >= 300:
                text = await response.text()
                raise RemoteLookupError(
                    "PhishTank returned a non-success status",
                    context={
                        "provider": self.provider,
                        "status_code": response.status,
                        "body": text[:200],
                    },
                )
            return await response.json(content_type=None)

    async def lookup(self, url: str) -> LookupResult:
        if not self.configured:
            raise RemoteLookupError("PhishTank app key not configured", context={"provider": self.provider})

        form = {"url": url, "format": "json", "app_key": self.app_key}
        try:
            if self._session is not None:
                data = await self._post(self._session, form)
            else:
                async with aiohttp.ClientSession() as session:
                    data = await self._post(session, form)
        except RemoteLookupError as e:
            logger.warning("PhishTank lookup failed", error=str(e))
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning(
                "PhishTank request failed",
                error=str(e),
                error_type=type(e).__name__,
                timeout=self.timeout,
            )
            raise RemoteLookupError(
                "PhishTank request failed",
                context={"provider": self.provider, "timeout": self.timeout},
                original_error=e,
            ) from e

        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, dict):
            results = {}
        matched = bool(results.get("in_database")) and bool(results.get("valid"))
        return LookupResult(
            matched=matched,
            provider=self.provider,
            threat_types=("PHISHING",) if matched else (),
            raw=data if isinstance(data, dict) else None,
        )
