"""HTTP feed fetcher with retry logic."""

from typing import Any, Dict, Optional

import aiohttp
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from common import FetchError
from common.constants import DEFAULT_HTTP_BACKOFF, DEFAULT_HTTP_RETRIES, DEFAULT_HTTP_TIMEOUT
from .base_fetcher import BaseFetcher

logger = structlog.get_logger()

USER_AGENT = "reputation-engine/1.0"


class HTTPFetcher(BaseFetcher):
    """Downloads a remote plaintext feed (host list or URL dump).

    Transport errors and non-success statuses are retried with exponential
    backoff; the last failure surfaces as :class:`FetchError`.
    """

    def __init__(
        self,
        source_name: str,
        url: str,
        timeout: int = DEFAULT_HTTP_TIMEOUT,
        retries: int = DEFAULT_HTTP_RETRIES,
        backoff: float = DEFAULT_HTTP_BACKOFF,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize HTTP fetcher.

        Args:
            source_name: Name of the feed source
            url: Feed URL
            timeout: Request timeout in seconds
            retries: Number of attempts
            backoff: Initial backoff time between attempts
            session: Shared client session; a private one is opened per fetch otherwise
        """
        super().__init__(source_name, url)
        self.url = url
        self.timeout = timeout
        self.retries = retries
        self.backoff = backoff
        self._session = session

    async def _download(self, session: aiohttp.ClientSession) -> Dict[str, Any]:
        async with session.get(
            self.url,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            headers={"User-Agent": USER_AGENT},
        ) as response:
            response.raise_for_status()
            content = await response.text()

            logger.info(
                "Feed downloaded",
                source=self.source_name,
                status=response.status,
                content_length=len(content),
            )

            return {
                "content": content,
                "metadata": {
                    "http_status": response.status,
                    "content_length": len(content),
                    "content_type": response.headers.get("Content-Type", ""),
                    "source_url": self.url,
                },
            }

    async def fetch(self) -> Dict[str, Any]:
        """
        Download the feed.

        Returns:
            Dictionary with ``content`` and ``metadata`` (http_status,
            content_length, content_type, source_url)

        Raises:
            FetchError: If every attempt failed
        """
        logger.info(
            "Starting feed download",
            source=self.source_name,
            url=self.url,
            timeout=self.timeout,
        )

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.retries),
                wait=wait_exponential(multiplier=self.backoff, min=self.backoff),
                retry=retry_if_exception_type(
                    (aiohttp.ClientError, aiohttp.ServerTimeoutError)
                ),
                reraise=True,
            ):
                with attempt:
                    if self._session is not None:
                        return await self._download(self._session)
                    async with aiohttp.ClientSession() as session:
                        return await self._download(session)

        except (aiohttp.ClientError, aiohttp.ServerTimeoutError) as e:
            logger.error(
                "Feed download failed after all retries",
                source=self.source_name,
                url=self.url,
                attempts=self.retries,
                error=str(e),
            )
            raise FetchError(
                message=f"Failed to fetch from {self.url} after {self.retries} attempts",
                context={
                    "source_name": self.source_name,
                    "url": self.url,
                    "attempts": self.retries,
                },
                original_error=e,
            ) from e
