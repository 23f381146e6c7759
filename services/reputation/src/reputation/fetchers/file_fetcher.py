"""Local file fetcher for host lists produced by the extraction CLI."""

import asyncio
from pathlib import Path
from typing import Dict, Any
import structlog
from common import FetchError
from .base_fetcher import BaseFetcher

logger = structlog.get_logger()


class FileFetcher(BaseFetcher):
    """Reads a feed from local storage. The file is never written back."""

    def __init__(self, source_name: str, path: str, encoding: str = "utf-8"):
        """
        Initialize file fetcher.

        Args:
            source_name: Name of the feed source
            path: Path of the file to read
            encoding: Text encoding of the file
        """
        super().__init__(source_name, path)
        self.path = Path(path)
        self.encoding = encoding

    def _read(self) -> str:
        return self.path.read_text(encoding=self.encoding)

    async def fetch(self) -> Dict[str, Any]:
        """
        Read the whole file without blocking the event loop.

        Raises:
            FetchError: If the file is missing or unreadable
        """
        try:
            content = await asyncio.to_thread(self._read)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(
                "File fetch failed",
                source=self.source_name,
                path=str(self.path),
                error=str(e),
            )
            raise FetchError(
                message=f"Failed to read {self.path}",
                context={"source_name": self.source_name, "path": str(self.path)},
                original_error=e,
            ) from e

        logger.info(
            "File fetch successful",
            source=self.source_name,
            path=str(self.path),
            content_length=len(content),
        )

        return {
            "content": content,
            "metadata": {
                "content_length": len(content),
                "source_path": str(self.path),
            },
        }
