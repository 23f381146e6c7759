"""Base fetcher abstract class."""

from abc import ABC, abstractmethod
from typing import Dict, Any


class BaseFetcher(ABC):
    """Abstract base class for feed fetchers."""

    def __init__(self, source_name: str, location: str):
        """
        Initialize fetcher.

        Args:
            source_name: Name of the feed source
            location: URL or file path to read from
        """
        self.source_name = source_name
        self.location = location

    @abstractmethod
    async def fetch(self) -> Dict[str, Any]:
        """
        Fetch raw feed content.

        Returns:
            Dictionary containing:
                - content: The fetched content as string
                - metadata: Metadata about the fetch (status, size, etc.)

        Raises:
            FetchError: If fetching fails
        """
        pass
