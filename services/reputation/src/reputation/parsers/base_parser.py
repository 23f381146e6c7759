"""Base parser abstract class."""

from abc import ABC, abstractmethod
from typing import Optional, Set


class BaseParser(ABC):
    """Abstract base class for feed parsers."""

    def __init__(self, source_name: str, source_format: str):
        """
        Initialize parser.

        Args:
            source_name: Name of the feed source
            source_format: Format (hosts or urls)
        """
        self.source_name = source_name
        self.source_format = source_format
        self.stats = {"lines": 0, "hosts": 0, "invalid": 0}

    @abstractmethod
    def parse(self, content: str, metadata: Optional[dict] = None) -> Set[str]:
        """
        Parse content and extract normalized hostnames.

        Args:
            content: Raw content to parse
            metadata: Optional metadata from fetcher

        Returns:
            Set of lowercase hostnames

        Raises:
            ParseError: If parsing fails
        """
        pass
