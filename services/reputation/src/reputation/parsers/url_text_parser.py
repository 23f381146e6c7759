"""Parser for raw feed text with embedded HTTP(S) URLs (URLhaus CSV/text dumps)."""

from typing import Optional, Set
import structlog
from schemas import extract_hosts_from_text, is_valid_host
from common import ParseError
from .base_parser import BaseParser

logger = structlog.get_logger()


class UrlTextParser(BaseParser):
    """Extracts the hostname of every HTTP(S) URL found anywhere in the text.

    Works on CSV dumps as well as one-URL-per-line lists, since matching is
    done on URL substrings rather than on columns.
    """

    def __init__(self, source_name: str):
        super().__init__(source_name, "urls")

    def parse(self, content: str, metadata: Optional[dict] = None) -> Set[str]:
        """
        Parse raw text and return the hosts of embedded URLs.

        Raises:
            ParseError: If content is empty
        """
        if not content:
            raise ParseError(
                f"Empty content from source {self.source_name}",
                context={"source_name": self.source_name, "format": self.source_format},
            )

        extracted = extract_hosts_from_text(content)
        hosts = {host for host in extracted if is_valid_host(host)}

        self.stats["lines"] = content.count("\n") + 1
        self.stats["hosts"] = len(hosts)
        self.stats["invalid"] = len(extracted) - len(hosts)

        logger.info(
            "URL text parsing complete",
            source=self.source_name,
            content_length=len(content),
            hosts_extracted=len(hosts),
            invalid=self.stats["invalid"],
        )

        return hosts
