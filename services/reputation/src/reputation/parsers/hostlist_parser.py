"""Newline-delimited host list parser."""

from typing import Optional, Set
import structlog
from schemas import clean_host, is_valid_host
from common import ParseError, ValidationError
from .base_parser import BaseParser

logger = structlog.get_logger()


class HostListParser(BaseParser):
    """Parser for plain host lists.

    Example format:
        evil.com
        malware.example.net
        # Comment line
    """

    def __init__(self, source_name: str, strict: bool = False):
        """
        Args:
            source_name: Name of the feed source
            strict: Raise on the first invalid entry instead of skipping it
        """
        super().__init__(source_name, "hosts")
        self.strict = strict

    def parse(self, content: str, metadata: Optional[dict] = None) -> Set[str]:
        """
        Parse host list content.

        Blank lines and ``#`` comments are skipped; entries are lowercased
        and stripped of leading dots. Entries that are not valid hosts are
        counted and dropped.

        Raises:
            ParseError: If content is empty
            ValidationError: On an invalid entry in strict mode
        """
        if not content:
            raise ParseError(
                f"Empty content from source {self.source_name}",
                context={"source_name": self.source_name, "format": self.source_format},
            )

        hosts = set()
        lines = content.splitlines()

        for line in lines:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            self.stats["lines"] += 1

            host = clean_host(line)
            if host and is_valid_host(host):
                hosts.add(host)
            elif self.strict:
                raise ValidationError(
                    f"Invalid host entry in source {self.source_name}",
                    context={"host": line, "source": self.source_name},
                )
            else:
                self.stats["invalid"] += 1
                logger.debug("Skipping invalid host entry", source=self.source_name, entry=line)

        self.stats["hosts"] = len(hosts)

        logger.info(
            "Host list parsing complete",
            source=self.source_name,
            total_lines=len(lines),
            hosts_extracted=len(hosts),
            invalid=self.stats["invalid"],
        )

        return hosts
