"""Parsers package."""

from .base_parser import BaseParser
from .blocklist_parser import load_packaged_blocklist, normalize_blocklist_entries
from .hostlist_parser import HostListParser
from .url_text_parser import UrlTextParser


def get_parser(source_name: str, source_format: str, strict: bool = False) -> BaseParser:
    """Return the parser for a source format."""
    if source_format == "hosts":
        return HostListParser(source_name, strict=strict)
    if source_format == "urls":
        return UrlTextParser(source_name)
    raise ValueError(f"Unknown format type: {source_format}")


__all__ = [
    "BaseParser",
    "HostListParser",
    "UrlTextParser",
    "get_parser",
    "load_packaged_blocklist",
    "normalize_blocklist_entries",
]
