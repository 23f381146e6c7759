"""Loader for the packaged JSON blocklist."""

import json
from pathlib import Path
from typing import FrozenSet, Iterable, Optional
import structlog
from schemas import normalize_host

logger = structlog.get_logger()


def normalize_blocklist_entries(entries: Iterable) -> FrozenSet[str]:
    """Normalize raw blocklist entries (hosts or full URLs) to bare hosts.

    Non-string and empty entries are dropped.
    """
    hosts = set()
    for entry in entries:
        if not isinstance(entry, str):
            continue
        host = normalize_host(entry)
        if host:
            hosts.add(host)
    return frozenset(hosts)


def load_packaged_blocklist(path: Optional[str]) -> FrozenSet[str]:
    """
    Load a JSON array of hosts/URLs shipped alongside the service.

    A missing, unreadable or malformed file yields an empty blocklist.
    """
    if not path:
        return frozenset()

    blocklist_path = Path(path)
    if not blocklist_path.exists():
        logger.info("No packaged blocklist found", path=str(blocklist_path))
        return frozenset()

    try:
        raw = json.loads(blocklist_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Failed to load packaged blocklist", path=str(blocklist_path), error=str(e))
        return frozenset()

    if not isinstance(raw, list):
        logger.warning("Packaged blocklist is not an array", path=str(blocklist_path))
        return frozenset()

    hosts = normalize_blocklist_entries(raw)
    logger.info("Packaged blocklist loaded", path=str(blocklist_path), entries=len(hosts))
    return hosts
