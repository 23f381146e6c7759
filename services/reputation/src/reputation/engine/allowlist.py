"""User-owned set of hosts exempt from unsafe classification."""

import json
import os
import tempfile
from pathlib import Path
from typing import Callable, FrozenSet, Iterable, List, Optional

import structlog

from common import CachePersistenceError
from schemas import normalize_host

logger = structlog.get_logger()

ChangeCallback = Callable[[str, bool], None]


class AllowList:
    """Normalized host set with optional JSON file persistence.

    Membership is exact on the normalized host (lowercase, no scheme, port
    or leading ``www.``). Subscribers are called with ``(host, allowed)``
    after every change so cached verdicts can be dropped.
    """

    def __init__(self, hosts: Iterable[str] = (), path: Optional[str] = None):
        self.path = Path(path) if path else None
        self._hosts: FrozenSet[str] = frozenset(
            h for h in (normalize_host(x) for x in hosts) if h
        )
        self._subscribers: List[ChangeCallback] = []

    @classmethod
    def from_file(cls, path: str) -> "AllowList":
        """Load from a JSON array of hosts. A missing or unreadable file gives an empty list."""
        file_path = Path(path)
        hosts: List[str] = []
        if file_path.exists():
            try:
                data = json.loads(file_path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.warning("Failed to read allowlist", path=path, error=str(e))
                data = []
            if isinstance(data, list):
                hosts = [item for item in data if isinstance(item, str)]
            else:
                logger.warning("Allowlist file is not a JSON array", path=path)
        allowlist = cls(hosts, path=path)
        logger.info("Allowlist loaded", path=path, hosts=len(allowlist))
        return allowlist

    def subscribe(self, callback: ChangeCallback) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: ChangeCallback) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    @property
    def hosts(self) -> List[str]:
        return sorted(self._hosts)

    def contains(self, host: Optional[str]) -> bool:
        normalized = normalize_host(host) if host else None
        return bool(normalized) and normalized in self._hosts

    def __contains__(self, host: object) -> bool:
        return isinstance(host, str) and self.contains(host)

    def __len__(self) -> int:
        return len(self._hosts)

    def add(self, host: str) -> Optional[str]:
        """
        Allow ``host``.

        Returns:
            The normalized host that was added, or None when the input had no host
        """
        normalized = normalize_host(host)
        if not normalized:
            return None
        if normalized not in self._hosts:
            self._hosts = self._hosts | {normalized}
            self._changed(normalized, True)
        return normalized

    def remove(self, host: str) -> bool:
        """Stop allowing ``host``. Returns True if it was present."""
        normalized = normalize_host(host)
        if not normalized or normalized not in self._hosts:
            return False
        self._hosts = self._hosts - {normalized}
        self._changed(normalized, False)
        return True

    def _changed(self, host: str, allowed: bool) -> None:
        logger.info("Allowlist changed", host=host, allowed=allowed)
        if self.path is not None:
            try:
                self.save()
            except CachePersistenceError as e:
                logger.warning("Allowlist persistence failed", error=str(e))
        for callback in list(self._subscribers):
            callback(host, allowed)

    def save(self) -> None:
        """Write the list to ``path`` as a sorted JSON array."""
        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(self.hosts, f, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise CachePersistenceError(
                "Failed to write allowlist",
                context={"path": str(self.path), "operation": "save"},
                original_error=e,
            ) from e
