"""Remote reputation client interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import aiohttp

from common.constants import DEFAULT_REMOTE_TIMEOUT
from schemas import DecisionSource


@dataclass(frozen=True)
class LookupResult:
    """Answer from a remote reputation provider."""

    matched: bool
    provider: str
    threat_types: Tuple[str, ...] = ()
    raw: Optional[Dict[str, Any]] = field(default=None, compare=False, repr=False)


class RemoteReputationClient(ABC):
    """Adapter to an external reputation API.

    One ``lookup`` is one network round trip with a bounded timeout. Any
    failure raises ``RemoteLookupError``; a failure is never reported as
    "no match".
    """

    provider: str = "remote"
    source: DecisionSource = DecisionSource.UNKNOWN

    def __init__(
        self,
        timeout: float = DEFAULT_REMOTE_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Args:
            timeout: Total request timeout in seconds
            session: Shared client session; a private one is opened per lookup otherwise
        """
        self.timeout = timeout
        self._session = session

    @property
    @abstractmethod
    def configured(self) -> bool:
        """True when the client has the credentials it needs."""

    @abstractmethod
    async def lookup(self, url: str) -> LookupResult:
        """
        Look up a single URL.

        Raises:
            RemoteLookupError: On transport failure, timeout or non-success status
        """
