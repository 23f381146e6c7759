"""Structural URL/host heuristics. No network access."""

import ipaddress
from dataclasses import dataclass
from typing import Container, FrozenSet, Iterable, Optional, Tuple

from common.constants import LONG_HOSTNAME_THRESHOLD, PUNYCODE_PREFIX
from schemas import DecisionSource, extract_host, normalize_host

SUSPICIOUS_TLDS: FrozenSet[str] = frozenset({"tk", "ml", "ga", "cf", "gq"})

BRAND_TOKENS: Tuple[str, ...] = (
    "paypal",
    "google",
    "apple",
    "amazon",
    "microsoft",
    "facebook",
    "netflix",
    "instagram",
    "whatsapp",
    "linkedin",
    "bank",
)

REASON_LOCAL_BLOCKLIST = "on local blocklist"
REASON_HOMOGRAPH = "possible homograph attack"
REASON_IP_HOST = "IP address used as host"
REASON_LONG_HOSTNAME = "unusually long hostname"
REASON_SUSPICIOUS_TLD = "suspicious TLD"
REASON_BRAND_IMPERSONATION = "possible brand impersonation"


@dataclass(frozen=True)
class HeuristicResult:
    """Outcome of rule evaluation for one host."""

    reason: Optional[str] = None
    source: Optional[DecisionSource] = None
    allowlisted: bool = False

    @property
    def flagged(self) -> bool:
        return self.reason is not None


def is_dotted_quad(host: str) -> bool:
    """True for a dotted-quad IPv4 literal such as ``203.0.113.5``."""
    if host.count(".") != 3:
        return False
    try:
        ipaddress.IPv4Address(host)
        return True
    except ValueError:
        return False


class HeuristicClassifier:
    """Ordered rule evaluator; the first matching rule wins.

    Rules, in order: allowlist, packaged blocklist, punycode, IPv4 host,
    long hostname, suspicious TLD, brand token. The allowlist and blocklist
    are read on every call so user edits apply immediately.
    """

    def __init__(
        self,
        allowlist: Optional[Container[str]] = None,
        blocklist: Iterable[str] = (),
        suspicious_tlds: Iterable[str] = SUSPICIOUS_TLDS,
        brand_tokens: Iterable[str] = BRAND_TOKENS,
        max_host_length: int = LONG_HOSTNAME_THRESHOLD,
    ):
        self.allowlist = allowlist
        self._blocklist: FrozenSet[str] = frozenset(blocklist)
        self.suspicious_tlds = frozenset(suspicious_tlds)
        self.brand_tokens = tuple(brand_tokens)
        self.max_host_length = max_host_length

    @property
    def blocklist(self) -> FrozenSet[str]:
        return self._blocklist

    def replace_blocklist(self, hosts: Iterable[str]) -> None:
        """Swap in a new packaged blocklist."""
        self._blocklist = frozenset(hosts)

    def _brand_impersonation(self, host: str) -> bool:
        for token in self.brand_tokens:
            if token in host and not host.endswith(f"{token}.com"):
                return True
        return False

    def evaluate_host(self, host: Optional[str], skip_local_blocklist: bool = False) -> HeuristicResult:
        """
        Evaluate a normalized host (lowercase, no ``www.``).

        Args:
            host: Host to inspect
            skip_local_blocklist: Skip the packaged blocklist rule

        Returns:
            The first matching rule's result; an empty result if nothing matched
        """
        if not host:
            return HeuristicResult()

        if self.allowlist is not None and host in self.allowlist:
            return HeuristicResult(source=DecisionSource.ALLOWLIST, allowlisted=True)

        if not skip_local_blocklist and host in self._blocklist:
            return HeuristicResult(REASON_LOCAL_BLOCKLIST, DecisionSource.LOCAL_BLOCKLIST)

        if PUNYCODE_PREFIX in host:
            return HeuristicResult(REASON_HOMOGRAPH, DecisionSource.HEURISTIC)

        if is_dotted_quad(host):
            return HeuristicResult(REASON_IP_HOST, DecisionSource.HEURISTIC)

        if len(host) > self.max_host_length:
            return HeuristicResult(REASON_LONG_HOSTNAME, DecisionSource.HEURISTIC)

        if host.rsplit(".", 1)[-1] in self.suspicious_tlds:
            return HeuristicResult(REASON_SUSPICIOUS_TLD, DecisionSource.HEURISTIC)

        if self._brand_impersonation(host):
            return HeuristicResult(REASON_BRAND_IMPERSONATION, DecisionSource.HEURISTIC)

        return HeuristicResult()

    def evaluate(self, url: str, skip_local_blocklist: bool = False) -> HeuristicResult:
        """Evaluate the host of ``url``. Unparseable URLs are never flagged."""
        raw_host = extract_host(url)
        host = normalize_host(raw_host) if raw_host else None
        return self.evaluate_host(host, skip_local_blocklist=skip_local_blocklist)

    def classify(self, url: str, skip_local_blocklist: bool = False) -> Optional[str]:
        """
        Return the reason ``url`` looks suspicious, or None.

        An allowlisted host also returns None; use :meth:`evaluate` to tell
        the two apart.
        """
        return self.evaluate(url, skip_local_blocklist=skip_local_blocklist).reason
