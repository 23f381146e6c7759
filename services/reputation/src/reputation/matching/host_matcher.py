"""Exact and domain-suffix host matching."""

from typing import AbstractSet, Optional


class HostMatcher:
    """Matches a host against a set of hostnames, exactly or by parent domain.

    A set entry ``example.com`` matches ``example.com`` and any subdomain of
    it such as ``a.b.example.com``. The bare top-level label of the queried
    host is never tested on its own.

    The host passed to :meth:`match` must already be lowercased and trimmed.
    """

    __slots__ = ("_hosts",)

    def __init__(self, hosts: AbstractSet[str]):
        self._hosts = hosts

    @property
    def hosts(self) -> AbstractSet[str]:
        return self._hosts

    def __len__(self) -> int:
        return len(self._hosts)

    def match(self, host: Optional[str]) -> Optional[str]:
        """
        Return the set entry matching ``host``, or None.

        Suffixes are tried from most to least specific, so the first hit is
        the closest registered parent.

        Examples:
            >>> HostMatcher(frozenset({"example.com"})).match("a.b.example.com")
            'example.com'
            >>> HostMatcher(frozenset({"example.com"})).match("example.org") is None
            True
        """
        if not host:
            return None

        hosts = self._hosts
        if host in hosts:
            return host

        labels = host.split(".")
        # labels[i:] for i = 1 .. len-2; the final label alone (the TLD) is skipped
        for i in range(1, len(labels) - 1):
            suffix = ".".join(labels[i:])
            if suffix in hosts:
                return suffix

        return None

    def __contains__(self, host: str) -> bool:
        return self.match(host) is not None
