"""Host validation and normalization rules."""

import re
from typing import Optional
from urllib.parse import urlsplit, urlunsplit
import ipaddress

# Host validation regex
# Matches DNS hostnames (e.g., example.com, sub.example.com, xn--80ak6aa92e.com)
# - Labels must be 1-63 characters
# - Labels must start and end with alphanumeric
# - Labels can contain hyphens but not at start/end
# - TLD is alphabetic (2+ chars) or an IDNA "xn--" label
HOST_PATTERN = re.compile(
    r"^(?!-)[a-z0-9-]{1,63}(?<!-)(\.(?!-)[a-z0-9-]{1,63}(?<!-))*"
    r"\.([a-z]{2,63}|xn--[a-z0-9-]{1,59})$"
)

# Embedded HTTP(S) URL pattern used for raw feed text (CSV dumps, plain lists)
URL_PATTERN = re.compile(r"https?://[^\s\"']+", re.IGNORECASE)

SCHEME_PREFIXES = ("https://", "http://", "ftp://", "//")


def is_ip_literal(host: str) -> bool:
    """Return True if host is a bare IPv4 or IPv6 literal."""
    try:
        ipaddress.ip_address(host)
        return True
    except ValueError:
        return False


def is_valid_host(host: str) -> bool:
    """
    Check if host is a syntactically valid DNS hostname or a bare IP literal.

    Args:
        host: Lowercase host to validate

    Returns:
        True if valid, False otherwise

    Examples:
        >>> is_valid_host("example.com")
        True
        >>> is_valid_host("203.0.113.5")
        True
        >>> is_valid_host("localhost")
        False
        >>> is_valid_host("-bad-.com")
        False
    """
    if not host or len(host) > 253:
        return False

    if is_ip_literal(host):
        return True

    return bool(HOST_PATTERN.match(host))


def strip_www(host: str) -> str:
    """Remove a single leading ``www.`` label."""
    if host.startswith("www."):
        return host[4:]
    return host


def clean_host(value: str) -> Optional[str]:
    """
    Reduce a host-ish string to a bare lowercase host.

    Removes URL schemes, paths, query strings, fragments, ports, userinfo,
    and leading/trailing dots. A leading ``www.`` is kept.

    Args:
        value: Host, host:port, or URL

    Returns:
        Cleaned host or None if nothing host-like remains

    Examples:
        >>> clean_host("  Example.COM  ")
        'example.com'
        >>> clean_host("https://www.example.com/path")
        'www.example.com'
        >>> clean_host("example.com:8080")
        'example.com'
    """
    if not value:
        return None

    host = value.strip().lower()

    # Remove URL schemes
    for prefix in SCHEME_PREFIXES:
        if host.startswith(prefix):
            host = host[len(prefix) :]
            break

    # Remove path, query params, and fragments
    for delimiter in ["/", "?", "#"]:
        if delimiter in host:
            host = host.split(delimiter)[0]

    # Remove userinfo
    if "@" in host:
        host = host.rsplit("@", 1)[1]

    # Remove port numbers
    if host.startswith("["):
        host = host[1:].split("]")[0]
    elif ":" in host and not host.count(":") > 1:  # Not IPv6
        host = host.split(":")[0]

    host = host.strip().strip(".")

    return host or None


def normalize_host(value: str) -> Optional[str]:
    """
    Normalize a host for allowlist, blocklist and host-cache keys.

    Same as :func:`clean_host` plus removal of a leading ``www.``.

    Examples:
        >>> normalize_host("WWW.Example.com")
        'example.com'
    """
    host = clean_host(value)
    if host is None:
        return None
    return strip_www(host) or None


def extract_host(url: str) -> Optional[str]:
    """
    Extract the lowercase hostname from a URL.

    Inputs without a scheme are treated as ``http://`` URLs so that bare
    hosts ("example.com/path") resolve too.

    Returns:
        Hostname without leading/trailing dots, or None if the URL is malformed

    Examples:
        >>> extract_host("http://Sub.Evil.com/path?x=1")
        'sub.evil.com'
        >>> extract_host("http://[::1")
    """
    if not url:
        return None

    candidate = url.strip()
    if "://" not in candidate:
        candidate = f"http://{candidate}"

    try:
        parts = urlsplit(candidate)
        hostname = parts.hostname
        # Accessing port validates it
        parts.port
    except ValueError:
        return None

    if not hostname:
        return None

    hostname = hostname.strip(".")
    if not hostname or any(ch.isspace() for ch in hostname):
        return None

    return hostname


def normalize_url(url: str) -> str:
    """
    Normalize a URL for use as a URL-cache key.

    Only the fragment is dropped; unparseable input is returned stripped.

    Examples:
        >>> normalize_url("https://example.com/a?b=1#frag")
        'https://example.com/a?b=1'
    """
    candidate = url.strip()
    try:
        parts = urlsplit(candidate)
    except ValueError:
        return candidate
    return urlunsplit((parts.scheme, parts.netloc, parts.path, parts.query, ""))


def extract_hosts_from_text(text: str) -> set:
    """
    Extract hostnames from every HTTP(S) URL embedded in raw text.

    Matches that fail to parse are ignored.

    Examples:
        >>> sorted(extract_hosts_from_text('1,"http://a.com/x",online\\nhttps://B.net'))
        ['a.com', 'b.net']
    """
    hosts = set()
    for match in URL_PATTERN.findall(text or ""):
        host = extract_host(match)
        if host:
            hosts.add(host)
    return hosts
