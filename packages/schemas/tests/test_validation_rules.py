"""Tests for host validation and normalization rules."""

import pytest
from schemas import (
    clean_host,
    extract_host,
    extract_hosts_from_text,
    is_ip_literal,
    is_valid_host,
    normalize_host,
    normalize_url,
)


@pytest.mark.parametrize(
    "host",
    ["example.com", "sub.example.co.uk", "a-b.example.net", "xn--80ak6aa92e.com", "203.0.113.5", "2001:db8::1"],
)
def test_valid_hosts(host):
    """Test valid DNS names and IP literals."""
    assert is_valid_host(host)


@pytest.mark.parametrize(
    "host",
    ["", "localhost", "-bad.com", "bad-.com", "exa mple.com", "example.c", "a" * 64 + ".com", "x." * 127 + "com"],
)
def test_invalid_hosts(host):
    """Test malformed hosts are rejected."""
    assert not is_valid_host(host)


def test_is_ip_literal():
    """Test IP literal detection."""
    assert is_ip_literal("203.0.113.5")
    assert is_ip_literal("::1")
    assert not is_ip_literal("example.com")


@pytest.mark.parametrize(
    "value,expected",
    [
        ("  Example.COM  ", "example.com"),
        ("https://www.example.com/path?q=1#x", "www.example.com"),
        ("example.com:8080", "example.com"),
        ("user:pass@example.com", "example.com"),
        ("[2001:db8::1]:443", "2001:db8::1"),
        (".example.com.", "example.com"),
        ("", None),
        ("https://", None),
    ],
)
def test_clean_host(value, expected):
    """Test host cleaning keeps www and strips everything else."""
    assert clean_host(value) == expected


@pytest.mark.parametrize(
    "value,expected",
    [
        ("WWW.Example.com", "example.com"),
        ("http://www.evil.com:80/x", "evil.com"),
        ("www2.example.com", "www2.example.com"),
    ],
)
def test_normalize_host(value, expected):
    """Test normalization also strips a leading www."""
    assert normalize_host(value) == expected


@pytest.mark.parametrize(
    "url,expected",
    [
        ("http://Sub.Evil.com/path?x=1", "sub.evil.com"),
        ("https://example.com:8443/", "example.com"),
        ("example.com/no-scheme", "example.com"),
        ("http://203.0.113.5/", "203.0.113.5"),
        ("http://[::1", None),
        ("http://example.com:notaport/", None),
        ("", None),
    ],
)
def test_extract_host(url, expected):
    """Test host extraction from URLs."""
    assert extract_host(url) == expected


def test_normalize_url_drops_fragment_only():
    """Test URL cache keys keep query but not fragment."""
    assert normalize_url("https://example.com/a?b=1#frag") == "https://example.com/a?b=1"
    assert normalize_url("  https://example.com/a  ") == "https://example.com/a"


def test_extract_hosts_from_text():
    """Test hosts are pulled from every embedded HTTP(S) URL."""
    text = '1,"http://a.com/x",online\nhttps://B.net/y and http://a.com/z\nftp://c.org/'

    assert extract_hosts_from_text(text) == {"a.com", "b.net"}
    assert extract_hosts_from_text("") == set()
