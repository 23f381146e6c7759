"""Tests for feed parsers and the packaged blocklist loader."""

import json

import pytest
from common import ParseError, ValidationError
from reputation.parsers import (
    HostListParser,
    UrlTextParser,
    get_parser,
    load_packaged_blocklist,
    normalize_blocklist_entries,
)


# ==================== HostListParser Tests ====================


def test_host_list_parser_valid_entries():
    """Test parsing a newline-delimited host list."""
    parser = HostListParser("local")

    content = """
# Comment line
evil.com
Malware.Example.NET
.leading-dot.org

# Another comment
203.0.113.5
"""

    hosts = parser.parse(content)

    assert hosts == {"evil.com", "malware.example.net", "leading-dot.org", "203.0.113.5"}
    assert parser.stats["hosts"] == 4


def test_host_list_parser_skips_invalid_entries():
    """Test that invalid hosts are counted and dropped."""
    parser = HostListParser("local")

    hosts = parser.parse("valid-domain.com\nlocalhost\n-bad-.com\nnot a host\n")

    assert hosts == {"valid-domain.com"}
    assert parser.stats["invalid"] == 3


def test_host_list_parser_strict_rejects_invalid_entry():
    """Test strict mode raises on the first invalid host."""
    parser = HostListParser("local", strict=True)

    with pytest.raises(ValidationError) as exc_info:
        parser.parse("evil.com\nnot a host\n")

    assert exc_info.value.context == {"host": "not a host", "source": "local"}


def test_host_list_parser_deduplicates():
    """Test duplicate entries collapse."""
    hosts = HostListParser("local").parse("evil.com\nEVIL.com\nevil.com\n")

    assert hosts == {"evil.com"}


def test_host_list_parser_empty_content():
    """Test ParseError on empty content."""
    with pytest.raises(ParseError) as exc_info:
        HostListParser("local").parse("")

    assert "Empty content" in str(exc_info.value)


# ==================== UrlTextParser Tests ====================


def test_url_text_parser_extracts_hosts_from_csv():
    """Test host extraction from a URLhaus-style CSV dump."""
    content = (
        '# id,dateadded,url,url_status\n'
        '"1","2024-01-01","http://Evil.com/bins/x.sh","online"\n'
        '"2","2024-01-01","https://sub.bad.example.net:8443/login?x=1","online"\n'
        '"3","2024-01-01","http://203.0.113.5/a","offline"\n'
    )

    hosts = UrlTextParser("urlhaus").parse(content)

    assert hosts == {"evil.com", "sub.bad.example.net", "203.0.113.5"}


def test_url_text_parser_plain_url_list():
    """Test one URL per line."""
    hosts = UrlTextParser("urlhaus").parse("http://a.example.com/x\nhttps://b.example.org\n")

    assert hosts == {"a.example.com", "b.example.org"}


def test_url_text_parser_ignores_non_urls():
    """Test text without URLs yields nothing."""
    parser = UrlTextParser("urlhaus")

    assert parser.parse("no urls here\nftp://files.example.com/x\n") == set()


def test_url_text_parser_empty_content():
    """Test ParseError on empty content."""
    with pytest.raises(ParseError):
        UrlTextParser("urlhaus").parse("")


# ==================== Factory Tests ====================


def test_get_parser_by_format():
    """Test parser selection by source format."""
    assert isinstance(get_parser("a", "hosts"), HostListParser)
    assert isinstance(get_parser("b", "urls"), UrlTextParser)


def test_get_parser_unknown_format():
    """Test unknown formats are rejected."""
    with pytest.raises(ValueError, match="Unknown format"):
        get_parser("c", "adblock")


# ==================== Packaged Blocklist Tests ====================


def test_normalize_blocklist_entries():
    """Test hosts and URLs normalize to bare hosts."""
    hosts = normalize_blocklist_entries(
        ["https://www.Phish.example/login", "bad.test", "", 42, "www.evil.com:8080"]
    )

    assert hosts == frozenset({"phish.example", "bad.test", "evil.com"})


def test_load_packaged_blocklist(tmp_path):
    """Test loading a JSON array blocklist."""
    path = tmp_path / "blocklist.json"
    path.write_text(json.dumps(["evil.com", "http://www.bad.test/x"]), encoding="utf-8")

    assert load_packaged_blocklist(str(path)) == frozenset({"evil.com", "bad.test"})


@pytest.mark.parametrize("content", ["{not json", '{"hosts": ["evil.com"]}'])
def test_load_packaged_blocklist_malformed(tmp_path, content):
    """Test malformed blocklists load as empty."""
    path = tmp_path / "blocklist.json"
    path.write_text(content, encoding="utf-8")

    assert load_packaged_blocklist(str(path)) == frozenset()


def test_load_packaged_blocklist_missing(tmp_path):
    """Test a missing file or path loads as empty."""
    assert load_packaged_blocklist(str(tmp_path / "missing.json")) == frozenset()
    assert load_packaged_blocklist(None) == frozenset()
