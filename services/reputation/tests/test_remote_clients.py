"""Tests for remote reputation clients."""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from aiohttp import ClientError
from common import RemoteLookupError
from schemas import DecisionSource
from reputation.remote import PhishTankClient, SafeBrowsingClient, build_request_body


def make_response(status: int = 200, payload=None, text: str = "") -> MagicMock:
    mock_response = MagicMock()
    mock_response.status = status
    mock_response.json = AsyncMock(return_value=payload if payload is not None else {})
    mock_response.text = AsyncMock(return_value=text)
    return mock_response


# ==================== Safe Browsing ====================


def test_request_body_shape():
    """Test the fixed request body carries four threat types and one URL."""
    body = build_request_body("http://evil.com/x", client_id="cid", client_version="2.0")

    assert body["client"] == {"clientId": "cid", "clientVersion": "2.0"}
    info = body["threatInfo"]
    assert info["threatTypes"] == [
        "MALWARE",
        "SOCIAL_ENGINEERING",
        "POTENTIALLY_HARMFUL_APPLICATION",
        "UNWANTED_SOFTWARE",
    ]
    assert info["platformTypes"] == ["ANY_PLATFORM"]
    assert info["threatEntryTypes"] == ["URL"]
    assert info["threatEntries"] == [{"url": "http://evil.com/x"}]


@pytest.mark.asyncio
async def test_safe_browsing_match():
    """Test a non-empty match list means unsafe."""
    client = SafeBrowsingClient(api_key="key", endpoint="https://sb.example/find")
    payload = {"matches": [{"threatType": "MALWARE"}, {"threatType": "SOCIAL_ENGINEERING"}]}

    with patch("aiohttp.ClientSession.post") as mock_post:
        mock_post.return_value.__aenter__.return_value = make_response(payload=payload)

        result = await client.lookup("http://evil.com/")

        assert result.matched is True
        assert result.provider == "safebrowsing"
        assert result.threat_types == ("MALWARE", "SOCIAL_ENGINEERING")
        assert mock_post.call_args.kwargs["params"] == {"key": "key"}
        assert mock_post.call_args.args[0] == "https://sb.example/find"


@pytest.mark.asyncio
async def test_safe_browsing_no_match():
    """Test an empty response means no match."""
    client = SafeBrowsingClient(api_key="key")

    with patch("aiohttp.ClientSession.post") as mock_post:
        mock_post.return_value.__aenter__.return_value = make_response(payload={})

        result = await client.lookup("https://example.org/")

        assert result.matched is False
        assert mock_post.call_count == 1


@pytest.mark.asyncio
async def test_safe_browsing_server_error_is_not_a_miss():
    """Test a non-success status raises instead of reporting no match."""
    client = SafeBrowsingClient(api_key="key")

    with patch("aiohttp.ClientSession.post") as mock_post:
        mock_post.return_value.__aenter__.return_value = make_response(status=500, text="boom")

        with pytest.raises(RemoteLookupError) as exc_info:
            await client.lookup("https://example.org/")

        assert exc_info.value.context["status_code"] == 500
        assert mock_post.call_count == 1


@pytest.mark.parametrize("error", [ClientError("unreachable"), asyncio.TimeoutError()])
@pytest.mark.asyncio
async def test_safe_browsing_transport_failure(error):
    """Test transport errors and timeouts raise RemoteLookupError."""
    client = SafeBrowsingClient(api_key="key", timeout=0.5)

    with patch("aiohttp.ClientSession.post") as mock_post:
        mock_post.return_value.__aenter__.side_effect = error

        with pytest.raises(RemoteLookupError) as exc_info:
            await client.lookup("https://example.org/")

        assert exc_info.value.original_error is error


@pytest.mark.asyncio
async def test_safe_browsing_without_key():
    """Test an unconfigured client never issues a request."""
    client = SafeBrowsingClient(api_key="")

    with patch("aiohttp.ClientSession.post") as mock_post:
        with pytest.raises(RemoteLookupError):
            await client.lookup("https://example.org/")

        mock_post.assert_not_called()
    assert client.configured is False
    assert client.source == DecisionSource.SAFEBROWSING


# ==================== PhishTank ====================


@pytest.mark.asyncio
async def test_phishtank_verified_phish():
    """Test in_database plus valid means unsafe."""
    client = PhishTankClient(app_key="app", endpoint="https://pt.example/checkurl/")
    payload = {"results": {"in_database": True, "valid": True, "url": "http://phish.example/"}}

    with patch("aiohttp.ClientSession.post") as mock_post:
        mock_post.return_value.__aenter__.return_value = make_response(payload=payload)

        result = await client.lookup("http://phish.example/")

        assert result.matched is True
        assert result.provider == "phishtank"
        assert mock_post.call_args.kwargs["data"] == {
            "url": "http://phish.example/",
            "format": "json",
            "app_key": "app",
        }


@pytest.mark.parametrize(
    "results",
    [
        {"in_database": True, "valid": False},
        {"in_database": False},
        {},
    ],
)
@pytest.mark.asyncio
async def test_phishtank_not_verified(results):
    """Test unverified or unknown URLs are not matches."""
    client = PhishTankClient(app_key="app")

    with patch("aiohttp.ClientSession.post") as mock_post:
        mock_post.return_value.__aenter__.return_value = make_response(payload={"results": results})

        result = await client.lookup("http://example.org/")

        assert result.matched is False


@pytest.mark.asyncio
async def test_phishtank_error_status():
    """Test a non-success status raises RemoteLookupError."""
    client = PhishTankClient(app_key="app")

    with patch("aiohttp.ClientSession.post") as mock_post:
        mock_post.return_value.__aenter__.return_value = make_response(status=509)

        with pytest.raises(RemoteLookupError):
            await client.lookup("http://example.org/")


@pytest.mark.asyncio
async def test_shared_session_is_used():
    """Test an injected session is used instead of a private one."""
    session = MagicMock()
    session.post.return_value.__aenter__.return_value = make_response(payload={})
    client = SafeBrowsingClient(api_key="key", session=session)

    result = await client.lookup("https://example.org/")

    assert result.matched is False
    session.post.assert_called_once()
