"""Tests for feed fetchers."""

import pytest
from unittest.mock import AsyncMock, patch, MagicMock
from aiohttp import ClientError, ServerTimeoutError
from common import FetchError
from reputation.fetchers import FileFetcher, HTTPFetcher


def make_response(text: str, status: int = 200) -> MagicMock:
    mock_response = MagicMock()
    mock_response.status = status
    mock_response.headers.get.return_value = "text/plain"
    mock_response.text = AsyncMock(return_value=text)
    mock_response.raise_for_status = MagicMock()
    return mock_response


@pytest.mark.asyncio
async def test_http_fetcher_success():
    """Test successful feed download."""
    fetcher = HTTPFetcher(
        source_name="urlhaus",
        url="https://example.com/text_online/",
        timeout=30,
        retries=3,
    )

    content = "http://evil.com/a\nhttp://bad.example.net/payload.exe"
    with patch("aiohttp.ClientSession.get") as mock_get:
        mock_get.return_value.__aenter__.return_value = make_response(content)

        result = await fetcher.fetch()

        assert result["content"] == content
        assert result["metadata"]["http_status"] == 200
        assert result["metadata"]["content_type"] == "text/plain"
        assert result["metadata"]["content_length"] == len(content)
        assert result["metadata"]["source_url"] == "https://example.com/text_online/"


@pytest.mark.asyncio
async def test_http_fetcher_sends_user_agent():
    """Test that downloads identify the client."""
    fetcher = HTTPFetcher(source_name="urlhaus", url="https://example.com/feed")

    with patch("aiohttp.ClientSession.get") as mock_get:
        mock_get.return_value.__aenter__.return_value = make_response("evil.com")

        await fetcher.fetch()

        headers = mock_get.call_args.kwargs["headers"]
        assert headers["User-Agent"].startswith("reputation-engine/")


@pytest.mark.asyncio
async def test_http_fetcher_retry_on_failure():
    """Test retry after transient network errors."""
    fetcher = HTTPFetcher(
        source_name="urlhaus",
        url="https://example.com/feed",
        timeout=30,
        retries=3,
        backoff=0.01,
    )

    with patch("aiohttp.ClientSession.get") as mock_get:
        mock_get.return_value.__aenter__.side_effect = [
            ClientError("Network error"),
            ClientError("Network error"),
            make_response("success"),
        ]

        result = await fetcher.fetch()

        assert result["content"] == "success"
        assert mock_get.call_count == 3


@pytest.mark.asyncio
async def test_http_fetcher_max_retries_exceeded():
    """Test FetchError once every attempt failed."""
    fetcher = HTTPFetcher(
        source_name="urlhaus",
        url="https://example.com/feed",
        retries=3,
        backoff=0.01,
    )

    with patch("aiohttp.ClientSession.get") as mock_get:
        mock_get.return_value.__aenter__.side_effect = ClientError("Network error")

        with pytest.raises(FetchError) as exc_info:
            await fetcher.fetch()

        assert "Failed to fetch" in str(exc_info.value)
        assert exc_info.value.context["attempts"] == 3
        assert mock_get.call_count == 3


@pytest.mark.asyncio
async def test_http_fetcher_timeout():
    """Test timeout handling."""
    fetcher = HTTPFetcher(
        source_name="urlhaus",
        url="https://example.com/feed",
        retries=2,
        backoff=0.01,
    )

    with patch("aiohttp.ClientSession.get") as mock_get:
        mock_get.return_value.__aenter__.side_effect = ServerTimeoutError("Timeout")

        with pytest.raises(FetchError):
            await fetcher.fetch()

        assert mock_get.call_count == 2


@pytest.mark.asyncio
async def test_http_fetcher_http_error():
    """Test non-success status handling."""
    fetcher = HTTPFetcher(
        source_name="urlhaus",
        url="https://example.com/feed",
        retries=1,
        backoff=0.01,
    )

    mock_response = make_response("", status=503)
    mock_response.raise_for_status.side_effect = ClientError("503 Service Unavailable")

    with patch("aiohttp.ClientSession.get") as mock_get:
        mock_get.return_value.__aenter__.return_value = mock_response

        with pytest.raises(FetchError):
            await fetcher.fetch()


def test_http_fetcher_default_values():
    """Test HTTP fetcher default values."""
    fetcher = HTTPFetcher(source_name="test", url="https://example.com")

    assert fetcher.timeout == 30
    assert fetcher.retries == 3
    assert fetcher.backoff == 5.0
    assert fetcher.location == "https://example.com"


@pytest.mark.asyncio
async def test_file_fetcher_reads_file(tmp_path):
    """Test reading a local host list."""
    path = tmp_path / "hosts.txt"
    path.write_text("evil.com\nbad.example.net\n", encoding="utf-8")

    result = await FileFetcher(source_name="local", path=str(path)).fetch()

    assert result["content"] == "evil.com\nbad.example.net\n"
    assert result["metadata"]["source_path"] == str(path)
    assert result["metadata"]["content_length"] == len(result["content"])
    # Never written back
    assert path.read_text(encoding="utf-8") == "evil.com\nbad.example.net\n"


@pytest.mark.asyncio
async def test_file_fetcher_missing_file(tmp_path):
    """Test FetchError for a missing file."""
    fetcher = FileFetcher(source_name="local", path=str(tmp_path / "missing.txt"))

    with pytest.raises(FetchError) as exc_info:
        await fetcher.fetch()

    assert exc_info.value.context["source_name"] == "local"
    assert isinstance(exc_info.value.original_error, OSError)
