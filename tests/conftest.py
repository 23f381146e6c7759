"""Pytest configuration and fixtures for integration tests."""

from fixtures.mock_servers import (
    mock_broken_feed_server,
    mock_phishtank_server,
    mock_safe_browsing_server,
    mock_unreliable_feed_server,
    mock_urlhaus_server,
)

from fixtures.sample_data import (
    sample_host_list_content,
    sample_host_list_file,
    sample_malicious_urls,
    sample_phish_urls,
    sample_urlhaus_content,
)

__all__ = [
    # Mock server fixtures
    "mock_broken_feed_server",
    "mock_phishtank_server",
    "mock_safe_browsing_server",
    "mock_unreliable_feed_server",
    "mock_urlhaus_server",
    # Sample data fixtures
    "sample_host_list_content",
    "sample_host_list_file",
    "sample_malicious_urls",
    "sample_phish_urls",
    "sample_urlhaus_content",
]
