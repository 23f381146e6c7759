"""Fetchers package."""

from .base_fetcher import BaseFetcher
from .file_fetcher import FileFetcher
from .http_fetcher import HTTPFetcher

__all__ = ["BaseFetcher", "FileFetcher", "HTTPFetcher"]
