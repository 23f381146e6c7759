"""Host matching package."""

from .host_matcher import HostMatcher

__all__ = ["HostMatcher"]
