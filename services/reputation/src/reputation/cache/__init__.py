"""Decision cache package."""

from .decision_cache import DecisionCache
from .persistence import HostCachePersister

__all__ = ["DecisionCache", "HostCachePersister"]
