"""Common utilities package."""

from common.logging import setup_logging
from common.exceptions import (
    ReputationException,
    FetchError,
    ParseError,
    ValidationError,
    RemoteLookupError,
    CachePersistenceError,
    ConfigurationError,
)
from common.utils import get_env, parse_bool
from common import constants

__all__ = [
    "setup_logging",
    "ReputationException",
    "FetchError",
    "ParseError",
    "ValidationError",
    "RemoteLookupError",
    "CachePersistenceError",
    "ConfigurationError",
    "get_env",
    "parse_bool",
    "constants",
]
