"""Custom exceptions for the reputation engine."""

from typing import Optional, Dict, Any


class ReputationException(Exception):
    """Base exception for all reputation engine errors.

    Attributes:
        message: Error message
        context: Additional context about the error
        original_error: Original exception if this wraps another error
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        """Initialize exception with context.

        Args:
            message: Error message
            context: Additional context (e.g., source_name, host)
            original_error: Original exception if wrapping
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.original_error = original_error

    def __str__(self) -> str:
        """String representation with context."""
        base = self.message
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base = f"{base} ({ctx_str})"
        if self.original_error:
            base = f"{base} [caused by: {type(self.original_error).__name__}: {self.original_error}]"
        return base


class FetchError(ReputationException):
    """Raised when fetching a feed source fails.

    Common context fields:
        - source_name: Name of the source being fetched
        - url: URL that failed (remote sources)
        - path: File path that failed (local sources)
        - attempts: Retry attempts made
    """

    pass


class ParseError(ReputationException):
    """Raised when parsing feed content or a URL fails.

    Common context fields:
        - source_name: Name of the source
        - format: Format type (hosts, urls, blocklist)
    """

    pass


class ValidationError(ReputationException):
    """Raised when host validation fails in strict mode.

    Common context fields:
        - host: The invalid host
        - source: Source that produced it
    """

    pass


class RemoteLookupError(ReputationException):
    """Raised when a remote reputation lookup cannot produce an answer.

    Covers transport failures, timeouts and non-success responses. Callers
    treat it as "inconclusive", never as "safe".

    Common context fields:
        - provider: Remote provider name
        - status_code: HTTP status code (if a response arrived)
        - timeout: Configured timeout in seconds
    """

    pass


class CachePersistenceError(ReputationException):
    """Raised when the persisted host cache cannot be read or written.

    Common context fields:
        - path: Path of the cache file
        - operation: load or save
    """

    pass


class ConfigurationError(ReputationException):
    """Raised when configuration is invalid.

    Common context fields:
        - config_path: Path to config file
        - field: Invalid field name
    """

    pass
