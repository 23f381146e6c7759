"""Heuristic classification package."""

from .classifier import (
    BRAND_TOKENS,
    REASON_BRAND_IMPERSONATION,
    REASON_HOMOGRAPH,
    REASON_IP_HOST,
    REASON_LOCAL_BLOCKLIST,
    REASON_LONG_HOSTNAME,
    REASON_SUSPICIOUS_TLD,
    SUSPICIOUS_TLDS,
    HeuristicClassifier,
    HeuristicResult,
    is_dotted_quad,
)
from .content_labels import ADULT_LABEL, detect_adult_content

__all__ = [
    "ADULT_LABEL",
    "BRAND_TOKENS",
    "REASON_BRAND_IMPERSONATION",
    "REASON_HOMOGRAPH",
    "REASON_IP_HOST",
    "REASON_LOCAL_BLOCKLIST",
    "REASON_LONG_HOSTNAME",
    "REASON_SUSPICIOUS_TLD",
    "SUSPICIOUS_TLDS",
    "HeuristicClassifier",
    "HeuristicResult",
    "detect_adult_content",
    "is_dotted_quad",
]
