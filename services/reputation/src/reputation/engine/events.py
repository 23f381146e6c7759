"""Per-decision log records."""

from typing import Optional

import structlog

from schemas import DecisionEvent, DecisionSource

decision_logger = structlog.get_logger("reputation.decisions")


def emit_decision_event(
    check: str,
    host: Optional[str],
    blocked: bool,
    source: DecisionSource,
    reason: Optional[str] = None,
    cached: bool = False,
    correlation_id: Optional[str] = None,
) -> DecisionEvent:
    """Log one decision. Only the host is recorded, never the full URL."""
    event = DecisionEvent(
        correlation_id=correlation_id,
        check=check,
        host=host,
        blocked=blocked,
        reason=reason,
        source=source,
        cached=cached,
    )
    decision_logger.info(
        "decision",
        decision_at=event.timestamp.isoformat(),
        correlation_id=event.correlation_id,
        check=event.check,
        host=event.host,
        blocked=event.blocked,
        reason=event.reason,
        source=str(event.source),
        cached=event.cached,
    )
    return event
