"""Decision pipeline."""

from .allowlist import AllowList
from .decision_engine import DecisionEngine, build_remote_clients
from .events import emit_decision_event

__all__ = ["AllowList", "DecisionEngine", "build_remote_clients", "emit_decision_event"]
