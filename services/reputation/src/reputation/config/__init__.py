"""Engine configuration."""

from .settings import ReputationSettings, load_settings

__all__ = ["ReputationSettings", "load_settings"]
