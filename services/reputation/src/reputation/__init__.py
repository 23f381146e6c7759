"""URL and host reputation decision engine."""

__version__ = "1.0.0"
