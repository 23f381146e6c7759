"""Monitoring package."""

from monitoring.metrics import PrometheusMetrics

__all__ = ["PrometheusMetrics"]
