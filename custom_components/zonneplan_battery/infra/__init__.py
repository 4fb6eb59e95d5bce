"""Infrastructure module - HA integration utilities.

Contains:
- MetricsStore: durable slot for the last received measurement
"""

from .metrics_store import MetricsStore

__all__ = ["MetricsStore"]
