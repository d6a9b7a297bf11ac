"""
Metrics collection and reduction.
"""

from .collector import SNAPSHOT_SCHEMA, MetricsCollector

__all__ = ["MetricsCollector", "SNAPSHOT_SCHEMA"]
