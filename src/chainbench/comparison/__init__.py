"""
Cross-run comparison.
"""

from .comparator import DEFAULT_METRIC_DIRECTIONS, MetricDirection, compare_runs

__all__ = ["DEFAULT_METRIC_DIRECTIONS", "MetricDirection", "compare_runs"]
