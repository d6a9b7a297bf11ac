"""
Orchestration of benchmark sessions.
"""

from .builders import build_monitors, build_pools, build_targets
from .log_manager import configure_logging
from .session import BenchmarkSession, compare_persisted_runs, start_monitor
from .shared_state import SessionState

__all__ = [
    "BenchmarkSession",
    "SessionState",
    "build_monitors",
    "build_pools",
    "build_targets",
    "compare_persisted_runs",
    "configure_logging",
    "start_monitor",
]
