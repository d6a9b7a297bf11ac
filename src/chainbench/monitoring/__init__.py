"""
Network monitoring with provider failover.
"""

from .monitor import PollOutcome, ResilientMonitor
from .pool import ProviderPool
from .report import NO_DATA_ERROR, build_report

__all__ = [
    "NO_DATA_ERROR",
    "PollOutcome",
    "ProviderPool",
    "ResilientMonitor",
    "build_report",
]
