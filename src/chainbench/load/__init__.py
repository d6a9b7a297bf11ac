"""
Load generation.
"""

from .generator import LoadGenerator, RunHandle, start_load
from .mix import OperationMix, TargetSelector

__all__ = [
    "LoadGenerator",
    "OperationMix",
    "RunHandle",
    "TargetSelector",
    "start_load",
]
