"""
Runtime data models.

This module contains the mutable state records used while a run is in
progress, kept separate from the immutable configuration objects so that
every state transition happens through an explicit record.
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .results import BlockSample


class MonitorPhase(Enum):
    """Lifecycle phases of a resilient monitor."""
    IDLE = "idle"
    SELECTING_SOURCE = "selecting_source"
    POLLING = "polling"
    FAILING_OVER = "failing_over"
    STOPPED = "stopped"
    EXHAUSTED = "exhausted"


class CancellationToken:
    """
    Cooperative cancellation flag shared between a run loop and its caller.

    The loop checks ``cancelled`` at iteration boundaries and sleeps through
    ``sleep()``, which returns early once ``cancel()`` has been called.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def sleep(self, seconds: float) -> bool:
        """
        Sleep for up to ``seconds``, waking early on cancellation.

        Returns:
            True if the token was cancelled
        """
        if seconds > 0 and not self._event.is_set():
            try:
                await asyncio.wait_for(self._event.wait(), timeout=seconds)
            except asyncio.TimeoutError:
                pass
        return self._event.is_set()


@dataclass
class MonitorRunState:
    """
    Mutable state of one monitoring run.

    ``samples`` only ever grows in strictly increasing block-number order.
    """

    phase: MonitorPhase = MonitorPhase.IDLE
    history: List[Tuple[str, float]] = field(default_factory=list)
    samples: List[BlockSample] = field(default_factory=list)
    unit_prices: List[int] = field(default_factory=list)
    connection_errors: int = 0
    total_polls: int = 0
    last_height: Optional[int] = None
    active_source: Optional[str] = None
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    exhausted: bool = False
    error: Optional[str] = None

    def transition(self, phase: MonitorPhase) -> None:
        """Move to ``phase`` and record the transition."""
        if phase is self.phase:
            return
        self.phase = phase
        self.history.append((phase.value, time.time()))

    @property
    def last_sampled_block(self) -> Optional[int]:
        return self.samples[-1].block_number if self.samples else None


@dataclass
class LoadStatistics:
    """Summary of one load generator run."""

    issued: int
    batches: int
    started_at: float
    finished_at: float

    @property
    def duration_s(self) -> float:
        return max(self.finished_at - self.started_at, 0.0)

    @property
    def throughput_per_second(self) -> float:
        if self.duration_s == 0:
            return 0.0
        return self.issued / self.duration_s
