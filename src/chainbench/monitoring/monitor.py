"""
Resilient network monitor.

Polls a ProviderPool at a fixed interval, derives block-time samples from
consecutive block headers, and fails over to the next source whenever a poll
fails. A full sweep in which every source failed ends the run with an
exhausted report instead of an exception.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Optional

from ..models.config import MonitorConfig
from ..models.results import BlockSample, MonitoringReport
from ..models.runtime import CancellationToken, MonitorPhase, MonitorRunState
from ..sources.base import BlockInfo, DataSource
from ..validation import ConfigurationError
from .pool import ProviderPool
from .report import build_report

logger = logging.getLogger(__name__)


class PollOutcome(Enum):
    """Result of one poll sweep over the pool."""
    OK = "ok"
    RECOVERED = "recovered"
    EXHAUSTED = "exhausted"


class ResilientMonitor:
    """
    Periodic block-time monitor over a pool of redundant sources.

    A run is started with ``start()`` and ends when its duration elapses,
    when ``stop()`` is called, or when every source failed within one sweep.
    ``report()`` may be called at any time and never raises.
    """

    def __init__(
        self,
        pool: ProviderPool,
        config: Optional[MonitorConfig] = None,
        name: Optional[str] = None,
    ):
        self.pool = pool
        self.config = config or MonitorConfig()
        self.name = name or pool.name
        if self.config.error_backoff_seconds <= self.config.poll_interval_seconds:
            raise ConfigurationError(
                "Error backoff must be longer than the poll interval",
                field_name="monitor.error_backoff_seconds",
                value=self.config.error_backoff_seconds,
            )
        self.state = MonitorRunState()
        self._token: Optional[CancellationToken] = None
        self._running = False

    @property
    def phase(self) -> MonitorPhase:
        return self.state.phase

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self, duration_seconds: Optional[float] = None) -> MonitoringReport:
        """
        Run the monitor until the duration elapses, ``stop()`` is called, or
        the pool is exhausted.

        Args:
            duration_seconds: Run length; defaults to the configured duration

        Returns:
            The final MonitoringReport
        """
        if self._running:
            raise RuntimeError(f"Monitor for {self.name} is already running")

        duration = self.config.duration_seconds if duration_seconds is None else duration_seconds
        loop = asyncio.get_running_loop()
        deadline = loop.time() + max(duration, 0.0)

        self.state = MonitorRunState(started_at=time.time())
        token = self._token = CancellationToken()
        self._running = True
        logger.info(
            f"Starting monitor for {self.name} with {self.pool.size} source(s) for {duration}s"
        )

        self.state.transition(MonitorPhase.SELECTING_SOURCE)
        outcome: Optional[PollOutcome] = None
        try:
            while True:
                if outcome is not None:
                    delay = (
                        self.config.error_backoff_seconds
                        if outcome is PollOutcome.RECOVERED
                        else self.config.poll_interval_seconds
                    )
                    await token.sleep(min(delay, max(deadline - loop.time(), 0.0)))

                if token.cancelled or loop.time() >= deadline:
                    break

                outcome = await self._poll_with_failover()
                if outcome is PollOutcome.EXHAUSTED:
                    break
        finally:
            self._running = False
            self.state.finished_at = time.time()
            if not self.state.exhausted:
                self.state.transition(MonitorPhase.STOPPED)

        report = self.report()
        logger.info(
            f"Monitor for {self.name} finished: {report.sample_count} samples, "
            f"{report.connection_errors} connection errors, "
            f"reliability {report.reliability:.1f}%"
        )
        return report

    def stop(self) -> None:
        """Request the running loop to end at its next iteration boundary."""
        if self._token is not None and not self._token.cancelled:
            logger.info(f"Stopping monitor for {self.name}")
            self._token.cancel()

    def report(self) -> MonitoringReport:
        return build_report(self.name, self.state)

    async def _poll_with_failover(self) -> PollOutcome:
        """
        Poll the current source, failing over until one succeeds or the
        cursor returns to where this sweep began.
        """
        sweep_start = self.pool.index
        recovered = False

        while True:
            source = self.pool.current
            self.state.active_source = source.source_id
            self.state.total_polls += 1
            try:
                await self._poll_source(source)
            except Exception as e:
                self.state.connection_errors += 1
                self.state.transition(MonitorPhase.FAILING_OVER)
                logger.warning(f"{self.name}: source {source.source_id} failed: {e}")

                next_source = self.pool.advance()
                if self.pool.index == sweep_start:
                    self._exhaust()
                    return PollOutcome.EXHAUSTED
                logger.warning(f"{self.name}: failing over to {next_source.source_id}")
                recovered = True
                continue

            self.state.transition(MonitorPhase.POLLING)
            return PollOutcome.RECOVERED if recovered else PollOutcome.OK

    async def _poll_source(self, source: DataSource) -> None:
        height = await source.current_height()
        last_height = self.state.last_height
        if last_height is None:
            self.state.last_height = height
            logger.debug(f"{self.name}: baseline height {height} from {source.source_id}")
            return
        if height <= last_height:
            return

        block = await source.block_at(height)
        previous = await source.block_at(height - 1)
        self.state.last_height = height
        if self._append_sample(block, previous):
            await self._sample_unit_price(source)

    def _append_sample(self, block: BlockInfo, previous: BlockInfo) -> bool:
        last_sampled = self.state.last_sampled_block
        if last_sampled is not None and block.number <= last_sampled:
            logger.debug(
                f"{self.name}: ignoring block {block.number}, already sampled up to {last_sampled}"
            )
            return False

        self.state.samples.append(
            BlockSample(
                block_number=block.number,
                timestamp=block.timestamp,
                tx_count=block.tx_count,
                block_time=float(block.timestamp - previous.timestamp),
            )
        )
        return True

    async def _sample_unit_price(self, source: DataSource) -> None:
        try:
            price = await source.current_unit_price()
            if price is not None:
                self.state.unit_prices.append(int(price))
        except Exception as e:
            logger.warning(f"{self.name}: could not sample unit price from {source.source_id}: {e}")

    def _exhaust(self) -> None:
        self.state.exhausted = True
        self.state.error = f"All providers failed for {self.name}"
        self.state.transition(MonitorPhase.EXHAUSTED)
        logger.error(f"{self.name}: all {self.pool.size} source(s) failed within one sweep")
