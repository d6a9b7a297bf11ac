"""
Concurrent load generation against one or more targets.

Every issued operation produces exactly one Observation in the collector,
whatever its outcome. Operations run concurrently inside a batch and each
batch is fully joined before the generator moves on, so the number of
in-flight operations never exceeds one batch.
"""

import asyncio
import logging
import random
import time
from typing import Iterable, List, Optional, Sequence, Tuple

from ..metrics.collector import MetricsCollector
from ..models.config import LoadConfig, LoadMode
from ..models.runtime import CancellationToken, LoadStatistics
from ..sources.base import Target
from ..validation import ConfigurationError
from .mix import OperationMix, TargetSelector

logger = logging.getLogger(__name__)

Assignment = Tuple[Target, str]


class LoadGenerator:
    """
    Drives batches of operations and routes every outcome to a collector.

    Three drive modes are available: ``run_progressive`` (ascending
    concurrency levels), ``run_sustained`` (fixed-size batches at a fixed
    cadence until a duration elapses) and ``run_batched`` (a fixed number of
    operations per target). ``run()`` dispatches on the configured mode.
    Stop requests and duration checks are only honoured at batch boundaries.
    """

    def __init__(
        self,
        targets: Sequence[Target],
        config: Optional[LoadConfig] = None,
        collector: Optional[MetricsCollector] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Args:
            targets: Targets to drive; at least one is required
            config: Load configuration
            collector: Sink for observations; a new one is created if omitted
            rng: Random source for operation and target draws

        Raises:
            ConfigurationError: If no targets are given or the operation mix
                has no positive weight
        """
        if not targets:
            raise ConfigurationError("At least one load target is required", field_name="targets")

        self.targets: List[Target] = list(targets)
        self.config = config or LoadConfig()
        self.collector = collector if collector is not None else MetricsCollector()
        self._rng = rng or random.Random(self.config.seed)
        self.mix = OperationMix(self.config.operation_mix, rng=self._rng)
        self.selector = TargetSelector(self.targets, self.config.target_selection, rng=self._rng)

        self._token = CancellationToken()
        self._issued = 0
        self._batches = 0
        self._last_progress_log = 0.0

    @property
    def issued(self) -> int:
        return self._issued

    @property
    def stopped(self) -> bool:
        return self._token.cancelled

    def stop(self) -> None:
        """Request the run to end at the next batch boundary."""
        if not self._token.cancelled:
            logger.info("Stopping load generator")
            self._token.cancel()

    async def run(self) -> LoadStatistics:
        mode = self.config.mode
        if mode is LoadMode.PROGRESSIVE:
            return await self.run_progressive()
        if mode is LoadMode.BATCHED:
            return await self.run_batched()
        return await self.run_sustained()

    async def run_progressive(self, levels: Optional[Iterable[int]] = None) -> LoadStatistics:
        """
        Issue ``level`` concurrent operations against each target, for each
        concurrency level in ascending order.
        """
        levels = list(self.config.concurrency_levels if levels is None else levels)
        started_at = time.time()
        started = time.monotonic()
        logger.info(f"Starting progressive load over levels {levels} on {len(self.targets)} target(s)")

        for level in levels:
            if self._token.cancelled or self._duration_elapsed(started):
                break
            assignments = [
                (target, self.mix.choose()) for target in self.targets for _ in range(level)
            ]
            await self._run_batch(assignments, limit=len(assignments))
            logger.info(f"Concurrency level {level} settled ({len(assignments)} operations)")

        return self._finish(started_at)

    async def run_sustained(self, duration_ms: Optional[int] = None) -> LoadStatistics:
        """
        Issue fixed-size batches every ``batch_interval_ms`` until the
        duration elapses.

        Raises:
            ConfigurationError: If no duration is configured
        """
        duration_ms = self.config.total_duration_ms if duration_ms is None else duration_ms
        if duration_ms is None:
            raise ConfigurationError(
                "Sustained load requires a total duration",
                field_name="load.total_duration_ms",
            )

        started_at = time.time()
        deadline = time.monotonic() + duration_ms / 1000
        logger.info(
            f"Starting sustained load for {duration_ms} ms: batch size {self.config.batch_size}, "
            f"interval {self.config.batch_interval_ms} ms"
        )

        while not self._token.cancelled and time.monotonic() < deadline:
            targets = self.selector.for_batch(self.config.batch_size)
            await self._run_batch([(target, self.mix.choose()) for target in targets])
            self._log_progress(started_at)

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            await self._token.sleep(min(self.config.batch_interval_ms / 1000, remaining))

        return self._finish(started_at)

    async def run_batched(
        self,
        total_operations: Optional[int] = None,
        batch_size: Optional[int] = None,
        operation_kind: Optional[str] = None,
    ) -> LoadStatistics:
        """
        Issue ``total_operations`` operations per target in consecutive
        batches of ``batch_size``.

        Args:
            total_operations: Operations per target
            batch_size: Operations per target in each batch; 1 runs them
                sequentially
            operation_kind: Fixed operation kind; drawn from the mix if None
        """
        total = self.config.total_operations if total_operations is None else total_operations
        size = self.config.batch_size if batch_size is None else batch_size
        if size < 1:
            raise ConfigurationError("Batch size must be at least 1", field_name="load.batch_size", value=size)

        started_at = time.time()
        logger.info(f"Starting batched load: {total} operation(s) per target in batches of {size}")

        sent = 0
        while sent < total and not self._token.cancelled:
            count = min(size, total - sent)
            assignments = [
                (target, operation_kind or self.mix.choose())
                for target in self.targets
                for _ in range(count)
            ]
            await self._run_batch(assignments)
            sent += count
            self._log_progress(started_at)

            if sent < total:
                await self._token.sleep(self.config.batch_interval_ms / 1000)

        return self._finish(started_at)

    async def _run_batch(self, assignments: List[Assignment], limit: Optional[int] = None) -> None:
        """Run one batch and wait until every operation in it has settled."""
        semaphore = asyncio.Semaphore(max(limit or self.config.concurrency, 1))
        self._issued += len(assignments)
        self._batches += 1
        await asyncio.gather(*(self._execute(target, kind, semaphore) for target, kind in assignments))

    async def _execute(self, target: Target, kind: str, semaphore: asyncio.Semaphore) -> None:
        """Run one operation and record exactly one observation for it."""
        started: Optional[float] = None

        def elapsed_ms() -> float:
            return 0.0 if started is None else (time.perf_counter() - started) * 1000

        try:
            async with semaphore:
                started = time.perf_counter()
                result = await asyncio.wait_for(
                    target.execute(kind), timeout=self.config.operation_timeout_seconds
                )
        except asyncio.CancelledError:
            self.collector.record(kind, target.target_id, 0, elapsed_ms(), False, error="cancelled")
            raise
        except asyncio.TimeoutError as e:
            message = str(e) or f"Operation timed out after {self.config.operation_timeout_seconds}s"
            logger.debug(f"{kind} on {target.target_id} failed: {message}")
            self.collector.record(kind, target.target_id, 0, elapsed_ms(), False, error=message)
            return
        except Exception as e:
            logger.debug(f"{kind} on {target.target_id} failed: {e}")
            self.collector.record(kind, target.target_id, 0, elapsed_ms(), False, error=e)
            return

        if not result.success:
            logger.debug(f"{kind} on {target.target_id} rejected: {result.error}")
        self.collector.record(
            kind,
            target.target_id,
            result.cost,
            elapsed_ms(),
            result.success,
            error=None if result.success else (result.error or "Operation failed"),
            unit_price=result.unit_price,
            sequence_id=result.sequence_id,
        )

    def _duration_elapsed(self, started: float) -> bool:
        """``started`` is a ``time.monotonic()`` reading."""
        if self.config.total_duration_ms is None:
            return False
        return (time.monotonic() - started) * 1000 >= self.config.total_duration_ms

    def _log_progress(self, started_at: float) -> None:
        now = time.monotonic()
        if now - self._last_progress_log < self.config.progress_log_interval_seconds:
            return
        self._last_progress_log = now
        logger.info(
            f"Load progress: {self._issued} operation(s) in {self._batches} batch(es), "
            f"{time.time() - started_at:.0f}s elapsed"
        )

    def _finish(self, started_at: float) -> LoadStatistics:
        statistics = LoadStatistics(
            issued=self._issued,
            batches=self._batches,
            started_at=started_at,
            finished_at=time.time(),
        )
        logger.info(
            f"Load finished: {statistics.issued} operation(s) in {statistics.batches} batch(es), "
            f"{statistics.throughput_per_second:.2f} ops/s"
        )
        return statistics


class RunHandle:
    """Handle on a load run executing as a background task."""

    def __init__(self, generator: LoadGenerator, task: "asyncio.Task[LoadStatistics]"):
        self.generator = generator
        self._task = task

    @property
    def collector(self) -> MetricsCollector:
        return self.generator.collector

    def stop(self) -> None:
        self.generator.stop()

    def done(self) -> bool:
        return self._task.done()

    async def wait(self) -> LoadStatistics:
        return await self._task


def start_load(
    config: LoadConfig,
    targets: Sequence[Target],
    collector: Optional[MetricsCollector] = None,
    rng: Optional[random.Random] = None,
) -> RunHandle:
    """
    Start a load run in the background on the running event loop.

    Raises:
        ConfigurationError: If the generator cannot be constructed
    """
    generator = LoadGenerator(targets, config=config, collector=collector, rng=rng)
    task = asyncio.create_task(generator.run(), name="chainbench-load")
    return RunHandle(generator, task)
