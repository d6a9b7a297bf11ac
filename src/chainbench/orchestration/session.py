"""
Benchmark session orchestration.

A session drives one load run and one resilient monitor per network
concurrently, stops the monitors once the load has finished, and persists
the load snapshot and monitoring reports through a RunDataManager.
"""

import asyncio
import logging
import random
import time
from datetime import datetime
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from ..comparison.comparator import DirectionLike, compare_runs
from ..load.generator import LoadGenerator
from ..metrics.collector import MetricsCollector
from ..models.config import AppConfig, MonitorConfig, StorageConfig
from ..models.results import ComparisonReport, MonitoringReport
from ..monitoring.monitor import ResilientMonitor
from ..monitoring.pool import ProviderPool
from ..sources.base import Target
from ..storage.data_manager import RunDataManager
from .builders import build_monitors, build_targets
from .shared_state import SessionState

logger = logging.getLogger(__name__)


async def start_monitor(
    pool: ProviderPool,
    duration_seconds: Optional[float] = None,
    config: Optional[MonitorConfig] = None,
    name: Optional[str] = None,
) -> MonitoringReport:
    """
    Monitor ``pool`` for ``duration_seconds`` and return the final report.

    Never raises on source failures; check ``report.error``.
    """
    monitor = ResilientMonitor(pool, config=config, name=name)
    return await monitor.start(duration_seconds)


class BenchmarkSession:
    """
    One benchmark run: load generation plus per-network monitoring.

    Targets and monitors are built from the configuration unless given
    explicitly. Components built by the session are closed by ``aclose()``.
    """

    def __init__(
        self,
        config: AppConfig,
        targets: Optional[Sequence[Target]] = None,
        monitors: Optional[Sequence[ResilientMonitor]] = None,
        data_manager: Optional[RunDataManager] = None,
        run_name: Optional[str] = None,
        rng: Optional[random.Random] = None,
    ):
        self.config = config
        self.run_name = run_name or datetime.now().strftime("%Y%m%d_%H%M%S")

        self._owns_targets = targets is None
        self._owns_monitors = monitors is None
        self.targets: List[Target] = list(build_targets(config) if targets is None else targets)
        self.monitors: List[ResilientMonitor] = list(
            build_monitors(config) if monitors is None else monitors
        )
        self.data_manager = data_manager or RunDataManager(
            config.general.output_dir, storage_config=config.storage
        )

        self.state = SessionState(
            run_name=self.run_name, collector=MetricsCollector(label=self.run_name)
        )
        self.generator = LoadGenerator(
            self.targets, config=config.load, collector=self.state.collector, rng=rng
        )

    async def run(self, persist: bool = True) -> SessionState:
        """
        Run load and monitoring concurrently and optionally persist results.

        Monitors run until their configured duration elapses or the load
        finishes, whichever comes first.

        Returns:
            The session state with load statistics and monitoring reports
        """
        state = self.state
        state.started_at = time.time()
        logger.info(
            f">>> Starting benchmark session '{self.run_name}': {len(self.targets)} target(s), "
            f"{len(self.monitors)} monitor(s), load mode '{self.config.load.mode.value}'"
        )

        monitor_tasks = [
            asyncio.create_task(monitor.start(), name=f"monitor-{monitor.name}")
            for monitor in self.monitors
        ]
        # Monitors must be running before stop() can reach them.
        await asyncio.sleep(0)
        try:
            state.load_statistics = await self.generator.run()
        finally:
            for monitor in self.monitors:
                monitor.stop()
            reports = await asyncio.gather(*monitor_tasks)

        state.monitoring_reports = {report.source_group: report for report in reports}
        state.finished_at = time.time()

        for name in state.failed_monitors:
            logger.warning(f"Monitoring for {name} ended with error: {state.monitoring_reports[name].error}")

        if persist:
            self.persist()

        logger.info(f"<<< Finished benchmark session '{self.run_name}'")
        return state

    def persist(self) -> List[Path]:
        """Write the load snapshot and monitoring reports of this session."""
        state = self.state
        paths = [
            self.data_manager.save_metrics_snapshot(state.collector.export_snapshot(), self.run_name)
        ]
        paths.extend(
            self.data_manager.save_monitoring_reports(state.monitoring_reports.values(), self.run_name)
        )
        state.saved_paths.extend(paths)
        return paths

    def stop(self) -> None:
        """Stop the load at its next batch boundary; monitors follow."""
        self.generator.stop()

    async def aclose(self) -> None:
        if self._owns_targets:
            for target in self.targets:
                try:
                    await target.aclose()
                except Exception as e:
                    logger.warning(f"Error closing target {target.target_id}: {e}")
        if self._owns_monitors:
            for monitor in self.monitors:
                await monitor.pool.aclose()

    async def __aenter__(self) -> "BenchmarkSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


def compare_persisted_runs(
    output_dir: Path,
    storage_config: Optional[StorageConfig] = None,
    metric_directions: Optional[Mapping[str, DirectionLike]] = None,
    report_name: Optional[str] = "comparison",
) -> ComparisonReport:
    """
    Compare every snapshot persisted in ``output_dir``.

    The comparison report is written next to the snapshots unless
    ``report_name`` is None.
    """
    data_manager = RunDataManager(output_dir, storage_config=storage_config)
    snapshots = data_manager.load_snapshots()
    if not snapshots:
        logger.warning(f"No snapshots found in {output_dir}")

    report = compare_runs(snapshots, metric_directions)
    if report_name is not None:
        data_manager.save_comparison(report, report_name)
    return report
