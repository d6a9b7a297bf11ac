"""
Reduction of monitor state into a MonitoringReport.
"""

import statistics

from ..models.results import MonitoringReport
from ..models.runtime import MonitorRunState

NO_DATA_ERROR = "No data collected"


def _clamp_percentage(value: float) -> float:
    return min(max(value, 0.0), 100.0)


def build_report(source_group: str, state: MonitorRunState) -> MonitoringReport:
    """
    Summarise the samples and error counters of one monitoring run.

    This is a pure function of ``state``: calling it repeatedly yields equal
    reports. An exhausted run reports zero samples and its fatal error.

    Args:
        source_group: Name of the monitored network or source group
        state: Accumulated run state

    Returns:
        MonitoringReport snapshot
    """
    common = dict(
        source_group=source_group,
        connection_errors=state.connection_errors,
        total_polls=state.total_polls,
        exhausted=state.exhausted,
        active_source=state.active_source,
        final_phase=state.phase.value,
        started_at=state.started_at,
        finished_at=state.finished_at,
    )

    samples = [] if state.exhausted else list(state.samples)
    if not samples:
        return MonitoringReport(
            sample_count=0,
            avg_block_time=0.0,
            min_block_time=0.0,
            max_block_time=0.0,
            block_time_std_dev=0.0,
            avg_tx_per_block=0.0,
            avg_unit_price=0.0,
            reliability=0.0,
            error=state.error or NO_DATA_ERROR,
            samples=[],
            **common,
        )

    block_times = [sample.block_time for sample in samples]
    tx_counts = [sample.tx_count for sample in samples]
    sample_count = len(samples)
    reliability = sample_count / (sample_count + state.connection_errors) * 100

    return MonitoringReport(
        sample_count=sample_count,
        avg_block_time=statistics.fmean(block_times),
        min_block_time=min(block_times),
        max_block_time=max(block_times),
        block_time_std_dev=statistics.pstdev(block_times),
        avg_tx_per_block=statistics.fmean(tx_counts),
        avg_unit_price=statistics.fmean(state.unit_prices) if state.unit_prices else 0.0,
        reliability=_clamp_percentage(reliability),
        error=state.error,
        samples=samples,
        **common,
    )
