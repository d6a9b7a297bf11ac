"""
Cross-run comparison of persisted snapshots.

Works purely on already-materialised snapshot documents: load snapshots as
produced by ``MetricsCollector.export_snapshot()`` and monitoring reports as
produced by ``MonitoringReport.to_dict()``.
"""

import logging
import statistics
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from ..models.results import NOT_APPLICABLE, ComparisonReport, MetricComparison

logger = logging.getLogger(__name__)


class MetricDirection(Enum):
    HIGHER_IS_BETTER = "higher"
    LOWER_IS_BETTER = "lower"


DEFAULT_METRIC_DIRECTIONS: Dict[str, MetricDirection] = {
    # load snapshots
    "success_rate": MetricDirection.HIGHER_IS_BETTER,
    "avg_cost_per_success": MetricDirection.LOWER_IS_BETTER,
    "avg_duration_ms": MetricDirection.LOWER_IS_BETTER,
    "estimated_throughput": MetricDirection.HIGHER_IS_BETTER,
    "avg_unit_price": MetricDirection.LOWER_IS_BETTER,
    # monitoring reports
    "reliability": MetricDirection.HIGHER_IS_BETTER,
    "block_avg_unit_price": MetricDirection.LOWER_IS_BETTER,
    "avg_block_time": MetricDirection.LOWER_IS_BETTER,
    "avg_tx_per_block": MetricDirection.HIGHER_IS_BETTER,
    "connection_errors": MetricDirection.LOWER_IS_BETTER,
}

_LOAD_METRICS = (
    "success_rate",
    "avg_cost_per_success",
    "avg_duration_ms",
    "estimated_throughput",
    "avg_unit_price",
)
# Report field -> comparison metric. The sampled network price is kept apart
# from the per-transaction price of load snapshots.
_MONITORING_METRICS = {
    "reliability": "reliability",
    "avg_block_time": "avg_block_time",
    "min_block_time": "min_block_time",
    "max_block_time": "max_block_time",
    "block_time_std_dev": "block_time_std_dev",
    "avg_tx_per_block": "avg_tx_per_block",
    "avg_unit_price": "block_avg_unit_price",
    "connection_errors": "connection_errors",
}

# Load metrics that are a 0 placeholder unless the named counter is positive.
_LOAD_METRIC_COUNTERS = {
    "avg_cost_per_success": "success_count",
    "avg_unit_price": "priced_count",
}

DirectionLike = Union[MetricDirection, bool, str]


def _normalize_direction(metric: str, direction: DirectionLike) -> MetricDirection:
    if isinstance(direction, MetricDirection):
        return direction
    if isinstance(direction, bool):
        return MetricDirection.HIGHER_IS_BETTER if direction else MetricDirection.LOWER_IS_BETTER
    try:
        return MetricDirection(str(direction).lower())
    except ValueError:
        raise ValueError(
            f"Invalid direction for metric '{metric}': {direction!r} (expected 'higher' or 'lower')"
        ) from None


def _as_document(snapshot: Any) -> Mapping[str, Any]:
    if hasattr(snapshot, "to_dict"):
        return snapshot.to_dict()
    return snapshot


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _extract_source_metrics(document: Mapping[str, Any]) -> Dict[str, Dict[str, float]]:
    """
    Map source id to metric values for one snapshot document.

    Averages that are undefined for a source (no successes, no reported
    price) are left out instead of being compared as 0.
    """
    extracted: Dict[str, Dict[str, float]] = {}

    if document.get("kind") == "monitoring":
        if not document.get("sample_count"):
            logger.warning(
                f"Skipping monitoring report for {document.get('source_group')} without samples"
            )
            return extracted
        values = {}
        for field_name, metric in _MONITORING_METRICS.items():
            number = _number(document.get(field_name))
            if number is not None:
                values[metric] = number
        # 0 means no price was sampled during the run
        if not values.get("block_avg_unit_price"):
            values.pop("block_avg_unit_price", None)
        extracted[str(document.get("source_group"))] = values
        return extracted

    for source_id, stats in (document.get("per_source") or {}).items():
        values = {}
        for metric in _LOAD_METRICS:
            counter = _LOAD_METRIC_COUNTERS.get(metric)
            if counter is not None and not stats.get(counter):
                continue
            number = _number(stats.get(metric))
            if number is not None:
                values[metric] = number
        extracted[str(source_id)] = values
    return extracted


def _pick_winner(values: Mapping[str, float], direction: MetricDirection) -> str:
    if len(values) < 2:
        return NOT_APPLICABLE
    if direction is MetricDirection.HIGHER_IS_BETTER:
        best = max(values.values())
    else:
        best = min(values.values())
    leaders = [source for source, value in values.items() if value == best]
    return leaders[0] if len(leaders) == 1 else NOT_APPLICABLE


def compare_runs(
    snapshots: Sequence[Any],
    metric_directions: Optional[Mapping[str, DirectionLike]] = None,
) -> ComparisonReport:
    """
    Compute the best source per metric across persisted snapshots.

    Values reported for the same source by several snapshots are averaged.
    A metric with fewer than two sources, or with a tie at the best value,
    has the winner ``NOT_APPLICABLE``.

    Args:
        snapshots: Load snapshots and/or monitoring report documents
        metric_directions: Metric name to direction; entries override the
            defaults. Booleans mean "higher is better".

    Returns:
        ComparisonReport with per-metric winners, cost-efficiency scores and
        a reliability breakdown built from the load snapshots
    """
    directions = dict(DEFAULT_METRIC_DIRECTIONS)
    for metric, direction in (metric_directions or {}).items():
        directions[metric] = _normalize_direction(metric, direction)

    collected: Dict[str, Dict[str, List[float]]] = {}
    success_rates: Dict[str, List[float]] = {}
    for snapshot in snapshots:
        document = _as_document(snapshot)
        for source, values in _extract_source_metrics(document).items():
            per_metric = collected.setdefault(source, {})
            for metric, value in values.items():
                per_metric.setdefault(metric, []).append(value)
            if document.get("kind") != "monitoring" and "success_rate" in values:
                success_rates.setdefault(source, []).append(values["success_rate"])

    averaged = {
        source: {metric: statistics.fmean(vals) for metric, vals in metrics.items()}
        for source, metrics in collected.items()
    }
    sources = sorted(averaged)

    metrics: Dict[str, MetricComparison] = {}
    for metric, direction in directions.items():
        values = {
            source: averaged[source][metric] for source in sources if metric in averaged[source]
        }
        if not values:
            continue
        metrics[metric] = MetricComparison(
            metric=metric,
            higher_is_better=direction is MetricDirection.HIGHER_IS_BETTER,
            values=values,
            winner=_pick_winner(values, direction),
        )

    cost_efficiency = {}
    for source in sources:
        avg_cost = averaged[source].get("avg_cost_per_success")
        if avg_cost is None:
            continue
        cost_efficiency[source] = {
            "avg_cost_per_success": avg_cost,
            "cost_efficiency_score": 1_000_000 / avg_cost if avg_cost > 0 else 0.0,
        }

    reliability = {
        source: {"success_rates": rates, "overall_score": statistics.fmean(rates)}
        for source, rates in sorted(success_rates.items())
    }

    logger.info(
        f"Compared {len(snapshots)} snapshot(s) across {len(sources)} source(s) on {len(metrics)} metric(s)"
    )
    return ComparisonReport(
        metrics=metrics,
        sources=sources,
        snapshot_count=len(snapshots),
        cost_efficiency=cost_efficiency,
        reliability=reliability,
    )
