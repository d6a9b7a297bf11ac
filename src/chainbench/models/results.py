"""
Result data models.

This module defines the records produced by the measurement core:

- Observation: one immutable outcome of a single operation
- OperationStats / SourceStats: reductions of observations per source and
  per operation kind
- BlockSample / MonitoringReport: inter-block timing measurements and the
  terminal report of one monitoring run
- MetricComparison / ComparisonReport: cross-run winners per metric

All reports expose ``to_dict()`` returning JSON-compatible structures for
the storage layer.
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Returned instead of a winner when a comparison has no meaningful answer.
NOT_APPLICABLE = "N/A"


@dataclass(frozen=True)
class Observation:
    """One immutable record of a single operation's outcome."""

    timestamp: float
    operation: str
    source_id: str
    cost: int
    duration_ms: float
    success: bool
    error_message: Optional[str] = None
    unit_price: Optional[int] = None
    sequence_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass
class OperationStats:
    """Counters for one operation kind within one source."""

    count: int = 0
    success_count: int = 0
    failure_count: int = 0
    total_cost: int = 0
    total_duration_ms: float = 0.0

    @property
    def success_rate(self) -> float:
        if self.count == 0:
            return 0.0
        return self.success_count / self.count * 100

    @property
    def avg_cost(self) -> float:
        if self.count == 0:
            return 0.0
        return self.total_cost / self.count

    @property
    def avg_duration_ms(self) -> float:
        if self.count == 0:
            return 0.0
        return self.total_duration_ms / self.count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "total_cost": self.total_cost,
            "total_duration_ms": self.total_duration_ms,
            "success_rate": self.success_rate,
            "avg_cost": self.avg_cost,
            "avg_duration_ms": self.avg_duration_ms,
        }


@dataclass
class SourceStats:
    """
    Statistics for one source, recomputed from observations on every call.

    The unit price mean is derived from its own (sum, count) pair over the
    successful observations that reported a price, never from the success
    count.
    """

    source_id: str
    total_count: int = 0
    success_count: int = 0
    failure_count: int = 0
    total_cost: int = 0
    total_duration_ms: float = 0.0
    price_sum: int = 0
    priced_count: int = 0
    operations: Dict[str, OperationStats] = field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        if self.total_count == 0:
            return 0.0
        return self.success_count / self.total_count * 100

    @property
    def avg_cost_per_success(self) -> float:
        if self.success_count == 0:
            return 0.0
        return self.total_cost / self.success_count

    @property
    def avg_duration_ms(self) -> float:
        if self.total_count == 0:
            return 0.0
        return self.total_duration_ms / self.total_count

    @property
    def estimated_throughput(self) -> float:
        """Operations per second of accumulated operation time."""
        if self.total_count == 0 or self.total_duration_ms <= 0:
            return 0.0
        return self.total_count / (self.total_duration_ms / 1000)

    @property
    def avg_unit_price(self) -> float:
        if self.priced_count == 0:
            return 0.0
        return self.price_sum / self.priced_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_id": self.source_id,
            "total_count": self.total_count,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "total_cost": self.total_cost,
            "total_duration_ms": self.total_duration_ms,
            "priced_count": self.priced_count,
            "success_rate": self.success_rate,
            "avg_cost_per_success": self.avg_cost_per_success,
            "avg_duration_ms": self.avg_duration_ms,
            "estimated_throughput": self.estimated_throughput,
            "avg_unit_price": self.avg_unit_price,
            "operations": {
                name: stats.to_dict() for name, stats in self.operations.items()
            },
        }


@dataclass(frozen=True)
class BlockSample:
    """
    One inter-block timing measurement derived from two consecutive blocks.
    """

    block_number: int
    timestamp: int
    tx_count: int
    # timestamp(n) - timestamp(n-1), in seconds.
    block_time: float

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass(frozen=True)
class MonitoringReport:
    """
    Terminal report of one monitoring run.

    Callers must check ``error`` (and ``exhausted``) rather than expect an
    exception: pool exhaustion is reported here, never raised.
    """

    source_group: str
    sample_count: int
    avg_block_time: float
    min_block_time: float
    max_block_time: float
    block_time_std_dev: float
    avg_tx_per_block: float
    avg_unit_price: float
    connection_errors: int
    reliability: float
    total_polls: int = 0
    exhausted: bool = False
    error: Optional[str] = None
    active_source: Optional[str] = None
    final_phase: str = "idle"
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    samples: List[BlockSample] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = dataclasses.asdict(self)
        data["kind"] = "monitoring"
        return data


@dataclass(frozen=True)
class MetricComparison:
    """Per-metric values across sources and the resulting winner."""

    metric: str
    higher_is_better: bool
    values: Dict[str, float]
    winner: str = NOT_APPLICABLE

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass(frozen=True)
class ComparisonReport:
    """Cross-run comparison computed from persisted snapshots."""

    metrics: Dict[str, MetricComparison]
    sources: List[str]
    snapshot_count: int
    cost_efficiency: Dict[str, Dict[str, float]] = field(default_factory=dict)
    reliability: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def winner(self, metric: str) -> str:
        comparison = self.metrics.get(metric)
        return comparison.winner if comparison else NOT_APPLICABLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "comparison",
            "sources": list(self.sources),
            "snapshot_count": self.snapshot_count,
            "metrics": {name: m.to_dict() for name, m in self.metrics.items()},
            "winners": {name: m.winner for name, m in self.metrics.items()},
            "cost_efficiency": {k: dict(v) for k, v in self.cost_efficiency.items()},
            "reliability": {k: dict(v) for k, v in self.reliability.items()},
        }
