"""
Append-only observation log with on-demand reduction.

The MetricsCollector receives one Observation per issued operation, from any
number of concurrently running operations, and reduces the log into
per-source and per-operation statistics whenever asked. No incremental
aggregate is kept: ``stats()`` always performs a fresh full pass, so a
statistics view can never drift from the log it was computed from.
"""

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from ..models.results import Observation, OperationStats, SourceStats

logger = logging.getLogger(__name__)

SNAPSHOT_SCHEMA = "chainbench.metrics/1"

_WEI_PER_GWEI = 1_000_000_000


def _error_message(error: Union[BaseException, str, None]) -> Optional[str]:
    if error is None:
        return None
    if isinstance(error, BaseException):
        return str(error) or type(error).__name__
    return str(error)


def _as_int(value: Any, default: Optional[int]) -> Optional[int]:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring non-integer metric value: {value!r}")
        return default


def _as_float(value: Any) -> float:
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring non-numeric duration: {value!r}")
        return 0.0


class MetricsCollector:
    """
    Thread-safe append-only sink for operation observations.

    Appends take a short lock, which makes ``record()`` safe from asyncio
    tasks and worker threads alike. Readers take a copy of the log under the
    same lock and reduce it without holding it.
    """

    def __init__(self, label: str = "run"):
        """
        Initialize an empty collector.

        Args:
            label: Human-readable run label stored in exported snapshots
        """
        self.label = label
        self.started_at = time.time()
        self._observations: List[Observation] = []
        self._lock = threading.Lock()

    def record(
        self,
        operation: str,
        source_id: str,
        cost: Any,
        duration_ms: float,
        success: bool,
        error: Union[BaseException, str, None] = None,
        unit_price: Any = None,
        sequence_id: Any = None,
    ) -> Observation:
        """
        Append one observation.

        Never raises for malformed numeric inputs: an unparsable cost or
        duration is recorded as 0 and an unparsable price or sequence id as
        missing.

        Args:
            operation: Operation kind (e.g. "read", "create")
            source_id: Target or source the operation ran against
            cost: Resource units consumed; forced to 0 for failures
            duration_ms: Wall-clock time from issuance to settlement
            success: Whether the operation succeeded
            error: Exception or message for failed operations
            unit_price: Price per resource unit, if reported
            sequence_id: Optional ordering hint (e.g. block number)

        Returns:
            The appended Observation
        """
        success = bool(success)
        observation = Observation(
            timestamp=time.time(),
            operation=str(operation),
            source_id=str(source_id),
            cost=_as_int(cost, 0) if success else 0,
            duration_ms=_as_float(duration_ms),
            success=success,
            error_message=_error_message(error),
            unit_price=_as_int(unit_price, None),
            sequence_id=_as_int(sequence_id, None),
        )
        with self._lock:
            self._observations.append(observation)
        return observation

    @property
    def observations(self) -> Tuple[Observation, ...]:
        with self._lock:
            return tuple(self._observations)

    def __len__(self) -> int:
        with self._lock:
            return len(self._observations)

    def stats(self) -> Dict[str, SourceStats]:
        """
        Reduce all observations into per-source statistics.

        Returns:
            Mapping of source id to freshly computed SourceStats
        """
        result: Dict[str, SourceStats] = {}
        for obs in self.observations:
            stats = result.get(obs.source_id)
            if stats is None:
                stats = result[obs.source_id] = SourceStats(source_id=obs.source_id)

            stats.total_count += 1
            stats.total_duration_ms += obs.duration_ms
            if obs.success:
                stats.success_count += 1
                stats.total_cost += obs.cost
                if obs.unit_price is not None:
                    stats.price_sum += obs.unit_price
                    stats.priced_count += 1
            else:
                stats.failure_count += 1

            op_stats = stats.operations.get(obs.operation)
            if op_stats is None:
                op_stats = stats.operations[obs.operation] = OperationStats()
            op_stats.count += 1
            op_stats.total_cost += obs.cost
            op_stats.total_duration_ms += obs.duration_ms
            if obs.success:
                op_stats.success_count += 1
            else:
                op_stats.failure_count += 1

        return result

    def export_snapshot(self) -> Dict[str, Any]:
        """
        Build a self-describing, JSON-compatible snapshot of the run.

        The returned structure is built from fresh objects at call time and
        shares nothing with the collector, so later appends never show up in
        it and changes to it never reach the collector.
        """
        observations = self.observations
        stats = self.stats()
        per_source = {source: s.to_dict() for source, s in stats.items()}

        return {
            "schema": SNAPSHOT_SCHEMA,
            "kind": "load",
            "label": self.label,
            "created_at": datetime.now(timezone.utc).isoformat(),
            "summary": {
                "total_observations": len(observations),
                "run_duration_ms": (time.time() - self.started_at) * 1000,
                "sources": list(stats),
            },
            "per_source": per_source,
            "detailed": self._detailed_views(stats),
            "raw": [obs.to_dict() for obs in observations],
        }

    @staticmethod
    def _detailed_views(stats: Dict[str, SourceStats]) -> Dict[str, Dict[str, Any]]:
        detailed = {}
        for source, s in stats.items():
            detailed[source] = {
                "cost_efficiency": {
                    "total_cost": s.total_cost,
                    "avg_cost_per_success": s.avg_cost_per_success,
                    "avg_unit_price": s.avg_unit_price,
                    "avg_unit_price_gwei": s.avg_unit_price / _WEI_PER_GWEI,
                },
                "performance": {
                    "avg_duration_ms": s.avg_duration_ms,
                    "estimated_throughput": s.estimated_throughput,
                    "success_rate": s.success_rate,
                },
                "reliability": {
                    "total_attempts": s.total_count,
                    "successful": s.success_count,
                    "failed": s.failure_count,
                    "reliability_score": s.success_rate,
                },
            }
        return detailed
