"""
Unit tests for MetricsCollector.
"""

import random
import threading

import pytest

from chainbench.metrics import SNAPSHOT_SCHEMA, MetricsCollector
from chainbench.models.results import SourceStats


@pytest.mark.unit
class TestRecord:
    """Tests for appending observations."""

    def test_record_returns_observation(self):
        collector = MetricsCollector()
        obs = collector.record("create", "l1", 21000, 12.5, True, unit_price=5, sequence_id=42)

        assert obs.operation == "create"
        assert obs.source_id == "l1"
        assert obs.cost == 21000
        assert obs.duration_ms == 12.5
        assert obs.success is True
        assert obs.unit_price == 5
        assert obs.sequence_id == 42
        assert len(collector) == 1

    def test_failure_cost_is_zeroed(self):
        collector = MetricsCollector()
        obs = collector.record("create", "l1", 50000, 3.0, False, error="execution reverted")

        assert obs.cost == 0
        assert obs.error_message == "execution reverted"

    def test_exception_message_falls_back_to_type_name(self):
        collector = MetricsCollector()
        obs = collector.record("read", "l1", 0, 1.0, False, error=TimeoutError())

        assert obs.error_message == "TimeoutError"

    def test_malformed_numbers_never_raise(self):
        collector = MetricsCollector()
        obs = collector.record("read", "l1", "not-a-number", None, True, unit_price=object())

        assert obs.cost == 0
        assert obs.duration_ms == 0.0
        assert obs.unit_price is None

        obs = collector.record("read", "l1", 1, "n/a", True)

        assert obs.duration_ms == 0.0
        assert obs.cost == 1
        assert len(collector) == 2

    def test_observations_are_a_copy(self):
        collector = MetricsCollector()
        collector.record("read", "l1", 0, 1.0, True)
        observations = collector.observations
        collector.record("read", "l1", 0, 1.0, True)

        assert len(observations) == 1
        assert len(collector.observations) == 2

    def test_concurrent_writers(self):
        collector = MetricsCollector()

        def writer(worker_id):
            for i in range(500):
                collector.record("read", f"s{worker_id % 2}", i, 1.0, i % 3 != 0)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(collector) == 4000
        assert sum(s.total_count for s in collector.stats().values()) == 4000


@pytest.mark.unit
class TestStats:
    """Tests for the on-demand reduction."""

    def test_avg_cost_per_success(self):
        collector = MetricsCollector()
        for cost in (21000, 22000, 23000):
            collector.record("create", "l1", cost, 10.0, True)

        stats = collector.stats()["l1"]
        assert stats.avg_cost_per_success == 22000
        assert stats.total_cost == 66000
        assert stats.success_rate == 100.0

    def test_counts_always_add_up(self):
        rng = random.Random(42)
        collector = MetricsCollector()
        for _ in range(300):
            collector.record(
                rng.choice(["read", "create"]),
                rng.choice(["a", "b", "c"]),
                rng.randint(0, 50000),
                rng.random() * 100,
                rng.random() < 0.7,
            )

        for stats in collector.stats().values():
            assert stats.success_count + stats.failure_count == stats.total_count
            for op in stats.operations.values():
                assert op.success_count + op.failure_count == op.count

    def test_unit_price_mean_uses_priced_count(self):
        collector = MetricsCollector()
        collector.record("create", "l1", 21000, 1.0, True, unit_price=10)
        collector.record("create", "l1", 21000, 1.0, True, unit_price=20)
        collector.record("read", "l1", 0, 1.0, True)
        collector.record("create", "l1", 0, 1.0, False, unit_price=1000)

        stats = collector.stats()["l1"]
        assert stats.priced_count == 2
        assert stats.avg_unit_price == 15

    def test_throughput_and_duration(self):
        collector = MetricsCollector()
        for _ in range(4):
            collector.record("read", "l1", 0, 500.0, True)

        stats = collector.stats()["l1"]
        assert stats.avg_duration_ms == 500.0
        assert stats.estimated_throughput == pytest.approx(2.0)

    def test_empty_source_stats(self):
        stats = SourceStats(source_id="idle")

        assert stats.success_rate == 0
        assert stats.avg_cost_per_success == 0
        assert stats.estimated_throughput == 0
        assert stats.avg_unit_price == 0

    def test_per_operation_breakdown(self):
        collector = MetricsCollector()
        collector.record("read", "l1", 0, 2.0, True)
        collector.record("create", "l1", 30000, 8.0, True)
        collector.record("create", "l1", 0, 4.0, False, error="timeout")

        ops = collector.stats()["l1"].operations
        assert set(ops) == {"read", "create"}
        assert ops["create"].count == 2
        assert ops["create"].failure_count == 1
        assert ops["create"].success_rate == 50.0
        assert ops["create"].avg_duration_ms == 6.0

    def test_stats_are_recomputed(self):
        collector = MetricsCollector()
        collector.record("read", "l1", 0, 1.0, True)
        first = collector.stats()
        collector.record("read", "l1", 0, 1.0, False)

        assert first["l1"].total_count == 1
        assert collector.stats()["l1"].total_count == 2


@pytest.mark.unit
class TestSnapshot:
    """Tests for snapshot export."""

    def test_snapshot_structure(self):
        collector = MetricsCollector(label="run-1")
        collector.record("create", "l1", 21000, 10.0, True, unit_price=3_000_000_000)
        collector.record("read", "l2", 0, 5.0, False, error="boom")

        snapshot = collector.export_snapshot()

        assert snapshot["schema"] == SNAPSHOT_SCHEMA
        assert snapshot["kind"] == "load"
        assert snapshot["label"] == "run-1"
        assert snapshot["summary"]["total_observations"] == 2
        assert sorted(snapshot["summary"]["sources"]) == ["l1", "l2"]
        assert snapshot["per_source"]["l1"]["avg_cost_per_success"] == 21000
        assert len(snapshot["raw"]) == 2

        detailed = snapshot["detailed"]["l1"]
        assert detailed["cost_efficiency"]["avg_unit_price_gwei"] == pytest.approx(3.0)
        assert detailed["reliability"]["total_attempts"] == 1
        assert snapshot["detailed"]["l2"]["reliability"]["failed"] == 1

    def test_snapshot_is_isolated(self):
        collector = MetricsCollector()
        collector.record("read", "l1", 0, 1.0, True)
        snapshot = collector.export_snapshot()

        collector.record("read", "l1", 0, 1.0, True)
        snapshot["raw"].clear()
        snapshot["per_source"]["l1"]["total_count"] = 99

        assert len(collector) == 2
        assert collector.export_snapshot()["per_source"]["l1"]["total_count"] == 2
