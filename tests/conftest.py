"""
Pytest configuration and shared fixtures for the chainbench test suite.

This module provides common fixtures, in-memory fakes of the data source and
load target contracts, and configuration helpers for all test modules.
"""

import asyncio
import shutil
import sys
import tempfile
from itertools import cycle
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from chainbench.sources.base import (  # noqa: E402
    BlockInfo,
    DataSource,
    OperationResult,
    SourceError,
    Target,
)


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Fakes
# ============================================================================


class FakeSource(DataSource):
    """
    In-memory data source.

    ``heights`` are returned one per ``current_height()`` call, repeating the
    last value once exhausted. Block timestamps come from ``timestamps``
    (height -> timestamp); unknown heights get ``height * 10``.
    """

    def __init__(
        self,
        source_id: str,
        heights: Optional[Iterable[int]] = None,
        timestamps: Optional[Dict[int, int]] = None,
        tx_count: int = 3,
        fail: bool = False,
        price: Optional[int] = 1_000_000_000,
        price_error: bool = False,
    ):
        self._source_id = source_id
        self._heights = list(heights or [1])
        self._timestamps = dict(timestamps or {})
        self.tx_count = tx_count
        self.fail = fail
        self.price = price
        self.price_error = price_error
        self.height_calls = 0
        self.block_calls: List[int] = []
        self.closed = False

    @property
    def source_id(self) -> str:
        return self._source_id

    async def current_height(self) -> int:
        await asyncio.sleep(0)
        if self.fail:
            raise SourceError(f"{self._source_id} unreachable")
        index = min(self.height_calls, len(self._heights) - 1)
        self.height_calls += 1
        return self._heights[index]

    async def block_at(self, height: int) -> BlockInfo:
        if self.fail:
            raise SourceError(f"{self._source_id} unreachable")
        self.block_calls.append(height)
        return BlockInfo(
            number=height,
            timestamp=self._timestamps.get(height, height * 10),
            tx_count=self.tx_count,
        )

    async def current_unit_price(self) -> Optional[int]:
        if self.price_error:
            raise SourceError("eth_gasPrice not supported")
        return self.price

    async def aclose(self) -> None:
        self.closed = True


class FakeTarget(Target):
    """
    In-memory load target.

    ``script`` cycles through outcomes per call: "ok" succeeds with ``cost``,
    "reject" returns an unsuccessful result, "raise" raises RuntimeError and
    "hang" sleeps far beyond any test timeout.
    """

    def __init__(
        self,
        target_id: str,
        script: Iterable[str] = ("ok",),
        cost: int = 21000,
        unit_price: Optional[int] = 2_000_000_000,
        delay: float = 0.0,
    ):
        self._target_id = target_id
        self._script = cycle(list(script))
        self.cost = cost
        self.unit_price = unit_price
        self.delay = delay
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    @property
    def target_id(self) -> str:
        return self._target_id

    async def execute(self, operation: str) -> OperationResult:
        self.calls.append(operation)
        outcome = next(self._script)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if outcome == "hang":
                await asyncio.sleep(3600)
            elif self.delay:
                await asyncio.sleep(self.delay)
            else:
                await asyncio.sleep(0)
        finally:
            self.in_flight -= 1

        if outcome == "raise":
            raise RuntimeError(f"{self._target_id} rejected {operation}")
        if outcome == "reject":
            return OperationResult(success=False, cost=self.cost, error="execution reverted")
        return OperationResult(
            success=True,
            cost=self.cost,
            unit_price=self.unit_price,
            sequence_id=len(self.calls),
        )

    async def aclose(self) -> None:
        self.closed = True


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def fake_source():
    """Factory for in-memory data sources."""
    return FakeSource


@pytest.fixture
def fake_target():
    """Factory for in-memory load targets."""
    return FakeTarget


@pytest.fixture
def sample_config_data(temp_dir):
    """Sample configuration data for testing."""
    return {
        "general": {
            "log_level": "DEBUG",
            "output_dir": str(temp_dir / "reports"),
        },
        "load": {
            "mode": "batched",
            "batch_size": 4,
            "concurrency": 2,
            "batch_interval_ms": 10,
            "total_operations": 8,
            "target_selection": "deterministic",
            "operation_timeout_seconds": 5,
            "seed": 7,
            "operation_mix": {"read": 3, "create": 1},
        },
        "monitor": {
            "poll_interval_seconds": 0.5,
            "error_backoff_seconds": 1.0,
            "duration_seconds": 30,
            "request_timeout_seconds": 2,
        },
        "storage": {"format": "parquet", "compression": "zstd"},
        "networks": [
            {
                "name": "l1",
                "rpc_urls": ["http://l1-primary.test:8545", "http://l1-backup.test:8545"],
                "operations": {
                    "read": {"method": "eth_call", "params": ["0xabc", "latest"]},
                    "create": {
                        "method": "eth_sendTransaction",
                        "params": ["0xsigned"],
                        "wait_for_receipt": True,
                        "receipt_timeout_seconds": 30,
                    },
                },
            },
            {
                "name": "l2",
                "rpc_urls": ["https://l2.test/rpc"],
            },
        ],
    }


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def config_files(temp_dir, sample_config_data):
    """Create a temporary config.toml for testing."""
    import toml

    config_file = temp_dir / "config.toml"
    with open(config_file, "w") as f:
        toml.dump(sample_config_data, f)

    return {"config": config_file, "dir": temp_dir}


@pytest.fixture
def write_config(temp_dir):
    """Write arbitrary configuration data to a config.toml and return its path."""
    import toml

    def _write(data):
        config_file = temp_dir / "config.toml"
        with open(config_file, "w") as f:
            toml.dump(data, f)
        return config_file

    return _write


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically clear configuration cache after each test."""
    original_config_path = Path(__file__).parent.parent / "conf" / "config.toml"

    yield

    from chainbench.config import clear_config_cache, set_config_path

    clear_config_cache()
    set_config_path(original_config_path)
