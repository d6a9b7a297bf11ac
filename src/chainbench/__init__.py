"""
chainbench: load generation, resilient network monitoring and run comparison
for competing blockchain execution environments.

The package is organized into specialized modules:
- config: Configuration management and validation
- models: Data structures and type definitions
- validation: Input validation and error handling
- sources: Data source and load target contracts, JSON-RPC transport
- metrics: Observation collection and reduction
- monitoring: Resilient block-time monitoring with provider failover
- load: Concurrent load generation
- comparison: Cross-run comparison of persisted snapshots
- storage: Snapshot and report persistence
- orchestration: Benchmark sessions and logging setup

Usage:
    from chainbench import BenchmarkSession, configure_logging, get_config

    config = get_config()
    configure_logging(config.general.log_level)
    async with BenchmarkSession(config) as session:
        state = await session.run()
"""

# Main interfaces
from .config import clear_config_cache, get_config, load_config, set_config_path
from .orchestration import (
    BenchmarkSession,
    compare_persisted_runs,
    configure_logging,
    start_monitor,
)

# Core components
from .comparison import DEFAULT_METRIC_DIRECTIONS, MetricDirection, compare_runs
from .load import LoadGenerator, RunHandle, start_load
from .metrics import MetricsCollector
from .monitoring import ProviderPool, ResilientMonitor, build_report
from .storage import RunDataManager

# Model classes for external use
from .models import (
    NOT_APPLICABLE,
    AppConfig,
    ComparisonReport,
    LoadConfig,
    LoadMode,
    MonitorConfig,
    MonitoringReport,
    Observation,
    SourceStats,
    TargetSelection,
)

# Collaborator contracts
from .sources import BlockInfo, DataSource, OperationResult, SourceError, Target

# Validation utilities
from .validation import ConfigurationError, ValidationError

__version__ = "1.0.0"

__all__ = [
    # Main interfaces
    "get_config",
    "load_config",
    "clear_config_cache",
    "set_config_path",
    "BenchmarkSession",
    "compare_persisted_runs",
    "configure_logging",
    "start_monitor",
    # Core components
    "DEFAULT_METRIC_DIRECTIONS",
    "MetricDirection",
    "compare_runs",
    "LoadGenerator",
    "RunHandle",
    "start_load",
    "MetricsCollector",
    "ProviderPool",
    "ResilientMonitor",
    "build_report",
    "RunDataManager",
    # Models
    "NOT_APPLICABLE",
    "AppConfig",
    "ComparisonReport",
    "LoadConfig",
    "LoadMode",
    "MonitorConfig",
    "MonitoringReport",
    "Observation",
    "SourceStats",
    "TargetSelection",
    # Contracts
    "BlockInfo",
    "DataSource",
    "OperationResult",
    "SourceError",
    "Target",
    # Validation
    "ConfigurationError",
    "ValidationError",
]
