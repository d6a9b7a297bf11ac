"""
Data models and structures for the benchmarking core.

Configuration Models:
- Load generation, monitoring, storage and network settings

Runtime Models:
- Monitor lifecycle phases and per-run state records
- Cooperative cancellation tokens
- Load run statistics

Result Models:
- Observations and per-source statistics
- Block samples and monitoring reports
- Cross-run comparison reports
"""

from .config import (
    AppConfig,
    GeneralConfig,
    LoadConfig,
    LoadMode,
    MonitorConfig,
    NetworkConfig,
    OperationSpec,
    StorageConfig,
    TargetSelection,
)
from .results import (
    NOT_APPLICABLE,
    BlockSample,
    ComparisonReport,
    MetricComparison,
    MonitoringReport,
    Observation,
    OperationStats,
    SourceStats,
)
from .runtime import CancellationToken, LoadStatistics, MonitorPhase, MonitorRunState

__all__ = [
    # Configuration
    "AppConfig",
    "GeneralConfig",
    "LoadConfig",
    "LoadMode",
    "MonitorConfig",
    "NetworkConfig",
    "OperationSpec",
    "StorageConfig",
    "TargetSelection",
    # Results
    "NOT_APPLICABLE",
    "BlockSample",
    "ComparisonReport",
    "MetricComparison",
    "MonitoringReport",
    "Observation",
    "OperationStats",
    "SourceStats",
    # Runtime
    "CancellationToken",
    "LoadStatistics",
    "MonitorPhase",
    "MonitorRunState",
]
