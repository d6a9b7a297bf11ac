"""
Configuration data models.

This module contains the immutable configuration structures for load
generation, network monitoring, storage, and the monitored networks, loaded
from `config.toml`.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple


class LoadMode(Enum):
    """Drive modes supported by the load generator."""
    PROGRESSIVE = "progressive"
    SUSTAINED = "sustained"
    BATCHED = "batched"


class TargetSelection(Enum):
    """How a sustained batch picks its targets."""
    DETERMINISTIC = "deterministic"
    RANDOM_PER_BATCH = "random-per-batch"


@dataclass(frozen=True)
class GeneralConfig:
    """
    Global settings, loaded from the `[general]` table.
    """

    log_level: str = "INFO"
    # Directory where snapshots and reports are written.
    output_dir: Path = Path("reports")


@dataclass(frozen=True)
class LoadConfig:
    """
    Configuration for the load generator, loaded from the `[load]` table.
    """

    mode: LoadMode = LoadMode.SUSTAINED
    # Maximum number of simultaneously in-flight operations within a batch.
    concurrency: int = 5
    # Ascending concurrency levels for the progressive mode.
    concurrency_levels: Tuple[int, ...] = (5, 10, 20)
    batch_size: int = 5
    batch_interval_ms: int = 2000
    # None means "no time bound" (only valid for progressive/batched modes).
    total_duration_ms: Optional[int] = 300000
    # Operations issued per target in the batched mode.
    total_operations: int = 100
    # Operation kind -> relative weight.
    operation_mix: Dict[str, float] = field(
        default_factory=lambda: {"read": 0.8, "create": 0.2}
    )
    target_selection: TargetSelection = TargetSelection.RANDOM_PER_BATCH
    operation_timeout_seconds: float = 60.0
    progress_log_interval_seconds: float = 30.0
    seed: Optional[int] = None


@dataclass(frozen=True)
class MonitorConfig:
    """
    Configuration for the resilient network monitor, loaded from `[monitor]`.
    """

    poll_interval_seconds: float = 2.0
    # Fixed delay after a failed poll; always longer than the poll interval.
    error_backoff_seconds: float = 5.0
    duration_seconds: float = 120.0
    request_timeout_seconds: float = 10.0


@dataclass(frozen=True)
class StorageConfig:
    """
    Configuration model for snapshot persistence.

    Attributes:
        format: 'parquet' writes raw observations as a Parquet table next to
            the JSON snapshot; 'json' writes the JSON snapshot only
        compression: Compression algorithm for Parquet output
    """

    format: Literal["parquet", "json"] = "parquet"
    compression: Literal["snappy", "gzip", "brotli", "lz4", "zstd"] = "snappy"

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "StorageConfig":
        """
        Create a StorageConfig instance from a dictionary.

        Raises:
            ValueError: If invalid configuration values are provided
        """
        format_type = config_dict.get("format", "parquet")
        compression = config_dict.get("compression", "snappy")

        if format_type not in ("parquet", "json"):
            raise ValueError(f"Unsupported storage format: {format_type}")

        if compression not in ("snappy", "gzip", "brotli", "lz4", "zstd"):
            raise ValueError(f"Unsupported compression algorithm: {compression}")

        return cls(format=format_type, compression=compression)

    def to_dict(self) -> Dict[str, Any]:
        return {"format": self.format, "compression": self.compression}


@dataclass(frozen=True)
class OperationSpec:
    """
    How one named operation kind maps onto a JSON-RPC call.
    """

    method: str
    params: Tuple[Any, ...] = ()
    # When set, the call result is a transaction hash whose receipt is awaited.
    wait_for_receipt: bool = False
    receipt_timeout_seconds: float = 60.0
    receipt_poll_interval_seconds: float = 1.0


@dataclass(frozen=True)
class NetworkConfig:
    """
    One monitored/loaded network, loaded from a `[[networks]]` entry.
    """

    name: str
    # Redundant RPC endpoints in failover order.
    rpc_urls: Tuple[str, ...]
    operations: Dict[str, OperationSpec] = field(default_factory=dict)


@dataclass(frozen=True)
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    general: GeneralConfig
    load: LoadConfig
    monitor: MonitorConfig
    storage: StorageConfig
    networks: List[NetworkConfig]
