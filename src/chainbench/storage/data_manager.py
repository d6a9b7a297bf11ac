"""
Run data manager.

High-level interface for persisting load snapshots, monitoring reports and
comparison reports, and for loading persisted snapshots back for comparison.
Documents are always JSON; raw observations and block samples are also
written as tables when the configured format is Parquet.
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import polars as pl

from ..models.config import StorageConfig
from ..models.results import ComparisonReport, MonitoringReport
from .factory import create_storage
from .parquet_storage import JsonStorage

logger = logging.getLogger(__name__)

METRICS_SUFFIX = "_metrics.json"
MONITORING_INFIX = "_monitoring_"


def _safe_name(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]+", "_", str(name)).strip("_") or "run"


class RunDataManager:
    """
    Persists and reloads the outputs of benchmark runs in one directory.

    File layout, for a run named ``<run>``:

    * ``<run>_metrics.json``: load snapshot
    * ``<run>_observations.parquet``: raw observations (Parquet format only)
    * ``<run>_monitoring_<group>.json``: monitoring report per source group
    * ``<run>_samples_<group>.parquet``: block samples (Parquet format only)
    * ``<name>.json``: comparison report
    """

    def __init__(self, output_dir: Path, storage_config: Optional[StorageConfig] = None):
        """
        Args:
            output_dir: Directory where run data is stored
            storage_config: Storage format and compression; defaults to Parquet
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        storage_config = storage_config or StorageConfig()
        self.storage_format = storage_config.format
        self.compression = storage_config.compression
        self.storage = create_storage(self.storage_format, self.compression)
        self.documents = JsonStorage()

        logger.debug(
            f"Initialized RunDataManager in {self.output_dir} with format: {self.storage_format}"
        )

    def save_metrics_snapshot(self, snapshot: Dict[str, Any], run_name: str) -> Path:
        """
        Save a load snapshot, plus its raw observations as a table when the
        storage format is Parquet.

        Returns:
            Path of the JSON snapshot
        """
        name = _safe_name(run_name)
        path = self.output_dir / f"{name}{METRICS_SUFFIX}"
        self.documents.save_dict(snapshot, str(path))

        raw = snapshot.get("raw") or []
        if self.storage_format == "parquet" and raw:
            table_path = self.output_dir / f"{name}_observations{self.storage.table_extension}"
            self.storage.save_dataframe(pl.DataFrame(raw, infer_schema_length=None), str(table_path))
            logger.info(f"Saved {len(raw)} observations to: {table_path}")

        logger.info(f"Saved metrics snapshot to: {path}")
        return path

    def save_monitoring_report(self, report: MonitoringReport, run_name: str) -> Path:
        name = _safe_name(run_name)
        group = _safe_name(report.source_group)
        path = self.output_dir / f"{name}{MONITORING_INFIX}{group}.json"
        data = report.to_dict()
        self.documents.save_dict(data, str(path))

        if self.storage_format == "parquet" and data["samples"]:
            table_path = self.output_dir / f"{name}_samples_{group}{self.storage.table_extension}"
            self.storage.save_dataframe(pl.DataFrame(data["samples"]), str(table_path))

        if report.error:
            logger.warning(f"Saved monitoring report for {report.source_group} with error: {report.error}")
        else:
            logger.info(f"Saved monitoring report for {report.source_group} to: {path}")
        return path

    def save_monitoring_reports(
        self, reports: Iterable[MonitoringReport], run_name: str
    ) -> List[Path]:
        return [self.save_monitoring_report(report, run_name) for report in reports]

    def save_comparison(self, report: ComparisonReport, name: str = "comparison") -> Path:
        path = self.output_dir / f"{_safe_name(name)}.json"
        self.documents.save_dict(report.to_dict(), str(path))
        logger.info(f"Saved comparison report to: {path}")
        return path

    def list_snapshots(self) -> List[Path]:
        """
        List persisted load snapshots and monitoring reports, sorted by name.
        """
        paths = set(self.output_dir.glob(f"*{METRICS_SUFFIX}"))
        paths.update(self.output_dir.glob(f"*{MONITORING_INFIX}*.json"))
        return sorted(paths)

    def load_snapshot(self, path: Path) -> Dict[str, Any]:
        return self.documents.load_dict(str(path))

    def load_snapshots(self, paths: Optional[Sequence[Path]] = None) -> List[Dict[str, Any]]:
        """
        Load snapshots from ``paths``, or every persisted snapshot if omitted.
        """
        if paths is None:
            paths = self.list_snapshots()
        snapshots = [self.load_snapshot(path) for path in paths]
        logger.debug(f"Loaded {len(snapshots)} snapshot(s) from {self.output_dir}")
        return snapshots

    def load_observations(self, run_name: str, columns: Optional[List[str]] = None) -> pl.DataFrame:
        """
        Load the raw observations of a run as a DataFrame.

        Reads the Parquet table when present and otherwise the ``raw`` list of
        the JSON snapshot.

        Raises:
            FileNotFoundError: If the run has no persisted observations
        """
        name = _safe_name(run_name)
        table_path = self.output_dir / f"{name}_observations{self.storage.table_extension}"
        if self.storage_format == "parquet" and self.storage.file_exists(str(table_path)):
            return self.storage.load_dataframe(str(table_path), columns)

        snapshot_path = self.output_dir / f"{name}{METRICS_SUFFIX}"
        if self.documents.file_exists(str(snapshot_path)):
            df = pl.DataFrame(
                self.load_snapshot(snapshot_path).get("raw", []), infer_schema_length=None
            )
            return df.select(columns) if columns else df

        raise FileNotFoundError(f"No observations found for run '{run_name}' in {self.output_dir}")

    def get_storage_info(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            "storage_format": self.storage_format,
            "compression": self.compression,
            "output_dir": str(self.output_dir),
            "files": {},
        }
        for file_path in sorted(self.output_dir.iterdir()):
            if file_path.is_file():
                info["files"][file_path.name] = {
                    "size_bytes": self.storage.get_file_size(str(file_path)),
                    "exists": True,
                }
        return info
