"""
File storage backends built on Polars.

``ParquetStorage`` writes tables as compressed Parquet; ``JsonStorage``
writes them as JSON record lists. Both write documents as indented JSON.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import polars as pl

from .base import DataStorage

logger = logging.getLogger(__name__)


class _JsonDocumentMixin:
    """Document handling shared by the file backends."""

    def save_dict(self, data: Dict[str, Any], path: str) -> None:
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False, default=str)
            logger.debug(f"Saved document to {path}")
        except Exception as e:
            logger.error(f"Failed to save document to {path}: {e}")
            raise

    def load_dict(self, path: str) -> Dict[str, Any]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            logger.debug(f"Loaded document from {path}")
            return data
        except Exception as e:
            logger.error(f"Failed to load document from {path}: {e}")
            raise

    def file_exists(self, path: str) -> bool:
        return Path(path).exists()

    def get_file_size(self, path: str) -> int:
        try:
            return Path(path).stat().st_size
        except FileNotFoundError:
            return 0


class ParquetStorage(_JsonDocumentMixin, DataStorage):
    """
    Parquet storage using Polars.

    Tables are written with the configured compression; documents such as
    snapshots and reports stay JSON for readability.
    """

    table_extension = ".parquet"

    def __init__(self, compression: Literal["snappy", "gzip", "brotli", "lz4", "zstd"] = "snappy"):
        self.compression = compression
        logger.debug(f"Initialized ParquetStorage with compression: {compression}")

    def save_dataframe(self, df: pl.DataFrame, path: str) -> None:
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            df.write_parquet(path, compression=self.compression)
            logger.debug(f"Saved DataFrame with {len(df)} rows to {path}")
        except Exception as e:
            logger.error(f"Failed to save DataFrame to {path}: {e}")
            raise

    def load_dataframe(self, path: str, columns: Optional[List[str]] = None) -> pl.DataFrame:
        try:
            if columns:
                df = pl.read_parquet(path, columns=columns)
            else:
                df = pl.read_parquet(path)
            logger.debug(f"Loaded DataFrame with {len(df)} rows from {path}")
            return df
        except Exception as e:
            logger.error(f"Failed to load DataFrame from {path}: {e}")
            raise


class JsonStorage(_JsonDocumentMixin, DataStorage):
    """JSON storage; tables are written as a list of row records."""

    table_extension = ".json"

    def save_dataframe(self, df: pl.DataFrame, path: str) -> None:
        self.save_dict({"rows": df.to_dicts()}, path)
        logger.debug(f"Saved DataFrame with {len(df)} rows to {path}")

    def load_dataframe(self, path: str, columns: Optional[List[str]] = None) -> pl.DataFrame:
        rows = self.load_dict(path).get("rows", [])
        df = pl.DataFrame(rows, infer_schema_length=None)
        if columns:
            df = df.select(columns)
        return df
