"""
Storage for benchmark run data.

Tables (raw observations, block samples) are written with Polars, as
compressed Parquet or as JSON records; snapshots and reports are JSON
documents. ``RunDataManager`` is the high-level entry point.
"""

from .base import DataStorage
from .data_manager import RunDataManager
from .factory import create_storage
from .parquet_storage import JsonStorage, ParquetStorage

__all__ = ["DataStorage", "JsonStorage", "ParquetStorage", "RunDataManager", "create_storage"]
