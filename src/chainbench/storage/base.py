"""
Abstract base class for data storage implementations.

This module defines the DataStorage interface implemented by every storage
backend. Run data comes in two shapes: tabular data (raw observations, block
samples) handled as Polars DataFrames, and self-describing documents
(snapshots, monitoring reports, comparison reports) handled as dictionaries.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import polars as pl


class DataStorage(ABC):
    """Abstract base class for data storage implementations."""

    #: File extension used for tabular data written by this backend.
    table_extension: str = ".parquet"

    @abstractmethod
    def save_dataframe(self, df: pl.DataFrame, path: str) -> None:
        """
        Save a Polars DataFrame to the specified path.

        Args:
            df: Polars DataFrame to save
            path: File path to save to
        """
        pass

    @abstractmethod
    def load_dataframe(
        self, path: str, columns: Optional[List[str]] = None
    ) -> pl.DataFrame:
        """
        Load a Polars DataFrame from the specified path.

        Args:
            path: File path to load from
            columns: Optional list of columns to load

        Returns:
            Loaded Polars DataFrame
        """
        pass

    @abstractmethod
    def save_dict(self, data: Dict[str, Any], path: str) -> None:
        """
        Save a JSON-compatible document to the specified path.
        """
        pass

    @abstractmethod
    def load_dict(self, path: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    def file_exists(self, path: str) -> bool:
        pass

    @abstractmethod
    def get_file_size(self, path: str) -> int:
        """
        Get the size of a file in bytes (0 if it does not exist).
        """
        pass
