"""
Ordered pool of redundant data sources with a failover cursor.
"""

import logging
from typing import Iterator, List, Sequence

from ..sources.base import DataSource
from ..sources.jsonrpc import JsonRpcDataSource
from ..validation import ConfigurationError, ValidationError, validate_rpc_url

logger = logging.getLogger(__name__)


class ProviderPool:
    """
    Redundant data sources in failover order.

    The cursor only moves forward, wrapping around: ``advance()`` selects
    ``(index + 1) mod size``. The pool itself knows nothing about sweeps or
    exhaustion; the monitor decides when a full cycle has failed.
    """

    def __init__(self, sources: Sequence[DataSource], name: str = "pool"):
        """
        Args:
            sources: Data sources in preference order
            name: Name of the monitored source group, used in messages

        Raises:
            ConfigurationError: If ``sources`` is empty
        """
        if not sources:
            raise ConfigurationError(
                f"No valid providers could be created for {name}",
                field_name="sources",
                value=list(sources),
            )
        self.name = name
        self._sources: List[DataSource] = list(sources)
        self._index = 0

    @classmethod
    def from_urls(cls, urls: Sequence[str], name: str, timeout: float = 10.0) -> "ProviderPool":
        """
        Build a pool of JSON-RPC sources, skipping URLs that are unusable.

        Raises:
            ConfigurationError: If none of the URLs is usable
        """
        sources = []
        for url in urls:
            try:
                valid_url = validate_rpc_url(url, field_name=f"{name}.rpc_urls")
            except ValidationError as e:
                logger.warning(f"Failed to create provider for {name}: {e}")
                continue
            sources.append(JsonRpcDataSource.from_url(valid_url, timeout=timeout))
        return cls(sources, name=name)

    @property
    def index(self) -> int:
        return self._index

    @property
    def size(self) -> int:
        return len(self._sources)

    @property
    def current(self) -> DataSource:
        return self._sources[self._index]

    @property
    def source_ids(self) -> List[str]:
        return [source.source_id for source in self._sources]

    def advance(self) -> DataSource:
        """Move the cursor to the next source and return it."""
        self._index = (self._index + 1) % len(self._sources)
        return self.current

    def reset(self) -> None:
        self._index = 0

    def __len__(self) -> int:
        return len(self._sources)

    def __iter__(self) -> Iterator[DataSource]:
        return iter(self._sources)

    async def aclose(self) -> None:
        for source in self._sources:
            try:
                await source.aclose()
            except Exception as e:
                logger.warning(f"Error closing source {source.source_id}: {e}")
