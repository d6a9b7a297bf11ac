"""
Abstract collaborator contracts for the measurement core.

The core treats both the monitored data sources and the load targets as
black boxes. This module defines the interfaces they must satisfy and the
small value types exchanged across them:

- DataSource: a redundant provider of periodic chain state, polled by the
  resilient monitor. Any transport problem surfaces as a single SourceError.
- Target: an endpoint exposing named operations, driven by the load
  generator. Failures may surface as any exception; the generator converts
  them into failed observations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


class SourceError(Exception):
    """Raised by a data source or transport when a request cannot be served."""


class RpcError(SourceError):
    """A JSON-RPC error object returned by the remote endpoint."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


@dataclass(frozen=True)
class BlockInfo:
    """The parts of a block the monitor needs."""

    number: int
    timestamp: int
    tx_count: int


@dataclass(frozen=True)
class OperationResult:
    """
    Outcome reported by a target for one operation.

    Attributes:
        success: Whether the target accepted and executed the operation
        cost: Resource units consumed (e.g. gas used)
        unit_price: Price per resource unit, when the target reports one
        sequence_id: Ordering hint such as the including block number
        error: Target-supplied failure reason when ``success`` is False
    """

    success: bool
    cost: int = 0
    unit_price: Optional[int] = None
    sequence_id: Optional[int] = None
    error: Optional[str] = None


class DataSource(ABC):
    """Abstract base class for one redundant provider of chain state."""

    @property
    @abstractmethod
    def source_id(self) -> str:
        """Stable identifier used in logs and reports."""

    @abstractmethod
    async def current_height(self) -> int:
        """
        Return the latest block height.

        Raises:
            SourceError: On any transport or protocol failure
        """

    @abstractmethod
    async def block_at(self, height: int) -> BlockInfo:
        """
        Return the block at ``height``.

        Raises:
            SourceError: On any failure, including a missing block
        """

    @abstractmethod
    async def current_unit_price(self) -> Optional[int]:
        """Return the current unit price, or None if not available."""

    async def aclose(self) -> None:
        """Release any transport resources."""


class Target(ABC):
    """Abstract base class for an endpoint driven by the load generator."""

    @property
    @abstractmethod
    def target_id(self) -> str:
        """Identifier recorded as the observation's source id."""

    @abstractmethod
    async def execute(self, operation: str) -> OperationResult:
        """
        Issue one operation of kind ``operation`` and wait for it to settle.

        Raises:
            Exception: Any failure; the caller records it as data
        """

    async def aclose(self) -> None:
        """Release any transport resources."""
