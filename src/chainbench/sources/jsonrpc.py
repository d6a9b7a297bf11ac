"""
JSON-RPC transport for data sources and load targets.

This module implements the collaborator contracts from ``sources.base`` on
top of an Ethereum-style JSON-RPC endpoint reached over HTTP with httpx:

- JsonRpcClient: request/response framing and error mapping
- JsonRpcDataSource: block height, block and unit price reads for monitoring
- JsonRpcTarget: named operations mapped to RPC calls, with optional
  transaction receipt polling to extract cost and price
"""

import asyncio
import copy
import itertools
import logging
import time
from typing import Any, Dict, Mapping, Optional, Sequence

import httpx

from ..models.config import OperationSpec
from .base import BlockInfo, DataSource, OperationResult, RpcError, SourceError, Target

logger = logging.getLogger(__name__)


def _to_int(value: Any) -> Optional[int]:
    """Decode a JSON-RPC quantity (hex string or plain integer)."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value, 16) if value.startswith(("0x", "0X")) else int(value)
    raise ValueError(f"Not a JSON-RPC quantity: {value!r}")


class JsonRpcClient:
    """
    Minimal JSON-RPC 2.0 client over an ``httpx.AsyncClient``.

    Every failure (connection, timeout, HTTP status, malformed body, or a
    JSON-RPC error object) is raised as SourceError so that callers see a
    single failure signal.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the client.

        Args:
            url: HTTP(S) endpoint URL
            timeout: Per-request timeout in seconds
            client: Optional pre-configured httpx client (e.g. with a mock
                transport); the caller keeps ownership of it
        """
        self.url = url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._ids = itertools.count(1)

    async def call(self, method: str, params: Sequence[Any] = ()) -> Any:
        """
        Perform one JSON-RPC call and return its ``result``.

        Raises:
            RpcError: If the endpoint answered with an error object
            SourceError: On any other failure
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": list(params),
        }
        try:
            response = await self._client.post(self.url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            raise SourceError(f"{method} via {self.url} failed: {e}") from e
        except ValueError as e:
            raise SourceError(f"{method} via {self.url} returned invalid JSON: {e}") from e

        if not isinstance(body, dict):
            raise SourceError(f"{method} via {self.url} returned an unexpected body")

        error = body.get("error")
        if error:
            if isinstance(error, dict):
                raise RpcError(
                    f"{method} failed: {error.get('message', 'unknown error')}",
                    code=error.get("code"),
                )
            raise RpcError(f"{method} failed: {error}")

        return body.get("result")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class JsonRpcDataSource(DataSource):
    """Data source reading chain state through JSON-RPC."""

    def __init__(self, client: JsonRpcClient, source_id: Optional[str] = None):
        self._client = client
        self._source_id = source_id or client.url

    @classmethod
    def from_url(cls, url: str, timeout: float = 10.0) -> "JsonRpcDataSource":
        return cls(JsonRpcClient(url, timeout=timeout))

    @property
    def source_id(self) -> str:
        return self._source_id

    async def current_height(self) -> int:
        result = await self._client.call("eth_blockNumber")
        try:
            return _to_int(result)
        except (TypeError, ValueError) as e:
            raise SourceError(f"Invalid block number from {self._source_id}: {result!r}") from e

    async def block_at(self, height: int) -> BlockInfo:
        result = await self._client.call("eth_getBlockByNumber", [hex(height), False])
        if not result:
            raise SourceError(f"Block {height} not found on {self._source_id}")
        try:
            return BlockInfo(
                number=_to_int(result.get("number", height)),
                timestamp=_to_int(result["timestamp"]),
                tx_count=len(result.get("transactions") or []),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise SourceError(f"Malformed block {height} from {self._source_id}: {e}") from e

    async def current_unit_price(self) -> Optional[int]:
        result = await self._client.call("eth_gasPrice")
        try:
            return _to_int(result)
        except (TypeError, ValueError) as e:
            raise SourceError(f"Invalid gas price from {self._source_id}: {result!r}") from e

    async def aclose(self) -> None:
        await self._client.aclose()


class JsonRpcTarget(Target):
    """
    Load target that maps operation kinds onto JSON-RPC calls.

    Operations without ``wait_for_receipt`` succeed as soon as the call
    returns a result and report no cost. Operations with it treat the result
    as a transaction hash and poll for its receipt.
    """

    def __init__(
        self,
        name: str,
        client: JsonRpcClient,
        operations: Mapping[str, OperationSpec],
    ):
        self._name = name
        self._client = client
        self._operations = dict(operations)

    @property
    def target_id(self) -> str:
        return self._name

    @property
    def operation_kinds(self) -> Sequence[str]:
        return list(self._operations)

    async def execute(self, operation: str) -> OperationResult:
        spec = self._operations.get(operation)
        if spec is None:
            raise KeyError(f"Operation '{operation}' is not defined for {self._name}")

        result = await self._client.call(spec.method, copy.deepcopy(list(spec.params)))
        if not spec.wait_for_receipt:
            return OperationResult(success=True)

        if not isinstance(result, str):
            raise SourceError(f"{spec.method} did not return a transaction hash: {result!r}")

        receipt = await self._wait_for_receipt(result, spec)
        success = _to_int(receipt.get("status")) == 1
        return OperationResult(
            success=success,
            cost=_to_int(receipt.get("gasUsed")) or 0,
            unit_price=_to_int(receipt.get("effectiveGasPrice") or receipt.get("gasPrice")),
            sequence_id=_to_int(receipt.get("blockNumber")),
            error=None if success else f"Transaction {result} reverted",
        )

    async def _wait_for_receipt(self, tx_hash: str, spec: OperationSpec) -> Dict[str, Any]:
        deadline = time.monotonic() + spec.receipt_timeout_seconds
        while True:
            receipt = await self._client.call("eth_getTransactionReceipt", [tx_hash])
            if receipt:
                return receipt
            if time.monotonic() >= deadline:
                raise asyncio.TimeoutError(
                    f"No receipt for {tx_hash} after {spec.receipt_timeout_seconds}s"
                )
            await asyncio.sleep(spec.receipt_poll_interval_seconds)

    async def aclose(self) -> None:
        await self._client.aclose()
