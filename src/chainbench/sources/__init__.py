"""
Data source and load target implementations.

The abstract contracts live in ``base``; ``jsonrpc`` provides the HTTP
JSON-RPC implementation used for real networks.
"""

from .base import BlockInfo, DataSource, OperationResult, RpcError, SourceError, Target
from .jsonrpc import JsonRpcClient, JsonRpcDataSource, JsonRpcTarget

__all__ = [
    "BlockInfo",
    "DataSource",
    "OperationResult",
    "RpcError",
    "SourceError",
    "Target",
    "JsonRpcClient",
    "JsonRpcDataSource",
    "JsonRpcTarget",
]
