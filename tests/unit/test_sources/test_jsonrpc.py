"""
Unit tests for the JSON-RPC client, data source and target.

Requests are served by an httpx.MockTransport so no network is involved.
"""

import asyncio
import json

import httpx
import pytest

from chainbench.models.config import OperationSpec
from chainbench.sources import JsonRpcClient, JsonRpcDataSource, JsonRpcTarget
from chainbench.sources.base import RpcError, SourceError

URL = "http://node.test:8545"


def make_client(results, calls=None):
    """
    Build a client whose endpoint answers each method from ``results``.

    A value may be a callable taking the params, an ``httpx.Response``, or a
    plain result. Methods missing from ``results`` answer with an error.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        method, params = payload["method"], payload["params"]
        if calls is not None:
            calls.append((method, params))
        if method not in results:
            return httpx.Response(
                200, json={"jsonrpc": "2.0", "id": payload["id"], "error": {"code": -32601, "message": "method not found"}}
            )
        answer = results[method]
        if callable(answer):
            answer = answer(params)
        if isinstance(answer, httpx.Response):
            return answer
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "result": answer})

    return JsonRpcClient(URL, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.unit
class TestJsonRpcClient:

    @pytest.mark.asyncio
    async def test_call_returns_result(self):
        calls = []
        client = make_client({"eth_chainId": "0x1"}, calls)

        assert await client.call("eth_chainId") == "0x1"
        assert calls == [("eth_chainId", [])]

    @pytest.mark.asyncio
    async def test_error_object_raises_rpc_error(self):
        client = make_client({})

        with pytest.raises(RpcError, match="method not found") as exc_info:
            await client.call("eth_unknown")
        assert exc_info.value.code == -32601

    @pytest.mark.asyncio
    async def test_http_status_raises_source_error(self):
        client = make_client({"eth_blockNumber": httpx.Response(500, text="down")})

        with pytest.raises(SourceError, match="eth_blockNumber via"):
            await client.call("eth_blockNumber")

    @pytest.mark.asyncio
    async def test_invalid_json_raises_source_error(self):
        client = make_client({"eth_blockNumber": httpx.Response(200, text="<html>")})

        with pytest.raises(SourceError, match="invalid JSON"):
            await client.call("eth_blockNumber")


@pytest.mark.unit
class TestJsonRpcDataSource:

    @pytest.mark.asyncio
    async def test_height_and_price(self):
        source = JsonRpcDataSource(make_client({"eth_blockNumber": "0x10", "eth_gasPrice": "0x3b9aca00"}))

        assert source.source_id == URL
        assert await source.current_height() == 16
        assert await source.current_unit_price() == 1_000_000_000

    @pytest.mark.asyncio
    async def test_block_at(self):
        calls = []
        block = {"number": "0x10", "timestamp": "0x64", "transactions": ["0xa", "0xb"]}
        source = JsonRpcDataSource(make_client({"eth_getBlockByNumber": block}, calls), "primary")

        info = await source.block_at(16)

        assert (info.number, info.timestamp, info.tx_count) == (16, 100, 2)
        assert calls == [("eth_getBlockByNumber", ["0x10", False])]

    @pytest.mark.asyncio
    async def test_missing_block(self):
        source = JsonRpcDataSource(make_client({"eth_getBlockByNumber": None}))

        with pytest.raises(SourceError, match="Block 5 not found"):
            await source.block_at(5)

    @pytest.mark.asyncio
    async def test_malformed_values(self):
        source = JsonRpcDataSource(
            make_client({"eth_blockNumber": "latest", "eth_getBlockByNumber": {"number": "0x1"}})
        )

        with pytest.raises(SourceError, match="Invalid block number"):
            await source.current_height()
        with pytest.raises(SourceError, match="Malformed block"):
            await source.block_at(1)


@pytest.mark.unit
class TestJsonRpcTarget:

    @staticmethod
    def receipt(status="0x1"):
        return {"status": status, "gasUsed": "0x5208", "effectiveGasPrice": "0x77359400", "blockNumber": "0x2a"}

    @pytest.mark.asyncio
    async def test_read_operation(self):
        calls = []
        target = JsonRpcTarget(
            "l1",
            make_client({"eth_call": "0x"}, calls),
            {"read": OperationSpec(method="eth_call", params=("0xabc", "latest"))},
        )

        result = await target.execute("read")

        assert result.success is True
        assert result.cost == 0
        assert calls == [("eth_call", ["0xabc", "latest"])]
        assert target.operation_kinds == ["read"]

    @pytest.mark.asyncio
    async def test_transaction_waits_for_receipt(self):
        receipts = iter([None, self.receipt()])
        target = JsonRpcTarget(
            "l1",
            make_client({
                "eth_sendRawTransaction": "0xhash",
                "eth_getTransactionReceipt": lambda params: next(receipts),
            }),
            {
                "create": OperationSpec(
                    method="eth_sendRawTransaction",
                    params=("0xsigned",),
                    wait_for_receipt=True,
                    receipt_poll_interval_seconds=0.001,
                )
            },
        )

        result = await target.execute("create")

        assert result.success is True
        assert result.cost == 21000
        assert result.unit_price == 2_000_000_000
        assert result.sequence_id == 42

    @pytest.mark.asyncio
    async def test_reverted_transaction(self):
        target = JsonRpcTarget(
            "l1",
            make_client({"eth_sendRawTransaction": "0xhash", "eth_getTransactionReceipt": self.receipt("0x0")}),
            {"create": OperationSpec(method="eth_sendRawTransaction", wait_for_receipt=True)},
        )

        result = await target.execute("create")

        assert result.success is False
        assert result.error == "Transaction 0xhash reverted"

    @pytest.mark.asyncio
    async def test_receipt_timeout(self):
        target = JsonRpcTarget(
            "l1",
            make_client({"eth_sendRawTransaction": "0xhash", "eth_getTransactionReceipt": None}),
            {
                "create": OperationSpec(
                    method="eth_sendRawTransaction",
                    wait_for_receipt=True,
                    receipt_timeout_seconds=0.01,
                    receipt_poll_interval_seconds=0.005,
                )
            },
        )

        with pytest.raises(asyncio.TimeoutError, match="No receipt for 0xhash"):
            await target.execute("create")

    @pytest.mark.asyncio
    async def test_unknown_operation(self):
        target = JsonRpcTarget("l1", make_client({}), {})

        with pytest.raises(KeyError, match="not defined for l1"):
            await target.execute("create")
