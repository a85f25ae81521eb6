"""
Unit tests for JsonRpcBlockSource.

Uses httpx.MockTransport in place of a node.

Usage:
    pytest vigie/tests/unit/infrastructure/test_json_rpc_block_source.py
"""

import json

import httpx
import pytest

from vigie.config.settings import VigieConfig
from vigie.domain.exceptions import RPCException, SubscriptionError
from vigie.infrastructure.blockchain import JsonRpcBlockSource

RPC_URL = "http://127.0.0.1:8545"
BLOCK_HASH = "0x" + "11" * 32
PARENT_HASH = "0x" + "10" * 32


@pytest.fixture
def rpc_settings() -> VigieConfig:
    """Two attempts, no backoff delay."""
    return VigieConfig(
        rpc_url=RPC_URL,
        resilience={
            "rpc_query": {
                "max_attempts": 2,
                "initial_delay": 0.0,
                "max_delay": 0.0,
                "jitter": False,
            }
        },
    )


@pytest.fixture
def node():
    """Scriptable node: queue responses, inspect requests."""

    class Node:
        def __init__(self):
            self.requests = []
            self.responses = []

        def handler(self, request: httpx.Request) -> httpx.Response:
            payload = json.loads(request.content)
            self.requests.append(payload)
            response = self.responses.pop(0)
            if isinstance(response, httpx.Response):
                return response
            return httpx.Response(
                200, json={"jsonrpc": "2.0", "id": payload["id"], **response}
            )

    return Node()


@pytest.fixture
def make_source(rpc_settings, node):
    def _make(**kwargs):
        client = httpx.AsyncClient(transport=httpx.MockTransport(node.handler))
        return JsonRpcBlockSource(settings=rpc_settings, client=client, **kwargs)

    return _make


class TestJsonRpcBlockSource:
    """Unit tests for JsonRpcBlockSource."""

    async def test_get_block_by_number(self, make_source, node):
        node.responses.append(
            {
                "result": {
                    "number": "0x65",
                    "hash": BLOCK_HASH,
                    "parentHash": PARENT_HASH,
                }
            }
        )
        source = make_source()

        block = await source.get_block_by_number(101)

        assert block.number == 101
        assert block.hash == BLOCK_HASH
        assert block.parent_hash == PARENT_HASH
        assert node.requests[0]["method"] == "eth_getBlockByNumber"
        assert node.requests[0]["params"] == ["0x65", False]

    async def test_missing_block_returns_none(self, make_source, node):
        node.responses.append({"result": None})

        assert await make_source().get_block_by_number(500) is None

    async def test_get_transaction_receipt(self, make_source, node):
        node.responses.append(
            {
                "result": {
                    "transactionHash": "0xaa",
                    "blockHash": BLOCK_HASH,
                    "blockNumber": "0x64",
                    "status": "0x1",
                }
            }
        )

        receipt = await make_source().get_transaction_receipt("0xaa")

        assert receipt.block_number == 100
        assert receipt.succeeded is True
        assert node.requests[0]["params"] == ["0xaa"]

    async def test_unknown_receipt_returns_none(self, make_source, node):
        node.responses.append({"result": None})

        assert await make_source().get_transaction_receipt("0xaa") is None

    async def test_transient_error_is_retried(self, make_source, node):
        node.responses.append(httpx.Response(503))
        node.responses.append({"result": None})

        assert await make_source().get_block_by_number(101) is None
        assert len(node.requests) == 2

    async def test_node_error_after_retries(self, make_source, node):
        error = {"code": -32000, "message": "header not found"}
        node.responses.extend([{"error": error}, {"error": error}])

        with pytest.raises(RPCException) as exc_info:
            await make_source().get_block_by_number(101)

        assert exc_info.value.details["attempts"] == 2
        assert exc_info.value.details["method"] == "eth_getBlockByNumber"
        assert exc_info.value.details["error"] == error

    async def test_invalid_json_is_rpc_error(self, make_source, node):
        node.responses.extend(
            [httpx.Response(200, content=b"<html>"), httpx.Response(200, content=b"")]
        )

        with pytest.raises(RPCException):
            await make_source().get_block_by_number(101)

    async def test_missing_url(self, node):
        source = JsonRpcBlockSource(
            settings=VigieConfig(
                resilience={"rpc_query": {"max_attempts": 1}},
            )
        )

        with pytest.raises(RPCException):
            await source.get_block_by_number(101)
        assert node.requests == []

    async def test_no_subscriptions(self, make_source):
        source = make_source()

        assert source.supports_subscriptions() is False
        with pytest.raises(SubscriptionError):
            await source.subscribe("newHeads")

    async def test_close_keeps_injected_client(self, make_source):
        source = make_source()

        await source.close()

        assert not source.client.is_closed

    async def test_context_manager_closes_own_client(self, rpc_settings):
        async with JsonRpcBlockSource(settings=rpc_settings) as source:
            client = source.client

        assert client.is_closed
