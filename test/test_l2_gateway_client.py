#!/usr/bin/env python3
"""Tests for the StarkNet gateway client."""

import json

import httpx
import pytest

from wormhole_keeper.errors import RemoteQueryFailed
from wormhole_keeper.utils.amount_codec import AmountCodec
from wormhole_keeper.utils.l2_gateway_client import L2GatewayClient

BASE_URL = "https://alpha4.starknet.io"
GATEWAY = 0x4D4D


def make_client(handler, **kwargs) -> L2GatewayClient:
    return L2GatewayClient(BASE_URL, transport=httpx.MockTransport(handler), **kwargs)


class TestL2GatewayClient:
    """Test suite for L2GatewayClient."""

    @pytest.mark.asyncio
    async def test_call_contract(self):
        """Reads post the selector and calldata to the feeder gateway."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"result": ["0x1f4", "0x0"]})

        result = await make_client(handler).call_contract(GATEWAY, "batched_dai_to_flush", [42])

        assert result == [500, 0]
        assert seen["path"] == "/feeder_gateway/call_contract"
        assert seen["params"] == {"blockNumber": "pending"}
        assert seen["body"]["contract_address"] == hex(GATEWAY)
        assert seen["body"]["entry_point_selector"] == hex(
            AmountCodec.get_selector_from_name("batched_dai_to_flush")
        )
        assert seen["body"]["calldata"] == ["42"]

    @pytest.mark.asyncio
    async def test_http_error_raises_remote_query_failed(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="internal error")

        with pytest.raises(RemoteQueryFailed, match="HTTP 500"):
            await make_client(handler).call_contract(GATEWAY, "batched_dai_to_flush", [42])

    @pytest.mark.asyncio
    async def test_transport_error_raises_remote_query_failed(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RemoteQueryFailed) as exc_info:
            await make_client(handler).get_transaction_receipt("0xabc")

        assert exc_info.value.operation == "get_transaction_receipt 0xabc"
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_unexpected_call_response(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"code": "StarknetErrorCode.UNINITIALIZED_CONTRACT"})

        with pytest.raises(RemoteQueryFailed, match="unexpected response"):
            await make_client(handler).call_contract(GATEWAY, "batched_dai_to_flush", [42])

    @pytest.mark.asyncio
    async def test_invoke_unsigned(self):
        """Without a signer the invoke carries an empty signature."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"code": "TRANSACTION_RECEIVED", "transaction_hash": "0xbeef"})

        tx_hash = await make_client(handler).invoke(GATEWAY, "flush", [42])

        assert tx_hash == "0xbeef"
        assert seen["path"] == "/gateway/add_transaction"
        assert seen["body"]["type"] == "INVOKE_FUNCTION"
        assert seen["body"]["entry_point_selector"] == hex(AmountCodec.get_selector_from_name("flush"))
        assert seen["body"]["signature"] == []

    @pytest.mark.asyncio
    async def test_invoke_with_signer(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"transaction_hash": "0xbeef"})

        def signer(payload):
            assert payload["calldata"] == ["42"]
            return [11, 22]

        await make_client(handler, signer=signer).invoke(GATEWAY, "flush", [42])

        assert seen["body"]["signature"] == ["11", "22"]

    @pytest.mark.asyncio
    async def test_invoke_without_hash(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"code": "SOMETHING_ELSE"})

        with pytest.raises(RemoteQueryFailed, match="invoke flush"):
            await make_client(handler).invoke(GATEWAY, "flush", [42])

    @pytest.mark.asyncio
    async def test_get_transaction_receipt(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/feeder_gateway/get_transaction_receipt"
            assert request.url.params["transactionHash"] == "0xabc"
            return httpx.Response(200, json={"status": "ACCEPTED_ON_L2"})

        receipt = await make_client(handler).get_transaction_receipt("0xabc")

        assert receipt == {"status": "ACCEPTED_ON_L2"}
