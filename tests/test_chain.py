"""Tests for the JSON-RPC and indexer clients, using httpx.MockTransport."""
import json

import httpx
import pytest

from celo_bot.config import ChainConfig
from celo_bot.core.errors import IndexerError, RpcError
from celo_bot.services.chain import (
    SELECTOR_BALANCE_OF,
    SELECTOR_GET_ADDRESS_FOR_STRING,
    ChainClient,
    decode_address,
    decode_uint,
    encode_address_arg,
    encode_string_arg,
)
from celo_bot.services.indexer import IndexerClient

ADDRESS = "0x" + "a" * 40
GOLD = "0x" + "1" * 40
CONFIG = ChainConfig(rpc_url="https://rpc.test", indexer_url="https://indexer.test/api")


def test_encode_string_arg():
    encoded = encode_string_arg("GoldToken")

    assert encoded == (
        "0" * 62 + "20"
        + "0" * 63 + "9"
        + "476f6c64546f6b656e" + "0" * 46
    )


def test_encode_address_arg_pads_to_one_word():
    assert encode_address_arg("0xABCDEF" + "0" * 34) == "0" * 24 + "abcdef" + "0" * 34


def test_decode_helpers():
    assert decode_uint("0x") == 0
    assert decode_uint("0x0de0b6b3a7640000") == 10**18
    assert decode_address("0x" + "0" * 24 + "1" * 40) == GOLD


def _rpc_transport(results: dict, calls: list | None = None) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if calls is not None:
            calls.append(body)
        result = results[body["method"]]
        if callable(result):
            result = result(body["params"])
        if isinstance(result, dict) and "error" in result:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": result["error"]})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_get_balance_decodes_hex_quantity():
    calls: list = []
    client = ChainClient(CONFIG, transport=_rpc_transport({"eth_getBalance": hex(10 * 10**18)}, calls))

    balance = await client.get_balance(ADDRESS)
    await client.stop()

    assert balance == 10 * 10**18
    assert calls[0]["params"] == [ADDRESS, "latest"]
    assert calls[0]["jsonrpc"] == "2.0"


@pytest.mark.asyncio
async def test_get_gas_price_sends_no_params():
    calls: list = []
    client = ChainClient(CONFIG, transport=_rpc_transport({"eth_gasPrice": hex(5 * 10**9)}, calls))

    gas_price = await client.get_gas_price()
    await client.stop()

    assert gas_price == 5 * 10**9
    assert calls[0]["params"] == []


@pytest.mark.asyncio
async def test_registry_lookup_and_token_balance():
    def eth_call(params):
        tx = params[0]
        if tx["data"].startswith(SELECTOR_GET_ADDRESS_FOR_STRING):
            assert tx["to"] == CONFIG.registry_address
            return "0x" + "0" * 24 + GOLD[2:]
        assert tx["to"] == GOLD
        assert tx["data"] == SELECTOR_BALANCE_OF + encode_address_arg(ADDRESS)
        return "0x" + format(5 * 10**17, "064x")

    client = ChainClient(CONFIG, transport=_rpc_transport({"eth_call": eth_call}))

    token = await client.get_registry_address("GoldToken")
    balance = await client.get_token_balance(token, ADDRESS)
    await client.stop()

    assert token == GOLD
    assert balance == 5 * 10**17


@pytest.mark.asyncio
async def test_registry_zero_address_raises():
    client = ChainClient(CONFIG, transport=_rpc_transport({"eth_call": "0x" + "0" * 64}))

    with pytest.raises(RpcError, match="StableToken"):
        await client.get_registry_address("StableToken")
    await client.stop()


@pytest.mark.asyncio
async def test_rpc_error_response_raises():
    client = ChainClient(
        CONFIG,
        transport=_rpc_transport({"eth_getCode": {"error": {"code": -32602, "message": "invalid argument"}}}),
    )

    with pytest.raises(RpcError, match="invalid argument"):
        await client.get_code(ADDRESS)
    await client.stop()


@pytest.mark.asyncio
async def test_rpc_http_failure_raises():
    client = ChainClient(CONFIG, transport=httpx.MockTransport(lambda request: httpx.Response(502)))

    with pytest.raises(RpcError):
        await client.get_transaction("0x" + "1" * 64)
    assert await client.health_check() is False
    await client.stop()


@pytest.mark.asyncio
async def test_missing_transaction_returns_none():
    client = ChainClient(CONFIG, transport=_rpc_transport({"eth_getTransactionByHash": None}))

    assert await client.get_transaction("0x" + "1" * 64) is None
    await client.stop()


def _indexer_transport(payloads: dict, seen: list | None = None) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(dict(request.url.params))
        return httpx.Response(200, json=payloads[request.url.params["action"]])

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_indexer_returns_result_list():
    seen: list = []
    txs = [{"hash": "0x1", "from": ADDRESS, "to": GOLD}]
    client = IndexerClient(
        CONFIG,
        transport=_indexer_transport({"txlist": {"status": "1", "message": "OK", "result": txs}}, seen),
    )

    assert await client.get_transactions(ADDRESS) == txs
    await client.stop()
    assert seen[0] == {"module": "account", "action": "txlist", "address": ADDRESS, "sort": "asc"}


@pytest.mark.asyncio
async def test_indexer_empty_history_is_empty_list():
    client = IndexerClient(
        CONFIG,
        transport=_indexer_transport(
            {
                "txlistinternal": {"status": "0", "message": "No transactions found", "result": []},
                "tokennfttx": {"status": "0", "message": "No token transfers found", "result": []},
            }
        ),
    )

    assert await client.get_internal_transactions(ADDRESS) == []
    assert await client.get_nft_transfers(ADDRESS) == []
    await client.stop()


@pytest.mark.asyncio
async def test_indexer_error_status_raises():
    client = IndexerClient(
        CONFIG,
        transport=_indexer_transport({"tokenlist": {"status": "0", "message": "Invalid address format", "result": None}}),
    )

    with pytest.raises(IndexerError, match="Invalid address format"):
        await client.get_token_list("not-an-address")
    await client.stop()
