"""Read-only Celo JSON-RPC client."""

from __future__ import annotations

import itertools
from typing import Any, Optional

import httpx

from celo_bot.config import ChainConfig
from celo_bot.core.errors import RpcError
from celo_bot.log import get_logger
from celo_bot.services.base import Service

logger = get_logger(__name__)

# keccak256 selectors
SELECTOR_GET_ADDRESS_FOR_STRING = "0xdd927233"  # getAddressForString(string)
SELECTOR_BALANCE_OF = "0x70a08231"  # balanceOf(address)

ZERO_ADDRESS = "0x" + "0" * 40


def _word(hex_body: str) -> str:
    return hex_body.rjust(64, "0")


def encode_address_arg(address: str) -> str:
    """ABI-encode a single address argument (without selector)."""
    return _word(address.lower().removeprefix("0x"))


def encode_string_arg(value: str) -> str:
    """ABI-encode a single dynamic string argument (without selector)."""
    data = value.encode("utf-8")
    padded_len = (len(data) + 31) // 32 * 32
    return (
        _word(format(32, "x"))
        + _word(format(len(data), "x"))
        + data.hex().ljust(padded_len * 2, "0")
    )


def decode_uint(result: str) -> int:
    body = result.removeprefix("0x")
    return int(body, 16) if body else 0


def decode_address(result: str) -> str:
    body = result.removeprefix("0x").rjust(64, "0")
    return "0x" + body[-40:]


class ChainClient(Service):
    """JSON-RPC 2.0 client for a Celo node, built on httpx."""

    def __init__(self, config: ChainConfig, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(config, transport)
        self._ids = itertools.count(1)

    @property
    def service_name(self) -> str:
        return "chain"

    @property
    def endpoint(self) -> str:
        return self._config.rpc_url

    @property
    def registry_address(self) -> str:
        return self._config.registry_address

    def _client_options(self) -> dict[str, Any]:
        return {"headers": {"Content-Type": "application/json"}}

    async def health_check(self) -> bool:
        try:
            await self.request("eth_chainId", [])
            return True
        except RpcError:
            return False

    async def request(self, method: str, params: list[Any]) -> Any:
        """Send one JSON-RPC call and return its ``result``."""
        client = await self.http()
        payload = {"jsonrpc": "2.0", "method": method, "params": params, "id": next(self._ids)}
        logger.debug("rpc_request", method=method)
        try:
            response = await client.post(self.endpoint, json=payload)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise RpcError(f"{method} failed: {e}") from e

        if "error" in data:
            raise RpcError(f"{method} failed: {data['error']}")
        return data.get("result")

    async def get_balance(self, address: str) -> int:
        return decode_uint(await self.request("eth_getBalance", [address, "latest"]))

    async def get_transaction_count(self, address: str) -> int:
        return decode_uint(await self.request("eth_getTransactionCount", [address, "latest"]))

    async def get_code(self, address: str) -> str:
        return await self.request("eth_getCode", [address, "latest"]) or "0x"

    async def get_gas_price(self) -> int:
        """Current gas price in wei."""
        return decode_uint(await self.request("eth_gasPrice", []))

    async def get_transaction(self, tx_hash: str) -> Optional[dict[str, Any]]:
        return await self.request("eth_getTransactionByHash", [tx_hash])

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[dict[str, Any]]:
        return await self.request("eth_getTransactionReceipt", [tx_hash])

    async def call(self, to: str, data: str) -> str:
        return await self.request("eth_call", [{"to": to, "data": data}, "latest"]) or "0x"

    async def get_registry_address(self, contract_name: str) -> str:
        """Look up a core contract address in the Celo registry."""
        result = await self.call(
            self.registry_address,
            SELECTOR_GET_ADDRESS_FOR_STRING + encode_string_arg(contract_name),
        )
        address = decode_address(result)
        if address == ZERO_ADDRESS:
            raise RpcError(f"Registry has no address for {contract_name}")
        return address

    async def get_token_balance(self, token: str, owner: str) -> int:
        """ERC-20 ``balanceOf(owner)`` in the token's smallest unit."""
        result = await self.call(token, SELECTOR_BALANCE_OF + encode_address_arg(owner))
        return decode_uint(result)
