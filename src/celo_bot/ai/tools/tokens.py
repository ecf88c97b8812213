"""CELO / cUSD token balance tool."""

from __future__ import annotations

import asyncio
from typing import Any

from celo_bot.ai.tools.base import Tool, require_str
from celo_bot.ai.tools.results import TokenBalances, from_base_units, to_jsonable, utc_now_iso
from celo_bot.core.types import ToolContext
from celo_bot.log import get_logger
from celo_bot.services.chain import ChainClient
from celo_bot.storage.cache import CachePartition, CacheStore

logger = get_logger(__name__)

GOLD_TOKEN = "GoldToken"
STABLE_TOKEN = "StableToken"


class TokenBalancesTool(Tool):
    """Reads CELO and cUSD balances via the token addresses in the Celo registry."""

    def __init__(self, chain: ChainClient, cache: CacheStore):
        self._chain = chain
        self._cache = cache

    @property
    def name(self) -> str:
        return "getTokenBalances"

    @property
    def description(self) -> str:
        return "Get the CELO and cUSD token balances of a Celo address."

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "address": {
                    "type": "string",
                    "description": "The 0x-prefixed Celo account address",
                },
            },
            "required": ["address"],
        }

    def call_args(self, arguments: dict[str, Any], context: ToolContext) -> tuple[Any, ...]:
        return (require_str(arguments, "address"),)

    async def token_addresses(self) -> dict[str, str]:
        gold, stable = await asyncio.gather(
            self._chain.get_registry_address(GOLD_TOKEN),
            self._chain.get_registry_address(STABLE_TOKEN),
        )
        return {GOLD_TOKEN: gold, STABLE_TOKEN: stable}

    async def run(self, address: str) -> TokenBalances:
        key = address.lower()
        cached = self._cache.get(CachePartition.ADDRESSES, key)
        if cached is not None:
            logger.debug("token_balances_cache_hit", address=address)
            return TokenBalances.from_dict(cached)

        tokens = await self.token_addresses()
        celo_raw, cusd_raw = await asyncio.gather(
            self._chain.get_token_balance(tokens[GOLD_TOKEN], address),
            self._chain.get_token_balance(tokens[STABLE_TOKEN], address),
        )

        balances = TokenBalances(
            address=address,
            celo=from_base_units(celo_raw),
            cusd=from_base_units(cusd_raw),
            raw={"celo": str(celo_raw), "cusd": str(cusd_raw)},
            last_checked=utc_now_iso(),
        )
        self._cache.set(CachePartition.ADDRESSES, key, to_jsonable(balances))
        logger.info("token_balances_fetched", address=address, celo=str(balances.celo), cusd=str(balances.cusd))
        return balances
