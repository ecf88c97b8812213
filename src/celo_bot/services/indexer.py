"""Blockscout (Etherscan-compatible) indexer client for account history queries."""

from __future__ import annotations

from typing import Any

import httpx

from celo_bot.core.errors import IndexerError
from celo_bot.log import get_logger
from celo_bot.services.base import Service

logger = get_logger(__name__)

_EMPTY_RESULT_MESSAGES = ("no transactions found", "no token transfers found", "no tokens found")


class IndexerClient(Service):
    """Queries ``?module=account&action=...`` endpoints of a Blockscout instance."""

    @property
    def service_name(self) -> str:
        return "indexer"

    @property
    def endpoint(self) -> str:
        return self._config.indexer_url

    async def health_check(self) -> bool:
        try:
            await self._account_query("balance", self._config.registry_address)
            return True
        except IndexerError:
            return False

    async def _account_query(self, action: str, address: str, **params: Any) -> Any:
        client = await self.http()
        query = {"module": "account", "action": action, "address": address, **params}
        logger.debug("indexer_request", action=action, address=address)
        try:
            response = await client.get(self.endpoint, params=query)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise IndexerError(f"{action} failed: {e}") from e

        if str(data.get("status")) == "1":
            return data.get("result")

        message = str(data.get("message", ""))
        if message.lower().startswith(_EMPTY_RESULT_MESSAGES):
            return []
        raise IndexerError(f"{action} failed: {message or data.get('result')}")

    async def get_transactions(self, address: str) -> list[dict[str, Any]]:
        return await self._account_query("txlist", address, sort="asc")

    async def get_token_list(self, address: str) -> list[dict[str, Any]]:
        return await self._account_query("tokenlist", address)

    async def get_internal_transactions(self, address: str) -> list[dict[str, Any]]:
        return await self._account_query("txlistinternal", address, sort="asc")

    async def get_nft_transfers(self, address: str) -> list[dict[str, Any]]:
        return await self._account_query("tokennfttx", address, sort="asc")
