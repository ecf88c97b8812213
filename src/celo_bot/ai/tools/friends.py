"""Friend lookup tool: resolves a saved name and reports its balances."""

from __future__ import annotations

from typing import Any

from celo_bot.ai.tools.base import Tool, require_str
from celo_bot.ai.tools.results import FriendInfo, to_jsonable, utc_now_iso
from celo_bot.ai.tools.tokens import TokenBalancesTool
from celo_bot.core.types import ToolContext
from celo_bot.log import get_logger
from celo_bot.storage.address_book import AddressBook
from celo_bot.storage.cache import CachePartition, CacheStore

logger = get_logger(__name__)


def friend_cache_key(user_id: str, name: str) -> str:
    return f"{user_id}#{name}"


class FriendInfoTool(Tool):
    def __init__(self, address_book: AddressBook, token_balances: TokenBalancesTool, cache: CacheStore):
        self._address_book = address_book
        self._token_balances = token_balances
        self._cache = cache

    @property
    def name(self) -> str:
        return "getFriendInfo"

    @property
    def description(self) -> str:
        return (
            "Look up a friend the user saved in their address book by name and "
            "return the friend's address with CELO and cUSD balances."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "name": {
                    "type": "string",
                    "description": "The friend's name as saved in the address book",
                },
            },
            "required": ["name"],
        }

    def call_args(self, arguments: dict[str, Any], context: ToolContext) -> tuple[Any, ...]:
        # the user id always comes from the caller, never from the model
        return (context.user_id, require_str(arguments, "name"))

    async def run(self, user_id: str, name: str) -> FriendInfo:
        address = await self._address_book.resolve(user_id, name)
        if address is None:
            logger.info("friend_not_found", user_id=user_id, name=name)
            return FriendInfo(
                name=name,
                user_id=user_id,
                found=False,
                message=f"No friend named '{name}' is saved in this user's address book.",
            )

        balances = await self._token_balances.run(address)
        info = FriendInfo(
            name=name,
            user_id=user_id,
            found=True,
            address=address,
            balances=balances,
            last_checked=utc_now_iso(),
        )
        self._cache.set(CachePartition.FRIENDS, friend_cache_key(user_id, name), to_jsonable(info))
        return info
