"""Tool registry: the fixed name -> tool table used for schemas and dispatch."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from celo_bot.ai.tools.base import Tool
from celo_bot.core.errors import ToolExecutionError
from celo_bot.core.types import ToolCall, ToolContext
from celo_bot.log import get_logger

if TYPE_CHECKING:
    from celo_bot.services.chain import ChainClient
    from celo_bot.services.indexer import IndexerClient
    from celo_bot.storage.address_book import AddressBook
    from celo_bot.storage.cache import CacheStore

logger = get_logger(__name__)


class ToolRegistry:
    """Registry of all available tools."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name}")
        self._tools[tool.name] = tool
        logger.info("tool_registered", tool_name=tool.name)

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools.keys())

    def all_tools(self) -> list[Tool]:
        return list(self._tools.values())

    def specs(self) -> list[dict[str, Any]]:
        """Tool schemas in the format advertised to the completion service."""
        return [t.to_api_dict() for t in self._tools.values()]

    async def dispatch(self, call: ToolCall, context: ToolContext) -> Any:
        """Run *call* and return its result.

        Unknown tools, bad arguments, tool exceptions and empty results all
        raise :class:`ToolExecutionError`.
        """
        tool = self._tools.get(call.name)
        if tool is None:
            raise ToolExecutionError(call.name, "unknown tool")

        logger.info("tool_execute", tool=call.name, call_id=call.id)
        try:
            result = await tool.execute(call.arguments, context)
        except Exception as e:
            logger.error("tool_execution_error", tool=call.name, error=str(e))
            raise ToolExecutionError(call.name, str(e)) from e

        if result is None:
            raise ToolExecutionError(call.name, "tool returned no data")
        return result

    def register_builtin_tools(
        self,
        chain: ChainClient,
        indexer: IndexerClient,
        address_book: AddressBook,
        cache: CacheStore,
    ) -> None:
        """Register the built-in Celo tools."""
        from celo_bot.ai.tools.account import AccountInfoTool
        from celo_bot.ai.tools.friends import FriendInfoTool
        from celo_bot.ai.tools.tokens import TokenBalancesTool
        from celo_bot.ai.tools.transactions import TransactionDetailsTool

        token_balances = TokenBalancesTool(chain, cache)

        self.register(AccountInfoTool(chain, indexer))
        self.register(token_balances)
        self.register(FriendInfoTool(address_book, token_balances, cache))
        self.register(TransactionDetailsTool(chain, cache))
