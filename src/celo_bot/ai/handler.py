"""Message handler: receives incoming messages, runs commands or queries, sends responses."""

from __future__ import annotations

from typing import Any, Optional

from celo_bot.ai.coordinator import QueryCoordinator
from celo_bot.ai.tools.registry import ToolRegistry
from celo_bot.ai.tools.results import to_jsonable
from celo_bot.core.errors import (
    CeloBotError,
    CompletionError,
    ToolExecutionError,
    ToolNotUsedError,
    UpstreamError,
)
from celo_bot.core.session import SessionStore
from celo_bot.core.types import ToolCall, ToolContext, is_address, is_tx_hash
from celo_bot.log import get_logger
from celo_bot.messenger.base import MessengerAdapter
from celo_bot.messenger.models import BotCommand, IncomingMessage
from celo_bot.storage.address_book import AddressBook

logger = get_logger(__name__)

HELP_TEXT = """Welcome to the Celo assistant bot!

Ask me anything about Celo accounts, e.g.
  "What is the balance of 0x...?"
  "Show me the history of 0x..."
  "How much does alice have?"

Commands:
/addfriend <name> <address> - Save a friend's address
/removefriend <name> - Remove a saved friend
/friends - List your saved friends
/balance - Show the bot wallet's CELO and cUSD balances
/tx_info <hash> - Get transaction information
/reset - Start a new conversation
/help - Show this help message"""


def describe_error(error: CeloBotError) -> str:
    """Human-readable reply for a failed query."""
    if isinstance(error, ToolNotUsedError):
        return (
            "Sorry, I couldn't work out which on-chain data to look up for that. "
            "Try mentioning an address, a transaction hash or a friend's name."
        )
    if isinstance(error, ToolExecutionError):
        return f"Sorry, looking that up failed ({error})."
    if isinstance(error, CompletionError):
        return "Sorry, the language model service is unavailable right now. Please try again."
    if isinstance(error, UpstreamError):
        return f"Sorry, the Celo network data could not be fetched ({error})."
    return f"An error occurred: {error}"


class MessageHandler:
    """Handles the full flow: message -> command or query -> response."""

    def __init__(
        self,
        adapter: MessengerAdapter,
        coordinator: QueryCoordinator,
        sessions: SessionStore,
        address_book: AddressBook,
        tool_registry: ToolRegistry,
        bot_address: Optional[str] = None,
    ):
        self._adapter = adapter
        self._coordinator = coordinator
        self._sessions = sessions
        self._address_book = address_book
        self._tool_registry = tool_registry
        self._bot_address = bot_address

    async def handle(self, message: IncomingMessage) -> None:
        """Process an incoming message end-to-end."""
        text = message.text.strip()
        if not text:
            return

        command = message.command()
        if command is not None:
            response_text = await self._handle_command(message, command)
        else:
            await self._adapter.send_typing_indicator(message.chat_id)
            try:
                response_text = await self._coordinator.process_query(
                    conversation_id=message.chat_id,
                    user_id=message.user_id,
                    query_text=text,
                )
            except CeloBotError as e:
                logger.error(
                    "query_failed",
                    chat_id=message.chat_id,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                response_text = describe_error(e)

        await self._adapter.reply(message.chat_id, response_text)

    async def _handle_command(self, message: IncomingMessage, command: BotCommand) -> str:
        args = command.args

        match command.name:
            case "/start" | "/help":
                return HELP_TEXT
            case "/reset":
                self._sessions.reset(message.chat_id)
                return "Session reset. Starting fresh."
            case "/addfriend":
                if len(args) != 2:
                    return "Usage: /addfriend <name> <address>"
                name, address = args
                if not is_address(address):
                    return f"'{address}' is not a valid Celo address."
                await self._address_book.add(message.user_id, name, address)
                return f"Saved {name.lower()} as {address}."
            case "/removefriend":
                if len(args) != 1:
                    return "Usage: /removefriend <name>"
                if await self._address_book.remove(message.user_id, args[0]):
                    return f"Removed {args[0].lower()}."
                return f"No friend named {args[0]} found."
            case "/friends":
                friends = await self._address_book.list(message.user_id)
                if not friends:
                    return "You have no saved friends. Add one with /addfriend <name> <address>."
                return "Your friends:\n" + "\n".join(f"- {f.name}: {f.address}" for f in friends)
            case "/balance":
                return await self._balance(message)
            case "/tx_info":
                if len(args) != 1 or not is_tx_hash(args[0]):
                    return "Usage: /tx_info <transaction hash>"
                return await self._tx_info(message, args[0])
            case _:
                return f"Unknown command {command.name}. Send /help for the list of commands."

    async def _run_tool(self, message: IncomingMessage, name: str, arguments: dict[str, Any]) -> Any:
        """Dispatch one tool directly, skipping the completion service."""
        call = ToolCall(id=f"cmd_{message.message_id or name}", name=name, arguments=arguments)
        context = ToolContext(conversation_id=message.chat_id, user_id=message.user_id)
        return await self._tool_registry.dispatch(call, context)

    async def _balance(self, message: IncomingMessage) -> str:
        if not self._bot_address:
            return "No bot wallet address is configured. Set chain.bot_address in config.yaml."
        try:
            balances = await self._run_tool(message, "getTokenBalances", {"address": self._bot_address})
        except CeloBotError as e:
            logger.error("balance_failed", address=self._bot_address, error=str(e))
            return f"Error getting balance: {e}"
        return "\n".join(
            [
                "Bot wallet balance:",
                f"Address: {self._bot_address}",
                f"CELO: {balances.celo}",
                f"cUSD: {balances.cusd}",
            ]
        )

    async def _tx_info(self, message: IncomingMessage, tx_hash: str) -> str:
        try:
            details = await self._run_tool(message, "getTransactionDetails", {"hash": tx_hash})
        except CeloBotError as e:
            logger.error("tx_info_failed", hash=tx_hash, error=str(e))
            return f"Error getting transaction info: {e}"

        summary = to_jsonable(details.summary)
        lines = [
            "Transaction Information:",
            f"Hash: {tx_hash}",
            f"From: {summary['from']}",
            f"To: {summary['to']}",
            f"Value: {summary['value_celo']} CELO",
            f"Status: {summary['status']}",
        ]
        if "fee_celo" in summary:
            lines.append(f"Fee: {summary['fee_celo']} CELO")
        return "\n".join(lines)
