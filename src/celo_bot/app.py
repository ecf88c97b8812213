"""Application orchestrator - wires all components and manages lifecycle."""

from __future__ import annotations

from typing import Optional

from celo_bot.ai.client import CompletionClient, OpenAICompletionClient
from celo_bot.ai.conversation import build_system_prompt
from celo_bot.ai.coordinator import QueryCoordinator
from celo_bot.ai.handler import MessageHandler
from celo_bot.ai.tools.registry import ToolRegistry
from celo_bot.config import AppConfig
from celo_bot.core.session import SessionStore
from celo_bot.log import get_logger
from celo_bot.messenger.base import MessengerAdapter
from celo_bot.services.service_manager import ServiceManager
from celo_bot.storage.address_book import AddressBook
from celo_bot.storage.cache import CacheStore
from celo_bot.storage.database import Database

logger = get_logger(__name__)


class CeloBotApp:
    """Top-level application orchestrator.

    Every store is constructed here once and handed to its users explicitly.
    """

    def __init__(self, config: AppConfig, completion: Optional[CompletionClient] = None):
        self.config = config
        self.db = Database(config.storage.db_path)
        self.address_book = AddressBook(self.db)
        self.cache = CacheStore(config.cache.path, ttl_seconds=config.cache.ttl_seconds)
        self.sessions = SessionStore(max_turns=config.conversation.max_turns)
        self.service_manager = ServiceManager(config.chain)
        self.tool_registry = ToolRegistry()
        self.completion = completion or OpenAICompletionClient(config.completion)
        self.coordinator: QueryCoordinator | None = None
        self.adapter: MessengerAdapter | None = None

    async def setup(self) -> QueryCoordinator:
        """Open storage, start upstream clients and build the coordinator."""
        await self.db.initialize()

        self.cache.load()
        if self.config.chain.bot_address:
            self.cache.bot_address = self.config.chain.bot_address

        await self.service_manager.start_all()

        self.tool_registry.register_builtin_tools(
            chain=self.service_manager.get_chain(),
            indexer=self.service_manager.get_indexer(),
            address_book=self.address_book,
            cache=self.cache,
        )

        system_prompt = build_system_prompt(
            self.config.persona, self.config.chain, self.tool_registry.all_tools()
        )
        self.coordinator = QueryCoordinator(
            completion=self.completion,
            registry=self.tool_registry,
            sessions=self.sessions,
            system_prompt=system_prompt,
            network=self.config.chain.network,
            bot_address=self.cache.bot_address,
        )
        return self.coordinator

    async def start(self) -> None:
        """Initialize all components and start the Telegram front-end."""
        coordinator = await self.setup()

        if not self.config.telegram:
            raise ValueError("No 'telegram' section in config; cannot start the bot")

        from celo_bot.messenger.telegram import TelegramAdapter

        self.adapter = TelegramAdapter(self.config.telegram.model_dump())
        handler = MessageHandler(
            adapter=self.adapter,
            coordinator=coordinator,
            sessions=self.sessions,
            address_book=self.address_book,
            tool_registry=self.tool_registry,
            bot_address=self.cache.bot_address,
        )
        self.adapter.on_message(handler.handle)
        await self.adapter.start()
        logger.info(
            "celo_bot_started",
            network=self.config.chain.network,
            model=self.completion.model_name,
            tools=self.tool_registry.names(),
        )

    async def stop(self) -> None:
        """Gracefully shut down all components."""
        if self.adapter:
            try:
                await self.adapter.stop()
            except Exception as e:
                logger.error("adapter_stop_error", error=str(e))

        await self.service_manager.stop_all()
        await self.db.close()
        logger.info("celo_bot_stopped")
