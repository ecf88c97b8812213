"""Lifecycle manager for the upstream Celo clients."""

from __future__ import annotations

from celo_bot.config import ChainConfig
from celo_bot.log import get_logger
from celo_bot.services.base import Service
from celo_bot.services.chain import ChainClient
from celo_bot.services.indexer import IndexerClient

logger = get_logger(__name__)


class ServiceManager:
    """Starts, stops and health-checks the RPC and indexer clients together."""

    def __init__(self, config: ChainConfig):
        self._chain = ChainClient(config)
        self._indexer = IndexerClient(config)
        self._services: list[Service] = [self._chain, self._indexer]

    def get_chain(self) -> ChainClient:
        return self._chain

    def get_indexer(self) -> IndexerClient:
        return self._indexer

    async def start_all(self) -> None:
        for service in self._services:
            await service.start()
        logger.info("all_services_started", services=[s.service_name for s in self._services])

    async def stop_all(self) -> None:
        for service in reversed(self._services):
            try:
                await service.stop()
            except Exception as e:
                logger.error("service_stop_error", service=service.service_name, error=str(e))
        logger.info("all_services_stopped")

    async def health_check_all(self) -> dict[str, bool]:
        return {s.service_name: await s.health_check() for s in self._services}
