"""Base class for upstream HTTP services sharing one httpx session each."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx

from celo_bot.config import ChainConfig
from celo_bot.log import get_logger

logger = get_logger(__name__)


class Service(ABC):
    """Owns an ``httpx.AsyncClient`` that is opened on start (or first use) and closed on stop.

    *transport* replaces the network layer, e.g. with ``httpx.MockTransport``.
    """

    def __init__(self, config: ChainConfig, transport: httpx.AsyncBaseTransport | None = None):
        self._config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    @abstractmethod
    def service_name(self) -> str:
        ...

    @property
    @abstractmethod
    def endpoint(self) -> str:
        """Base URL this service talks to."""
        ...

    def _client_options(self) -> dict[str, Any]:
        return {}

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._config.timeout,
                transport=self._transport,
                **self._client_options(),
            )
            logger.info("service_started", service=self.service_name, endpoint=self.endpoint)

    async def stop(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("service_stopped", service=self.service_name)

    async def http(self) -> httpx.AsyncClient:
        """The open client, starting the service if needed."""
        if self._client is None:
            await self.start()
        return self._client  # type: ignore[return-value]

    @abstractmethod
    async def health_check(self) -> bool:
        ...
