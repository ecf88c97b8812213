"""Abstract messenger adapter interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from celo_bot.messenger.models import IncomingMessage, OutgoingMessage


def split_message(text: str, max_length: int) -> list[str]:
    """Split *text* into chunks of at most *max_length*, preferring newline boundaries."""
    if len(text) <= max_length:
        return [text]

    chunks = []
    while text:
        if len(text) <= max_length:
            chunks.append(text)
            break
        split_pos = text.rfind("\n", 0, max_length)
        if split_pos <= 0:
            split_pos = max_length
        chunks.append(text[:split_pos])
        text = text[split_pos:].lstrip("\n")
    return chunks


class MessengerAdapter(ABC):
    """Front-end that delivers user queries and sends back replies.

    ``max_message_length`` is the platform's per-message limit; :meth:`reply`
    splits longer texts into several messages.
    """

    max_message_length: int = 4096

    def __init__(self, config: dict):
        self.config = config
        self._message_callback: Callable[[IncomingMessage], Awaitable[None]] | None = None

    @abstractmethod
    async def start(self) -> None:
        """Connect to the platform and begin receiving messages."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        ...

    @abstractmethod
    async def send_message(self, message: OutgoingMessage) -> None:
        ...

    @abstractmethod
    async def send_typing_indicator(self, chat_id: str) -> None:
        ...

    async def reply(self, chat_id: str, text: str) -> None:
        for chunk in split_message(text or "(empty response)", self.max_message_length):
            await self.send_message(OutgoingMessage(chat_id=chat_id, text=chunk))

    def on_message(self, callback: Callable[[IncomingMessage], Awaitable[None]]) -> None:
        self._message_callback = callback

    @property
    @abstractmethod
    def platform_name(self) -> str:
        ...
