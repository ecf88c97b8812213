"""In-memory conversation history keyed by conversation id."""

from __future__ import annotations

import asyncio
from collections import deque

from celo_bot.core.types import Turn
from celo_bot.log import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_TURNS = 50


class SessionStore:
    """Ordered user/assistant turns per conversation.

    History is bounded to the most recent ``max_turns`` turns. Each
    conversation also gets an ``asyncio.Lock`` so callers can serialise
    queries against the same conversation.
    """

    def __init__(self, max_turns: int = DEFAULT_MAX_TURNS):
        self._max_turns = max_turns
        self._sessions: dict[str, deque[Turn]] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _session(self, conversation_id: str) -> deque[Turn]:
        if conversation_id not in self._sessions:
            self._sessions[conversation_id] = deque(maxlen=self._max_turns)
            logger.info("session_created", conversation_id=conversation_id)
        return self._sessions[conversation_id]

    def get(self, conversation_id: str) -> list[Turn]:
        """Return a copy of the conversation's turns, creating it on first access."""
        return list(self._session(conversation_id))

    def append(self, conversation_id: str, turn: Turn) -> None:
        self._session(conversation_id).append(turn)

    def is_fresh(self, conversation_id: str) -> bool:
        return not self._sessions.get(conversation_id)

    def reset(self, conversation_id: str) -> None:
        """Drop all turns for the conversation."""
        self._sessions.pop(conversation_id, None)
        logger.info("session_reset", conversation_id=conversation_id)

    def lock(self, conversation_id: str) -> asyncio.Lock:
        if conversation_id not in self._locks:
            self._locks[conversation_id] = asyncio.Lock()
        return self._locks[conversation_id]
