"""Shared types and enumerations."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
TX_HASH_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")


class Platform(StrEnum):
    TELEGRAM = "telegram"


class Role(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True, slots=True)
class Turn:
    """One user or assistant message in a conversation."""

    role: Role
    content: str

    def to_message(self) -> dict[str, Any]:
        return {"role": str(self.role), "content": self.content}


@dataclass(frozen=True, slots=True)
class ToolCall:
    """A decoded request to run a named tool with specific arguments."""

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ToolContext:
    """Caller identity passed alongside a tool call."""

    conversation_id: str
    user_id: str


def is_address(value: str) -> bool:
    return bool(ADDRESS_PATTERN.match(value))


def is_tx_hash(value: str) -> bool:
    return bool(TX_HASH_PATTERN.match(value))
