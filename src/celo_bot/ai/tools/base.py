"""Abstract tool interface for completion-service tool calls."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from celo_bot.core.types import ToolContext


class Tool(ABC):
    """Base class for all model-callable tools.

    A tool declares its exact positional call shape in :meth:`call_args`;
    :meth:`run` is the capability itself.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique tool name sent to the completion service."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        ...

    @property
    @abstractmethod
    def input_schema(self) -> dict[str, Any]:
        """JSON Schema dict describing accepted parameters."""
        ...

    @abstractmethod
    def call_args(self, arguments: dict[str, Any], context: ToolContext) -> tuple[Any, ...]:
        """Select the positional arguments for :meth:`run` from the decoded call."""
        ...

    @abstractmethod
    async def run(self, *args: Any) -> Any:
        ...

    async def execute(self, arguments: dict[str, Any], context: ToolContext) -> Any:
        return await self.run(*self.call_args(arguments, context))

    def to_api_dict(self) -> dict[str, Any]:
        """Serialize to the Chat Completions ``tools`` entry format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema,
            },
        }


def require_str(arguments: dict[str, Any], key: str) -> str:
    """Fetch a required, non-empty string argument."""
    value = arguments.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"missing required argument '{key}'")
    return value.strip()
