"""Shared fixtures and fakes."""
from typing import Any

import pytest

from celo_bot.ai.client import CompletionClient, CompletionResponse
from celo_bot.ai.tools.base import Tool, require_str
from celo_bot.core.types import ToolContext
from celo_bot.storage.cache import CacheStore


class FakeClock:
    """Manually advanced time source (seconds)."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedCompletion(CompletionClient):
    """Returns queued responses in order and records every request.

    A queued exception is raised instead of returned.
    """

    def __init__(self, *responses: CompletionResponse):
        self._responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    @property
    def model_name(self) -> str:
        return "fake-model"

    async def complete(self, messages, tools=None, tool_choice=None) -> CompletionResponse:
        self.calls.append({"messages": messages, "tools": tools, "tool_choice": tool_choice})
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class EchoTool(Tool):
    """Returns its address argument and the caller's user id."""

    def __init__(self, result: Any = "unset"):
        self._result = result
        self.received: list[tuple] = []

    @property
    def name(self) -> str:
        return "getAccountInfo"

    @property
    def description(self) -> str:
        return "Echo tool"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {"type": "object", "properties": {"address": {"type": "string"}}, "required": ["address"]}

    def call_args(self, arguments: dict[str, Any], context: ToolContext) -> tuple:
        return (require_str(arguments, "address"), context.user_id)

    async def run(self, address: str, user_id: str) -> Any:
        self.received.append((address, user_id))
        if self._result == "unset":
            return {"address": address, "user_id": user_id}
        return self._result


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(tmp_path, clock) -> CacheStore:
    return CacheStore(tmp_path / "localData.json", ttl_seconds=300, clock=clock)
