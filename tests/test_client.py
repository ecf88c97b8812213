"""Tests for the OpenAI-compatible completion client."""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from celo_bot.ai.client import OpenAICompletionClient
from celo_bot.config import CompletionConfig
from celo_bot.core.errors import CompletionError

pytestmark = pytest.mark.asyncio

CONFIG = CompletionConfig(api_key="sk-test")
TOOLS = [{"type": "function", "function": {"name": "getAccountInfo", "description": "", "parameters": {}}}]


def _sdk_response(content=None, tool_calls=None, function_call=None):
    message = SimpleNamespace(content=content, tool_calls=tool_calls, function_call=function_call)
    return SimpleNamespace(
        choices=[SimpleNamespace(message=message, finish_reason="stop")],
        usage=SimpleNamespace(prompt_tokens=12, completion_tokens=3),
    )


def _sdk(response=None, error=None) -> MagicMock:
    sdk = MagicMock()
    sdk.chat.completions.create = AsyncMock(return_value=response, side_effect=error)
    return sdk


async def test_text_response():
    sdk = _sdk(_sdk_response(content="Hello"))
    client = OpenAICompletionClient(CONFIG, client=sdk)

    result = await client.complete([{"role": "user", "content": "hi"}])

    assert result.text == "Hello"
    assert result.tool_calls == []
    assert result.function_call is None
    assert (result.input_tokens, result.output_tokens) == (12, 3)
    kwargs = sdk.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == "deepseek-chat"
    assert "tools" not in kwargs
    assert "tool_choice" not in kwargs


async def test_tools_and_tool_choice_forwarded():
    sdk = _sdk(_sdk_response(content=""))
    client = OpenAICompletionClient(CONFIG, client=sdk)

    await client.complete([], tools=TOOLS, tool_choice="auto")

    kwargs = sdk.chat.completions.create.await_args.kwargs
    assert kwargs["tools"] == TOOLS
    assert kwargs["tool_choice"] == "auto"


async def test_tool_choice_omitted_when_none():
    sdk = _sdk(_sdk_response(content=""))
    client = OpenAICompletionClient(CONFIG, client=sdk)

    await client.complete([], tools=TOOLS, tool_choice=None)

    kwargs = sdk.chat.completions.create.await_args.kwargs
    assert "tool_choice" not in kwargs


async def test_tool_calls_are_converted_to_dicts():
    tool_call = MagicMock()
    tool_call.model_dump.return_value = {
        "id": "call_1",
        "type": "function",
        "function": {"name": "getAccountInfo", "arguments": "{}"},
    }
    sdk = _sdk(_sdk_response(tool_calls=[tool_call]))
    client = OpenAICompletionClient(CONFIG, client=sdk)

    result = await client.complete([], tools=TOOLS)

    assert result.text == ""
    assert result.tool_calls[0]["id"] == "call_1"


async def test_sdk_error_becomes_completion_error():
    request = httpx.Request("POST", "https://api.deepseek.com/chat/completions")
    sdk = _sdk(error=openai.APIConnectionError(request=request))
    client = OpenAICompletionClient(CONFIG, client=sdk)

    with pytest.raises(CompletionError):
        await client.complete([])


async def test_empty_choices_is_an_error():
    sdk = _sdk(SimpleNamespace(choices=[], usage=None))
    client = OpenAICompletionClient(CONFIG, client=sdk)

    with pytest.raises(CompletionError):
        await client.complete([])
