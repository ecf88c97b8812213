"""Completion service client for OpenAI-compatible chat APIs (DeepSeek by default)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

import openai

from celo_bot.config import CompletionConfig
from celo_bot.core.errors import CompletionError
from celo_bot.log import get_logger

logger = get_logger(__name__)


@dataclass
class CompletionResponse:
    """Provider-neutral view of one completion message.

    A tool request may appear in ``text`` (embedded JSON), in ``function_call``
    (legacy single call) or in ``tool_calls``; all three are kept as plain dicts.
    """

    text: str = ""
    function_call: Optional[dict[str, Any]] = None
    tool_calls: list[dict[str, Any]] = field(default_factory=list)
    input_tokens: int = 0
    output_tokens: int = 0
    raw: Any = None  # Backend-specific raw response


class CompletionClient(ABC):
    """Abstract base class for completion backends."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        ...

    @abstractmethod
    async def complete(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        tool_choice: str | None = None,
    ) -> CompletionResponse:
        """Run one completion round over *messages*.

        *tool_choice* is omitted from the request when None.
        """
        ...


class OpenAICompletionClient(CompletionClient):
    """Chat Completions backend using the official openai SDK."""

    def __init__(self, config: CompletionConfig, client: Any = None):
        self._config = config
        self._client = client or openai.AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            max_retries=config.max_retries,
            timeout=config.timeout,
        )

    @property
    def model_name(self) -> str:
        return self._config.model

    async def complete(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        tool_choice: str | None = None,
    ) -> CompletionResponse:
        kwargs: dict[str, Any] = {
            "model": self._config.model,
            "messages": messages,
            "max_tokens": self._config.max_tokens,
            "temperature": self._config.temperature,
        }
        if tools:
            kwargs["tools"] = tools
            if tool_choice:
                kwargs["tool_choice"] = tool_choice

        logger.debug(
            "completion_request",
            model=self._config.model,
            message_count=len(messages),
            tools=len(tools or []),
            tool_choice=tool_choice,
        )
        try:
            response = await self._client.chat.completions.create(**kwargs)
        except openai.OpenAIError as e:
            raise CompletionError(f"Completion request failed: {e}") from e

        if not response.choices:
            raise CompletionError("Completion response contained no choices")

        message = response.choices[0].message
        usage = response.usage
        result = CompletionResponse(
            text=message.content or "",
            function_call=_dump(getattr(message, "function_call", None)),
            tool_calls=[_dump(tc) for tc in (message.tool_calls or [])],
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            raw=response,
        )
        logger.debug(
            "completion_response",
            model=self._config.model,
            input_tokens=result.input_tokens,
            output_tokens=result.output_tokens,
            finish_reason=response.choices[0].finish_reason,
            tool_calls=len(result.tool_calls),
        )
        return result


def _dump(obj: Any) -> Any:
    if obj is None or isinstance(obj, dict):
        return obj
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    return dict(obj)
