"""Build Chat Completions message lists from session history and tool results."""

from __future__ import annotations

import json
from typing import Any, Optional

from celo_bot.ai.tools.base import Tool
from celo_bot.config import ChainConfig, PersonaConfig
from celo_bot.core.types import ToolCall, Turn

_ANALYSIS_HINTS = (
    "Transaction patterns and frequency",
    "Balance changes and trends",
    "Interaction with smart contracts",
    "Gas usage patterns",
    "Time-based analysis",
    "Relationship between addresses",
)


def build_system_prompt(persona: PersonaConfig, chain: ChainConfig, tools: list[Tool]) -> str:
    """Render the fixed system turn from the persona and network configuration."""
    lines = [
        persona.description,
        "",
        f"Network: {chain.network}",
        f"Explorer: {chain.explorer_url}",
        "",
        "Capabilities:",
        *(f"- {cap}" for cap in persona.capabilities),
        "",
        "Limitations:",
        *(f"- {lim}" for lim in persona.limitations),
        "",
        "Available Tools:",
    ]
    for tool in tools:
        params = ", ".join(tool.input_schema.get("properties", {}).keys())
        lines.append(f"- {tool.name}: {tool.description}")
        lines.append(f"  Parameters: {params or '(none)'}")
    lines += [
        "",
        "Always answer from tool data: call exactly one tool for every question.",
        "",
        "When analyzing data, consider:",
        *(f"{i}. {hint}" for i, hint in enumerate(_ANALYSIS_HINTS, start=1)),
        "",
        "Always provide clear, concise explanations and highlight any interesting "
        "patterns or anomalies you notice.",
    ]
    return "\n".join(lines)


def with_bot_context(text: str, bot_address: Optional[str], network: str) -> str:
    """Augment the first user message of a conversation with bot identity context."""
    identity = f"your own wallet address is {bot_address}" if bot_address else "you have no wallet address"
    return f"{text}\n\n[Context: you are a Celo assistant bot on {network}; {identity}.]"


def build_messages(system: str, history: list[Turn]) -> list[dict[str, Any]]:
    """System turn followed by the conversation history."""
    return [{"role": "system", "content": system}, *(turn.to_message() for turn in history)]


def bridge_messages(
    messages: list[dict[str, Any]], call: ToolCall, result_json: str
) -> list[dict[str, Any]]:
    """Return a copy of *messages* extended with the tool call and its result.

    The assistant and tool turns share the call id so the completion service
    can pair them.
    """
    return [
        *messages,
        {
            "role": "assistant",
            "content": None,
            "tool_calls": [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": json.dumps(call.arguments)},
                }
            ],
        },
        {"role": "tool", "tool_call_id": call.id, "content": result_json},
    ]
