"""Locate a tool invocation inside a completion response.

Models vary in how they ask for a tool. Some embed a JSON object such as
``{"function_call": {"name": ..., "arguments": ...}}`` in plain text, others
use the native ``function_call`` field or the ``tool_calls`` list. Each form
is a call shape; shapes are tried in a fixed order and the first one that
decodes into a :class:`ToolCall` wins.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Union

from celo_bot.ai.client import CompletionResponse
from celo_bot.core.errors import ToolNotUsedError
from celo_bot.core.types import ToolCall
from celo_bot.log import get_logger

logger = get_logger(__name__)

FUNCTION_CALL_MARKER = '"function_call"'

# Text past this many characters is not scanned for embedded calls.
MAX_EMBEDDED_SCAN = 16_384


@dataclass(frozen=True)
class EmbeddedCall:
    text: str


@dataclass(frozen=True)
class NativeCall:
    call: dict[str, Any]


@dataclass(frozen=True)
class NativeCallList:
    calls: list[dict[str, Any]]


CallShape = Union[EmbeddedCall, NativeCall, NativeCallList]


def new_call_id() -> str:
    return f"call_{uuid.uuid4().hex[:12]}"


def call_shapes(response: CompletionResponse) -> list[CallShape]:
    """Return the call shapes present in *response*, in priority order."""
    shapes: list[CallShape] = []
    if response.text and FUNCTION_CALL_MARKER in response.text:
        shapes.append(EmbeddedCall(response.text))
    if response.function_call:
        shapes.append(NativeCall(response.function_call))
    if response.tool_calls:
        shapes.append(NativeCallList(response.tool_calls))
    return shapes


def iter_json_objects(text: str) -> Iterator[str]:
    """Yield every balanced ``{...}`` span in *text*, ordered by start position.

    One left-to-right pass pairs braces with a stack, so a parent is yielded
    before the objects nested in it. Inside an open brace, braces within
    double-quoted strings are ignored; quotes in prose outside any brace do
    not start a string. An unclosed ``{`` yields nothing.
    """
    spans: list[tuple[int, int]] = []
    opened: list[int] = []
    in_string = False
    escaped = False
    for i, ch in enumerate(text[:MAX_EMBEDDED_SCAN]):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == "{":
            opened.append(i)
        elif ch == "}" and opened:
            spans.append((opened.pop(), i))
        elif ch == '"' and opened:
            in_string = True
    for start, end in sorted(spans):
        yield text[start : end + 1]


def decode_arguments(raw: Any) -> Optional[dict[str, Any]]:
    """Decode tool arguments that arrive either as a JSON string or as a dict.

    Dicts are returned as is. Returns None when the value cannot be decoded
    into an object.
    """
    if isinstance(raw, dict):
        return raw
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return {}
    if isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError:
            return None
        return decoded if isinstance(decoded, dict) else None
    return None


def _from_descriptor(descriptor: Any, call_id: Optional[str]) -> Optional[ToolCall]:
    if not isinstance(descriptor, dict):
        return None
    name = descriptor.get("name")
    if not isinstance(name, str) or not name or "arguments" not in descriptor:
        return None
    arguments = decode_arguments(descriptor["arguments"])
    if arguments is None:
        return None
    return ToolCall(id=call_id or new_call_id(), name=name, arguments=arguments)


def _extract_embedded(shape: EmbeddedCall) -> Optional[ToolCall]:
    for span in iter_json_objects(shape.text):
        try:
            payload = json.loads(span)
        except json.JSONDecodeError:
            continue
        if isinstance(payload, dict):
            call = _from_descriptor(payload.get("function_call"), None)
            if call is not None:
                return call
    return None


def _extract_native(shape: NativeCall) -> Optional[ToolCall]:
    return _from_descriptor(shape.call, shape.call.get("id"))


def _extract_native_list(shape: NativeCallList) -> Optional[ToolCall]:
    first = shape.calls[0]
    if not isinstance(first, dict):
        return None
    return _from_descriptor(first.get("function"), first.get("id"))


def extract_shape(shape: CallShape) -> Optional[ToolCall]:
    match shape:
        case EmbeddedCall():
            return _extract_embedded(shape)
        case NativeCall():
            return _extract_native(shape)
        case NativeCallList():
            return _extract_native_list(shape)
    return None


def extract_tool_call(response: CompletionResponse) -> Optional[ToolCall]:
    """Return the first tool call found in *response*, or None."""
    for shape in call_shapes(response):
        call = extract_shape(shape)
        if call is not None:
            logger.debug("tool_call_extracted", shape=type(shape).__name__, tool=call.name)
            return call
        logger.debug("tool_call_shape_unusable", shape=type(shape).__name__)
    return None


def require_tool_call(response: CompletionResponse) -> ToolCall:
    """Like :func:`extract_tool_call` but raises :class:`ToolNotUsedError` when nothing is found."""
    call = extract_tool_call(response)
    if call is None:
        raise ToolNotUsedError()
    return call
