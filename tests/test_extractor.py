"""Tests for locating tool calls in completion responses."""
import pytest

from celo_bot.ai.client import CompletionResponse
from celo_bot.ai.extractor import (
    MAX_EMBEDDED_SCAN,
    EmbeddedCall,
    NativeCall,
    NativeCallList,
    call_shapes,
    decode_arguments,
    extract_tool_call,
    iter_json_objects,
    require_tool_call,
)
from celo_bot.core.errors import ToolNotUsedError


def test_embedded_call_skips_unrelated_nested_braces():
    text = (
        'explaining {irrelevant:{a:1}} then '
        '{"function_call":{"name":"getAccountInfo","arguments":{"address":"0xabc"}}}'
    )

    call = extract_tool_call(CompletionResponse(text=text))

    assert call is not None
    assert call.name == "getAccountInfo"
    assert call.arguments == {"address": "0xabc"}
    assert call.id.startswith("call_")


def test_embedded_call_with_string_arguments_and_trailing_prose():
    text = (
        'Let me check. {"function_call": {"name": "getTokenBalances", '
        '"arguments": "{\\"address\\": \\"0x1\\"}"}} I will report back {soon}.'
    )

    call = extract_tool_call(CompletionResponse(text=text))

    assert call.name == "getTokenBalances"
    assert call.arguments == {"address": "0x1"}


def test_embedded_call_ignores_braces_inside_strings():
    text = '{"function_call": {"name": "getFriendInfo", "arguments": {"name": "bob } {"}}}'

    call = extract_tool_call(CompletionResponse(text=text))

    assert call.arguments == {"name": "bob } {"}


def test_native_function_call_decodes_string_arguments():
    response = CompletionResponse(
        function_call={"name": "getTransactionDetails", "arguments": '{"hash": "0xdead"}'}
    )

    call = extract_tool_call(response)

    assert call.name == "getTransactionDetails"
    assert call.arguments == {"hash": "0xdead"}


def test_native_call_list_uses_first_call_and_keeps_its_id():
    response = CompletionResponse(
        tool_calls=[
            {"id": "call_1", "type": "function", "function": {"name": "getAccountInfo", "arguments": {"address": "0x1"}}},
            {"id": "call_2", "type": "function", "function": {"name": "getTokenBalances", "arguments": "{}"}},
        ]
    )

    call = extract_tool_call(response)

    assert call.id == "call_1"
    assert call.name == "getAccountInfo"
    assert call.arguments == {"address": "0x1"}


def test_embedded_text_takes_priority_over_native_fields():
    response = CompletionResponse(
        text='{"function_call": {"name": "getFriendInfo", "arguments": {"name": "alice"}}}',
        function_call={"name": "getAccountInfo", "arguments": "{}"},
        tool_calls=[{"id": "x", "function": {"name": "getTokenBalances", "arguments": "{}"}}],
    )

    assert [type(s) for s in call_shapes(response)] == [EmbeddedCall, NativeCall, NativeCallList]
    assert extract_tool_call(response).name == "getFriendInfo"


def test_unusable_embedded_text_falls_back_to_native_call_list():
    response = CompletionResponse(
        text='I would use "function_call" here but {this is not json}',
        tool_calls=[{"id": "call_9", "function": {"name": "getAccountInfo", "arguments": '{"address": "0x9"}'}}],
    )

    call = extract_tool_call(response)

    assert call.id == "call_9"
    assert call.arguments == {"address": "0x9"}


def test_json_without_marker_is_not_an_embedded_call():
    response = CompletionResponse(text='{"name": "getAccountInfo", "arguments": {"address": "0x1"}}')

    assert call_shapes(response) == []
    assert extract_tool_call(response) is None


def test_plain_text_response_has_no_tool_call():
    response = CompletionResponse(text="The balance is 5 CELO.")

    assert extract_tool_call(response) is None
    with pytest.raises(ToolNotUsedError):
        require_tool_call(response)


def test_undecodable_native_arguments_yield_nothing():
    response = CompletionResponse(function_call={"name": "getAccountInfo", "arguments": "{broken"})

    assert extract_tool_call(response) is None


def test_iter_json_objects_yields_parent_before_nested():
    spans = list(iter_json_objects('x {"a": {"b": 1}} y {"c": 2}'))

    assert spans == ['{"a": {"b": 1}}', '{"b": 1}', '{"c": 2}']


def test_iter_json_objects_skips_unbalanced_start():
    assert list(iter_json_objects('{ never closed {"ok": 1}')) == ['{"ok": 1}']


def test_many_unclosed_braces_before_call_are_skipped():
    text = "{ " * 5000 + '{"function_call": {"name": "getAccountInfo", "arguments": {"address": "0x1"}}}'

    call = extract_tool_call(CompletionResponse(text=text))

    assert call.name == "getAccountInfo"
    assert call.arguments == {"address": "0x1"}


def test_prose_quotes_outside_braces_do_not_hide_the_call():
    text = 'He said "check it {"function_call": {"name": "getAccountInfo", "arguments": {"address": "0x2"}}}'

    call = extract_tool_call(CompletionResponse(text=text))

    assert call.arguments == {"address": "0x2"}


def test_embedded_call_past_scan_limit_is_ignored():
    text = "x" * MAX_EMBEDDED_SCAN + '{"function_call": {"name": "getAccountInfo", "arguments": {}}}'

    assert extract_tool_call(CompletionResponse(text=text)) is None


@pytest.mark.parametrize(
    "raw, expected",
    [
        ({"address": "0x1"}, {"address": "0x1"}),
        ('{"address": "0x1"}', {"address": "0x1"}),
        ("", {}),
        (None, {}),
        ("[1, 2]", None),
        ("not json", None),
        (42, None),
    ],
)
def test_decode_arguments(raw, expected):
    assert decode_arguments(raw) == expected


def test_decode_arguments_does_not_decode_string_values_inside_dicts():
    raw = {"payload": '{"nested": true}'}

    assert decode_arguments(raw) is raw
