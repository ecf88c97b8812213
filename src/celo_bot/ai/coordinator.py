"""Two-round tool-calling orchestration for a single user query."""

from __future__ import annotations

import json
import re
from typing import Any, Optional

from celo_bot.ai.client import CompletionClient
from celo_bot.ai.conversation import bridge_messages, build_messages, with_bot_context
from celo_bot.ai.extractor import require_tool_call
from celo_bot.ai.tools.registry import ToolRegistry
from celo_bot.ai.tools.results import to_jsonable
from celo_bot.core.session import SessionStore
from celo_bot.core.types import Role, ToolContext, Turn
from celo_bot.log import get_logger

logger = get_logger(__name__)

TOOL_KEYWORDS = ("transaction", "balance", "friend", "address", "history", "list")
_KEYWORD_PATTERN = re.compile("|".join(TOOL_KEYWORDS), re.IGNORECASE)


def needs_tool(query: str) -> bool:
    """Whether the query mentions something that plainly needs tool data."""
    return bool(_KEYWORD_PATTERN.search(query))


class QueryCoordinator:
    """Turns a user query into one tool call plus a natural-language answer.

    Steps: seed the session, run round 1 with the tool schemas, extract the
    tool call, dispatch it, bridge the call and result into a copy of the
    round 1 messages, run round 2, then commit the answer. Any failure ends
    the run; only the user turn committed in the seed step survives it.
    """

    def __init__(
        self,
        completion: CompletionClient,
        registry: ToolRegistry,
        sessions: SessionStore,
        system_prompt: str,
        network: str,
        bot_address: Optional[str] = None,
    ):
        self._completion = completion
        self._registry = registry
        self._sessions = sessions
        self._system_prompt = system_prompt
        self._network = network
        self._bot_address = bot_address

    async def process_query(self, conversation_id: str, user_id: str, query_text: str) -> str:
        async with self._sessions.lock(conversation_id):
            return await self._run(conversation_id, user_id, query_text)

    async def _run(self, conversation_id: str, user_id: str, query_text: str) -> str:
        log = logger.bind(conversation_id=conversation_id, user_id=user_id)

        # Seed
        content = query_text
        if self._sessions.is_fresh(conversation_id):
            content = with_bot_context(query_text, self._bot_address, self._network)
        self._sessions.append(conversation_id, Turn(Role.USER, content))

        # Classify
        tool_choice = "auto" if needs_tool(query_text) else None

        # Round 1
        messages = build_messages(self._system_prompt, self._sessions.get(conversation_id))
        proposal = await self._completion.complete(
            messages, tools=self._registry.specs(), tool_choice=tool_choice
        )

        # Extract
        call = require_tool_call(proposal)
        log.info("tool_call_selected", tool=call.name, call_id=call.id, tool_choice=tool_choice)

        # Dispatch
        context = ToolContext(conversation_id=conversation_id, user_id=user_id)
        result: Any = await self._registry.dispatch(call, context)

        # Bridge
        result_json = json.dumps(to_jsonable(result), default=str)
        bridged = bridge_messages(messages, call, result_json)

        # Round 2
        interpretation = await self._completion.complete(bridged)
        answer = interpretation.text.strip()

        # Commit
        self._sessions.append(conversation_id, Turn(Role.ASSISTANT, answer))
        log.info(
            "query_completed",
            tool=call.name,
            input_tokens=proposal.input_tokens + interpretation.input_tokens,
            output_tokens=proposal.output_tokens + interpretation.output_tokens,
        )
        return answer
