# =============================================================================
# agent/conversation.py  —  One conversation turn, start to finish
# =============================================================================
#
# THE LOOP:
#
#     INIT ──► MODEL_CALL ──no tool calls──► DONE
#                 ▲    │
#                 │    └──tool calls──► TOOL_DISPATCH ─┐
#                 └────────────────────────────────────┘
#
#   - Tool calls from one model reply run sequentially, in the order the
#     model returned them, and produce one tool message each (tagged with
#     the call id, same order).
#   - A failing tool call becomes an error-result message; the model sees
#     it on the next MODEL_CALL and can recover.  Only a failing MODEL_CALL
#     (or hitting max_round_trips) ends the turn with an exception.
#   - A successful update_itinerary replaces the itinerary snapshot.  Last
#     write wins; there is no merge with earlier snapshots.
#
# The turn result carries the final text, the snapshot (or None), the
# deduplicated sources found in tool payloads, and the ordered tool names.
# =============================================================================

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from agent.dispatch import GetCityKnowledge, SearchPOIs, ToolCall, UpdateItinerary, parse_tool_call, tool_catalog
from agent.model import ChatModel, ToolCallRequest
from agent.prompt import get_system_prompt
from core.errors import RoundTripLimitError
from core.knowledge import KnowledgeCache
from tools.orchestrator import ITINERARY_SERVER, POI_SERVER, ToolOrchestrator

logger = logging.getLogger(__name__)


@dataclass
class ToolResult:
    call_id: str
    tool: str
    payload: Any
    is_error: bool = False

    def to_message(self) -> dict[str, Any]:
        return {
            "role": "tool",
            "tool_call_id": self.call_id,
            "name": self.tool,
            "content": json.dumps(self.payload),
        }


@dataclass
class ConversationState:
    """Everything accumulated while one turn runs."""

    messages: list[dict[str, Any]] = field(default_factory=list)
    itinerary: Optional[dict[str, Any]] = None
    tool_usage: list[str] = field(default_factory=list)
    tool_results: list[ToolResult] = field(default_factory=list)


@dataclass
class TurnResult:
    text: str
    itinerary: Optional[dict[str, Any]] = None
    sources: list[dict[str, str]] = field(default_factory=list)
    tool_usage: list[str] = field(default_factory=list)


# -----------------------------------------------------------------------------
# History & sources
# -----------------------------------------------------------------------------
def build_messages(history: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Map {role, content|text[, itinerary]} history entries to model messages.

    An assistant entry that carries the itinerary it produced gets that plan
    appended as JSON, so follow-up edits ("swap X for Y") have something to
    edit.
    """
    messages = []
    for entry in history:
        role = "assistant" if entry.get("role") == "assistant" else "user"
        content = entry.get("content", entry.get("text")) or ""
        itinerary = entry.get("itinerary")
        if role == "assistant" and itinerary:
            content = f"{content}\n\nCurrent itinerary:\n{json.dumps(itinerary)}"
        messages.append({"role": role, "content": content})
    return messages


def _source_entry(item: dict[str, Any], with_title: bool) -> Optional[dict[str, str]]:
    if not (item.get("source") and item.get("url")):
        return None
    entry = {"source": item["source"], "url": item["url"]}
    if with_title and item.get("title"):
        entry["title"] = item["title"]
    return entry


def extract_sources(results: list[ToolResult]) -> list[dict[str, str]]:
    """Collect {source, url[, title]} citations from successful tool payloads.

    Looks at the payload itself and at every list inside it.  Duplicates
    (structurally equal entries) are dropped, first occurrence kept.
    """
    found: list[dict[str, str]] = []
    for result in results:
        payload = result.payload
        if result.is_error or not isinstance(payload, dict):
            continue

        top = _source_entry(payload, with_title=False)
        if top:
            found.append(top)
        for value in payload.values():
            if not isinstance(value, list):
                continue
            for item in value:
                if isinstance(item, dict):
                    entry = _source_entry(item, with_title=True)
                    if entry:
                        found.append(entry)

    unique: list[dict[str, str]] = []
    seen: set[str] = set()
    for entry in found:
        key = json.dumps(entry, sort_keys=True)
        if key not in seen:
            seen.add(key)
            unique.append(entry)
    return unique


# -----------------------------------------------------------------------------
# Agent
# -----------------------------------------------------------------------------
class TripPlannerAgent:
    """Drives model calls and tool dispatch for one turn at a time."""

    def __init__(
        self,
        model: ChatModel,
        orchestrator: ToolOrchestrator,
        knowledge: KnowledgeCache,
        max_round_trips: int = 10,
    ):
        self.model = model
        self.orchestrator = orchestrator
        self.knowledge = knowledge
        self.max_round_trips = max_round_trips
        self.catalog = tool_catalog()

    async def run_turn(self, history: list[dict[str, Any]]) -> TurnResult:
        """Run one turn over `history` (oldest first, last entry is the user's).

        Raises:
            ModelCallError: the model could not be called.
            RoundTripLimitError: no final answer within max_round_trips calls.
        """
        state = ConversationState(messages=build_messages(history))
        system = {"role": "system", "content": get_system_prompt()}

        for round_trip in range(1, self.max_round_trips + 1):
            reply = await self.model.chat([system, *state.messages], self.catalog)
            state.messages.append(reply.to_message())

            if not reply.tool_calls:
                logger.info("Turn finished after %d model call(s); tools used: %s", round_trip, state.tool_usage)
                return TurnResult(
                    text=reply.text or "",
                    itinerary=state.itinerary,
                    sources=extract_sources(state.tool_results),
                    tool_usage=list(state.tool_usage),
                )

            for request in reply.tool_calls:
                result = await self.dispatch(request, state)
                state.tool_results.append(result)
                state.messages.append(result.to_message())

        raise RoundTripLimitError(self.max_round_trips)

    async def dispatch(self, request: ToolCallRequest, state: ConversationState) -> ToolResult:
        """Run one tool call.  Never raises: failures become error results."""
        logger.info("Calling tool: %s", request.name)
        state.tool_usage.append(request.name)
        try:
            call = parse_tool_call(request)
            payload = await self._execute(call, state)
        except Exception as e:
            logger.error("Tool error (%s): %s", request.name, e)
            return ToolResult(request.id, request.name, {"error": str(e), "isError": True}, is_error=True)
        return ToolResult(request.id, request.name, payload)

    async def _execute(self, call: ToolCall, state: ConversationState) -> Any:
        if isinstance(call, SearchPOIs):
            return await self.orchestrator.call_tool(POI_SERVER, "search_pois", call.args.model_dump())

        if isinstance(call, UpdateItinerary):
            itinerary = call.args.to_payload()
            payload = await self.orchestrator.call_tool(ITINERARY_SERVER, "build_itinerary", itinerary)
            state.itinerary = itinerary
            return payload

        if isinstance(call, GetCityKnowledge):
            city = call.args.city
            knowledge = await self.knowledge.search(city, call.args.query or "")
            tips = await self.knowledge.travel_tips(city)
            return {
                "knowledge": knowledge,
                "tips": tips,
                "source": tips.get("source"),
                "url": tips.get("url"),
            }

        raise TypeError(f"Unhandled tool call variant: {type(call).__name__}")
