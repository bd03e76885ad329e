"""
Tests for turning raw model tool calls into typed variants.
"""

import pytest
from pydantic import ValidationError

from agent.dispatch import (
    GetCityKnowledge,
    SearchPOIs,
    UpdateItinerary,
    parse_tool_call,
    tool_catalog,
)
from agent.model import ModelReply, ToolCallRequest
from core.errors import UnknownToolError
from fakes import tool_call

PLAN = {"days": [{"day": 1, "activities": [{"time": "09:00", "activity": "Louvre", "location": "Rue de Rivoli"}]}]}


class TestParseToolCall:
    def test_search_pois(self):
        call = parse_tool_call(tool_call("c1", "search_pois", city="Berlin", category="tourism", type="museum"))

        assert isinstance(call, SearchPOIs)
        assert call.call_id == "c1"
        assert call.args.model_dump() == {"city": "Berlin", "category": "tourism", "type": "museum"}

    def test_update_itinerary(self):
        call = parse_tool_call(tool_call("c2", "update_itinerary", **PLAN))

        assert isinstance(call, UpdateItinerary)
        assert call.args.to_payload() == PLAN

    def test_city_knowledge_query_is_optional(self):
        call = parse_tool_call(tool_call("c3", "get_city_knowledge", city="Paris"))

        assert isinstance(call, GetCityKnowledge)
        assert call.args.query is None

    def test_unknown_tool(self):
        with pytest.raises(UnknownToolError):
            parse_tool_call(tool_call("c4", "book_flight", to="Rome"))

    def test_arguments_must_be_json(self):
        with pytest.raises(ValueError, match="not valid JSON"):
            parse_tool_call(ToolCallRequest(id="c5", name="search_pois", arguments="{city: Berlin"))

    def test_missing_required_argument(self):
        with pytest.raises(ValidationError):
            parse_tool_call(tool_call("c6", "search_pois", city="Berlin"))

    def test_itinerary_schema_is_enforced(self):
        bad = {"days": [{"day": 1, "activities": [{"time": "25:00", "activity": "x", "location": "y"}]}]}
        with pytest.raises(ValidationError):
            parse_tool_call(tool_call("c7", "update_itinerary", **bad))

    def test_empty_arguments_string(self):
        with pytest.raises(ValidationError):
            parse_tool_call(ToolCallRequest(id="c8", name="get_city_knowledge", arguments=""))


class TestToolCatalog:
    def test_catalog_lists_the_three_tools(self):
        names = [entry["function"]["name"] for entry in tool_catalog()]
        assert names == ["search_pois", "update_itinerary", "get_city_knowledge"]

    def test_parameters_are_json_schema(self):
        catalog = {entry["function"]["name"]: entry["function"] for entry in tool_catalog()}

        assert set(catalog["search_pois"]["parameters"]["required"]) == {"city", "category", "type"}
        assert catalog["get_city_knowledge"]["parameters"]["required"] == ["city"]
        assert "days" in catalog["update_itinerary"]["parameters"]["properties"]


class TestModelReply:
    def test_assistant_message_carries_tool_calls(self):
        message = ModelReply(text=None, tool_calls=[tool_call("c1", "get_city_knowledge", city="Rome")]).to_message()

        assert message["role"] == "assistant"
        assert message["tool_calls"][0]["id"] == "c1"
        assert message["tool_calls"][0]["function"]["name"] == "get_city_knowledge"

    def test_plain_answer_has_no_tool_calls_key(self):
        assert ModelReply(text="Done").to_message() == {"role": "assistant", "content": "Done"}
