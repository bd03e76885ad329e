"""
Tests for the two FastMCP tool servers, exercised over an in-memory MCP
session (no subprocess, no network).
"""

import json

import pytest
from fastmcp import Client

from core.poi import PoiSearchService
from fakes import NETWORK_DOWN, FakeGeocoder, FakeSpatialIndex, make_elements
from tools import itinerary_server, poi_server


def _payload(result) -> dict:
    return json.loads(result.content[0].text)


def _plan(*times: str) -> dict:
    return {
        "days": [
            {
                "day": 1,
                "activities": [
                    {"time": t, "activity": f"Stop {i}", "location": "Berlin"} for i, t in enumerate(times)
                ],
            }
        ]
    }


# ============================================================================
# TestPoiServer
# ============================================================================


class TestPoiServer:
    @pytest.mark.asyncio
    async def test_catalog(self):
        server = poi_server.create_server(PoiSearchService(FakeGeocoder(), FakeSpatialIndex()))

        async with Client(server) as client:
            tools = await client.list_tools()

        assert [t.name for t in tools] == ["search_pois"]
        assert set(tools[0].inputSchema["required"]) == {"city", "category", "type"}

    @pytest.mark.asyncio
    async def test_search_returns_pois_with_source(self):
        service = PoiSearchService(FakeGeocoder(), FakeSpatialIndex(make_elements(["Pergamonmuseum"])))

        async with Client(poi_server.create_server(service)) as client:
            result = await client.call_tool_mcp(
                name="search_pois", arguments={"city": "Berlin", "category": "tourism", "type": "museum"}
            )

        payload = _payload(result)
        assert not result.isError
        assert payload["success"] is True
        assert payload["count"] == 1
        assert payload["status"] == "ok"
        assert payload["pois"][0]["name"] == "Pergamonmuseum"
        assert payload["source"] == poi_server.SOURCE_LABEL

    @pytest.mark.asyncio
    async def test_lookup_failure_is_not_a_tool_error(self):
        service = PoiSearchService(FakeGeocoder(error=NETWORK_DOWN), FakeSpatialIndex())

        async with Client(poi_server.create_server(service)) as client:
            result = await client.call_tool_mcp(
                name="search_pois", arguments={"city": "Berlin", "category": "tourism", "type": "museum"}
            )

        payload = _payload(result)
        assert not result.isError
        assert payload["pois"] == []
        assert payload["status"] == "lookup_failed"


# ============================================================================
# TestItineraryServer
# ============================================================================


class TestItineraryServer:
    @pytest.mark.asyncio
    async def test_catalog(self):
        async with Client(itinerary_server.create_server()) as client:
            names = {t.name for t in await client.list_tools()}

        assert names == {"build_itinerary", "validate_itinerary"}

    @pytest.mark.asyncio
    async def test_build_echoes_plan(self):
        plan = _plan("09:00", "13:00")

        async with Client(itinerary_server.create_server()) as client:
            result = await client.call_tool_mcp(name="build_itinerary", arguments=plan)

        payload = _payload(result)
        assert payload["success"] is True
        assert payload["itinerary"] == plan
        assert payload["total_days"] == 1
        assert payload["total_activities"] == 2

    @pytest.mark.asyncio
    async def test_bad_time_format_is_a_tool_error(self):
        async with Client(itinerary_server.create_server()) as client:
            result = await client.call_tool_mcp(name="build_itinerary", arguments=_plan("9am"))

        assert result.isError

    @pytest.mark.asyncio
    async def test_day_without_activities_list_is_a_tool_error(self):
        async with Client(itinerary_server.create_server()) as client:
            result = await client.call_tool_mcp(name="build_itinerary", arguments={"days": [{"day": 1}]})

        assert result.isError

    @pytest.mark.asyncio
    async def test_duplicate_days_are_a_tool_error(self):
        plan = {"days": _plan("09:00")["days"] * 2}

        async with Client(itinerary_server.create_server()) as client:
            result = await client.call_tool_mcp(name="build_itinerary", arguments=plan)

        assert result.isError
        assert "Invalid itinerary" in result.content[0].text

    @pytest.mark.asyncio
    async def test_validate_reports_conflicts(self):
        async with Client(itinerary_server.create_server()) as client:
            result = await client.call_tool_mcp(
                name="validate_itinerary",
                arguments={"itinerary": _plan("09:00", "09:00"), "constraints": {"pace": "relaxed"}},
            )

        payload = _payload(result)
        assert payload["valid"] is False
        assert payload["issues"] == ["Day 1: Multiple activities at 09:00"]
        assert payload["summary"]["pace"] == "relaxed"

    @pytest.mark.asyncio
    async def test_validate_without_constraints(self):
        async with Client(itinerary_server.create_server()) as client:
            result = await client.call_tool_mcp(
                name="validate_itinerary", arguments={"itinerary": _plan("09:00", "12:00")}
            )

        payload = _payload(result)
        assert payload["valid"] is True
        assert payload["summary"]["pace"] == "moderate"
