# =============================================================================
# agent/dispatch.py  —  The closed set of tools the model may call
# =============================================================================
#
# The model names a tool and hands us arbitrary JSON.  Before anything is
# dispatched, that pair is turned into ONE of three tagged variants, each
# with its own validated argument record:
#
#     search_pois         → SearchPOIs(SearchPOIsArgs)         → poi server
#     update_itinerary    → UpdateItinerary(ItineraryDocument) → itinerary server
#     get_city_knowledge  → GetCityKnowledge(CityKnowledgeArgs) → knowledge cache
#
# The JSON schemas the model sees are generated from the same pydantic
# records, so catalog and validation cannot drift apart.
# =============================================================================

import json
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

from agent.model import ToolCallRequest
from core.errors import UnknownToolError
from core.models import ItineraryDocument


class SearchPOIsArgs(BaseModel):
    city: str = Field(..., description="The city to search in, e.g. London")
    category: str = Field(..., description="The OSM main key, e.g. 'tourism', 'amenity', 'leisure'")
    type: str = Field(..., description="The OSM tag value, e.g. 'museum', 'restaurant', 'park', 'viewpoint'")


class CityKnowledgeArgs(BaseModel):
    city: str = Field(..., description="The city name")
    query: Optional[str] = Field(
        default=None,
        description="Optional: specific topic to search for (e.g., 'safety', 'food', 'weather', 'etiquette')",
    )


@dataclass(frozen=True)
class SearchPOIs:
    call_id: str
    args: SearchPOIsArgs


@dataclass(frozen=True)
class UpdateItinerary:
    call_id: str
    args: ItineraryDocument


@dataclass(frozen=True)
class GetCityKnowledge:
    call_id: str
    args: CityKnowledgeArgs


ToolCall = Union[SearchPOIs, UpdateItinerary, GetCityKnowledge]


@dataclass(frozen=True)
class _ToolSpec:
    variant: type
    args_model: type[BaseModel]
    description: str


TOOL_SPECS: dict[str, _ToolSpec] = {
    "search_pois": _ToolSpec(
        SearchPOIs,
        SearchPOIsArgs,
        "Search for points of interest in a city given a category (e.g., tourism, amenity) "
        "and type (e.g., museum, restaurant, park).",
    ),
    "update_itinerary": _ToolSpec(
        UpdateItinerary,
        ItineraryDocument,
        "Save/Update the structured itinerary plan to show to the user.",
    ),
    "get_city_knowledge": _ToolSpec(
        GetCityKnowledge,
        CityKnowledgeArgs,
        "Fetch travel knowledge, tips, and practical information about a city from Wikivoyage. "
        "Use this to answer questions about safety, etiquette, weather, or to provide context "
        "for recommendations.",
    ),
}


def tool_catalog() -> list[dict[str, Any]]:
    """Function-calling definitions for every tool, in OpenAI format."""
    return [
        {
            "type": "function",
            "function": {
                "name": name,
                "description": spec.description,
                "parameters": spec.args_model.model_json_schema(),
            },
        }
        for name, spec in TOOL_SPECS.items()
    ]


def parse_tool_call(request: ToolCallRequest) -> ToolCall:
    """Turn a raw model tool call into its typed variant.

    Raises:
        UnknownToolError: the name is not one of ours.
        ValueError: the arguments are not JSON or fail the schema
            (pydantic.ValidationError is a ValueError).
    """
    spec = TOOL_SPECS.get(request.name)
    if spec is None:
        raise UnknownToolError(request.name)

    try:
        raw = json.loads(request.arguments or "{}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Arguments for {request.name} are not valid JSON: {e}") from e

    return spec.variant(call_id=request.id, args=spec.args_model.model_validate(raw))
