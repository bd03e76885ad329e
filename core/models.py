# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the system)
# =============================================================================
#
# Two families live here:
#
#   1. The ITINERARY models are pydantic models.  They double as the input
#      schema of the itinerary tools (FastMCP derives the JSON schema the LLM
#      sees from them) and as the validation step the conversation loop runs
#      on update_itinerary arguments before dispatching them.
#
#   2. Everything else (POIs, knowledge articles, ranked sections) is a plain
#      dataclass.  They carry no behavior beyond (de)serialization.
# =============================================================================

from dataclasses import asdict, dataclass, field
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, model_validator


# -----------------------------------------------------------------------------
# Itinerary
# -----------------------------------------------------------------------------
# Times are 24h "HH:MM" strings.  The schema does NOT reject two activities at
# the same time; that is a feasibility problem reported by validate_itinerary.
# -----------------------------------------------------------------------------
TIME_PATTERN = r"^([01]?\d|2[0-3]):[0-5]\d$"

Pace = Literal["relaxed", "moderate", "fast"]


class Activity(BaseModel):
    """One stop in a day plan."""

    time: str = Field(..., pattern=TIME_PATTERN, description='Time in HH:MM format (e.g., "09:00", "14:30")')
    activity: str = Field(..., description="Name of the activity or place to visit")
    location: str = Field(..., description="Location or address")
    notes: Optional[str] = Field(default=None, description="Optional notes, tips, or reasoning")


class DayPlan(BaseModel):
    day: int = Field(..., ge=1, description="Day number (1, 2, 3, etc.)")
    activities: list[Activity] = Field(..., description="List of activities for this day")


class ItineraryDocument(BaseModel):
    """A complete day-by-day plan."""

    days: list[DayPlan] = Field(..., description="Array of day objects containing activities")

    @model_validator(mode="after")
    def _unique_day_numbers(self) -> "ItineraryDocument":
        seen: set[int] = set()
        for day in self.days:
            if day.day in seen:
                raise ValueError(f"Day {day.day} appears more than once")
            seen.add(day.day)
        return self

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict without unset optional fields."""
        return self.model_dump(exclude_none=True)

    @property
    def total_activities(self) -> int:
        return sum(len(day.activities) for day in self.days)


class ValidationConstraints(BaseModel):
    max_hours_per_day: Optional[float] = Field(default=None, description="Longest allowed span between first and last activity")
    pace: Optional[Pace] = Field(default=None, description="Travel pace: relaxed, moderate or fast")


# -----------------------------------------------------------------------------
# Points of interest
# -----------------------------------------------------------------------------
PoiStatus = Literal["ok", "no_match", "lookup_failed"]


@dataclass
class PointOfInterest:
    """A real, tagged place returned by the spatial index."""

    id: int
    name: str
    lat: Optional[float]
    lon: Optional[float]
    tags: dict[str, str] = field(default_factory=dict)
    type: str = ""


@dataclass
class PoiSearchOutcome:
    """POIs plus how the lookup went.

    `pois` is empty both when the city is unknown (status "no_match") and
    when a network call failed (status "lookup_failed"); the status keeps the
    two apart for anyone who cares.
    """

    pois: list[PointOfInterest] = field(default_factory=list)
    status: PoiStatus = "ok"


# -----------------------------------------------------------------------------
# Knowledge articles
# -----------------------------------------------------------------------------
@dataclass
class ArticleSection:
    title: str
    content: str


@dataclass
class KnowledgeArticle:
    """A parsed Wikivoyage article as stored in the cache."""

    city: str
    title: str
    url: str
    sections: list[ArticleSection] = field(default_factory=list)
    fetched_at: str = ""               # ISO-8601, UTC

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "KnowledgeArticle":
        return cls(
            city=data["city"],
            title=data["title"],
            url=data["url"],
            sections=[ArticleSection(title=s["title"], content=s["content"]) for s in data.get("sections", [])],
            fetched_at=data.get("fetched_at", ""),
        )


@dataclass
class RankedSection:
    """An article section scored against a query, ready to hand to the LLM."""

    title: str
    content: str                       # truncated excerpt
    source: str                        # "Wikivoyage: Paris"
    url: str
    relevance: int
