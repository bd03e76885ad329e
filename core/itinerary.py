# =============================================================================
# core/itinerary.py  —  Itinerary assembly & feasibility validation
# =============================================================================
#
# build_itinerary() is a pass-through assembler: the LLM writes the plan, we
# echo it back with counts so the agent (and the UI) get a confirmed copy.
#
# validate_itinerary() is a deterministic rule check.  For every day:
#
#   1. No activities           → one issue, and NOTHING else is checked
#   2. last - first > max hrs  → issue
#   3. more stops than pace    → warning (never affects validity)
#   4. repeated exact time     → one issue per repeat
#
# The plan is valid when there are zero issues.
# =============================================================================

from typing import Any, Optional

from core.models import ItineraryDocument, ValidationConstraints

DEFAULT_MAX_HOURS_PER_DAY = 12.0
DEFAULT_PACE = "moderate"

# Max activities per day before we warn
PACE_THRESHOLDS: dict[str, int] = {
    "relaxed": 4,
    "moderate": 6,
    "fast": 8,
}

BUILD_MESSAGE = "Itinerary updated successfully. Terminate and show this to user."


def build_itinerary(itinerary: ItineraryDocument) -> dict[str, Any]:
    """Echo the plan back with a summary count."""
    return {
        "success": True,
        "itinerary": itinerary.to_payload(),
        "message": BUILD_MESSAGE,
        "total_days": len(itinerary.days),
        "total_activities": itinerary.total_activities,
    }


def _hours(time_of_day: str) -> float:
    """'14:30' -> 14.5"""
    hours, minutes = time_of_day.split(":")
    return int(hours) + int(minutes) / 60


def _fmt_hours(value: float) -> str:
    return f"{value:g}"


def validate_itinerary(
    itinerary: ItineraryDocument,
    constraints: Optional[ValidationConstraints] = None,
) -> dict[str, Any]:
    """Check every day against span, pace and time-conflict rules.

    Args:
        itinerary: The plan to check.
        constraints: Optional overrides.  A missing or non-positive
            max_hours_per_day means the default (12h); a missing pace means
            "moderate".

    Returns:
        {valid, issues, warnings, summary: {total_days, total_activities, pace}}
    """
    constraints = constraints or ValidationConstraints()
    max_hours = constraints.max_hours_per_day or DEFAULT_MAX_HOURS_PER_DAY
    if max_hours <= 0:
        max_hours = DEFAULT_MAX_HOURS_PER_DAY
    pace = constraints.pace or DEFAULT_PACE

    issues: list[str] = []
    warnings: list[str] = []

    for day in itinerary.days:
        activities = day.activities

        if not activities:
            issues.append(f"Day {day.day}: No activities planned")
            continue

        times = [_hours(a.time) for a in activities]
        duration = max(times) - min(times)
        if duration > max_hours:
            issues.append(
                f"Day {day.day}: Duration {duration:.1f}h exceeds max {_fmt_hours(max_hours)}h"
            )

        if len(activities) > PACE_THRESHOLDS[pace]:
            warnings.append(
                f"Day {day.day}: {len(activities)} activities may be too many for {pace} pace"
            )

        seen: set[str] = set()
        for activity in activities:
            if activity.time in seen:
                issues.append(f"Day {day.day}: Multiple activities at {activity.time}")
            seen.add(activity.time)

    return {
        "valid": not issues,
        "issues": issues,
        "warnings": warnings,
        "summary": {
            "total_days": len(itinerary.days),
            "total_activities": itinerary.total_activities,
            "pace": pace,
        },
    }
