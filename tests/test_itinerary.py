"""
Tests for itinerary assembly and feasibility validation.
"""

import pytest
from pydantic import ValidationError

from core.itinerary import BUILD_MESSAGE, build_itinerary, validate_itinerary
from core.models import ItineraryDocument, ValidationConstraints


def _day(day: int, *times: str) -> dict:
    return {
        "day": day,
        "activities": [
            {"time": t, "activity": f"Stop {i}", "location": "Somewhere"} for i, t in enumerate(times)
        ],
    }


def _doc(*days: dict) -> ItineraryDocument:
    return ItineraryDocument.model_validate({"days": list(days)})


# ============================================================================
# TestItineraryModel
# ============================================================================


class TestItineraryModel:
    def test_duplicate_times_are_accepted_by_schema(self):
        doc = _doc(_day(1, "09:00", "09:00"))
        assert len(doc.days[0].activities) == 2

    def test_bad_time_format_rejected(self):
        with pytest.raises(ValidationError):
            _doc(_day(1, "9am"))

    def test_duplicate_day_numbers_rejected(self):
        with pytest.raises(ValidationError):
            _doc(_day(1, "09:00"), _day(1, "10:00"))

    def test_activities_list_is_required(self):
        with pytest.raises(ValidationError):
            ItineraryDocument.model_validate({"days": [{"day": 1}]})

    def test_day_numbers_start_at_one(self):
        with pytest.raises(ValidationError):
            _doc(_day(0, "09:00"))

    def test_payload_omits_missing_notes(self):
        doc = _doc(_day(1, "09:00"))
        assert "notes" not in doc.to_payload()["days"][0]["activities"][0]


# ============================================================================
# TestBuildItinerary
# ============================================================================


class TestBuildItinerary:
    def test_echoes_plan_with_counts(self):
        doc = _doc(_day(1, "09:00", "12:00"), _day(2, "10:00"))

        result = build_itinerary(doc)

        assert result["success"] is True
        assert result["itinerary"] == doc.to_payload()
        assert result["total_days"] == 2
        assert result["total_activities"] == 3
        assert result["message"] == BUILD_MESSAGE


# ============================================================================
# TestValidateItinerary
# ============================================================================


class TestValidateItinerary:
    def test_feasible_plan_is_valid(self):
        result = validate_itinerary(_doc(_day(1, "09:00", "12:00", "15:00")))

        assert result["valid"] is True
        assert result["issues"] == []
        assert result["warnings"] == []
        assert result["summary"] == {"total_days": 1, "total_activities": 3, "pace": "moderate"}

    def test_two_activities_at_same_time_give_one_issue(self):
        result = validate_itinerary(_doc(_day(1, "09:00", "09:00")))

        assert result["issues"] == ["Day 1: Multiple activities at 09:00"]
        assert result["valid"] is False

    def test_each_repeat_is_a_separate_issue(self):
        result = validate_itinerary(_doc(_day(1, "09:00", "09:00", "09:00", "11:00", "11:00")))

        assert result["issues"].count("Day 1: Multiple activities at 09:00") == 2
        assert result["issues"].count("Day 1: Multiple activities at 11:00") == 1

    def test_empty_day_gives_exactly_one_issue(self):
        constraints = ValidationConstraints(max_hours_per_day=1, pace="relaxed")

        result = validate_itinerary(_doc(_day(1)), constraints)

        assert result["issues"] == ["Day 1: No activities planned"]
        assert result["warnings"] == []

    def test_empty_day_does_not_stop_other_days(self):
        result = validate_itinerary(_doc(_day(1), _day(2, "10:00", "10:00")))

        assert result["issues"] == [
            "Day 1: No activities planned",
            "Day 2: Multiple activities at 10:00",
        ]

    def test_span_over_max_hours_is_invalid(self):
        constraints = ValidationConstraints(max_hours_per_day=12)

        result = validate_itinerary(_doc(_day(1, "08:00", "13:00", "20:30")), constraints)

        assert result["valid"] is False
        assert result["issues"] == ["Day 1: Duration 12.5h exceeds max 12h"]

    def test_span_equal_to_max_is_fine(self):
        result = validate_itinerary(_doc(_day(1, "08:00", "20:00")))
        assert result["valid"] is True

    def test_span_uses_earliest_and_latest_not_list_order(self):
        result = validate_itinerary(_doc(_day(1, "20:30", "08:00")))
        assert result["issues"] == ["Day 1: Duration 12.5h exceeds max 12h"]

    def test_default_max_hours_is_twelve(self):
        result = validate_itinerary(_doc(_day(1, "07:00", "19:30")))
        assert result["issues"] == ["Day 1: Duration 12.5h exceeds max 12h"]

    def test_non_positive_max_hours_falls_back_to_default(self):
        result = validate_itinerary(
            _doc(_day(1, "08:00", "19:00")), ValidationConstraints(max_hours_per_day=0)
        )
        assert result["valid"] is True

    def test_pace_overflow_is_only_a_warning(self):
        times = ["08:00", "09:00", "10:00", "11:00", "12:00", "13:00", "14:00"]

        result = validate_itinerary(_doc(_day(1, *times)), ValidationConstraints(pace="moderate"))

        assert result["valid"] is True
        assert result["warnings"] == ["Day 1: 7 activities may be too many for moderate pace"]

    @pytest.mark.parametrize("pace,count,warned", [
        ("relaxed", 4, False),
        ("relaxed", 5, True),
        ("fast", 8, False),
        ("fast", 9, True),
    ])
    def test_pace_thresholds(self, pace, count, warned):
        times = [f"{8 + i:02d}:00" for i in range(count)]

        result = validate_itinerary(_doc(_day(1, *times)), ValidationConstraints(pace=pace))

        assert bool(result["warnings"]) is warned
        assert result["summary"]["pace"] == pace
