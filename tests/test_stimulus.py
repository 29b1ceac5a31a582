#!/usr/bin/env python3
"""
Unit Tests for the Stimulus Engine

Covers per-session stimulus vectors, weekly aggregation and level
classification, mandatory rest detection, and the daily stimulus table.

Run with: pytest tests/test_stimulus.py -v
"""

import pytest

from summit_engine.reference_data import STIMULUS_KEYS
from summit_engine.stimulus import (
    WEEKLY_FLAG_MESSAGES,
    compute_weekly_stimulus,
    daily_stimulus_frame,
    get_cardio_session_summary,
    get_cardio_stimulus,
    get_climbing_stimulus,
    get_conditioning_stimulus,
    get_current_week_dates,
    get_daily_stimulus,
    get_mandatory_rest_groups,
    get_strength_stimulus,
    has_pack,
    match_cardio_rule,
    to_level,
)


def strength_day(date, exercise_id="deadlift", sets=5):
    return {
        "date": date,
        "exercises": [{"exercise_id": exercise_id, "sets": [{"reps": 5, "weight": 100}] * sets}],
    }


# =============================================================================
# LEVELS
# =============================================================================

class TestToLevel:
    """Level boundaries are inclusive at 1.5 and 3.5."""

    def test_boundaries(self):
        assert to_level(0) == "low"
        assert to_level(1.5) == "low"
        assert to_level(1.51) == "medium"
        assert to_level(3.5) == "medium"
        assert to_level(3.51) == "high"


# =============================================================================
# CARDIO
# =============================================================================

class TestHasPack:
    """Tests for has_pack."""

    @pytest.mark.parametrize("pack, expected", [
        (None, False),
        ("none", False),
        (0, False),
        ("light", True),
        ("heavy", True),
        (25, True),
    ])
    def test_pack_values(self, pack, expected):
        assert has_pack({"pack_weight": pack}) is expected

    def test_missing_field(self):
        assert has_pack({}) is False


class TestCardioRuleMatching:
    """Tests for match_cardio_rule and get_cardio_stimulus."""

    def test_unloaded_rolling_hike(self):
        """4h hike, 1200 ft (300 ft/hr), no pack: unloaded rolling rule scaled by 4 hours."""
        session = {
            "date": "2026-03-02",
            "activity_type": "Hike",
            "elevation_gain": 1200,
            "duration": 4 * 3600,
            "pack_weight": "none",
        }
        assert match_cardio_rule(session)["id"] == "hike-unloaded-rolling"

        stimulus = get_cardio_stimulus(session)
        assert stimulus["posterior_chain"] == pytest.approx(1.6)
        assert stimulus["quad_dominant"] == pytest.approx(2.0)
        assert stimulus["core"] == pytest.approx(0.4)
        assert stimulus["loaded_carry"] == 0

    def test_loaded_steep_hike(self):
        session = {"activity_type": "MountainHike", "elevation_gain": 3000,
                   "duration": 3 * 3600, "pack_weight": "heavy"}
        assert match_cardio_rule(session)["id"] == "hike-loaded-steep"

    def test_rate_threshold_is_at_least(self):
        """Exactly 500 ft/hr counts as steep."""
        session = {"activity_type": "Hike", "elevation_gain": 1000, "duration": 2 * 3600}
        assert match_cardio_rule(session)["id"] == "hike-unloaded-steep"

    def test_unconditional_fallback(self):
        session = {"activity_type": "OutdoorRun", "elevation_gain": 200, "duration": 3600}
        assert match_cardio_rule(session)["id"] == "run-flat"

    def test_weights_used(self):
        session = {"activity_type": "IndoorRun", "duration": 3600, "weights_used": True}
        assert match_cardio_rule(session)["id"] == "treadmill-weighted"

    def test_ski_tour_without_pack(self):
        session = {"activity_type": "BackcountrySkiing", "duration": 3600}
        assert match_cardio_rule(session)["id"] == "ski-tour"

    def test_unknown_type(self):
        session = {"activity_type": "Kayaking", "duration": 3600}
        assert match_cardio_rule(session) is None
        assert all(v == 0 for v in get_cardio_stimulus(session).values())

    def test_zero_duration(self):
        session = {"activity_type": "Hike", "elevation_gain": 500, "duration": 0}
        assert sum(get_cardio_stimulus(session).values()) == 0


# =============================================================================
# OTHER DOMAINS
# =============================================================================

class TestSessionStimulus:
    """Strength, climbing and conditioning vectors."""

    def test_strength_scales_by_sets(self):
        stimulus = get_strength_stimulus(strength_day("2026-03-02", "deadlift", sets=3))
        assert stimulus["posterior_chain"] == pytest.approx(2.4)
        assert stimulus["forearms_grip"] == pytest.approx(1.5)

    def test_unknown_exercise_ignored(self):
        session = {"date": "2026-03-02", "exercises": [{"exercise_id": "nordic-curl", "sets": [{}]}]}
        assert sum(get_strength_stimulus(session).values()) == 0

    def test_climbing_counts_every_climb(self):
        session = {"climbs": [{"grade": "V3", "result": "send"}, {"grade": "V5", "result": "attempt"}]}
        stimulus = get_climbing_stimulus(session)
        assert stimulus["forearms_grip"] == pytest.approx(0.7)
        assert stimulus["pull"] == pytest.approx(0.5)

    def test_conditioning(self):
        session = {
            "pullup_sets": [{"reps": 8}, {"reps": 8}],
            "deadhang_sets": [{"seconds": 30}],
            "hangboard_sets": [{"rounds": 4}],
        }
        stimulus = get_conditioning_stimulus(session)
        assert stimulus["pull"] == pytest.approx(0.8 + 0.1 + 0.2)
        assert stimulus["forearms_grip"] == pytest.approx(0.4 + 0.3 + 0.6)


# =============================================================================
# WEEKLY AGGREGATION
# =============================================================================

class TestWeeklyStimulus:
    """Tests for compute_weekly_stimulus."""

    def test_raw_totals(self, sample_log):
        result = compute_weekly_stimulus(sample_log, "2026-03-02", "2026-03-08")
        raw = result["raw"]
        assert raw["posterior_chain"] == pytest.approx(4.4)
        assert raw["quad_dominant"] == pytest.approx(3.3)
        assert raw["pull"] == pytest.approx(4.0)
        assert raw["forearms_grip"] == pytest.approx(4.7)
        assert raw["loaded_carry"] == 0

    def test_levels(self, sample_log):
        levels = compute_weekly_stimulus(sample_log, "2026-03-02", "2026-03-08")["levels"]
        assert levels == {
            "posterior_chain": "high",
            "quad_dominant": "medium",
            "push": "low",
            "pull": "high",
            "core": "medium",
            "loaded_carry": "low",
            "forearms_grip": "high",
        }

    def test_flags_in_fixed_order(self, sample_log):
        flags = compute_weekly_stimulus(sample_log, "2026-03-02", "2026-03-08")["flags"]
        assert flags == [
            WEEKLY_FLAG_MESSAGES["forearms_grip"],
            WEEKLY_FLAG_MESSAGES["pull"],
            WEEKLY_FLAG_MESSAGES["posterior_chain"],
        ]

    def test_range_is_inclusive(self, sample_log):
        only_monday = compute_weekly_stimulus(sample_log, "2026-03-02", "2026-03-02")["raw"]
        assert only_monday["posterior_chain"] == pytest.approx(1.6)
        assert only_monday["pull"] == 0

    def test_contexts(self, sample_log):
        contexts = compute_weekly_stimulus(sample_log, "2026-03-02", "2026-03-08")["contexts"]
        assert set(contexts) == set(STIMULUS_KEYS)
        assert "Hike (Mon, 4.0h): +1.6" in contexts["posterior_chain"]["contributors"]
        assert "Strength: Deadlift, Pull-Up (Tue): +2.4" in contexts["posterior_chain"]["contributors"]
        assert contexts["loaded_carry"]["contributors"] == ["No sessions this week"]
        assert contexts["forearms_grip"]["implication"].startswith("High forearms and grip load.")
        assert contexts["push"]["implication"].startswith("Low push muscles stimulus")

    def test_empty_log(self, empty_log):
        result = compute_weekly_stimulus(empty_log, "2026-03-02", "2026-03-08")
        assert all(level == "low" for level in result["levels"].values())
        assert result["flags"] == []


# =============================================================================
# MANDATORY REST
# =============================================================================

class TestMandatoryRest:
    """A dimension high on each of the last 3 days needs rest."""

    def test_three_high_days(self, empty_log):
        empty_log["strength"] = [strength_day(d) for d in ("2026-03-02", "2026-03-03", "2026-03-04")]
        assert get_mandatory_rest_groups(empty_log, "2026-03-04") == ["posterior_chain"]

    def test_gap_day_resets(self, empty_log):
        empty_log["strength"] = [strength_day(d) for d in ("2026-03-02", "2026-03-04")]
        assert get_mandatory_rest_groups(empty_log, "2026-03-04") == []

    def test_window_ends_on_as_of(self, empty_log):
        """High days before the 3-day window do not count."""
        empty_log["strength"] = [strength_day(d) for d in ("2026-03-01", "2026-03-02", "2026-03-03")]
        assert get_mandatory_rest_groups(empty_log, "2026-03-04") == []

    def test_judged_per_day_not_cumulative(self, empty_log):
        """Three medium days add up to high for the week but never trigger rest."""
        empty_log["strength"] = [strength_day(d, sets=3) for d in ("2026-03-02", "2026-03-03", "2026-03-04")]
        assert get_mandatory_rest_groups(empty_log, "2026-03-04") == []


# =============================================================================
# DATES, DAILY TABLE AND SUMMARY
# =============================================================================

class TestWeekDates:
    """Tests for get_current_week_dates."""

    def test_midweek(self):
        assert get_current_week_dates("2026-03-04") == {"start_date": "2026-03-02", "end_date": "2026-03-08"}

    def test_sunday_belongs_to_same_week(self):
        assert get_current_week_dates("2026-03-08")["start_date"] == "2026-03-02"


class TestDailyStimulus:
    """Tests for get_daily_stimulus and daily_stimulus_frame."""

    def test_single_day(self, sample_log):
        day = get_daily_stimulus(sample_log, "2026-03-04")
        assert day["forearms_grip"] == pytest.approx(0.7)
        assert day["posterior_chain"] == 0

    def test_frame_shape(self, sample_log):
        frame = daily_stimulus_frame(sample_log, "2026-03-02", "2026-03-08")
        assert len(frame) == 7
        assert list(frame.columns) == list(STIMULUS_KEYS) + ["total"]
        assert frame.index.name == "date"
        assert frame.loc["2026-03-02", "posterior_chain"] == pytest.approx(1.6)
        assert frame.loc["2026-03-07", "total"] == 0

    def test_frame_total_is_row_sum(self, sample_log):
        frame = daily_stimulus_frame(sample_log, "2026-03-02", "2026-03-08")
        assert frame.loc["2026-03-02", "total"] == pytest.approx(4.0)


class TestCardioSessionSummary:
    """Tests for get_cardio_session_summary."""

    def test_hike_summary(self, sample_log):
        summary = get_cardio_session_summary(sample_log["cardio"][0])
        assert summary["level"] == "medium"
        assert summary["dominant_group"] == "quads"
        assert summary["factors"][0] == "Activity type: Hike"
        assert "Duration: 4.0h" in summary["factors"]
        assert any(f.startswith("Elevation gain: 1200ft") for f in summary["factors"])
        assert not any(f.startswith("Pack weight") for f in summary["factors"])

    def test_pack_factor(self):
        session = {"activity_type": "Hike", "duration": 3600, "pack_weight": "heavy"}
        factors = get_cardio_session_summary(session)["factors"]
        assert any(f.startswith("Pack weight: heavy") for f in factors)

    def test_unmapped_activity(self):
        summary = get_cardio_session_summary({"activity_type": "Kayaking", "duration": 3600})
        assert summary["level"] == "low"
        assert summary["dominant_group"] is None
