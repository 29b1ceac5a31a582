#!/usr/bin/env python3
"""
Unit Tests for the Status Aggregator

Run with: pytest tests/test_status.py -v
"""

import pytest

from summit_engine.progression import empty_history
from summit_engine.status import (
    compute_status_layer,
    get_conditioning_status,
    get_objective_timeline_status,
    get_volume_status,
    traffic_light,
)


@pytest.fixture
def objective():
    return {
        "id": "rainier-summit-abc123",
        "name": "Mount Rainier Summit",
        "library_id": "rainier-summit",
        "activated_date": "2026-03-02",
        "target_date": "2026-07-15",
        "training_plan": [],
    }


class TestTrafficLight:
    """Ratio thresholds at 0.85 and 0.5."""

    @pytest.mark.parametrize("actual, target, light", [
        (240, 240, "green"),
        (204, 240, "green"),
        (200, 240, "yellow"),
        (1, 2, "yellow"),
        (0, 2, "red"),
        (0, 0, "green"),
    ])
    def test_lights(self, actual, target, light):
        assert traffic_light(actual, target) == light


class TestVolumeStatus:
    """Tests for get_volume_status."""

    def test_sample_week(self, sample_log):
        status = get_volume_status(sample_log, "2026-03-02", "2026-03-08")
        assert status == {
            "cardio": "green",
            "strength": "yellow",
            "climbing": "yellow",
            "cardio_minutes_this_week": 300,
            "strength_sessions_this_week": 1,
            "climbing_sessions_this_week": 1,
        }

    def test_custom_targets(self, sample_log):
        status = get_volume_status(sample_log, "2026-03-02", "2026-03-08",
                                   {"cardio_minutes_target": 600, "strength_sessions_target": 1})
        assert status["cardio"] == "yellow"
        assert status["strength"] == "green"

    def test_outside_window(self, sample_log):
        status = get_volume_status(sample_log, "2026-03-09", "2026-03-15")
        assert status["cardio"] == "red"
        assert status["cardio_minutes_this_week"] == 0


class TestConditioningStatus:
    """Tests for get_conditioning_status."""

    def test_below_target(self, sample_log):
        assert get_conditioning_status(sample_log, "2026-03-02", "2026-03-08") == {
            "sessions_this_week": 1,
            "target_sessions": 2,
            "on_track": False,
        }

    def test_custom_target(self, sample_log):
        assert get_conditioning_status(sample_log, "2026-03-02", "2026-03-08", 1)["on_track"] is True


class TestObjectiveTimeline:
    """Only on-track or behind is ever reported."""

    def test_first_week(self, objective):
        assert get_objective_timeline_status(objective, "2026-03-05") == "on-track"

    def test_behind(self, objective):
        assert get_objective_timeline_status(objective, "2026-03-16") == "behind"

    def test_caught_up(self, objective):
        objective["training_plan"] = [
            {"week_number": 1, "completed": True},
            {"week_number": 2, "completed": True},
        ]
        assert get_objective_timeline_status(objective, "2026-03-16") == "on-track"

    def test_never_ahead(self, objective):
        objective["training_plan"] = [{"week_number": n, "completed": True} for n in range(1, 10)]
        assert get_objective_timeline_status(objective, "2026-03-05") == "on-track"

    def test_target_before_activation(self, objective):
        objective["target_date"] = "2026-03-01"
        assert get_objective_timeline_status(objective, "2026-04-01") == "on-track"


class TestStatusLayer:
    """Tests for compute_status_layer."""

    def test_snapshot(self, sample_log, objective):
        status = compute_status_layer(
            sample_log, empty_history(), [objective], "2026-03-02", "2026-03-08", "2026-03-08",
        )
        assert set(status) == {
            "volume_status", "progression_flags", "climbing_flags",
            "conditioning_status", "objective_statuses",
        }
        assert status["progression_flags"] == []
        assert status["climbing_flags"] == []
        assert status["objective_statuses"] == [{
            "objective_id": "rainier-summit-abc123",
            "objective_name": "Mount Rainier Summit",
            "timeline_status": "on-track",
        }]

    def test_conditioning_target_passed_through(self, sample_log):
        status = compute_status_layer(
            sample_log, empty_history(), [], "2026-03-02", "2026-03-08", "2026-03-08", conditioning_target=1,
        )
        assert status["conditioning_status"]["on_track"] is True
