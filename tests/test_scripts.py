#!/usr/bin/env python3
"""
Tests for the command-line workflows

Exercises the functions behind morning_check_in, log_session,
recommend_session and weekly_review against a temporary athletes
directory.

Run with: pytest tests/test_scripts.py -v
"""

import json

import pytest
import yaml

from athlete_store import create_athlete, load_context, read_collection, write_collection
from log_session import load_session_file, log_session, prepare_session
from morning_check_in import build_check_in
from recommend_session import config_warning, current_plan_week, generate_recommendation
from set_zones import format_zones
from summit_engine import reference_data
from summit_engine.objectives import activate_objective
from summit_engine.recovery import record_check_in
from summit_engine.training_config import DEFAULT_TRAINING_CONFIG
from summit_engine.zones import DEFAULT_ZONES
from weekly_review import format_review_text, generate_review, volume_targets_from_config


@pytest.fixture
def athlete(temp_athletes_dir):
    create_athlete("alex-ridge")
    return "alex-ridge"


@pytest.fixture
def rainier():
    entry = reference_data.get_objective_entry("rainier-summit")
    return activate_objective(entry, "2026-07-15", "2026-03-02", priority_weight=5)


# =============================================================================
# MORNING CHECK-IN
# =============================================================================

class TestBuildCheckIn:
    """Tests for build_check_in validation."""

    def test_valid(self):
        entry = build_check_in("2026-03-02", "Good", 4, 4, 5, sleep_hours=7.5, hrv=62,
                               flags=["altitude", "travel", "travel"])
        assert entry["sleep"] == {"quality": "Good", "hours": 7.5}
        assert entry["recovery"] == {"hrv": 62, "resting_hr": None}
        assert entry["subjective_feel"]["motivation"] == 5
        assert entry["flags"] == ["travel", "altitude"]

    def test_rating_out_of_range(self):
        with pytest.raises(ValueError, match="legs must be between 1 and 5"):
            build_check_in("2026-03-02", "Good", 6, 4, 4)

    def test_unknown_sleep_quality(self):
        with pytest.raises(ValueError, match="sleep quality"):
            build_check_in("2026-03-02", "Amazing", 4, 4, 4)

    def test_unknown_flag(self):
        with pytest.raises(ValueError, match="Unknown flags"):
            build_check_in("2026-03-02", "Good", 4, 4, 4, flags=["hungover"])

    def test_heart_rate_bounds(self):
        with pytest.raises(ValueError, match="resting-hr"):
            build_check_in("2026-03-02", "Good", 4, 4, 4, resting_hr=300)


# =============================================================================
# SESSION LOGGING
# =============================================================================

class TestLogSession:
    """Tests for log_session and its helpers."""

    def test_load_yaml_and_json(self, tmp_path):
        session = {"date": "2026-03-07", "activity_type": "Hike", "duration": 3600}
        yaml_path = tmp_path / "hike.yaml"
        json_path = tmp_path / "hike.json"
        yaml_path.write_text(yaml.dump(session))
        json_path.write_text(json.dumps(session))

        assert load_session_file(yaml_path) == session
        assert load_session_file(json_path) == session

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_session_file(tmp_path / "nope.yaml")

    def test_load_without_date(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"activity_type": "Hike"}))
        with pytest.raises(ValueError, match="with a date"):
            load_session_file(path)

    def test_load_hand_written_yaml_dates(self, tmp_path):
        path = tmp_path / "hike.yaml"
        path.write_text(
            "date: 2026-03-07\n"
            "activity_type: Hike\n"
            "duration: 15\n"
            "samples:\n"
            "  - timestamp: 2026-03-07T08:00:00Z\n"
            "    heart_rate: 120\n"
        )
        session = load_session_file(path)
        assert session["date"] == "2026-03-07"
        assert session["samples"][0]["timestamp"] == "2026-03-07T08:00:00+00:00"

    def test_log_hand_written_yaml_keeps_earlier_sessions(self, athlete, tmp_path):
        log_session(athlete, {"date": "2026-03-03", "exercises": [
            {"exercise_id": "deadlift", "sets": [{"reps": 5, "weight": 100}]},
        ]})
        path = tmp_path / "hike.yaml"
        path.write_text("date: 2026-03-07\nactivity_type: Hike\nduration: 3600\n")

        log_session(athlete, load_session_file(path))

        log = read_collection(athlete, "workout_log")
        assert [s["date"] for s in log["strength"]] == ["2026-03-03"]
        assert [s["date"] for s in log["cardio"]] == ["2026-03-07"]

    def test_prepare_cardio_with_samples(self):
        session = {
            "date": "2026-03-07",
            "activity_type": "Hike",
            "duration": 15,
            "samples": [
                {"timestamp": "2026-03-07T08:00:00Z", "heart_rate": 120},
                {"timestamp": "2026-03-07T08:00:05Z", "heart_rate": 120},
                {"timestamp": "2026-03-07T08:00:10Z", "heart_rate": 120},
            ],
        }
        prepared = prepare_session(session, "cardio", DEFAULT_ZONES)
        assert "samples" not in prepared
        assert prepared["zone_distribution"]["z2"] == 0.2
        assert prepared["training_load"] == {"score": 0, "classification": "low"}
        assert prepared["id"]
        assert "samples" in session

    def test_prepare_keeps_existing_id(self):
        prepared = prepare_session({"id": "abc", "date": "2026-03-07", "exercises": []}, "strength", DEFAULT_ZONES)
        assert prepared == {"id": "abc", "date": "2026-03-07", "exercises": []}

    def test_log_loaded_hike(self, athlete, rainier):
        write_collection(athlete, "objectives", [rainier])
        session = {
            "date": "2026-03-07",
            "activity_type": "Hike",
            "duration": 2 * 3600,
            "elevation_gain": 1500,
            "pack_weight": "heavy",
        }

        result = log_session(athlete, session)

        assert result["domain"] == "cardio"
        assert result["summary"]["level"] == "medium"
        assert result["summary"]["dominant_group"] == "loaded carry"
        assert [m["domain"] for m in result["objectives"]] == ["aerobic", "loaded-carry"]
        assert [b["assessment_id"] for b in result["benchmarks"]] == ["rainier-loaded-hike"]
        assert len(read_collection(athlete, "workout_log")["cardio"]) == 1

    def test_log_strength(self, athlete):
        session = {"date": "2026-03-03", "exercises": [{"exercise_id": "pullup", "sets": [{"reps": 6, "weight": 0}]}]}
        result = log_session(athlete, session)
        assert result["domain"] == "strength"
        assert result["summary"] is None
        assert result["benchmarks"] == []
        assert "pullup" in read_collection(athlete, "progression_history")["by_exercise"]

    def test_unknown_session_type(self, athlete):
        with pytest.raises(ValueError, match="Could not tell the session type"):
            log_session(athlete, {"date": "2026-03-03"})


# =============================================================================
# RECOMMENDATION
# =============================================================================

class TestRecommendSession:
    """Tests for generate_recommendation and helpers."""

    def test_uses_check_in_snapshot(self, athlete, make_check_in):
        check_ins, baseline, _ = record_check_in([], make_check_in(date="2026-03-04"), None, "2026-03-04")
        # Edit after the fact; the saved classification still rules
        check_ins[0]["sleep"]["quality"] = "Poor"
        write_collection(athlete, "check_ins", check_ins)
        write_collection(athlete, "baseline", baseline)

        recommendation = generate_recommendation(load_context(athlete), "2026-03-04")
        assert recommendation["date"] == "2026-03-04"
        assert recommendation["card"]["recovery_state"] == "full"

    def test_no_check_in(self, athlete):
        card = generate_recommendation(load_context(athlete), "2026-03-04")["card"]
        assert card["recovery_state"] == "moderate"
        assert card["recovery_note"].startswith("No check-in in the last 48 hours")

    def test_current_plan_week(self, rainier):
        low = {**rainier, "priority_weight": 2, "training_plan": [
            {"week_number": 1, "start_date": "2026-03-02", "key_workouts": ["low"]},
        ]}
        high = {**rainier, "priority_weight": 8, "training_plan": [
            {"week_number": 1, "start_date": "2026-03-02", "key_workouts": ["high"]},
        ]}
        assert current_plan_week([low, high], "2026-03-08")["key_workouts"] == ["high"]
        assert current_plan_week([low, high], "2026-03-09") is None

    def test_config_warning(self):
        config = {**DEFAULT_TRAINING_CONFIG, "generated_date": "2026-03-02", "expires_date": "2026-03-08"}
        assert config_warning(None, "2026-03-04") is None
        assert config_warning(config, "2026-03-04") is None
        assert config_warning(config, "2026-03-07") == "Training config expires on 2026-03-08."
        assert "expired on 2026-03-08" in config_warning(config, "2026-03-09")


# =============================================================================
# WEEKLY REVIEW
# =============================================================================

class TestWeeklyReview:
    """Tests for generate_review."""

    def test_review(self, athlete, sample_log):
        write_collection(athlete, "workout_log", sample_log)
        review = generate_review(load_context(athlete), "2026-03-06")

        assert review["_meta"]["week_start"] == "2026-03-02"
        assert review["_meta"]["week_end"] == "2026-03-08"
        assert review["stimulus"]["levels"]["forearms_grip"] == "high"
        assert review["mandatory_rest"] == []
        assert review["status"]["volume_status"]["cardio"] == "green"
        assert review["zones"]["total_hours"] == 4.0
        assert review["zones"]["balance"] == "Aerobic base building"

        text = format_review_text(review)
        assert "WEEKLY REVIEW - 2026-03-02 to 2026-03-08" in text
        assert "Forearm/grip load is high" in text

    def test_review_is_json_serializable(self, athlete, sample_log):
        write_collection(athlete, "workout_log", sample_log)
        json.dumps(generate_review(load_context(athlete), "2026-03-06"))

    def test_volume_targets_from_config(self):
        config = {
            **DEFAULT_TRAINING_CONFIG,
            "strength_weekly_target": {"direction": "increase", "sessions": 3},
        }
        assert volume_targets_from_config(config) == {
            "cardio_minutes_target": 240,
            "strength_sessions_target": 3,
        }
        assert volume_targets_from_config(None) == {}


class TestFormatZones:
    def test_format(self):
        lines = format_zones(DEFAULT_ZONES).splitlines()
        assert len(lines) == 5
        assert lines[0].strip().startswith("Z1:")


# =============================================================================
# COMMAND-LINE ENTRY POINTS
# =============================================================================

class TestSetTrainingConfigCli:
    """Tests for set_training_config.main."""

    @pytest.fixture
    def config_file(self, tmp_path):
        config = {
            **DEFAULT_TRAINING_CONFIG,
            "generated_date": "2026-03-02",
            "expires_date": "2026-03-08",
            "pull_emphasis": "high",
            "override_reason": "Build week.",
        }
        path = tmp_path / "week.yaml"
        path.write_text(yaml.dump(config))
        return path

    def test_activate(self, athlete, config_file, monkeypatch, capsys):
        import set_training_config
        monkeypatch.setattr("sys.argv", ["set_training_config.py", athlete, str(config_file), "--diff"])
        set_training_config.main()

        out = capsys.readouterr().out
        assert "pull_emphasis: medium -> high" in out
        assert "Activated config" in out
        assert read_collection(athlete, "training_config")["pull_emphasis"] == "high"
        assert read_collection(athlete, "config_history") == []

    def test_previous_config_moves_to_history(self, athlete, config_file, monkeypatch):
        import set_training_config
        monkeypatch.setattr("sys.argv", ["set_training_config.py", athlete, str(config_file)])
        set_training_config.main()
        set_training_config.main()
        assert len(read_collection(athlete, "config_history")) == 1

    def test_hand_written_yaml_dates(self, athlete, tmp_path, monkeypatch):
        import set_training_config
        path = tmp_path / "week.yaml"
        path.write_text(
            "generated_date: 2026-03-02\n"
            "expires_date: 2026-03-08\n"
            "fatigue_state: low\n"
            "cardio_priority: build\n"
            "cardio_zone2_minimum_hours: 4\n"
            "strength_priority: build\n"
            "posterior_chain_emphasis: high\n"
            "single_leg_emphasis: medium\n"
            "push_emphasis: medium\n"
            "pull_emphasis: medium\n"
            "core_emphasis: medium\n"
            "climbing_priority: build\n"
            "climbing_frequency_max: 3\n"
            "conditioning_frequency: 2\n"
            "loaded_carry_sessions: 1\n"
            "objective_proximity_flag: normal\n"
            "override_reason: Hand-written build week.\n"
        )
        assert set_training_config.load_config_file(path)["generated_date"] == "2026-03-02"

        monkeypatch.setattr("sys.argv", ["set_training_config.py", athlete, str(path)])
        set_training_config.main()
        active = read_collection(athlete, "training_config")
        assert active["expires_date"] == "2026-03-08"
        assert active["posterior_chain_emphasis"] == "high"

    def test_invalid_config_exits(self, athlete, tmp_path, monkeypatch):
        import set_training_config
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.dump({**DEFAULT_TRAINING_CONFIG, "pull_emphasis": "extreme"}))
        monkeypatch.setattr("sys.argv", ["set_training_config.py", athlete, str(path)])

        with pytest.raises(SystemExit):
            set_training_config.main()
        assert read_collection(athlete, "training_config") is None

    def test_missing_file(self, athlete, tmp_path, monkeypatch, capsys):
        import set_training_config
        monkeypatch.setattr("sys.argv", ["set_training_config.py", athlete, str(tmp_path / "nope.yaml")])
        with pytest.raises(SystemExit):
            set_training_config.main()
        assert capsys.readouterr().out.startswith("Error: Config not found")


class TestManageObjectivesCli:
    """Tests for manage_objectives.main."""

    def run(self, monkeypatch, *args):
        import manage_objectives
        monkeypatch.setattr("sys.argv", ["manage_objectives.py", *args])
        manage_objectives.main()

    def test_activate_then_archive(self, athlete, monkeypatch):
        self.run(monkeypatch, athlete, "--date", "2026-03-02", "activate", "rainier-summit", "2026-07-15")
        active = read_collection(athlete, "objectives")
        assert [o["library_id"] for o in active] == ["rainier-summit"]
        assert active[0]["current_phase"] == "Base"

        self.run(monkeypatch, athlete, "--date", "2026-04-01", "deactivate", active[0]["id"])
        assert read_collection(athlete, "objectives") == []
        archived = read_collection(athlete, "archived_objectives")
        assert archived[0]["completed_date"] == "2026-04-01"

    def test_duplicate_activation_fails(self, athlete, monkeypatch):
        self.run(monkeypatch, athlete, "--date", "2026-03-02", "activate", "rainier-summit", "2026-07-15")
        with pytest.raises(SystemExit):
            self.run(monkeypatch, athlete, "--date", "2026-03-02", "activate", "rainier-summit", "2026-08-01")
        assert len(read_collection(athlete, "objectives")) == 1

    def test_unknown_library_id(self, athlete, monkeypatch, capsys):
        with pytest.raises(SystemExit):
            self.run(monkeypatch, athlete, "activate", "k2", "2026-07-15")
        assert "Unknown objective library id: k2" in capsys.readouterr().out
