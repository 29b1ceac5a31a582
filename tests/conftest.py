"""
Pytest configuration and shared fixtures for summit-engine tests.
"""

import sys
from pathlib import Path

import pytest

from summit_engine.recovery import empty_baseline

# Scripts are run as `python scripts/x.py` and import each other as siblings
sys.path.insert(0, str(Path(__file__).parent.parent / "scripts"))


@pytest.fixture(scope="session")
def root_dir() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def empty_log():
    return {"cardio": [], "strength": [], "climbing": [], "conditioning": []}


@pytest.fixture
def make_check_in():
    """Factory for check-in records with neutral defaults."""
    def _make(date="2026-03-02", quality="Good", hrv=None, resting_hr=None,
              legs=4, energy=4, motivation=4, flags=None):
        return {
            "date": date,
            "sleep": {"quality": quality, "hours": 7.5},
            "recovery": {"hrv": hrv, "resting_hr": resting_hr},
            "subjective_feel": {"legs": legs, "energy": energy, "motivation": motivation},
            "flags": flags or [],
            "notes": "",
        }
    return _make


@pytest.fixture
def established_baseline():
    """Baseline with HRV 65 and resting HR 52."""
    baseline = empty_baseline()
    baseline.update({
        "hrv_30_day_average": 65,
        "resting_hr_30_day_average": 52,
        "baseline_established": True,
        "baseline_calculated_date": "2026-03-01",
    })
    return baseline


@pytest.fixture
def sample_log():
    """One week (Mon 2026-03-02 .. Sun 2026-03-08) across all four domains."""
    return {
        "cardio": [
            {
                "id": "c1",
                "date": "2026-03-02",
                "activity_type": "Hike",
                "duration": 4 * 3600,
                "elevation_gain": 1200,
                "pack_weight": "none",
                "zone_distribution": {"z1": 60, "z2": 120, "z3": 30, "z4": 20, "z5": 10},
            },
            {
                "id": "c2",
                "date": "2026-03-05",
                "activity_type": "OutdoorRun",
                "duration": 3600,
                "elevation_gain": 200,
            },
        ],
        "strength": [
            {
                "id": "s1",
                "date": "2026-03-03",
                "exercises": [
                    {"exercise_id": "deadlift", "sets": [{"reps": 5, "weight": 100}] * 3},
                    {"exercise_id": "pullup", "sets": [{"reps": 6, "weight": 0}] * 3},
                ],
            },
        ],
        "climbing": [
            {
                "id": "cl1",
                "date": "2026-03-04",
                "session_type": "bouldering",
                "climbs": [
                    {"grade": "V3", "result": "send"},
                    {"grade": "V4", "result": "attempt"},
                ],
            },
        ],
        "conditioning": [
            {
                "id": "k1",
                "date": "2026-03-06",
                "pullup_sets": [{"reps": 8}, {"reps": 8}],
                "deadhang_sets": [{"seconds": 30}],
                "hangboard_sets": [{"rounds": 4}],
            },
        ],
    }


@pytest.fixture
def temp_athletes_dir(tmp_path, monkeypatch):
    """Point the athlete store at an empty temporary directory."""
    import athlete_store

    athletes_dir = tmp_path / "athletes"
    athletes_dir.mkdir()
    monkeypatch.setattr(athlete_store, "ATHLETES_DIR", athletes_dir)
    return athletes_dir
