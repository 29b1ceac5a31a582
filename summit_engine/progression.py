"""
Progression Tracker - Strength overload and climbing grade trajectory

History shape:
    {
        "by_exercise": {exercise_id: [{"date": ..., "sets": [...]}, ...]},
        "climbing_grades": {discipline: [{"date": ..., "highest_send": ...}, ...]},
    }

Series are append-only. Update functions return a new history dict and
never modify the one passed in.
"""

import logging
import re
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from . import reference_data

logger = logging.getLogger(__name__)

PLATEAU_LOOKBACK_DAYS = 42
PLATEAU_FLAT_DAYS = 28

CLIMBING_DISCIPLINES = ("bouldering", "top-rope", "lead", "outdoor-sport", "outdoor-trad")

YDS_ORDER = [
    "5.6", "5.7", "5.8", "5.9",
    "5.10a", "5.10b", "5.10c", "5.10d",
    "5.11a", "5.11b", "5.11c", "5.11d",
    "5.12a", "5.12b", "5.12c", "5.12d",
    "5.13a", "5.13b", "5.13c", "5.13d",
    "5.14a", "5.14b", "5.14c", "5.14d",
    "5.15a", "5.15b", "5.15c", "5.15d",
]

V_GRADE_PATTERN = re.compile(r"^V(\d+)", re.IGNORECASE)


def empty_history() -> Dict[str, Dict[str, List[Dict]]]:
    return {"by_exercise": {}, "climbing_grades": {}}


# =============================================================================
# GRADES
# =============================================================================

def v_grade_rank(grade: str) -> int:
    """Numeric V-grade (V5 -> 5); unparseable grades rank -1."""
    match = V_GRADE_PATTERN.match(grade)
    return int(match.group(1)) if match else -1


def yds_rank(grade: str) -> int:
    """Position in the YDS ladder; unknown grades rank -1."""
    return YDS_ORDER.index(grade) if grade in YDS_ORDER else -1


def get_highest_grade(discipline: str, grades: List[str]) -> Optional[str]:
    """Hardest grade in the list: V-scale for bouldering, YDS for everything else."""
    if not grades:
        return None
    rank = v_grade_rank if discipline == "bouldering" else yds_rank
    return sorted(grades, key=rank, reverse=True)[0]


# =============================================================================
# HISTORY UPDATES
# =============================================================================

def update_strength_progression(history: Dict, session: Dict[str, Any]) -> Dict:
    """Append one {date, sets} point per exercise performed in the session."""
    by_exercise = {k: list(v) for k, v in history.get("by_exercise", {}).items()}

    for exercise in session.get("exercises", []):
        exercise_id = exercise["exercise_id"]
        by_exercise.setdefault(exercise_id, []).append({
            "date": session["date"],
            "sets": exercise.get("sets", []),
        })

    return {**history, "by_exercise": by_exercise}


def update_climbing_progression(history: Dict, session: Dict[str, Any]) -> Dict:
    """
    Append the session's highest sent grade to its discipline's series.
    Attempts are ignored; a session with no sends adds nothing.
    """
    climbing_grades = {k: list(v) for k, v in history.get("climbing_grades", {}).items()}
    discipline = session["session_type"]

    sends = [c["grade"] for c in session.get("climbs", []) if c.get("result") == "send"]
    highest = get_highest_grade(discipline, sends)

    if highest is not None:
        climbing_grades.setdefault(discipline, []).append({
            "date": session["date"],
            "highest_send": highest,
        })
    else:
        logger.debug(f"Climbing session {session.get('date')} has no sends, progression unchanged")

    return {**history, "climbing_grades": climbing_grades}


# =============================================================================
# FLAGS
# =============================================================================

def did_beat_all_sets(current: List[Dict], previous: List[Dict]) -> bool:
    """
    True when every set index present in both sessions was beaten: more
    weight, or the same weight for more reps. Empty set lists never beat.
    """
    if not current or not previous:
        return False

    for c, p in zip(current, previous):
        if c["weight"] < p["weight"]:
            return False
        if c["weight"] == p["weight"] and c["reps"] <= p["reps"]:
            return False
    return True


def check_progression_flags(history: Dict) -> List[Dict[str, str]]:
    """
    Progressive-overload flags per exercise.

    Fires when the latest session beat the one before it, and either those
    are the only two sessions or the previous session had also beaten its
    predecessor.
    """
    flags = []

    for exercise_id, points in history.get("by_exercise", {}).items():
        if len(points) < 2:
            continue

        ordered = sorted(points, key=lambda p: p["date"])
        last, prev = ordered[-1], ordered[-2]

        last_beats = did_beat_all_sets(last["sets"], prev["sets"])
        prev_beats = len(ordered) >= 3 and did_beat_all_sets(prev["sets"], ordered[-3]["sets"])

        if last_beats and (prev_beats or len(ordered) == 2):
            name = reference_data.exercise_name(exercise_id)
            flags.append({
                "exercise_id": exercise_id,
                "exercise_name": name,
                "message": f"Consider increasing weight next {name} session.",
            })

    return flags


def format_discipline(discipline: str) -> str:
    return " ".join(word.capitalize() for word in discipline.split("-"))


def check_climbing_plateau_flags(history: Dict, as_of: str) -> List[Dict[str, str]]:
    """
    Flag disciplines whose highest send has not moved in 4 weeks.

    A discipline needs at least 2 points in the last 6 weeks to be considered
    at all; the flag itself only looks at the last 4 weeks.
    """
    today = date.fromisoformat(as_of)
    lookback_cutoff = (today - timedelta(days=PLATEAU_LOOKBACK_DAYS)).isoformat()
    flat_cutoff = (today - timedelta(days=PLATEAU_FLAT_DAYS)).isoformat()

    flags = []
    for discipline, points in history.get("climbing_grades", {}).items():
        if len(points) < 2:
            continue

        ordered = sorted(points, key=lambda p: p["date"])
        if len([p for p in ordered if p["date"] >= lookback_cutoff]) < 2:
            continue

        flat_window = [p["highest_send"] for p in ordered if p["date"] >= flat_cutoff]
        if len(flat_window) >= 2 and all(g == flat_window[0] for g in flat_window):
            flags.append({
                "discipline": discipline,
                "message": f"{format_discipline(discipline)} grade has been flat for 4+ weeks - plateau detected.",
            })

    return flags


def get_last_strength_session(history: Dict, exercise_id: str) -> Optional[List[Dict]]:
    """Set list from the most recent session of an exercise, or None."""
    points = history.get("by_exercise", {}).get(exercise_id)
    if not points:
        return None
    return sorted(points, key=lambda p: p["date"])[-1]["sets"]
