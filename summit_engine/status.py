"""
Status Aggregator - Weekly read-only status snapshot

Volume traffic lights, conditioning consistency, progression and plateau
flags, and objective timeline status for one week.
"""

import math
from datetime import date
from typing import Any, Dict, List, Optional

from . import progression
from .numbers import round_half_up

# =============================================================================
# CONFIGURATION
# =============================================================================

TRAFFIC_LIGHT_RATIOS = {
    "green": 0.85,
    "yellow": 0.5,
}

DEFAULT_VOLUME_TARGETS = {
    "cardio_minutes_target": 240,
    "strength_sessions_target": 2,
    "climbing_sessions_target": 2,
}

DEFAULT_CONDITIONING_TARGET = 2


def _in_window(sessions: List[Dict], start_date: str, end_date: str) -> List[Dict]:
    return [s for s in sessions if start_date <= s.get("date", "") <= end_date]


def traffic_light(actual: float, target: float) -> str:
    """Ratio of actual to target: >=0.85 green, >=0.5 yellow, else red. No target is green."""
    ratio = actual / target if target > 0 else 1
    if ratio >= TRAFFIC_LIGHT_RATIOS["green"]:
        return "green"
    if ratio >= TRAFFIC_LIGHT_RATIOS["yellow"]:
        return "yellow"
    return "red"


def get_volume_status(
    log: Dict[str, List[Dict]],
    start_date: str,
    end_date: str,
    targets: Optional[Dict[str, float]] = None,
) -> Dict[str, Any]:
    targets = {**DEFAULT_VOLUME_TARGETS, **(targets or {})}

    cardio_minutes = sum((s.get("duration") or 0) / 60 for s in _in_window(log.get("cardio", []), start_date, end_date))
    strength_sessions = len(_in_window(log.get("strength", []), start_date, end_date))
    climbing_sessions = len(_in_window(log.get("climbing", []), start_date, end_date))

    return {
        "cardio": traffic_light(cardio_minutes, targets["cardio_minutes_target"]),
        "strength": traffic_light(strength_sessions, targets["strength_sessions_target"]),
        "climbing": traffic_light(climbing_sessions, targets["climbing_sessions_target"]),
        "cardio_minutes_this_week": round_half_up(cardio_minutes),
        "strength_sessions_this_week": strength_sessions,
        "climbing_sessions_this_week": climbing_sessions,
    }


def get_conditioning_status(
    log: Dict[str, List[Dict]],
    start_date: str,
    end_date: str,
    target_sessions: int = DEFAULT_CONDITIONING_TARGET,
) -> Dict[str, Any]:
    count = len(_in_window(log.get("conditioning", []), start_date, end_date))
    return {
        "sessions_this_week": count,
        "target_sessions": target_sessions,
        "on_track": count >= target_sessions,
    }


def get_objective_timeline_status(objective: Dict[str, Any], as_of: str) -> str:
    """
    'on-track' when completed plan weeks keep pace with elapsed weeks since
    activation, else 'behind'. There is no 'ahead' outcome.
    """
    activated = date.fromisoformat(objective["activated_date"])
    target = date.fromisoformat(objective["target_date"])
    today = date.fromisoformat(as_of)

    total_weeks = (target - activated).days / 7
    if total_weeks <= 0:
        return "on-track"

    expected = math.floor((today - activated).days / 7)
    completed = len([w for w in objective.get("training_plan", []) if w.get("completed")])

    if completed - expected >= 0:
        return "on-track"
    return "behind"


def compute_status_layer(
    log: Dict[str, List[Dict]],
    progression_history: Dict,
    active_objectives: List[Dict[str, Any]],
    week_start: str,
    week_end: str,
    as_of: str,
    conditioning_target: int = DEFAULT_CONDITIONING_TARGET,
    volume_targets: Optional[Dict[str, float]] = None,
) -> Dict[str, Any]:
    """Assemble the weekly status snapshot."""
    return {
        "volume_status": get_volume_status(log, week_start, week_end, volume_targets),
        "progression_flags": progression.check_progression_flags(progression_history),
        "climbing_flags": progression.check_climbing_plateau_flags(progression_history, as_of),
        "conditioning_status": get_conditioning_status(log, week_start, week_end, conditioning_target),
        "objective_statuses": [
            {
                "objective_id": o["id"],
                "objective_name": o["name"],
                "timeline_status": get_objective_timeline_status(o, as_of),
            }
            for o in active_objectives
        ],
    }
