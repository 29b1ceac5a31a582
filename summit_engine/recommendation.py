"""
Recommendation Builder - One training recommendation per day

Reconciles today's recovery tier, the active training config, mandatory
rest dimensions from the stimulus engine, active objectives and user
preferences into a single recommendation card.

Decision order:
    1. Resolve config (fall back to the built-in default)
    2. Resolve recovery tier (no check-in -> moderate, with a warning note)
    3. Look up mandatory-rest dimensions for today
    4. Branch: rest / peak week -> rest day; fatigued -> active recovery;
       full or moderate -> training day built from one workout archetype
    5. Proximity modifier (taper scales sets, approaching adds a note)
    6. Why-note and config-influence note are rebuilt last

Card:
    {
        "title": str,
        "parameters": str,
        "exercises": [{"exercise_id", "name", "sets", "reps", "note"?}],
        "activity_description": str or None,
        "recovery_state": tier,
        "recovery_note": str,
        "modification_flag": str or None,
        "config_influence_note": str or None,
        "proximity_note": str or None,
        "why_note": str,
    }
"""

import logging
from typing import Any, Dict, List, Optional, Set

from . import reference_data
from .numbers import round_half_up
from .objectives import calculate_phase, weeks_remaining
from .stimulus import get_mandatory_rest_groups
from .training_config import resolve_config

logger = logging.getLogger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

DEFAULT_USER_PREFERENCES = {
    "hr_calibration_offset": 0,
    "active_limitations": [],
    "preferred_methodology": "uphill-athlete",
    "objective_notes": {},
    "suppressed_recommendation_types": [],
}

DEFAULT_METHODOLOGY = "uphill-athlete"

LIMITATION_EXERCISES = {
    "knee": ["barbell-squat", "barbell-lunge", "single-leg-rdl"],
    "shoulder": [
        "bench-press", "barbell-shoulder-press", "pushup", "pullup",
        "inverted-row", "cable-lat-pulldown", "cable-row",
    ],
    "ankle": ["barbell-lunge", "single-leg-rdl"],
    "back": ["deadlift", "barbell-squat", "barbell-lunge"],
    "forearm": ["pullup", "cable-lat-pulldown", "hanging-leg-lifts", "deadlift"],
    "other": [],
}

SUPPRESSION_TYPE_EXERCISES = {
    "heavy-lower-body": ["barbell-squat", "deadlift", "barbell-lunge", "single-leg-rdl"],
    "high-impact-cardio": [],
    "climbing": [],
}

# Exercises left out while a stimulus dimension is at mandatory rest
MANDATORY_REST_EXERCISES = {
    "forearms_grip": {"pullup", "cable-lat-pulldown", "hanging-leg-lifts", "deadlift"},
    "posterior_chain": {"deadlift", "single-leg-rdl"},
}

# Primary muscle group -> config emphasis field
EMPHASIS_FIELDS = {
    "posterior-chain": "posterior_chain_emphasis",
    "quad-dominant": "single_leg_emphasis",
    "push": "push_emphasis",
    "pull": "pull_emphasis",
    "core": "core_emphasis",
}

WORKOUT_ARCHETYPES = {
    "lower-posterior": {
        "label": "Lower Body - Posterior Chain",
        "muscle_group": "posterior-chain",
        "exercise_ids": ["deadlift", "single-leg-rdl", "barbell-lunge"],
    },
    "upper-pull": {
        "label": "Upper Body - Pull",
        "muscle_group": "pull",
        "exercise_ids": ["pullup", "inverted-row", "cable-lat-pulldown", "cable-row"],
    },
    "upper-push": {
        "label": "Upper Body - Push",
        "muscle_group": "push",
        "exercise_ids": ["bench-press", "barbell-shoulder-press", "pushup"],
    },
    "core": {
        "label": "Core",
        "muscle_group": "core",
        "exercise_ids": ["hanging-leg-lifts", "leg-lifts-lying"],
    },
    "lower-quad": {
        "label": "Lower Body - Quad",
        "muscle_group": "quad-dominant",
        "exercise_ids": ["barbell-squat", "barbell-lunge", "single-leg-rdl"],
    },
    "full-body": {
        "label": "Full Body",
        "muscle_group": "full",
        "exercise_ids": ["barbell-squat", "deadlift", "bench-press", "pullup", "leg-lifts-lying"],
    },
}

MODERATE_SET_FACTOR = 0.8
TAPER_SET_FACTOR = 0.6

NO_CHECK_IN_NOTE = "No check-in in the last 48 hours - using moderate recovery as default."
APPROACHING_NOTE = "Objective approaching - protecting key benchmark sessions."


# =============================================================================
# PREFERENCES
# =============================================================================

def compute_suppressed_exercises(preferences: Dict[str, Any]) -> Set[str]:
    """Exercise ids removed by active limitations and suppressed recommendation types."""
    suppressed = set()
    for limitation in preferences.get("active_limitations", []):
        suppressed.update(LIMITATION_EXERCISES.get(limitation, []))
    for suppression in preferences.get("suppressed_recommendation_types", []):
        suppressed.update(SUPPRESSION_TYPE_EXERCISES.get(suppression, []))
    return suppressed


# =============================================================================
# DAY BUILDERS
# =============================================================================

def build_rest_day(tier: str, proximity: str) -> Dict[str, Any]:
    peak_week = proximity == "peak-week"
    return {
        "title": "Peak Week - Rest and Easy Movement" if peak_week else "Rest Day",
        "parameters": (
            "Full rest or gentle walk only - arrive fresh for your objective"
            if peak_week else "Full rest - no structured training today"
        ),
        "exercises": [],
        "activity_description": "Full rest or gentle walk only.",
        "recovery_state": tier,
        "recovery_note": (
            "Peak week - rest and easy movement only to arrive fresh."
            if peak_week else "Full rest recommended based on today's recovery data."
        ),
        "modification_flag": None,
        "config_influence_note": None,
        "proximity_note": "Objective is within one week - rest is the training." if peak_week else None,
        "why_note": (
            "Arriving at your objective fresh matters more than any workout this week."
            if peak_week else "Your body needs full rest today. Any intensity will extend recovery time."
        ),
    }


def build_fatigued_day(tier: str) -> Dict[str, Any]:
    return {
        "title": "Active Recovery - Easy Zone 1 Only",
        "parameters": (
            "Easy movement 20-45 min, zone 1 only, conversational pace throughout. "
            "No strength, climbing, or conditioning."
        ),
        "exercises": [],
        "activity_description": (
            "Easy Zone 1 cardio: 20-45 min walk, easy spin, or gentle movement. "
            "No strength, no climbing, no conditioning."
        ),
        "recovery_state": tier,
        "recovery_note": "Fatigued - swapping to active recovery.",
        "modification_flag": "Plan downgraded to active recovery due to fatigue.",
        "config_influence_note": None,
        "proximity_note": None,
        "why_note": (
            "Fatigue signals from today's check-in indicate your body needs easy movement "
            "rather than training stimulus."
        ),
    }


def select_workout_type(config: Dict[str, Any], forearms_rest: bool, posterior_rest: bool) -> str:
    """Archetype id by fixed priority: posterior > pull > push > core > quad > full body."""
    if config.get("posterior_chain_emphasis") == "high" and not posterior_rest:
        return "lower-posterior"
    if config.get("pull_emphasis") == "high" and not forearms_rest:
        return "upper-pull"
    if config.get("push_emphasis") == "high":
        return "upper-push"
    if config.get("core_emphasis") == "high":
        return "core"
    if config.get("single_leg_emphasis") == "high" and not posterior_rest:
        return "lower-quad"
    return "full-body"


def _emphasis_for(definition: Dict[str, Any], config: Dict[str, Any]) -> str:
    field = EMPHASIS_FIELDS.get(definition.get("primary_muscle_group"))
    return config.get(field, "medium") if field else "medium"


def build_exercise_list(
    workout_type: str,
    config: Dict[str, Any],
    moderate: bool,
    excluded: Set[str],
) -> List[Dict[str, Any]]:
    """
    Concrete prescription for an archetype.

    Sets start from the library default; moderate recovery trims 20%
    (floor 1); high emphasis adds a set unless already trimmed; low
    emphasis removes one (floor 1).
    """
    exercises = []
    for exercise_id in WORKOUT_ARCHETYPES[workout_type]["exercise_ids"]:
        if exercise_id in excluded:
            continue

        definition = reference_data.get_exercise(exercise_id)
        if definition is None:
            continue

        sets = definition["defaults"]["sets"]
        reps = definition["defaults"]["reps"]

        if moderate:
            sets = max(1, round_half_up(sets * MODERATE_SET_FACTOR))

        emphasis = _emphasis_for(definition, config)
        if emphasis == "high" and not moderate:
            sets += 1
        if emphasis == "low":
            sets = max(1, sets - 1)

        exercises.append({
            "exercise_id": exercise_id,
            "name": definition["name"],
            "sets": sets,
            "reps": reps,
        })

    return exercises


def format_parameters(exercises: List[Dict[str, Any]]) -> str:
    return " · ".join(
        f"{e['name']} {e['sets']}×{e['reps']}" + (f" ({e['note']})" if e.get("note") else "")
        for e in exercises
    )


def build_training_day(
    config: Dict[str, Any],
    tier: str,
    mandatory_rest: List[str],
    suppressed: Set[str],
    plan_week: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    moderate = tier == "moderate"
    forearms_rest = "forearms_grip" in mandatory_rest
    posterior_rest = "posterior_chain" in mandatory_rest

    excluded = set(suppressed)
    for dimension in mandatory_rest:
        excluded.update(MANDATORY_REST_EXERCISES.get(dimension, ()))

    workout_type = select_workout_type(config, forearms_rest, posterior_rest)
    exercises = build_exercise_list(workout_type, config, moderate, excluded)

    card = {
        "title": WORKOUT_ARCHETYPES[workout_type]["label"],
        "parameters": (
            format_parameters(exercises) if exercises
            else "All primary muscle groups at mandatory rest or suppressed - light movement only"
        ),
        "exercises": exercises,
        "activity_description": None,
        "recovery_state": tier,
        "recovery_note": (
            "Moderate recovery - reducing intensity slightly from plan."
            if moderate else "Full recovery - executing plan as prescribed."
        ),
        "modification_flag": (
            "Volume reduced ~20% and intensity downgraded one level - moderate recovery."
            if moderate else None
        ),
        "config_influence_note": None,
        "proximity_note": None,
        "why_note": (
            "Moderate recovery - keeping movement patterns but reducing volume."
            if moderate else "Full recovery - executing plan as prescribed."
        ),
    }

    if plan_week and plan_week.get("key_workouts"):
        card["key_workouts"] = list(plan_week["key_workouts"])

    return card


def apply_taper_modifier(card: Dict[str, Any]) -> Dict[str, Any]:
    """Cut sets ~40% (floor 1), keep intensity, tag every exercise."""
    reduced = [
        {**e, "sets": max(1, round_half_up(e["sets"] * TAPER_SET_FACTOR)), "note": "Taper"}
        for e in card["exercises"]
    ]

    return {
        **card,
        "exercises": reduced,
        "parameters": format_parameters(reduced) if reduced else card["parameters"],
        "modification_flag": "Taper week - volume reduced ~40%, intensity maintained.",
        "proximity_note": "Objective is 1-2 weeks away - arriving fresh is the priority.",
        "why_note": "Taper: reduce volume, maintain intensity, protect key movements.",
    }


# =============================================================================
# NOTES
# =============================================================================

def _objective_sentence(objective: Dict[str, Any], today: str, preferences: Dict[str, Any]) -> str:
    weeks = objective["weeks_remaining"]
    phase = objective.get("current_phase")
    if objective.get("target_date"):
        weeks = weeks_remaining(objective["target_date"], today)
        phase = calculate_phase(weeks)

    sentence = f"{objective.get('name', 'Objective')} is {weeks} week{'' if weeks == 1 else 's'} out - {phase} phase."
    note = (preferences.get("objective_notes", {}).get(objective.get("id")) or "").strip()
    if note:
        sentence += f" Note: {note}"
    return sentence


def build_why_note(
    tier: str,
    recovery_detail: Optional[Dict[str, Any]],
    active_objectives: List[Dict[str, Any]],
    preferences: Dict[str, Any],
    using_default: bool,
    today: str,
) -> str:
    """
    Data-specific explanation, at most 3 sentences: HRV/RHR deltas, the
    first flag interaction, the nearest objective, active limitations.
    """
    parts = []

    if recovery_detail:
        hrv_pct = recovery_detail.get("hrv_pct")
        rhr_diff = recovery_detail.get("rhr_diff")

        if hrv_pct is not None:
            if hrv_pct > 0:
                parts.append(f"HRV is {hrv_pct}% below your 30-day average.")
            elif hrv_pct < 0:
                parts.append(f"HRV is {abs(hrv_pct)}% above your 30-day average.")
            else:
                parts.append("HRV is at baseline.")

        if rhr_diff is not None:
            if rhr_diff > 0:
                parts.append(f"Resting HR is {rhr_diff} bpm elevated.")
            elif rhr_diff < 0:
                parts.append(f"Resting HR is {abs(rhr_diff)} bpm below baseline.")

        if recovery_detail.get("flag_interactions"):
            parts.append(recovery_detail["flag_interactions"][0])

    # Objectives with neither a target date nor a stored week count are skipped
    dated = [o for o in active_objectives if o.get("target_date") or o.get("weeks_remaining") is not None]
    if dated:
        nearest = min(
            dated,
            key=lambda o: weeks_remaining(o["target_date"], today) if o.get("target_date") else o["weeks_remaining"],
        )
        parts.append(_objective_sentence(nearest, today, preferences))

    limitations = preferences.get("active_limitations", [])
    if limitations:
        parts.append(f"Limitations active ({', '.join(limitations)}) - affected exercises suppressed.")

    if not parts:
        if using_default:
            return (
                "No check-in data available - recommendation based on default settings. "
                "Log a morning check-in for personalised context."
            )
        if tier == "full":
            return "Recovery signals are strong - executing plan as prescribed."
        return "No biometric data for today - classification based on sleep quality and subjective feel."

    return " ".join(parts[:3])


def build_config_note(
    config: Dict[str, Any],
    tier: str,
    using_default: bool,
    preferences: Dict[str, Any],
) -> Optional[str]:
    """How the config and preferences shaped today's card; None on rest days."""
    if tier == "rest":
        return None

    notes = []
    if using_default:
        notes.append("No active config - using baseline logic.")
    else:
        emphases = []
        if config.get("posterior_chain_emphasis") == "high":
            emphases.append("posterior chain emphasis")
        if config.get("pull_emphasis") == "high":
            emphases.append("pull emphasis")
        if config.get("push_emphasis") == "high":
            emphases.append("push emphasis")
        if config.get("core_emphasis") == "high":
            emphases.append("core emphasis")
        if config.get("single_leg_emphasis") == "high":
            emphases.append("single-leg emphasis")
        if config.get("fatigue_state") == "high":
            emphases.append("fatigue state flagged as high")

        if emphases:
            notes.append(f"Config: {' and '.join(emphases[:2])}.")
        elif config.get("cardio_priority") != "build":
            notes.append(f"Config: cardio priority is {config.get('cardio_priority')}.")
        else:
            notes.append("Active config - emphasis settings at medium defaults.")

    offset = preferences.get("hr_calibration_offset", 0)
    if offset:
        sign = "+" if offset > 0 else ""
        notes.append(f"HR calibration offset: {sign}{offset} bpm.")

    suppressed = preferences.get("suppressed_recommendation_types", [])
    if suppressed:
        notes.append(f"Suppressed: {', '.join(suppressed)}.")

    methodology = preferences.get("preferred_methodology", DEFAULT_METHODOLOGY)
    if methodology != DEFAULT_METHODOLOGY:
        notes.append(f"Methodology: {methodology}.")

    return " ".join(notes)


# =============================================================================
# MAIN ENTRY
# =============================================================================

def build_recommendation(
    config: Optional[Dict[str, Any]],
    recovery: Optional[str],
    log: Dict[str, List[Dict]],
    active_objectives: List[Dict[str, Any]],
    today: str,
    plan_week: Optional[Dict[str, Any]] = None,
    recovery_detail: Optional[Dict[str, Any]] = None,
    preferences: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Build today's recommendation card.

    Args:
        config: Active training config, or None for the built-in default
        recovery: Today's recovery tier, or None when there is no check-in
        log: Workout log with cardio/strength/climbing/conditioning lists
        active_objectives: Activated objectives
        today: ISO date the recommendation is for
        plan_week: Current training plan week ({"key_workouts": [...], "notes": ...})
        recovery_detail: classify_recovery() output for today's check-in
        preferences: User preferences (defaults to DEFAULT_USER_PREFERENCES)

    Returns:
        Recommendation card dict
    """
    preferences = {**DEFAULT_USER_PREFERENCES, **(preferences or {})}
    config, using_default = resolve_config(config)
    proximity = config.get("objective_proximity_flag", "normal")

    tier = recovery if recovery is not None else "moderate"

    mandatory_rest = get_mandatory_rest_groups(log, today)
    suppressed = compute_suppressed_exercises(preferences)

    if tier == "rest" or proximity == "peak-week":
        card = build_rest_day(tier, proximity)
    elif tier == "fatigued":
        card = build_fatigued_day(tier)
    else:
        card = build_training_day(config, tier, mandatory_rest, suppressed, plan_week)

    if proximity == "taper" and tier != "rest":
        card = apply_taper_modifier(card)
    elif proximity == "approaching":
        card["proximity_note"] = APPROACHING_NOTE

    if recovery is None:
        card["recovery_note"] = NO_CHECK_IN_NOTE

    card["why_note"] = build_why_note(tier, recovery_detail, active_objectives, preferences, using_default, today)
    card["config_influence_note"] = build_config_note(config, tier, using_default, preferences)

    logger.info(f"Recommendation for {today}: {card['title']} (recovery {tier}, proximity {proximity})")
    return card
