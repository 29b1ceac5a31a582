"""
Objectives - Long-term goal lifecycle and session matching

An activated objective is a library entry pinned to a target date:

    {
        "id": "rainier-summit-3fa9c1",
        "library_id": "rainier-summit",
        "name": "Mount Rainier Summit",
        "type": "mountain",
        "target_date": "2026-07-15",
        "activated_date": "2026-01-05",
        "priority_weight": 5,
        "current_phase": "Base",
        "weeks_remaining": 27,
        "assessment_results": [{"assessment_id": ..., "completed_date": None, "result": None, "notes": ""}],
        "training_plan": [{"week_number": 1, "start_date": ..., "phase": ..., "key_workouts": [...],
                           "notes": "", "completed": False}],
    }

Deactivation moves an objective to the archive and cannot be undone;
reactivating an archived objective creates a brand new activation.
"""

import logging
import uuid
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from . import reference_data
from .numbers import round_half_up
from .stimulus import has_pack

logger = logging.getLogger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

# Weeks remaining -> phase, checked top to bottom
PHASE_THRESHOLDS = [
    (12, "Base"),
    (8, "Build"),
    (4, "Peak"),
    (1, "Taper"),
]
FINAL_PHASE = "Race Week"

DEFAULT_PRIORITY_WEIGHT = 3

MOUNTAIN_CARDIO_TYPES = {
    "Hike",
    "MountainHike",
    "BackcountrySkiing",
    "Snowshoeing",
    "OutdoorRun",
    "Skiing",
    "GeneralCardio",
}

MOUNTAIN_OBJECTIVE_TYPES = {
    "mountain",
    "alpine",
    "alpine-hiking",
    "hiking",
    "ski-touring",
    "outdoor-endurance",
    "running",
    "trail-running",
    "backpacking",
}

SIGNIFICANT_PACK_WEIGHTS = {"moderate", "heavy"}

BENCHMARK_MATCH = {
    "benchmarks": (
        "aerobic-capacity.loaded-aerobic-test",
        "muscular-endurance.loaded-carry-test",
    ),
    "min_duration_minutes": 90,
    "min_elevation_m": 300,
}

FEET_TO_METERS = 0.3048


# =============================================================================
# PHASE AND TIMING
# =============================================================================

def weeks_remaining(target_date: str, as_of: str) -> int:
    """Whole weeks from as_of to target_date, rounded to the nearest week."""
    days = (date.fromisoformat(target_date) - date.fromisoformat(as_of)).days
    return round_half_up(days / 7)


def calculate_phase(weeks: float) -> str:
    for minimum, phase in PHASE_THRESHOLDS:
        if weeks >= minimum:
            return phase
    return FINAL_PHASE


# =============================================================================
# LIFECYCLE
# =============================================================================

def _pending_assessments(library_id: str) -> List[Dict[str, Any]]:
    for entry in reference_data.get_assessment_library():
        if entry["objective_id"] == library_id:
            return [
                {"assessment_id": a["id"], "completed_date": None, "result": None, "notes": ""}
                for a in entry.get("assessments", [])
            ]
    return []


def _new_objective_id(library_id: str) -> str:
    return f"{library_id}-{uuid.uuid4().hex[:6]}"


def activate_objective(
    library_entry: Dict[str, Any],
    target_date: str,
    as_of: str,
    priority_weight: int = DEFAULT_PRIORITY_WEIGHT,
    pack_weight: Optional[str] = None,
    region: Optional[str] = None,
    limitations: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """
    Build an activated objective from a library entry.

    Assessment results start as pending for every assessment the library
    defines for this objective. Pack weight defaults to the library profile.
    """
    if not 1 <= priority_weight <= 10:
        raise ValueError(f"priority_weight must be between 1 and 10, got {priority_weight}")

    weeks = weeks_remaining(target_date, as_of)
    objective = {
        "id": _new_objective_id(library_entry["id"]),
        "library_id": library_entry["id"],
        "name": library_entry["name"],
        "type": library_entry.get("type"),
        "target_date": target_date,
        "activated_date": as_of,
        "priority_weight": priority_weight,
        "current_phase": calculate_phase(weeks),
        "weeks_remaining": weeks,
        "assessment_results": _pending_assessments(library_entry["id"]),
        "training_plan": [],
        "pack_weight": pack_weight or library_entry.get("profile", {}).get("pack_weight"),
    }
    if region:
        objective["region"] = region
    if limitations:
        objective["limitations"] = list(limitations)

    logger.info(f"Activated objective {objective['name']} for {target_date} ({objective['current_phase']})")
    return objective


def update_target_date(
    active: List[Dict[str, Any]],
    objective_id: str,
    target_date: str,
    as_of: str,
) -> List[Dict[str, Any]]:
    """Move an objective's target date; weeks remaining and phase follow."""
    weeks = weeks_remaining(target_date, as_of)
    return [
        {**o, "target_date": target_date, "weeks_remaining": weeks, "current_phase": calculate_phase(weeks)}
        if o["id"] == objective_id else o
        for o in active
    ]


def deactivate_objective(
    active: List[Dict[str, Any]],
    archived: List[Dict[str, Any]],
    objective_id: str,
    as_of: str,
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """
    Archive an active objective and remove it from the active list.

    Returns:
        (new active list, new archived list); unchanged if the id is unknown
    """
    objective = next((o for o in active if o["id"] == objective_id), None)
    if objective is None:
        logger.warning(f"No active objective with id {objective_id}")
        return active, archived

    entry = {
        "id": objective["id"],
        "library_id": objective["library_id"],
        "name": objective["name"],
        "type": objective.get("type"),
        "target_date": objective["target_date"],
        "activated_date": objective["activated_date"],
        "completed_date": as_of,
        "final_readiness_tier": "not-ready",
        "assessment_results": objective.get("assessment_results", []),
        "training_summary": {
            "total_weeks": len([w for w in objective.get("training_plan", []) if w.get("completed")]),
            "cardio_hours": 0,
            "strength_sessions": 0,
            "climbing_sessions": 0,
            "benchmarks_achieved": [],
        },
    }

    logger.info(f"Archived objective {objective['name']}")
    return [o for o in active if o["id"] != objective_id], archived + [entry]


def reactivate_objective(
    active: List[Dict[str, Any]],
    archived: List[Dict[str, Any]],
    archived_id: str,
    target_date: str,
    as_of: str,
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """Start a fresh activation from an archived objective at default priority."""
    entry = next((o for o in archived if o["id"] == archived_id), None)
    if entry is None:
        logger.warning(f"No archived objective with id {archived_id}")
        return active, archived

    weeks = weeks_remaining(target_date, as_of)
    objective = {
        "id": _new_objective_id(entry["library_id"]),
        "library_id": entry["library_id"],
        "name": entry["name"],
        "type": entry.get("type"),
        "target_date": target_date,
        "activated_date": as_of,
        "priority_weight": DEFAULT_PRIORITY_WEIGHT,
        "current_phase": calculate_phase(weeks),
        "weeks_remaining": weeks,
        "assessment_results": _pending_assessments(entry["library_id"]),
        "training_plan": [],
    }

    return active + [objective], [o for o in archived if o["id"] != archived_id]


# =============================================================================
# SESSION -> OBJECTIVE MATCHING
# =============================================================================

def _contains(text: Optional[str], keyword: str) -> bool:
    return bool(text) and keyword.lower() in text.lower()


def _any_stimulus_contains(logic: Dict[str, Any], keyword: str) -> bool:
    return any(
        _contains(logic.get(field), keyword)
        for field in ("primary_stimulus", "secondary_stimulus", "tertiary_stimulus")
    )


def _add_match(matches: List[Dict], objective: Dict, domain: str, strength: str) -> None:
    """Keep one match per (objective, domain); the first one recorded wins."""
    if any(m["objective_id"] == objective["id"] and m["domain"] == domain for m in matches):
        return
    matches.append({
        "objective_id": objective["id"],
        "objective_name": objective["name"],
        "domain": domain,
        "strength": strength,
    })


def _match_cardio(session: Dict, objective: Dict, entry: Dict, matches: List[Dict]) -> None:
    logic = entry.get("training_plan_logic")
    profile = entry.get("profile")
    if not logic or not profile:
        return

    elevation = session.get("elevation_gain") or 0
    loaded = has_pack(session)
    significant_pack = profile.get("pack_weight") in SIGNIFICANT_PACK_WEIGHTS

    if (
        session.get("activity_type") in MOUNTAIN_CARDIO_TYPES
        and (profile.get("activity_type") or "").lower() in MOUNTAIN_OBJECTIVE_TYPES
    ):
        primary = _contains(logic.get("primary_stimulus"), "aerobic") or _contains(
            logic.get("primary_stimulus"), "endurance"
        )
        _add_match(matches, objective, "aerobic", "primary" if primary else "contributing")

    if loaded and significant_pack:
        _add_match(matches, objective, "loaded-carry", "contributing")

    if elevation > 1000 and profile.get("daily_elevation_gain_ft") is not None:
        _add_match(matches, objective, "aerobic", "contributing")


def _match_strength(session: Dict, objective: Dict, entry: Dict, matches: List[Dict]) -> None:
    logic = entry.get("training_plan_logic")
    if not logic:
        return

    primary_text = logic.get("primary_stimulus")
    secondary_text = logic.get("secondary_stimulus")
    strength_primary = _contains(primary_text, "strength")
    if not strength_primary and not _contains(secondary_text, "strength"):
        return

    groups = set()
    single_leg = False
    for exercise in session.get("exercises", []):
        definition = reference_data.get_exercise(exercise.get("exercise_id"))
        if definition is None:
            continue
        groups.add(definition["primary_muscle_group"])
        groups.update(definition.get("secondary_muscle_groups", []))
        single_leg = single_leg or bool(definition.get("single_leg"))

    wants_lower = any(
        _contains(text, kw) for text in (primary_text, secondary_text) for kw in ("posterior", "single-leg")
    )
    wants_core = _contains(primary_text, "core") or _contains(secondary_text, "core")

    direct_match = (
        (("posterior-chain" in groups or single_leg) and wants_lower)
        or ("core" in groups and wants_core)
    )
    primary = direct_match and (
        strength_primary
        or any(_contains(primary_text, kw) for kw in ("posterior", "single-leg", "core"))
    )

    _add_match(matches, objective, "strength", "primary" if primary else "contributing")


def _match_climbing(session: Dict, objective: Dict, entry: Dict, matches: List[Dict]) -> None:
    logic = entry.get("training_plan_logic")
    if not logic:
        return
    if not any(_any_stimulus_contains(logic, kw) for kw in ("climbing", "forearm", "grip")):
        return

    # Roped and outdoor sessions lean endurance; bouldering leans projecting
    endurance_focus = session.get("session_type") != "bouldering"
    primary = _contains(logic.get("primary_stimulus"), "climbing") and endurance_focus

    _add_match(matches, objective, "climbing", "primary" if primary else "contributing")


def _match_conditioning(session: Dict, objective: Dict, entry: Dict, matches: List[Dict]) -> None:
    logic = entry.get("training_plan_logic")
    if not logic:
        return
    if not (_any_stimulus_contains(logic, "conditioning") or _any_stimulus_contains(logic, "threshold")):
        return

    primary = _contains(logic.get("primary_stimulus"), "conditioning")
    _add_match(matches, objective, "conditioning", "primary" if primary else "contributing")


def session_domain(session: Dict[str, Any]) -> Optional[str]:
    """Which log a session record belongs to, judged by its fields."""
    if "activity_type" in session:
        return "cardio"
    if isinstance(session.get("exercises"), list):
        return "strength"
    if isinstance(session.get("climbs"), list):
        return "climbing"
    if isinstance(session.get("pullup_sets"), list):
        return "conditioning"
    return None


MATCHERS = {
    "cardio": _match_cardio,
    "strength": _match_strength,
    "climbing": _match_climbing,
    "conditioning": _match_conditioning,
}


def get_contributing_objectives(
    session: Dict[str, Any],
    active_objectives: List[Dict[str, Any]],
    library: Optional[List[Dict[str, Any]]] = None,
) -> List[Dict[str, str]]:
    """
    Active objectives a logged session made progress toward.

    Returns a list of {objective_id, objective_name, domain, strength} where
    domain is aerobic / loaded-carry / strength / climbing / conditioning and
    strength is primary / contributing. Malformed data never raises; the
    failure is logged and an empty list returned.
    """
    try:
        if not active_objectives:
            return []

        entries = {e["id"]: e for e in (library if library is not None else reference_data.get_objective_library())}
        matcher = MATCHERS.get(session_domain(session))
        if matcher is None:
            return []

        matches: List[Dict[str, str]] = []
        for objective in active_objectives:
            entry = entries.get(objective.get("library_id"))
            if entry is None:
                continue
            matcher(session, objective, entry, matches)
        return matches

    except Exception as e:
        logger.warning(f"Could not match session to objectives: {e}")
        return []


def detect_benchmark_matches(
    session: Dict[str, Any],
    active_objectives: List[Dict[str, Any]],
    assessment_library: Optional[List[Dict[str, Any]]] = None,
) -> List[Dict[str, str]]:
    """
    Suggest pending loaded-aerobic / loaded-carry assessments that a long,
    loaded cardio session with real elevation probably satisfied.
    """
    library = assessment_library if assessment_library is not None else reference_data.get_assessment_library()

    duration_minutes = (session.get("duration") or 0) / 60
    elevation_m = (session.get("elevation_gain") or 0) * FEET_TO_METERS
    qualifies = (
        duration_minutes >= BENCHMARK_MATCH["min_duration_minutes"]
        and elevation_m > BENCHMARK_MATCH["min_elevation_m"]
        and has_pack(session)
    )
    if not qualifies:
        return []

    suggestions = []
    for objective in active_objectives:
        definitions = next((a for a in library if a["objective_id"] == objective["library_id"]), None)
        if definitions is None:
            continue

        completed = {
            r["assessment_id"] for r in objective.get("assessment_results", []) if r.get("result") is not None
        }
        for assessment in definitions.get("assessments", []):
            if assessment["id"] in completed:
                continue
            if assessment.get("maps_to_benchmark") not in BENCHMARK_MATCH["benchmarks"]:
                continue
            suggestions.append({
                "assessment_id": assessment["id"],
                "assessment_name": assessment["name"],
                "objective_id": objective["id"],
                "message": f'This looks like your "{assessment["name"]}" assessment - mark complete?',
            })

    return suggestions
