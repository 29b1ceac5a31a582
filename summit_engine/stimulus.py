"""
Stimulus Engine - Cross-domain training stimulus accumulation

Maps every logged session (cardio, strength, climbing, conditioning) onto a
fixed 7-dimension stimulus vector, sums vectors over a date range, and
classifies each dimension as low / medium / high.

Also detects "mandatory rest" dimensions: a dimension that registered high
on each of the last 3 calendar days, judged per day.

The workout log is a dict with four lists:
    {"cardio": [...], "strength": [...], "climbing": [...], "conditioning": [...]}
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

import pandas as pd

from . import reference_data
from .numbers import round_half_up
from .reference_data import STIMULUS_KEYS

logger = logging.getLogger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

LEVEL_THRESHOLDS = {
    "low": 1.5,     # value <= 1.5
    "medium": 3.5,  # value <= 3.5, anything above is high
}

# Cardio rule conditions split at this climbing rate
ELEVATION_RATE_THRESHOLD_FT_PER_HOUR = 500

MANDATORY_REST_DAYS = 3

# Contributions at or below this are left out of context breakdowns
CONTRIBUTOR_MIN_VALUE = 0.05

GROUP_LABELS = {
    "posterior_chain": "posterior chain",
    "quad_dominant": "quads",
    "push": "push muscles",
    "pull": "pull muscles",
    "core": "core",
    "loaded_carry": "loaded carry",
    "forearms_grip": "forearms and grip",
}

HIGH_LOAD_HINTS = {
    "forearms_grip": "Hold off on climbing and pullups until load drops.",
    "posterior_chain": "Avoid heavy deadlifts and loaded hinge movements.",
    "pull": "Monitor elbow and shoulder, back off pull volume.",
}

WEEKLY_FLAG_MESSAGES = {
    "forearms_grip": "Forearm/grip load is high - monitor before next climbing session",
    "pull": "Pull volume is high this week",
    "posterior_chain": "Posterior chain load is high this week",
    "quad_dominant": "Quad-dominant load is high this week",
}

CARDIO_TYPE_LABELS = {
    "Hike": "Hike",
    "MountainHike": "Mountain hike",
    "OutdoorRun": "Outdoor run",
    "IndoorRun": "Indoor run",
    "OutdoorCycling": "Outdoor cycling",
    "IndoorCycling": "Indoor cycling",
    "BackcountrySkiing": "Backcountry skiing",
    "Snowshoeing": "Snowshoeing",
    "GeneralCardio": "General cardio",
}

DAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

LOG_DOMAINS = ("cardio", "strength", "climbing", "conditioning")


# =============================================================================
# VECTOR HELPERS
# =============================================================================

def empty_map() -> Dict[str, float]:
    return {key: 0.0 for key in STIMULUS_KEYS}


def add_maps(total: Dict[str, float], other: Dict[str, float], weight: float = 1.0) -> Dict[str, float]:
    """Return total + other * weight without modifying either input."""
    return {key: total.get(key, 0.0) + other.get(key, 0.0) * weight for key in STIMULUS_KEYS}


def to_level(value: float) -> str:
    """Classify one dimension: <=1.5 low, <=3.5 medium, otherwise high."""
    if value <= LEVEL_THRESHOLDS["low"]:
        return "low"
    if value <= LEVEL_THRESHOLDS["medium"]:
        return "medium"
    return "high"


# =============================================================================
# PER-SESSION STIMULUS
# =============================================================================

def has_pack(session: Dict[str, Any]) -> bool:
    """A pack counts when pack_weight is set and is neither 'none' nor zero."""
    pack = session.get("pack_weight")
    if pack is None or pack == "none":
        return False
    if isinstance(pack, (int, float)):
        return pack > 0
    return True


def _elevation_per_hour(session: Dict[str, Any]) -> float:
    hours = (session.get("duration") or 0) / 3600
    elevation = session.get("elevation_gain") or 0
    return elevation / hours if hours > 0 else 0.0


def _condition_holds(condition: Dict[str, Any], session: Dict[str, Any]) -> bool:
    rate = _elevation_per_hour(session)

    if "elevation_per_hour_below" in condition and not rate < condition["elevation_per_hour_below"]:
        return False
    if "elevation_per_hour_at_least" in condition and not rate >= condition["elevation_per_hour_at_least"]:
        return False
    if "pack" in condition and has_pack(session) != condition["pack"]:
        return False
    if "weights_used" in condition and bool(session.get("weights_used")) != condition["weights_used"]:
        return False
    return True


def match_cardio_rule(session: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Find the stimulus mapping rule for a cardio session.

    Rules are scanned in table order; the first rule for the session's
    activity type whose conditions all hold wins. If no conditional rule
    matches, the unconditional rule for that type is used (or, failing
    that, the first rule listing the type).
    """
    activity_type = session.get("activity_type")
    candidates = [
        m for m in reference_data.get_cardio_mappings()
        if activity_type in m.get("activity_types", [])
    ]

    for rule in candidates:
        if rule.get("condition") and _condition_holds(rule["condition"], session):
            return rule

    unconditional = [rule for rule in candidates if not rule.get("condition")]
    if unconditional:
        return unconditional[0]
    if candidates:
        return candidates[0]

    logger.debug(f"No stimulus mapping for activity type {activity_type!r}")
    return None


def get_cardio_stimulus(session: Dict[str, Any]) -> Dict[str, float]:
    """Matched per-hour vector scaled by session duration in hours."""
    rule = match_cardio_rule(session)
    if rule is None:
        return empty_map()

    hours = (session.get("duration") or 0) / 3600
    return add_maps(empty_map(), rule["stimulus_weights"], hours)


def get_strength_stimulus(session: Dict[str, Any]) -> Dict[str, float]:
    """Per-set exercise weights times set count, summed over exercises."""
    result = empty_map()
    for exercise in session.get("exercises", []):
        definition = reference_data.get_exercise(exercise.get("exercise_id"))
        if definition is None:
            continue
        result = add_maps(result, definition["stimulus_weights"], len(exercise.get("sets", [])))
    return result


def get_climbing_stimulus(session: Dict[str, Any]) -> Dict[str, float]:
    """Each climb, sent or attempted, is one unit of the all-disciplines vector."""
    return add_maps(empty_map(), reference_data.get_climbing_weights(), len(session.get("climbs", [])))


def get_conditioning_stimulus(session: Dict[str, Any]) -> Dict[str, float]:
    result = empty_map()
    result = add_maps(result, reference_data.get_conditioning_weights("pullup"),
                      len(session.get("pullup_sets", [])))
    result = add_maps(result, reference_data.get_conditioning_weights("deadhang"),
                      len(session.get("deadhang_sets", [])))

    hangboard = reference_data.get_conditioning_weights("hangboard")
    for hang in session.get("hangboard_sets", []):
        result = add_maps(result, hangboard, hang.get("rounds", 0))
    return result


STIMULUS_BY_DOMAIN: Dict[str, Callable[[Dict[str, Any]], Dict[str, float]]] = {
    "cardio": get_cardio_stimulus,
    "strength": get_strength_stimulus,
    "climbing": get_climbing_stimulus,
    "conditioning": get_conditioning_stimulus,
}


# =============================================================================
# CONTEXT BUILDERS
# =============================================================================

def _day_label(date_str: str) -> str:
    return DAY_NAMES[date.fromisoformat(date_str).weekday()]


def _contributor_label(domain: str, session: Dict[str, Any]) -> str:
    day = _day_label(session["date"])

    if domain == "cardio":
        hours = round_half_up((session.get("duration") or 0) / 3600, 1)
        return f"{session.get('activity_type')} ({day}, {hours}h)"

    if domain == "strength":
        exercises = session.get("exercises", [])
        names = ", ".join(reference_data.exercise_name(ex.get("exercise_id")) for ex in exercises[:2])
        suffix = "..." if len(exercises) > 2 else ""
        return f"Strength: {names}{suffix} ({day})"

    if domain == "climbing":
        return f"Climbing ({day}, {len(session.get('climbs', []))} routes)"

    return f"Conditioning ({day})"


def build_implication(key: str, level: str) -> str:
    label = GROUP_LABELS.get(key, key)
    if level == "high":
        hint = HIGH_LOAD_HINTS.get(key, "Allow recovery before adding more volume.")
        return f"High {label} load. {hint}"
    if level == "medium":
        return f"Moderate {label} stimulus - maintain current volume."
    return f"Low {label} stimulus - room to add volume if feeling fresh."


def build_stimulus_context(key: str, level: str, contributors: List[Tuple[str, Dict[str, float]]]) -> Dict[str, Any]:
    """Per-dimension breakdown: contributing sessions plus a canned implication."""
    relevant = [
        f"{label}: +{round_half_up(contribution[key], 1)}"
        for label, contribution in contributors
        if contribution[key] > CONTRIBUTOR_MIN_VALUE
    ]

    return {
        "baseline": "Score >3.5 = high, 1.5-3.5 = medium, <1.5 = low (current week)",
        "contributors": relevant or ["No sessions this week"],
        "implication": build_implication(key, level),
    }


# =============================================================================
# AGGREGATION
# =============================================================================

def _sessions_in_range(log: Dict[str, List[Dict]], domain: str, start_date: str, end_date: str) -> List[Dict]:
    return [s for s in log.get(domain, []) if start_date <= s.get("date", "") <= end_date]


def compute_weekly_stimulus(log: Dict[str, List[Dict]], start_date: str, end_date: str) -> Dict[str, Any]:
    """
    Sum stimulus over [start_date, end_date] inclusive and classify.

    Returns:
        Dict with 'raw' (vector), 'levels', 'flags' and 'contexts'
    """
    total = empty_map()
    contributors: List[Tuple[str, Dict[str, float]]] = []

    for domain in LOG_DOMAINS:
        for session in _sessions_in_range(log, domain, start_date, end_date):
            contribution = STIMULUS_BY_DOMAIN[domain](session)
            contributors.append((_contributor_label(domain, session), contribution))
            total = add_maps(total, contribution)

    levels = {key: to_level(total[key]) for key in STIMULUS_KEYS}
    flags = [message for key, message in WEEKLY_FLAG_MESSAGES.items() if levels[key] == "high"]
    contexts = {key: build_stimulus_context(key, levels[key], contributors) for key in STIMULUS_KEYS}

    logger.debug(f"Weekly stimulus {start_date}..{end_date}: {len(contributors)} sessions, flags={flags}")

    return {
        "raw": total,
        "levels": levels,
        "flags": flags,
        "contexts": contexts,
    }


def get_daily_stimulus(log: Dict[str, List[Dict]], date_str: str) -> Dict[str, float]:
    """Stimulus from sessions logged on one calendar day only."""
    total = empty_map()
    for domain in LOG_DOMAINS:
        for session in log.get(domain, []):
            if session.get("date") == date_str:
                total = add_maps(total, STIMULUS_BY_DOMAIN[domain](session))
    return total


def get_mandatory_rest_groups(log: Dict[str, List[Dict]], as_of: str) -> List[str]:
    """
    Dimensions that were high on each of the last 3 days (as_of and the two
    days before), judged on each day's own stimulus. A single non-high day
    in the window clears the dimension.
    """
    end = date.fromisoformat(as_of)
    days = [(end - timedelta(days=offset)).isoformat() for offset in range(MANDATORY_REST_DAYS - 1, -1, -1)]
    daily_maps = [get_daily_stimulus(log, d) for d in days]

    mandatory = []
    for key in STIMULUS_KEYS:
        consecutive_high = 0
        for day_map in daily_maps:
            if to_level(day_map[key]) == "high":
                consecutive_high += 1
            else:
                consecutive_high = 0
        if consecutive_high >= MANDATORY_REST_DAYS:
            mandatory.append(key)

    if mandatory:
        logger.info(f"Mandatory rest as of {as_of}: {mandatory}")
    return mandatory


def get_current_week_dates(as_of: Optional[str] = None) -> Dict[str, str]:
    """Monday-Sunday window containing as_of (default: today)."""
    day = date.fromisoformat(as_of) if as_of else datetime.now().date()
    monday = day - timedelta(days=day.weekday())
    return {
        "start_date": monday.isoformat(),
        "end_date": (monday + timedelta(days=6)).isoformat(),
    }


def daily_stimulus_frame(log: Dict[str, List[Dict]], start_date: str, end_date: str) -> pd.DataFrame:
    """
    One row per calendar day in the window, one column per stimulus
    dimension, plus a 'total' row-sum column.
    """
    dates = pd.date_range(start_date, end_date, freq="D")
    rows = [get_daily_stimulus(log, d.strftime("%Y-%m-%d")) for d in dates]

    df = pd.DataFrame(rows, index=dates.strftime("%Y-%m-%d"), columns=list(STIMULUS_KEYS))
    df.index.name = "date"
    df["total"] = df.sum(axis=1)
    return df.round(2)


# =============================================================================
# SINGLE-SESSION SUMMARY
# =============================================================================

def get_cardio_session_summary(session: Dict[str, Any]) -> Dict[str, Any]:
    """
    Load summary for one cardio session, used right after import.

    The level is the level of the session's single highest dimension; an
    all-zero vector is 'low' with no dominant group.
    """
    stimulus = get_cardio_stimulus(session)

    dominant_key = None
    dominant_value = 0.0
    for key in STIMULUS_KEYS:
        if stimulus[key] > dominant_value:
            dominant_key, dominant_value = key, stimulus[key]

    level = to_level(dominant_value) if dominant_value > 0 else "low"

    activity_type = session.get("activity_type")
    factors = [f"Activity type: {CARDIO_TYPE_LABELS.get(activity_type, activity_type)}"]

    duration = session.get("duration") or 0
    if duration > 0:
        factors.append(f"Duration: {round_half_up(duration / 3600, 1)}h")

    elevation = session.get("elevation_gain") or 0
    if elevation > 0:
        factors.append(
            f"Elevation gain: {round_half_up(elevation)}ft - increases posterior chain and loaded carry stimulus"
        )

    if has_pack(session):
        factors.append(
            f"Pack weight: {session['pack_weight']} - increases loaded carry and posterior chain stimulus"
        )

    if session.get("weights_used"):
        factors.append("Weights used - adds loaded carry stimulus")

    if session.get("avg_hr"):
        factors.append(f"Avg HR: {session['avg_hr']} bpm")

    if session.get("perceived_effort"):
        factors.append(f"Perceived effort: {session['perceived_effort']}/10")

    return {
        "level": level,
        "dominant_group": GROUP_LABELS.get(dominant_key) if dominant_key else None,
        "factors": factors,
    }
