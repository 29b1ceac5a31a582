"""
Recovery Classifier - Morning check-in to recovery tier

Combines sleep quality, HRV and resting HR deviation from a personal rolling
baseline, subjective feel, and context flags into one of four tiers:

    full < moderate < fatigued < rest

The most conservative signal wins. Subjective feel can only make the result
worse. Flags are applied last: illness forces rest, altitude downgrades one
tier, travel turns fatigued into rest.

Check-in record:
    {
        "date": "2026-03-02",
        "sleep": {"quality": "Good", "hours": 7.5},
        "recovery": {"hrv": 62, "resting_hr": 51},
        "subjective_feel": {"legs": 4, "energy": 4, "motivation": 4},
        "flags": ["travel"],
        "notes": "",
        "recovery_classification": "full",   # snapshot set when first saved
    }
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

from .numbers import round_half_up

logger = logging.getLogger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

TIERS = ["full", "moderate", "fatigued", "rest"]

BASELINE_MIN_DAYS = 14
BASELINE_ROLLING_DAYS = 30

SLEEP_TIERS = {
    "Great": "full",
    "Good": "full",
    "Fair": "moderate",
    "Low": "fatigued",
    "Poor": "rest",
}

# Fractional HRV drop below baseline -> tier (anything larger is rest)
HRV_DROP_THRESHOLDS = [
    (0.0, "full"),
    (0.10, "moderate"),
    (0.20, "fatigued"),
]

# Resting HR bpm above baseline -> tier (anything larger is fatigued)
RHR_RISE_THRESHOLDS = [
    (0, "full"),
    (4, "moderate"),
]

FLAG_MESSAGES = {
    "illness": "Illness flag: forced rest.",
    "altitude": "Altitude flag: HRV discounted, downgraded one level based on sleep and subjective feel.",
    "travel": "Travel flag + fatigued: forced rest.",
}

RECOVERY_COLORS = {
    "full": "green",
    "moderate": "yellow",
    "fatigued": "orange",
    "rest": "red",
}

RECOVERY_LABELS = {
    "full": "Full Recovery",
    "moderate": "Moderate Recovery",
    "fatigued": "Fatigued",
    "rest": "Rest Recommended",
}


def tier_order(tier: str) -> int:
    return TIERS.index(tier)


def worst_tier(tiers: List[str]) -> str:
    return max(tiers, key=tier_order)


def downgrade_tier(tier: str) -> str:
    """One step toward rest; rest stays rest."""
    return TIERS[min(tier_order(tier) + 1, len(TIERS) - 1)]


def recovery_color(tier: str) -> str:
    return RECOVERY_COLORS[tier]


def recovery_label(tier: str) -> str:
    return RECOVERY_LABELS[tier]


# =============================================================================
# PERSONAL BASELINE
# =============================================================================

def empty_baseline() -> Dict[str, Any]:
    return {
        "hrv_30_day_average": None,
        "resting_hr_30_day_average": None,
        "baseline_established": False,
        "baseline_calculated_date": None,
        "manual_hrv": None,
        "manual_resting_hr": None,
    }


def _average(values: List[float]) -> Optional[float]:
    if not values:
        return None
    return round_half_up(sum(values) / len(values), 1)


def calculate_baseline(
    check_ins: List[Dict[str, Any]],
    as_of: str,
    previous: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Rolling 30-day HRV / resting HR averages.

    Nothing is established until there are at least 14 check-ins in total.
    After that, each average uses only positive, non-null readings from the
    trailing 30 days and stays None if there are none. Manual fallback
    values are carried over from `previous`.
    """
    baseline = empty_baseline()
    if previous:
        baseline["manual_hrv"] = previous.get("manual_hrv")
        baseline["manual_resting_hr"] = previous.get("manual_resting_hr")

    if len(check_ins) < BASELINE_MIN_DAYS:
        return baseline

    cutoff = (date.fromisoformat(as_of) - timedelta(days=BASELINE_ROLLING_DAYS)).isoformat()
    recent = [c for c in check_ins if c["date"] >= cutoff]

    hrv_values = [c["recovery"]["hrv"] for c in recent if (c["recovery"].get("hrv") or 0) > 0]
    rhr_values = [c["recovery"]["resting_hr"] for c in recent if (c["recovery"].get("resting_hr") or 0) > 0]

    baseline["hrv_30_day_average"] = _average(hrv_values)
    baseline["resting_hr_30_day_average"] = _average(rhr_values)
    baseline["baseline_established"] = (
        baseline["hrv_30_day_average"] is not None or baseline["resting_hr_30_day_average"] is not None
    )
    baseline["baseline_calculated_date"] = as_of

    logger.debug(
        f"Baseline as of {as_of}: HRV {baseline['hrv_30_day_average']}, "
        f"RHR {baseline['resting_hr_30_day_average']} from {len(recent)} recent check-ins"
    )
    return baseline


def set_manual_baseline(
    baseline: Optional[Dict[str, Any]],
    hrv: Optional[float] = None,
    resting_hr: Optional[float] = None,
) -> Dict[str, Any]:
    """Record manual fallback values used until the rolling averages exist."""
    updated = dict(baseline or empty_baseline())
    updated["manual_hrv"] = hrv
    updated["manual_resting_hr"] = resting_hr
    return updated


def baseline_hrv(baseline: Dict[str, Any]) -> Optional[float]:
    value = baseline.get("hrv_30_day_average")
    return value if value is not None else baseline.get("manual_hrv")


def baseline_resting_hr(baseline: Dict[str, Any]) -> Optional[float]:
    value = baseline.get("resting_hr_30_day_average")
    return value if value is not None else baseline.get("manual_resting_hr")


# =============================================================================
# CLASSIFICATION
# =============================================================================

def classify_sleep(quality: str) -> str:
    return SLEEP_TIERS[quality]


def classify_hrv(hrv: Optional[float], reference: Optional[float]) -> Optional[str]:
    if hrv is None or reference is None:
        return None

    drop = (reference - hrv) / reference
    for limit, tier in HRV_DROP_THRESHOLDS:
        if drop <= limit:
            return tier
    return "rest"


def classify_resting_hr(resting_hr: Optional[float], reference: Optional[float]) -> Optional[str]:
    if resting_hr is None or reference is None:
        return None

    rise = resting_hr - reference
    for limit, tier in RHR_RISE_THRESHOLDS:
        if rise <= limit:
            return tier
    return "fatigued"


def subjective_override(legs: int, energy: int) -> Optional[str]:
    if legs <= 1 and energy <= 1:
        return "rest"
    if legs <= 2 or energy <= 2:
        return "fatigued"
    return None


def classify_recovery(check_in: Dict[str, Any], baseline: Dict[str, Any]) -> Dict[str, Any]:
    """
    Classify one check-in against a baseline.

    Returns:
        Dict with 'classification' plus the per-signal scores, the ordered
        flag interaction messages, and display values 'hrv_pct' (percent
        drop, rounded) and 'rhr_diff' (bpm above baseline, rounded)
    """
    readings = check_in.get("recovery", {})
    feel = check_in.get("subjective_feel", {})
    flags = check_in.get("flags", [])

    hrv = readings.get("hrv")
    resting_hr = readings.get("resting_hr")
    reference_hrv = baseline_hrv(baseline)
    reference_rhr = baseline_resting_hr(baseline)

    sleep_score = classify_sleep(check_in["sleep"]["quality"])
    hrv_score = classify_hrv(hrv, reference_hrv)
    rhr_score = classify_resting_hr(resting_hr, reference_rhr)
    subjective = subjective_override(feel.get("legs", 3), feel.get("energy", 3))

    scores = [s for s in (sleep_score, hrv_score, rhr_score) if s is not None]
    combined = worst_tier(scores)

    if subjective and tier_order(subjective) > tier_order(combined):
        combined = subjective

    flag_interactions = []

    if "illness" in flags:
        combined = "rest"
        flag_interactions.append(FLAG_MESSAGES["illness"])

    if "altitude" in flags and combined != "rest":
        combined = downgrade_tier(combined)
        flag_interactions.append(FLAG_MESSAGES["altitude"])

    if "travel" in flags and combined == "fatigued":
        combined = "rest"
        flag_interactions.append(FLAG_MESSAGES["travel"])

    hrv_pct = None
    if hrv is not None and reference_hrv is not None:
        hrv_pct = round_half_up((reference_hrv - hrv) / reference_hrv * 100)

    rhr_diff = None
    if resting_hr is not None and reference_rhr is not None:
        rhr_diff = round_half_up(resting_hr - reference_rhr)

    return {
        "classification": combined,
        "sleep_score": sleep_score,
        "hrv_score": hrv_score,
        "rhr_score": rhr_score,
        "subjective_override": subjective,
        "flag_interactions": flag_interactions,
        "hrv_pct": hrv_pct,
        "rhr_diff": rhr_diff,
    }


# =============================================================================
# CHECK-IN RECORDS
# =============================================================================

def reclassify_check_in(check_in: Dict[str, Any], baseline: Dict[str, Any]) -> Dict[str, Any]:
    """Explicit re-classify action: returns a copy with a fresh snapshot."""
    detail = classify_recovery(check_in, baseline)
    return {**check_in, "recovery_classification": detail["classification"]}


def record_check_in(
    check_ins: List[Dict[str, Any]],
    entry: Dict[str, Any],
    baseline: Optional[Dict[str, Any]],
    as_of: str,
) -> Tuple[List[Dict[str, Any]], Dict[str, Any], Dict[str, Any]]:
    """
    Save a check-in (one per date) and recompute the baseline.

    A new entry is classified against the baseline as it stood before the
    save and gets that classification as its snapshot. Editing an existing
    date keeps the snapshot the entry was first saved with.

    Returns:
        (sorted check-ins, recomputed baseline, classification detail)
    """
    baseline = baseline or empty_baseline()
    detail = classify_recovery(entry, baseline)

    existing = next((c for c in check_ins if c["date"] == entry["date"]), None)
    if existing is not None and existing.get("recovery_classification"):
        snapshot = existing["recovery_classification"]
        logger.info(f"Updated check-in for {entry['date']}, keeping classification '{snapshot}'")
    else:
        snapshot = detail["classification"]
        logger.info(f"Recorded check-in for {entry['date']}: {snapshot}")

    saved = {**entry, "recovery_classification": snapshot}
    updated = [c for c in check_ins if c["date"] != entry["date"]] + [saved]
    updated.sort(key=lambda c: c["date"])

    new_baseline = calculate_baseline(updated, as_of, previous=baseline)
    return updated, new_baseline, detail


# =============================================================================
# CONSECUTIVE REST ADVISORY
# =============================================================================

def get_consecutive_rest_prompt(check_ins: List[Dict[str, Any]], baseline: Dict[str, Any]) -> Dict[str, Any]:
    """
    Count the run of rest days, newest first, reclassifying each check-in
    against the current baseline.
    """
    consecutive_rest = 0
    for check_in in sorted(check_ins, key=lambda c: c["date"], reverse=True):
        if classify_recovery(check_in, baseline)["classification"] != "rest":
            break
        consecutive_rest += 1

    if consecutive_rest >= 3:
        return {
            "show": True,
            "message": (
                "Three or more rest days - if illness or injury is involved, "
                "consider seeking guidance before returning to training."
            ),
        }

    if consecutive_rest == 2:
        return {
            "show": True,
            "message": "Two consecutive rest days - check in on how you're feeling before resuming training.",
        }

    return {"show": False, "message": ""}
