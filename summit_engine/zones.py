"""
Heart Rate Zones - Zone boundaries and zone lookups

Builds five-zone heart rate thresholds from age (% of max HR), from the
MAF aerobic ceiling (180 - age), or from four field-tested ceilings, and
classifies heart rate samples into zones.

Thresholds are dicts: {"z1": {"low": 0, "high": 115}, ..., "z5": {...}}
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .numbers import round_half_up

logger = logging.getLogger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

ZONE_KEYS = ("z1", "z2", "z3", "z4", "z5")

# Zone floors as a fraction of max HR (z1 floor .. z5 floor)
AGE_ZONE_FRACTIONS = (0.5, 0.6, 0.7, 0.8, 0.9)

MAX_HR_CEILING = 220

CUSTOM_ZONE_LIMITS = {
    "min_bpm": 50,
    "max_bpm": 220,
}

# Used until the athlete configures zones
DEFAULT_ZONES = {
    "z1": {"low": 0, "high": 115},
    "z2": {"low": 115, "high": 140},
    "z3": {"low": 140, "high": 158},
    "z4": {"low": 158, "high": 175},
    "z5": {"low": 175, "high": 220},
}

# Load weight per minute spent in each zone
TRAINING_LOAD_WEIGHTS = {"z1": 0.5, "z2": 1.0, "z3": 1.5, "z4": 2.5, "z5": 3.5}

# Longest gap between HR samples credited to a zone (pauses)
MAX_SAMPLE_GAP_SECONDS = 10


class ZoneValidationError(ValueError):
    """Raised when user-entered zone ceilings are out of range or overlapping."""


# =============================================================================
# ZONE CALCULATION
# =============================================================================

def compute_zones_from_age(age: int) -> Dict[str, Dict[str, int]]:
    """Zones at 50/60/70/80/90% of max HR, where max HR = 220 - age."""
    max_hr = MAX_HR_CEILING - age
    bounds = [round_half_up(max_hr * f) for f in AGE_ZONE_FRACTIONS] + [max_hr]

    return {
        key: {"low": bounds[i], "high": bounds[i + 1]}
        for i, key in enumerate(ZONE_KEYS)
    }


def compute_zones_from_maf(age: int) -> Dict[str, Dict[str, int]]:
    """Zones anchored on the MAF aerobic ceiling (180 - age)."""
    maf = 180 - age
    return {
        "z1": {"low": 0, "high": maf - 20},
        "z2": {"low": maf - 20, "high": maf},
        "z3": {"low": maf, "high": maf + 10},
        "z4": {"low": maf + 10, "high": maf + 20},
        "z5": {"low": maf + 20, "high": MAX_HR_CEILING},
    }


def validate_custom_zones(ceilings: Sequence[float]) -> List[str]:
    """
    Validate four zone ceilings (z1..z4) from a field or lab test.

    Returns:
        List of error messages (empty if valid)
    """
    if len(ceilings) != 4:
        return [f"Expected 4 zone ceilings (z1-z4), got {len(ceilings)}."]

    errors = []
    lo, hi = CUSTOM_ZONE_LIMITS["min_bpm"], CUSTOM_ZONE_LIMITS["max_bpm"]

    if any(c is None or c < lo or c > hi for c in ceilings):
        errors.append(f"All zone ceilings must be between {lo} and {hi} bpm.")
    elif any(ceilings[i] >= ceilings[i + 1] for i in range(3)):
        errors.append("Zones must not overlap - each ceiling must be higher than the previous.")

    return errors


def compute_custom_zones(ceilings: Sequence[float]) -> Dict[str, Dict[str, float]]:
    """
    Build zones from four strictly increasing ceilings. Z5 runs from the
    z4 ceiling to 220.

    Raises:
        ZoneValidationError: ceilings out of range or not strictly increasing
    """
    errors = validate_custom_zones(ceilings)
    if errors:
        raise ZoneValidationError(errors[0])

    c1, c2, c3, c4 = ceilings
    return {
        "z1": {"low": 0, "high": c1},
        "z2": {"low": c1, "high": c2},
        "z3": {"low": c2, "high": c3},
        "z4": {"low": c3, "high": c4},
        "z5": {"low": c4, "high": MAX_HR_CEILING},
    }


def get_zone_for_hr(hr: float, thresholds: Optional[Dict[str, Dict[str, float]]] = None) -> int:
    """Return the first zone (1-5) whose ceiling is >= hr. Anything above z4 is zone 5."""
    t = thresholds or DEFAULT_ZONES
    for number, key in enumerate(ZONE_KEYS[:-1], start=1):
        if hr <= t[key]["high"]:
            return number
    return 5


# =============================================================================
# ZONE DISTRIBUTION AND LOAD
# =============================================================================

def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def compute_zone_distribution(
    samples: Iterable[Dict[str, Any]],
    thresholds: Optional[Dict[str, Dict[str, float]]] = None,
) -> Optional[Dict[str, float]]:
    """
    Minutes spent in each zone from a timestamped HR stream.

    Each sample is {"timestamp": ISO string or datetime, "heart_rate": bpm}.
    The gap to the next sample is credited to the current sample's zone,
    capped at MAX_SAMPLE_GAP_SECONDS; the last sample counts as one second.

    Returns:
        {"z1": minutes, ...} rounded to 0.1, or None with fewer than 2 HR samples
    """
    hr_samples = [
        s for s in samples
        if s.get("heart_rate") is not None and s.get("timestamp") is not None
    ]
    if len(hr_samples) < 2:
        return None

    zone_seconds = {key: 0.0 for key in ZONE_KEYS}

    for current, following in zip(hr_samples, hr_samples[1:]):
        gap = (_parse_timestamp(following["timestamp"]) - _parse_timestamp(current["timestamp"])).total_seconds()
        zone = get_zone_for_hr(current["heart_rate"], thresholds)
        zone_seconds[f"z{zone}"] += min(gap, MAX_SAMPLE_GAP_SECONDS)

    last_zone = get_zone_for_hr(hr_samples[-1]["heart_rate"], thresholds)
    zone_seconds[f"z{last_zone}"] += 1

    return {key: round_half_up(secs / 60, 1) for key, secs in zone_seconds.items()}


def calculate_training_load(zone_distribution: Optional[Dict[str, float]]) -> Optional[Dict[str, Any]]:
    """
    Weighted zone-minutes training load, capped at 100.

    Classification: <40 low, <=70 moderate, >70 high.
    """
    if not zone_distribution:
        return None

    weighted = sum(zone_distribution.get(key, 0) * w for key, w in TRAINING_LOAD_WEIGHTS.items())
    score = min(100, round_half_up(weighted))

    if score < 40:
        classification = "low"
    elif score <= 70:
        classification = "moderate"
    else:
        classification = "high"

    return {"score": score, "classification": classification}


def compute_zone_totals(cardio_sessions: Iterable[Dict[str, Any]]) -> Dict[str, float]:
    """
    Sum zone distributions across sessions (sessions without HR are skipped).

    Zone distributions are stored in minutes; totals are reported in hours.
    """
    totals = {key: 0.0 for key in ZONE_KEYS}
    for session in cardio_sessions:
        distribution = session.get("zone_distribution")
        if not distribution:
            continue
        for key in ZONE_KEYS:
            totals[key] += distribution.get(key, 0)

    total = sum(totals.values())
    result = {f"{key}_hours": round_half_up(totals[key] / 60, 1) for key in ZONE_KEYS}
    result["total_hours"] = round_half_up(total / 60, 1)
    result["aerobic_pct"] = round_half_up((totals["z1"] + totals["z2"]) / total * 100) if total > 0 else 0
    result["anaerobic_pct"] = round_half_up((totals["z4"] + totals["z5"]) / total * 100) if total > 0 else 0
    return result


def aerobic_balance_label(aerobic_pct: float) -> str:
    if aerobic_pct >= 75:
        return "Aerobic base building"
    if aerobic_pct >= 50:
        return "Mixed"
    return "Intensity-heavy"
