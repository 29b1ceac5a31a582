"""
Training Config - Weekly training directive, validation and activation

A training config is a flat dict of priorities, emphasis levels and
frequency caps that shapes the daily recommendation. Exactly one config is
active at a time; activating a new one pushes the old one onto an
append-only history list.

Validation is JSON Schema (Draft 2020-12) plus cross-field business rules,
and is all-or-nothing: an invalid config is never partially applied.
"""

import copy
import logging
import re
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft202012Validator

logger = logging.getLogger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

DEFAULT_TRAINING_CONFIG = {
    "generated_date": "default",
    "expires_date": "never",
    "fatigue_state": "low",
    "cardio_priority": "build",
    "cardio_zone2_minimum_hours": 4,
    "strength_priority": "build",
    "posterior_chain_emphasis": "medium",
    "single_leg_emphasis": "medium",
    "push_emphasis": "medium",
    "pull_emphasis": "medium",
    "core_emphasis": "medium",
    "climbing_priority": "build",
    "climbing_frequency_max": 3,
    "conditioning_frequency": 2,
    "loaded_carry_sessions": 1,
    "objective_proximity_flag": "normal",
    "override_reason": "Default baseline config.",
}

EMPHASIS_LEVELS = ["low", "medium", "high"]
DIRECTIONS = ["increase", "decrease", "hold"]

# Fields ignored when diffing two configs
DIFF_SKIP_FIELDS = ("generated_date", "expires_date", "override_reason")

EXPIRING_SOON_DAYS = 2

_DATE_OR_KEYWORD = {
    "anyOf": [
        {"type": "string", "pattern": r"^\d{4}-\d{2}-\d{2}$"},
        {"enum": ["default", "never"]},
    ]
}


def _count(maximum: int) -> Dict[str, Any]:
    return {"type": "number", "minimum": 0, "maximum": maximum}


TRAINING_CONFIG_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "TrainingConfig",
    "type": "object",
    "required": list(DEFAULT_TRAINING_CONFIG.keys()),
    "additionalProperties": False,
    "properties": {
        "generated_date": _DATE_OR_KEYWORD,
        "expires_date": _DATE_OR_KEYWORD,
        "fatigue_state": {"enum": ["low", "moderate", "high", "rest"]},
        "cardio_priority": {"enum": ["maintain", "build", "peak", "taper"]},
        "cardio_zone2_minimum_hours": _count(20),
        "cardio_anaerobic_flag": {"enum": ["none", "develop", "maintain", "reduce"]},
        "cardio_weekly_target": {
            "type": "object",
            "required": ["direction", "sessions"],
            "properties": {
                "direction": {"enum": DIRECTIONS},
                "sessions": _count(14),
                "primary_zone": {"enum": ["z1-2", "z3", "z4-5"]},
                "session_duration_hours": _count(24),
                "note": {"type": "string"},
            },
            "additionalProperties": False,
        },
        "strength_priority": {"enum": ["maintain", "build", "peak", "deload"]},
        "posterior_chain_emphasis": {"enum": EMPHASIS_LEVELS},
        "single_leg_emphasis": {"enum": EMPHASIS_LEVELS},
        "push_emphasis": {"enum": EMPHASIS_LEVELS},
        "pull_emphasis": {"enum": EMPHASIS_LEVELS},
        "core_emphasis": {"enum": EMPHASIS_LEVELS},
        "strength_weekly_target": {
            "type": "object",
            "required": ["direction", "sessions"],
            "properties": {
                "direction": {"enum": DIRECTIONS},
                "sessions": _count(7),
                "primary_focus": {
                    "enum": ["posterior-chain", "single-leg", "push", "pull", "core", "full-body"]
                },
                "rep_scheme": {"enum": ["strength", "hypertrophy", "endurance"]},
                "note": {"type": "string"},
            },
            "additionalProperties": False,
        },
        "climbing_priority": {"enum": ["maintain", "build", "peak", "rest"]},
        "climbing_frequency_max": _count(7),
        "climbing_weekly_target": {
            "type": "object",
            "required": ["direction", "sessions"],
            "properties": {
                "direction": {"enum": DIRECTIONS},
                "sessions": _count(7),
                "primary_focus": {
                    "enum": ["endurance", "power-endurance", "projecting", "conditioning", "rest"]
                },
                "note": {"type": "string"},
            },
            "additionalProperties": False,
        },
        "conditioning_frequency": _count(7),
        "loaded_carry_sessions": _count(7),
        "loaded_carry_direction": {"enum": DIRECTIONS},
        "objective_proximity_flag": {"enum": ["normal", "approaching", "taper", "peak-week"]},
        "override_reason": {"type": "string", "minLength": 1},
    },
}

ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class TrainingConfigError(ValueError):
    """Raised when activating a config that fails validation."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__("Invalid training config: " + "; ".join(errors))


# =============================================================================
# VALIDATION
# =============================================================================

def validate_training_config(config: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """
    Validate a config against the schema and business rules.

    Returns (is_valid, list_of_errors)
    """
    errors = []

    validator = Draft202012Validator(TRAINING_CONFIG_SCHEMA)
    for error in sorted(validator.iter_errors(config), key=lambda e: list(e.path)):
        path = ".".join(str(p) for p in error.path) or "(root)"
        errors.append(f"{path}: {error.message}")

    # Cross-field rules
    if config.get("climbing_priority") == "rest" and (config.get("climbing_frequency_max") or 0) > 0:
        errors.append(
            'climbing_priority is "rest" but climbing_frequency_max is > 0. Set climbing_frequency_max to 0.'
        )

    generated = config.get("generated_date")
    expires = config.get("expires_date")
    if (
        isinstance(generated, str) and isinstance(expires, str)
        and ISO_DATE.match(generated) and ISO_DATE.match(expires)
        and expires < generated
    ):
        errors.append(f"expires_date {expires} is before generated_date {generated}.")

    return len(errors) == 0, errors


# =============================================================================
# ACTIVATION
# =============================================================================

def activate_training_config(
    config: Dict[str, Any],
    active: Optional[Dict[str, Any]],
    history: List[Dict[str, Any]],
) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
    """
    Make `config` the active config.

    The currently active config (if any) is appended to the history list.

    Returns:
        (new active config, new history list)

    Raises:
        TrainingConfigError: config failed validation; nothing is changed
    """
    is_valid, errors = validate_training_config(config)
    if not is_valid:
        raise TrainingConfigError(errors)

    new_history = list(history)
    if active:
        new_history.append(active)

    logger.info(
        f"Activated training config generated {config['generated_date']} "
        f"({len(new_history)} configs in history)"
    )
    return copy.deepcopy(config), new_history


def resolve_config(config: Optional[Dict[str, Any]]) -> Tuple[Dict[str, Any], bool]:
    """Return (config to use, whether the built-in default was used)."""
    if config is None:
        return DEFAULT_TRAINING_CONFIG, True
    return config, False


# =============================================================================
# EXPIRY AND DIFF
# =============================================================================

def is_config_expired(config: Dict[str, Any], as_of: str) -> bool:
    expires = config.get("expires_date", "never")
    if expires in ("never", "default"):
        return False
    return expires < as_of


def is_config_expiring_soon(config: Dict[str, Any], as_of: str, within_days: int = EXPIRING_SOON_DAYS) -> bool:
    """True when the config expires on or before as_of + within_days."""
    expires = config.get("expires_date", "never")
    if expires in ("never", "default"):
        return False
    horizon = (date.fromisoformat(as_of) + timedelta(days=within_days)).isoformat()
    return expires <= horizon


def diff_configs(previous: Dict[str, Any], new: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Field-by-field changes between two configs, ignoring dates and reason."""
    fields = [f for f in TRAINING_CONFIG_SCHEMA["properties"] if f not in DIFF_SKIP_FIELDS]
    return [
        {"field": field, "from": previous.get(field), "to": new.get(field)}
        for field in fields
        if previous.get(field) != new.get(field)
    ]
