"""
Reference Data - Static lookup tables shipped with the engine

Loads the exercise library, stimulus mapping tables and objective library
from the YAML files in summit_engine/data/. Tables are read once and
treated as immutable for the life of the process.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"

STIMULUS_KEYS = (
    "posterior_chain",
    "quad_dominant",
    "push",
    "pull",
    "core",
    "loaded_carry",
    "forearms_grip",
)

_CACHE: Dict[str, Dict[str, Any]] = {}


# =============================================================================
# LOADING
# =============================================================================

def load_table(name: str) -> Dict[str, Any]:
    """
    Load a YAML reference table by file stem.

    Args:
        name: File stem under summit_engine/data (e.g. "exercise_library")

    Returns:
        Parsed table dict
    """
    if name not in _CACHE:
        table_file = DATA_DIR / f"{name}.yaml"
        if not table_file.exists():
            raise FileNotFoundError(f"Reference table not found: {table_file}")

        with open(table_file) as f:
            _CACHE[name] = yaml.safe_load(f) or {}
        logger.debug(f"Loaded reference table {name} from {table_file}")

    return _CACHE[name]


def clear_cache() -> None:
    """Drop loaded tables so the next access re-reads the YAML files."""
    _CACHE.clear()


# =============================================================================
# EXERCISES
# =============================================================================

def get_exercises() -> List[Dict[str, Any]]:
    return load_table("exercise_library").get("exercises", [])


def get_exercise(exercise_id: str) -> Optional[Dict[str, Any]]:
    """Look up one exercise definition, or None for an unknown id."""
    for exercise in get_exercises():
        if exercise["id"] == exercise_id:
            return copy.deepcopy(exercise)
    return None


def exercise_name(exercise_id: str) -> str:
    """Display name for an exercise, falling back to the raw id."""
    exercise = get_exercise(exercise_id)
    return exercise["name"] if exercise else exercise_id


# =============================================================================
# STIMULUS MAPPINGS
# =============================================================================

def get_cardio_mappings() -> List[Dict[str, Any]]:
    return load_table("stimulus_mapping").get("cardio_stimulus_mappings", [])


def get_climbing_weights() -> Dict[str, float]:
    return load_table("stimulus_mapping")["climbing_stimulus"]["all_types"]["stimulus_weights"]


def get_conditioning_weights(kind: str) -> Dict[str, float]:
    """Per-set (or per-round for hangboard) weights for pullup/deadhang/hangboard."""
    return load_table("stimulus_mapping")["conditioning_stimulus"][kind]["stimulus_weights"]


# =============================================================================
# OBJECTIVES
# =============================================================================

def get_objective_library() -> List[Dict[str, Any]]:
    return load_table("objective_library").get("objectives", [])


def get_objective_entry(library_id: str) -> Optional[Dict[str, Any]]:
    for entry in get_objective_library():
        if entry["id"] == library_id:
            return copy.deepcopy(entry)
    return None


def get_assessment_library() -> List[Dict[str, Any]]:
    return load_table("objective_library").get("assessments", [])
