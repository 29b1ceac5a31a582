#!/usr/bin/env python3
"""
Athlete Store - File-backed collections for one athlete

Each athlete has a directory under athletes/ holding a profile and one
file per collection. Reads return typed defaults when a collection has
never been written; writes always replace the whole collection.

    athletes/<name>/
        profile.yaml
        workout_log.json            cardio / strength / climbing / conditioning lists
        check_ins.json              daily check-ins, sorted by date
        baseline.json               personal HRV / resting HR baseline
        progression_history.json    per-exercise and per-discipline series
        training_config.yaml        active training config
        config_history.json         superseded configs, append-only
        objectives.json             active objectives
        archived_objectives.json    archived objectives
        zones.json                  heart rate zone thresholds
        preferences.yaml            user preferences
"""

import copy
import json
import shutil
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from summit_engine import progression
from summit_engine.recommendation import DEFAULT_USER_PREFERENCES
from summit_engine.recovery import empty_baseline
from summit_engine.stimulus import LOG_DOMAINS
from summit_engine.zones import DEFAULT_ZONES

ATHLETES_DIR = Path(__file__).parent.parent / "athletes"

# collection -> (file name, default value)
COLLECTIONS = {
    "workout_log": ("workout_log.json", {domain: [] for domain in LOG_DOMAINS}),
    "check_ins": ("check_ins.json", []),
    "baseline": ("baseline.json", empty_baseline()),
    "progression_history": ("progression_history.json", progression.empty_history()),
    "training_config": ("training_config.yaml", None),
    "config_history": ("config_history.json", []),
    "objectives": ("objectives.json", []),
    "archived_objectives": ("archived_objectives.json", []),
    "zones": ("zones.json", DEFAULT_ZONES),
    "preferences": ("preferences.yaml", DEFAULT_USER_PREFERENCES),
}


def get_athlete_path(athlete_name: str) -> Path:
    """Get the directory path for an athlete."""
    return ATHLETES_DIR / athlete_name


def list_athletes() -> List[str]:
    """List all athlete names (excluding hidden directories)."""
    if not ATHLETES_DIR.exists():
        return []
    return sorted(
        path.name for path in ATHLETES_DIR.iterdir()
        if path.is_dir() and not path.name.startswith((".", "_"))
    )


def _require_athlete(athlete_name: str) -> Path:
    athlete_path = get_athlete_path(athlete_name)
    if not athlete_path.exists():
        raise FileNotFoundError(f"Athlete not found: {athlete_name}")
    return athlete_path


def iso_dates(data: Any) -> Any:
    """
    Turn date and datetime values into ISO strings, recursively.

    yaml.safe_load reads an unquoted `2026-03-07` as a datetime.date; records
    everywhere else carry dates as strings.
    """
    if isinstance(data, dict):
        return {key: iso_dates(value) for key, value in data.items()}
    if isinstance(data, list):
        return [iso_dates(value) for value in data]
    if isinstance(data, (date, datetime)):
        return data.isoformat()
    return data


def _load(path: Path) -> Any:
    with open(path) as f:
        if path.suffix == ".yaml":
            return iso_dates(yaml.safe_load(f))
        return json.load(f)


def _dump(path: Path, data: Any) -> None:
    """Serialize fully, then swap the file in, so a failed write leaves the old file."""
    try:
        if path.suffix == ".yaml":
            text = yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)
        else:
            text = json.dumps(data, indent=2)
    except (TypeError, yaml.YAMLError) as e:
        raise ValueError(f"Could not save {path.name}: {e}") from e

    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_text(text)
    tmp_path.replace(path)


# =============================================================================
# COLLECTIONS
# =============================================================================

def read_collection(athlete_name: str, collection: str) -> Any:
    """
    Read one collection for an athlete.

    Returns:
        Stored value, or a fresh copy of the collection's default

    Raises:
        FileNotFoundError: athlete directory does not exist
        KeyError: unknown collection name
    """
    file_name, default = COLLECTIONS[collection]
    path = _require_athlete(athlete_name) / file_name

    if not path.exists():
        return copy.deepcopy(default)

    data = _load(path)
    return data if data is not None else copy.deepcopy(default)


def write_collection(athlete_name: str, collection: str, data: Any) -> None:
    """Replace a collection wholesale."""
    file_name, _ = COLLECTIONS[collection]
    _dump(_require_athlete(athlete_name) / file_name, data)


def load_context(athlete_name: str) -> Dict[str, Any]:
    """Every collection for an athlete, keyed by collection name."""
    context = {name: read_collection(athlete_name, name) for name in COLLECTIONS}
    context["profile"] = read_profile(athlete_name) or {}
    return context


def append_session(athlete_name: str, domain: str, session: Dict[str, Any]) -> Dict[str, Any]:
    """
    Add a session to the workout log.

    Strength and climbing sessions are also appended to progression history.

    Returns:
        The updated workout log
    """
    if domain not in LOG_DOMAINS:
        raise ValueError(f"Unknown session type: {domain}. Expected one of {', '.join(LOG_DOMAINS)}")

    log = read_collection(athlete_name, "workout_log")
    log.setdefault(domain, []).append(session)
    log[domain].sort(key=lambda s: s.get("date", ""))
    write_collection(athlete_name, "workout_log", log)

    if domain in ("strength", "climbing"):
        history = read_collection(athlete_name, "progression_history")
        if domain == "strength":
            history = progression.update_strength_progression(history, session)
        else:
            history = progression.update_climbing_progression(history, session)
        write_collection(athlete_name, "progression_history", history)

    return log


# =============================================================================
# PROFILE
# =============================================================================

def read_profile(athlete_name: str) -> Optional[Dict]:
    """Profile dict from profile.yaml, or None if the athlete has none."""
    profile_path = get_athlete_path(athlete_name) / "profile.yaml"
    return _load(profile_path) if profile_path.exists() else None


def _set_nested_value(data: Dict, key_path: str, value: Any) -> None:
    """Assign `value` at a dotted path such as "physiology.age", creating parents."""
    *parents, leaf = key_path.split(".")
    for key in parents:
        data = data.setdefault(key, {})
    data[leaf] = value


def update_profile(athlete_name: str, updates: Dict[str, Any]) -> bool:
    """
    Apply dotted-path updates to an athlete's profile.

    Returns:
        False when the athlete has no profile

    Example:
        update_profile("alex-ridge", {"physiology.age": 41, "region": "Cascades"})
    """
    profile = read_profile(athlete_name)
    if profile is None:
        print(f"Error: no profile for '{athlete_name}'")
        return False

    for key_path, value in updates.items():
        _set_nested_value(profile, key_path, value)

    _dump(get_athlete_path(athlete_name) / "profile.yaml", profile)
    print(f"✓ {athlete_name}: updated {', '.join(updates)}")
    return True


def create_athlete(athlete_name: str, initial_data: Optional[Dict] = None) -> bool:
    """
    Make the athlete directory and seed profile.yaml.

    Collections are not written; they read as defaults until first saved.
    """
    athlete_path = get_athlete_path(athlete_name)
    if athlete_path.exists():
        print(f"Error: '{athlete_name}' already has a directory")
        return False

    athlete_path.mkdir(parents=True)
    _dump(athlete_path / "profile.yaml", {"name": athlete_name, **(initial_data or {})})
    print(f"✓ Created {athlete_path}")
    return True


def delete_athlete(athlete_name: str, confirm: bool = False) -> bool:
    """Remove the athlete directory and every collection in it. Requires confirm=True."""
    athlete_path = get_athlete_path(athlete_name)
    if not confirm:
        print(f"Error: refusing to delete {athlete_path} without confirm")
        return False
    if not athlete_path.exists():
        print(f"Error: no directory for '{athlete_name}'")
        return False

    shutil.rmtree(athlete_path)
    print(f"✓ Deleted {athlete_path}")
    return True


def _parse_cli_value(raw: str) -> Any:
    """Numbers, booleans and lists come through as JSON; anything else stays text."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _collection_summary(athlete_name: str) -> List[str]:
    lines = []
    for name, (file_name, _) in COLLECTIONS.items():
        stored = (get_athlete_path(athlete_name) / file_name).exists()
        value = read_collection(athlete_name, name)
        if name == "workout_log":
            size = ", ".join(f"{domain} {len(value.get(domain, []))}" for domain in LOG_DOMAINS)
        elif isinstance(value, list):
            size = f"{len(value)} entries"
        else:
            size = "set" if value is not None else "none"
        lines.append(f"  {name:<22} {size}{'' if stored else ' (default)'}")
    return lines


def main():
    """Command-line access to athlete directories and their collections."""
    import argparse

    parser = argparse.ArgumentParser(description="Inspect and manage athlete directories")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("list", help="List athletes")

    show_parser = subparsers.add_parser("show", help="Print a profile, or one collection as JSON")
    show_parser.add_argument("athlete", help="Athlete folder name")
    show_parser.add_argument("--collection", choices=sorted(COLLECTIONS), help="Collection to print")

    summary_parser = subparsers.add_parser("summary", help="Size of every collection")
    summary_parser.add_argument("athlete", help="Athlete folder name")

    create_parser = subparsers.add_parser("create", help="Create an athlete directory")
    create_parser.add_argument("athlete", help="Athlete folder name (lowercase, hyphens)")
    create_parser.add_argument("--age", type=int, help="Age, stored as physiology.age")

    update_parser = subparsers.add_parser("update", help="Set profile fields")
    update_parser.add_argument("athlete", help="Athlete folder name")
    update_parser.add_argument("--set", nargs=2, action="append", metavar=("PATH", "VALUE"), default=[],
                               help="Dotted profile path and value, e.g. physiology.age 41")

    delete_parser = subparsers.add_parser("delete", help="Delete an athlete directory")
    delete_parser.add_argument("athlete", help="Athlete folder name")
    delete_parser.add_argument("--confirm", action="store_true", help="Required to delete")

    args = parser.parse_args()

    try:
        if args.command == "list":
            for name in list_athletes():
                print(name)

        elif args.command == "show":
            if args.collection:
                print(json.dumps(read_collection(args.athlete, args.collection), indent=2))
            else:
                print(yaml.dump(read_profile(args.athlete) or {}, default_flow_style=False, sort_keys=False))

        elif args.command == "summary":
            print(f"{args.athlete}:")
            print("\n".join(_collection_summary(args.athlete)))

        elif args.command == "create":
            initial = {"physiology": {"age": args.age}} if args.age else None
            if not create_athlete(args.athlete, initial):
                sys.exit(1)

        elif args.command == "update":
            if not args.set:
                parser.error("update needs at least one --set PATH VALUE")
            updates = {path: _parse_cli_value(raw) for path, raw in args.set}
            if not update_profile(args.athlete, updates):
                sys.exit(1)

        elif args.command == "delete":
            if not delete_athlete(args.athlete, confirm=args.confirm):
                sys.exit(1)

        else:
            parser.print_help()

    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
