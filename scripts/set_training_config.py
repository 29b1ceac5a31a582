#!/usr/bin/env python3
"""
Training Config Activator - Validate and activate a weekly training config

The config is a YAML file of snake_case fields (see
summit_engine.training_config.DEFAULT_TRAINING_CONFIG for the full set).
Validation is all-or-nothing; on success the previously active config is
appended to the athlete's config history.

Usage:
    python scripts/set_training_config.py alex-ridge week12.yaml
    python scripts/set_training_config.py alex-ridge week12.yaml --diff
    python scripts/set_training_config.py alex-ridge week12.yaml --check
    python scripts/set_training_config.py alex-ridge --show
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

import yaml

from athlete_store import iso_dates, read_collection, write_collection
from summit_engine.training_config import (
    DEFAULT_TRAINING_CONFIG,
    activate_training_config,
    diff_configs,
    is_config_expired,
    validate_training_config,
)


def load_config_file(path: Path) -> Dict[str, Any]:
    """Load a training config from YAML."""
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")

    with open(path) as f:
        config = iso_dates(yaml.safe_load(f))

    if not isinstance(config, dict):
        raise ValueError(f"{path} does not contain a config mapping")
    return config


def print_diff(previous: Dict[str, Any], config: Dict[str, Any]) -> None:
    changes = diff_configs(previous, config)
    if not changes:
        print("  No changes from the current config")
        return
    for change in changes:
        print(f"  {change['field']}: {change['from']} -> {change['to']}")


def main():
    parser = argparse.ArgumentParser(description="Validate and activate a training config")
    parser.add_argument("athlete_name", help="Athlete folder name (e.g., alex-ridge)")
    parser.add_argument("config_file", type=Path, nargs="?", help="Config YAML file")
    parser.add_argument("--diff", action="store_true", help="Show changes from the active config")
    parser.add_argument("--check", action="store_true", help="Validate only, do not activate")
    parser.add_argument("--show", action="store_true", help="Show the active config")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        active = read_collection(args.athlete_name, "training_config")

        if args.show:
            if active is None:
                print("No active config - using the built-in default:")
                active = DEFAULT_TRAINING_CONFIG
            elif is_config_expired(active, datetime.now().strftime("%Y-%m-%d")):
                print(f"Active config expired on {active['expires_date']}:")
            print(yaml.dump(active, default_flow_style=False, sort_keys=False))
            return

        if args.config_file is None:
            parser.error("config_file is required unless --show is given")

        config = load_config_file(args.config_file)

        is_valid, errors = validate_training_config(config)
        if not is_valid:
            print(f"❌ Config is invalid ({len(errors)} errors):")
            for error in errors:
                print(f"  • {error}")
            sys.exit(1)

        if args.diff:
            print("Changes:")
            print_diff(active or DEFAULT_TRAINING_CONFIG, config)

        if args.check:
            print("✅ Config is valid")
            return

        history = read_collection(args.athlete_name, "config_history")
        new_active, new_history = activate_training_config(config, active, history)
        write_collection(args.athlete_name, "training_config", new_active)
        write_collection(args.athlete_name, "config_history", new_history)

    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"✓ Activated config for {args.athlete_name} (expires {new_active['expires_date']})")
    print(f"  Reason: {new_active['override_reason']}")


if __name__ == "__main__":
    main()
