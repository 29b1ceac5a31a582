#!/usr/bin/env python3
"""
Morning Check-In Script

Records the daily check-in (sleep, HRV / resting HR, subjective feel, flags),
classifies recovery against the personal baseline, and recomputes the
baseline. Can be run interactively or with command-line arguments.

Usage:
    # Interactive mode
    python3 scripts/morning_check_in.py alex-ridge

    # Command-line mode
    python3 scripts/morning_check_in.py alex-ridge --sleep-quality Good --legs 4 --energy 4 --motivation 4

    # With biometrics and flags
    python3 scripts/morning_check_in.py alex-ridge --sleep-quality Fair --legs 3 --energy 3 --motivation 4 \\
        --hrv 58 --resting-hr 54 --flag travel --notes "Red-eye flight"
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from typing import List, Optional

from athlete_store import read_collection, write_collection
from summit_engine.recovery import (
    SLEEP_TIERS,
    get_consecutive_rest_prompt,
    record_check_in,
    recovery_color,
    recovery_label,
)

SLEEP_QUALITIES = list(SLEEP_TIERS.keys())
CHECK_IN_FLAGS = ["stress", "travel", "illness", "altitude"]


def validate_rating(value: int, field_name: str) -> int:
    """Validate that a subjective rating is between 1 and 5."""
    if not 1 <= value <= 5:
        raise ValueError(f"{field_name} must be between 1 and 5, got {value}")
    return value


def validate_hr(value: Optional[float], field_name: str) -> Optional[float]:
    """Validate that a heart rate reading is within reasonable bounds."""
    if value is not None and not 20 <= value <= 220:
        raise ValueError(f"{field_name} must be between 20 and 220, got {value}")
    return value


def build_check_in(
    date: str,
    sleep_quality: str,
    legs: int,
    energy: int,
    motivation: int,
    sleep_hours: Optional[float] = None,
    hrv: Optional[float] = None,
    resting_hr: Optional[float] = None,
    flags: Optional[List[str]] = None,
    notes: str = "",
) -> dict:
    """Assemble and validate a check-in record."""
    if sleep_quality not in SLEEP_TIERS:
        raise ValueError(f"sleep quality must be one of {', '.join(SLEEP_QUALITIES)}, got {sleep_quality}")

    unknown = [f for f in (flags or []) if f not in CHECK_IN_FLAGS]
    if unknown:
        raise ValueError(f"Unknown flags: {', '.join(unknown)}")

    return {
        "date": date,
        "sleep": {"quality": sleep_quality, "hours": sleep_hours},
        "recovery": {
            "hrv": validate_hr(hrv, "hrv"),
            "resting_hr": validate_hr(resting_hr, "resting-hr"),
        },
        "subjective_feel": {
            "legs": validate_rating(legs, "legs"),
            "energy": validate_rating(energy, "energy"),
            "motivation": validate_rating(motivation, "motivation"),
        },
        "flags": sorted(set(flags or []), key=CHECK_IN_FLAGS.index),
        "notes": notes,
    }


def prompt_choice(prompt: str, choices: List[str]) -> str:
    """Prompt until the answer is one of the choices."""
    while True:
        value = input(f"{prompt} ({'/'.join(choices)}): ").strip().capitalize()
        if value in choices:
            return value
        print(f"Invalid input. Please enter one of: {', '.join(choices)}")


def prompt_rating(prompt: str, description: str = "") -> int:
    """Prompt user for a rating between 1 and 5."""
    while True:
        try:
            if description:
                print(f"\n{description}")
            value = int(input(f"{prompt} (1-5): "))
            return validate_rating(value, prompt)
        except ValueError as e:
            print(f"Invalid input: {e}. Please enter a number between 1 and 5.")


def prompt_optional_number(prompt: str) -> Optional[float]:
    """Prompt for an optional number; Enter skips."""
    while True:
        raw = input(f"{prompt} (Enter to skip): ").strip()
        if not raw:
            return None
        try:
            return float(raw)
        except ValueError:
            print("Invalid input. Please enter a number.")


def interactive_check_in(date: str) -> dict:
    """Run interactive check-in session."""
    print("\n" + "=" * 50)
    print("  MORNING CHECK-IN")
    print("=" * 50)

    sleep_quality = prompt_choice("Sleep quality", SLEEP_QUALITIES)
    sleep_hours = prompt_optional_number("Hours slept")
    hrv = prompt_optional_number("HRV (ms)")
    resting_hr = prompt_optional_number("Resting HR (bpm)")

    print("\nRate the following on a scale of 1-5 (1 = worst, 5 = best):")
    legs = prompt_rating("Legs", "How do your legs feel?")
    energy = prompt_rating("Energy", "Overall energy level?")
    motivation = prompt_rating("Motivation", "How motivated are you to train?")

    print(f"\nAny flags today? ({', '.join(CHECK_IN_FLAGS)}, comma-separated, Enter for none)")
    raw_flags = input("> ").strip()
    flags = [f.strip().lower() for f in raw_flags.split(",") if f.strip()]

    print("\nAny notes for today? (press Enter to skip)")
    notes = input("> ").strip()

    return build_check_in(
        date, sleep_quality, legs, energy, motivation,
        sleep_hours=sleep_hours, hrv=hrv, resting_hr=resting_hr, flags=flags, notes=notes,
    )


def main():
    parser = argparse.ArgumentParser(
        description="Morning check-in and recovery classification"
    )
    parser.add_argument("athlete_name", help="Athlete folder name (e.g., 'alex-ridge')")
    parser.add_argument("--date", default=datetime.now().strftime("%Y-%m-%d"),
                        help="Check-in date (YYYY-MM-DD, default today)")
    parser.add_argument("--sleep-quality", choices=SLEEP_QUALITIES, help="Sleep quality")
    parser.add_argument("--sleep-hours", type=float, help="Hours slept")
    parser.add_argument("--hrv", type=float, help="Morning HRV (ms)")
    parser.add_argument("--resting-hr", type=float, help="Morning resting HR (bpm)")
    parser.add_argument("--legs", type=int, help="Legs feel (1-5, 5=fresh)")
    parser.add_argument("--energy", type=int, help="Energy (1-5, 5=high)")
    parser.add_argument("--motivation", type=int, help="Motivation (1-5, 5=fired up)")
    parser.add_argument("--flag", action="append", choices=CHECK_IN_FLAGS, default=[],
                        help="Context flag (repeatable)")
    parser.add_argument("--notes", type=str, default="", help="Optional notes for the day")
    parser.add_argument("--json", action="store_true", help="Output result as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    cli_args = [args.sleep_quality, args.legs, args.energy, args.motivation]

    try:
        check_ins = read_collection(args.athlete_name, "check_ins")
        baseline = read_collection(args.athlete_name, "baseline")

        if all(arg is not None for arg in cli_args):
            entry = build_check_in(
                args.date, args.sleep_quality, args.legs, args.energy, args.motivation,
                sleep_hours=args.sleep_hours, hrv=args.hrv, resting_hr=args.resting_hr,
                flags=args.flag, notes=args.notes,
            )
        elif any(arg is not None for arg in cli_args):
            print("Error: If using CLI mode, all of these must be provided:")
            print("  --sleep-quality, --legs, --energy, --motivation")
            sys.exit(1)
        else:
            entry = interactive_check_in(args.date)

        check_ins, baseline, detail = record_check_in(check_ins, entry, baseline, args.date)
        write_collection(args.athlete_name, "check_ins", check_ins)
        write_collection(args.athlete_name, "baseline", baseline)

    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    saved = next(c for c in check_ins if c["date"] == args.date)
    tier = saved["recovery_classification"]
    advisory = get_consecutive_rest_prompt(check_ins, baseline)

    if args.json:
        print(json.dumps({
            "status": "success",
            "athlete": args.athlete_name,
            "check_in": saved,
            "classification_detail": detail,
            "baseline": baseline,
            "advisory": advisory,
        }, indent=2))
        return

    print("\n" + "=" * 50)
    print("  CHECK-IN COMPLETE")
    print("=" * 50)
    print(f"\nAthlete: {args.athlete_name}")
    print(f"Date: {args.date}")
    print(f"\nRecovery: {recovery_label(tier)} ({recovery_color(tier)})")

    if tier != detail["classification"]:
        print(f"  (Edited entry keeps its original classification; today's inputs read as {detail['classification']})")

    print(f"\nSignals:")
    print(f"  Sleep:       {detail['sleep_score']}")
    print(f"  HRV:         {detail['hrv_score'] or 'n/a'}" +
          (f" ({detail['hrv_pct']}% below baseline)" if detail["hrv_pct"] is not None else ""))
    print(f"  Resting HR:  {detail['rhr_score'] or 'n/a'}" +
          (f" ({detail['rhr_diff']:+} bpm vs baseline)" if detail["rhr_diff"] is not None else ""))
    if detail["subjective_override"]:
        print(f"  Subjective:  {detail['subjective_override']}")

    for message in detail["flag_interactions"]:
        print(f"  ! {message}")

    if baseline["baseline_established"]:
        print(f"\nBaseline: HRV {baseline['hrv_30_day_average']}, RHR {baseline['resting_hr_30_day_average']}")
    else:
        print(f"\nBaseline: building ({len(check_ins)} check-ins logged)")

    if advisory["show"]:
        print(f"\n{advisory['message']}")

    print("\nNext: Run recommend_session.py for today's session")


if __name__ == "__main__":
    main()
