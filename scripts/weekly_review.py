#!/usr/bin/env python3
"""
Weekly Review Generator - Cross-domain fatigue and status for one week

Generates a weekly review that includes:
- Stimulus levels per muscle / energy-system group, with contributors
- Mandatory rest groups as of the review date
- Volume traffic lights and conditioning consistency
- Progression and climbing plateau flags
- Objective timeline status
- Zone distribution and aerobic balance

Usage:
    python scripts/weekly_review.py alex-ridge
    python scripts/weekly_review.py alex-ridge --date 2026-03-08
    python scripts/weekly_review.py alex-ridge --json
    python scripts/weekly_review.py alex-ridge --csv stimulus.csv
    python scripts/weekly_review.py alex-ridge --save
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from typing import Any, Dict, Optional

from athlete_store import get_athlete_path, load_context
from summit_engine.reference_data import STIMULUS_KEYS
from summit_engine.status import compute_status_layer
from summit_engine.stimulus import (
    GROUP_LABELS,
    compute_weekly_stimulus,
    daily_stimulus_frame,
    get_current_week_dates,
    get_mandatory_rest_groups,
)
from summit_engine.zones import aerobic_balance_label, compute_zone_totals

LEVEL_MARKERS = {
    "low": "🟢",
    "medium": "🟡",
    "high": "🔴",
}


def volume_targets_from_config(config: Optional[Dict[str, Any]]) -> Dict[str, float]:
    """Derive weekly volume targets from the active config where it sets them."""
    if not config:
        return {}

    targets = {}
    if config.get("cardio_zone2_minimum_hours") is not None:
        targets["cardio_minutes_target"] = config["cardio_zone2_minimum_hours"] * 60
    if config.get("strength_weekly_target"):
        targets["strength_sessions_target"] = config["strength_weekly_target"]["sessions"]
    if config.get("climbing_weekly_target"):
        targets["climbing_sessions_target"] = config["climbing_weekly_target"]["sessions"]
    return targets


def generate_review(context: Dict[str, Any], as_of: str) -> Dict[str, Any]:
    """Assemble the weekly review for the Monday-Sunday week containing as_of."""
    week = get_current_week_dates(as_of)
    log = context["workout_log"]
    config = context["training_config"]

    stimulus = compute_weekly_stimulus(log, week["start_date"], week["end_date"])

    week_cardio = [s for s in log.get("cardio", []) if week["start_date"] <= s["date"] <= week["end_date"]]
    zone_totals = compute_zone_totals(week_cardio)

    status = compute_status_layer(
        log,
        context["progression_history"],
        context["objectives"],
        week["start_date"],
        week["end_date"],
        as_of,
        conditioning_target=(config or {}).get("conditioning_frequency", 2),
        volume_targets=volume_targets_from_config(config),
    )

    return {
        "_meta": {
            "week_start": week["start_date"],
            "week_end": week["end_date"],
            "as_of": as_of,
            "generated": datetime.now().isoformat(timespec="seconds"),
        },
        "stimulus": stimulus,
        "mandatory_rest": get_mandatory_rest_groups(log, as_of),
        "status": status,
        "zones": {**zone_totals, "balance": aerobic_balance_label(zone_totals["aerobic_pct"])},
    }


def format_review_text(review: Dict) -> str:
    """Format review as readable text."""
    lines = []
    meta = review["_meta"]

    lines.append("=" * 60)
    lines.append(f"WEEKLY REVIEW - {meta['week_start']} to {meta['week_end']}")
    lines.append("=" * 60)

    # Stimulus
    stimulus = review["stimulus"]
    lines.append(f"\nSTIMULUS")
    lines.append("-" * 40)
    for key in STIMULUS_KEYS:
        level = stimulus["levels"][key]
        lines.append(f"  {LEVEL_MARKERS[level]} {GROUP_LABELS[key]:<20} {stimulus['raw'][key]:5.1f}  {level.upper()}")

    if review["mandatory_rest"]:
        lines.append(f"\n  Mandatory rest: {', '.join(GROUP_LABELS[k] for k in review['mandatory_rest'])}")

    # Volume
    volume = review["status"]["volume_status"]
    conditioning = review["status"]["conditioning_status"]
    lines.append(f"\nVOLUME")
    lines.append("-" * 40)
    lines.append(f"  Cardio:       {volume['cardio_minutes_this_week']} min ({volume['cardio'].upper()})")
    lines.append(f"  Strength:     {volume['strength_sessions_this_week']} sessions ({volume['strength'].upper()})")
    lines.append(f"  Climbing:     {volume['climbing_sessions_this_week']} sessions ({volume['climbing'].upper()})")
    lines.append(
        f"  Conditioning: {conditioning['sessions_this_week']}/{conditioning['target_sessions']}"
        f" ({'ON TRACK' if conditioning['on_track'] else 'BELOW TARGET'})"
    )

    # Zones
    zones = review["zones"]
    lines.append(f"\nZONE DISTRIBUTION")
    lines.append("-" * 40)
    if zones["total_hours"] > 0:
        lines.append(
            f"  Z1 {zones['z1_hours']}h  Z2 {zones['z2_hours']}h  Z3 {zones['z3_hours']}h  "
            f"Z4 {zones['z4_hours']}h  Z5 {zones['z5_hours']}h"
        )
        lines.append(f"  Aerobic {zones['aerobic_pct']}% / Anaerobic {zones['anaerobic_pct']}% - {zones['balance']}")
    else:
        lines.append("  No zone data available")

    # Objectives
    objectives = review["status"]["objective_statuses"]
    if objectives:
        lines.append(f"\nOBJECTIVES")
        lines.append("-" * 40)
        for objective in objectives:
            lines.append(f"  {objective['objective_name']}: {objective['timeline_status']}")

    # Flags
    flags = list(stimulus["flags"])
    flags += [f["message"] for f in review["status"]["progression_flags"]]
    flags += [f["message"] for f in review["status"]["climbing_flags"]]
    if flags:
        lines.append(f"\n⚠️  FLAGS")
        lines.append("-" * 40)
        for flag in flags:
            lines.append(f"  • {flag}")

    lines.append("")

    return "\n".join(lines)


# =============================================================================
# MAIN
# =============================================================================

def main():
    parser = argparse.ArgumentParser(
        description="Generate weekly stimulus and status review"
    )
    parser.add_argument("athlete_name", help="Athlete folder name (e.g., alex-ridge)")
    parser.add_argument("--date", default=datetime.now().strftime("%Y-%m-%d"),
                        help="Any date in the week to review (YYYY-MM-DD, default today)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show analysis details")
    parser.add_argument("--json", action="store_true", help="Output as JSON only")
    parser.add_argument("--csv", metavar="PATH", help="Export the daily stimulus table to CSV")
    parser.add_argument("--save", action="store_true", help="Save review to weekly_review.json")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        context = load_context(args.athlete_name)
        review = generate_review(context, args.date)

        if args.json:
            print(json.dumps(review, indent=2))
        else:
            print(format_review_text(review))

        if args.csv:
            meta = review["_meta"]
            frame = daily_stimulus_frame(context["workout_log"], meta["week_start"], meta["week_end"])
            frame.to_csv(args.csv)
            print(f"✓ Daily stimulus written to {args.csv}")

        if args.save:
            output_file = get_athlete_path(args.athlete_name) / "weekly_review.json"
            with open(output_file, "w") as f:
                json.dump(review, f, indent=2)
            print(f"✓ Saved to {output_file}")

    except FileNotFoundError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
