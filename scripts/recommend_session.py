#!/usr/bin/env python3
"""
Daily Session Recommender - Recommend today's session from recovery and config

Reads today's check-in, the active training config, the workout log and
active objectives, and prints one recommendation card:
- rest / peak week: rest day
- fatigued: active recovery, zone 1 only
- full / moderate: strength session built from the config's emphasis

Usage:
    python scripts/recommend_session.py alex-ridge
    python scripts/recommend_session.py alex-ridge --date 2026-03-04
    python scripts/recommend_session.py alex-ridge --json
"""

import argparse
import json
import logging
import sys
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from athlete_store import load_context
from summit_engine.recommendation import build_recommendation
from summit_engine.recovery import classify_recovery, recovery_label
from summit_engine.training_config import is_config_expired, is_config_expiring_soon


def find_check_in(check_ins: List[Dict[str, Any]], today: str) -> Optional[Dict[str, Any]]:
    """Today's check-in, if one was recorded."""
    return next((c for c in check_ins if c["date"] == today), None)


def current_plan_week(objectives: List[Dict[str, Any]], today: str) -> Optional[Dict[str, Any]]:
    """
    The training plan week containing today, taken from the highest
    priority objective that has one.
    """
    day = date.fromisoformat(today)
    for objective in sorted(objectives, key=lambda o: o.get("priority_weight", 0), reverse=True):
        for week in objective.get("training_plan", []):
            start = date.fromisoformat(week["start_date"])
            if start <= day < start + timedelta(days=7):
                return week
    return None


def generate_recommendation(context: Dict[str, Any], today: str) -> Dict[str, Any]:
    """Build today's card from a loaded athlete context."""
    check_in = find_check_in(context["check_ins"], today)

    recovery = None
    recovery_detail = None
    if check_in is not None:
        recovery_detail = classify_recovery(check_in, context["baseline"])
        recovery = check_in.get("recovery_classification") or recovery_detail["classification"]

    card = build_recommendation(
        config=context["training_config"],
        recovery=recovery,
        log=context["workout_log"],
        active_objectives=context["objectives"],
        today=today,
        plan_week=current_plan_week(context["objectives"], today),
        recovery_detail=recovery_detail,
        preferences=context["preferences"],
    )

    return {"date": today, "card": card}


def config_warning(config: Optional[Dict[str, Any]], today: str) -> Optional[str]:
    if config is None:
        return None
    if is_config_expired(config, today):
        return f"Training config expired on {config['expires_date']} - paste a new one."
    if is_config_expiring_soon(config, today):
        return f"Training config expires on {config['expires_date']}."
    return None


def main():
    parser = argparse.ArgumentParser(
        description="Recommend today's session from recovery, config and objectives"
    )
    parser.add_argument("athlete_name", help="Athlete folder name (e.g., alex-ridge)")
    parser.add_argument("--date", default=datetime.now().strftime("%Y-%m-%d"),
                        help="Date to recommend for (YYYY-MM-DD, default today)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show detailed decision process")
    parser.add_argument("--json", action="store_true", help="Output as JSON only")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        context = load_context(args.athlete_name)
        recommendation = generate_recommendation(context, args.date)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.json:
        print(json.dumps(recommendation, indent=2))
        return

    card = recommendation["card"]

    print(f"\n{'='*50}")
    print(f"SESSION RECOMMENDATION - {args.date}")
    print(f"{'='*50}")
    print(f"\n{card['title']}")
    print(f"  {card['parameters']}")

    if card["exercises"]:
        print(f"\nExercises:")
        for exercise in card["exercises"]:
            note = f" ({exercise['note']})" if exercise.get("note") else ""
            print(f"  • {exercise['name']}: {exercise['sets']} x {exercise['reps']}{note}")

    if card.get("activity_description"):
        print(f"\n{card['activity_description']}")

    if card.get("key_workouts"):
        print(f"\nKey workouts this week:")
        for workout in card["key_workouts"]:
            print(f"  • {workout}")

    print(f"\nRecovery: {recovery_label(card['recovery_state'])}")
    print(f"  {card['recovery_note']}")

    for field in ("modification_flag", "proximity_note", "config_influence_note"):
        if card.get(field):
            print(f"  {card[field]}")

    print(f"\nWhy: {card['why_note']}")

    warning = config_warning(context["training_config"], args.date)
    if warning:
        print(f"\n! {warning}")


if __name__ == "__main__":
    main()
