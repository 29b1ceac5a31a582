#!/usr/bin/env python3
"""
Objective Manager - Activate, reschedule, archive and reactivate objectives

Usage:
    python scripts/manage_objectives.py alex-ridge list
    python scripts/manage_objectives.py alex-ridge library
    python scripts/manage_objectives.py alex-ridge activate rainier-summit 2026-07-15 --priority 5
    python scripts/manage_objectives.py alex-ridge reschedule <objective-id> 2026-07-22
    python scripts/manage_objectives.py alex-ridge deactivate <objective-id>
    python scripts/manage_objectives.py alex-ridge reactivate <archived-id> 2027-07-15
"""

import argparse
import logging
import sys
from datetime import datetime

from athlete_store import read_collection, write_collection
from summit_engine import objectives, reference_data
from summit_engine.status import get_objective_timeline_status


def main():
    parser = argparse.ArgumentParser(description="Manage long-term objectives")
    parser.add_argument("athlete_name", help="Athlete folder name (e.g., alex-ridge)")
    parser.add_argument("--date", default=datetime.now().strftime("%Y-%m-%d"),
                        help="Today's date (YYYY-MM-DD, default today)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("list", help="List active and archived objectives")
    subparsers.add_parser("library", help="List objectives available to activate")

    activate_parser = subparsers.add_parser("activate", help="Activate a library objective")
    activate_parser.add_argument("library_id", help="Objective library id")
    activate_parser.add_argument("target_date", help="Target date (YYYY-MM-DD)")
    activate_parser.add_argument("--priority", type=int, default=objectives.DEFAULT_PRIORITY_WEIGHT,
                                 help="Priority weight 1-10")
    activate_parser.add_argument("--pack-weight", help="Override the library pack weight")
    activate_parser.add_argument("--region", help="Region")

    reschedule_parser = subparsers.add_parser("reschedule", help="Change an objective's target date")
    reschedule_parser.add_argument("objective_id")
    reschedule_parser.add_argument("target_date")

    deactivate_parser = subparsers.add_parser("deactivate", help="Archive an active objective")
    deactivate_parser.add_argument("objective_id")

    reactivate_parser = subparsers.add_parser("reactivate", help="Re-activate an archived objective")
    reactivate_parser.add_argument("archived_id")
    reactivate_parser.add_argument("target_date")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        active = read_collection(args.athlete_name, "objectives")
        archived = read_collection(args.athlete_name, "archived_objectives")

        if args.command == "list":
            print(f"Active objectives ({len(active)}):")
            for o in active:
                weeks = objectives.weeks_remaining(o["target_date"], args.date)
                status = get_objective_timeline_status(o, args.date)
                print(f"  - {o['name']} [{o['id']}] {o['target_date']}: "
                      f"{weeks} weeks, {objectives.calculate_phase(weeks)} phase, {status}")
            print(f"Archived objectives ({len(archived)}):")
            for o in archived:
                print(f"  - {o['name']} [{o['id']}] archived {o['completed_date']}")

        elif args.command == "library":
            active_ids = {o["library_id"] for o in active}
            for entry in reference_data.get_objective_library():
                if entry["id"] not in active_ids:
                    print(f"  - {entry['id']}: {entry['name']} ({entry.get('type')})")

        elif args.command == "activate":
            entry = reference_data.get_objective_entry(args.library_id)
            if entry is None:
                raise ValueError(f"Unknown objective library id: {args.library_id}")
            if args.library_id in {o["library_id"] for o in active}:
                raise ValueError(f"{entry['name']} is already active")
            objective = objectives.activate_objective(
                entry, args.target_date, args.date, args.priority,
                pack_weight=args.pack_weight, region=args.region,
            )
            write_collection(args.athlete_name, "objectives", active + [objective])
            print(f"✓ Activated {objective['name']} ({objective['weeks_remaining']} weeks, "
                  f"{objective['current_phase']} phase)")

        elif args.command == "reschedule":
            updated = objectives.update_target_date(active, args.objective_id, args.target_date, args.date)
            write_collection(args.athlete_name, "objectives", updated)
            print(f"✓ Target date set to {args.target_date}")

        elif args.command == "deactivate":
            new_active, new_archived = objectives.deactivate_objective(active, archived, args.objective_id, args.date)
            write_collection(args.athlete_name, "objectives", new_active)
            write_collection(args.athlete_name, "archived_objectives", new_archived)
            print(f"✓ {len(active) - len(new_active)} objective archived")

        elif args.command == "reactivate":
            new_active, new_archived = objectives.reactivate_objective(
                active, archived, args.archived_id, args.target_date, args.date
            )
            write_collection(args.athlete_name, "objectives", new_active)
            write_collection(args.athlete_name, "archived_objectives", new_archived)
            print(f"✓ {len(new_active) - len(active)} objective reactivated")

        else:
            parser.print_help()

    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
