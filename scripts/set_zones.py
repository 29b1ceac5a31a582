#!/usr/bin/env python3
"""
Zone Setup - Configure heart rate zones for an athlete

Zones come from one of three methods:
- age: 50/60/70/80/90% of max HR (220 - age)
- maf: anchored on the MAF aerobic ceiling (180 - age)
- custom: four strictly increasing ceilings from a field or lab test

Usage:
    python scripts/set_zones.py alex-ridge --age 38
    python scripts/set_zones.py alex-ridge --maf 38
    python scripts/set_zones.py alex-ridge --custom 128 145 160 172
    python scripts/set_zones.py alex-ridge --show
"""

import argparse
import logging
import sys

from athlete_store import read_collection, write_collection
from summit_engine.zones import (
    ZONE_KEYS,
    compute_custom_zones,
    compute_zones_from_age,
    compute_zones_from_maf,
)


def format_zones(zones: dict) -> str:
    return "\n".join(
        f"  Z{i}: {zones[key]['low']:>5} - {zones[key]['high']:<5} bpm"
        for i, key in enumerate(ZONE_KEYS, start=1)
    )


def main():
    parser = argparse.ArgumentParser(description="Configure heart rate zones")
    parser.add_argument("athlete_name", help="Athlete folder name (e.g., alex-ridge)")

    method = parser.add_mutually_exclusive_group(required=True)
    method.add_argument("--age", type=int, help="Zones from age (%% of max HR)")
    method.add_argument("--maf", type=int, metavar="AGE", help="Zones from the MAF ceiling (180 - age)")
    method.add_argument("--custom", type=float, nargs=4, metavar=("Z1", "Z2", "Z3", "Z4"),
                        help="Four zone ceilings in bpm")
    method.add_argument("--show", action="store_true", help="Show current zones")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        if args.show:
            print(f"Zones for {args.athlete_name}:")
            print(format_zones(read_collection(args.athlete_name, "zones")))
            return

        if args.age is not None:
            if not 10 <= args.age <= 100:
                raise ValueError(f"age must be between 10 and 100, got {args.age}")
            zones = compute_zones_from_age(args.age)
        elif args.maf is not None:
            if not 10 <= args.maf <= 100:
                raise ValueError(f"age must be between 10 and 100, got {args.maf}")
            zones = compute_zones_from_maf(args.maf)
        else:
            zones = compute_custom_zones(args.custom)

        write_collection(args.athlete_name, "zones", zones)

    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"✓ Zones updated for {args.athlete_name}:")
    print(format_zones(zones))


if __name__ == "__main__":
    main()
