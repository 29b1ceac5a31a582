#!/usr/bin/env python3
"""
Session Logger - Add a cardio, strength, climbing or conditioning session

Reads one session record from a JSON or YAML file, appends it to the
athlete's workout log (and progression history for strength and
climbing), then prints the session's load summary and which active
objectives it contributed to.

Cardio sessions may carry a raw heart rate stream under "samples"
([{"timestamp", "heart_rate"}, ...]); zone minutes and training load are
computed from it using the athlete's zones.

Usage:
    python scripts/log_session.py alex-ridge session.yaml
    python scripts/log_session.py alex-ridge session.json --type strength
    python scripts/log_session.py alex-ridge hike.yaml --json
"""

import argparse
import json
import logging
import sys
import uuid
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from athlete_store import LOG_DOMAINS, append_session, iso_dates, read_collection
from summit_engine.objectives import detect_benchmark_matches, get_contributing_objectives, session_domain
from summit_engine.stimulus import get_cardio_session_summary
from summit_engine.zones import calculate_training_load, compute_zone_distribution

logger = logging.getLogger(__name__)


def load_session_file(path: Path) -> Dict[str, Any]:
    """Load a session record from JSON or YAML; YAML dates come back as ISO strings."""
    if not path.exists():
        raise FileNotFoundError(f"Session file not found: {path}")

    with open(path) as f:
        if path.suffix in (".yaml", ".yml"):
            session = iso_dates(yaml.safe_load(f))
        else:
            session = json.load(f)

    if not isinstance(session, dict) or "date" not in session:
        raise ValueError(f"{path} does not contain a session record with a date")
    return session


def prepare_session(session: Dict[str, Any], domain: str, zones: Dict[str, Any]) -> Dict[str, Any]:
    """Assign an id and, for cardio with an HR stream, zone minutes and load."""
    prepared = dict(session)
    prepared.setdefault("id", uuid.uuid4().hex[:12])

    if domain == "cardio":
        samples = prepared.pop("samples", None)
        if samples and not prepared.get("zone_distribution"):
            prepared["zone_distribution"] = compute_zone_distribution(samples, zones)
        if prepared.get("zone_distribution") and not prepared.get("training_load"):
            prepared["training_load"] = calculate_training_load(prepared["zone_distribution"])

    return prepared


def log_session(athlete_name: str, session: Dict[str, Any], domain: Optional[str] = None) -> Dict[str, Any]:
    """
    Append a session and report on it.

    Returns:
        Dict with the stored 'session', its 'domain', the cardio 'summary'
        (None for other domains), 'objectives' matches and 'benchmarks'
        suggestions
    """
    domain = domain or session_domain(session)
    if domain not in LOG_DOMAINS:
        raise ValueError("Could not tell the session type; pass --type")

    zones = read_collection(athlete_name, "zones")
    objectives = read_collection(athlete_name, "objectives")

    prepared = prepare_session(session, domain, zones)
    append_session(athlete_name, domain, prepared)
    logger.info(f"Logged {domain} session {prepared['id']} on {prepared['date']}")

    return {
        "session": prepared,
        "domain": domain,
        "summary": get_cardio_session_summary(prepared) if domain == "cardio" else None,
        "objectives": get_contributing_objectives(prepared, objectives),
        "benchmarks": detect_benchmark_matches(prepared, objectives) if domain == "cardio" else [],
    }


def main():
    parser = argparse.ArgumentParser(description="Log a training session")
    parser.add_argument("athlete_name", help="Athlete folder name (e.g., alex-ridge)")
    parser.add_argument("session_file", type=Path, help="Session record (.json or .yaml)")
    parser.add_argument("--type", choices=LOG_DOMAINS, help="Session type (inferred if omitted)")
    parser.add_argument("--json", action="store_true", help="Output as JSON only")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        session = load_session_file(args.session_file)
        result = log_session(args.athlete_name, session, args.type)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.json:
        print(json.dumps(result, indent=2))
        return

    stored = result["session"]
    print(f"✓ Logged {result['domain']} session on {stored['date']} (id {stored['id']})")

    summary = result["summary"]
    if summary:
        dominant = f", mostly {summary['dominant_group']}" if summary["dominant_group"] else ""
        print(f"\nLoad: {summary['level'].upper()}{dominant}")
        for factor in summary["factors"]:
            print(f"  • {factor}")

    if stored.get("training_load"):
        load = stored["training_load"]
        print(f"\nTraining load: {load['score']} ({load['classification']})")

    if result["objectives"]:
        print(f"\nContributes to:")
        for match in result["objectives"]:
            print(f"  • {match['objective_name']} - {match['domain']} ({match['strength']})")

    for suggestion in result["benchmarks"]:
        print(f"\n? {suggestion['message']}")


if __name__ == "__main__":
    main()
