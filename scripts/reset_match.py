#!/usr/bin/env python3
"""Clear every hole score on a match and return it to scheduled."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from patrons_cup.db import fetch_match, fetch_matches, reset_match_scores
from patrons_cup.models import Match, MatchStatus
from patrons_cup.settings import load_settings


def _resolve_match(database_url: str, match_id: int | None, game_number: int | None) -> Match | None:
    if match_id:
        return fetch_match(database_url, match_id)
    if game_number:
        for match in fetch_matches(database_url):
            if match.game_number == game_number:
                return match
    return None


def main() -> None:
    parser = argparse.ArgumentParser(description="Reset a match: clear all hole scores and set it back to scheduled.")
    parser.add_argument("--match-id", type=int, help="Target match ID.")
    parser.add_argument("--game-number", type=int, help="Lookup match by game number.")
    parser.add_argument(
        "--list",
        action="store_true",
        help="List matches that have started.",
    )
    parser.add_argument(
        "--confirm",
        action="store_true",
        help="Required, the reset cannot be undone.",
    )
    args = parser.parse_args()
    database_url = load_settings().database_url

    if args.list:
        started = [match for match in fetch_matches(database_url) if match.status != MatchStatus.SCHEDULED]
        if not started:
            print("No started matches found.")
            return
        print("Matches:")
        for match in started:
            print(f"  {match.id}: game {match.game_number} ({match.division.value if match.division else '-'}) {match.status.value}")
        return

    if not args.confirm:
        parser.error("This command deletes hole scores. Re-run with --confirm to proceed.")

    match = _resolve_match(database_url, args.match_id, args.game_number)
    if not match:
        parser.error("Could not find the match. Provide --match-id or --game-number.")

    cleared = reset_match_scores(database_url, match.id)
    print(f"Cleared {cleared} hole{'s' if cleared != 1 else ''} and reset match {match.id} to scheduled.")


if __name__ == "__main__":
    main()
