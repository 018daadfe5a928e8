#!/usr/bin/env python3
"""Report matches whose stored status disagrees with their hole scores."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from patrons_cup.db import fetch_matches, update_match_statuses
from patrons_cup.match_play import ThreeWayResult, describe_result, resolve_match
from patrons_cup.models import Match, MatchStatus
from patrons_cup.settings import load_settings
from patrons_cup.status import next_status


def _describe(match: Match) -> list[str]:
    result = resolve_match(match)
    if isinstance(result, ThreeWayResult):
        return [
            f"{pair.side_1} v {pair.side_2}: {pair.result.holes_won_a}-{pair.result.holes_won_b} "
            f"({pair.result.holes_played} holes) {describe_result(pair.result, pair.side_1, pair.side_2)}"
            for pair in result.pairs
        ]
    return [
        f"{result.holes_won_a}-{result.holes_won_b} ({result.holes_played} holes) {describe_result(result)}"
    ]


def find_decided_matches(matches: list[Match]) -> list[Match]:
    return [
        match
        for match in matches
        if match.status != MatchStatus.COMPLETED and next_status(match) == MatchStatus.COMPLETED
    ]


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Find matches whose scores already decide them but are not marked completed."
    )
    parser.add_argument("--division", "-d", help="Only check one division.")
    parser.add_argument("--tournament-id", type=int, help="Only check one tournament.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Print the result of every match checked.")
    parser.add_argument("--apply", action="store_true", help="Mark the decided matches as completed.")
    args = parser.parse_args()

    database_url = load_settings().database_url
    matches = fetch_matches(database_url, division=args.division, tournament_id=args.tournament_id)
    decided = find_decided_matches(matches)

    if args.verbose:
        for match in matches:
            print(f"Match {match.id} (game {match.game_number}, {match.status.value}):")
            for line in _describe(match):
                print(f"  {line}")

    if not decided:
        print("No matches need completing.")
        return

    print(f"{len(decided)} match{'es' if len(decided) != 1 else ''} should be completed:")
    for match in decided:
        print(f"  {match.id}: game {match.game_number}")
        for line in _describe(match):
            print(f"    {line}")

    if args.apply:
        updated = update_match_statuses(database_url, [match.id for match in decided], MatchStatus.COMPLETED)
        print(f"Marked {updated} as completed.")


if __name__ == "__main__":
    main()
