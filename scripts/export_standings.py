import argparse
import json
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from patrons_cup.db import fetch_matches, fetch_teams
from patrons_cup.settings import load_settings
from patrons_cup.standings import build_live_standings, build_standings, tournament_progress


def export_standings(
    database_url: str,
    division: str | None = None,
    live: bool = False,
    tournament_id: int | None = None,
) -> dict:
    matches = fetch_matches(database_url, division=division, tournament_id=tournament_id)
    teams = fetch_teams(database_url, division=division, tournament_id=tournament_id)
    builder = build_live_standings if live else build_standings
    return {
        "progress": tournament_progress(matches),
        "divisions": builder(matches, teams, division),
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Recompute standings from match scores and dump them as JSON.")
    parser.add_argument("--division", "-d", help="Only export one division (Trophy, Shield, Plaque, Bowl, Mug).")
    parser.add_argument("--tournament-id", type=int, help="Only export one tournament.")
    parser.add_argument(
        "--live",
        action="store_true",
        help="Include provisional points for matches still in progress.",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Path to write the JSON export (defaults to stdout).",
    )
    args = parser.parse_args()

    snapshot = export_standings(load_settings().database_url, args.division, args.live, args.tournament_id)
    payload = json.dumps(snapshot, default=str, indent=2)

    if args.output:
        args.output.write_text(payload, encoding="utf-8")
        print(f"Standings saved to {args.output}")
    else:
        print(payload)


if __name__ == "__main__":
    main()
