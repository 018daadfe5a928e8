"""Load a tournament export (teams and matches as JSON) into the datastore."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import replace
from pathlib import Path

from patrons_cup.db import ensure_schema, insert_match, upsert_team, upsert_tournament
from patrons_cup.models import Match, MatchStatus, Team
from patrons_cup.rows import match_from_row, team_from_row
from patrons_cup.settings import load_settings

logger = logging.getLogger(__name__)


def parse_tournament(payload: dict | list) -> tuple[list[Team], list[Match]]:
    if isinstance(payload, list):
        payload = {"matches": payload}
    teams = [team_from_row(row) for row in payload.get("teams", [])]
    matches = [match_from_row(row) for row in payload.get("matches", [])]
    return teams, matches


def load_tournament_file(path: Path) -> tuple[list[Team], list[Match]]:
    with path.open(encoding="utf-8") as handle:
        return parse_tournament(json.load(handle))


def remap_teams(match: Match, team_ids: dict[int, int]) -> Match:
    """Point a match at the ids its teams received in the datastore."""

    def _mapped(team_id: int | None) -> int | None:
        if team_id is None:
            return None
        return team_ids.get(team_id, team_id)

    return replace(
        match,
        team_a_id=_mapped(match.team_a_id),
        team_b_id=_mapped(match.team_b_id),
        team_c_id=_mapped(match.team_c_id),
    )


def seed_database(
    database_url: str,
    teams: list[Team],
    matches: list[Match],
    tournament_name: str,
    keep_scores: bool = False,
) -> dict[str, int]:
    ensure_schema(database_url)
    tournament_id = upsert_tournament(database_url, tournament_name)
    team_ids = {team.id: upsert_team(database_url, team, tournament_id) for team in teams}
    created = 0
    for match in matches:
        seeded = remap_teams(match, team_ids)
        if not keep_scores:
            seeded = replace(
                seeded,
                status=MatchStatus.SCHEDULED,
                holes=tuple(
                    replace(hole, team_a_score=None, team_b_score=None, team_c_score=None)
                    for hole in seeded.holes
                ),
            )
        insert_match(database_url, seeded, tournament_id)
        created += 1
    logger.info("Seeded %d teams and %d matches into %s", len(team_ids), created, tournament_name)
    return {"tournament_id": tournament_id, "teams": len(team_ids), "matches": created}


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed teams and matches from a tournament JSON export.")
    parser.add_argument("path", type=Path, help="JSON file with 'teams' and 'matches'.")
    parser.add_argument("--tournament", default="Patron's Cup", help="Tournament name to seed under.")
    parser.add_argument(
        "--keep-scores",
        action="store_true",
        help="Keep hole scores and statuses from the export instead of seeding empty cards.",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    teams, matches = load_tournament_file(args.path)
    summary = seed_database(load_settings().database_url, teams, matches, args.tournament, args.keep_scores)
    print(
        f"Seeded {summary['teams']} teams and {summary['matches']} "
        f"match{'es' if summary['matches'] != 1 else ''} (tournament {summary['tournament_id']})."
    )


if __name__ == "__main__":
    main()
