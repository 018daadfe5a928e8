from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from patrons_cup.match_play import ALL_SQUARE, TIE, MatchPlayResult, ThreeWayResult, resolve_match
from patrons_cup.models import Division, Match, MatchStatus, Session, Team
from patrons_cup.points import award_points, estimate_points

RECENT_RESULTS = 5
TREND_CODES = {"W": "W", "L": "L", "H": "H", "IP": "P"}
DIVISION_ORDER = [division.value for division in Division]


def _empty_stat(team: Team) -> dict:
    return {
        "team_id": team.id,
        "name": team.name,
        "division": team.division.value if team.division else None,
        "points": 0.0,
        "matches_played": 0,
        "matches_won": 0,
        "matches_lost": 0,
        "matches_halved": 0,
        "matches_in_progress": 0,
        "holes_won": 0,
        "holes_lost": 0,
        "recent_results": [],
    }


def _match_order(match: Match) -> tuple:
    session_rank = 0 if match.session == Session.AM else 1
    return (
        match.date.toordinal() if match.date else 0,
        session_rank,
        match.game_number or 0,
        match.id,
    )


def _contests(match: Match, result: MatchPlayResult | ThreeWayResult) -> list[tuple[str, str, MatchPlayResult, str | None]]:
    if isinstance(result, ThreeWayResult):
        return [(pair.side_1, pair.side_2, pair.result, pair.winner or pair.leader) for pair in result.pairs]
    return [("A", "B", result, result.winner or result.leader)]


def _status_for(contest: MatchPlayResult, first_side: bool) -> str:
    """Live status of a contest from one side's point of view: "2up", "1dn" or "AS"."""
    if contest.leader is None:
        return ALL_SQUARE
    leading = (contest.leader == "A") == first_side
    return f"{contest.difference}{'up' if leading else 'dn'}"


def _record_contest(stats: dict[int, dict], match: Match, side_1: str, side_2: str, contest: MatchPlayResult, winner: str | None) -> None:
    team_1 = match.team_for(side_1)
    team_2 = match.team_for(side_2)
    if contest.holes_played == 0:
        return
    outcome = winner or TIE
    for team_id, side, won, lost in (
        (team_1, side_1, contest.holes_won_a, contest.holes_won_b),
        (team_2, side_2, contest.holes_won_b, contest.holes_won_a),
    ):
        entry = stats.get(team_id)
        if entry is None:
            continue
        entry["matches_played"] += 1
        entry["holes_won"] += won
        entry["holes_lost"] += lost
        if outcome == TIE:
            entry["matches_halved"] += 1
            entry["recent_results"].insert(0, "H")
        elif outcome == side:
            entry["matches_won"] += 1
            entry["recent_results"].insert(0, "W")
        else:
            entry["matches_lost"] += 1
            entry["recent_results"].insert(0, "L")


def _finish(entries: Iterable[dict], live: bool = False) -> list[dict]:
    rows = []
    for entry in entries:
        entry["points"] = round(entry["points"], 1)
        if "provisional_points" in entry:
            entry["provisional_points"] = round(entry["provisional_points"], 1)
        played = entry["matches_played"]
        entry["win_rate"] = round(entry["matches_won"] / played * 100) if played else 0
        entry["hole_diff"] = entry["holes_won"] - entry["holes_lost"]
        entry["recent_results"] = entry["recent_results"][:RECENT_RESULTS]
        entry["trend"] = "".join(TREND_CODES.get(code, "-") for code in entry["recent_results"])
        rows.append(entry)
    rows.sort(
        key=lambda item: (
            -item["points"],
            -item["matches_won"],
            -item["hole_diff"],
            item["name"],
        )
    )
    for position, entry in enumerate(rows, 1):
        entry["position"] = position
    if live:
        _rank_live(rows)
    return rows


def _rank_live(rows: list[dict]) -> None:
    """Re-order by points plus provisional points and note movement against the authoritative table."""
    for entry in rows:
        entry["authoritative_position"] = entry["position"]
    rows.sort(key=lambda item: (-(item["points"] + item["provisional_points"]), item["authoritative_position"]))
    for position, entry in enumerate(rows, 1):
        entry["position"] = position
        if position < entry["authoritative_position"]:
            entry["position_change"] = "up"
        elif position > entry["authoritative_position"]:
            entry["position_change"] = "down"
        else:
            entry["position_change"] = "same"


def _group(stats: dict[int, dict], division: str | None, live: bool = False) -> list[dict]:
    division_groups: dict[str, list[dict]] = defaultdict(list)
    for entry in stats.values():
        division_groups[entry["division"] or "Unassigned"].append(entry)
    names = [division] if division else sorted(
        division_groups,
        key=lambda name: (DIVISION_ORDER.index(name) if name in DIVISION_ORDER else len(DIVISION_ORDER), name),
    )
    return [{"division": name, "teams": _finish(division_groups.get(name, []), live)} for name in names]


def _division_value(division: Division | str | None) -> str | None:
    if division is None:
        return None
    return getattr(division, "value", division)


def _tally(matches: list[Match], teams: list[Team], division: str | None, live: bool) -> dict[int, dict]:
    stats = {
        team.id: _empty_stat(team)
        for team in teams
        if division is None or _division_value(team.division) == division
    }
    if live:
        for entry in stats.values():
            entry["provisional_points"] = 0.0
            entry["live_match_status"] = None

    for match in sorted(matches, key=_match_order):
        if division is not None and _division_value(match.division) != division:
            continue
        awarded = award_points(match)
        if awarded is not None:
            for team_id, value in awarded.points.items():
                if team_id in stats:
                    stats[team_id]["points"] += value
            result = resolve_match(match)
            for side_1, side_2, contest, winner in _contests(match, result):
                _record_contest(stats, match, side_1, side_2, contest, winner)
            continue
        if not live or match.status != MatchStatus.IN_PROGRESS:
            continue
        for side in match.sides:
            entry = stats.get(match.team_for(side))
            if entry is not None:
                entry["matches_in_progress"] += 1
                entry["recent_results"].insert(0, "IP")
        for side_1, side_2, contest, _ in _contests(match, resolve_match(match)):
            for side in (side_1, side_2):
                entry = stats.get(match.team_for(side))
                if entry is not None:
                    entry["live_match_status"] = _status_for(contest, side == side_1)
        estimate = estimate_points(match)
        if estimate is not None:
            for team_id, value in estimate.points.items():
                if team_id in stats:
                    stats[team_id]["provisional_points"] += value
    return stats


def build_standings(matches: list[Match], teams: list[Team], division: Division | str | None = None) -> list[dict]:
    """Standings per division, derived from completed matches only."""
    division_value = _division_value(division)
    return _group(_tally(matches, teams, division_value, live=False), division_value)


def build_live_standings(matches: list[Match], teams: list[Team], division: Division | str | None = None) -> list[dict]:
    """
    Standings plus a ``provisional_points`` column showing what in-progress
    matches are worth as they stand. ``points`` stays identical to
    ``build_standings``; ``position`` ranks on points plus provisional points
    and ``position_change`` compares it with the authoritative table.
    """
    division_value = _division_value(division)
    return _group(_tally(matches, teams, division_value, live=True), division_value, live=True)


def sessions_played(team_id: int, matches: list[Match]) -> int:
    sessions = {
        (match.date, match.session, match.match_type)
        for match in matches
        if team_id in (match.team_a_id, match.team_b_id, match.team_c_id)
        and match.status in (MatchStatus.IN_PROGRESS, MatchStatus.COMPLETED)
    }
    return len(sessions)


def tournament_progress(matches: list[Match]) -> dict:
    total = len(matches)
    completed = sum(1 for match in matches if match.status == MatchStatus.COMPLETED)
    in_progress = sum(1 for match in matches if match.status == MatchStatus.IN_PROGRESS)
    scheduled = sum(1 for match in matches if match.status == MatchStatus.SCHEDULED)
    return {
        "total_matches": total,
        "completed_matches": completed,
        "in_progress_matches": in_progress,
        "scheduled_matches": scheduled,
        "completion_percentage": round(completed / total * 100) if total else 0,
        "live_percentage": round(in_progress / total * 100) if total else 0,
    }
