"""League points for Patron's Cup matches.

Points are only authoritative once a match is completed. Leaderboards that
want to show how an in-progress match would score use ``estimate_points``,
which returns a different type so the two can never be summed by accident.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from patrons_cup.match_play import TIE, MatchPlayResult, ThreeWayResult, resolve_match
from patrons_cup.models import Division, Match, MatchStatus, MatchType, Session

FRIDAY = "Friday"
SATURDAY = "Saturday"
SUNDAY = "Sunday"
_WEEKDAYS = {4: FRIDAY, 5: SATURDAY, 6: SUNDAY}
BOWL_MUG = {Division.BOWL, Division.MUG}


@dataclass(frozen=True)
class PointsRule:
    win: float
    tie: float


FALLBACK_RULE = PointsRule(win=1, tie=0.5)


@dataclass(frozen=True)
class AuthoritativePoints:
    match_id: int
    points: dict[int, float] = field(default_factory=dict)

    def for_team(self, team_id: int) -> float:
        return self.points.get(team_id, 0.0)


@dataclass(frozen=True)
class ProvisionalEstimate:
    match_id: int
    points: dict[int, float] = field(default_factory=dict)

    def for_team(self, team_id: int) -> float:
        return self.points.get(team_id, 0.0)


def match_day(value: date | None) -> str | None:
    if value is None:
        return None
    return _WEEKDAYS.get(value.weekday())


def _enum_value(value) -> str | None:
    if value is None:
        return None
    return getattr(value, "value", value)


def points_for(
    day: str | None,
    session: Session | str | None,
    match_type: MatchType | str | None,
    division: Division | str | None,
) -> PointsRule:
    session_value = _enum_value(session)
    type_value = _enum_value(match_type)
    division_value = _enum_value(division)
    if day in (FRIDAY, SATURDAY):
        if session_value == Session.AM.value and type_value == MatchType.FOUR_BBB.value:
            return PointsRule(win=5, tie=2.5)
        if session_value == Session.PM.value and type_value == MatchType.FOURSOMES.value:
            if division_value in {item.value for item in BOWL_MUG}:
                return PointsRule(win=4, tie=2)
            return PointsRule(win=3, tie=1.5)
    elif day == SUNDAY and type_value == MatchType.SINGLES.value:
        return PointsRule(win=3, tie=1.5)
    return FALLBACK_RULE


def points_for_match(match: Match) -> PointsRule:
    return points_for(match_day(match.date), match.session, match.match_type, match.division)


def _add(points: dict[int, float], team_id: int | None, value: float) -> None:
    if team_id is None:
        return
    points[team_id] = points.get(team_id, 0.0) + value


def _allocate(match: Match, rule: PointsRule, outcomes: list[tuple[str, str, str | None]]) -> dict[int, float]:
    """Turn ``(side_1, side_2, winner)`` outcomes into points per team id."""
    points: dict[int, float] = {}
    for side in match.sides:
        _add(points, match.team_for(side), 0.0)
    for side_1, side_2, winner in outcomes:
        if winner == TIE:
            _add(points, match.team_for(side_1), rule.tie)
            _add(points, match.team_for(side_2), rule.tie)
        elif winner in (side_1, side_2):
            _add(points, match.team_for(winner), rule.win)
    return points


def _outcomes(result: MatchPlayResult | ThreeWayResult) -> list[tuple[str, str, str | None]]:
    """
    Winner per contest. A contest that has not closed out is settled on holes
    won; contests with no hole played are left out.
    """
    if isinstance(result, ThreeWayResult):
        contests = [(pair.side_1, pair.side_2, pair.result, pair.winner, pair.leader) for pair in result.pairs]
    else:
        contests = [("A", "B", result, result.winner, result.leader)]
    outcomes = []
    for side_1, side_2, contest, winner, leader in contests:
        if contest.holes_played == 0:
            continue
        outcomes.append((side_1, side_2, winner or leader or TIE))
    return outcomes


def award_points(match: Match) -> AuthoritativePoints | None:
    """Points won in a completed match, or ``None`` when the match is not final yet."""
    result = resolve_match(match)
    if match.status != MatchStatus.COMPLETED and not result.is_complete:
        return None
    rule = points_for_match(match)
    return AuthoritativePoints(match.id, _allocate(match, rule, _outcomes(result)))


def estimate_points(match: Match) -> ProvisionalEstimate | None:
    """What an in-progress match would be worth if it finished as it stands."""
    if match.status != MatchStatus.IN_PROGRESS:
        return None
    result = resolve_match(match)
    if result.is_complete:
        return None
    outcomes = _outcomes(result)
    if not outcomes:
        return None
    rule = points_for_match(match)
    return ProvisionalEstimate(match.id, _allocate(match, rule, outcomes))
