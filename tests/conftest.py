from datetime import date

import pytest

from patrons_cup.models import Division, Hole, Match, MatchStatus, MatchType, Session

FRIDAY = date(2025, 9, 19)
SATURDAY = date(2025, 9, 20)
SUNDAY = date(2025, 9, 21)

_HOLE_SCORES = {
    "A": (3, 4),
    "B": (4, 3),
    "H": (4, 4),
    "-": (None, None),
}


def _card(outcomes: str) -> tuple[Hole, ...]:
    """One character per hole: A/B won by that side, H halved, - not yet played."""
    padded = outcomes.ljust(18, "-")
    holes = []
    for number, code in enumerate(padded, 1):
        score_a, score_b = _HOLE_SCORES[code]
        holes.append(Hole(number=number, par=4, team_a_score=score_a, team_b_score=score_b))
    return tuple(holes)


def _match(
    outcomes: str = "",
    *,
    match_id: int = 1,
    team_a_id: int = 1,
    team_b_id: int = 2,
    status: MatchStatus = MatchStatus.COMPLETED,
    day: date = FRIDAY,
    session: Session = Session.AM,
    match_type: MatchType = MatchType.FOUR_BBB,
    division: Division = Division.TROPHY,
    tee_time: str | None = "7:30 AM",
) -> Match:
    return Match(
        id=match_id,
        game_number=match_id,
        division=division,
        date=day,
        session=session,
        match_type=match_type,
        team_a_id=team_a_id,
        team_b_id=team_b_id,
        status=status,
        tee_time=tee_time,
        holes=_card(outcomes),
    )


@pytest.fixture
def card():
    return _card


@pytest.fixture
def make_match():
    return _match
