from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

HOLES_PER_ROUND = 18


class Division(str, Enum):
    TROPHY = "Trophy"
    SHIELD = "Shield"
    PLAQUE = "Plaque"
    BOWL = "Bowl"
    MUG = "Mug"


class Session(str, Enum):
    AM = "AM"
    PM = "PM"


class MatchType(str, Enum):
    FOUR_BBB = "4BBB"
    FOURSOMES = "Foursomes"
    SINGLES = "Singles"


class MatchStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Team:
    id: int
    name: str
    division: Division | None
    seed: int = 0


@dataclass(frozen=True)
class Hole:
    number: int
    par: int = 4
    stroke_index: int | None = None
    team_a_score: int | None = None
    team_b_score: int | None = None
    team_c_score: int | None = None

    def score_for(self, side: str) -> int | None:
        return {
            "A": self.team_a_score,
            "B": self.team_b_score,
            "C": self.team_c_score,
        }.get(side)


@dataclass(frozen=True)
class Match:
    id: int
    division: Division | None
    date: date | None
    session: Session | None
    match_type: MatchType | None
    team_a_id: int | None
    team_b_id: int | None
    team_c_id: int | None = None
    status: MatchStatus = MatchStatus.SCHEDULED
    game_number: int | None = None
    tee_time: str | None = None
    holes: tuple[Hole, ...] = field(default_factory=tuple)

    @property
    def is_three_way(self) -> bool:
        return self.team_c_id is not None

    def team_for(self, side: str) -> int | None:
        return {
            "A": self.team_a_id,
            "B": self.team_b_id,
            "C": self.team_c_id,
        }.get(side)

    @property
    def sides(self) -> tuple[str, ...]:
        return ("A", "B", "C") if self.is_three_way else ("A", "B")


def empty_holes(pars: list[int] | None = None) -> tuple[Hole, ...]:
    """Return an unplayed card of 18 holes, par 4 unless ``pars`` says otherwise."""
    pars = pars or [4] * HOLES_PER_ROUND
    return tuple(Hole(number=idx, par=par) for idx, par in enumerate(pars, 1))
