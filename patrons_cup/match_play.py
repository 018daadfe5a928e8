"""Match play resolution for two-team and three-way matches.

Every function here is pure: it reads a snapshot of hole scores and returns
frozen result objects. Holes with a missing score on either side are treated
as not yet played, so results stay consistent while scores stream in.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations
from typing import Iterable

from patrons_cup.models import HOLES_PER_ROUND, Hole, Match

ALL_SQUARE = "AS"
TIE = "T"

# Every final result that can occur when a match stops as soon as it is decided.
VALID_RESULTS: dict[int, tuple[str, ...]] = {
    18: ("AS", "1up", "2up"),
    17: ("2/1", "2up", "3/1"),
    16: ("3/2", "4/2"),
    15: ("4/3", "5/3"),
    14: ("5/4", "6/4"),
    13: ("6/5", "7/5"),
    12: ("7/6", "8/6"),
    11: ("8/7", "9/7"),
    10: ("9/8", "10/8"),
}


@dataclass(frozen=True)
class MatchPlayResult:
    holes_won_a: int
    holes_won_b: int
    holes_halved: int
    holes_played: int
    is_complete: bool
    clinched: bool
    winner: str | None
    result: str

    @property
    def holes_remaining(self) -> int:
        return HOLES_PER_ROUND - self.holes_played

    @property
    def difference(self) -> int:
        return abs(self.holes_won_a - self.holes_won_b)

    @property
    def leader(self) -> str | None:
        if self.holes_won_a > self.holes_won_b:
            return "A"
        if self.holes_won_b > self.holes_won_a:
            return "B"
        return None

    @property
    def dormie(self) -> bool:
        return not self.is_complete and self.difference > 0 and self.difference == self.holes_remaining

    def as_dict(self) -> dict:
        return {
            "holes_won_a": self.holes_won_a,
            "holes_won_b": self.holes_won_b,
            "holes_halved": self.holes_halved,
            "holes_played": self.holes_played,
            "holes_remaining": self.holes_remaining,
            "difference": self.difference,
            "is_complete": self.is_complete,
            "clinched": self.clinched,
            "dormie": self.dormie,
            "winner": self.winner,
            "result": self.result,
        }


@dataclass(frozen=True)
class PairwiseResult:
    side_1: str
    side_2: str
    result: MatchPlayResult

    def _side(self, role: str | None) -> str | None:
        if role == "A":
            return self.side_1
        if role == "B":
            return self.side_2
        return role

    @property
    def winner(self) -> str | None:
        """Winning side letter, ``"T"`` for a halved contest, ``None`` while undecided."""
        return self._side(self.result.winner)

    @property
    def leader(self) -> str | None:
        return self._side(self.result.leader)

    def holes_won(self, side: str) -> int:
        if side == self.side_1:
            return self.result.holes_won_a
        if side == self.side_2:
            return self.result.holes_won_b
        return 0

    def holes_lost(self, side: str) -> int:
        if side == self.side_1:
            return self.result.holes_won_b
        if side == self.side_2:
            return self.result.holes_won_a
        return 0

    def as_dict(self) -> dict:
        payload = self.result.as_dict()
        payload.update(
            {
                "pair": f"{self.side_1}v{self.side_2}",
                "winner": self.winner,
            }
        )
        return payload


@dataclass(frozen=True)
class ThreeWayResult:
    pairs: tuple[PairwiseResult, ...]
    is_complete: bool

    def pair(self, side_1: str, side_2: str) -> PairwiseResult:
        for entry in self.pairs:
            if {entry.side_1, entry.side_2} == {side_1, side_2}:
                return entry
        raise KeyError(f"{side_1}v{side_2}")

    def wins_for(self, side: str) -> int:
        return sum(1 for entry in self.pairs if entry.winner == side)

    @property
    def holes_played(self) -> int:
        return max((entry.result.holes_played for entry in self.pairs), default=0)

    def as_dict(self) -> dict:
        return {
            "is_complete": self.is_complete,
            "holes_played": self.holes_played,
            "pairs": [entry.as_dict() for entry in self.pairs],
            "wins": {side: self.wins_for(side) for side in ("A", "B", "C")},
        }


def _margin(result: str) -> int:
    if result == ALL_SQUARE:
        return 0
    if result.endswith("up"):
        return int(result[:-2])
    return int(result.split("/", 1)[0])


def live_status(difference: int) -> str:
    return f"{difference}up" if difference else ALL_SQUARE


def valid_result(holes_played: int, difference: int, clinched: bool) -> str:
    """Format a final result, snapped to the closest legal entry for ``holes_played``."""
    if clinched and holes_played < HOLES_PER_ROUND:
        candidate = f"{difference}/{HOLES_PER_ROUND - holes_played}"
    else:
        candidate = live_status(difference)
    options = VALID_RESULTS.get(holes_played)
    if not options or candidate in options:
        return candidate
    same_kind = [option for option in options if ("/" in option) == ("/" in candidate)]
    if difference:
        same_kind = [option for option in same_kind if option != ALL_SQUARE]
    candidates = same_kind or list(options)
    return min(candidates, key=lambda option: (abs(_margin(option) - difference), _margin(option)))


def _is_score(value: int | None) -> bool:
    return value is not None and value > 0


def resolve_match_play(pairs: Iterable[tuple[int | None, int | None]]) -> MatchPlayResult:
    """Resolve a two-sided contest from ``(score_a, score_b)`` gross scores per hole."""
    won_a = won_b = halved = played = 0
    for score_a, score_b in pairs:
        if not (_is_score(score_a) and _is_score(score_b)):
            continue
        played += 1
        if score_a < score_b:
            won_a += 1
        elif score_b < score_a:
            won_b += 1
        else:
            halved += 1
        if played == HOLES_PER_ROUND:
            break

    remaining = HOLES_PER_ROUND - played
    difference = abs(won_a - won_b)
    clinched = played < HOLES_PER_ROUND and difference > remaining
    complete = played == HOLES_PER_ROUND or clinched

    if not complete:
        return MatchPlayResult(won_a, won_b, halved, played, False, False, None, live_status(difference))

    if won_a > won_b:
        winner = "A"
    elif won_b > won_a:
        winner = "B"
    else:
        winner = TIE
    return MatchPlayResult(
        won_a,
        won_b,
        halved,
        played,
        True,
        clinched,
        winner,
        valid_result(played, difference, clinched),
    )


def playable_holes(holes: Iterable[Hole]) -> list[Hole]:
    """Holes numbered 1-18 in order, keeping the first record for any repeated number."""
    seen: dict[int, Hole] = {}
    for hole in holes:
        if not 1 <= hole.number <= HOLES_PER_ROUND:
            continue
        seen.setdefault(hole.number, hole)
    return [seen[number] for number in sorted(seen)]


def pair_scores(holes: Iterable[Hole], side_1: str, side_2: str) -> list[tuple[int | None, int | None]]:
    return [(hole.score_for(side_1), hole.score_for(side_2)) for hole in playable_holes(holes)]


def resolve_three_way(holes: Iterable[Hole]) -> ThreeWayResult:
    cards = playable_holes(holes)
    pairs = tuple(
        PairwiseResult(side_1, side_2, resolve_match_play(pair_scores(cards, side_1, side_2)))
        for side_1, side_2 in combinations(("A", "B", "C"), 2)
    )
    complete = max(entry.result.holes_played for entry in pairs) == HOLES_PER_ROUND
    return ThreeWayResult(pairs=pairs, is_complete=complete)


def resolve_match(match: Match) -> MatchPlayResult | ThreeWayResult:
    if match.is_three_way:
        return resolve_three_way(match.holes)
    return resolve_match_play(pair_scores(match.holes, "A", "B"))


def is_match_complete(match: Match) -> bool:
    return resolve_match(match).is_complete


def describe_result(
    result: MatchPlayResult,
    name_a: str = "Team A",
    name_b: str = "Team B",
) -> str:
    if not result.is_complete:
        leader = result.leader
        if leader is None:
            return "All Square"
        status = f"{name_a if leader == 'A' else name_b} {result.result}"
        return f"{status} (dormie)" if result.dormie else status
    if result.winner == TIE:
        return "Match Halved (AS)"
    winner = name_a if result.winner == "A" else name_b
    return f"{winner} wins {result.result}"
