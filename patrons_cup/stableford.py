"""Stableford scoring for the Nancy Millar Trophy."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Sequence

# Karen Country Club card: (hole, par, stroke index)
KAREN_COURSE: tuple[tuple[int, int, int], ...] = (
    (1, 4, 15),
    (2, 5, 7),
    (3, 5, 9),
    (4, 4, 3),
    (5, 3, 13),
    (6, 4, 1),
    (7, 3, 17),
    (8, 4, 11),
    (9, 4, 5),
    (10, 4, 14),
    (11, 4, 6),
    (12, 4, 18),
    (13, 4, 2),
    (14, 3, 16),
    (15, 5, 8),
    (16, 3, 12),
    (17, 4, 4),
    (18, 5, 10),
)

# net score relative to par -> points
STABLEFORD_POINTS: dict[int, int] = {
    -2: 4,
    -1: 3,
    0: 2,
    1: 1,
}
NET_ALBATROSS_POINTS = 5


@dataclass(frozen=True)
class StablefordHole:
    hole_number: int
    par: int
    stroke_index: int
    gross: int | None
    net: int | None
    points: int


@dataclass(frozen=True)
class StablefordCard:
    player: str
    handicap: int
    round_number: int
    holes: tuple[StablefordHole, ...]

    @property
    def total_points(self) -> int:
        return sum(hole.points for hole in self.holes)

    @property
    def holes_played(self) -> int:
        return sum(1 for hole in self.holes if hole.gross is not None)

    @property
    def total_gross(self) -> int | None:
        if any(hole.gross is None for hole in self.holes):
            return None
        return sum(hole.gross for hole in self.holes)

    @property
    def total_net(self) -> int | None:
        if any(hole.net is None for hole in self.holes):
            return None
        return sum(hole.net for hole in self.holes)


@dataclass
class StablefordEntry:
    player: str
    team: str | None
    handicap: int
    rounds: dict[int, int] = field(default_factory=dict)
    total_points: int = 0
    holes_played: int = 0
    position: int = 0


def strokes_received(handicap: int, stroke_index: int | None) -> int:
    """
    Strokes a player receives on a hole. One stroke on every hole for each full
    18 of handicap, plus one on the holes whose stroke index is within the remainder.
    """
    if handicap <= 0:
        return 0
    base, remainder = divmod(handicap, 18)
    hole_index = stroke_index or 18
    extra = 1 if remainder and hole_index <= remainder else 0
    return base + extra


def net_score(gross: int, handicap: int, stroke_index: int | None) -> int:
    return gross - strokes_received(handicap, stroke_index)


def stableford_points(net: int, par: int) -> int:
    net_to_par = net - par
    if net_to_par <= -3:
        return NET_ALBATROSS_POINTS
    return STABLEFORD_POINTS.get(net_to_par, 0)


def score_hole(gross: int | None, par: int, stroke_index: int, handicap: int, hole_number: int = 0) -> StablefordHole:
    if gross is None or gross <= 0:
        return StablefordHole(hole_number, par, stroke_index, None, None, 0)
    net = net_score(gross, handicap, stroke_index)
    return StablefordHole(hole_number, par, stroke_index, gross, net, stableford_points(net, par))


def score_round(
    player: str,
    scores: Sequence[int | None],
    handicap: int,
    course: Sequence[tuple[int, int, int]] = KAREN_COURSE,
    round_number: int = 1,
) -> StablefordCard:
    holes = []
    for idx, (hole_number, par, stroke_index) in enumerate(course):
        gross = scores[idx] if idx < len(scores) else None
        holes.append(score_hole(gross, par, stroke_index, handicap, hole_number))
    return StablefordCard(player, handicap, round_number, tuple(holes))


def course_par(course: Sequence[tuple[int, int, int]] = KAREN_COURSE) -> int:
    return sum(par for _, par, _ in course)


def build_leaderboard(cards: Sequence[StablefordCard], teams: dict[str, str] | None = None) -> list[StablefordEntry]:
    """Aggregate round cards per player and rank by total points; level players share a position."""
    teams = teams or {}
    entries: dict[str, StablefordEntry] = {}
    rounds_by_player: dict[str, dict[int, int]] = defaultdict(dict)
    for card in cards:
        entry = entries.setdefault(
            card.player,
            StablefordEntry(player=card.player, team=teams.get(card.player), handicap=card.handicap),
        )
        rounds_by_player[card.player][card.round_number] = card.total_points
        entry.holes_played += card.holes_played

    for name, entry in entries.items():
        entry.rounds = dict(sorted(rounds_by_player[name].items()))
        entry.total_points = sum(entry.rounds.values())

    ranked = sorted(entries.values(), key=lambda item: (-item.total_points, item.player))
    previous_points = None
    for index, entry in enumerate(ranked, 1):
        if entry.total_points != previous_points:
            entry.position = index
            previous_points = entry.total_points
        else:
            entry.position = ranked[index - 2].position
    return ranked
