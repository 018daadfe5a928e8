"""
Conversion between stored rows and the engine's Match/Hole/Team objects.

Accepts both the datastore's snake_case columns (``team_a_score``,
``hole_number``, ``match_date``) and the camelCase shape used by the legacy
JSON exports (``teamAScore``, ``number``, ``gameNumber``).
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, TypeVar

from patrons_cup.models import Division, Hole, Match, MatchStatus, MatchType, Session, Team

E = TypeVar("E", bound=Enum)


def _pick(row: dict, *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in row and row[key] is not None:
            return row[key]
    return default


def _as_int(value: Any) -> int | None:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_enum(enum_cls: type[E], value: Any) -> E | None:
    if value is None:
        return None
    if isinstance(value, enum_cls):
        return value
    text = str(value).strip()
    for member in enum_cls:
        if member.value.lower() == text.lower():
            return member
    return None


def parse_date(value: Any) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def hole_from_row(row: dict) -> Hole | None:
    number = _as_int(_pick(row, "hole_number", "holeNumber", "number"))
    if number is None:
        return None
    return Hole(
        number=number,
        par=_as_int(_pick(row, "par")) or 4,
        stroke_index=_as_int(_pick(row, "stroke_index", "strokeIndex", "si")),
        team_a_score=_as_int(_pick(row, "team_a_score", "teamAScore")),
        team_b_score=_as_int(_pick(row, "team_b_score", "teamBScore")),
        team_c_score=_as_int(_pick(row, "team_c_score", "teamCScore")),
    )


def holes_from_rows(rows: Iterable[dict]) -> tuple[Hole, ...]:
    holes = [hole for hole in (hole_from_row(row) for row in rows) if hole is not None]
    return tuple(sorted(holes, key=lambda hole: hole.number))


def match_from_row(row: dict, hole_rows: Iterable[dict] | None = None) -> Match:
    if hole_rows is None:
        hole_rows = row.get("holes") or []
    return Match(
        id=_as_int(_pick(row, "id")) or 0,
        game_number=_as_int(_pick(row, "game_number", "gameNumber")),
        division=_as_enum(Division, _pick(row, "division")),
        date=parse_date(_pick(row, "match_date", "date", "matchDate")),
        session=_as_enum(Session, _pick(row, "session")),
        match_type=_as_enum(MatchType, _pick(row, "match_type", "type")),
        team_a_id=_as_int(_pick(row, "team_a_id", "teamAId")),
        team_b_id=_as_int(_pick(row, "team_b_id", "teamBId")),
        team_c_id=_as_int(_pick(row, "team_c_id", "teamCId")),
        status=_as_enum(MatchStatus, _pick(row, "status")) or MatchStatus.SCHEDULED,
        tee_time=_pick(row, "tee_time", "teeTime"),
        holes=holes_from_rows(hole_rows),
    )


def team_from_row(row: dict) -> Team:
    return Team(
        id=_as_int(_pick(row, "id")) or 0,
        name=str(_pick(row, "name", default="")),
        division=_as_enum(Division, _pick(row, "division")),
        seed=_as_int(_pick(row, "seed")) or 0,
    )


def hole_to_row(match_id: int, hole: Hole) -> dict:
    return {
        "match_id": match_id,
        "hole_number": hole.number,
        "par": hole.par,
        "stroke_index": hole.stroke_index,
        "team_a_score": hole.team_a_score,
        "team_b_score": hole.team_b_score,
        "team_c_score": hole.team_c_score,
    }


def match_to_row(match: Match) -> dict:
    return {
        "id": match.id,
        "game_number": match.game_number,
        "division": match.division.value if match.division else None,
        "match_date": match.date,
        "session": match.session.value if match.session else None,
        "match_type": match.match_type.value if match.match_type else None,
        "team_a_id": match.team_a_id,
        "team_b_id": match.team_b_id,
        "team_c_id": match.team_c_id,
        "status": match.status.value,
        "tee_time": match.tee_time,
    }
