import asyncio
import logging
from dataclasses import asdict, replace
from datetime import datetime
from zoneinfo import ZoneInfo

import psycopg
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError

from patrons_cup.db import (
    ensure_schema,
    fetch_match,
    fetch_matches,
    fetch_teams,
    reset_match_scores,
    update_match_status,
    update_match_statuses,
    upsert_hole_score,
)
from patrons_cup.match_play import ThreeWayResult, describe_result, resolve_match
from patrons_cup.migrations import apply_migrations
from patrons_cup.models import Hole, Match, MatchStatus
from patrons_cup.points import award_points, estimate_points, points_for_match
from patrons_cup.settings import load_settings
from patrons_cup.stableford import build_leaderboard, course_par, score_round
from patrons_cup.standings import build_live_standings, build_standings, tournament_progress
from patrons_cup.status import StatusTransitionError, can_score, next_status, should_go_live, transition

logger = logging.getLogger(__name__)

app = FastAPI(title="Patron's Cup scoring")
settings = load_settings()


class HoleScorePayload(BaseModel):
    match_id: int
    hole_number: int = Field(ge=1, le=18)
    team_a_score: int | None = Field(default=None, ge=1)
    team_b_score: int | None = Field(default=None, ge=1)
    team_c_score: int | None = Field(default=None, ge=1)
    pin: str | None = None


class StatusPayload(BaseModel):
    pin: str
    status: MatchStatus


class PinPayload(BaseModel):
    pin: str


class StablefordCardPayload(BaseModel):
    player: str
    team: str | None = None
    handicap: int = 18
    round_number: int = 1
    scores: list[int | None]


class StablefordPayload(BaseModel):
    cards: list[StablefordCardPayload]


def _now() -> datetime:
    return datetime.now(ZoneInfo(settings.timezone))


def _is_admin(pin: str | None) -> bool:
    return bool(pin) and pin == settings.admin_pin


def _require_admin(pin: str | None) -> None:
    if not _is_admin(pin):
        raise HTTPException(status_code=403, detail="Invalid or missing PIN.")


def _load_match(match_id: int) -> Match:
    match = fetch_match(settings.database_url, match_id)
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")
    return match


def _team_names(tournament_id: int | None = None) -> dict[int, str]:
    return {team.id: team.name for team in fetch_teams(settings.database_url, tournament_id=tournament_id)}


def _match_summary(match: Match, team_names: dict[int, str]) -> dict:
    result = resolve_match(match)
    rule = points_for_match(match)
    awarded = award_points(match)
    estimate = estimate_points(match)
    summary = {
        "id": match.id,
        "game_number": match.game_number,
        "division": match.division.value if match.division else None,
        "date": match.date.isoformat() if match.date else None,
        "tee_time": match.tee_time,
        "session": match.session.value if match.session else None,
        "type": match.match_type.value if match.match_type else None,
        "status": match.status.value,
        "is_three_way": match.is_three_way,
        "teams": {
            side: {"id": match.team_for(side), "name": team_names.get(match.team_for(side))}
            for side in match.sides
        },
        "points_available": {"win": rule.win, "tie": rule.tie},
        "points": {str(team_id): value for team_id, value in awarded.points.items()} if awarded else None,
        "provisional_points": (
            {str(team_id): value for team_id, value in estimate.points.items()} if estimate else None
        ),
        "result": result.as_dict(),
    }
    if not isinstance(result, ThreeWayResult):
        summary["description"] = describe_result(
            result,
            team_names.get(match.team_a_id) or "Team A",
            team_names.get(match.team_b_id) or "Team B",
        )
    return summary


def _with_hole(match: Match, hole: Hole) -> Match:
    holes = {existing.number: existing for existing in match.holes}
    existing = holes.get(hole.number)
    if existing is not None:
        hole = replace(hole, par=existing.par, stroke_index=existing.stroke_index)
    holes[hole.number] = hole
    return replace(match, holes=tuple(holes[number] for number in sorted(holes)))


def sync_live_statuses() -> list[int]:
    """Move every scheduled match whose tee time has arrived to in-progress."""
    scheduled = fetch_matches(settings.database_url, status=MatchStatus.SCHEDULED)
    now = _now()
    due = [match.id for match in scheduled if should_go_live(match, now, settings.timezone)]
    if due:
        update_match_statuses(settings.database_url, due, MatchStatus.IN_PROGRESS)
        logger.info("Moved %d matches to in-progress: %s", len(due), due)
    return due


async def _poll_statuses(interval: int) -> None:
    while True:
        try:
            await asyncio.to_thread(sync_live_statuses)
        except psycopg.Error:
            logger.exception("Scheduled status sync failed")
        await asyncio.sleep(interval)


@app.on_event("startup")
async def startup() -> None:
    ensure_schema(settings.database_url)
    apply_migrations(settings.database_url)
    if settings.status_poll_seconds > 0:
        asyncio.create_task(_poll_statuses(settings.status_poll_seconds))


@app.get("/api/matches")
async def api_matches(
    status: MatchStatus | None = None,
    division: str | None = None,
    tournament_id: int | None = None,
):
    matches = fetch_matches(settings.database_url, status=status, division=division, tournament_id=tournament_id)
    team_names = _team_names(tournament_id)
    return {"matches": [_match_summary(match, team_names) for match in matches]}


@app.get("/api/matches/{match_id}")
async def api_match(match_id: int):
    match = _load_match(match_id)
    summary = _match_summary(match, _team_names())
    summary["holes"] = [asdict(hole) for hole in match.holes]
    return summary


@app.get("/api/matches/{match_id}/scoring-window")
async def api_scoring_window(match_id: int, pin: str | None = None):
    match = _load_match(match_id)
    return asdict(can_score(match, _now(), _is_admin(pin), settings.timezone))


@app.post("/api/scoring/update-hole")
async def api_update_hole(request: Request):
    try:
        payload = HoleScorePayload.model_validate(await request.json())
    except ValidationError as exc:
        return JSONResponse({"error": "Invalid payload", "details": exc.errors()}, status_code=422)

    match = _load_match(payload.match_id)
    window = can_score(match, _now(), _is_admin(payload.pin), settings.timezone)
    if not window.can_score:
        raise HTTPException(status_code=409, detail=window.reason)
    if payload.team_c_score is not None and not match.is_three_way:
        return JSONResponse(
            {"error": "Invalid payload", "details": "team_c_score given for a two-team match"},
            status_code=422,
        )

    hole = upsert_hole_score(
        settings.database_url,
        payload.match_id,
        payload.hole_number,
        payload.team_a_score,
        payload.team_b_score,
        payload.team_c_score,
    )
    if hole is None:
        raise HTTPException(status_code=500, detail="Failed to update hole score")
    logger.info(
        "Match %s hole %s scored %s/%s/%s",
        match.id,
        hole.number,
        hole.team_a_score,
        hole.team_b_score,
        hole.team_c_score,
    )

    updated = _with_hole(match, hole)
    if updated.status == MatchStatus.SCHEDULED:
        updated = transition(updated, MatchStatus.IN_PROGRESS)
    target = next_status(updated)
    if target != updated.status:
        updated = transition(updated, target)
        logger.info("Match %s is decided, marking %s", match.id, target.value)
    if updated.status != match.status:
        update_match_status(settings.database_url, match.id, updated.status)

    return {
        "success": True,
        "hole": asdict(hole),
        "match": _match_summary(updated, _team_names()),
    }


@app.get("/api/standings")
async def api_standings(division: str | None = None, tournament_id: int | None = None):
    matches = fetch_matches(settings.database_url, division=division, tournament_id=tournament_id)
    teams = fetch_teams(settings.database_url, division=division, tournament_id=tournament_id)
    return {"divisions": build_standings(matches, teams, division)}


@app.get("/api/standings/live")
async def api_live_standings(division: str | None = None, tournament_id: int | None = None):
    matches = fetch_matches(settings.database_url, division=division, tournament_id=tournament_id)
    teams = fetch_teams(settings.database_url, division=division, tournament_id=tournament_id)
    return {"divisions": build_live_standings(matches, teams, division)}


@app.get("/api/progress")
async def api_progress(tournament_id: int | None = None):
    return tournament_progress(fetch_matches(settings.database_url, tournament_id=tournament_id))


@app.post("/api/admin/matches/{match_id}/reset")
async def api_reset_match(match_id: int, request: Request):
    try:
        payload = PinPayload.model_validate(await request.json())
    except ValidationError as exc:
        return JSONResponse({"error": "Invalid payload", "details": exc.errors()}, status_code=422)
    _require_admin(payload.pin)
    _load_match(match_id)
    cleared = reset_match_scores(settings.database_url, match_id)
    logger.warning("Match %s reset by admin, %d holes cleared", match_id, cleared)
    return {"id": match_id, "cleared": cleared, "status": MatchStatus.SCHEDULED.value}


@app.post("/api/admin/matches/{match_id}/status")
async def api_set_status(match_id: int, request: Request):
    try:
        payload = StatusPayload.model_validate(await request.json())
    except ValidationError as exc:
        return JSONResponse({"error": "Invalid payload", "details": exc.errors()}, status_code=422)
    _require_admin(payload.pin)
    match = _load_match(match_id)
    try:
        updated = transition(match, payload.status)
    except StatusTransitionError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    if updated.status != match.status:
        update_match_status(settings.database_url, match_id, updated.status)
    return {"id": match_id, "status": updated.status.value}


@app.post("/api/admin/status/sync")
async def api_sync_statuses(request: Request):
    try:
        payload = PinPayload.model_validate(await request.json())
    except ValidationError as exc:
        return JSONResponse({"error": "Invalid payload", "details": exc.errors()}, status_code=422)
    _require_admin(payload.pin)
    return {"updated": sync_live_statuses()}


@app.post("/api/stableford/leaderboard")
async def api_stableford_leaderboard(request: Request):
    try:
        payload = StablefordPayload.model_validate(await request.json())
    except ValidationError as exc:
        return JSONResponse({"error": "Invalid payload", "details": exc.errors()}, status_code=422)
    cards = [
        score_round(card.player, card.scores, card.handicap, round_number=card.round_number)
        for card in payload.cards
    ]
    teams = {card.player: card.team for card in payload.cards if card.team}
    return {
        "course_par": course_par(),
        "leaderboard": [asdict(entry) for entry in build_leaderboard(cards, teams)],
        "cards": [
            {
                "player": card.player,
                "round_number": card.round_number,
                "total_points": card.total_points,
                "total_gross": card.total_gross,
                "total_net": card.total_net,
                "holes": [asdict(hole) for hole in card.holes],
            }
            for card in cards
        ],
    }
