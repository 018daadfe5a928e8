"""Match status transitions: scheduled -> in-progress -> completed."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from patrons_cup.match_play import is_match_complete
from patrons_cup.models import Match, MatchStatus

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Africa/Nairobi"
OVERDUE_AFTER = timedelta(minutes=30)
_TEE_TIME = re.compile(r"(\d{1,2}):(\d{2})\s*(AM|PM)?", re.IGNORECASE)
_FORWARD = {
    MatchStatus.SCHEDULED: {MatchStatus.IN_PROGRESS, MatchStatus.COMPLETED},
    MatchStatus.IN_PROGRESS: {MatchStatus.COMPLETED},
    MatchStatus.COMPLETED: set(),
}


class StatusTransitionError(Exception):
    pass


@dataclass(frozen=True)
class ScoringWindow:
    can_score: bool
    reason: str
    has_started: bool
    is_overdue: bool


def parse_tee_time(match_date: date | None, tee_time: str | None, timezone: str = DEFAULT_TIMEZONE) -> datetime | None:
    """Combine a match date with "HH:MM" or "H:MM AM/PM" in the tournament's timezone."""
    if match_date is None or not tee_time:
        return None
    found = _TEE_TIME.search(tee_time)
    if not found:
        return None
    hour = int(found.group(1))
    minute = int(found.group(2))
    meridiem = (found.group(3) or "").upper()
    if meridiem == "AM" and hour == 12:
        hour = 0
    elif meridiem == "PM" and hour != 12:
        hour += 12
    if hour > 23 or minute > 59:
        return None
    return datetime(match_date.year, match_date.month, match_date.day, hour, minute, tzinfo=ZoneInfo(timezone))


def should_go_live(match: Match, now: datetime, timezone: str = DEFAULT_TIMEZONE) -> bool:
    if match.status != MatchStatus.SCHEDULED:
        return False
    tee_off = parse_tee_time(match.date, match.tee_time, timezone)
    if tee_off is None:
        logger.warning("Could not parse tee time %r for match %s", match.tee_time, match.id)
        return False
    return now >= tee_off


def can_score(match: Match, now: datetime, is_admin: bool = False, timezone: str = DEFAULT_TIMEZONE) -> ScoringWindow:
    if match.status == MatchStatus.IN_PROGRESS:
        return ScoringWindow(True, "Match is in progress", True, False)
    if match.status == MatchStatus.COMPLETED:
        return ScoringWindow(True, "Match is completed", True, False)

    tee_off = parse_tee_time(match.date, match.tee_time, timezone)
    if tee_off is None:
        reason = "Admin override available" if is_admin else "Invalid match time"
        return ScoringWindow(is_admin, reason, False, False)
    if now >= tee_off:
        overdue = now - tee_off > OVERDUE_AFTER
        reason = "Match is overdue to start" if overdue else "Tee time has been reached"
        return ScoringWindow(True, reason, True, overdue)
    if is_admin:
        return ScoringWindow(True, "Admin override before tee time", False, False)
    return ScoringWindow(False, f"Match starts in {_until(tee_off - now)}", False, False)


def _until(delta: timedelta) -> str:
    minutes = int(delta.total_seconds() // 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def transition(match: Match, target: MatchStatus) -> Match:
    if target == match.status:
        return match
    if target not in _FORWARD[match.status]:
        raise StatusTransitionError(
            f"Match {match.id} cannot move from {match.status.value} to {target.value}"
        )
    return replace(match, status=target)


def next_status(match: Match) -> MatchStatus:
    """Status the match should hold given its current scores. Never moves backwards."""
    if match.status == MatchStatus.COMPLETED:
        return MatchStatus.COMPLETED
    if is_match_complete(match):
        return MatchStatus.COMPLETED
    return match.status


def reset_match(match: Match) -> Match:
    """Admin reset: clear every score on the card and return the match to scheduled."""
    holes = tuple(
        replace(hole, team_a_score=None, team_b_score=None, team_c_score=None)
        for hole in match.holes
    )
    return replace(match, status=MatchStatus.SCHEDULED, holes=holes)
