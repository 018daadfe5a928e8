from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from patrons_cup.models import MatchStatus
from patrons_cup.status import (
    StatusTransitionError,
    can_score,
    next_status,
    parse_tee_time,
    reset_match,
    should_go_live,
    transition,
)

NAIROBI = ZoneInfo("Africa/Nairobi")
FRIDAY = date(2025, 9, 19)


@pytest.mark.parametrize(
    "tee_time, hour, minute",
    [
        ("7:30 AM", 7, 30),
        ("1:15 PM", 13, 15),
        ("13:05", 13, 5),
        ("12:00 AM", 0, 0),
        ("12:10 pm", 12, 10),
    ],
)
def test_parse_tee_time(tee_time, hour, minute):
    assert parse_tee_time(FRIDAY, tee_time) == datetime(2025, 9, 19, hour, minute, tzinfo=NAIROBI)


def test_unparseable_tee_times():
    assert parse_tee_time(FRIDAY, "shotgun start") is None
    assert parse_tee_time(FRIDAY, None) is None
    assert parse_tee_time(None, "7:30 AM") is None
    assert parse_tee_time(FRIDAY, "25:00") is None


def test_goes_live_once_tee_time_arrives(make_match):
    match = make_match(status=MatchStatus.SCHEDULED)
    tee_off = datetime(2025, 9, 19, 7, 30, tzinfo=NAIROBI)
    assert not should_go_live(match, tee_off - timedelta(minutes=1))
    assert should_go_live(match, tee_off)
    assert not should_go_live(make_match(status=MatchStatus.IN_PROGRESS), tee_off)


def test_tee_time_compared_in_tournament_timezone(make_match):
    match = make_match(status=MatchStatus.SCHEDULED)
    # 07:30 in Nairobi is 04:30 UTC
    assert should_go_live(match, datetime(2025, 9, 19, 4, 30, tzinfo=ZoneInfo("UTC")))
    assert not should_go_live(match, datetime(2025, 9, 19, 4, 29, tzinfo=ZoneInfo("UTC")))


def test_scoring_window(make_match):
    match = make_match(status=MatchStatus.SCHEDULED)
    tee_off = datetime(2025, 9, 19, 7, 30, tzinfo=NAIROBI)

    early = can_score(match, tee_off - timedelta(minutes=90))
    assert not early.can_score
    assert early.reason == "Match starts in 1h 30m"
    assert can_score(match, tee_off - timedelta(minutes=90), is_admin=True).can_score

    started = can_score(match, tee_off + timedelta(minutes=5))
    assert started.can_score
    assert started.has_started
    assert not started.is_overdue

    overdue = can_score(match, tee_off + timedelta(minutes=31))
    assert overdue.is_overdue

    assert can_score(make_match(status=MatchStatus.IN_PROGRESS), tee_off).can_score
    assert not can_score(make_match(status=MatchStatus.SCHEDULED, tee_time=None), tee_off).can_score


def test_forward_transitions(make_match):
    scheduled = make_match(status=MatchStatus.SCHEDULED)
    live = transition(scheduled, MatchStatus.IN_PROGRESS)
    assert live.status == MatchStatus.IN_PROGRESS
    assert transition(live, MatchStatus.COMPLETED).status == MatchStatus.COMPLETED
    assert transition(live, MatchStatus.IN_PROGRESS) is live


@pytest.mark.parametrize(
    "current, target",
    [
        (MatchStatus.COMPLETED, MatchStatus.IN_PROGRESS),
        (MatchStatus.COMPLETED, MatchStatus.SCHEDULED),
        (MatchStatus.IN_PROGRESS, MatchStatus.SCHEDULED),
    ],
)
def test_backward_transitions_are_rejected(make_match, current, target):
    with pytest.raises(StatusTransitionError):
        transition(make_match(status=current), target)


def test_next_status_follows_the_scores(make_match):
    assert next_status(make_match("A" * 10, status=MatchStatus.IN_PROGRESS)) == MatchStatus.COMPLETED
    assert next_status(make_match("AB", status=MatchStatus.IN_PROGRESS)) == MatchStatus.IN_PROGRESS
    assert next_status(make_match("", status=MatchStatus.SCHEDULED)) == MatchStatus.SCHEDULED
    assert next_status(make_match("AB", status=MatchStatus.COMPLETED)) == MatchStatus.COMPLETED


def test_reset_clears_every_score(make_match):
    match = reset_match(make_match("A" * 18, status=MatchStatus.COMPLETED))
    assert match.status == MatchStatus.SCHEDULED
    assert len(match.holes) == 18
    assert all(
        hole.team_a_score is None and hole.team_b_score is None and hole.team_c_score is None
        for hole in match.holes
    )
    assert all(hole.par == 4 for hole in match.holes)
