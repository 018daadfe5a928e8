import pytest

from patrons_cup.stableford import (
    KAREN_COURSE,
    build_leaderboard,
    course_par,
    net_score,
    score_hole,
    score_round,
    stableford_points,
    strokes_received,
)


def test_stroke_received_on_par_four():
    assert strokes_received(18, 10) == 1
    assert net_score(5, 18, 10) == 4
    assert stableford_points(4, 4) == 2
    assert score_hole(5, 4, 10, 18).points == 2


@pytest.mark.parametrize(
    "handicap, stroke_index, expected",
    [
        (0, 1, 0),
        (-2, 1, 0),
        (10, 10, 1),
        (10, 11, 0),
        (18, 18, 1),
        (20, 2, 2),
        (20, 3, 1),
        (36, 18, 2),
    ],
)
def test_strokes_received(handicap, stroke_index, expected):
    assert strokes_received(handicap, stroke_index) == expected


@pytest.mark.parametrize(
    "net, par, points",
    [
        (1, 5, 5),
        (1, 4, 5),
        (2, 4, 4),
        (3, 4, 3),
        (4, 4, 2),
        (5, 4, 1),
        (6, 4, 0),
        (9, 4, 0),
    ],
)
def test_points_table(net, par, points):
    assert stableford_points(net, par) == points


def test_karen_course_is_a_par_72():
    assert course_par() == 72
    assert sorted(si for _, _, si in KAREN_COURSE) == list(range(1, 19))


def test_round_totals():
    bogeys = [par + 1 for _, par, _ in KAREN_COURSE]
    card = score_round("Wanjiru", bogeys, handicap=18)
    assert card.total_points == 36
    assert card.total_gross == 90
    assert card.total_net == 72

    scratch = score_round("Otieno", bogeys, handicap=0)
    assert scratch.total_points == 18


def test_unfinished_round_has_no_gross_total():
    card = score_round("Akinyi", [5, 6, None, 4], handicap=12)
    assert card.holes_played == 3
    assert card.total_gross is None
    assert card.total_net is None
    assert card.holes[2].points == 0


def test_leaderboard_aggregates_rounds_and_shares_positions():
    bogeys = [par + 1 for _, par, _ in KAREN_COURSE]
    pars = [par for _, par, _ in KAREN_COURSE]
    cards = [
        score_round("Wanjiru", bogeys, handicap=18, round_number=1),
        score_round("Wanjiru", pars, handicap=0, round_number=2),
        score_round("Otieno", bogeys, handicap=18, round_number=1),
        score_round("Otieno", pars, handicap=0, round_number=2),
        score_round("Akinyi", bogeys, handicap=0, round_number=1),
    ]
    board = build_leaderboard(cards, {"Wanjiru": "Karen"})
    assert [entry.player for entry in board] == ["Otieno", "Wanjiru", "Akinyi"]
    assert [entry.position for entry in board] == [1, 1, 3]
    assert board[0].total_points == 72
    assert board[1].rounds == {1: 36, 2: 36}
    assert board[1].team == "Karen"
    assert board[2].total_points == 18
