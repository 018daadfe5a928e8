from dataclasses import replace
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient

import patrons_cup.main as main
from patrons_cup.models import Division, Hole, MatchStatus, Team
from patrons_cup.settings import Settings
from patrons_cup.stableford import KAREN_COURSE

TEAMS = [
    Team(1, "Muthaiga", Division.TROPHY, 1),
    Team(2, "Karen", Division.TROPHY, 2),
]
BEFORE_TEE_OFF = datetime(2025, 9, 19, 6, 0, tzinfo=ZoneInfo("Africa/Nairobi"))


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(main, "settings", Settings(database_url="postgresql://test", admin_pin="9999"))
    monkeypatch.setattr(main, "fetch_teams", lambda *_args, **_kwargs: TEAMS)
    monkeypatch.setattr(main, "_now", lambda: BEFORE_TEE_OFF)
    return TestClient(main.app)


def _serve(monkeypatch, *matches):
    by_id = {match.id: match for match in matches}
    monkeypatch.setattr(main, "fetch_match", lambda _url, match_id: by_id.get(match_id))
    monkeypatch.setattr(main, "fetch_matches", lambda *_args, **_kwargs: list(matches))


def test_closing_hole_completes_the_match(client, monkeypatch, make_match):
    _serve(monkeypatch, make_match("A" * 9 + "B" * 5, status=MatchStatus.IN_PROGRESS))
    status_updates = []
    monkeypatch.setattr(
        main,
        "upsert_hole_score",
        lambda _url, _match_id, number, a, b, c=None: Hole(number=number, team_a_score=a, team_b_score=b),
    )
    monkeypatch.setattr(
        main, "update_match_status", lambda _url, match_id, status: status_updates.append((match_id, status))
    )

    response = client.post(
        "/api/scoring/update-hole",
        json={"match_id": 1, "hole_number": 15, "team_a_score": 3, "team_b_score": 4},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["match"]["status"] == "completed"
    assert body["match"]["result"]["result"] == "5/3"
    assert body["match"]["points"] == {"1": 5, "2": 0}
    assert body["match"]["description"] == "Muthaiga wins 5/3"
    assert status_updates == [(1, MatchStatus.COMPLETED)]


def test_first_score_moves_match_in_progress(client, monkeypatch, make_match):
    _serve(monkeypatch, make_match(status=MatchStatus.SCHEDULED))
    status_updates = []
    monkeypatch.setattr(
        main,
        "upsert_hole_score",
        lambda _url, _match_id, number, a, b, c=None: Hole(number=number, team_a_score=a, team_b_score=b),
    )
    monkeypatch.setattr(
        main, "update_match_status", lambda _url, match_id, status: status_updates.append((match_id, status))
    )

    response = client.post(
        "/api/scoring/update-hole",
        json={"match_id": 1, "hole_number": 1, "team_a_score": 4, "team_b_score": 5, "pin": "9999"},
    )
    assert response.status_code == 200
    assert response.json()["match"]["status"] == "in-progress"
    assert response.json()["match"]["provisional_points"] == {"1": 5, "2": 0}
    assert status_updates == [(1, MatchStatus.IN_PROGRESS)]


def test_scoring_before_tee_time_is_refused(client, monkeypatch, make_match):
    _serve(monkeypatch, make_match(status=MatchStatus.SCHEDULED))
    response = client.post(
        "/api/scoring/update-hole",
        json={"match_id": 1, "hole_number": 1, "team_a_score": 4, "team_b_score": 5},
    )
    assert response.status_code == 409
    assert response.json()["detail"] == "Match starts in 1h 30m"


def test_hole_out_of_range_is_rejected(client, monkeypatch, make_match):
    _serve(monkeypatch, make_match(status=MatchStatus.IN_PROGRESS))
    response = client.post(
        "/api/scoring/update-hole",
        json={"match_id": 1, "hole_number": 19, "team_a_score": 4, "team_b_score": 5},
    )
    assert response.status_code == 422


def test_third_score_on_two_team_match_is_rejected(client, monkeypatch, make_match):
    _serve(monkeypatch, make_match(status=MatchStatus.IN_PROGRESS))
    response = client.post(
        "/api/scoring/update-hole",
        json={"match_id": 1, "hole_number": 2, "team_a_score": 4, "team_b_score": 5, "team_c_score": 4},
    )
    assert response.status_code == 422


def test_unknown_match(client, monkeypatch):
    _serve(monkeypatch)
    assert client.get("/api/matches/42").status_code == 404


def test_match_detail_includes_holes(client, monkeypatch, make_match):
    _serve(monkeypatch, make_match("AAB", status=MatchStatus.IN_PROGRESS))
    body = client.get("/api/matches/1").json()
    assert len(body["holes"]) == 18
    assert body["result"]["result"] == "1up"
    assert body["points"] is None
    assert body["teams"]["A"]["name"] == "Muthaiga"


def test_reset_requires_admin_pin(client, monkeypatch, make_match):
    _serve(monkeypatch, make_match("A" * 18))
    monkeypatch.setattr(main, "reset_match_scores", lambda _url, _match_id: 18)

    assert client.post("/api/admin/matches/1/reset", json={"pin": "0000"}).status_code == 403

    response = client.post("/api/admin/matches/1/reset", json={"pin": "9999"})
    assert response.status_code == 200
    assert response.json() == {"id": 1, "cleared": 18, "status": "scheduled"}


def test_completed_match_cannot_go_back_in_progress(client, monkeypatch, make_match):
    _serve(monkeypatch, make_match("A" * 18))
    response = client.post(
        "/api/admin/matches/1/status",
        json={"pin": "9999", "status": "in-progress"},
    )
    assert response.status_code == 409


def test_standings_endpoint(client, monkeypatch, make_match):
    _serve(
        monkeypatch,
        make_match("A" * 10 + "B" * 8),
        make_match("AA", match_id=2, status=MatchStatus.IN_PROGRESS),
    )
    trophy = client.get("/api/standings").json()["divisions"][0]
    assert trophy["division"] == "Trophy"
    assert [entry["name"] for entry in trophy["teams"]] == ["Muthaiga", "Karen"]
    assert trophy["teams"][0]["points"] == 5

    live = client.get("/api/standings/live").json()["divisions"][0]
    assert live["teams"][0]["provisional_points"] == 5
    assert live["teams"][0]["matches_in_progress"] == 1


def test_progress_endpoint(client, monkeypatch, make_match):
    _serve(monkeypatch, make_match("A" * 18), make_match(match_id=2, status=MatchStatus.SCHEDULED))
    body = client.get("/api/progress").json()
    assert body["completed_matches"] == 1
    assert body["scheduled_matches"] == 1
    assert body["completion_percentage"] == 50


def test_stableford_leaderboard(client):
    bogeys = [par + 1 for _, par, _ in KAREN_COURSE]
    response = client.post(
        "/api/stableford/leaderboard",
        json={
            "cards": [
                {"player": "Wanjiru", "team": "Karen", "handicap": 18, "scores": bogeys},
                {"player": "Otieno", "handicap": 0, "scores": bogeys},
            ]
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert body["course_par"] == 72
    assert [entry["player"] for entry in body["leaderboard"]] == ["Wanjiru", "Otieno"]
    assert body["leaderboard"][0]["total_points"] == 36
    assert body["leaderboard"][0]["team"] == "Karen"
    assert body["cards"][0]["total_gross"] == 90


def test_each_side_can_post_its_own_score(client, monkeypatch, make_match):
    stored = {number: (hole.team_a_score, hole.team_b_score) for number, hole in enumerate(make_match("A" * 4).holes, 1)}

    def fake_upsert(_url, _match_id, number, a, b, c=None):
        old_a, old_b = stored[number]
        stored[number] = (a if a is not None else old_a, b if b is not None else old_b)
        return Hole(number=number, team_a_score=stored[number][0], team_b_score=stored[number][1])

    def fake_fetch(_url, match_id):
        holes = tuple(Hole(number=number, team_a_score=a, team_b_score=b) for number, (a, b) in stored.items())
        return replace(make_match(status=MatchStatus.IN_PROGRESS), holes=holes)

    monkeypatch.setattr(main, "fetch_match", fake_fetch)
    monkeypatch.setattr(main, "upsert_hole_score", fake_upsert)
    monkeypatch.setattr(main, "update_match_status", lambda *_args: 1)

    first = client.post("/api/scoring/update-hole", json={"match_id": 1, "hole_number": 5, "team_a_score": 3})
    assert first.json()["match"]["result"]["holes_played"] == 4

    second = client.post("/api/scoring/update-hole", json={"match_id": 1, "hole_number": 5, "team_b_score": 4})
    body = second.json()
    assert body["hole"]["team_a_score"] == 3
    assert body["hole"]["team_b_score"] == 4
    assert body["match"]["result"]["holes_played"] == 5
    assert body["match"]["result"]["result"] == "5up"


def test_standings_and_progress_are_scoped_to_a_tournament(client, monkeypatch, make_match):
    seen = []

    def fake_matches(*_args, **kwargs):
        seen.append(("matches", kwargs.get("tournament_id")))
        return [make_match("A" * 10 + "B" * 8)]

    def fake_teams(*_args, **kwargs):
        seen.append(("teams", kwargs.get("tournament_id")))
        return TEAMS

    monkeypatch.setattr(main, "fetch_matches", fake_matches)
    monkeypatch.setattr(main, "fetch_teams", fake_teams)

    assert client.get("/api/standings", params={"tournament_id": 2}).status_code == 200
    assert client.get("/api/standings/live", params={"tournament_id": 2}).status_code == 200
    assert client.get("/api/progress", params={"tournament_id": 2}).json()["completed_matches"] == 1
    assert client.get("/api/matches", params={"tournament_id": 2}).status_code == 200
    assert seen
    assert all(tournament_id == 2 for _, tournament_id in seen)
