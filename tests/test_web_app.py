"""Tests for the Flask JSON API."""

import csv
import io

import pytest

from courtside.services import InMemoryGameStore
from courtside.ui.web_app import create_app

STARTERS = ["p1", "p2", "p3", "p4", "p5"]


@pytest.fixture
def store():
    return InMemoryGameStore()


@pytest.fixture
def client(store):
    app = create_app(store)
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture
def game_id(client):
    response = client.post("/api/games", json={
        "team": {
            "id": "t1",
            "name": "Hawks",
            "players": [{"id": f"p{n}", "name": f"Player {n}", "number": str(n)} for n in range(1, 8)],
        },
        "opponent": "Owls",
        "periodCount": 2,
        "periodLength": 20,
        "startingPlayers": STARTERS,
        "date": "2025-03-01T18:00:00",
    })
    assert response.status_code == 201
    return response.get_json()["game"]["id"]


def _sub(client, game_id, subbed_in, players_out, event_time):
    return client.post(f"/api/games/{game_id}/substitutions", json={
        "subbedIn": subbed_in, "playersOut": players_out, "eventTime": event_time,
    })


def test_create_and_get_game(client, store, game_id):
    data = client.get(f"/api/games/{game_id}").get_json()
    assert data["success"]
    assert data["game"]["activePlayers"] == STARTERS
    assert data["clock"]["timeRemaining"] == 1200
    assert data["clock"]["formattedTime"] == "20:00"
    assert data["status"]["total_periods"] == 2
    assert store.get(game_id).opponent == "Owls"


def test_create_requires_team(client):
    response = client.post("/api/games", json={"opponent": "Owls"})
    assert response.status_code == 400


def test_create_rejects_bad_period_length(client):
    response = client.post("/api/games", json={
        "team": {"id": "t1", "name": "Hawks", "players": []},
        "periodLength": 15,
    })
    assert response.status_code == 400
    assert response.get_json()["kind"] == "InvariantViolation"


def test_unknown_game_is_404(client):
    response = client.get("/api/games/missing")
    assert response.status_code == 404
    assert response.get_json()["success"] is False


def test_timer_actions(client, game_id):
    data = client.post(f"/api/games/{game_id}/timer/start").get_json()
    assert data["clock"]["isRunning"]

    response = client.post(f"/api/games/{game_id}/timer/start")
    assert response.status_code == 400

    data = client.post(f"/api/games/{game_id}/timer/pause").get_json()
    assert not data["clock"]["isRunning"]

    data = client.post(f"/api/games/{game_id}/timer/adjust", json={"seconds": -90}).get_json()
    assert data["clock"]["timeRemaining"] <= 1110

    response = client.post(f"/api/games/{game_id}/timer/rewind")
    assert response.status_code == 404


def test_substitution_flow(client, store, game_id):
    response = _sub(client, game_id, ["p6"], ["p1"], 900)
    assert response.status_code == 200
    assert response.get_json()["activePlayers"] == ["p2", "p3", "p4", "p5", "p6"]

    event_id = store.get(game_id).periods[0].sub_events[-1].id

    roster = client.get(f"/api/games/{game_id}/substitutions/{event_id}/roster").get_json()
    assert set(roster["activePlayers"]) == set(STARTERS)

    response = client.put(f"/api/games/{game_id}/substitutions/{event_id}", json={
        "eventTime": 800, "subbedIn": ["p7"], "playersOut": ["p1"],
    })
    assert response.status_code == 200
    assert "p7" in response.get_json()["game"]["activePlayers"]

    history = client.get(f"/api/games/{game_id}/substitutions").get_json()["history"]
    assert [h["event"]["eventTime"] for h in history] == [1200, 800]

    response = client.delete(f"/api/games/{game_id}/substitutions/{event_id}")
    assert response.status_code == 200
    assert response.get_json()["game"]["activePlayers"] == STARTERS


def test_substitution_errors(client, store, game_id):
    response = _sub(client, game_id, ["p6"], [], 900)
    assert response.status_code == 400
    assert response.get_json()["kind"] == "InvariantViolation"

    response = _sub(client, game_id, ["ghost"], ["p1"], 900)
    assert response.status_code == 404

    _sub(client, game_id, ["p6"], ["p1"], 900)
    _sub(client, game_id, ["p1"], ["p6"], 600)
    swap_id = store.get(game_id).periods[0].sub_events[1].id
    response = client.delete(f"/api/games/{game_id}/substitutions/{swap_id}")
    assert response.status_code == 409

    response = client.put(f"/api/games/{game_id}/substitutions/{swap_id}", json={
        "eventTime": 500, "subbedIn": ["p6"], "playersOut": ["p1"],
    })
    assert response.status_code == 400


def test_validate_substitution(client, game_id):
    data = client.post(f"/api/games/{game_id}/substitutions/validate", json={
        "subbedIn": ["p6"], "playersOut": [],
    }).get_json()
    assert data["is_valid"] is False
    assert data["errors"]


def test_fouls_and_end_period(client, game_id):
    for _ in range(5):
        response = client.post(f"/api/games/{game_id}/fouls", json={"playerId": "p2", "timeRemaining": 700})
        assert response.status_code == 200
    assert "fouled out" in response.get_json()["warnings"][0]

    response = client.post(f"/api/games/{game_id}/fouls", json={})
    assert response.status_code == 400

    data = client.post(f"/api/games/{game_id}/end-period").get_json()
    assert data["game"]["currentPeriod"] == 1
    assert data["game"]["activePlayers"] == []
    assert data["clock"]["timeRemaining"] == 1200

    stats = client.get(f"/api/games/{game_id}/stats").get_json()
    lines = {line["player_id"]: line for line in stats["players"]}
    assert lines["p2"]["fouls"] == 5
    assert lines["p2"]["fouled_out"]
    assert lines["p1"]["total_seconds"] == 1200
    assert stats["team"]["total_fouls"] == 5


def test_report_csv(client, game_id):
    response = client.get(f"/api/games/{game_id}/report.csv")
    assert response.status_code == 200
    assert response.mimetype == "text/csv"
    rows = list(csv.reader(io.StringIO(response.get_data(as_text=True))))
    assert rows[0] == ["Game", "Hawks vs Owls"]


def test_parse_time_endpoint(client):
    data = client.post("/api/time/parse", json={"text": "12:34"}).get_json()
    assert data["valid"]
    assert data["seconds"] == 754

    data = client.post("/api/time/parse", json={"text": "1:75"}).get_json()
    assert not data["valid"]
    assert data["seconds"] is None

    data = client.post("/api/time/parse", json={"text": 90}).get_json()
    assert not data["valid"]

    data = client.post("/api/time/parse", json={"text": "100:00"}).get_json()
    assert data["seconds"] == 6000


def test_create_rejects_null_period_count(client):
    response = client.post("/api/games", json={
        "team": {"id": "t1", "name": "Hawks", "players": []},
        "periodCount": None,
    })
    assert response.status_code == 400
    assert response.get_json()["success"] is False


def test_foul_in_named_period(client, store, game_id):
    second = store.get(game_id).periods[1].id
    response = client.post(f"/api/games/{game_id}/fouls", json={
        "playerId": "p3", "timeRemaining": 400, "periodId": second,
    })
    assert response.status_code == 200
    assert len(store.get(game_id).periods[1].fouls) == 1

    response = client.post(f"/api/games/{game_id}/fouls", json={
        "playerId": "p3", "timeRemaining": 400, "periodId": "missing",
    })
    assert response.status_code == 404


def test_flow_checks(client, game_id):
    data = client.get(f"/api/games/{game_id}/checks").get_json()
    assert data["startGame"]["is_valid"]
    assert data["endPeriod"]["is_valid"]
    assert data["startNewPeriod"]["is_valid"]

    client.post(f"/api/games/{game_id}/timer/start")
    data = client.get(f"/api/games/{game_id}/checks").get_json()
    assert "Game is already running" in data["startGame"]["errors"]
    assert not data["startNewPeriod"]["is_valid"]
