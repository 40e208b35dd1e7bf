from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from rangelab.features.drill import DrillManager, SpotLibrary
from rangelab.web.app import create_app


def _client() -> tuple[TestClient, DrillManager]:
    manager = DrillManager(SpotLibrary())
    app = create_app(manager)
    return TestClient(app), manager


def _play_session(client: TestClient, sid: str) -> None:
    while True:
        payload = client.get(f"/api/v1/drill/{sid}/spot").json()
        if payload["done"]:
            break
        option = payload["spot"]["options"][0]["id"]
        client.post(f"/api/v1/drill/{sid}/choose", json={"option": option})
        client.post(f"/api/v1/drill/{sid}/next")


def test_health() -> None:
    client, _ = _client()
    data = client.get("/health").json()
    assert data["status"] == "ok"
    assert "timestamp" in data


def test_spot_lookup_and_processed_view() -> None:
    client, _ = _client()

    raw = client.get("/spots/s201").json()
    assert raw["hist"][13] == ["BB", "c"]
    assert raw["sol"] == {"b": 1, "ev": [0, 2.4, -3.1]}

    processed = client.get("/spots/s201/processed").json()
    assert processed["street_name"] == "River"
    assert processed["history_pot"] == pytest.approx(38.7)
    assert [opt["is_correct"] for opt in processed["options"]] == [False, True, False]
    assert processed["options"][1]["label"] == "CALL 20BB"

    assert client.get("/spots/nope").status_code == 404
    assert client.get("/spots/nope/processed").status_code == 404


def test_random_spot_filters() -> None:
    client, _ = _client()
    assert client.get("/spots/random", params={"str": "f"}).json()["id"] == "s203"
    assert client.get("/spots/random", params={"fmt": "hu"}).json()["id"] == "s205"
    assert client.get("/spots/random", params={"minDiff": 6}).json()["id"] == "s201"
    tagged = client.get("/spots/random", params={"tags": "cbet, barrel"}).json()
    assert tagged["id"] in {"s203", "s204"}

    assert client.get("/spots/random", params={"fmt": "9m"}).status_code == 404
    assert client.get("/spots/random", params={"fmt": "8m"}).status_code == 400
    assert client.get("/spots/random", params={"str": "x"}).status_code == 400


def test_post_result_is_accepted() -> None:
    client, manager = _client()
    body = {"spotId": "s201", "selectedAction": "c", "isCorrect": True, "responseTimeMs": 4200, "evLoss": 0}
    response = client.post("/results", json=body)
    assert response.status_code == 202
    assert response.json() == {"status": "accepted", "stored": 1}
    assert manager.results()[0]["spot_id"] == "s201"

    body["responseTimeMs"] = -1
    assert client.post("/results", json=body).status_code == 422


def test_create_drill_normalizes_request_and_plays_through() -> None:
    client, manager = _client()

    response = client.post("/api/v1/drill", json={"spots": "2", "str": "F", "seed": 5})
    sid = response.json()["session"]
    state = manager._sessions[sid]
    assert state.config.spots == 2
    assert state.config.filters.street == "f"

    first = client.get(f"/api/v1/drill/{sid}/spot").json()
    assert first["spot"]["id"] == "s203"
    assert all("ev" not in option for option in first["spot"]["options"])

    choice = client.post(f"/api/v1/drill/{sid}/choose", json={"option": "b33"}).json()
    assert choice["feedback"]["correct"] is True
    assert choice["feedback"]["best"]["id"] == "b33"
    assert choice["spot"]["options"][1]["ev"] == 1.3

    assert client.post(f"/api/v1/drill/{sid}/choose", json={"option": "x"}).status_code == 400

    _play_session(client, sid)
    summary = client.get(f"/api/v1/drill/{sid}/summary").json()
    assert set(summary) >= {"spots", "decisions", "hits", "accuracy_pct", "ev_lost", "avg_loss_pct", "score"}
    assert summary["decisions"] == 2


def test_create_drill_clamps_spot_count() -> None:
    client, manager = _client()
    sid = client.post("/api/v1/drill", json={"spots": 999}).json()["session"]
    assert manager._sessions[sid].config.spots == 200
    sid = client.post("/api/v1/drill", json={"spots": 0}).json()["session"]
    assert manager._sessions[sid].config.spots == 1


def test_drill_errors() -> None:
    client, _ = _client()
    assert client.post("/api/v1/drill", json={"fmt": "8m"}).status_code == 400
    assert client.post("/api/v1/drill", json={"fmt": "9m"}).status_code == 404
    assert client.get("/api/v1/drill/missing/spot").status_code == 404
    assert client.post("/api/v1/drill/missing/choose", json={"option": "x"}).status_code == 404
    assert client.post("/api/v1/drill/missing/next").status_code == 404
    assert client.get("/api/v1/drill/missing/summary").status_code == 404

    sid = client.post("/api/v1/drill", json={"str": "f"}).json()["session"]
    assert client.post(f"/api/v1/drill/{sid}/choose", json={"option": "r3x"}).status_code == 400
