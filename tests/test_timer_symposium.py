from models import RegistrationTimer


def test_timer_keeps_single_active_row(client, db, admin_headers):
    assert client.get("/api/timer").status_code == 404

    first = client.post("/api/timer", json={"endTime": "2026-03-01T18:00:00Z"}, headers=admin_headers)
    assert first.status_code == 201
    second = client.post("/api/timer", json={"endTime": "2026-03-02T18:00:00Z"}, headers=admin_headers)
    assert second.status_code == 201

    active = db.query(RegistrationTimer).filter(RegistrationTimer.is_active.is_(True)).all()
    assert len(active) == 1
    assert db.query(RegistrationTimer).count() == 2

    current = client.get("/api/timer").json()
    assert current["isActive"] is True
    assert current["endTime"].startswith("2026-03-02T18:00:00")


def test_timer_stop(client, admin_headers):
    assert client.post("/api/timer", json={"endTime": "2026-03-01T18:00:00Z"}).status_code == 401
    client.post("/api/timer", json={"endTime": "2026-03-01T18:00:00Z"}, headers=admin_headers)

    assert client.delete("/api/timer", headers=admin_headers).status_code == 200
    assert client.get("/api/timer").status_code == 404
    assert client.delete("/api/timer", headers=admin_headers).status_code == 404


def test_symposium_status_start_stop(client, admin_headers):
    status = client.get("/api/symposium/status").json()
    assert status["success"] is True
    assert {row["symposiumName"]: row["isOpen"] for row in status["data"]} == {
        "Enigma": False,
        "Carteblanche": False,
    }

    started = client.post(
        "/api/symposium/start",
        json={"symposiumName": "enigma", "startDate": "2026-03-01"},
        headers=admin_headers,
    )
    assert started.status_code == 200
    body = started.json()
    assert body["success"] is True
    assert body["title"]
    assert body["data"] == {"symposiumName": "Enigma", "isOpen": True, "startDate": "2026-03-01"}

    stopped = client.post("/api/symposium/stop", json={"symposiumName": "Enigma"}, headers=admin_headers)
    assert stopped.json()["data"]["isOpen"] is False


def test_symposium_unknown_name(client, admin_headers):
    response = client.post(
        "/api/symposium/start",
        json={"symposiumName": "Nope", "startDate": "2026-03-01"},
        headers=admin_headers,
    )
    assert response.status_code == 404
    assert response.json()["success"] is False


def test_public_routes(client):
    assert client.get("/api/health").json() == {"status": "healthy"}
    assert "message" in client.get("/api/").json()
    routes = client.get("/api/routes").json()
    assert {"path": "/api/health", "methods": ["GET"]} in routes
    paths = {route["path"] for route in routes}
    assert "/api/placements/submit-experience" in paths
    assert "/api/registrations" in paths
    assert "/api/events/{event_id}/rounds/{round_number}/notify" in paths
