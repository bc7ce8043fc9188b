from models import VerifiedRegistration


def test_verification_upsert(client, db, admin_headers, make_user, make_event):
    user = make_user()
    event = make_event()
    payload = {"userId": user.id, "eventId": event["id"], "verified": True}

    created = client.post("/api/verification", json=payload, headers=admin_headers)
    assert created.status_code == 201
    assert created.json()["verified"] is True

    updated = client.post("/api/verification", json=dict(payload, verified=False), headers=admin_headers)
    assert updated.status_code == 200
    assert updated.json()["verified"] is False

    rows = db.query(VerifiedRegistration).all()
    assert len(rows) == 1
    assert rows[0].verified is False


def test_verification_unknown_user_or_event(client, admin_headers, make_user, make_event):
    user = make_user()
    event = make_event()

    response = client.post(
        "/api/verification",
        json={"userId": 999, "eventId": event["id"], "verified": True},
        headers=admin_headers,
    )
    assert response.status_code == 404
    response = client.post(
        "/api/verification",
        json={"userId": user.id, "eventId": 999, "verified": True},
        headers=admin_headers,
    )
    assert response.status_code == 404


def test_verification_requires_staff(client, make_user, make_event):
    user = make_user()
    event = make_event()
    response = client.post("/api/verification", json={"userId": user.id, "eventId": event["id"], "verified": True})
    assert response.status_code == 401
    wrong_key = client.post(
        "/api/verification",
        json={"userId": user.id, "eventId": event["id"], "verified": True},
        headers={"X-ADMIN-KEY": "nope"},
    )
    assert wrong_key.status_code == 401
