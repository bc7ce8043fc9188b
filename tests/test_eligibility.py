from emailer import EmailDeliveryError
from models import Registration, RoundStatus


def _eligible(client, headers, event_id, round_number, user_id, status):
    return client.post(
        f"/api/events/{event_id}/rounds/{round_number}/eligible",
        json={"userId": user_id, "status": status},
        headers=headers,
    )


def _notify(client, headers, event_id, round_number, eligible="Congrats", ineligible="Sorry"):
    return client.post(
        f"/api/events/{event_id}/rounds/{round_number}/notify",
        json={"eligibleMessage": eligible, "ineligibleMessage": ineligible},
        headers=headers,
    )


def _registered(make_user, make_event, paid_registration, emails=("student@example.com",), rounds=3):
    event = make_event(fees=100, rounds=rounds)
    users = []
    for index, email in enumerate(emails):
        user = make_user(email)
        response = paid_registration(user.id, [event["id"]], f"TXN{index}", amount=100)
        assert response.status_code == 201
        users.append(user)
    return event, users


def test_round_eligibility_is_idempotent(client, db, admin_headers, make_user, make_event, paid_registration):
    event, (user,) = _registered(make_user, make_event, paid_registration)

    for _ in range(2):
        response = _eligible(client, admin_headers, event["id"], 1, user.id, 1)
        assert response.status_code == 200
        assert response.json()["status"] == 1

    rows = db.query(Registration).all()
    assert len(rows) == 1
    assert rows[0].round1 == RoundStatus.ELIGIBLE


def test_later_round_requires_previous_eligible(client, admin_headers, make_user, make_event, paid_registration):
    event, (user,) = _registered(make_user, make_event, paid_registration)

    response = _eligible(client, admin_headers, event["id"], 2, user.id, 1)
    assert response.status_code == 400

    _eligible(client, admin_headers, event["id"], 1, user.id, 0)
    assert _eligible(client, admin_headers, event["id"], 2, user.id, 1).status_code == 400

    # A decided round can be flipped.
    assert _eligible(client, admin_headers, event["id"], 1, user.id, 1).status_code == 200
    assert _eligible(client, admin_headers, event["id"], 2, user.id, 1).status_code == 200


def test_round_eligibility_validation(client, admin_headers, make_user, make_event, paid_registration):
    event, (user,) = _registered(make_user, make_event, paid_registration, rounds=1)

    assert _eligible(client, admin_headers, event["id"], 4, user.id, 1).status_code == 400
    assert _eligible(client, admin_headers, event["id"], 1, user.id, 2).status_code == 400
    assert _eligible(client, admin_headers, event["id"], 2, user.id, 1).status_code == 400


def test_round_eligibility_not_found(client, admin_headers, make_user, make_event, paid_registration):
    event, (user,) = _registered(make_user, make_event, paid_registration)
    outsider = make_user("outsider@example.com")

    assert _eligible(client, admin_headers, event["id"], 1, 999, 1).status_code == 404
    assert _eligible(client, admin_headers, 999, 1, user.id, 1).status_code == 404
    response = _eligible(client, admin_headers, event["id"], 1, outsider.id, 1)
    assert response.status_code == 404
    assert response.json()["message"] == "Registration not found"


def test_notify_single_eligible_user(client, admin_headers, sent_emails, make_user, make_event, paid_registration):
    event, (user,) = _registered(make_user, make_event, paid_registration)
    _eligible(client, admin_headers, event["id"], 1, user.id, 1)

    response = _notify(client, admin_headers, event["id"], 1)
    assert response.status_code == 200
    assert response.json()["eligibleCount"] == 1
    assert response.json()["ineligibleCount"] == 0
    assert len(sent_emails) == 1
    assert sent_emails[0]["to"] == user.email
    assert "Congrats" in sent_emails[0]["text"]
    assert sent_emails[0]["subject"] == "Update for Code Sprint - Round 1"


def test_notify_skips_pending_and_addresses_individually(
    client, admin_headers, sent_emails, make_user, make_event, paid_registration
):
    emails = ("a@example.com", "b@example.com", "c@example.com", "d@example.com")
    event, users = _registered(make_user, make_event, paid_registration, emails=emails)
    _eligible(client, admin_headers, event["id"], 1, users[0].id, 1)
    _eligible(client, admin_headers, event["id"], 1, users[1].id, 1)
    _eligible(client, admin_headers, event["id"], 1, users[2].id, 0)

    response = _notify(client, admin_headers, event["id"], 1)
    assert response.status_code == 200
    assert response.json()["eligibleCount"] == 2
    assert response.json()["ineligibleCount"] == 1

    recipients = [mail["to"] for mail in sent_emails]
    assert sorted(recipients) == ["a@example.com", "b@example.com", "c@example.com"]
    assert all("," not in to for to in recipients)
    ineligible_mail = next(mail for mail in sent_emails if mail["to"] == "c@example.com")
    assert "Sorry" in ineligible_mail["text"]
    assert "not eligible" in ineligible_mail["text"]


def test_notify_errors(client, admin_headers, sent_emails, make_event):
    event = make_event(fees=100)
    assert _notify(client, admin_headers, event["id"], 1).status_code == 404
    assert _notify(client, admin_headers, event["id"], 5).status_code == 400
    assert _notify(client, admin_headers, 999, 1).status_code == 404
    assert sent_emails == []


def test_notify_reports_failed_sends(client, admin_headers, monkeypatch, make_user, make_event, paid_registration):
    import eligibility_service

    event, users = _registered(make_user, make_event, paid_registration, emails=("ok@example.com", "bad@example.com"))
    _eligible(client, admin_headers, event["id"], 1, users[0].id, 1)
    _eligible(client, admin_headers, event["id"], 1, users[1].id, 0)

    def flaky_send(to_email, subject, html, text):
        if to_email.startswith("bad"):
            raise EmailDeliveryError("relay down")

    monkeypatch.setattr(eligibility_service, "send_email", flaky_send)
    response = _notify(client, admin_headers, event["id"], 1)
    assert response.status_code == 500
    assert response.json()["message"] == "Failed to send 1 of 2 emails"
