from pathlib import Path
import os
import sys
import tempfile

ROOT = Path(__file__).resolve().parents[1]
BACKEND_DIR = ROOT / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

TEST_DB = Path(tempfile.gettempdir()) / f"symposium_tests_{os.getpid()}.db"
ADMIN_KEY = "test-admin-key"

os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB}"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-with-more-than-32-characters"
os.environ["ADMIN_API_KEY"] = ADMIN_KEY
os.environ["APP_TIMEZONE"] = "UTC"

import pytest
from fastapi.testclient import TestClient

from auth import get_password_hash
from bootstrap import ensure_symposium_status_rows
from database import Base, SessionLocal, engine
from models import User
from server import app


@pytest.fixture(autouse=True)
def fresh_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        ensure_symposium_status_rows(session)
    finally:
        session.close()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def admin_headers():
    return {"X-ADMIN-KEY": ADMIN_KEY}


@pytest.fixture
def sent_emails(monkeypatch):
    import eligibility_service
    import email_workflows

    sent = []

    def fake_send(to_email, subject, html, text):
        sent.append({"to": to_email, "subject": subject, "html": html, "text": text})

    monkeypatch.setattr(eligibility_service, "send_email", fake_send)
    monkeypatch.setattr(email_workflows, "send_email", fake_send)
    return sent


@pytest.fixture
def make_user(db):
    def _make(email="student@example.com", full_name="Test Student", college="Test College", password="secret123"):
        user = User(
            full_name=full_name,
            email=email,
            hashed_password=get_password_hash(password),
            mobile="9876543210",
            college=college,
            department="CSE",
            year_of_passing=2026,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_event(client, admin_headers):
    def _make(name="Code Sprint", symposium="Enigma", fees=0, rounds=3):
        payload = {
            "symposiumName": symposium,
            "eventName": name,
            "eventCategory": "Technical",
            "eventDescription": f"{name} description",
            "numberOfRounds": rounds,
            "teamOrIndividual": "Individual",
            "location": "Main Hall",
            "registrationFees": fees,
            "coordinatorName": "Coordinator",
            "coordinatorContactNo": "9000000000",
            "coordinatorMail": "coordinator@example.com",
            "lastDateForRegistration": "2026-03-01T23:59:00",
            "rounds": [
                {
                    "roundNumber": n,
                    "roundDetails": f"Round {n} details",
                    "roundDateTime": f"2026-03-0{n + 1}T10:00:00",
                }
                for n in range(1, rounds + 1)
            ],
        }
        response = client.post("/api/events", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _make


@pytest.fixture
def paid_registration(client):
    def _submit(user_id, event_ids, transaction_id="TXN1", amount=None, screenshot=b"\x89PNG fake image"):
        data = {
            "userId": str(user_id),
            "eventIds": str(list(event_ids)),
            "transactionId": transaction_id,
            "transactionUsername": "payer",
            "transactionTime": "10:30",
            "transactionDate": "2026-02-01",
            "transactionAmount": str(amount if amount is not None else 0),
            "mobileNumber": "9876543210",
        }
        files = {"transactionScreenshot": ("proof.png", screenshot, "image/png")}
        return client.post("/api/registrations", data=data, files=files)

    return _submit
