import smtplib
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException

import emailer
from email_templates import build_otp_email, build_round_result_email
from otp_tokens import OTP_LENGTH, generate_otp, hash_otp, otp_matches
from registration_service import parse_event_ids
from time_utils import has_passed, seconds_since


def test_generate_otp_shape():
    for _ in range(50):
        otp = generate_otp()
        assert len(otp) == OTP_LENGTH
        assert otp.isdigit()
        assert otp[0] != "0"


def test_otp_hash_is_bound_to_email():
    digest = hash_otp("Student@Example.com", "123456")
    assert otp_matches("student@example.com", "123456", digest)
    assert not otp_matches("other@example.com", "123456", digest)
    assert not otp_matches("student@example.com", "654321", digest)
    assert not otp_matches("student@example.com", "123456", None)


def test_round_result_email_escapes_message():
    subject, html, text = build_round_result_email("Code <Sprint>", 2, "See you <b>soon</b>", eligible=True)
    assert subject == "Update for Code <Sprint> - Round 2"
    assert "Code &lt;Sprint&gt;" in html
    assert "&lt;b&gt;soon&lt;/b&gt;" in html
    assert "You are eligible" in text

    _, _, text = build_round_result_email("Quiz", 1, "Better luck", eligible=False)
    assert "You are not eligible" in text


def test_otp_email_mentions_validity():
    subject, html, text = build_otp_email("482913", validity_minutes=10)
    assert "482913" in html and "482913" in text
    assert "10 minutes" in text
    assert subject == "Your OTP for Password Reset"


def test_parse_event_ids():
    assert parse_event_ids("[3, 1, 2]") == [3, 1, 2]
    assert parse_event_ids(["4", 5]) == [4, 5]
    for raw in ("not json", "{}", "[]", "[0]", "[true]", "[1.5]", "[1, 1]"):
        with pytest.raises(HTTPException) as exc:
            parse_event_ids(raw)
        assert exc.value.status_code == 400


class _FakeSMTP:
    sent = []
    fail_hosts = set()

    def __init__(self, host, port, timeout=None):
        self.host = host

    def __enter__(self):
        if self.host in self.fail_hosts:
            raise smtplib.SMTPConnectError(421, "unavailable")
        return self

    def __exit__(self, *args):
        return False

    def ehlo(self):
        pass

    def starttls(self, context=None):
        pass

    def login(self, user, password):
        pass

    def send_message(self, message):
        self.sent.append((self.host, message["To"], message["From"]))


@pytest.fixture
def fake_smtp(monkeypatch):
    _FakeSMTP.sent = []
    _FakeSMTP.fail_hosts = set()
    monkeypatch.setattr(emailer.smtplib, "SMTP", _FakeSMTP)
    for prefix, host in (("SMTP_PRIMARY", "primary.local"), ("SMTP_SECONDARY", "secondary.local")):
        monkeypatch.setenv(f"{prefix}_HOST", host)
        monkeypatch.setenv(f"{prefix}_PORT", "587")
        monkeypatch.setenv(f"{prefix}_FROM", f"noreply@{host}")
        monkeypatch.setenv(f"{prefix}_TLS", "false")
    return _FakeSMTP


def test_send_email_uses_primary_relay(fake_smtp):
    emailer.send_email("a@example.com", "Hi", "<p>Hi</p>", "Hi")
    assert fake_smtp.sent == [("primary.local", "a@example.com", "noreply@primary.local")]


def test_send_email_falls_back_to_secondary(fake_smtp):
    fake_smtp.fail_hosts.add("primary.local")
    emailer.send_email("a@example.com", "Hi", "<p>Hi</p>", "Hi")
    assert fake_smtp.sent == [("secondary.local", "a@example.com", "noreply@secondary.local")]


def test_send_email_raises_when_all_relays_fail(fake_smtp):
    fake_smtp.fail_hosts.update({"primary.local", "secondary.local"})
    with pytest.raises(emailer.EmailDeliveryError):
        emailer.send_email("a@example.com", "Hi", "<p>Hi</p>", "Hi")


def test_send_email_without_configuration(monkeypatch):
    for prefix in emailer.RELAY_PREFIXES:
        monkeypatch.delenv(f"{prefix}_HOST", raising=False)
    with pytest.raises(emailer.EmailDeliveryError):
        emailer.send_email("a@example.com", "Hi", "<p>Hi</p>", "Hi")


def test_naive_timestamps_are_read_as_utc():
    now = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
    stored = datetime(2026, 3, 1, 11, 59, 30)

    assert seconds_since(stored, now) == 30
    assert has_passed(stored, now)
    assert not has_passed(now + timedelta(seconds=1), now)
    assert has_passed(now, now)
