import logging
from datetime import datetime, timedelta
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from email_templates import build_otp_email
from emailer import send_email
from models import PasswordResetOtp
from otp_tokens import (
    OTP_MAX_ATTEMPTS,
    OTP_RESEND_COOLDOWN_SECONDS,
    OTP_TTL_SECONDS,
    generate_otp,
    hash_otp,
    otp_matches,
)
from time_utils import has_passed, now_tz, seconds_since

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return now_tz()


def _normalize_email(email: str) -> str:
    return str(email or "").strip().lower()


def _get_otp_row(db: Session, email: str) -> Optional[PasswordResetOtp]:
    return db.query(PasswordResetOtp).filter(PasswordResetOtp.email == _normalize_email(email)).first()


def _is_expired(row: PasswordResetOtp) -> bool:
    return has_passed(row.expires_at, _now())


def issue_password_otp(db: Session, email: str) -> Tuple[bool, str]:
    """Store a fresh OTP hash for ``email`` and mail the code. Returns (sent, reason)."""
    email = _normalize_email(email)
    if not email:
        return False, "missing_email"

    row = _get_otp_row(db, email)
    if row and row.sent_at:
        delta = seconds_since(row.sent_at, _now())
        if delta < OTP_RESEND_COOLDOWN_SECONDS:
            return False, "cooldown"

    otp = generate_otp()
    if not row:
        row = PasswordResetOtp(email=email)
        db.add(row)
    row.otp_hash = hash_otp(email, otp)
    row.sent_at = _now()
    row.expires_at = _now() + timedelta(seconds=OTP_TTL_SECONDS)
    row.verified_at = None
    row.attempts = 0
    db.flush()

    subject, html, text = build_otp_email(otp, validity_minutes=max(1, OTP_TTL_SECONDS // 60))
    send_email(email, subject, html, text)
    db.commit()
    logger.info("Password reset OTP issued for %s", email)
    return True, "sent"


def verify_password_otp(db: Session, email: str, otp: str) -> Tuple[bool, str]:
    row = _get_otp_row(db, email)
    if not row:
        return False, "not_found"
    if _is_expired(row):
        return False, "expired"
    if int(row.attempts or 0) >= OTP_MAX_ATTEMPTS:
        return False, "too_many_attempts"

    if not otp_matches(row.email, otp, row.otp_hash):
        row.attempts = int(row.attempts or 0) + 1
        db.commit()
        return False, "invalid"

    row.verified_at = _now()
    db.commit()
    return True, "verified"


def consume_verified_otp(db: Session, email: str) -> bool:
    """Delete a verified, unexpired OTP. The caller commits together with the password change."""
    row = _get_otp_row(db, email)
    if not row or row.verified_at is None or _is_expired(row):
        return False
    db.delete(row)
    return True
