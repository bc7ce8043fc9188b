import hashlib
import hmac
import os
import secrets

OTP_LENGTH = 6
OTP_TTL_SECONDS = int(os.environ.get("OTP_TTL_SECONDS", 10 * 60))
OTP_RESEND_COOLDOWN_SECONDS = int(os.environ.get("OTP_RESEND_COOLDOWN_SECONDS", 60))
OTP_MAX_ATTEMPTS = int(os.environ.get("OTP_MAX_ATTEMPTS", 5))


def generate_otp() -> str:
    # Six digits, never starting with zero.
    return str(secrets.randbelow(9 * 10 ** (OTP_LENGTH - 1)) + 10 ** (OTP_LENGTH - 1))


def hash_otp(email: str, otp: str) -> str:
    payload = f"{email.strip().lower()}:{otp.strip()}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def otp_matches(email: str, otp: str, otp_hash: str) -> bool:
    return hmac.compare_digest(hash_otp(email, otp), otp_hash or "")
