import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth import (
    USER_TYPE_ORGANIZER,
    USER_TYPE_USER,
    decode_token,
    get_password_hash,
    issue_tokens,
    principal_id_from_payload,
    verify_password,
)
from database import get_db
from email_workflows import consume_verified_otp, issue_password_otp, verify_password_otp
from emailer import EmailDeliveryError
from models import Organizer, User
from schemas import (
    LoginRequest,
    OrganizerResponse,
    RefreshTokenRequest,
    ResetPasswordRequest,
    SendOtpRequest,
    TokenResponse,
    UserResponse,
    UserSignup,
    VerifyOtpRequest,
)
from security import require_user

router = APIRouter()
logger = logging.getLogger(__name__)

OTP_FAILURES = {
    "not_found": (status.HTTP_400_BAD_REQUEST, "OTP not found. Please request a new one"),
    "expired": (status.HTTP_400_BAD_REQUEST, "OTP has expired. Please request a new one"),
    "too_many_attempts": (status.HTTP_429_TOO_MANY_REQUESTS, "Too many invalid attempts. Please request a new OTP"),
    "invalid": (status.HTTP_400_BAD_REQUEST, "Invalid OTP"),
}


def _normalize_email(email) -> str:
    return str(email or "").strip().lower()


def _token_response(principal, user_type: str, message: str = "Login successful") -> TokenResponse:
    tokens = issue_tokens(principal, user_type)
    if user_type == USER_TYPE_ORGANIZER:
        profile = OrganizerResponse.model_validate(principal)
    else:
        profile = UserResponse.model_validate(principal)
    return TokenResponse(message=message, user=profile, **tokens)


@router.post("/auth/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: UserSignup, db: Session = Depends(get_db)):
    email = _normalize_email(payload.email)
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    user = User(
        full_name=payload.full_name.strip(),
        email=email,
        hashed_password=get_password_hash(payload.password),
        dob=payload.dob,
        mobile=payload.mobile,
        college=payload.college,
        department=payload.department,
        year_of_passing=payload.year_of_passing,
        state=payload.state,
        district=payload.district,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    db.refresh(user)
    logger.info("User %s signed up", user.id)
    return _token_response(user, USER_TYPE_USER, message="Signup successful")


@router.post("/auth/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    email = _normalize_email(payload.email)

    organizer = db.query(Organizer).filter(Organizer.email == email).first()
    if organizer:
        if not verify_password(payload.password, organizer.hashed_password):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
        return _token_response(organizer, USER_TYPE_ORGANIZER)

    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return _token_response(user, USER_TYPE_USER)


@router.post("/auth/refresh", response_model=TokenResponse)
def refresh(payload: RefreshTokenRequest, db: Session = Depends(get_db)):
    claims = decode_token(payload.refresh_token)
    if claims.get("user_type") == USER_TYPE_ORGANIZER:
        organizer_id = principal_id_from_payload(claims, USER_TYPE_ORGANIZER, token_type="refresh")
        organizer = db.query(Organizer).filter(Organizer.id == organizer_id).first()
        if not organizer:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Organizer not found")
        return _token_response(organizer, USER_TYPE_ORGANIZER, message="Token refreshed")

    user_id = principal_id_from_payload(claims, USER_TYPE_USER, token_type="refresh")
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return _token_response(user, USER_TYPE_USER, message="Token refreshed")


@router.get("/auth/me", response_model=UserResponse)
def get_me(user: User = Depends(require_user)):
    return UserResponse.model_validate(user)


@router.post("/auth/send-otp")
def send_otp(payload: SendOtpRequest, db: Session = Depends(get_db)):
    email = _normalize_email(payload.email)
    if not db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    try:
        sent, reason = issue_password_otp(db, email)
    except EmailDeliveryError as exc:
        db.rollback()
        logger.error("OTP email to %s failed: %s", email, exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to send OTP")

    if not sent and reason == "cooldown":
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="OTP already sent. Please wait before requesting another",
        )
    if not sent:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email is required")
    return {"message": "OTP sent to email"}


@router.post("/auth/verify-otp")
def verify_otp(payload: VerifyOtpRequest, db: Session = Depends(get_db)):
    ok, reason = verify_password_otp(db, _normalize_email(payload.email), payload.otp)
    if not ok:
        code, detail = OTP_FAILURES[reason]
        raise HTTPException(status_code=code, detail=detail)
    return {"message": "OTP verified"}


@router.post("/auth/reset-password")
def reset_password(payload: ResetPasswordRequest, db: Session = Depends(get_db)):
    if payload.new_password != payload.confirm_password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Passwords do not match")

    email = _normalize_email(payload.email)
    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if not consume_verified_otp(db, email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="OTP not verified or expired")

    user.hashed_password = get_password_hash(payload.new_password)
    db.commit()
    logger.info("Password reset for user %s", user.id)
    return {"message": "Password reset successful"}
