import logging
from dataclasses import dataclass, field
from typing import List

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from email_templates import build_round_result_email
from emailer import EmailDeliveryError, send_email
from event_service import get_event_or_404
from models import ROUND_NUMBERS, Registration, RoundStatus
from registration_service import get_user_or_404

logger = logging.getLogger(__name__)


@dataclass
class NotifyOutcome:
    eligible: List[str] = field(default_factory=list)
    ineligible: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.eligible) + len(self.ineligible)


def validate_round_number(round_number: int) -> int:
    if round_number not in ROUND_NUMBERS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid round number")
    return round_number


def set_round_eligibility(db: Session, event_id: int, round_number: int, user_id: int, value: int) -> Registration:
    validate_round_number(round_number)
    if value not in (RoundStatus.NOT_ELIGIBLE, RoundStatus.ELIGIBLE):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Status must be 0 or 1")

    user = get_user_or_404(db, user_id)
    event = get_event_or_404(db, event_id)
    if round_number > int(event.number_of_rounds or 0):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Event does not have this round")

    registration = (
        db.query(Registration)
        .filter(Registration.user_email == user.email, Registration.event_id == event_id)
        .first()
    )
    if not registration:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Registration not found")

    if round_number > 1 and registration.round_status(round_number - 1) != RoundStatus.ELIGIBLE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"User is not eligible for round {round_number - 1}",
        )

    registration.set_round_status(round_number, RoundStatus(value))
    db.commit()
    logger.info(
        "Round %s of event %s for user %s set to %s",
        round_number,
        event_id,
        user_id,
        RoundStatus(value).name,
    )
    return registration


def _cohorts(registrations: List[Registration], round_number: int):
    eligible: List[str] = []
    ineligible: List[str] = []
    seen = set()
    for registration in registrations:
        email = (registration.user_email or "").strip()
        if not email or email.lower() in seen:
            continue
        verdict = registration.round_status(round_number)
        if verdict == RoundStatus.ELIGIBLE:
            eligible.append(email)
        elif verdict == RoundStatus.NOT_ELIGIBLE:
            ineligible.append(email)
        else:
            continue
        seen.add(email.lower())
    return eligible, ineligible


def notify_round_results(
    db: Session,
    event_id: int,
    round_number: int,
    eligible_message: str,
    ineligible_message: str,
) -> NotifyOutcome:
    """Mail each decided registrant of the round individually. Pending registrants are skipped."""
    validate_round_number(round_number)
    event = get_event_or_404(db, event_id)
    registrations = db.query(Registration).filter(Registration.event_id == event_id).order_by(Registration.id).all()
    if not registrations:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No registrations found for this event")

    outcome = NotifyOutcome()
    outcome.eligible, outcome.ineligible = _cohorts(registrations, round_number)

    batches = (
        (outcome.eligible, build_round_result_email(event.event_name, round_number, eligible_message, True)),
        (outcome.ineligible, build_round_result_email(event.event_name, round_number, ineligible_message, False)),
    )
    for recipients, (subject, html, text) in batches:
        for email in recipients:
            try:
                send_email(email, subject, html, text)
            except EmailDeliveryError as exc:
                logger.error("Round result email to %s failed: %s", email, exc)
                outcome.failed.append(email)

    logger.info(
        "Round %s results for event %s: %s eligible, %s not eligible, %s failed",
        round_number,
        event_id,
        len(outcome.eligible),
        len(outcome.ineligible),
        len(outcome.failed),
    )
    return outcome
