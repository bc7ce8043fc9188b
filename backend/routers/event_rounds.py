from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_db
from eligibility_service import notify_round_results, set_round_eligibility
from models import Organizer
from schemas import RoundEligibilityUpdate, RoundNotifyRequest
from security import require_staff

router = APIRouter()


@router.post("/events/{event_id}/rounds/{round_number}/eligible")
def update_round_eligibility(
    event_id: int,
    round_number: int,
    payload: RoundEligibilityUpdate,
    _: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    registration = set_round_eligibility(db, event_id, round_number, payload.user_id, payload.status)
    return {
        "message": "Eligibility updated successfully",
        "userId": payload.user_id,
        "eventId": event_id,
        "roundNumber": round_number,
        "status": int(registration.round_status(round_number)),
    }


@router.post("/events/{event_id}/rounds/{round_number}/notify")
def notify_round(
    event_id: int,
    round_number: int,
    payload: RoundNotifyRequest,
    _: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    outcome = notify_round_results(
        db,
        event_id,
        round_number,
        payload.eligible_message,
        payload.ineligible_message,
    )
    if outcome.failed:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to send {len(outcome.failed)} of {outcome.total} emails",
        )
    return {
        "message": "Emails sent successfully",
        "eligibleCount": len(outcome.eligible),
        "ineligibleCount": len(outcome.ineligible),
    }
