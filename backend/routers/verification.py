from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from database import get_db
from models import Organizer
from schemas import VerificationRequest
from security import require_staff
from verification_service import set_verification

router = APIRouter()


@router.post("/verification")
def verify_registration(
    payload: VerificationRequest,
    _: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    row, created = set_verification(db, payload.user_id, payload.event_id, payload.verified)
    body = {
        "message": "Verification status saved" if created else "Verification status updated",
        "userId": row.user_id,
        "eventId": row.event_id,
        "verified": bool(row.verified),
    }
    return JSONResponse(status_code=201 if created else 200, content=body)
