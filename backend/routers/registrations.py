import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import get_db
from event_service import get_event_or_404
from models import Organizer, Registration
from registration_service import (
    EXPORT_HEADERS,
    check_transaction_id,
    export_rows_for_event,
    list_all,
    list_for_user,
    list_verified_for_event,
    parse_amount,
    parse_event_ids,
    parse_positive_int,
    registered_event_ids_by_email,
    submit_free_registration,
    submit_paid_registration,
    verified_events_for_user,
)
from schemas import (
    EventRegistrationEntry,
    EventResponse,
    RegisteredEventRef,
    RegistrationOverviewEntry,
    SimpleRegistrationCreate,
    TransactionCheckResponse,
    UserRegistrationEntry,
)
from security import require_staff
from utils import PROOF_TYPES, SCREENSHOT_MAX_BYTES, export_rows, read_upload_bytes, require_text

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/registrations", status_code=status.HTTP_201_CREATED)
def create_paid_registration(
    userId: str = Form(None),
    eventIds: str = Form(None),
    transactionId: str = Form(None),
    transactionUsername: str = Form(None),
    transactionTime: str = Form(None),
    transactionDate: str = Form(None),
    transactionAmount: str = Form(None),
    mobileNumber: str = Form(None),
    transactionScreenshot: UploadFile = File(None),
    db: Session = Depends(get_db),
):
    user_id = parse_positive_int(require_text(userId, "userId"), "userId")
    event_ids = parse_event_ids(require_text(eventIds, "eventIds"))
    transaction_id = require_text(transactionId, "transactionId")
    amount = parse_amount(require_text(transactionAmount, "transactionAmount"))
    screenshot = read_upload_bytes(transactionScreenshot, "transactionScreenshot", PROOF_TYPES, SCREENSHOT_MAX_BYTES)

    try:
        rows = submit_paid_registration(
            db,
            user_id=user_id,
            event_ids=event_ids,
            transaction_id=transaction_id,
            transaction_username=require_text(transactionUsername, "transactionUsername"),
            transaction_time=require_text(transactionTime, "transactionTime"),
            transaction_date=require_text(transactionDate, "transactionDate"),
            transaction_amount=amount,
            mobile_number=require_text(mobileNumber, "mobileNumber"),
            screenshot=screenshot,
            screenshot_content_type=transactionScreenshot.content_type,
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Registration conflict for transaction %s", transaction_id)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Transaction ID or registration already exists")

    return {
        "message": "Registration successful",
        "registrationIds": [row.id for row in rows],
        "transactionId": transaction_id,
    }


@router.post("/registrations/simple", status_code=status.HTTP_201_CREATED)
def create_free_registration(payload: SimpleRegistrationCreate, db: Session = Depends(get_db)):
    try:
        row = submit_free_registration(db, payload.user_email, payload.event_id)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already registered for this event")
    return {"message": "Registration successful", "id": row.id}


@router.get("/registrations/check-transaction/{transaction_id}", response_model=TransactionCheckResponse)
def check_transaction(transaction_id: str, db: Session = Depends(get_db)):
    return check_transaction_id(db, transaction_id)


@router.get("/registrations/all", response_model=List[RegistrationOverviewEntry])
def get_all_registrations(
    _: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    return list_all(db)


@router.get("/registrations/event/{event_id}", response_model=List[EventRegistrationEntry])
def get_event_registrations(event_id: int, db: Session = Depends(get_db)):
    return list_verified_for_event(db, event_id)


@router.get("/registrations/event/{event_id}/export")
def export_event_registrations(
    event_id: int,
    format: str = Query("csv"),
    _: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    if format not in ("csv", "xlsx"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="format must be csv or xlsx")
    event = get_event_or_404(db, event_id)
    rows = export_rows_for_event(db, event_id)
    return export_rows(EXPORT_HEADERS, rows, f"event_{event.id}_registrations", format)


@router.get("/registrations/user/{user_id}", response_model=List[UserRegistrationEntry])
def get_user_registrations(user_id: int, db: Session = Depends(get_db)):
    return list_for_user(db, user_id)


@router.get("/registrations/by-email/{email}", response_model=List[RegisteredEventRef])
def get_registered_event_ids(email: str, db: Session = Depends(get_db)):
    return [RegisteredEventRef(event_id=event_id) for event_id in registered_event_ids_by_email(db, email.strip())]


@router.get("/registrations/verified/{user_id}", response_model=List[EventResponse])
def get_verified_events(user_id: int, db: Session = Depends(get_db)):
    return verified_events_for_user(db, user_id)


@router.get("/registrations/{registration_id}/screenshot")
def get_registration_screenshot(
    registration_id: int,
    _: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    registration = db.query(Registration).filter(Registration.id == registration_id).first()
    if not registration:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Registration not found")
    transaction = registration.transaction
    if not transaction or not transaction.screenshot:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Screenshot not found")
    return Response(
        content=transaction.screenshot,
        media_type=transaction.screenshot_content_type or "application/octet-stream",
    )
