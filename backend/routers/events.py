import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import get_db
from event_service import (
    create_event,
    delete_event,
    event_payload,
    get_event_or_404,
    list_events,
    parse_symposium,
    update_event,
)
from models import Account, EventAccount, Organizer
from registration_service import find_event_registration, list_verified_overview_for_event
from routers.accounts import account_payload, get_account_or_404
from schemas import AccountAssign, AccountResponse, EventCreate, EventResponse, EventUpdate, RegistrationOverviewEntry
from security import require_staff, staff_label
from utils import IMAGE_TYPES, POSTER_MAX_BYTES, read_upload_bytes

router = APIRouter()
logger = logging.getLogger(__name__)


def _symposium_filter(symposium: Optional[str]):
    return parse_symposium(symposium) if symposium else None


@router.post("/events", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
def create_event_route(
    payload: EventCreate,
    organizer: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    event = create_event(db, payload)
    db.commit()
    db.refresh(event)
    logger.info("Event %s created by %s", event.id, staff_label(organizer))
    return event_payload(event)


@router.get("/events", response_model=List[EventResponse])
def list_events_route(symposium: Optional[str] = Query(None), db: Session = Depends(get_db)):
    wanted = _symposium_filter(symposium)
    return [
        event_payload(event)
        for event in list_events(db)
        if wanted is None or event.symposium == wanted
    ]


@router.get("/events/{event_id}", response_model=EventResponse)
def get_event_route(event_id: int, symposium: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return event_payload(get_event_or_404(db, event_id, _symposium_filter(symposium)))


@router.put("/events/{event_id}", response_model=EventResponse)
def update_event_route(
    event_id: int,
    payload: EventUpdate,
    organizer: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    event = get_event_or_404(db, event_id)
    update_event(db, event, payload)
    db.commit()
    db.refresh(event)
    logger.info("Event %s updated by %s", event.id, staff_label(organizer))
    return event_payload(event)


@router.delete("/events/{event_id}")
def delete_event_route(
    event_id: int,
    organizer: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    event = get_event_or_404(db, event_id)
    delete_event(db, event)
    db.commit()
    logger.info("Event %s deleted by %s", event_id, staff_label(organizer))
    return {"message": "Event deleted successfully"}


@router.post("/events/{event_id}/poster", response_model=EventResponse)
def upload_poster(
    event_id: int,
    poster: UploadFile = File(None),
    _: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    event = get_event_or_404(db, event_id)
    event.poster_image = read_upload_bytes(poster, "poster", IMAGE_TYPES, POSTER_MAX_BYTES)
    event.poster_content_type = poster.content_type
    db.commit()
    db.refresh(event)
    return event_payload(event)


@router.delete("/events/{event_id}/poster", response_model=EventResponse)
def remove_poster(
    event_id: int,
    _: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    event = get_event_or_404(db, event_id)
    event.poster_image = None
    event.poster_content_type = None
    db.commit()
    db.refresh(event)
    return event_payload(event)


@router.post("/events/{event_id}/accounts", status_code=status.HTTP_201_CREATED)
def assign_account(
    event_id: int,
    payload: AccountAssign,
    organizer: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    get_event_or_404(db, event_id)
    get_account_or_404(db, payload.account_id)
    existing = (
        db.query(EventAccount)
        .filter(EventAccount.event_id == event_id, EventAccount.account_id == payload.account_id)
        .first()
    )
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Account already assigned to this event")

    db.add(EventAccount(event_id=event_id, account_id=payload.account_id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Account already assigned to this event")
    logger.info("Account %s assigned to event %s by %s", payload.account_id, event_id, staff_label(organizer))
    return {"message": "Account assigned", "eventId": event_id, "accountId": payload.account_id}


@router.get("/events/{event_id}/accounts", response_model=List[AccountResponse])
def list_event_accounts(event_id: int, db: Session = Depends(get_db)):
    get_event_or_404(db, event_id)
    accounts = (
        db.query(Account)
        .join(EventAccount, EventAccount.account_id == Account.id)
        .filter(EventAccount.event_id == event_id)
        .order_by(Account.id)
        .all()
    )
    return [account_payload(a) for a in accounts]


@router.delete("/events/{event_id}/accounts/{account_id}")
def unassign_account(
    event_id: int,
    account_id: int,
    _: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    deleted = (
        db.query(EventAccount)
        .filter(EventAccount.event_id == event_id, EventAccount.account_id == account_id)
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account is not assigned to this event")
    db.commit()
    return {"message": "Account unassigned"}


@router.get("/events/{event_id}/registrations", response_model=List[RegistrationOverviewEntry])
def list_event_registrations(
    event_id: int,
    _: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    get_event_or_404(db, event_id)
    return list_verified_overview_for_event(db, event_id)


@router.get("/events/{event_id}/registrations/search", response_model=RegistrationOverviewEntry)
def search_registrations(
    event_id: int,
    email: str = Query(""),
    _: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    get_event_or_404(db, event_id)
    return find_event_registration(db, event_id, email)
