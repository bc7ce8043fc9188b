import logging
from typing import Dict, List, Optional, Tuple, Type, Union

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from models import (
    CarteblancheEvent,
    CarteblancheRound,
    EnigmaEvent,
    EnigmaRound,
    EventAccount,
    EventKey,
    SymposiumName,
    TeamOrIndividual,
)
from schemas import EventCreate, EventResponse, EventUpdate, RoundResponse
from utils import encode_blob

logger = logging.getLogger(__name__)

EventRow = Union[EnigmaEvent, CarteblancheEvent]

EVENT_MODELS: Dict[SymposiumName, Tuple[Type, Type]] = {
    SymposiumName.ENIGMA: (EnigmaEvent, EnigmaRound),
    SymposiumName.CARTEBLANCHE: (CarteblancheEvent, CarteblancheRound),
}


def parse_symposium(value) -> SymposiumName:
    if isinstance(value, SymposiumName):
        return value
    raw = str(getattr(value, "value", value) or "").strip().lower()
    for symposium in SymposiumName:
        if symposium.value.lower() == raw:
            return symposium
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid symposium name")


def find_event(db: Session, event_id: int, symposium: Optional[SymposiumName] = None) -> Optional[EventRow]:
    key = db.query(EventKey).filter(EventKey.id == event_id).first()
    if not key:
        return None
    if symposium is not None and key.symposium != symposium:
        return None
    event_model, _ = EVENT_MODELS[key.symposium]
    return db.query(event_model).filter(event_model.id == event_id).first()


def get_event_or_404(db: Session, event_id: int, symposium: Optional[SymposiumName] = None) -> EventRow:
    event = find_event(db, event_id, symposium)
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


def events_by_id(db: Session, event_ids) -> Dict[int, EventRow]:
    """Batch lookup across both symposium tables."""
    ids = {int(event_id) for event_id in event_ids}
    if not ids:
        return {}
    result: Dict[int, EventRow] = {}
    for event_model, _ in EVENT_MODELS.values():
        for event in db.query(event_model).filter(event_model.id.in_(ids)).all():
            result[event.id] = event
    return result


def list_events(db: Session) -> List[EventRow]:
    events: List[EventRow] = []
    for event_model, _ in EVENT_MODELS.values():
        events.extend(db.query(event_model).all())
    events.sort(key=lambda event: event.id)
    return events


def event_payload(event: EventRow, include_poster: bool = True) -> EventResponse:
    return EventResponse(
        id=event.id,
        symposium_name=event.symposium.value,
        event_name=event.event_name,
        event_category=event.event_category,
        event_description=event.event_description,
        number_of_rounds=event.number_of_rounds,
        team_or_individual=event.team_or_individual.value,
        location=event.location,
        registration_fees=event.registration_fees,
        coordinator_name=event.coordinator_name,
        coordinator_contact_no=event.coordinator_contact_no,
        coordinator_mail=event.coordinator_mail,
        last_date_for_registration=event.last_date_for_registration,
        poster_image=encode_blob(event.poster_image) if include_poster else None,
        created_at=event.created_at,
        rounds=[
            RoundResponse(
                round_number=r.round_number,
                round_details=r.round_details,
                round_date_time=r.round_date_time,
            )
            for r in event.rounds
        ],
    )


def _apply_event_fields(event: EventRow, payload: Union[EventCreate, EventUpdate]) -> None:
    event.event_name = payload.event_name.strip()
    event.event_category = payload.event_category.strip()
    event.event_description = payload.event_description.strip()
    event.number_of_rounds = payload.number_of_rounds
    event.team_or_individual = TeamOrIndividual(payload.team_or_individual.value)
    event.location = payload.location.strip()
    event.registration_fees = payload.registration_fees
    event.coordinator_name = payload.coordinator_name.strip()
    event.coordinator_contact_no = payload.coordinator_contact_no.strip()
    event.coordinator_mail = str(payload.coordinator_mail)
    event.last_date_for_registration = payload.last_date_for_registration


def _replace_rounds(event: EventRow, payload: Union[EventCreate, EventUpdate]) -> None:
    _, round_model = EVENT_MODELS[event.symposium]
    event.rounds = [
        round_model(
            round_number=r.round_number,
            round_details=r.round_details.strip(),
            round_date_time=r.round_date_time,
        )
        for r in sorted(payload.rounds, key=lambda r: r.round_number)
    ]


def create_event(db: Session, payload: EventCreate) -> EventRow:
    symposium = parse_symposium(payload.symposium_name)
    event_model, _ = EVENT_MODELS[symposium]

    key = EventKey(symposium=symposium)
    db.add(key)
    db.flush()

    event = event_model(id=key.id)
    _apply_event_fields(event, payload)
    _replace_rounds(event, payload)
    db.add(event)
    db.flush()
    logger.info("Created %s event %s (%s)", symposium.value, event.id, event.event_name)
    return event


def update_event(db: Session, event: EventRow, payload: EventUpdate) -> EventRow:
    if parse_symposium(payload.symposium_name) != event.symposium:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Symposium of an event cannot be changed")
    _apply_event_fields(event, payload)
    _replace_rounds(event, payload)
    db.flush()
    return event


def delete_event(db: Session, event: EventRow) -> None:
    event_id = event.id
    db.delete(event)
    db.flush()
    db.query(EventAccount).filter(EventAccount.event_id == event_id).delete(synchronize_session=False)
    db.query(EventKey).filter(EventKey.id == event_id).delete(synchronize_session=False)
    db.flush()
    logger.info("Deleted event %s", event_id)
