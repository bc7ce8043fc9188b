import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Sequence, Set, Tuple

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from event_service import event_payload, events_by_id, get_event_or_404
from models import (
    PaymentTransaction,
    Registration,
    RoundStatus,
    SimpleRegistration,
    User,
    VerifiedRegistration,
)
from schemas import (
    EventRegistrationEntry,
    EventResponse,
    RegistrationOverviewEntry,
    TransactionCheckResponse,
    UserRegistrationEntry,
)

logger = logging.getLogger(__name__)

REGISTRATION_TYPE_PAID = "paid"
REGISTRATION_TYPE_FREE = "free"


def parse_event_ids(raw) -> List[int]:
    """Accept a JSON array (or an already decoded list) of distinct positive event ids."""
    if isinstance(raw, (list, tuple)):
        values = list(raw)
    else:
        try:
            values = json.loads(raw)
        except (TypeError, ValueError):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="eventIds must be a JSON array")
    if not isinstance(values, list) or not values:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="eventIds must be a non-empty array")

    event_ids: List[int] = []
    for value in values:
        if isinstance(value, bool):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid event id in eventIds")
        if isinstance(value, str) and value.strip().isdigit():
            value = int(value.strip())
        if not isinstance(value, int) or value < 1:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid event id in eventIds")
        event_ids.append(value)
    if len(set(event_ids)) != len(event_ids):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Duplicate event ids in eventIds")
    return event_ids


def parse_amount(raw) -> Decimal:
    try:
        amount = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="transactionAmount must be a number")
    if not amount.is_finite() or amount < 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="transactionAmount must be a non-negative number")
    return amount


def parse_positive_int(raw, field_name: str) -> int:
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field_name} must be an integer")
    if value < 1:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field_name} must be positive")
    return value


def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def transaction_id_exists(db: Session, transaction_id: str) -> bool:
    return (
        db.query(PaymentTransaction.id)
        .filter(PaymentTransaction.transaction_id == transaction_id)
        .first()
        is not None
    )


def check_transaction_id(db: Session, transaction_id: str) -> TransactionCheckResponse:
    if transaction_id_exists(db, transaction_id.strip()):
        return TransactionCheckResponse(exists=True, message="Transaction ID already exists")
    return TransactionCheckResponse(exists=False, message="Transaction ID is available")


def submit_paid_registration(
    db: Session,
    *,
    user_id: int,
    event_ids: Sequence[int],
    transaction_id: str,
    transaction_username: str,
    transaction_time: str,
    transaction_date: str,
    transaction_amount: Decimal,
    mobile_number: str,
    screenshot: bytes,
    screenshot_content_type: Optional[str] = None,
) -> List[Registration]:
    """Claim the transaction id and insert one registration per event.

    Nothing is committed here; the caller commits once so the claim and every
    registration row land together or not at all.
    """
    user = get_user_or_404(db, user_id)
    events = [get_event_or_404(db, event_id) for event_id in event_ids]

    expected = sum((Decimal(event.registration_fees or 0) for event in events), Decimal(0))
    if transaction_amount != expected:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Transaction amount {transaction_amount} does not match total registration fees {expected}",
        )

    if transaction_id_exists(db, transaction_id):
        logger.warning("Transaction id reuse attempt by user %s", user.id)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Transaction ID already exists")

    existing = (
        db.query(Registration)
        .filter(Registration.user_email == user.email, Registration.event_id.in_(list(event_ids)))
        .first()
    )
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"User is already registered for event {existing.event_id}",
        )

    db.add(
        PaymentTransaction(
            transaction_id=transaction_id,
            user_id=user.id,
            transaction_username=transaction_username,
            transaction_time=transaction_time,
            transaction_date=transaction_date,
            declared_amount=transaction_amount,
            screenshot=screenshot,
            screenshot_content_type=screenshot_content_type,
        )
    )
    db.flush()

    rows = []
    for event in events:
        row = Registration(
            symposium=event.symposium,
            event_id=event.id,
            user_name=user.full_name,
            user_email=user.email,
            mobile_number=mobile_number,
            transaction_id=transaction_id,
            transaction_username=transaction_username,
            transaction_time=transaction_time,
            transaction_date=transaction_date,
            transaction_amount=Decimal(event.registration_fees or 0),
            round1=RoundStatus.PENDING,
            round2=RoundStatus.PENDING,
            round3=RoundStatus.PENDING,
        )
        db.add(row)
        rows.append(row)
    db.flush()
    logger.info("Paid registration for user %s events %s", user.id, list(event_ids))
    return rows


def submit_free_registration(db: Session, user_email: str, event_id: int) -> SimpleRegistration:
    event = get_event_or_404(db, event_id)
    if int(event.registration_fees or 0) > 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This event has a registration fee; submit a paid registration instead",
        )

    existing = (
        db.query(SimpleRegistration)
        .filter(SimpleRegistration.user_email == user_email, SimpleRegistration.event_id == event_id)
        .first()
    )
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already registered for this event")

    row = SimpleRegistration(user_email=user_email, event_id=event_id)
    db.add(row)
    db.flush()
    logger.info("Free registration for %s event %s", user_email, event_id)
    return row


def _verified_pairs(db: Session, event_id: Optional[int] = None) -> Dict[Tuple[int, int], bool]:
    query = db.query(VerifiedRegistration)
    if event_id is not None:
        query = query.filter(VerifiedRegistration.event_id == event_id)
    return {(row.user_id, row.event_id): bool(row.verified) for row in query.all()}


def _users_by_email(db: Session, emails: Set[str]) -> Dict[str, User]:
    if not emails:
        return {}
    return {user.email: user for user in db.query(User).filter(User.email.in_(emails)).all()}


def _amount(value) -> Optional[float]:
    return float(value) if value is not None else None


def list_verified_for_event(db: Session, event_id: int) -> List[EventRegistrationEntry]:
    """Paid and free registrations of ``event_id`` whose user was verified for it."""
    paid = db.query(Registration).filter(Registration.event_id == event_id).order_by(Registration.id).all()
    free = (
        db.query(SimpleRegistration)
        .filter(SimpleRegistration.event_id == event_id)
        .order_by(SimpleRegistration.id)
        .all()
    )
    users = _users_by_email(db, {r.user_email for r in paid} | {r.user_email for r in free})
    verified = _verified_pairs(db, event_id)

    entries: List[EventRegistrationEntry] = []
    for row in paid:
        user = users.get(row.user_email)
        if not user or not verified.get((user.id, event_id)):
            continue
        entries.append(
            EventRegistrationEntry(
                user_id=user.id,
                user_name=user.full_name,
                email=user.email or "N/A",
                college=user.college or "N/A",
                registration_type=REGISTRATION_TYPE_PAID,
                transaction_id=row.transaction_id,
                transaction_username=row.transaction_username,
                transaction_time=row.transaction_time,
                transaction_date=row.transaction_date,
                transaction_amount=_amount(row.transaction_amount),
            )
        )
    for row in free:
        user = users.get(row.user_email)
        if not user or not verified.get((user.id, event_id)):
            continue
        entries.append(
            EventRegistrationEntry(
                user_id=user.id,
                user_name=user.full_name,
                email=user.email or "N/A",
                college=user.college or "N/A",
                registration_type=REGISTRATION_TYPE_FREE,
            )
        )
    return entries


def list_for_user(db: Session, user_id: int) -> List[UserRegistrationEntry]:
    user = get_user_or_404(db, user_id)
    paid = db.query(Registration).filter(Registration.user_email == user.email).order_by(Registration.id).all()
    free = (
        db.query(SimpleRegistration)
        .filter(SimpleRegistration.user_email == user.email)
        .order_by(SimpleRegistration.id)
        .all()
    )
    events = events_by_id(db, [r.event_id for r in paid] + [r.event_id for r in free])
    verified = _verified_pairs(db)

    entries: List[UserRegistrationEntry] = []
    for row in paid:
        event = events.get(row.event_id)
        entries.append(
            UserRegistrationEntry(
                id=row.id,
                event_id=row.event_id,
                user_email=row.user_email,
                registration_type=REGISTRATION_TYPE_PAID,
                symposium=row.symposium.value,
                round1=int(row.round_status(1)),
                round2=int(row.round_status(2)),
                round3=int(row.round_status(3)),
                verified=verified.get((user.id, row.event_id)),
                event=event_payload(event) if event else None,
            )
        )
    for row in free:
        event = events.get(row.event_id)
        if not event:
            continue
        entries.append(
            UserRegistrationEntry(
                id=row.id,
                event_id=row.event_id,
                user_email=row.user_email,
                registration_type=REGISTRATION_TYPE_FREE,
                symposium=event.symposium.value,
                round1=int(RoundStatus.PENDING),
                round2=int(RoundStatus.PENDING),
                round3=int(RoundStatus.PENDING),
                verified=verified.get((user.id, row.event_id)),
                event=event_payload(event),
            )
        )
    return entries


def list_all(
    db: Session,
    event_id: Optional[int] = None,
    email: Optional[str] = None,
) -> List[RegistrationOverviewEntry]:
    paid_query = db.query(Registration)
    free_query = db.query(SimpleRegistration)
    if event_id is not None:
        paid_query = paid_query.filter(Registration.event_id == event_id)
        free_query = free_query.filter(SimpleRegistration.event_id == event_id)
    if email is not None:
        paid_query = paid_query.filter(Registration.user_email == email)
        free_query = free_query.filter(SimpleRegistration.user_email == email)
    paid = paid_query.order_by(Registration.id).all()
    free = free_query.order_by(SimpleRegistration.id).all()
    users = _users_by_email(db, {r.user_email for r in paid} | {r.user_email for r in free})
    events = events_by_id(db, [r.event_id for r in paid] + [r.event_id for r in free])
    verified = _verified_pairs(db, event_id)

    entries: List[RegistrationOverviewEntry] = []
    for row in paid:
        user = users.get(row.user_email)
        event = events.get(row.event_id)
        entries.append(
            RegistrationOverviewEntry(
                id=row.id,
                registration_type=REGISTRATION_TYPE_PAID,
                symposium=row.symposium.value,
                event_id=row.event_id,
                event_name=event.event_name if event else None,
                user_id=user.id if user else None,
                user_name=row.user_name,
                user_email=row.user_email,
                mobile_number=row.mobile_number,
                transaction_id=row.transaction_id,
                transaction_username=row.transaction_username,
                transaction_time=row.transaction_time,
                transaction_date=row.transaction_date,
                transaction_amount=_amount(row.transaction_amount),
                round1=int(row.round_status(1)),
                round2=int(row.round_status(2)),
                round3=int(row.round_status(3)),
                verified=verified.get((user.id, row.event_id)) if user else None,
                created_at=row.created_at,
            )
        )
    for row in free:
        user = users.get(row.user_email)
        event = events.get(row.event_id)
        if not event:
            continue
        entries.append(
            RegistrationOverviewEntry(
                id=row.id,
                registration_type=REGISTRATION_TYPE_FREE,
                symposium=event.symposium.value,
                event_id=row.event_id,
                event_name=event.event_name,
                user_id=user.id if user else None,
                user_name=user.full_name if user else None,
                user_email=row.user_email,
                mobile_number=user.mobile if user else None,
                round1=int(RoundStatus.PENDING),
                round2=int(RoundStatus.PENDING),
                round3=int(RoundStatus.PENDING),
                verified=verified.get((user.id, row.event_id)) if user else None,
                created_at=row.created_at,
            )
        )
    return entries


def list_verified_overview_for_event(db: Session, event_id: int) -> List[RegistrationOverviewEntry]:
    return [entry for entry in list_all(db, event_id=event_id) if entry.verified is True]


def registered_event_ids_by_email(db: Session, email: str) -> List[int]:
    paid = [row.event_id for row in db.query(Registration.event_id).filter(Registration.user_email == email).all()]
    free = [
        row.event_id
        for row in db.query(SimpleRegistration.event_id).filter(SimpleRegistration.user_email == email).all()
    ]
    return sorted(set(paid) | set(free))


def verified_events_for_user(db: Session, user_id: int) -> List[EventResponse]:
    """Events ``user_id`` was verified for, each carrying its symposium name."""
    get_user_or_404(db, user_id)
    rows = (
        db.query(VerifiedRegistration.event_id)
        .filter(VerifiedRegistration.user_id == user_id, VerifiedRegistration.verified.is_(True))
        .order_by(VerifiedRegistration.event_id)
        .all()
    )
    events = events_by_id(db, [row.event_id for row in rows])
    return [event_payload(events[row.event_id]) for row in rows if row.event_id in events]


def find_event_registration(db: Session, event_id: int, email: str) -> RegistrationOverviewEntry:
    email = (email or "").strip()
    if not email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email query parameter is required")
    entries = list_all(db, event_id=event_id, email=email)
    if not entries:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found or not registered for this event",
        )
    return entries[0]


EXPORT_HEADERS = [
    "Registration Type",
    "Name",
    "Email",
    "Mobile",
    "Transaction ID",
    "Transaction Username",
    "Transaction Date",
    "Transaction Time",
    "Amount",
    "Verified",
    "Round 1",
    "Round 2",
    "Round 3",
]


def export_rows_for_event(db: Session, event_id: int) -> List[list]:
    labels = {int(s): s.name.replace("_", " ").title() for s in RoundStatus}
    rows = []
    for entry in list_all(db, event_id=event_id):
        rows.append([
            entry.registration_type,
            entry.user_name or "",
            entry.user_email,
            entry.mobile_number or "",
            entry.transaction_id or "",
            entry.transaction_username or "",
            entry.transaction_date or "",
            entry.transaction_time or "",
            entry.transaction_amount if entry.transaction_amount is not None else "",
            "" if entry.verified is None else ("Yes" if entry.verified else "No"),
            labels[entry.round1],
            labels[entry.round2],
            labels[entry.round3],
        ])
    return rows
