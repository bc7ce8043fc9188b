import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from event_service import events_by_id, get_event_or_404, parse_symposium
from models import CartItem, User
from registration_service import get_user_or_404, submit_free_registration, submit_paid_registration
from schemas import CartEventDetails, CartItemResponse

logger = logging.getLogger(__name__)


@dataclass
class PaymentProof:
    transaction_id: str
    transaction_username: str
    transaction_time: str
    transaction_date: str
    transaction_amount: Decimal
    mobile_number: str
    screenshot: bytes
    screenshot_content_type: Optional[str] = None


def _get_user_by_email_or_404(db: Session, email: str) -> User:
    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def add_to_cart(db: Session, user_email: str, event_id: int, symposium_name: str) -> CartItem:
    symposium = parse_symposium(symposium_name)
    user = _get_user_by_email_or_404(db, user_email)
    get_event_or_404(db, event_id, symposium)

    existing = (
        db.query(CartItem)
        .filter(
            CartItem.user_id == user.id,
            CartItem.event_id == event_id,
            CartItem.symposium_name == symposium,
        )
        .first()
    )
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Event already in cart")

    item = CartItem(user_id=user.id, event_id=event_id, symposium_name=symposium)
    db.add(item)
    db.flush()
    return item


def list_cart(db: Session, user_id: int) -> List[CartItemResponse]:
    get_user_or_404(db, user_id)
    items = db.query(CartItem).filter(CartItem.user_id == user_id).order_by(CartItem.cart_id).all()
    events = events_by_id(db, [item.event_id for item in items])

    payload: List[CartItemResponse] = []
    for item in items:
        event = events.get(item.event_id)
        if not event or event.symposium != item.symposium_name:
            continue
        payload.append(
            CartItemResponse(
                cart_id=item.cart_id,
                event_id=item.event_id,
                symposium_name=item.symposium_name.value,
                event_details=CartEventDetails(
                    event_name=event.event_name,
                    event_category=event.event_category,
                    event_description=event.event_description,
                    registration_fees=event.registration_fees,
                    last_date_for_registration=event.last_date_for_registration,
                    coordinator_name=event.coordinator_name,
                    coordinator_contact_no=event.coordinator_contact_no,
                ),
            )
        )
    return payload


def remove_from_cart(db: Session, cart_id: int, user_email: str) -> None:
    user = _get_user_by_email_or_404(db, user_email)
    item = db.query(CartItem).filter(CartItem.cart_id == cart_id, CartItem.user_id == user.id).first()
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cart item not found")
    db.delete(item)
    db.flush()


def checkout_cart(db: Session, user_id: int, proof: Optional[PaymentProof] = None) -> dict:
    """Turn the cart into registrations: free events directly, paid events under one shared payment."""
    user = get_user_or_404(db, user_id)
    items = db.query(CartItem).filter(CartItem.user_id == user.id).order_by(CartItem.cart_id).all()
    if not items:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cart is empty")

    events = events_by_id(db, [item.event_id for item in items])
    free_ids: List[int] = []
    paid_ids: List[int] = []
    for item in items:
        event = events.get(item.event_id)
        if not event or event.symposium != item.symposium_name:
            db.delete(item)
            continue
        if int(event.registration_fees or 0) > 0:
            paid_ids.append(event.id)
        else:
            free_ids.append(event.id)

    if not free_ids and not paid_ids:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cart has no available events")
    if paid_ids and proof is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Payment details are required for paid events")

    for event_id in free_ids:
        submit_free_registration(db, user.email, event_id)

    if paid_ids:
        submit_paid_registration(
            db,
            user_id=user.id,
            event_ids=paid_ids,
            transaction_id=proof.transaction_id,
            transaction_username=proof.transaction_username,
            transaction_time=proof.transaction_time,
            transaction_date=proof.transaction_date,
            transaction_amount=proof.transaction_amount,
            mobile_number=proof.mobile_number,
            screenshot=proof.screenshot,
            screenshot_content_type=proof.screenshot_content_type,
        )

    converted = set(free_ids) | set(paid_ids)
    for item in items:
        if item.event_id in converted:
            db.delete(item)
    db.flush()
    logger.info("Checked out cart for user %s: %s free, %s paid", user.id, len(free_ids), len(paid_ids))
    return {
        "message": "Checkout completed",
        "freeEventIds": free_ids,
        "paidEventIds": paid_ids,
        "transactionId": proof.transaction_id if paid_ids else None,
    }
