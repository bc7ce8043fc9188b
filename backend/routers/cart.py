import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cart_service import PaymentProof, add_to_cart, checkout_cart, list_cart, remove_from_cart
from database import get_db
from registration_service import parse_amount
from schemas import CartAdd, CartItemResponse, CartRemove
from utils import PROOF_TYPES, SCREENSHOT_MAX_BYTES, read_upload_bytes, require_text

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/cart", status_code=status.HTTP_201_CREATED)
def add_cart_item(payload: CartAdd, db: Session = Depends(get_db)):
    try:
        item = add_to_cart(db, payload.user_email, payload.event_id, payload.symposium_name)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Event already in cart")
    return {"message": "Event added to cart", "cartId": item.cart_id}


@router.get("/cart/{user_id}", response_model=List[CartItemResponse])
def get_cart(user_id: int, db: Session = Depends(get_db)):
    return list_cart(db, user_id)


@router.delete("/cart/{cart_id}")
def delete_cart_item(cart_id: int, payload: CartRemove, db: Session = Depends(get_db)):
    remove_from_cart(db, cart_id, payload.user_email)
    db.commit()
    return {"message": "Event removed from cart"}


def _proof_from_form(
    transaction_id: Optional[str],
    transaction_username: Optional[str],
    transaction_time: Optional[str],
    transaction_date: Optional[str],
    transaction_amount: Optional[str],
    mobile_number: Optional[str],
    screenshot: Optional[UploadFile],
) -> Optional[PaymentProof]:
    provided = [transaction_id, transaction_username, transaction_time, transaction_date, transaction_amount]
    if not any(str(value or "").strip() for value in provided) and (screenshot is None or not screenshot.filename):
        return None
    return PaymentProof(
        transaction_id=require_text(transaction_id, "transactionId"),
        transaction_username=require_text(transaction_username, "transactionUsername"),
        transaction_time=require_text(transaction_time, "transactionTime"),
        transaction_date=require_text(transaction_date, "transactionDate"),
        transaction_amount=parse_amount(require_text(transaction_amount, "transactionAmount")),
        mobile_number=require_text(mobile_number, "mobileNumber"),
        screenshot=read_upload_bytes(screenshot, "transactionScreenshot", PROOF_TYPES, SCREENSHOT_MAX_BYTES),
        screenshot_content_type=screenshot.content_type,
    )


@router.post("/cart/{user_id}/checkout", status_code=status.HTTP_201_CREATED)
def checkout(
    user_id: int,
    transactionId: Optional[str] = Form(None),
    transactionUsername: Optional[str] = Form(None),
    transactionTime: Optional[str] = Form(None),
    transactionDate: Optional[str] = Form(None),
    transactionAmount: Optional[str] = Form(None),
    mobileNumber: Optional[str] = Form(None),
    transactionScreenshot: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
):
    proof = _proof_from_form(
        transactionId,
        transactionUsername,
        transactionTime,
        transactionDate,
        transactionAmount,
        mobileNumber,
        transactionScreenshot,
    )
    try:
        result = checkout_cart(db, user_id, proof)
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Cart checkout conflict for user %s", user_id)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Transaction ID or registration already exists")
    return result
