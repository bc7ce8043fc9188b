import logging
from typing import Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from event_service import get_event_or_404
from models import VerifiedRegistration
from registration_service import get_user_or_404

logger = logging.getLogger(__name__)


def _find(db: Session, user_id: int, event_id: int):
    return (
        db.query(VerifiedRegistration)
        .filter(VerifiedRegistration.user_id == user_id, VerifiedRegistration.event_id == event_id)
        .first()
    )


def set_verification(db: Session, user_id: int, event_id: int, verified: bool) -> Tuple[VerifiedRegistration, bool]:
    """Upsert the verification flag and commit. Returns (row, created)."""
    get_user_or_404(db, user_id)
    get_event_or_404(db, event_id)

    row = _find(db, user_id, event_id)
    if row:
        row.verified = verified
        db.commit()
        logger.info("Verification for user %s event %s set to %s", user_id, event_id, verified)
        return row, False

    row = VerifiedRegistration(user_id=user_id, event_id=event_id, verified=verified)
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        # Lost the insert race to another reviewer; apply ours on top.
        db.rollback()
        row = _find(db, user_id, event_id)
        row.verified = verified
        db.commit()
        logger.info("Verification for user %s event %s set to %s", user_id, event_id, verified)
        return row, False

    logger.info("Verification for user %s event %s created as %s", user_id, event_id, verified)
    return row, True
