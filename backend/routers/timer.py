import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import get_db
from models import Organizer, RegistrationTimer
from schemas import TimerResponse, TimerStart
from security import require_staff, staff_label
from time_utils import ensure_timezone

router = APIRouter()
logger = logging.getLogger(__name__)


def _active_timer(db: Session) -> Optional[RegistrationTimer]:
    return (
        db.query(RegistrationTimer)
        .filter(RegistrationTimer.is_active.is_(True))
        .order_by(RegistrationTimer.id.desc())
        .first()
    )


def _timer_payload(timer: RegistrationTimer) -> TimerResponse:
    return TimerResponse(end_time=ensure_timezone(timer.end_time), is_active=bool(timer.is_active))


@router.post("/timer", response_model=TimerResponse, status_code=status.HTTP_201_CREATED)
def start_timer(
    payload: TimerStart,
    organizer: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    db.query(RegistrationTimer).filter(RegistrationTimer.is_active.is_(True)).update(
        {RegistrationTimer.is_active: False}, synchronize_session=False
    )
    timer = RegistrationTimer(end_time=payload.end_time, is_active=True)
    db.add(timer)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Another timer was started concurrently")
    db.refresh(timer)
    logger.info("Registration timer set to %s by %s", timer.end_time, staff_label(organizer))
    return _timer_payload(timer)


@router.get("/timer", response_model=TimerResponse)
def get_timer(db: Session = Depends(get_db)):
    timer = _active_timer(db)
    if not timer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active timer")
    return _timer_payload(timer)


@router.delete("/timer")
def stop_timer(
    organizer: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    stopped = db.query(RegistrationTimer).filter(RegistrationTimer.is_active.is_(True)).update(
        {RegistrationTimer.is_active: False}, synchronize_session=False
    )
    if not stopped:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active timer")
    db.commit()
    logger.info("Registration timer stopped by %s", staff_label(organizer))
    return {"message": "Timer stopped"}
