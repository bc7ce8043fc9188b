import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from database import get_db
from models import Organizer, SymposiumName, SymposiumStatus
from schemas import SymposiumStart, SymposiumStatusResponse, SymposiumStop
from security import require_staff, staff_label

router = APIRouter()
logger = logging.getLogger(__name__)


def _themed(status_code: int, success: bool, title: str, message: str, data=None) -> JSONResponse:
    body = {"success": success, "title": title, "message": message}
    if data is not None:
        body["data"] = data
    return JSONResponse(status_code=status_code, content=body)


def _lookup(db: Session, name: str) -> Optional[SymposiumStatus]:
    raw = str(name or "").strip().lower()
    for symposium in SymposiumName:
        if symposium.value.lower() == raw:
            return db.query(SymposiumStatus).filter(SymposiumStatus.symposium_name == symposium).first()
    return None


def _status_payload(row: SymposiumStatus) -> dict:
    return SymposiumStatusResponse(
        symposium_name=row.symposium_name.value,
        is_open=bool(row.is_open),
        start_date=row.start_date,
    ).model_dump(mode="json", by_alias=True)


def _not_found(name: str) -> JSONResponse:
    return _themed(404, False, "Symposium Not Found", f"No symposium named '{name}' exists.")


@router.post("/symposium/start")
def start_symposium(
    payload: SymposiumStart,
    organizer: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    row = _lookup(db, payload.symposium_name)
    if not row:
        return _not_found(payload.symposium_name)
    row.is_open = True
    row.start_date = payload.start_date
    db.commit()
    logger.info("%s opened by %s", row.symposium_name.value, staff_label(organizer))
    return _themed(
        200,
        True,
        "Let the Games Begin!",
        f"{row.symposium_name.value} is now open for registrations.",
        _status_payload(row),
    )


@router.post("/symposium/stop")
def stop_symposium(
    payload: SymposiumStop,
    organizer: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    row = _lookup(db, payload.symposium_name)
    if not row:
        return _not_found(payload.symposium_name)
    row.is_open = False
    db.commit()
    logger.info("%s closed by %s", row.symposium_name.value, staff_label(organizer))
    return _themed(
        200,
        True,
        "Curtains Down",
        f"{row.symposium_name.value} registrations are now closed.",
        _status_payload(row),
    )


@router.get("/symposium/status")
def symposium_status(db: Session = Depends(get_db)):
    rows = db.query(SymposiumStatus).order_by(SymposiumStatus.id).all()
    return _themed(
        200,
        True,
        "Symposium Status",
        "Current status of all symposiums.",
        [_status_payload(row) for row in rows],
    )
