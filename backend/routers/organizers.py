import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth import get_password_hash
from database import get_db
from models import Organizer
from schemas import OrganizerCreate, OrganizerResponse
from security import require_admin

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/organizers", response_model=OrganizerResponse, status_code=status.HTTP_201_CREATED)
def create_organizer(
    payload: OrganizerCreate,
    _: bool = Depends(require_admin),
    db: Session = Depends(get_db),
):
    email = str(payload.email).strip().lower()
    if db.query(Organizer).filter(Organizer.email == email).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Organizer already exists")

    organizer = Organizer(
        name=payload.name.strip(),
        email=email,
        mobile=payload.mobile.strip(),
        hashed_password=get_password_hash(payload.password),
    )
    db.add(organizer)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Organizer already exists")
    db.refresh(organizer)
    logger.info("Organizer %s created", organizer.email)
    return OrganizerResponse.model_validate(organizer)


@router.get("/organizers", response_model=List[OrganizerResponse])
def list_organizers(_: bool = Depends(require_admin), db: Session = Depends(get_db)):
    organizers = db.query(Organizer).order_by(Organizer.id).all()
    return [OrganizerResponse.model_validate(o) for o in organizers]
