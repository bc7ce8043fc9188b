import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status
from sqlalchemy.orm import Session

from database import get_db
from models import Experience, ExperienceStatus, ExperienceType, Organizer
from schemas import ExperienceResponse, ExperienceStatusUpdate
from security import require_staff, staff_label
from utils import EXPERIENCE_PDF_MAX_BYTES, PDF_TYPES, read_upload_bytes, require_text

router = APIRouter(prefix="/placements")
logger = logging.getLogger(__name__)


def experience_payload(experience: Experience) -> ExperienceResponse:
    return ExperienceResponse(
        id=experience.id,
        name=experience.name,
        email=experience.email,
        type=experience.type.value,
        year_of_passing=experience.year_of_passing,
        company=experience.company,
        linkedin_url=experience.linkedin_url,
        status=experience.status.value,
        created_at=experience.created_at,
    )


def get_experience_or_404(db: Session, experience_id: int) -> Experience:
    experience = db.query(Experience).filter(Experience.id == experience_id).first()
    if not experience:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Experience not found")
    return experience


def _experience_type(raw: Optional[str]) -> ExperienceType:
    cleaned = require_text(raw, "type").lower()
    for kind in ExperienceType:
        if kind.value.lower() == cleaned:
            return kind
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="type must be Placement or Intern")


def _year(raw: Optional[str]) -> int:
    try:
        year = int(require_text(raw, "year"))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="year must be a number")
    if year < 1900 or year > 2100:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="year is out of range")
    return year


def _by_status(db: Session, wanted: ExperienceStatus) -> List[ExperienceResponse]:
    rows = db.query(Experience).filter(Experience.status == wanted).order_by(Experience.id).all()
    return [experience_payload(row) for row in rows]


@router.post("/submit-experience", status_code=status.HTTP_201_CREATED)
def submit_experience(
    name: str = Form(None),
    email: str = Form(None),
    type: str = Form(None),
    year: str = Form(None),
    company: str = Form(None),
    linkedin: Optional[str] = Form(None),
    pdf: UploadFile = File(None),
    db: Session = Depends(get_db),
):
    experience = Experience(
        name=require_text(name, "name"),
        email=require_text(email, "email").lower(),
        type=_experience_type(type),
        year_of_passing=_year(year),
        company=require_text(company, "company"),
        linkedin_url=(linkedin or "").strip() or None,
        pdf_file=read_upload_bytes(pdf, "pdf", PDF_TYPES, EXPERIENCE_PDF_MAX_BYTES),
        status=ExperienceStatus.PENDING,
    )
    db.add(experience)
    db.commit()
    db.refresh(experience)
    logger.info("Experience %s submitted for %s", experience.id, experience.company)
    return {
        "type": "success",
        "title": "Submitted",
        "message": "Experience submitted successfully. It will be reviewed by the admin.",
        "id": experience.id,
    }


@router.get("/experiences", response_model=List[ExperienceResponse])
def list_experiences(db: Session = Depends(get_db)):
    rows = db.query(Experience).order_by(Experience.company, Experience.id).all()
    return [experience_payload(row) for row in rows]


@router.get("/experiences/{experience_id}/pdf")
def download_experience_pdf(experience_id: int, db: Session = Depends(get_db)):
    experience = get_experience_or_404(db, experience_id)
    return Response(
        content=experience.pdf_file,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="experience_{experience.id}.pdf"'},
    )


@router.get("/admin/pending-experiences", response_model=List[ExperienceResponse])
def list_pending_experiences(
    _: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    return _by_status(db, ExperienceStatus.PENDING)


@router.get("/admin/approved-experiences", response_model=List[ExperienceResponse])
def list_approved_experiences(
    _: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    return _by_status(db, ExperienceStatus.APPROVED)


@router.post("/admin/update-experience-status")
def update_experience_status(
    payload: ExperienceStatusUpdate,
    organizer: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    experience = get_experience_or_404(db, payload.id)
    experience.status = ExperienceStatus(payload.status)
    db.commit()
    logger.info("Experience %s %s by %s", experience.id, payload.status, staff_label(organizer))
    return {
        "type": "success",
        "title": "Updated",
        "message": f"Experience {experience.id} has been {payload.status}.",
    }


@router.delete("/admin/delete-experience/{experience_id}")
def delete_experience(
    experience_id: int,
    organizer: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    experience = get_experience_or_404(db, experience_id)
    db.delete(experience)
    db.commit()
    logger.info("Experience %s deleted by %s", experience_id, staff_label(organizer))
    return {
        "type": "success",
        "title": "Deleted",
        "message": "Experience deleted successfully.",
    }
