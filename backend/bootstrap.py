from __future__ import annotations

import logging
import os
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from auth import get_password_hash
from database import Base, engine, get_db
from models import Organizer, SymposiumName, SymposiumStatus, SystemConfig

logger = logging.getLogger(__name__)

MIGRATION_MARKER_KEY = "migration:backend_bootstrap:v1"


def has_bootstrap_marker() -> bool:
    db = next(get_db())
    try:
        marker = db.query(SystemConfig).filter(SystemConfig.key == MIGRATION_MARKER_KEY).first()
        return marker is not None
    finally:
        db.close()


def set_bootstrap_marker() -> None:
    db = next(get_db())
    try:
        marker = db.query(SystemConfig).filter(SystemConfig.key == MIGRATION_MARKER_KEY).first()
        value = datetime.now(timezone.utc).isoformat()
        if marker:
            marker.value = value
        else:
            db.add(SystemConfig(key=MIGRATION_MARKER_KEY, value=value))
        db.commit()
    finally:
        db.close()


def clear_bootstrap_marker() -> bool:
    db = next(get_db())
    try:
        marker = db.query(SystemConfig).filter(SystemConfig.key == MIGRATION_MARKER_KEY).first()
        if not marker:
            return False
        db.delete(marker)
        db.commit()
        return True
    finally:
        db.close()


def ensure_symposium_status_rows(db: Session) -> None:
    existing = {row.symposium_name for row in db.query(SymposiumStatus).all()}
    missing = [name for name in SymposiumName if name not in existing]
    for name in missing:
        db.add(SymposiumStatus(symposium_name=name, is_open=False))
    if missing:
        db.commit()
        logger.info("Seeded symposium status rows: %s", ", ".join(name.value for name in missing))


def ensure_default_organizer(db: Session) -> None:
    email = (os.environ.get("DEFAULT_ORGANIZER_EMAIL") or "").strip().lower()
    password = os.environ.get("DEFAULT_ORGANIZER_PASSWORD")
    if not email or not password:
        return
    if db.query(Organizer).filter(Organizer.email == email).first():
        return
    db.add(
        Organizer(
            name=os.environ.get("DEFAULT_ORGANIZER_NAME", "Organizer"),
            email=email,
            mobile=os.environ.get("DEFAULT_ORGANIZER_MOBILE", "0000000000"),
            hashed_password=get_password_hash(password),
        )
    )
    db.commit()
    logger.info("Default organizer created: %s", email)


def run_bootstrap_migrations() -> None:
    Base.metadata.create_all(bind=engine)

    db = next(get_db())
    try:
        ensure_symposium_status_rows(db)
        ensure_default_organizer(db)
    finally:
        db.close()
