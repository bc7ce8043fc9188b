import hmac
import os
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from database import get_db
from auth import get_current_user, resolve_organizer_from_token
from models import User, Organizer

optional_bearer = HTTPBearer(auto_error=False)


def _admin_key_matches(x_admin_key: Optional[str]) -> bool:
    expected = os.environ.get("ADMIN_API_KEY")
    if not expected or not x_admin_key:
        return False
    return hmac.compare_digest(x_admin_key, expected)


def require_user(user: User = Depends(get_current_user)) -> User:
    return user


def require_admin(x_admin_key: Optional[str] = Header(None, alias="X-ADMIN-KEY")) -> bool:
    if not _admin_key_matches(x_admin_key):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin credentials")
    return True


def require_staff(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_bearer),
    x_admin_key: Optional[str] = Header(None, alias="X-ADMIN-KEY"),
    db: Session = Depends(get_db),
) -> Optional[Organizer]:
    """Organizer token or admin key. Returns the organizer, or None for admin-key callers."""
    if _admin_key_matches(x_admin_key):
        return None
    if not credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Staff authentication required")
    return resolve_organizer_from_token(db, credentials.credentials)


def staff_label(organizer: Optional[Organizer]) -> str:
    return organizer.email if organizer else "admin-key"
