import os
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def _timezone() -> ZoneInfo:
    name = os.environ.get("APP_TIMEZONE", "UTC")
    return ZoneInfo(name)


def now_tz() -> datetime:
    return datetime.now(_timezone())


def ensure_timezone(dt: datetime) -> datetime:
    """Treat naive values (SQLite drops tzinfo) as UTC and convert to the app timezone."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(_timezone())


def seconds_since(dt: datetime, now: Optional[datetime] = None) -> float:
    return ((now or now_tz()) - ensure_timezone(dt)).total_seconds()


def has_passed(dt: datetime, now: Optional[datetime] = None) -> bool:
    """True once ``dt`` is at or before ``now``."""
    return seconds_since(dt, now) >= 0
