# Fichier : vocab_srs/utils/date_utils.py
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from vocab_srs.core.config import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Naive datetimes coming back from SQLite are interpreted as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def local_day(moment: datetime, tz_name: str | None = None) -> date:
    """Calendar day of ``moment`` in the configured day-boundary timezone."""
    zone = ZoneInfo(tz_name or settings.DAY_BOUNDARY_TIMEZONE)
    return ensure_aware(moment).astimezone(zone).date()


def day_key(moment: datetime, tz_name: str | None = None) -> str:
    return local_day(moment, tz_name).isoformat()


def parse_day_key(key: str) -> date:
    return date.fromisoformat(key)


def previous_day_key(key: str) -> str:
    return (parse_day_key(key) - timedelta(days=1)).isoformat()


def to_utc(value: datetime) -> datetime:
    return ensure_aware(value).astimezone(timezone.utc)
