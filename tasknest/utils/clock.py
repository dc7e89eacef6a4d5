from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from tasknest.config import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive values; everything is stored as UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_tz() -> ZoneInfo:
    return ZoneInfo(settings.TIMEZONE)


def start_of_local_day(now: datetime, days: int = 0) -> datetime:
    """Midnight of the local calendar day containing `now`, shifted by `days`, in UTC."""
    local = as_utc(now).astimezone(local_tz())
    # Wall-clock arithmetic: the shifted midnight gets its own DST offset
    midnight = datetime(local.year, local.month, local.day, tzinfo=local_tz()) + timedelta(days=days)
    return midnight.astimezone(timezone.utc)
