from datetime import date, datetime
from typing import Optional

import pytz

from ..config import TIMEZONE

local_tz = pytz.timezone(TIMEZONE)


def local_now() -> datetime:
    """Current wall-clock time in the organisation zone, without tzinfo."""
    return datetime.now(pytz.UTC).astimezone(local_tz).replace(tzinfo=None)


def local_today() -> date:
    return local_now().date()


def to_local(value: datetime) -> datetime:
    """Naive datetimes are already local; aware ones are converted."""
    if value.tzinfo is None:
        return value
    return value.astimezone(local_tz).replace(tzinfo=None)


def parse_datetime_param(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 query parameter ("2025-03-01" or "2025-03-01T03:00:00.000Z")."""
    if value is None or value == "":
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return to_local(datetime.fromisoformat(text))


def parse_date_param(value: Optional[str]) -> Optional[date]:
    parsed = parse_datetime_param(value)
    return parsed.date() if parsed else None


def day_bounds(day: date):
    start = datetime.combine(day, datetime.min.time())
    end = datetime.combine(day, datetime.max.time())
    return start, end


def parse_end_param(value: Optional[str]) -> Optional[datetime]:
    """Like ``parse_datetime_param``, but a bare date means the end of that day."""
    parsed = parse_datetime_param(value)
    if parsed is not None and len(value.strip()) == 10:
        return day_bounds(parsed.date())[1]
    return parsed
