from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone

from ..core.exceptions import ValidationError

_ISO_DAY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_iso_date(value: str, field_name: str = "date") -> date:
    """Parse YYYY-MM-DD string into date."""
    if not isinstance(value, str) or not _ISO_DAY.match(value.strip()):
        raise ValidationError(f"Invalid {field_name} format. Please use YYYY-MM-DD")
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid {field_name}")


def parse_timestamp(value: str, field_name: str = "date") -> datetime:
    """Parse a day or an ISO-8601 timestamp into a naive UTC datetime.

    Naive values are stored as-is (MySQL DATETIME has no zone); aware values
    are converted to UTC first.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Invalid {field_name}")
    raw = value.strip()
    if _ISO_DAY.match(raw):
        return datetime.combine(parse_iso_date(raw, field_name), time.min)
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f"Invalid {field_name}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def utc_now() -> datetime:
    """Current UTC time as a naive datetime.

    Note: Wrapped so tests can patch/mock easier.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """UTC midnight of `day` and of the following day (end exclusive)."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def month_bounds(day: date) -> tuple[date, date]:
    """First and last calendar day of the month containing `day`."""
    first = day.replace(day=1)
    next_month = (first + timedelta(days=32)).replace(day=1)
    return first, next_month - timedelta(days=1)


def iso_day(value: date | datetime) -> str:
    if isinstance(value, datetime):
        value = value.date()
    return value.strftime("%Y-%m-%d")
