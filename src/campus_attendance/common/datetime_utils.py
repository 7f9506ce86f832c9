from __future__ import annotations

import calendar
from datetime import date, datetime

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD (or a full ISO timestamp) into a date.

    Timestamps keep the calendar day they are written in, so a browser's
    `toISOString()` value ("...Z") yields its UTC day.
    """
    raw = (value or "").strip()
    if raw[-1:] in ("Z", "z"):
        # fromisoformat only accepts "Z" from Python 3.11 on.
        raw = raw[:-1] + "+00:00"
    try:
        if len(raw) > 10:
            return datetime.fromisoformat(raw).date()
        return datetime.strptime(raw, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("Invalid date format")


def now_local() -> datetime:
    """Current local time, wrapped so tests can patch it."""
    return datetime.now()


def month_bounds(year: int, month: int) -> tuple[date, date]:
    if not 1 <= int(month) <= 12:
        raise ValidationError("Invalid month")
    last_day = calendar.monthrange(int(year), int(month))[1]
    return date(int(year), int(month), 1), date(int(year), int(month), last_day)
