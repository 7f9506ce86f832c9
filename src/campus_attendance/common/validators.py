from __future__ import annotations

from datetime import date

from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def parse_status(value) -> AttendanceStatus:
    """Accept an AttendanceStatus, its code ('P'/'A'/'L') or its label ('Present', ...)."""
    if isinstance(value, AttendanceStatus):
        return value
    raw = str(value or "").strip()
    for status in AttendanceStatus:
        if raw.upper() == status.value or raw.lower() == status.label.lower():
            return status
    raise ValidationError("Invalid attendance status")


def require_not_future(value: date, today: date) -> date:
    # Calendar-day comparison only; time of day is irrelevant.
    if value > today:
        raise ValidationError("Cannot mark attendance for future dates")
    return value


def parse_int(value, field_name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
