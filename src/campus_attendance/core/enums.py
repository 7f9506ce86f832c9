from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Account role used for admission limits and route guards."""

    ADMIN = "admin"
    INSTRUCTOR = "instructor"
    STUDENT = "student"


class AttendanceStatus(str, Enum):
    """Per-class status stored on both the instructor ledger and the student record."""

    PRESENT = "P"
    ABSENT = "A"
    LEAVE = "L"

    @property
    def label(self) -> str:
        return {
            AttendanceStatus.PRESENT: "Present",
            AttendanceStatus.ABSENT: "Absent",
            AttendanceStatus.LEAVE: "Leave",
        }[self]


class SubscriptionPlan(str, Enum):
    BASIC = "basic"
    PREMIUM = "premium"
