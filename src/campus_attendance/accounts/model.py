from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import FrozenSet, Optional, Tuple

from ..attendance.model import AttendanceEntry, MarkingSession, StudentAnalytics
from ..core.enums import Role, SubscriptionPlan


@dataclass(frozen=True)
class Account:
    """Domain entity: base identity shared by every role.

    `active_devices` keeps login order; admins never get entries.
    """

    account_id: int
    name: str
    email: str
    password_hash: str
    role: Role
    active_devices: Tuple[str, ...] = ()
    last_login: Optional[datetime] = None
    is_active: bool = True


@dataclass(frozen=True)
class Subscription:
    is_active: bool = False
    plan: Optional[SubscriptionPlan] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def is_valid_on(self, today: date) -> bool:
        if not self.is_active:
            return False
        if self.end_date is None:
            return True
        return today <= self.end_date


@dataclass(frozen=True)
class Student:
    student_id: int
    name: str
    registration_number: str
    batch_year: int
    subjects: FrozenSet[int] = frozenset()
    attendance: Tuple[AttendanceEntry, ...] = ()
    subscription: Subscription = field(default_factory=Subscription)
    analytics: StudentAnalytics = field(default_factory=StudentAnalytics)

    def entries_for(self, subject_id: int) -> list[AttendanceEntry]:
        return [e for e in self.attendance if e.subject_id == int(subject_id)]


@dataclass(frozen=True)
class SubjectGrant:
    """Authorization grant: the batch years an instructor may mark for one subject."""

    subject_id: int
    batch_years: FrozenSet[int]


@dataclass(frozen=True)
class Instructor:
    instructor_id: int
    name: str
    employee_id: str
    department: str
    designation: str = ""
    subjects: Tuple[SubjectGrant, ...] = ()
    attendance_marked: Tuple[MarkingSession, ...] = ()

    def session_by_id(self, session_id: int) -> Optional[MarkingSession]:
        for session in self.attendance_marked:
            if session.session_id == int(session_id):
                return session
        return None
