from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..attendance.model import MarkedStudent, MarkingSession, StudentAnalytics
from ..core.enums import AttendanceStatus, Role
from .model import Account, Instructor, Student, Subscription


class AccountRepository(Protocol):
    """Repository interface for the base Account record.

    Note (DIP): services depend on this interface, never on a concrete database.
    """

    def get_by_id(self, account_id: int) -> Optional[Account]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Account]:
        raise NotImplementedError

    def create_account(self, *, name: str, email: str, password_hash: str, role: Role) -> int:
        raise NotImplementedError

    def set_active_devices(self, account_id: int, devices: Sequence[str]) -> bool:
        raise NotImplementedError

    def set_last_login(self, account_id: int, when: datetime) -> bool:
        raise NotImplementedError


class StudentRepository(Protocol):
    def get_by_id(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def get_by_registration_number(self, registration_number: str) -> Optional[Student]:
        raise NotImplementedError

    def list_by_batch_year(self, batch_year: int) -> Sequence[Student]:
        raise NotImplementedError

    def list_for_subject(self, subject_id: int, batch_year: int) -> Sequence[Student]:
        raise NotImplementedError

    def create_student(
        self,
        *,
        account_id: int,
        registration_number: str,
        batch_year: int,
        subject_ids: Iterable[int],
    ) -> int:
        raise NotImplementedError

    def add_subject(self, student_id: int, subject_id: int) -> bool:
        raise NotImplementedError

    def append_attendance(
        self,
        *,
        student_id: int,
        subject_id: int,
        on_date: date,
        status: AttendanceStatus,
        marked_by: int,
        entry_ref: Optional[str],
    ) -> int:
        """Append one entry to the student's record and return its entry_id."""

        raise NotImplementedError

    def set_attendance_status(self, entry_id: int, status: AttendanceStatus) -> bool:
        raise NotImplementedError

    def save_analytics(self, student_id: int, analytics: StudentAnalytics) -> bool:
        raise NotImplementedError

    def save_subscription(self, student_id: int, subscription: Subscription) -> bool:
        raise NotImplementedError


class InstructorRepository(Protocol):
    def get_by_id(self, instructor_id: int) -> Optional[Instructor]:
        raise NotImplementedError

    def get_by_employee_id(self, employee_id: str) -> Optional[Instructor]:
        raise NotImplementedError

    def create_instructor(self, *, account_id: int, employee_id: str, department: str, designation: str) -> int:
        raise NotImplementedError

    def add_grant(self, instructor_id: int, subject_id: int, batch_year: int) -> bool:
        raise NotImplementedError

    def remove_grant(self, instructor_id: int, subject_id: int, batch_year: int) -> bool:
        raise NotImplementedError

    def add_marking_session(
        self,
        *,
        instructor_id: int,
        on_date: date,
        subject_id: int,
        batch_year: int,
        students_marked: Sequence[MarkedStudent],
        created_at: datetime,
    ) -> MarkingSession:
        raise NotImplementedError

    def set_marked_status(self, session_id: int, student_id: int, status: AttendanceStatus) -> bool:
        raise NotImplementedError
