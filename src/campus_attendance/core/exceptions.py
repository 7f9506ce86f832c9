from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from ..attendance.model import MarkingSession


class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""

    status_code = 401


class AuthorizationDenied(DomainError):
    """Raised when an instructor is not assigned to a subject/batch, or a role lacks permission."""

    status_code = 403


AuthorizationError = AuthorizationDenied


class DeviceLimitExceeded(DomainError):
    """Raised when a login comes from one device too many for the account's role/plan."""

    status_code = 403


class DuplicateMarking(DomainError):
    """Attendance for this subject/batch/day already exists; use the correction path."""

    status_code = 409


class RecordNotFound(DomainError):
    status_code = 404


class InconsistentAttendance(DomainError):
    """The instructor ledger and a student record disagree and cannot be matched safely."""

    status_code = 409


class PartialPropagationFailure(DomainError):
    """The marking session was stored but some student entries were not.

    Nothing is rolled back: `session` is the persisted ledger entry and
    `failed_student_ids` lists the students whose record is missing the entry.
    """

    status_code = 207

    def __init__(self, message: str, *, session: "MarkingSession", failed_student_ids: Sequence[int]):
        super().__init__(message)
        self.session = session
        self.failed_student_ids = list(failed_student_ids)
