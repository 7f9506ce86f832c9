from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Tuple

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceMark:
    """One line of a marking request: which student, which status."""

    student_id: int
    status: AttendanceStatus


@dataclass(frozen=True)
class AttendanceEntry:
    """Domain entity: one class result on a student's personal record.

    `entry_ref` is shared with the matching `MarkedStudent` line of the
    instructor session. Rows written before refs existed carry None.
    """

    entry_id: int
    student_id: int
    subject_id: int
    date: date
    status: AttendanceStatus
    marked_by: int
    entry_ref: Optional[str] = None


@dataclass(frozen=True)
class MarkedStudent:
    student_id: int
    status: AttendanceStatus
    entry_ref: Optional[str] = None


@dataclass(frozen=True)
class MarkingSession:
    """Domain entity: the instructor's own copy of one batch of marks."""

    session_id: int
    instructor_id: int
    date: date
    subject_id: int
    batch_year: int
    students_marked: Tuple[MarkedStudent, ...]
    created_at: Optional[datetime] = None

    def line_for(self, student_id: int) -> Optional[MarkedStudent]:
        for line in self.students_marked:
            if line.student_id == int(student_id):
                return line
        return None


@dataclass(frozen=True)
class SubjectBreakdown:
    subject_id: int
    present: int
    absent: int
    leave: int
    total: int
    percentage: float


@dataclass(frozen=True)
class StudentAnalytics:
    """Read-model cached on the student: overall and per-subject percentages."""

    overall_percentage: float = 0.0
    per_subject: Tuple[SubjectBreakdown, ...] = field(default_factory=tuple)
