"""Aggregate recompute for subjects and per-student analytics.

Both are full recomputes from the raw student entries. They run once per
marking/correction event, never on reads.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from ..accounts.model import Student
from ..accounts.repository import StudentRepository
from ..common.datetime_utils import month_bounds, now_local
from ..core.enums import AttendanceStatus
from ..core.exceptions import AuthorizationDenied, RecordNotFound
from ..subjects.model import Subject, SubjectStats
from ..subjects.repository import SubjectRepository
from .model import AttendanceEntry, StudentAnalytics, SubjectBreakdown

logger = logging.getLogger(__name__)


def _percentage(part: int, whole: int) -> float:
    return (part / whole) * 100 if whole > 0 else 0.0


def compute_subject_totals(students: Sequence[Student], subject_id: int) -> tuple[int, float]:
    """Return (total_classes, average_attendance) for one subject across `students`.

    total_classes is the largest per-student entry count, not the number of
    marking sessions. It under-counts when no student was marked in every class.
    """
    total_classes = 0
    total_present = 0
    for student in students:
        entries = student.entries_for(subject_id)
        total_classes = max(total_classes, len(entries))
        total_present += sum(1 for e in entries if e.status == AttendanceStatus.PRESENT)

    denominator = total_classes * len(students)
    return total_classes, _percentage(total_present, denominator)


def breakdown(subject_id: int, entries: Iterable[AttendanceEntry]) -> SubjectBreakdown:
    counts = Counter(e.status for e in entries)
    present = counts[AttendanceStatus.PRESENT]
    absent = counts[AttendanceStatus.ABSENT]
    leave = counts[AttendanceStatus.LEAVE]
    total = present + absent + leave
    return SubjectBreakdown(
        subject_id=int(subject_id),
        present=present,
        absent=absent,
        leave=leave,
        total=total,
        percentage=_percentage(present, total),
    )


def compute_student_analytics(student: Student) -> StudentAnalytics:
    entries = list(student.attendance)
    present = sum(1 for e in entries if e.status == AttendanceStatus.PRESENT)

    subject_order: List[int] = []
    for e in entries:
        if e.subject_id not in subject_order:
            subject_order.append(e.subject_id)

    return StudentAnalytics(
        overall_percentage=_percentage(present, len(entries)),
        per_subject=tuple(breakdown(sid, (e for e in entries if e.subject_id == sid)) for sid in subject_order),
    )


@dataclass(frozen=True)
class StudentAnalyticsReport:
    overall: float
    subjects: tuple[SubjectBreakdown, ...]


@dataclass(frozen=True)
class StudentAttendanceRecords:
    student_id: int
    name: str
    registration_number: str
    records: tuple[AttendanceEntry, ...]


class AttendanceStatsService:
    def __init__(self, students: StudentRepository, subjects: SubjectRepository):
        self._students = students
        self._subjects = subjects

    def recompute_stats(self, subject_id: int, batch_year: int, *, now: datetime | None = None) -> SubjectStats:
        now = now or now_local()
        students = self._students.list_by_batch_year(int(batch_year))
        total_classes, average = compute_subject_totals(students, int(subject_id))

        stats = SubjectStats(
            batch_year=int(batch_year),
            total_classes=total_classes,
            average_attendance=average,
            last_updated=now,
        )
        saved = self._subjects.upsert_stats(int(subject_id), stats)
        logger.info(
            "stats recomputed subject=%s batch=%s students=%d classes=%d avg=%.2f",
            subject_id, batch_year, len(students), total_classes, average,
        )
        return saved

    def refresh_student_analytics(self, student_id: int) -> StudentAnalytics:
        student = self._students.get_by_id(int(student_id))
        if not student:
            raise RecordNotFound("Student not found")
        analytics = compute_student_analytics(student)
        self._students.save_analytics(student.student_id, analytics)
        return analytics

    def subject_stats(self, subject_id: int, batch_year: int) -> SubjectStats:
        subject: Optional[Subject] = self._subjects.get_by_id(int(subject_id))
        if not subject:
            raise RecordNotFound("Subject not found")
        stats = subject.stats_for(int(batch_year))
        if not stats:
            raise RecordNotFound("No statistics found for this subject/batch")
        return stats

    def student_report(
        self,
        student_id: int,
        *,
        subject_id: Optional[int] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> StudentAnalyticsReport:
        """Per-subject counts for one student, optionally narrowed to a subject and a month."""
        student = self._students.get_by_id(int(student_id))
        if not student:
            raise RecordNotFound("Student not found")

        if subject_id is not None:
            if not self._subjects.get_by_id(int(subject_id)):
                raise RecordNotFound("Subject not found")
            entries = student.entries_for(int(subject_id))
            if month and year:
                start, end = month_bounds(int(year), int(month))
                entries = [e for e in entries if start <= e.date <= end]
            subjects = (breakdown(int(subject_id), entries),)
        else:
            subjects = tuple(breakdown(sid, student.entries_for(sid)) for sid in sorted(student.subjects))

        return StudentAnalyticsReport(overall=student.analytics.overall_percentage, subjects=subjects)

    def student_attendance(
        self,
        student_id: int,
        *,
        subject_id: Optional[int] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
        view_classmates: bool = False,
        now: datetime | None = None,
    ) -> List[StudentAttendanceRecords]:
        """Raw entries for a student, or for the whole batch with a valid subscription.

        With `subject_id`, only students enrolled in that subject are listed and
        only that subject's entries are kept.
        """
        now = now or now_local()
        student = self._students.get_by_id(int(student_id))
        if not student:
            raise RecordNotFound("Student not found")
        if view_classmates and not student.subscription.is_valid_on(now.date()):
            raise AuthorizationDenied("Subscription required to view classmates' attendance")

        if subject_id is not None and not self._subjects.get_by_id(int(subject_id)):
            raise RecordNotFound("Subject not found")
        bounds = month_bounds(int(year), int(month)) if month and year else None

        students = self._students.list_by_batch_year(student.batch_year) if view_classmates else [student]
        result: List[StudentAttendanceRecords] = []
        for s in students:
            if subject_id is not None and int(subject_id) not in s.subjects:
                continue
            records = s.entries_for(int(subject_id)) if subject_id is not None else list(s.attendance)
            if bounds:
                records = [e for e in records if bounds[0] <= e.date <= bounds[1]]
            result.append(
                StudentAttendanceRecords(
                    student_id=s.student_id,
                    name=s.name,
                    registration_number=s.registration_number,
                    records=tuple(records),
                )
            )
        return result
