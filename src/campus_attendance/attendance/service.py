from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime
from typing import Any, List, Mapping, Optional, Sequence, Union

from ..accounts.model import Instructor, Student
from ..accounts.repository import InstructorRepository, StudentRepository
from ..common.datetime_utils import month_bounds, now_local
from ..common.validators import parse_int, parse_status, require_not_future
from ..core.constants import EVENT_ATTENDANCE_MARKED, EVENT_ATTENDANCE_UPDATED
from ..core.exceptions import (
    DuplicateMarking,
    InconsistentAttendance,
    PartialPropagationFailure,
    RecordNotFound,
    ValidationError,
)
from ..notifications.notifier import Notifier
from ..subjects.authorization import require_can_mark
from ..subjects.model import SubjectStats
from ..subjects.repository import SubjectRepository
from .model import AttendanceEntry, AttendanceMark, MarkedStudent, MarkingSession
from .stats import AttendanceStatsService

logger = logging.getLogger(__name__)

MarkInput = Union[AttendanceMark, Mapping[str, Any]]


def _normalize_marks(entries: Optional[Sequence[MarkInput]]) -> List[AttendanceMark]:
    marks: List[AttendanceMark] = []
    seen: set[int] = set()
    if entries is None:
        entries = []
    if not isinstance(entries, (list, tuple)):
        raise ValidationError("Attendance data must be a list")
    for item in entries:
        if isinstance(item, AttendanceMark):
            mark = item
        elif not isinstance(item, Mapping):
            raise ValidationError("Each attendance line needs a student and a status")
        else:
            raw_student = item.get("student", item.get("studentId"))
            mark = AttendanceMark(student_id=parse_int(raw_student, "Student"), status=parse_status(item.get("status")))
        if mark.student_id in seen:
            raise ValidationError("A student can only be marked once per session")
        seen.add(mark.student_id)
        marks.append(mark)

    if not marks:
        raise ValidationError("Attendance data is empty")
    return marks


class AttendanceService:
    """Attendance write path, correction path and the instructor-scoped reads.

    Every write touches records in a fixed order: the instructor ledger first,
    then each student record, then the subject aggregate. A failure after the
    ledger write leaves a session whose students lag behind, which is detectable,
    never the reverse.
    """

    def __init__(
        self,
        instructors: InstructorRepository,
        students: StudentRepository,
        subjects: SubjectRepository,
        stats: AttendanceStatsService,
        notifier: Notifier | None = None,
    ):
        self._instructors = instructors
        self._students = students
        self._subjects = subjects
        self._stats = stats
        self._notifier = notifier

    def _get_instructor(self, instructor_id: int) -> Instructor:
        instructor = self._instructors.get_by_id(int(instructor_id))
        if not instructor:
            raise RecordNotFound("Instructor not found")
        return instructor

    def _notify(self, event_name: str, payload: dict) -> None:
        if self._notifier:
            self._notifier.notify(event_name, payload)

    def mark_attendance(
        self,
        instructor_id: int,
        subject_id: int,
        batch_year: int,
        on_date: date,
        entries: Sequence[MarkInput],
        *,
        now: datetime | None = None,
    ) -> MarkingSession:
        now = now or now_local()
        subject_id = int(subject_id)
        batch_year = int(batch_year)

        instructor = self._get_instructor(instructor_id)
        require_can_mark(instructor, subject_id, batch_year)
        if not self._subjects.get_by_id(subject_id):
            raise RecordNotFound("Subject not found")

        require_not_future(on_date, now.date())
        marks = _normalize_marks(entries)
        self._check_students(marks, batch_year)

        for existing in instructor.attendance_marked:
            if existing.subject_id == subject_id and existing.batch_year == batch_year and existing.date == on_date:
                logger.warning(
                    "duplicate marking instructor=%s subject=%s batch=%s date=%s",
                    instructor.instructor_id, subject_id, batch_year, on_date,
                )
                raise DuplicateMarking("Attendance already marked for this date")

        lines = [MarkedStudent(student_id=m.student_id, status=m.status, entry_ref=uuid.uuid4().hex) for m in marks]
        session = self._instructors.add_marking_session(
            instructor_id=instructor.instructor_id,
            on_date=on_date,
            subject_id=subject_id,
            batch_year=batch_year,
            students_marked=lines,
            created_at=now,
        )

        written: List[int] = []
        failed: List[int] = []
        for line in lines:
            try:
                self._students.append_attendance(
                    student_id=line.student_id,
                    subject_id=subject_id,
                    on_date=on_date,
                    status=line.status,
                    marked_by=instructor.instructor_id,
                    entry_ref=line.entry_ref,
                )
                written.append(line.student_id)
            except Exception:
                logger.error(
                    "student entry not written session=%s student=%s",
                    session.session_id, line.student_id, exc_info=True,
                )
                failed.append(line.student_id)

        self._stats.recompute_stats(subject_id, batch_year, now=now)
        for student_id in written:
            self._stats.refresh_student_analytics(student_id)

        logger.info(
            "attendance marked session=%s instructor=%s subject=%s batch=%s date=%s written=%d failed=%d",
            session.session_id, instructor.instructor_id, subject_id, batch_year, on_date, len(written), len(failed),
        )
        self._notify(
            EVENT_ATTENDANCE_MARKED,
            {
                "instructorId": instructor.instructor_id,
                "sessionId": session.session_id,
                "subjectId": subject_id,
                "batchYear": batch_year,
                "date": on_date.isoformat(),
            },
        )

        if failed:
            raise PartialPropagationFailure(
                f"Attendance saved but {len(failed)} student record(s) were not updated",
                session=session,
                failed_student_ids=failed,
            )
        return session

    def _check_students(self, marks: Sequence[AttendanceMark], batch_year: int) -> None:
        for mark in marks:
            student = self._students.get_by_id(mark.student_id)
            if not student:
                raise RecordNotFound(f"Student {mark.student_id} not found")
            if student.batch_year != batch_year:
                raise ValidationError(f"Student {mark.student_id} is not in batch {batch_year}")

    def edit_attendance(
        self,
        instructor_id: int,
        session_id: int,
        student_id: int,
        new_status,
        *,
        now: datetime | None = None,
    ) -> AttendanceEntry:
        status = parse_status(new_status)
        instructor = self._get_instructor(instructor_id)

        session = instructor.session_by_id(int(session_id))
        if not session:
            raise RecordNotFound("Attendance record not found")
        line = session.line_for(int(student_id))
        if not line:
            raise RecordNotFound("Student record not found")

        student = self._students.get_by_id(int(student_id))
        if not student:
            raise RecordNotFound("Student not found")

        # Resolve the student entry before writing anything, so an ambiguous
        # match leaves both records untouched.
        entry = self._resolve_entry(session, line, student)

        self._instructors.set_marked_status(session.session_id, line.student_id, status)
        self._students.set_attendance_status(entry.entry_id, status)
        self._stats.recompute_stats(session.subject_id, session.batch_year, now=now)
        self._stats.refresh_student_analytics(student.student_id)

        logger.info(
            "attendance corrected session=%s student=%s %s->%s",
            session.session_id, student.student_id, line.status.value, status.value,
        )
        self._notify(
            EVENT_ATTENDANCE_UPDATED,
            {
                "instructorId": instructor.instructor_id,
                "sessionId": session.session_id,
                "studentId": student.student_id,
                "newStatus": status.value,
            },
        )
        return replace(entry, status=status)

    def _resolve_entry(self, session: MarkingSession, line: MarkedStudent, student: Student) -> AttendanceEntry:
        if line.entry_ref:
            matches = [e for e in student.attendance if e.entry_ref == line.entry_ref]
        else:
            # Legacy lines without a ref: match on (subject, date).
            matches = [
                e for e in student.attendance
                if e.subject_id == session.subject_id and e.date == session.date
            ]

        if len(matches) != 1:
            logger.warning(
                "correction lookup matched %d entries session=%s student=%s",
                len(matches), session.session_id, student.student_id,
            )
            if not matches:
                raise InconsistentAttendance("Student record has no entry for this attendance session")
            raise InconsistentAttendance("Student record has several entries for this subject and date")
        return matches[0]

    def students_for(self, instructor_id: int, subject_id: int, batch_year: int) -> Sequence[Student]:
        instructor = self._get_instructor(instructor_id)
        require_can_mark(instructor, subject_id, batch_year, action="access")
        return self._students.list_for_subject(int(subject_id), int(batch_year))

    def attendance_records(
        self,
        instructor_id: int,
        subject_id: int,
        batch_year: int,
        *,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> List[MarkingSession]:
        instructor = self._get_instructor(instructor_id)
        require_can_mark(instructor, subject_id, batch_year, action="view attendance for")

        sessions = [
            s for s in instructor.attendance_marked
            if s.subject_id == int(subject_id) and s.batch_year == int(batch_year)
        ]
        if month and year:
            start, end = month_bounds(int(year), int(month))
            sessions = [s for s in sessions if start <= s.date <= end]
        return sorted(sessions, key=lambda s: s.date, reverse=True)

    def subject_stats(self, instructor_id: int, subject_id: int, batch_year: int) -> SubjectStats:
        instructor = self._get_instructor(instructor_id)
        require_can_mark(instructor, subject_id, batch_year, action="view statistics for")
        return self._stats.subject_stats(subject_id, batch_year)
