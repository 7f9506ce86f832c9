from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..accounts.repository import InstructorRepository, StudentRepository
from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.constants import EVENT_SUBJECT_ADDED, MAX_SUBJECT_CREDITS, MIN_SUBJECT_CREDITS
from ..core.exceptions import RecordNotFound, ValidationError
from ..notifications.notifier import Notifier
from .model import Subject
from .repository import SubjectRepository

logger = logging.getLogger(__name__)


class SubjectCatalogService:
    """Use case: subjects and instructor assignments (admin)."""

    def __init__(
        self,
        subjects: SubjectRepository,
        students: StudentRepository,
        instructors: InstructorRepository,
        notifier: Notifier | None = None,
    ):
        self._subjects = subjects
        self._students = students
        self._instructors = instructors
        self._notifier = notifier

    def add_subject(
        self,
        *,
        code: str,
        name: str,
        credits: int,
        batch_years: Iterable[int],
        description: Optional[str] = None,
        now: datetime | None = None,
    ) -> Subject:
        now = now or now_local()
        code = require_non_empty(code, "Subject code").upper()
        name = require_non_empty(name, "Subject name")
        credits = int(credits)
        if not MIN_SUBJECT_CREDITS <= credits <= MAX_SUBJECT_CREDITS:
            raise ValidationError(f"Credits must be between {MIN_SUBJECT_CREDITS} and {MAX_SUBJECT_CREDITS}")

        years = sorted({int(y) for y in batch_years})
        if not years:
            raise ValidationError("At least one batch year is required")
        for year in years:
            if not now.year - 4 <= year <= now.year:
                raise ValidationError(f"{year} is not a valid batch year")

        if self._subjects.get_by_code(code):
            raise ValidationError("Subject code already exists")

        subject_id = self._subjects.create_subject(
            code=code, name=name, credits=credits, batch_years=years, description=description
        )

        # New subjects are enrolled automatically for every student of those batches.
        enrolled = 0
        for year in years:
            for student in self._students.list_by_batch_year(year):
                if subject_id not in student.subjects:
                    self._students.add_subject(student.student_id, subject_id)
                    enrolled += 1
        logger.info("subject %s created id=%s enrolled=%d", code, subject_id, enrolled)

        subject = self._subjects.get_by_id(subject_id)
        if self._notifier:
            self._notifier.notify(
                EVENT_SUBJECT_ADDED,
                {"subjectId": subject_id, "code": code, "name": name, "batchYears": years},
            )
        return subject

    def assign_instructor(self, subject_id: int, instructor_id: int, batch_year: int, *, now: datetime | None = None) -> Subject:
        subject, _ = self._load(subject_id, instructor_id)
        batch_year = int(batch_year)
        if batch_year not in subject.batch_years:
            raise ValidationError("Subject is not offered to this batch")

        for assignment in subject.assigned_faculty:
            if assignment.instructor_id == int(instructor_id) and assignment.batch_year == batch_year:
                raise ValidationError("Instructor is already assigned to this subject for this batch")

        self._subjects.add_faculty(subject.subject_id, int(instructor_id), batch_year, now or now_local())
        self._instructors.add_grant(int(instructor_id), subject.subject_id, batch_year)
        return self._subjects.get_by_id(subject.subject_id)

    def remove_instructor(self, subject_id: int, instructor_id: int, batch_year: int) -> Subject:
        subject, _ = self._load(subject_id, instructor_id)
        if not self._subjects.remove_faculty(subject.subject_id, int(instructor_id), int(batch_year)):
            raise RecordNotFound("Instructor assignment not found")
        self._instructors.remove_grant(int(instructor_id), subject.subject_id, int(batch_year))
        return self._subjects.get_by_id(subject.subject_id)

    def subjects_for_batch(self, batch_year: int) -> Sequence[Subject]:
        return [s for s in self._subjects.list_by_batch_year(int(batch_year)) if s.is_active]

    def _load(self, subject_id: int, instructor_id: int):
        subject = self._subjects.get_by_id(int(subject_id))
        instructor = self._instructors.get_by_id(int(instructor_id))
        if not subject or not instructor:
            raise RecordNotFound("Instructor or subject not found")
        return subject, instructor
