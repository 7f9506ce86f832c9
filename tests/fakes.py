"""In-memory implementations of the repository protocols, sharing one data set."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, Set

from campus_attendance.accounts.model import Account, Instructor, Student, SubjectGrant, Subscription
from campus_attendance.attendance.model import AttendanceEntry, MarkedStudent, MarkingSession, StudentAnalytics
from campus_attendance.core.enums import AttendanceStatus, Role
from campus_attendance.dashboard.model import DashboardContent
from campus_attendance.subjects.model import FacultyAssignment, Subject, SubjectStats


@dataclass
class _Data:
    accounts: Dict[int, Account] = field(default_factory=dict)
    students: Dict[int, Student] = field(default_factory=dict)
    instructors: Dict[int, Instructor] = field(default_factory=dict)
    subjects: Dict[int, Subject] = field(default_factory=dict)
    dashboard: Optional[DashboardContent] = None
    next_id: int = 1

    def new_id(self) -> int:
        value = self.next_id
        self.next_id += 1
        return value


class InMemoryAccounts:
    def __init__(self, data: _Data):
        self._d = data

    def get_by_id(self, account_id: int) -> Optional[Account]:
        return self._d.accounts.get(int(account_id))

    def get_by_email(self, email: str) -> Optional[Account]:
        return next((a for a in self._d.accounts.values() if a.email == email), None)

    def create_account(self, *, name: str, email: str, password_hash: str, role: Role) -> int:
        account_id = self._d.new_id()
        self._d.accounts[account_id] = Account(
            account_id=account_id, name=name, email=email, password_hash=password_hash, role=role
        )
        return account_id

    def set_active_devices(self, account_id: int, devices: Sequence[str]) -> bool:
        account = self._d.accounts[int(account_id)]
        self._d.accounts[account.account_id] = replace(account, active_devices=tuple(devices))
        return True

    def set_last_login(self, account_id: int, when: datetime) -> bool:
        account = self._d.accounts[int(account_id)]
        self._d.accounts[account.account_id] = replace(account, last_login=when)
        return True


class InMemoryStudents:
    def __init__(self, data: _Data):
        self._d = data
        self.fail_append_for: Set[int] = set()
        self._entry_id = 0

    def get_by_id(self, student_id: int) -> Optional[Student]:
        return self._d.students.get(int(student_id))

    def get_by_registration_number(self, registration_number: str) -> Optional[Student]:
        return next((s for s in self._d.students.values() if s.registration_number == registration_number), None)

    def list_by_batch_year(self, batch_year: int) -> Sequence[Student]:
        return [s for s in self._d.students.values() if s.batch_year == int(batch_year)]

    def list_for_subject(self, subject_id: int, batch_year: int) -> Sequence[Student]:
        return [s for s in self.list_by_batch_year(batch_year) if int(subject_id) in s.subjects]

    def create_student(self, *, account_id: int, registration_number: str, batch_year: int, subject_ids: Iterable[int]) -> int:
        account = self._d.accounts[int(account_id)]
        self._d.students[account.account_id] = Student(
            student_id=account.account_id,
            name=account.name,
            registration_number=registration_number,
            batch_year=int(batch_year),
            subjects=frozenset(int(s) for s in subject_ids),
        )
        return account.account_id

    def add_subject(self, student_id: int, subject_id: int) -> bool:
        student = self._d.students[int(student_id)]
        self._d.students[student.student_id] = replace(student, subjects=student.subjects | {int(subject_id)})
        return True

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
        if int(student_id) in self.fail_append_for:
            raise RuntimeError("storage unavailable")
        student = self._d.students[int(student_id)]
        self._entry_id += 1
        entry = AttendanceEntry(
            entry_id=self._entry_id,
            student_id=student.student_id,
            subject_id=int(subject_id),
            date=on_date,
            status=status,
            marked_by=int(marked_by),
            entry_ref=entry_ref,
        )
        self._d.students[student.student_id] = replace(student, attendance=student.attendance + (entry,))
        return entry.entry_id

    def set_attendance_status(self, entry_id: int, status: AttendanceStatus) -> bool:
        for student in self._d.students.values():
            for i, entry in enumerate(student.attendance):
                if entry.entry_id == int(entry_id):
                    entries = list(student.attendance)
                    entries[i] = replace(entry, status=status)
                    self._d.students[student.student_id] = replace(student, attendance=tuple(entries))
                    return True
        return False

    def save_analytics(self, student_id: int, analytics: StudentAnalytics) -> bool:
        student = self._d.students[int(student_id)]
        self._d.students[student.student_id] = replace(student, analytics=analytics)
        return True

    def save_subscription(self, student_id: int, subscription: Subscription) -> bool:
        student = self._d.students[int(student_id)]
        self._d.students[student.student_id] = replace(student, subscription=subscription)
        return True

    # test helper: a row written before entry refs existed
    def add_legacy_entry(self, student_id: int, subject_id: int, on_date: date, status: AttendanceStatus, marked_by: int) -> int:
        return self.append_attendance(
            student_id=student_id, subject_id=subject_id, on_date=on_date, status=status,
            marked_by=marked_by, entry_ref=None,
        )


class InMemoryInstructors:
    def __init__(self, data: _Data):
        self._d = data
        self._session_id = 0

    def get_by_id(self, instructor_id: int) -> Optional[Instructor]:
        return self._d.instructors.get(int(instructor_id))

    def get_by_employee_id(self, employee_id: str) -> Optional[Instructor]:
        return next((i for i in self._d.instructors.values() if i.employee_id == employee_id), None)

    def create_instructor(self, *, account_id: int, employee_id: str, department: str, designation: str) -> int:
        account = self._d.accounts[int(account_id)]
        self._d.instructors[account.account_id] = Instructor(
            instructor_id=account.account_id,
            name=account.name,
            employee_id=employee_id,
            department=department,
            designation=designation,
        )
        return account.account_id

    def add_grant(self, instructor_id: int, subject_id: int, batch_year: int) -> bool:
        instructor = self._d.instructors[int(instructor_id)]
        grants: List[SubjectGrant] = []
        found = False
        for grant in instructor.subjects:
            if grant.subject_id == int(subject_id):
                grant = replace(grant, batch_years=grant.batch_years | {int(batch_year)})
                found = True
            grants.append(grant)
        if not found:
            grants.append(SubjectGrant(subject_id=int(subject_id), batch_years=frozenset({int(batch_year)})))
        self._d.instructors[instructor.instructor_id] = replace(instructor, subjects=tuple(grants))
        return True

    def remove_grant(self, instructor_id: int, subject_id: int, batch_year: int) -> bool:
        instructor = self._d.instructors[int(instructor_id)]
        grants = []
        for grant in instructor.subjects:
            if grant.subject_id == int(subject_id):
                grant = replace(grant, batch_years=grant.batch_years - {int(batch_year)})
                if not grant.batch_years:
                    continue
            grants.append(grant)
        self._d.instructors[instructor.instructor_id] = replace(instructor, subjects=tuple(grants))
        return True

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
        instructor = self._d.instructors[int(instructor_id)]
        self._session_id += 1
        session = MarkingSession(
            session_id=self._session_id,
            instructor_id=instructor.instructor_id,
            date=on_date,
            subject_id=int(subject_id),
            batch_year=int(batch_year),
            students_marked=tuple(students_marked),
            created_at=created_at,
        )
        self._d.instructors[instructor.instructor_id] = replace(
            instructor, attendance_marked=instructor.attendance_marked + (session,)
        )
        return session

    def set_marked_status(self, session_id: int, student_id: int, status: AttendanceStatus) -> bool:
        for instructor in self._d.instructors.values():
            sessions = list(instructor.attendance_marked)
            for i, session in enumerate(sessions):
                if session.session_id != int(session_id):
                    continue
                lines = tuple(
                    replace(line, status=status) if line.student_id == int(student_id) else line
                    for line in session.students_marked
                )
                sessions[i] = replace(session, students_marked=lines)
                self._d.instructors[instructor.instructor_id] = replace(instructor, attendance_marked=tuple(sessions))
                return True
        return False

    # test helper: a session line written before entry refs existed
    def add_legacy_session(self, instructor_id: int, on_date: date, subject_id: int, batch_year: int, lines: Sequence[MarkedStudent]) -> MarkingSession:
        return self.add_marking_session(
            instructor_id=instructor_id, on_date=on_date, subject_id=subject_id, batch_year=batch_year,
            students_marked=lines, created_at=datetime.combine(on_date, datetime.min.time()),
        )


class InMemorySubjects:
    def __init__(self, data: _Data):
        self._d = data

    def get_by_id(self, subject_id: int) -> Optional[Subject]:
        return self._d.subjects.get(int(subject_id))

    def get_by_code(self, code: str) -> Optional[Subject]:
        return next((s for s in self._d.subjects.values() if s.code == code.upper()), None)

    def list_by_batch_year(self, batch_year: int) -> Sequence[Subject]:
        return [s for s in self._d.subjects.values() if int(batch_year) in s.batch_years]

    def create_subject(self, *, code: str, name: str, credits: int, batch_years: Iterable[int], description: Optional[str] = None) -> int:
        subject_id = self._d.new_id()
        self._d.subjects[subject_id] = Subject(
            subject_id=subject_id,
            code=code.upper(),
            name=name,
            credits=int(credits),
            batch_years=frozenset(int(y) for y in batch_years),
            description=description,
        )
        return subject_id

    def add_faculty(self, subject_id: int, instructor_id: int, batch_year: int, assigned_date: datetime) -> bool:
        subject = self._d.subjects[int(subject_id)]
        assignment = FacultyAssignment(instructor_id=int(instructor_id), batch_year=int(batch_year), assigned_date=assigned_date)
        self._d.subjects[subject.subject_id] = replace(subject, assigned_faculty=subject.assigned_faculty + (assignment,))
        return True

    def remove_faculty(self, subject_id: int, instructor_id: int, batch_year: int) -> bool:
        subject = self._d.subjects[int(subject_id)]
        kept = tuple(
            a for a in subject.assigned_faculty
            if not (a.instructor_id == int(instructor_id) and a.batch_year == int(batch_year))
        )
        self._d.subjects[subject.subject_id] = replace(subject, assigned_faculty=kept)
        return len(kept) != len(subject.assigned_faculty)

    def upsert_stats(self, subject_id: int, stats: SubjectStats) -> SubjectStats:
        subject = self._d.subjects[int(subject_id)]
        others = tuple(s for s in subject.attendance_stats if s.batch_year != stats.batch_year)
        self._d.subjects[subject.subject_id] = replace(subject, attendance_stats=others + (stats,))
        return stats


class InMemoryDashboards:
    def __init__(self, data: _Data):
        self._d = data

    def get_primary_admin_content(self) -> Optional[DashboardContent]:
        return self._d.dashboard


class InMemoryStore:
    def __init__(self):
        self.data = _Data()
        self.accounts = InMemoryAccounts(self.data)
        self.students = InMemoryStudents(self.data)
        self.instructors = InMemoryInstructors(self.data)
        self.subjects = InMemorySubjects(self.data)
        self.dashboards = InMemoryDashboards(self.data)
