from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..attendance.model import AttendanceEntry, StudentAnalytics, SubjectBreakdown
from ..core.enums import AttendanceStatus, SubscriptionPlan
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_date, db_cursor, fetchall, fetchone, placeholders
from .model import Student, Subscription
from .repository import StudentRepository

_STUDENT_COLUMNS = """
    s.student_id, a.name, s.registration_number, s.batch_year,
    s.subscription_active, s.subscription_plan, s.subscription_start, s.subscription_end,
    s.overall_percentage
"""


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _hydrate(self, cur, rows: List[Dict[str, Any]]) -> List[Student]:
        """Attach subjects, attendance and analytics with one query each for all rows."""
        if not rows:
            return []
        ids = [int(r["student_id"]) for r in rows]
        marks = placeholders(len(ids))

        cur.execute(f"SELECT student_id, subject_id FROM student_subjects WHERE student_id IN ({marks})", ids)
        subjects: Dict[int, set] = defaultdict(set)
        for r in fetchall(cur):
            subjects[int(r["student_id"])].add(int(r["subject_id"]))

        cur.execute(
            f"""
            SELECT entry_id, student_id, subject_id, attend_date, status, marked_by, entry_ref
            FROM attendance_entries
            WHERE student_id IN ({marks})
            ORDER BY entry_id
            """,
            ids,
        )
        entries: Dict[int, List[AttendanceEntry]] = defaultdict(list)
        for r in fetchall(cur):
            entries[int(r["student_id"])].append(
                AttendanceEntry(
                    entry_id=int(r["entry_id"]),
                    student_id=int(r["student_id"]),
                    subject_id=int(r["subject_id"]),
                    date=as_date(r["attend_date"]),
                    status=AttendanceStatus(r["status"]),
                    marked_by=int(r["marked_by"]),
                    entry_ref=r.get("entry_ref"),
                )
            )

        cur.execute(
            f"""
            SELECT student_id, subject_id, present_count, absent_count, leave_count, total_count, percentage
            FROM student_subject_analytics
            WHERE student_id IN ({marks})
            ORDER BY student_id, subject_id
            """,
            ids,
        )
        breakdowns: Dict[int, List[SubjectBreakdown]] = defaultdict(list)
        for r in fetchall(cur):
            breakdowns[int(r["student_id"])].append(
                SubjectBreakdown(
                    subject_id=int(r["subject_id"]),
                    present=int(r["present_count"]),
                    absent=int(r["absent_count"]),
                    leave=int(r["leave_count"]),
                    total=int(r["total_count"]),
                    percentage=float(r["percentage"]),
                )
            )

        students = []
        for r in rows:
            sid = int(r["student_id"])
            plan = r.get("subscription_plan")
            students.append(
                Student(
                    student_id=sid,
                    name=r["name"],
                    registration_number=r["registration_number"],
                    batch_year=int(r["batch_year"]),
                    subjects=frozenset(subjects.get(sid, ())),
                    attendance=tuple(entries.get(sid, ())),
                    subscription=Subscription(
                        is_active=bool(r["subscription_active"]),
                        plan=SubscriptionPlan(plan) if plan else None,
                        start_date=as_date(r.get("subscription_start")),
                        end_date=as_date(r.get("subscription_end")),
                    ),
                    analytics=StudentAnalytics(
                        overall_percentage=float(r["overall_percentage"] or 0),
                        per_subject=tuple(breakdowns.get(sid, ())),
                    ),
                )
            )
        return students

    def get_by_id(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_STUDENT_COLUMNS} FROM students s JOIN accounts a ON a.account_id=s.student_id WHERE s.student_id=%s",
                (int(student_id),),
            )
            row = fetchone(cur)
            found = self._hydrate(cur, [row] if row else [])
            return found[0] if found else None

    def get_by_registration_number(self, registration_number: str) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_STUDENT_COLUMNS} FROM students s JOIN accounts a ON a.account_id=s.student_id WHERE s.registration_number=%s",
                (registration_number,),
            )
            row = fetchone(cur)
            found = self._hydrate(cur, [row] if row else [])
            return found[0] if found else None

    def list_by_batch_year(self, batch_year: int) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_STUDENT_COLUMNS}
                FROM students s JOIN accounts a ON a.account_id=s.student_id
                WHERE s.batch_year=%s
                ORDER BY s.registration_number
                """,
                (int(batch_year),),
            )
            return self._hydrate(cur, fetchall(cur))

    def list_for_subject(self, subject_id: int, batch_year: int) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_STUDENT_COLUMNS}
                FROM students s
                JOIN accounts a ON a.account_id=s.student_id
                JOIN student_subjects ss ON ss.student_id=s.student_id
                WHERE s.batch_year=%s AND ss.subject_id=%s
                ORDER BY s.registration_number
                """,
                (int(batch_year), int(subject_id)),
            )
            return self._hydrate(cur, fetchall(cur))

    def create_student(
        self,
        *,
        account_id: int,
        registration_number: str,
        batch_year: int,
        subject_ids: Iterable[int],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO students(student_id, registration_number, batch_year) VALUES(%s,%s,%s)",
                (int(account_id), registration_number, int(batch_year)),
            )
            rows = [(int(account_id), int(sid)) for sid in subject_ids]
            if rows:
                cur.executemany("INSERT INTO student_subjects(student_id, subject_id) VALUES(%s,%s)", rows)
            return int(account_id)

    def add_subject(self, student_id: int, subject_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT IGNORE INTO student_subjects(student_id, subject_id) VALUES(%s,%s)",
                (int(student_id), int(subject_id)),
            )
            return cur.rowcount > 0

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_entries(student_id, subject_id, attend_date, status, marked_by, entry_ref)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(student_id), int(subject_id), on_date, status.value, int(marked_by), entry_ref),
            )
            return int(cur.lastrowid)

    def set_attendance_status(self, entry_id: int, status: AttendanceStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE attendance_entries SET status=%s WHERE entry_id=%s", (status.value, int(entry_id)))
            return cur.rowcount > 0

    def save_analytics(self, student_id: int, analytics: StudentAnalytics) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE students SET overall_percentage=%s WHERE student_id=%s",
                (float(analytics.overall_percentage), int(student_id)),
            )
            cur.execute("DELETE FROM student_subject_analytics WHERE student_id=%s", (int(student_id),))
            if analytics.per_subject:
                cur.executemany(
                    """
                    INSERT INTO student_subject_analytics
                        (student_id, subject_id, present_count, absent_count, leave_count, total_count, percentage)
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    [
                        (int(student_id), b.subject_id, b.present, b.absent, b.leave, b.total, float(b.percentage))
                        for b in analytics.per_subject
                    ],
                )
            return True

    def save_subscription(self, student_id: int, subscription: Subscription) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE students
                SET subscription_active=%s, subscription_plan=%s, subscription_start=%s, subscription_end=%s
                WHERE student_id=%s
                """,
                (
                    1 if subscription.is_active else 0,
                    subscription.plan.value if subscription.plan else None,
                    subscription.start_date,
                    subscription.end_date,
                    int(student_id),
                ),
            )
            return cur.rowcount > 0
