from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..attendance.model import MarkedStudent, MarkingSession
from ..core.enums import AttendanceStatus
from ..core.exceptions import DuplicateMarking
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_date, db_cursor, fetchall, fetchone, placeholders
from .model import Instructor, SubjectGrant
from .repository import InstructorRepository


class MySQLInstructorRepository(InstructorRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load(self, cur, row: Optional[Dict[str, Any]]) -> Optional[Instructor]:
        if not row:
            return None
        instructor_id = int(row["instructor_id"])

        cur.execute(
            """
            SELECT subject_id, batch_year FROM instructor_subjects
            WHERE instructor_id=%s ORDER BY subject_id, batch_year
            """,
            (instructor_id,),
        )
        years: Dict[int, set] = defaultdict(set)
        for r in fetchall(cur):
            years[int(r["subject_id"])].add(int(r["batch_year"]))
        grants = tuple(SubjectGrant(subject_id=sid, batch_years=frozenset(ys)) for sid, ys in years.items())

        cur.execute(
            """
            SELECT session_id, session_date, subject_id, batch_year, created_at
            FROM marking_sessions WHERE instructor_id=%s ORDER BY session_id
            """,
            (instructor_id,),
        )
        session_rows = fetchall(cur)
        sessions = self._sessions(cur, instructor_id, session_rows)

        return Instructor(
            instructor_id=instructor_id,
            name=row["name"],
            employee_id=row["employee_id"],
            department=row["department"],
            designation=row.get("designation") or "",
            subjects=grants,
            attendance_marked=tuple(sessions),
        )

    def _sessions(self, cur, instructor_id: int, session_rows: List[Dict[str, Any]]) -> List[MarkingSession]:
        if not session_rows:
            return []
        ids = [int(r["session_id"]) for r in session_rows]
        cur.execute(
            f"""
            SELECT session_id, student_id, status, entry_ref
            FROM marking_session_students
            WHERE session_id IN ({placeholders(len(ids))})
            ORDER BY session_id, student_id
            """,
            ids,
        )
        lines: Dict[int, List[MarkedStudent]] = defaultdict(list)
        for r in fetchall(cur):
            lines[int(r["session_id"])].append(
                MarkedStudent(
                    student_id=int(r["student_id"]),
                    status=AttendanceStatus(r["status"]),
                    entry_ref=r.get("entry_ref"),
                )
            )
        return [
            MarkingSession(
                session_id=int(r["session_id"]),
                instructor_id=instructor_id,
                date=as_date(r["session_date"]),
                subject_id=int(r["subject_id"]),
                batch_year=int(r["batch_year"]),
                students_marked=tuple(lines.get(int(r["session_id"]), ())),
                created_at=r.get("created_at"),
            )
            for r in session_rows
        ]

    def get_by_id(self, instructor_id: int) -> Optional[Instructor]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT i.instructor_id, a.name, i.employee_id, i.department, i.designation
                FROM instructors i JOIN accounts a ON a.account_id=i.instructor_id
                WHERE i.instructor_id=%s
                """,
                (int(instructor_id),),
            )
            return self._load(cur, fetchone(cur))

    def get_by_employee_id(self, employee_id: str) -> Optional[Instructor]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT i.instructor_id, a.name, i.employee_id, i.department, i.designation
                FROM instructors i JOIN accounts a ON a.account_id=i.instructor_id
                WHERE i.employee_id=%s
                """,
                (employee_id,),
            )
            return self._load(cur, fetchone(cur))

    def create_instructor(self, *, account_id: int, employee_id: str, department: str, designation: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO instructors(instructor_id, employee_id, department, designation) VALUES(%s,%s,%s,%s)",
                (int(account_id), employee_id, department, designation),
            )
            return int(account_id)

    def add_grant(self, instructor_id: int, subject_id: int, batch_year: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT IGNORE INTO instructor_subjects(instructor_id, subject_id, batch_year) VALUES(%s,%s,%s)",
                (int(instructor_id), int(subject_id), int(batch_year)),
            )
            return cur.rowcount > 0

    def remove_grant(self, instructor_id: int, subject_id: int, batch_year: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM instructor_subjects WHERE instructor_id=%s AND subject_id=%s AND batch_year=%s",
                (int(instructor_id), int(subject_id), int(batch_year)),
            )
            return cur.rowcount > 0

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
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO marking_sessions(instructor_id, session_date, subject_id, batch_year, created_at)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (int(instructor_id), on_date, int(subject_id), int(batch_year), created_at),
                )
                session_id = int(cur.lastrowid)
                cur.executemany(
                    "INSERT INTO marking_session_students(session_id, student_id, status, entry_ref) VALUES(%s,%s,%s,%s)",
                    [(session_id, m.student_id, m.status.value, m.entry_ref) for m in students_marked],
                )
        except mysql.connector.IntegrityError as err:
            if err.errno != errorcode.ER_DUP_ENTRY:
                raise
            # uq_session_day: same instructor, subject, batch and day.
            raise DuplicateMarking("Attendance already marked for this date") from err
        return MarkingSession(
            session_id=session_id,
            instructor_id=int(instructor_id),
            date=on_date,
            subject_id=int(subject_id),
            batch_year=int(batch_year),
            students_marked=tuple(students_marked),
            created_at=created_at,
        )

    def set_marked_status(self, session_id: int, student_id: int, status: AttendanceStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE marking_session_students SET status=%s WHERE session_id=%s AND student_id=%s",
                (status.value, int(session_id), int(student_id)),
            )
            return cur.rowcount > 0
