from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import FacultyAssignment, Subject, SubjectStats
from .repository import SubjectRepository


class MySQLSubjectRepository(SubjectRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load(self, cur, row: Optional[Dict[str, Any]]) -> Optional[Subject]:
        if not row:
            return None
        subject_id = int(row["subject_id"])

        cur.execute("SELECT batch_year FROM subject_batch_years WHERE subject_id=%s", (subject_id,))
        years = frozenset(int(r["batch_year"]) for r in fetchall(cur))

        cur.execute(
            """
            SELECT instructor_id, batch_year, assigned_date FROM subject_faculty
            WHERE subject_id=%s ORDER BY assigned_date
            """,
            (subject_id,),
        )
        faculty = tuple(
            FacultyAssignment(
                instructor_id=int(r["instructor_id"]),
                batch_year=int(r["batch_year"]),
                assigned_date=r.get("assigned_date"),
            )
            for r in fetchall(cur)
        )

        cur.execute(
            """
            SELECT batch_year, total_classes, average_attendance, last_updated
            FROM subject_attendance_stats WHERE subject_id=%s ORDER BY batch_year
            """,
            (subject_id,),
        )
        stats = tuple(
            SubjectStats(
                batch_year=int(r["batch_year"]),
                total_classes=int(r["total_classes"]),
                average_attendance=float(r["average_attendance"]),
                last_updated=r["last_updated"],
            )
            for r in fetchall(cur)
        )

        return Subject(
            subject_id=subject_id,
            code=row["code"],
            name=row["name"],
            credits=int(row["credits"]),
            batch_years=years,
            assigned_faculty=faculty,
            attendance_stats=stats,
            description=row.get("description"),
            is_active=bool(row.get("is_active", 1)),
        )

    def get_by_id(self, subject_id: int) -> Optional[Subject]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT subject_id, code, name, description, credits, is_active FROM subjects WHERE subject_id=%s",
                (int(subject_id),),
            )
            return self._load(cur, fetchone(cur))

    def get_by_code(self, code: str) -> Optional[Subject]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT subject_id, code, name, description, credits, is_active FROM subjects WHERE code=%s",
                (code.upper(),),
            )
            return self._load(cur, fetchone(cur))

    def list_by_batch_year(self, batch_year: int) -> Sequence[Subject]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT s.subject_id, s.code, s.name, s.description, s.credits, s.is_active
                FROM subjects s JOIN subject_batch_years b ON b.subject_id=s.subject_id
                WHERE b.batch_year=%s
                ORDER BY s.code
                """,
                (int(batch_year),),
            )
            rows = fetchall(cur)
            subjects: List[Subject] = []
            for r in rows:
                subjects.append(self._load(cur, r))
            return subjects

    def create_subject(
        self,
        *,
        code: str,
        name: str,
        credits: int,
        batch_years: Iterable[int],
        description: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO subjects(code, name, description, credits) VALUES(%s,%s,%s,%s)",
                (code.upper(), name, description, int(credits)),
            )
            subject_id = int(cur.lastrowid)
            cur.executemany(
                "INSERT INTO subject_batch_years(subject_id, batch_year) VALUES(%s,%s)",
                [(subject_id, int(y)) for y in batch_years],
            )
            return subject_id

    def add_faculty(self, subject_id: int, instructor_id: int, batch_year: int, assigned_date: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO subject_faculty(subject_id, instructor_id, batch_year, assigned_date)
                VALUES(%s,%s,%s,%s)
                """,
                (int(subject_id), int(instructor_id), int(batch_year), assigned_date),
            )
            return cur.rowcount > 0

    def remove_faculty(self, subject_id: int, instructor_id: int, batch_year: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM subject_faculty WHERE subject_id=%s AND instructor_id=%s AND batch_year=%s",
                (int(subject_id), int(instructor_id), int(batch_year)),
            )
            return cur.rowcount > 0

    def upsert_stats(self, subject_id: int, stats: SubjectStats) -> SubjectStats:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO subject_attendance_stats(subject_id, batch_year, total_classes, average_attendance, last_updated)
                VALUES(%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    total_classes=VALUES(total_classes),
                    average_attendance=VALUES(average_attendance),
                    last_updated=VALUES(last_updated)
                """,
                (int(subject_id), stats.batch_year, stats.total_classes, float(stats.average_attendance), stats.last_updated),
            )
        return stats
