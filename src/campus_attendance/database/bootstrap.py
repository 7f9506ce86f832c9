from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Iterable, Iterator, Mapping

from werkzeug.security import generate_password_hash

from .connection import DBConfig, DatabaseConnection

logger = logging.getLogger(__name__)


def _strip_create_db_and_use(sql: str) -> str:
    # The target database comes from settings, whatever schema.sql names.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_comments(sql: str) -> str:
    return "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a script on ';' outside quoted strings."""
    buf: list[str] = []
    quote: str | None = None
    escape = False

    for ch in _strip_comments(sql):
        buf.append(ch)
        if escape:
            escape = False
            continue
        if ch == "\\":
            escape = True
            continue
        if ch in ("'", '"'):
            if quote is None:
                quote = ch
            elif quote == ch:
                quote = None
            continue
        if ch == ";" and quote is None:
            stmt = "".join(buf[:-1]).strip()
            buf.clear()
            if stmt:
                yield stmt

    tail = "".join(buf).strip()
    if tail:
        yield tail


@contextmanager
def _connection(db_config: Mapping, *, with_database: bool = True) -> Iterator:
    conn = DatabaseConnection(DBConfig.from_mapping(db_config)).connect(with_database=with_database)
    try:
        yield conn
    finally:
        conn.close()


def _run_script(db_config: Mapping, path: str | Path) -> int:
    sql = _strip_create_db_and_use(Path(path).read_text(encoding="utf-8"))
    count = 0
    with _connection(db_config) as conn:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
            count += 1
        conn.commit()
    return count


def ensure_database_exists(db_config: Mapping) -> None:
    target = DBConfig.from_mapping(db_config)
    with _connection(db_config, with_database=False) as conn:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()


def apply_schema(db_config: Mapping, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    count = _run_script(db_config, schema_path)
    logger.info("schema applied (%d statements) from %s", count, schema_path)


def apply_seed_sql(db_config: Mapping, *, seed_path: str | Path) -> None:
    count = _run_script(db_config, seed_path)
    logger.info("seed applied (%d statements) from %s", count, seed_path)


def ensure_demo_accounts(db_config: Mapping, *, today: date | None = None) -> None:
    """Create (or reset the passwords of) one admin, one instructor and one student.

    The instructor is granted the demo subject for the student's batch year.
    """
    today = today or date.today()
    batch_year = today.year - 1

    with _connection(db_config) as conn:
        cur = conn.cursor(dictionary=True)

        def upsert_account(name: str, email: str, password: str, role: str) -> int:
            password_hash = generate_password_hash(password)
            cur.execute("SELECT account_id FROM accounts WHERE email=%s", (email,))
            row = cur.fetchone()
            if row:
                cur.execute(
                    "UPDATE accounts SET name=%s, password_hash=%s, role=%s, is_active=1 WHERE account_id=%s",
                    (name, password_hash, role, row["account_id"]),
                )
                return int(row["account_id"])
            cur.execute(
                "INSERT INTO accounts(name, email, password_hash, role) VALUES(%s,%s,%s,%s)",
                (name, email, password_hash, role),
            )
            return int(cur.lastrowid)

        upsert_account("Admin Demo", "admin@campus.local", "admin123", "admin")
        instructor_id = upsert_account("Instructor Demo", "instructor@campus.local", "teach123", "instructor")
        student_id = upsert_account("Student Demo", "student@campus.local", "learn123", "student")

        cur.execute(
            "INSERT IGNORE INTO instructors(instructor_id, employee_id, department, designation) VALUES(%s,%s,%s,%s)",
            (instructor_id, "EMP-001", "Computer Science", "Lecturer"),
        )
        cur.execute(
            "INSERT IGNORE INTO students(student_id, registration_number, batch_year) VALUES(%s,%s,%s)",
            (student_id, "REG-0001", batch_year),
        )

        cur.execute("SELECT subject_id FROM subjects WHERE code=%s", ("CS101",))
        subject = cur.fetchone()
        if subject:
            subject_id = int(subject["subject_id"])
            cur.execute(
                "INSERT IGNORE INTO subject_batch_years(subject_id, batch_year) VALUES(%s,%s)",
                (subject_id, batch_year),
            )
            cur.execute(
                "INSERT IGNORE INTO student_subjects(student_id, subject_id) VALUES(%s,%s)",
                (student_id, subject_id),
            )
            cur.execute(
                "INSERT IGNORE INTO instructor_subjects(instructor_id, subject_id, batch_year) VALUES(%s,%s,%s)",
                (instructor_id, subject_id, batch_year),
            )
            cur.execute(
                """
                INSERT IGNORE INTO subject_faculty(subject_id, instructor_id, batch_year, assigned_date)
                VALUES(%s,%s,%s,NOW())
                """,
                (subject_id, instructor_id, batch_year),
            )

        conn.commit()
    logger.info("demo accounts ready (batch %s)", batch_year)


def list_tables(db_config: Mapping) -> list[str]:
    with _connection(db_config) as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
