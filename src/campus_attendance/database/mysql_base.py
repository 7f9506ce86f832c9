from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One short-lived connection per call: commit on success, rollback and re-raise on error."""
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def placeholders(count: int) -> str:
    """'%s,%s,...' for an IN (...) clause; callers must not pass zero."""
    if count <= 0:
        raise ValueError("IN clause needs at least one value")
    return ",".join(["%s"] * count)


def as_date(value: Any) -> Optional[date]:
    """MySQL DATE columns come back as date, DATETIME as datetime; keep the day only."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return datetime.strptime(value[:10], "%Y-%m-%d").date()
    raise TypeError(f"Unsupported MySQL DATE value type: {type(value)!r}")
