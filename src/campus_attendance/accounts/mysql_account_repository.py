from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Account
from .repository import AccountRepository


class MySQLAccountRepository(AccountRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load(self, cur, row: Optional[Dict[str, Any]]) -> Optional[Account]:
        if not row:
            return None
        cur.execute(
            "SELECT fingerprint FROM account_devices WHERE account_id=%s ORDER BY device_id",
            (int(row["account_id"]),),
        )
        devices = tuple(r["fingerprint"] for r in fetchall(cur))
        return Account(
            account_id=int(row["account_id"]),
            name=row["name"],
            email=row["email"],
            password_hash=row["password_hash"],
            role=Role(row["role"]),
            active_devices=devices,
            last_login=row.get("last_login"),
            is_active=bool(row.get("is_active", 1)),
        )

    def get_by_id(self, account_id: int) -> Optional[Account]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT account_id, name, email, password_hash, role, last_login, is_active
                FROM accounts WHERE account_id=%s
                """,
                (int(account_id),),
            )
            return self._load(cur, fetchone(cur))

    def get_by_email(self, email: str) -> Optional[Account]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT account_id, name, email, password_hash, role, last_login, is_active
                FROM accounts WHERE email=%s
                """,
                (email,),
            )
            return self._load(cur, fetchone(cur))

    def create_account(self, *, name: str, email: str, password_hash: str, role: Role) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO accounts(name, email, password_hash, role) VALUES(%s,%s,%s,%s)",
                (name, email, password_hash, role.value),
            )
            return int(cur.lastrowid)

    def set_active_devices(self, account_id: int, devices: Sequence[str]) -> bool:
        # Rewritten as a whole so the stored order is exactly `devices`.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM account_devices WHERE account_id=%s", (int(account_id),))
            if devices:
                cur.executemany(
                    "INSERT INTO account_devices(account_id, fingerprint) VALUES(%s,%s)",
                    [(int(account_id), d) for d in devices],
                )
            return True

    def set_last_login(self, account_id: int, when: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE accounts SET last_login=%s WHERE account_id=%s", (when, int(account_id)))
            return cur.rowcount > 0
