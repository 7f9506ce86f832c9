from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import CarouselItem, DashboardContent, DashboardUpdate
from .repository import DashboardRepository


class MySQLDashboardRepository(DashboardRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_primary_admin_content(self) -> Optional[DashboardContent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT account_id FROM accounts WHERE role='admin' ORDER BY account_id LIMIT 1")
            admin = fetchone(cur)
            if not admin:
                return None
            admin_id = int(admin["account_id"])

            cur.execute(
                """
                SELECT title, description, image_url, link, sort_order, active
                FROM admin_carousel_items WHERE admin_id=%s ORDER BY sort_order, item_id
                """,
                (admin_id,),
            )
            carousel = tuple(
                CarouselItem(
                    title=r["title"],
                    description=r.get("description"),
                    image_url=r.get("image_url"),
                    link=r.get("link"),
                    order=int(r["sort_order"]),
                    active=bool(r["active"]),
                )
                for r in fetchall(cur)
            )

            cur.execute(
                """
                SELECT title, content, category, priority, publish_date, expiry_date
                FROM admin_updates WHERE admin_id=%s ORDER BY publish_date DESC
                """,
                (admin_id,),
            )
            updates = tuple(
                DashboardUpdate(
                    title=r["title"],
                    content=r["content"],
                    category=r["category"],
                    priority=r["priority"],
                    publish_date=r.get("publish_date"),
                    expiry_date=r.get("expiry_date"),
                )
                for r in fetchall(cur)
            )
            return DashboardContent(carousel=carousel, updates=updates)
