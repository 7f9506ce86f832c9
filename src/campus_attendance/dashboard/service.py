from __future__ import annotations

from datetime import datetime

from ..common.datetime_utils import now_local
from .model import DashboardContent
from .repository import DashboardRepository


class DashboardService:
    """Shared dashboard content; read-only for the attendance core."""

    def __init__(self, dashboards: DashboardRepository):
        self._dashboards = dashboards

    def get_content(self, *, now: datetime | None = None) -> DashboardContent:
        now = now or now_local()
        content = self._dashboards.get_primary_admin_content()
        if content is None:
            return DashboardContent()

        carousel = sorted((c for c in content.carousel if c.active), key=lambda c: c.order)
        updates = [u for u in content.updates if u.expiry_date is None or u.expiry_date > now]
        updates.sort(key=lambda u: u.publish_date or datetime.min, reverse=True)
        return DashboardContent(carousel=tuple(carousel), updates=tuple(updates))
