from __future__ import annotations

from typing import Optional, Protocol

from .model import DashboardContent


class DashboardRepository(Protocol):
    def get_primary_admin_content(self) -> Optional[DashboardContent]:
        """Content owned by the first administrator account, or None when there is none."""

        raise NotImplementedError
