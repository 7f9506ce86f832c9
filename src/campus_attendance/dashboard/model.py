from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class CarouselItem:
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    link: Optional[str] = None
    order: int = 0
    active: bool = True


@dataclass(frozen=True)
class DashboardUpdate:
    title: str
    content: str
    category: str
    priority: str = "medium"
    publish_date: Optional[datetime] = None
    expiry_date: Optional[datetime] = None


@dataclass(frozen=True)
class DashboardContent:
    carousel: Tuple[CarouselItem, ...] = ()
    updates: Tuple[DashboardUpdate, ...] = ()
