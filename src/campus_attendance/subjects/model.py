from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, Optional, Tuple


@dataclass(frozen=True)
class FacultyAssignment:
    instructor_id: int
    batch_year: int
    assigned_date: Optional[datetime] = None


@dataclass(frozen=True)
class SubjectStats:
    """Derived cache, recomputed from student records; never a source of truth."""

    batch_year: int
    total_classes: int
    average_attendance: float
    last_updated: datetime


@dataclass(frozen=True)
class Subject:
    subject_id: int
    code: str
    name: str
    credits: int
    batch_years: FrozenSet[int]
    assigned_faculty: Tuple[FacultyAssignment, ...] = field(default_factory=tuple)
    attendance_stats: Tuple[SubjectStats, ...] = field(default_factory=tuple)
    description: Optional[str] = None
    is_active: bool = True

    def stats_for(self, batch_year: int) -> Optional[SubjectStats]:
        for stats in self.attendance_stats:
            if stats.batch_year == int(batch_year):
                return stats
        return None
