from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from .model import Subject, SubjectStats


class SubjectRepository(Protocol):
    def get_by_id(self, subject_id: int) -> Optional[Subject]:
        raise NotImplementedError

    def get_by_code(self, code: str) -> Optional[Subject]:
        raise NotImplementedError

    def list_by_batch_year(self, batch_year: int) -> Sequence[Subject]:
        raise NotImplementedError

    def create_subject(
        self,
        *,
        code: str,
        name: str,
        credits: int,
        batch_years: Iterable[int],
        description: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def add_faculty(self, subject_id: int, instructor_id: int, batch_year: int, assigned_date: datetime) -> bool:
        raise NotImplementedError

    def remove_faculty(self, subject_id: int, instructor_id: int, batch_year: int) -> bool:
        raise NotImplementedError

    def upsert_stats(self, subject_id: int, stats: SubjectStats) -> SubjectStats:
        """Replace the stats row for `stats.batch_year` (insert when missing)."""

        raise NotImplementedError
