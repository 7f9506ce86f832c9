from __future__ import annotations

from ..accounts.model import Instructor
from ..core.exceptions import AuthorizationDenied


def can_mark(instructor: Instructor, subject_id: int, batch_year: int) -> bool:
    """True iff the instructor holds a grant for this subject covering this batch year.

    Ids that are not integers (a subject code, say) match no grant.
    """
    try:
        subject_id = int(subject_id)
        batch_year = int(batch_year)
    except (TypeError, ValueError):
        return False

    for grant in instructor.subjects:
        if grant.subject_id == subject_id and batch_year in grant.batch_years:
            return True
    return False


def require_can_mark(instructor: Instructor, subject_id: int, batch_year: int, *, action: str = "mark attendance for") -> None:
    if not can_mark(instructor, subject_id, batch_year):
        raise AuthorizationDenied(f"Not authorized to {action} this subject/batch")
