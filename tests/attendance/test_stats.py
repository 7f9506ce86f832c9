from __future__ import annotations

from datetime import date, timedelta

import pytest

from campus_attendance.accounts.model import Student
from campus_attendance.attendance.model import AttendanceEntry, AttendanceMark
from campus_attendance.attendance.stats import compute_student_analytics, compute_subject_totals
from campus_attendance.core.enums import AttendanceStatus
from campus_attendance.core.exceptions import AuthorizationDenied, RecordNotFound

P, A, L = AttendanceStatus.PRESENT, AttendanceStatus.ABSENT, AttendanceStatus.LEAVE


def _student(student_id, *statuses, subject_id=1):
    entries = tuple(
        AttendanceEntry(
            entry_id=n, student_id=student_id, subject_id=subject_id,
            date=date(2026, 2, 1) + timedelta(days=n), status=s, marked_by=99,
        )
        for n, s in enumerate(statuses)
    )
    return Student(student_id=student_id, name="s", registration_number=f"R{student_id}", batch_year=2023, attendance=entries)


def test_total_classes_is_the_largest_per_student_count():
    students = [_student(1, P, P, A), _student(2, P)]

    total, average = compute_subject_totals(students, 1)

    assert total == 3
    # 3 present / (3 classes * 2 students)
    assert average == pytest.approx(50.0)


def test_other_subjects_are_ignored():
    students = [_student(1, P, P, subject_id=2), _student(2, A)]

    assert compute_subject_totals(students, 1) == (1, 0.0)


def test_no_students_or_no_entries_is_zero():
    assert compute_subject_totals([], 1) == (0, 0.0)
    assert compute_subject_totals([_student(1)], 1) == (0, 0.0)


def test_recompute_with_no_matching_students(store, container, campus, fixed_now):
    stats = container.stats_service.recompute_stats(campus.subject_id, 2025, now=fixed_now)

    assert (stats.total_classes, stats.average_attendance) == (0, 0)
    assert store.subjects.get_by_id(campus.subject_id).stats_for(2025) == stats


def test_recompute_is_idempotent_and_replaces_the_batch_row(store, container, campus, fixed_now):
    container.attendance_service.mark_attendance(
        campus.instructor_id, campus.subject_id, 2023, fixed_now.date(),
        [AttendanceMark(campus.s1, P), AttendanceMark(campus.s2, L)], now=fixed_now,
    )

    first = container.stats_service.recompute_stats(campus.subject_id, 2023, now=fixed_now)
    second = container.stats_service.recompute_stats(campus.subject_id, 2023, now=fixed_now + timedelta(minutes=1))

    assert (first.total_classes, first.average_attendance) == (second.total_classes, second.average_attendance)
    rows = [s for s in store.subjects.get_by_id(campus.subject_id).attendance_stats if s.batch_year == 2023]
    assert rows == [second]


def test_student_analytics_breakdown():
    student = _student(1, P, A, L, P)

    analytics = compute_student_analytics(student)

    assert analytics.overall_percentage == pytest.approx(50.0)
    (b,) = analytics.per_subject
    assert (b.present, b.absent, b.leave, b.total, b.percentage) == (2, 1, 1, 4, pytest.approx(50.0))


def test_empty_student_analytics():
    assert compute_student_analytics(_student(1)).overall_percentage == 0.0


def test_student_report_filters_by_subject_and_month(store, container, campus, fixed_now):
    service = container.attendance_service
    service.mark_attendance(campus.instructor_id, campus.subject_id, 2023, date(2026, 2, 27), [AttendanceMark(campus.s1, A)], now=fixed_now)
    service.mark_attendance(campus.instructor_id, campus.subject_id, 2023, date(2026, 3, 1), [AttendanceMark(campus.s1, P)], now=fixed_now)

    march = container.stats_service.student_report(campus.s1, subject_id=campus.subject_id, month=3, year=2026)
    (only,) = march.subjects
    assert (only.total, only.present) == (1, 1)

    everything = container.stats_service.student_report(campus.s1)
    assert everything.overall == pytest.approx(50.0)
    assert [b.total for b in everything.subjects] == [2]

    with pytest.raises(RecordNotFound):
        container.stats_service.student_report(campus.s1, subject_id=999)


def test_subject_stats_read_is_guarded(container, campus, fixed_now):
    with pytest.raises(RecordNotFound, match="No statistics"):
        container.attendance_service.subject_stats(campus.instructor_id, campus.subject_id, 2023)

    with pytest.raises(AuthorizationDenied):
        container.attendance_service.subject_stats(campus.instructor_id, campus.subject_id, 2022)


def test_records_and_roster_reads(container, campus, fixed_now):
    service = container.attendance_service
    service.mark_attendance(campus.instructor_id, campus.subject_id, 2023, date(2026, 2, 27), [AttendanceMark(campus.s1, A)], now=fixed_now)
    service.mark_attendance(campus.instructor_id, campus.subject_id, 2023, date(2026, 3, 1), [AttendanceMark(campus.s1, P)], now=fixed_now)

    records = service.attendance_records(campus.instructor_id, campus.subject_id, 2023)
    assert [r.date for r in records] == [date(2026, 3, 1), date(2026, 2, 27)]
    assert len(service.attendance_records(campus.instructor_id, campus.subject_id, 2023, month=2, year=2026)) == 1

    roster = service.students_for(campus.instructor_id, campus.subject_id, 2023)
    assert sorted(s.student_id for s in roster) == sorted([campus.s1, campus.s2])

    with pytest.raises(AuthorizationDenied):
        service.students_for(campus.instructor_id, campus.subject_id, 2022)
