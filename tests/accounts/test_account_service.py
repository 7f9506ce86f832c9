from __future__ import annotations

from datetime import date

import pytest

from campus_attendance.core.enums import Role, SubscriptionPlan
from campus_attendance.core.exceptions import AuthenticationError, DeviceLimitExceeded, ValidationError


def test_auth_wrong_password_raises(container, campus):
    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("ada@campus.local", "wrong", device="laptop")


def test_auth_success_admits_device(store, container, campus, fixed_now):
    user = container.auth_service.authenticate("ADA@campus.local ", "teach123", device="laptop", now=fixed_now)

    assert user.account_id == campus.instructor_id
    assert user.role == Role.INSTRUCTOR
    assert store.accounts.get_by_id(campus.instructor_id).active_devices == ("laptop",)


def test_auth_rejects_device_over_limit(container, campus, fixed_now):
    container.auth_service.authenticate("s1@campus.local", "learn123", device="phone", now=fixed_now)

    with pytest.raises(DeviceLimitExceeded):
        container.auth_service.authenticate("s1@campus.local", "learn123", device="laptop", now=fixed_now)


def test_new_student_gets_batch_subjects(store, container, campus, fixed_now):
    student = store.students.get_by_id(campus.older)

    assert campus.subject_id in student.subjects


def test_new_subject_is_added_to_existing_batch_students(store, container, campus, fixed_now):
    ma = container.catalog_service.add_subject(code="ma102", name="Discrete Maths", credits=3, batch_years=[2023], now=fixed_now)

    assert ma.subject_id in store.students.get_by_id(campus.s1).subjects
    assert ma.subject_id in store.students.get_by_id(campus.s2).subjects
    assert ma.subject_id not in store.students.get_by_id(campus.older).subjects


def test_student_batch_year_must_be_recent(container, campus, fixed_now):
    with pytest.raises(ValidationError, match="batch year"):
        container.account_service.create_student(
            name="Too Old", email="x@campus.local", password="learn123",
            registration_number="REG-X", batch_year=2015, now=fixed_now,
        )


def test_duplicate_registration_number_rejected(container, campus, fixed_now):
    with pytest.raises(ValidationError):
        container.account_service.create_student(
            name="Copy", email="copy@campus.local", password="learn123",
            registration_number="REG-1", batch_year=2023, now=fixed_now,
        )


def test_update_subscription(store, container, campus, fixed_now):
    sub = container.account_service.update_subscription(campus.s1, plan="Premium", now=fixed_now)

    assert sub.is_active
    assert sub.plan == SubscriptionPlan.PREMIUM
    assert sub.start_date == date(2026, 3, 2)
    assert store.students.get_by_id(campus.s1).subscription == sub


def test_update_subscription_rejects_unknown_plan(container, campus):
    with pytest.raises(ValidationError):
        container.account_service.update_subscription(campus.s1, plan="gold")
