from __future__ import annotations

from datetime import datetime
from types import SimpleNamespace

import pytest

from campus_attendance.container import wire_services
from campus_attendance.core.enums import Role

from fakes import InMemoryStore


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 2, 9, 0, 0)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def container(store):
    return wire_services(
        accounts=store.accounts,
        students=store.students,
        instructors=store.instructors,
        subjects=store.subjects,
        dashboards=store.dashboards,
    )


@pytest.fixture
def campus(store, container, fixed_now):
    """CS101 offered to 2022 and 2023; instructor granted 2023 only; two 2023 students and one 2022 student."""
    accounts = container.account_service
    catalog = container.catalog_service

    cs101 = catalog.add_subject(code="cs101", name="Intro to Programming", credits=4, batch_years=[2022, 2023], now=fixed_now)
    instructor_id = accounts.create_instructor(
        name="Ada Lovelace",
        email="ada@campus.local",
        password="teach123",
        employee_id="EMP-1",
        department="Computer Science",
    )
    catalog.assign_instructor(cs101.subject_id, instructor_id, 2023, now=fixed_now)

    s1 = accounts.create_student(
        name="Sam One", email="s1@campus.local", password="learn123",
        registration_number="REG-1", batch_year=2023, now=fixed_now,
    )
    s2 = accounts.create_student(
        name="Sam Two", email="s2@campus.local", password="learn123",
        registration_number="REG-2", batch_year=2023, now=fixed_now,
    )
    older = accounts.create_student(
        name="Old Timer", email="old@campus.local", password="learn123",
        registration_number="REG-9", batch_year=2022, now=fixed_now,
    )
    admin_id = store.accounts.create_account(
        name="Admin", email="admin@campus.local", password_hash="x", role=Role.ADMIN
    )

    return SimpleNamespace(
        subject_id=cs101.subject_id,
        instructor_id=instructor_id,
        s1=s1,
        s2=s2,
        older=older,
        admin_id=admin_id,
    )
