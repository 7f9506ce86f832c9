from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_local
from ..common.validators import require_min_length, require_non_empty
from ..core.constants import EVENT_STUDENT_ADDED
from ..core.enums import Role, SubscriptionPlan
from ..core.exceptions import AuthenticationError, RecordNotFound, ValidationError
from ..notifications.notifier import Notifier
from ..subjects.repository import SubjectRepository
from .admission import SessionAdmissionService
from .model import Subscription
from .repository import AccountRepository, InstructorRepository, StudentRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    account_id: int
    name: str
    role: Role
    device: Optional[str]


class AuthService:
    """Use case: authenticate (login) and release a device (logout)."""

    def __init__(self, accounts: AccountRepository, admission: SessionAdmissionService):
        self._accounts = accounts
        self._admission = admission

    def authenticate(self, email: str, password: str, *, device: str, now: datetime | None = None) -> SessionUser:
        account = self._accounts.get_by_email((email or "").strip().lower())
        if not account or not account.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(account.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME'
            ok = False
        if not ok:
            raise AuthenticationError("Invalid email or password")

        self._admission.login(account, device, now=now)
        return SessionUser(
            account_id=account.account_id,
            name=account.name,
            role=account.role,
            device=None if account.role == Role.ADMIN else device,
        )

    def logout(self, account_id: int, device: str) -> None:
        account = self._accounts.get_by_id(account_id)
        if not account:
            return
        self._admission.logout(account, device)


class AccountService:
    """Use case: create students/instructors (admin) and manage subscriptions."""

    def __init__(
        self,
        accounts: AccountRepository,
        students: StudentRepository,
        instructors: InstructorRepository,
        subjects: SubjectRepository,
        notifier: Notifier | None = None,
    ):
        self._accounts = accounts
        self._students = students
        self._instructors = instructors
        self._subjects = subjects
        self._notifier = notifier

    def _create_account(self, *, name: str, email: str, password: str, role: Role) -> int:
        name = require_non_empty(name, "Name")
        email = require_non_empty(email, "Email").lower()
        require_min_length(password, "Password", 6)

        if self._accounts.get_by_email(email):
            raise ValidationError("Email is already registered")

        return self._accounts.create_account(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
        )

    def create_student(
        self,
        *,
        name: str,
        email: str,
        password: str,
        registration_number: str,
        batch_year: int,
        now: datetime | None = None,
    ) -> int:
        now = now or now_local()
        registration_number = require_non_empty(registration_number, "Registration number")
        batch_year = int(batch_year)
        if not now.year - 4 <= batch_year <= now.year:
            raise ValidationError(f"{batch_year} is not a valid batch year")
        if self._students.get_by_registration_number(registration_number):
            raise ValidationError("Registration number already exists")

        account_id = self._create_account(name=name, email=email, password=password, role=Role.STUDENT)
        subject_ids = [s.subject_id for s in self._subjects.list_by_batch_year(batch_year)]
        self._students.create_student(
            account_id=account_id,
            registration_number=registration_number,
            batch_year=batch_year,
            subject_ids=subject_ids,
        )
        logger.info("student created id=%s batch=%s subjects=%d", account_id, batch_year, len(subject_ids))
        if self._notifier:
            self._notifier.notify(
                EVENT_STUDENT_ADDED,
                {"batchYear": batch_year, "studentId": account_id, "registrationNumber": registration_number},
            )
        return account_id

    def create_instructor(
        self,
        *,
        name: str,
        email: str,
        password: str,
        employee_id: str,
        department: str,
        designation: str = "",
    ) -> int:
        employee_id = require_non_empty(employee_id, "Employee ID")
        department = require_non_empty(department, "Department")
        if self._instructors.get_by_employee_id(employee_id):
            raise ValidationError("Employee ID already exists")

        account_id = self._create_account(name=name, email=email, password=password, role=Role.INSTRUCTOR)
        self._instructors.create_instructor(
            account_id=account_id,
            employee_id=employee_id,
            department=department,
            designation=(designation or "").strip(),
        )
        return account_id

    def update_subscription(
        self,
        student_id: int,
        *,
        plan: str,
        start_date: date | None = None,
        end_date: date | None = None,
        now: datetime | None = None,
    ) -> Subscription:
        try:
            plan_value = SubscriptionPlan(str(plan or "").strip().lower())
        except ValueError:
            raise ValidationError("Invalid subscription plan")

        student = self._students.get_by_id(student_id)
        if not student:
            raise RecordNotFound("Student not found")

        start = start_date or (now or now_local()).date()
        if end_date is not None and end_date < start:
            raise ValidationError("Subscription end date is before its start date")

        subscription = Subscription(is_active=True, plan=plan_value, start_date=start, end_date=end_date)
        self._students.save_subscription(student.student_id, subscription)
        return subscription
