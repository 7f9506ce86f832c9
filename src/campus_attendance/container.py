from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .accounts.admission import SessionAdmissionService
from .accounts.mysql_account_repository import MySQLAccountRepository
from .accounts.mysql_instructor_repository import MySQLInstructorRepository
from .accounts.mysql_student_repository import MySQLStudentRepository
from .accounts.repository import AccountRepository, InstructorRepository, StudentRepository
from .accounts.service import AccountService, AuthService
from .attendance.service import AttendanceService
from .attendance.stats import AttendanceStatsService
from .core.constants import DEFAULT_INSTRUCTOR_MAX_DEVICES, DEFAULT_STUDENT_MAX_DEVICES
from .dashboard.mysql_dashboard_repository import MySQLDashboardRepository
from .dashboard.repository import DashboardRepository
from .dashboard.service import DashboardService
from .database.connection import DBConfig, DatabaseConnection
from .notifications.notifier import BroadcastNotifier
from .subjects.mysql_subject_repository import MySQLSubjectRepository
from .subjects.repository import SubjectRepository
from .subjects.service import SubjectCatalogService


@dataclass(frozen=True)
class Container:
    accounts_repo: AccountRepository
    students_repo: StudentRepository
    instructors_repo: InstructorRepository
    subjects_repo: SubjectRepository
    dashboard_repo: DashboardRepository

    notifier: BroadcastNotifier
    admission_service: SessionAdmissionService
    auth_service: AuthService
    account_service: AccountService
    catalog_service: SubjectCatalogService
    stats_service: AttendanceStatsService
    attendance_service: AttendanceService
    dashboard_service: DashboardService


def wire_services(
    *,
    accounts: AccountRepository,
    students: StudentRepository,
    instructors: InstructorRepository,
    subjects: SubjectRepository,
    dashboards: DashboardRepository,
    settings: Mapping[str, Any] | None = None,
) -> Container:
    """Build every service on top of the given repositories (MySQL or in-memory)."""
    settings = settings or {}
    notifier = BroadcastNotifier()

    admission = SessionAdmissionService(
        accounts,
        students,
        instructor_max_devices=int(settings.get("INSTRUCTOR_MAX_DEVICES", DEFAULT_INSTRUCTOR_MAX_DEVICES)),
        student_max_devices=int(settings.get("STUDENT_MAX_DEVICES", DEFAULT_STUDENT_MAX_DEVICES)),
    )
    stats = AttendanceStatsService(students, subjects)

    return Container(
        accounts_repo=accounts,
        students_repo=students,
        instructors_repo=instructors,
        subjects_repo=subjects,
        dashboard_repo=dashboards,
        notifier=notifier,
        admission_service=admission,
        auth_service=AuthService(accounts, admission),
        account_service=AccountService(accounts, students, instructors, subjects, notifier),
        catalog_service=SubjectCatalogService(subjects, students, instructors, notifier),
        stats_service=stats,
        attendance_service=AttendanceService(instructors, students, subjects, stats, notifier),
        dashboard_service=DashboardService(dashboards),
    )


def build_container(*, db_config: Mapping[str, Any], settings: Mapping[str, Any] | None = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    return wire_services(
        accounts=MySQLAccountRepository(conn),
        students=MySQLStudentRepository(conn),
        instructors=MySQLInstructorRepository(conn),
        subjects=MySQLSubjectRepository(conn),
        dashboards=MySQLDashboardRepository(conn),
        settings=settings,
    )
