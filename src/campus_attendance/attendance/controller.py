from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.validators import parse_int
from ..common.web import current_actor, device_readmission, json_body, ok, roles_required
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container


def _optional_int(name: str):
    raw = request.args.get(name)
    return parse_int(raw, name) if raw not in (None, "") else None


def _flag(name: str) -> bool:
    raw = (request.args.get(name) or "false").strip().lower()
    if raw not in ("true", "false"):
        raise ValidationError(f"{name} must be true or false")
    return raw == "true"


def register(app: Flask, container: Container) -> None:
    admit = device_readmission(container)
    instructor_only = roles_required(Role.INSTRUCTOR, admit=admit)

    @app.route("/api/instructor/students", methods=["GET"], endpoint="instructor_students")
    @instructor_only
    def instructor_students():
        students = container.attendance_service.students_for(
            current_actor().account_id,
            parse_int(request.args.get("subjectId"), "subjectId"),
            parse_int(request.args.get("batchYear"), "batchYear"),
        )
        roster = [
            {"student_id": s.student_id, "name": s.name, "registration_number": s.registration_number}
            for s in students
        ]
        return ok(roster)

    @app.route("/api/instructor/attendance", methods=["POST"], endpoint="mark_attendance")
    @instructor_only
    def mark_attendance():
        body = json_body()
        session = container.attendance_service.mark_attendance(
            current_actor().account_id,
            parse_int(body.get("subjectId"), "subjectId"),
            parse_int(body.get("batchYear"), "batchYear"),
            parse_iso_date(body.get("date") or ""),
            body.get("attendanceData") or [],
        )
        return ok(session)

    @app.route("/api/instructor/attendance", methods=["PATCH"], endpoint="edit_attendance")
    @instructor_only
    def edit_attendance():
        body = json_body()
        entry = container.attendance_service.edit_attendance(
            current_actor().account_id,
            parse_int(body.get("attendanceId"), "attendanceId"),
            parse_int(body.get("studentId"), "studentId"),
            body.get("newStatus"),
        )
        return ok(entry)

    @app.route("/api/instructor/attendance", methods=["GET"], endpoint="attendance_records")
    @instructor_only
    def attendance_records():
        records = container.attendance_service.attendance_records(
            current_actor().account_id,
            parse_int(request.args.get("subjectId"), "subjectId"),
            parse_int(request.args.get("batchYear"), "batchYear"),
            month=_optional_int("month"),
            year=_optional_int("year"),
        )
        return ok(records)

    @app.route("/api/instructor/stats", methods=["GET"], endpoint="attendance_stats")
    @instructor_only
    def attendance_stats():
        stats = container.attendance_service.subject_stats(
            current_actor().account_id,
            parse_int(request.args.get("subjectId"), "subjectId"),
            parse_int(request.args.get("batchYear"), "batchYear"),
        )
        return ok(stats)

    @app.route("/api/student/analytics", methods=["GET"], endpoint="student_analytics")
    @roles_required(Role.STUDENT, admit=admit)
    def student_analytics():
        report = container.stats_service.student_report(
            current_actor().account_id,
            subject_id=_optional_int("subjectId"),
            month=_optional_int("month"),
            year=_optional_int("year"),
        )
        return ok(report)

    @app.route("/api/student/attendance", methods=["GET"], endpoint="student_attendance")
    @roles_required(Role.STUDENT, admit=admit)
    def student_attendance():
        records = container.stats_service.student_attendance(
            current_actor().account_id,
            subject_id=_optional_int("subjectId"),
            month=_optional_int("month"),
            year=_optional_int("year"),
            view_classmates=_flag("viewClassmates"),
        )
        return ok(records)
