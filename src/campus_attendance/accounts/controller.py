from __future__ import annotations

from flask import Flask, session

from ..common.datetime_utils import parse_iso_date
from ..common.validators import parse_int
from ..common.web import current_actor, device_readmission, json_body, ok, request_device, roles_required
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    admit = device_readmission(container)

    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        body = json_body()
        device = (body.get("deviceId") or request_device()).strip()
        user = container.auth_service.authenticate(body.get("email", ""), body.get("password", ""), device=device)

        session.clear()
        session["account_id"] = user.account_id
        session["role"] = user.role.value
        session["name"] = user.name
        session["device"] = user.device or ""
        return ok({"account_id": user.account_id, "name": user.name, "role": user.role})

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        if "account_id" in session:
            actor = current_actor()
            container.auth_service.logout(actor.account_id, actor.device)
        session.clear()
        return ok(message="Logged out")

    @app.route("/api/devices", methods=["GET"], endpoint="device_status")
    @roles_required(Role.INSTRUCTOR, Role.STUDENT, admit=admit)
    def device_status():
        return ok(container.admission_service.device_status(current_actor().account_id))

    @app.route("/api/devices/logout", methods=["POST"], endpoint="device_logout")
    @roles_required(Role.INSTRUCTOR, Role.STUDENT)
    def device_logout():
        actor = current_actor()
        device = (json_body().get("deviceId") or actor.device).strip()
        container.auth_service.logout(actor.account_id, device)
        if device == actor.device:
            session.clear()
        return ok(message="Device logged out successfully")

    @app.route("/api/student/subscription", methods=["POST"], endpoint="update_subscription")
    @roles_required(Role.STUDENT, admit=admit)
    def update_subscription():
        body = json_body()
        start = parse_iso_date(body["startDate"]) if body.get("startDate") else None
        end = parse_iso_date(body["endDate"]) if body.get("endDate") else None
        subscription = container.account_service.update_subscription(
            current_actor().account_id, plan=body.get("plan", ""), start_date=start, end_date=end
        )
        return ok(subscription)

    @app.route("/api/admin/students", methods=["POST"], endpoint="add_student")
    @roles_required(Role.ADMIN)
    def add_student():
        body = json_body()
        student_id = container.account_service.create_student(
            name=body.get("name", ""),
            email=body.get("email", ""),
            password=body.get("password", ""),
            registration_number=body.get("registrationNumber", ""),
            batch_year=parse_int(body.get("batchYear"), "Batch year"),
        )
        return ok(container.students_repo.get_by_id(student_id), status=201)

    @app.route("/api/admin/instructors", methods=["POST"], endpoint="add_instructor")
    @roles_required(Role.ADMIN)
    def add_instructor():
        body = json_body()
        instructor_id = container.account_service.create_instructor(
            name=body.get("name", ""),
            email=body.get("email", ""),
            password=body.get("password", ""),
            employee_id=body.get("employeeId", ""),
            department=body.get("department", ""),
            designation=body.get("designation", ""),
        )
        return ok(container.instructors_repo.get_by_id(instructor_id), status=201)
