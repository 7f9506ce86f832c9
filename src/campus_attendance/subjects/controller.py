from __future__ import annotations

from flask import Flask, request

from ..common.validators import parse_int
from ..common.web import json_body, ok, roles_required
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/subjects", methods=["POST"], endpoint="add_subject")
    @roles_required(Role.ADMIN)
    def add_subject():
        body = json_body()
        subject = container.catalog_service.add_subject(
            code=body.get("code", ""),
            name=body.get("name", ""),
            credits=parse_int(body.get("credits"), "Credits"),
            batch_years=[parse_int(y, "Batch year") for y in body.get("batchYears") or []],
            description=body.get("description"),
        )
        return ok(subject, status=201)

    @app.route("/api/admin/subjects", methods=["GET"], endpoint="list_subjects")
    @roles_required(Role.ADMIN)
    def list_subjects():
        batch_year = parse_int(request.args.get("batchYear"), "Batch year")
        return ok(container.catalog_service.subjects_for_batch(batch_year))

    @app.route("/api/admin/subjects/<int:subject_id>/faculty", methods=["POST"], endpoint="assign_faculty")
    @roles_required(Role.ADMIN)
    def assign_faculty(subject_id: int):
        body = json_body()
        subject = container.catalog_service.assign_instructor(
            subject_id,
            parse_int(body.get("instructorId"), "Instructor"),
            parse_int(body.get("batchYear"), "Batch year"),
        )
        return ok(subject)

    @app.route("/api/admin/subjects/<int:subject_id>/faculty", methods=["DELETE"], endpoint="remove_faculty")
    @roles_required(Role.ADMIN)
    def remove_faculty(subject_id: int):
        body = json_body()
        subject = container.catalog_service.remove_instructor(
            subject_id,
            parse_int(body.get("instructorId"), "Instructor"),
            parse_int(body.get("batchYear"), "Batch year"),
        )
        return ok(subject)
