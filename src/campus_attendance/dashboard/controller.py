from __future__ import annotations

from flask import Flask

from ..common.web import ok, roles_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/dashboard", methods=["GET"], endpoint="dashboard")
    @roles_required()
    def dashboard():
        return ok(container.dashboard_service.get_content())
