from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationDenied
from .serialization import to_json


@dataclass(frozen=True)
class Actor:
    account_id: int
    role: Role
    device: str


def request_device() -> str:
    """Client-supplied device fingerprint: X-Device-Id, else the User-Agent."""
    return (request.headers.get("X-Device-Id") or request.headers.get("User-Agent") or "").strip()


def current_actor() -> Actor:
    if "account_id" not in session:
        raise AuthenticationError("Please log in to continue")
    return Actor(
        account_id=int(session["account_id"]),
        role=Role(session["role"]),
        device=session.get("device") or request_device(),
    )


def roles_required(*roles: Role, admit: Callable[[Actor], None] | None = None):
    """Route guard: logged in, role in `roles`, and (optionally) device re-admitted."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            actor = current_actor()
            if roles and actor.role not in roles:
                raise AuthorizationDenied("You do not have permission for this action")
            if admit is not None:
                admit(actor)
            return view(*args, **kwargs)

        return wrapper

    return decorator


def ok(data: Any = None, status: int = 200, **extra):
    body = {"success": True, "data": to_json(data)}
    body.update(extra)
    return jsonify(body), status


def json_body() -> dict:
    return request.get_json(silent=True) or {}


def device_readmission(container) -> Callable[[Actor], None]:
    """Per-request device check for tracked roles.

    A device that was logged out elsewhere goes through admission again,
    so the role/plan limits apply to requests and not only to login.
    """

    def admit(actor: Actor) -> None:
        if actor.role == Role.ADMIN:
            return
        account = container.accounts_repo.get_by_id(actor.account_id)
        if not account:
            session.clear()
            raise AuthenticationError("Please log in to continue")
        if actor.device not in account.active_devices:
            container.admission_service.login(account, actor.device)

    return admit
