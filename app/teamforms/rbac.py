from collections.abc import Callable, Mapping
from functools import wraps
from types import MappingProxyType
from typing import Any

from flask import abort, current_app, g, jsonify

from app.teamforms.constants import ROLE_ADMIN, ROLE_USER
from app.teamforms.models import User

RoleRights = Mapping[str, frozenset[str]]

ADMIN_RIGHTS = (
    "getUsers",
    "manageUsers",
    "getTeams",
    "manageTeams",
    "getForms",
    "manageForms",
    "getQuestions",
    "manageQuestions",
)


def build_role_rights() -> RoleRights:
    """Role -> allowed actions. Built once by create_app() and never mutated."""
    return MappingProxyType(
        {
            ROLE_USER: frozenset(),
            ROLE_ADMIN: frozenset(ADMIN_RIGHTS),
        }
    )


def role_rights() -> RoleRights:
    return current_app.extensions["role_rights"]


def user_has_permission(user: User | None, permission_key: str, rights: RoleRights | None = None) -> bool:
    if not user or not user.is_active:
        return False
    if rights is None:
        rights = role_rights()
    return permission_key in rights.get(user.role, frozenset())


def require_permission(permission_key: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            user: User | None = getattr(g, "current_user", None)
            # Unauthenticated → 401
            if not user or not user.is_active:
                return jsonify({"code": 401, "kind": "Unauthorized", "message": "Please authenticate"}), 401
            # Authenticated but unauthorized → 403
            if not user_has_permission(user, permission_key):
                g.missing_permission = permission_key
                abort(403)
            return fn(*args, **kwargs)

        return wrapped

    return decorator
