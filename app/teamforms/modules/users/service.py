from __future__ import annotations

import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from werkzeug.security import generate_password_hash

from app.teamforms.constants import ROLES, WRITABLE_STATUSES
from app.teamforms.errors import InUse, ValidationFailure
from app.teamforms.lifecycle import Lifecycle
from app.teamforms.models import User

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(email: Any) -> str:
    return str(email or "").strip().lower()


def validate_user_payload(payload: Mapping[str, Any], creating: bool) -> list[str]:
    """Validate user creation/update payload. Returns list of errors."""
    errors = []
    if not creating and not any(k in payload for k in ("name", "email", "password", "role", "status")):
        errors.append("At least one field is required.")
    if creating or "name" in payload:
        if not str(payload.get("name") or "").strip():
            errors.append("Name is required.")
    if creating or "email" in payload:
        if not _EMAIL_RE.match(normalize_email(payload.get("email"))):
            errors.append("A valid email is required.")
    if creating or "password" in payload:
        password = str(payload.get("password") or "")
        if len(password) < 8:
            errors.append("Password must be at least 8 characters.")
        elif not re.search(r"[A-Za-z]", password) or not re.search(r"\d", password):
            errors.append("Password must contain at least one letter and one number.")
    role = payload.get("role")
    if role is not None and role not in ROLES:
        errors.append(f"Invalid role. Must be one of: {', '.join(ROLES)}")
    status = payload.get("status")
    if status is not None and status not in WRITABLE_STATUSES:
        errors.append(f"Invalid status. Must be one of: {', '.join(WRITABLE_STATUSES)}")
    return errors


def is_email_taken(s: "Session", email: str, exclude_user_id: str | None = None) -> bool:
    q = s.query(User).filter(User.email == normalize_email(email))
    if exclude_user_id:
        q = q.filter(User.id != exclude_user_id)
    return s.query(q.exists()).scalar()


def get_user_by_email(s: "Session", email: str) -> User | None:
    return s.query(User).filter(User.email == normalize_email(email)).one_or_none()


class UserLifecycle(Lifecycle):
    def check_references(self, s, body, entity=None):
        if "email" in body and is_email_taken(s, body["email"], entity.id if entity else None):
            raise ValidationFailure("Email already taken")

    def assign(self, entity, attr, value):
        if attr == "password_hash":
            value = generate_password_hash(value)
        elif attr == "email":
            value = normalize_email(value)
        elif attr == "name":
            value = str(value).strip()
        super().assign(entity, attr, value)

    def before_hard_delete(self, s, entity):
        from app.teamforms.modules.teams.models import Team
        from app.teamforms.modules.teams.service import team_users

        managed = s.query(Team).filter(Team.manager_id == entity.id).count()
        if managed:
            raise InUse(f"User manages {managed} team(s); reassign them before deleting the user")
        team_users.prune(s, entity.id)


users = UserLifecycle(
    User,
    "User",
    {"name": "name", "email": "email", "password": "password_hash", "role": "role", "status": "status"},
)


def create_user(s: "Session", payload: Mapping[str, Any], actor: User | None = None) -> User:
    return users.create(s, payload, actor)


def query_users(s: "Session", filters: Mapping[str, Any], options: Mapping[str, Any] | None = None) -> dict:
    return users.query(s, filters, options)


def get_user_by_id(s: "Session", user_id: Any) -> User | None:
    return users.get_by_id(s, user_id)


def update_user_by_id(
    s: "Session", user_id: Any, patch: Mapping[str, Any], actor: User | None = None, expected_version: int | None = None
) -> User:
    return users.update_by_id(s, user_id, patch, actor, expected_version)


def delete_user_by_id(
    s: "Session", user_id: Any, hard_delete: bool = False, actor: User | None = None, expected_version: int | None = None
) -> User:
    return users.delete_by_id(s, user_id, hard_delete, actor, expected_version)
