from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from app.teamforms.constants import WRITABLE_STATUSES
from app.teamforms.errors import InvalidReference
from app.teamforms.lifecycle import Lifecycle
from app.teamforms.membership import Membership
from app.teamforms.modules.teams.models import Team, TeamMember
from app.teamforms.modules.users.service import users

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.teamforms.models import User

UPDATABLE_FIELDS = ("name", "manager", "status")


def _is_id(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def validate_team_payload(payload: Mapping[str, Any], creating: bool) -> list[str]:
    """Validate team creation/update payload. Returns list of errors."""
    errors = []
    if not creating and not any(k in payload for k in UPDATABLE_FIELDS):
        errors.append(f"At least one of {', '.join(UPDATABLE_FIELDS)} is required.")
    if not creating and "users" in payload:
        errors.append("Team users are managed through /teams/<id>/users.")
    if creating or "name" in payload:
        if not str(payload.get("name") or "").strip():
            errors.append("Name is required.")
    if creating or "manager" in payload:
        if not _is_id(payload.get("manager")):
            errors.append("Manager is required.")
    status = payload.get("status")
    if status is not None and status not in WRITABLE_STATUSES:
        errors.append(f"Invalid status. Must be one of: {', '.join(WRITABLE_STATUSES)}")
    if creating and "users" in payload:
        members = payload.get("users")
        if not isinstance(members, list) or not all(_is_id(u) for u in members):
            errors.append("Users must be a list of user ids.")
    return errors


class TeamLifecycle(Lifecycle):
    def check_references(self, s, body, entity=None):
        if "manager" in body and users.get_by_id(s, body["manager"]) is None:
            raise InvalidReference("Manager does not exist")
        if entity is None:
            team_users.check_all_exist(s, body.get("users") or [])

    def assign(self, entity, attr, value):
        if attr == "name":
            value = str(value).strip()
        super().assign(entity, attr, value)

    def on_create(self, s, entity, body):
        team_users.seed(entity, body.get("users") or [])


teams = TeamLifecycle(Team, "Team", {"name": "name", "manager": "manager_id", "status": "status"})

team_users = Membership(
    owner=teams,
    member=users,
    collection="members",
    link_model=TeamMember,
    link_owner="team",
    link_member_column="user_id",
    audit_action="team.user",
)


def create_team(s: "Session", payload: Mapping[str, Any], actor: "User | None" = None) -> Team:
    """Create a team; the manager and any initial users must exist."""
    return teams.create(s, payload, actor)


def query_teams(s: "Session", filters: Mapping[str, Any], options: Mapping[str, Any] | None = None) -> dict:
    return teams.query(s, filters, options)


def get_team_by_id(s: "Session", team_id: Any) -> Team | None:
    return teams.get_by_id(s, team_id)


def update_team_by_id(
    s: "Session", team_id: Any, patch: Mapping[str, Any], actor: "User | None" = None, expected_version: int | None = None
) -> Team:
    return teams.update_by_id(s, team_id, patch, actor, expected_version)


def delete_team_by_id(
    s: "Session", team_id: Any, hard_delete: bool = False, actor: "User | None" = None, expected_version: int | None = None
) -> Team:
    return teams.delete_by_id(s, team_id, hard_delete, actor, expected_version)


def add_user_to_team(
    s: "Session", team_id: Any, user_id: Any, actor: "User | None" = None, expected_version: int | None = None
) -> Team:
    return team_users.add(s, team_id, user_id, actor, expected_version)


def remove_user_from_team(
    s: "Session", team_id: Any, user_id: Any, actor: "User | None" = None, expected_version: int | None = None
) -> Team:
    return team_users.remove(s, team_id, user_id, actor, expected_version)
