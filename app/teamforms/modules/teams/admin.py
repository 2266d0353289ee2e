from __future__ import annotations

from flask import Blueprint

from app.teamforms.api import (
    current_user,
    entity_response,
    hard_delete_flag,
    if_match,
    json_body,
    list_args,
    no_content,
    require_valid,
)
from app.teamforms.db import db_session
from app.teamforms.errors import NotFound, ValidationFailure
from app.teamforms.modules.teams.service import (
    add_user_to_team,
    create_team,
    delete_team_by_id,
    get_team_by_id,
    query_teams,
    remove_user_from_team,
    update_team_by_id,
    validate_team_payload,
)
from app.teamforms.rbac import require_permission

bp = Blueprint("teams", __name__)


def _member_id(payload: dict) -> str:
    user_id = payload.get("user")
    if not isinstance(user_id, str) or not user_id.strip():
        raise ValidationFailure("User is required.")
    return user_id.strip()


# ---------- Create / List ----------
@bp.post("/teams")
@require_permission("manageTeams")
def teams_create():
    s = db_session()
    payload = json_body()
    require_valid(validate_team_payload(payload, creating=True))
    team = create_team(s, payload, current_user())
    s.commit()
    return entity_response(team, 201)


@bp.get("/teams")
@require_permission("getTeams")
def teams_list():
    s = db_session()
    filters, options = list_args(("name", "manager", "status"))
    return query_teams(s, filters, options)


# ---------- Detail / Update / Delete ----------
@bp.get("/teams/<team_id>")
@require_permission("getTeams")
def team_detail(team_id: str):
    team = get_team_by_id(db_session(), team_id)
    if not team:
        raise NotFound("Team not found")
    return entity_response(team)


@bp.patch("/teams/<team_id>")
@require_permission("manageTeams")
def team_update(team_id: str):
    s = db_session()
    payload = json_body()
    require_valid(validate_team_payload(payload, creating=False))
    team = update_team_by_id(s, team_id, payload, current_user(), expected_version=if_match())
    s.commit()
    return entity_response(team)


@bp.delete("/teams/<team_id>")
@require_permission("manageTeams")
def team_delete(team_id: str):
    s = db_session()
    delete_team_by_id(s, team_id, hard_delete_flag(), current_user(), expected_version=if_match())
    s.commit()
    return no_content()


# ---------- Membership ----------
@bp.post("/teams/<team_id>/users")
@require_permission("manageTeams")
def team_user_add(team_id: str):
    s = db_session()
    user_id = _member_id(json_body())
    team = add_user_to_team(s, team_id, user_id, current_user(), expected_version=if_match())
    s.commit()
    return entity_response(team)


@bp.delete("/teams/<team_id>/users")
@require_permission("manageTeams")
def team_user_remove(team_id: str):
    s = db_session()
    user_id = _member_id(json_body())
    team = remove_user_from_team(s, team_id, user_id, current_user(), expected_version=if_match())
    s.commit()
    return entity_response(team)
