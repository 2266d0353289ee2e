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
from app.teamforms.errors import NotFound
from app.teamforms.modules.users.service import (
    create_user,
    delete_user_by_id,
    get_user_by_id,
    query_users,
    update_user_by_id,
    validate_user_payload,
)
from app.teamforms.rbac import require_permission

bp = Blueprint("users", __name__)


@bp.post("/users")
@require_permission("manageUsers")
def users_create():
    s = db_session()
    payload = json_body()
    require_valid(validate_user_payload(payload, creating=True))
    user = create_user(s, payload, current_user())
    s.commit()
    return entity_response(user, 201)


@bp.get("/users")
@require_permission("getUsers")
def users_list():
    s = db_session()
    filters, options = list_args(("name", "email", "role", "status"))
    return query_users(s, filters, options)


@bp.get("/users/<user_id>")
@require_permission("getUsers")
def user_detail(user_id: str):
    user = get_user_by_id(db_session(), user_id)
    if not user:
        raise NotFound("User not found")
    return entity_response(user)


@bp.patch("/users/<user_id>")
@require_permission("manageUsers")
def user_update(user_id: str):
    s = db_session()
    payload = json_body()
    require_valid(validate_user_payload(payload, creating=False))
    user = update_user_by_id(s, user_id, payload, current_user(), expected_version=if_match())
    s.commit()
    return entity_response(user)


@bp.delete("/users/<user_id>")
@require_permission("manageUsers")
def user_delete(user_id: str):
    s = db_session()
    delete_user_by_id(s, user_id, hard_delete_flag(), current_user(), expected_version=if_match())
    s.commit()
    return no_content()
