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
from app.teamforms.modules.templates.service import (
    add_question_to_template,
    create_template,
    delete_template_by_id,
    get_template_by_id,
    query_templates,
    remove_question_from_template,
    update_template_by_id,
    validate_template_payload,
)
from app.teamforms.rbac import require_permission

bp = Blueprint("templates", __name__)


def _question_id(payload: dict) -> str:
    question_id = payload.get("question")
    if not isinstance(question_id, str) or not question_id.strip():
        raise ValidationFailure("Question is required.")
    return question_id.strip()


# ---------- Create / List ----------
@bp.post("/templates")
@require_permission("manageForms")
def templates_create():
    s = db_session()
    payload = json_body()
    require_valid(validate_template_payload(payload, creating=True))
    template = create_template(s, payload, current_user())
    s.commit()
    return entity_response(template, 201)


@bp.get("/templates")
@require_permission("getForms")
def templates_list():
    s = db_session()
    filters, options = list_args(("name", "status"))
    return query_templates(s, filters, options)


# ---------- Detail / Update / Delete ----------
@bp.get("/templates/<template_id>")
@require_permission("getForms")
def template_detail(template_id: str):
    template = get_template_by_id(db_session(), template_id)
    if not template:
        raise NotFound("Template not found")
    return entity_response(template)


@bp.patch("/templates/<template_id>")
@require_permission("manageForms")
def template_update(template_id: str):
    s = db_session()
    payload = json_body()
    require_valid(validate_template_payload(payload, creating=False))
    template = update_template_by_id(s, template_id, payload, current_user(), expected_version=if_match())
    s.commit()
    return entity_response(template)


@bp.delete("/templates/<template_id>")
@require_permission("manageForms")
def template_delete(template_id: str):
    s = db_session()
    delete_template_by_id(s, template_id, hard_delete_flag(), current_user(), expected_version=if_match())
    s.commit()
    return no_content()


# ---------- Questions ----------
@bp.post("/templates/<template_id>/questions")
@require_permission("manageForms")
def template_question_add(template_id: str):
    s = db_session()
    question_id = _question_id(json_body())
    template = add_question_to_template(s, template_id, question_id, current_user(), expected_version=if_match())
    s.commit()
    return entity_response(template)


@bp.delete("/templates/<template_id>/questions")
@require_permission("manageForms")
def template_question_remove(template_id: str):
    s = db_session()
    question_id = _question_id(json_body())
    template = remove_question_from_template(s, template_id, question_id, current_user(), expected_version=if_match())
    s.commit()
    return entity_response(template)
