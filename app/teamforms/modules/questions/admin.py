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
from app.teamforms.modules.questions.service import (
    create_question,
    create_question_type,
    delete_question_by_id,
    delete_question_type_by_id,
    get_question_by_id,
    get_question_type_by_id,
    query_question_types,
    query_questions,
    update_question_by_id,
    update_question_type_by_id,
    validate_question_payload,
    validate_question_type_payload,
)
from app.teamforms.rbac import require_permission

bp = Blueprint("questions", __name__)


# ---------- Question types ----------
@bp.post("/questionTypes")
@require_permission("manageQuestions")
def question_types_create():
    s = db_session()
    payload = json_body()
    require_valid(validate_question_type_payload(payload, creating=True))
    question_type = create_question_type(s, payload, current_user())
    s.commit()
    return entity_response(question_type, 201)


@bp.get("/questionTypes")
@require_permission("getQuestions")
def question_types_list():
    s = db_session()
    filters, options = list_args(("name", "status", "units"))
    return query_question_types(s, filters, options)


@bp.get("/questionTypes/<question_type_id>")
@require_permission("getQuestions")
def question_type_detail(question_type_id: str):
    question_type = get_question_type_by_id(db_session(), question_type_id)
    if not question_type:
        raise NotFound("QuestionType not found")
    return entity_response(question_type)


@bp.patch("/questionTypes/<question_type_id>")
@require_permission("manageQuestions")
def question_type_update(question_type_id: str):
    s = db_session()
    payload = json_body()
    require_valid(validate_question_type_payload(payload, creating=False))
    question_type = update_question_type_by_id(s, question_type_id, payload, current_user(), expected_version=if_match())
    s.commit()
    return entity_response(question_type)


@bp.delete("/questionTypes/<question_type_id>")
@require_permission("manageQuestions")
def question_type_delete(question_type_id: str):
    s = db_session()
    delete_question_type_by_id(s, question_type_id, hard_delete_flag(), current_user(), expected_version=if_match())
    s.commit()
    return no_content()


# ---------- Questions ----------
@bp.post("/questions")
@require_permission("manageQuestions")
def questions_create():
    s = db_session()
    payload = json_body()
    require_valid(validate_question_payload(payload, creating=True))
    question = create_question(s, payload, current_user())
    s.commit()
    return entity_response(question, 201)


@bp.get("/questions")
@require_permission("getQuestions")
def questions_list():
    s = db_session()
    filters, options = list_args(
        ("question", "questionType", "status", "optional", "comments"),
        bool_keys=("optional", "comments"),
    )
    return query_questions(s, filters, options)


@bp.get("/questions/<question_id>")
@require_permission("getQuestions")
def question_detail(question_id: str):
    question = get_question_by_id(db_session(), question_id)
    if not question:
        raise NotFound("Question not found")
    return entity_response(question)


@bp.patch("/questions/<question_id>")
@require_permission("manageQuestions")
def question_update(question_id: str):
    s = db_session()
    payload = json_body()
    require_valid(validate_question_payload(payload, creating=False))
    question = update_question_by_id(s, question_id, payload, current_user(), expected_version=if_match())
    s.commit()
    return entity_response(question)


@bp.delete("/questions/<question_id>")
@require_permission("manageQuestions")
def question_delete(question_id: str):
    s = db_session()
    delete_question_by_id(s, question_id, hard_delete_flag(), current_user(), expected_version=if_match())
    s.commit()
    return no_content()
