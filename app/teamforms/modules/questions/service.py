from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from sqlalchemy.orm.attributes import flag_modified

from app.teamforms.constants import WRITABLE_STATUSES
from app.teamforms.errors import InUse, InvalidReference
from app.teamforms.lifecycle import Lifecycle
from app.teamforms.modules.questions.models import Question, QuestionType
from app.teamforms.utils import parse_bool

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.teamforms.models import User

QUESTION_TYPE_FIELDS = ("name", "status", "values", "units")
QUESTION_FIELDS = ("question", "questionType", "status", "comments", "optional")


def _check_status(payload: Mapping[str, Any], errors: list[str]) -> None:
    status = payload.get("status")
    if status is not None and status not in WRITABLE_STATUSES:
        errors.append(f"Invalid status. Must be one of: {', '.join(WRITABLE_STATUSES)}")


# ---------- Question types ----------
def validate_question_type_payload(payload: Mapping[str, Any], creating: bool) -> list[str]:
    """Validate question type creation/update payload. Returns list of errors."""
    errors = []
    if not creating and not any(k in payload for k in QUESTION_TYPE_FIELDS):
        errors.append(f"At least one of {', '.join(QUESTION_TYPE_FIELDS)} is required.")
    if creating or "name" in payload:
        if not str(payload.get("name") or "").strip():
            errors.append("Name is required.")
    if creating or "values" in payload:
        if not isinstance(payload.get("values"), dict):
            errors.append("Values must be a JSON object.")
    if "units" in payload and payload["units"] is not None and not isinstance(payload["units"], str):
        errors.append("Units must be a string.")
    _check_status(payload, errors)
    return errors


class QuestionTypeLifecycle(Lifecycle):
    def assign(self, entity, attr, value):
        if attr == "values":
            # Replace the whole payload. The copy keeps a caller's later edits out of
            # the session, and the explicit flag covers re-assigning an equal object.
            entity.values = copy.deepcopy(value)
            flag_modified(entity, "values")
            return
        if attr == "name":
            value = str(value).strip()
        super().assign(entity, attr, value)

    def before_hard_delete(self, s, entity):
        in_use = s.query(Question).filter(Question.question_type_id == entity.id).count()
        if in_use:
            raise InUse(f"QuestionType is used by {in_use} question(s)")


question_types = QuestionTypeLifecycle(
    QuestionType,
    "QuestionType",
    {"name": "name", "status": "status", "values": "values", "units": "units"},
    audit_key="question_type",
)


def create_question_type(s: "Session", payload: Mapping[str, Any], actor: "User | None" = None) -> QuestionType:
    return question_types.create(s, payload, actor)


def query_question_types(s: "Session", filters: Mapping[str, Any], options: Mapping[str, Any] | None = None) -> dict:
    return question_types.query(s, filters, options)


def get_question_type_by_id(s: "Session", question_type_id: Any) -> QuestionType | None:
    return question_types.get_by_id(s, question_type_id)


def update_question_type_by_id(
    s: "Session",
    question_type_id: Any,
    patch: Mapping[str, Any],
    actor: "User | None" = None,
    expected_version: int | None = None,
) -> QuestionType:
    return question_types.update_by_id(s, question_type_id, patch, actor, expected_version)


def delete_question_type_by_id(
    s: "Session",
    question_type_id: Any,
    hard_delete: bool = False,
    actor: "User | None" = None,
    expected_version: int | None = None,
) -> QuestionType:
    return question_types.delete_by_id(s, question_type_id, hard_delete, actor, expected_version)


# ---------- Questions ----------
def validate_question_payload(payload: Mapping[str, Any], creating: bool) -> list[str]:
    """Validate question creation/update payload. Returns list of errors."""
    errors = []
    if not creating and not any(k in payload for k in QUESTION_FIELDS):
        errors.append(f"At least one of {', '.join(QUESTION_FIELDS)} is required.")
    if creating or "question" in payload:
        if not str(payload.get("question") or "").strip():
            errors.append("Question text is required.")
    if creating or "questionType" in payload:
        qt = payload.get("questionType")
        if not isinstance(qt, str) or not qt.strip():
            errors.append("Question type is required.")
    for flag in ("comments", "optional"):
        if flag in payload and parse_bool(payload[flag]) is None:
            errors.append(f"{flag.capitalize()} must be true or false.")
    _check_status(payload, errors)
    return errors


class QuestionLifecycle(Lifecycle):
    def check_references(self, s, body, entity=None):
        if "questionType" in body and question_types.get_by_id(s, body["questionType"]) is None:
            raise InvalidReference("QuestionType does not exist")

    def assign(self, entity, attr, value):
        if attr in ("comments", "optional"):
            value = bool(parse_bool(value))
        elif attr == "question":
            value = str(value).strip()
        super().assign(entity, attr, value)

    def before_hard_delete(self, s, entity):
        from app.teamforms.modules.templates.service import template_questions

        template_questions.prune(s, entity.id)


questions = QuestionLifecycle(
    Question,
    "Question",
    {
        "question": "question",
        "questionType": "question_type_id",
        "status": "status",
        "comments": "comments",
        "optional": "optional",
    },
)


def create_question(s: "Session", payload: Mapping[str, Any], actor: "User | None" = None) -> Question:
    return questions.create(s, payload, actor)


def query_questions(s: "Session", filters: Mapping[str, Any], options: Mapping[str, Any] | None = None) -> dict:
    return questions.query(s, filters, options)


def get_question_by_id(s: "Session", question_id: Any) -> Question | None:
    return questions.get_by_id(s, question_id)


def update_question_by_id(
    s: "Session", question_id: Any, patch: Mapping[str, Any], actor: "User | None" = None, expected_version: int | None = None
) -> Question:
    return questions.update_by_id(s, question_id, patch, actor, expected_version)


def delete_question_by_id(
    s: "Session", question_id: Any, hard_delete: bool = False, actor: "User | None" = None, expected_version: int | None = None
) -> Question:
    return questions.delete_by_id(s, question_id, hard_delete, actor, expected_version)
