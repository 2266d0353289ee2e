from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from app.teamforms.constants import WRITABLE_STATUSES
from app.teamforms.lifecycle import Lifecycle
from app.teamforms.membership import Membership
from app.teamforms.modules.questions.service import questions
from app.teamforms.modules.templates.models import Template, TemplateQuestion

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.teamforms.models import User

UPDATABLE_FIELDS = ("name", "status")


def validate_template_payload(payload: Mapping[str, Any], creating: bool) -> list[str]:
    """Validate template creation/update payload. Returns list of errors."""
    errors = []
    if not creating and not any(k in payload for k in UPDATABLE_FIELDS):
        errors.append(f"At least one of {', '.join(UPDATABLE_FIELDS)} is required.")
    if not creating and "questions" in payload:
        errors.append("Template questions are managed through /templates/<id>/questions.")
    if creating or "name" in payload:
        if not str(payload.get("name") or "").strip():
            errors.append("Name is required.")
    status = payload.get("status")
    if status is not None and status not in WRITABLE_STATUSES:
        errors.append(f"Invalid status. Must be one of: {', '.join(WRITABLE_STATUSES)}")
    if creating and "questions" in payload:
        ids = payload.get("questions")
        if not isinstance(ids, list) or not all(isinstance(q, str) and q.strip() for q in ids):
            errors.append("Questions must be a list of question ids.")
    return errors


class TemplateLifecycle(Lifecycle):
    def check_references(self, s, body, entity=None):
        if entity is None:
            template_questions.check_all_exist(s, body.get("questions") or [])

    def assign(self, entity, attr, value):
        if attr == "name":
            value = str(value).strip()
        super().assign(entity, attr, value)

    def on_create(self, s, entity, body):
        template_questions.seed(entity, body.get("questions") or [])


templates = TemplateLifecycle(Template, "Template", {"name": "name", "status": "status"})

template_questions = Membership(
    owner=templates,
    member=questions,
    collection="entries",
    link_model=TemplateQuestion,
    link_owner="template",
    link_member_column="question_id",
    audit_action="template.question",
)


def create_template(s: "Session", payload: Mapping[str, Any], actor: "User | None" = None) -> Template:
    return templates.create(s, payload, actor)


def query_templates(s: "Session", filters: Mapping[str, Any], options: Mapping[str, Any] | None = None) -> dict:
    return templates.query(s, filters, options)


def get_template_by_id(s: "Session", template_id: Any) -> Template | None:
    return templates.get_by_id(s, template_id)


def update_template_by_id(
    s: "Session", template_id: Any, patch: Mapping[str, Any], actor: "User | None" = None, expected_version: int | None = None
) -> Template:
    return templates.update_by_id(s, template_id, patch, actor, expected_version)


def delete_template_by_id(
    s: "Session", template_id: Any, hard_delete: bool = False, actor: "User | None" = None, expected_version: int | None = None
) -> Template:
    return templates.delete_by_id(s, template_id, hard_delete, actor, expected_version)


def add_question_to_template(
    s: "Session", template_id: Any, question_id: Any, actor: "User | None" = None, expected_version: int | None = None
) -> Template:
    return template_questions.add(s, template_id, question_id, actor, expected_version)


def remove_question_from_template(
    s: "Session", template_id: Any, question_id: Any, actor: "User | None" = None, expected_version: int | None = None
) -> Template:
    return template_questions.remove(s, template_id, question_id, actor, expected_version)
