import json
from typing import Any

from flask import g, has_app_context
from sqlalchemy import inspect, select
from sqlalchemy.orm import Session

from app.teamforms.models import AuditEvent, User


def _is_deleted(obj: Any) -> bool:
    state = inspect(obj, raiseerr=False)
    return bool(state is not None and (state.deleted or state.was_deleted))


def record_event(
    s: Session,
    *,
    actor: User | None,
    action: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    metadata: dict[str, Any] | None = None,
    request_id: str | None = None,
) -> AuditEvent:
    """
    Append an audit event to the caller's session; it commits with the change it describes.
    Outside a request (scripts, tests) there is no request id. An actor deleted
    in this same session (self hard-delete) is kept by email only.
    """
    if request_id is None and has_app_context():
        request_id = getattr(g, "request_id", None)
    ev = AuditEvent(
        request_id=request_id,
        actor_user_id=actor.id if actor and not _is_deleted(actor) else None,
        actor_user_email=actor.email if actor else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        metadata_json=json.dumps(metadata, sort_keys=True, default=str) if metadata else None,
    )
    s.add(ev)
    return ev


def events_for(s: Session, entity_type: str, entity_id: str) -> list[AuditEvent]:
    """Trail of one entity, oldest first."""
    return list(
        s.scalars(
            select(AuditEvent)
            .where(AuditEvent.entity_type == entity_type, AuditEvent.entity_id == entity_id)
            .order_by(AuditEvent.id)
        )
    )
