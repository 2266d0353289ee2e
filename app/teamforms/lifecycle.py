"""
Create / read / update / delete for one entity type.

Every entity gets the same discipline: shallow patch updates, soft delete by
status flip (hard delete on request), optimistic concurrency through the
model's version column, and an audit event per write. Entity services
subclass Lifecycle to add reference checks and field handling.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from app.teamforms.audit import record_event
from app.teamforms.constants import STATUS_INVALID
from app.teamforms.errors import Conflict, NotFound
from app.teamforms.pagination import PageOptions, paginate

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.teamforms.models import User

logger = logging.getLogger(__name__)


def flush_or_conflict(s: "Session", label: str) -> None:
    """Flush pending writes; a lost version race or racing insert becomes Conflict."""
    try:
        s.flush()
    except StaleDataError as e:
        s.rollback()
        raise Conflict(f"{label} was modified by another request; reload and retry") from e
    except IntegrityError as e:
        s.rollback()
        raise Conflict(f"{label} could not be saved because of a concurrent change") from e


def check_version(entity: Any, expected_version: int | None, label: str) -> None:
    if expected_version is not None and entity.version != expected_version:
        raise Conflict(f"{label} version mismatch (expected {expected_version}, found {entity.version})")


class Lifecycle:
    """
    `fields` maps payload keys to mapped attributes for create and update,
    e.g. {"manager": "manager_id"}. Keys outside it are ignored.
    """

    def __init__(self, model: type, label: str, fields: Mapping[str, str], audit_key: str | None = None):
        self.model = model
        self.label = label
        self.fields = dict(fields)
        self.audit_key = audit_key or label.lower()

    # ---------- hooks ----------
    def check_references(self, s: "Session", body: Mapping[str, Any], entity: Any = None) -> None:
        """Raise InvalidReference if `body` names rows that do not exist."""

    def assign(self, entity: Any, attr: str, value: Any) -> None:
        setattr(entity, attr, value)

    def on_create(self, s: "Session", entity: Any, body: Mapping[str, Any]) -> None:
        """Populate anything `fields` does not cover (e.g. reference sets)."""

    def before_hard_delete(self, s: "Session", entity: Any) -> None:
        """Enforce the reference policy before the row disappears."""

    # ---------- operations ----------
    def create(self, s: "Session", body: Mapping[str, Any], actor: "User | None" = None) -> Any:
        self.check_references(s, body)
        entity = self.model()
        for key, attr in self.fields.items():
            if key in body and body[key] is not None:
                self.assign(entity, attr, body[key])
        self.on_create(s, entity, body)
        s.add(entity)
        flush_or_conflict(s, self.label)

        record_event(
            s,
            actor=actor,
            action=f"{self.audit_key}.create",
            entity_type=self.label,
            entity_id=entity.id,
            metadata={"fields": sorted(k for k in body if k in self.fields)},
        )
        logger.info("%s created id=%s", self.label, entity.id)
        return entity

    def get_by_id(self, s: "Session", entity_id: Any) -> Any:
        """Row or None. Never raises for empty or malformed ids."""
        if not entity_id or not isinstance(entity_id, str):
            return None
        return s.get(self.model, entity_id)

    def require(self, s: "Session", entity_id: Any) -> Any:
        entity = self.get_by_id(s, entity_id)
        if entity is None:
            raise NotFound(f"{self.label} not found")
        return entity

    def query(self, s: "Session", filters: Mapping[str, Any] | None, options: PageOptions | Mapping[str, Any] | None = None) -> dict:
        return paginate(s, self.model, filters, options)

    def update_by_id(
        self,
        s: "Session",
        entity_id: Any,
        patch: Mapping[str, Any],
        actor: "User | None" = None,
        expected_version: int | None = None,
    ) -> Any:
        entity = self.require(s, entity_id)
        check_version(entity, expected_version, self.label)
        self.check_references(s, patch, entity)

        changed = []
        for key, attr in self.fields.items():
            if key not in patch:
                continue
            self.assign(entity, attr, patch[key])
            changed.append(key)
        entity.updated_at = datetime.utcnow()
        flush_or_conflict(s, self.label)

        record_event(
            s,
            actor=actor,
            action=f"{self.audit_key}.update",
            entity_type=self.label,
            entity_id=entity.id,
            metadata={"fields": sorted(changed)},
        )
        logger.info("%s updated id=%s fields=%s", self.label, entity.id, ",".join(sorted(changed)))
        return entity

    def delete_by_id(
        self,
        s: "Session",
        entity_id: Any,
        hard_delete: bool = False,
        actor: "User | None" = None,
        expected_version: int | None = None,
    ) -> Any:
        """
        Hard delete removes the row and returns the object as it was.
        Soft delete marks it Invalid; repeating it on an Invalid row is fine.
        """
        entity = self.require(s, entity_id)
        check_version(entity, expected_version, self.label)

        if hard_delete:
            self.before_hard_delete(s, entity)
            s.delete(entity)
            flush_or_conflict(s, self.label)
            record_event(
                s,
                actor=actor,
                action=f"{self.audit_key}.hard_delete",
                entity_type=self.label,
                entity_id=entity.id,
            )
            logger.info("%s hard-deleted id=%s", self.label, entity.id)
            return entity

        previous = entity.status
        entity.status = STATUS_INVALID
        entity.updated_at = datetime.utcnow()
        flush_or_conflict(s, self.label)
        record_event(
            s,
            actor=actor,
            action=f"{self.audit_key}.soft_delete",
            entity_type=self.label,
            entity_id=entity.id,
            metadata={"previous_status": previous},
        )
        logger.info("%s soft-deleted id=%s", self.label, entity.id)
        return entity
