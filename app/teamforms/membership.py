"""
Membership between an owner entity and the entities it references
(Team -> Users, Template -> Questions).

A reference set is an ordered dict of link rows keyed by member id, so
duplicates are impossible and removal is always by id, never by position.
Every change touches the owner row, which bumps its version: concurrent
changes to the same set are serialized by the version check and the loser
gets Conflict.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.teamforms.audit import record_event
from app.teamforms.errors import AlreadyMember, InvalidReference, NotMember
from app.teamforms.lifecycle import Lifecycle, check_version, flush_or_conflict

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.teamforms.models import User

logger = logging.getLogger(__name__)


class Membership:
    def __init__(
        self,
        owner: Lifecycle,
        member: Lifecycle,
        collection: str,
        link_model: type,
        link_owner: str,
        link_member_column: str,
        audit_action: str,
    ):
        self.owner = owner
        self.member = member
        self.collection = collection  # owner attribute holding the keyed dict
        self.link_model = link_model
        self.link_owner = link_owner  # link attribute pointing back at the owner
        self.link_member_column = link_member_column
        self.audit_action = audit_action  # e.g. "team.user" -> team.user_added / team.user_removed

    def members_of(self, owner_entity: Any) -> dict[str, Any]:
        return getattr(owner_entity, self.collection)

    def _require_member(self, s: "Session", member_id: Any) -> Any:
        member = self.member.get_by_id(s, member_id)
        if member is None:
            raise InvalidReference(f"{self.member.label} not found")
        return member

    def check_all_exist(self, s: "Session", member_ids: Iterable[Any]) -> None:
        for member_id in member_ids:
            self._require_member(s, member_id)

    def _link(self, owner_entity: Any, member_id: str) -> None:
        members = self.members_of(owner_entity)
        if member_id in members:
            raise AlreadyMember(f"{self.member.label} already exists in the {self.owner.label.lower()}")
        link = self.link_model(**{self.link_member_column: member_id})
        link.seq = max((existing.seq for existing in members.values()), default=0) + 1
        members[member_id] = link

    def _unlink(self, owner_entity: Any, member_id: str) -> None:
        members = self.members_of(owner_entity)
        if member_id not in members:
            raise NotMember(f"{self.member.label} does not exist in the {self.owner.label.lower()}")
        del members[member_id]

    def seed(self, owner_entity: Any, member_ids: Iterable[str]) -> None:
        """Initial members on create; repeated ids collapse to one entry."""
        members = self.members_of(owner_entity)
        for member_id in member_ids:
            if member_id not in members:
                self._link(owner_entity, member_id)

    def add(
        self,
        s: "Session",
        owner_id: Any,
        member_id: Any,
        actor: "User | None" = None,
        expected_version: int | None = None,
    ) -> Any:
        owner_entity = self.owner.require(s, owner_id)
        member = self._require_member(s, member_id)
        check_version(owner_entity, expected_version, self.owner.label)

        self._link(owner_entity, member.id)
        owner_entity.updated_at = datetime.utcnow()
        flush_or_conflict(s, self.owner.label)

        record_event(
            s,
            actor=actor,
            action=f"{self.audit_action}_added",
            entity_type=self.owner.label,
            entity_id=owner_entity.id,
            metadata={f"{self.member.audit_key}_id": member.id},
        )
        logger.info("%s id=%s: added %s id=%s", self.owner.label, owner_entity.id, self.member.label, member.id)
        return owner_entity

    def remove(
        self,
        s: "Session",
        owner_id: Any,
        member_id: Any,
        actor: "User | None" = None,
        expected_version: int | None = None,
    ) -> Any:
        owner_entity = self.owner.require(s, owner_id)
        member = self._require_member(s, member_id)
        check_version(owner_entity, expected_version, self.owner.label)

        self._unlink(owner_entity, member.id)
        owner_entity.updated_at = datetime.utcnow()
        flush_or_conflict(s, self.owner.label)

        record_event(
            s,
            actor=actor,
            action=f"{self.audit_action}_removed",
            entity_type=self.owner.label,
            entity_id=owner_entity.id,
            metadata={f"{self.member.audit_key}_id": member.id},
        )
        logger.info("%s id=%s: removed %s id=%s", self.owner.label, owner_entity.id, self.member.label, member.id)
        return owner_entity

    def prune(self, s: "Session", member_id: str) -> int:
        """
        Drop `member_id` from every owner's set before the member is hard-deleted.
        Each affected owner is touched so its version moves.
        """
        column = getattr(self.link_model, self.link_member_column)
        links = s.query(self.link_model).filter(column == member_id).all()
        now = datetime.utcnow()
        for link in links:
            owner_entity = getattr(link, self.link_owner)
            del self.members_of(owner_entity)[member_id]
            owner_entity.updated_at = now
        if links:
            logger.info("Pruned %s id=%s from %d %s set(s)", self.member.label, member_id, len(links), self.owner.label.lower())
        return len(links)
