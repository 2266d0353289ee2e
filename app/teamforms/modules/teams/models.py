from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, attribute_keyed_dict, mapped_column, relationship

from app.teamforms.constants import STATUS_ACTIVE
from app.teamforms.models import Base, isoformat
from app.teamforms.utils import new_id


class Team(Base):
    __tablename__ = "teams"
    __table_args__ = (
        Index("idx_teams_name", "name"),
        Index("idx_teams_status", "status"),
        Index("idx_teams_manager", "manager_id"),
    )

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # No ON DELETE: a manager cannot be hard-deleted while it still manages a team.
    manager_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=STATUS_ACTIVE)

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    # Reference set of users keyed by user id.
    members: Mapped[dict[str, "TeamMember"]] = relationship(
        "TeamMember",
        back_populates="team",
        collection_class=attribute_keyed_dict("user_id"),
        cascade="all, delete-orphan",
        order_by="TeamMember.seq",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    FILTERABLE = {"name": "name", "manager": "manager_id", "status": "status"}
    SORTABLE = {"name": "name", "manager": "manager_id", "status": "status", "createdAt": "created_at", "updatedAt": "updated_at"}

    @property
    def users(self) -> list[str]:
        return list(self.members.keys())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "manager": self.manager_id,
            "users": self.users,
            "status": self.status,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }


class TeamMember(Base):
    __tablename__ = "team_members"
    __table_args__ = (
        Index("idx_team_members_user", "user_id"),
    )

    team_id: Mapped[str] = mapped_column(ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    team: Mapped[Team] = relationship("Team", back_populates="members")
