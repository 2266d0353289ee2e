from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.teamforms.constants import STATUS_ACTIVE
from app.teamforms.models import Base, isoformat
from app.teamforms.utils import new_id


class QuestionType(Base):
    __tablename__ = "question_types"
    __table_args__ = (
        Index("idx_question_types_name", "name"),
        Index("idx_question_types_status", "status"),
    )

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=STATUS_ACTIVE)
    # Free-form answer schema; replaced wholesale on update, never mutated in place.
    values: Mapped[Any] = mapped_column(JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=dict)
    units: Mapped[str | None] = mapped_column(String(64), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    __mapper_args__ = {"version_id_col": version}

    FILTERABLE = {"name": "name", "status": "status", "units": "units"}
    SORTABLE = {"name": "name", "status": "status", "units": "units", "createdAt": "created_at"}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "values": self.values,
            "units": self.units,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }


class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (
        Index("idx_questions_type", "question_type_id"),
        Index("idx_questions_status", "status"),
    )

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_id)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    question_type_id: Mapped[str] = mapped_column(ForeignKey("question_types.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=STATUS_ACTIVE)
    comments: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    optional: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    __mapper_args__ = {"version_id_col": version}

    FILTERABLE = {
        "question": "question",
        "questionType": "question_type_id",
        "status": "status",
        "comments": "comments",
        "optional": "optional",
    }
    SORTABLE = {"question": "question", "questionType": "question_type_id", "status": "status", "createdAt": "created_at"}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "question": self.question,
            "questionType": self.question_type_id,
            "status": self.status,
            "comments": self.comments,
            "optional": self.optional,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
