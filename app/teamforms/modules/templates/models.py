from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, attribute_keyed_dict, mapped_column, relationship

from app.teamforms.constants import STATUS_ACTIVE
from app.teamforms.models import Base, isoformat
from app.teamforms.utils import new_id


class Template(Base):
    __tablename__ = "templates"
    __table_args__ = (
        Index("idx_templates_name", "name"),
        Index("idx_templates_status", "status"),
    )

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=STATUS_ACTIVE)

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    # Reference set of questions keyed by question id, in the order they were added.
    entries: Mapped[dict[str, "TemplateQuestion"]] = relationship(
        "TemplateQuestion",
        back_populates="template",
        collection_class=attribute_keyed_dict("question_id"),
        cascade="all, delete-orphan",
        order_by="TemplateQuestion.seq",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    FILTERABLE = {"name": "name", "status": "status"}
    SORTABLE = {"name": "name", "status": "status", "createdAt": "created_at", "updatedAt": "updated_at"}

    @property
    def questions(self) -> list[str]:
        return list(self.entries.keys())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "questions": self.questions,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }


class TemplateQuestion(Base):
    __tablename__ = "template_questions"
    __table_args__ = (
        Index("idx_template_questions_question", "question_id"),
    )

    template_id: Mapped[str] = mapped_column(ForeignKey("templates.id", ondelete="CASCADE"), primary_key=True)
    question_id: Mapped[str] = mapped_column(ForeignKey("questions.id", ondelete="CASCADE"), primary_key=True)
    seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    template: Mapped[Template] = relationship("Template", back_populates="entries")
