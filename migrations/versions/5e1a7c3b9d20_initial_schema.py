"""initial schema: users, teams, question types, questions, templates

Revision ID: 5e1a7c3b9d20
Revises:
Create Date: 2026-10-19 09:12:44.120518

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '5e1a7c3b9d20'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    """Create entity tables, membership tables and the audit trail."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(24), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(32), nullable=False, server_default="user"),
        sa.Column("status", sa.String(32), nullable=False, server_default="Active"),
        *_timestamps(),
    )
    op.create_index("idx_users_role", "users", ["role"])
    op.create_index("idx_users_status", "users", ["status"])

    op.create_table(
        "teams",
        sa.Column("id", sa.String(24), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("manager_id", sa.String(24), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="Active"),
        *_timestamps(),
    )
    op.create_index("idx_teams_name", "teams", ["name"])
    op.create_index("idx_teams_status", "teams", ["status"])
    op.create_index("idx_teams_manager", "teams", ["manager_id"])

    op.create_table(
        "team_members",
        sa.Column("team_id", sa.String(24), sa.ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", sa.String(24), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("seq", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("added_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_team_members_user", "team_members", ["user_id"])

    op.create_table(
        "question_types",
        sa.Column("id", sa.String(24), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="Active"),
        sa.Column("values", sa.JSON().with_variant(postgresql.JSONB(), "postgresql"), nullable=False),
        sa.Column("units", sa.String(64), nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_question_types_name", "question_types", ["name"])
    op.create_index("idx_question_types_status", "question_types", ["status"])

    op.create_table(
        "questions",
        sa.Column("id", sa.String(24), primary_key=True),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("question_type_id", sa.String(24), sa.ForeignKey("question_types.id"), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="Active"),
        sa.Column("comments", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("optional", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_timestamps(),
    )
    op.create_index("idx_questions_type", "questions", ["question_type_id"])
    op.create_index("idx_questions_status", "questions", ["status"])

    op.create_table(
        "templates",
        sa.Column("id", sa.String(24), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="Active"),
        *_timestamps(),
    )
    op.create_index("idx_templates_name", "templates", ["name"])
    op.create_index("idx_templates_status", "templates", ["status"])

    op.create_table(
        "template_questions",
        sa.Column("template_id", sa.String(24), sa.ForeignKey("templates.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("question_id", sa.String(24), sa.ForeignKey("questions.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("seq", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("added_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_template_questions_question", "template_questions", ["question_id"])

    op.create_table(
        "audit_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("request_id", sa.String(64), nullable=True),
        sa.Column("actor_user_id", sa.String(24), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("actor_user_email", sa.String(320), nullable=True),
        sa.Column("action", sa.String(128), nullable=False),
        sa.Column("entity_type", sa.String(128), nullable=True),
        sa.Column("entity_id", sa.String(128), nullable=True),
        sa.Column("metadata_json", sa.Text(), nullable=True),
    )
    op.create_index("idx_audit_entity", "audit_events", ["entity_type", "entity_id"])


def downgrade() -> None:
    """Drop tables in reverse order."""
    op.drop_table("audit_events")
    op.drop_table("template_questions")
    op.drop_table("templates")
    op.drop_table("questions")
    op.drop_table("question_types")
    op.drop_table("team_members")
    op.drop_table("teams")
    op.drop_table("users")
