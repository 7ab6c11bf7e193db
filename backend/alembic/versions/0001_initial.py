"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _enums() -> dict[str, postgresql.ENUM]:
    # Types are created explicitly; create_type=False stops create_table from emitting them again.
    return {
        "instance_status": postgresql.ENUM(
            "in_progress", "completed", "paused", name="instance_status", create_type=False
        ),
        "team_privacy_level": postgresql.ENUM("private", "public", name="team_privacy_level", create_type=False),
        "team_role": postgresql.ENUM("owner", "admin", "member", "viewer", name="team_role", create_type=False),
        "invitation_status": postgresql.ENUM(
            "pending", "accepted", "declined", "expired", "cancelled", name="invitation_status", create_type=False
        ),
        "team_template_status": postgresql.ENUM("active", "removed", name="team_template_status", create_type=False),
    }


def _timestamp(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False)


def upgrade() -> None:
    enums = _enums()
    for enum in enums.values():
        enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255)),
        _timestamp("created_at"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "checklist_templates",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_checklist_templates_user_id", "checklist_templates", ["user_id"])

    op.create_table(
        "checklist_steps",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("template_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("step_text", sa.Text(), nullable=False),
        sa.Column("order_index", sa.Integer(), nullable=False),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["template_id"], ["checklist_templates.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_checklist_steps_template_id", "checklist_steps", ["template_id"])

    op.create_table(
        "checklist_instances",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("template_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", enums["instance_status"], server_default="in_progress", nullable=False),
        _timestamp("started_at"),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.ForeignKeyConstraint(["template_id"], ["checklist_templates.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_checklist_instances_template_id", "checklist_instances", ["template_id"])
    op.create_index("ix_checklist_instances_user_id", "checklist_instances", ["user_id"])

    op.create_table(
        "checklist_instance_steps",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("instance_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("step_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("is_completed", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.ForeignKeyConstraint(["instance_id"], ["checklist_instances.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["step_id"], ["checklist_steps.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("instance_id", "step_id", name="uq_instance_steps_instance_step"),
    )
    op.create_index("ix_checklist_instance_steps_instance_id", "checklist_instance_steps", ["instance_id"])

    op.create_table(
        "teams",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("privacy_level", enums["team_privacy_level"], server_default="private", nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("owner_id", "name", name="uq_teams_owner_name"),
    )
    op.create_index("ix_teams_owner_id", "teams", ["owner_id"])

    op.create_table(
        "team_members",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("team_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("role", enums["team_role"], server_default="member", nullable=False),
        _timestamp("joined_at"),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("team_id", "user_id", name="uq_team_members_team_user"),
    )
    op.create_index("ix_team_members_team_id", "team_members", ["team_id"])
    op.create_index("ix_team_members_user_id", "team_members", ["user_id"])

    op.create_table(
        "team_invitations",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("team_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("invited_email", sa.String(length=255), nullable=False),
        sa.Column("invited_by", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("token", sa.String(length=64), nullable=False),
        sa.Column("status", enums["invitation_status"], server_default="pending", nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["invited_by"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_team_invitations_team_id", "team_invitations", ["team_id"])
    op.create_index("ix_team_invitations_token", "team_invitations", ["token"], unique=True)
    op.create_index(
        "uq_team_invitations_pending_email",
        "team_invitations",
        ["team_id", "invited_email"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        "team_templates",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("team_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("template_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("shared_by", postgresql.UUID(as_uuid=True), nullable=False),
        _timestamp("shared_at"),
        sa.Column("is_official", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("status", enums["team_template_status"], server_default="active", nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["template_id"], ["checklist_templates.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["shared_by"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_team_templates_team_id", "team_templates", ["team_id"])
    op.create_index("ix_team_templates_template_id", "team_templates", ["template_id"])
    op.create_index(
        "uq_team_templates_active",
        "team_templates",
        ["team_id", "template_id"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )

    op.create_table(
        "template_favorites",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("template_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("team_id", postgresql.UUID(as_uuid=True)),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["template_id"], ["checklist_templates.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_template_favorites_user_id", "template_favorites", ["user_id"])
    op.create_index("ix_template_favorites_template_id", "template_favorites", ["template_id"])
    op.create_index(
        "uq_template_favorites_personal",
        "template_favorites",
        ["user_id", "template_id"],
        unique=True,
        postgresql_where=sa.text("team_id IS NULL"),
    )
    op.create_index(
        "uq_template_favorites_team",
        "template_favorites",
        ["user_id", "template_id", "team_id"],
        unique=True,
        postgresql_where=sa.text("team_id IS NOT NULL"),
    )

    op.create_table(
        "template_feedback",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("template_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("team_id", postgresql.UUID(as_uuid=True)),
        sa.Column("comment", sa.Text(), nullable=False),
        sa.Column("rating", sa.Integer()),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["template_id"], ["checklist_templates.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"], ondelete="CASCADE"),
        sa.CheckConstraint("rating IS NULL OR (rating BETWEEN 1 AND 5)", name="ck_template_feedback_rating"),
    )
    op.create_index("ix_template_feedback_template_id", "template_feedback", ["template_id"])
    op.create_index("ix_template_feedback_user_id", "template_feedback", ["user_id"])
    op.create_index(
        "uq_template_feedback_personal",
        "template_feedback",
        ["user_id", "template_id"],
        unique=True,
        postgresql_where=sa.text("team_id IS NULL"),
    )
    op.create_index(
        "uq_template_feedback_team",
        "template_feedback",
        ["user_id", "template_id", "team_id"],
        unique=True,
        postgresql_where=sa.text("team_id IS NOT NULL"),
    )


def downgrade() -> None:
    enums = _enums()

    op.drop_table("template_feedback")
    op.drop_table("template_favorites")
    op.drop_table("team_templates")
    op.drop_table("team_invitations")
    op.drop_table("team_members")
    op.drop_table("teams")
    op.drop_table("checklist_instance_steps")
    op.drop_table("checklist_instances")
    op.drop_table("checklist_steps")
    op.drop_table("checklist_templates")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    for enum in reversed(list(enums.values())):
        enum.drop(op.get_bind(), checkfirst=True)
