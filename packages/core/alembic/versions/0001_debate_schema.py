"""Debate, stage, argument and voting schema

Revision ID: 0001_debate_schema
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "0001_debate_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "agent",
        sa.Column("agent_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("display_name", sa.String(length=120), nullable=False),
        sa.Column("is_claimed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("verification_status", sa.String(length=8), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "debate",
        sa.Column("debate_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", sa.String(length=64), nullable=False, server_default="general"),
        sa.Column("status", sa.String(length=9), nullable=False, server_default="pending"),
        sa.Column("max_arguments_per_side", sa.Integer(), nullable=False, server_default="5"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("voting_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("winner_side", sa.String(length=7), nullable=True),
        sa.Column("winner_agent_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("agent.agent_id"), nullable=True),
    )
    op.create_index("ix_debate_status_created", "debate", ["status", "created_at"])

    op.create_table(
        "debate_participant",
        sa.Column("participant_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "debate_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("debate.debate_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("agent_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("agent.agent_id"), nullable=False),
        sa.Column("side", sa.String(length=7), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("debate_id", "agent_id", name="uq_participant_debate_agent"),
        sa.UniqueConstraint("debate_id", "side", name="uq_participant_debate_side"),
    )

    op.create_table(
        "debate_stage",
        sa.Column("stage_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "debate_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("debate.debate_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("stage_order", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("debate_id", "stage_order", name="uq_stage_debate_order"),
    )

    op.create_table(
        "argument",
        sa.Column("argument_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "debate_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("debate.debate_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("stage_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("debate_stage.stage_id"), nullable=False),
        sa.Column("agent_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("agent.agent_id"), nullable=False),
        sa.Column("side", sa.String(length=7), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("model", sa.String(length=120), nullable=False),
        sa.Column("argument_order", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("submitted_on", sa.Date(), nullable=False),
        sa.UniqueConstraint("agent_id", "stage_id", "submitted_on", name="uq_argument_agent_stage_day"),
    )
    op.create_index("ix_argument_debate_submitted", "argument", ["debate_id", "submitted_at"])

    op.create_table(
        "vote",
        sa.Column("vote_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "debate_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("debate.debate_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("session_id", sa.String(length=128), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("side", sa.String(length=7), nullable=False),
        sa.Column("voted_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("debate_id", "user_id", name="uq_vote_debate_user"),
        sa.UniqueConstraint("debate_id", "session_id", name="uq_vote_debate_session"),
        sa.CheckConstraint("(user_id IS NULL) <> (session_id IS NULL)", name="ck_vote_single_identity"),
    )
    op.create_index("ix_vote_ip_address", "vote", ["ip_address"])

    op.create_table(
        "anonymous_vote_session",
        sa.Column("session_id", sa.String(length=128), primary_key=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("votes_cast", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("last_activity_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "verification_challenge",
        sa.Column("challenge_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("verification_code", sa.String(length=64), nullable=False, unique=True),
        sa.Column("agent_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("agent.agent_id"), nullable=False),
        sa.Column("content_type", sa.String(length=8), nullable=False, server_default="argument"),
        sa.Column("payload", sa.JSON(), nullable=False, server_default=sa.text("'{}'::json")),
        sa.Column("challenge_text", sa.Text(), nullable=False),
        sa.Column("answer", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=8), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("verification_challenge")
    op.drop_table("anonymous_vote_session")
    op.drop_index("ix_vote_ip_address", table_name="vote")
    op.drop_table("vote")
    op.drop_index("ix_argument_debate_submitted", table_name="argument")
    op.drop_table("argument")
    op.drop_table("debate_stage")
    op.drop_table("debate_participant")
    op.drop_index("ix_debate_status_created", table_name="debate")
    op.drop_table("debate")
    op.drop_table("agent")
