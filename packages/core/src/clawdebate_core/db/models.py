from __future__ import annotations

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clawdebate_core.clock import utcnow
from clawdebate_core.db.base import Base
from clawdebate_core.db.enums import (
    AgentVerificationStatus,
    ChallengeContentType,
    ChallengeStatus,
    DebateStatus,
    Side,
)


def _enum(enum_cls: type[enum.Enum]) -> Enum:
    # Persist enum values ("for"), not member names ("for_").
    return Enum(enum_cls, native_enum=False, values_callable=lambda members: [m.value for m in members])


class Agent(Base):
    __tablename__ = "agent"

    agent_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    display_name: Mapped[str] = mapped_column(String(120), nullable=False)
    is_claimed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    verification_status: Mapped[AgentVerificationStatus] = mapped_column(
        _enum(AgentVerificationStatus), nullable=False, default=AgentVerificationStatus.pending
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class Debate(Base):
    __tablename__ = "debate"

    debate_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(64), nullable=False, default="general")
    status: Mapped[DebateStatus] = mapped_column(_enum(DebateStatus), nullable=False, default=DebateStatus.pending)
    max_arguments_per_side: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    voting_deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    winner_side: Mapped[Side | None] = mapped_column(_enum(Side), nullable=True)
    winner_agent_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("agent.agent_id"), nullable=True)

    __table_args__ = (Index("ix_debate_status_created", "status", "created_at"),)


class DebateParticipant(Base):
    __tablename__ = "debate_participant"

    participant_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    debate_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("debate.debate_id", ondelete="CASCADE"))
    agent_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("agent.agent_id"))
    side: Mapped[Side] = mapped_column(_enum(Side), nullable=False)
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    debate: Mapped[Debate] = relationship()
    agent: Mapped[Agent] = relationship()

    __table_args__ = (
        UniqueConstraint("debate_id", "agent_id", name="uq_participant_debate_agent"),
        UniqueConstraint("debate_id", "side", name="uq_participant_debate_side"),
    )


class DebateStage(Base):
    __tablename__ = "debate_stage"

    stage_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    debate_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("debate.debate_id", ondelete="CASCADE"))
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    stage_order: Mapped[int] = mapped_column(Integer, nullable=False)
    # At most one active stage per debate; maintained by rules.lifecycle.activate_stage.
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    start_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    debate: Mapped[Debate] = relationship()

    __table_args__ = (UniqueConstraint("debate_id", "stage_order", name="uq_stage_debate_order"),)


class Argument(Base):
    __tablename__ = "argument"

    argument_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    debate_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("debate.debate_id", ondelete="CASCADE"))
    stage_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("debate_stage.stage_id"))
    agent_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("agent.agent_id"))
    side: Mapped[Side] = mapped_column(_enum(Side), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    model: Mapped[str] = mapped_column(String(120), nullable=False)
    argument_order: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    # UTC calendar day of submitted_at; backs the once-per-day rule in the store.
    submitted_on: Mapped[date] = mapped_column(Date, nullable=False)

    agent: Mapped[Agent] = relationship()
    stage: Mapped[DebateStage] = relationship()

    __table_args__ = (
        UniqueConstraint("agent_id", "stage_id", "submitted_on", name="uq_argument_agent_stage_day"),
        Index("ix_argument_debate_submitted", "debate_id", "submitted_at"),
    )


class Vote(Base):
    __tablename__ = "vote"

    vote_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    debate_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("debate.debate_id", ondelete="CASCADE"))
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    session_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    side: Mapped[Side] = mapped_column(_enum(Side), nullable=False)
    voted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("debate_id", "user_id", name="uq_vote_debate_user"),
        UniqueConstraint("debate_id", "session_id", name="uq_vote_debate_session"),
        CheckConstraint("(user_id IS NULL) <> (session_id IS NULL)", name="ck_vote_single_identity"),
        Index("ix_vote_ip_address", "ip_address"),
    )


class AnonymousVoteSession(Base):
    __tablename__ = "anonymous_vote_session"

    session_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    votes_cast: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    last_activity_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class VerificationChallenge(Base):
    __tablename__ = "verification_challenge"

    challenge_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    verification_code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    agent_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("agent.agent_id"))
    content_type: Mapped[ChallengeContentType] = mapped_column(
        _enum(ChallengeContentType), nullable=False, default=ChallengeContentType.argument
    )
    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    challenge_text: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[ChallengeStatus] = mapped_column(
        _enum(ChallengeStatus), nullable=False, default=ChallengeStatus.pending
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
