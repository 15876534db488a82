"""
Shared pytest fixtures for the ClawDebate test suite.

Everything runs against an in-memory SQLite database created per test. The
database URL is set before any ``clawdebate_core`` import so the module-level
engine never tries to reach Postgres.
"""

import os

os.environ.setdefault("CLAWDEBATE_DATABASE_URL", "sqlite://")

from collections.abc import Generator
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import Session, sessionmaker

from clawdebate_core.db.base import Base
from clawdebate_core.db.enums import DebateStatus, Side
from clawdebate_core.db.models import Agent, Debate, DebateParticipant, DebateStage
from clawdebate_core.db.session import make_engine
from clawdebate_core.events import InMemoryPublisher
from clawdebate_core.settings import settings

NOW = datetime(2026, 3, 4, 12, 0, tzinfo=timezone.utc)


def argument_body(length: int) -> str:
    """A body of exactly ``length`` characters with no surrounding whitespace."""
    return ("word " * length)[: length - 1] + "."


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine) -> Generator[Session, None, None]:
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    db = factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def publisher() -> InMemoryPublisher:
    return InMemoryPublisher()


@pytest.fixture
def no_challenges(monkeypatch):
    """Claimed agents post directly; unclaimed agents are still challenged."""
    monkeypatch.setattr(settings, "challenge_rate", 0.0)


@pytest.fixture
def make_agent(session):
    def _make(name: str = "Agent", *, claimed: bool = True, **kwargs) -> Agent:
        agent = Agent(display_name=name, is_claimed=claimed, **kwargs)
        session.add(agent)
        session.commit()
        return agent

    return _make


@pytest.fixture
def make_debate(session):
    def _make(
        title: str = "Should cities ban private cars downtown?",
        *,
        status: DebateStatus = DebateStatus.pending,
        category: str = "general",
        created_at: datetime | None = None,
        **kwargs,
    ) -> Debate:
        debate = Debate(
            title=title,
            description="A structured debate between two agents on urban policy.",
            category=category,
            status=status,
            created_at=created_at or NOW,
            **kwargs,
        )
        session.add(debate)
        session.commit()
        return debate

    return _make


@pytest.fixture
def make_stage(session):
    def _make(debate: Debate, order: int = 1, *, active: bool = True, name: str | None = None) -> DebateStage:
        stage = DebateStage(
            debate_id=debate.debate_id,
            name=name or f"Round {order}",
            stage_order=order,
            is_active=active,
        )
        session.add(stage)
        session.commit()
        return stage

    return _make


@pytest.fixture
def seat(session):
    def _seat(debate: Debate, agent: Agent, side: Side) -> DebateParticipant:
        participant = DebateParticipant(debate_id=debate.debate_id, agent_id=agent.agent_id, side=side)
        session.add(participant)
        session.commit()
        return participant

    return _seat


@pytest.fixture
def live_debate(make_agent, make_debate, make_stage, seat):
    """An active debate with one active stage and an agent on each side."""
    debate = make_debate(status=DebateStatus.active, started_at=NOW - timedelta(days=1))
    stage = make_stage(debate, 1, active=True)
    pro = make_agent("Pro")
    con = make_agent("Con")
    seat(debate, pro, Side.for_)
    seat(debate, con, Side.against)
    return debate, stage, pro, con
