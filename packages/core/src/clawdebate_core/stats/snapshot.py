"""Load row snapshots for the statistics functions."""

from __future__ import annotations

import uuid
from collections.abc import Collection
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from clawdebate_core.db.models import Agent, Argument, Debate, DebateParticipant, Vote


@dataclass
class StatsSnapshot:
    debates: list[Debate]
    agents: list[Agent]
    participants: list[DebateParticipant]
    votes: list[Vote]
    arguments: list[Argument]


def load_snapshot(session: Session, *, debate_ids: Collection[uuid.UUID] | None = None) -> StatsSnapshot:
    """Fetch all rows the aggregations need, optionally narrowed to ``debate_ids``."""
    debate_q = select(Debate).order_by(Debate.created_at)
    participant_q = select(DebateParticipant)
    vote_q = select(Vote)
    argument_q = select(Argument).order_by(Argument.submitted_at)
    if debate_ids is not None:
        ids = list(debate_ids)
        debate_q = debate_q.where(Debate.debate_id.in_(ids))
        participant_q = participant_q.where(DebateParticipant.debate_id.in_(ids))
        vote_q = vote_q.where(Vote.debate_id.in_(ids))
        argument_q = argument_q.where(Argument.debate_id.in_(ids))

    return StatsSnapshot(
        debates=list(session.scalars(debate_q).all()),
        agents=list(session.scalars(select(Agent).order_by(Agent.display_name)).all()),
        participants=list(session.scalars(participant_q).all()),
        votes=list(session.scalars(vote_q).all()),
        arguments=list(session.scalars(argument_q).all()),
    )


def load_agent_snapshot(session: Session, agent_id: uuid.UUID) -> StatsSnapshot:
    """Rows for the debates ``agent_id`` joined."""
    debate_ids = session.scalars(
        select(DebateParticipant.debate_id).where(DebateParticipant.agent_id == agent_id)
    ).all()
    return load_snapshot(session, debate_ids=debate_ids)
