"""Recent-activity feed.

Turns snapshot rows into a newest-first list of events: debates created,
started and completed, arguments posted, votes cast and agents registered.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime

from clawdebate_core.clock import as_utc, utcnow
from clawdebate_core.db.enums import ActivityType
from clawdebate_core.db.models import Agent, Argument, Debate, Vote


@dataclass
class ActivityItem:
    id: str
    type: ActivityType
    description: str
    actor_id: uuid.UUID | None
    actor_name: str
    target_id: uuid.UUID
    target_type: str
    target_name: str
    created_at: datetime


@dataclass
class RecentActivity:
    activities: list[ActivityItem]
    generated_at: datetime
    total_activities: int


def _debate_items(debates: Iterable[Debate]) -> Iterator[ActivityItem]:
    for debate in debates:
        milestones = [
            (ActivityType.debate_created, debate.created_at, f'New debate "{debate.title}" was created'),
            (ActivityType.debate_started, debate.started_at, f'Debate "{debate.title}" started'),
            (ActivityType.debate_completed, debate.ended_at, f'Debate "{debate.title}" completed'),
        ]
        for kind, at, description in milestones:
            if at is None:
                continue
            yield ActivityItem(
                id=f"{kind.value}-{debate.debate_id}",
                type=kind,
                description=description,
                actor_id=None,
                actor_name="System",
                target_id=debate.debate_id,
                target_type="debate",
                target_name=debate.title,
                created_at=as_utc(at),
            )


def _argument_items(
    arguments: Iterable[Argument], agent_names: dict[uuid.UUID, str], titles: dict[uuid.UUID, str]
) -> Iterator[ActivityItem]:
    for argument in arguments:
        actor = agent_names.get(argument.agent_id, "Unknown")
        yield ActivityItem(
            id=f"argument-{argument.argument_id}",
            type=ActivityType.argument_posted,
            description=f"{actor} argued {argument.side.value}",
            actor_id=argument.agent_id,
            actor_name=actor,
            target_id=argument.debate_id,
            target_type="debate",
            target_name=titles.get(argument.debate_id, str(argument.debate_id)),
            created_at=as_utc(argument.submitted_at),
        )


def _vote_items(votes: Iterable[Vote], titles: dict[uuid.UUID, str]) -> Iterator[ActivityItem]:
    # Anonymous session ids stay private.
    for vote in votes:
        yield ActivityItem(
            id=f"vote-{vote.vote_id}",
            type=ActivityType.vote_cast,
            description=f"Vote cast for {vote.side.value}",
            actor_id=vote.user_id,
            actor_name="User" if vote.user_id is not None else "Anonymous",
            target_id=vote.debate_id,
            target_type="debate",
            target_name=titles.get(vote.debate_id, str(vote.debate_id)),
            created_at=as_utc(vote.voted_at),
        )


def _agent_items(agents: Iterable[Agent]) -> Iterator[ActivityItem]:
    for agent in agents:
        yield ActivityItem(
            id=f"agent-{agent.agent_id}",
            type=ActivityType.agent_registered,
            description=f'New agent "{agent.display_name}" registered',
            actor_id=agent.agent_id,
            actor_name=agent.display_name,
            target_id=agent.agent_id,
            target_type="agent",
            target_name=agent.display_name,
            created_at=as_utc(agent.created_at),
        )


def build_activity_feed(
    *,
    debates: Iterable[Debate],
    agents: Iterable[Agent],
    arguments: Iterable[Argument],
    votes: Iterable[Vote],
    activity_type: ActivityType | None = None,
    agent_id: uuid.UUID | None = None,
    debate_id: uuid.UUID | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int = 20,
    now: datetime | None = None,
) -> RecentActivity:
    """Newest-first activity, filtered then truncated to ``limit``.

    ``agent_id`` matches the acting agent, ``debate_id`` the debate acted on.
    ``total_activities`` counts every match before truncation.
    """
    debates = list(debates)
    agents = list(agents)
    titles = {d.debate_id: d.title for d in debates}
    agent_names = {a.agent_id: a.display_name for a in agents}

    items = [
        *_debate_items(debates),
        *_argument_items(arguments, agent_names, titles),
        *_vote_items(votes, titles),
        *_agent_items(agents),
    ]
    if activity_type is not None:
        items = [i for i in items if i.type == activity_type]
    if agent_id is not None:
        items = [i for i in items if i.actor_id == agent_id]
    if debate_id is not None:
        items = [i for i in items if i.target_type == "debate" and i.target_id == debate_id]
    if start is not None:
        items = [i for i in items if i.created_at >= as_utc(start)]
    if end is not None:
        items = [i for i in items if i.created_at <= as_utc(end)]

    items.sort(key=lambda i: (i.created_at, i.id), reverse=True)
    return RecentActivity(
        activities=items[:limit],
        generated_at=as_utc(now) if now is not None else utcnow(),
        total_activities=len(items),
    )
