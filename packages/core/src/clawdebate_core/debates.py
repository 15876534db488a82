"""Debate, stage and argument operations against the database.

Each operation validates its input, loads the rows it needs, evaluates the
pure rules, and only then writes. Unknown ids raise ``NotFoundError``; rule
denials raise ``ActionDenied``. Events are published after commit.
"""

from __future__ import annotations

import logging
import random
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clawdebate_core.clock import as_utc, utc_date, utcnow
from clawdebate_core.db.enums import AgentVerificationStatus, ChallengeStatus, DebateStatus, Side, Winner
from clawdebate_core.db.models import (
    Agent,
    Argument,
    Debate,
    DebateParticipant,
    DebateStage,
    VerificationChallenge,
    Vote,
)
from clawdebate_core.errors import ActionDenied, DenyCode, NotFoundError
from clawdebate_core.events import DebateEvent, EventPublisher, EventType, LoggingPublisher
from clawdebate_core.identity import generate_verification_code
from clawdebate_core.rules import admission, lifecycle
from clawdebate_core.rules.challenge import check_answer, generate_challenge
from clawdebate_core.rules.results import results_for
from clawdebate_core.settings import settings
from clawdebate_core.validation import (
    CreateDebateInput,
    CreateStageInput,
    JoinDebateInput,
    SubmitArgumentInput,
    UpdateDebateStatusInput,
    VerifyChallengeInput,
    validate_input,
)

logger = logging.getLogger(__name__)

_default_publisher = LoggingPublisher()


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def get_debate(session: Session, debate_id: uuid.UUID) -> Debate:
    debate = session.get(Debate, debate_id)
    if debate is None:
        raise NotFoundError("debate", debate_id)
    return debate


def get_agent(session: Session, agent_id: uuid.UUID) -> Agent:
    agent = session.get(Agent, agent_id)
    if agent is None:
        raise NotFoundError("agent", agent_id)
    return agent


def get_stage(session: Session, debate_id: uuid.UUID, stage_id: uuid.UUID) -> DebateStage:
    stage = session.get(DebateStage, stage_id)
    if stage is None or stage.debate_id != debate_id:
        raise NotFoundError("stage", stage_id)
    return stage


def list_stages(session: Session, debate_id: uuid.UUID) -> list[DebateStage]:
    return list(
        session.scalars(
            select(DebateStage).where(DebateStage.debate_id == debate_id).order_by(DebateStage.stage_order)
        ).all()
    )


def list_participants(session: Session, debate_id: uuid.UUID) -> list[DebateParticipant]:
    return list(
        session.scalars(select(DebateParticipant).where(DebateParticipant.debate_id == debate_id)).all()
    )


def list_arguments(session: Session, debate_id: uuid.UUID) -> list[Argument]:
    return list(
        session.scalars(
            select(Argument).where(Argument.debate_id == debate_id).order_by(Argument.submitted_at)
        ).all()
    )


def list_debates(
    session: Session,
    *,
    status: DebateStatus | None = None,
    category: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[int, list[Debate]]:
    query = select(Debate)
    if status is not None:
        query = query.where(Debate.status == status)
    if category:
        query = query.where(Debate.category == category)

    total = session.scalar(select(func.count()).select_from(query.subquery())) or 0
    rows = session.scalars(query.order_by(Debate.created_at.desc()).limit(limit).offset(offset)).all()
    return total, list(rows)


# ---------------------------------------------------------------------------
# Agents, debates, participants
# ---------------------------------------------------------------------------


def register_agent(session: Session, display_name: str, *, is_claimed: bool = False) -> Agent:
    agent = Agent(display_name=display_name.strip(), is_claimed=is_claimed)
    session.add(agent)
    session.commit()
    return agent


def create_debate(
    session: Session,
    data: CreateDebateInput | dict[str, Any],
    *,
    publisher: EventPublisher | None = None,
) -> Debate:
    payload = validate_input(CreateDebateInput, data)
    debate = Debate(
        title=payload.title,
        description=payload.description,
        category=payload.category,
        max_arguments_per_side=payload.max_arguments_per_side,
        voting_deadline=payload.voting_deadline,
        status=DebateStatus.pending,
        created_at=utcnow(),
    )
    session.add(debate)
    session.commit()
    logger.info("created debate %s (%s)", debate.debate_id, debate.category)
    (publisher or _default_publisher).publish(
        DebateEvent(EventType.DEBATE_CREATED, debate.debate_id, {"title": debate.title})
    )
    return debate


def join_debate(
    session: Session,
    debate_id: uuid.UUID,
    agent_id: uuid.UUID,
    data: JoinDebateInput | dict[str, Any],
) -> DebateParticipant:
    payload = validate_input(JoinDebateInput, data)
    debate = get_debate(session, debate_id)
    agent = get_agent(session, agent_id)

    if agent.verification_status == AgentVerificationStatus.flagged:
        raise ActionDenied("This agent is banned from participating", DenyCode.AGENT_FLAGGED)
    if debate.status not in (DebateStatus.pending, DebateStatus.active):
        raise ActionDenied("This debate is no longer accepting participants", DenyCode.DEBATE_CLOSED)

    participants = list_participants(session, debate_id)
    if any(p.agent_id == agent_id for p in participants):
        raise ActionDenied("Agent has already joined this debate", DenyCode.ALREADY_JOINED)
    if any(p.side == payload.side for p in participants):
        raise ActionDenied(f"The '{payload.side.value}' side is already taken", DenyCode.SIDE_TAKEN)

    participant = DebateParticipant(debate_id=debate_id, agent_id=agent_id, side=payload.side, joined_at=utcnow())
    session.add(participant)
    session.commit()
    return participant


def _participant(session: Session, debate_id: uuid.UUID, agent_id: uuid.UUID) -> DebateParticipant | None:
    return session.scalar(
        select(DebateParticipant)
        .where(DebateParticipant.debate_id == debate_id)
        .where(DebateParticipant.agent_id == agent_id)
    )


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


def winner_from_votes(session: Session, debate_id: uuid.UUID) -> Side | None:
    votes = session.scalars(select(Vote).where(Vote.debate_id == debate_id)).all()
    winner = results_for(votes).winner
    if winner == Winner.for_:
        return Side.for_
    if winner == Winner.against:
        return Side.against
    return None


def update_debate_status(
    session: Session,
    debate_id: uuid.UUID,
    data: UpdateDebateStatusInput | dict[str, Any],
    *,
    publisher: EventPublisher | None = None,
    now: datetime | None = None,
) -> Debate:
    """Advance a debate one status forward.

    Leaving ``active`` deactivates every stage. On completion the winner side
    is taken from the input, or else from the vote tally (a tie leaves it
    empty); the winning agent is the participant on that side.
    """
    payload = validate_input(UpdateDebateStatusInput, data)
    debate = get_debate(session, debate_id)
    previous = debate.status
    lifecycle.can_transition(previous, payload.status).raise_if_denied()
    lifecycle.apply_transition(debate, payload.status, now)

    if previous == DebateStatus.active:
        lifecycle.deactivate_all(list_stages(session, debate_id))

    if payload.status == DebateStatus.completed:
        winner_side = payload.winner_side or winner_from_votes(session, debate_id)
        debate.winner_side = winner_side
        winner_agent_id = payload.winner_agent_id
        if winner_agent_id is None and winner_side is not None:
            winner_agent_id = session.scalar(
                select(DebateParticipant.agent_id)
                .where(DebateParticipant.debate_id == debate_id)
                .where(DebateParticipant.side == winner_side)
            )
        debate.winner_agent_id = winner_agent_id

    session.commit()
    logger.info("debate %s: %s -> %s", debate_id, previous.value, debate.status.value)
    (publisher or _default_publisher).publish(
        DebateEvent(
            EventType.DEBATE_STATUS_CHANGED,
            debate_id,
            {
                "from": previous.value,
                "to": debate.status.value,
                "winner_side": debate.winner_side.value if debate.winner_side else None,
            },
        )
    )
    return debate


def create_stage(
    session: Session,
    debate_id: uuid.UUID,
    data: CreateStageInput | dict[str, Any],
    *,
    publisher: EventPublisher | None = None,
) -> DebateStage:
    payload = validate_input(CreateStageInput, data)
    get_debate(session, debate_id)
    stages = list_stages(session, debate_id)
    if any(s.stage_order == payload.stage_order for s in stages):
        raise ActionDenied(f"Stage order {payload.stage_order} is already used", DenyCode.STAGE_ORDER_TAKEN)

    stage = DebateStage(
        debate_id=debate_id,
        name=payload.name,
        description=(payload.description or "").strip() or None,
        stage_order=payload.stage_order,
        is_active=False,
        start_at=payload.start_at,
        end_at=payload.end_at,
    )
    session.add(stage)
    session.flush()
    if payload.is_active:
        lifecycle.activate_stage([*stages, stage], stage.stage_id)
    session.commit()

    if payload.is_active:
        (publisher or _default_publisher).publish(
            DebateEvent(EventType.STAGE_ACTIVATED, debate_id, {"stage_id": str(stage.stage_id)})
        )
    return stage


def activate_stage_for_debate(
    session: Session,
    debate_id: uuid.UUID,
    stage_id: uuid.UUID,
    *,
    publisher: EventPublisher | None = None,
) -> DebateStage:
    stage = get_stage(session, debate_id, stage_id)
    lifecycle.activate_stage(list_stages(session, debate_id), stage_id)
    session.commit()
    logger.info("debate %s: stage %s (%s) active", debate_id, stage.stage_order, stage.name)
    (publisher or _default_publisher).publish(
        DebateEvent(EventType.STAGE_ACTIVATED, debate_id, {"stage_id": str(stage_id), "name": stage.name})
    )
    return stage


# ---------------------------------------------------------------------------
# Arguments and verification challenges
# ---------------------------------------------------------------------------


@dataclass
class SubmissionResult:
    """Either a published argument, or a challenge that must be solved first."""

    argument: Argument | None = None
    challenge: VerificationChallenge | None = None

    @property
    def verification_required(self) -> bool:
        return self.challenge is not None


def _check_admission(
    session: Session,
    debate: Debate,
    stage: DebateStage,
    agent: Agent,
    content: str,
    now: datetime,
) -> DebateParticipant:
    if agent.verification_status == AgentVerificationStatus.flagged:
        raise ActionDenied("This agent is banned from participating", DenyCode.AGENT_FLAGGED)

    existing = session.scalars(
        select(Argument).where(Argument.agent_id == agent.agent_id).where(Argument.stage_id == stage.stage_id)
    ).all()
    admission.can_submit_argument(debate, stage, agent.agent_id, content, existing, now).raise_if_denied()

    participant = _participant(session, debate.debate_id, agent.agent_id)
    if participant is None:
        raise ActionDenied("You are not participating in this debate", DenyCode.NOT_PARTICIPANT)

    agent_arguments = session.scalars(
        select(Argument).where(Argument.debate_id == debate.debate_id).where(Argument.agent_id == agent.agent_id)
    ).all()
    if admission.has_reached_argument_limit(debate, agent_arguments):
        raise ActionDenied(
            f"Agent has reached the limit of {debate.max_arguments_per_side} arguments", DenyCode.ARGUMENT_LIMIT
        )
    return participant


def _persist_argument(
    session: Session,
    debate: Debate,
    stage: DebateStage,
    participant: DebateParticipant,
    content: str,
    model: str,
    now: datetime,
) -> Argument:
    argument = Argument(
        debate_id=debate.debate_id,
        stage_id=stage.stage_id,
        agent_id=participant.agent_id,
        side=participant.side,
        content=content.strip(),
        model=model,
        argument_order=lifecycle.argument_order(list_arguments(session, debate.debate_id), participant.side),
        submitted_at=now,
        submitted_on=utc_date(now),
    )
    session.add(argument)
    try:
        session.flush()
    except IntegrityError as exc:
        session.rollback()
        raise ActionDenied("Agent can only post once a day per debate stage", DenyCode.ONCE_PER_DAY) from exc
    return argument


def _publish_argument(publisher: EventPublisher | None, argument: Argument) -> None:
    (publisher or _default_publisher).publish(
        DebateEvent(
            EventType.ARGUMENT_SUBMITTED,
            argument.debate_id,
            {
                "argument_id": str(argument.argument_id),
                "stage_id": str(argument.stage_id),
                "agent_id": str(argument.agent_id),
                "side": argument.side.value,
            },
        )
    )


def needs_challenge(agent: Agent, rng: random.Random) -> bool:
    return not agent.is_claimed or rng.random() < settings.challenge_rate


def submit_argument(
    session: Session,
    debate_id: uuid.UUID,
    agent_id: uuid.UUID,
    data: SubmitArgumentInput | dict[str, Any],
    *,
    publisher: EventPublisher | None = None,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> SubmissionResult:
    """Admit an argument, or park it behind a verification challenge."""
    payload = validate_input(SubmitArgumentInput, data)
    now = now or utcnow()
    rng = rng or random.Random()

    debate = get_debate(session, debate_id)
    agent = get_agent(session, agent_id)
    stage = get_stage(session, debate_id, payload.stage_id)
    participant = _check_admission(session, debate, stage, agent, payload.content, now)

    if needs_challenge(agent, rng):
        challenge = generate_challenge(rng=rng)
        record = VerificationChallenge(
            verification_code=generate_verification_code(),
            agent_id=agent_id,
            payload={
                "debate_id": str(debate_id),
                "stage_id": str(stage.stage_id),
                "content": payload.content,
                "model": payload.model,
            },
            challenge_text=challenge.text,
            answer=challenge.answer,
            status=ChallengeStatus.pending,
            created_at=now,
            expires_at=now + timedelta(seconds=settings.challenge_ttl_seconds),
        )
        session.add(record)
        session.commit()
        logger.info("agent %s challenged before posting to debate %s", agent_id, debate_id)
        return SubmissionResult(challenge=record)

    argument = _persist_argument(session, debate, stage, participant, payload.content, payload.model, now)
    session.commit()
    _publish_argument(publisher, argument)
    return SubmissionResult(argument=argument)


def verify_challenge(
    session: Session,
    agent_id: uuid.UUID,
    data: VerifyChallengeInput | dict[str, Any],
    *,
    publisher: EventPublisher | None = None,
    now: datetime | None = None,
) -> Argument:
    """Check a challenge answer and publish the parked argument."""
    payload = validate_input(VerifyChallengeInput, data)
    now = now or utcnow()

    record = session.scalar(
        select(VerificationChallenge)
        .where(VerificationChallenge.verification_code == payload.verification_code)
        .where(VerificationChallenge.status == ChallengeStatus.pending)
    )
    if record is None or record.agent_id != agent_id:
        raise NotFoundError("challenge", payload.verification_code)

    if as_utc(record.expires_at) < as_utc(now):
        record.status = ChallengeStatus.expired
        session.commit()
        raise ActionDenied("Challenge expired", DenyCode.CHALLENGE_EXPIRED)

    if not check_answer(record.answer, payload.answer):
        raise ActionDenied(
            "Incorrect answer; respond with the number to two decimal places (e.g. '15.00')",
            DenyCode.INCORRECT_ANSWER,
        )

    parked = record.payload
    debate_id = uuid.UUID(parked["debate_id"])
    debate = get_debate(session, debate_id)
    agent = get_agent(session, agent_id)
    stage = get_stage(session, debate_id, uuid.UUID(parked["stage_id"]))
    participant = _check_admission(session, debate, stage, agent, parked["content"], now)

    record.status = ChallengeStatus.verified
    argument = _persist_argument(
        session, debate, stage, participant, parked["content"], parked.get("model") or "unknown/legacy", now
    )
    session.commit()
    _publish_argument(publisher, argument)
    return argument
