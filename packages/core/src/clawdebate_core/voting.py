"""Vote casting, vote changes and vote read models."""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clawdebate_core.clock import as_utc, utcnow
from clawdebate_core.db.enums import DebateStatus, Side, VoteOutcome
from clawdebate_core.db.models import AnonymousVoteSession, Debate, Vote
from clawdebate_core.debates import get_debate
from clawdebate_core.errors import ActionDenied, DenyCode
from clawdebate_core.events import DebateEvent, EventPublisher, EventType, LoggingPublisher
from clawdebate_core.identity import AnonymousVoter, UserVoter, VoterIdentity
from clawdebate_core.rules.eligibility import (
    VotingEligibility,
    VotingRestrictions,
    check_vote_change,
    evaluate_eligibility,
    vote_outcome,
    voting_time_remaining,
)
from clawdebate_core.rules.results import VoteResults, results_for
from clawdebate_core.validation import CastVoteInput, ChangeVoteInput, VoteHistoryFilter, validate_input

logger = logging.getLogger(__name__)

_default_publisher = LoggingPublisher()


def _voter_clause(voter: VoterIdentity):
    if isinstance(voter, UserVoter):
        return Vote.user_id == voter.user_id
    return Vote.session_id == voter.session_id


def find_vote(session: Session, debate_id: uuid.UUID, voter: VoterIdentity) -> Vote | None:
    return session.scalar(select(Vote).where(Vote.debate_id == debate_id).where(_voter_clause(voter)))


def session_vote_count(session: Session, session_id: str) -> int:
    record = session.get(AnonymousVoteSession, session_id)
    return record.votes_cast if record is not None else 0


def ip_vote_count(session: Session, ip_address: str | None) -> int:
    if not ip_address:
        return 0
    return (
        session.scalar(
            select(func.count()).select_from(Vote).where(Vote.ip_address == ip_address).where(Vote.session_id.is_not(None))
        )
        or 0
    )


def load_eligibility(
    session: Session,
    debate: Debate,
    voter: VoterIdentity,
    *,
    restrictions: VotingRestrictions | None = None,
    now: datetime | None = None,
) -> tuple[VotingEligibility, Vote | None]:
    """Read the counters for ``voter`` and evaluate eligibility on ``debate``."""
    existing = find_vote(session, debate.debate_id, voter)
    session_votes = ip_votes = 0
    if isinstance(voter, AnonymousVoter):
        session_votes = session_vote_count(session, voter.session_id)
        ip_votes = ip_vote_count(session, voter.ip_address)
    eligibility = evaluate_eligibility(
        debate,
        voter,
        existing,
        session_votes=session_votes,
        ip_votes=ip_votes,
        restrictions=restrictions,
        now=now,
    )
    return eligibility, existing


def _touch_anonymous_session(session: Session, voter: AnonymousVoter, now: datetime) -> None:
    record = session.get(AnonymousVoteSession, voter.session_id)
    if record is None:
        record = AnonymousVoteSession(
            session_id=voter.session_id,
            ip_address=voter.ip_address,
            votes_cast=0,
            created_at=now,
            last_activity_at=now,
        )
        session.add(record)
    record.votes_cast = (record.votes_cast or 0) + 1
    record.last_activity_at = now
    if voter.ip_address:
        record.ip_address = voter.ip_address


def cast_vote(
    session: Session,
    debate_id: uuid.UUID,
    voter: VoterIdentity,
    data: CastVoteInput | dict[str, Any],
    *,
    publisher: EventPublisher | None = None,
    restrictions: VotingRestrictions | None = None,
    now: datetime | None = None,
) -> tuple[Vote, VoteResults]:
    """Record a first vote and return it with the updated results."""
    payload = validate_input(CastVoteInput, data)
    now = now or utcnow()
    debate = get_debate(session, debate_id)

    eligibility, _ = load_eligibility(session, debate, voter, restrictions=restrictions, now=now)
    eligibility.to_decision().raise_if_denied()

    vote = Vote(debate_id=debate_id, side=payload.side, voted_at=now)
    if isinstance(voter, UserVoter):
        vote.user_id = voter.user_id
    else:
        vote.session_id = voter.session_id
        vote.ip_address = voter.ip_address
        _touch_anonymous_session(session, voter, now)
    session.add(vote)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise ActionDenied("You have already voted on this debate", DenyCode.ALREADY_VOTED) from exc

    results = get_vote_results(session, debate_id)
    logger.info("vote on debate %s: %s (%s)", debate_id, payload.side.value, voter.key)
    (publisher or _default_publisher).publish(
        DebateEvent(EventType.VOTE_CAST, debate_id, {"side": payload.side.value, "total": results.total})
    )
    return vote, results


def change_vote(
    session: Session,
    voter: VoterIdentity,
    data: ChangeVoteInput | dict[str, Any],
    *,
    publisher: EventPublisher | None = None,
    now: datetime | None = None,
) -> tuple[Vote, VoteResults]:
    """Switch an existing vote to ``new_side``. Choosing the current side is a no-op."""
    payload = validate_input(ChangeVoteInput, data)
    now = now or utcnow()
    debate = get_debate(session, payload.debate_id)
    existing = find_vote(session, debate.debate_id, voter)
    check_vote_change(debate, existing, now).raise_if_denied()

    if existing.side == payload.new_side:
        return existing, get_vote_results(session, debate.debate_id)

    previous = existing.side
    existing.side = payload.new_side
    existing.updated_at = now
    session.commit()

    results = get_vote_results(session, debate.debate_id)
    (publisher or _default_publisher).publish(
        DebateEvent(
            EventType.VOTE_CHANGED,
            debate.debate_id,
            {"from": previous.value, "to": payload.new_side.value, "total": results.total},
        )
    )
    return existing, results


def get_vote_results(session: Session, debate_id: uuid.UUID) -> VoteResults:
    votes = session.scalars(select(Vote).where(Vote.debate_id == debate_id)).all()
    return results_for(votes)


@dataclass
class VoteStatus:
    debate_id: uuid.UUID
    has_voted: bool
    side: Side | None
    voted_at: datetime | None
    eligibility: VotingEligibility
    results: VoteResults
    time_remaining: float | None


def get_vote_status(
    session: Session,
    debate_id: uuid.UUID,
    voter: VoterIdentity,
    *,
    now: datetime | None = None,
) -> VoteStatus:
    now = now or utcnow()
    debate = get_debate(session, debate_id)
    eligibility, existing = load_eligibility(session, debate, voter, now=now)
    return VoteStatus(
        debate_id=debate_id,
        has_voted=existing is not None,
        side=existing.side if existing else None,
        voted_at=existing.voted_at if existing else None,
        eligibility=eligibility,
        results=get_vote_results(session, debate_id),
        time_remaining=voting_time_remaining(debate, now),
    )


@dataclass
class VoteHistoryEntry:
    vote_id: uuid.UUID
    debate_id: uuid.UUID
    debate_title: str
    debate_status: DebateStatus
    side: Side
    voted_at: datetime
    outcome: VoteOutcome


@dataclass
class VoteHistory:
    entries: list[VoteHistoryEntry]
    total: int
    page: int
    limit: int
    total_pages: int
    won: int
    lost: int
    pending: int


def get_vote_history(
    session: Session,
    voter: VoterIdentity,
    filters: VoteHistoryFilter | dict[str, Any] | None = None,
) -> VoteHistory:
    """Votes cast by ``voter`` with the outcome of each, filtered and paged."""
    params = validate_input(VoteHistoryFilter, filters or {})
    rows = session.execute(select(Vote, Debate).join(Debate, Debate.debate_id == Vote.debate_id).where(_voter_clause(voter))).all()

    entries = [
        VoteHistoryEntry(
            vote_id=vote.vote_id,
            debate_id=debate.debate_id,
            debate_title=debate.title,
            debate_status=debate.status,
            side=vote.side,
            voted_at=as_utc(vote.voted_at),
            outcome=vote_outcome(vote.side, debate),
        )
        for vote, debate in rows
    ]
    counts = {outcome: sum(1 for e in entries if e.outcome == outcome) for outcome in VoteOutcome}

    if params.status != "all":
        entries = [e for e in entries if e.debate_status.value == params.status]
    if params.outcome != "all":
        entries = [e for e in entries if e.outcome.value == params.outcome]

    reverse = params.sort_order == "desc"
    if params.sort_by == "title":
        entries.sort(key=lambda e: e.debate_title.lower(), reverse=reverse)
    else:
        entries.sort(key=lambda e: e.voted_at, reverse=reverse)

    total = len(entries)
    start = (params.page - 1) * params.limit
    return VoteHistory(
        entries=entries[start : start + params.limit],
        total=total,
        page=params.page,
        limit=params.limit,
        total_pages=math.ceil(total / params.limit) if total else 0,
        won=counts[VoteOutcome.won],
        lost=counts[VoteOutcome.lost],
        pending=counts[VoteOutcome.pending],
    )
