"""Voting eligibility.

Anonymous vote counters are read from the store by the caller and passed in
as plain integers; nothing here keeps state between calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from clawdebate_core.clock import as_utc, utcnow
from clawdebate_core.db.enums import DebateStatus, Side, VoteOutcome
from clawdebate_core.db.models import Debate, Vote
from clawdebate_core.errors import DenyCode
from clawdebate_core.identity import AnonymousVoter, VoterIdentity
from clawdebate_core.rules.decision import Decision
from clawdebate_core.settings import settings


@dataclass(frozen=True)
class VotingRestrictions:
    one_vote_per_debate: bool = True
    allow_vote_change: bool = True
    allow_anonymous_voting: bool = True
    anonymous_votes_per_session: int = 10
    anonymous_votes_per_ip: int = 5

    @classmethod
    def from_settings(cls) -> VotingRestrictions:
        return cls(
            anonymous_votes_per_session=settings.max_votes_per_session,
            anonymous_votes_per_ip=settings.max_votes_per_ip,
        )


@dataclass(frozen=True)
class VotingEligibility:
    can_vote: bool
    can_change_vote: bool
    restrictions: VotingRestrictions
    reason: str | None = None
    code: DenyCode | None = None
    votes_remaining: int | None = None

    def to_decision(self) -> Decision:
        if self.can_vote:
            return Decision.allow()
        return Decision.deny(self.reason or "You cannot vote on this debate", self.code or DenyCode.VOTING_NOT_OPEN)


def is_voting_open(debate: Debate, now: datetime | None = None) -> bool:
    if debate.status != DebateStatus.voting:
        return False
    if debate.voting_deadline is None:
        return True
    return as_utc(now or utcnow()) < as_utc(debate.voting_deadline)


def voting_time_remaining(debate: Debate, now: datetime | None = None) -> float | None:
    """Seconds left to vote, or None when voting is closed or has no deadline."""
    now = now or utcnow()
    if not is_voting_open(debate, now) or debate.voting_deadline is None:
        return None
    return max(0.0, (as_utc(debate.voting_deadline) - as_utc(now)).total_seconds())


def can_change_vote(debate: Debate, existing_vote: Vote | None, now: datetime | None = None) -> bool:
    if existing_vote is None:
        return False
    return is_voting_open(debate, now)


def has_exceeded_session_limit(session_votes: int, max_votes: int = 10) -> bool:
    return session_votes >= max_votes


def has_exceeded_ip_limit(ip_votes: int, max_votes: int = 5) -> bool:
    return ip_votes >= max_votes


def evaluate_eligibility(
    debate: Debate,
    voter: VoterIdentity,
    existing_vote: Vote | None = None,
    *,
    session_votes: int = 0,
    ip_votes: int = 0,
    restrictions: VotingRestrictions | None = None,
    now: datetime | None = None,
) -> VotingEligibility:
    """Compute whether ``voter`` may cast a new vote (or change one) on ``debate``.

    Every check is evaluated and the results are ANDed; ``reason`` names the
    first failing check in the order: voting window, existing vote, session
    cap, address cap.
    """
    restrictions = restrictions or VotingRestrictions.from_settings()
    now = now or utcnow()

    failures: list[tuple[str, DenyCode]] = []

    if debate.status == DebateStatus.completed:
        failures.append(("Voting has closed for this debate", DenyCode.VOTING_NOT_OPEN))
    elif not is_voting_open(debate, now):
        failures.append(("Voting is not open for this debate", DenyCode.VOTING_NOT_OPEN))

    if restrictions.one_vote_per_debate and existing_vote is not None:
        failures.append(("You have already voted on this debate", DenyCode.ALREADY_VOTED))

    votes_remaining: int | None = None
    if isinstance(voter, AnonymousVoter):
        if not restrictions.allow_anonymous_voting:
            failures.append(("Sign in to vote on this debate", DenyCode.ANONYMOUS_LIMIT_EXCEEDED))
        session_cap = restrictions.anonymous_votes_per_session
        ip_cap = restrictions.anonymous_votes_per_ip
        if has_exceeded_session_limit(session_votes, session_cap):
            failures.append(
                (f"You have reached your vote limit ({session_cap} votes per session)", DenyCode.ANONYMOUS_LIMIT_EXCEEDED)
            )
        if voter.ip_address and has_exceeded_ip_limit(ip_votes, ip_cap):
            failures.append(
                (f"Vote limit reached for your network ({ip_cap} votes per address)", DenyCode.IP_LIMIT_EXCEEDED)
            )
        remaining = session_cap - session_votes
        if voter.ip_address:
            remaining = min(remaining, ip_cap - ip_votes)
        votes_remaining = max(0, remaining)

    change_allowed = restrictions.allow_vote_change and can_change_vote(debate, existing_vote, now)

    if failures:
        reason, code = failures[0]
        return VotingEligibility(
            can_vote=False,
            can_change_vote=change_allowed,
            restrictions=restrictions,
            reason=reason,
            code=code,
            votes_remaining=votes_remaining,
        )
    return VotingEligibility(
        can_vote=True,
        can_change_vote=change_allowed,
        restrictions=restrictions,
        votes_remaining=votes_remaining,
    )


def check_vote_change(debate: Debate, existing_vote: Vote | None, now: datetime | None = None) -> Decision:
    if existing_vote is None:
        return Decision.deny("You have not voted on this debate", DenyCode.CANNOT_CHANGE_VOTE)
    if not can_change_vote(debate, existing_vote, now):
        return Decision.deny("Voting is closed; your vote can no longer be changed", DenyCode.CANNOT_CHANGE_VOTE)
    return Decision.allow()


def vote_outcome(vote_side: Side, debate: Debate) -> VoteOutcome:
    if debate.status != DebateStatus.completed or debate.winner_side is None:
        return VoteOutcome.pending
    return VoteOutcome.won if vote_side == debate.winner_side else VoteOutcome.lost


def should_prompt_for_authentication(votes_cast: int, max_votes: int = 10) -> bool:
    return votes_cast >= max_votes // 2
