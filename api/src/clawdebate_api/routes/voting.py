"""Voting endpoints for authenticated users and anonymous sessions."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Query, Request, Response
from pydantic import BaseModel

from clawdebate_api.deps import DbSession, Publisher, Voter, resolve_voter
from clawdebate_api.routes.debates import ResultsInfo
from clawdebate_core import voting as ops
from clawdebate_core.debates import get_debate
from clawdebate_core.db.enums import DebateStatus, Side, VoteOutcome
from clawdebate_core.identity import AnonymousVoter, VoterIdentity
from clawdebate_core.validation import CastVoteInput, ChangeVoteInput, VoteHistoryFilter

router = APIRouter()


class VoteInfo(BaseModel):
    vote_id: UUID
    debate_id: UUID
    side: Side
    voted_at: datetime
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class VoteResponse(BaseModel):
    """The recorded vote and the debate's updated tally."""

    vote: VoteInfo
    results: ResultsInfo
    session_id: str | None = None


class EligibilityInfo(BaseModel):
    can_vote: bool
    can_change_vote: bool
    reason: str | None
    votes_remaining: int | None

    model_config = {"from_attributes": True}


class VoteStatusResponse(BaseModel):
    debate_id: UUID
    has_voted: bool
    side: Side | None
    voted_at: datetime | None
    eligibility: EligibilityInfo
    results: ResultsInfo
    time_remaining: float | None

    model_config = {"from_attributes": True}


class HistoryEntry(BaseModel):
    vote_id: UUID
    debate_id: UUID
    debate_title: str
    debate_status: DebateStatus
    side: Side
    voted_at: datetime
    outcome: VoteOutcome

    model_config = {"from_attributes": True}


class VoteHistoryResponse(BaseModel):
    """Paginated vote history with outcome totals."""

    entries: list[HistoryEntry]
    total: int
    page: int
    limit: int
    total_pages: int
    won: int
    lost: int
    pending: int

    model_config = {"from_attributes": True}


def _session_id(voter: VoterIdentity) -> str | None:
    return voter.session_id if isinstance(voter, AnonymousVoter) else None


@router.post("/change", response_model=VoteResponse)
def change_vote(
    payload: ChangeVoteInput,
    request: Request,
    response: Response,
    db: DbSession,
    publisher: Publisher,
) -> VoteResponse:
    """Switch an existing vote while voting is open."""
    voter = resolve_voter(request, response, payload.session_id)
    vote, results = ops.change_vote(db, voter, payload, publisher=publisher)
    return VoteResponse(
        vote=VoteInfo.model_validate(vote),
        results=ResultsInfo.model_validate(results),
        session_id=_session_id(voter),
    )


@router.get("/status/{debate_id}", response_model=VoteStatusResponse)
def vote_status(debate_id: UUID, db: DbSession, voter: Voter) -> VoteStatusResponse:
    return VoteStatusResponse.model_validate(ops.get_vote_status(db, debate_id, voter))


@router.get("/results/{debate_id}", response_model=ResultsInfo)
def vote_results(debate_id: UUID, db: DbSession) -> ResultsInfo:
    get_debate(db, debate_id)
    return ResultsInfo.model_validate(ops.get_vote_results(db, debate_id))


@router.get("/history", response_model=VoteHistoryResponse)
def vote_history(
    db: DbSession,
    voter: Voter,
    outcome: Literal["won", "lost", "all"] = "all",
    status: Literal["voting", "completed", "all"] = "all",
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    sort_by: Literal["voted_at", "title"] = "voted_at",
    sort_order: Literal["asc", "desc"] = "desc",
) -> VoteHistoryResponse:
    filters = VoteHistoryFilter(
        outcome=outcome, status=status, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order
    )
    return VoteHistoryResponse.model_validate(ops.get_vote_history(db, voter, filters))


@router.post("/{debate_id}", response_model=VoteResponse, status_code=201)
def cast_vote(
    debate_id: UUID,
    payload: CastVoteInput,
    request: Request,
    response: Response,
    db: DbSession,
    publisher: Publisher,
) -> VoteResponse:
    """Cast a first vote on a debate in voting status."""
    voter = resolve_voter(request, response, payload.session_id)
    vote, results = ops.cast_vote(db, debate_id, voter, payload, publisher=publisher)
    return VoteResponse(
        vote=VoteInfo.model_validate(vote),
        results=ResultsInfo.model_validate(results),
        session_id=_session_id(voter),
    )
