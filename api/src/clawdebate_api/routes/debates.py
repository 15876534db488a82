"""Debate, participant and stage endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel

from clawdebate_api.deps import AdminOnly, AgentId, DbSession, Publisher
from clawdebate_core import debates as ops
from clawdebate_core.db.enums import DebateStatus, Side, Winner
from clawdebate_core.rules.lifecycle import active_stage
from clawdebate_core.validation import (
    CreateDebateInput,
    CreateStageInput,
    JoinDebateInput,
    UpdateDebateStatusInput,
)
from clawdebate_core.voting import get_vote_results

router = APIRouter()


class DebateSummary(BaseModel):
    """Debate fields shared by list and detail views."""

    debate_id: UUID
    title: str
    description: str
    category: str
    status: DebateStatus
    max_arguments_per_side: int
    created_at: datetime
    started_at: datetime | None
    ended_at: datetime | None
    voting_deadline: datetime | None
    winner_side: Side | None
    winner_agent_id: UUID | None

    model_config = {"from_attributes": True}


class DebateListResponse(BaseModel):
    """Paginated debate list."""

    total: int
    limit: int
    offset: int
    debates: list[DebateSummary]


class ParticipantInfo(BaseModel):
    agent_id: UUID
    side: Side
    joined_at: datetime

    model_config = {"from_attributes": True}


class StageInfo(BaseModel):
    stage_id: UUID
    name: str
    description: str | None
    stage_order: int
    is_active: bool
    start_at: datetime | None
    end_at: datetime | None

    model_config = {"from_attributes": True}


class ArgumentInfo(BaseModel):
    argument_id: UUID
    stage_id: UUID
    agent_id: UUID
    side: Side
    content: str
    model: str
    argument_order: int
    submitted_at: datetime

    model_config = {"from_attributes": True}


class ResultsInfo(BaseModel):
    for_count: int
    against_count: int
    total: int
    for_percentage: float
    against_percentage: float
    winner: Winner
    margin: int

    model_config = {"from_attributes": True}


class DebateDetailResponse(DebateSummary):
    """Full debate with participants, stages, arguments and the current tally."""

    participants: list[ParticipantInfo]
    stages: list[StageInfo]
    active_stage_id: UUID | None
    arguments: list[ArgumentInfo]
    results: ResultsInfo


@router.get("", response_model=DebateListResponse)
def list_debates(
    db: DbSession,
    status: DebateStatus | None = None,
    category: str | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> DebateListResponse:
    """List debates, newest first."""
    total, rows = ops.list_debates(db, status=status, category=category, limit=limit, offset=offset)
    return DebateListResponse(
        total=total,
        limit=limit,
        offset=offset,
        debates=[DebateSummary.model_validate(row) for row in rows],
    )


@router.post("", response_model=DebateSummary, status_code=201, dependencies=AdminOnly)
def create_debate(payload: CreateDebateInput, db: DbSession, publisher: Publisher) -> DebateSummary:
    debate = ops.create_debate(db, payload, publisher=publisher)
    return DebateSummary.model_validate(debate)


@router.get("/{debate_id}", response_model=DebateDetailResponse)
def get_debate(debate_id: UUID, db: DbSession) -> DebateDetailResponse:
    debate = ops.get_debate(db, debate_id)
    stages = ops.list_stages(db, debate_id)
    current = active_stage(stages)
    return DebateDetailResponse(
        **DebateSummary.model_validate(debate).model_dump(),
        participants=[ParticipantInfo.model_validate(p) for p in ops.list_participants(db, debate_id)],
        stages=[StageInfo.model_validate(s) for s in stages],
        active_stage_id=current.stage_id if current else None,
        arguments=[ArgumentInfo.model_validate(a) for a in ops.list_arguments(db, debate_id)],
        results=ResultsInfo.model_validate(get_vote_results(db, debate_id)),
    )


@router.post("/{debate_id}/join", response_model=ParticipantInfo, status_code=201)
def join_debate(debate_id: UUID, payload: JoinDebateInput, db: DbSession, agent_id: AgentId) -> ParticipantInfo:
    participant = ops.join_debate(db, debate_id, agent_id, payload)
    return ParticipantInfo.model_validate(participant)


@router.post("/{debate_id}/status", response_model=DebateSummary, dependencies=AdminOnly)
def update_status(
    debate_id: UUID, payload: UpdateDebateStatusInput, db: DbSession, publisher: Publisher
) -> DebateSummary:
    """Advance the debate to its next status."""
    debate = ops.update_debate_status(db, debate_id, payload, publisher=publisher)
    return DebateSummary.model_validate(debate)


@router.get("/{debate_id}/stages", response_model=list[StageInfo])
def list_stages(debate_id: UUID, db: DbSession) -> list[StageInfo]:
    ops.get_debate(db, debate_id)
    return [StageInfo.model_validate(s) for s in ops.list_stages(db, debate_id)]


@router.post("/{debate_id}/stages", response_model=StageInfo, status_code=201, dependencies=AdminOnly)
def create_stage(debate_id: UUID, payload: CreateStageInput, db: DbSession, publisher: Publisher) -> StageInfo:
    stage = ops.create_stage(db, debate_id, payload, publisher=publisher)
    return StageInfo.model_validate(stage)


@router.post("/{debate_id}/stages/{stage_id}/activate", response_model=StageInfo, dependencies=AdminOnly)
def activate_stage(debate_id: UUID, stage_id: UUID, db: DbSession, publisher: Publisher) -> StageInfo:
    stage = ops.activate_stage_for_debate(db, debate_id, stage_id, publisher=publisher)
    return StageInfo.model_validate(stage)
