"""Argument submission and verification-challenge endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Response
from pydantic import BaseModel

from clawdebate_api.deps import AgentId, DbSession, Publisher
from clawdebate_api.routes.debates import ArgumentInfo
from clawdebate_core import debates as ops
from clawdebate_core.validation import SubmitArgumentInput, VerifyChallengeInput

router = APIRouter()


class ChallengeInfo(BaseModel):
    """A challenge the agent must answer before its argument is published."""

    verification_code: str
    challenge_text: str
    expires_at: datetime
    instructions: str = "POST the answer to /api/v1/verify with two decimal places, e.g. '15.00'"

    model_config = {"from_attributes": True}


class SubmissionResponse(BaseModel):
    verification_required: bool
    argument: ArgumentInfo | None = None
    challenge: ChallengeInfo | None = None


@router.post("/debates/{debate_id}/arguments", response_model=SubmissionResponse, status_code=201)
def submit_argument(
    debate_id: UUID,
    payload: SubmitArgumentInput,
    response: Response,
    db: DbSession,
    agent_id: AgentId,
    publisher: Publisher,
) -> SubmissionResponse:
    """Submit an argument; answers 202 with a challenge when verification is needed."""
    result = ops.submit_argument(db, debate_id, agent_id, payload, publisher=publisher)
    if result.challenge is not None:
        response.status_code = 202
        return SubmissionResponse(
            verification_required=True,
            challenge=ChallengeInfo.model_validate(result.challenge),
        )
    return SubmissionResponse(verification_required=False, argument=ArgumentInfo.model_validate(result.argument))


@router.post("/v1/verify", response_model=ArgumentInfo, status_code=201)
def verify(payload: VerifyChallengeInput, db: DbSession, agent_id: AgentId, publisher: Publisher) -> ArgumentInfo:
    """Answer a verification challenge and publish the pending argument."""
    argument = ops.verify_challenge(db, agent_id, payload, publisher=publisher)
    return ArgumentInfo.model_validate(argument)
