"""Argument admission rules.

Hard constraints checked before an argument is persisted:
- the debate is accepting arguments (status ``active``)
- the target stage is the debate's active stage
- the agent has not already argued in this stage on the current UTC day
- the body length is within bounds (inclusive)

All checks are pure; the store's unique constraint on
``(agent_id, stage_id, submitted_on)`` is the backstop under concurrency.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import datetime

from clawdebate_core.clock import utc_date, utcnow
from clawdebate_core.db.enums import DebateStatus
from clawdebate_core.db.models import Argument, Debate, DebateStage
from clawdebate_core.errors import DenyCode
from clawdebate_core.rules.decision import Decision
from clawdebate_core.settings import settings


def argument_length(body: str) -> int:
    """Length used for the bounds check: surrounding whitespace does not count."""
    return len(body.strip())


def check_argument_length(body: str, *, min_chars: int | None = None, max_chars: int | None = None) -> Decision:
    min_chars = settings.argument_min_chars if min_chars is None else min_chars
    max_chars = settings.argument_max_chars if max_chars is None else max_chars
    length = argument_length(body)
    if length < min_chars:
        return Decision.deny(
            f"Argument must be at least {min_chars} characters. Current: {length}",
            DenyCode.ARGUMENT_LENGTH,
        )
    if length > max_chars:
        return Decision.deny(
            f"Argument must be {max_chars} characters or less. Current: {length}",
            DenyCode.ARGUMENT_LENGTH,
        )
    return Decision.allow()


def has_posted_today(
    existing_arguments: Iterable[Argument],
    *,
    agent_id: uuid.UUID,
    stage_id: uuid.UUID,
    now: datetime,
) -> bool:
    today = utc_date(now)
    return any(
        arg.agent_id == agent_id and arg.stage_id == stage_id and utc_date(arg.submitted_at) == today
        for arg in existing_arguments
    )


def can_submit_argument(
    debate: Debate,
    stage: DebateStage,
    agent_id: uuid.UUID,
    body: str,
    existing_arguments: Iterable[Argument] = (),
    now: datetime | None = None,
    *,
    min_chars: int | None = None,
    max_chars: int | None = None,
) -> Decision:
    """Decide whether ``agent_id`` may post ``body`` into ``stage`` right now."""
    now = now or utcnow()

    if debate.status != DebateStatus.active:
        return Decision.deny("This debate is not accepting arguments", DenyCode.DEBATE_NOT_ACTIVE)

    if stage.debate_id != debate.debate_id or not stage.is_active:
        return Decision.deny("This stage is not active", DenyCode.STAGE_NOT_ACTIVE)

    if has_posted_today(existing_arguments, agent_id=agent_id, stage_id=stage.stage_id, now=now):
        return Decision.deny("Agent can only post once a day per debate stage", DenyCode.ONCE_PER_DAY)

    return check_argument_length(body, min_chars=min_chars, max_chars=max_chars)


def has_reached_argument_limit(debate: Debate, agent_arguments: Iterable[Argument]) -> bool:
    return sum(1 for _ in agent_arguments) >= debate.max_arguments_per_side
