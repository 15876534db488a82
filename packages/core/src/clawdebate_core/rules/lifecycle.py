"""Debate status progression and stage activation."""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from datetime import datetime

from clawdebate_core.clock import as_utc, utcnow
from clawdebate_core.db.enums import DEBATE_STATUS_ORDER, DebateStatus, Side
from clawdebate_core.db.models import Argument, Debate, DebateStage
from clawdebate_core.errors import DenyCode
from clawdebate_core.rules.decision import Decision


def next_status(current: DebateStatus) -> DebateStatus | None:
    """Return the status that follows ``current``, or None once completed."""
    index = DEBATE_STATUS_ORDER.index(current)
    if index + 1 >= len(DEBATE_STATUS_ORDER):
        return None
    return DEBATE_STATUS_ORDER[index + 1]


def can_transition(current: DebateStatus, target: DebateStatus) -> Decision:
    """Statuses only move forward, one step at a time."""
    if current == DebateStatus.completed:
        return Decision.deny("Debate is already completed", DenyCode.INVALID_TRANSITION)
    expected = next_status(current)
    if target != expected:
        return Decision.deny(
            f"Cannot move debate from '{current.value}' to '{target.value}'; next status is '{expected.value}'",
            DenyCode.INVALID_TRANSITION,
        )
    return Decision.allow()


def apply_transition(debate: Debate, target: DebateStatus, now: datetime | None = None) -> Debate:
    """Move ``debate`` to ``target`` in place, stamping start/end times."""
    can_transition(debate.status, target).raise_if_denied()
    now = now or utcnow()
    debate.status = target
    if target == DebateStatus.active and debate.started_at is None:
        debate.started_at = now
    if target == DebateStatus.completed:
        debate.ended_at = now
    return debate


def is_accepting_arguments(debate: Debate) -> bool:
    return debate.status == DebateStatus.active


def active_stage(stages: Iterable[DebateStage]) -> DebateStage | None:
    for stage in stages:
        if stage.is_active:
            return stage
    return None


def activate_stage(stages: Sequence[DebateStage], stage_id: uuid.UUID) -> list[DebateStage]:
    """Mark ``stage_id`` active and every other stage inactive.

    Returns the stages whose flag changed. Raises LookupError if the stage is
    not among ``stages``.
    """
    if not any(stage.stage_id == stage_id for stage in stages):
        raise LookupError(stage_id)

    changed: list[DebateStage] = []
    for stage in stages:
        should_be_active = stage.stage_id == stage_id
        if bool(stage.is_active) != should_be_active:
            stage.is_active = should_be_active
            changed.append(stage)
    return changed


def deactivate_all(stages: Iterable[DebateStage]) -> list[DebateStage]:
    changed = [stage for stage in stages if stage.is_active]
    for stage in changed:
        stage.is_active = False
    return changed


def argument_order(existing: Iterable[Argument], side: Side) -> int:
    """1-based position of the next argument on ``side``."""
    return sum(1 for arg in existing if arg.side == side) + 1


def time_remaining(deadline: datetime | None, now: datetime | None = None) -> float | None:
    """Seconds until ``deadline`` (never negative), or None without a deadline."""
    if deadline is None:
        return None
    now = now or utcnow()
    return max(0.0, (as_utc(deadline) - as_utc(now)).total_seconds())


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'s' if count != 1 else ''}"


def format_time_remaining(seconds: float) -> str:
    if seconds <= 0:
        return "Expired"
    total = int(seconds)
    minutes, hours, days = total // 60, total // 3600, total // 86400
    if days > 0:
        return f"{_plural(days, 'day')} remaining"
    if hours > 0:
        return f"{_plural(hours, 'hour')} remaining"
    if minutes > 0:
        return f"{_plural(minutes, 'minute')} remaining"
    return f"{_plural(total, 'second')} remaining"
