"""Tests for clawdebate_core.rules.lifecycle."""

import uuid
from datetime import timedelta

import pytest

from clawdebate_core.db.enums import DebateStatus, Side
from clawdebate_core.db.models import Argument, Debate, DebateStage
from clawdebate_core.errors import ActionDenied, DenyCode
from clawdebate_core.rules.lifecycle import (
    activate_stage,
    active_stage,
    apply_transition,
    argument_order,
    can_transition,
    deactivate_all,
    format_time_remaining,
    next_status,
    time_remaining,
)
from conftest import NOW


def _stages(debate_id, count=3, active_index=None):
    return [
        DebateStage(
            stage_id=uuid.uuid4(),
            debate_id=debate_id,
            name=f"Round {i + 1}",
            stage_order=i + 1,
            is_active=(i == active_index),
        )
        for i in range(count)
    ]


class TestStatusTransitions:
    """Statuses move forward one step at a time."""

    @pytest.mark.parametrize(
        "current,target",
        [
            (DebateStatus.pending, DebateStatus.active),
            (DebateStatus.active, DebateStatus.voting),
            (DebateStatus.voting, DebateStatus.completed),
        ],
    )
    def test_forward_step_allowed(self, current, target):
        assert can_transition(current, target).allowed

    @pytest.mark.parametrize(
        "current,target",
        [
            (DebateStatus.pending, DebateStatus.voting),
            (DebateStatus.pending, DebateStatus.completed),
            (DebateStatus.voting, DebateStatus.active),
            (DebateStatus.active, DebateStatus.active),
            (DebateStatus.completed, DebateStatus.pending),
        ],
    )
    def test_other_transitions_denied(self, current, target):
        decision = can_transition(current, target)
        assert not decision.allowed
        assert decision.code == DenyCode.INVALID_TRANSITION

    def test_next_status(self):
        assert next_status(DebateStatus.pending) == DebateStatus.active
        assert next_status(DebateStatus.completed) is None

    def test_apply_transition_stamps_times(self):
        debate = Debate(status=DebateStatus.pending)
        apply_transition(debate, DebateStatus.active, NOW)
        assert debate.started_at == NOW
        apply_transition(debate, DebateStatus.voting, NOW + timedelta(days=2))
        assert debate.ended_at is None
        apply_transition(debate, DebateStatus.completed, NOW + timedelta(days=3))
        assert debate.ended_at == NOW + timedelta(days=3)
        assert debate.started_at == NOW

    def test_apply_transition_raises_on_skip(self):
        debate = Debate(status=DebateStatus.pending)
        with pytest.raises(ActionDenied) as exc_info:
            apply_transition(debate, DebateStatus.completed, NOW)
        assert exc_info.value.code == DenyCode.INVALID_TRANSITION
        assert debate.status == DebateStatus.pending


class TestStages:
    """At most one stage per debate is active."""

    def test_activate_switches_single_active_stage(self):
        stages = _stages(uuid.uuid4(), active_index=0)
        changed = activate_stage(stages, stages[2].stage_id)
        assert [s.is_active for s in stages] == [False, False, True]
        assert {s.stage_id for s in changed} == {stages[0].stage_id, stages[2].stage_id}
        assert active_stage(stages) is stages[2]

    def test_activate_already_active_changes_nothing(self):
        stages = _stages(uuid.uuid4(), active_index=1)
        assert activate_stage(stages, stages[1].stage_id) == []

    def test_activate_unknown_stage(self):
        with pytest.raises(LookupError):
            activate_stage(_stages(uuid.uuid4()), uuid.uuid4())

    def test_deactivate_all(self):
        stages = _stages(uuid.uuid4(), active_index=2)
        assert len(deactivate_all(stages)) == 1
        assert active_stage(stages) is None


class TestArgumentOrder:
    def test_counts_per_side(self):
        existing = [Argument(side=Side.for_), Argument(side=Side.against), Argument(side=Side.for_)]
        assert argument_order(existing, Side.for_) == 3
        assert argument_order(existing, Side.against) == 2
        assert argument_order([], Side.for_) == 1


class TestTimeRemaining:
    def test_no_deadline(self):
        assert time_remaining(None, NOW) is None

    def test_past_deadline_is_zero(self):
        assert time_remaining(NOW - timedelta(hours=1), NOW) == 0.0

    def test_naive_deadline_treated_as_utc(self):
        deadline = (NOW + timedelta(minutes=30)).replace(tzinfo=None)
        assert time_remaining(deadline, NOW) == 1800.0

    @pytest.mark.parametrize(
        "seconds,expected",
        [
            (0, "Expired"),
            (45, "45 seconds remaining"),
            (61, "1 minute remaining"),
            (7200, "2 hours remaining"),
            (86400 * 3 + 5, "3 days remaining"),
        ],
    )
    def test_format(self, seconds, expected):
        assert format_time_remaining(seconds) == expected
