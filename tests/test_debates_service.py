"""
Tests for clawdebate_core.debates against an in-memory database.

Tests cover:
- Debate creation, joining and status progression
- Stage creation and activation
- Argument submission, including verification challenges
- Events published after commit
"""

import uuid
from datetime import timedelta

import pytest

from clawdebate_core import debates as ops
from clawdebate_core.db.enums import AgentVerificationStatus, ChallengeStatus, DebateStatus, Side
from clawdebate_core.db.models import Argument, DebateStage, VerificationChallenge, Vote
from clawdebate_core.errors import ActionDenied, DenyCode, InputValidationError, NotFoundError
from clawdebate_core.events import EventType
from conftest import NOW, argument_body

DEBATE_INPUT = {
    "title": "Should cities ban private cars downtown?",
    "description": "Two agents debate car-free city centres and their effects.",
    "category": "Urbanism",
}


class TestCreateAndList:
    def test_create_debate(self, session, publisher):
        debate = ops.create_debate(session, DEBATE_INPUT, publisher=publisher)
        assert debate.status == DebateStatus.pending
        assert debate.category == "urbanism"
        assert debate.max_arguments_per_side == 5
        [event] = publisher.of_type(EventType.DEBATE_CREATED)
        assert event.debate_id == debate.debate_id

    def test_invalid_input_writes_nothing(self, session, publisher):
        with pytest.raises(InputValidationError):
            ops.create_debate(session, {"title": "x"}, publisher=publisher)
        total, _ = ops.list_debates(session)
        assert total == 0
        assert publisher.events == []

    def test_list_filters(self, session, make_debate):
        make_debate(status=DebateStatus.active, category="science")
        make_debate(status=DebateStatus.pending, category="science")
        make_debate(status=DebateStatus.active, category="politics")
        total, rows = ops.list_debates(session, status=DebateStatus.active)
        assert total == 2
        total, rows = ops.list_debates(session, status=DebateStatus.active, category="science")
        assert total == 1 and rows[0].category == "science"
        total, rows = ops.list_debates(session, limit=1)
        assert total == 3 and len(rows) == 1

    def test_unknown_debate(self, session):
        with pytest.raises(NotFoundError) as exc_info:
            ops.get_debate(session, uuid.uuid4())
        assert exc_info.value.message == "Debate not found"


class TestJoin:
    def test_join_and_side_rules(self, session, make_debate, make_agent):
        debate = make_debate()
        pro, con, third = make_agent("Pro"), make_agent("Con"), make_agent("Third")
        participant = ops.join_debate(session, debate.debate_id, pro.agent_id, {"side": "for"})
        assert participant.side == Side.for_

        with pytest.raises(ActionDenied) as exc_info:
            ops.join_debate(session, debate.debate_id, pro.agent_id, {"side": "against"})
        assert exc_info.value.code == DenyCode.ALREADY_JOINED

        with pytest.raises(ActionDenied) as exc_info:
            ops.join_debate(session, debate.debate_id, third.agent_id, {"side": "for"})
        assert exc_info.value.code == DenyCode.SIDE_TAKEN

        ops.join_debate(session, debate.debate_id, con.agent_id, {"side": "against"})
        assert len(ops.list_participants(session, debate.debate_id)) == 2

    def test_flagged_agent(self, session, make_debate, make_agent):
        debate = make_debate()
        agent = make_agent("Spammer", verification_status=AgentVerificationStatus.flagged)
        with pytest.raises(ActionDenied) as exc_info:
            ops.join_debate(session, debate.debate_id, agent.agent_id, {"side": "for"})
        assert exc_info.value.code == DenyCode.AGENT_FLAGGED

    def test_closed_debate(self, session, make_debate, make_agent):
        debate = make_debate(status=DebateStatus.voting)
        with pytest.raises(ActionDenied) as exc_info:
            ops.join_debate(session, debate.debate_id, make_agent().agent_id, {"side": "for"})
        assert exc_info.value.code == DenyCode.DEBATE_CLOSED


class TestStatus:
    def test_full_lifecycle_with_winner_from_votes(self, session, publisher, live_debate):
        debate, stage, pro, con = live_debate
        debate.status = DebateStatus.pending
        debate.started_at = None
        session.commit()

        ops.update_debate_status(session, debate.debate_id, {"status": "active"}, publisher=publisher, now=NOW)
        assert debate.started_at is not None

        ops.update_debate_status(session, debate.debate_id, {"status": "voting"}, publisher=publisher, now=NOW)
        session.refresh(stage)
        assert stage.is_active is False

        session.add_all(
            [
                Vote(debate_id=debate.debate_id, session_id="a", side=Side.against),
                Vote(debate_id=debate.debate_id, session_id="b", side=Side.against),
                Vote(debate_id=debate.debate_id, user_id=uuid.uuid4(), side=Side.for_),
            ]
        )
        session.commit()

        done = ops.update_debate_status(
            session, debate.debate_id, {"status": "completed"}, publisher=publisher, now=NOW + timedelta(days=1)
        )
        assert done.status == DebateStatus.completed
        assert done.winner_side == Side.against
        assert done.winner_agent_id == con.agent_id
        assert done.ended_at is not None

        changes = publisher.of_type(EventType.DEBATE_STATUS_CHANGED)
        assert [e.payload["to"] for e in changes] == ["active", "voting", "completed"]
        assert changes[-1].payload["winner_side"] == "against"

    def test_tie_leaves_no_winner(self, session, make_debate):
        debate = make_debate(status=DebateStatus.voting)
        session.add_all(
            [
                Vote(debate_id=debate.debate_id, session_id="a", side=Side.for_),
                Vote(debate_id=debate.debate_id, session_id="b", side=Side.against),
            ]
        )
        session.commit()
        done = ops.update_debate_status(session, debate.debate_id, {"status": "completed"})
        assert done.winner_side is None
        assert done.winner_agent_id is None

    def test_explicit_winner(self, session, make_debate):
        debate = make_debate(status=DebateStatus.voting)
        done = ops.update_debate_status(session, debate.debate_id, {"status": "completed", "winner_side": "for"})
        assert done.winner_side == Side.for_

    def test_skipping_denied(self, session, make_debate):
        debate = make_debate()
        with pytest.raises(ActionDenied) as exc_info:
            ops.update_debate_status(session, debate.debate_id, {"status": "voting"})
        assert exc_info.value.code == DenyCode.INVALID_TRANSITION
        session.refresh(debate)
        assert debate.status == DebateStatus.pending


class TestStages:
    def test_create_and_activate(self, session, publisher, make_debate):
        debate = make_debate(status=DebateStatus.active)
        first = ops.create_stage(session, debate.debate_id, {"name": "Opening", "stage_order": 1, "is_active": True})
        second = ops.create_stage(session, debate.debate_id, {"name": "Rebuttal", "stage_order": 2})
        assert first.is_active and not second.is_active

        ops.activate_stage_for_debate(session, debate.debate_id, second.stage_id, publisher=publisher)
        stages = ops.list_stages(session, debate.debate_id)
        assert [s.is_active for s in stages] == [False, True]
        assert publisher.of_type(EventType.STAGE_ACTIVATED)[0].payload["stage_id"] == str(second.stage_id)

    def test_new_active_stage_deactivates_others(self, session, make_debate):
        debate = make_debate(status=DebateStatus.active)
        ops.create_stage(session, debate.debate_id, {"name": "Opening", "stage_order": 1, "is_active": True})
        ops.create_stage(session, debate.debate_id, {"name": "Closing", "stage_order": 2, "is_active": True})
        active = [s.stage_order for s in ops.list_stages(session, debate.debate_id) if s.is_active]
        assert active == [2]

    def test_duplicate_order(self, session, make_debate):
        debate = make_debate()
        ops.create_stage(session, debate.debate_id, {"name": "Opening", "stage_order": 1})
        with pytest.raises(ActionDenied) as exc_info:
            ops.create_stage(session, debate.debate_id, {"name": "Again", "stage_order": 1})
        assert exc_info.value.code == DenyCode.STAGE_ORDER_TAKEN

    def test_stage_of_other_debate(self, session, make_debate, make_stage):
        debate, other = make_debate(), make_debate()
        stage = make_stage(other, 1)
        with pytest.raises(NotFoundError):
            ops.activate_stage_for_debate(session, debate.debate_id, stage.stage_id)


@pytest.mark.usefixtures("no_challenges")
class TestSubmitArgument:
    def _submit(self, session, debate, stage, agent, body=None, now=NOW, **kwargs):
        data = {"stage_id": str(stage.stage_id), "content": body or argument_body(800), "model": "anthropic/claude"}
        return ops.submit_argument(session, debate.debate_id, agent.agent_id, data, now=now, **kwargs)

    def test_published_directly(self, session, publisher, live_debate):
        debate, stage, pro, _ = live_debate
        result = self._submit(session, debate, stage, pro, publisher=publisher)
        assert not result.verification_required
        argument = result.argument
        assert argument.side == Side.for_
        assert argument.argument_order == 1
        assert argument.submitted_on == NOW.date()
        [event] = publisher.of_type(EventType.ARGUMENT_SUBMITTED)
        assert event.payload["side"] == "for"

    def test_trimmed_content_stored(self, session, live_debate):
        debate, stage, pro, _ = live_debate
        result = self._submit(session, debate, stage, pro, body="  " + argument_body(600) + "  ")
        assert len(result.argument.content) == 600

    def test_second_post_same_day_denied(self, session, live_debate):
        debate, stage, pro, _ = live_debate
        self._submit(session, debate, stage, pro)
        with pytest.raises(ActionDenied) as exc_info:
            self._submit(session, debate, stage, pro, now=NOW + timedelta(hours=6))
        assert exc_info.value.code == DenyCode.ONCE_PER_DAY
        assert session.query(Argument).count() == 1

    def test_next_day_allowed(self, session, live_debate):
        debate, stage, pro, _ = live_debate
        self._submit(session, debate, stage, pro)
        result = self._submit(session, debate, stage, pro, now=NOW + timedelta(days=1))
        assert result.argument.argument_order == 2

    @pytest.mark.parametrize("length", [499, 3001])
    def test_length_bounds(self, session, live_debate, length):
        debate, stage, pro, _ = live_debate
        with pytest.raises(ActionDenied) as exc_info:
            self._submit(session, debate, stage, pro, body=argument_body(length))
        assert exc_info.value.code == DenyCode.ARGUMENT_LENGTH

    def test_not_participant(self, session, live_debate, make_agent):
        debate, stage, _, _ = live_debate
        with pytest.raises(ActionDenied) as exc_info:
            self._submit(session, debate, stage, make_agent("Outsider"))
        assert exc_info.value.code == DenyCode.NOT_PARTICIPANT

    def test_inactive_stage(self, session, live_debate, make_stage):
        debate, _, pro, _ = live_debate
        later = make_stage(debate, 2, active=False)
        with pytest.raises(ActionDenied) as exc_info:
            self._submit(session, debate, later, pro)
        assert exc_info.value.code == DenyCode.STAGE_NOT_ACTIVE

    def test_argument_limit(self, session, live_debate):
        debate, stage, pro, _ = live_debate
        debate.max_arguments_per_side = 1
        session.commit()
        self._submit(session, debate, stage, pro)
        with pytest.raises(ActionDenied) as exc_info:
            self._submit(session, debate, stage, pro, now=NOW + timedelta(days=1))
        assert exc_info.value.code == DenyCode.ARGUMENT_LIMIT

    def test_flagged_agent(self, session, live_debate):
        debate, stage, pro, _ = live_debate
        pro.verification_status = AgentVerificationStatus.flagged
        session.commit()
        with pytest.raises(ActionDenied) as exc_info:
            self._submit(session, debate, stage, pro)
        assert exc_info.value.code == DenyCode.AGENT_FLAGGED


@pytest.mark.usefixtures("no_challenges")
class TestVerificationChallenge:
    @pytest.fixture
    def parked(self, session, live_debate):
        debate, stage, pro, con = live_debate
        con.is_claimed = False
        session.commit()
        data = {"stage_id": str(stage.stage_id), "content": argument_body(900), "model": "openai/gpt"}
        result = ops.submit_argument(session, debate.debate_id, con.agent_id, data, now=NOW)
        return debate, stage, con, result.challenge

    def test_unclaimed_agent_is_challenged(self, session, parked):
        _, _, con, challenge = parked
        assert challenge.status == ChallengeStatus.pending
        assert challenge.verification_code.startswith("verify_")
        assert challenge.payload["content"] == argument_body(900)
        assert session.query(Argument).count() == 0

    def test_correct_answer_publishes(self, session, publisher, parked):
        debate, _, con, challenge = parked
        argument = ops.verify_challenge(
            session,
            con.agent_id,
            {"verification_code": challenge.verification_code, "answer": challenge.answer},
            publisher=publisher,
            now=NOW + timedelta(seconds=60),
        )
        assert argument.side == Side.against
        assert argument.model == "openai/gpt"
        session.refresh(challenge)
        assert challenge.status == ChallengeStatus.verified
        assert len(publisher.of_type(EventType.ARGUMENT_SUBMITTED)) == 1

    def test_wrong_answer(self, session, parked):
        _, _, con, challenge = parked
        with pytest.raises(ActionDenied) as exc_info:
            ops.verify_challenge(
                session, con.agent_id, {"verification_code": challenge.verification_code, "answer": "-999"}, now=NOW
            )
        assert exc_info.value.code == DenyCode.INCORRECT_ANSWER
        session.refresh(challenge)
        assert challenge.status == ChallengeStatus.pending

    def test_expired(self, session, parked):
        _, _, con, challenge = parked
        with pytest.raises(ActionDenied) as exc_info:
            ops.verify_challenge(
                session,
                con.agent_id,
                {"verification_code": challenge.verification_code, "answer": challenge.answer},
                now=NOW + timedelta(minutes=6),
            )
        assert exc_info.value.code == DenyCode.CHALLENGE_EXPIRED
        session.refresh(challenge)
        assert challenge.status == ChallengeStatus.expired

    def test_other_agent_cannot_answer(self, session, parked):
        debate, _, con, challenge = parked
        with pytest.raises(NotFoundError):
            ops.verify_challenge(
                session, uuid.uuid4(), {"verification_code": challenge.verification_code, "answer": challenge.answer}
            )

    def test_admission_rechecked_on_verify(self, session, parked):
        debate, stage, con, challenge = parked
        debate.status = DebateStatus.voting
        session.commit()
        with pytest.raises(ActionDenied) as exc_info:
            ops.verify_challenge(
                session,
                con.agent_id,
                {"verification_code": challenge.verification_code, "answer": challenge.answer},
                now=NOW + timedelta(seconds=30),
            )
        assert exc_info.value.code == DenyCode.DEBATE_NOT_ACTIVE
        assert session.query(VerificationChallenge).one().status == ChallengeStatus.pending
