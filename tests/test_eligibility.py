"""
Tests for clawdebate_core.rules.eligibility.

Tests cover:
- Voting window (status and deadline)
- One vote per debate
- Anonymous session and address caps, combined with AND
- Vote changes only while voting is open
- Vote outcomes and the authentication prompt
"""

import uuid
from datetime import timedelta

import pytest

from clawdebate_core.db.enums import DebateStatus, Side, VoteOutcome
from clawdebate_core.db.models import Debate, Vote
from clawdebate_core.errors import ActionDenied, DenyCode
from clawdebate_core.identity import AnonymousVoter, UserVoter
from clawdebate_core.rules.eligibility import (
    VotingRestrictions,
    can_change_vote,
    check_vote_change,
    evaluate_eligibility,
    is_voting_open,
    should_prompt_for_authentication,
    vote_outcome,
    voting_time_remaining,
)
from conftest import NOW

RESTRICTIONS = VotingRestrictions()


def _debate(status=DebateStatus.voting, deadline=None, winner=None) -> Debate:
    return Debate(
        debate_id=uuid.uuid4(),
        title="t",
        description="d",
        status=status,
        voting_deadline=deadline,
        winner_side=winner,
    )


def _user():
    return UserVoter(user_id=uuid.uuid4())


def _anon(ip="203.0.113.7"):
    return AnonymousVoter(session_id="anon_1_abc", ip_address=ip)


class TestVotingWindow:
    def test_open_while_voting(self):
        assert is_voting_open(_debate(), NOW)

    @pytest.mark.parametrize("status", [DebateStatus.pending, DebateStatus.active, DebateStatus.completed])
    def test_closed_outside_voting(self, status):
        assert not is_voting_open(_debate(status=status), NOW)

    def test_closed_after_deadline(self):
        assert not is_voting_open(_debate(deadline=NOW - timedelta(seconds=1)), NOW)
        assert is_voting_open(_debate(deadline=NOW + timedelta(hours=1)), NOW)

    def test_time_remaining(self):
        assert voting_time_remaining(_debate(deadline=NOW + timedelta(hours=1)), NOW) == 3600.0
        assert voting_time_remaining(_debate(), NOW) is None
        assert voting_time_remaining(_debate(status=DebateStatus.active, deadline=NOW + timedelta(hours=1)), NOW) is None


class TestEvaluateEligibility:
    def test_user_may_vote(self):
        result = evaluate_eligibility(_debate(), _user(), restrictions=RESTRICTIONS, now=NOW)
        assert result.can_vote
        assert result.reason is None
        assert result.votes_remaining is None
        assert not result.can_change_vote

    def test_not_open(self):
        result = evaluate_eligibility(_debate(status=DebateStatus.active), _user(), restrictions=RESTRICTIONS, now=NOW)
        assert not result.can_vote
        assert result.reason == "Voting is not open for this debate"
        assert result.code == DenyCode.VOTING_NOT_OPEN

    def test_completed_reports_closed(self):
        result = evaluate_eligibility(
            _debate(status=DebateStatus.completed), _user(), restrictions=RESTRICTIONS, now=NOW
        )
        assert result.reason == "Voting has closed for this debate"

    def test_existing_vote_blocks_new_vote_but_allows_change(self):
        existing = Vote(side=Side.for_)
        result = evaluate_eligibility(_debate(), _user(), existing, restrictions=RESTRICTIONS, now=NOW)
        assert not result.can_vote
        assert result.code == DenyCode.ALREADY_VOTED
        assert result.can_change_vote

    def test_eleventh_anonymous_vote_denied(self):
        voter = _anon(ip=None)
        assert evaluate_eligibility(_debate(), voter, session_votes=9, restrictions=RESTRICTIONS, now=NOW).can_vote
        result = evaluate_eligibility(_debate(), voter, session_votes=10, restrictions=RESTRICTIONS, now=NOW)
        assert not result.can_vote
        assert result.code == DenyCode.ANONYMOUS_LIMIT_EXCEEDED
        assert result.reason == "You have reached your vote limit (10 votes per session)"
        assert result.votes_remaining == 0

    def test_address_cap(self):
        result = evaluate_eligibility(_debate(), _anon(), session_votes=2, ip_votes=5, restrictions=RESTRICTIONS, now=NOW)
        assert not result.can_vote
        assert result.code == DenyCode.IP_LIMIT_EXCEEDED

    def test_address_cap_ignored_without_address(self):
        result = evaluate_eligibility(
            _debate(), _anon(ip=None), session_votes=2, ip_votes=50, restrictions=RESTRICTIONS, now=NOW
        )
        assert result.can_vote
        assert result.votes_remaining == 8

    def test_votes_remaining_takes_tighter_cap(self):
        result = evaluate_eligibility(_debate(), _anon(), session_votes=1, ip_votes=3, restrictions=RESTRICTIONS, now=NOW)
        assert result.can_vote
        assert result.votes_remaining == 2

    def test_first_failure_names_reason(self):
        result = evaluate_eligibility(
            _debate(status=DebateStatus.active),
            _anon(),
            Vote(side=Side.against),
            session_votes=10,
            ip_votes=5,
            restrictions=RESTRICTIONS,
            now=NOW,
        )
        assert not result.can_vote
        assert result.code == DenyCode.VOTING_NOT_OPEN

    def test_user_not_subject_to_anonymous_caps(self):
        result = evaluate_eligibility(_debate(), _user(), session_votes=99, ip_votes=99, restrictions=RESTRICTIONS, now=NOW)
        assert result.can_vote

    def test_custom_restrictions(self):
        tight = VotingRestrictions(anonymous_votes_per_session=2)
        result = evaluate_eligibility(_debate(), _anon(ip=None), session_votes=2, restrictions=tight, now=NOW)
        assert result.reason == "You have reached your vote limit (2 votes per session)"

    def test_to_decision(self):
        denied = evaluate_eligibility(_debate(status=DebateStatus.pending), _user(), restrictions=RESTRICTIONS, now=NOW)
        with pytest.raises(ActionDenied) as exc_info:
            denied.to_decision().raise_if_denied()
        assert exc_info.value.code == DenyCode.VOTING_NOT_OPEN


class TestVoteChange:
    def test_requires_existing_vote(self):
        decision = check_vote_change(_debate(), None, NOW)
        assert decision.code == DenyCode.CANNOT_CHANGE_VOTE
        assert not can_change_vote(_debate(), None, NOW)

    def test_allowed_while_voting(self):
        assert check_vote_change(_debate(), Vote(side=Side.for_), NOW).allowed

    @pytest.mark.parametrize("status", [DebateStatus.completed, DebateStatus.active])
    def test_denied_after_voting_left(self, status):
        decision = check_vote_change(_debate(status=status), Vote(side=Side.for_), NOW)
        assert not decision.allowed
        assert decision.code == DenyCode.CANNOT_CHANGE_VOTE

    def test_denied_after_deadline(self):
        debate = _debate(deadline=NOW - timedelta(minutes=1))
        assert not can_change_vote(debate, Vote(side=Side.for_), NOW)


class TestOutcome:
    def test_pending_until_completed(self):
        assert vote_outcome(Side.for_, _debate()) == VoteOutcome.pending

    def test_won_and_lost(self):
        debate = _debate(status=DebateStatus.completed, winner=Side.against)
        assert vote_outcome(Side.against, debate) == VoteOutcome.won
        assert vote_outcome(Side.for_, debate) == VoteOutcome.lost

    def test_tie_is_pending(self):
        assert vote_outcome(Side.for_, _debate(status=DebateStatus.completed)) == VoteOutcome.pending

    def test_prompt_for_authentication_at_half_the_cap(self):
        assert not should_prompt_for_authentication(4)
        assert should_prompt_for_authentication(5)
