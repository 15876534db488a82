"""Pure business rules: admission, lifecycle, eligibility, results, challenges."""

from clawdebate_core.rules.admission import can_submit_argument, check_argument_length
from clawdebate_core.rules.challenge import Challenge, check_answer, generate_challenge, normalize_answer
from clawdebate_core.rules.decision import Decision
from clawdebate_core.rules.eligibility import (
    VotingEligibility,
    VotingRestrictions,
    can_change_vote,
    evaluate_eligibility,
    is_voting_open,
)
from clawdebate_core.rules.lifecycle import activate_stage, active_stage, can_transition, next_status
from clawdebate_core.rules.results import VoteCounts, VoteResults, calculate_vote_results, tally_votes

__all__ = [
    "Challenge",
    "Decision",
    "VoteCounts",
    "VoteResults",
    "VotingEligibility",
    "VotingRestrictions",
    "activate_stage",
    "active_stage",
    "calculate_vote_results",
    "can_change_vote",
    "can_submit_argument",
    "can_transition",
    "check_answer",
    "check_argument_length",
    "evaluate_eligibility",
    "generate_challenge",
    "is_voting_open",
    "next_status",
    "normalize_answer",
    "tally_votes",
]
