"""Tests for clawdebate_core.rules.results."""

import pytest

from clawdebate_core.db.enums import Side, Winner
from clawdebate_core.db.models import Vote
from clawdebate_core.rules.results import (
    VoteCounts,
    calculate_vote_results,
    determine_winner,
    format_vote_counts,
    percentage,
    results_for,
    tally_votes,
)


class TestCalculateVoteResults:
    def test_no_votes(self):
        results = calculate_vote_results(0, 0)
        assert results.total == 0
        assert results.for_percentage == 0.0
        assert results.against_percentage == 0.0
        assert results.winner == Winner.none
        assert results.margin == 0

    @pytest.mark.parametrize("count", [1, 4, 250])
    def test_equal_counts_tie(self, count):
        results = calculate_vote_results(count, count)
        assert results.winner == Winner.tie
        assert results.for_percentage == 50.0
        assert results.against_percentage == 50.0
        assert results.margin == 0

    def test_for_wins(self):
        results = calculate_vote_results(7, 3)
        assert results.winner == Winner.for_
        assert results.for_percentage == 70.0
        assert results.against_percentage == 30.0
        assert results.margin == 4

    def test_against_wins(self):
        results = calculate_vote_results(1, 2)
        assert results.winner == Winner.against
        assert results.for_percentage == 33.3
        assert results.against_percentage == 66.7
        assert results.total == 3


class TestPercentage:
    def test_rounds_half_up(self):
        # 1/8 = 12.5% exactly; 1/16 = 6.25% -> 6.3
        assert percentage(1, 8) == 12.5
        assert percentage(1, 16) == 6.3

    def test_zero_total(self):
        assert percentage(0, 0) == 0.0

    def test_winner_helper(self):
        assert determine_winner(0, 0) == Winner.none
        assert determine_winner(2, 2) == Winner.tie


class TestTally:
    def test_tally_votes(self):
        votes = [Vote(side=Side.for_), Vote(side=Side.against), Vote(side=Side.for_)]
        counts = tally_votes(votes)
        assert counts == VoteCounts(for_count=2, against_count=1)
        assert counts.total == 3
        assert results_for(votes).winner == Winner.for_

    def test_format(self):
        assert format_vote_counts(VoteCounts()) == "No votes yet"
        assert format_vote_counts(VoteCounts(3, 1)) == "3 for (75.0%) · 1 against (25.0%)"
