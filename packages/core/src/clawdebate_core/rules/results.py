"""Vote tallying and result calculation.

Percentages are rounded half-up to one decimal place.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from clawdebate_core.db.enums import Side, Winner
from clawdebate_core.db.models import Vote

PERCENT_PLACES = Decimal("0.1")


@dataclass(frozen=True)
class VoteCounts:
    for_count: int = 0
    against_count: int = 0

    @property
    def total(self) -> int:
        return self.for_count + self.against_count


@dataclass(frozen=True)
class VoteResults:
    for_count: int
    against_count: int
    total: int
    for_percentage: float
    against_percentage: float
    winner: Winner
    margin: int


def percentage(part: int, total: int) -> float:
    if total <= 0:
        return 0.0
    value = Decimal(part) * 100 / Decimal(total)
    return float(value.quantize(PERCENT_PLACES, rounding=ROUND_HALF_UP))


def determine_winner(for_count: int, against_count: int) -> Winner:
    if for_count + against_count == 0:
        return Winner.none
    if for_count > against_count:
        return Winner.for_
    if against_count > for_count:
        return Winner.against
    return Winner.tie


def calculate_vote_results(for_count: int, against_count: int) -> VoteResults:
    total = for_count + against_count
    return VoteResults(
        for_count=for_count,
        against_count=against_count,
        total=total,
        for_percentage=percentage(for_count, total),
        against_percentage=percentage(against_count, total),
        winner=determine_winner(for_count, against_count),
        margin=abs(for_count - against_count),
    )


def tally_votes(votes: Iterable[Vote]) -> VoteCounts:
    for_count = against_count = 0
    for vote in votes:
        if vote.side == Side.for_:
            for_count += 1
        elif vote.side == Side.against:
            against_count += 1
    return VoteCounts(for_count=for_count, against_count=against_count)


def results_for(votes: Iterable[Vote]) -> VoteResults:
    counts = tally_votes(votes)
    return calculate_vote_results(counts.for_count, counts.against_count)


def format_vote_counts(counts: VoteCounts) -> str:
    if counts.total == 0:
        return "No votes yet"
    for_pct = percentage(counts.for_count, counts.total)
    against_pct = percentage(counts.against_count, counts.total)
    return f"{counts.for_count} for ({for_pct:.1f}%) · {counts.against_count} against ({against_pct:.1f}%)"
