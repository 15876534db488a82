"""Read-side statistics.

Every function takes a snapshot of rows and returns a deterministic summary;
nothing is cached or updated incrementally. Durations are in minutes and
averages/percentages are rounded half-up to one decimal place.
"""

from __future__ import annotations

import uuid
from collections import Counter, defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from clawdebate_core.clock import as_utc, utcnow
from clawdebate_core.db.enums import DebateStatus, LeaderboardSort, LeaderboardWindow, Side, TimePeriod
from clawdebate_core.db.models import Agent, Argument, Debate, DebateParticipant, Vote
from clawdebate_core.rules.results import VoteResults, percentage, results_for
from clawdebate_core.stats.periods import (
    MAX_SERIES_POINTS,
    bucket_key,
    bucket_start,
    count_buckets,
    next_bucket,
    window_start,
)

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
TRENDING_THRESHOLD = 5
TOP_AGENTS_PER_CATEGORY = 5


def round1(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _mean(values: Sequence[float]) -> float:
    return round1(sum(values) / len(values)) if values else 0.0


def _minutes_between(start: datetime, end: datetime) -> float:
    return (as_utc(end) - as_utc(start)).total_seconds() / 60


def _durations(debates: Iterable[Debate]) -> list[float]:
    return [
        _minutes_between(d.started_at, d.ended_at)
        for d in debates
        if d.status == DebateStatus.completed and d.started_at and d.ended_at
    ]


def _voter_key(vote: Vote) -> str:
    return f"user:{vote.user_id}" if vote.user_id is not None else f"anon:{vote.session_id}"


def _votes_by_debate(votes: Iterable[Vote]) -> dict[uuid.UUID, list[Vote]]:
    grouped: dict[uuid.UUID, list[Vote]] = defaultdict(list)
    for vote in votes:
        grouped[vote.debate_id].append(vote)
    return grouped


# ---------------------------------------------------------------------------
# Platform
# ---------------------------------------------------------------------------


@dataclass
class PlatformStats:
    total_debates: int
    total_agents: int
    total_votes: int
    total_arguments: int
    pending_debates: int
    active_debates: int
    voting_debates: int
    completed_debates: int
    total_participants: int
    average_debate_duration: float
    most_active_day: str
    most_active_hour: int | None


def calculate_platform_stats(
    *,
    debates: Sequence[Debate],
    agents: Sequence[Agent],
    votes: Sequence[Vote],
    arguments: Sequence[Argument],
    participants: Sequence[DebateParticipant],
) -> PlatformStats:
    statuses = Counter(d.status for d in debates)

    day_counts: Counter[int] = Counter()
    hour_counts: Counter[int] = Counter()
    for debate in debates:
        created = as_utc(debate.created_at)
        day_counts[created.weekday()] += 1
        hour_counts[created.hour] += 1

    # Ties resolve to the earliest weekday / hour.
    busiest_day = min(day_counts, key=lambda k: (-day_counts[k], k)) if day_counts else None
    busiest_hour = min(hour_counts, key=lambda k: (-hour_counts[k], k)) if hour_counts else None

    return PlatformStats(
        total_debates=len(debates),
        total_agents=len(agents),
        total_votes=len(votes),
        total_arguments=len(arguments),
        pending_debates=statuses[DebateStatus.pending],
        active_debates=statuses[DebateStatus.active],
        voting_debates=statuses[DebateStatus.voting],
        completed_debates=statuses[DebateStatus.completed],
        total_participants=len({p.agent_id for p in participants}),
        average_debate_duration=_mean(_durations(debates)),
        most_active_day=WEEKDAYS[busiest_day] if busiest_day is not None else "N/A",
        most_active_hour=busiest_hour,
    )


# ---------------------------------------------------------------------------
# Single debate
# ---------------------------------------------------------------------------


@dataclass
class ArgumentSideStats:
    side: Side
    count: int
    average_length: float
    total_length: int


@dataclass
class DebateStats:
    debate_id: uuid.UUID
    total_votes: int
    total_arguments: int
    results: VoteResults
    argument_stats: list[ArgumentSideStats]
    unique_voters: int
    total_participants: int
    duration_minutes: float | None
    average_argument_interval: float


def calculate_debate_stats(
    debate: Debate,
    votes: Sequence[Vote],
    arguments: Sequence[Argument],
    participants: Sequence[DebateParticipant],
) -> DebateStats:
    argument_stats = []
    for side in Side:
        lengths = [len(a.content or "") for a in arguments if a.side == side]
        argument_stats.append(
            ArgumentSideStats(side=side, count=len(lengths), average_length=_mean(lengths), total_length=sum(lengths))
        )

    duration = None
    if debate.started_at and debate.ended_at:
        duration = round1(_minutes_between(debate.started_at, debate.ended_at))

    ordered = sorted(as_utc(a.submitted_at) for a in arguments)
    intervals = [_minutes_between(prev, cur) for prev, cur in zip(ordered, ordered[1:])]

    return DebateStats(
        debate_id=debate.debate_id,
        total_votes=len(votes),
        total_arguments=len(arguments),
        results=results_for(votes),
        argument_stats=argument_stats,
        unique_voters=len({_voter_key(v) for v in votes}),
        total_participants=len(participants),
        duration_minutes=duration,
        average_argument_interval=_mean(intervals),
    )


# ---------------------------------------------------------------------------
# Agents
# ---------------------------------------------------------------------------


@dataclass
class AgentPerformance:
    agent_id: uuid.UUID
    agent_name: str
    total_debates: int
    completed_debates: int
    wins: int
    losses: int
    draws: int
    win_rate: float
    average_quality: float
    total_votes: int
    total_arguments: int
    average_argument_length: float
    average_response_minutes: float
    last_active: datetime | None


@dataclass
class PerformancePoint:
    period: str
    debates_participated: int
    wins: int
    losses: int


def _agent_sides(agent_id: uuid.UUID, participants: Iterable[DebateParticipant]) -> dict[uuid.UUID, Side]:
    return {p.debate_id: p.side for p in participants if p.agent_id == agent_id}


def _won(debate: Debate, side: Side) -> bool:
    return debate.status == DebateStatus.completed and debate.winner_side == side


def _lost(debate: Debate, side: Side) -> bool:
    return (
        debate.status == DebateStatus.completed
        and debate.winner_side is not None
        and debate.winner_side != side
    )


def calculate_agent_performance(
    agent: Agent,
    debates: Sequence[Debate],
    participants: Sequence[DebateParticipant],
    arguments: Sequence[Argument] = (),
    votes: Sequence[Vote] = (),
) -> AgentPerformance:
    """Summarize an agent's record across the debates it joined.

    Win rate is wins over completed debates. ``average_quality`` is the mean
    share of votes (percent) the agent's side received, over its debates that
    received any votes.
    """
    sides = _agent_sides(agent.agent_id, participants)
    joined = [d for d in debates if d.debate_id in sides]
    completed = [d for d in joined if d.status == DebateStatus.completed]
    wins = sum(1 for d in completed if _won(d, sides[d.debate_id]))
    losses = sum(1 for d in completed if _lost(d, sides[d.debate_id]))
    draws = len(completed) - wins - losses

    votes_by_debate = _votes_by_debate(votes)
    total_votes = 0
    shares: list[float] = []
    for debate in joined:
        debate_votes = votes_by_debate.get(debate.debate_id, [])
        side_votes = sum(1 for v in debate_votes if v.side == sides[debate.debate_id])
        total_votes += side_votes
        if debate_votes:
            shares.append(percentage(side_votes, len(debate_votes)))

    own_args = [a for a in arguments if a.agent_id == agent.agent_id]
    started = {d.debate_id: d.started_at for d in joined if d.started_at}
    response_minutes = [
        _minutes_between(started[a.debate_id], a.submitted_at) for a in own_args if a.debate_id in started
    ]
    last_active = max((as_utc(a.submitted_at) for a in own_args), default=None)
    if last_active is None and agent.created_at is not None:
        last_active = as_utc(agent.created_at)

    return AgentPerformance(
        agent_id=agent.agent_id,
        agent_name=agent.display_name,
        total_debates=len(joined),
        completed_debates=len(completed),
        wins=wins,
        losses=losses,
        draws=draws,
        win_rate=percentage(wins, len(completed)),
        average_quality=_mean(shares),
        total_votes=total_votes,
        total_arguments=len(own_args),
        average_argument_length=_mean([len(a.content or "") for a in own_args]),
        average_response_minutes=_mean(response_minutes),
        last_active=last_active,
    )


def calculate_performance_over_time(
    agent_id: uuid.UUID,
    debates: Sequence[Debate],
    participants: Sequence[DebateParticipant],
    period: TimePeriod = TimePeriod.week,
) -> list[PerformancePoint]:
    sides = _agent_sides(agent_id, participants)
    grouped: dict[str, list[Debate]] = defaultdict(list)
    for debate in debates:
        if debate.debate_id in sides:
            grouped[bucket_key(debate.created_at, period)].append(debate)

    return [
        PerformancePoint(
            period=key,
            debates_participated=len(group),
            wins=sum(1 for d in group if _won(d, sides[d.debate_id])),
            losses=sum(1 for d in group if _lost(d, sides[d.debate_id])),
        )
        for key, group in sorted(grouped.items())
    ]


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


@dataclass
class CategoryStats:
    category: str
    total_debates: int
    active_debates: int
    completed_debates: int
    total_votes: int
    total_arguments: int
    average_duration: float
    top_agents: list[uuid.UUID] = field(default_factory=list)
    trending: bool = False


def calculate_category_stats(
    category: str,
    debates: Sequence[Debate],
    votes: Sequence[Vote],
    arguments: Sequence[Argument],
    now: datetime | None = None,
) -> CategoryStats:
    """Stats for one category; ``debates`` may include other categories."""
    now = as_utc(now or utcnow())
    in_category = [d for d in debates if d.category == category]
    ids = {d.debate_id for d in in_category}

    win_counts: Counter[uuid.UUID] = Counter(d.winner_agent_id for d in in_category if d.winner_agent_id)
    top_agents = [
        agent_id
        for agent_id, _ in sorted(win_counts.items(), key=lambda item: (-item[1], str(item[0])))[
            :TOP_AGENTS_PER_CATEGORY
        ]
    ]
    week_ago = now - timedelta(days=7)
    recent = sum(1 for d in in_category if as_utc(d.created_at) > week_ago)

    return CategoryStats(
        category=category,
        total_debates=len(in_category),
        active_debates=sum(1 for d in in_category if d.status == DebateStatus.active),
        completed_debates=sum(1 for d in in_category if d.status == DebateStatus.completed),
        total_votes=sum(1 for v in votes if v.debate_id in ids),
        total_arguments=sum(1 for a in arguments if a.debate_id in ids),
        average_duration=_mean(_durations(in_category)),
        top_agents=top_agents,
        trending=recent >= TRENDING_THRESHOLD,
    )


_CATEGORY_SORT = {
    "debates": lambda s: s.total_debates,
    "votes": lambda s: s.total_votes,
    "arguments": lambda s: s.total_arguments,
    "duration": lambda s: s.average_duration,
}


def calculate_all_category_stats(
    debates: Sequence[Debate],
    votes: Sequence[Vote],
    arguments: Sequence[Argument],
    *,
    category: str | None = None,
    sort_by: str = "debates",
    sort_order: str = "desc",
    limit: int = 20,
    now: datetime | None = None,
) -> list[CategoryStats]:
    categories = sorted({d.category for d in debates})
    if category is not None:
        categories = [c for c in categories if c == category]
    stats = [calculate_category_stats(c, debates, votes, arguments, now) for c in categories]

    metric = _CATEGORY_SORT[sort_by]
    # Stable sort: category name first, then the metric.
    stats.sort(key=lambda s: s.category)
    stats.sort(key=metric, reverse=sort_order == "desc")
    return stats[:limit]


# ---------------------------------------------------------------------------
# Leaderboard
# ---------------------------------------------------------------------------


@dataclass
class LeaderboardEntry:
    rank: int
    agent_id: uuid.UUID
    agent_name: str
    total_debates: int
    wins: int
    losses: int
    win_rate: float
    average_quality: float
    total_votes: int


@dataclass
class Leaderboard:
    entries: list[LeaderboardEntry]
    generated_at: datetime
    total_agents: int
    sort_by: LeaderboardSort
    period: LeaderboardWindow


_LEADERBOARD_METRIC = {
    LeaderboardSort.win_rate: lambda p: p.win_rate,
    LeaderboardSort.total_debates: lambda p: p.total_debates,
    LeaderboardSort.average_quality: lambda p: p.average_quality,
    LeaderboardSort.total_votes: lambda p: p.total_votes,
}


def build_leaderboard(
    agents: Sequence[Agent],
    debates: Sequence[Debate],
    participants: Sequence[DebateParticipant],
    votes: Sequence[Vote] = (),
    *,
    sort_by: LeaderboardSort = LeaderboardSort.win_rate,
    period: LeaderboardWindow = LeaderboardWindow.all,
    category: str | None = None,
    limit: int = 10,
    now: datetime | None = None,
) -> Leaderboard:
    """Rank agents by ``sort_by`` over debates created inside ``period``.

    Ties break by total debates (desc), then agent name, then agent id.
    """
    now = as_utc(now or utcnow())
    start = window_start(period, now)
    scoped = [
        d
        for d in debates
        if (category is None or d.category == category) and (start is None or as_utc(d.created_at) >= start)
    ]

    performances = [calculate_agent_performance(agent, scoped, participants, votes=votes) for agent in agents]
    metric = _LEADERBOARD_METRIC[sort_by]
    performances.sort(key=lambda p: (-metric(p), -p.total_debates, p.agent_name, str(p.agent_id)))

    entries = [
        LeaderboardEntry(
            rank=index + 1,
            agent_id=p.agent_id,
            agent_name=p.agent_name,
            total_debates=p.total_debates,
            wins=p.wins,
            losses=p.losses,
            win_rate=p.win_rate,
            average_quality=p.average_quality,
            total_votes=p.total_votes,
        )
        for index, p in enumerate(performances[:limit])
    ]
    return Leaderboard(entries=entries, generated_at=now, total_agents=len(agents), sort_by=sort_by, period=period)


# ---------------------------------------------------------------------------
# Time series
# ---------------------------------------------------------------------------


@dataclass
class TimeSeriesPoint:
    period: str
    value: int


def generate_time_series(
    timestamps: Iterable[datetime],
    period: TimePeriod,
    start: datetime | None = None,
    end: datetime | None = None,
    max_points: int = MAX_SERIES_POINTS,
) -> list[TimeSeriesPoint]:
    """Count ``timestamps`` per bucket, filling empty buckets between start and end.

    Missing bounds default to the earliest and latest timestamp. Raises
    ``ValueError`` when the range needs more than ``max_points`` buckets.
    """
    stamps = [as_utc(t) for t in timestamps]
    if start is None and end is None and not stamps:
        return []
    if start is not None:
        start = as_utc(start)
    else:
        start = min(stamps) if stamps else as_utc(end)
    if end is not None:
        end = as_utc(end)
    else:
        end = max(stamps) if stamps else start
    if count_buckets(start, end, period, limit=max_points) > max_points:
        raise ValueError(f"Time series would exceed {max_points} {period.value} buckets")

    counts = Counter(bucket_key(t, period) for t in stamps if start <= t <= end)
    points: list[TimeSeriesPoint] = []
    current = bucket_start(start, period)
    while current <= end:
        key = bucket_key(current, period)
        points.append(TimeSeriesPoint(period=key, value=counts.get(key, 0)))
        current = next_bucket(current, period)
    return points
