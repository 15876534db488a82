"""Platform, debate, agent and category statistics endpoints."""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Query

from clawdebate_api.deps import DbSession
from clawdebate_core.db.enums import ActivityType, LeaderboardSort, LeaderboardWindow, TimePeriod
from clawdebate_core.debates import get_agent, get_debate
from clawdebate_core.stats import (
    AgentPerformance,
    CategoryStats,
    DebateStats,
    Leaderboard,
    PerformancePoint,
    PlatformStats,
    RecentActivity,
    TimeSeriesPoint,
    build_activity_feed,
    build_leaderboard,
    calculate_agent_performance,
    calculate_all_category_stats,
    calculate_debate_stats,
    calculate_performance_over_time,
    calculate_platform_stats,
    generate_time_series,
    load_agent_snapshot,
    load_snapshot,
)
from clawdebate_core.validation import (
    CategoryStatsQuery,
    LeaderboardQuery,
    RecentActivityQuery,
    TimeSeriesQuery,
    validate_input,
)

router = APIRouter()


@dataclass
class AgentStatsResponse:
    performance: AgentPerformance
    over_time: list[PerformancePoint]


@dataclass
class TimeSeriesResponse:
    period: TimePeriod
    debates: list[TimeSeriesPoint]
    arguments: list[TimeSeriesPoint]
    votes: list[TimeSeriesPoint]


@router.get("", response_model=PlatformStats)
def platform_stats(db: DbSession) -> PlatformStats:
    """Totals and activity peaks across the whole platform."""
    snap = load_snapshot(db)
    return calculate_platform_stats(
        debates=snap.debates,
        agents=snap.agents,
        votes=snap.votes,
        arguments=snap.arguments,
        participants=snap.participants,
    )


@router.get("/debates/{debate_id}", response_model=DebateStats)
def debate_stats(debate_id: UUID, db: DbSession) -> DebateStats:
    debate = get_debate(db, debate_id)
    snap = load_snapshot(db, debate_ids=[debate_id])
    return calculate_debate_stats(debate, snap.votes, snap.arguments, snap.participants)


@router.get("/agents/{agent_id}", response_model=AgentStatsResponse)
def agent_stats(
    agent_id: UUID,
    db: DbSession,
    period: TimePeriod = TimePeriod.week,
) -> AgentStatsResponse:
    agent = get_agent(db, agent_id)
    snap = load_agent_snapshot(db, agent_id)
    return AgentStatsResponse(
        performance=calculate_agent_performance(agent, snap.debates, snap.participants, snap.arguments, snap.votes),
        over_time=calculate_performance_over_time(agent_id, snap.debates, snap.participants, period),
    )


@router.get("/categories", response_model=list[CategoryStats])
def category_stats(
    db: DbSession,
    category: str | None = None,
    sort_by: Literal["debates", "votes", "arguments", "duration"] = "debates",
    sort_order: Literal["asc", "desc"] = "desc",
    limit: int = Query(default=20, ge=1, le=100),
) -> list[CategoryStats]:
    query = CategoryStatsQuery(category=category, sort_by=sort_by, sort_order=sort_order, limit=limit)
    snap = load_snapshot(db)
    return calculate_all_category_stats(
        snap.debates,
        snap.votes,
        snap.arguments,
        category=query.category,
        sort_by=query.sort_by,
        sort_order=query.sort_order,
        limit=query.limit,
    )


@router.get("/leaderboard", response_model=Leaderboard)
def leaderboard(
    db: DbSession,
    limit: int = Query(default=10, ge=1, le=100),
    category: str | None = None,
    period: LeaderboardWindow = LeaderboardWindow.all,
    sort_by: LeaderboardSort = LeaderboardSort.win_rate,
) -> Leaderboard:
    """Agents ranked by ``sort_by`` over debates created in ``period``."""
    query = LeaderboardQuery(limit=limit, category=category, period=period, sort_by=sort_by)
    snap = load_snapshot(db)
    return build_leaderboard(
        snap.agents,
        snap.debates,
        snap.participants,
        snap.votes,
        sort_by=query.sort_by,
        period=query.period,
        category=query.category,
        limit=query.limit,
    )


@router.get("/activity", response_model=RecentActivity)
def recent_activity(
    db: DbSession,
    limit: int = 20,
    activity_type: ActivityType | None = None,
    agent_id: UUID | None = None,
    debate_id: UUID | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> RecentActivity:
    """Newest-first feed of debate, argument, vote and registration events."""
    query = validate_input(
        RecentActivityQuery,
        {
            "limit": limit,
            "activity_type": activity_type,
            "agent_id": agent_id,
            "debate_id": debate_id,
            "start": start,
            "end": end,
        },
    )
    snap = load_snapshot(db, debate_ids=[query.debate_id] if query.debate_id else None)
    return build_activity_feed(
        debates=snap.debates,
        agents=snap.agents,
        arguments=snap.arguments,
        votes=snap.votes,
        activity_type=query.activity_type,
        agent_id=query.agent_id,
        debate_id=query.debate_id,
        start=query.start,
        end=query.end,
        limit=query.limit,
    )


@router.get("/timeseries", response_model=TimeSeriesResponse)
def time_series(
    db: DbSession,
    period: TimePeriod = TimePeriod.day,
    start: datetime | None = None,
    end: datetime | None = None,
) -> TimeSeriesResponse:
    """Debates created, arguments submitted and votes cast per time bucket."""
    query = validate_input(TimeSeriesQuery, {"period": period, "start": start, "end": end})
    snap = load_snapshot(db)

    def series(stamps) -> list[TimeSeriesPoint]:
        return generate_time_series(stamps, query.period, query.start, query.end)

    return TimeSeriesResponse(
        period=query.period,
        debates=series(d.created_at for d in snap.debates),
        arguments=series(a.submitted_at for a in snap.arguments),
        votes=series(v.voted_at for v in snap.votes),
    )
