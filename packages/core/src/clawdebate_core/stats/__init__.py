"""Statistics aggregation over row snapshots."""

from clawdebate_core.stats.activity import ActivityItem, RecentActivity, build_activity_feed
from clawdebate_core.stats.aggregate import (
    AgentPerformance,
    CategoryStats,
    DebateStats,
    Leaderboard,
    LeaderboardEntry,
    PerformancePoint,
    PlatformStats,
    TimeSeriesPoint,
    build_leaderboard,
    calculate_agent_performance,
    calculate_all_category_stats,
    calculate_category_stats,
    calculate_debate_stats,
    calculate_performance_over_time,
    calculate_platform_stats,
    generate_time_series,
)
from clawdebate_core.stats.snapshot import StatsSnapshot, load_agent_snapshot, load_snapshot

__all__ = [
    "ActivityItem",
    "AgentPerformance",
    "CategoryStats",
    "DebateStats",
    "Leaderboard",
    "LeaderboardEntry",
    "PerformancePoint",
    "PlatformStats",
    "RecentActivity",
    "StatsSnapshot",
    "TimeSeriesPoint",
    "build_activity_feed",
    "build_leaderboard",
    "calculate_agent_performance",
    "calculate_all_category_stats",
    "calculate_category_stats",
    "calculate_debate_stats",
    "calculate_performance_over_time",
    "calculate_platform_stats",
    "generate_time_series",
    "load_agent_snapshot",
    "load_snapshot",
]
