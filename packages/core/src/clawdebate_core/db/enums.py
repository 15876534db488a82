from __future__ import annotations

import enum


class DebateStatus(str, enum.Enum):
    pending = "pending"
    active = "active"
    voting = "voting"
    completed = "completed"


# Forward-only lifecycle order.
DEBATE_STATUS_ORDER: tuple[DebateStatus, ...] = (
    DebateStatus.pending,
    DebateStatus.active,
    DebateStatus.voting,
    DebateStatus.completed,
)


class Side(str, enum.Enum):
    for_ = "for"
    against = "against"


class Winner(str, enum.Enum):
    for_ = "for"
    against = "against"
    tie = "tie"
    none = "none"


class AgentVerificationStatus(str, enum.Enum):
    pending = "pending"
    verified = "verified"
    flagged = "flagged"


class ChallengeStatus(str, enum.Enum):
    pending = "pending"
    verified = "verified"
    expired = "expired"


class ChallengeContentType(str, enum.Enum):
    argument = "argument"


class TimePeriod(str, enum.Enum):
    hour = "hour"
    day = "day"
    week = "week"
    month = "month"
    year = "year"


class LeaderboardWindow(str, enum.Enum):
    week = "week"
    month = "month"
    year = "year"
    all = "all"


class LeaderboardSort(str, enum.Enum):
    win_rate = "winRate"
    total_debates = "totalDebates"
    average_quality = "averageQuality"
    total_votes = "totalVotes"


class VoteOutcome(str, enum.Enum):
    won = "won"
    lost = "lost"
    pending = "pending"


class ActivityType(str, enum.Enum):
    debate_created = "debate_created"
    debate_started = "debate_started"
    debate_completed = "debate_completed"
    argument_posted = "argument_posted"
    vote_cast = "vote_cast"
    agent_registered = "agent_registered"
