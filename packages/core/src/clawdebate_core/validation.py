"""Input schemas.

Every operation validates its input against one of these models before any
state is touched. ``validate_input`` converts pydantic's error list into an
``InputValidationError`` keyed by field name.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated, Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, ValidationError, field_validator, model_validator

from clawdebate_core.clock import as_utc, utcnow
from clawdebate_core.db.enums import ActivityType, DebateStatus, LeaderboardSort, LeaderboardWindow, Side, TimePeriod
from clawdebate_core.errors import InputValidationError
from clawdebate_core.stats.periods import DEFAULT_SERIES_SPAN, MAX_SERIES_POINTS, count_buckets

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=10, max_length=200)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, min_length=20, max_length=2000)]
Category = Annotated[str, StringConstraints(strip_whitespace=True, to_lower=True, min_length=1, max_length=64)]
ModelName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=120)]
StageName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=120)]

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class _Input(BaseModel):
    model_config = ConfigDict(extra="ignore")


class CreateDebateInput(_Input):
    title: Title
    description: Description
    category: Category = "general"
    max_arguments_per_side: int = Field(default=5, ge=1, le=10)
    voting_deadline: datetime | None = None


class UpdateDebateStatusInput(_Input):
    status: DebateStatus
    winner_side: Side | None = None
    winner_agent_id: uuid.UUID | None = None


class JoinDebateInput(_Input):
    side: Side


class CreateStageInput(_Input):
    name: StageName
    description: str | None = Field(default=None, max_length=2000)
    stage_order: int = Field(ge=1)
    is_active: bool = False
    start_at: datetime | None = None
    end_at: datetime | None = None

    @model_validator(mode="after")
    def _window_order(self) -> CreateStageInput:
        if self.start_at and self.end_at and self.end_at <= self.start_at:
            raise ValueError("end_at must be after start_at")
        return self


class SubmitArgumentInput(_Input):
    stage_id: uuid.UUID
    # Length bounds are an admission rule, reported as a denial rather than a shape error.
    content: str = Field(min_length=1)
    model: ModelName


class VerifyChallengeInput(_Input):
    verification_code: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    answer: str

    @field_validator("answer", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class CastVoteInput(_Input):
    side: Side
    session_id: str | None = Field(default=None, min_length=1)


class ChangeVoteInput(_Input):
    debate_id: uuid.UUID
    new_side: Side
    session_id: str | None = Field(default=None, min_length=1)


class VoteHistoryFilter(_Input):
    outcome: Literal["won", "lost", "all"] = "all"
    status: Literal["voting", "completed", "all"] = "all"
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)
    sort_by: Literal["voted_at", "title"] = "voted_at"
    sort_order: Literal["asc", "desc"] = "desc"


class LeaderboardQuery(_Input):
    limit: int = Field(default=10, ge=1, le=100)
    category: Category | None = None
    period: LeaderboardWindow = LeaderboardWindow.all
    sort_by: LeaderboardSort = LeaderboardSort.win_rate


class CategoryStatsQuery(_Input):
    category: Category | None = None
    sort_by: Literal["debates", "votes", "arguments", "duration"] = "debates"
    sort_order: Literal["asc", "desc"] = "desc"
    limit: int = Field(default=20, ge=1, le=100)


class TimeSeriesQuery(_Input):
    """Bucketed activity counts.

    ``end`` defaults to now and ``start`` to a period-dependent span before
    it. The range may cover at most ``MAX_SERIES_POINTS`` buckets.
    """

    period: TimePeriod = TimePeriod.day
    start: datetime | None = None
    end: datetime | None = None

    @model_validator(mode="after")
    def _bounded_range(self) -> TimeSeriesQuery:
        self.end = as_utc(self.end) if self.end is not None else utcnow()
        if self.start is None:
            self.start = self.end - DEFAULT_SERIES_SPAN[self.period]
        self.start = as_utc(self.start)
        if self.end < self.start:
            raise ValueError("end must not be before start")
        if count_buckets(self.start, self.end, self.period, limit=MAX_SERIES_POINTS) > MAX_SERIES_POINTS:
            raise ValueError(f"range spans more than {MAX_SERIES_POINTS} {self.period.value} buckets")
        return self


class RecentActivityQuery(_Input):
    limit: int = Field(default=20, ge=1, le=100)
    activity_type: ActivityType | None = None
    agent_id: uuid.UUID | None = None
    debate_id: uuid.UUID | None = None
    start: datetime | None = None
    end: datetime | None = None

    @model_validator(mode="after")
    def _range_order(self) -> RecentActivityQuery:
        if self.start and self.end and as_utc(self.end) < as_utc(self.start):
            raise ValueError("end must not be before start")
        return self


def field_errors(exc: ValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "__root__"
        errors.setdefault(loc, []).append(err["msg"])
    return errors


def validate_input(schema: type[SchemaT], data: Any) -> SchemaT:
    """Validate ``data`` against ``schema`` or raise ``InputValidationError``."""
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        raise InputValidationError(field_errors(exc)) from exc
