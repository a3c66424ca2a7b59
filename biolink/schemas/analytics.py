"""Pydantic schemas for profile visit analytics."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Period(str, Enum):
    """Aggregation window selectable on the stats panel."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


DEFAULT_PERIOD = Period.WEEK


class VisitEvent(BaseModel):
    """A single page view of a profile, submitted once per mount."""

    model_config = ConfigDict(frozen=True)

    handle: str = Field(min_length=1, description="Handle of the profile owner")
    referrer: str | None = Field(default=None, description="Document referrer at fire time")
    credential: str | None = Field(
        default=None,
        exclude=True,
        description="Bearer token when the viewer is authenticated",
    )

    @field_validator("referrer")
    @classmethod
    def blank_referrer_is_none(cls, v: str | None) -> str | None:
        """An empty referrer is sent as null."""
        return v or None

    def payload(self) -> dict[str, str | None]:
        """Request body for the visit endpoint."""
        return {"referrer": self.referrer}


class DailyStat(BaseModel):
    """Visit count for one calendar day."""

    model_config = ConfigDict(frozen=True)

    date: date
    visits: int = Field(ge=0)

    @field_validator("date", mode="before")
    @classmethod
    def timestamp_to_date(cls, v: object) -> object:
        """Reduce full ISO-8601 timestamps to their calendar date."""
        if isinstance(v, str) and len(v) > 10:
            return datetime.fromisoformat(v.replace("Z", "+00:00")).date()
        if isinstance(v, datetime):
            return v.date()
        return v


class StatsResult(BaseModel):
    """Pre-aggregated visit statistics for one (handle, period) key."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    total_visits: int = Field(default=0, ge=0, alias="totalVisits")
    daily_stats: list[DailyStat] = Field(default_factory=list, alias="dailyStats")

    @field_validator("total_visits", mode="before")
    @classmethod
    def missing_total_is_zero(cls, v: object) -> object:
        return 0 if v is None else v

    @field_validator("daily_stats", mode="before")
    @classmethod
    def missing_series_is_empty(cls, v: object) -> object:
        return [] if v is None else v
