from datetime import date
from datetime import datetime
from typing import Annotated
from typing import Literal

from pydantic import AliasGenerator
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic.alias_generators import to_camel


class ContributionDay(BaseModel):
    """Single calendar cell of a GitHub contribution calendar."""

    model_config = ConfigDict(frozen=True)

    day: date = Field(alias="date")
    contribution_count: int = Field(alias="contributionCount", ge=0)


class ContributionWeek(BaseModel):
    model_config = ConfigDict(frozen=True)

    contribution_days: list[ContributionDay] = Field(alias="contributionDays")


class ContributionCalendar(BaseModel):
    model_config = ConfigDict(frozen=True)

    weeks: list[ContributionWeek]


class ContributionsCollection(BaseModel):
    model_config = ConfigDict(frozen=True)

    contribution_years: list[int] = Field(default_factory=list, alias="contributionYears")
    contribution_calendar: ContributionCalendar = Field(alias="contributionCalendar")


class YearlyContributionGraph(BaseModel):
    """The `data.user` object returned for one calendar year."""

    model_config = ConfigDict(frozen=True)

    created_at: datetime | None = Field(default=None, alias="createdAt")
    contributions_collection: ContributionsCollection = Field(
        alias="contributionsCollection"
    )


class Streak(BaseModel):
    """Run of consecutive contributing days or weeks; length 0 means none."""

    model_config = ConfigDict(frozen=True)

    start: date
    end: date
    length: int = Field(ge=0)


class _StatsBase(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=AliasGenerator(serialization_alias=to_camel),
    )

    total_contributions: int
    first_contribution: date
    longest_streak: Streak
    current_streak: Streak


class DailyStats(_StatsBase):
    """Streak statistics computed per calendar day."""

    mode: Literal["daily"] = "daily"
    excluded_days: tuple[str, ...] = ()


class WeeklyStats(_StatsBase):
    """Streak statistics computed per Sunday-based week."""

    mode: Literal["weekly"] = "weekly"


StreakStats = Annotated[DailyStats | WeeklyStats, Field(discriminator="mode")]


class CardOptions(BaseModel):
    """Typed view of the card customization query parameters.

    Built once per request by `streak_stats.services.options.parse_card_options`;
    every field carries the default used when the parameter is missing or
    cannot be parsed.
    """

    model_config = ConfigDict(frozen=True)

    user: str | None = None
    starting_year: int | None = None
    mode: Literal["daily", "weekly"] = "daily"
    exclude_days: tuple[str, ...] = ()
    type: Literal["svg", "png", "json"] = "svg"
    theme: str = "default"
    color_overrides: dict[str, str] = Field(default_factory=dict)
    hide_border: bool = False
    border_radius: float = 4.5
    hide_total_contributions: bool = False
    hide_current_streak: bool = False
    hide_longest_streak: bool = False
    card_width: float = 495
    card_height: float = 195
    locale: str = "en"
    date_format: str | None = None
    short_numbers: bool = False
    disable_animations: bool = False
