from collections.abc import Iterable
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from datetime import timedelta

from streak_stats.api.schemas.streak import DailyStats
from streak_stats.api.schemas.streak import Streak
from streak_stats.api.schemas.streak import WeeklyStats
from streak_stats.core.errors import NoContributionsError


WEEKDAY_ABBREVIATIONS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


@dataclass
class _RunningStreak:
    start: date
    end: date
    length: int = 0

    def extend(self, period: date) -> None:
        self.length += 1
        self.end = period
        if self.length == 1:
            self.start = period

    def freeze(self) -> Streak:
        return Streak(start=self.start, end=self.end, length=self.length)


def normalize_days(days: Iterable[str]) -> tuple[str, ...]:
    """Map free-form weekday names to Sun..Sat abbreviations.

    Matching uses the first three letters, case-insensitively; anything
    unrecognized is dropped.
    """

    lookup = {abbr.lower(): abbr for abbr in WEEKDAY_ABBREVIATIONS}
    normalized: list[str] = []
    for day in days:
        abbr = lookup.get(day.strip()[:3].lower())
        if abbr is not None:
            normalized.append(abbr)
    return tuple(normalized)


def weekday_abbreviation(day: date) -> str:
    return WEEKDAY_ABBREVIATIONS[(day.weekday() + 1) % 7]


def previous_sunday(day: date) -> date:
    weekday = (day.weekday() + 1) % 7
    return day - timedelta(days=weekday)


def compute_daily_stats(
    contributions: Mapping[date, int],
    excluded_days: Iterable[str] = (),
) -> DailyStats:
    """Compute total, first contribution and streaks per calendar day.

    The last date of the timeline stands for "today": a zero count on it does
    not break the current streak yet. Excluded weekdays keep an active streak
    alive but never start one.

    Raises:
        NoContributionsError: If the timeline is empty.
    """

    dates = sorted(contributions)
    if not dates:
        raise NoContributionsError()

    excluded = tuple(excluded_days)
    today = dates[-1]
    first = dates[0]
    total = 0
    first_contribution: date | None = None
    current = _RunningStreak(start=first, end=first)
    longest = _RunningStreak(start=first, end=first)

    for day in dates:
        count = contributions[day]
        total += count
        if count > 0 or (
            current.length > 0 and weekday_abbreviation(day) in excluded
        ):
            current.extend(day)
            if first_contribution is None:
                first_contribution = day
            if current.length > longest.length:
                longest = _RunningStreak(current.start, current.end, current.length)
        elif day != today:
            current = _RunningStreak(start=today, end=today)

    return DailyStats(
        total_contributions=total,
        first_contribution=first_contribution or first,
        longest_streak=longest.freeze(),
        current_streak=current.freeze(),
        excluded_days=excluded,
    )


def compute_weekly_stats(contributions: Mapping[date, int]) -> WeeklyStats:
    """Compute total, first contribution and streaks per Sunday-based week.

    Raises:
        NoContributionsError: If the timeline is empty.
    """

    dates = sorted(contributions)
    if not dates:
        raise NoContributionsError()

    this_week = previous_sunday(dates[-1])
    first_week = previous_sunday(dates[0])
    first_contribution: date | None = None

    weeks: dict[date, int] = {}
    for day in dates:
        week = previous_sunday(day)
        weeks.setdefault(week, 0)
        count = contributions[day]
        if count > 0:
            weeks[week] += count
            if first_contribution is None:
                first_contribution = day

    total = 0
    current = _RunningStreak(start=first_week, end=first_week)
    longest = _RunningStreak(start=first_week, end=first_week)
    for week in sorted(weeks):
        count = weeks[week]
        total += count
        if count > 0:
            current.extend(week)
            if current.length > longest.length:
                longest = _RunningStreak(current.start, current.end, current.length)
        elif week != this_week:
            current = _RunningStreak(start=this_week, end=this_week)

    return WeeklyStats(
        total_contributions=total,
        first_contribution=first_contribution or dates[0],
        longest_streak=longest.freeze(),
        current_streak=current.freeze(),
    )
