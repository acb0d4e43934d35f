import random
from datetime import date
from datetime import timedelta

import pytest
from pydantic import TypeAdapter

from streak_stats.api.schemas.streak import DailyStats
from streak_stats.api.schemas.streak import StreakStats
from streak_stats.api.schemas.streak import WeeklyStats
from streak_stats.core.errors import NoContributionsError
from streak_stats.services.streaks import compute_daily_stats
from streak_stats.services.streaks import compute_weekly_stats
from streak_stats.services.streaks import normalize_days
from streak_stats.services.streaks import previous_sunday
from streak_stats.services.streaks import weekday_abbreviation


def _random_timeline(rng: random.Random) -> dict[date, int]:
    start = date(2023, 1, 1) + timedelta(days=rng.randrange(365))
    length = rng.randrange(1, 120)
    return {
        start + timedelta(days=offset): rng.choice([0, 0, 1, 2, 5])
        for offset in range(length)
    }


def test_daily_stats_reset_on_missed_day(scenario_days) -> None:
    """A zero day before today breaks the streak."""

    stats = compute_daily_stats(scenario_days)

    assert stats.total_contributions == 3
    assert stats.first_contribution == date(2024, 1, 1)
    assert stats.current_streak.length == 1
    assert stats.current_streak.start == date(2024, 1, 4)
    assert stats.current_streak.end == date(2024, 1, 4)
    assert stats.longest_streak.length == 2
    assert stats.longest_streak.start == date(2024, 1, 1)
    assert stats.longest_streak.end == date(2024, 1, 2)


def test_excluded_weekday_keeps_streak_alive(scenario_days) -> None:
    """2024-01-03 is a Wednesday and does not break the streak."""

    stats = compute_daily_stats(scenario_days, ["Wed"])

    assert stats.excluded_days == ("Wed",)
    assert stats.current_streak == stats.longest_streak
    assert stats.longest_streak.length == 4
    assert stats.longest_streak.start == date(2024, 1, 1)
    assert stats.longest_streak.end == date(2024, 1, 4)


def test_excluded_weekday_never_starts_a_streak() -> None:
    timeline = {date(2024, 1, 2): 0, date(2024, 1, 3): 0, date(2024, 1, 4): 1}

    stats = compute_daily_stats(timeline, ["Wed"])

    assert stats.current_streak.length == 1
    assert stats.current_streak.start == date(2024, 1, 4)


def test_zero_contributions_today_does_not_break_streak() -> None:
    timeline = {date(2024, 1, 1): 2, date(2024, 1, 2): 1, date(2024, 1, 3): 0}

    stats = compute_daily_stats(timeline)

    assert stats.current_streak.length == 2
    assert stats.current_streak.end == date(2024, 1, 2)


def test_no_active_streak_is_anchored_at_today() -> None:
    timeline = {date(2024, 1, 1): 4, date(2024, 1, 2): 0, date(2024, 1, 3): 0}

    stats = compute_daily_stats(timeline)

    assert stats.current_streak.length == 0
    assert stats.current_streak.start == date(2024, 1, 3)
    assert stats.current_streak.end == date(2024, 1, 3)


def test_timeline_without_contributions_uses_first_date() -> None:
    timeline = {date(2024, 2, 1): 0, date(2024, 2, 2): 0}

    stats = compute_daily_stats(timeline)

    assert stats.total_contributions == 0
    assert stats.first_contribution == date(2024, 2, 1)
    assert stats.longest_streak.length == 0


def test_empty_timeline_raises() -> None:
    with pytest.raises(NoContributionsError, match="No contributions found."):
        compute_daily_stats({})
    with pytest.raises(NoContributionsError):
        compute_weekly_stats({})


def test_weekly_stats_use_first_dated_contribution() -> None:
    """Week buckets start on Sunday but the first contribution keeps its date."""

    timeline = {
        date(2024, 1, 7): 0,
        date(2024, 1, 8): 2,
        date(2024, 1, 10): 3,
    }

    stats = compute_weekly_stats(timeline)

    assert stats.mode == "weekly"
    assert stats.total_contributions == 5
    assert stats.first_contribution == date(2024, 1, 8)
    assert stats.current_streak.length == stats.longest_streak.length == 1
    assert stats.current_streak.start == date(2024, 1, 7)


def test_weekly_streak_spans_consecutive_weeks() -> None:
    timeline = {
        date(2024, 1, 2): 1,
        date(2024, 1, 9): 1,
        date(2024, 1, 16): 0,
        date(2024, 1, 23): 1,
        date(2024, 1, 30): 1,
        date(2024, 2, 1): 0,
    }

    stats = compute_weekly_stats(timeline)

    assert stats.longest_streak.length == 2
    assert stats.longest_streak.start == date(2023, 12, 31)
    assert stats.current_streak.length == 2
    assert stats.current_streak.start == date(2024, 1, 21)
    assert stats.current_streak.end == date(2024, 1, 28)


@pytest.mark.parametrize("seed", range(25))
def test_totals_match_timeline_and_longest_covers_current(seed: int) -> None:
    """Totals ignore exclusions; the longest streak is never shorter."""

    rng = random.Random(seed)
    timeline = _random_timeline(rng)
    excluded = rng.sample(["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"], rng.randrange(3))

    for stats in (
        compute_daily_stats(timeline),
        compute_daily_stats(timeline, excluded),
        compute_weekly_stats(timeline),
    ):
        assert stats.total_contributions == sum(timeline.values())
        assert stats.longest_streak.length >= stats.current_streak.length


def test_normalize_days_matches_prefix_case_insensitively() -> None:
    assert normalize_days([" monday", "FRI", "sat ", "xyz", ""]) == ("Mon", "Fri", "Sat")


def test_previous_sunday_and_weekday_abbreviation() -> None:
    assert previous_sunday(date(2024, 1, 10)) == date(2024, 1, 7)
    assert previous_sunday(date(2024, 1, 7)) == date(2024, 1, 7)
    assert weekday_abbreviation(date(2024, 1, 3)) == "Wed"


def test_stats_union_is_discriminated_by_mode() -> None:
    """Serialized stats round back into the right variant."""

    adapter = TypeAdapter(StreakStats)
    timeline = {date(2024, 1, 1): 1}

    weekly = adapter.validate_python(compute_weekly_stats(timeline).model_dump())
    daily = adapter.validate_python(compute_daily_stats(timeline, ["Sun"]).model_dump())

    assert isinstance(weekly, WeeklyStats)
    assert isinstance(daily, DailyStats)
    assert daily.excluded_days == ("Sun",)
