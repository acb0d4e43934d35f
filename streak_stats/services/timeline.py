from collections.abc import Mapping
from datetime import date
from datetime import datetime
from datetime import timedelta
from datetime import UTC

from streak_stats.api.schemas.streak import YearlyContributionGraph


def merge_contribution_graphs(
    graphs: Mapping[int, YearlyContributionGraph],
    today: date | None = None,
) -> dict[date, int]:
    """Flatten yearly calendars into one date -> contribution count mapping.

    Future days are dropped, except tomorrow (UTC) when it already has
    contributions recorded from a time zone ahead of UTC.
    """

    if today is None:
        today = datetime.now(UTC).date()
    tomorrow = today + timedelta(days=1)

    contributions: dict[date, int] = {}
    for year in sorted(graphs):
        calendar = graphs[year].contributions_collection.contribution_calendar
        for week in calendar.weeks:
            for item in week.contribution_days:
                count = item.contribution_count
                if item.day <= today or (item.day == tomorrow and count > 0):
                    contributions[item.day] = count

    return contributions
