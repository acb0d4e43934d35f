from collections.abc import Callable
from collections.abc import Mapping
from datetime import date

import pytest

from streak_stats.api.schemas.streak import YearlyContributionGraph


GraphPayloadFactory = Callable[..., dict[str, object]]


def build_graph_payload(
    days: Mapping[str, int],
    created_at: str | None = "2020-05-01T12:00:00Z",
    contribution_years: list[int] | None = None,
) -> dict[str, object]:
    """Shape a GraphQL response the way GitHub returns one year of contributions."""

    return {
        "data": {
            "user": {
                "createdAt": created_at,
                "contributionsCollection": {
                    "contributionYears": contribution_years or [],
                    "contributionCalendar": {
                        "weeks": [
                            {
                                "contributionDays": [
                                    {"date": day, "contributionCount": count}
                                    for day, count in days.items()
                                ]
                            }
                        ]
                    },
                },
            }
        }
    }


@pytest.fixture
def graph_payload() -> GraphPayloadFactory:
    return build_graph_payload


@pytest.fixture
def make_graph() -> Callable[..., YearlyContributionGraph]:
    def factory(days: Mapping[str, int], **kwargs) -> YearlyContributionGraph:
        payload = build_graph_payload(days, **kwargs)
        return YearlyContributionGraph.model_validate(payload["data"]["user"])

    return factory


@pytest.fixture
def scenario_days() -> dict[date, int]:
    return {
        date(2024, 1, 1): 1,
        date(2024, 1, 2): 1,
        date(2024, 1, 3): 0,
        date(2024, 1, 4): 1,
    }
