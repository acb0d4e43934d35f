import asyncio
import logging
from collections.abc import Mapping
from datetime import datetime
from datetime import UTC
from typing import Any

import httpx
from pydantic import ValidationError

from streak_stats.api.schemas.streak import YearlyContributionGraph
from streak_stats.core.errors import UpstreamUnavailableError
from streak_stats.core.errors import UserNotFoundError
from streak_stats.core.tokens import TokenPool


logger = logging.getLogger(__name__)

# GitHub was founded in 2008 but accepts backdated commits; nothing before 2005
# is requested by default.
MINIMUM_YEAR = 2005

CONTRIBUTION_QUERY = """
query($login: String!, $from: DateTime!, $to: DateTime!) {
  user(login: $login) {
    createdAt
    contributionsCollection(from: $from, to: $to) {
      contributionYears
      contributionCalendar {
        weeks {
          contributionDays {
            contributionCount
            date
          }
        }
      }
    }
  }
}
"""


def build_contribution_variables(user: str, year: int) -> dict[str, str]:
    """Scope the contribution query to one full UTC calendar year."""

    return {
        "login": user,
        "from": f"{year}-01-01T00:00:00Z",
        "to": f"{year}-12-31T23:59:59Z",
    }


def _error_type(payload: Mapping[str, Any] | None) -> str:
    if payload is None:
        return ""
    errors = payload.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], Mapping):
        return str(errors[0].get("type") or "")
    return ""


def _error_message(payload: Mapping[str, Any] | None) -> str | None:
    if payload is None:
        return None
    errors = payload.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], Mapping):
        message = errors[0].get("message")
        if isinstance(message, str):
            return message
    message = payload.get("message")
    return message if isinstance(message, str) else None


def is_rate_limit_message(message: str | None) -> bool:
    return message is not None and "rate limit exceeded" in message.lower()


def _parse_graph(payload: Mapping[str, Any] | None) -> YearlyContributionGraph | None:
    if payload is None:
        return None
    data = payload.get("data")
    if not isinstance(data, Mapping):
        return None
    user = data.get("user")
    if not isinstance(user, Mapping):
        return None
    try:
        return YearlyContributionGraph.model_validate(user)
    except ValidationError:
        logger.warning("GitHub contribution graph has an unexpected shape")
        return None


class ContributionClient:
    """Fetch yearly contribution calendars from the GitHub GraphQL API."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token_pool: TokenPool,
        graphql_url: str = "https://api.github.com/graphql",
        user_agent: str = "GitHub-Readme-Streak-Stats",
    ) -> None:
        self._http = http_client
        self._pool = token_pool
        self._graphql_url = graphql_url
        self._user_agent = user_agent

    async def _post(
        self, user: str, year: int, token: str
    ) -> Mapping[str, Any] | None:
        """Issue one GraphQL request; transport and decode failures yield None."""

        try:
            response = await self._http.post(
                self._graphql_url,
                json={
                    "query": CONTRIBUTION_QUERY,
                    "variables": build_contribution_variables(user, year),
                },
                headers={
                    "Authorization": f"bearer {token}",
                    "Content-Type": "application/json",
                    "Accept": "application/vnd.github.v4.idl",
                    "User-Agent": self._user_agent,
                },
            )
        except httpx.HTTPError:
            logger.exception("GitHub GraphQL request failed")
            return None

        if not response.content:
            return None
        try:
            payload: Any = response.json()
        except ValueError:
            logger.error("Failed to parse GitHub GraphQL response")
            return None

        return payload if isinstance(payload, Mapping) else None

    async def fetch_year(self, user: str, year: int) -> YearlyContributionGraph | None:
        """Fetch one year, retrying once with a fresh token on failure.

        Returns None when both attempts fail; the year is then left out of
        the merged timeline.

        Raises:
            UserNotFoundError: If GitHub reports the login as NOT_FOUND.
            PoolExhaustedError: If no token is left to try.
        """

        for attempt in (1, 2):
            token = self._pool.take()
            payload = await self._post(user, year, token)
            graph = _parse_graph(payload)
            if graph is not None:
                return graph

            if _error_type(payload) == "NOT_FOUND":
                raise UserNotFoundError()

            message = _error_message(payload)
            if is_rate_limit_message(message):
                self._pool.evict(token)

            if attempt == 1:
                logger.warning(
                    "First attempt to decode response for %s's %d contributions failed. %s",
                    user,
                    year,
                    message or "An API error occurred.",
                )
            else:
                logger.error(
                    "Failed to decode response for %s's %d contributions after 2 attempts. %s",
                    user,
                    year,
                    message or "An API error occurred.",
                )
        return None

    async def fetch_years(
        self, user: str, years: list[int]
    ) -> dict[int, YearlyContributionGraph]:
        """Fetch several years concurrently, dropping the ones that failed.

        A fatal error in one year cancels the others before it propagates, so
        no request outlives the call.
        """

        if not years:
            return {}
        try:
            async with asyncio.TaskGroup() as group:
                tasks = [group.create_task(self.fetch_year(user, year)) for year in years]
        except ExceptionGroup as exc_group:
            raise exc_group.exceptions[0] from None
        return {
            year: graph
            for year, task in zip(years, tasks)
            if (graph := task.result()) is not None
        }

    async def fetch_all(
        self,
        user: str,
        starting_year: int | None = None,
        current_year: int | None = None,
    ) -> dict[int, YearlyContributionGraph]:
        """Fetch every contribution year of an account.

        The current year is fetched first since it carries the account
        creation date and the list of years with contributions.

        Raises:
            UpstreamUnavailableError: If the creation date cannot be retrieved.
        """

        if current_year is None:
            current_year = datetime.now(UTC).year

        responses = await self.fetch_years(user, [current_year])
        current_graph = responses.get(current_year)
        if current_graph is None or current_graph.created_at is None:
            raise UpstreamUnavailableError()

        created_year = current_graph.created_at.year
        minimum_year = max(
            starting_year if starting_year is not None else created_year,
            MINIMUM_YEAR,
        )
        years_to_request = list(range(minimum_year, current_year))

        contribution_years = current_graph.contributions_collection.contribution_years
        first_contribution_year = (
            contribution_years[-1] if contribution_years else created_year
        )
        if (
            first_contribution_year < MINIMUM_YEAR
            and first_contribution_year not in years_to_request
        ):
            years_to_request.insert(0, first_contribution_year)

        responses.update(await self.fetch_years(user, years_to_request))
        return responses
