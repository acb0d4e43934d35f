class StreakStatsError(Exception):
    """Base class for failures that end up on the rendered card."""

    status_code = 500


class UserNotFoundError(StreakStatsError):
    """Raised when GitHub reports that the requested login does not exist."""

    def __init__(self, message: str = "Could not find a user with that name.") -> None:
        super().__init__(message)


class UpstreamUnavailableError(StreakStatsError):
    """Raised when the account creation date cannot be retrieved."""

    def __init__(
        self,
        message: str = "Failed to retrieve contributions. This is likely a GitHub API issue.",
    ) -> None:
        super().__init__(message)


class PoolExhaustedError(StreakStatsError):
    """Raised when no GitHub token is left to issue a request with."""


class NoContributionsError(StreakStatsError):
    """Raised when the merged contribution timeline is empty."""

    def __init__(self, message: str = "No contributions found.") -> None:
        super().__init__(message)


class ConversionError(StreakStatsError):
    """Raised when an SVG card cannot be rasterized."""
