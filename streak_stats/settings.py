from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Values are read from process environment and optionally from `.env`.
    Extra tokens (`GITHUB_TOKEN2`, `GITHUB_TOKEN3`, ...) are discovered by
    `streak_stats.core.tokens.discover_tokens`.
    """

    github_graphql_url: str = "https://api.github.com/graphql"
    github_token: str = ""
    github_user_agent: str = "GitHub-Readme-Streak-Stats"
    github_timeout_seconds: float = 20.0
    cache_max_age_seconds: int = 600
    log_level: str = "INFO"
    sentry_dsn: str | None = None
    environment: str = "development"
    release: str | None = None
    sentry_traces_sample_rate: float = 0.1

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
