from fastapi import FastAPI

from streak_stats.api.routes.streak import get_settings
from streak_stats.api.routes.streak import router
from streak_stats.core.observability import configure_logging
from streak_stats.core.observability import init_sentry


def create_app() -> FastAPI:
    """Create the FastAPI application with logging and Sentry configured."""

    settings = get_settings()
    configure_logging(settings.log_level)
    init_sentry(settings)

    application = FastAPI(title="GitHub Readme Streak Stats")
    application.include_router(router)
    return application


app = create_app()
