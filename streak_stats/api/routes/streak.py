import os
from collections.abc import AsyncIterator
from functools import lru_cache

import httpx
from fastapi import APIRouter
from fastapi import Depends
from fastapi import Request
from fastapi import Response

from streak_stats.clients.github_client import ContributionClient
from streak_stats.core.tokens import TokenPool
from streak_stats.core.tokens import discover_tokens
from streak_stats.rendering.raster import Rasterizer
from streak_stats.rendering.raster import rasterize_svg
from streak_stats.services.card_service import render_streak_card
from streak_stats.settings import Settings


router = APIRouter()


@lru_cache
def get_settings() -> Settings:
    return Settings()


@lru_cache
def get_token_pool() -> TokenPool:
    """Build the token pool once; evictions last for the process lifetime."""

    return TokenPool(discover_tokens(get_settings(), os.environ))


async def get_contribution_client(
    settings: Settings = Depends(get_settings),
    token_pool: TokenPool = Depends(get_token_pool),
) -> AsyncIterator[ContributionClient]:
    async with httpx.AsyncClient(timeout=settings.github_timeout_seconds) as http_client:
        yield ContributionClient(
            http_client,
            token_pool,
            graphql_url=settings.github_graphql_url,
            user_agent=settings.github_user_agent,
        )


def get_rasterizer() -> Rasterizer:
    return rasterize_svg


@router.get("/health/live")
def health_live() -> dict[str, str]:
    """Report that the service process is alive."""

    return {"status": "ok"}


@router.get("/")
async def streak_card(
    request: Request,
    settings: Settings = Depends(get_settings),
    client: ContributionClient = Depends(get_contribution_client),
    rasterize: Rasterizer = Depends(get_rasterizer),
) -> Response:
    """Render the streak card for the `user` query parameter."""

    params: dict[str, list[str]] = {}
    for key, value in request.query_params.multi_items():
        params.setdefault(key, []).append(value)

    output = await render_streak_card(params, client, rasterize)
    return Response(
        content=output.body,
        status_code=output.status,
        media_type=output.content_type,
        headers={"Cache-Control": f"public, max-age={settings.cache_max_age_seconds}"},
    )
