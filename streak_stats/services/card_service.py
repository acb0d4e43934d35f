import json
import logging
import re
from dataclasses import dataclass
from datetime import date

from starlette.concurrency import run_in_threadpool

from streak_stats.api.schemas.streak import CardOptions
from streak_stats.api.schemas.streak import StreakStats
from streak_stats.clients.github_client import ContributionClient
from streak_stats.core.errors import ConversionError
from streak_stats.core.errors import StreakStatsError
from streak_stats.rendering.card import DEFAULT_HEIGHT
from streak_stats.rendering.card import DEFAULT_WIDTH
from streak_stats.rendering.card import generate_card
from streak_stats.rendering.card import generate_error_card
from streak_stats.rendering.postprocess import convert_hex_colors
from streak_stats.rendering.postprocess import remove_animations
from streak_stats.rendering.raster import Rasterizer
from streak_stats.services.options import RequestParameters
from streak_stats.services.options import parse_card_options
from streak_stats.services.streaks import compute_daily_stats
from streak_stats.services.streaks import compute_weekly_stats
from streak_stats.services.timeline import merge_contribution_graphs


logger = logging.getLogger(__name__)

MISSING_USER_MESSAGE = "Missing required parameter: user"
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred."

CONTENT_TYPES = {
    "svg": "image/svg+xml",
    "png": "image/png",
    "json": "application/json",
}

INVALID_USER_CHARS = re.compile(r"[^a-zA-Z0-9-]")
SVG_WIDTH_PATTERN = re.compile(r"\swidth=[\"'](\d+(?:\.\d+)?)px[\"']")
SVG_HEIGHT_PATTERN = re.compile(r"\sheight=[\"'](\d+(?:\.\d+)?)px[\"']")


@dataclass(frozen=True)
class GeneratedResponse:
    content_type: str
    body: str | bytes
    status: int = 200


@dataclass(frozen=True)
class CardOutput:
    """What to render: computed stats, or an error message."""

    stats: StreakStats | None = None
    error: str | None = None


def sanitize_user(user: str) -> str:
    return INVALID_USER_CHARS.sub("", user)


def svg_dimensions(svg: str) -> tuple[int, int]:
    """Read the pixel size declared on the root element, 495x195 if absent."""

    width_match = SVG_WIDTH_PATTERN.search(svg)
    height_match = SVG_HEIGHT_PATTERN.search(svg)
    width = round(float(width_match.group(1))) if width_match else DEFAULT_WIDTH
    height = round(float(height_match.group(1))) if height_match else DEFAULT_HEIGHT
    return width, height


def render_svg(
    output: CardOutput, options: CardOptions, today: date | None = None
) -> str:
    if output.stats is not None:
        svg = generate_card(output.stats, options, today)
    else:
        svg = generate_error_card(output.error or UNEXPECTED_ERROR_MESSAGE, options)

    svg = convert_hex_colors(svg)
    if options.disable_animations:
        svg = remove_animations(svg)
    return svg


def generate_output(
    output: CardOutput,
    options: CardOptions,
    rasterize: Rasterizer,
    today: date | None = None,
) -> GeneratedResponse:
    """Produce the response body in the requested output type.

    A failed PNG conversion falls back to an SVG error card with status 500.
    """

    if options.type == "json":
        if output.stats is not None:
            body = output.stats.model_dump_json(by_alias=True)
        else:
            body = json.dumps({"error": output.error or UNEXPECTED_ERROR_MESSAGE})
        return GeneratedResponse(CONTENT_TYPES["json"], body)

    svg = render_svg(output, options, today)
    if options.type != "png":
        return GeneratedResponse(CONTENT_TYPES["svg"], svg)

    width, height = svg_dimensions(svg)
    static_svg = remove_animations(svg).replace("\n", " ")
    try:
        png = rasterize(static_svg, width, height)
    except ConversionError as exc:
        logger.error("PNG conversion failed: %s", exc)
        fallback = render_svg(
            CardOutput(error=str(exc)), options.model_copy(update={"type": "svg"})
        )
        return GeneratedResponse(CONTENT_TYPES["svg"], fallback, status=500)
    return GeneratedResponse(CONTENT_TYPES["png"], png)


async def _render_output(
    output: CardOutput,
    options: CardOptions,
    rasterize: Rasterizer,
    today: date | None = None,
) -> GeneratedResponse:
    """Run the output stage, moving PNG rasterization off the event loop."""

    if options.type == "png":
        return await run_in_threadpool(generate_output, output, options, rasterize, today)
    return generate_output(output, options, rasterize, today)


def _with_status(response: GeneratedResponse, status: int) -> GeneratedResponse:
    if response.status != 200:
        return response
    return GeneratedResponse(response.content_type, response.body, status)


async def render_streak_card(
    params: RequestParameters,
    client: ContributionClient,
    rasterize: Rasterizer,
    today: date | None = None,
) -> GeneratedResponse:
    """Run the full request pipeline and always return a renderable response.

    Failures become an error card (or `{"error": ...}` for JSON) carrying
    the HTTP status of the error.
    """

    options = parse_card_options(params)
    if not options.user:
        response = generate_output(
            CardOutput(error=MISSING_USER_MESSAGE), CardOptions(), rasterize, today
        )
        return _with_status(response, 400)

    user = sanitize_user(options.user)
    try:
        graphs = await client.fetch_all(user, options.starting_year)
        contributions = merge_contribution_graphs(graphs, today)
        if options.mode == "weekly":
            stats = compute_weekly_stats(contributions)
        else:
            stats = compute_daily_stats(contributions, options.exclude_days)
    except StreakStatsError as exc:
        logger.warning("Could not build streak stats for %s: %s", user, exc)
        response = await _render_output(
            CardOutput(error=str(exc)), options, rasterize, today
        )
        return _with_status(response, exc.status_code)
    except Exception:
        logger.exception("Unexpected failure while building streak stats for %s", user)
        response = await _render_output(
            CardOutput(error=UNEXPECTED_ERROR_MESSAGE), options, rasterize, today
        )
        return _with_status(response, 500)

    return await _render_output(CardOutput(stats=stats), options, rasterize, today)
