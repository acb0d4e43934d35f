import math
import re
from collections.abc import Mapping
from collections.abc import Sequence

from streak_stats.api.schemas.streak import CardOptions
from streak_stats.rendering.themes import THEME_ROLES
from streak_stats.services.streaks import normalize_days


RequestParameters = Mapping[str, str | Sequence[str]]

OUTPUT_TYPES = ("svg", "png", "json")
LEADING_INTEGER_PATTERN = re.compile(r"\s*[+-]?\d+")


def get_param_value(params: RequestParameters, key: str) -> str | None:
    """Return the first value of a query parameter, or None when absent."""

    value = params.get(key)
    if value is None or isinstance(value, str):
        return value
    return value[0] if value else None


def is_param_true(params: RequestParameters, key: str) -> bool:
    value = get_param_value(params, key)
    return value is not None and value.lower() == "true"


def _float_param(params: RequestParameters, key: str, default: float) -> float:
    value = get_param_value(params, key)
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if math.isfinite(parsed) else default


def _int_param(params: RequestParameters, key: str) -> int | None:
    value = get_param_value(params, key)
    if value is None:
        return None
    match = LEADING_INTEGER_PATTERN.match(value)
    return int(match.group(0)) if match else None


def parse_card_options(params: RequestParameters) -> CardOptions:
    """Build the typed card options from raw query parameters.

    Missing or unparseable values fall back to the `CardOptions` defaults.
    Any theme role key (`background`, `ring`, ...) is kept as a color
    override and validated when the theme is resolved.
    """

    output_type = (get_param_value(params, "type") or "svg").lower()
    if output_type not in OUTPUT_TYPES:
        output_type = "svg"

    exclude_days = get_param_value(params, "exclude_days") or ""
    overrides = {
        role: value
        for role in THEME_ROLES
        if (value := get_param_value(params, role))
    }

    return CardOptions(
        user=get_param_value(params, "user"),
        starting_year=_int_param(params, "starting_year"),
        mode="weekly" if get_param_value(params, "mode") == "weekly" else "daily",
        exclude_days=normalize_days(exclude_days.split(",")),
        type=output_type,
        theme=get_param_value(params, "theme") or "default",
        color_overrides=overrides,
        hide_border=is_param_true(params, "hide_border"),
        border_radius=_float_param(params, "border_radius", 4.5),
        hide_total_contributions=is_param_true(params, "hide_total_contributions"),
        hide_current_streak=is_param_true(params, "hide_current_streak"),
        hide_longest_streak=is_param_true(params, "hide_longest_streak"),
        card_width=_float_param(params, "card_width", 495),
        card_height=_float_param(params, "card_height", 195),
        locale=get_param_value(params, "locale") or "en",
        date_format=get_param_value(params, "date_format") or None,
        short_numbers=is_param_true(params, "short_numbers"),
        disable_animations=is_param_true(params, "disable_animations"),
    )
