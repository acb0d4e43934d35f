import re
from dataclasses import dataclass
from functools import lru_cache

from streak_stats.api.schemas.streak import CardOptions
from streak_stats.rendering.data import load_table
from streak_stats.rendering.data import resolve_entry


THEME_ROLES = (
    "background",
    "border",
    "stroke",
    "ring",
    "fire",
    "currStreakNum",
    "sideNums",
    "currStreakLabel",
    "sideLabels",
    "dates",
    "excludeDaysLabel",
)

HEX_COLOR_PATTERN = re.compile(r"^([a-f0-9]{3}|[a-f0-9]{4}|[a-f0-9]{6}|[a-f0-9]{8})$", re.I)
BACKGROUND_GRADIENT_PATTERN = re.compile(
    r"^-?\d+,(?:[a-f0-9]{3,8})(?:,[a-f0-9]{3,8})+$", re.I
)


@dataclass(frozen=True)
class Gradient:
    """Linear background gradient: rotation angle and evenly spaced stops."""

    angle: str
    colors: tuple[str, ...]

    def stops(self) -> list[tuple[float, str]]:
        count = len(self.colors)
        return [
            (0 if count == 1 else index * 100 / (count - 1), f"#{color}")
            for index, color in enumerate(self.colors)
        ]


@dataclass(frozen=True)
class Theme:
    colors: dict[str, str]
    gradient: Gradient | None = None

    def __getitem__(self, role: str) -> str:
        return self.colors[role]


def normalize_theme_name(name: str) -> str:
    return name.lower().replace("_", "-")


def get_theme(name: str) -> dict[str, str]:
    """Return the named theme, falling back to `default`."""

    return dict(resolve_entry(load_table("themes"), name, "default"))


@lru_cache
def css_color_names() -> frozenset[str]:
    return frozenset(name.lower() for name in load_table("css_colors"))


def _override_value(role: str, raw: str) -> str | None:
    normalized = raw.lower()
    if HEX_COLOR_PATTERN.match(normalized):
        return f"#{normalized}"
    if normalized in css_color_names():
        return normalized
    if role == "background" and BACKGROUND_GRADIENT_PATTERN.match(normalized):
        return normalized
    return None


def resolve_theme(options: CardOptions) -> Theme:
    """Merge the requested theme with per-role color overrides."""

    colors = get_theme(normalize_theme_name(options.theme))
    for role in colors:
        raw = options.color_overrides.get(role)
        if not raw:
            continue
        value = _override_value(role, raw)
        if value is not None:
            colors[role] = value

    if options.hide_border:
        colors["border"] = "#0000"

    gradient = None
    parts = colors.get("background", "").split(",")
    if len(parts) >= 3:
        gradient = Gradient(angle=parts[0], colors=tuple(parts[1:]))
        colors["background"] = "url(#gradient)"

    return Theme(colors=colors, gradient=gradient)
