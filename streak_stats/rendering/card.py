import math
import re
from dataclasses import dataclass
from datetime import date

import svgwrite
from svgwrite.container import Group
from svgwrite.text import Text

from streak_stats.api.schemas.streak import CardOptions
from streak_stats.api.schemas.streak import DailyStats
from streak_stats.api.schemas.streak import StreakStats
from streak_stats.api.schemas.streak import WeeklyStats
from streak_stats.rendering.locale import excluding_days_text
from streak_stats.rendering.locale import format_date
from streak_stats.rendering.locale import format_number
from streak_stats.rendering.locale import get_translation
from streak_stats.rendering.themes import Theme
from streak_stats.rendering.themes import resolve_theme


DEFAULT_WIDTH = 495
DEFAULT_HEIGHT = 195
MINIMUM_HEIGHT = 170
MINIMUM_COLUMN_WIDTH = 100
LABEL_CHAR_WIDTH = 7.5
RANGE_CHAR_WIDTH = 6

FONT_FAMILY = "Segoe UI, Ubuntu, sans-serif"

CARD_STYLESHEET = """
    @keyframes currstreak {
        0% { font-size: 3px; opacity: 0.2; }
        80% { font-size: 34px; opacity: 1; }
        100% { font-size: 28px; opacity: 1; }
    }
    @keyframes fadein {
        0% { opacity: 0; }
        100% { opacity: 1; }
    }
"""

FIRE_OUTLINE_PATH = "M -12 -0.5 L 15 -0.5 L 15 23.5 L -12 23.5 L -12 -0.5 Z"
FIRE_PATH = (
    "M 1.5 0.67 C 1.5 0.67 2.24 3.32 2.24 5.47 C 2.24 7.53 0.89 9.2 -1.17 9.2 "
    "C -3.23 9.2 -4.79 7.53 -4.79 5.47 L -4.76 5.11 C -6.78 7.51 -8 10.62 -8 13.99 "
    "C -8 18.41 -4.42 22 0 22 C 4.42 22 8 18.41 8 13.99 C 8 8.6 5.41 3.79 1.5 0.67 Z "
    "M -0.29 19 C -2.07 19 -3.51 17.6 -3.51 15.86 C -3.51 14.24 -2.46 13.1 -0.7 12.74 "
    "C 1.07 12.38 2.9 11.53 3.92 10.16 C 4.31 11.45 4.51 12.81 4.51 14.2 "
    "C 4.51 16.85 2.36 19 -0.29 19 Z"
)
SAD_FACE_PATHS = (
    "M0,35.8c-25.2,0-45.7,20.5-45.7,45.7s20.5,45.8,45.7,45.8s45.7-20.5,45.7-45.7"
    "S25.2,35.8,0,35.8z M0,122.3c-11.2,0-21.4-4.5-28.8-11.9c-2.9-2.9-5.4-6.3-7.4-10"
    "c-3-5.7-4.6-12.1-4.6-18.9c0-22.5,18.3-40.8,40.8-40.8 c10.7,0,20.4,4.1,27.7,10.9"
    "c3.8,3.5,6.9,7.7,9.1,12.4c2.6,5.3,4,11.3,4,17.6C40.8,104.1,22.5,122.3,0,122.3z",
    "M4.8,93.8c5.4,1.1,10.3,4.2,13.7,8.6l3.9-3c-4.1-5.3-10-9-16.6-10.4"
    "c-10.6-2.2-21.7,1.9-28.3,10.4l3.9,3 C-13.1,95.3-3.9,91.9,4.8,93.8z",
)


def fmt(value: float) -> str:
    """Serialize a coordinate the way it reads in hand-written SVG (12, 12.5)."""

    return str(int(value)) if float(value).is_integer() else repr(float(value))


def fade_in(delay: str) -> str:
    return f"opacity: 0; animation: fadein 0.5s linear forwards {delay}"


def card_width(options: CardOptions, columns: int = 3) -> float:
    return max(MINIMUM_COLUMN_WIDTH * columns, options.card_width)


def card_height(options: CardOptions) -> float:
    return max(MINIMUM_HEIGHT, options.card_height)


@dataclass(frozen=True)
class CardLayout:
    """Card geometry; hidden columns have no offset."""

    width: float
    height: float
    columns: int
    total_offset: float | None
    current_offset: float | None
    longest_offset: float | None
    bar_offsets: tuple[float, ...]
    height_offset: float

    @classmethod
    def compute(cls, options: CardOptions, rtl: bool = False) -> "CardLayout":
        visible = (
            not options.hide_total_contributions,
            not options.hide_current_streak,
            not options.hide_longest_streak,
        )
        columns = sum(visible)
        width = card_width(options, columns)
        height = card_height(options)
        column_width = width / columns if columns else 0
        centers = [column_width / 2 + column_width * index for index in range(columns)]
        if rtl:
            centers.reverse()

        remaining = iter(centers)
        total, current, longest = (next(remaining) if shown else None for shown in visible)
        return cls(
            width=width,
            height=height,
            columns=columns,
            total_offset=total,
            current_offset=current,
            longest_offset=longest,
            bar_offsets=tuple(column_width * (index + 1) for index in range(columns - 1)),
            height_offset=(height - DEFAULT_HEIGHT) / 2,
        )

    def max_chars(self, char_width: float) -> int:
        if not self.columns:
            return 0
        return math.floor(self.width / self.columns / char_width)


def word_wrap(text: str, width: int, break_str: str = "\n") -> str:
    """Wrap at whitespace to at most `width` characters, cutting long words."""

    if width <= 0:
        return text
    wrapped = re.sub(
        rf"(.{{1,{width}}})(?:\s|$)", lambda match: match.group(1) + break_str, text, flags=re.S
    )
    wrapped = re.sub(
        rf"(\S{{{width}}})(?=\S)", lambda match: match.group(1) + break_str, wrapped
    )
    return wrapped.removesuffix(break_str)


def split_lines(text: str, max_chars: int) -> str:
    """Break text longer than `max_chars` onto two lines.

    A " - " range separator is the preferred break point.
    """

    if max_chars > 0 and len(text) > max_chars and "\n" not in text:
        if " - " in text:
            return text.replace(" - ", "\n- ", 1)
        return word_wrap(text, max_chars)
    return text


def _new_drawing(layout: CardLayout, theme: Theme, border_radius: float, **extra):
    width, height = fmt(layout.width), fmt(layout.height)
    dwg = svgwrite.Drawing(
        size=(f"{width}px", f"{height}px"),
        viewBox=f"0 0 {width} {height}",
        style="isolation: isolate",
        debug=False,
        **extra,
    )
    clip = dwg.defs.add(dwg.clipPath(id="outer_rectangle"))
    clip.add(dwg.rect(insert=("0", "0"), size=(width, height), rx=fmt(border_radius)))
    if theme.gradient is not None:
        gradient = dwg.defs.add(
            dwg.linearGradient(
                id="gradient",
                gradientTransform=f"rotate({theme.gradient.angle})",
                gradientUnits="userSpaceOnUse",
            )
        )
        for offset, color in theme.gradient.stops():
            gradient.add_stop_color(offset=f"{fmt(offset)}%", color=color)

    body = dwg.add(dwg.g(clip_path="url(#outer_rectangle)"))
    background = body.add(dwg.g(style="isolation: isolate"))
    background.add(
        dwg.rect(
            insert=("0.5", "0.5"),
            size=(fmt(layout.width - 1), fmt(layout.height - 1)),
            rx=fmt(border_radius),
            stroke=theme["border"],
            fill=theme["background"],
        )
    )
    return dwg, body


def _text(
    dwg: svgwrite.Drawing,
    content: str,
    *,
    y: str = "32",
    max_chars: int = 0,
    first_line_dy: str = "0",
    **attributes,
) -> Text:
    """Centered text; wrapped content is split into two tspans."""

    lines = split_lines(content, max_chars)
    text = dwg.text(
        "",
        x=["0"],
        y=[y],
        stroke_width="0",
        text_anchor="middle",
        stroke="none",
        font_family=FONT_FAMILY,
        font_style="normal",
        **attributes,
    )
    if "\n" in lines:
        first, rest = lines.split("\n", 1)
        text.add(dwg.tspan(first, x=["0"], dy=[first_line_dy]))
        text.add(dwg.tspan(rest, x=["0"], dy=["16"]))
    else:
        text.text = lines
    return text


def _translated(translations: dict[str, str | bool], key: str) -> str:
    value = translations.get(key)
    return value if isinstance(value, str) else ""


def _date_range(start: str, end: str) -> str:
    return start if start == end else f"{start} - {end}"


def _column(dwg: svgwrite.Drawing, x: float, y: float) -> Group:
    return dwg.g(transform=f"translate({fmt(x)}, {fmt(y)})")


def generate_card(
    stats: StreakStats,
    options: CardOptions,
    today: date | None = None,
) -> str:
    """Render the streak statistics card as SVG text."""

    theme = resolve_theme(options)
    locale = options.locale
    translations = get_translation(locale)
    rtl = translations.get("rtl") is True
    date_format = options.date_format
    if date_format is None and isinstance(translations.get("date_format"), str):
        date_format = translations["date_format"]

    layout = CardLayout.compute(options, rtl)
    offset = layout.height_offset
    label_chars = layout.max_chars(LABEL_CHAR_WIDTH)
    range_chars = layout.max_chars(RANGE_CHAR_WIDTH)

    def number(value: int) -> str:
        return format_number(value, locale, options.short_numbers)

    def when(day: date) -> str:
        return format_date(day, date_format, locale, today)

    dwg, body = _new_drawing(
        layout, theme, options.border_radius, direction="rtl" if rtl else "ltr"
    )
    dwg.embed_stylesheet(CARD_STYLESHEET)

    bars = body.add(dwg.g(style="isolation: isolate"))
    for bar in layout.bar_offsets:
        bars.add(
            dwg.line(
                start=(fmt(bar), fmt(28 + offset / 2)),
                end=(fmt(bar), fmt(170 + offset)),
                vector_effect="non-scaling-stroke",
                stroke_width="1",
                stroke=theme["stroke"],
                stroke_linejoin="miter",
                stroke_linecap="square",
                stroke_miterlimit="3",
            )
        )

    weekly = isinstance(stats, WeeklyStats)

    if layout.total_offset is not None:
        section = body.add(dwg.g(style="isolation: isolate"))
        x = layout.total_offset
        section.add(_column(dwg, x, 48 + offset)).add(
            _text(
                dwg,
                number(stats.total_contributions),
                fill=theme["sideNums"],
                font_weight="700",
                font_size="28px",
                style=fade_in("0.6s"),
            )
        )
        section.add(_column(dwg, x, 84 + offset)).add(
            _text(
                dwg,
                _translated(translations, "Total Contributions"),
                max_chars=label_chars,
                first_line_dy="-9",
                fill=theme["sideLabels"],
                font_weight="400",
                font_size="14px",
                style=fade_in("0.7s"),
            )
        )
        section.add(_column(dwg, x, 114 + offset)).add(
            _text(
                dwg,
                f"{when(stats.first_contribution)} - {_translated(translations, 'Present')}",
                max_chars=range_chars,
                fill=theme["dates"],
                font_weight="400",
                font_size="12px",
                style=fade_in("0.8s"),
            )
        )

    if layout.current_offset is not None:
        x = layout.current_offset
        mask = dwg.defs.add(dwg.mask(id="mask_out_ring_behind_fire"))
        mask.add(
            dwg.rect(insert=("0", "0"), size=(fmt(layout.width), fmt(layout.height)), fill="white")
        )
        mask.add(
            dwg.ellipse(center=(fmt(x), "32"), r=("13", "18"), id="mask-ellipse", fill="black")
        )

        streak = stats.current_streak
        section = body.add(dwg.g(style="isolation: isolate"))
        section.add(_column(dwg, x, 48 + offset)).add(
            _text(
                dwg,
                number(streak.length),
                fill=theme["currStreakNum"],
                font_weight="700",
                font_size="28px",
                style="animation: currstreak 0.6s linear forwards",
            )
        )
        section.add(_column(dwg, x, 108 + offset)).add(
            _text(
                dwg,
                _translated(translations, "Week Streak" if weekly else "Current Streak"),
                max_chars=label_chars,
                first_line_dy="-9",
                fill=theme["currStreakLabel"],
                font_weight="700",
                font_size="14px",
                style=fade_in("0.9s"),
            )
        )
        section.add(_column(dwg, x, 145 + offset)).add(
            _text(
                dwg,
                _date_range(when(streak.start), when(streak.end)),
                y="21",
                max_chars=range_chars,
                fill=theme["dates"],
                font_weight="400",
                font_size="12px",
                style=fade_in("0.9s"),
            )
        )
        ring = section.add(dwg.g(mask="url(#mask_out_ring_behind_fire)"))
        ring.add(
            dwg.circle(
                center=(fmt(x), fmt(71 + offset)),
                r="40",
                fill="none",
                stroke=theme["ring"],
                stroke_width="5",
                style=fade_in("0.4s"),
            )
        )
        fire = section.add(
            dwg.g(
                transform=f"translate({fmt(x)}, {fmt(19.5 + offset)})",
                stroke_opacity="0",
                style=fade_in("0.6s"),
            )
        )
        fire.add(dwg.path(d=FIRE_OUTLINE_PATH, fill="none"))
        fire.add(dwg.path(d=FIRE_PATH, fill=theme["fire"], stroke_opacity="0"))

    if layout.longest_offset is not None:
        x = layout.longest_offset
        streak = stats.longest_streak
        section = body.add(dwg.g(style="isolation: isolate"))
        section.add(_column(dwg, x, 48 + offset)).add(
            _text(
                dwg,
                number(streak.length),
                fill=theme["sideNums"],
                font_weight="700",
                font_size="28px",
                style=fade_in("1.2s"),
            )
        )
        section.add(_column(dwg, x, 84 + offset)).add(
            _text(
                dwg,
                _translated(translations, "Longest Week Streak" if weekly else "Longest Streak"),
                max_chars=label_chars,
                first_line_dy="-9",
                fill=theme["sideLabels"],
                font_weight="400",
                font_size="14px",
                style=fade_in("1.3s"),
            )
        )
        section.add(_column(dwg, x, 114 + offset)).add(
            _text(
                dwg,
                _date_range(when(streak.start), when(streak.end)),
                max_chars=range_chars,
                fill=theme["dates"],
                font_weight="400",
                font_size="12px",
                style=fade_in("1.4s"),
            )
        )

    if isinstance(stats, DailyStats) and stats.excluded_days:
        section = body.add(dwg.g(style="isolation: isolate"))
        note = section.add(
            dwg.g(transform=f"translate({fmt(layout.width - 5 if rtl else 5)},187)")
        )
        note.add(
            dwg.text(
                f"* {excluding_days_text(stats.excluded_days, translations, locale)}",
                stroke_width="0",
                text_anchor="start",
                fill=theme["excludeDaysLabel"],
                stroke="none",
                font_family=FONT_FAMILY,
                font_weight="400",
                font_size="10px",
                font_style="normal",
                style=fade_in("0.9s"),
            )
        )

    return dwg.tostring()


def generate_error_card(message: str, options: CardOptions | None = None) -> str:
    """Render an error message card with the requested theme and size."""

    if options is None:
        options = CardOptions()
    theme = resolve_theme(options)
    width = card_width(options)
    height = card_height(options)
    layout = CardLayout(
        width=width,
        height=height,
        columns=1,
        total_offset=None,
        current_offset=width / 2,
        longest_offset=None,
        bar_offsets=(),
        height_offset=(height - DEFAULT_HEIGHT) / 2,
    )
    center = fmt(width / 2)

    dwg, body = _new_drawing(layout, theme, options.border_radius)
    dwg.embed_stylesheet(f"a {{ fill: {theme['dates']}; }}")

    section = body.add(dwg.g(style="isolation: isolate"))
    label = section.add(dwg.g(transform=f"translate({center}, {fmt(height / 2 + 10.5)})"))
    label.add(
        _text(
            dwg,
            message,
            y="50",
            dy=["0.25em"],
            fill=theme["sideLabels"],
            font_weight="400",
            font_size="14px",
        )
    )

    face = section.add(
        dwg.g(transform=f"translate({center}, {fmt(layout.height_offset)})")
    )
    for path in SAD_FACE_PATHS:
        face.add(dwg.path(d=path, fill=theme["fire"]))
    face.add(dwg.circle(center=("-15", "71"), r="4.9", fill=theme["fire"]))
    face.add(dwg.circle(center=("15", "71"), r="4.9", fill=theme["fire"]))

    return dwg.tostring()
