import re
from dataclasses import dataclass


STYLE_TAG_PATTERN = re.compile(r"<style\b[^>]*>.*?</style>", re.S)
ANCHOR_PATTERN = re.compile(r"<a\s[^>]*>(.*?)</a>", re.S)
FADEIN_PATTERN = re.compile(r"animation: fadein[^;'\"]+")
CURRSTREAK_PATTERN = re.compile(r"animation: currstreak[^;'\"]+")
TRANSPARENT_ATTRIBUTE_PATTERN = re.compile(r"""(fill|stroke)=(['"])transparent\2""", re.I)
HEX_COLOR_ATTRIBUTE_PATTERN = re.compile(
    r"""\b(fill|stroke|stop-color|flood-color|lighting-color)\s*=\s*(["'])#"""
    r"""([0-9a-f]{8}|[0-9a-f]{6}|[0-9a-f]{4}|[0-9a-f]{3})\2""",
    re.I,
)


@dataclass(frozen=True)
class ConvertedColor:
    color: str
    opacity: float


def remove_animations(svg: str) -> str:
    """Replace animations with their final static state.

    Rasterizers render the first frame only, which would leave every
    faded-in element invisible.
    """

    svg = STYLE_TAG_PATTERN.sub("", svg)
    svg = svg.replace("opacity: 0;", "opacity: 1;")
    svg = FADEIN_PATTERN.sub("opacity: 1;", svg)
    svg = CURRSTREAK_PATTERN.sub("font-size: 28px;", svg)
    return ANCHOR_PATTERN.sub(r"\1", svg)


def convert_hex_color(color: str) -> ConvertedColor:
    """Split a 3, 4, 6 or 8 digit hex color into `#rrggbb` and an opacity."""

    digits = re.sub(r"[^0-9a-f]", "", color.lower())
    if len(digits) == 3:
        r, g, b = digits
        return ConvertedColor(f"#{r}{r}{g}{g}{b}{b}", 1)
    if len(digits) == 4:
        r, g, b, a = digits
        return ConvertedColor(f"#{r}{r}{g}{g}{b}{b}", int(a * 2, 16) / 255)
    if len(digits) == 6:
        return ConvertedColor(f"#{digits}", 1)
    if len(digits) == 8:
        return ConvertedColor(f"#{digits[:6]}", int(digits[6:], 16) / 255)
    raise ValueError(f"Invalid color: {color}")


def _format_opacity(opacity: float) -> str:
    return str(int(opacity)) if float(opacity).is_integer() else repr(opacity)


def _replace_hex_attribute(match: re.Match[str]) -> str:
    attribute, quote, value = match.groups()
    if len(value) == 6:
        return match.group(0)
    converted = convert_hex_color(value)
    opacity_attribute = (
        "stop-opacity" if attribute.lower() == "stop-color" else f"{attribute}-opacity"
    )
    return (
        f"{attribute}={quote}{converted.color}{quote} "
        f"{opacity_attribute}={quote}{_format_opacity(converted.opacity)}{quote}"
    )


def convert_hex_colors(svg: str) -> str:
    """Rewrite alpha hex colors as 6-digit colors plus opacity attributes.

    Some rasterizers ignore the alpha channel of 8-digit hex colors. Colors
    that already have 6 digits are left as they are, so running the
    conversion twice changes nothing.
    """

    svg = TRANSPARENT_ATTRIBUTE_PATTERN.sub(r"\1=\2#0000\2", svg)
    return HEX_COLOR_ATTRIBUTE_PATTERN.sub(_replace_hex_attribute, svg)
