import math
import re
from collections.abc import Callable
from collections.abc import Sequence
from datetime import date
from datetime import datetime
from datetime import timedelta
from datetime import UTC

from babel import Locale
from babel import UnknownLocaleError
from babel.dates import format_date as babel_format_date
from babel.dates import format_skeleton
from babel.numbers import format_decimal

from streak_stats.rendering.data import load_table
from streak_stats.rendering.data import resolve_entry
from streak_stats.services.streaks import WEEKDAY_ABBREVIATIONS


# 2023-01-01 was a Sunday.
WEEKDAY_REFERENCE_DATES = tuple(
    date(2023, 1, 1) + timedelta(days=index) for index in range(7)
)
NUMBER_SUFFIXES = ("", "K", "M", "B", "T")

OPTIONAL_SECTION_PATTERN = re.compile(r"\[[^\]]*\]|\{[^}]*\}")
OPTIONAL_SECTION_CHARS = re.compile(r"[\[\]{}]")

TokenFormatter = Callable[[date, Locale], str]

TOKEN_MAP: dict[str, TokenFormatter] = {
    "Y": lambda day, _: str(day.year),
    "y": lambda day, _: str(day.year)[-2:],
    "m": lambda day, _: f"{day.month:02d}",
    "n": lambda day, _: str(day.month),
    "d": lambda day, _: f"{day.day:02d}",
    "j": lambda day, _: str(day.day),
    "M": lambda day, locale: babel_format_date(day, "LLL", locale=locale),
    "F": lambda day, locale: babel_format_date(day, "LLLL", locale=locale),
}


def get_translation(code: str) -> dict[str, str | bool]:
    """Return the phrases for a locale code, English for anything unknown.

    Keys missing from a locale fall back to the English phrase.
    """

    translations = load_table("translations")
    return {**translations["en"], **resolve_entry(translations, code, "en")}


def babel_locale(code: str) -> Locale:
    try:
        return Locale.parse(code.replace("-", "_"))
    except (UnknownLocaleError, ValueError):
        return Locale.parse("en")


def format_number(value: float, locale_code: str, short: bool = False) -> str:
    """Format with locale digit grouping, optionally abbreviated as 1.2K."""

    suffix = ""
    if short:
        index = 0
        while value >= 1000 and index < len(NUMBER_SUFFIXES) - 1:
            value /= 1000
            index += 1
        value = math.floor(value * 10 + 0.5) / 10
        suffix = NUMBER_SUFFIXES[index]
    return f"{format_decimal(value, locale=babel_locale(locale_code))}{suffix}"


def sanitize_optional_sections(pattern: str, include_optional: bool) -> str:
    """Keep `[...]`/`{...}` contents without brackets, or drop the sections."""

    if not include_optional:
        return OPTIONAL_SECTION_PATTERN.sub("", pattern)
    return OPTIONAL_SECTION_CHARS.sub("", pattern)


def format_with_custom_pattern(day: date, pattern: str, locale: Locale) -> str:
    result: list[str] = []
    escape_next = False
    for char in pattern:
        if escape_next:
            result.append(char)
            escape_next = False
            continue
        if char == "\\":
            escape_next = True
            continue
        formatter = TOKEN_MAP.get(char)
        result.append(formatter(day, locale) if formatter else char)
    if escape_next:
        result.append("\\")
    return "".join(result)


def format_date(
    day: date,
    pattern: str | None,
    locale_code: str,
    today: date | None = None,
) -> str:
    """Render a date for the card.

    Without a pattern the locale's short month and day are used, plus the
    year when the date is not in the current year. Optional sections of a
    custom pattern follow the same rule.
    """

    if today is None:
        today = datetime.now(UTC).date()
    include_optional = day.year != today.year
    locale = babel_locale(locale_code)
    if pattern:
        processed = sanitize_optional_sections(pattern, include_optional)
        return format_with_custom_pattern(day, processed, locale)

    skeleton = "yMMMd" if include_optional else "MMMd"
    return format_skeleton(skeleton, day, locale=locale)


def translate_days(days: Sequence[str], locale_code: str) -> list[str]:
    """Translate Sun..Sat abbreviations into the locale's short weekday names."""

    if locale_code == "en":
        return list(days)
    locale = babel_locale(locale_code)
    lookup = {abbr.lower(): index for index, abbr in enumerate(WEEKDAY_ABBREVIATIONS)}
    translated: list[str] = []
    for day in days:
        index = lookup.get(day.lower())
        if index is None:
            translated.append(day)
        else:
            translated.append(
                babel_format_date(WEEKDAY_REFERENCE_DATES[index], "EEE", locale=locale)
            )
    return translated


def excluding_days_text(
    days: Sequence[str], translations: dict[str, str | bool], locale_code: str
) -> str:
    separator = translations.get("comma_separator")
    if not isinstance(separator, str) or not separator:
        separator = ", "
    template = translations.get("Excluding {days}")
    if not isinstance(template, str):
        template = "Excluding {days}"
    return template.replace("{days}", separator.join(translate_days(days, locale_code)))
