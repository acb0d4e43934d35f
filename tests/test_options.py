from streak_stats.api.schemas.streak import CardOptions
from streak_stats.services.options import get_param_value
from streak_stats.services.options import is_param_true
from streak_stats.services.options import parse_card_options


def test_defaults_when_parameters_missing() -> None:
    assert parse_card_options({}) == CardOptions()


def test_first_value_wins_for_repeated_parameters() -> None:
    params = {"user": ["octocat", "hubot"], "theme": "dark"}

    assert get_param_value(params, "user") == "octocat"
    assert get_param_value(params, "theme") == "dark"
    assert get_param_value(params, "missing") is None
    assert get_param_value({"user": []}, "user") is None


def test_booleans_require_literal_true() -> None:
    params = {"a": "TRUE", "b": "1", "c": "yes"}

    assert is_param_true(params, "a")
    assert not is_param_true(params, "b")
    assert not is_param_true(params, "c")
    assert not is_param_true(params, "d")


def test_parse_card_options_reads_every_field() -> None:
    """Raw query values are typed once into CardOptions."""

    options = parse_card_options(
        {
            "user": "octocat",
            "starting_year": "2015",
            "mode": "weekly",
            "type": "PNG",
            "theme": "dark",
            "hide_border": "true",
            "border_radius": "10",
            "hide_total_contributions": "true",
            "card_width": "600",
            "card_height": "250.5",
            "locale": "de",
            "date_format": "j. M[ Y]",
            "short_numbers": "true",
            "disable_animations": "True",
            "ring": "ff0000",
            "unknown": "ignored",
        }
    )

    assert options.user == "octocat"
    assert options.starting_year == 2015
    assert options.mode == "weekly"
    assert options.type == "png"
    assert options.theme == "dark"
    assert options.hide_border
    assert options.border_radius == 10
    assert options.hide_total_contributions
    assert not options.hide_current_streak
    assert options.card_width == 600
    assert options.card_height == 250.5
    assert options.locale == "de"
    assert options.date_format == "j. M[ Y]"
    assert options.short_numbers
    assert options.disable_animations
    assert options.color_overrides == {"ring": "ff0000"}


def test_invalid_values_fall_back_to_defaults() -> None:
    options = parse_card_options(
        {
            "starting_year": "last year",
            "mode": "Weekly",
            "type": "gif",
            "border_radius": "inf",
            "card_width": "wide",
            "exclude_days": "monday, fri,nope",
        }
    )

    assert options.starting_year is None
    assert options.mode == "daily"
    assert options.type == "svg"
    assert options.border_radius == 4.5
    assert options.card_width == 495
    assert options.exclude_days == ("Mon", "Fri")


def test_starting_year_reads_leading_integer() -> None:
    """Trailing garbage after the year is ignored."""

    assert parse_card_options({"starting_year": "2020.5"}).starting_year == 2020
    assert parse_card_options({"starting_year": " 2019abc"}).starting_year == 2019
    assert parse_card_options({"starting_year": "abc2019"}).starting_year is None
    assert parse_card_options({"starting_year": ""}).starting_year is None
