"""
Unit tests for grid tokens and percentage conversion.
"""

import pytest

from pagebridge.errors import UnknownDialectError
from pagebridge.units import (
    format_percentage,
    native_tokens,
    nearest_token,
    parse_percentage,
    percentage_to_dialect_token,
    width_to_percentage,
)


class TestWidthToPercentage:
    @pytest.mark.parametrize("token,dialect,expected", [
        ("1/2", "wpbakery", "50%"),
        ("5/12", "wpbakery", "41.66%"),
        ("1_3", "divi", "33.33%"),
        ("4_4", "divi", "100%"),
        ("1_1", "divi", "100%"),
        ("2_3", "avada", "66.66%"),
        ("6", "bootstrap", "50%"),
        (50, "elementor", "50%"),
        ("33.5%", "bricks", "33.5%"),
    ])
    def test_known_tokens(self, token, dialect, expected):
        assert width_to_percentage(token, dialect) == expected

    def test_canonical_percentage_accepted_everywhere(self):
        assert width_to_percentage("50%", "divi") == "50%"

    def test_unreadable_token_is_full_width(self):
        assert width_to_percentage("garbage", "divi") == "100%"
        assert width_to_percentage(None, "avada") == "100%"

    def test_unknown_dialect_raises(self):
        with pytest.raises(UnknownDialectError):
            width_to_percentage("1/2", "nope")


class TestPercentageToToken:
    @pytest.mark.parametrize("percentage,dialect,expected", [
        ("50%", "divi", "1_2"),
        ("100%", "divi", "4_4"),
        ("33.33%", "wpbakery", "1/3"),
        ("41.67%", "wpbakery", "5/12"),
        ("50%", "bootstrap", "6"),
        ("33.33%", "elementor", "33"),
        ("33.333", "bricks", "33.33%"),
    ])
    def test_tokens(self, percentage, dialect, expected):
        assert percentage_to_dialect_token(percentage, dialect) == expected

    def test_twelfths_snap_onto_sixths(self):
        # 5 of 12 columns has no Divi preset; 2/5 is the nearest
        assert percentage_to_dialect_token(width_to_percentage("5", "bootstrap"), "divi") == "2_5"

    def test_every_percentage_lands_on_a_valid_token(self):
        tokens = set(native_tokens("avada"))
        for value in range(0, 101):
            assert percentage_to_dialect_token(f"{value}%", "avada") in tokens

    def test_unreadable_defaults_to_full_width(self):
        assert percentage_to_dialect_token("wide", "divi") == "4_4"

    def test_first_entry_wins_ties(self):
        assert nearest_token(50, [(40.0, "a"), (60.0, "b")]) == "a"


class TestPercentageHelpers:
    def test_format(self):
        assert format_percentage(50.0) == "50%"
        assert format_percentage(33.3333) == "33.33%"
        assert format_percentage(12.5) == "12.5%"

    @pytest.mark.parametrize("value,expected", [
        ("1/2", 50.0),
        ("1_4", 25.0),
        ("50%", 50.0),
        (" 75 ", 75.0),
        (20, 20.0),
    ])
    def test_parse(self, value, expected):
        assert parse_percentage(value) == expected

    @pytest.mark.parametrize("value", [True, None, "abc", "1/0"])
    def test_parse_rejects(self, value):
        assert parse_percentage(value) is None

    def test_native_tokens(self):
        assert native_tokens("elementor") == []
        assert native_tokens("bootstrap")[0] == "12"
        assert "4_4" in native_tokens("divi")
        assert "1_1" not in native_tokens("divi")
