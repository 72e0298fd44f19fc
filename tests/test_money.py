from decimal import Decimal
from fractions import Fraction

import pytest

from spendlog.services.money import (
    format_currency,
    parse_to_minor_units,
    round_half_up,
)


def test_format_currency():
    assert format_currency(2550) == "$25.50"
    assert format_currency(0) == "$0.00"
    assert format_currency(-100) == "-$1.00"
    assert format_currency(123456789) == "$1,234,567.89"
    assert format_currency(5, "€") == "€0.05"


@pytest.mark.parametrize(
    "text,expected",
    [
        ("25.50", 2550),
        ("25", 2500),
        ("$1,250.5", 125050),
        ("12.345", 1235),
        ("0.005", 1),
        (".75", 75),
        ("1.2.3", 120),
        ("abc", 0),
        ("", 0),
        (None, 0),
    ],
)
def test_parse_to_minor_units(text, expected):
    assert parse_to_minor_units(text) == expected


def test_round_half_up():
    assert round_half_up(Fraction(5, 2)) == 3
    assert round_half_up(Fraction(-5, 2)) == -3
    assert round_half_up(Fraction(7, 3)) == 2
    assert round_half_up(2.5) == 3
    assert round_half_up(Decimal("2.4")) == 2
    assert round_half_up(4) == 4
