"""Money / rounding helpers.

Amounts are integers in minor units (cents) everywhere. Centralized so
aggregation, summaries and API payloads use identical rounding semantics.
"""

from __future__ import annotations

import math
import re
from decimal import Decimal, ROUND_HALF_UP
from fractions import Fraction
from typing import Union

Number = Union[int, float, Decimal, Fraction]

_NUMERIC_PREFIX = re.compile(r"^\d*\.?\d*")


def round_half_up(value: Number) -> int:
    """Round to the nearest integer, halves away from zero."""
    if isinstance(value, (float, Decimal)):
        value = Fraction(Decimal(str(value)))
    frac = Fraction(value)
    magnitude = math.floor(abs(frac) + Fraction(1, 2))
    return -magnitude if frac < 0 else magnitude


def format_currency(minor_units: int, symbol: str = "$") -> str:
    """Format cents for display, e.g. 2550 -> "$25.50", -100 -> "-$1.00"."""
    sign = "-" if minor_units < 0 else ""
    major, minor = divmod(abs(int(minor_units)), 100)
    return f"{sign}{symbol}{major:,}.{minor:02d}"


def parse_to_minor_units(text: str | None) -> int:
    """Parse a user-entered amount into cents, e.g. "25.50" -> 2550.

    Everything except digits and '.' is discarded first, so "$1,250.5"
    parses as 125050. Unparsable input yields 0.
    """
    cleaned = re.sub(r"[^0-9.]", "", text or "")
    numeric = _NUMERIC_PREFIX.match(cleaned).group(0)  # type: ignore[union-attr]
    if not numeric or numeric == ".":
        return 0
    cents = (Decimal(numeric) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)
