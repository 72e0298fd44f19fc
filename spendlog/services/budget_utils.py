"""Budget indicator helpers.

Classifies a spent amount against a budget ceiling for presentation:
percentage used (clamped to 100 for display), remaining or over amount,
an over flag, and a three-state tier. Framework-agnostic so API routes and
summary builders share the same logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from spendlog.services.aggregation import CategoryTotal

WARNING_PCT = 75.0
CRITICAL_PCT = 100.0


class Tier(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class BudgetStatus:
    spent_minor_units: int
    budget_minor_units: int
    percentage: float
    remaining_or_over_minor_units: int  # negative when over budget
    is_over: bool
    tier: Tier


@dataclass(frozen=True)
class BudgetSegment:
    category_id: Optional[str]
    name: str
    color_hex: str
    width: float


def tier_for(percentage: float) -> Tier:
    if percentage >= CRITICAL_PCT:
        return Tier.CRITICAL
    if percentage >= WARNING_PCT:
        return Tier.WARNING
    return Tier.NORMAL


def _percent(part: int, budget: int) -> float:
    if budget <= 0:
        return 100.0 if part > 0 else 0.0
    return part / budget * 100


def evaluate(spent_minor_units: int, budget_minor_units: int) -> BudgetStatus:
    percentage = min(_percent(spent_minor_units, budget_minor_units), 100.0)
    return BudgetStatus(
        spent_minor_units=spent_minor_units,
        budget_minor_units=budget_minor_units,
        percentage=percentage,
        remaining_or_over_minor_units=budget_minor_units - spent_minor_units,
        is_over=spent_minor_units > budget_minor_units,
        tier=tier_for(percentage),
    )


def segment_widths(
    breakdown: Iterable[CategoryTotal], budget_minor_units: int
) -> List[BudgetSegment]:
    """Per-category share of the budget, not clamped individually."""
    return [
        BudgetSegment(
            category_id=item.category_id,
            name=item.name,
            color_hex=item.color_hex,
            width=_percent(item.total_minor_units, budget_minor_units),
        )
        for item in breakdown
    ]


def clamp_segments(widths: Iterable[float], limit: float = 100.0) -> List[float]:
    """Clamp stacked widths so their running sum never passes ``limit``."""
    clamped: List[float] = []
    used = 0.0
    for width in widths:
        visible = max(0.0, min(width, limit - used))
        clamped.append(visible)
        used += visible
    return clamped


__all__ = [
    "WARNING_PCT",
    "CRITICAL_PCT",
    "Tier",
    "BudgetStatus",
    "BudgetSegment",
    "tier_for",
    "evaluate",
    "segment_widths",
    "clamp_segments",
]
