"""Aggregation over expense snapshots.

Functions here take already-fetched, read-only collections of
``ExpenseRecord`` and return new values; nothing is mutated and no I/O
happens. Records with a non-positive amount (never accepted by the store,
but possible in foreign snapshots) contribute 0 to every total.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from fractions import Fraction
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from spendlog.models import (
    NEUTRAL_COLOR,
    UNCATEGORIZED_NAME,
    Category,
    ColorToken,
    ExpenseRecord,
)
from spendlog.services.calendar_keys import day_key, week_key
from spendlog.services.money import round_half_up


@dataclass(frozen=True)
class CategoryTotal:
    category_id: Optional[str]  # None for the uncategorized bucket
    name: str
    color_token: ColorToken
    total_minor_units: int

    @property
    def color_hex(self) -> str:
        return self.color_token.hex


def _contribution(record: ExpenseRecord) -> int:
    return record.amount_minor_units if record.amount_minor_units > 0 else 0


def total(records: Iterable[ExpenseRecord]) -> int:
    return sum(_contribution(r) for r in records)


def _newest_first(records: Iterable[ExpenseRecord]) -> List[ExpenseRecord]:
    return sorted(records, key=lambda r: r.created_at, reverse=True)


def group_by_day_key(records: Iterable[ExpenseRecord]) -> Dict[str, List[ExpenseRecord]]:
    """Map day key -> that day's records, most recently created first."""
    grouped: Dict[str, List[ExpenseRecord]] = {}
    for record in _newest_first(records):
        grouped.setdefault(record.day_key, []).append(record)
    return grouped


def category_breakdown(
    records: Iterable[ExpenseRecord], categories: Iterable[Category]
) -> List[CategoryTotal]:
    """Split every record evenly across its categories and total per category.

    Shares are accumulated exactly and each bucket is rounded once at the
    end, so the buckets reconstruct the split records within one minor unit
    per bucket. Records without categories go to the uncategorized bucket.
    Ids not present in ``categories`` are skipped; buckets that total zero
    are omitted. Ordered by total descending, then name ascending.
    """
    catalog = {c.id: c for c in categories}
    shares: Dict[Optional[str], Fraction] = {}
    for record in records:
        amount = _contribution(record)
        if not amount:
            continue
        if not record.category_ids:
            shares[None] = shares.get(None, Fraction(0)) + amount
            continue
        share = Fraction(amount, len(record.category_ids))
        for cid in record.category_ids:
            shares[cid] = shares.get(cid, Fraction(0)) + share

    result: List[CategoryTotal] = []
    for cid, accumulated in shares.items():
        rounded = round_half_up(accumulated)
        if rounded == 0:
            continue
        if cid is None:
            result.append(
                CategoryTotal(None, UNCATEGORIZED_NAME, NEUTRAL_COLOR, rounded)
            )
            continue
        category = catalog.get(cid)
        if category is None:
            continue
        result.append(
            CategoryTotal(cid, category.name, category.color_token, rounded)
        )
    result.sort(key=lambda item: (-item.total_minor_units, item.name))
    return result


def weekly_totals_within_month(
    records: Iterable[ExpenseRecord],
    week_keys_in_order: Sequence[str],
    week_start_day: Optional[int] = None,
) -> Dict[str, int]:
    """Total per week key, in the supplied order; missing weeks map to 0.

    Matches the stored ``week_key`` unless ``week_start_day`` is given, in
    which case each record's key is derived from ``occurred_at``.
    """
    totals: Dict[str, int] = {key: 0 for key in week_keys_in_order}
    for record in records:
        if week_start_day is None:
            key = record.week_key
        else:
            key = week_key(record.occurred_at, week_start_day)
        if key in totals:
            totals[key] += _contribution(record)
    return totals


def filter_by_categories(
    records: Iterable[ExpenseRecord], category_ids: Iterable[str]
) -> List[ExpenseRecord]:
    """Records carrying any of ``category_ids``; all records when none given."""
    wanted = set(category_ids)
    if not wanted:
        return list(records)
    return [r for r in records if wanted.intersection(r.category_ids)]


def sort_by_day(
    records: Iterable[ExpenseRecord], newest_first: bool = True
) -> List[ExpenseRecord]:
    """Order by day; within a day the most recently created comes first."""
    ordered = _newest_first(records)
    # stable sort keeps the created_at ordering inside each day
    return sorted(ordered, key=lambda r: r.day_key, reverse=newest_first)


def daily_totals(
    records: Iterable[ExpenseRecord], days: Iterable[date]
) -> List[Tuple[str, int]]:
    by_day: Dict[str, int] = {}
    for record in records:
        by_day[record.day_key] = by_day.get(record.day_key, 0) + _contribution(record)
    return [(day_key(d), by_day.get(day_key(d), 0)) for d in days]


__all__ = [
    "CategoryTotal",
    "total",
    "group_by_day_key",
    "category_breakdown",
    "weekly_totals_within_month",
    "filter_by_categories",
    "sort_by_day",
    "daily_totals",
]
