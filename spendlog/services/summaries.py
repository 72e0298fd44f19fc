"""Day / week / month view payloads.

Builders take a snapshot of records (anything iterable; records outside the
requested period are ignored), the anchor date and, where weeks matter, the
scope's ``BudgetConfiguration``. Week membership is derived from each
record's ``occurred_at`` with the configuration's current week start, so a
changed setting takes effect immediately on read.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Sequence, Tuple

from spendlog.models import BudgetConfiguration, Category, ExpenseRecord
from spendlog.services import calendar_keys as ck
from spendlog.services.aggregation import (
    CategoryTotal,
    category_breakdown,
    daily_totals,
    group_by_day_key,
    total,
    weekly_totals_within_month,
)
from spendlog.services.budget_utils import (
    BudgetSegment,
    BudgetStatus,
    evaluate,
    segment_widths,
)


@dataclass(frozen=True)
class DayExpenses:
    date: date
    day_key: str
    day_name: str
    expenses: Tuple[ExpenseRecord, ...]
    total_minor_units: int


@dataclass(frozen=True)
class WeekData:
    week_key: str
    start: date
    end: date
    label: str
    days: Tuple[DayExpenses, ...]
    total_minor_units: int
    budget: BudgetStatus
    segments: Tuple[BudgetSegment, ...]
    breakdown: Tuple[CategoryTotal, ...]


@dataclass(frozen=True)
class WeekTotal:
    week_key: str
    total_minor_units: int


@dataclass(frozen=True)
class MonthData:
    month_key: str
    start: date
    end: date
    label: str
    weeks: Tuple[WeekTotal, ...]
    days: Tuple[DayExpenses, ...]
    total_minor_units: int
    breakdown: Tuple[CategoryTotal, ...]


def _within(records: Iterable[ExpenseRecord], start: date, end: date) -> List[ExpenseRecord]:
    lo, hi = ck.day_key(start), ck.day_key(end)
    return [r for r in records if lo <= r.day_key <= hi]


def _days(records: Sequence[ExpenseRecord], days: Iterable[date]) -> Tuple[DayExpenses, ...]:
    days = list(days)
    grouped = group_by_day_key(records)
    result = []
    for d, (key, day_total) in zip(days, daily_totals(records, days)):
        items = tuple(grouped.get(key, ()))
        result.append(DayExpenses(d, key, ck.day_name(d), items, day_total))
    return tuple(result)


def build_day(records: Iterable[ExpenseRecord], d: date) -> DayExpenses:
    day = d.date() if isinstance(d, datetime) else d
    return _days(_within(records, day, day), [day])[0]


def build_week(
    records: Iterable[ExpenseRecord],
    d: date,
    config: BudgetConfiguration,
    categories: Iterable[Category] = (),
) -> WeekData:
    w = config.week_start_day
    start, end = ck.week_start(d, w), ck.week_end(d, w)
    in_week = _within(records, start, end)
    spent = total(in_week)
    breakdown = category_breakdown(in_week, categories)
    return WeekData(
        week_key=ck.week_key(d, w),
        start=start,
        end=end,
        label=ck.format_week_range(start, w),
        days=_days(in_week, ck.days_in_week(d, w)),
        total_minor_units=spent,
        budget=evaluate(spent, config.weekly_budget_minor_units),
        segments=tuple(segment_widths(breakdown, config.weekly_budget_minor_units)),
        breakdown=tuple(breakdown),
    )


def build_month(
    records: Iterable[ExpenseRecord],
    d: date,
    config: BudgetConfiguration,
    categories: Iterable[Category] = (),
) -> MonthData:
    start, end = ck.month_start(d), ck.month_end(d)
    in_month = _within(records, start, end)
    keys = ck.week_keys_in_month(d, config.week_start_day)
    weekly = weekly_totals_within_month(
        in_month, keys, week_start_day=config.week_start_day
    )
    return MonthData(
        month_key=ck.month_key(d),
        start=start,
        end=end,
        label=ck.format_month(d),
        weeks=tuple(WeekTotal(k, weekly[k]) for k in keys),
        days=_days(in_month, ck.days_in_month(d)),
        total_minor_units=total(in_month),
        breakdown=tuple(category_breakdown(in_month, categories)),
    )


__all__ = [
    "DayExpenses",
    "WeekData",
    "WeekTotal",
    "MonthData",
    "build_day",
    "build_week",
    "build_month",
]
