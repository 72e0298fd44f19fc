from datetime import date
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel

from spendlog.db.dal import Database
from spendlog.models import ColorToken, ExpenseRecord
from spendlog.services.aggregation import CategoryTotal, category_breakdown, total
from spendlog.services.budget_utils import (
    BudgetSegment,
    BudgetStatus,
    Tier,
    clamp_segments,
    evaluate,
)
from spendlog.services.calendar_keys import (
    day_key,
    month_key,
    next_day,
    next_month,
    next_week,
    previous_day,
    previous_month,
    previous_week,
    week_end,
    week_start,
)
from spendlog.services.money import format_currency
from spendlog.services.scope_context import get_db, get_scope_id
from spendlog.services.summaries import (
    DayExpenses,
    build_day,
    build_month,
    build_week,
)

router = APIRouter(prefix="/summaries", tags=["summaries"])


# Response models --------------------------------------------------


class DayOut(BaseModel):
    date: date
    day_key: str
    day_name: str
    expenses: List[ExpenseRecord]
    total_minor_units: int
    total_display: str


class CategoryTotalOut(BaseModel):
    category_id: Optional[str]
    name: str
    color_token: ColorToken
    color_hex: str
    total_minor_units: int
    total_display: str


class BudgetOut(BaseModel):
    spent_minor_units: int
    budget_minor_units: int
    percentage: float
    remaining_or_over_minor_units: int
    is_over: bool
    tier: Tier
    remaining_display: str


class SegmentOut(BaseModel):
    category_id: Optional[str]
    name: str
    color_hex: str
    width: float
    visible_width: float


class Navigation(BaseModel):
    previous: date
    next: date


class WeekOut(BaseModel):
    week_key: str
    start: date
    end: date
    label: str
    days: List[DayOut]
    total_minor_units: int
    total_display: str
    budget: BudgetOut
    segments: List[SegmentOut]
    breakdown: List[CategoryTotalOut]
    navigation: Navigation


class WeekTotalOut(BaseModel):
    week_key: str
    total_minor_units: int


class MonthOut(BaseModel):
    month_key: str
    start: date
    end: date
    label: str
    weeks: List[WeekTotalOut]
    days: List[DayOut]
    total_minor_units: int
    total_display: str
    breakdown: List[CategoryTotalOut]
    navigation: Navigation


class DaySummaryOut(DayOut):
    navigation: Navigation


# Helpers ----------------------------------------------------------


def _symbol(request: Request) -> str:
    return request.app.state.settings.currency_symbol


def _day_out(day: DayExpenses, symbol: str) -> DayOut:
    return DayOut(
        date=day.date,
        day_key=day.day_key,
        day_name=day.day_name,
        expenses=list(day.expenses),
        total_minor_units=day.total_minor_units,
        total_display=format_currency(day.total_minor_units, symbol),
    )


def _breakdown_out(items, symbol: str) -> List[CategoryTotalOut]:
    return [
        CategoryTotalOut(
            category_id=i.category_id,
            name=i.name,
            color_token=i.color_token,
            color_hex=i.color_hex,
            total_minor_units=i.total_minor_units,
            total_display=format_currency(i.total_minor_units, symbol),
        )
        for i in items
    ]


def _budget_out(status: BudgetStatus, symbol: str) -> BudgetOut:
    return BudgetOut(
        spent_minor_units=status.spent_minor_units,
        budget_minor_units=status.budget_minor_units,
        percentage=status.percentage,
        remaining_or_over_minor_units=status.remaining_or_over_minor_units,
        is_over=status.is_over,
        tier=status.tier,
        remaining_display=format_currency(
            abs(status.remaining_or_over_minor_units), symbol
        ),
    )


def _segments_out(segments: List[BudgetSegment]) -> List[SegmentOut]:
    visible = clamp_segments(s.width for s in segments)
    return [
        SegmentOut(
            category_id=s.category_id,
            name=s.name,
            color_hex=s.color_hex,
            width=s.width,
            visible_width=v,
        )
        for s, v in zip(segments, visible)
    ]


# Routes -----------------------------------------------------------


@router.get("/day", response_model=DaySummaryOut, summary="Expenses of one day")
async def day_summary(
    request: Request,
    on: Optional[date] = Query(None, alias="date", description="Defaults to today"),
    scope_id: str = Depends(get_scope_id),
    db: Database = Depends(get_db),
):
    d = on or date.today()
    day = build_day(db.fetch_by_day_key(scope_id, day_key(d)), d)
    base = _day_out(day, _symbol(request))
    return DaySummaryOut(
        **base.model_dump(),
        navigation=Navigation(previous=previous_day(d), next=next_day(d)),
    )


@router.get("/week", response_model=WeekOut, summary="Week view with budget indicator")
async def week_summary(
    request: Request,
    on: Optional[date] = Query(
        None, alias="date", description="Any day in the week (defaults to today)"
    ),
    scope_id: str = Depends(get_scope_id),
    db: Database = Depends(get_db),
):
    d = on or date.today()
    config = db.get_settings(scope_id)
    w = config.week_start_day
    records = db.fetch_by_date_range(scope_id, week_start(d, w), week_end(d, w))
    week = build_week(records, d, config, db.list_categories(scope_id))
    symbol = _symbol(request)
    return WeekOut(
        week_key=week.week_key,
        start=week.start,
        end=week.end,
        label=week.label,
        days=[_day_out(x, symbol) for x in week.days],
        total_minor_units=week.total_minor_units,
        total_display=format_currency(week.total_minor_units, symbol),
        budget=_budget_out(week.budget, symbol),
        segments=_segments_out(list(week.segments)),
        breakdown=_breakdown_out(week.breakdown, symbol),
        navigation=Navigation(previous=previous_week(d), next=next_week(d)),
    )


@router.get("/month", response_model=MonthOut, summary="Month view with weekly totals")
async def month_summary(
    request: Request,
    on: Optional[date] = Query(
        None, alias="date", description="Any day in the month (defaults to today)"
    ),
    scope_id: str = Depends(get_scope_id),
    db: Database = Depends(get_db),
):
    d = on or date.today()
    config = db.get_settings(scope_id)
    records = db.fetch_by_month_key(scope_id, month_key(d))
    month = build_month(records, d, config, db.list_categories(scope_id))
    symbol = _symbol(request)
    return MonthOut(
        month_key=month.month_key,
        start=month.start,
        end=month.end,
        label=month.label,
        weeks=[
            WeekTotalOut(week_key=w.week_key, total_minor_units=w.total_minor_units)
            for w in month.weeks
        ],
        days=[_day_out(x, symbol) for x in month.days],
        total_minor_units=month.total_minor_units,
        total_display=format_currency(month.total_minor_units, symbol),
        breakdown=_breakdown_out(month.breakdown, symbol),
        navigation=Navigation(previous=previous_month(d), next=next_month(d)),
    )


@router.get(
    "/categories",
    response_model=List[CategoryTotalOut],
    summary="Per-category totals over a date range",
)
async def categories_summary(
    request: Request,
    start: date = Query(..., description="Range start inclusive"),
    end: date = Query(..., description="Range end inclusive"),
    kind: Optional[Literal["tag", "bank"]] = Query(
        None, description="Only tags or only banks"
    ),
    scope_id: str = Depends(get_scope_id),
    db: Database = Depends(get_db),
):
    if start > end:
        raise HTTPException(status_code=400, detail="start cannot be after end")
    records = db.fetch_by_date_range(scope_id, start, end)
    items: List[CategoryTotal] = category_breakdown(
        records, db.list_categories(scope_id, kind=kind)
    )
    return _breakdown_out(items, _symbol(request))


@router.get("/budget", response_model=BudgetOut, summary="Evaluate a spend amount")
async def budget_summary(
    request: Request,
    spent: Optional[int] = Query(
        None, ge=0, description="Spent minor units (defaults to this week's total)"
    ),
    budget: Optional[int] = Query(
        None, description="Budget minor units (defaults to the weekly budget)"
    ),
    scope_id: str = Depends(get_scope_id),
    db: Database = Depends(get_db),
):
    config = db.get_settings(scope_id)
    if spent is None:
        today = date.today()
        w = config.week_start_day
        spent = total(
            db.fetch_by_date_range(scope_id, week_start(today, w), week_end(today, w))
        )
    if budget is None:
        budget = config.weekly_budget_minor_units
    return _budget_out(evaluate(spent, budget), _symbol(request))
