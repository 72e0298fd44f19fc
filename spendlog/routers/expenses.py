import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from spendlog.core.errors import NotFoundError, ValidationError
from spendlog.db.dal import Database
from spendlog.models import ExpenseIn, ExpenseRecord, ExpenseUpdateIn
from spendlog.services.aggregation import filter_by_categories, sort_by_day
from spendlog.services.calendar_keys import (
    day_key,
    month_key,
    parse_month_key,
    parse_week_key,
)
from spendlog.services.money import parse_to_minor_units
from spendlog.services.scope_context import get_db, get_scope_id

router = APIRouter(prefix="/expenses", tags=["expenses"])
logger = logging.getLogger("spendlog.expenses")


@router.post(
    "", response_model=ExpenseRecord, status_code=201, summary="Create an expense"
)
async def create_expense(
    payload: ExpenseIn,
    scope_id: str = Depends(get_scope_id),
    db: Database = Depends(get_db),
):
    expense_id = db.create_expense(scope_id, payload)
    record = db.get_expense(scope_id, expense_id)
    if record is None:
        raise HTTPException(status_code=500, detail="expense not found after insert")
    return record


@router.get(
    "", response_model=List[ExpenseRecord], summary="List expenses for one period"
)
async def list_expenses(
    day: Optional[date] = Query(None, description="Single day"),
    week: Optional[str] = Query(None, description="Stored week key, e.g. 2026-W03"),
    month: Optional[str] = Query(None, description="Month key, e.g. 2026-01"),
    start: Optional[date] = Query(None, description="Range start inclusive"),
    end: Optional[date] = Query(None, description="Range end inclusive"),
    category_id: Optional[List[str]] = Query(
        None, description="Keep expenses carrying any of these"
    ),
    newest_first: bool = Query(True, description="Day ordering"),
    scope_id: str = Depends(get_scope_id),
    db: Database = Depends(get_db),
):
    """Fetch one period, optionally narrowed to categories.

    Exactly one of ``day``, ``week``, ``month`` or ``start``+``end`` may be
    given; with none the current month is returned.
    """
    ranged = start is not None or end is not None
    chosen = sum(1 for f in (day, week, month) if f is not None) + int(ranged)
    if chosen > 1:
        raise HTTPException(
            status_code=400, detail="use only one of day, week, month or start/end"
        )
    if ranged:
        if start is None or end is None:
            raise HTTPException(status_code=400, detail="start and end go together")
        if start > end:
            raise HTTPException(status_code=400, detail="start cannot be after end")
        records = db.fetch_by_date_range(scope_id, start, end)
    elif day is not None:
        records = db.fetch_by_day_key(scope_id, day_key(day))
    elif week is not None:
        try:
            parse_week_key(week)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        records = db.fetch_by_week_key(scope_id, week)
    else:
        key = month or month_key(date.today())
        try:
            parse_month_key(key)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        records = db.fetch_by_month_key(scope_id, key)

    records = filter_by_categories(records, category_id or [])
    return sort_by_day(records, newest_first=newest_first)


@router.post(
    "/quick",
    response_model=ExpenseRecord,
    status_code=201,
    summary="Add an expense from a shortcut link",
)
async def quick_add_expense(
    amount: str = Query(..., description='Dollar amount as typed, e.g. "12.50"'),
    name: str = Query(..., min_length=1),
    tag: Optional[str] = Query(None, description="Tag name, case-insensitive"),
    scope_id: str = Depends(get_scope_id),
    db: Database = Depends(get_db),
):
    """Create an expense dated now from query parameters.

    An unknown tag name is ignored and the expense is stored untagged.
    """
    if not name.strip():
        raise ValidationError("name", "must not be blank")
    minor_units = parse_to_minor_units(amount)
    if minor_units <= 0:
        raise ValidationError("amount", f"invalid amount {amount!r}")
    category_ids: List[str] = []
    if tag and tag.strip():
        wanted = tag.strip().casefold()
        tags = db.list_categories(scope_id, kind="tag")
        match = next((c for c in tags if c.name.casefold() == wanted), None)
        if match is not None:
            category_ids.append(match.id)
    payload = ExpenseIn(
        amount_minor_units=minor_units, description=name, category_ids=category_ids
    )
    expense_id = db.create_expense(scope_id, payload)
    logger.info(
        "quick add %s (%s tag)",
        expense_id,
        "with" if category_ids else "no",
        extra={"expense_id": expense_id},
    )
    record = db.get_expense(scope_id, expense_id)
    if record is None:
        raise HTTPException(status_code=500, detail="expense not found after insert")
    return record


@router.get("/{expense_id}", response_model=ExpenseRecord, summary="Get one expense")
async def get_expense(
    expense_id: str,
    scope_id: str = Depends(get_scope_id),
    db: Database = Depends(get_db),
):
    record = db.get_expense(scope_id, expense_id)
    if record is None:
        raise NotFoundError("expense", expense_id)
    return record


@router.patch(
    "/{expense_id}", response_model=ExpenseRecord, summary="Edit an expense (partial)"
)
async def patch_expense(
    expense_id: str,
    payload: ExpenseUpdateIn,
    scope_id: str = Depends(get_scope_id),
    db: Database = Depends(get_db),
):
    # only fields the client sent; an explicit empty category list clears them
    fields = payload.model_dump(include=payload.model_fields_set)
    db.update_expense(scope_id, expense_id, **fields)
    record = db.get_expense(scope_id, expense_id)
    if record is None:
        raise NotFoundError("expense", expense_id)
    return record


@router.delete("/{expense_id}", status_code=204, summary="Delete an expense")
async def delete_expense(
    expense_id: str,
    scope_id: str = Depends(get_scope_id),
    db: Database = Depends(get_db),
):
    db.delete_expense(scope_id, expense_id)
    return Response(status_code=204)
