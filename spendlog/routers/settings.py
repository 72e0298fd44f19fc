from fastapi import APIRouter, Depends
from pydantic import BaseModel

from spendlog.db.dal import Database
from spendlog.models import BudgetConfiguration, BudgetConfigurationUpdate
from spendlog.services.scope_context import get_db, get_scope_id

router = APIRouter(prefix="/settings", tags=["settings"])


class RekeyResult(BaseModel):
    updated: int
    total_expenses: int
    week_start_day: int


@router.get("", response_model=BudgetConfiguration, summary="Current budget settings")
async def get_budget_settings(
    scope_id: str = Depends(get_scope_id),
    db: Database = Depends(get_db),
):
    return db.get_settings(scope_id)


@router.patch(
    "", response_model=BudgetConfiguration, summary="Update budget settings (partial)"
)
async def patch_budget_settings(
    payload: BudgetConfigurationUpdate,
    scope_id: str = Depends(get_scope_id),
    db: Database = Depends(get_db),
):
    return db.set_settings(
        scope_id,
        weekly_budget_minor_units=payload.weekly_budget_minor_units,
        week_start_day=payload.week_start_day,
    )


@router.post("/reset", response_model=BudgetConfiguration, summary="Restore defaults")
async def reset_budget_settings(
    scope_id: str = Depends(get_scope_id),
    db: Database = Depends(get_db),
):
    return db.reset_settings(scope_id)


@router.post(
    "/rekey-weeks",
    response_model=RekeyResult,
    summary="Recompute stored week keys with the current week start",
)
async def rekey_weeks(
    scope_id: str = Depends(get_scope_id),
    db: Database = Depends(get_db),
):
    updated = db.rekey_weeks(scope_id)
    return RekeyResult(
        updated=updated,
        total_expenses=db.count_expenses(scope_id),
        week_start_day=db.get_settings(scope_id).week_start_day,
    )
