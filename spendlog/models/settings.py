from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BudgetConfiguration(BaseModel):
    model_config = ConfigDict(frozen=True)

    weekly_budget_minor_units: int = Field(..., gt=0)
    week_start_day: int = Field(..., ge=0, le=6)  # 0 = Sunday .. 6 = Saturday


class BudgetConfigurationUpdate(BaseModel):
    weekly_budget_minor_units: Optional[int] = Field(None, gt=0)
    week_start_day: Optional[int] = Field(None, ge=0, le=6)

    @model_validator(mode="after")
    def _at_least_one(self) -> "BudgetConfigurationUpdate":
        if self.weekly_budget_minor_units is None and self.week_start_day is None:
            raise ValueError("at least one field must be provided")
        return self
