from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _dedupe_ids(ids: Optional[List[str]]) -> Optional[List[str]]:
    if ids is None:
        return None
    seen = set()
    unique = []
    for raw in ids:
        cid = str(raw).strip()
        if cid and cid not in seen:
            seen.add(cid)
            unique.append(cid)
    return unique


class ExpenseIn(BaseModel):
    amount_minor_units: int = Field(..., gt=0)
    description: str
    occurred_at: Optional[datetime] = None  # defaults to now on create
    category_ids: List[str] = Field(default_factory=list)

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("description cannot be empty")
        return v.strip()

    @field_validator("category_ids")
    @classmethod
    def unique_category_ids(cls, v: List[str]) -> List[str]:
        return _dedupe_ids(v) or []


class ExpenseUpdateIn(BaseModel):
    """Partial update model.

    All fields optional; at least one must be provided. Sending an empty
    ``category_ids`` list clears the categories.
    """

    amount_minor_units: Optional[int] = Field(None, gt=0)
    description: Optional[str] = None
    occurred_at: Optional[datetime] = None
    category_ids: Optional[List[str]] = None

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("description cannot be empty")
        return v.strip() if v is not None else None

    @field_validator("category_ids")
    @classmethod
    def unique_category_ids(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _dedupe_ids(v)

    @model_validator(mode="after")
    def at_least_one(self) -> "ExpenseUpdateIn":
        if not self.model_fields_set & {
            "amount_minor_units",
            "description",
            "occurred_at",
            "category_ids",
        }:
            raise ValueError("at least one field must be provided for update")
        return self


class ExpenseRecord(BaseModel):
    """Read-only snapshot of a stored expense."""

    model_config = ConfigDict(frozen=True)

    id: str
    amount_minor_units: int
    description: str
    occurred_at: datetime
    created_at: datetime
    updated_at: Optional[datetime] = None
    category_ids: Tuple[str, ...] = ()
    day_key: str
    week_key: str
    month_key: str
