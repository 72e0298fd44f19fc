"""Persistence contracts consumed by the service and router layers.

``spendlog.db.dal.Database`` implements all three. Keeping them as
Protocols lets the live feed and summary builders accept any object with
the same methods (tests use the real SQLite store with a temp path).
"""

from __future__ import annotations

from datetime import date
from typing import Any, List, Optional, Protocol

from spendlog.models import (
    BudgetConfiguration,
    Category,
    ColorToken,
    ExpenseIn,
    ExpenseRecord,
)


class ExpenseStore(Protocol):
    def get_expense(self, scope_id: str, expense_id: str) -> Optional[ExpenseRecord]: ...

    def fetch_by_day_key(self, scope_id: str, key: str) -> List[ExpenseRecord]: ...

    def fetch_by_week_key(self, scope_id: str, key: str) -> List[ExpenseRecord]: ...

    def fetch_by_month_key(self, scope_id: str, key: str) -> List[ExpenseRecord]: ...

    def fetch_by_date_range(
        self, scope_id: str, start: date, end: date
    ) -> List[ExpenseRecord]: ...

    def create_expense(self, scope_id: str, expense: ExpenseIn) -> str: ...

    def update_expense(self, scope_id: str, expense_id: str, **fields: Any) -> None: ...

    def delete_expense(self, scope_id: str, expense_id: str) -> None: ...

    def rekey_weeks(self, scope_id: str) -> int: ...


class CategoryStore(Protocol):
    def list_categories(
        self, scope_id: str, kind: Optional[str] = None, order: str = "name"
    ) -> List[Category]: ...

    def get_category(self, scope_id: str, category_id: str) -> Optional[Category]: ...

    def create_category(self, scope_id: str, name: str, kind: str = "tag") -> str: ...

    def update_category(
        self,
        scope_id: str,
        category_id: str,
        *,
        name: Optional[str] = None,
        color_token: Optional[ColorToken] = None,
    ) -> None: ...

    def delete_category(self, scope_id: str, category_id: str) -> None: ...


class SettingsStore(Protocol):
    def get_settings(self, scope_id: str) -> BudgetConfiguration: ...

    def set_settings(
        self,
        scope_id: str,
        *,
        weekly_budget_minor_units: Optional[int] = None,
        week_start_day: Optional[int] = None,
    ) -> BudgetConfiguration: ...

    def reset_settings(self, scope_id: str) -> BudgetConfiguration: ...


__all__ = ["ExpenseStore", "CategoryStore", "SettingsStore"]
