"""Data Access Layer with per-scope isolation.

Responsibilities
----------------
- Persist expenses with their derived day/week/month bucket keys, computed
  with the scope's week-start setting at write time.
- CRUD for categories (tags and banks), assigning palette colors in rotation
  and tracking recency of use.
- Per-scope budget configuration with defaults when nothing is stored.
- Notify registered listeners after every committed expense/category write.

``Database`` satisfies the ExpenseStore, CategoryStore and SettingsStore
contracts declared in ``spendlog.services.stores``.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterator, List, Optional, Sequence

from spendlog.core.errors import NotFoundError, ValidationError
from spendlog.models import (
    CATEGORY_KINDS,
    CATEGORY_PALETTE,
    BudgetConfiguration,
    Category,
    ColorToken,
    ExpenseIn,
    ExpenseRecord,
)
from spendlog.services.calendar_keys import bucket_keys, day_key, week_key

DEFAULT_WEEKLY_BUDGET = 25000
DEFAULT_WEEK_START_DAY = 1
EXPENSE_ORDER_SQL = "ORDER BY day_key ASC, created_at DESC, id ASC"
_UNSET = object()

logger = logging.getLogger("spendlog.db")

ChangeListener = Callable[[str], None]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _local_now() -> datetime:
    # same clock as the date.today() that "today" views default to
    return datetime.now().astimezone()


def _parse_ts(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    return datetime.fromisoformat(raw.replace("Z", "+00:00"))


class Database:
    def __init__(
        self,
        db_path: Path,
        defaults: Optional[BudgetConfiguration] = None,
    ):
        self.db_path = db_path
        self.defaults = defaults or BudgetConfiguration(
            weekly_budget_minor_units=DEFAULT_WEEKLY_BUDGET,
            week_start_day=DEFAULT_WEEK_START_DAY,
        )
        self._listeners: List[ChangeListener] = []

    # ------------------------------------------------------------------
    # Connection helpers
    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    @staticmethod
    def _require_scope(scope_id: str) -> str:
        if not scope_id or not str(scope_id).strip():
            raise ValidationError("scope_id", "scope id is required")
        return str(scope_id).strip()

    # ------------------------------------------------------------------
    # Change notification
    def add_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, scope_id: str) -> None:
        for listener in list(self._listeners):
            listener(scope_id)

    # ------------------------------------------------------------------
    # Settings (SettingsStore)
    def get_settings(self, scope_id: str) -> BudgetConfiguration:
        scope = self._require_scope(scope_id)
        with self._connect() as conn:
            row = conn.execute(
                "SELECT weekly_budget_minor, week_start_day FROM user_settings WHERE scope_id = ?",
                (scope,),
            ).fetchone()
        if not row:
            return self.defaults
        return BudgetConfiguration(
            weekly_budget_minor_units=row["weekly_budget_minor"],
            week_start_day=row["week_start_day"],
        )

    def set_settings(
        self,
        scope_id: str,
        *,
        weekly_budget_minor_units: Optional[int] = None,
        week_start_day: Optional[int] = None,
    ) -> BudgetConfiguration:
        """Merge the given fields into the stored configuration.

        Stored week keys are left as they are; see ``rekey_weeks``.
        """
        current = self.get_settings(scope_id)
        budget = (
            current.weekly_budget_minor_units
            if weekly_budget_minor_units is None
            else weekly_budget_minor_units
        )
        start_day = current.week_start_day if week_start_day is None else week_start_day
        if isinstance(budget, bool) or not isinstance(budget, int) or budget <= 0:
            raise ValidationError("weekly_budget_minor_units", "must be a positive integer")
        if isinstance(start_day, bool) or not isinstance(start_day, int) or not 0 <= start_day <= 6:
            raise ValidationError("week_start_day", "must be between 0 and 6")
        return self._write_settings(scope_id, budget, start_day)

    def reset_settings(self, scope_id: str) -> BudgetConfiguration:
        return self._write_settings(
            scope_id,
            self.defaults.weekly_budget_minor_units,
            self.defaults.week_start_day,
        )

    def _write_settings(
        self, scope_id: str, budget: int, start_day: int
    ) -> BudgetConfiguration:
        scope = self._require_scope(scope_id)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO user_settings (scope_id, weekly_budget_minor, week_start_day, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(scope_id) DO UPDATE SET
                    weekly_budget_minor = excluded.weekly_budget_minor,
                    week_start_day = excluded.week_start_day,
                    updated_at = excluded.updated_at
                """,
                (scope, budget, start_day, _utc_now().isoformat()),
            )
        logger.info("settings updated budget=%s week_start_day=%s", budget, start_day)
        return BudgetConfiguration(
            weekly_budget_minor_units=budget, week_start_day=start_day
        )

    # ------------------------------------------------------------------
    # Expenses (ExpenseStore)
    @staticmethod
    def _row_to_expense(row: sqlite3.Row) -> ExpenseRecord:
        return ExpenseRecord(
            id=row["id"],
            amount_minor_units=row["amount_minor"],
            description=row["description"],
            occurred_at=datetime.fromisoformat(row["occurred_at"]),
            created_at=_parse_ts(row["created_at"]),
            updated_at=_parse_ts(row["updated_at"]),
            category_ids=tuple(json.loads(row["category_ids"] or "[]")),
            day_key=row["day_key"],
            week_key=row["week_key"],
            month_key=row["month_key"],
        )

    def _select_expenses(
        self, scope_id: str, where: str, params: Sequence[Any]
    ) -> List[ExpenseRecord]:
        scope = self._require_scope(scope_id)
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM expenses WHERE scope_id = ? AND {where} {EXPENSE_ORDER_SQL}",
                (scope, *params),
            ).fetchall()
        return [self._row_to_expense(r) for r in rows]

    def get_expense(self, scope_id: str, expense_id: str) -> Optional[ExpenseRecord]:
        found = self._select_expenses(scope_id, "id = ?", (expense_id,))
        return found[0] if found else None

    def fetch_by_day_key(self, scope_id: str, key: str) -> List[ExpenseRecord]:
        return self._select_expenses(scope_id, "day_key = ?", (key,))

    def fetch_by_week_key(self, scope_id: str, key: str) -> List[ExpenseRecord]:
        """Expenses whose stored week key matches (week start at write time)."""
        return self._select_expenses(scope_id, "week_key = ?", (key,))

    def fetch_by_month_key(self, scope_id: str, key: str) -> List[ExpenseRecord]:
        return self._select_expenses(scope_id, "month_key = ?", (key,))

    def fetch_by_date_range(
        self, scope_id: str, start: date, end: date
    ) -> List[ExpenseRecord]:
        return self._select_expenses(
            scope_id, "day_key >= ? AND day_key <= ?", (day_key(start), day_key(end))
        )

    def _validate_amount(self, amount: Any) -> int:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError("amount_minor_units", "must be a positive integer")
        return amount

    def _validate_description(self, description: Any) -> str:
        if not isinstance(description, str) or not description.strip():
            raise ValidationError("description", "cannot be empty")
        return description.strip()

    def _validate_category_ids(
        self, conn: sqlite3.Connection, scope: str, category_ids: Sequence[str]
    ) -> List[str]:
        unique: List[str] = []
        for cid in category_ids:
            if cid not in unique:
                unique.append(cid)
        if not unique:
            return unique
        placeholders = ",".join("?" for _ in unique)
        rows = conn.execute(
            f"SELECT id FROM categories WHERE scope_id = ? AND id IN ({placeholders})",
            (scope, *unique),
        ).fetchall()
        known = {r["id"] for r in rows}
        missing = [cid for cid in unique if cid not in known]
        if missing:
            raise ValidationError("category_ids", f"unknown category ids: {missing}")
        return unique

    def _touch_categories(
        self, conn: sqlite3.Connection, scope: str, category_ids: Sequence[str], when: datetime
    ) -> None:
        for cid in category_ids:
            conn.execute(
                "UPDATE categories SET last_used_at = ? WHERE scope_id = ? AND id = ?",
                (when.isoformat(), scope, cid),
            )

    def create_expense(self, scope_id: str, expense: ExpenseIn) -> str:
        scope = self._require_scope(scope_id)
        amount = self._validate_amount(expense.amount_minor_units)
        description = self._validate_description(expense.description)
        now = _utc_now()
        occurred_at = expense.occurred_at or _local_now()
        start_day = self.get_settings(scope).week_start_day
        d_key, w_key, m_key = bucket_keys(occurred_at, start_day)
        expense_id = uuid.uuid4().hex
        with self._connect() as conn:
            category_ids = self._validate_category_ids(conn, scope, expense.category_ids)
            conn.execute(
                """
                INSERT INTO expenses (
                    id, scope_id, amount_minor, description, occurred_at,
                    day_key, week_key, month_key, category_ids, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    expense_id,
                    scope,
                    amount,
                    description,
                    occurred_at.isoformat(),
                    d_key,
                    w_key,
                    m_key,
                    json.dumps(category_ids),
                    now.isoformat(),
                    now.isoformat(),
                ),
            )
            self._touch_categories(conn, scope, category_ids, now)
        logger.debug(
            "expense %s created on %s",
            expense_id,
            d_key,
            extra={"expense_id": expense_id, "day_key": d_key, "week_key": w_key},
        )
        self._notify(scope)
        return expense_id

    def update_expense(
        self,
        scope_id: str,
        expense_id: str,
        *,
        amount_minor_units: Any = _UNSET,
        description: Any = _UNSET,
        occurred_at: Any = _UNSET,
        category_ids: Any = _UNSET,
    ) -> None:
        scope = self._require_scope(scope_id)
        updates: List[str] = []
        params: List[Any] = []
        now = _utc_now()

        if amount_minor_units is not _UNSET:
            updates.append("amount_minor = ?")
            params.append(self._validate_amount(amount_minor_units))
        if description is not _UNSET:
            updates.append("description = ?")
            params.append(self._validate_description(description))
        if occurred_at is not _UNSET:
            if not isinstance(occurred_at, datetime):
                raise ValidationError("occurred_at", "must be a date-time")
            start_day = self.get_settings(scope).week_start_day
            d_key, w_key, m_key = bucket_keys(occurred_at, start_day)
            updates.extend(
                ["occurred_at = ?", "day_key = ?", "week_key = ?", "month_key = ?"]
            )
            params.extend([occurred_at.isoformat(), d_key, w_key, m_key])

        with self._connect() as conn:
            exists = conn.execute(
                "SELECT 1 FROM expenses WHERE scope_id = ? AND id = ?",
                (scope, expense_id),
            ).fetchone()
            if not exists:
                raise NotFoundError("expense", expense_id)
            touched: List[str] = []
            if category_ids is not _UNSET:
                touched = self._validate_category_ids(conn, scope, category_ids or [])
                updates.append("category_ids = ?")
                params.append(json.dumps(touched))
            if not updates:
                return
            updates.append("updated_at = ?")
            params.append(now.isoformat())
            conn.execute(
                f"UPDATE expenses SET {', '.join(updates)} WHERE scope_id = ? AND id = ?",
                (*params, scope, expense_id),
            )
            self._touch_categories(conn, scope, touched, now)
        logger.debug("expense %s updated", expense_id, extra={"expense_id": expense_id})
        self._notify(scope)

    def delete_expense(self, scope_id: str, expense_id: str) -> None:
        scope = self._require_scope(scope_id)
        with self._connect() as conn:
            cur = conn.execute(
                "DELETE FROM expenses WHERE scope_id = ? AND id = ?",
                (scope, expense_id),
            )
            if cur.rowcount == 0:
                raise NotFoundError("expense", expense_id)
        logger.debug("expense %s deleted", expense_id, extra={"expense_id": expense_id})
        self._notify(scope)

    def rekey_weeks(self, scope_id: str) -> int:
        """Recompute stored week keys with the scope's current week start.

        Returns the number of expenses whose key changed.
        """
        scope = self._require_scope(scope_id)
        start_day = self.get_settings(scope).week_start_day
        changed = 0
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id, occurred_at, week_key FROM expenses WHERE scope_id = ?",
                (scope,),
            ).fetchall()
            for row in rows:
                fresh = week_key(datetime.fromisoformat(row["occurred_at"]), start_day)
                if fresh != row["week_key"]:
                    conn.execute(
                        "UPDATE expenses SET week_key = ? WHERE id = ?",
                        (fresh, row["id"]),
                    )
                    changed += 1
        logger.info("rekeyed %s expenses for week start %s", changed, start_day)
        if changed:
            self._notify(scope)
        return changed

    # ------------------------------------------------------------------
    # Categories (CategoryStore)
    @staticmethod
    def _row_to_category(row: sqlite3.Row) -> Category:
        return Category(
            id=row["id"],
            name=row["name"],
            kind=row["kind"],
            color_token=ColorToken.resolve(row["color_token"]),
            last_used_at=_parse_ts(row["last_used_at"]),
            created_at=_parse_ts(row["created_at"]),
        )

    def list_categories(
        self, scope_id: str, kind: Optional[str] = None, order: str = "name"
    ) -> List[Category]:
        scope = self._require_scope(scope_id)
        clauses = ["scope_id = ?"]
        params: List[Any] = [scope]
        if kind is not None:
            clauses.append("kind = ?")
            params.append(kind)
        if order == "recent":
            order_sql = "ORDER BY last_used_at IS NULL, last_used_at DESC, name COLLATE NOCASE"
        else:
            order_sql = "ORDER BY name COLLATE NOCASE, id"
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM categories WHERE {' AND '.join(clauses)} {order_sql}",
                params,
            ).fetchall()
        return [self._row_to_category(r) for r in rows]

    def get_category(self, scope_id: str, category_id: str) -> Optional[Category]:
        scope = self._require_scope(scope_id)
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM categories WHERE scope_id = ? AND id = ?",
                (scope, category_id),
            ).fetchone()
        return self._row_to_category(row) if row else None

    def _ensure_unique_name(
        self,
        conn: sqlite3.Connection,
        scope: str,
        kind: str,
        name: str,
        exclude_id: Optional[str] = None,
    ) -> None:
        row = conn.execute(
            "SELECT id FROM categories WHERE scope_id = ? AND kind = ? AND name = ?",
            (scope, kind, name),
        ).fetchone()
        if row and row["id"] != exclude_id:
            raise ValidationError("name", f"a {kind} named '{name}' already exists")

    def create_category(self, scope_id: str, name: str, kind: str = "tag") -> str:
        scope = self._require_scope(scope_id)
        if kind not in CATEGORY_KINDS:
            raise ValidationError("kind", f"must be one of {CATEGORY_KINDS}")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("name", "cannot be empty")
        clean = name.strip()
        category_id = uuid.uuid4().hex
        with self._connect() as conn:
            self._ensure_unique_name(conn, scope, kind, clean)
            count = conn.execute(
                "SELECT COUNT(*) FROM categories WHERE scope_id = ?", (scope,)
            ).fetchone()[0]
            color = CATEGORY_PALETTE[int(count) % len(CATEGORY_PALETTE)]
            conn.execute(
                """
                INSERT INTO categories (id, scope_id, name, kind, color_token, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (category_id, scope, clean, kind, color.value, _utc_now().isoformat()),
            )
        logger.debug("%s %s created with color %s", kind, category_id, color.value)
        self._notify(scope)
        return category_id

    def update_category(
        self,
        scope_id: str,
        category_id: str,
        *,
        name: Optional[str] = None,
        color_token: Optional[ColorToken] = None,
    ) -> None:
        scope = self._require_scope(scope_id)
        updates: List[str] = []
        params: List[Any] = []
        with self._connect() as conn:
            row = conn.execute(
                "SELECT kind FROM categories WHERE scope_id = ? AND id = ?",
                (scope, category_id),
            ).fetchone()
            if not row:
                raise NotFoundError("category", category_id)
            if name is not None:
                if not name.strip():
                    raise ValidationError("name", "cannot be empty")
                self._ensure_unique_name(conn, scope, row["kind"], name.strip(), category_id)
                updates.append("name = ?")
                params.append(name.strip())
            if color_token is not None:
                token = ColorToken(color_token)
                if token is ColorToken.GRAY:
                    raise ValidationError("color_token", "gray-500 is reserved")
                updates.append("color_token = ?")
                params.append(token.value)
            if not updates:
                return
            conn.execute(
                f"UPDATE categories SET {', '.join(updates)} WHERE scope_id = ? AND id = ?",
                (*params, scope, category_id),
            )
        self._notify(scope)

    def delete_category(self, scope_id: str, category_id: str) -> None:
        """Delete a category and drop its id from the scope's expenses."""
        scope = self._require_scope(scope_id)
        with self._connect() as conn:
            cur = conn.execute(
                "DELETE FROM categories WHERE scope_id = ? AND id = ?",
                (scope, category_id),
            )
            if cur.rowcount == 0:
                raise NotFoundError("category", category_id)
            rows = conn.execute(
                "SELECT id, category_ids FROM expenses WHERE scope_id = ? AND category_ids LIKE ?",
                (scope, f'%"{category_id}"%'),
            ).fetchall()
            for row in rows:
                remaining = [c for c in json.loads(row["category_ids"]) if c != category_id]
                conn.execute(
                    "UPDATE expenses SET category_ids = ? WHERE id = ?",
                    (json.dumps(remaining), row["id"]),
                )
        logger.debug(
            "category %s deleted (%s expenses updated)",
            category_id,
            len(rows),
            extra={"category_id": category_id},
        )
        self._notify(scope)

    # ------------------------------------------------------------------
    # Housekeeping
    def count_expenses(self, scope_id: str) -> int:
        scope = self._require_scope(scope_id)
        with self._connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM expenses WHERE scope_id = ?", (scope,)
            ).fetchone()
        return int(row[0] if row and row[0] is not None else 0)
