import itertools
import os
import tempfile
from datetime import date, datetime, time, timedelta, timezone

# Point the module-level app at a throwaway directory BEFORE importing it
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="spendlog_test_"))

import pytest
from fastapi.testclient import TestClient

from spendlog.core.config import Settings
from spendlog.db.dal import Database
from spendlog.db.migrate import apply_migrations
from spendlog.main import create_app
from spendlog.models import ExpenseRecord
from spendlog.services.calendar_keys import bucket_keys

SCOPE = "user-a"
OTHER_SCOPE = "user-b"


@pytest.fixture
def settings(tmp_path) -> Settings:
    s = Settings(data_dir=tmp_path, db_filename="test.sqlite3")
    s.init_post_load()
    return s


@pytest.fixture
def db(settings) -> Database:
    apply_migrations(settings.db_path)
    return Database(settings.db_path)


@pytest.fixture
def app(settings):
    return create_app(settings_override=settings)


@pytest.fixture
def client(app):
    with TestClient(app, headers={"X-Scope-Id": SCOPE}) as c:
        yield c


@pytest.fixture
def make_record():
    """Factory for in-memory ExpenseRecord snapshots (no store involved)."""
    counter = itertools.count(1)
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def _make(
        amount,
        on=date(2026, 1, 14),
        category_ids=(),
        week_start_day=1,
        created_offset=None,
    ):
        n = next(counter)
        occurred = datetime.combine(on, time(12, 0))
        d_key, w_key, m_key = bucket_keys(occurred, week_start_day)
        offset = n if created_offset is None else created_offset
        return ExpenseRecord(
            id=f"e{n}",
            amount_minor_units=amount,
            description=f"item {n}",
            occurred_at=occurred,
            created_at=base + timedelta(minutes=offset),
            category_ids=tuple(category_ids),
            day_key=d_key,
            week_key=w_key,
            month_key=m_key,
        )

    return _make
