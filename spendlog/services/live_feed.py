"""In-process live expense feed.

A subscriber registers interest in a date range of one scope and receives an
immutable snapshot (tuple of ``ExpenseRecord``) immediately and again after
every committed write to that scope. ``subscribe`` returns a handle whose
``cancel`` stops delivery.

The registry is guarded by a lock; snapshots are fetched and callbacks run
outside it so a callback may subscribe or cancel without deadlocking.
Every fetch takes a sequence number before it reads the store, and a
subscription never accepts a snapshot older than the last one it delivered,
so a slow initial fetch cannot overwrite a newer published snapshot.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, List, Optional, Tuple

from spendlog.models import ExpenseRecord
from spendlog.services.calendar_keys import month_end, month_start, week_end, week_start
from spendlog.services.stores import ExpenseStore

Snapshot = Tuple[ExpenseRecord, ...]
SnapshotCallback = Callable[[Snapshot], None]

logger = logging.getLogger("spendlog.feed")


@dataclass(frozen=True)
class ExpenseQuery:
    """Inclusive day range a subscriber watches."""

    start: date
    end: date

    @classmethod
    def for_day(cls, d: date) -> "ExpenseQuery":
        return cls(d, d)

    @classmethod
    def for_week(cls, d: date, week_start_day: int) -> "ExpenseQuery":
        return cls(week_start(d, week_start_day), week_end(d, week_start_day))

    @classmethod
    def for_month(cls, d: date) -> "ExpenseQuery":
        return cls(month_start(d), month_end(d))


@dataclass
class Subscription:
    id: int
    scope_id: str
    query: ExpenseQuery
    callback: SnapshotCallback
    _feed: "ExpenseFeed" = field(repr=False)
    active: bool = True
    _delivered_seq: int = field(default=0, repr=False)
    _deliver_lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def cancel(self) -> None:
        if self.active:
            self.active = False
            self._feed._remove(self.id)

    def _deliver(self, seq: int, snapshot: Snapshot) -> bool:
        with self._deliver_lock:
            if not self.active or seq <= self._delivered_seq:
                return False
            self._delivered_seq = seq
            self.callback(snapshot)
            return True


class ExpenseFeed:
    def __init__(self, store: ExpenseStore):
        self.store = store
        self._lock = threading.Lock()
        self._subs: Dict[int, Subscription] = {}
        self._ids = itertools.count(1)
        self._seqs = itertools.count(1)

    def _next_seq(self) -> int:
        with self._lock:
            return next(self._seqs)

    def _snapshot(self, scope_id: str, query: ExpenseQuery) -> Snapshot:
        return tuple(self.store.fetch_by_date_range(scope_id, query.start, query.end))

    def subscribe(
        self, scope_id: str, query: ExpenseQuery, callback: SnapshotCallback
    ) -> Subscription:
        with self._lock:
            sub = Subscription(next(self._ids), scope_id, query, callback, self)
            self._subs[sub.id] = sub
        logger.debug("subscription %s added for %s..%s", sub.id, query.start, query.end)
        seq = self._next_seq()
        try:
            sub._deliver(seq, self._snapshot(scope_id, query))
        except Exception:
            sub.cancel()
            raise
        return sub

    def _remove(self, sub_id: int) -> None:
        with self._lock:
            self._subs.pop(sub_id, None)
        logger.debug("subscription %s cancelled", sub_id)

    def subscriber_count(self, scope_id: Optional[str] = None) -> int:
        with self._lock:
            if scope_id is None:
                return len(self._subs)
            return sum(1 for s in self._subs.values() if s.scope_id == scope_id)

    def publish(self, scope_id: str) -> int:
        """Push fresh snapshots to the scope's subscribers; returns deliveries."""
        with self._lock:
            targets: List[Subscription] = [
                s for s in self._subs.values() if s.scope_id == scope_id
            ]
        seq = self._next_seq()
        cache: Dict[ExpenseQuery, Snapshot] = {}
        delivered = 0
        for sub in targets:
            if not sub.active:
                continue
            if sub.query not in cache:
                cache[sub.query] = self._snapshot(scope_id, sub.query)
            try:
                if not sub._deliver(seq, cache[sub.query]):
                    continue
            except Exception:
                logger.exception("subscriber %s callback failed", sub.id)
                continue
            delivered += 1
        logger.debug("published to %s subscribers", delivered)
        return delivered


__all__ = ["ExpenseQuery", "Subscription", "ExpenseFeed", "Snapshot"]
