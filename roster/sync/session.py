"""
One editor's view of one roster day.

A DaySession owns the RowStore, the debounced write scheduler and the change
reconciler, and routes user actions and stream notifications into them. All
methods run on the event loop; the only awaits are calls into the row source.
"""

import logging
from functools import partial
from typing import Any, Callable, List, Optional

from ..config import DEBOUNCE_SECONDS
from ..models import EDITABLE_FIELDS, new_row_id
from ..schemas import ChangeNotification, DraftRow, RowCreate, RowOut
from ..scheduling import CapacityEngine, CapacityResult, CapacitySettings, WorkerCount, count_assignments
from .debounce import DebouncedWriteScheduler
from .reconciler import ChangeReconciler, DiscardFn
from .row_store import PendingEdit, RowStore
from .sources import ChangeStream, PersistenceError, RowSource, Subscription

logger = logging.getLogger(__name__)

ErrorFn = Callable[[PersistenceError, Optional[PendingEdit]], None]


class DaySession:
    def __init__(self, date_key: str, source: RowSource, stream: Optional[ChangeStream] = None, *,
                 delay: float = DEBOUNCE_SECONDS, capacity_settings: Optional[CapacitySettings] = None,
                 on_error: Optional[ErrorFn] = None, on_discarded: Optional[DiscardFn] = None):
        self.source = source
        self.stream = stream
        self.on_error = on_error
        self.last_error: Optional[PersistenceError] = None
        self.store = RowStore(date_key)
        self.scheduler = DebouncedWriteScheduler(self.store, source.update_row, delay, on_error=self._report)
        self.reconciler = ChangeReconciler(self.store, self.scheduler, on_discarded)
        self.engine = CapacityEngine(capacity_settings)
        self._subscription: Optional[Subscription] = None
        self._buffer: Optional[List[ChangeNotification]] = None
        self._generation = 0

    @property
    def date_key(self) -> str:
        return self.store.date_key

    async def __aenter__(self) -> "DaySession":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is None:
            await self.flush()
        self.close()

    # ---------------- day lifecycle ----------------

    async def open(self) -> bool:
        return await self.switch_day(self.store.date_key)

    async def switch_day(self, date_key: str) -> bool:
        """
        Make ``date_key`` the active day.

        Pending timers of the previous day are cancelled, its subscription is
        closed and the store is emptied before anything is awaited. The new
        day's stream is subscribed before its rows are listed; notifications
        that arrive during the load are buffered and replayed on top of the
        loaded rows. Returns False when another switch superseded this one.
        """
        self._generation += 1
        generation = self._generation
        cancelled = self.scheduler.cancel_all()
        self._close_subscription()
        self.store.reset(date_key, [])
        logger.info(f"Switching to {date_key} ({cancelled} pending writes dropped)")

        self._buffer = []
        if self.stream is not None:
            self._subscription = self.stream.subscribe(date_key, partial(self._on_notification, generation))
        try:
            rows = await self.source.list_rows(date_key)
        except PersistenceError as e:
            if generation == self._generation:
                self._buffer = None
                self._report(e)
            raise
        if generation != self._generation:
            logger.debug(f"Load of {date_key} superseded")
            return False

        buffered, self._buffer = self._buffer, None
        self.store.reset(date_key, rows)
        for notification in buffered:
            self.reconciler.apply(notification)
        logger.info(f"Loaded {len(self.store)} rows for {date_key}")
        return True

    async def refresh(self) -> bool:
        """Write out pending edits, then reload the active day from storage."""
        await self.flush()
        return await self.switch_day(self.date_key)

    def close(self):
        self.scheduler.cancel_all()
        self._close_subscription()
        self._generation += 1

    def _close_subscription(self):
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    def _on_notification(self, generation: int, notification: ChangeNotification):
        if generation != self._generation:
            return
        if self._buffer is not None:
            self._buffer.append(notification)
        else:
            self.reconciler.apply(notification)

    # ---------------- user actions ----------------

    def edit(self, row_id: str, field: str, value: Any) -> Optional[PendingEdit]:
        """Show ``value`` immediately and write it once the field is quiet."""
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Field {field!r} is not editable")
        return self.scheduler.schedule_write(row_id, field, value)

    async def add_row(self, **fields) -> RowOut:
        """
        Add a row with a client-generated id. The row shows at once; the
        canonical row from storage replaces it unless the change stream has
        already delivered a newer revision.
        """
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown row fields: {', '.join(sorted(unknown))}")
        row = RowOut(id=new_row_id(), date_key=self.date_key, revision=0, **fields)
        self.store.upsert_local(row)
        try:
            canonical = await self.source.insert_row(RowCreate(**row.model_dump(exclude={"revision"})))
        except PersistenceError as e:
            logger.error(f"Inserting row {row.id} failed: {e}")
            self._report(e)
            return row
        self.store.apply_confirmed(canonical)
        return canonical

    async def delete_row(self, row_id: str) -> bool:
        """Remove a row locally, then in storage. A failed delete is reported, not rolled back."""
        self.scheduler.cancel_row(row_id)
        self.store.remove_local(row_id)
        try:
            await self.source.delete_row(row_id)
        except PersistenceError as e:
            logger.error(f"Deleting row {row_id} failed: {e}")
            self._report(e)
            return False
        return True

    async def import_drafts(self, drafts: List[DraftRow]) -> List[RowOut]:
        """Replace the active day's rows with ``drafts``."""
        date_key = self.date_key
        self.scheduler.cancel_all()
        try:
            rows = await self.source.replace_day_rows(date_key, drafts)
        except PersistenceError as e:
            logger.error(f"Replacing rows of {date_key} failed: {e}")
            self._report(e)
            raise
        if self.date_key == date_key:
            self.store.reset(date_key, rows)
        return rows

    async def flush(self):
        await self.scheduler.flush()

    # ---------------- derived views ----------------

    def rows(self) -> List[RowOut]:
        return self.store.all()

    def capacity(self) -> List[CapacityResult]:
        return self.engine.compute(self.store.all())

    def counts(self) -> List[WorkerCount]:
        return count_assignments(self.store.all())

    def _report(self, error: PersistenceError, edit: Optional[PendingEdit] = None):
        self.last_error = error
        if self.on_error:
            self.on_error(error, edit)
