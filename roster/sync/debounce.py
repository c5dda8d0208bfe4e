"""
Debounced persistence of local field edits.

Each (row id, field) key has at most one timer. A new edit cancels and
restarts the key's timer; when the quiet period passes, one write carries the
latest value for that key. Keys debounce independently, so several writes for
different fields of one row can be in flight together.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from ..config import DEBOUNCE_SECONDS
from ..schemas import RowOut
from .row_store import RowStore, PendingEdit, EditKey
from .sources import PersistenceError

logger = logging.getLogger(__name__)

PersistFn = Callable[[str, Dict[str, Any]], Awaitable[RowOut]]
ErrorFn = Callable[[PersistenceError, PendingEdit], None]


class DebouncedWriteScheduler:
    def __init__(self, store: RowStore, persist: PersistFn, delay: float = DEBOUNCE_SECONDS,
                 on_error: Optional[ErrorFn] = None):
        self.store = store
        self.persist = persist
        self.delay = delay
        self.on_error = on_error
        self._timers: Dict[EditKey, asyncio.TimerHandle] = {}
        self._in_flight: Set[asyncio.Task] = set()

    @property
    def pending_count(self) -> int:
        return len(self._timers)

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    def has_timer(self, row_id: str, field: str) -> bool:
        return (row_id, field) in self._timers

    def schedule_write(self, row_id: str, field: str, value: Any) -> Optional[PendingEdit]:
        """Record ``value`` for (row_id, field) and (re)start that key's quiet period."""
        loop = asyncio.get_running_loop()
        key = (row_id, field)
        self._cancel_timer(key)
        deadline = loop.time() + self.delay
        edit = self.store.set_pending(row_id, field, value, deadline)
        if edit is None:
            logger.debug(f"Edit of {field} on unknown row {row_id} not scheduled")
            return None
        self._timers[key] = loop.call_at(deadline, self._fire, key)
        return edit

    def cancel_row(self, row_id: str) -> int:
        """Cancel every outstanding timer of one row; returns how many were cancelled."""
        keys = [key for key in self._timers if key[0] == row_id]
        for key in keys:
            self._cancel_timer(key)
        return len(keys)

    def cancel_all(self) -> int:
        """Cancel every outstanding timer. Writes already sent are left to finish."""
        count = len(self._timers)
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        if count:
            logger.info(f"Cancelled {count} pending writes")
        return count

    async def flush(self):
        """Fire every outstanding timer now and wait for all writes to finish."""
        for key in list(self._timers):
            self._cancel_timer(key)
            self._fire(key)
        await self.wait_idle()

    async def wait_idle(self):
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight))

    def _cancel_timer(self, key: EditKey):
        handle = self._timers.pop(key, None)
        if handle is not None:
            handle.cancel()

    def _fire(self, key: EditKey):
        self._timers.pop(key, None)
        edit = self.store.pending_edit(*key)
        if edit is None:
            return
        edit.debounce_deadline = None
        edit.in_flight = True
        task = asyncio.get_running_loop().create_task(self._write(edit))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _write(self, edit: PendingEdit):
        try:
            canonical = await self.persist(edit.row_id, {edit.field: edit.local_value})
        except PersistenceError as e:
            logger.error(f"Saving {edit.field} of row {edit.row_id} failed: {e}")
            self.store.mark_failed(edit)
            if self.on_error:
                self.on_error(e, edit)
            return
        self.store.apply_confirmed(canonical, edit)
