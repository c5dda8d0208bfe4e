"""
Process-local view of the rows of the selected day.

Two layers are kept per row:

* the confirmed layer, the row as last received from storage or the change
  stream (or the optimistic copy of a row that is still being inserted);
* the pending-edit overlay, one ``PendingEdit`` per (row id, field) that the
  user typed but storage has not confirmed yet.

The visible row is the confirmed row with every edit still flagged
``newer_than_confirmed`` laid over it. Whenever a confirmed row arrives, the
overlay of that row is marked as superseded, so the confirmed values show
until those edits are written and confirmed in turn. That transient
flicker is last-writer-wins by arrival order.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..schemas import RowOut

logger = logging.getLogger(__name__)

EditKey = Tuple[str, str]


@dataclass
class PendingEdit:
    row_id: str
    field: str
    local_value: Any
    debounce_deadline: Optional[float]  # loop time the write fires; None once fired
    newer_than_confirmed: bool = True
    in_flight: bool = False
    failed: bool = False

    @property
    def key(self) -> EditKey:
        return (self.row_id, self.field)


def display_key(row: RowOut):
    """sort_order, then time_range, missing values first."""
    return (
        row.sort_order is not None,
        row.sort_order if row.sort_order is not None else 0,
        row.time_range is not None,
        row.time_range or "",
    )


class RowStore:
    """Rows of one day keyed by id. Mutated only from the event loop."""

    def __init__(self, date_key: Optional[str] = None):
        self.date_key = date_key
        self.version = 0
        self._confirmed: Dict[str, RowOut] = {}
        self._pending: Dict[EditKey, PendingEdit] = {}
        self._listeners: List[Callable[["RowStore"], None]] = []

    # ---------------- reads ----------------

    def __len__(self) -> int:
        return len(self._confirmed)

    def __contains__(self, row_id: str) -> bool:
        return row_id in self._confirmed

    def get(self, row_id: str) -> Optional[RowOut]:
        """Visible row: confirmed values plus unconfirmed local edits."""
        base = self._confirmed.get(row_id)
        if base is None:
            return None
        overlay = {
            edit.field: edit.local_value
            for edit in self._pending.values()
            if edit.row_id == row_id and edit.newer_than_confirmed
        }
        return base.model_copy(update=overlay) if overlay else base

    def confirmed(self, row_id: str) -> Optional[RowOut]:
        return self._confirmed.get(row_id)

    def all(self) -> List[RowOut]:
        """Visible rows in display order; a snapshot the caller may keep."""
        rows = [self.get(row_id) for row_id in self._confirmed]
        return sorted(rows, key=display_key)

    def pending_edit(self, row_id: str, field: str) -> Optional[PendingEdit]:
        return self._pending.get((row_id, field))

    def pending_edits(self, row_id: Optional[str] = None) -> List[PendingEdit]:
        return [e for e in self._pending.values() if row_id is None or e.row_id == row_id]

    def superseded_edits(self, row_id: Optional[str] = None) -> List[PendingEdit]:
        """Edits hidden by a newer confirmed row until their own write is confirmed."""
        return [e for e in self.pending_edits(row_id) if not e.newer_than_confirmed]

    # ---------------- confirmed layer ----------------

    def upsert_local(self, row: RowOut) -> bool:
        """
        Insert or replace a row. Rows of another day are ignored. Unconfirmed
        edits of the row stay pending but no longer show; failed edits, which
        are never retried, are dropped.
        """
        if row.date_key != self.date_key:
            logger.debug(f"Ignoring row {row.id} for {row.date_key}; active day is {self.date_key}")
            return False
        self._confirmed[row.id] = row
        for edit in self.pending_edits(row.id):
            if edit.failed:
                del self._pending[edit.key]
            else:
                edit.newer_than_confirmed = False
        self._changed()
        return True

    def apply_confirmed(self, row: RowOut, edit: Optional[PendingEdit] = None) -> bool:
        """
        Apply a row returned by our own write. The edit it confirms is dropped.
        The row itself is skipped when it left the store while the write was
        in flight, or when a newer revision already arrived from the change
        stream.
        Optimistic adds are in the store before their insert is sent, so
        their responses pass.
        """
        if edit is not None and self._pending.get(edit.key) is edit:
            del self._pending[edit.key]
        current = self._confirmed.get(row.id)
        if current is None:
            logger.debug(f"Dropping response for row {row.id}; it is no longer in the store")
            self._changed()
            return False
        if current.revision > row.revision:
            logger.debug(f"Skipping stale response for row {row.id} (r{row.revision} < r{current.revision})")
            self._changed()
            return False
        return self.upsert_local(row)

    def remove_local(self, row_id: str) -> List[PendingEdit]:
        """Delete a row; returns the unconfirmed edits dropped with it."""
        dropped = self.pending_edits(row_id)
        for edit in dropped:
            del self._pending[edit.key]
        if self._confirmed.pop(row_id, None) is not None or dropped:
            self._changed()
        return dropped

    def reset(self, date_key: str, rows: List[RowOut]):
        """Switch to ``date_key`` and replace every row and pending edit."""
        self.date_key = date_key
        self._pending.clear()
        self._confirmed = {row.id: row for row in rows if row.date_key == date_key}
        self._changed()

    # ---------------- pending overlay ----------------

    def set_pending(self, row_id: str, field: str, value: Any, deadline: Optional[float]) -> Optional[PendingEdit]:
        if row_id not in self._confirmed:
            return None
        edit = PendingEdit(row_id=row_id, field=field, local_value=value, debounce_deadline=deadline)
        self._pending[edit.key] = edit
        self._changed()
        return edit

    def mark_failed(self, edit: PendingEdit):
        """
        A failed write keeps its value visible; nothing is rolled back. The
        edit stays in the overlay until a newer confirmed row replaces it or
        the row leaves the store.
        """
        edit.in_flight = False
        edit.failed = True
        self._changed()

    # ---------------- listeners ----------------

    def add_listener(self, callback: Callable[["RowStore"], None]):
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[["RowStore"], None]):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _changed(self):
        self.version += 1
        for callback in list(self._listeners):
            callback(self)
