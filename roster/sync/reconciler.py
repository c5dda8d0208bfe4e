"""
Applies change-stream notifications to the RowStore.

Insert and update collapse into one upsert: an insert for a known row merges,
an update for an unknown row inserts. Deletes of unknown rows are no-ops and
notifications for another day are dropped. Remote values always replace
unsaved local values on arrival; the local edit is still written when its
timer fires.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from ..models import ChangeKind
from ..schemas import ChangeNotification, RowOut
from .debounce import DebouncedWriteScheduler
from .row_store import RowStore, PendingEdit

logger = logging.getLogger(__name__)

DiscardFn = Callable[[str, List[PendingEdit]], None]


class ChangeReconciler:
    def __init__(self, store: RowStore, scheduler: Optional[DebouncedWriteScheduler] = None,
                 on_discarded: Optional[DiscardFn] = None):
        self.store = store
        self.scheduler = scheduler
        self.on_discarded = on_discarded

    def apply(self, notification: ChangeNotification) -> bool:
        """Apply one notification; returns False when it was ignored."""
        if notification.date_key != self.store.date_key:
            logger.debug(f"Ignoring {notification.kind.value} for {notification.date_key}; active day is {self.store.date_key}")
            return False
        row_id = notification.row_id
        if not row_id:
            logger.debug("Ignoring notification without a row id")
            return False
        if notification.kind == ChangeKind.DELETE:
            return self._delete(row_id)
        return self._upsert(row_id, notification.row)

    def _upsert(self, row_id: str, fields: Dict[str, Any]) -> bool:
        existing = self.store.confirmed(row_id)
        values = existing.model_dump() if existing is not None else {}
        values.update({key: value for key, value in fields.items() if key in RowOut.model_fields})
        try:
            row = RowOut.model_validate(values)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed change for row {row_id}: {e}")
            return False
        return self.store.upsert_local(row)

    def _delete(self, row_id: str) -> bool:
        if row_id not in self.store:
            return False
        if self.scheduler is not None:
            self.scheduler.cancel_row(row_id)
        discarded = self.store.remove_local(row_id)
        if discarded:
            # The row is gone remotely; unsaved local edits to it cannot be kept.
            logger.warning(
                f"Row {row_id} deleted remotely with {len(discarded)} unsaved edits: "
                + ", ".join(f"{e.field}={e.local_value!r}" for e in discarded)
            )
            if self.on_discarded:
                self.on_discarded(row_id, discarded)
        return True
