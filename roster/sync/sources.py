"""
Collaborator interfaces the sync engine talks to.

The engine only needs a row source (list/insert/update/delete), a day source
(ensure day) and a per-day change stream. ``roster.sync.client`` provides HTTP
implementations; tests use in-memory fakes.
"""

from typing import Any, Callable, Dict, List, Optional, Protocol

from ..schemas import ChangeNotification, DayOut, DraftRow, RowCreate, RowOut


class PersistenceError(Exception):
    """A write was rejected or the row source could not be reached"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RowSource(Protocol):
    async def list_rows(self, date_key: str) -> List[RowOut]: ...

    async def insert_row(self, row: RowCreate) -> RowOut: ...

    async def update_row(self, row_id: str, changes: Dict[str, Any]) -> RowOut: ...

    async def delete_row(self, row_id: str) -> None: ...

    async def replace_day_rows(self, date_key: str, drafts: List[DraftRow]) -> List[RowOut]: ...


class DaySource(Protocol):
    async def get_day(self, date_key: str) -> Optional[DayOut]: ...

    async def ensure_day(self, date_key: str, header: Optional[str] = None,
                         published: Optional[bool] = None) -> DayOut: ...


class Subscription(Protocol):
    def close(self) -> None: ...


class ChangeStream(Protocol):
    def subscribe(self, date_key: str, callback: Callable[[ChangeNotification], None]) -> Subscription:
        """Deliver the day's notifications to ``callback`` on the caller's event loop."""
        ...
