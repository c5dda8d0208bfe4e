"""
Row and day storage: CRUD, the change-history log and change publication.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from ..models import RosterDay, RosterRow, RowChange, ChangeKind, EDITABLE_FIELDS, TEXT_FIELDS, DEFAULT_DAY_HEADER, new_row_id
from ..schemas import RowOut, RowCreate, DraftRow, ChangeNotification
from .change_feed import ChangeBroadcaster, change_broadcaster

logger = logging.getLogger(__name__)


class RosterError(Exception):
    """Base exception for roster storage operations"""
    pass


class RowNotFoundError(RosterError):
    pass


class DayNotFoundError(RosterError):
    pass


class DuplicateRowError(RosterError):
    pass


def blank_to_none(value):
    """Empty or whitespace-only strings are stored as NULL."""
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


def row_payload(row: RosterRow) -> Dict[str, Any]:
    return RowOut.model_validate(row).model_dump()


class RowService:
    """Storage for roster days and rows; every committed row write is logged and published."""

    def __init__(self, broadcaster: ChangeBroadcaster):
        self.broadcaster = broadcaster

    # ---------------- days ----------------

    def get_day(self, db: Session, date_key: str) -> Optional[RosterDay]:
        return db.get(RosterDay, date_key)

    def list_days(self, db: Session, published_only: bool = False) -> List[RosterDay]:
        query = db.query(RosterDay)
        if published_only:
            query = query.filter(RosterDay.published == True)  # noqa: E712
        return query.order_by(RosterDay.date_key.asc()).all()

    def ensure_day(self, db: Session, date_key: str, header: Optional[str] = None,
                   published: Optional[bool] = None, commit: bool = True) -> RosterDay:
        """Create the day if missing, then apply any given header/published values."""
        day = db.get(RosterDay, date_key)
        if day is None:
            day = RosterDay(date_key=date_key, header=DEFAULT_DAY_HEADER, published=False)
            db.add(day)
            logger.info(f"Created day {date_key}")
        if header is not None:
            day.header = blank_to_none(header)
        if published is not None:
            day.published = published
        if commit:
            db.commit()
            db.refresh(day)
        else:
            db.flush()
        return day

    def delete_day(self, db: Session, date_key: str) -> int:
        day = db.get(RosterDay, date_key)
        if day is None:
            raise DayNotFoundError(f"Day {date_key} not found")
        rows = self.list_rows(db, date_key)
        notifications = [self._log(db, row, ChangeKind.DELETE) for row in rows]
        db.delete(day)
        db.commit()
        self._publish(notifications)
        logger.info(f"Deleted day {date_key} with {len(rows)} rows")
        return len(rows)

    # ---------------- rows ----------------

    def list_rows(self, db: Session, date_key: str) -> List[RosterRow]:
        return (
            db.query(RosterRow)
            .filter(RosterRow.date_key == date_key)
            .order_by(
                RosterRow.sort_order.asc().nulls_first(),
                RosterRow.time_range.asc().nulls_first(),
                RosterRow.created_at.asc(),
                RosterRow.id.asc(),
            )
            .all()
        )

    def get_row(self, db: Session, row_id: str) -> Optional[RosterRow]:
        return db.get(RosterRow, row_id)

    def insert_row(self, db: Session, data: RowCreate) -> RosterRow:
        if data.id and db.get(RosterRow, data.id) is not None:
            raise DuplicateRowError(f"Row {data.id} already exists")
        self.ensure_day(db, data.date_key, commit=False)
        row = self._new_row(data.date_key, data.model_dump(exclude={"id", "date_key"}), row_id=data.id)
        db.add(row)
        notification = self._log(db, row, ChangeKind.INSERT)
        db.commit()
        db.refresh(row)
        self._publish([notification])
        return row

    def update_row(self, db: Session, row_id: str, changes: Dict[str, Any]) -> RosterRow:
        row = db.get(RosterRow, row_id)
        if row is None:
            raise RowNotFoundError(f"Row {row_id} not found")
        for key, value in changes.items():
            if key not in EDITABLE_FIELDS:
                continue
            setattr(row, key, blank_to_none(value) if key in TEXT_FIELDS else value)
        row.revision = (row.revision or 0) + 1
        notification = self._log(db, row, ChangeKind.UPDATE)
        db.commit()
        db.refresh(row)
        self._publish([notification])
        return row

    def delete_row(self, db: Session, row_id: str):
        row = db.get(RosterRow, row_id)
        if row is None:
            raise RowNotFoundError(f"Row {row_id} not found")
        notification = self._log(db, row, ChangeKind.DELETE)
        db.delete(row)
        db.commit()
        self._publish([notification])

    def replace_day_rows(self, db: Session, date_key: str, drafts: Iterable[DraftRow]) -> List[RosterRow]:
        """
        Bulk replace used by the calendar import: the day's rows are deleted
        and the drafts inserted with sequential sort_order.
        """
        self.ensure_day(db, date_key, published=True, commit=False)
        notifications = []
        for old in self.list_rows(db, date_key):
            notifications.append(self._log(db, old, ChangeKind.DELETE))
            db.delete(old)
        db.flush()
        created = []
        for index, draft in enumerate(drafts):
            fields = draft.model_dump()
            fields["sort_order"] = index
            row = self._new_row(date_key, fields)
            db.add(row)
            created.append(row)
        db.flush()
        notifications.extend(self._log(db, row, ChangeKind.INSERT) for row in created)
        db.commit()
        for row in created:
            db.refresh(row)
        self._publish(notifications)
        logger.info(f"Replaced rows of {date_key} with {len(created)} imported rows")
        return created

    def history(self, db: Session, date_key: str, limit: int = 200) -> List[RowChange]:
        return (
            db.query(RowChange)
            .filter(RowChange.date_key == date_key)
            .order_by(RowChange.id.desc())
            .limit(limit)
            .all()
        )

    # ---------------- helpers ----------------

    def _new_row(self, date_key: str, fields: Dict[str, Any], row_id: Optional[str] = None) -> RosterRow:
        values = {key: fields.get(key) for key in EDITABLE_FIELDS}
        for key in TEXT_FIELDS:
            values[key] = blank_to_none(values[key])
        return RosterRow(id=row_id or new_row_id(), date_key=date_key, revision=1, **values)

    def _log(self, db: Session, row: RosterRow, kind: ChangeKind) -> ChangeNotification:
        if kind == ChangeKind.DELETE:
            payload = {"id": row.id, "date_key": row.date_key, "revision": row.revision}
        else:
            payload = row_payload(row)
        db.add(RowChange(row_id=row.id, date_key=row.date_key, kind=kind, revision=row.revision or 0, payload=payload))
        return ChangeNotification(kind=kind, row=payload)

    def _publish(self, notifications: List[ChangeNotification]):
        for notification in notifications:
            self.broadcaster.publish(notification)


# Global row service instance
row_service = RowService(change_broadcaster)
