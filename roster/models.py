from sqlalchemy import String, Integer, Boolean, Enum, ForeignKey, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from typing import Optional
import enum
import uuid

from .database import Base

# Row fields a client may edit; id and date_key are fixed at creation
EDITABLE_FIELDS = ("time_range", "worker", "client", "address", "note", "group", "sort_order")
TEXT_FIELDS = ("time_range", "worker", "client", "address", "note", "group")

DEFAULT_DAY_HEADER = "Čas"

# Enums

class ChangeKind(str, enum.Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


def new_row_id() -> str:
    return str(uuid.uuid4())

# Models

class RosterDay(Base):
    __tablename__ = "roster_days"

    date_key: Mapped[str] = mapped_column(String(10), primary_key=True)
    header: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    published: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    rows = relationship("RosterRow", back_populates="day", cascade="all, delete-orphan", passive_deletes=True)


class RosterRow(Base):
    __tablename__ = "roster_rows"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_row_id)
    date_key: Mapped[str] = mapped_column(ForeignKey("roster_days.date_key", ondelete="CASCADE"), index=True)

    time_range: Mapped[Optional[str]] = mapped_column(String, nullable=True)  # raw "HH:MM–HH:MM"
    worker: Mapped[Optional[str]] = mapped_column(String, nullable=True)      # may hold several names
    client: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    note: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    group: Mapped[Optional[str]] = mapped_column(String, nullable=True)       # "zas", "uman", ...
    sort_order: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Bumped on every persisted write
    revision: Mapped[int] = mapped_column(Integer, default=1)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    day = relationship("RosterDay", back_populates="rows")


class RowChange(Base):
    """Append-only change-history log, one entry per committed row write."""
    __tablename__ = "roster_row_changes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    row_id: Mapped[str] = mapped_column(String(36), index=True)
    date_key: Mapped[str] = mapped_column(String(10), index=True)
    kind: Mapped[ChangeKind] = mapped_column(Enum(ChangeKind))
    revision: Mapped[int] = mapped_column(Integer, default=0)
    payload: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
