from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List, Dict, Any
from .models import ChangeKind

DATE_KEY_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

# ----------------- Day Schemas ---------------------

class DayOut(BaseModel):
    date_key: str
    header: Optional[str] = None
    published: bool = False

    class Config:
        from_attributes = True

class DayUpdate(BaseModel):
    header: Optional[str] = None
    published: Optional[bool] = None

# ----------------- Row Schemas ---------------------

class RowOut(BaseModel):
    id: str
    date_key: str
    time_range: Optional[str] = None
    worker: Optional[str] = None
    client: Optional[str] = None
    address: Optional[str] = None
    note: Optional[str] = None
    group: Optional[str] = None
    sort_order: Optional[int] = None
    revision: int = 0

    class Config:
        from_attributes = True

class RowCreate(BaseModel):
    id: Optional[str] = Field(default=None, max_length=36)  # client-chosen for optimistic adds
    date_key: str = Field(pattern=DATE_KEY_PATTERN)
    time_range: Optional[str] = None
    worker: Optional[str] = None
    client: Optional[str] = None
    address: Optional[str] = None
    note: Optional[str] = None
    group: Optional[str] = None
    sort_order: Optional[int] = None

class RowUpdate(BaseModel):
    """Partial update; only fields present in the request body are written."""
    time_range: Optional[str] = None
    worker: Optional[str] = None
    client: Optional[str] = None
    address: Optional[str] = None
    note: Optional[str] = None
    group: Optional[str] = None
    sort_order: Optional[int] = None

class DraftRow(BaseModel):
    """Row shape produced by the calendar import adapter."""
    time_range: Optional[str] = None
    worker: Optional[str] = None
    client: Optional[str] = None
    address: Optional[str] = None
    note: Optional[str] = None
    group: Optional[str] = None

class ImportResponse(BaseModel):
    date_key: str
    imported: int
    rows: List[RowOut]

# ----------------- Change Stream Schemas ---------------------

class ChangeNotification(BaseModel):
    kind: ChangeKind
    row: Dict[str, Any]  # full row for insert/update, at least id + date_key for delete

    @property
    def row_id(self) -> Optional[str]:
        return self.row.get("id")

    @property
    def date_key(self) -> Optional[str]:
        return self.row.get("date_key")

class RowChangeOut(BaseModel):
    id: int
    row_id: str
    date_key: str
    kind: ChangeKind
    revision: int
    payload: Optional[Dict[str, Any]] = None
    created_at: datetime

    class Config:
        from_attributes = True

# ----------------- Capacity Schemas ---------------------

class CapacityOut(BaseModel):
    name: str
    morning: str
    afternoon: str

class WorkerCountOut(BaseModel):
    name: str
    count: int

# ----------------- Staff View Schemas ---------------------

class StaffGroupOut(BaseModel):
    title: str
    rows: List[RowOut]

class StaffDayOut(BaseModel):
    day: DayOut
    title: str
    total: int
    groups: List[StaffGroupOut]
