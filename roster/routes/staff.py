"""
Read-only staff view: published days only, rows grouped by section.
"""

from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas import DayOut, StaffDayOut
from ..scheduling import group_for_staff, format_date_header
from ..services.row_service import row_service
from .days import validate_date_key

router = APIRouter(tags=["staff"])


@router.get("/days", response_model=List[DayOut])
async def list_published_days(db: Session = Depends(get_db)):
    return row_service.list_days(db, published_only=True)


@router.get("/{date_key}", response_model=StaffDayOut)
async def get_staff_day(date_key: str, db: Session = Depends(get_db)):
    validate_date_key(date_key)
    day = row_service.get_day(db, date_key)
    # Unpublished days are indistinguishable from missing ones for staff
    if not day or not day.published:
        raise HTTPException(status_code=404, detail="Day not found")
    rows = row_service.list_rows(db, date_key)
    return {
        "day": day,
        "title": format_date_header(date_key),
        "total": len(rows),
        "groups": [{"title": title, "rows": members} for title, members in group_for_staff(rows)],
    }
