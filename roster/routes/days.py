"""Day API: list, ensure/update, delete, and bulk replace of a day's rows."""

from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, Body
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas import DayOut, DayUpdate, DraftRow, ImportResponse
from ..auth import require_manager
from ..services.row_service import row_service, DayNotFoundError

router = APIRouter(tags=["days"])


def validate_date_key(date_key: str) -> str:
    try:
        date.fromisoformat(date_key)
    except ValueError:
        raise HTTPException(status_code=400, detail="date_key must be YYYY-MM-DD")
    return date_key


@router.get("/", response_model=List[DayOut])
async def list_days(
    db: Session = Depends(get_db),
    published_only: bool = Query(False),
):
    return row_service.list_days(db, published_only=published_only)


@router.get("/{date_key}", response_model=DayOut)
async def get_day(date_key: str, db: Session = Depends(get_db)):
    validate_date_key(date_key)
    day = row_service.get_day(db, date_key)
    if not day:
        raise HTTPException(status_code=404, detail="Day not found")
    return day


@router.put("/{date_key}", response_model=DayOut)
async def ensure_day(
    date_key: str,
    db: Session = Depends(get_db),
    manager: Optional[dict] = Depends(require_manager),
    day_in: Optional[DayUpdate] = Body(None),
):
    """Create the day if it does not exist yet and apply header/published."""
    validate_date_key(date_key)
    day_in = day_in or DayUpdate()
    return row_service.ensure_day(db, date_key, header=day_in.header, published=day_in.published)


@router.delete("/{date_key}")
async def delete_day(
    date_key: str,
    db: Session = Depends(get_db),
    manager: Optional[dict] = Depends(require_manager),
):
    validate_date_key(date_key)
    try:
        removed = row_service.delete_day(db, date_key)
    except DayNotFoundError:
        raise HTTPException(status_code=404, detail="Day not found")
    return {"success": True, "rows_deleted": removed}


@router.put("/{date_key}/rows", response_model=ImportResponse)
async def replace_day_rows(
    date_key: str,
    db: Session = Depends(get_db),
    manager: Optional[dict] = Depends(require_manager),
    drafts: List[DraftRow] = Body(...),
):
    """Replace every row of the day with the given drafts, in order."""
    validate_date_key(date_key)
    rows = row_service.replace_day_rows(db, date_key, drafts)
    return {"date_key": date_key, "imported": len(rows), "rows": rows}
