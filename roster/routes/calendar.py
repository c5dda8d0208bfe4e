# roster/routes/calendar.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas import ImportResponse
from ..auth import require_manager
from ..services.calendar_import import CalendarImporter, CalendarImportError
from ..services.row_service import row_service
from .days import validate_date_key

logger = logging.getLogger(__name__)

router = APIRouter(tags=["calendar"])


def get_calendar_importer() -> CalendarImporter:
    return CalendarImporter()


@router.post("/import", response_model=ImportResponse)
def import_from_calendar(
    date_key: str = Query(...),
    db: Session = Depends(get_db),
    manager: Optional[dict] = Depends(require_manager),
    importer: CalendarImporter = Depends(get_calendar_importer),
):
    """Replace the day's rows with the calendar's events for that day."""
    validate_date_key(date_key)
    try:
        drafts = importer.fetch_drafts(date_key)
    except CalendarImportError as e:
        raise HTTPException(status_code=502, detail=str(e))
    rows = row_service.replace_day_rows(db, date_key, drafts)
    return {"date_key": date_key, "imported": len(rows), "rows": rows}
