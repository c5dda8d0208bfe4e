"""
Capacity API: free time per worker and assignment counts for one day.
"""

from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas import CapacityOut, WorkerCountOut
from ..scheduling import CapacityEngine, CapacitySettings, count_assignments
from ..services.row_service import row_service
from .days import validate_date_key

router = APIRouter(tags=["capacity"])


@router.get("/", response_model=List[CapacityOut])
async def get_capacity(
    db: Session = Depends(get_db),
    date_key: str = Query(...),
):
    validate_date_key(date_key)
    rows = row_service.list_rows(db, date_key)
    engine = CapacityEngine(CapacitySettings.from_config())
    return [
        {"name": r.name, "morning": r.morning, "afternoon": r.afternoon}
        for r in engine.compute(rows)
    ]


@router.get("/counts", response_model=List[WorkerCountOut])
async def get_worker_counts(
    db: Session = Depends(get_db),
    date_key: str = Query(...),
):
    validate_date_key(date_key)
    rows = row_service.list_rows(db, date_key)
    return [{"name": c.name, "count": c.count} for c in count_assignments(rows)]
