"""Row API: list a day's rows, insert/update/delete, history and the live change stream."""

import asyncio
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Body, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ..config import STREAM_KEEPALIVE_SECONDS
from ..database import get_db
from ..schemas import RowOut, RowCreate, RowUpdate, RowChangeOut
from ..auth import require_manager
from ..services.row_service import row_service, RowNotFoundError, DuplicateRowError
from ..services.change_feed import change_broadcaster
from .days import validate_date_key

router = APIRouter(tags=["rows"])


@router.get("/", response_model=List[RowOut])
async def list_rows(
    db: Session = Depends(get_db),
    date_key: str = Query(...),
):
    """Rows of one day ordered by sort_order, then time_range (nulls first)."""
    validate_date_key(date_key)
    return row_service.list_rows(db, date_key)


@router.get("/history", response_model=List[RowChangeOut])
async def get_row_history(
    db: Session = Depends(get_db),
    date_key: str = Query(...),
    limit: int = Query(200, ge=1, le=1000),
):
    validate_date_key(date_key)
    return row_service.history(db, date_key, limit=limit)


@router.get("/stream")
async def stream_row_changes(request: Request, date_key: str = Query(...)):
    """Server-sent events with one {kind, row} notification per committed write."""
    validate_date_key(date_key)
    queue = change_broadcaster.subscribe(date_key)

    async def event_generator():
        try:
            yield ": connected\n\n"
            while True:
                if await request.is_disconnected():
                    break
                try:
                    notification = await asyncio.wait_for(queue.get(), timeout=STREAM_KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
                    continue
                yield f"event: {notification.kind.value}\ndata: {notification.model_dump_json()}\n\n"
        finally:
            change_broadcaster.unsubscribe(date_key, queue)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.get("/{row_id}", response_model=RowOut)
async def get_row(row_id: str, db: Session = Depends(get_db)):
    row = row_service.get_row(db, row_id)
    if not row:
        raise HTTPException(status_code=404, detail="Row not found")
    return row


@router.post("/", response_model=RowOut, status_code=201)
async def create_row(
    db: Session = Depends(get_db),
    manager: Optional[dict] = Depends(require_manager),
    row_in: RowCreate = Body(...),
):
    """Insert a row (ensuring its day) and return the stored, normalised row."""
    validate_date_key(row_in.date_key)
    try:
        return row_service.insert_row(db, row_in)
    except DuplicateRowError:
        raise HTTPException(status_code=409, detail="Row already exists")


@router.patch("/{row_id}", response_model=RowOut)
async def update_row(
    row_id: str,
    db: Session = Depends(get_db),
    manager: Optional[dict] = Depends(require_manager),
    row_in: RowUpdate = Body(...),
):
    # Only fields present in the body are written; explicit nulls clear a field
    changes = row_in.model_dump(exclude_unset=True)
    try:
        return row_service.update_row(db, row_id, changes)
    except RowNotFoundError:
        raise HTTPException(status_code=404, detail="Row not found")


@router.delete("/{row_id}")
async def delete_row(
    row_id: str,
    db: Session = Depends(get_db),
    manager: Optional[dict] = Depends(require_manager),
):
    try:
        row_service.delete_row(db, row_id)
    except RowNotFoundError:
        raise HTTPException(status_code=404, detail="Row not found")
    return {"success": True, "message": "Row deleted"}
