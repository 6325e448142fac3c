from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.api.deps import get_current_principal
from app.schemas.weekly_entry import (
    WeeklyEntryCreate, WeeklyEntryUpdate, WeeklyEntryResponse, RecentEntriesResponse,
    LastWeekData, ImportRequest, ImportResult,
)
from app.services.access_scope import Principal, effective_stores
from app.services.batch_importer import BatchImporter
from app.services.entry_store import EntryStore

router = APIRouter()


@router.post("", response_model=WeeklyEntryResponse, status_code=status.HTTP_201_CREATED)
async def submit_entry(
    entry_data: WeeklyEntryCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Submit one weekly entry. Omitting total_fixed_cost carries the last one forward."""
    return EntryStore(db).create(entry_data, principal)


@router.get("/recent", response_model=RecentEntriesResponse)
async def recent_entries(
    limit: int = Query(10, ge=1, le=500),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Most recently submitted entries visible to the caller."""
    entries, total_count = EntryStore(db).recent_entries(limit, effective_stores(principal))
    return RecentEntriesResponse(
        entries=[WeeklyEntryResponse.model_validate(e) for e in entries],
        total_count=total_count,
        showing=len(entries),
    )


@router.post("/import", response_model=ImportResult)
async def import_entries(
    request: ImportRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Import a list of rows; failed rows are reported without aborting the batch."""
    return BatchImporter(db).import_rows(request.rows, principal)


@router.get("/last-week/{store_code}", response_model=Optional[LastWeekData])
async def get_last_week(
    store_code: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Latest entry for a store and the next week to submit (null when the store has none)."""
    return EntryStore(db).get_last_week(store_code, principal)


@router.get("/{entry_id}", response_model=WeeklyEntryResponse)
async def get_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return EntryStore(db).get(entry_id, principal)


@router.patch("/{entry_id}", response_model=WeeklyEntryResponse)
async def update_entry(
    entry_id: int,
    entry_data: WeeklyEntryUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Update raw fields of an entry; derived fields are recomputed."""
    return EntryStore(db).update(entry_id, entry_data, principal)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    EntryStore(db).delete(entry_id, principal)
