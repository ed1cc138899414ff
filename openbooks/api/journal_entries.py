"""
Journal Entry API Endpoints

Balance preview for the entry form, plus create / post / reverse / list
passed through to the bookkeeping backend after local validation.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from openbooks.api.deps import get_journal_entry_service
from openbooks.models.journal_entries import (
    BalanceSummary,
    JournalEntry,
    JournalEntryLine,
    JournalEntryRecord,
    JournalEntryStatus,
)
from openbooks.services.auth import verify_api_key
from openbooks.services.journal_balance import compute_balance
from openbooks.services.journal_entries import JournalEntryService

router = APIRouter(prefix="/journal-entries", tags=["journal-entries"], dependencies=[Depends(verify_api_key)])


class BalanceRequest(BaseModel):
    lines: List[JournalEntryLine]


class ReverseRequest(BaseModel):
    reversal_date: date = Field(alias="reversalDate")


@router.post("/balance", response_model=BalanceSummary)
async def preview_balance(body: BalanceRequest):
    """Totals and submit readiness for the lines currently in the form."""
    return compute_balance(body.lines)


@router.get("", response_model=List[JournalEntryRecord])
async def list_journal_entries(
    status: Optional[JournalEntryStatus] = None,
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    service: JournalEntryService = Depends(get_journal_entry_service),
):
    return await service.list_entries(
        status=status, start_date=start_date, end_date=end_date, limit=limit, offset=offset
    )


@router.post("", response_model=JournalEntryRecord, status_code=201)
async def create_journal_entry(
    entry: JournalEntry,
    post: bool = False,
    service: JournalEntryService = Depends(get_journal_entry_service),
):
    """Create as draft; `?post=true` posts it right after creation."""
    return await service.create_entry(entry, post=post)


@router.post("/{entry_id}/post")
async def post_journal_entry(
    entry_id: str,
    service: JournalEntryService = Depends(get_journal_entry_service),
):
    return await service.post_entry(entry_id)


@router.post("/{entry_id}/reverse", response_model=JournalEntryRecord)
async def reverse_journal_entry(
    entry_id: str,
    body: ReverseRequest,
    service: JournalEntryService = Depends(get_journal_entry_service),
):
    return await service.reverse_entry(entry_id, body.reversal_date)
