"""Events router -- read the journal of committed notifications."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from contract_manager.api.deps import get_journal
from contract_manager.api.models import JournalEntryResponse
from contract_manager.events.journal import EventJournal

router = APIRouter(prefix="/api/events", tags=["events"])


@router.get("", response_model=list[JournalEntryResponse], summary="List journaled events")
def list_events(
    event: Optional[str] = Query(None, description="Event name, e.g. Added"),
    address: Optional[str] = Query(None, description="Contract or account address"),
    call_id: Optional[str] = Query(None, description="Events of a single call"),
    limit: int = Query(200, ge=1, le=10000),
    newest_first: bool = Query(False),
    journal: EventJournal = Depends(get_journal),
):
    entries = journal.get_events(
        event=event,
        address=address,
        call_id=call_id,
        limit=limit,
        newest_first=newest_first,
    )
    return [JournalEntryResponse.build(e) for e in entries]
