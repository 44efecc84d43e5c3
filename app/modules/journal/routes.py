from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from app.database.supabase_client import get_supabase
from app.modules.journal.schemas import JournalEntryCreate, JournalEntryUpdate, JournalEntryResponse
from app.modules.journal.service import JournalService
from app.modules.evidence.schemas import EvidenceListResponse
from app.modules.evidence.service import EvidenceService
from app.core.dependencies import get_current_user_id, get_subscription_tier, check_journal_entry_access
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/journal", tags=["journal"])


def get_journal_service(supabase: Client = Depends(get_supabase)) -> JournalService:
    return JournalService(supabase)


@router.post("", response_model=JournalEntryResponse, status_code=201)
async def create_entry(
    entry_data: JournalEntryCreate,
    current_user: Dict = Depends(get_current_user_id),
    service: JournalService = Depends(get_journal_service)
):
    """Create a journal entry"""
    return service.create_entry(current_user["id"], entry_data)


@router.get("", response_model=List[JournalEntryResponse])
async def list_entries(
    abuse_type: Optional[str] = None,
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    include_drafts: bool = True,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: Dict = Depends(get_current_user_id),
    service: JournalService = Depends(get_journal_service)
):
    """List the caller's journal entries"""
    return service.list_entries(
        user_id=current_user["id"],
        abuse_type=abuse_type,
        date_from=date_from,
        date_to=date_to,
        include_drafts=include_drafts,
        limit=limit,
        offset=offset
    )


@router.get("/{entry_id}", response_model=JournalEntryResponse)
async def get_entry(
    entry_id: str,
    current_user: Dict = Depends(get_current_user_id),
    service: JournalService = Depends(get_journal_service)
):
    """Get a journal entry"""
    return service.get_entry(entry_id, current_user["id"])


@router.put("/{entry_id}", response_model=JournalEntryResponse)
async def update_entry(
    entry_id: str,
    entry_data: JournalEntryUpdate,
    current_user: Dict = Depends(get_current_user_id),
    service: JournalService = Depends(get_journal_service)
):
    """Update a journal entry"""
    return service.update_entry(entry_id, current_user["id"], entry_data)


@router.delete("/{entry_id}", status_code=204)
async def delete_entry(
    entry_id: str,
    current_user: Dict = Depends(get_current_user_id),
    service: JournalService = Depends(get_journal_service)
):
    """Delete a journal entry"""
    service.delete_entry(entry_id, current_user["id"])
    return None


@router.get("/{entry_id}/evidence", response_model=EvidenceListResponse)
async def list_entry_evidence(
    entry_id: str,
    current_user: Dict = Depends(get_current_user_id),
    supabase: Client = Depends(get_supabase)
):
    """Evidence attached to a journal entry, with access URLs"""
    check_journal_entry_access(entry_id, current_user, supabase)
    return EvidenceListResponse(evidence=EvidenceService(supabase).list_for_journal_entry(entry_id))


@router.get("/{entry_id}/export")
async def export_entry(
    entry_id: str,
    format: str = "md",
    redact: bool = False,
    current_user: Dict = Depends(get_current_user_id),
    tier: str = Depends(get_subscription_tier),
    service: JournalService = Depends(get_journal_service)
):
    """Export a journal entry (Markdown)"""
    export_format = format.lower()
    if export_format == "pdf":
        if tier == "foundation":
            raise HTTPException(status_code=403, detail="PDF export requires Recovery tier")
        raise HTTPException(status_code=400, detail="PDF export is not supported yet, use format=md")
    if export_format != "md":
        raise HTTPException(status_code=400, detail=f"Unsupported export format: {format}")

    markdown = service.export_markdown(entry_id, current_user["id"], redact=redact)
    return Response(
        content=markdown,
        media_type="text/markdown; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="journal-{entry_id}.md"'},
    )
