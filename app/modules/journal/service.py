from supabase import Client
from fastapi import HTTPException
from app.modules.journal.schemas import JournalEntryCreate, JournalEntryUpdate, JournalEntryResponse
from app.modules.journal.export import render_markdown
from app.core.dependencies import check_journal_entry_access
from datetime import datetime
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)


class JournalService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_entry(self, user_id: str, entry_data: JournalEntryCreate) -> JournalEntryResponse:
        """Create a journal entry"""
        try:
            result = self.supabase.table("journal_entries")\
                .insert({**entry_data.model_dump(), "user_id": user_id})\
                .execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create journal entry")

            return JournalEntryResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_entry(self, entry_id: str, user_id: str) -> JournalEntryResponse:
        """Get a journal entry owned by user_id"""
        try:
            entry = check_journal_entry_access(entry_id, {"id": user_id}, self.supabase, columns="*")
            return JournalEntryResponse(**entry)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_entries(
        self,
        user_id: str,
        abuse_type: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        include_drafts: bool = True,
        limit: int = 20,
        offset: int = 0
    ) -> List[JournalEntryResponse]:
        """List the user's journal entries, newest incident first"""
        try:
            query = self.supabase.table("journal_entries")\
                .select("*")\
                .eq("user_id", user_id)
            if abuse_type:
                query = query.contains("abuse_types", [abuse_type])
            if date_from:
                query = query.gte("incident_date", date_from)
            if date_to:
                query = query.lte("incident_date", date_to)
            if not include_drafts:
                query = query.eq("is_draft", False)

            result = query.order("incident_date", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()

            return [JournalEntryResponse(**entry) for entry in result.data or []]
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_entry(self, entry_id: str, user_id: str, entry_data: JournalEntryUpdate) -> JournalEntryResponse:
        """Update a journal entry"""
        try:
            check_journal_entry_access(entry_id, {"id": user_id}, self.supabase)
            update_data = entry_data.model_dump(exclude_unset=True)
            if not update_data:
                return self.get_entry(entry_id, user_id)
            update_data["updated_at"] = datetime.utcnow().isoformat()

            result = self.supabase.table("journal_entries")\
                .update(update_data)\
                .eq("id", entry_id)\
                .eq("user_id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Journal entry not found")

            return JournalEntryResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_entry(self, entry_id: str, user_id: str) -> bool:
        """Delete a journal entry. Evidence rows keep their files and lose the link."""
        try:
            check_journal_entry_access(entry_id, {"id": user_id}, self.supabase)
            self.supabase.table("evidence_files")\
                .update({"journal_entry_id": None})\
                .eq("journal_entry_id", entry_id)\
                .eq("user_id", user_id)\
                .execute()
            self.supabase.table("journal_entries")\
                .delete()\
                .eq("id", entry_id)\
                .eq("user_id", user_id)\
                .execute()
            logger.info(f"Deleted journal entry {entry_id}")
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def export_markdown(self, entry_id: str, user_id: str, redact: bool = False) -> str:
        """Render a journal entry and its evidence as Markdown"""
        try:
            entry = check_journal_entry_access(entry_id, {"id": user_id}, self.supabase, columns="*")
            evidence = self.supabase.table("evidence_files")\
                .select("id, file_name, file_type, caption, uploaded_at, storage_bucket, storage_path, transcription")\
                .eq("journal_entry_id", entry_id)\
                .order("uploaded_at")\
                .execute()
            return render_markdown(entry, evidence.data or [], redact=redact)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
