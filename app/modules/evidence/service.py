from supabase import Client
from fastapi import HTTPException
from app.config import settings
from app.modules.evidence.schemas import AudioEvidenceCreate, EvidenceFileResponse
from datetime import datetime
from typing import Optional, Dict, Any, List
import re
import logging

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"(token=)[^&]+")


def mask_url(url: Optional[str]) -> Optional[str]:
    """Hide the signing token before a URL goes to the logs."""
    if not url:
        return url
    return _TOKEN_RE.sub(r"\1***", url)


def normalize_storage_path(path: str) -> str:
    return path[1:] if path.startswith("/") else path


class EvidenceService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_audio_evidence(
        self,
        user_id: str,
        evidence_data: AudioEvidenceCreate,
        transcription_status: str = "pending"
    ) -> Dict[str, Any]:
        """Insert an evidence_files row for an uploaded audio object."""
        try:
            file_type = evidence_data.file_type or ""
            duration = evidence_data.duration_seconds or 0
            insert_data = {
                "user_id": user_id,
                "journal_entry_id": evidence_data.journal_entry_id,
                "file_name": evidence_data.file_name,
                "storage_bucket": settings.evidence_audio_bucket,
                "storage_path": normalize_storage_path(evidence_data.storage_path),
                "file_type": file_type if file_type.startswith("audio/") else "audio/wav",
                "file_size": evidence_data.file_size,
                "caption": evidence_data.caption or None,
                "duration_seconds": max(0, round(duration)),
                "transcription_status": transcription_status,
                "metadata": {},
                "uploaded_at": datetime.utcnow().isoformat(),
            }
            result = self.supabase.table("evidence_files")\
                .insert(insert_data)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to record evidence file")

            logger.info(f"Recorded audio evidence {result.data[0]['id']} for user {user_id}")
            return result.data[0]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Insert evidence_files error: {e}")
            raise HTTPException(status_code=500, detail="Failed to record evidence file")

    def get_evidence(self, evidence_file_id: str, user_id: Optional[str] = None) -> Dict[str, Any]:
        """Get an evidence row, optionally scoped to its owner."""
        try:
            query = self.supabase.table("evidence_files")\
                .select("*")\
                .eq("id", evidence_file_id)
            if user_id:
                query = query.eq("user_id", user_id)
            result = query.maybe_single().execute()

            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Evidence file not found")

            return result.data
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_signed_url(self, bucket: str, path: str, expires_in: Optional[int] = None) -> Optional[str]:
        """Signed URL for a storage object, or None when it cannot be signed (missing object)."""
        try:
            signed = self.supabase.storage.from_(bucket).create_signed_url(
                normalize_storage_path(path), expires_in or settings.signed_url_ttl_seconds
            )
        except Exception as e:
            logger.warning(f"Could not sign {bucket}/{path}: {e}")
            return None
        if not isinstance(signed, dict):
            return None
        return signed.get("signedURL") or signed.get("signedUrl")

    def get_access_url(self, bucket: str, path: str) -> Optional[str]:
        """Signed URL, falling back to the public URL for public buckets."""
        url = self.create_signed_url(bucket, path)
        if url:
            return url
        try:
            return self.supabase.storage.from_(bucket).get_public_url(normalize_storage_path(path)) or None
        except Exception as e:
            logger.warning(f"Could not build public URL for {bucket}/{path}: {e}")
            return None

    def list_for_journal_entry(self, journal_entry_id: str) -> List[EvidenceFileResponse]:
        """Evidence attached to a journal entry, oldest first, each with an access URL."""
        try:
            result = self.supabase.table("evidence_files")\
                .select("*")\
                .eq("journal_entry_id", journal_entry_id)\
                .order("uploaded_at")\
                .execute()
        except Exception as e:
            logger.error(f"Failed to load evidence for entry {journal_entry_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to load evidence")

        evidence = []
        for row in result.data or []:
            signed_url = None
            if row.get("storage_bucket") and row.get("storage_path"):
                signed_url = self.get_access_url(row["storage_bucket"], row["storage_path"])
            evidence.append(EvidenceFileResponse(**{**row, "signed_url": signed_url}))
        return evidence
