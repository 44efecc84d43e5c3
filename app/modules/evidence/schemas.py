from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List
from datetime import datetime


class AudioEvidenceCreate(BaseModel):
    storage_path: str = Field(..., min_length=1)
    file_name: str = Field(..., min_length=1)
    file_type: Optional[str] = None
    file_size: int = Field(..., ge=0)
    caption: Optional[str] = None
    duration_seconds: Optional[float] = None
    journal_entry_id: Optional[str] = None


class EvidenceFileResponse(BaseModel):
    id: str
    user_id: str
    journal_entry_id: Optional[str] = None
    file_name: str
    storage_bucket: Optional[str] = None
    storage_path: Optional[str] = None
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    caption: Optional[str] = None
    duration_seconds: Optional[int] = None
    transcription: Optional[str] = None
    transcription_status: Optional[str] = None
    processing_status: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    uploaded_at: Optional[datetime] = None
    signed_url: Optional[str] = None

    class Config:
        from_attributes = True


class EvidenceListResponse(BaseModel):
    evidence: List[EvidenceFileResponse]
