from pydantic import BaseModel, Field
from typing import Optional, List


class TranscriptionStartResponse(BaseModel):
    success: bool = True
    evidence_file_id: str
    job_id: str
    status: str = "processing"


class TranscriptionStatusRequest(BaseModel):
    evidence_file_id: str
    job_id: Optional[str] = None


class ReconcileResult(BaseModel):
    """Outcome of one reconciliation attempt against an evidence row."""
    evidence_file_id: str
    status: str
    applied: bool = False
    job_id: Optional[str] = None
    transcription: Optional[str] = None
    language: Optional[str] = None
    gladia_status: Optional[str] = None
    error: Optional[str] = None


class TranscriptionStatusResponse(ReconcileResult):
    success: bool = True


class StuckReconcileRequest(BaseModel):
    older_than_minutes: Optional[int] = Field(None, ge=0)


class StuckReconcileResponse(BaseModel):
    success: bool = True
    checked: int = 0
    completed: int = 0
    failed: int = 0
    still_processing: int = 0
    errors: int = 0
    results: List[ReconcileResult] = []


class CancelResponse(BaseModel):
    success: bool = True
    evidence_file_id: str
    status: str
    poll_cancelled: bool = False
