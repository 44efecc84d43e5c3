from fastapi import APIRouter, BackgroundTasks, Depends
from app.database.supabase_client import get_supabase
from app.modules.evidence.schemas import AudioEvidenceCreate
from app.modules.transcription.gladia_client import GladiaClient, get_gladia_client
from app.modules.transcription.schemas import (
    TranscriptionStartResponse, TranscriptionStatusRequest, TranscriptionStatusResponse,
    StuckReconcileRequest, StuckReconcileResponse, CancelResponse
)
from app.modules.transcription.service import TranscriptionService
from app.modules.transcription.transcription_worker import poll_transcription_job
from app.core.dependencies import get_current_user_id, get_subscription_tier
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/evidence", tags=["transcription"])


def get_transcription_service(
    supabase: Client = Depends(get_supabase),
    gladia: GladiaClient = Depends(get_gladia_client)
) -> TranscriptionService:
    return TranscriptionService(supabase, gladia)


def _schedule_poll(background_tasks: BackgroundTasks, started: TranscriptionStartResponse, user_id: str, service: TranscriptionService):
    background_tasks.add_task(
        poll_transcription_job,
        evidence_file_id=started.evidence_file_id,
        user_id=user_id,
        job_id=started.job_id,
        gladia=service.gladia,
    )


@router.post("/transcribe", response_model=TranscriptionStartResponse, status_code=202)
def transcribe_upload(
    evidence_data: AudioEvidenceCreate,
    background_tasks: BackgroundTasks,
    current_user: Dict = Depends(get_current_user_id),
    tier: str = Depends(get_subscription_tier),
    service: TranscriptionService = Depends(get_transcription_service)
):
    """Record an uploaded audio file and transcribe it in the background"""
    started = service.start_for_upload(current_user["id"], tier, evidence_data)
    _schedule_poll(background_tasks, started, current_user["id"], service)
    return started


@router.post("/transcribe/status", response_model=TranscriptionStatusResponse)
def transcription_status(
    request: TranscriptionStatusRequest,
    current_user: Dict = Depends(get_current_user_id),
    service: TranscriptionService = Depends(get_transcription_service)
):
    """Check a transcription job once and apply the result"""
    return service.check_status(current_user["id"], request.evidence_file_id, request.job_id)


@router.post("/transcribe/reconcile", response_model=StuckReconcileResponse)
def reconcile_stuck(
    request: StuckReconcileRequest,
    current_user: Dict = Depends(get_current_user_id),
    service: TranscriptionService = Depends(get_transcription_service)
):
    """Reconcile the caller's transcriptions stuck in processing"""
    return service.reconcile_stuck(current_user["id"], request.older_than_minutes)


@router.post("/transcribe/{evidence_file_id}/cancel", response_model=CancelResponse)
def cancel_transcription(
    evidence_file_id: str,
    current_user: Dict = Depends(get_current_user_id),
    service: TranscriptionService = Depends(get_transcription_service)
):
    """Cancel an in-flight transcription"""
    return service.cancel(current_user["id"], evidence_file_id)


@router.post("/{evidence_file_id}/transcribe", response_model=TranscriptionStartResponse, status_code=202)
def transcribe_existing(
    evidence_file_id: str,
    background_tasks: BackgroundTasks,
    current_user: Dict = Depends(get_current_user_id),
    tier: str = Depends(get_subscription_tier),
    service: TranscriptionService = Depends(get_transcription_service)
):
    """Start or retry transcription for an existing audio evidence file"""
    started = service.start_for_existing(current_user["id"], tier, evidence_file_id)
    _schedule_poll(background_tasks, started, current_user["id"], service)
    return started
