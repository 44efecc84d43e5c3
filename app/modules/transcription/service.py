from supabase import Client
from fastapi import HTTPException
from app.config import settings
from app.core.dependencies import check_journal_entry_access
from app.core.exceptions import GladiaError
from app.modules.evidence.schemas import AudioEvidenceCreate
from app.modules.evidence.service import EvidenceService, mask_url
from app.modules.transcription import poll_registry
from app.modules.transcription.gladia_client import GladiaClient
from app.modules.transcription.reconciler import (
    TranscriptionReconciler, PENDING, PROCESSING, COMPLETED, FAILED, job_id_of
)
from app.modules.transcription.schemas import (
    TranscriptionStartResponse, TranscriptionStatusResponse, CancelResponse,
    StuckReconcileResponse
)
from app.modules.transcription.stuck_scheduler import reconcile_stuck_transcriptions
from app.modules.usage.service import UsageService
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

MISSING_AUDIO_ERROR = "Audio file not found or inaccessible at provided storage_path"


class TranscriptionService:
    def __init__(self, supabase: Client, gladia: GladiaClient):
        self.supabase = supabase
        self.gladia = gladia
        self.evidence_service = EvidenceService(supabase)
        self.usage_service = UsageService(supabase)
        self.reconciler = TranscriptionReconciler(supabase, self.usage_service)

    def _submit(self, evidence: Dict[str, Any]) -> TranscriptionStartResponse:
        """Sign the audio URL, start the Gladia job and move the row to processing."""
        bucket = evidence.get("storage_bucket") or settings.evidence_audio_bucket
        audio_url = self.evidence_service.create_signed_url(bucket, evidence["storage_path"])
        if not audio_url:
            logger.error(f"Preflight signed URL failed for {bucket}/{evidence['storage_path']}")
            self.reconciler.fail(evidence, MISSING_AUDIO_ERROR)
            raise HTTPException(
                status_code=404,
                detail="Audio file not found or inaccessible. Could not generate signed URL."
            )
        logger.debug(f"Submitting {mask_url(audio_url)} for evidence {evidence['id']}")

        try:
            job_id = self.gladia.start_transcription(audio_url)
        except GladiaError as e:
            self.reconciler.fail(evidence, e.message)
            raise

        applied, row = self.reconciler.mark_processing(evidence, job_id)
        if not applied:
            current = row.get("transcription_status") if row else None
            raise HTTPException(
                status_code=409,
                detail=f"Transcription could not be started from state '{current}'"
            )
        return TranscriptionStartResponse(evidence_file_id=evidence["id"], job_id=job_id)

    def start_for_upload(self, user_id: str, tier: str, evidence_data: AudioEvidenceCreate) -> TranscriptionStartResponse:
        """Record an uploaded audio file and start transcribing it."""
        self.usage_service.enforce_transcription_limit(user_id, tier)
        if evidence_data.journal_entry_id:
            check_journal_entry_access(evidence_data.journal_entry_id, {"id": user_id}, self.supabase)
        evidence = self.evidence_service.create_audio_evidence(user_id, evidence_data, PENDING)
        return self._submit(evidence)

    def start_for_existing(self, user_id: str, tier: str, evidence_file_id: str) -> TranscriptionStartResponse:
        """Start (or retry) transcription of an audio evidence row the caller owns."""
        evidence = self.evidence_service.get_evidence(evidence_file_id, user_id)
        is_audio = (evidence.get("file_type") or "").startswith("audio/") \
            or evidence.get("storage_bucket") == settings.evidence_audio_bucket
        if not is_audio:
            raise HTTPException(status_code=400, detail="Only audio evidence can be transcribed")
        status = evidence.get("transcription_status")
        if status == COMPLETED:
            raise HTTPException(status_code=409, detail="Evidence file is already transcribed")
        if status == PROCESSING:
            raise HTTPException(status_code=409, detail="Transcription already in progress")
        if status is None:
            # Rows uploaded without transcription enter the state machine here
            self.supabase.table("evidence_files")\
                .update({"transcription_status": PENDING})\
                .eq("id", evidence_file_id)\
                .is_("transcription_status", "null")\
                .execute()
            evidence = {**evidence, "transcription_status": PENDING}
        self.usage_service.enforce_transcription_limit(user_id, tier)
        return self._submit(evidence)

    def check_status(self, user_id: str, evidence_file_id: str, job_id: Optional[str] = None) -> TranscriptionStatusResponse:
        """Check Gladia once and reconcile the evidence row."""
        evidence = self.evidence_service.get_evidence(evidence_file_id, user_id)
        current_job_id = job_id_of(evidence)
        if job_id and job_id != current_job_id:
            raise HTTPException(
                status_code=409,
                detail="job_id does not match the evidence file's current transcription job"
            )
        job_id = current_job_id
        status = evidence.get("transcription_status")

        if status in (COMPLETED, FAILED):
            metadata = evidence.get("metadata") or {}
            return TranscriptionStatusResponse(
                evidence_file_id=evidence_file_id,
                status=status,
                job_id=job_id,
                transcription=evidence.get("transcription") if status == COMPLETED else None,
                language=metadata.get("language") if status == COMPLETED else None,
                error=metadata.get("transcription_error") if status == FAILED else None,
            )
        if not job_id:
            raise HTTPException(status_code=400, detail="No transcription job found for this evidence file")

        result = self.gladia.get_status(job_id)
        outcome = self.reconciler.reconcile(evidence, result, job_id=job_id)
        return TranscriptionStatusResponse(**outcome.model_dump())

    def reconcile_stuck(self, user_id: str, older_than_minutes: Optional[int] = None) -> StuckReconcileResponse:
        return reconcile_stuck_transcriptions(
            self.supabase, self.gladia, user_id=user_id, older_than_minutes=older_than_minutes
        )

    def cancel(self, user_id: str, evidence_file_id: str) -> CancelResponse:
        """Stop an in-flight poll and fail the row."""
        evidence = self.evidence_service.get_evidence(evidence_file_id, user_id)
        if evidence.get("transcription_status") == COMPLETED:
            raise HTTPException(status_code=409, detail="Transcription already completed")
        poll_cancelled = poll_registry.cancel(evidence_file_id)
        applied, row = self.reconciler.fail(evidence, "cancelled", job_id=job_id_of(evidence))
        status = (row or evidence).get("transcription_status")
        if not applied and status == COMPLETED:
            raise HTTPException(status_code=409, detail="Transcription already completed")
        logger.info(f"Cancelled transcription for evidence {evidence_file_id} (poll running: {poll_cancelled})")
        return CancelResponse(
            evidence_file_id=evidence_file_id,
            status=status,
            poll_cancelled=poll_cancelled,
        )
