"""
Single writer for evidence_files transcription state.

    pending ----> processing ----> completed
       |              |
       +--> failed <--+
              |
              +----> processing (retry)

Every transition is a conditional update:
    UPDATE evidence_files SET ... WHERE id = ? AND user_id = ? AND transcription_status IN (<from states>)
        [AND metadata->>transcription_job_id = <job id>]
Completing or failing a job is bound to the job id the row currently carries,
so a result for an earlier attempt cannot land on a retried row.
An update that matches no row lost the race to another writer; the caller
re-reads the row and reports its current state with applied=False. Usage is
recorded only by the caller whose completion update applied.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from supabase import Client

from app.modules.transcription.extraction import (
    extract_transcription_text,
    extract_transcription_details,
)
from app.modules.transcription.schemas import ReconcileResult
from app.modules.usage.service import UsageService

logger = logging.getLogger(__name__)

PENDING = "pending"
PROCESSING = "processing"
COMPLETED = "completed"
FAILED = "failed"

NO_TRANSCRIPT_ERROR = "no_transcript"

TRANSITIONS = {
    PENDING: {PROCESSING, FAILED},
    PROCESSING: {COMPLETED, FAILED},
    FAILED: {PROCESSING},
    COMPLETED: set(),
}


class InvalidTransition(Exception):
    pass


def allowed_from_states(to_status: str) -> List[str]:
    states = [state for state, targets in TRANSITIONS.items() if to_status in targets]
    if not states:
        raise InvalidTransition(f"No state may transition to {to_status}")
    return states


def job_id_of(evidence: Dict[str, Any]) -> Optional[str]:
    metadata = evidence.get("metadata") or {}
    return metadata.get("transcription_job_id")


class TranscriptionReconciler:
    def __init__(self, supabase: Client, usage_service: Optional[UsageService] = None):
        self.supabase = supabase
        self.usage_service = usage_service or UsageService(supabase)

    def read(self, evidence_file_id: str, user_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        query = self.supabase.table("evidence_files")\
            .select("*")\
            .eq("id", evidence_file_id)
        if user_id:
            query = query.eq("user_id", user_id)
        result = query.maybe_single().execute()
        return result.data if result else None

    def transition(
        self,
        evidence: Dict[str, Any],
        to_status: str,
        fields: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        job_id: Optional[str] = None,
    ) -> Tuple[bool, Optional[Dict[str, Any]]]:
        """
        Move an evidence row to to_status if its current state allows it.
        metadata is merged into the row's metadata as read just before the write,
        not into the caller's snapshot. With job_id given, the row must still
        belong to that Gladia job.
        Returns (applied, row) where row is the updated row, or the current row on a lost race.
        """
        from_states = allowed_from_states(to_status)
        current = self.read(evidence["id"], evidence.get("user_id"))
        if not current:
            logger.info(f"Evidence {evidence['id']} transition to {to_status} not applied (row not found)")
            return False, None
        if current.get("transcription_status") not in from_states:
            logger.info(
                f"Evidence {evidence['id']} transition to {to_status} not applied "
                f"(current: {current.get('transcription_status')})"
            )
            return False, current
        if job_id and job_id_of(current) != job_id:
            logger.warning(
                f"Evidence {evidence['id']} transition to {to_status} for job {job_id} not applied "
                f"(row belongs to job {job_id_of(current)})"
            )
            return False, current

        payload = dict(fields or {})
        payload["transcription_status"] = to_status
        payload["updated_at"] = datetime.utcnow().isoformat()
        if metadata:
            payload["metadata"] = {**(current.get("metadata") or {}), **metadata}

        query = self.supabase.table("evidence_files")\
            .update(payload)\
            .eq("id", evidence["id"])
        if evidence.get("user_id"):
            query = query.eq("user_id", evidence["user_id"])
        if job_id:
            query = query.eq("metadata->>transcription_job_id", job_id)
        result = query.in_("transcription_status", from_states).execute()

        if result.data:
            logger.info(f"Evidence {evidence['id']} -> {to_status}")
            return True, result.data[0]

        current = self.read(evidence["id"], evidence.get("user_id"))
        current_status = current.get("transcription_status") if current else None
        logger.info(
            f"Evidence {evidence['id']} transition to {to_status} not applied (current: {current_status})"
        )
        return False, current

    def mark_processing(self, evidence: Dict[str, Any], job_id: str) -> Tuple[bool, Optional[Dict[str, Any]]]:
        return self.transition(
            evidence,
            PROCESSING,
            fields={"processing_status": PROCESSING},
            metadata={
                "transcription_job_id": job_id,
                "transcription_started_at": datetime.utcnow().isoformat(),
                "transcription_error": None,
            },
        )

    def complete(
        self,
        evidence: Dict[str, Any],
        text: str,
        details: Dict[str, Any],
        job_id: Optional[str] = None,
    ) -> Tuple[bool, Optional[Dict[str, Any]]]:
        now = datetime.utcnow().isoformat()
        job_id = job_id or job_id_of(evidence)
        applied, row = self.transition(
            evidence,
            COMPLETED,
            fields={
                "transcription": text,
                "processing_status": COMPLETED,
                "processed_at": now,
            },
            metadata={
                "transcription_completed_at": now,
                "language": details.get("language"),
                "confidence": details.get("confidence"),
                "duration": details.get("duration"),
                "word_timestamps": details.get("words") or [],
            },
            job_id=job_id,
        )
        if applied and evidence.get("user_id"):
            self.usage_service.record_transcription_usage(evidence["user_id"], details)
        return applied, row

    def fail(
        self,
        evidence: Dict[str, Any],
        error: str,
        job_id: Optional[str] = None,
    ) -> Tuple[bool, Optional[Dict[str, Any]]]:
        return self.transition(
            evidence,
            FAILED,
            fields={"processing_status": FAILED},
            metadata={"transcription_error": error},
            job_id=job_id,
        )

    def reconcile(
        self,
        evidence: Dict[str, Any],
        result: Dict[str, Any],
        job_id: Optional[str] = None,
    ) -> ReconcileResult:
        """Apply one Gladia status payload to an evidence row."""
        job_id = job_id or job_id_of(evidence)
        gladia_status = result.get("status") if isinstance(result, dict) else None
        text = extract_transcription_text(result)

        if text:
            details = extract_transcription_details(result)
            applied, row = self.complete(evidence, text, details, job_id=job_id)
            return self._outcome(evidence, row, applied, job_id, gladia_status, language=details["language"])

        if gladia_status == "error":
            error = str(result.get("error") or result.get("error_code") or "Transcription failed")
            applied, row = self.fail(evidence, error, job_id=job_id)
            return self._outcome(evidence, row, applied, job_id, gladia_status, error=error)

        if gladia_status == "done":
            logger.warning(f"Job {job_id} done but no transcript found for evidence {evidence['id']}")
            applied, row = self.fail(evidence, NO_TRANSCRIPT_ERROR, job_id=job_id)
            return self._outcome(evidence, row, applied, job_id, gladia_status, error=NO_TRANSCRIPT_ERROR)

        return ReconcileResult(
            evidence_file_id=evidence["id"],
            status=evidence.get("transcription_status") or PROCESSING,
            applied=False,
            job_id=job_id,
            gladia_status=gladia_status,
        )

    def _outcome(
        self,
        evidence: Dict[str, Any],
        row: Optional[Dict[str, Any]],
        applied: bool,
        job_id: Optional[str],
        gladia_status: Optional[str],
        language: Optional[str] = None,
        error: Optional[str] = None,
    ) -> ReconcileResult:
        row = row or evidence
        status = row.get("transcription_status") or evidence.get("transcription_status")
        metadata = row.get("metadata") or {}
        if status == COMPLETED:
            error = None
            language = metadata.get("language") or language
        elif status == FAILED:
            error = metadata.get("transcription_error") or error
        return ReconcileResult(
            evidence_file_id=evidence["id"],
            status=status,
            applied=applied,
            job_id=job_id,
            transcription=row.get("transcription") if status == COMPLETED else None,
            language=language if status == COMPLETED else None,
            gladia_status=gladia_status,
            error=error,
        )
