import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional

from supabase import Client

from app.config import settings
from app.core.exceptions import GladiaError
from app.database.supabase_client import get_supabase
from app.modules.transcription import poll_registry
from app.modules.transcription.gladia_client import GladiaClient
from app.modules.transcription.reconciler import (
    TranscriptionReconciler, PROCESSING, COMPLETED, FAILED, job_id_of
)
from app.modules.transcription.schemas import StuckReconcileResponse

logger = logging.getLogger(__name__)


def reconcile_stuck_transcriptions(
    supabase: Client,
    gladia: GladiaClient,
    user_id: Optional[str] = None,
    older_than_minutes: Optional[int] = None,
    limit: Optional[int] = None,
) -> StuckReconcileResponse:
    """Check Gladia once for every row stuck in processing and reconcile it."""
    if older_than_minutes is None:
        older_than_minutes = settings.transcription_stuck_after_minutes
    cutoff = (datetime.utcnow() - timedelta(minutes=older_than_minutes)).isoformat()

    query = supabase.table("evidence_files")\
        .select("*")\
        .eq("transcription_status", PROCESSING)\
        .lte("updated_at", cutoff)
    if user_id:
        query = query.eq("user_id", user_id)
    rows = query.order("updated_at")\
        .limit(limit or settings.transcription_reconciler_batch_size)\
        .execute()

    reconciler = TranscriptionReconciler(supabase)
    summary = StuckReconcileResponse()
    for evidence in rows.data or []:
        job_id = job_id_of(evidence)
        if not job_id:
            logger.debug(f"Evidence {evidence['id']} has no job id, skipping")
            continue
        if poll_registry.get_event(evidence["id"]):
            # A worker is still polling this job
            continue
        summary.checked += 1
        try:
            outcome = reconciler.reconcile(evidence, gladia.get_status(job_id), job_id=job_id)
        except GladiaError as e:
            logger.error(f"Gladia status check failed for job {job_id}: {e}")
            summary.errors += 1
            continue
        summary.results.append(outcome)
        if outcome.status == COMPLETED:
            summary.completed += 1
        elif outcome.status == FAILED:
            summary.failed += 1
        else:
            summary.still_processing += 1
    if summary.checked:
        logger.info(
            f"Stuck reconciler checked {summary.checked}: {summary.completed} completed, "
            f"{summary.failed} failed, {summary.still_processing} still processing"
        )
    return summary


async def check_stuck_transcriptions():
    """Reconcile stuck rows for every user."""
    try:
        supabase = get_supabase()
        await asyncio.to_thread(reconcile_stuck_transcriptions, supabase, GladiaClient())
    except Exception as e:
        logger.error(f"Error in stuck transcription reconciler: {str(e)}")


async def stuck_reconciler_loop():
    """Background task that periodically reconciles transcriptions stuck in processing"""
    while True:
        await check_stuck_transcriptions()
        await asyncio.sleep(settings.transcription_reconciler_interval)
