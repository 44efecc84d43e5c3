import logging
from typing import Optional

from app.core.exceptions import GladiaError
from app.modules.transcription import poll_registry
from app.modules.transcription.gladia_client import GladiaClient
from app.modules.transcription.polling import (
    poll_until_complete,
    TranscriptionCancelled,
    TranscriptionFailed,
    TranscriptionTimeout,
)
from app.modules.transcription.reconciler import TranscriptionReconciler

logger = logging.getLogger(__name__)


def poll_transcription_job(
    evidence_file_id: str,
    user_id: str,
    job_id: str,
    gladia: Optional[GladiaClient] = None,
):
    """
    Background worker: poll a Gladia job and hand the final payload to the reconciler.
    Runs after the HTTP response has been sent. Uses the service-role Supabase client.
    A timeout or Gladia outage leaves the row in processing for the stuck reconciler.
    """
    from app.database.supabase_client import SupabaseClient
    client = SupabaseClient.get_service_client()
    reconciler = TranscriptionReconciler(client)
    gladia = gladia or GladiaClient()
    cancel_event = poll_registry.register(evidence_file_id)

    evidence = None
    try:
        evidence = reconciler.read(evidence_file_id, user_id)
        if not evidence:
            logger.error(f"Evidence {evidence_file_id} disappeared before polling started")
            return

        _, result = poll_until_complete(gladia.get_status, job_id, cancel_event=cancel_event)
        outcome = reconciler.reconcile(evidence, result, job_id=job_id)
        logger.info(
            f"Transcription job {job_id} for evidence {evidence_file_id} finished: "
            f"{outcome.status} (applied={outcome.applied})"
        )
    except TranscriptionCancelled:
        logger.info(f"Polling for evidence {evidence_file_id} cancelled")
    except TranscriptionFailed as e:
        logger.error(f"Transcription job {job_id} failed: {e}")
        try:
            reconciler.fail(evidence, str(e), job_id=job_id)
        except Exception as update_error:
            logger.error(f"Failed to mark evidence {evidence_file_id} as failed: {update_error}")
    except TranscriptionTimeout as e:
        logger.warning(f"{e}; leaving evidence {evidence_file_id} for the stuck reconciler")
    except GladiaError as e:
        logger.error(f"Gladia error while polling job {job_id}: {e}")
    except Exception as e:
        logger.error(f"Transcription worker error for evidence {evidence_file_id}: {str(e)}")
    finally:
        poll_registry.unregister(evidence_file_id, cancel_event)
