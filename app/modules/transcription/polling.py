import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from app.config import settings
from app.modules.transcription.extraction import extract_transcription_text

logger = logging.getLogger(__name__)


class TranscriptionFailed(Exception):
    """Gladia reported the job as errored."""

    def __init__(self, message: str, result: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.result = result


class TranscriptionTimeout(Exception):
    pass


class TranscriptionCancelled(Exception):
    pass


def backoff_delay(attempt: int, initial_delay: float, max_delay: float) -> float:
    """Delay before the next poll: initial * 2**(attempt-1), capped at max_delay."""
    return min(initial_delay * (2 ** max(attempt - 1, 0)), max_delay)


def poll_until_complete(
    get_status: Callable[[str], Dict[str, Any]],
    job_id: str,
    initial_delay: Optional[float] = None,
    max_delay: Optional[float] = None,
    timeout: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
    clock: Callable[[], float] = time.monotonic,
):
    """
    Poll a Gladia job until a transcript can be extracted.

    Returns (text, result) where result is the last status payload; text is None
    when the job finished without an extractable transcript.
    Raises TranscriptionFailed on status "error", TranscriptionTimeout once the
    wall-clock budget is spent, TranscriptionCancelled when cancel_event is set.
    """
    initial_delay = settings.transcription_poll_initial_delay if initial_delay is None else initial_delay
    max_delay = settings.transcription_poll_max_delay if max_delay is None else max_delay
    timeout = settings.transcription_poll_timeout if timeout is None else timeout
    cancel_event = cancel_event or threading.Event()

    deadline = clock() + timeout
    attempt = 0
    while True:
        if cancel_event.is_set():
            raise TranscriptionCancelled(f"Polling for job {job_id} cancelled")
        attempt += 1
        result = get_status(job_id)
        text = extract_transcription_text(result)
        if text:
            logger.info(f"Job {job_id} produced a transcript after {attempt} poll(s)")
            return text, result
        status = result.get("status")
        if status == "done":
            logger.warning(f"Job {job_id} is done but no transcript could be extracted")
            return None, result
        if status == "error":
            error = result.get("error") or result.get("error_code") or "Transcription failed"
            raise TranscriptionFailed(str(error), result)

        remaining = deadline - clock()
        if remaining <= 0:
            raise TranscriptionTimeout(f"Job {job_id} did not finish within {timeout:.0f}s")
        delay = min(backoff_delay(attempt, initial_delay, max_delay), remaining)
        logger.debug(f"Job {job_id} status={status}, next poll in {delay:.1f}s")
        if cancel_event.wait(delay):
            raise TranscriptionCancelled(f"Polling for job {job_id} cancelled")
