from app.database.supabase_client import SupabaseClient
from app.modules.transcription import poll_registry
from app.modules.transcription.transcription_worker import poll_transcription_job
from tests.conftest import ALICE
from tests.fakes import FakeSupabase, FakeGladia, done_payload


def _setup():
    db, gladia = FakeSupabase(), FakeGladia()
    SupabaseClient._service_client = db
    row = db.add_row(
        "evidence_files", user_id=ALICE, file_name="a.webm", transcription_status="processing",
        metadata={"transcription_job_id": "job-1"},
    )
    return db, gladia, row


def test_worker_completes_row_and_unregisters():
    db, gladia, row = _setup()
    gladia.queue("job-1", done_payload("done text"))

    poll_transcription_job(row["id"], ALICE, "job-1", gladia=gladia)

    assert db.get_row("evidence_files", row["id"])["transcription"] == "done text"
    assert poll_registry.get_event(row["id"]) is None


def test_worker_fails_row_on_gladia_error_status():
    db, gladia, row = _setup()
    gladia.queue("job-1", {"status": "error", "error_code": "invalid_audio"})

    poll_transcription_job(row["id"], ALICE, "job-1", gladia=gladia)

    stored = db.get_row("evidence_files", row["id"])
    assert stored["transcription_status"] == "failed"
    assert stored["metadata"]["transcription_error"] == "invalid_audio"


def test_worker_timeout_leaves_row_processing():
    db, gladia, row = _setup()
    gladia.queue("job-1", {"status": "processing"})

    poll_transcription_job(row["id"], ALICE, "job-1", gladia=gladia)

    assert db.get_row("evidence_files", row["id"])["transcription_status"] == "processing"
    assert len(gladia.status_calls) >= 1


def test_worker_stops_when_cancelled():
    db, gladia, row = _setup()

    def cancel_then_report(job_id):
        poll_registry.cancel(row["id"])
        return {"status": "processing"}

    gladia.get_status = cancel_then_report
    poll_transcription_job(row["id"], ALICE, "job-1", gladia=gladia)

    assert db.get_row("evidence_files", row["id"])["transcription_status"] == "processing"
    assert poll_registry.get_event(row["id"]) is None


def test_worker_ignores_missing_row():
    db, gladia, _ = _setup()
    poll_transcription_job("missing", ALICE, "job-1", gladia=gladia)
    assert gladia.status_calls == []


def test_worker_for_earlier_job_leaves_retried_row_alone():
    db, gladia, row = _setup()
    row["metadata"] = {"transcription_job_id": "job-2"}
    gladia.queue("job-1", {"status": "error", "error_code": "old failure"})

    poll_transcription_job(row["id"], ALICE, "job-1", gladia=gladia)

    stored = db.get_row("evidence_files", row["id"])
    assert stored["transcription_status"] == "processing"
    assert stored["metadata"] == {"transcription_job_id": "job-2"}


def test_worker_fails_row_when_job_has_no_transcript():
    db, gladia, row = _setup()
    gladia.queue("job-1", {"status": "done", "result": {"transcription": {"full_transcript": "  "}}})

    poll_transcription_job(row["id"], ALICE, "job-1", gladia=gladia)

    stored = db.get_row("evidence_files", row["id"])
    assert stored["transcription_status"] == "failed"
    assert stored["metadata"]["transcription_error"] == "no_transcript"


def test_finishing_worker_keeps_a_newer_workers_registration():
    db, gladia, row = _setup()
    newer = {}

    def retry_while_polling(job_id):
        poll_registry.cancel(row["id"])
        newer["event"] = poll_registry.register(row["id"])
        return {"status": "processing"}

    gladia.get_status = retry_while_polling
    poll_transcription_job(row["id"], ALICE, "job-1", gladia=gladia)

    assert poll_registry.get_event(row["id"]) is newer["event"]
    assert not newer["event"].is_set()
