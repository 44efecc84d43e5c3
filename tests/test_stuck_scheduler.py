import asyncio

from app.core.exceptions import GladiaError
from app.modules.transcription import poll_registry, stuck_scheduler
from app.modules.transcription.stuck_scheduler import reconcile_stuck_transcriptions
from tests.conftest import ALICE, BOB
from tests.fakes import FakeSupabase, FakeGladia, done_payload

OLD = "2020-01-01T00:00:00"


def _processing(db, job_id=None, user_id=ALICE, updated_at=OLD):
    metadata = {"transcription_job_id": job_id} if job_id else {}
    return db.add_row(
        "evidence_files", user_id=user_id, file_name="a.webm", transcription_status="processing",
        updated_at=updated_at, metadata=metadata,
    )


def test_reconciles_old_processing_rows():
    db, gladia = FakeSupabase(), FakeGladia()
    done = _processing(db, "job-done")
    errored = _processing(db, "job-err")
    waiting = _processing(db, "job-wait")
    gladia.queue("job-done", done_payload("ok"))
    gladia.queue("job-err", {"status": "error", "error": "unsupported codec"})
    gladia.queue("job-wait", {"status": "processing"})

    summary = reconcile_stuck_transcriptions(db, gladia)

    assert (summary.checked, summary.completed, summary.failed, summary.still_processing) == (3, 1, 1, 1)
    assert db.get_row("evidence_files", done["id"])["transcription_status"] == "completed"
    assert db.get_row("evidence_files", errored["id"])["transcription_status"] == "failed"
    assert db.get_row("evidence_files", waiting["id"])["transcription_status"] == "processing"


def test_skips_recent_rows_rows_without_job_and_active_polls():
    db, gladia = FakeSupabase(), FakeGladia()
    _processing(db, "job-recent", updated_at="2999-01-01T00:00:00")
    _processing(db, job_id=None)
    polled = _processing(db, "job-polled")
    poll_registry.register(polled["id"])

    summary = reconcile_stuck_transcriptions(db, gladia)

    assert summary.checked == 0
    assert gladia.status_calls == []


def test_gladia_errors_are_counted_and_rows_left_alone():
    db, gladia = FakeSupabase(), FakeGladia()
    row = _processing(db, "job-1")
    gladia.status_error = GladiaError("Gladia API error: 503", upstream_status=503)

    summary = reconcile_stuck_transcriptions(db, gladia)

    assert summary.checked == 1
    assert summary.errors == 1
    assert db.get_row("evidence_files", row["id"])["transcription_status"] == "processing"


def test_user_filter_and_batch_limit():
    db, gladia = FakeSupabase(), FakeGladia()
    for i in range(3):
        _processing(db, f"job-a{i}")
    _processing(db, "job-b", user_id=BOB)

    summary = reconcile_stuck_transcriptions(db, gladia, user_id=ALICE, limit=2)

    assert summary.checked == 2
    assert all(job.startswith("job-a") for job in gladia.status_calls)


def test_scheduled_check_uses_shared_client(monkeypatch):
    db, gladia = FakeSupabase(), FakeGladia()
    _processing(db, "job-1")
    gladia.queue("job-1", done_payload("late"))
    monkeypatch.setattr(stuck_scheduler, "get_supabase", lambda: db)
    monkeypatch.setattr(stuck_scheduler, "GladiaClient", lambda: gladia)

    asyncio.run(stuck_scheduler.check_stuck_transcriptions())

    assert db.tables["evidence_files"][0]["transcription_status"] == "completed"


def test_scheduled_check_logs_instead_of_raising(monkeypatch):
    def broken():
        raise RuntimeError("no database")

    monkeypatch.setattr(stuck_scheduler, "get_supabase", broken)
    asyncio.run(stuck_scheduler.check_stuck_transcriptions())
