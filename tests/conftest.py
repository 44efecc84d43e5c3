"""Shared fixtures: a FakeSupabase behind the app, fake Gladia and Gemini clients."""
import pytest
from fastapi.testclient import TestClient

from app.config import settings
from app.database.supabase_client import SupabaseClient
from app.main import app
from app.modules.ai.gemini_client import get_gemini_client
from app.modules.ai.service import clear_suggestion_cache
from app.modules.auth.service import clear_auth_cache
from app.modules.transcription import poll_registry
from app.modules.transcription.gladia_client import get_gladia_client
from tests.fakes import FakeSupabase, FakeGladia, FakeGemini

ALICE = "user-alice"
BOB = "user-bob"


@pytest.fixture(autouse=True)
def _isolate_state(monkeypatch):
    """Reset process-level caches and make background polling instant."""
    clear_auth_cache()
    clear_suggestion_cache()
    poll_registry.clear()
    monkeypatch.setattr(settings, "transcription_poll_initial_delay", 0.0)
    monkeypatch.setattr(settings, "transcription_poll_max_delay", 0.0)
    monkeypatch.setattr(settings, "transcription_poll_timeout", 0.2)
    monkeypatch.setattr(settings, "transcription_reconciler_enabled", False)
    yield
    poll_registry.clear()
    SupabaseClient.reset_client()


@pytest.fixture
def db():
    fake = FakeSupabase()
    fake.add_user("token-alice", ALICE, "alice@example.com", tier="foundation")
    fake.add_user("token-bob", BOB, "bob@example.com", tier="recovery")
    SupabaseClient._client = fake
    SupabaseClient._service_client = fake
    return fake


@pytest.fixture
def gladia():
    return FakeGladia()


@pytest.fixture
def gemini():
    return FakeGemini()


@pytest.fixture
def client(db, gladia, gemini):
    app.dependency_overrides[get_gladia_client] = lambda: gladia
    app.dependency_overrides[get_gemini_client] = lambda: gemini
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def alice_headers():
    return {"Authorization": "Bearer token-alice"}


@pytest.fixture
def bob_headers():
    return {"Authorization": "Bearer token-bob"}


def set_tier(db: FakeSupabase, user_id: str, tier: str):
    for profile in db.tables["profiles"]:
        if profile["id"] == user_id:
            profile["subscription_tier"] = tier
