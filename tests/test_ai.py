import json

import pytest

from app.config import settings
from app.core.exceptions import GeminiError
from app.modules.ai import gemini_client
from app.modules.ai.gemini_client import GeminiClient, parse_json_array, parse_json_object
from app.modules.ai.service import fnv1a_hash
from tests.conftest import ALICE, BOB

ENTRY_TEXT = "He told me I was imagining things when I asked about the missing money."


def test_fnv1a_known_values():
    assert fnv1a_hash("") == "811c9dc5"
    assert fnv1a_hash("a") == "e40c292c"


def test_json_parsing_is_lenient():
    assert parse_json_array('["a", "b"]') == ["a", "b"]
    assert parse_json_array('Sure! ["a"] hope that helps') == ["a"]
    assert parse_json_array('{"not": "a list"}') is None
    assert parse_json_object('```json\n{"x": 1}\n```') == {"x": 1}
    assert parse_json_object("no json here") is None
    assert parse_json_object("") is None


class _Reply:
    def __init__(self, text=None, blocked=False):
        self._text = text
        self._blocked = blocked

    @property
    def text(self):
        if self._blocked:
            raise ValueError("response was blocked")
        return self._text


def _fake_model(reply, seen):
    class FakeModel:
        def __init__(self, model_name, generation_config=None, safety_settings=None):
            seen["model"] = model_name
            seen["safety_settings"] = safety_settings

        def generate_content(self, prompt):
            seen["prompt"] = prompt
            if isinstance(reply, Exception):
                raise reply
            return reply
    return FakeModel


def test_gemini_client_returns_reply_text(monkeypatch):
    seen = {}
    monkeypatch.setattr(gemini_client.genai, "configure", lambda api_key: seen.setdefault("key", api_key))
    monkeypatch.setattr(gemini_client.genai, "GenerativeModel", _fake_model(_Reply('["Title"]'), seen))

    text = GeminiClient(api_key="k").generate("prompt text", model="gemini-test")

    assert text == '["Title"]'
    assert seen["key"] == "k"
    assert seen["model"] == "gemini-test"
    assert seen["safety_settings"] == gemini_client.SAFETY_SETTINGS


def test_gemini_blocked_reply_is_empty(monkeypatch):
    monkeypatch.setattr(gemini_client.genai, "configure", lambda api_key: None)
    monkeypatch.setattr(gemini_client.genai, "GenerativeModel", _fake_model(_Reply(blocked=True), {}))
    assert GeminiClient(api_key="k").generate("p") == ""


def test_gemini_api_failure_and_missing_key(monkeypatch):
    monkeypatch.setattr(gemini_client.genai, "configure", lambda api_key: None)
    monkeypatch.setattr(gemini_client.genai, "GenerativeModel", _fake_model(RuntimeError("quota"), {}))
    with pytest.raises(GeminiError):
        GeminiClient(api_key="k").generate("p")
    with pytest.raises(GeminiError, match="GOOGLE_AI_API_KEY"):
        GeminiClient(api_key="").generate("p")


def test_suggest_title_caches_and_records_usage(client, db, gemini, alice_headers):
    gemini.replies = ['["Missing Money Questioned", "Reality Denied"]']

    first = client.post("/api/ai/suggest-title", json={"text": ENTRY_TEXT, "n": 2}, headers=alice_headers)
    second = client.post("/api/ai/suggest-title", json={"text": ENTRY_TEXT, "n": 2}, headers=alice_headers)

    assert first.status_code == 200
    assert first.json() == {"success": True, "suggestions": ["Missing Money Questioned", "Reality Denied"]}
    assert second.json()["cached"] is True
    assert len(gemini.calls) == 1
    assert gemini.calls[0]["model"] == settings.gemini_free_tier_model
    assert db.feature_usage[(ALICE, "ai_interactions")] == 1


def test_suggest_title_falls_back_on_unusable_reply(client, gemini, alice_headers):
    gemini.replies = ["I cannot help with that."]
    response = client.post("/api/ai/suggest-title", json={"text": ENTRY_TEXT}, headers=alice_headers)
    assert response.json()["suggestions"] == ["Journal Entry"]


def test_suggest_title_validation_and_quota(client, db, gemini, alice_headers):
    assert client.post("/api/ai/suggest-title", json={"text": "short"}, headers=alice_headers).status_code == 400

    db.feature_usage[(ALICE, "ai_interactions")] = 10
    response = client.post("/api/ai/suggest-title", json={"text": ENTRY_TEXT}, headers=alice_headers)
    assert response.status_code == 429
    assert response.json()["upgrade_required"] == "recovery"
    assert gemini.calls == []


def test_suggest_metadata_requires_paid_plan(client, gemini, alice_headers):
    response = client.post("/api/ai/suggest-metadata", json={"text": ENTRY_TEXT}, headers=alice_headers)
    assert response.status_code == 403
    assert response.json()["upgrade_required"] == "recovery"
    assert gemini.calls == []


def test_suggest_metadata_sanitizes_reply(client, db, gemini, bob_headers):
    reply = {
        "title_suggestions": [{"text": "x" * 120, "confidence": 1.7, "rationale": "long"}],
        "abuse_types": [
            {"key": "gaslighting", "confidence": 0.8, "evidence": ["imagining things"]},
            {"key": "made_up_type", "confidence": 0.9},
        ],
        "behavior_categories": [{"key": "financial_control", "confidence": -2}],
        "warnings": [],
    }
    gemini.replies = ["```json\n" + json.dumps(reply) + "\n```"]

    response = client.post("/api/ai/suggest-metadata", json={"text": ENTRY_TEXT}, headers=bob_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["model"] == settings.gemini_paid_tier_model
    assert len(body["title_suggestions"][0]["text"]) == 80
    assert body["title_suggestions"][0]["confidence"] == 1.0
    assert [a["key"] for a in body["abuse_types"]] == ["gaslighting"]
    assert body["behavior_categories"][0]["confidence"] == 0.0
    assert db.feature_usage[(BOB, "ai_interactions")] == 1


def test_suggest_metadata_parsing_fallback(client, gemini, bob_headers):
    gemini.replies = ["totally not json"]
    body = client.post("/api/ai/suggest-metadata", json={"text": ENTRY_TEXT}, headers=bob_headers).json()
    assert body["warnings"] == ["PARSING_FALLBACK"]
    assert body["title_suggestions"][0]["text"] == "Journal Entry"


def test_coping_strategies_from_model(client, gemini, alice_headers):
    gemini.replies = [json.dumps({"suggestions": [
        {"strategy_name": "Box Breathing", "description": "4-4-4-4", "category": "breathing",
         "effectiveness_rating": 9},
        {"strategy_name": "Odd", "description": "?", "category": "astrology"},
    ]})]

    body = client.post(
        "/api/ai/suggest-coping-strategies", json={"context": {"anxiety": 8}}, headers=alice_headers
    ).json()

    assert body["source"] == "ai"
    assert body["suggestions"][0]["effectiveness_rating"] == 5
    assert body["suggestions"][1]["category"] == "other"
    assert gemini.calls[0]["temperature"] == 0.6


def test_coping_strategies_fall_back_to_templates(client, gemini, alice_headers):
    gemini.replies = ["sorry"]
    body = client.post(
        "/api/ai/suggest-coping-strategies",
        json={"context": {"preferred_categories": ["creative"]}},
        headers=alice_headers,
    ).json()
    assert body["source"] == "templates"
    assert len(body["suggestions"]) == 5
    assert body["suggestions"][0]["category"] == "creative"


def test_coping_strategies_upstream_error(client, gemini, alice_headers):
    gemini.error = GeminiError("Gemini API error: 500")
    response = client.post("/api/ai/suggest-coping-strategies", json={}, headers=alice_headers)
    assert response.status_code == 502
    assert response.json()["code"] == "GEMINI_ERROR"


def _seed_entries(db, user_id, count=3):
    for day in range(1, count + 1):
        db.add_row("journal_entries", user_id=user_id, title=f"Entry {day}",
                   description="He raised his voice.", incident_date=f"2026-09-0{day}",
                   abuse_types=["gaslighting"], safety_rating=3)


def test_pattern_analysis_saves_and_records(client, db, gemini, bob_headers):
    _seed_entries(db, BOB)
    gemini.replies = [json.dumps({"patterns_identified": [{"pattern_type": "escalation"}],
                                  "insights": {"summary": "ok"}})]

    response = client.post("/api/ai/pattern-analysis", json={}, headers=bob_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["metadata"]["entries_analyzed"] == 3
    assert body["metadata"]["analysis_period"] == {"start": "2026-09-01", "end": "2026-09-03"}
    assert body["analysis"]["recommendations"] == []
    saved = db.tables["pattern_analysis"][0]
    assert body["analysis_id"] == saved["id"]
    assert saved["confidence_score"] == 0.85
    assert saved["ai_model_version"] == settings.gemini_paid_tier_model
    assert gemini.calls[0]["temperature"] == 0.3
    assert db.feature_usage[(BOB, "pattern_analysis")] == 1


def test_pattern_analysis_still_returned_when_save_fails(client, db, gemini, bob_headers):
    _seed_entries(db, BOB)
    db.failing_tables.add("pattern_analysis")
    gemini.replies = ['{"patterns_identified": []}']

    response = client.post("/api/ai/pattern-analysis", json={}, headers=bob_headers)

    assert response.status_code == 200
    assert response.json()["analysis_id"] is None


def test_pattern_analysis_errors(client, db, gemini, alice_headers, bob_headers):
    assert client.post("/api/ai/pattern-analysis", json={}, headers=bob_headers).status_code == 400

    _seed_entries(db, BOB)
    gemini.replies = ["no structure"]
    response = client.post("/api/ai/pattern-analysis", json={}, headers=bob_headers)
    assert response.status_code == 502

    db.feature_usage[(ALICE, "pattern_analysis")] = 2
    limited = client.post("/api/ai/pattern-analysis", json={}, headers=alice_headers)
    assert limited.status_code == 429
    assert limited.json()["error"] == "Pattern analysis limit reached for your subscription tier"
