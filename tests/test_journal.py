from tests.conftest import ALICE, BOB


def _entry_body(**overrides):
    body = {
        "title": "Argument about money",
        "description": "He said I was imagining the missing money.",
        "incident_date": "2026-09-12",
        "location": "Kitchen",
        "safety_rating": 2,
        "mood_rating": 4,
        "abuse_types": ["gaslighting", "financial_abuse"],
        "emotional_state_before": "calm",
        "emotional_state_after": "shaken",
    }
    body.update(overrides)
    return body


def test_create_and_get_entry(client, db, alice_headers):
    created = client.post("/api/journal", json=_entry_body(), headers=alice_headers)
    assert created.status_code == 201
    entry = created.json()
    assert entry["user_id"] == ALICE

    fetched = client.get(f"/api/journal/{entry['id']}", headers=alice_headers)
    assert fetched.status_code == 200
    assert fetched.json()["abuse_types"] == ["gaslighting", "financial_abuse"]


def test_entry_validation(client, alice_headers):
    assert client.post("/api/journal", json=_entry_body(safety_rating=9), headers=alice_headers).status_code == 422
    assert client.post("/api/journal", json=_entry_body(title=""), headers=alice_headers).status_code == 422


def test_other_users_entry_is_forbidden(client, db, bob_headers, alice_headers):
    entry = client.post("/api/journal", json=_entry_body(), headers=alice_headers).json()
    assert client.get(f"/api/journal/{entry['id']}", headers=bob_headers).status_code == 403
    assert client.delete(f"/api/journal/{entry['id']}", headers=bob_headers).status_code == 403
    assert client.get("/api/journal/does-not-exist", headers=alice_headers).status_code == 404


def test_list_filters(client, db, alice_headers):
    client.post("/api/journal", json=_entry_body(incident_date="2026-08-01", abuse_types=["isolation"]),
                headers=alice_headers)
    client.post("/api/journal", json=_entry_body(incident_date="2026-09-01"), headers=alice_headers)
    client.post("/api/journal", json=_entry_body(incident_date="2026-09-20", is_draft=True), headers=alice_headers)
    db.add_row("journal_entries", user_id=BOB, title="not mine", incident_date="2026-09-05")

    all_entries = client.get("/api/journal", headers=alice_headers).json()
    assert [e["incident_date"] for e in all_entries] == ["2026-09-20", "2026-09-01", "2026-08-01"]

    gaslighting = client.get("/api/journal", params={"abuse_type": "gaslighting"}, headers=alice_headers).json()
    assert len(gaslighting) == 2

    september = client.get(
        "/api/journal", params={"from": "2026-09-01", "to": "2026-09-30", "include_drafts": "false"},
        headers=alice_headers,
    ).json()
    assert [e["incident_date"] for e in september] == ["2026-09-01"]

    page = client.get("/api/journal", params={"limit": 1, "offset": 1}, headers=alice_headers).json()
    assert [e["incident_date"] for e in page] == ["2026-09-01"]


def test_update_entry(client, alice_headers):
    entry = client.post("/api/journal", json=_entry_body(), headers=alice_headers).json()
    updated = client.put(f"/api/journal/{entry['id']}", json={"safety_rating": 5}, headers=alice_headers)
    assert updated.status_code == 200
    assert updated.json()["safety_rating"] == 5
    assert updated.json()["title"] == "Argument about money"


def test_delete_entry_unlinks_evidence(client, db, alice_headers):
    entry = client.post("/api/journal", json=_entry_body(), headers=alice_headers).json()
    evidence = db.add_row("evidence_files", user_id=ALICE, journal_entry_id=entry["id"], file_name="a.webm")

    response = client.delete(f"/api/journal/{entry['id']}", headers=alice_headers)

    assert response.status_code == 204
    assert db.get_row("journal_entries", entry["id"]) is None
    assert db.get_row("evidence_files", evidence["id"])["journal_entry_id"] is None


def test_entry_evidence_listing_has_access_urls(client, db, alice_headers):
    entry = client.post("/api/journal", json=_entry_body(), headers=alice_headers).json()
    db.objects.add(("evidence-audio", "u/a.webm"))
    db.add_row("evidence_files", user_id=ALICE, journal_entry_id=entry["id"], file_name="a.webm",
               storage_bucket="evidence-audio", storage_path="u/a.webm", uploaded_at="2026-09-12T10:00:00")
    db.add_row("evidence_files", user_id=ALICE, journal_entry_id=entry["id"], file_name="b.jpg",
               storage_bucket="public-images", storage_path="u/b.jpg", uploaded_at="2026-09-12T11:00:00")

    response = client.get(f"/api/journal/{entry['id']}/evidence", headers=alice_headers)

    assert response.status_code == 200
    evidence = response.json()["evidence"]
    assert "/sign/evidence-audio/u/a.webm" in evidence[0]["signed_url"]
    assert "/public/public-images/u/b.jpg" in evidence[1]["signed_url"]


def test_markdown_export(client, db, alice_headers):
    entry = client.post("/api/journal", json=_entry_body(), headers=alice_headers).json()
    db.add_row("evidence_files", user_id=ALICE, journal_entry_id=entry["id"], file_name="call.webm",
               caption="voicemail", transcription="t" * 700, uploaded_at="2026-09-12T10:00:00")

    response = client.get(f"/api/journal/{entry['id']}/export", headers=alice_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/markdown")
    assert f'journal-{entry["id"]}.md' in response.headers["content-disposition"]
    text = response.text
    assert text.startswith("# Argument about money")
    assert "Location: Kitchen" in text
    assert "Safety: 2/5" in text
    assert "- financial abuse" in text
    assert "- Before: calm" in text
    assert "- call.webm - voicemail" in text
    assert "Transcript: " + "t" * 600 + "…" in text


def test_redacted_export(client, db, alice_headers):
    entry = client.post("/api/journal", json=_entry_body(), headers=alice_headers).json()
    db.add_row("evidence_files", user_id=ALICE, journal_entry_id=entry["id"], file_name="call.webm",
               caption="voicemail", transcription="secret words")

    text = client.get(f"/api/journal/{entry['id']}/export", params={"redact": "true"}, headers=alice_headers).text

    assert "Kitchen" not in text
    assert "Emotional impact" not in text
    assert "voicemail" not in text
    assert "secret words" not in text
    assert "- call.webm" in text


def test_export_formats(client, db, alice_headers, bob_headers):
    entry = client.post("/api/journal", json=_entry_body(), headers=alice_headers).json()
    pdf = client.get(f"/api/journal/{entry['id']}/export", params={"format": "pdf"}, headers=alice_headers)
    assert pdf.status_code == 403
    other = client.get(f"/api/journal/{entry['id']}/export", params={"format": "docx"}, headers=alice_headers)
    assert other.status_code == 400

    bob_entry = client.post("/api/journal", json=_entry_body(), headers=bob_headers).json()
    paid_pdf = client.get(f"/api/journal/{bob_entry['id']}/export", params={"format": "pdf"}, headers=bob_headers)
    assert paid_pdf.status_code == 400
