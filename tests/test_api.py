"""End-to-end tests for the HTTP surface"""

import json

from pika_backend.main import app
from pika_backend.routers.deps import get_note_formatter
from pika_backend.services.note_formatter import NoteFormatter

from .conftest import FakeLLMService


def use_llm(*responses):
    llm = FakeLLMService(*responses)
    app.dependency_overrides[get_note_formatter] = lambda: NoteFormatter(llm)
    return llm


def reply(formatted, suggestions):
    return json.dumps({"formatted": formatted, "suggestions": suggestions})


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_changed_lines_endpoint(client):
    response = client.post(
        "/api/diff/changed-lines",
        json={"original_text": "a\nb", "modified_text": "a\nx\nb"},
    )

    assert response.status_code == 200
    assert response.json() == {
        "changed_lines": [0, 1, 2],
        "has_pending_changes": True,
        "line_count": 3,
    }


def test_alignment_endpoint(client):
    response = client.post(
        "/api/diff/alignment",
        json={"original_text": "a\nb\nc", "modified_text": "a\nc"},
    )

    changes = response.json()["changes"]
    assert changes == [{"kind": "delete", "index": 1, "line": "b", "previous_line": None}]


def test_accept_workflow(client):
    started = client.post("/api/sessions/note-1/start", json={"original_text": "A"})
    assert started.json()["state"] == "clean"

    modified = client.put("/api/sessions/note-1/modified", json={"text": "B"})
    assert modified.json()["has_pending_changes"] is True
    assert modified.json()["state"] == "reviewing"

    accepted = client.post("/api/sessions/note-1/accept")
    body = accepted.json()
    assert body["committed_text"] == "B"
    assert body["session"]["original_text"] == "B"
    assert body["session"]["changed_lines"] == []
    assert body["session"]["has_pending_changes"] is False


def test_reject_workflow(client):
    client.post("/api/sessions/note-1/start", json={"original_text": "A"})
    client.put("/api/sessions/note-1/modified", json={"text": "B"})

    rejected = client.post("/api/sessions/note-1/reject")

    assert rejected.json()["restored_text"] == "A"
    assert rejected.json()["session"]["modified_text"] == "A"
    assert client.get("/api/sessions/note-1").json()["state"] == "clean"


def test_unknown_session_is_404(client):
    assert client.get("/api/sessions/missing").status_code == 404
    assert client.post("/api/sessions/missing/accept").status_code == 404
    assert client.delete("/api/sessions/missing").status_code == 404


def test_close_session(client):
    client.post("/api/sessions/note-1/start", json={"original_text": "A"})

    assert client.delete("/api/sessions/note-1").status_code == 200
    assert client.get("/api/sessions/note-1").status_code == 404


def test_transform_puts_formatted_text_up_for_review(client):
    llm = use_llm(reply("# Shopping\n- milk\n- eggs", ["Make a checklist", "Add prices"]))
    client.post("/api/sessions/note-1/start", json={"original_text": "shopping milk eggs"})

    response = client.post("/api/sessions/note-1/transform")

    assert response.status_code == 200
    body = response.json()
    assert body["cached"] is False
    assert body["suggestions"] == ["Make a checklist", "Add prices"]
    assert body["session"]["modified_text"] == "# Shopping\n- milk\n- eggs"
    assert body["session"]["changed_lines"] == [0, 1, 2]
    assert llm.calls[0]["prompt"] == "shopping milk eggs"

    saved = client.get("/api/suggestions/note-1").json()
    assert saved["suggestions"] == ["Make a checklist", "Add prices"]


def test_transform_reuses_cached_result(client):
    llm = use_llm(reply("# Title", ["Add source"]))
    client.post("/api/sessions/note-1/start", json={"original_text": "title"})
    client.post("/api/sessions/note-1/transform")

    again = client.post("/api/sessions/note-1/transform")

    assert again.json()["cached"] is True
    assert again.json()["suggestions"] == ["Add source"]
    assert len(llm.calls) == 1


def test_reject_marks_suggestions_stale(client):
    use_llm(reply("# Title", ["Add source"]), reply("# Title", ["Add source"]))
    client.post("/api/sessions/note-1/start", json={"original_text": "title"})
    client.post("/api/sessions/note-1/transform")

    client.post("/api/sessions/note-1/reject")

    assert client.get("/api/suggestions/note-1").json()["text_modified"] is True


def test_apply_suggestion_uses_cached_list(client):
    llm = use_llm(
        reply("# Trip\ntickets", ["Make a checklist", "Add dates"]),
        reply("# Trip\n- [ ] tickets", ["Add dates", "Add budget"]),
    )
    client.post("/api/sessions/note-1/start", json={"original_text": "trip tickets"})
    client.post("/api/sessions/note-1/transform")

    response = client.post(
        "/api/sessions/note-1/apply-suggestion",
        json={"suggestion": "Make a checklist"},
    )

    body = response.json()
    assert body["session"]["modified_text"] == "# Trip\n- [ ] tickets"
    assert body["suggestions"] == ["Add dates", "Add budget"]
    assert "[1] Add dates" in llm.calls[1]["prompt"]


def test_transform_provider_failure_is_502(client):
    use_llm(Exception("OpenAI API error (500): boom"))
    client.post("/api/sessions/note-1/start", json={"original_text": "text"})

    response = client.post("/api/sessions/note-1/transform")

    assert response.status_code == 502
    assert client.get("/api/sessions/note-1").json()["modified_text"] == "text"


def test_transform_without_api_key_is_400(client):
    client.post("/api/sessions/note-1/start", json={"original_text": "text"})

    response = client.post("/api/sessions/note-1/transform")

    assert response.status_code == 400
    assert "API key" in response.json()["detail"]


def test_suggestions_missing_is_404(client):
    assert client.get("/api/suggestions/none").status_code == 404
    assert client.delete("/api/suggestions/none").status_code == 404


def test_config_masks_keys(client):
    client.put("/api/config", json={"openai": {"apiKey": "sk-1234567890abcdef"}})

    openai = client.get("/api/config").json()["openai"]

    assert openai["apiKey"] == "sk-1" + "*" * 11 + "cdef"


def test_config_diff_settings_drive_sessions(client):
    response = client.put("/api/config", json={"diff": {"contextLines": 0}})
    assert response.status_code == 200

    client.post("/api/sessions/note-1/start", json={"original_text": "a\nb"})
    snapshot = client.put("/api/sessions/note-1/modified", json={"text": "a\nx\nb"}).json()

    assert snapshot["changed_lines"] == [1]


def test_config_rejects_invalid_settings(client):
    assert client.put("/api/config", json={"diff": {"lookaheadWindow": 0}}).status_code == 400
    assert client.put("/api/config", json={"provider": "telegraph"}).status_code == 400


def test_validate_without_key_reports_failure(client):
    body = client.post("/api/config/validate").json()

    assert body["valid"] is False
    assert body["provider"] == "openai"


def test_restart_reuses_the_note_session(client):
    client.post("/api/sessions/note-1/start", json={"original_text": "A"})
    session = client.app.state.session_store.get("note-1")

    client.post("/api/sessions/note-1/start", json={"original_text": "B"})

    assert client.app.state.session_store.get("note-1") is session
    assert session.original_text == "B"
