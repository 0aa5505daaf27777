import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from datacleanse.api import endpoints
from datacleanse.config import settings
from datacleanse.main import app
from datacleanse.session import CleansingSession
from datacleanse.worker import SessionWorker

CSV = "name,email\nAda, ada@example.com \nAlan,alan.example.com\nAda,ada@example.com\n"

def test_parse_command_produces_parse_success():
    session = CleansingSession()
    event = session.handle({"command": "parse", "source": CSV, "format": "csv"})
    assert event["type"] == "parse_success"
    assert event["headers"] == ["name", "email"]
    assert event["total_rows"] == 3
    assert len(event["preview_rows"]) == 3
    assert [p["name"] for p in event["profile"]] == ["name", "email"]
    assert event["profile"][0]["unique_count"] == 2

def test_preview_is_limited():
    session = CleansingSession(preview_rows=2)
    rows = "\n".join(str(i) for i in range(10))
    event = session.handle({"command": "parse", "source": "n\n" + rows, "format": "csv"})
    assert event["total_rows"] == 10
    assert len(event["preview_rows"]) == 2

def test_cleanse_command_produces_exports_and_summary():
    session = CleansingSession()
    session.handle({"command": "parse", "source": CSV, "format": "csv"})
    event = session.handle({"command": "cleanse", "rules": [
        {"type": "deduplicate", "column": "name"},
        {"type": "case", "column": "name", "mode": "UPPERCASE"},
    ]})
    assert event["type"] == "cleanse_success"
    assert event["summary"]["rows_removed"] == 1
    assert event["summary"]["cells_modified"] == 2
    assert event["summary"]["original_row_count"] == 3
    assert event["summary"]["final_row_count"] == 2
    assert event["exported_csv_text"].splitlines()[1] == '"ADA","ada@example.com"'
    assert json.loads(event["exported_json_text"])[1] == {"name": "ALAN", "email": "alan.example.com"}
    assert event["preview_rows"][0]["name"] == "ADA"

def test_cleanse_keeps_source_for_retry():
    session = CleansingSession()
    session.handle({"command": "parse", "source": CSV, "format": "csv"})
    bad = session.handle({"command": "cleanse", "rules": [
        {"type": "deduplicate", "column": "name"},
        {"type": "find_replace", "column": "name", "pattern": "[", "replacement": ""},
    ]})
    assert bad["type"] == "error"
    assert "pattern" in bad["message"]
    good = session.handle({"command": "cleanse", "rules": []})
    assert good["summary"]["final_row_count"] == 3

def test_cleanse_without_dataset_is_an_error():
    event = CleansingSession().handle({"command": "cleanse", "rules": []})
    assert event["type"] == "error"

def test_failed_parse_keeps_previous_dataset():
    session = CleansingSession()
    session.handle({"command": "parse", "source": CSV, "format": "csv"})
    event = session.handle({"command": "parse", "source": "{broken", "format": "json"})
    assert event["type"] == "error"
    assert session.dataset.row_count == 3

@pytest.mark.parametrize("message", [
    {"command": "explode"},
    {"command": "parse", "format": "csv"},
    {"command": "cleanse", "rules": [{"type": "case", "column": "a", "mode": "SHOUT"}]},
])
def test_malformed_commands_are_errors(message):
    event = CleansingSession().handle(message)
    assert event["type"] == "error"
    assert event["message"].startswith("Invalid command")

@pytest.mark.asyncio
async def test_worker_handles_one_command_at_a_time():
    worker = SessionWorker()
    parsed = await worker.submit({"command": "parse", "source": CSV, "format": "csv"})
    assert parsed["type"] == "parse_success"
    events = await asyncio.gather(*[
        worker.submit({"command": "cleanse", "rules": [{"type": "mask", "column": "email"}]})
        for _ in range(3)
    ])
    assert [e["summary"]["cells_modified"] for e in events] == [3, 3, 3]

def test_http_session_lifecycle():
    with TestClient(app) as client:
        session_id = client.post("/sessions").json()["session_id"]

        r = client.post(f"/sessions/{session_id}/parse", json={"source": CSV, "format": "csv"})
        assert r.status_code == 200
        assert r.json()["type"] == "parse_success"

        r = client.get(f"/sessions/{session_id}")
        assert r.json()["total_rows"] == 3

        r = client.post(f"/sessions/{session_id}/cleanse", json={"rules": [
            {"type": "validate_format", "column": "email", "kind": "containsAt", "remove_invalid": True},
        ]})
        assert r.status_code == 200
        assert r.json()["summary"]["final_row_count"] == 2

        r = client.post(f"/sessions/{session_id}/parse", json={"source": "[1]", "format": "json"})
        assert r.status_code == 400
        assert r.json()["type"] == "error"

        assert client.delete(f"/sessions/{session_id}").status_code == 200
        assert client.get(f"/sessions/{session_id}").status_code == 404

def test_unknown_session_is_404():
    with TestClient(app) as client:
        r = client.post("/sessions/nope/cleanse", json={"rules": []})
        assert r.status_code == 404

def test_websocket_one_event_per_command():
    with TestClient(app) as client:
        with client.websocket_connect("/ws/session") as ws:
            ws.send_json({"command": "parse", "source": '[{"a": 1}, {"a": 1}]', "format": "json"})
            assert ws.receive_json()["type"] == "parse_success"
            ws.send_json({"command": "cleanse", "rules": [{"type": "deduplicate", "column": "a"}]})
            event = ws.receive_json()
            assert event["type"] == "cleanse_success"
            assert event["summary"]["rows_removed"] == 1

def test_websocket_bad_frame_keeps_session():
    with TestClient(app) as client:
        with client.websocket_connect("/ws/session") as ws:
            ws.send_json({"command": "parse", "source": CSV, "format": "csv"})
            assert ws.receive_json()["type"] == "parse_success"
            ws.send_text("{not json")
            event = ws.receive_json()
            assert event["type"] == "error"
            assert event["message"].startswith("Invalid command")
            ws.send_json({"command": "cleanse", "rules": []})
            event = ws.receive_json()
            assert event["type"] == "cleanse_success"
            assert event["summary"]["final_row_count"] == 3

def test_session_store_evicts_oldest(monkeypatch):
    monkeypatch.setattr(settings, "MAX_SESSIONS", 2)
    endpoints._SESSIONS.clear()
    with TestClient(app) as client:
        first = client.post("/sessions").json()["session_id"]
        client.post("/sessions")
        client.post("/sessions")
        assert len(endpoints._SESSIONS) == 2
        assert client.get(f"/sessions/{first}").status_code == 404

def test_snapshot_pairs_dataset_with_its_profile():
    session = CleansingSession()
    assert session.snapshot() == (None, [])
    session.handle({"command": "parse", "source": CSV, "format": "csv"})
    dataset, column_profiles = session.snapshot()
    assert [p.name for p in column_profiles] == dataset.header
