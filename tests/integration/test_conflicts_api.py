import json

from fastapi.testclient import TestClient
from ignition_scripts.main import app

client = TestClient(app)


def _parse(document, file_path="view.json"):
    r = client.post("/conflicts/parse", json={"content": document, "file_path": file_path})
    assert r.status_code == 200
    return r.json()["data"]


def test_parse(conflicted_view):
    data = _parse(conflicted_view)
    assert data["has_conflicts"] is True
    conflict = data["script_conflicts"][0]
    assert conflict["current_branch"] == "HEAD"
    assert conflict["json_key"] == "script"
    assert conflict["current_wrapped"] == "def runAction(self, event):\n\tprint(1)"
    assert conflict["incoming_wrapped"] == "def runAction(self, event):\n\tprint(2)"


def test_resolve(conflicted_view):
    conflict_id = _parse(conflicted_view)["script_conflicts"][0]["id"]
    r = client.post("/conflicts/resolve", json={
        "content": conflicted_view,
        "conflict_id": conflict_id,
        "resolved_text": "def runAction(self, event):\n\tprint(3)",
        "file_path": "view.json",
    })
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["edit"]["start_line"] == 3 and data["edit"]["end_line"] == 7
    assert json.loads(data["content"])["root"]["config"]["script"] == "\tprint(3)"

    # the same id no longer exists in the resolved document
    r = client.post("/conflicts/resolve", json={
        "content": data["content"],
        "conflict_id": conflict_id,
        "resolved_text": "def runAction(self, event):\n\tprint(4)",
        "file_path": "view.json",
    })
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "CONFLICT_NOT_FOUND"
    assert r.json()["error"]["message"] == "Conflict no longer exists"


def test_accept_side(conflicted_view):
    conflict_id = _parse(conflicted_view)["script_conflicts"][0]["id"]
    r = client.post("/conflicts/accept-side", json={
        "content": conflicted_view, "conflict_id": conflict_id, "side": "incoming", "file_path": "view.json",
    })
    assert r.status_code == 200
    assert r.json()["data"]["edit"]["new_text"] == '      "script": "\\tprint(2)",'

    r = client.post("/conflicts/accept-side", json={
        "content": conflicted_view, "conflict_id": conflict_id, "side": "base",
    })
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "INVALID_REQUEST"


def test_accept_side_commits_edited_session(conflicted_view):
    conflict_id = _parse(conflicted_view, "edited.json")["script_conflicts"][0]["id"]
    r = client.post("/conflicts/sessions", json={
        "content": conflicted_view, "conflict_id": conflict_id, "side": "current", "file_path": "edited.json",
    })
    session_id = r.json()["data"]["id"]
    r = client.put(f"/conflicts/sessions/{session_id}", json={
        "content": "def runAction(self, event):\n\tprint('EDITED')",
    })
    assert r.status_code == 200

    r = client.post("/conflicts/accept-side", json={
        "content": conflicted_view, "conflict_id": conflict_id, "side": "current", "file_path": "edited.json",
    })
    assert r.status_code == 200
    content = r.json()["data"]["content"]
    assert "EDITED" in content
    assert json.loads(content)["root"]["config"]["script"] == "\tprint('EDITED')"

    r = client.get(f"/conflicts/sessions/{session_id}")
    assert r.status_code == 404


def test_accept_side_closes_other_sessions(conflicted_view):
    conflict_id = _parse(conflicted_view, "other.json")["script_conflicts"][0]["id"]
    r = client.post("/conflicts/sessions", json={
        "content": conflicted_view, "conflict_id": conflict_id, "side": "incoming", "file_path": "other.json",
    })
    session_id = r.json()["data"]["id"]

    r = client.post("/conflicts/accept-side", json={
        "content": conflicted_view, "conflict_id": conflict_id, "side": "current", "file_path": "other.json",
    })
    assert r.status_code == 200
    assert r.json()["data"]["edit"]["new_text"] == '      "script": "\\tprint(1)",'

    r = client.get("/conflicts/sessions", params={"conflict_id": conflict_id})
    assert r.json()["data"]["total"] == 0
    assert client.get(f"/conflicts/sessions/{session_id}").status_code == 404


def test_session_lifecycle(conflicted_view):
    conflict_id = _parse(conflicted_view, "session.json")["script_conflicts"][0]["id"]
    r = client.post("/conflicts/sessions", json={
        "content": conflicted_view, "conflict_id": conflict_id, "side": "current", "file_path": "session.json",
    })
    assert r.status_code == 201
    session = r.json()["data"]
    session_id = session["id"]
    assert session["content"] == "def runAction(self, event):\n\tprint(1)"

    r = client.get("/conflicts/sessions", params={"conflict_id": conflict_id})
    assert any(s["id"] == session_id for s in r.json()["data"]["sessions"])

    r = client.put(f"/conflicts/sessions/{session_id}", json={
        "content": "def runAction(self, event):\n\tprint(1)\n\tprint(2)",
    })
    assert r.status_code == 200

    r = client.post(f"/conflicts/sessions/{session_id}/accept", json={
        "conflict_id": "conflict-000000000000", "document": conflicted_view,
    })
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "CONFLICT_ID_MISMATCH"

    r = client.post(f"/conflicts/sessions/{session_id}/accept", json={
        "conflict_id": conflict_id, "document": conflicted_view,
    })
    assert r.status_code == 200
    content = r.json()["data"]["content"]
    assert json.loads(content)["root"]["config"]["script"] == "\tprint(1)\n\tprint(2)"

    r = client.get(f"/conflicts/sessions/{session_id}")
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "SESSION_NOT_FOUND"


def test_open_session_for_unknown_conflict(conflicted_view):
    r = client.post("/conflicts/sessions", json={
        "content": conflicted_view, "conflict_id": "conflict-000000000000", "side": "current",
    })
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "CONFLICT_NOT_FOUND"


def test_delete_session(conflicted_view):
    conflict_id = _parse(conflicted_view)["script_conflicts"][0]["id"]
    r = client.post("/conflicts/sessions", json={
        "content": conflicted_view, "conflict_id": conflict_id, "side": "incoming", "file_path": "view.json",
    })
    session_id = r.json()["data"]["id"]

    r = client.delete(f"/conflicts/sessions/{session_id}")
    assert r.status_code == 204
    r = client.delete(f"/conflicts/sessions/{session_id}")
    assert r.status_code == 404
