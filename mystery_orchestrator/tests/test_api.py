"""
HTTP tests for the FastAPI application (generation stream, CRUD, re-validation).
"""

import asyncio
import json
from contextlib import suppress
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from mystery_orchestrator.api import create_app
from mystery_orchestrator.config import AppSettings, LLMConfiguration
from mystery_orchestrator.services import ProjectStore, ProjectStoreError

from conftest import check_payload, happy_responses, issue

NOIR_REQUEST = {
    "theme": "Noir",
    "player_count": 5,
    "murder_method": {"cause": "poison", "stages": 1, "central_mechanic": "bottle swap"},
}


def parse_sse(body: str):
    events = []
    for frame in body.split("\n\n"):
        lines = frame.strip().splitlines()
        if not lines:
            continue
        assert lines[0] == "event: generation"
        assert lines[1].startswith("data: ")
        events.append(json.loads(lines[1][len("data: "):]))
    return events


@pytest.fixture
def store(tmp_path):
    return ProjectStore(tmp_path / "projects")


@pytest.fixture
def make_client(make_orchestrator, store, llm_config):
    def _make(responses=None, settings=None):
        orchestrator, _ = make_orchestrator(responses)
        app = create_app(orchestrator, store, settings or AppSettings(data_path=store.data_path), llm_config)
        return TestClient(app)
    return _make


def generate(client, body=NOIR_REQUEST):
    response = client.post("/api/projects/generate", json=body)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    return parse_sse(response.text)


class TestHealth:

    def test_health(self, make_client):
        response = make_client().get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_generation_health_reports_api_key(self, make_client):
        body = make_client().get("/api/projects/generate").json()
        assert body["has_api_key"] is True

    def test_generation_health_without_key(self, make_orchestrator, store):
        orchestrator, _ = make_orchestrator()
        app = create_app(orchestrator, store, AppSettings(data_path=store.data_path), LLMConfiguration())

        body = TestClient(app).get("/api/projects/generate").json()

        assert body["has_api_key"] is False

    def test_models(self, make_client):
        body = make_client().get("/api/models").json()

        assert body["data"]["provider"] == "claude"
        assert body["data"]["enabled_providers"] == ["claude"]
        assert "gpt-4o" in body["data"]["models"]["openai"]


class TestGenerate:

    def test_missing_fields(self, make_client):
        response = make_client().post("/api/projects/generate", json={"theme": "Noir"})

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Missing required settings fields"}

    def test_missing_cause(self, make_client):
        body = {"theme": "Noir", "player_count": 5, "murder_method": {}}
        response = make_client().post("/api/projects/generate", json=body)

        assert response.status_code == 400

    def test_invalid_settings(self, make_client):
        body = {**NOIR_REQUEST, "difficulty": "impossible"}
        response = make_client().post("/api/projects/generate", json=body)

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid settings")

    def test_stream_saves_project(self, make_client):
        client = make_client()

        events = generate(client)

        assert events[0]["type"] == "start"
        assert events[-1]["type"] == "complete"
        assert events[-1]["progress"] == 100

        project_id = events[0]["data"]["project_id"]
        stored = client.get(f"/api/projects/{project_id}")
        assert stored.status_code == 200
        assert stored.json()["data"]["name"] == "The Last Pour"

    def test_failed_run_is_not_saved(self, make_client):
        client = make_client(happy_responses(story_architect="nope"))

        events = generate(client)

        assert events[-1]["type"] == "error"
        assert events[-1]["message"].startswith("Generation failed")
        assert client.get("/api/projects").json()["data"] == []

    def test_rate_limit(self, make_client, store):
        client = make_client(settings=AppSettings(data_path=store.data_path, generate_rate_limit="1/minute"))

        generate(client)
        response = client.post("/api/projects/generate", json=NOIR_REQUEST)

        assert response.status_code == 429


class TestProjects:

    def test_list_get_update_delete(self, make_client):
        client = make_client()
        project_id = generate(client)[0]["data"]["project_id"]

        listing = client.get("/api/projects").json()
        assert listing["success"] is True
        assert [p["id"] for p in listing["data"]] == [project_id]

        updated = client.patch(f"/api/projects/{project_id}", json={"name": "Renamed"})
        assert updated.status_code == 200
        assert updated.json()["data"]["version"] == 2

        stale = client.patch(f"/api/projects/{project_id}?expected_version=1", json={"name": "Again"})
        assert stale.status_code == 409
        assert stale.json()["success"] is False

        assert client.delete(f"/api/projects/{project_id}").json() == {"success": True}
        assert client.delete(f"/api/projects/{project_id}").status_code == 500
        assert client.get(f"/api/projects/{project_id}").status_code == 404

    def test_update_missing_project(self, make_client):
        response = make_client().patch("/api/projects/missing", json={"name": "x"})

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Project not found"}

    def test_invalid_update(self, make_client):
        client = make_client()
        project_id = generate(client)[0]["data"]["project_id"]

        response = client.patch(f"/api/projects/{project_id}", json={"suspects": 3})

        assert response.status_code == 400

    def test_store_failure_on_update(self, make_client, store):
        client = make_client()
        project_id = generate(client)[0]["data"]["project_id"]
        store.save = AsyncMock(side_effect=ProjectStoreError("disk full"))

        response = client.patch(f"/api/projects/{project_id}", json={"name": "x"})

        assert response.status_code == 500


class TestValidate:

    def test_requires_project_id(self, make_client):
        response = make_client().post("/api/projects/validate", json={})

        assert response.status_code == 400
        assert response.json()["error"] == "project_id is required"

    def test_unknown_project(self, make_client):
        response = make_client().post("/api/projects/validate", json={"project_id": "missing"})

        assert response.status_code == 404

    def test_revalidation_updates_project(self, make_client):
        client = make_client()
        project_id = generate(client)[0]["data"]["project_id"]

        # Second app over the same store, whose auditors now report a failure
        failing = make_client(happy_responses(
            motive_analyzer=check_payload("fail", [issue("Iris has no access to the cellar")]),
        ))
        response = failing.post("/api/projects/validate", json={"project_id": project_id})

        assert response.status_code == 200
        validation = response.json()["data"]["validation"]
        assert validation["overall_status"] == "errors"
        assert [a["agent"] for a in validation["agents"]] == [
            "timeline_auditor", "evidence_validator", "motive_analyzer", "twist_fairness",
        ]

        stored = failing.get(f"/api/projects/{project_id}").json()["data"]
        assert stored["validation"]["overall_status"] == "errors"
        assert stored["version"] == 2


class TestDisconnect:

    @pytest.mark.asyncio
    async def test_project_saved_when_client_drops_on_complete(self, make_orchestrator, store, llm_config):
        orchestrator, _ = make_orchestrator()
        app = create_app(orchestrator, store, AppSettings(data_path=store.data_path), llm_config)

        body = json.dumps(NOIR_REQUEST).encode()
        scope = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": "POST",
            "scheme": "http",
            "path": "/api/projects/generate",
            "raw_path": b"/api/projects/generate",
            "root_path": "",
            "query_string": b"",
            "headers": [(b"host", b"testserver"), (b"content-type", b"application/json")],
            "client": ("127.0.0.1", 50000),
            "server": ("testserver", 80),
        }
        request_sent = False

        async def receive():
            nonlocal request_sent
            if not request_sent:
                request_sent = True
                return {"type": "http.request", "body": body, "more_body": False}
            await asyncio.Event().wait()

        events = []

        async def send(message):
            if message["type"] != "http.response.body" or not message.get("body"):
                return
            frame = parse_sse(message["body"].decode())
            if frame and frame[0]["type"] == "complete":
                raise OSError("client went away")
            events.extend(frame)

        with suppress(Exception):
            await app(scope, receive, send)

        project_id = events[0]["data"]["project_id"]
        stored = await store.load(project_id)
        assert stored is not None
        assert stored.name == "The Last Pour"
