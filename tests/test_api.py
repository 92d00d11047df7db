"""HTTP-level tests for the FastAPI app."""

import json

import pytest
from fastapi.testclient import TestClient

from api.main import app, get_store, get_supervisor
from core.errors import PlanningError
from storage.memory import SavedResearchStore
from tests.conftest import FakeAdapter, FakeSearch, chunks_for, make_context, make_plan_json, parse_sse


@pytest.fixture
def fake_adapter():
    return FakeAdapter(scripts={"m1": ["Hi", " there"], "m2": [RuntimeError("rate limited")]})


@pytest.fixture
def store():
    return SavedResearchStore()


@pytest.fixture
def client(fake_adapter, store, supervisor_factory):
    supervisor = supervisor_factory(fake_adapter, search=FakeSearch(make_context()), default_models=["m1"])
    app.dependency_overrides[get_supervisor] = lambda: supervisor
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "running"
    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert "tavily_configured" in health


def test_models_listing(client):
    body = client.get("/api/models").json()
    ids = [m["id"] for m in body["models"]]
    assert "anthropic/claude-sonnet-4.5" in ids
    assert body["defaults"]


def test_query_streams_events_until_done(client):
    response = client.post("/api/query", json={"prompt": "What changed?", "models": ["m1", "m2"]})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")

    events = parse_sse(response.text)
    assert events[0].name == "search-started"
    assert events[1].data == {"hasResults": True}
    assert events[-1].name == "done"
    assert chunks_for(events, "m1") == "Hi there"

    completes = {e.data["name"]: e.data for e in events if e.name == "model-complete"}
    assert completes["m1"]["text"] == "Hi there"
    assert completes["m2"] == {"name": "m2", "text": None, "error": "rate limited"}


def test_query_without_models_uses_defaults(client):
    events = parse_sse(client.post("/api/query", json={"prompt": "q"}).text)

    assert [e.data["name"] for e in events if e.name == "model-complete"] == ["m1"]


def test_query_rejects_empty_prompt(client):
    assert client.post("/api/query", json={"prompt": ""}).status_code == 422


def test_query_tasks_stream(client, fake_adapter):
    payload = {
        "tasks": [
            {"id": "t1", "title": "One", "description": "First", "prompt": "Directive one"},
            {"id": "t2", "title": "Two", "description": "Second", "prompt": "Directive two"},
        ],
        "taskAssignments": {"t1": ["m1"], "t2": ["m3"]},
        "originalQuery": "big question",
    }

    events = parse_sse(client.post("/api/query-tasks", json=payload).text)

    assert events[-1].name == "done"
    prompts = dict(fake_adapter.calls)
    assert prompts["m1"].startswith("Directive one")
    assert prompts["m3"].startswith("Directive two")
    assert 'A user asked: "big question"' in prompts["synth"]


def test_questions(client, fake_adapter):
    fake_adapter.completion = json.dumps(["Which market?", "What timeframe?", "Which region?"])

    body = client.post("/api/questions", json={"query": "pricing"}).json()

    assert body == {"questions": ["Which market?", "What timeframe?", "Which region?"]}


def test_research_plan_with_default_assignments(client, fake_adapter):
    fake_adapter.completion = make_plan_json(2)

    response = client.post(
        "/api/research-plan",
        json={"query": "pricing", "answers": ["B2B", ""], "models": ["a", "b", "c"]},
    )

    assert response.status_code == 200
    body = response.json()
    assert [t["id"] for t in body["tasks"]] == ["task-1", "task-2"]
    assert body["assignments"] == {"task-1": ["a", "c"], "task-2": ["b"]}
    assert "No answer provided" in fake_adapter.complete_calls[0][1]


def test_research_plan_failure_is_502(client, fake_adapter):
    fake_adapter.completion = "I could not think of a plan."

    response = client.post("/api/research-plan", json={"query": "pricing"})

    assert response.status_code == 502
    assert "parse" in response.json()["detail"]


def test_ideas(client, fake_adapter):
    fake_adapter.completion = json.dumps(["Regional EV charging demand", "Remote work tax rules"])

    response = client.post("/api/ideas", json={"jobTitle": "Analyst", "industry": "Energy"})

    assert response.json() == {
        "ideas": ["Regional EV charging demand", "Remote work tax rules"],
        "location": None,
    }
    assert "User's role: Analyst" in fake_adapter.complete_calls[0][1]


def test_ideas_failure_is_502(client, fake_adapter):
    fake_adapter.completion = PlanningError("boom")
    assert client.post("/api/ideas", json={}).status_code == 502


def test_collection_requires_user(client):
    assert client.get("/api/collection").status_code == 401


def test_collection_round_trip(client):
    headers = {"X-User-Id": "user-1"}
    saved = client.post(
        "/api/collection",
        json={
            "query": "pricing",
            "responses": [{"name": "m1", "text": "answer"}, {"name": "m2", "error": "failed"}],
            "synthesis": "summary",
        },
        headers=headers,
    )
    assert saved.status_code == 201
    research_id = saved.json()["id"]

    listed = client.get("/api/collection", headers=headers).json()["research"]
    assert [r["id"] for r in listed] == [research_id]
    assert listed[0]["responses"][1] == {"name": "m2", "text": None, "error": "failed"}

    assert client.get("/api/collection", headers={"X-User-Id": "user-2"}).json() == {"research": []}
    assert client.delete(f"/api/collection/{research_id}", headers={"X-User-Id": "user-2"}).status_code == 404
    assert client.delete(f"/api/collection/{research_id}", headers=headers).json()["status"] == "deleted"
    assert client.delete(f"/api/collection/{research_id}", headers=headers).status_code == 404


def test_query_tasks_rejects_duplicate_task_ids(client, fake_adapter):
    payload = {
        "tasks": [
            {"id": "t1", "title": "One", "prompt": "Directive one"},
            {"id": "t1", "title": "Two", "prompt": "Directive two"},
        ],
        "taskAssignments": {"t1": ["m1", "m2"]},
        "originalQuery": "q",
    }

    response = client.post("/api/query-tasks", json=payload)

    assert response.status_code == 422
    assert "Duplicate task ids: t1" in response.text
    assert fake_adapter.calls == []


def test_ideas_for_picked_location(client, fake_adapter):
    fake_adapter.completion = json.dumps(["Lisbon startup visa outcomes"])

    response = client.post("/api/ideas", json={"city": "Lisbon", "country": "Portugal", "lat": 38.7, "lng": -9.1})

    assert response.json() == {"ideas": ["Lisbon startup visa outcomes"], "location": "Lisbon, Portugal"}
    assert "User is based in: Lisbon, Portugal" in fake_adapter.complete_calls[0][1]


def test_ideas_rejects_out_of_range_coordinates(client):
    assert client.post("/api/ideas", json={"lat": 120, "lng": 0}).status_code == 422
