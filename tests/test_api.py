"""Tests for API routes."""
import json

import pytest
from unittest.mock import patch, AsyncMock

from faithsearch.models.events import EventType, SSEEvent
from faithsearch.models.plan import PlannedQuery, QueryPlan
from faithsearch.services.errors import PlannerError, ScrapeError
from faithsearch.tools.content_extractor import ExtractedContent


@pytest.fixture(autouse=True)
def reset_sse_exit_event():
    # sse-starlette caches an exit event bound to the first test's loop
    import sse_starlette.sse as sse

    if hasattr(sse, "AppStatus"):
        sse.AppStatus.should_exit_event = None
    yield


@pytest.fixture
def app():
    from faithsearch.main import app
    yield app


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient
    return TestClient(app)


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["service"] == "faithsearch"


def test_list_categories(client):
    response = client.get("/api/categories")
    assert response.status_code == 200
    data = response.json()
    keys = [c["key"] for c in data["categories"]]
    assert "judaism" in keys
    assert "islam" in keys
    assert data["mirror_count"] > 0


def test_generate_queries(client):
    plan = QueryPlan(
        prompt="Is interest allowed?",
        queries={"islam": PlannedQuery(query="riba", num_results=2)},
    )
    with patch(
        "faithsearch.api.routes.research.QueryPlanner.plan",
        AsyncMock(return_value=plan),
    ):
        response = client.post("/api/queries", json={"prompt": "Is interest allowed?"})

    assert response.status_code == 200
    assert response.json()["queries"]["islam"] == {"query": "riba", "numResults": 2}


def test_generate_queries_maps_planner_error_to_502(client):
    with patch(
        "faithsearch.api.routes.research.QueryPlanner.plan",
        AsyncMock(side_effect=PlannerError("not JSON")),
    ):
        response = client.post("/api/queries", json={"prompt": "Is interest allowed?"})

    assert response.status_code == 502
    assert "not JSON" in response.json()["detail"]


def test_scrape_requires_valid_url(client):
    assert client.get("/api/scrape").status_code == 400
    assert client.get("/api/scrape", params={"url": "not-a-url"}).status_code == 400


def test_scrape_returns_extracted_content(client):
    extracted = ExtractedContent(
        url="https://sefaria.org/a",
        title="Exodus",
        text="If you lend money...",
        method="selector",
        used_selector="main",
    )
    with patch(
        "faithsearch.api.routes.catalog.page_scraper.scrape_page",
        AsyncMock(return_value=extracted),
    ):
        response = client.get("/api/scrape", params={"url": "https://sefaria.org/a"})

    assert response.status_code == 200
    assert response.json()["content"] == "If you lend money..."
    assert response.json()["used_selector"] == "main"


def test_scrape_maps_failure_to_502(client):
    with patch(
        "faithsearch.api.routes.catalog.page_scraper.scrape_page",
        AsyncMock(side_effect=ScrapeError("https://sefaria.org/a", "HTTP 403", 403)),
    ):
        response = client.get("/api/scrape", params={"url": "https://sefaria.org/a"})

    assert response.status_code == 502


def _sse_events(body: str) -> list[tuple[str, dict]]:
    events = []
    for block in body.replace("\r\n", "\n").split("\n\n"):
        lines = [line for line in block.split("\n") if line]
        name = next((l[len("event:"):].strip() for l in lines if l.startswith("event:")), None)
        data = next((l[len("data:"):].strip() for l in lines if l.startswith("data:")), None)
        if name and data:
            events.append((name, json.loads(data)))
    return events


def test_research_stream_relays_orchestrator_events(client):
    async def fake_research(self, query, *, synthesize=True, cancel_event=None):
        yield SSEEvent(event=EventType.PLAN_CREATED, data={"prompt": query, "queries": {}})
        yield SSEEvent(event=EventType.RETRIEVAL_COMPLETE, data={"sources": []})

    with patch("faithsearch.api.routes.research.ResearchOrchestrator.research", fake_research):
        response = client.post(
            "/api/research/stream",
            json={"query": "Is interest allowed?", "synthesize": False},
        )

    assert response.status_code == 200
    events = _sse_events(response.text)
    assert [name for name, _ in events] == ["plan_created", "retrieval_complete"]
    assert events[0][1]["prompt"] == "Is interest allowed?"


def test_research_stream_reports_unexpected_failure(client):
    async def broken_research(self, query, *, synthesize=True, cancel_event=None):
        yield SSEEvent(event=EventType.PLAN_CREATED, data={"prompt": query, "queries": {}})
        raise RuntimeError("boom")

    with patch("faithsearch.api.routes.research.ResearchOrchestrator.research", broken_research):
        response = client.post("/api/research/stream", json={"query": "q"})

    events = _sse_events(response.text)
    assert events[-1] == ("error", {"message": "Research stream failed unexpectedly."})
