from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from faithsearch.models.sources import NO_ENGINE, SearchHit
from faithsearch.services.errors import MirrorError, ProviderError
from faithsearch.tools import search_provider


def _hits(*links: str) -> list[SearchHit]:
    return [SearchHit(title=f"title {i}", link=link) for i, link in enumerate(links)]


@pytest.mark.asyncio
async def test_search_provider_uses_primary_results_when_present(catalog):
    category = catalog.get("judaism")
    primary = AsyncMock(return_value=_hits("https://sefaria.org/a"))
    mirror = AsyncMock()

    with (
        patch("faithsearch.tools.search_provider.perplexity_search.search", primary),
        patch("faithsearch.tools.search_provider.searx_search.search_mirror", mirror),
    ):
        async with httpx.AsyncClient() as client:
            result = await search_provider.search(category, "q", 2, catalog=catalog, client=client)

    assert result.provider == "perplexity"
    assert result.ok
    assert result.fallback_from is None
    mirror.assert_not_awaited()


@pytest.mark.asyncio
async def test_search_provider_tries_mirrors_in_order_and_stops_when_satisfied(catalog):
    category = catalog.get("judaism")
    calls: list[str] = []

    async def fake_mirror(mirror, _category, _query, *, client):
        calls.append(mirror)
        if mirror == catalog.mirrors[0]:
            raise MirrorError(mirror, "HTTP 429")
        return _hits("https://sefaria.org/a", "https://chabad.org/b")

    with (
        patch(
            "faithsearch.tools.search_provider.perplexity_search.search",
            AsyncMock(return_value=[]),
        ),
        patch("faithsearch.tools.search_provider.searx_search.search_mirror", fake_mirror),
    ):
        async with httpx.AsyncClient() as client:
            result = await search_provider.search(category, "q", 2, catalog=catalog, client=client)

    assert calls == list(catalog.mirrors[:2])
    assert result.provider == "searx-html"
    assert result.mirrors_used == [catalog.mirrors[1]]
    assert result.fallback_reason == "perplexity returned zero results"
    assert [h.link for h in result.hits] == ["https://sefaria.org/a", "https://chabad.org/b"]


@pytest.mark.asyncio
async def test_search_provider_accumulates_distinct_links_across_mirrors(catalog):
    category = catalog.get("judaism")
    responses = {
        catalog.mirrors[0]: _hits("https://sefaria.org/a"),
        catalog.mirrors[1]: _hits("https://sefaria.org/a", "https://chabad.org/b"),
        catalog.mirrors[2]: _hits("https://chabad.org/c"),
    }

    async def fake_mirror(mirror, _category, _query, *, client):
        return responses[mirror]

    with (
        patch(
            "faithsearch.tools.search_provider.perplexity_search.search",
            AsyncMock(side_effect=ProviderError("HTTP 500")),
        ),
        patch("faithsearch.tools.search_provider.searx_search.search_mirror", fake_mirror),
    ):
        async with httpx.AsyncClient() as client:
            result = await search_provider.search(category, "q", 2, catalog=catalog, client=client)

    assert [h.link for h in result.hits] == ["https://sefaria.org/a", "https://chabad.org/b"]
    assert result.mirrors_used == list(catalog.mirrors[:2])
    assert result.fallback_reason == "HTTP 500"


@pytest.mark.asyncio
async def test_search_provider_reports_none_when_everything_fails(catalog):
    category = catalog.get("islam")
    progress: list[tuple[str, str]] = []

    async def failing_mirror(mirror, _category, _query, *, client):
        raise MirrorError(mirror, "down")

    with (
        patch(
            "faithsearch.tools.search_provider.perplexity_search.search",
            AsyncMock(side_effect=ProviderError("unreachable")),
        ),
        patch("faithsearch.tools.search_provider.searx_search.search_mirror", failing_mirror),
    ):
        async with httpx.AsyncClient() as client:
            result = await search_provider.search(
                category,
                "q",
                3,
                catalog=catalog,
                client=client,
                on_progress=lambda engine, detail: progress.append((engine, detail)),
            )

    assert result.provider == NO_ENGINE
    assert not result.ok
    assert result.hits == []
    assert progress[0] == ("perplexity", "Searching with perplexity...")
    assert [engine for engine, _ in progress[2:]] == list(catalog.mirrors)


@pytest.mark.asyncio
async def test_search_provider_falls_back_when_primary_endpoint_is_malformed(catalog, monkeypatch):
    from faithsearch.config import settings

    monkeypatch.setattr(settings, "perplexity_api_key", "test-key")
    category = catalog.get("judaism")

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.InvalidURL("Invalid port: '99x'")

    mirror = AsyncMock(return_value=_hits("https://sefaria.org/a"))
    with patch("faithsearch.tools.search_provider.searx_search.search_mirror", mirror):
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            result = await search_provider.search(category, "q", 1, catalog=catalog, client=client)

    assert result.provider == "searx-html"
    assert [h.link for h in result.hits] == ["https://sefaria.org/a"]
    mirror.assert_awaited()
