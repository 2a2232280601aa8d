from __future__ import annotations

import httpx
import pytest

from faithsearch.config import settings
from faithsearch.services.errors import ScrapeError
from faithsearch.tools import page_scraper

ARTICLE = (
    "<html><head><title>Ribbit</title></head><body><main><p>"
    + "The prohibition on interest between members of the community is stated plainly. " * 3
    + "</p></main></body></html>"
)


@pytest.mark.asyncio
async def test_fetch_page_sends_browser_headers_and_follows_redirects():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/old":
            return httpx.Response(301, headers={"Location": "https://example.com/new"})
        return httpx.Response(200, text=ARTICLE)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        page = await page_scraper.fetch_page("https://example.com/old", client=client)

    assert page.final_url == "https://example.com/new"
    assert page.status_code == 200
    headers = seen[0].headers
    assert headers["User-Agent"] == settings.scrape_user_agent
    assert headers["Accept-Language"].startswith("en-US")
    assert headers["Cache-Control"] == "no-cache"
    assert headers["Referer"] == "https://example.com/old"


@pytest.mark.asyncio
async def test_fetch_page_raises_scrape_error_with_status():
    transport = httpx.MockTransport(lambda request: httpx.Response(403))

    async with httpx.AsyncClient(transport=transport) as client:
        with pytest.raises(ScrapeError) as exc_info:
            await page_scraper.fetch_page("https://example.com/blocked", client=client)

    assert exc_info.value.status_code == 403
    assert exc_info.value.url == "https://example.com/blocked"


@pytest.mark.asyncio
async def test_fetch_page_rejects_invalid_url():
    async with httpx.AsyncClient() as client:
        with pytest.raises(ScrapeError, match="invalid URL"):
            await page_scraper.fetch_page("ftp://example.com/file", client=client)


@pytest.mark.asyncio
async def test_fetch_page_does_not_retry_insecurely_by_default(monkeypatch):
    monkeypatch.setattr(settings, "unsafe_fetch", False)

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("certificate verify failed", request=request)

    async def fail_if_called(_url):
        raise AssertionError("relaxed TLS path must stay disabled")

    monkeypatch.setattr(page_scraper, "_get_unverified", fail_if_called)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(ScrapeError, match="certificate"):
            await page_scraper.fetch_page("https://example.com/", client=client)


@pytest.mark.asyncio
async def test_fetch_page_retries_insecurely_when_enabled(monkeypatch):
    monkeypatch.setattr(settings, "unsafe_fetch", True)

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("certificate verify failed", request=request)

    async def fake_unverified(url):
        return httpx.Response(200, text=ARTICLE, request=httpx.Request("GET", url))

    monkeypatch.setattr(page_scraper, "_get_unverified", fake_unverified)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        page = await page_scraper.fetch_page("https://example.com/", client=client)

    assert page.status_code == 200


@pytest.mark.asyncio
async def test_scrape_page_returns_extracted_content():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text=ARTICLE))

    async with httpx.AsyncClient(transport=transport) as client:
        result = await page_scraper.scrape_page("https://example.com/ribbit", client=client)

    assert result.title == "Ribbit"
    assert result.text.startswith("The prohibition on interest")
    assert result.used_selector == "main"


@pytest.mark.asyncio
async def test_scrape_page_fails_without_title_or_content(monkeypatch):
    monkeypatch.setattr(settings, "extractor_fallback", "none")
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html><body></body></html>"))

    async with httpx.AsyncClient(transport=transport) as client:
        with pytest.raises(ScrapeError, match="no extractable content"):
            await page_scraper.scrape_page("https://example.com/empty", client=client)
