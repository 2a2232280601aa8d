from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from faithsearch.config import settings
from faithsearch.services.errors import ScrapeError
from faithsearch.tools import content_extractor, web_utils
from faithsearch.tools.content_extractor import ExtractedContent

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FetchedPage:
    url: str
    final_url: str
    status_code: int
    html: str


def browser_headers(referer: str = "https://www.google.com/") -> dict[str, str]:
    return {
        "User-Agent": settings.scrape_user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
        "Referer": referer,
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
    }


async def _get(client: httpx.AsyncClient, url: str) -> httpx.Response:
    return await client.get(
        url,
        headers=browser_headers(referer=url),
        timeout=settings.scrape_timeout_seconds,
        follow_redirects=True,
    )


async def _get_unverified(url: str) -> httpx.Response:
    # Only reached when UNSAFE_FETCH is enabled.
    async with httpx.AsyncClient(verify=False) as insecure_client:
        return await _get(insecure_client, url)


async def fetch_page(url: str, *, client: httpx.AsyncClient) -> FetchedPage:
    """GET a page with browser-like headers; raises ScrapeError on any failure."""
    if not web_utils.is_valid_url(url):
        raise ScrapeError(url, "invalid URL")

    try:
        response = await _get(client, url)
    except httpx.ConnectError as exc:
        if not settings.unsafe_fetch:
            raise ScrapeError(url, f"request failed: {exc}") from exc
        logger.warning("Retrying %s without TLS verification: %s", url, exc)
        try:
            response = await _get_unverified(url)
        except (httpx.HTTPError, httpx.InvalidURL) as retry_exc:
            raise ScrapeError(url, f"request failed: {retry_exc}") from retry_exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise ScrapeError(url, f"request failed: {exc}") from exc

    if not response.is_success:
        raise ScrapeError(
            url,
            f"HTTP {response.status_code} {response.reason_phrase}",
            status_code=response.status_code,
        )

    return FetchedPage(
        url=url,
        final_url=str(response.url),
        status_code=response.status_code,
        html=response.text,
    )


async def scrape_page(url: str, *, client: httpx.AsyncClient) -> ExtractedContent:
    """Fetch a page and isolate its main text.

    Raises ScrapeError when the request fails or the page yields neither a
    title nor any text.
    """
    page = await fetch_page(url, client=client)
    extracted = content_extractor.extract_main_content(url, page.html)
    if extracted.is_empty:
        raise ScrapeError(url, "no extractable content", status_code=page.status_code)
    logger.debug(
        "Extracted %d chars from %s via %s (%s)",
        len(extracted.text),
        url,
        extracted.method,
        extracted.used_selector,
    )
    return extracted
