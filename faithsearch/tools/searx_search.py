from __future__ import annotations

from urllib.parse import urlencode

import httpx
from bs4 import BeautifulSoup

from faithsearch.config import settings
from faithsearch.models.catalog import Category
from faithsearch.models.sources import SearchHit, normalize_search_hit
from faithsearch.services.errors import MirrorError
from faithsearch.tools import web_utils

ENGINE_NAME = "searx-html"


def build_search_url(mirror: str, query: str, category: Category) -> str:
    base = mirror if mirror.endswith("/") else mirror + "/"
    site_filter = category.site_filter()
    full_query = f"{query} {site_filter}" if site_filter else query
    params = {
        "q": full_query,
        "categories": "general",
        "language": "en",
        "safesearch": "1",
        "theme": "simple",
    }
    return f"{base}search?{urlencode(params)}"


def parse_results(html: str) -> list[SearchHit]:
    """Parse a SearXNG `simple` theme results page."""
    soup = BeautifulSoup(html, "html.parser")
    hits: list[SearchHit] = []
    for article in soup.select("article.result"):
        anchor = article.select_one("a.url_header")
        title_anchor = article.select_one("h3 a")
        snippet_node = article.select_one("p.content")
        href = anchor.get("href") if anchor is not None else None
        title = title_anchor.get_text(" ", strip=True) if title_anchor is not None else ""
        if not href or not title:
            continue
        hit = normalize_search_hit(
            {
                "title": title,
                "link": href,
                "snippet": snippet_node.get_text(" ", strip=True) if snippet_node is not None else "",
            }
        )
        if hit is not None:
            hits.append(hit)
    return hits


def filter_to_domains(hits: list[SearchHit], domains: tuple[str, ...]) -> list[SearchHit]:
    """Keep hits on allow-listed hosts; an empty allow-list keeps everything."""
    if not domains:
        return list(hits)
    return [hit for hit in hits if web_utils.hostname_matches(hit.link, domains)]


async def search_mirror(
    mirror: str,
    category: Category,
    query: str,
    *,
    client: httpx.AsyncClient,
) -> list[SearchHit]:
    """Query one mirror; raises MirrorError unless it yields filtered hits."""
    url = build_search_url(mirror, query, category)
    try:
        response = await client.get(
            url,
            headers={
                "User-Agent": settings.searx_user_agent,
                "Accept": "text/html,application/xhtml+xml,application/xml",
            },
            timeout=settings.searx_timeout_seconds,
            follow_redirects=True,
        )
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise MirrorError(mirror, f"request failed: {exc}") from exc

    if not response.is_success:
        raise MirrorError(mirror, f"HTTP {response.status_code} {response.reason_phrase}")

    filtered = filter_to_domains(parse_results(response.text), category.domains)
    if not filtered:
        raise MirrorError(mirror, "no results on allow-listed domains")
    return filtered
