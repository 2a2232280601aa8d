from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from faithsearch.tools import web_utils

NO_ENGINE = "none"


@dataclass(frozen=True, slots=True)
class SearchHit:
    title: str
    link: str
    snippet: str = ""


@dataclass(frozen=True, slots=True)
class ScrapedSource:
    category: str
    title: str
    link: str
    content: str
    query: str
    engine: str

    @property
    def is_placeholder(self) -> bool:
        return self.engine == NO_ENGINE

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def normalize_search_hit(raw: Any, *, fallback_title: str = "") -> SearchHit | None:
    """Map a provider result onto SearchHit; None when it has no usable link."""
    if not isinstance(raw, dict):
        return None
    link = raw.get("link") or raw.get("url") or raw.get("href") or ""
    if not isinstance(link, str) or not web_utils.is_valid_url(link.strip()):
        return None
    title = raw.get("title")
    snippet = raw.get("snippet") or raw.get("content") or raw.get("text") or ""
    return SearchHit(
        title=web_utils.collapse_whitespace(title) if isinstance(title, str) and title.strip() else fallback_title,
        link=link.strip(),
        snippet=web_utils.collapse_whitespace(snippet) if isinstance(snippet, str) else "",
    )


def normalize_scraped_source(
    *,
    category: str,
    hit: SearchHit,
    page_title: str,
    page_content: str,
    query: str,
    engine: str,
) -> ScrapedSource:
    return ScrapedSource(
        category=category,
        title=hit.title or page_title or "No title",
        link=hit.link,
        content=page_content or hit.snippet or "",
        query=query,
        engine=engine,
    )


def search_exhausted_placeholder(category: str, query: str) -> ScrapedSource:
    return ScrapedSource(
        category=category,
        title="No results found (primary search and mirrors failed)",
        link="",
        content="Both the primary provider and all mirrors failed. Try again later.",
        query=query,
        engine=NO_ENGINE,
    )


def scrape_exhausted_placeholder(category: str, query: str) -> ScrapedSource:
    return ScrapedSource(
        category=category,
        title="Error fetching all results",
        link="",
        content="",
        query=query,
        engine=NO_ENGINE,
    )


def dedupe_by_link(sources: list[ScrapedSource]) -> list[ScrapedSource]:
    """Keep the first source per link, preserving order."""
    seen: set[str] = set()
    deduped: list[ScrapedSource] = []
    for source in sources:
        if source.link in seen:
            continue
        seen.add(source.link)
        deduped.append(source)
    return deduped
