from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

import httpx

from faithsearch.config import settings
from faithsearch.models.catalog import Category, RetrievalCatalog
from faithsearch.models.sources import NO_ENGINE, SearchHit
from faithsearch.services.errors import MirrorError, ProviderError
from faithsearch.services.retry import retry_async
from faithsearch.tools import perplexity_search, searx_search

logger = logging.getLogger(__name__)

PRIMARY_ENGINE = "perplexity"

# (engine or mirror currently in use, human-readable detail)
SearchProgress = Callable[[str, str], None]


@dataclass
class SearchResponse:
    hits: list[SearchHit]
    provider: str
    mirrors_used: list[str] = field(default_factory=list)
    fallback_from: str | None = None
    fallback_reason: str | None = None

    @property
    def ok(self) -> bool:
        return bool(self.hits) and self.provider != NO_ENGINE


def _notify(on_progress: SearchProgress | None, engine: str, detail: str) -> None:
    if on_progress is not None:
        on_progress(engine, detail)


async def _search_primary(
    category: Category,
    query: str,
    num_results: int,
    *,
    client: httpx.AsyncClient,
) -> list[SearchHit]:
    async def attempt(_attempt: int) -> list[SearchHit]:
        return await perplexity_search.search(category, query, num_results, client=client)

    return await retry_async(
        attempt,
        max_attempts=settings.search_max_attempts,
        backoff=settings.search_retry_backoff_seconds,
        retry_on=(ProviderError,),
    )


async def _search_mirrors(
    category: Category,
    query: str,
    num_results: int,
    *,
    mirrors: tuple[str, ...],
    client: httpx.AsyncClient,
    on_progress: SearchProgress | None,
) -> tuple[list[SearchHit], list[str], str | None]:
    """Try mirrors in registry order until enough distinct hits accumulate."""
    accumulated: list[SearchHit] = []
    seen_links: set[str] = set()
    used: list[str] = []
    last_error: str | None = None

    for mirror in mirrors:
        _notify(on_progress, mirror, f"Searching: {mirror}")
        try:
            hits = await searx_search.search_mirror(mirror, category, query, client=client)
        except MirrorError as exc:
            last_error = str(exc)
            logger.debug("Mirror failed for %s: %s", category.key, exc)
            continue

        used.append(mirror)
        for hit in hits:
            if hit.link in seen_links:
                continue
            seen_links.add(hit.link)
            accumulated.append(hit)
        if len(accumulated) >= num_results:
            return accumulated[:num_results], used, last_error

    return accumulated, used, last_error


async def search(
    category: Category,
    query: str,
    num_results: int,
    *,
    catalog: RetrievalCatalog,
    client: httpx.AsyncClient,
    on_progress: SearchProgress | None = None,
) -> SearchResponse:
    """Primary provider first; SearXNG mirror pool when it errors or finds nothing."""
    _notify(on_progress, PRIMARY_ENGINE, f"Searching with {PRIMARY_ENGINE}...")
    fallback_reason: str
    try:
        hits = await _search_primary(category, query, num_results, client=client)
        if hits:
            _notify(on_progress, PRIMARY_ENGINE, f"Found {len(hits)} sources via {PRIMARY_ENGINE}")
            return SearchResponse(hits=hits, provider=PRIMARY_ENGINE)
        fallback_reason = f"{PRIMARY_ENGINE} returned zero results"
    except ProviderError as exc:
        fallback_reason = str(exc)

    logger.info("Falling back to mirrors for %s: %s", category.key, fallback_reason)
    _notify(on_progress, "searx", "Falling back to meta-search mirrors...")
    hits, used, last_error = await _search_mirrors(
        category,
        query,
        num_results,
        mirrors=catalog.mirrors,
        client=client,
        on_progress=on_progress,
    )
    if not hits:
        return SearchResponse(
            hits=[],
            provider=NO_ENGINE,
            fallback_from=PRIMARY_ENGINE,
            fallback_reason=last_error or fallback_reason,
        )

    _notify(on_progress, used[-1], f"Results from: {', '.join(used)}")
    return SearchResponse(
        hits=hits,
        provider=searx_search.ENGINE_NAME,
        mirrors_used=used,
        fallback_from=PRIMARY_ENGINE,
        fallback_reason=fallback_reason,
    )
