from __future__ import annotations

from typing import Any

import httpx

from faithsearch.config import settings
from faithsearch.models.catalog import Category
from faithsearch.models.sources import SearchHit, normalize_search_hit
from faithsearch.services.errors import ProviderError


def build_payload(category: Category, query: str, num_results: int) -> dict[str, Any]:
    """Category-qualified request body capped at the provider maximum."""
    payload: dict[str, Any] = {
        "query": f"{category.key} {query}",
        "max_results": max(1, min(int(num_results), settings.perplexity_max_results)),
        "max_tokens_per_page": settings.perplexity_max_tokens_per_page,
    }
    domains = list(category.domains[: settings.perplexity_max_domains])
    if domains:
        payload["domains"] = domains
    return payload


def map_results(category: Category, payload: Any) -> list[SearchHit]:
    raw_results = payload.get("results", []) if isinstance(payload, dict) else []
    if not isinstance(raw_results, list):
        return []
    hits: list[SearchHit] = []
    for idx, item in enumerate(raw_results):
        hit = normalize_search_hit(item, fallback_title=f"{category.key} Source {idx + 1}")
        if hit is not None:
            hits.append(hit)
    return hits


async def search(
    category: Category,
    query: str,
    num_results: int,
    *,
    client: httpx.AsyncClient | None = None,
) -> list[SearchHit]:
    """Execute a Perplexity search restricted to the category's domains."""
    if not settings.perplexity_api_key:
        raise ProviderError("PERPLEXITY_API_KEY is not configured")

    request_kwargs: dict[str, Any] = {
        "json": build_payload(category, query, num_results),
        "headers": {
            "Authorization": f"Bearer {settings.perplexity_api_key}",
            "Content-Type": "application/json",
        },
        "timeout": settings.search_timeout_seconds,
    }
    try:
        if client is None:
            async with httpx.AsyncClient() as own_client:
                response = await own_client.post(settings.perplexity_search_url, **request_kwargs)
        else:
            response = await client.post(settings.perplexity_search_url, **request_kwargs)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise ProviderError(f"perplexity request failed: {exc}") from exc

    if not response.is_success:
        raise ProviderError(f"perplexity returned HTTP {response.status_code}: {response.text[:200]}")

    try:
        payload = response.json()
    except ValueError as exc:
        raise ProviderError("perplexity returned a non-JSON body") from exc
    return map_results(category, payload)
