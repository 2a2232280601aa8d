from __future__ import annotations

import httpx
from fastapi import APIRouter, HTTPException, Query

from faithsearch.models.schemas import CategoriesResponse, ScrapeResponse
from faithsearch.services.catalog import get_catalog
from faithsearch.services.errors import ScrapeError
from faithsearch.tools import page_scraper, web_utils

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/categories", response_model=CategoriesResponse)
async def list_categories():
    """List enabled categories with their domain allow-lists."""
    return CategoriesResponse(**get_catalog().summary())


@router.get("/scrape", response_model=ScrapeResponse)
async def scrape(url: str | None = Query(default=None)):
    """Fetch one page and return its extracted main content."""
    if not url or not web_utils.is_valid_url(url):
        raise HTTPException(status_code=400, detail="A valid http(s) url query parameter is required")

    try:
        async with httpx.AsyncClient() as client:
            extracted = await page_scraper.scrape_page(url, client=client)
    except ScrapeError as exc:
        raise HTTPException(status_code=502, detail=f"Failed to fetch content: {exc}") from exc

    return ScrapeResponse(
        url=extracted.url,
        title=extracted.title,
        content=extracted.text,
        method=extracted.method,
        used_selector=extracted.used_selector,
    )
