from __future__ import annotations

from pydantic import BaseModel, Field


# --- Requests ---


class ResearchRequest(BaseModel):
    query: str = Field(min_length=1)
    model: str | None = None
    synthesize: bool = True


class QueriesRequest(BaseModel):
    prompt: str = Field(min_length=1)
    model: str | None = None


# --- Responses ---


class CategoryInfo(BaseModel):
    key: str
    label: str
    domains: list[str]


class CategoriesResponse(BaseModel):
    categories: list[CategoryInfo]
    mirror_count: int


class PlannedQueryInfo(BaseModel):
    query: str
    numResults: int


class QueriesResponse(BaseModel):
    prompt: str
    queries: dict[str, PlannedQueryInfo]


class ScrapeResponse(BaseModel):
    url: str
    title: str
    content: str
    method: str
    used_selector: str | None
