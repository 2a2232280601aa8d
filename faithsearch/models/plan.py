from __future__ import annotations

from pydantic import BaseModel, Field


class PlannedQuery(BaseModel):
    """Search query and desired result count for one category."""

    query: str = Field(min_length=1)
    num_results: int = Field(ge=1, le=5)

    model_config = {"frozen": True}


class QueryPlan(BaseModel):
    """Per-category planned queries, keyed in catalog order."""

    prompt: str
    queries: dict[str, PlannedQuery]

    model_config = {"frozen": True}

    def categories(self) -> list[str]:
        return list(self.queries)

    def to_dict(self) -> dict:
        return {
            "prompt": self.prompt,
            "queries": {
                key: {"query": planned.query, "numResults": planned.num_results}
                for key, planned in self.queries.items()
            },
        }
