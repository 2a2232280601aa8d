from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from faithsearch.agents.base import BaseAgent
from faithsearch.config import settings
from faithsearch.llm_client import strip_code_fences
from faithsearch.models.catalog import RetrievalCatalog
from faithsearch.models.plan import PlannedQuery, QueryPlan
from faithsearch.services.catalog import get_catalog
from faithsearch.services.errors import PlannerError
from faithsearch.services.prompt_store import render_prompt

LEGACY_DEFAULT_NUM_RESULTS = 3


def _coerce_num_results(value: Any, key: str, raw: str) -> int:
    if isinstance(value, bool):
        raise PlannerError(f"numResults for '{key}' must be an integer", raw)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("+-").isdigit():
        return int(value.strip())
    raise PlannerError(f"numResults for '{key}' must be an integer, got {value!r}", raw)


def _legacy_queries(items: list[Any], categories: list[str]) -> dict[str, Any]:
    """Map an array-shaped `queries` onto categories by position."""
    mapped: dict[str, Any] = {}
    for key, item in zip(categories, items):
        if isinstance(item, str):
            mapped[key] = {"query": item, "numResults": LEGACY_DEFAULT_NUM_RESULTS}
        elif isinstance(item, dict):
            mapped[key] = {
                "query": item.get("query"),
                "numResults": item.get("numResults", LEGACY_DEFAULT_NUM_RESULTS),
            }
    return mapped


def normalize_planner_response(text: str, categories: list[str]) -> dict[str, PlannedQuery]:
    """Validate the planner LLM output into one PlannedQuery per category.

    Accepts the object shape `{"queries": {key: {query, numResults}}}` and
    the older array shape. Anything else, or any missing category, raises
    PlannerError; partial plans are never returned.
    """
    raw = text or ""
    try:
        payload = json.loads(strip_code_fences(raw))
    except ValueError as exc:
        raise PlannerError(f"Planner response is not valid JSON: {exc}", raw) from exc

    if not isinstance(payload, dict):
        raise PlannerError("Planner response must be a JSON object", raw)

    queries = payload.get("queries")
    if isinstance(queries, list):
        queries = _legacy_queries(queries, categories)
    if not isinstance(queries, dict):
        raise PlannerError("Planner response is missing a 'queries' object", raw)
    queries = {str(k).strip().lower(): v for k, v in queries.items()}

    missing = [key for key in categories if key not in queries]
    if missing:
        raise PlannerError(f"Planner response is missing categories: {', '.join(missing)}", raw)

    planned: dict[str, PlannedQuery] = {}
    for key in categories:
        entry = queries[key]
        if not isinstance(entry, dict):
            raise PlannerError(f"Planner entry for '{key}' must be an object", raw)
        query = entry.get("query")
        if not isinstance(query, str) or not query.strip():
            raise PlannerError(f"Planner query for '{key}' must be a non-empty string", raw)
        num_results = _coerce_num_results(entry.get("numResults"), key, raw)
        try:
            planned[key] = PlannedQuery(query=query.strip(), num_results=num_results)
        except ValidationError as exc:
            raise PlannerError(f"numResults for '{key}' must be between 1 and 5", raw) from exc
    return planned


class QueryPlanner(BaseAgent):
    """Expands one prompt into a search query per category."""

    name = "planner"

    def __init__(self, model: str | None = None, catalog: RetrievalCatalog | None = None):
        super().__init__(model)
        planner_override = settings.planner_model.strip()
        if planner_override and model is None:
            self.model = planner_override
        self.catalog = catalog or get_catalog()

    def _system_prompt(self) -> str:
        labels = ", ".join(c.label.title() for c in self.catalog.categories)
        schema = ",\n".join(
            f'    "{key}": {{ "query": string, "numResults": integer }}' for key in self.catalog.keys()
        )
        return render_prompt("planner.system_prompt", category_labels=labels, query_schema=schema)

    async def plan(self, prompt: str) -> QueryPlan:
        prompt = (prompt or "").strip()
        if not prompt:
            raise PlannerError("Prompt must not be empty")

        try:
            response = await self.complete(
                self._system_prompt(),
                render_prompt("planner.user_prompt", prompt=prompt),
            )
        except Exception as exc:
            raise PlannerError(f"Query expansion failed: {exc}") from exc

        queries = normalize_planner_response(response.text, self.catalog.keys())
        return QueryPlan(prompt=prompt, queries=queries)
