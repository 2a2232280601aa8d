from __future__ import annotations

import json
import logging
from typing import Any

from faithsearch.agents.base import BaseAgent
from faithsearch.config import settings
from faithsearch.llm_client import strip_code_fences
from faithsearch.models.catalog import RetrievalCatalog
from faithsearch.models.sources import ScrapedSource
from faithsearch.services.catalog import get_catalog
from faithsearch.services.prompt_store import render_prompt
from faithsearch.tools import web_utils

logger = logging.getLogger(__name__)

SOURCE_CONTEXT_MAX_CHARS = 3000


def format_sources(sources: list[ScrapedSource], catalog: RetrievalCatalog) -> str:
    """Numbered source context grouped by category, in catalog order."""
    sections: list[str] = []
    for category in catalog.categories:
        usable = [
            s for s in sources if s.category == category.key and not s.is_placeholder
        ]
        lines = [f"## {category.label}"]
        if not usable:
            lines.append("No sources were retrieved for this tradition.")
        for idx, source in enumerate(usable, 1):
            lines.append(f"[{category.label.title()}, {idx}] {source.title}")
            lines.append(f"URL: {source.link}")
            lines.append(web_utils.truncate(source.content, SOURCE_CONTEXT_MAX_CHARS))
            lines.append("")
        sections.append("\n".join(lines).rstrip())
    return "\n\n".join(sections)


def parse_answer(text: str) -> dict[str, Any]:
    """Parse the structured answer; on failure return `{error, raw}` instead of raising."""
    try:
        answer = json.loads(strip_code_fences(text or ""))
    except ValueError:
        logger.warning("Synthesis response was not valid JSON")
        return {"error": "AI response was not valid JSON", "raw": text}
    if not isinstance(answer, dict):
        return {"error": "AI response was not a JSON object", "raw": text}

    if isinstance(answer.get("conclusion"), str) and not answer.get("conclusions"):
        answer["conclusions"] = [{"label": "Conclusion", "summary": answer.pop("conclusion")}]
    return answer


class SynthesisAgent(BaseAgent):
    """Turns the aggregated sources into the structured comparative answer."""

    name = "synthesis"

    def __init__(self, model: str | None = None, catalog: RetrievalCatalog | None = None):
        super().__init__(model)
        synthesis_override = settings.synthesis_model.strip()
        if synthesis_override and model is None:
            self.model = synthesis_override
        self.catalog = catalog or get_catalog()

    async def synthesize(self, query: str, sources: list[ScrapedSource]) -> dict[str, Any]:
        system = render_prompt(
            "synthesis.system_prompt",
            category_labels=", ".join(c.label.title() for c in self.catalog.categories),
            category_keys=", ".join(self.catalog.keys()),
        )
        user_message = render_prompt(
            "synthesis.user_prompt",
            query=query,
            sources=format_sources(sources, self.catalog),
        )
        response = await self.complete(system, user_message)
        return parse_answer(response.text)
