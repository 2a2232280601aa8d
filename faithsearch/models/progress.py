from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from enum import StrEnum
from types import MappingProxyType
from typing import Any, Mapping

from faithsearch.models.sources import ScrapedSource


class CategoryPhase(StrEnum):
    PENDING = "pending"
    SEARCHING = "searching"
    SCRAPING = "scraping"
    DONE = "done"


# Allowed forward transitions; searching/pending -> done is the error shortcut.
PHASE_TRANSITIONS: dict[CategoryPhase, frozenset[CategoryPhase]] = {
    CategoryPhase.PENDING: frozenset({CategoryPhase.SEARCHING, CategoryPhase.DONE}),
    CategoryPhase.SEARCHING: frozenset({CategoryPhase.SCRAPING, CategoryPhase.DONE}),
    CategoryPhase.SCRAPING: frozenset({CategoryPhase.DONE}),
    CategoryPhase.DONE: frozenset(),
}


@dataclass(frozen=True, slots=True)
class CategoryRunState:
    category: str
    phase: CategoryPhase = CategoryPhase.PENDING
    engine: str = "none"
    current_title: str = ""
    current_index: int = 0
    error: bool = False
    all_failed: bool = False
    sources: tuple[ScrapedSource, ...] = ()

    @property
    def done(self) -> bool:
        return self.phase is CategoryPhase.DONE

    def evolve(self, **changes: Any) -> "CategoryRunState":
        return replace(self, **changes)

    def snapshot(self) -> dict[str, Any]:
        """Progress-sink view: everything except the source bodies."""
        data = asdict(self)
        data.pop("sources")
        data["phase"] = self.phase.value
        data["done"] = self.done
        data["source_count"] = len(self.sources)
        return data


@dataclass(frozen=True, slots=True)
class PipelineRunState:
    """Immutable per-run snapshot; updates replace the whole mapping."""

    run_id: str
    order: tuple[str, ...]
    categories: Mapping[str, CategoryRunState] = field(default_factory=dict)

    @classmethod
    def start(cls, run_id: str, order: list[str]) -> "PipelineRunState":
        return cls(
            run_id=run_id,
            order=tuple(order),
            categories=MappingProxyType({key: CategoryRunState(category=key) for key in order}),
        )

    def with_category(self, state: CategoryRunState) -> "PipelineRunState":
        updated = dict(self.categories)
        updated[state.category] = state
        return replace(self, categories=MappingProxyType(updated))

    def flattened_sources(self) -> list[ScrapedSource]:
        flat: list[ScrapedSource] = []
        for key in self.order:
            flat.extend(self.categories[key].sources)
        return flat


def pipeline_complete(state: PipelineRunState) -> bool:
    """A run is complete iff every enabled category is done."""
    return all(state.categories[key].done for key in state.order)
