from __future__ import annotations

from typing import Callable

from faithsearch.models.events import SSEEvent
from faithsearch.models.progress import (
    PHASE_TRANSITIONS,
    CategoryPhase,
    CategoryRunState,
    PipelineRunState,
)
from faithsearch.models.sources import ScrapedSource
from faithsearch.services import logger as log_service
from faithsearch.services import streaming

ProgressSink = Callable[[SSEEvent], None]


class ProgressTracker:
    """Owns the run snapshot and publishes every change to a sink.

    Each update reads the current snapshot, builds a new one for a single
    category and swaps it in. Nothing awaits between the read and the swap,
    so concurrent categories cannot clobber each other.
    """

    def __init__(self, run_id: str, order: list[str], sink: ProgressSink | None = None):
        self.run_id = run_id
        self._sink = sink
        self._state = PipelineRunState.start(run_id, order)

    @property
    def state(self) -> PipelineRunState:
        return self._state

    def category(self, key: str) -> CategoryRunState:
        return self._state.categories[key]

    def publish(self, event: SSEEvent) -> None:
        if self._sink is not None:
            self._sink(event)

    def _replace(self, state: CategoryRunState) -> CategoryRunState:
        self._state = self._state.with_category(state)
        return state

    def transition(self, key: str, phase: CategoryPhase, detail: str = "", **changes) -> CategoryRunState:
        current = self.category(key)
        if current.done:
            return current
        if phase is not current.phase and phase not in PHASE_TRANSITIONS[current.phase]:
            raise ValueError(f"Illegal transition for {key}: {current.phase} -> {phase}")

        updated = self._replace(current.evolve(phase=phase, **changes))
        log_service.log_pipeline_step(
            self.run_id,
            key,
            phase.value,
            "error" if updated.error else "ok",
            {"detail": detail} if detail else None,
        )
        if phase is CategoryPhase.DONE:
            self.publish(streaming.category_completed(updated))
        else:
            self.publish(streaming.category_progress(updated, detail))
        return updated

    def update(self, key: str, detail: str = "", **changes) -> CategoryRunState:
        """Change progress fields without moving the category to another phase."""
        current = self.category(key)
        if current.done:
            return current
        updated = self._replace(current.evolve(**changes))
        self.publish(streaming.category_progress(updated, detail))
        return updated

    def add_source(self, key: str, source: ScrapedSource) -> bool:
        """Append a source; refused once the category is done."""
        current = self.category(key)
        if current.done:
            return False
        self._replace(current.evolve(sources=current.sources + (source,)))
        self.publish(streaming.source_added(source))
        return True

    def set_sources(self, key: str, sources: list[ScrapedSource]) -> None:
        current = self.category(key)
        if current.done:
            return
        self._replace(current.evolve(sources=tuple(sources)))

    def complete(self, key: str, *, all_failed: bool = False, detail: str = "") -> CategoryRunState:
        current = self.category(key)
        return self.transition(
            key,
            CategoryPhase.DONE,
            detail,
            all_failed=all_failed or current.all_failed,
            error=current.error or all_failed,
        )

    def incomplete(self) -> list[str]:
        return [key for key in self._state.order if not self._state.categories[key].done]
