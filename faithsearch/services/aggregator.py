from __future__ import annotations

from typing import Callable

from faithsearch.models.progress import PipelineRunState, pipeline_complete
from faithsearch.models.sources import ScrapedSource

CompletionCallback = Callable[[list[ScrapedSource]], None]


class ResultAggregator:
    """Flattens per-category sources and fires the completion callback once."""

    def __init__(self, on_complete: CompletionCallback | None = None):
        self._on_complete = on_complete
        self._fired = False
        self.sources: list[ScrapedSource] | None = None

    @property
    def fired(self) -> bool:
        return self._fired

    def maybe_complete(self, state: PipelineRunState) -> bool:
        """Safe to call after every state change; only the first all-done call fires."""
        if self._fired or not pipeline_complete(state):
            return False
        self._fired = True
        self.sources = state.flattened_sources()
        if self._on_complete is not None:
            self._on_complete(self.sources)
        return True
