from __future__ import annotations

import asyncio
import time
from typing import AsyncGenerator

from faithsearch.agents.planner_agent import QueryPlanner
from faithsearch.agents.synthesis_agent import SynthesisAgent
from faithsearch.models.catalog import RetrievalCatalog
from faithsearch.models.events import SSEEvent
from faithsearch.services import logger as log_service
from faithsearch.services import streaming
from faithsearch.services.catalog import get_catalog
from faithsearch.services.errors import PlannerError, RetrievalCancelled
from faithsearch.services.retrieval import RetrievalOrchestrator


class ResearchOrchestrator:
    """Runs the whole pipeline for one prompt.

    Flow:
      1. Expand the prompt into one query per category (QueryPlanner)
      2. Search and scrape every category in batches (RetrievalOrchestrator)
      3. Optionally hand the aggregated sources to the SynthesisAgent

    Every step yields SSE events. Retrieval progress is relayed live through
    an asyncio.Queue fed by the retrieval task.
    """

    def __init__(
        self,
        model: str | None = None,
        *,
        catalog: RetrievalCatalog | None = None,
        planner: QueryPlanner | None = None,
        retrieval: RetrievalOrchestrator | None = None,
        synthesizer: SynthesisAgent | None = None,
    ):
        self.catalog = catalog or get_catalog()
        self.planner = planner or QueryPlanner(model=model, catalog=self.catalog)
        self.retrieval = retrieval or RetrievalOrchestrator(self.catalog)
        self.synthesizer = synthesizer or SynthesisAgent(model=model, catalog=self.catalog)

    def _tokens_used(self) -> int:
        return int(getattr(self.planner, "tokens_used", 0) or 0) + int(
            getattr(self.synthesizer, "tokens_used", 0) or 0
        )

    async def research(
        self,
        prompt: str,
        *,
        synthesize: bool = True,
        cancel_event: asyncio.Event | None = None,
    ) -> AsyncGenerator[SSEEvent, None]:
        """Execute the pipeline, yielding SSE events throughout.

        A planner failure yields one `error` event and ends the stream.
        Cancellation ends the stream without any completion event.
        """
        started = time.monotonic()
        log_service.log_event("research_started", "Research started", prompt=prompt[:100])

        try:
            plan = await self.planner.plan(prompt)
        except PlannerError as exc:
            log_service.log_event(
                "planner_error",
                "Query planning failed",
                error=str(exc),
                raw=(exc.raw or "")[:500],
            )
            yield streaming.error(f"Query planning failed: {exc}", stage="planning")
            return
        yield streaming.plan_created(plan)

        queue: asyncio.Queue[SSEEvent | None] = asyncio.Queue()

        async def run_retrieval():
            try:
                return await self.retrieval.run(
                    plan,
                    sink=queue.put_nowait,
                    cancel_event=cancel_event,
                )
            finally:
                queue.put_nowait(None)

        task = asyncio.create_task(run_retrieval())
        try:
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield event
            sources = await task
        except RetrievalCancelled:
            log_service.log_event("research_cancelled", "Research cancelled", prompt=prompt[:100])
            return
        finally:
            if not task.done():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)

        if not synthesize:
            return

        yield streaming.synthesis_started(len(sources))
        try:
            answer = await self.synthesizer.synthesize(plan.prompt, sources)
        except Exception as exc:
            log_service.log_event("synthesis_error", "Synthesis failed", error=str(exc))
            yield streaming.error(f"Synthesis failed: {exc}", stage="synthesis")
            return

        runtime_ms = int((time.monotonic() - started) * 1000)
        log_service.log_event(
            "research_complete",
            "Research complete",
            sources=len(sources),
            runtime_ms=runtime_ms,
        )
        yield streaming.research_complete(
            answer,
            sources,
            tokens_used=self._tokens_used(),
            runtime_ms=runtime_ms,
        )
