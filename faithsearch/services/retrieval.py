from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable
from uuid import uuid4

import httpx

from faithsearch.config import settings
from faithsearch.models.catalog import RetrievalCatalog
from faithsearch.models.plan import PlannedQuery, QueryPlan
from faithsearch.models.progress import CategoryPhase
from faithsearch.models.sources import (
    ScrapedSource,
    SearchHit,
    dedupe_by_link,
    normalize_scraped_source,
    scrape_exhausted_placeholder,
    search_exhausted_placeholder,
)
from faithsearch.services import logger as log_service
from faithsearch.services import streaming
from faithsearch.services.aggregator import ResultAggregator
from faithsearch.services.catalog import get_catalog
from faithsearch.services.errors import (
    CategoryExhaustedError,
    PipelineTimeoutError,
    RetrievalCancelled,
)
from faithsearch.services.progress import ProgressSink, ProgressTracker
from faithsearch.services.retry import retry_async
from faithsearch.tools import page_scraper, search_provider
from faithsearch.tools.content_extractor import ExtractedContent
from faithsearch.tools.search_provider import SearchResponse

logger = logging.getLogger(__name__)

SearchFn = Callable[..., Awaitable[SearchResponse]]
ScrapeFn = Callable[..., Awaitable[ExtractedContent]]
ClientFactory = Callable[[], httpx.AsyncClient]


def _batches(keys: list[str], size: int) -> list[list[str]]:
    return [keys[i : i + size] for i in range(0, len(keys), size)]


class RetrievalOrchestrator:
    """Drives search then scrape for every planned category.

    Categories run in fixed-size batches with a delay between batches. Within
    a batch every category is independent; within a category all hits are
    scraped at once, each with bounded retries.
    """

    def __init__(
        self,
        catalog: RetrievalCatalog | None = None,
        *,
        search: SearchFn | None = None,
        scrape: ScrapeFn | None = None,
        client_factory: ClientFactory | None = None,
        batch_size: int | None = None,
        batch_delay: float | None = None,
        pacing: float | None = None,
        retry_backoff: float | None = None,
        max_attempts: int | None = None,
        deadline: float | None = None,
    ):
        self.catalog = catalog or get_catalog()
        self._search = search or search_provider.search
        self._scrape = scrape or page_scraper.scrape_page
        self._client_factory = client_factory or httpx.AsyncClient
        self.batch_size = max(int(batch_size if batch_size is not None else settings.retrieval_batch_size), 1)
        self.batch_delay = float(
            batch_delay if batch_delay is not None else settings.retrieval_batch_delay_seconds
        )
        self.pacing = float(pacing if pacing is not None else settings.scrape_pacing_seconds)
        self.retry_backoff = float(
            retry_backoff if retry_backoff is not None else settings.scrape_retry_backoff_seconds
        )
        self.max_attempts = max(
            int(max_attempts if max_attempts is not None else settings.scrape_max_attempts), 1
        )
        deadline = deadline if deadline is not None else settings.retrieval_deadline_seconds
        self.deadline = float(deadline) if deadline and deadline > 0 else None

    async def run(
        self,
        plan: QueryPlan,
        *,
        sink: ProgressSink | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[ScrapedSource]:
        """Retrieve sources for every category in the plan.

        Returns the aggregated list, ordered by plan category order. Raises
        RetrievalCancelled whenever `cancel_event` is set before the run
        settles; in that case no completion event is published.
        """
        order = plan.categories()
        for key in order:
            self.catalog.get(key)

        run_id = uuid4().hex[:12]
        tracker = ProgressTracker(run_id, order, sink)
        started = time.monotonic()

        def publish_complete(sources: list[ScrapedSource]) -> None:
            runtime_ms = int((time.monotonic() - started) * 1000)
            tracker.publish(streaming.retrieval_complete(sources, runtime_ms))
            log_service.log_event(
                "retrieval_complete",
                "Retrieval finished",
                run_id=run_id,
                sources=len(sources),
                runtime_ms=runtime_ms,
            )

        aggregator = ResultAggregator(on_complete=publish_complete)
        log_service.log_event("retrieval_started", "Retrieval started", run_id=run_id, categories=order)
        tracker.publish(streaming.retrieval_started(run_id, order, self.batch_size))

        async with self._client_factory() as client:
            work = asyncio.create_task(self._run_batches(plan, tracker, client))
            waiters: set[asyncio.Future[Any]] = {work}
            cancel_waiter: asyncio.Task[Any] | None = None
            if cancel_event is not None:
                cancel_waiter = asyncio.create_task(cancel_event.wait())
                waiters.add(cancel_waiter)

            try:
                done, _ = await asyncio.wait(
                    waiters,
                    timeout=self.deadline,
                    return_when=asyncio.FIRST_COMPLETED,
                )
            finally:
                if cancel_waiter is not None:
                    cancel_waiter.cancel()
                if not work.done():
                    work.cancel()
                    await asyncio.gather(work, return_exceptions=True)

            if cancel_event is not None and cancel_event.is_set():
                log_service.log_event("retrieval_cancelled", "Retrieval cancelled", run_id=run_id)
                raise RetrievalCancelled(f"run {run_id} cancelled")
            if work in done:
                work.result()
            else:
                self._force_complete(tracker)

        aggregator.maybe_complete(tracker.state)
        return list(aggregator.sources or [])

    def _force_complete(self, tracker: ProgressTracker) -> None:
        incomplete = tracker.incomplete()
        timeout = PipelineTimeoutError(f"retrieval deadline of {self.deadline}s exceeded")
        logger.warning("%s; force-completing %s", timeout, incomplete)
        tracker.publish(streaming.retrieval_timeout(self.deadline or 0.0, incomplete))
        for key in incomplete:
            state = tracker.category(key)
            tracker.set_sources(key, dedupe_by_link(list(state.sources)))
            tracker.complete(key, detail="Timed out")

    async def _run_batches(
        self,
        plan: QueryPlan,
        tracker: ProgressTracker,
        client: httpx.AsyncClient,
    ) -> None:
        batches = _batches(plan.categories(), self.batch_size)
        for index, batch in enumerate(batches, 1):
            if index > 1 and self.batch_delay > 0:
                await asyncio.sleep(self.batch_delay)
            tracker.publish(streaming.batch_started(index, len(batches), batch))
            await asyncio.gather(
                *(
                    self._run_category(key, plan.queries[key], tracker, client)
                    for key in batch
                )
            )

    async def _run_category(
        self,
        key: str,
        planned: PlannedQuery,
        tracker: ProgressTracker,
        client: httpx.AsyncClient,
    ) -> None:
        try:
            await self._retrieve_category(key, planned, tracker, client)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception("Category %s failed unexpectedly", key)
            if not tracker.category(key).sources:
                tracker.add_source(key, search_exhausted_placeholder(key, planned.query))
            tracker.update(key, f"Unexpected error: {exc}", error=True)
            tracker.complete(key, all_failed=True, detail=str(exc))

    async def _retrieve_category(
        self,
        key: str,
        planned: PlannedQuery,
        tracker: ProgressTracker,
        client: httpx.AsyncClient,
    ) -> None:
        category = self.catalog.get(key)

        def on_search_progress(engine: str, detail: str) -> None:
            tracker.update(key, detail, engine=engine, current_title=detail)

        tracker.transition(key, CategoryPhase.SEARCHING, "Searching...")
        response = await self._search(
            category,
            planned.query,
            planned.num_results,
            catalog=self.catalog,
            client=client,
            on_progress=on_search_progress,
        )

        if not response.ok:
            exhausted = CategoryExhaustedError(key, response.fallback_reason or "no search results")
            logger.warning("Search exhausted: %s", exhausted)
            tracker.update(
                key,
                "No results found",
                engine=response.provider,
                current_title="No results found",
                error=True,
            )
            tracker.add_source(key, search_exhausted_placeholder(key, planned.query))
            tracker.complete(key, all_failed=True, detail=str(exhausted))
            return

        hits = response.hits[: planned.num_results]
        tracker.transition(
            key,
            CategoryPhase.SCRAPING,
            f"Found {len(hits)} sources",
            engine=response.provider,
        )
        await asyncio.gather(
            *(
                self._scrape_hit(key, index, hit, planned.query, response.provider, tracker, client)
                for index, hit in enumerate(hits)
            )
        )

        scraped = list(tracker.category(key).sources)
        if not scraped:
            exhausted = CategoryExhaustedError(key, "every scrape failed")
            logger.warning("Scrape exhausted: %s", exhausted)
            tracker.update(
                key,
                "Failed to fetch any site.",
                current_title="Failed to fetch any site.",
                error=True,
            )
            tracker.add_source(key, scrape_exhausted_placeholder(key, planned.query))
            tracker.complete(key, all_failed=True, detail=str(exhausted))
            return

        tracker.set_sources(key, dedupe_by_link(scraped))
        tracker.complete(key, detail=f"{len(tracker.category(key).sources)} sources")

    async def _scrape_hit(
        self,
        key: str,
        index: int,
        hit: SearchHit,
        query: str,
        engine: str,
        tracker: ProgressTracker,
        client: httpx.AsyncClient,
    ) -> bool:
        label = hit.title or hit.link
        tracker.update(key, label, current_title=label, current_index=index)

        async def attempt(_attempt: int) -> ExtractedContent:
            return await self._scrape(hit.link, client=client)

        def on_error(attempt: int, exc: Exception) -> None:
            logger.info("Scrape attempt %d failed for %s: %s", attempt, hit.link, exc)
            if attempt < self.max_attempts and not tracker.category(key).sources:
                tracker.update(key, str(exc), current_title="Error fetching site, retrying...")

        try:
            extracted = await retry_async(
                attempt,
                max_attempts=self.max_attempts,
                backoff=self.retry_backoff,
                on_error=on_error,
            )
        except Exception as exc:
            logger.warning("Dropping %s after %d attempts: %s", hit.link, self.max_attempts, exc)
            return False

        source = normalize_scraped_source(
            category=key,
            hit=hit,
            page_title=extracted.title,
            page_content=extracted.text,
            query=query,
            engine=engine,
        )
        added = tracker.add_source(key, source)
        if self.pacing > 0:
            await asyncio.sleep(self.pacing)
        return added
