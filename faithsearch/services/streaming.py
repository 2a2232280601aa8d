from __future__ import annotations

from typing import Any

from faithsearch.models.events import EventType, SSEEvent
from faithsearch.models.plan import QueryPlan
from faithsearch.models.progress import CategoryRunState
from faithsearch.models.sources import ScrapedSource


def plan_created(plan: QueryPlan) -> SSEEvent:
    """Emit plan created event with the per-category queries."""
    return SSEEvent(event=EventType.PLAN_CREATED, data=plan.to_dict())


def retrieval_started(run_id: str, categories: list[str], batch_size: int) -> SSEEvent:
    return SSEEvent(
        event=EventType.RETRIEVAL_STARTED,
        data={"run_id": run_id, "categories": categories, "batch_size": batch_size},
    )


def batch_started(index: int, total: int, categories: list[str]) -> SSEEvent:
    return SSEEvent(
        event=EventType.BATCH_STARTED,
        data={"batch": index, "total_batches": total, "categories": categories},
    )


def category_progress(state: CategoryRunState, detail: str = "") -> SSEEvent:
    return SSEEvent(
        event=EventType.CATEGORY_PROGRESS,
        data={
            "category": state.category,
            "phase": state.phase.value,
            "detail": detail,
            "state": state.snapshot(),
        },
    )


def source_added(source: ScrapedSource) -> SSEEvent:
    return SSEEvent(
        event=EventType.SOURCE_ADDED,
        data={
            "category": source.category,
            "title": source.title,
            "link": source.link,
            "engine": source.engine,
            "content_preview": source.content[:500],
        },
    )


def category_completed(state: CategoryRunState) -> SSEEvent:
    return SSEEvent(
        event=EventType.CATEGORY_COMPLETED,
        data={
            "category": state.category,
            "all_failed": state.all_failed,
            "sources_count": len(state.sources),
            "engine": state.engine,
        },
    )


def retrieval_timeout(deadline_seconds: float, incomplete: list[str]) -> SSEEvent:
    return SSEEvent(
        event=EventType.RETRIEVAL_TIMEOUT,
        data={"deadline_seconds": deadline_seconds, "incomplete_categories": incomplete},
    )


def retrieval_complete(sources: list[ScrapedSource], runtime_ms: int | None = None) -> SSEEvent:
    data: dict[str, Any] = {"sources": [s.to_dict() for s in sources]}
    if runtime_ms is not None:
        data["runtime_ms"] = runtime_ms
    return SSEEvent(event=EventType.RETRIEVAL_COMPLETE, data=data)


def synthesis_started(sources_count: int) -> SSEEvent:
    return SSEEvent(event=EventType.SYNTHESIS_STARTED, data={"sources_count": sources_count})


def research_complete(
    answer: dict[str, Any],
    sources: list[ScrapedSource],
    tokens_used: int = 0,
    runtime_ms: int | None = None,
) -> SSEEvent:
    data: dict[str, Any] = {
        "answer": answer,
        "sources": [s.to_dict() for s in sources],
        "tokens_used": tokens_used,
    }
    if runtime_ms is not None:
        data["runtime_ms"] = runtime_ms
    return SSEEvent(event=EventType.RESEARCH_COMPLETE, data=data)


def error(message: str, stage: str | None = None) -> SSEEvent:
    data: dict[str, Any] = {"message": message}
    if stage:
        data["stage"] = stage
    return SSEEvent(event=EventType.ERROR, data=data)
