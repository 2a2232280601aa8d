from __future__ import annotations

import asyncio
import json as _json

from fastapi import APIRouter, HTTPException, Request
from sse_starlette.sse import EventSourceResponse

from faithsearch.agents.orchestrator import ResearchOrchestrator
from faithsearch.agents.planner_agent import QueryPlanner
from faithsearch.models.schemas import QueriesRequest, QueriesResponse, ResearchRequest
from faithsearch.services import logger as log_service
from faithsearch.services import streaming
from faithsearch.services.errors import PlannerError

router = APIRouter(prefix="/api", tags=["research"])


@router.post("/queries", response_model=QueriesResponse)
async def generate_queries(request: QueriesRequest):
    """Run only the query planner for a prompt."""
    planner = QueryPlanner(model=request.model)
    try:
        plan = await planner.plan(request.prompt)
    except PlannerError as exc:
        log_service.log_event(
            event_type="planner_error",
            message="Query planning failed",
            error=str(exc),
        )
        raise HTTPException(status_code=502, detail=f"Failed to generate queries: {exc}") from exc
    return QueriesResponse(**plan.to_dict())


@router.post("/research/stream")
async def stream_research(request: ResearchRequest, http_request: Request):
    """SSE endpoint that streams the whole pipeline for one query."""
    cancel_event = asyncio.Event()

    async def event_generator():
        orchestrator = ResearchOrchestrator(model=request.model)
        events = orchestrator.research(
            request.query,
            synthesize=request.synthesize,
            cancel_event=cancel_event,
        )
        try:
            async for event in events:
                if await http_request.is_disconnected():
                    cancel_event.set()
                yield {
                    "event": event.event.value,
                    "data": _json.dumps(event.data),
                }
        except asyncio.CancelledError:
            # Client went away; stop retrieval before the task unwinds.
            cancel_event.set()
            raise
        except Exception as e:
            log_service.log_event(
                event_type="stream_error",
                message="Unhandled error in research stream",
                error=str(e),
            )
            error_event = streaming.error("Research stream failed unexpectedly.")
            yield {
                "event": error_event.event.value,
                "data": _json.dumps(error_event.data),
            }
        finally:
            await events.aclose()

    return EventSourceResponse(event_generator())
