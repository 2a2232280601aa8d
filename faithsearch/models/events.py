from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventType(str, Enum):
    PLAN_CREATED = "plan_created"
    RETRIEVAL_STARTED = "retrieval_started"
    BATCH_STARTED = "batch_started"
    CATEGORY_PROGRESS = "category_progress"
    SOURCE_ADDED = "source_added"
    CATEGORY_COMPLETED = "category_completed"
    RETRIEVAL_TIMEOUT = "retrieval_timeout"
    RETRIEVAL_COMPLETE = "retrieval_complete"
    SYNTHESIS_STARTED = "synthesis_started"
    RESEARCH_COMPLETE = "research_complete"
    ERROR = "error"


@dataclass
class SSEEvent:
    event: EventType
    data: dict[str, Any] = field(default_factory=dict)

    def format(self) -> str:
        return f"event: {self.event.value}\ndata: {json.dumps(self.data)}\n\n"
