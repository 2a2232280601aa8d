from __future__ import annotations

import time

from faithsearch.config import settings
from faithsearch.llm_client import MessageResponse, client as llm_client, get_model
from faithsearch.services import logger as log_service


class BaseAgent:
    """Single-shot LLM agent: one system prompt, one user message, text back.

    Subclasses set `name` and build their prompts; `complete` handles the
    call, timing and call logging.
    """

    name: str = "base"

    def __init__(self, model: str | None = None):
        self.model = model or get_model()
        self.client = None
        self.tokens_used = 0

    async def complete(self, system: str, user_message: str) -> MessageResponse:
        active_client = self.client or llm_client()
        t0 = time.monotonic()
        try:
            response = await active_client.messages.create(
                model=self.model,
                max_tokens=settings.llm_max_tokens,
                system=system,
                messages=[{"role": "user", "content": user_message}],
            )
        except Exception as exc:
            log_service.log_llm_call(
                model=self.model,
                caller=self.name,
                duration_ms=int((time.monotonic() - t0) * 1000),
                status="error",
                error=str(exc),
            )
            raise

        elapsed_ms = int((time.monotonic() - t0) * 1000)
        usage = getattr(response, "usage", None)
        input_tokens = getattr(usage, "input_tokens", 0) if usage else 0
        output_tokens = getattr(usage, "output_tokens", 0) if usage else 0
        self.tokens_used += input_tokens + output_tokens
        log_service.log_llm_call(
            model=self.model,
            caller=self.name,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            duration_ms=elapsed_ms,
        )
        return response
