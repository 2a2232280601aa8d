"""OpenRouter LLM client factory exposing an Anthropic-style `messages.create`."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from faithsearch.config import settings

_FENCE_OPEN_RE = re.compile(r"^`{3,}(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE_RE = re.compile(r"`{3,}\s*$")


@dataclass
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass
class TextBlock:
    type: str
    text: str


@dataclass
class MessageResponse:
    content: list[TextBlock] = field(default_factory=list)
    usage: Usage = field(default_factory=Usage)

    @property
    def text(self) -> str:
        return "\n".join(block.text for block in self.content if block.type == "text")


class OpenRouterMessagesAdapter:
    def __init__(self, openai_client: Any):
        self._client = openai_client

    @staticmethod
    def _temperature_for_model(model: str) -> int:
        # Some OpenAI GPT-5-compatible gateways reject temperature=0.
        if "gpt-5" in (model or "").lower():
            return 1
        return 0

    @staticmethod
    def _to_openai_messages(system: str, messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
        openai_messages: list[dict[str, Any]] = [{"role": "system", "content": system}]
        for message in messages:
            openai_messages.append({"role": message["role"], "content": str(message["content"])})
        return openai_messages

    @staticmethod
    def _from_openai_response(response: Any) -> MessageResponse:
        choice = response.choices[0].message
        text = getattr(choice, "content", None) or ""
        usage = getattr(response, "usage", None)
        return MessageResponse(
            content=[TextBlock(type="text", text=text)] if text else [],
            usage=Usage(
                input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                output_tokens=getattr(usage, "completion_tokens", 0) or 0,
            ),
        )

    async def create(
        self,
        *,
        model: str,
        max_tokens: int,
        system: str,
        messages: list[dict[str, Any]],
    ) -> MessageResponse:
        response = await self._client.chat.completions.create(
            model=model,
            messages=self._to_openai_messages(system, messages),
            max_tokens=max_tokens,
            temperature=self._temperature_for_model(model),
        )
        return self._from_openai_response(response)


class OpenRouterClientAdapter:
    def __init__(self, openai_client: Any):
        self.messages = OpenRouterMessagesAdapter(openai_client)


def get_client() -> OpenRouterClientAdapter:
    """Get OpenRouter client via OpenAI-compatible SDK."""
    from openai import AsyncOpenAI

    base_url = settings.openrouter_base_url.strip() or "https://openrouter.ai/api/v1"
    openai_client = AsyncOpenAI(
        api_key=settings.openrouter_api_key,
        base_url=base_url,
    )
    return OpenRouterClientAdapter(openai_client)


def get_model() -> str:
    """Get the active OpenRouter model id."""
    if settings.openrouter_model:
        return settings.openrouter_model
    return settings.default_model


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences (with optional `json` label) around a payload."""
    cleaned = text.strip()
    cleaned = _FENCE_OPEN_RE.sub("", cleaned)
    cleaned = _FENCE_CLOSE_RE.sub("", cleaned)
    cleaned = cleaned.strip("`")
    return cleaned.strip()


_client: OpenRouterClientAdapter | None = None


def client() -> OpenRouterClientAdapter:
    """Get or create the LLM client."""
    global _client
    if _client is None:
        _client = get_client()
    return _client
