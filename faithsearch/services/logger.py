"""Centralized logging service for debugging and monitoring."""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from faithsearch.config import settings

LOG_DIR = Path(settings.log_dir)
LOG_DIR.mkdir(parents=True, exist_ok=True)

APP_LOG_LEVEL = getattr(logging, settings.app_log_level.upper(), logging.INFO)
NOISY_LOG_LEVEL = getattr(logging, settings.noisy_log_level.upper(), logging.WARNING)

logging.basicConfig(
    level=APP_LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.FileHandler(LOG_DIR / "faithsearch.log"),
        logging.StreamHandler(),
    ],
)

for logger_name in (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "fastapi",
    "sse_starlette.sse",
    "httpx",
    "httpcore",
    "hpack",
    "openai._base_client",
    "asyncio",
):
    logging.getLogger(logger_name).setLevel(NOISY_LOG_LEVEL)

logger = logging.getLogger("faithsearch")


def _emit(kind: str, payload: dict[str, Any], level: int = logging.INFO) -> None:
    try:
        logger.log(level, f"{kind}: {json.dumps(payload, default=str)}")
    except Exception:
        # Logging must never break the pipeline.
        logger.exception("Failed to serialize %s log payload", kind)


def log_llm_call(
    model: str,
    caller: str,
    input_tokens: int = 0,
    output_tokens: int = 0,
    duration_ms: int = 0,
    status: str = "success",
    error: Optional[str] = None,
) -> None:
    """Log an LLM API call."""
    _emit(
        "LLM_CALL",
        {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "model": model,
            "caller": caller,
            "input_tokens": input_tokens,
            "output_tokens": output_tokens,
            "total_tokens": input_tokens + output_tokens,
            "duration_ms": duration_ms,
            "status": status,
            "error": error,
        },
        logging.INFO if status == "success" else logging.WARNING,
    )


def log_pipeline_step(
    run_id: str,
    category: str,
    phase: str,
    status: str,
    data: Optional[dict] = None,
) -> None:
    """Log a per-category retrieval step."""
    _emit(
        "PIPELINE_STEP",
        {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "run_id": run_id,
            "category": category,
            "phase": phase,
            "status": status,
            "data": data,
        },
        logging.WARNING if status == "error" else logging.INFO,
    )


def log_event(
    event_type: str,
    message: str,
    **kwargs,
) -> None:
    """Log a generic event."""
    _emit(
        "EVENT",
        {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
            "message": message,
            **kwargs,
        },
    )
