from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Sequence, TypeVar

T = TypeVar("T")

RetryHook = Callable[[int, Exception], Awaitable[None] | None]


def backoff_delay(schedule: float | Sequence[float], attempt: int) -> float:
    """Delay before the retry that follows `attempt` (1-based)."""
    if isinstance(schedule, (int, float)):
        return max(float(schedule), 0.0)
    if not schedule:
        return 0.0
    return max(float(schedule[min(attempt, len(schedule)) - 1]), 0.0)


async def retry_async(
    operation: Callable[[int], Awaitable[T]],
    *,
    max_attempts: int,
    backoff: float | Sequence[float] = 0.0,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    on_error: RetryHook | None = None,
) -> T:
    """Run `operation(attempt)` up to `max_attempts` times.

    The last error is re-raised once attempts run out. CancelledError is never
    retried.
    """
    attempts = max(int(max_attempts), 1)
    last_error: Exception | None = None

    for attempt in range(1, attempts + 1):
        try:
            return await operation(attempt)
        except asyncio.CancelledError:
            raise
        except retry_on as exc:  # type: ignore[misc]
            last_error = exc
            if on_error is not None:
                hook = on_error(attempt, exc)
                if asyncio.iscoroutine(hook):
                    await hook
            if attempt < attempts:
                delay = backoff_delay(backoff, attempt)
                if delay:
                    await asyncio.sleep(delay)

    assert last_error is not None
    raise last_error
