"""Error taxonomy for the retrieval pipeline.

Only PlannerError and RetrievalCancelled escape the retrieval layer. The rest
are recovered where they occur and degrade to placeholders or progress flags.
"""
from __future__ import annotations


class RetrievalError(Exception):
    """Base class for pipeline errors."""


class PlannerError(RetrievalError):
    """Query expansion returned something unusable. Fatal to the run."""

    def __init__(self, message: str, raw: str | None = None):
        super().__init__(message)
        self.raw = raw


class ProviderError(RetrievalError):
    """Primary search provider unreachable, non-2xx or misconfigured."""


class MirrorError(RetrievalError):
    """A single meta-search mirror failed or yielded no usable hits."""

    def __init__(self, mirror: str, message: str):
        super().__init__(f"{mirror}: {message}")
        self.mirror = mirror


class ScrapeError(RetrievalError):
    """A page fetch or extraction failed."""

    def __init__(self, url: str, message: str, status_code: int | None = None):
        super().__init__(f"{url}: {message}")
        self.url = url
        self.status_code = status_code


class CategoryExhaustedError(RetrievalError):
    """Every search strategy or scrape for a category failed."""

    def __init__(self, category: str, reason: str):
        super().__init__(f"{category}: {reason}")
        self.category = category
        self.reason = reason


class PipelineTimeoutError(RetrievalError):
    """The whole-run deadline elapsed before every category finished."""


class RetrievalCancelled(RetrievalError):
    """The caller raised the cancellation signal; no completion follows."""
