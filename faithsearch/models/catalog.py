from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Category:
    """One tradition bucket the pipeline searches under."""

    key: str
    label: str
    domains: tuple[str, ...] = ()

    def site_filter(self) -> str:
        """`site:` operator for meta-search queries (first allow-listed domain only)."""
        if not self.domains:
            return ""
        return f"site:{self.domains[0]}"


@dataclass(frozen=True, slots=True)
class RetrievalCatalog:
    """Immutable categories + mirror pool injected into search and orchestration."""

    categories: tuple[Category, ...]
    mirrors: tuple[str, ...] = field(default_factory=tuple)

    def keys(self) -> list[str]:
        return [c.key for c in self.categories]

    def get(self, key: str) -> Category:
        for category in self.categories:
            if category.key == key:
                return category
        raise KeyError(f"Unknown category: {key}")

    def summary(self) -> dict:
        return {
            "categories": [
                {"key": c.key, "label": c.label, "domains": list(c.domains)}
                for c in self.categories
            ],
            "mirror_count": len(self.mirrors),
        }
