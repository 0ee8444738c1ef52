"""
Loads, parses, and caches the list-view presets YAML.

Each preset describes one dashboard list (requisitions, RFQs, purchase
orders): its title, search placeholder, default page size and columns.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from functools import lru_cache
from typing import Any

import yaml

from src.table.columns import Column, parse_columns
from src.table.coordinator import TableConfig

_VIEWS_PATH = Path(__file__).resolve().parents[2] / "views" / "list_views.yml"


@dataclass(frozen=True)
class ListView:
    name: str
    title: str
    search_placeholder: str
    columns: list[Column] = field(default_factory=list)
    page_size: int | None = None

    def table_config(self, **overrides: Any) -> TableConfig:
        """A ``TableConfig`` seeded from this preset."""
        values: dict[str, Any] = {"search_placeholder": self.search_placeholder}
        if self.page_size:
            values["initial_page_size"] = self.page_size
        values.update({k: v for k, v in overrides.items() if v is not None})
        return TableConfig(**values)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "search_placeholder": self.search_placeholder,
            "page_size": self.page_size,
            "columns": [c.to_dict() for c in self.columns],
        }


def _parse_view(raw: dict[str, Any]) -> ListView:
    return ListView(
        name=raw["name"],
        title=raw.get("title", raw["name"].replace("_", " ").title()),
        search_placeholder=raw.get("search_placeholder", "Search..."),
        columns=parse_columns(raw.get("columns") or []),
        page_size=raw.get("page_size"),
    )


# ── Public API ───────────────────────────────────────────

@lru_cache
def load_list_views() -> dict[str, ListView]:
    """Load and cache every preset, keyed by name."""
    with open(_VIEWS_PATH) as f:
        raw = yaml.safe_load(f) or {}
    return {v["name"]: _parse_view(v) for v in raw.get("views", [])}


def get_list_view(name: str) -> ListView | None:
    return load_list_views().get(name)


def get_view_names() -> list[str]:
    return list(load_list_views().keys())
