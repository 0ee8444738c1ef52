"""
Filter engine: free-text search AND per-column facet selections.

1. A non-empty search term keeps records where any column's text contains
   the term, case-insensitively (OR across columns).
2. Each column with a non-empty selection keeps records whose value is one
   of the selected values (AND across columns).  Membership goes through
   ``value_key``: numerically equal numbers match (``10`` and ``10.0``), but
   ``5`` does not match ``"5"`` and ``True`` does not match ``1``.

An absent key and an empty selection both mean "no constraint".
"""
from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from src.table.columns import Column, Record, cell_value, is_null, to_text, value_key

Selections = Mapping[str, Iterable[Any]]
ValueKey = tuple[Any, Any]


def _keyed(values: Iterable[Any]) -> dict[ValueKey, Any]:
    return {value_key(v): v for v in values if isinstance(v, Hashable)}


@dataclass
class FilterState:
    """Search term plus per-column selected values, keyed by ``value_key``."""
    search_term: str = ""
    selections: dict[str, dict[ValueKey, Any]] = field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return bool(self.search_term) or any(self.selections.values())

    def active_columns(self) -> list[str]:
        return [k for k, v in self.selections.items() if v]

    def selected(self, key: str) -> list[Any]:
        return list(self.selections.get(key, {}).values())

    def selected_keys(self, key: str) -> set[ValueKey]:
        return set(self.selections.get(key, {}))

    def select(self, key: str, values: Iterable[Any]) -> bool:
        """Replace the selection for *key*; True if it changed."""
        keyed = _keyed(values)
        changed = set(keyed) != self.selected_keys(key)
        self.selections[key] = keyed
        return changed

    def toggle(self, key: str, value: Any) -> None:
        """Add *value* to the selection for *key*, or remove it if present."""
        keyed = dict(self.selections.get(key, {}))
        k = value_key(value)
        if k in keyed:
            del keyed[k]
        else:
            keyed[k] = value
        self.selections[key] = keyed

    def as_selections(self) -> dict[str, list[Any]]:
        return {k: list(v.values()) for k, v in self.selections.items()}


# ── Matching ────────────────────────────────────────────


def matches_search(record: Record, needle: str, columns: Iterable[Column]) -> bool:
    """True if any column's text contains *needle* (already lower-cased)."""
    for col in columns:
        value = cell_value(record, col.key)
        if is_null(value):
            continue
        if needle in to_text(value).lower():
            return True
    return False


def apply_filters(
    records: Iterable[Record],
    search_term: str,
    selections: Selections | None,
    columns: Iterable[Column],
) -> list[Record]:
    """Return the records that pass the search term and every facet selection."""
    columns = list(columns)
    result = list(records)

    if search_term:
        needle = search_term.lower()
        result = [r for r in result if matches_search(r, needle, columns)]

    for key, selected in (selections or {}).items():
        allowed = set(_keyed(selected))
        if not allowed:
            continue
        result = [r for r in result if _is_selected(cell_value(r, key), allowed)]

    return result


def _is_selected(value: Any, allowed: set[ValueKey]) -> bool:
    if is_null(value) or not isinstance(value, Hashable):
        return False
    return value_key(value) in allowed
