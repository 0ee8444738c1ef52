"""
Facet registry -- the sticky option lists behind every filter dropdown.

For each filterable column the registry remembers every distinct value it
has ever been shown.  Each ``observe`` call unions the values of the new
record set into what is already known, so the option list for a column only
ever grows.  Narrowing the visible rows (search, other facets, a different
reporting year upstream) never removes a choice from a dropdown.

Values are kept raw (so a selection made from an option matches records
exactly), one per ``value_key``: numerically equal numbers share an option
(the first one seen), while ``"5"`` and ``5`` or ``True`` and ``1`` do not.
Options are ordered by their text form, case-sensitive ascending.
"""
from __future__ import annotations

from collections.abc import Hashable, Iterable
from typing import Any

from src.table.columns import Column, Record, cell_value, is_null, to_text, value_key
from src.core.logging import get_logger

logger = get_logger(__name__)


def _is_registrable(value: Any) -> bool:
    if is_null(value) or value == "":
        return False
    return isinstance(value, Hashable)


class FacetRegistry:
    """Per-table registry of distinct filterable values (grow-only)."""

    def __init__(self) -> None:
        self._seen: dict[str, dict[tuple[Any, Any], Any]] = {}
        self._ordered: dict[str, tuple[Any, ...]] = {}

    def observe(self, records: Iterable[Record], columns: Iterable[Column]) -> None:
        """Union the distinct values of *records* into the registry."""
        filterable = [c for c in columns if c.is_filterable]
        if not filterable:
            return
        records = list(records)
        for col in filterable:
            seen = self._seen.setdefault(col.key, {})
            before = len(seen)
            for record in records:
                value = cell_value(record, col.key)
                if _is_registrable(value):
                    seen.setdefault(value_key(value), value)
            if len(seen) != before or col.key not in self._ordered:
                self._ordered[col.key] = tuple(sorted(seen.values(), key=to_text))
                if before:
                    logger.debug("Facet %s grew %d -> %d values", col.key, before, len(seen))

    def values_for(self, key: str) -> tuple[Any, ...]:
        """Known values for *key* in display order; empty if never observed."""
        return self._ordered.get(key, ())

    def keys(self) -> list[str]:
        return list(self._ordered)

    def __contains__(self, key: object) -> bool:
        return key in self._ordered

    def reset(self) -> None:
        self._seen.clear()
        self._ordered.clear()
