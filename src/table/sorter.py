"""
Single-column, direction-aware, stable sort.

Null (or missing) values always sort after non-null values, in both
directions: flipping ``asc`` to ``desc`` negates only the comparison
between two non-null values.  Two numbers compare numerically, anything
else compares by text.  Ties keep their input order.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import cmp_to_key
from typing import Any, Iterable

from src.table.columns import Record, cell_value, is_null, is_number, to_text


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SortState:
    key: str | None = None
    direction: SortDirection = SortDirection.ASC

    def toggled(self, key: str) -> SortState:
        """Header click: the active ascending column flips to desc, anything else sorts asc."""
        if self.key == key and self.direction == SortDirection.ASC:
            return SortState(key, SortDirection.DESC)
        return SortState(key, SortDirection.ASC)

    def indicator(self, key: str) -> str:
        if self.key != key:
            return "↕"
        return "↑" if self.direction == SortDirection.ASC else "↓"

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, "direction": self.direction.value}


def compare_values(a: Any, b: Any) -> int:
    """Direction-free comparison of two non-null cell values."""
    if is_number(a) and is_number(b):
        return (a > b) - (a < b)
    sa, sb = to_text(a), to_text(b)
    return (sa > sb) - (sa < sb)


def sort_records(
    records: Iterable[Record],
    key: str | None,
    direction: SortDirection | str = SortDirection.ASC,
) -> list[Record]:
    """Return *records* ordered by *key*; ``key=None`` keeps input order."""
    records = list(records)
    if key is None:
        return records
    descending = SortDirection(direction) == SortDirection.DESC

    def _cmp(ra: Record, rb: Record) -> int:
        a, b = cell_value(ra, key), cell_value(rb, key)
        a_null, b_null = is_null(a), is_null(b)
        if a_null or b_null:
            # nulls last regardless of direction
            return int(a_null) - int(b_null)
        result = compare_values(a, b)
        return -result if descending else result

    return sorted(records, key=cmp_to_key(_cmp))
