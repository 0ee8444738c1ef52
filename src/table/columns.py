"""
Column descriptors and record-level value helpers.

A record is an opaque mapping from column key to value.  The table engine
never interprets business meaning; it only needs to know, per column, the
semantic type (which drives formatting and implicit filterability) and how
to read and stringify a cell.
"""
from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from numbers import Real
from typing import Any, Callable

from src.core.logging import get_logger

logger = get_logger(__name__)

Record = Mapping[str, Any]
RenderHook = Callable[[Any, Record], Any]


# ── Column types ────────────────────────────────────────


class ColumnType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    CURRENCY = "currency"
    DATE = "date"
    STATUS = "status"
    PRIORITY = "priority"


# status / priority columns always get a facet dropdown
_IMPLICITLY_FILTERABLE = {ColumnType.STATUS, ColumnType.PRIORITY}


@dataclass(frozen=True)
class Column:
    """Describes one table column."""
    key: str
    label: str
    type: ColumnType = ColumnType.TEXT
    filterable: bool = False
    render: RenderHook | None = None

    @property
    def is_filterable(self) -> bool:
        return self.filterable or self.type in _IMPLICITLY_FILTERABLE

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "label": self.label,
            "type": self.type.value,
            "filterable": self.is_filterable,
        }


# ── Parsing ─────────────────────────────────────────────


def parse_column_type(raw: Any) -> ColumnType:
    if isinstance(raw, ColumnType):
        return raw
    try:
        return ColumnType(str(raw).lower())
    except ValueError:
        logger.warning("Unknown column type %r -- treating as text", raw)
        return ColumnType.TEXT


def parse_column(raw: Column | Mapping[str, Any]) -> Column:
    """Build a ``Column`` from a dict (JSON / YAML shape) or pass one through."""
    if isinstance(raw, Column):
        return raw
    key = str(raw["key"])
    return Column(
        key=key,
        label=str(raw.get("label") or key),
        type=parse_column_type(raw.get("type", ColumnType.TEXT)),
        filterable=bool(raw.get("filterable", False)),
        render=raw.get("render"),
    )


def parse_columns(raw: Any) -> list[Column]:
    if not _is_sequence(raw):
        return []
    return [parse_column(c) for c in raw]


# ── Record helpers ──────────────────────────────────────


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def coerce_records(records: Any) -> list[Record]:
    """Absent or non-sequence input is an empty record set."""
    if records is None:
        return []
    if not _is_sequence(records):
        logger.warning("Expected a sequence of records, got %s -- using []", type(records).__name__)
        return []
    return list(records)


def cell_value(record: Any, key: str) -> Any:
    if not isinstance(record, Mapping):
        return None
    return record.get(key)


def is_null(value: Any) -> bool:
    if isinstance(value, float):
        return math.isnan(value)
    if isinstance(value, Decimal):
        return value.is_nan()
    return value is None


def is_number(value: Any) -> bool:
    # bool is an int subclass but compares and renders as text
    return isinstance(value, (Real, Decimal)) and not isinstance(value, bool)


def value_key(value: Any) -> tuple[Any, Any]:
    """Identity of a cell value for facets and selections.

    Numbers are keyed by numeric value, so ``10``, ``10.0`` and
    ``Decimal("10")`` are one value; anything else is keyed by type and
    value, so ``"5"`` stays apart from ``5`` and ``True`` from ``1``.
    """
    if is_number(value):
        return (Real, value)
    return (type(value), value)


def to_text(value: Any) -> str:
    """String coercion shared by search, facet ordering and labels."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def row_id(record: Any, index: int) -> Any:
    """Identity for row rendering: ``record["id"]`` if present, else position."""
    value = cell_value(record, "id")
    return index if is_null(value) else value
