"""
Cell display formatting.

Every column type maps to one formatter in ``FORMATTERS``; a column's own
``render`` hook, when present, replaces the type formatter entirely.
Formatters return ``(display, tone)`` where *tone* names the badge colour
for status / priority cells and is ``None`` otherwise.

Display rules:
  - status    value as-is, tone from the procurement status vocabulary
  - priority  value as-is, tone from the first letter (A-D)
  - number    grouped digits, e.g. ``12,345`` (floats: up to 3 decimals)
  - currency  ``$`` + grouped digits with 2 decimals
  - date      ``M/D/YYYY``
  - text      raw value
Null and empty values render as a placeholder.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Iterable

from src.table.columns import Column, ColumnType, Record, cell_value, is_null, is_number, row_id, to_text

PLACEHOLDER = "-"
MISSING_LABEL = "N/A"

TONE_NEUTRAL = "neutral"
TONE_INFO = "info"
TONE_SUCCESS = "success"
TONE_WARNING = "warning"
TONE_ACCENT = "accent"
TONE_HIGH = "high"
TONE_DANGER = "danger"

STATUS_TONES: dict[str, str] = {
    "CREATED": TONE_NEUTRAL,
    "AUTHORIZED": TONE_INFO,
    "REVIEWED": TONE_SUCCESS,
    "APPROVED": TONE_SUCCESS,
    "ISSUED": TONE_WARNING,
    "EVALUATED": TONE_ACCENT,
    "CANCELLED": TONE_DANGER,
    "DELIVERED": TONE_SUCCESS,
    "CLOSED": TONE_NEUTRAL,
    "COMPLETION RECORDED": TONE_SUCCESS,
}

PRIORITY_TONES: dict[str, str] = {
    "A": TONE_DANGER,
    "B": TONE_HIGH,
    "C": TONE_WARNING,
    "D": TONE_NEUTRAL,
}

Formatted = tuple[Any, "str | None"]
Formatter = Callable[[Any], Formatted]


def _is_blank(value: Any) -> bool:
    return is_null(value) or value == ""


# ── Per-type formatters ─────────────────────────────────


def format_status(value: Any) -> Formatted:
    if _is_blank(value):
        return MISSING_LABEL, TONE_NEUTRAL
    text = to_text(value)
    return text, STATUS_TONES.get(text.upper(), TONE_NEUTRAL)


def format_priority(value: Any) -> Formatted:
    if _is_blank(value):
        return MISSING_LABEL, TONE_NEUTRAL
    text = to_text(value)
    return text, PRIORITY_TONES.get(text[:1].upper(), TONE_NEUTRAL)


def _as_decimal(value: Any) -> Decimal | None:
    if not (is_number(value) or isinstance(value, (str, Decimal))):
        return None
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return parsed if parsed.is_finite() else None


def format_number(value: Any) -> Formatted:
    if _is_blank(value):
        return PLACEHOLDER, None
    number = _as_decimal(value)
    if number is None:
        return to_text(value), None
    if number == number.to_integral_value():
        return f"{int(number):,}", None
    text = f"{number.quantize(Decimal('0.001')):,}".rstrip("0").rstrip(".")
    return text, None


def format_currency(value: Any) -> Formatted:
    if _is_blank(value):
        return PLACEHOLDER, None
    number = _as_decimal(value)
    if number is None:
        return to_text(value), None
    amount = f"{abs(number).quantize(Decimal('0.01')):,}"
    return (f"-${amount}" if number < 0 else f"${amount}"), None


def parse_date(value: Any) -> date | None:
    """Accept date / datetime, ISO-8601 strings and epoch milliseconds."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if is_number(value):
        try:
            return datetime.fromtimestamp(float(value) / 1000, tz=timezone.utc).date()
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            return None
    return None


def format_date(value: Any) -> Formatted:
    if _is_blank(value):
        return MISSING_LABEL, None
    parsed = parse_date(value)
    if parsed is None:
        return to_text(value), None
    return f"{parsed.month}/{parsed.day}/{parsed.year}", None


def format_text(value: Any) -> Formatted:
    if _is_blank(value):
        return PLACEHOLDER, None
    return to_text(value), None


FORMATTERS: dict[ColumnType, Formatter] = {
    ColumnType.TEXT: format_text,
    ColumnType.NUMBER: format_number,
    ColumnType.CURRENCY: format_currency,
    ColumnType.DATE: format_date,
    ColumnType.STATUS: format_status,
    ColumnType.PRIORITY: format_priority,
}


# ── Rows ────────────────────────────────────────────────


@dataclass
class RenderedCell:
    value: Any
    display: Any
    tone: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "display": self.display, "tone": self.tone}


@dataclass
class RenderedRow:
    row_id: Any
    record: Record
    cells: dict[str, RenderedCell] = field(default_factory=dict)

    def display_values(self) -> dict[str, Any]:
        return {k: c.display for k, c in self.cells.items()}

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.row_id,
            "cells": {k: c.to_dict() for k, c in self.cells.items()},
        }


def format_cell(record: Record, column: Column) -> RenderedCell:
    value = cell_value(record, column.key)
    if column.render is not None:
        return RenderedCell(value=value, display=column.render(value, record))
    display, tone = FORMATTERS.get(column.type, format_text)(value)
    return RenderedCell(value=value, display=display, tone=tone)


def render_row(record: Record, columns: Iterable[Column], index: int) -> RenderedRow:
    return RenderedRow(
        row_id=row_id(record, index),
        record=record,
        cells={c.key: format_cell(record, c) for c in columns},
    )
