"""
Table coordinator -- owns search, facet selections, sort, page and page size
for one mounted table and re-derives the visible view on every change.

Pipeline (run in full after every mutation, nothing cached between runs):

    records -> apply_filters -> sort_records -> Paginator -> rendered rows

Page reset rules:
  - search term, facet selections or the upstream record-set size changes
    -> back to page 1
  - page size changes -> page 1 (forwarded to the server-side sink as page 1)
  - sort changes -> page kept, clamped if it no longer exists

The facet registry belongs to the coordinator (one per table) and is fed on
every ``set_records``; "Clear All" never touches it.
"""
from __future__ import annotations

from collections.abc import Hashable, Iterable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field

from src.table.columns import Column, Record, coerce_records, parse_columns, to_text, value_key
from src.table.facets import FacetRegistry
from src.table.filters import FilterState, apply_filters
from src.table.formatters import RenderedRow, render_row
from src.table.paginator import PageInfo, PageSink, Paginator, clamp_page, normalize_page_size, total_pages
from src.table.sorter import SortDirection, SortState, sort_records
from src.core.config import get_settings
from src.core.logging import get_logger
from src.core.utils import timer

logger = get_logger(__name__)


def _default_page_size() -> int:
    return get_settings().default_page_size


def _default_page_size_options() -> list[int]:
    return list(get_settings().page_size_options)


def _default_placeholder() -> str:
    return get_settings().search_placeholder


class TableConfig(BaseModel):
    """Construction-time options for a table."""

    search_placeholder: str = Field(default_factory=_default_placeholder)
    initial_page_size: int = Field(default_factory=_default_page_size)
    page_size_options: list[int] = Field(default_factory=_default_page_size_options)
    server_side: bool = Field(False, description="Records are one externally fetched page")
    total_records: int | None = Field(None, description="External total count (server-side mode)")


# ── View objects ────────────────────────────────────────


@dataclass
class FacetOption:
    value: Any
    label: str
    selected: bool

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "label": self.label, "selected": self.selected}


@dataclass
class Facet:
    """One filter dropdown: every known option plus live selection state."""
    key: str
    label: str
    options: list[FacetOption] = field(default_factory=list)
    selected_count: int = 0
    is_open: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "label": self.label,
            "options": [o.to_dict() for o in self.options],
            "selected_count": self.selected_count,
            "is_open": self.is_open,
        }


@dataclass
class TableView:
    """Everything the rendering layer needs for one frame."""
    columns: list[Column]
    rows: list[RenderedRow]
    facets: list[Facet]
    pagination: PageInfo
    sort: SortState
    search_term: str
    search_placeholder: str
    has_active_filters: bool
    open_facet: str | None
    filtered_count: int
    server_side: bool

    @property
    def records(self) -> list[Record]:
        return [r.record for r in self.rows]

    def to_dict(self) -> dict[str, Any]:
        return {
            "columns": [
                {**c.to_dict(), "sort_indicator": self.sort.indicator(c.key)}
                for c in self.columns
            ],
            "rows": [r.to_dict() for r in self.rows],
            "facets": [f.to_dict() for f in self.facets],
            "pagination": self.pagination.to_dict(),
            "sort": self.sort.to_dict(),
            "search_term": self.search_term,
            "search_placeholder": self.search_placeholder,
            "has_active_filters": self.has_active_filters,
            "open_facet": self.open_facet,
            "filtered_count": self.filtered_count,
            "server_side": self.server_side,
        }


# ── Coordinator ─────────────────────────────────────────


class TableCoordinator:
    """State owner and recompute driver for a single table.

    Parameters
    ----------
    columns : sequence
        ``Column`` objects or dicts with ``key``, ``label``, ``type``, ``filterable``.
    records : sequence, optional
        Initial record set (absent / non-sequence -> empty).
    config : TableConfig, optional
        Search placeholder, page sizes and the client/server-side switch.
    on_page_change, on_page_size_change : callable, optional
        ``(page, page_size)`` sinks used in server-side mode only.
    """

    def __init__(
        self,
        columns: Iterable[Column | dict[str, Any]],
        records: Any = None,
        config: TableConfig | None = None,
        on_page_change: PageSink | None = None,
        on_page_size_change: PageSink | None = None,
    ):
        self.config = config or TableConfig()
        self.columns: list[Column] = parse_columns(list(columns or []))
        self.facets = FacetRegistry()
        self.paginator = Paginator(
            server_side=self.config.server_side,
            on_page_change=on_page_change,
            on_page_size_change=on_page_size_change,
            page_size_options=self.config.page_size_options,
        )

        self.filters = FilterState()
        self.sort = SortState()
        self.page = 1
        self.page_size = normalize_page_size(self.config.initial_page_size, self.paginator.page_size_options)
        self.open_facet_key: str | None = None

        self._records: list[Record] = []
        self._total_records: int | None = None
        self._view: TableView | None = None

        if self.config.server_side and self.config.total_records is None:
            logger.warning("Server-side table without total_records -- falling back to page length")
        self.set_records(records, total_records=self.config.total_records)

    # ── Derived state ───────────────────────────────────

    @property
    def server_side(self) -> bool:
        return self.paginator.server_side

    @property
    def records(self) -> list[Record]:
        return list(self._records)

    @property
    def has_active_filters(self) -> bool:
        return self.filters.is_active

    @property
    def view(self) -> TableView:
        if self._view is None:
            self._recompute()
        return self._view

    def _upstream_size(self) -> int:
        if self.server_side and self._total_records is not None:
            return self._total_records
        return len(self._records)

    def _column(self, key: str) -> Column | None:
        for col in self.columns:
            if col.key == key:
                return col
        return None

    # ── Data ────────────────────────────────────────────

    def set_records(self, records: Any, total_records: int | None = None) -> TableView:
        """Replace the record set (e.g. after a fetch) and grow the facet registry."""
        before = self._upstream_size() if self._view is not None else None
        self._records = coerce_records(records)
        if total_records is not None:
            self._total_records = max(int(total_records), 0)
        self.facets.observe(self._records, self.columns)
        if before is not None and self._upstream_size() != before:
            self.page = 1
        return self._recompute()

    # ── Search & facets ─────────────────────────────────

    def set_search(self, term: str | None) -> TableView:
        term = term or ""
        if term != self.filters.search_term:
            self.filters.search_term = term
            self.page = 1
        return self._recompute()

    def _known_column(self, key: str) -> bool:
        if self._column(key) is None:
            logger.warning("Filter on unknown column %r ignored", key)
            return False
        return True

    def _replace_selection(self, key: str, values: Iterable[Any]) -> TableView:
        if self._known_column(key) and self.filters.select(key, values):
            self.page = 1
        return self._recompute()

    def toggle_filter(self, key: str, value: Any) -> TableView:
        """Select *value* for column *key*, or deselect it if already selected."""
        if not self._known_column(key):
            return self._recompute()
        if not isinstance(value, Hashable):
            logger.warning("Unhashable filter value for %s ignored", key)
            return self._recompute()
        self.filters.toggle(key, value)
        self.page = 1
        return self._recompute()

    def set_filter(self, key: str, values: Iterable[Any]) -> TableView:
        return self._replace_selection(key, values)

    def select_all(self, key: str) -> TableView:
        """Select every option the facet registry knows for *key*."""
        return self._replace_selection(key, self.facets.values_for(key))

    def clear_filter(self, key: str) -> TableView:
        return self._replace_selection(key, ())

    # ── Sorting ─────────────────────────────────────────

    def sort_by(self, key: str) -> TableView:
        """Header click: asc, then desc on a second click of the same column."""
        self.sort = self.sort.toggled(key)
        return self._recompute()

    def set_sort(self, key: str | None, direction: SortDirection | str = SortDirection.ASC) -> TableView:
        try:
            direction = SortDirection(direction)
        except ValueError:
            logger.warning("Unknown sort direction %r -- using asc", direction)
            direction = SortDirection.ASC
        self.sort = SortState(key, direction)
        return self._recompute()

    # ── Paging ──────────────────────────────────────────

    def go_to_page(self, page: int) -> TableView:
        self.page = clamp_page(page, total_pages(self._filtered_total(), self.page_size))
        self.paginator.notify_page_change(self.page, self.page_size)
        return self._recompute()

    def set_page_size(self, size: int) -> TableView:
        self.page_size = normalize_page_size(size, self.paginator.page_size_options)
        self.page = 1
        self.paginator.notify_page_size_change(1, self.page_size)
        return self._recompute()

    def _filtered_total(self) -> int:
        if self.server_side:
            return self._upstream_size()
        return len(apply_filters(self._records, self.filters.search_term, self.filters.as_selections(), self.columns))

    # ── Clear / dropdowns ───────────────────────────────

    def clear_all(self) -> TableView:
        """Reset search, selections, sort and page; the facet registry is kept."""
        self.filters = FilterState()
        self.sort = SortState()
        self.page = 1
        return self._recompute()

    def toggle_facet(self, key: str) -> TableView:
        """Open the dropdown for *key* (closing any other), or close it if open."""
        return self.close_facet() if self.open_facet_key == key else self.open_facet(key)

    def open_facet(self, key: str) -> TableView:
        col = self._column(key)
        if col is None or not col.is_filterable:
            logger.warning("Column %r has no filter dropdown", key)
            return self._recompute()
        self.open_facet_key = key
        return self._recompute()

    def close_facet(self) -> TableView:
        self.open_facet_key = None
        return self._recompute()

    # ── Recompute ───────────────────────────────────────

    def _recompute(self) -> TableView:
        with timer() as t:
            filtered = apply_filters(
                self._records, self.filters.search_term, self.filters.as_selections(), self.columns,
            )
            ordered = sort_records(filtered, self.sort.key, self.sort.direction)
            total = self._total_records if self.server_side else None
            page_rows, info = self.paginator.paginate(ordered, self.page, self.page_size, total_records=total)
            self.page = info.page
            offset = 0 if self.server_side else (info.page - 1) * info.page_size
            rows = [render_row(r, self.columns, offset + i) for i, r in enumerate(page_rows)]
            self._view = TableView(
                columns=self.columns,
                rows=rows,
                facets=self._build_facets(),
                pagination=info,
                sort=self.sort,
                search_term=self.filters.search_term,
                search_placeholder=self.config.search_placeholder,
                has_active_filters=self.has_active_filters,
                open_facet=self.open_facet_key,
                filtered_count=len(filtered),
                server_side=self.server_side,
            )
        logger.debug(
            "Recompute | records=%d filtered=%d page=%d/%d | %.3fms",
            len(self._records), len(filtered), info.page, info.total_pages, t["elapsed_ms"],
        )
        return self._view

    def _build_facets(self) -> list[Facet]:
        facets: list[Facet] = []
        for col in self.columns:
            if not col.is_filterable:
                continue
            selected = self.filters.selected_keys(col.key)
            facets.append(Facet(
                key=col.key,
                label=col.label,
                options=[
                    FacetOption(value=v, label=to_text(v), selected=value_key(v) in selected)
                    for v in self.facets.values_for(col.key)
                ],
                selected_count=len(selected),
                is_open=self.open_facet_key == col.key,
            ))
        return facets
