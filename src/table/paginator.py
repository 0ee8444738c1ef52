"""
Pagination math and the client / server-side paginator.

Client mode slices the (filtered, sorted) record set locally.  Server mode
never slices: the caller already holds exactly one page plus an external
total count, and page / page-size changes are forwarded to notification
sinks so the external source can fetch the requested page.  The mode is
fixed when the ``Paginator`` is built.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence, TypeVar

from src.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
PageSink = Callable[[int, int], None]

DEFAULT_PAGE_SIZE_OPTIONS: tuple[int, ...] = (25, 50, 75, 100)
ELLIPSIS = "..."
MAX_VISIBLE_PAGES = 5


# ── Page math ───────────────────────────────────────────


def total_pages(total_records: int, page_size: int) -> int:
    if page_size <= 0:
        return 0
    return max(math.ceil(total_records / page_size), 0)


def record_range(total_records: int, page: int, page_size: int) -> tuple[int, int]:
    """1-based inclusive ``(start, end)`` shown as "start - end of total"."""
    start = 0 if total_records == 0 else (page - 1) * page_size + 1
    end = min(page * page_size, total_records)
    return start, end


def clamp_page(page: Any, pages: int) -> int:
    """Clamp *page* into ``[1, pages]`` (or 1 when there are no pages)."""
    try:
        page = int(page)
    except (TypeError, ValueError):
        return 1
    if pages <= 0:
        return 1
    return min(max(page, 1), pages)


def normalize_page_size(size: Any, options: Sequence[int] = DEFAULT_PAGE_SIZE_OPTIONS) -> int:
    """Reject non-positive sizes by falling back to the nearest configured option."""
    options = sorted(o for o in options if o > 0) or list(DEFAULT_PAGE_SIZE_OPTIONS)
    try:
        size = int(size)
    except (TypeError, ValueError):
        logger.warning("Invalid page size %r -- using %d", size, options[0])
        return options[0]
    if size > 0:
        return size
    nearest = min(options, key=lambda o: abs(o - size))
    logger.warning("Page size %d rejected -- using %d", size, nearest)
    return nearest


def slice_page(records: Sequence[T], page: int, page_size: int) -> list[T]:
    start = (page - 1) * page_size
    return list(records[start:start + page_size])


def page_window(current: int, pages: int) -> list[int | str]:
    """Numbered buttons between prev/next, with ``"..."`` marking gaps.

    Up to 5 pages are listed as-is.  Beyond that the first and last page are
    always present: near the start ``1 2 3 4 ... N``, near the end
    ``1 ... N-3 N-2 N-1 N``, otherwise ``1 ... p-1 p p+1 ... N``.
    """
    if pages <= MAX_VISIBLE_PAGES:
        return list(range(1, pages + 1))
    if current <= 3:
        return [1, 2, 3, 4, ELLIPSIS, pages]
    if current >= pages - 2:
        return [1, ELLIPSIS] + list(range(pages - 3, pages + 1))
    return [1, ELLIPSIS, current - 1, current, current + 1, ELLIPSIS, pages]


# ── Page metadata ───────────────────────────────────────


@dataclass
class PageInfo:
    """Pagination metadata for the rendering layer."""
    page: int
    page_size: int
    total_pages: int
    total_records: int
    start: int
    end: int
    page_size_options: list[int] = field(default_factory=list)
    window: list[int | str] = field(default_factory=list)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.total_pages > 0 and self.page < self.total_pages

    def to_dict(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "page_size": self.page_size,
            "total_pages": self.total_pages,
            "total_records": self.total_records,
            "start": self.start,
            "end": self.end,
            "page_size_options": self.page_size_options,
            "window": self.window,
            "has_previous": self.has_previous,
            "has_next": self.has_next,
        }


def build_page_info(
    total_records: int,
    page: int,
    page_size: int,
    options: Sequence[int] = DEFAULT_PAGE_SIZE_OPTIONS,
) -> PageInfo:
    pages = total_pages(total_records, page_size)
    start, end = record_range(total_records, page, page_size)
    offered = list(options)
    if page_size not in offered:
        # an accepted size outside the configured list is still offered
        offered = sorted(offered + [page_size])
    return PageInfo(
        page=page,
        page_size=page_size,
        total_pages=pages,
        total_records=total_records,
        start=start,
        end=end,
        page_size_options=offered,
        window=page_window(page, pages),
    )


# ── Paginator ───────────────────────────────────────────


class Paginator:
    """Slices locally (client mode) or forwards page requests (server mode).

    Parameters
    ----------
    server_side : bool
        Fixed for the paginator's lifetime; never mixed per call.
    on_page_change, on_page_size_change : callable, optional
        ``(page, page_size)`` sinks, only called in server mode.
    page_size_options : sequence of int
        Page sizes offered to the user.
    """

    def __init__(
        self,
        server_side: bool = False,
        on_page_change: PageSink | None = None,
        on_page_size_change: PageSink | None = None,
        page_size_options: Sequence[int] = DEFAULT_PAGE_SIZE_OPTIONS,
    ):
        self._server_side = server_side
        self._on_page_change = on_page_change
        self._on_page_size_change = on_page_size_change
        self.page_size_options = [o for o in page_size_options if o > 0] or list(DEFAULT_PAGE_SIZE_OPTIONS)

    @property
    def server_side(self) -> bool:
        return self._server_side

    def paginate(
        self,
        records: Sequence[T],
        page: int,
        page_size: int,
        total_records: int | None = None,
    ) -> tuple[list[T], PageInfo]:
        """Return the rows to display and the metadata for *page*.

        In client mode *total_records* is ignored (the total is the length of
        *records*).  In server mode *records* is already the requested page
        and the external total is used, falling back to ``len(records)``.
        """
        if self._server_side:
            total = total_records if total_records is not None else len(records)
            page = clamp_page(page, total_pages(total, page_size))
            return list(records), build_page_info(total, page, page_size, self.page_size_options)

        total = len(records)
        page = clamp_page(page, total_pages(total, page_size))
        return slice_page(records, page, page_size), build_page_info(total, page, page_size, self.page_size_options)

    def notify_page_change(self, page: int, page_size: int) -> None:
        if self._server_side and self._on_page_change is not None:
            logger.debug("Forwarding page change page=%d size=%d", page, page_size)
            self._on_page_change(page, page_size)

    def notify_page_size_change(self, page: int, page_size: int) -> None:
        if self._server_side and self._on_page_size_change is not None:
            logger.debug("Forwarding page size change page=%d size=%d", page, page_size)
            self._on_page_size_change(page, page_size)
