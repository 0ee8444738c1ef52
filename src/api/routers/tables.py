"""Table session endpoints -- create a table, then search / filter / sort / page it."""
from __future__ import annotations

from functools import partial
from typing import Any, Callable, Literal

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from src.datasets.sample_data import fetch_page, get_dataset
from src.table.coordinator import TableConfig, TableCoordinator
from src.table.paginator import normalize_page_size
from src.table.sessions import TableSession, get_session_store
from src.table.view_loader import get_list_view
from src.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()



class ColumnModel(BaseModel):
    key: str = Field(..., min_length=1)
    label: str | None = None
    type: str = "text"
    filterable: bool = False


class CreateTableRequest(BaseModel):
    view: str | None = Field(None, description="List view preset (requisitions | rfqs | purchase_orders)")
    columns: list[ColumnModel] | None = Field(None, description="Explicit columns (override the preset)")
    records: list[dict] | None = Field(None, description="Explicit records (otherwise the sample dataset)")
    server_side: bool = False
    total_records: int | None = Field(None, ge=0)
    initial_page_size: int | None = None
    page_size_options: list[int] | None = None
    search_placeholder: str | None = None


class RecordsRequest(BaseModel):
    records: list[dict] = Field(default_factory=list)
    total_records: int | None = Field(None, ge=0)


class SearchRequest(BaseModel):
    term: str = ""


class FilterToggleRequest(BaseModel):
    value: Any


class FilterSetRequest(BaseModel):
    values: list[Any] = Field(default_factory=list)


class SortRequest(BaseModel):
    key: str | None = None
    direction: Literal["asc", "desc"] | None = Field(
        None, description="Omit to cycle like a header click",
    )


class PageRequest(BaseModel):
    page: int


class PageSizeRequest(BaseModel):
    page_size: int


class TableResponse(BaseModel):
    session_id: str
    view_name: str | None
    view: dict
    pending_page_request: list[int] | None = Field(
        None, description="(page, page_size) the caller must fetch and PUT back (server-side, no source)",
    )


class SessionStatsResponse(BaseModel):
    size: int
    max_size: int
    ttl_seconds: float
    hits: int
    misses: int
    hit_rate: float



def _respond(session: TableSession) -> TableResponse:
    pending = list(session.page_requests[-1]) if session.page_requests else None
    return TableResponse(
        session_id=session.session_id,
        view_name=session.view_name,
        view=session.coordinator.view.to_dict(),
        pending_page_request=pending,
    )


def _get_session(session_id: str) -> TableSession:
    session = get_session_store().get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Unknown table session '{session_id}'")
    return session


def _mutate(session_id: str, action: Callable[[TableCoordinator], Any]) -> TableResponse:
    """Apply *action* under the session lock, then load any page the table requested."""
    session = _get_session(session_id)
    with session.lock:
        try:
            action(session.coordinator)
            session.fetch_pending()
        except Exception as exc:
            logger.exception("Table update failed session=%s", session_id[:8])
            raise HTTPException(status_code=500, detail=str(exc))
        return _respond(session)



@router.post("", response_model=TableResponse)
def create_table(req: CreateTableRequest):
    """Mount a table from a preset view and/or explicit columns and records."""
    preset = None
    if req.view is not None:
        preset = get_list_view(req.view)
        if preset is None:
            raise HTTPException(status_code=404, detail=f"Unknown view '{req.view}'")

    if req.columns is not None:
        columns: list[Any] = [c.model_dump() for c in req.columns]
    elif preset is not None:
        columns = list(preset.columns)
    else:
        raise HTTPException(status_code=422, detail="Either 'view' or 'columns' is required")

    overrides = {
        "search_placeholder": req.search_placeholder,
        "initial_page_size": req.initial_page_size,
        "page_size_options": req.page_size_options,
        "server_side": req.server_side,
        "total_records": req.total_records,
    }
    if preset is not None:
        config = preset.table_config(**overrides)
    else:
        config = TableConfig(**{k: v for k, v in overrides.items() if v is not None})

    source = None
    records: list[dict] | None = req.records
    if records is None and preset is not None:
        if config.server_side:
            source = partial(fetch_page, preset.name)
            records, total = source(1, normalize_page_size(config.initial_page_size, config.page_size_options))
            config.total_records = total
        else:
            records = [dict(r) for r in get_dataset(preset.name)]

    def build(sink):
        return TableCoordinator(
            columns, records, config=config, on_page_change=sink, on_page_size_change=sink,
        )

    session = get_session_store().create(build, view_name=req.view, source=source)
    return _respond(session)


@router.get("/stats", response_model=SessionStatsResponse)
def session_stats():
    """Return table session store statistics."""
    return SessionStatsResponse(**get_session_store().stats())


@router.get("/{session_id}", response_model=TableResponse)
def get_table(session_id: str):
    session = _get_session(session_id)
    with session.lock:
        return _respond(session)


@router.delete("/{session_id}")
def drop_table(session_id: str):
    """Unmount a table; its facet registry goes with it."""
    removed = get_session_store().drop(session_id)
    if not removed:
        raise HTTPException(status_code=404, detail=f"Unknown table session '{session_id}'")
    return {"dropped": removed}


@router.put("/{session_id}/records", response_model=TableResponse)
def replace_records(session_id: str, req: RecordsRequest):
    """New data from the upstream fetch (e.g. another reporting year, or a requested page)."""
    session = _get_session(session_id)
    with session.lock:
        session.page_requests.clear()
        session.coordinator.set_records(req.records, total_records=req.total_records)
        return _respond(session)


@router.post("/{session_id}/search", response_model=TableResponse)
def search(session_id: str, req: SearchRequest):
    return _mutate(session_id, lambda t: t.set_search(req.term))


@router.post("/{session_id}/filters/{column}/toggle", response_model=TableResponse)
def toggle_filter(session_id: str, column: str, req: FilterToggleRequest):
    return _mutate(session_id, lambda t: t.toggle_filter(column, req.value))


@router.put("/{session_id}/filters/{column}", response_model=TableResponse)
def set_filter(session_id: str, column: str, req: FilterSetRequest):
    return _mutate(session_id, lambda t: t.set_filter(column, req.values))


@router.post("/{session_id}/filters/{column}/select-all", response_model=TableResponse)
def select_all(session_id: str, column: str):
    return _mutate(session_id, lambda t: t.select_all(column))


@router.post("/{session_id}/filters/{column}/clear", response_model=TableResponse)
def clear_filter(session_id: str, column: str):
    return _mutate(session_id, lambda t: t.clear_filter(column))


@router.post("/{session_id}/sort", response_model=TableResponse)
def sort(session_id: str, req: SortRequest):
    """With a direction, set the sort outright; without one, behave like a header click."""
    if req.direction is None and req.key is not None:
        return _mutate(session_id, lambda t: t.sort_by(req.key))
    return _mutate(session_id, lambda t: t.set_sort(req.key, req.direction or "asc"))


@router.post("/{session_id}/page", response_model=TableResponse)
def go_to_page(session_id: str, req: PageRequest):
    return _mutate(session_id, lambda t: t.go_to_page(req.page))


@router.post("/{session_id}/page-size", response_model=TableResponse)
def set_page_size(session_id: str, req: PageSizeRequest):
    return _mutate(session_id, lambda t: t.set_page_size(req.page_size))


@router.post("/{session_id}/clear", response_model=TableResponse)
def clear_all(session_id: str):
    """Clear search, filters and sort; facet options are kept."""
    return _mutate(session_id, lambda t: t.clear_all())


@router.post("/{session_id}/facets/{column}/toggle", response_model=TableResponse)
def toggle_facet(session_id: str, column: str):
    return _mutate(session_id, lambda t: t.toggle_facet(column))


@router.post("/{session_id}/facets/close", response_model=TableResponse)
def close_facet(session_id: str):
    return _mutate(session_id, lambda t: t.close_facet())
