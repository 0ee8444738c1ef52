"""
GET /datasets, GET /datasets/{view} -- sample list data for the dashboard.

With ``page`` / ``page_size`` the endpoint behaves like a paged list route
(one page plus ``total_count``), which is what a server-side table expects.
"""
from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from src.datasets.sample_data import fetch_page, get_dataset
from src.table.view_loader import get_list_view, load_list_views

router = APIRouter()


class DatasetItem(BaseModel):
    name: str
    title: str
    search_placeholder: str
    columns: list[dict]


class DatasetResponse(BaseModel):
    columns: list[dict]
    records: list[dict]
    total_count: int


@router.get("", response_model=list[DatasetItem])
def list_datasets() -> list[DatasetItem]:
    """Every list view preset with its column descriptors."""
    return [
        DatasetItem(
            name=v.name,
            title=v.title,
            search_placeholder=v.search_placeholder,
            columns=[c.to_dict() for c in v.columns],
        )
        for v in load_list_views().values()
    ]


@router.get("/{view}", response_model=DatasetResponse)
def get_dataset_rows(
    view: str,
    page: int | None = Query(None, ge=1),
    page_size: int | None = Query(None, ge=1, le=1000),
) -> DatasetResponse:
    """All rows of *view*, or one page of them when *page* is given."""
    preset = get_list_view(view)
    if preset is None:
        raise HTTPException(status_code=404, detail=f"Unknown view '{view}'")

    columns = [c.to_dict() for c in preset.columns]
    if page is None:
        rows = [dict(r) for r in get_dataset(view)]
        return DatasetResponse(columns=columns, records=rows, total_count=len(rows))

    rows, total = fetch_page(view, page, page_size or preset.page_size or 50)
    return DatasetResponse(columns=columns, records=rows, total_count=total)
