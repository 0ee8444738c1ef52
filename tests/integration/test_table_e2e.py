"""
Integration tests -- list-view presets mounted over the sample datasets.

Runs the full pipeline (facets → filter → sort → paginate → render) on every
preset, in client mode and in server-side mode backed by ``fetch_page``.
"""
from __future__ import annotations

import pytest

from src.datasets.sample_data import fetch_page, get_dataset
from src.table.coordinator import TableCoordinator
from src.table.sessions import TableSessionStore
from src.table.view_loader import get_list_view, get_view_names


def _client_table(view_name: str) -> TableCoordinator:
    preset = get_list_view(view_name)
    return TableCoordinator(preset.columns, list(get_dataset(view_name)), config=preset.table_config())


# ── Client mode ──────────────────────────────────────────

@pytest.mark.parametrize("view_name", get_view_names())
def test_every_preset_renders_first_page(view_name):
    table = _client_table(view_name)
    view = table.view
    assert view.pagination.total_records == 240
    assert len(view.rows) == view.pagination.page_size
    for row in view.rows:
        assert set(row.cells) == {c.key for c in view.columns}


@pytest.mark.parametrize("view_name", get_view_names())
def test_status_facet_partitions_the_dataset(view_name):
    table = _client_table(view_name)
    status = next(f for f in table.view.facets if f.key == "status")
    total = 0
    for option in status.options:
        total += table.set_filter("status", [option.value]).filtered_count
    assert total == 240


def test_filter_sort_walk_all_pages():
    table = _client_table("purchase_orders")
    table.set_filter("status", ["ISSUED", "DELIVERED"])
    table.set_sort("amount_usd", "desc")
    expected = table.view.filtered_count

    seen = []
    for page in range(1, table.view.pagination.total_pages + 1):
        seen.extend(table.go_to_page(page).records)

    assert len(seen) == expected
    assert all(r["status"] in {"ISSUED", "DELIVERED"} for r in seen)
    amounts = [r["amount_usd"] for r in seen]
    present = [a for a in amounts if a is not None]
    assert present == sorted(present, reverse=True)
    # nulls trail the sorted values
    assert amounts == present + [None] * (len(amounts) - len(present))


def test_search_by_vessel_is_case_insensitive():
    table = _client_table("requisitions")
    upper = table.set_search("BALTIC STAR").filtered_count
    lower = table.set_search("baltic star").filtered_count
    assert upper == lower > 0
    assert all(r["ship_name"] == "Baltic Star" for r in table.view.records)


def test_clear_all_restores_unfiltered_view():
    table = _client_table("rfqs")
    baseline = [r["id"] for r in table.view.records]
    table.set_search("pacific")
    table.toggle_filter("status", "ISSUED")
    table.sort_by("vendor_count")
    view = table.clear_all()
    assert [r["id"] for r in view.records] == baseline
    assert view.has_active_filters is False


# ── Server-side mode ─────────────────────────────────────

def _server_session(store: TableSessionStore, view_name: str, page_size: int):
    preset = get_list_view(view_name)

    def source(page, size):
        return fetch_page(view_name, page, size)

    def build(sink):
        records, total = source(1, page_size)
        config = preset.table_config(server_side=True, total_records=total, initial_page_size=page_size)
        return TableCoordinator(preset.columns, records, config=config,
                                on_page_change=sink, on_page_size_change=sink)

    return store.create(build, view_name=view_name, source=source)


def test_server_side_pages_match_client_slices():
    store = TableSessionStore(ttl=60)
    session = _server_session(store, "rfqs", 50)
    client = _client_table("rfqs")
    client.set_page_size(50)

    for page in (2, 5, 1):
        session.coordinator.go_to_page(page)
        session.fetch_pending()
        server_ids = [r["id"] for r in session.coordinator.view.records]
        client_ids = [r["id"] for r in client.go_to_page(page).records]
        assert server_ids == client_ids
        assert session.coordinator.view.pagination.page == page


def test_server_side_last_page_range():
    store = TableSessionStore(ttl=60)
    session = _server_session(store, "requisitions", 75)
    session.coordinator.go_to_page(4)
    session.fetch_pending()
    info = session.coordinator.view.pagination
    assert info.total_pages == 4
    assert (info.start, info.end) == (226, 240)
    assert len(session.coordinator.view.rows) == 15


def test_server_side_page_size_change_refetches_page_one():
    store = TableSessionStore(ttl=60)
    session = _server_session(store, "purchase_orders", 25)
    session.coordinator.go_to_page(3)
    session.fetch_pending()
    session.coordinator.set_page_size(100)
    session.fetch_pending()
    view = session.coordinator.view
    assert view.pagination.page == 1
    assert view.pagination.total_pages == 3
    assert [r["id"] for r in view.records] == list(range(1, 101))
