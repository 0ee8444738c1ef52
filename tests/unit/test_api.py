"""
API tests -- FastAPI endpoints via TestClient (no live server needed).
"""
import pytest
from fastapi.testclient import TestClient

from src.api.main import app

client = TestClient(app)

COLUMNS = [
    {"key": "id", "label": "ID", "type": "number"},
    {"key": "status", "label": "Status", "type": "status"},
    {"key": "amt", "label": "Amount", "type": "currency"},
]
RECORDS = [
    {"id": 1, "status": "CREATED", "amt": 10},
    {"id": 2, "status": "ISSUED", "amt": 5},
    {"id": 3, "status": "CREATED", "amt": None},
    {"id": 4, "status": "CANCELLED", "amt": 7},
]


def _create(**body):
    resp = client.post("/tables", json=body)
    assert resp.status_code == 200, resp.text
    return resp.json()


def _ids(data):
    return [row["id"] for row in data["view"]["rows"]]


@pytest.fixture
def table():
    return _create(columns=COLUMNS, records=RECORDS, initial_page_size=2)



def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


# ── Datasets ────────────────────────────────────────────

def test_datasets_list():
    resp = client.get("/datasets")
    assert resp.status_code == 200
    names = [d["name"] for d in resp.json()]
    assert names == ["requisitions", "rfqs", "purchase_orders"]


def test_dataset_rows():
    resp = client.get("/datasets/rfqs")
    assert resp.status_code == 200
    data = resp.json()
    assert data["total_count"] == 240
    assert len(data["records"]) == 240
    assert data["columns"][0]["key"] == "rfq_number"


def test_dataset_page():
    resp = client.get("/datasets/rfqs", params={"page": 2, "page_size": 100})
    data = resp.json()
    assert data["total_count"] == 240
    assert [r["id"] for r in data["records"]] == list(range(101, 201))


def test_dataset_unknown_view():
    assert client.get("/datasets/invoices").status_code == 404


def test_dataset_invalid_page():
    assert client.get("/datasets/rfqs", params={"page": 0}).status_code == 422


# ── Table lifecycle ─────────────────────────────────────

def test_create_from_columns(table):
    view = table["view"]
    assert table["view_name"] is None
    assert view["pagination"]["total_pages"] == 2
    assert view["pagination"]["total_records"] == 4
    assert _ids(table) == [1, 2]
    assert view["rows"][0]["cells"]["amt"]["display"] == "$10.00"
    assert table["pending_page_request"] is None


def test_create_from_preset():
    data = _create(view="purchase_orders")
    view = data["view"]
    assert data["view_name"] == "purchase_orders"
    assert view["pagination"]["page_size"] == 25
    assert view["pagination"]["total_records"] == 240
    assert view["search_placeholder"].startswith("Search by PO number")
    facet_keys = [f["key"] for f in view["facets"]]
    assert facet_keys == ["ship_name", "status"]


def test_create_unknown_preset():
    assert client.post("/tables", json={"view": "invoices"}).status_code == 404


def test_create_without_columns():
    assert client.post("/tables", json={"records": RECORDS}).status_code == 422


def test_get_and_drop(table):
    sid = table["session_id"]
    assert client.get(f"/tables/{sid}").json()["session_id"] == sid
    assert client.delete(f"/tables/{sid}").json() == {"dropped": 1}
    assert client.get(f"/tables/{sid}").status_code == 404
    assert client.delete(f"/tables/{sid}").status_code == 404


def test_unknown_session():
    assert client.post("/tables/nope/search", json={"term": "x"}).status_code == 404


# ── Search / filter / sort ──────────────────────────────

def test_filter_then_sort_scenario(table):
    sid = table["session_id"]
    client.post(f"/tables/{sid}/filters/status/toggle", json={"value": "CREATED"})
    data = client.post(f"/tables/{sid}/sort", json={"key": "amt", "direction": "desc"}).json()
    assert _ids(data) == [1, 3]
    assert data["view"]["filtered_count"] == 2
    assert data["view"]["pagination"]["total_pages"] == 1
    assert data["view"]["has_active_filters"] is True


def test_search(table):
    sid = table["session_id"]
    data = client.post(f"/tables/{sid}/search", json={"term": "issued"}).json()
    assert _ids(data) == [2]
    assert data["view"]["search_term"] == "issued"


def test_set_select_all_and_clear_filter(table):
    sid = table["session_id"]
    data = client.put(f"/tables/{sid}/filters/status", json={"values": ["ISSUED", "CANCELLED"]}).json()
    assert data["view"]["filtered_count"] == 2
    data = client.post(f"/tables/{sid}/filters/status/select-all").json()
    status = next(f for f in data["view"]["facets"] if f["key"] == "status")
    assert status["selected_count"] == 3
    data = client.post(f"/tables/{sid}/filters/status/clear").json()
    assert data["view"]["has_active_filters"] is False


def test_set_filter_counts_unseen_values(table):
    sid = table["session_id"]
    data = client.put(f"/tables/{sid}/filters/status", json={"values": ["CLOSED"]}).json()
    status = next(f for f in data["view"]["facets"] if f["key"] == "status")
    assert data["view"]["rows"] == []
    assert status["selected_count"] == 1


def test_page_size_outside_options_is_offered(table):
    sid = table["session_id"]
    data = client.post(f"/tables/{sid}/page-size", json={"page_size": 3}).json()
    pagination = data["view"]["pagination"]
    assert pagination["page_size"] == 3
    assert 3 in pagination["page_size_options"]


def test_sort_without_direction_cycles(table):
    sid = table["session_id"]
    data = client.post(f"/tables/{sid}/sort", json={"key": "amt"}).json()
    assert data["view"]["sort"] == {"key": "amt", "direction": "asc"}
    data = client.post(f"/tables/{sid}/sort", json={"key": "amt"}).json()
    assert data["view"]["sort"] == {"key": "amt", "direction": "desc"}


def test_sort_invalid_direction(table):
    sid = table["session_id"]
    resp = client.post(f"/tables/{sid}/sort", json={"key": "amt", "direction": "up"})
    assert resp.status_code == 422


# ── Paging ──────────────────────────────────────────────

def test_page_navigation(table):
    sid = table["session_id"]
    data = client.post(f"/tables/{sid}/page", json={"page": 2}).json()
    assert _ids(data) == [3, 4]
    data = client.post(f"/tables/{sid}/page", json={"page": 9}).json()
    assert data["view"]["pagination"]["page"] == 2


def test_page_size_change_resets_page(table):
    sid = table["session_id"]
    client.post(f"/tables/{sid}/page", json={"page": 2})
    data = client.post(f"/tables/{sid}/page-size", json={"page_size": 25}).json()
    assert data["view"]["pagination"]["page"] == 1
    assert len(data["view"]["rows"]) == 4


def test_clear_all(table):
    sid = table["session_id"]
    client.post(f"/tables/{sid}/search", json={"term": "created"})
    client.post(f"/tables/{sid}/sort", json={"key": "amt", "direction": "desc"})
    data = client.post(f"/tables/{sid}/clear").json()
    assert data["view"]["search_term"] == ""
    assert data["view"]["sort"]["key"] is None
    status = next(f for f in data["view"]["facets"] if f["key"] == "status")
    assert len(status["options"]) == 3


def test_replace_records_grows_facets(table):
    sid = table["session_id"]
    data = client.put(
        f"/tables/{sid}/records",
        json={"records": [{"id": 9, "status": "CLOSED", "amt": 1}]},
    ).json()
    status = next(f for f in data["view"]["facets"] if f["key"] == "status")
    assert [o["value"] for o in status["options"]] == ["CANCELLED", "CLOSED", "CREATED", "ISSUED"]
    assert data["view"]["pagination"]["total_records"] == 1


# ── Dropdowns ───────────────────────────────────────────

def test_facet_dropdown(table):
    sid = table["session_id"]
    data = client.post(f"/tables/{sid}/facets/status/toggle").json()
    assert data["view"]["open_facet"] == "status"
    data = client.post(f"/tables/{sid}/facets/close").json()
    assert data["view"]["open_facet"] is None


# ── Server-side tables ──────────────────────────────────

def test_server_side_preset_fetches_pages():
    data = _create(view="rfqs", server_side=True, initial_page_size=50)
    sid = data["session_id"]
    assert data["view"]["server_side"] is True
    assert data["view"]["pagination"]["total_pages"] == 5
    data = client.post(f"/tables/{sid}/page", json={"page": 3}).json()
    assert _ids(data) == list(range(101, 151))
    assert data["pending_page_request"] is None


def test_server_side_without_source_reports_pending_request():
    data = _create(columns=COLUMNS, records=RECORDS[:2], server_side=True, total_records=4, initial_page_size=2)
    sid = data["session_id"]
    data = client.post(f"/tables/{sid}/page", json={"page": 2}).json()
    assert data["pending_page_request"] == [2, 2]
    data = client.put(f"/tables/{sid}/records", json={"records": RECORDS[2:], "total_records": 4}).json()
    assert data["pending_page_request"] is None
    assert _ids(data) == [3, 4]
    assert data["view"]["pagination"]["page"] == 2


# ── Stats ───────────────────────────────────────────────

def test_session_stats(table):
    client.get(f"/tables/{table['session_id']}")
    resp = client.get("/tables/stats")
    assert resp.status_code == 200
    data = resp.json()
    assert data["size"] >= 1
    assert data["hits"] >= 1
