"""
Streamlit UI -- procurement list views.

Features:
  - List view picker (requisitions, RFQs, purchase orders)
  - Client-side or server-side paging toggle
  - Search box and per-column facet filters (options never shrink)
  - Column sort with direction
  - Page navigation, page size selector, "Showing x - y of z records"
  - Clear All Filters

All table state lives in an API table session; this page only renders it.
"""
import os

import streamlit as st
import httpx
import pandas as pd


API_BASE = os.getenv("API_BASE_URL", "http://localhost:8000")
_TIMEOUT = 10

st.set_page_config(
    page_title="Procurement Lists",
    page_icon="clipboard",
    layout="wide",
)


if "session_id" not in st.session_state:
    st.session_state.session_id = None

if "table" not in st.session_state:
    st.session_state.table = None

if "mounted" not in st.session_state:
    st.session_state.mounted = None



def _api(method: str, path: str, body: dict | None = None) -> dict | None:
    """Call the API and keep the returned table view in session_state."""
    try:
        resp = httpx.request(method, f"{API_BASE}{path}", json=body, timeout=_TIMEOUT)
        resp.raise_for_status()
    except httpx.HTTPError as exc:
        st.error(f"API error: {exc}")
        return None
    data = resp.json()
    if "view" in data:
        st.session_state.session_id = data["session_id"]
        st.session_state.table = data["view"]
    return data


def _table_call(method: str, suffix: str, body: dict | None = None) -> None:
    _api(method, f"/tables/{st.session_state.session_id}{suffix}", body)


def _mount(view: str, server_side: bool) -> None:
    if st.session_state.session_id:
        try:
            httpx.delete(f"{API_BASE}/tables/{st.session_state.session_id}", timeout=_TIMEOUT)
        except httpx.HTTPError as exc:
            st.caption(f"Previous table was not released: {exc}")
    _api("POST", "/tables", {"view": view, "server_side": server_side})
    st.session_state.mounted = (view, server_side)


@st.cache_data(ttl=300)
def _list_views() -> list[dict]:
    try:
        return httpx.get(f"{API_BASE}/datasets", timeout=_TIMEOUT).json()
    except httpx.HTTPError:
        return []


with st.sidebar:
    st.title("List views")
    views = _list_views()
    if not views:
        st.info("API not reachable -- start the FastAPI server first.\n\n```\nuvicorn src.api.main:app --reload\n```")
        st.stop()

    titles = {v["name"]: v["title"] for v in views}
    view_name = st.radio("View", list(titles), format_func=lambda n: titles[n])
    server_side = st.toggle("Server-side paging", value=False)

    if st.session_state.mounted != (view_name, server_side):
        _mount(view_name, server_side)

    if st.button("Reload", use_container_width=True):
        _mount(view_name, server_side)


table = st.session_state.table
if table is None:
    st.stop()

st.header(titles[view_name])


col_search, col_clear = st.columns([4, 1])
with col_search:
    term = st.text_input("Search", value=table["search_term"], placeholder=table["search_placeholder"],
                         label_visibility="collapsed")
    if term != table["search_term"]:
        _table_call("POST", "/search", {"term": term})
        st.rerun()
with col_clear:
    if table["has_active_filters"] and st.button("Clear All Filters", use_container_width=True):
        _table_call("POST", "/clear")
        st.rerun()


facets = table["facets"]
if facets:
    cols = st.columns(len(facets))
    for col, facet in zip(cols, facets):
        with col:
            labels = {o["label"]: o["value"] for o in facet["options"]}
            chosen = [o["label"] for o in facet["options"] if o["selected"]]
            title = facet["label"] + (f" ({facet['selected_count']})" if facet["selected_count"] else "")
            picked = st.multiselect(title, list(labels), default=chosen, key=f"facet-{view_name}-{facet['key']}")
            if sorted(picked) != sorted(chosen):
                _table_call("PUT", f"/filters/{facet['key']}", {"values": [labels[p] for p in picked]})
                st.rerun()


columns = table["columns"]
sort_cols = st.columns([3, 1])
with sort_cols[0]:
    keys = [None] + [c["key"] for c in columns]
    names = {c["key"]: c["label"] for c in columns}
    current = table["sort"]["key"]
    sort_key = st.selectbox("Sort by", keys, index=keys.index(current) if current in keys else 0,
                            format_func=lambda k: "(original order)" if k is None else names[k])
with sort_cols[1]:
    direction = st.radio("Direction", ["asc", "desc"], horizontal=True,
                         index=0 if table["sort"]["direction"] == "asc" else 1)
if sort_key != current or direction != table["sort"]["direction"]:
    _table_call("POST", "/sort", {"key": sort_key, "direction": direction})
    st.rerun()


rows = table["rows"]
if rows:
    frame = pd.DataFrame(
        [{c["label"]: r["cells"][c["key"]]["display"] for c in columns} for r in rows],
        index=[r["id"] for r in rows],
    )
    st.dataframe(frame, use_container_width=True)
else:
    st.info("No records found")


pg = table["pagination"]
info_col, size_col, nav_col = st.columns([2, 1, 3])
with info_col:
    st.caption(f"Showing {pg['start']:,} - {pg['end']:,} of {pg['total_records']:,} records")
with size_col:
    options = sorted(set(pg["page_size_options"]) | {pg["page_size"]})
    size = st.selectbox("Per page", options, index=options.index(pg["page_size"]))
    if size != pg["page_size"]:
        _table_call("POST", "/page-size", {"page_size": size})
        st.rerun()
with nav_col:
    buttons = st.columns(len(pg["window"]) + 4)
    targets = [("«", 1, pg["has_previous"]), ("‹", pg["page"] - 1, pg["has_previous"])]
    targets += [(str(p), p, p != "..." and p != pg["page"]) for p in pg["window"]]
    targets += [("›", pg["page"] + 1, pg["has_next"]), ("»", pg["total_pages"], pg["has_next"])]
    for i, (button, (label, target, enabled)) in enumerate(zip(buttons, targets)):
        with button:
            if st.button(label, key=f"page-{i}", disabled=not enabled):
                _table_call("POST", "/page", {"page": target})
                st.rerun()
