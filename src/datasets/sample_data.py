"""
Sample procurement data for the dashboard list views.

Generates deterministic (seeded) records shaped like the rows the reporting
backend returns after currency normalisation:
  - requisitions     (req_number, vessel, status, priority, item counts, dates)
  - rfqs             (rfq_number, title, vessel, status, priority, vendor counts)
  - purchase_orders  (po_code, title, vessel, status, amount_usd, created date)

A small share of optional fields is left null so the tables exercise their
null handling.  ``fetch_page`` acts as the external source for tables in
server-side mode.
"""
from __future__ import annotations

import random
from datetime import date, timedelta
from functools import lru_cache
from typing import Any, Callable

from faker import Faker

from src.core.config import get_settings
from src.core.logging import get_logger

logger = get_logger(__name__)

# ── Vocabulary ───────────────────────────────────────────
VESSELS = [
    "Atlantic Pioneer", "Baltic Star", "Cape Horizon", "Nordic Spirit",
    "Ocean Venture", "Pacific Dawn", "Coral Voyager", "Aegean Trader",
]
PRIORITIES = ["A", "B", "C", "D"]
PRIORITY_WEIGHTS = [0.10, 0.25, 0.40, 0.25]

REQUISITION_STATUSES = ["CREATED", "AUTHORIZED", "REVIEWED", "CANCELLED"]
REQUISITION_WEIGHTS = [0.30, 0.30, 0.30, 0.10]
RFQ_STATUSES = ["CREATED", "ISSUED", "EVALUATED", "CANCELLED"]
RFQ_WEIGHTS = [0.20, 0.40, 0.30, 0.10]
PO_STATUSES = ["APPROVED", "ISSUED", "DELIVERED", "COMPLETION RECORDED", "CLOSED", "CANCELLED"]
PO_WEIGHTS = [0.15, 0.25, 0.25, 0.10, 0.15, 0.10]

NULL_RATE = 0.08

DATE_START = date(2025, 1, 1)
DATE_RANGE_DAYS = 364


def _rand_date(rng: random.Random) -> date:
    return DATE_START + timedelta(days=rng.randint(0, DATE_RANGE_DAYS))


def _maybe(rng: random.Random, value: Any) -> Any:
    return None if rng.random() < NULL_RATE else value


# ── Per-view row builders ────────────────────────────────


def _requisition(i: int, rng: random.Random, fake: Faker) -> dict[str, Any]:
    created = _rand_date(rng)
    items = rng.randint(1, 40)
    return {
        "id": i,
        "req_number": f"REQ-{created.year}-{i:04d}",
        "title": fake.catch_phrase(),
        "ship_name": rng.choice(VESSELS),
        "status": rng.choices(REQUISITION_STATUSES, REQUISITION_WEIGHTS)[0],
        "priority": _maybe(rng, rng.choices(PRIORITIES, PRIORITY_WEIGHTS)[0]),
        "item_count": items,
        "critical_count": rng.randint(0, min(items, 5)),
        "date_created": created.isoformat(),
        "date_needed": _maybe(rng, (created + timedelta(days=rng.randint(7, 90))).isoformat()),
    }


def _rfq(i: int, rng: random.Random, fake: Faker) -> dict[str, Any]:
    created = _rand_date(rng)
    status = rng.choices(RFQ_STATUSES, RFQ_WEIGHTS)[0]
    return {
        "id": i,
        "rfq_number": f"RFQ-{created.year}-{i:04d}",
        "title": fake.bs().capitalize(),
        "ship_name": rng.choice(VESSELS),
        "status": status,
        "priority": _maybe(rng, rng.choices(PRIORITIES, PRIORITY_WEIGHTS)[0]),
        "vendor_count": rng.randint(1, 8),
        "days_to_evaluate": rng.randint(1, 45) if status == "EVALUATED" else None,
        "date_created": created.isoformat(),
    }


def _purchase_order(i: int, rng: random.Random, fake: Faker) -> dict[str, Any]:
    created = _rand_date(rng)
    return {
        "id": i,
        "po_code": f"PO-{created.year}-{i:05d}",
        "title": fake.catch_phrase(),
        "ship_name": rng.choice(VESSELS),
        "status": rng.choices(PO_STATUSES, PO_WEIGHTS)[0],
        "amount_usd": _maybe(rng, round(rng.uniform(150, 250_000), 2)),
        "date_created": created.isoformat(),
    }


_BUILDERS: dict[str, Callable[[int, random.Random, Faker], dict[str, Any]]] = {
    "requisitions": _requisition,
    "rfqs": _rfq,
    "purchase_orders": _purchase_order,
}


# ── Public API ───────────────────────────────────────────


def dataset_names() -> list[str]:
    return list(_BUILDERS)


def generate_records(view: str, count: int, seed: int = 42) -> list[dict[str, Any]]:
    """Generate *count* records for *view*; the same seed yields the same rows."""
    builder = _BUILDERS.get(view)
    if builder is None:
        raise KeyError(f"Unknown dataset '{view}'. Available: {', '.join(_BUILDERS)}")
    rng = random.Random(seed)
    fake = Faker()
    fake.seed_instance(seed)
    return [builder(i, rng, fake) for i in range(1, count + 1)]


@lru_cache
def get_dataset(view: str) -> tuple[dict[str, Any], ...]:
    """Cached sample rows for *view* (size and seed from settings)."""
    settings = get_settings()
    records = generate_records(view, settings.sample_dataset_size, seed=settings.sample_seed)
    logger.info("Generated sample dataset view=%s rows=%d", view, len(records))
    return tuple(records)


def fetch_page(view: str, page: int, page_size: int) -> tuple[list[dict[str, Any]], int]:
    """One page of *view* plus the total row count, like a paged list endpoint."""
    rows = get_dataset(view)
    page = max(page, 1)
    start = (page - 1) * page_size
    return [dict(r) for r in rows[start:start + page_size]], len(rows)
