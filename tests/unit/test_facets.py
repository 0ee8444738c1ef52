"""
Unit tests -- facet registry (sticky filter options).
"""
from decimal import Decimal

import pytest
from src.table.columns import Column, ColumnType
from src.table.facets import FacetRegistry


COLUMNS = [
    Column("req_number", "Req #"),
    Column("ship_name", "Vessel", filterable=True),
    Column("status", "Status", ColumnType.STATUS),
    Column("priority", "Priority", ColumnType.PRIORITY),
]


@pytest.fixture
def registry():
    return FacetRegistry()


def test_only_filterable_columns_are_registered(registry):
    registry.observe([{"req_number": "R1", "status": "CREATED", "ship_name": "A", "priority": "B"}], COLUMNS)
    assert sorted(registry.keys()) == ["priority", "ship_name", "status"]
    assert registry.values_for("req_number") == ()


def test_values_are_distinct_and_sorted(registry):
    registry.observe([
        {"status": "ISSUED"}, {"status": "CREATED"}, {"status": "ISSUED"}, {"status": "APPROVED"},
    ], COLUMNS)
    assert registry.values_for("status") == ("APPROVED", "CREATED", "ISSUED")


def test_ordering_is_case_sensitive(registry):
    registry.observe([{"ship_name": "baltic"}, {"ship_name": "Coral"}, {"ship_name": "Atlantic"}], COLUMNS)
    # uppercase sorts before lowercase
    assert registry.values_for("ship_name") == ("Atlantic", "Coral", "baltic")


def test_nulls_and_blanks_are_skipped(registry):
    registry.observe([{"status": None}, {"status": ""}, {}, {"status": "CLOSED"}], COLUMNS)
    assert registry.values_for("status") == ("CLOSED",)


def test_values_never_shrink(registry):
    registry.observe([{"status": "CREATED"}, {"status": "ISSUED"}], COLUMNS)
    registry.observe([{"status": "CANCELLED"}], COLUMNS)
    registry.observe([], COLUMNS)
    assert registry.values_for("status") == ("CANCELLED", "CREATED", "ISSUED")


def test_retained_set_is_union_of_all_observations(registry):
    datasets = [
        [{"priority": "A"}, {"priority": "C"}],
        [{"priority": "B"}],
        [{"priority": "C"}, {"priority": "D"}],
    ]
    previous: set = set()
    seen: set = set()
    for data in datasets:
        registry.observe(data, COLUMNS)
        seen |= {r["priority"] for r in data}
        current = set(registry.values_for("priority"))
        assert current == seen
        assert previous <= current
        previous = current


def test_raw_values_keep_their_type(registry):
    cols = [Column("count", "Count", ColumnType.NUMBER, filterable=True)]
    registry.observe([{"count": 5}, {"count": "5"}, {"count": 10}], cols)
    values = registry.values_for("count")
    assert len(values) == 3
    assert 5 in values and "5" in values


def test_equal_numbers_are_one_option(registry):
    cols = [Column("amt", "Amount", ColumnType.CURRENCY, filterable=True)]
    registry.observe([{"amt": 10}, {"amt": 10.0}, {"amt": Decimal("10.00")}, {"amt": "10"}], cols)
    values = registry.values_for("amt")
    assert len(values) == 2
    # the first numeric value seen stands for the others
    assert values[0] == 10 and type(values[0]) is int
    assert "10" in values


def test_bool_and_int_stay_separate(registry):
    cols = [Column("flag", "Flag", filterable=True)]
    registry.observe([{"flag": 1}, {"flag": True}], cols)
    assert len(registry.values_for("flag")) == 2


def test_unhashable_values_are_skipped(registry):
    registry.observe([{"status": ["A", "B"]}, {"status": "OK"}], COLUMNS)
    assert registry.values_for("status") == ("OK",)


def test_reset(registry):
    registry.observe([{"status": "CREATED"}], COLUMNS)
    registry.reset()
    assert registry.values_for("status") == ()
    assert "status" not in registry


def test_registries_are_independent():
    a, b = FacetRegistry(), FacetRegistry()
    a.observe([{"status": "CREATED"}], COLUMNS)
    assert b.values_for("status") == ()
