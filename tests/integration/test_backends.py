"""
Integration tests for rowgate against live MySQL / PostgreSQL servers.

These tests verify that for each configured backend:
1. DSN parsing and the driver connect succeed
2. UUID and auto-increment tables round-trip through Table
3. Pagination, batch inserts and transactions behave as on sqlite

Run with:
    RUN_INTEGRATION_TESTS=1 \
    MYSQL_TEST_DSN="mysql:host=127.0.0.1;dbname=rowgate_test" MYSQL_TEST_USER=root MYSQL_TEST_PASSWORD=secret \
    PGSQL_TEST_DSN="pgsql:host=127.0.0.1;dbname=rowgate_test" PGSQL_TEST_USER=postgres PGSQL_TEST_PASSWORD=postgres \
    pytest tests/integration/
"""

from __future__ import annotations

import os
from typing import Dict, Generator

import pytest

from rowgate import Db, Field, Record, Table
from rowgate.errors import DatabaseConnectionError

TOTAL_ITEMS = 25
PER_PAGE = 10

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        os.getenv("RUN_INTEGRATION_TESTS", "0") != "1",
        reason="Integration tests require RUN_INTEGRATION_TESTS=1 and a reachable server",
    ),
]

DDL: Dict[str, Dict[str, str]] = {
    "mysql": {
        "rg_items": (
            "CREATE TABLE rg_items ("
            "id BINARY(16) PRIMARY KEY, owner_id BINARY(16) NULL, "
            "name VARCHAR(100) NOT NULL, qty INT NULL)"
        ),
        "rg_counters": (
            "CREATE TABLE rg_counters ("
            "id INT AUTO_INCREMENT PRIMARY KEY, label VARCHAR(100) NOT NULL, note VARCHAR(100) NULL)"
        ),
    },
    "pgsql": {
        "rg_items": (
            "CREATE TABLE rg_items ("
            "id BYTEA PRIMARY KEY, owner_id BYTEA NULL, "
            "name VARCHAR(100) NOT NULL, qty INT NULL)"
        ),
        "rg_counters": (
            "CREATE TABLE rg_counters ("
            "id SERIAL PRIMARY KEY, label VARCHAR(100) NOT NULL, note VARCHAR(100) NULL)"
        ),
    },
}


class Item(Record):
    uuid_columns = ("owner_id",)

    name = Field(str)
    qty = Field(int)


class Counter(Record):
    uses_uuid = False

    label = Field(str)


class ItemTable(Table):
    table_name = "rg_items"
    record_class = Item


class CounterTable(Table):
    table_name = "rg_counters"
    record_class = Counter


@pytest.fixture(params=["mysql", "pgsql"])
def backend_db(request: pytest.FixtureRequest) -> Generator[Db, None, None]:
    """
    Connection to one backend with fresh test tables.

    Skips when the backend's *_TEST_DSN is unset or unreachable.
    """
    prefix = request.param.upper()
    dsn = os.getenv(f"{prefix}_TEST_DSN")
    if not dsn:
        pytest.skip(f"{prefix}_TEST_DSN not set")
    try:
        db = Db(
            dsn,
            user=os.getenv(f"{prefix}_TEST_USER"),
            password=os.getenv(f"{prefix}_TEST_PASSWORD"),
        )
    except DatabaseConnectionError as exc:
        pytest.skip(f"{request.param} not reachable: {exc}")

    for table, ddl in DDL[request.param].items():
        db.execute(f"DROP TABLE IF EXISTS {table}")
        db.execute(ddl)
    try:
        yield db
    finally:
        for table in DDL[request.param]:
            db.execute(f"DROP TABLE IF EXISTS {table}")
        db.close()


def test_uuid_round_trip(backend_db: Db) -> None:
    items = ItemTable(backend_db)
    owner = Item({"name": "owner"})
    item = items.insert(Item({"name": "widget", "qty": 3, "owner_id": owner.id}))

    found = items.find_by_id(item.id)

    assert found.id == item.id
    assert found.qty == 3
    assert found.get("owner_id") == owner.id
    assert items.find_first(conditions={"owner_id": owner.id}).id == item.id


def test_auto_increment_back_fill(backend_db: Db) -> None:
    counters = CounterTable(backend_db)

    first = counters.insert(Counter({"label": "a"}))
    second = counters.insert(Counter({"label": "b"}))

    assert second.id == first.id + 1
    assert counters.find_by_id(second.id).label == "b"


def test_insert_many_and_paginate(backend_db: Db) -> None:
    counters = CounterTable(backend_db)
    counters.insert_many(
        [Counter({"label": f"c{n:02d}", **({"note": "odd"} if n % 2 else {})}) for n in range(TOTAL_ITEMS)]
    )

    page = counters.paginate(page=3, per_page=PER_PAGE, order_by="label")

    assert page["meta"]["total"] == TOTAL_ITEMS
    assert (page["meta"]["from"], page["meta"]["to"]) == (21, 25)
    assert page["meta"]["prev_page"] == 2
    assert counters.count({"note": None}) == 13


def test_update_delete_and_operators(backend_db: Db) -> None:
    items = ItemTable(backend_db)
    records = items.insert_many([Item({"name": f"i{n}", "qty": n}) for n in range(5)])

    records[0].qty = 10
    assert items.update(records[0]) == 1
    assert items.delete(records[1]) == 1
    assert items.count({"qty": ["BETWEEN", 2, 10]}) == 4
    assert items.count({"name": ["LIKE", "i%"]}) == 4
    assert items.count({"id": ["IN", []]}) == 0


def test_rollback(backend_db: Db) -> None:
    counters = CounterTable(backend_db)

    backend_db.begin_transaction()
    counters.insert(Counter({"label": "discarded"}))
    backend_db.rollback()

    assert counters.count() == 0
