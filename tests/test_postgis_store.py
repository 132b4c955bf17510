from decimal import Decimal

import psycopg
import pytest
from psycopg_pool import PoolTimeout

from geoprops.config import StoreSettings
from geoprops.db.postgis_store import PostgisStore, SCHEMA_STATEMENTS, UPSERT_SQL, build_filter_query
from geoprops.exceptions import StoreError, StoreTimeoutError
from geoprops.models.filters import ComparableFilter
from geoprops.services.validator import build_record

from conftest import listing, mock_pool


def _store():
    pool, conn, cur = mock_pool()
    settings = StoreSettings(mode="postgis", database_url="postgresql://u:p@localhost/db")
    return PostgisStore(settings, pool=pool), conn, cur


def test_filter_query_without_predicates_is_spatial_only():
    query, params = build_filter_query(ComparableFilter(lat=-34.6, lng=-58.4, radius=800))
    assert "ST_DWithin(location, ST_SetSRID(ST_MakePoint(%(anchor_lng)s, %(anchor_lat)s), 4326)::geography" in query
    assert "ST_Distance(location" in query
    assert query.endswith("ORDER BY distance ASC, id ASC")
    assert " AND " not in query
    assert params == {"anchor_lng": -58.4, "anchor_lat": -34.6, "radius": 800}


def test_filter_query_binds_every_predicate():
    criteria = ComparableFilter(
        lat=1, lng=2, radius=300, operation="sale", kind="house", rooms=3, m2_min=50, m2_max=90, antiguedad_max=10
    )
    query, params = build_filter_query(criteria)
    for clause in (
        "operacion = %(operation)s",
        "tipo = %(kind)s",
        "ambientes = %(rooms)s",
        "m2_totales >= %(m2_min)s",
        "m2_totales <= %(m2_max)s",
        "(antiguedad IS NULL OR antiguedad <= %(antiguedad_max)s)",
    ):
        assert clause in query
    assert params["operation"] == "sale"
    assert params["antiguedad_max"] == 10
    assert "sale" not in query


def test_filter_query_keeps_hostile_values_out_of_sql():
    query, params = build_filter_query(ComparableFilter(lat=0, lng=0, radius=1, kind="x'; DROP TABLE properties;--"))
    assert "DROP" not in query
    assert params["kind"] == "x'; DROP TABLE properties;--"


def test_load_batch_runs_in_one_connection_and_counts_outcomes():
    store, conn, cur = _store()
    cur.fetchone.side_effect = [{"inserted": True}, {"inserted": False}]
    records = [build_record(listing("a", 1, 2)), build_record(listing("b", 3, 4, precio="10.5"))]
    assert store.load_batch(records, replace=True) == (1, 1)

    statements = [call.args[0] for call in cur.execute.call_args_list]
    assert statements == ["DELETE FROM properties", UPSERT_SQL, UPSERT_SQL]
    params = cur.execute.call_args_list[2].args[1]
    assert params["id"] == "b"
    assert (params["lat"], params["lng"]) == (3.0, 4.0)
    assert params["precio"] == Decimal("10.5")
    assert "ST_MakePoint(%(lng)s, %(lat)s)" in UPSERT_SQL
    assert "location = EXCLUDED.location" in UPSERT_SQL


def test_find_within_maps_rows():
    store, conn, _ = _store()
    conn.execute.return_value.fetchall.return_value = [
        {
            "id": "a", "operacion": "sale", "tipo": "house", "ambientes": 3, "lat": 0.0, "lng": 0.0,
            "m2_totales": None, "m2_cubiertos": None, "antiguedad": None, "precio": Decimal("99.90"),
            "created_at": None, "updated_at": None, "distance": 12.6,
        }
    ]
    ((record, distance),) = store.find_within(ComparableFilter(lat=0, lng=0, radius=50))
    assert record.id == "a"
    assert record.price == Decimal("99.90")
    assert distance == 12.6


def test_count_by_uses_whitelisted_column():
    store, conn, _ = _store()
    conn.execute.return_value.fetchall.return_value = [{"key": "sale", "count": 4}]
    assert store.count_by("operation") == {"sale": 4}
    assert "GROUP BY operacion" in conn.execute.call_args.args[0]
    with pytest.raises(ValueError):
        store.count_by("id; DROP TABLE properties")


def test_delete_reports_missing_row():
    store, conn, _ = _store()
    conn.execute.return_value.fetchone.return_value = None
    assert store.delete("ghost") is False


def test_init_schema_creates_indexes():
    store, conn, _ = _store()
    store.init_schema()
    executed = [call.args[0] for call in conn.execute.call_args_list]
    assert executed == list(SCHEMA_STATEMENTS)
    assert any("USING GIST(location)" in s for s in executed)


def test_driver_errors_become_store_errors():
    store, conn, _ = _store()
    conn.execute.side_effect = psycopg.OperationalError("connection refused")
    with pytest.raises(StoreError, match="connection refused"):
        store.ping()


def test_statement_timeout_is_distinct():
    store, conn, _ = _store()
    conn.execute.side_effect = psycopg.errors.QueryCanceled("canceling statement due to statement timeout")
    with pytest.raises(StoreTimeoutError):
        store.count()


def test_pool_timeout_is_distinct():
    store, _, _ = _store()
    store._pool.connection.side_effect = PoolTimeout("couldn't get a connection after 10.00 sec")
    with pytest.raises(StoreTimeoutError):
        store.get("a")
