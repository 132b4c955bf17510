"""PostgreSQL/PostGIS implementation of the listing store."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool, PoolTimeout

from ..config import StoreSettings
from ..exceptions import StoreError, StoreTimeoutError
from ..models.filters import ComparableFilter
from ..models.property import PropertyRecord
from ..utils.logging import get_logger
from .base import PropertyStore, check_groupable
from .mappers import map_property_row, record_params

LOGGER = get_logger("db.postgis")

SCHEMA_STATEMENTS = (
    "CREATE EXTENSION IF NOT EXISTS postgis",
    """
    CREATE TABLE IF NOT EXISTS properties (
        id VARCHAR(100) PRIMARY KEY,
        operacion VARCHAR(50) NOT NULL,
        tipo VARCHAR(50) NOT NULL,
        ambientes INTEGER NOT NULL,
        lat DOUBLE PRECISION NOT NULL,
        lng DOUBLE PRECISION NOT NULL,
        m2_totales INTEGER,
        m2_cubiertos INTEGER,
        antiguedad INTEGER,
        precio DECIMAL(12, 2),
        location GEOGRAPHY(POINT, 4326) NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_properties_location ON properties USING GIST(location)",
    "CREATE INDEX IF NOT EXISTS idx_properties_operacion ON properties(operacion)",
    "CREATE INDEX IF NOT EXISTS idx_properties_tipo ON properties(tipo)",
)

COLUMNS = (
    "id, operacion, tipo, ambientes, lat, lng, m2_totales, m2_cubiertos, "
    "antiguedad, precio, created_at, updated_at"
)

# location is always rebuilt from the lat/lng written in the same statement
UPSERT_SQL = """
    INSERT INTO properties (id, operacion, tipo, ambientes, lat, lng, m2_totales, m2_cubiertos, antiguedad, precio, location)
    VALUES (%(id)s, %(operacion)s, %(tipo)s, %(ambientes)s, %(lat)s, %(lng)s, %(m2_totales)s, %(m2_cubiertos)s,
            %(antiguedad)s, %(precio)s, ST_SetSRID(ST_MakePoint(%(lng)s, %(lat)s), 4326)::geography)
    ON CONFLICT (id) DO UPDATE SET
        operacion = EXCLUDED.operacion,
        tipo = EXCLUDED.tipo,
        ambientes = EXCLUDED.ambientes,
        lat = EXCLUDED.lat,
        lng = EXCLUDED.lng,
        m2_totales = EXCLUDED.m2_totales,
        m2_cubiertos = EXCLUDED.m2_cubiertos,
        antiguedad = EXCLUDED.antiguedad,
        precio = EXCLUDED.precio,
        location = EXCLUDED.location,
        updated_at = CURRENT_TIMESTAMP
    RETURNING (xmax = 0) AS inserted
"""

ANCHOR = "ST_SetSRID(ST_MakePoint(%(anchor_lng)s, %(anchor_lat)s), 4326)::geography"

# Optional predicate slots: (attribute on ComparableFilter, SQL clause).
FILTER_CLAUSES = (
    ("operation", "operacion = %(operation)s"),
    ("kind", "tipo = %(kind)s"),
    ("rooms", "ambientes = %(rooms)s"),
    ("m2_min", "m2_totales >= %(m2_min)s"),
    ("m2_max", "m2_totales <= %(m2_max)s"),
    ("antiguedad_max", "(antiguedad IS NULL OR antiguedad <= %(antiguedad_max)s)"),
)


def build_filter_query(criteria: ComparableFilter) -> Tuple[str, Dict[str, Any]]:
    """Compose the radius query for ``criteria``.

    Only fixed clause text is joined; every value travels as a bound
    parameter. ``ST_DWithin`` on geography uses the GiST index and the same
    spheroid as ``ST_Distance``.
    """

    params: Dict[str, Any] = {"anchor_lng": criteria.lng, "anchor_lat": criteria.lat, "radius": criteria.radius}
    where = [f"ST_DWithin(location, {ANCHOR}, %(radius)s)"]
    for attribute, clause in FILTER_CLAUSES:
        value = getattr(criteria, attribute)
        if value is None:
            continue
        where.append(clause)
        params[attribute] = value

    query = (
        f"SELECT {COLUMNS}, ST_Distance(location, {ANCHOR}) AS distance "
        "FROM properties "
        f"WHERE {' AND '.join(where)} "
        "ORDER BY distance ASC, id ASC"
    )
    return query, params


class PostgisStore(PropertyStore):
    mode = "postgis"

    def __init__(self, settings: StoreSettings, pool: Optional[ConnectionPool] = None) -> None:
        self.settings = settings
        if pool is None:
            kwargs: Dict[str, Any] = {
                "row_factory": dict_row,
                "options": f"-c statement_timeout={int(settings.timeout_ms)}",
            }
            if settings.ssl:
                kwargs["sslmode"] = "require"
            pool = ConnectionPool(
                settings.conninfo,
                min_size=settings.pool_min,
                max_size=settings.pool_max,
                kwargs=kwargs,
                timeout=settings.timeout_seconds,
                open=False,
                name="geoprops",
            )
        self._pool = pool

    def open(self) -> None:
        self._pool.open()
        LOGGER.info("pool_opened min=%d max=%d", self.settings.pool_min, self.settings.pool_max)

    def close(self) -> None:
        self._pool.close()
        LOGGER.info("pool_closed")

    @contextmanager
    def _connection(self) -> Iterator[psycopg.Connection]:
        """Borrow a pooled connection; the block commits on success and rolls back on error."""
        try:
            with self._pool.connection() as conn:
                yield conn
        except PoolTimeout as exc:
            LOGGER.error("pool_timeout error=%s", exc)
            raise StoreTimeoutError("Tiempo de espera agotado al conectar con la base de datos") from exc
        except psycopg.errors.QueryCanceled as exc:
            LOGGER.error("statement_timeout error=%s", exc)
            raise StoreTimeoutError("Tiempo de espera agotado en la consulta") from exc
        except psycopg.Error as exc:
            LOGGER.error("store_error error=%s", exc)
            raise StoreError(str(exc)) from exc

    # ------------------------------------------------------------------
    def init_schema(self) -> None:
        with self._connection() as conn:
            for statement in SCHEMA_STATEMENTS:
                conn.execute(statement)
        LOGGER.info("schema_ready table=properties")

    def load_batch(self, records: Sequence[PropertyRecord], replace: bool = False) -> Tuple[int, int]:
        inserted = updated = 0
        with self._connection() as conn:
            with conn.cursor() as cur:
                if replace:
                    cur.execute("DELETE FROM properties")
                    LOGGER.info("bulk_replace removed=%d", cur.rowcount)
                for record in records:
                    cur.execute(UPSERT_SQL, record_params(record))
                    row = cur.fetchone()
                    if row["inserted"]:
                        inserted += 1
                    else:
                        updated += 1
        return inserted, updated

    def delete(self, property_id: str) -> bool:
        with self._connection() as conn:
            cur = conn.execute("DELETE FROM properties WHERE id = %(id)s RETURNING id", {"id": property_id})
            return cur.fetchone() is not None

    def delete_all(self) -> int:
        with self._connection() as conn:
            cur = conn.execute("DELETE FROM properties")
            return cur.rowcount

    def get(self, property_id: str) -> Optional[PropertyRecord]:
        with self._connection() as conn:
            row = conn.execute(f"SELECT {COLUMNS} FROM properties WHERE id = %(id)s", {"id": property_id}).fetchone()
        return map_property_row(row) if row else None

    def list_all(self) -> List[PropertyRecord]:
        with self._connection() as conn:
            rows = conn.execute(f"SELECT {COLUMNS} FROM properties ORDER BY created_at DESC, id ASC").fetchall()
        return [map_property_row(row) for row in rows]

    def count(self) -> int:
        with self._connection() as conn:
            row = conn.execute("SELECT COUNT(*) AS count FROM properties").fetchone()
        return int(row["count"])

    def count_by(self, attribute: str) -> Dict[str, int]:
        column = check_groupable(attribute)
        with self._connection() as conn:
            rows = conn.execute(
                f"SELECT {column} AS key, COUNT(*) AS count FROM properties GROUP BY {column}"
            ).fetchall()
        return {row["key"]: int(row["count"]) for row in rows}

    def find_within(self, criteria: ComparableFilter) -> List[Tuple[PropertyRecord, float]]:
        query, params = build_filter_query(criteria)
        with self._connection() as conn:
            rows = conn.execute(query, params).fetchall()
        return [(map_property_row(row), float(row["distance"])) for row in rows]

    def ping(self) -> None:
        with self._connection() as conn:
            conn.execute("SELECT 1")
