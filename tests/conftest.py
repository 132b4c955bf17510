"""Pytest configuration and fixtures."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from geoprops.api import create_app
from geoprops.config import Settings
from geoprops.db.memory_store import MemoryStore


def listing(id, lat, lng, operacion="sale", tipo="house", ambientes=3, **extra):
    row = {"id": id, "operacion": operacion, "tipo": tipo, "ambientes": ambientes, "lat": lat, "lng": lng}
    row.update(extra)
    return row


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore(grid_deg=0.05)


@pytest.fixture
def scenario_rows():
    """A at the anchor, B ~111 m east renting, C far away."""
    return [
        listing("A", 0.0, 0.0, antiguedad=2),
        listing("B", 0.0, 0.001, operacion="rent", antiguedad=None),
        listing("C", 10.0, 10.0, antiguedad=1),
    ]


@pytest.fixture
def client(store):
    app = create_app(settings=Settings(), store=store)
    with TestClient(app) as test_client:
        yield test_client


def mock_pool():
    """Pool whose connection()/cursor() context managers never swallow errors."""
    pool = MagicMock()
    conn = MagicMock()
    cur = MagicMock()
    pool.connection.return_value.__enter__.return_value = conn
    pool.connection.return_value.__exit__.return_value = False
    conn.cursor.return_value.__enter__.return_value = cur
    conn.cursor.return_value.__exit__.return_value = False
    cur.rowcount = 0
    return pool, conn, cur
