import pytest

from geoprops.db.memory_store import MemoryStore
from geoprops.models.filters import ComparableFilter
from geoprops.services.validator import build_record
from geoprops.utils.geo import haversine_m, search_window

from conftest import listing


def _load(store, *rows, replace=False):
    return store.load_batch([build_record(r) for r in rows], replace=replace)


def test_load_batch_classifies_outcomes(store):
    assert _load(store, listing("a", 1, 1), listing("b", 2, 2)) == (2, 0)
    assert _load(store, listing("a", 1, 1), listing("c", 3, 3)) == (1, 1)
    assert store.count() == 3


def test_replace_then_list_returns_exactly_the_batch(store):
    _load(store, listing("old", 5, 5))
    _load(store, listing("x", 1, 1), listing("y", 1.5, 1), replace=True)
    assert sorted(r.id for r in store.list_all()) == ["x", "y"]
    assert store.get("old") is None


def test_delete_and_delete_all(store):
    _load(store, listing("a", 1, 1), listing("b", 1, 1.0001))
    assert store.delete("a") is True
    assert store.delete("a") is False
    assert store.count() == 1
    assert store.find_within(ComparableFilter(lat=1, lng=1, radius=10)) == []
    assert store.delete_all() == 1
    assert store.count() == 0


def test_count_by_category(store):
    _load(store, listing("a", 1, 1), listing("b", 1, 1, operacion="rent"), listing("c", 1, 1, tipo="flat"))
    assert store.count_by("operation") == {"sale": 2, "rent": 1}
    assert store.count_by("kind") == {"house": 2, "flat": 1}
    with pytest.raises(ValueError):
        store.count_by("price")


def test_failed_batch_leaves_store_untouched(store):
    _load(store, listing("keep", 1, 1))
    good = build_record(listing("new", 2, 2))
    with pytest.raises(AttributeError):
        store.load_batch([good, None], replace=True)
    assert [r.id for r in store.list_all()] == ["keep"]
    assert store.find_within(ComparableFilter(lat=1, lng=1, radius=1)) != []
    assert store.find_within(ComparableFilter(lat=2, lng=2, radius=1)) == []


def test_radius_across_antimeridian(store):
    _load(store, listing("east", 0.0, 179.9995), listing("west", 0.0, -179.9995), listing("far", 0.0, 170.0))
    matches = store.find_within(ComparableFilter(lat=0.0, lng=179.9999, radius=500))
    assert [r.id for r, _ in matches] == ["east", "west"]


def test_radius_near_pole_covers_all_longitudes(store):
    _load(store, listing("a", 89.999, 0.0), listing("b", 89.999, 180.0), listing("c", 80.0, 0.0))
    ids = sorted(r.id for r, _ in store.find_within(ComparableFilter(lat=90.0, lng=0.0, radius=1000)))
    assert ids == ["a", "b"]


def test_large_radius_walks_occupied_cells():
    store = MemoryStore(grid_deg=0.001)
    _load(store, listing("ba", -34.6, -58.4), listing("mdq", -38.0, -57.55), listing("mad", 40.4, -3.7))
    matches = store.find_within(ComparableFilter(lat=-34.6, lng=-58.4, radius=500_000))
    assert [r.id for r, _ in matches] == ["ba", "mdq"]


def test_reported_distance_uses_containment_model(store):
    _load(store, listing("p", -34.61, -58.38))
    expected = haversine_m(-34.6, -58.4, -34.61, -58.38)
    (record, distance), = store.find_within(ComparableFilter(lat=-34.6, lng=-58.4, radius=expected + 0.01))
    assert distance == pytest.approx(expected)
    assert store.find_within(ComparableFilter(lat=-34.6, lng=-58.4, radius=expected - 0.01)) == []


def test_search_window_splits_at_antimeridian():
    (lat_lo, lat_hi), spans = search_window(0.0, 179.99, 5000)
    assert lat_lo < 0 < lat_hi
    assert len(spans) == 2
    assert spans[0][1] == 180.0 and spans[1][0] == -180.0


def test_rejects_non_positive_grid():
    with pytest.raises(ValueError):
        MemoryStore(grid_deg=0)


def test_out_of_range_coordinates_are_indexed_without_overflow(store):
    assert _load(store, listing("huge", 1e308, -1e308), listing("near", 0.0, 0.0)) == (2, 0)
    assert [r.id for r, _ in store.find_within(ComparableFilter(lat=0.0, lng=0.0, radius=100))] == ["near"]
    assert isinstance(store.find_within(ComparableFilter(lat=0.0, lng=1e308, radius=100)), list)
    assert store.delete("huge") is True
