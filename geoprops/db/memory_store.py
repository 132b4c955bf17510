"""In-process listing store with a lat/lng grid index."""

from __future__ import annotations

import math
import threading
from collections import Counter, defaultdict
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

import numpy as np

from ..models.filters import ComparableFilter
from ..models.property import PropertyRecord
from ..utils.geo import haversine_m_vec, search_window
from ..utils.logging import get_logger
from .base import PropertyStore, check_groupable

LOGGER = get_logger("db.memory")

Cell = Tuple[int, int]

_BUCKET_LIMIT_DEG = 1e6


class MemoryStore(PropertyStore):
    """Dictionary-backed store.

    Points are bucketed into square cells of ``grid_deg`` degrees so a radius
    query only measures records in cells overlapping the search window.
    ``operation`` and ``kind`` carry secondary indexes for equality filters.
    Writes and snapshot reads are serialised on one re-entrant lock, so a
    batch is observed either fully applied or not at all.
    """

    mode = "memory"

    def __init__(self, grid_deg: float = 0.05) -> None:
        if grid_deg <= 0:
            raise ValueError("grid_deg must be positive")
        self.grid_deg = grid_deg
        self._lock = threading.RLock()
        self._records: Dict[str, PropertyRecord] = {}
        self._cells: Dict[Cell, Set[str]] = defaultdict(set)
        self._by_operation: Dict[str, Set[str]] = defaultdict(set)
        self._by_kind: Dict[str, Set[str]] = defaultdict(set)

    # ------------------------------------------------------------------
    # Index maintenance
    def _bucket(self, degrees: float) -> int:
        # coordinates are not range checked; far out values share the edge buckets
        degrees = max(-_BUCKET_LIMIT_DEG, min(_BUCKET_LIMIT_DEG, degrees))
        return math.floor(degrees / self.grid_deg)

    def _cell(self, lat: float, lng: float) -> Cell:
        return (self._bucket(lat), self._bucket(lng))

    def _index(self, record: PropertyRecord) -> None:
        self._cells[self._cell(record.lat, record.lng)].add(record.id)
        self._by_operation[record.operation].add(record.id)
        self._by_kind[record.kind].add(record.id)

    def _unindex(self, record: PropertyRecord) -> None:
        for index, key in (
            (self._cells, self._cell(record.lat, record.lng)),
            (self._by_operation, record.operation),
            (self._by_kind, record.kind),
        ):
            bucket = index.get(key)
            if bucket is None:
                continue
            bucket.discard(record.id)
            if not bucket:
                del index[key]

    def _reindex(self) -> None:
        self._cells.clear()
        self._by_operation.clear()
        self._by_kind.clear()
        for record in self._records.values():
            self._index(record)

    # ------------------------------------------------------------------
    def init_schema(self) -> None:
        LOGGER.info("memory_store_ready grid_deg=%s", self.grid_deg)

    def load_batch(self, records: Sequence[PropertyRecord], replace: bool = False) -> Tuple[int, int]:
        inserted = updated = 0
        now = datetime.now(timezone.utc)
        with self._lock:
            snapshot = dict(self._records)
            try:
                if replace:
                    self._records.clear()
                    self._reindex()
                for record in records:
                    previous = self._records.get(record.id)
                    if previous is not None:
                        self._unindex(previous)
                        created_at = previous.created_at
                        updated += 1
                    else:
                        created_at = now
                        inserted += 1
                    stored = record.model_copy(update={"created_at": created_at, "updated_at": now})
                    self._records[record.id] = stored
                    self._index(stored)
            except Exception:
                self._records = snapshot
                self._reindex()
                raise
        return inserted, updated

    def delete(self, property_id: str) -> bool:
        with self._lock:
            record = self._records.pop(property_id, None)
            if record is None:
                return False
            self._unindex(record)
            return True

    def delete_all(self) -> int:
        with self._lock:
            removed = len(self._records)
            self._records.clear()
            self._reindex()
            return removed

    def get(self, property_id: str) -> Optional[PropertyRecord]:
        with self._lock:
            return self._records.get(property_id)

    def list_all(self) -> List[PropertyRecord]:
        with self._lock:
            records = list(self._records.values())
        records.sort(key=lambda r: r.id)
        records.sort(key=lambda r: r.created_at, reverse=True)
        return records

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def count_by(self, attribute: str) -> Dict[str, int]:
        check_groupable(attribute)
        with self._lock:
            return dict(Counter(getattr(r, attribute) for r in self._records.values()))

    # ------------------------------------------------------------------
    # Radius query
    def _candidate_cells(self, criteria: ComparableFilter) -> Iterable[Cell]:
        (lat_lo, lat_hi), lon_ranges = search_window(criteria.lat, criteria.lng, criteria.radius)
        row_lo = self._bucket(lat_lo)
        row_hi = self._bucket(lat_hi)
        spans = [(self._bucket(lo), self._bucket(hi)) for lo, hi in lon_ranges]
        window = (row_hi - row_lo + 1) * sum(hi - lo + 1 for lo, hi in spans)
        if window > len(self._cells):
            # large radius: walking occupied cells is cheaper than the window
            return [
                cell
                for cell in self._cells
                if row_lo <= cell[0] <= row_hi and any(lo <= cell[1] <= hi for lo, hi in spans)
            ]
        return [
            (row, col)
            for row in range(row_lo, row_hi + 1)
            for lo, hi in spans
            for col in range(lo, hi + 1)
            if (row, col) in self._cells
        ]

    def _candidates(self, criteria: ComparableFilter) -> List[PropertyRecord]:
        ids: Set[str] = set()
        for cell in self._candidate_cells(criteria):
            ids.update(self._cells[cell])
        if criteria.operation is not None:
            ids &= self._by_operation.get(criteria.operation, set())
        if criteria.kind is not None:
            ids &= self._by_kind.get(criteria.kind, set())
        return [self._records[i] for i in ids if _matches(self._records[i], criteria)]

    def find_within(self, criteria: ComparableFilter) -> List[Tuple[PropertyRecord, float]]:
        with self._lock:
            candidates = self._candidates(criteria)
        if not candidates:
            return []

        lats = np.array([r.lat for r in candidates], dtype=float)
        lngs = np.array([r.lng for r in candidates], dtype=float)
        distances = haversine_m_vec(criteria.lat, criteria.lng, lats, lngs)

        matches = [
            (record, float(distance))
            for record, distance in zip(candidates, distances)
            if distance <= criteria.radius
        ]
        matches.sort(key=lambda item: (item[1], item[0].id))
        return matches

    def ping(self) -> None:
        return None


def _matches(record: PropertyRecord, criteria: ComparableFilter) -> bool:
    if criteria.rooms is not None and record.rooms != criteria.rooms:
        return False
    if criteria.has_area_bounds and record.total_area is None:
        return False
    if criteria.m2_min is not None and record.total_area < criteria.m2_min:
        return False
    if criteria.m2_max is not None and record.total_area > criteria.m2_max:
        return False
    if criteria.antiguedad_max is not None and record.age is not None and record.age > criteria.antiguedad_max:
        return False
    return True
