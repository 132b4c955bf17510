"""Batch ingestion with insert-or-replace semantics."""

from __future__ import annotations

from typing import Any

from ..db.base import PropertyStore
from ..models.property import LoadResult
from ..utils.logging import get_logger
from .validator import raise_for_invalid, validate_batch

LOGGER = get_logger("services.ingest")


class IngestService:
    def __init__(self, store: PropertyStore, legacy_truthy: bool = False) -> None:
        self.store = store
        self.legacy_truthy = legacy_truthy

    def load(self, raw_records: Any, replace: bool = False) -> LoadResult:
        """Validate the whole batch, then upsert it as one atomic unit.

        Raises ``RequestValidationError`` / ``BatchValidationError`` before any
        write when the batch is missing or incomplete. Store failures roll the
        batch back and propagate as ``StoreError``.
        """

        records = raise_for_invalid(validate_batch(raw_records, legacy_truthy=self.legacy_truthy))
        inserted, updated = self.store.load_batch(records, replace=replace)
        total = self.store.count()
        LOGGER.info(
            "batch_loaded size=%d inserted=%d updated=%d replace=%s total=%d",
            len(records),
            inserted,
            updated,
            replace,
            total,
        )
        return LoadResult(inserted=inserted, updated=updated, total=total)
