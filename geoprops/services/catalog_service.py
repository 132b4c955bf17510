"""Read and delete individual listings."""

from __future__ import annotations

from typing import List

from ..db.base import PropertyStore
from ..exceptions import PropertyNotFoundError
from ..models.property import PropertyRecord
from ..utils.logging import get_logger

LOGGER = get_logger("services.catalog")


class CatalogService:
    def __init__(self, store: PropertyStore) -> None:
        self.store = store

    def list_all(self) -> List[PropertyRecord]:
        return self.store.list_all()

    def get(self, property_id: str) -> PropertyRecord:
        record = self.store.get(property_id)
        if record is None:
            raise PropertyNotFoundError(property_id)
        return record

    def delete(self, property_id: str) -> int:
        """Remove one listing and return the remaining total."""
        if not self.store.delete(property_id):
            raise PropertyNotFoundError(property_id)
        LOGGER.info("property_deleted id=%s", property_id)
        return self.store.count()
