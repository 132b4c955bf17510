"""Store contract shared by the PostGIS and in-memory backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Tuple

from ..models.filters import ComparableFilter
from ..models.property import PropertyRecord

# Group-by columns exposed for reporting, keyed by attribute name.
GROUPABLE = {"operation": "operacion", "kind": "tipo"}


class PropertyStore(ABC):
    """Persistent keyed storage for listings with a spatial index."""

    mode: str = "abstract"

    def open(self) -> None:
        """Acquire backing resources. Safe to call more than once."""

    def close(self) -> None:
        """Release backing resources."""

    @abstractmethod
    def init_schema(self) -> None: ...

    @abstractmethod
    def load_batch(self, records: Sequence[PropertyRecord], replace: bool = False) -> Tuple[int, int]:
        """Upsert ``records`` in order as one atomic unit.

        When ``replace`` is true every existing record is removed first, inside
        the same unit. Returns ``(inserted, updated)``.
        """

    @abstractmethod
    def delete(self, property_id: str) -> bool: ...

    @abstractmethod
    def delete_all(self) -> int: ...

    @abstractmethod
    def get(self, property_id: str) -> Optional[PropertyRecord]: ...

    @abstractmethod
    def list_all(self) -> List[PropertyRecord]:
        """All records, newest ``created_at`` first, then by id."""

    @abstractmethod
    def count(self) -> int: ...

    @abstractmethod
    def count_by(self, attribute: str) -> Dict[str, int]: ...

    @abstractmethod
    def find_within(self, criteria: ComparableFilter) -> List[Tuple[PropertyRecord, float]]:
        """Records within ``criteria.radius`` meters of the anchor matching every set predicate.

        Sorted by ascending distance, then id.
        """

    @abstractmethod
    def ping(self) -> None:
        """Raise ``StoreError`` if the backend is unreachable."""


def check_groupable(attribute: str) -> str:
    try:
        return GROUPABLE[attribute]
    except KeyError:
        raise ValueError(f"Cannot group by {attribute!r}; expected one of {sorted(GROUPABLE)}") from None
