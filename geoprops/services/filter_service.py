"""Comparable selection: radius search plus optional attribute predicates."""

from __future__ import annotations

from typing import Union

from ..db.base import PropertyStore
from ..models.filters import ComparableFilter, FilterRequest, FilterResult
from ..models.property import Comparable
from ..utils.logging import get_logger

LOGGER = get_logger("services.filter")


class FilterService:
    def __init__(self, store: PropertyStore, legacy_truthy: bool = False) -> None:
        self.store = store
        self.legacy_truthy = legacy_truthy

    def to_criteria(self, request: FilterRequest) -> ComparableFilter:
        return ComparableFilter.from_request(request, legacy_truthy=self.legacy_truthy)

    def filter(self, query: Union[ComparableFilter, FilterRequest]) -> FilterResult:
        criteria = query if isinstance(query, ComparableFilter) else self.to_criteria(query)
        matches = self.store.find_within(criteria)
        items = [Comparable.from_match(record, distance) for record, distance in matches]
        LOGGER.debug(
            "filter lat=%s lng=%s radius=%s matches=%d", criteria.lat, criteria.lng, criteria.radius, len(items)
        )
        return FilterResult(items=items, filters=criteria.echo())
