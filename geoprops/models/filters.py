"""Typed comparable-filter criteria and its transport model."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from ..exceptions import RequestValidationError
from ..utils.coerce import is_blank
from .property import Comparable

MISSING_ANCHOR = "Se requieren lat, lng y radio"


class FilterRequest(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    operacion: Optional[str] = None
    tipo: Optional[str] = None
    ambientes: Optional[int] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    radio: Optional[float] = None
    m2_min: Optional[int] = None
    m2_max: Optional[int] = None
    antiguedad_max: Optional[int] = None


def _present(value: Any, legacy_truthy: bool) -> bool:
    if is_blank(value):
        return False
    if legacy_truthy and not value:
        return False
    return True


@dataclass(frozen=True)
class ComparableFilter:
    """Anchor, radius (meters) and the optional attribute predicates.

    Each optional slot is either ``None`` (not applied) or the value the
    store must match. All applied slots are combined with AND.
    """

    lat: float
    lng: float
    radius: float
    operation: Optional[str] = None
    kind: Optional[str] = None
    rooms: Optional[int] = None
    m2_min: Optional[int] = None
    m2_max: Optional[int] = None
    antiguedad_max: Optional[int] = None

    @classmethod
    def from_request(cls, req: FilterRequest, legacy_truthy: bool = False) -> "ComparableFilter":
        if not all(_present(v, legacy_truthy) for v in (req.lat, req.lng, req.radio)):
            raise RequestValidationError(MISSING_ANCHOR)
        if not all(math.isfinite(v) for v in (req.lat, req.lng, req.radio)):
            raise RequestValidationError("lat, lng y radio deben ser numeros finitos")
        if req.radio < 0:
            raise RequestValidationError("radio debe ser mayor o igual a 0")

        def slot(value):
            return value if _present(value, legacy_truthy) else None

        return cls(
            lat=req.lat,
            lng=req.lng,
            radius=req.radio,
            operation=slot(req.operacion),
            kind=slot(req.tipo),
            rooms=slot(req.ambientes),
            m2_min=slot(req.m2_min),
            m2_max=slot(req.m2_max),
            antiguedad_max=slot(req.antiguedad_max),
        )

    @property
    def has_area_bounds(self) -> bool:
        return self.m2_min is not None or self.m2_max is not None

    def echo(self) -> Dict[str, Any]:
        """Effective parameters under their wire names."""
        return {
            "operacion": self.operation,
            "tipo": self.kind,
            "ambientes": self.rooms,
            "lat": self.lat,
            "lng": self.lng,
            "radio": self.radius,
            "m2_min": self.m2_min,
            "m2_max": self.m2_max,
            "antiguedad_max": self.antiguedad_max,
        }


@dataclass
class FilterResult:
    items: List[Comparable]
    filters: Dict[str, Any] = field(default_factory=dict)

    @property
    def ids(self) -> List[str]:
        return [item.id for item in self.items]

    @property
    def count(self) -> int:
        return len(self.items)
