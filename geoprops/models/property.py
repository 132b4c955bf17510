"""Pydantic models representing the property listing domain."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

REQUIRED_WIRE_FIELDS = ("id", "operacion", "tipo", "ambientes", "lat", "lng")


class PropertyRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    id: str
    operation: str = Field(alias="operacion")
    kind: str = Field(alias="tipo")
    rooms: int = Field(alias="ambientes")
    lat: float
    lng: float
    total_area: Optional[int] = Field(default=None, alias="m2_totales")
    covered_area: Optional[int] = Field(default=None, alias="m2_cubiertos")
    age: Optional[int] = Field(default=None, alias="antiguedad")
    price: Optional[Decimal] = Field(default=None, alias="precio")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_wire(self) -> Dict[str, Any]:
        data = self.model_dump(by_alias=True)
        data["precio"] = float(self.price) if self.price is not None else None
        return data


class Comparable(PropertyRecord):
    """A record matched by a radius query, with its rounded distance in meters."""

    distance: int

    @classmethod
    def from_match(cls, record: PropertyRecord, distance: float) -> "Comparable":
        return cls(**record.model_dump(), distance=int(round(distance)))


class IngestRequest(BaseModel):
    properties: Optional[Any] = None
    replace: bool = False


class LoadResult(BaseModel):
    inserted: int
    updated: int
    total: int

    @property
    def message(self) -> str:
        return f"{self.inserted} insertadas, {self.updated} actualizadas"


class Stats(BaseModel):
    total: int
    by_operation: Dict[str, int] = Field(default_factory=dict)
    by_kind: Dict[str, int] = Field(default_factory=dict)

