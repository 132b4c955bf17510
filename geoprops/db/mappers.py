from typing import Any, Dict, Mapping

from ..models.property import PropertyRecord
from ..utils.coerce import to_decimal, to_float, to_int, to_str


def map_property_row(r: Mapping[str, Any]) -> PropertyRecord:
    """Build a record from a ``properties`` table row (dict_row)."""
    return PropertyRecord(
        id=to_str(r.get("id")),
        operation=to_str(r.get("operacion")),
        kind=to_str(r.get("tipo")),
        rooms=to_int(r.get("ambientes")),
        lat=to_float(r.get("lat")),
        lng=to_float(r.get("lng")),
        total_area=to_int(r.get("m2_totales")),
        covered_area=to_int(r.get("m2_cubiertos")),
        age=to_int(r.get("antiguedad")),
        price=to_decimal(r.get("precio")),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def record_params(record: PropertyRecord) -> Dict[str, Any]:
    """Named query parameters for an upsert of ``record``."""
    return {
        "id": record.id,
        "operacion": record.operation,
        "tipo": record.kind,
        "ambientes": record.rooms,
        "lat": record.lat,
        "lng": record.lng,
        "m2_totales": record.total_area,
        "m2_cubiertos": record.covered_area,
        "antiguedad": record.age,
        "precio": record.price,
    }
