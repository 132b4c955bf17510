"""Required-field checks for inbound listing batches."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..exceptions import BatchValidationError, RequestValidationError
from ..models.property import REQUIRED_WIRE_FIELDS, PropertyRecord
from ..utils.coerce import is_blank, to_decimal, to_float, to_int, to_str
from ..utils.logging import get_logger

LOGGER = get_logger("services.validator")

MISSING_BATCH = "Se requiere un array de propiedades"


@dataclass
class ValidationReport:
    valid: List[PropertyRecord] = field(default_factory=list)
    invalid: List[Any] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.invalid


def _missing(value: Any, legacy_truthy: bool) -> bool:
    if is_blank(value):
        return True
    # legacy mode: 0 rooms or a coordinate on the equator/meridian counts as missing
    return legacy_truthy and not value


class _Unparseable(ValueError):
    pass


def _optional(value: Any, convert: Callable[[Any], Any], legacy_truthy: bool) -> Any:
    # legacy mode judges the value as sent, so "0" survives while 0 does not
    if is_blank(value) or (legacy_truthy and not value):
        return None
    converted = convert(value)
    if converted is None:
        raise _Unparseable(value)
    return converted


def build_record(raw: Dict[str, Any], legacy_truthy: bool = False) -> Optional[PropertyRecord]:
    """Coerce one wire-format dict into a record.

    Returns None when a required field is missing, or when any numeric field
    holds something that is not a finite number (``"abc"``, ``"nan"``, or a
    fractional count such as ``2.9`` rooms).
    """

    if any(_missing(raw.get(name), legacy_truthy) for name in REQUIRED_WIRE_FIELDS):
        return None

    rooms = to_int(raw.get("ambientes"))
    lat = to_float(raw.get("lat"))
    lng = to_float(raw.get("lng"))
    if rooms is None or lat is None or lng is None:
        return None

    try:
        total_area = _optional(raw.get("m2_totales"), to_int, legacy_truthy)
        covered_area = _optional(raw.get("m2_cubiertos"), to_int, legacy_truthy)
        age = _optional(raw.get("antiguedad"), to_int, legacy_truthy)
        price = _optional(raw.get("precio"), to_decimal, legacy_truthy)
    except _Unparseable:
        return None

    return PropertyRecord(
        id=to_str(raw.get("id")),
        operation=to_str(raw.get("operacion")),
        kind=to_str(raw.get("tipo")),
        rooms=rooms,
        lat=lat,
        lng=lng,
        total_area=total_area,
        covered_area=covered_area,
        age=age,
        price=price,
    )


def validate_batch(raw_records: Any, legacy_truthy: bool = False) -> ValidationReport:
    """Check every record of a batch; nothing is written by this step."""

    if raw_records is None or not isinstance(raw_records, list):
        raise RequestValidationError(MISSING_BATCH)

    report = ValidationReport()
    for raw in raw_records:
        record = build_record(raw, legacy_truthy) if isinstance(raw, dict) else None
        if record is None:
            report.invalid.append(raw)
        else:
            report.valid.append(record)

    if report.invalid:
        LOGGER.info("batch_rejected size=%d invalid=%d", len(raw_records), len(report.invalid))
    return report


def raise_for_invalid(report: ValidationReport) -> List[PropertyRecord]:
    if not report.ok:
        raise BatchValidationError(report.invalid)
    return report.valid
