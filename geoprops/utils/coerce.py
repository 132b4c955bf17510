import math
from decimal import Decimal, InvalidOperation
from typing import Any, Optional


def is_blank(v: Any) -> bool:
    return v is None or (isinstance(v, str) and not v.strip())


def to_int(v) -> Optional[int]:
    """Whole numbers only; ``"2.0"`` is 2, ``"2.9"`` is None."""
    number = to_float(v)
    if number is None or not number.is_integer():
        return None
    return int(number)


def to_float(v) -> Optional[float]:
    try:
        if is_blank(v) or str(v).lower() == "null":
            return None
        if isinstance(v, bool):
            return None
        number = float(v)
    except (TypeError, ValueError):
        return None
    # nan and +/-inf cannot be placed on the globe
    return number if math.isfinite(number) else None


def to_decimal(v) -> Optional[Decimal]:
    try:
        if is_blank(v) or str(v).lower() == "null":
            return None
        if isinstance(v, bool):
            return None
        number = Decimal(str(v))
    except (InvalidOperation, ValueError):
        return None
    return number if number.is_finite() else None


def to_str(v) -> str:
    return "" if v is None else str(v).strip()
