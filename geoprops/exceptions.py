"""Exception hierarchy for geoprops."""

from typing import Any, Dict, List, Optional


class GeoPropsError(Exception):
    """Base exception for all geoprops errors."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message}


class RequestValidationError(GeoPropsError):
    """Raised when a request is missing required input or is malformed."""

    status_code = 400


class BatchValidationError(RequestValidationError):
    """Raised when one or more records in an ingest batch are incomplete."""

    def __init__(self, invalid: List[Dict[str, Any]], message: str = "Propiedades con datos faltantes") -> None:
        super().__init__(message)
        self.invalid = invalid

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["invalid"] = self.invalid
        return payload


class PropertyNotFoundError(GeoPropsError):
    """Raised when a lookup or delete targets an unknown id."""

    status_code = 404

    def __init__(self, property_id: str) -> None:
        super().__init__("Propiedad no encontrada")
        self.property_id = property_id


class StoreError(GeoPropsError):
    """Raised when the backing store fails (connectivity, constraint, query)."""

    status_code = 500


class StoreTimeoutError(StoreError):
    """Raised when a store call exceeds its time budget."""

    status_code = 504


class ConfigurationError(GeoPropsError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, setting: Optional[str] = None) -> None:
        super().__init__(message)
        self.setting = setting
