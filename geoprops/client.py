"""HTTP client for automation callers that push batches and pull comparable ids."""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

import requests
from requests import Response

from .exceptions import (
    BatchValidationError,
    GeoPropsError,
    PropertyNotFoundError,
    RequestValidationError,
    StoreError,
    StoreTimeoutError,
)
from .utils.logging import get_logger

LOGGER = get_logger("client")


class GeoPropsClient:
    def __init__(self, base_url: Optional[str] = None, timeout: float = 30.0, session: Optional[requests.Session] = None) -> None:
        self.base_url = (base_url or os.getenv("GEOPROPS_API_URL", "http://localhost:3000")).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def ingest(self, properties: List[Dict[str, Any]], replace: bool = False) -> Dict[str, Any]:
        return self._request("POST", "/api/properties", json={"properties": properties, "replace": replace})

    def filter(self, lat: float, lng: float, radio: float, **predicates: Any) -> Dict[str, Any]:
        body = {"lat": lat, "lng": lng, "radio": radio}
        body.update({k: v for k, v in predicates.items() if v is not None})
        return self._request("POST", "/api/filter", json=body)

    def filter_ids(self, lat: float, lng: float, radio: float, **predicates: Any) -> List[str]:
        return self.filter(lat, lng, radio, **predicates)["ids"]

    def get(self, property_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/properties/{property_id}")["property"]

    def delete(self, property_id: str) -> int:
        return self._request("DELETE", f"/api/properties/{property_id}")["total"]

    def stats(self) -> Dict[str, Any]:
        return self._request("GET", "/api/stats")

    def health(self) -> Dict[str, Any]:
        resp = self.session.get(f"{self.base_url}/api/health", timeout=self.timeout)
        return resp.json()

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.Timeout as exc:
            raise StoreTimeoutError(f"Timed out calling {url}") from exc
        except requests.RequestException as exc:
            raise StoreError(f"Failed to reach {url}: {exc}") from exc
        self._raise_for_status(resp)
        return resp.json()

    @staticmethod
    def _raise_for_status(resp: Response) -> None:
        if resp.ok:
            return
        try:
            payload = resp.json()
        except ValueError:
            payload = {}
        message = payload.get("error") or resp.text or f"HTTP {resp.status_code}"
        LOGGER.warning("api_error status=%d error=%s", resp.status_code, message)
        if resp.status_code == 404:
            raise PropertyNotFoundError(resp.url.rsplit("/", 1)[-1])
        if resp.status_code == 400:
            if "invalid" in payload:
                raise BatchValidationError(payload["invalid"], message)
            raise RequestValidationError(message)
        if resp.status_code == 504:
            raise StoreTimeoutError(message)
        if resp.status_code >= 500:
            raise StoreError(message)
        raise GeoPropsError(message)
