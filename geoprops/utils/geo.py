"""Spherical distance helpers for the in-memory store."""

from __future__ import annotations

import math
from typing import List, Tuple

import numpy as np

# IUGG mean Earth radius
EARTH_RADIUS_M = 6_371_008.8

# widens search windows past float rounding at the edges
_PAD_DEG = 1e-7


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = lat2_rad - lat1_rad
    dlon = math.radians(lon2) - math.radians(lon1)
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def haversine_m_vec(lat: float, lon: float, lats: np.ndarray, lons: np.ndarray) -> np.ndarray:
    """Distances in meters from (lat, lon) to every point of ``lats``/``lons``."""

    lat1, lon1 = np.radians([lat, lon])
    lat2 = np.radians(lats)
    lon2 = np.radians(lons)
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = np.sin(dlat / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon / 2) ** 2
    a = np.clip(a, 0.0, 1.0)
    return EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def search_window(lat: float, lon: float, radius_m: float) -> Tuple[Tuple[float, float], List[Tuple[float, float]]]:
    """Latitude band and longitude intervals that contain every point within ``radius_m``.

    Longitude intervals are split at the antimeridian. A band touching a pole
    covers every longitude.
    """

    dlat = math.degrees(radius_m / EARTH_RADIUS_M) + _PAD_DEG
    lat_lo, lat_hi = lat - dlat, lat + dlat
    if lat_lo <= -90.0 or lat_hi >= 90.0:
        return (max(lat_lo, -90.0), min(lat_hi, 90.0)), [(-180.0, 180.0)]

    widest = math.cos(math.radians(max(abs(lat_lo), abs(lat_hi))))
    dlon = math.degrees(radius_m / (EARTH_RADIUS_M * widest)) + _PAD_DEG
    if dlon >= 180.0:
        return (lat_lo, lat_hi), [(-180.0, 180.0)]

    lon_lo, lon_hi = lon - dlon, lon + dlon
    if lon_lo < -180.0:
        return (lat_lo, lat_hi), [(lon_lo + 360.0, 180.0), (-180.0, lon_hi)]
    if lon_hi > 180.0:
        return (lat_lo, lat_hi), [(lon_lo, 180.0), (-180.0, lon_hi - 360.0)]
    return (lat_lo, lat_hi), [(lon_lo, lon_hi)]
