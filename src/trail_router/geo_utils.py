import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import numpy as np

from .errors import InvalidInputError

EARTH_RADIUS_M = 6371e3


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lon: float
    elevation: Optional[float] = None


def synthetic_elevation(lat: float, lon: float) -> float:
    """Deterministic stand-in elevation in meters for points without one.

    ``200 + sin(lat * 10) * 100 + cos(lon * 8) * 50`` with the raw degree
    values fed to the trig functions.
    """
    return 200 + math.sin(lat * 10) * 100 + math.cos(lon * 8) * 50


def resolved_elevation(point: GeoPoint) -> float:
    if point.elevation is None:
        return synthetic_elevation(point.lat, point.lon)
    return point.elevation


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """Return the great-circle distance in meters between ``a`` and ``b``."""
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    dphi = math.radians(b.lat - a.lat)
    dl = math.radians(b.lon - a.lon)
    h = (
        math.sin(dphi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dl / 2) ** 2
    )
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def haversine_m_array(
    lat1: np.ndarray, lon1: np.ndarray, lat2: np.ndarray, lon2: np.ndarray
) -> np.ndarray:
    """Vectorised :func:`haversine_m` over broadcastable arrays of degrees."""
    phi1 = np.radians(lat1)
    phi2 = np.radians(lat2)
    dphi = np.radians(lat2 - lat1)
    dl = np.radians(lon2 - lon1)
    h = np.sin(dphi / 2) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(dl / 2) ** 2
    h = np.clip(h, 0.0, 1.0)
    return 2 * EARTH_RADIUS_M * np.arctan2(np.sqrt(h), np.sqrt(1 - h))


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def coerce_point(value: Any) -> GeoPoint:
    """Return ``value`` as a :class:`GeoPoint`.

    Accepts a ``GeoPoint``, any object with a ``point`` attribute holding one
    (such as a waypoint), a mapping with ``lat`` and ``lng``/``lon`` keys, or a
    ``(lat, lon)`` pair. Raises :class:`InvalidInputError` when coordinates
    are missing.
    """
    if isinstance(value, GeoPoint):
        return value
    inner = getattr(value, "point", None)
    if isinstance(inner, GeoPoint):
        return inner
    lat = lon = elevation = None
    if isinstance(value, Mapping):
        lat = value.get("lat")
        lon = value.get("lng", value.get("lon"))
        elevation = value.get("elevation")
    elif isinstance(value, (list, tuple)) and len(value) >= 2:
        lat, lon = value[0], value[1]
        elevation = value[2] if len(value) > 2 else None
    if not (_is_number(lat) and _is_number(lon)):
        raise InvalidInputError(f"point lacks coordinates: {value!r}")
    if elevation is not None and not _is_number(elevation):
        elevation = None
    return GeoPoint(lat=float(lat), lon=float(lon), elevation=elevation)
