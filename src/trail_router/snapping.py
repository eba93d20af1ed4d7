from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from .geo_utils import GeoPoint, haversine_m_array
from .segment_store import SegmentStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SnapResult:
    point: GeoPoint
    segment_name: str
    distance_m: float


class PointSnapper:
    """Project points onto the nearest segment of a :class:`SegmentStore`."""

    def __init__(self, store: SegmentStore, *, threshold_m: float = 100.0):
        self.store = store
        self.threshold_m = threshold_m

    def _project(self, point: GeoPoint, index: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Clamped planar projections of ``point`` onto every piece of one segment.

        Returns the projected latitudes, longitudes and their haversine
        distances from ``point``.
        """
        lats = self.store.lat_arrays[index]
        lons = self.store.lon_arrays[index]
        slat, slon = lats[:-1], lons[:-1]
        c = lons[1:] - slon
        d = lats[1:] - slat
        len_sq = c * c + d * d
        dot = (point.lon - slon) * c + (point.lat - slat) * d
        param = np.divide(dot, len_sq, out=np.zeros_like(dot), where=len_sq != 0)
        param = np.clip(param, 0.0, 1.0)
        proj_lat = slat + param * d
        proj_lon = slon + param * c
        dists = haversine_m_array(point.lat, point.lon, proj_lat, proj_lon)
        return proj_lat, proj_lon, dists

    def snap(self, point: GeoPoint) -> Optional[SnapResult]:
        """Return the closest point on any segment, or ``None`` beyond the threshold."""
        best: Optional[SnapResult] = None
        best_dist = math.inf
        for seg in self.store:
            proj_lat, proj_lon, dists = self._project(point, seg.index)
            k = int(np.argmin(dists))
            if dists[k] < best_dist:
                best_dist = float(dists[k])
                best = SnapResult(
                    GeoPoint(lat=float(proj_lat[k]), lon=float(proj_lon[k])),
                    seg.name,
                    best_dist,
                )
        if best is None or best.distance_m > self.threshold_m:
            logger.debug("No segment within %.0f m of %s", self.threshold_m, point)
            return None
        return best

    def segments_near(self, point: GeoPoint, threshold_m: Optional[float] = None) -> List[str]:
        limit = self.threshold_m if threshold_m is None else threshold_m
        return [
            seg.name
            for seg in self.store
            if float(self._project(point, seg.index)[2].min()) <= limit
        ]
