from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from .geo_utils import GeoPoint, haversine_m_array, resolved_elevation

DEFAULT_SMOOTHING_WINDOW_M = 100.0
DEFAULT_MIN_ELEVATION_CHANGE_M = 1.0


@dataclass(frozen=True)
class ElevationChange:
    gain: float
    loss: float

    def swapped(self) -> "ElevationChange":
        return ElevationChange(gain=self.loss, loss=self.gain)


@dataclass
class SegmentMetrics:
    """Values derived once per segment at load time."""

    length_m: float
    forward: ElevationChange
    reverse: ElevationChange
    start_point: GeoPoint
    end_point: GeoPoint
    smoothed_coords: List[GeoPoint] = field(repr=False)

    @property
    def length_km(self) -> float:
        return self.length_m / 1000.0

    def elevation(self, reversed_: bool) -> ElevationChange:
        return self.reverse if reversed_ else self.forward


def cumulative_distances(points: Sequence[GeoPoint]) -> np.ndarray:
    """Return the along-path distance in meters from the first point to each point."""
    if not points:
        return np.zeros(0)
    lats = np.array([p.lat for p in points], dtype=float)
    lons = np.array([p.lon for p in points], dtype=float)
    steps = haversine_m_array(lats[:-1], lons[:-1], lats[1:], lons[1:])
    return np.concatenate(([0.0], np.cumsum(steps)))


def distance_window_smoothing(
    values: np.ndarray, cumulative: np.ndarray, window_m: float
) -> np.ndarray:
    """Moving average whose window is every point within ``window_m`` along the path.

    ``cumulative`` must be non-decreasing, as returned by
    :func:`cumulative_distances`.
    """
    if len(values) == 0:
        return np.zeros(0)
    starts = np.searchsorted(cumulative, cumulative - window_m, side="left")
    ends = np.searchsorted(cumulative, cumulative + window_m, side="right")
    prefix = np.concatenate(([0.0], np.cumsum(values)))
    return (prefix[ends] - prefix[starts]) / (ends - starts)


def smooth_elevations(
    coords: Sequence[GeoPoint], window_m: float = DEFAULT_SMOOTHING_WINDOW_M
) -> List[GeoPoint]:
    """Return ``coords`` with distance-window smoothed elevations.

    Missing elevations are synthesized first. The first and last elevations
    are kept as they are.
    """
    if not coords:
        return []
    raw = np.array([resolved_elevation(p) for p in coords], dtype=float)
    smoothed = distance_window_smoothing(raw, cumulative_distances(coords), window_m)
    smoothed[0] = raw[0]
    smoothed[-1] = raw[-1]
    return [
        GeoPoint(lat=p.lat, lon=p.lon, elevation=float(e))
        for p, e in zip(coords, smoothed)
    ]


def elevation_change(
    smoothed: Sequence[GeoPoint],
    min_change_m: float = DEFAULT_MIN_ELEVATION_CHANGE_M,
) -> ElevationChange:
    """Sum climbs and descents in array order, ignoring deltas below ``min_change_m``."""
    elevs = np.array([p.elevation for p in smoothed], dtype=float)
    deltas = np.diff(elevs)
    deltas = deltas[np.abs(deltas) >= min_change_m]
    gain = float(deltas[deltas > 0].sum())
    loss = float(-deltas[deltas < 0].sum())
    return ElevationChange(gain=gain, loss=loss)


def compute_segment_metrics(
    coords: Sequence[GeoPoint],
    *,
    window_m: float = DEFAULT_SMOOTHING_WINDOW_M,
    min_change_m: float = DEFAULT_MIN_ELEVATION_CHANGE_M,
) -> SegmentMetrics:
    cumulative = cumulative_distances(coords)
    smoothed = smooth_elevations(coords, window_m)
    forward = elevation_change(smoothed, min_change_m)
    return SegmentMetrics(
        length_m=float(cumulative[-1]),
        forward=forward,
        reverse=forward.swapped(),
        start_point=coords[0],
        end_point=coords[-1],
        smoothed_coords=smoothed,
    )
