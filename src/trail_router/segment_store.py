from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

import numpy as np

from .config import RouterConfig
from .errors import InvalidInputError, UnknownSegmentError
from .geo_utils import GeoPoint
from .metrics import SegmentMetrics, compute_segment_metrics

logger = logging.getLogger(__name__)

DEFAULT_SEGMENT_NAME = "Unnamed Route"


@dataclass(frozen=True)
class Segment:
    index: int
    name: str
    coords: Tuple[GeoPoint, ...]
    properties: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @property
    def start(self) -> GeoPoint:
        return self.coords[0]

    @property
    def end(self) -> GeoPoint:
        return self.coords[-1]

    def coords_oriented(self, reversed_: bool) -> List[GeoPoint]:
        return list(reversed(self.coords)) if reversed_ else list(self.coords)


def load_geojson(path: str) -> Dict[str, Any]:
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise InvalidInputError(f"{path}: expected a GeoJSON object")
    return data


def load_metadata(path: str) -> Dict[str, Any]:
    """Read the per-segment metadata mapping keyed by segment name."""
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise InvalidInputError(f"{path}: segment metadata must be a JSON object")
    return data


def _parse_coords(raw: Any) -> Optional[Tuple[GeoPoint, ...]]:
    if not isinstance(raw, list) or len(raw) < 2:
        return None
    points: List[GeoPoint] = []
    for pt in raw:
        if not (
            isinstance(pt, (list, tuple))
            and len(pt) >= 2
            and all(
                isinstance(c, (int, float))
                and not isinstance(c, bool)
                and math.isfinite(c)
                for c in pt[:3]
            )
        ):
            return None
        elevation = float(pt[2]) if len(pt) > 2 else None
        points.append(GeoPoint(lat=float(pt[1]), lon=float(pt[0]), elevation=elevation))
    return tuple(points)


class SegmentStore:
    """Immutable collection of named polylines and their precomputed metrics.

    Segments keep the order in which they were loaded; ``Segment.index`` is
    the position in that order and is what the endpoint graph refers to.
    """

    def __init__(self, segments: List[Segment], metrics: Dict[str, SegmentMetrics]):
        self._segments = segments
        self._by_name = {s.name: s for s in segments}
        self._metrics = metrics
        # Per-segment coordinate arrays for vectorised snapping.
        self.lat_arrays = [np.array([p.lat for p in s.coords]) for s in segments]
        self.lon_arrays = [np.array([p.lon for p in s.coords]) for s in segments]

    @classmethod
    def from_geojson(
        cls,
        geojson: Any,
        metadata: Optional[Mapping[str, Any]] = None,
        config: Optional[RouterConfig] = None,
    ) -> "SegmentStore":
        config = config or RouterConfig()
        metadata = metadata or {}
        if not isinstance(geojson, Mapping) or not isinstance(
            geojson.get("features"), list
        ):
            raise InvalidInputError("Invalid geojson data: missing features")

        parsed: Dict[str, Tuple[Tuple[GeoPoint, ...], Dict[str, Any]]] = {}
        for feature in geojson["features"]:
            if not isinstance(feature, Mapping):
                continue
            geom = feature.get("geometry") or {}
            if geom.get("type") != "LineString":
                logger.debug("Skipping non-LineString feature")
                continue
            props = dict(feature.get("properties") or {})
            name = props.get("name") or DEFAULT_SEGMENT_NAME
            coords = _parse_coords(geom.get("coordinates"))
            if coords is None:
                logger.warning("Skipping segment %r: invalid coordinates", name)
                continue
            if name in parsed:
                logger.warning("Duplicate segment name %r; keeping the later one", name)
            props.update(metadata.get(name) or {})
            parsed[name] = (coords, props)

        if not parsed:
            raise InvalidInputError("No valid segments found")

        segments: List[Segment] = []
        metrics: Dict[str, SegmentMetrics] = {}
        for idx, (name, (coords, props)) in enumerate(parsed.items()):
            segments.append(Segment(idx, name, coords, MappingProxyType(props)))
            metrics[name] = compute_segment_metrics(
                coords,
                window_m=config.smoothing_window_m,
                min_change_m=config.min_elevation_change_m,
            )
        logger.info("Loaded %d segments", len(segments))
        return cls(segments, metrics)

    def __len__(self) -> int:
        return len(self._segments)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self._segments)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __getitem__(self, name: str) -> Segment:
        try:
            return self._by_name[name]
        except KeyError:
            raise UnknownSegmentError(name) from None

    def get(self, name: str) -> Optional[Segment]:
        return self._by_name.get(name)

    def by_index(self, index: int) -> Segment:
        return self._segments[index]

    def metrics(self, name: str) -> SegmentMetrics:
        try:
            return self._metrics[name]
        except KeyError:
            raise UnknownSegmentError(name) from None

    def ids_for_names(self, names: Iterable[str]) -> List[int]:
        """Return the metadata ``id`` of each segment, skipping segments without one."""
        ids: List[int] = []
        for name in names:
            seg_id = self[name].properties.get("id")
            if seg_id is None:
                logger.warning("Segment %r has no id", name)
                continue
            ids.append(int(seg_id))
        return ids

    def names_for_ids(self, ids: Iterable[int]) -> List[str]:
        """Map metadata ids back to names, expanding ``split`` lists in order."""
        by_id = {
            s.properties["id"]: s for s in self._segments if "id" in s.properties
        }
        names: List[str] = []
        for seg_id in ids:
            seg = by_id.get(seg_id)
            if seg is None:
                logger.warning("No segment with id %s", seg_id)
                continue
            split = seg.properties.get("split")
            if isinstance(split, list):
                names.extend(by_id[i].name for i in split if i in by_id)
            else:
                names.append(seg.name)
        return names
