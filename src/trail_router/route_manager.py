"""Interactive route construction over a network of named trail segments.

:class:`RoutingEngine` owns the loaded segment network, the graphs derived
from it and the route being built. Every mutation returns the new ordered
list of segment names (the *selection*).
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from .config import RouterConfig
from .errors import InvalidInputError, RoutingError, UnknownSegmentError
from .extension import RouteExtender, Waypoint
from .geo_utils import GeoPoint, coerce_point
from .graph_utils import ConnectivityGraphs
from .metrics import SegmentMetrics
from .ordering import CoordinateOrderer, ContinuityResult, check_continuity
from .pathfinding import ShortestPathSearch
from .segment_store import SegmentStore
from .snapping import PointSnapper

logger = logging.getLogger(__name__)


@dataclass
class RouteInfo:
    points: List[Waypoint] = field(default_factory=list)
    segments: List[str] = field(default_factory=list)
    distance: float = 0.0
    elevation_gain: float = 0.0
    elevation_loss: float = 0.0
    ordered_coordinates: List[GeoPoint] = field(default_factory=list)
    is_approximate: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "points": [
                {
                    "id": wp.id,
                    "lat": wp.point.lat,
                    "lng": wp.point.lon,
                    "segmentName": wp.segment_name,
                }
                for wp in self.points
            ],
            "segments": list(self.segments),
            "distance": self.distance,
            "elevationGain": self.elevation_gain,
            "elevationLoss": self.elevation_loss,
            "isApproximate": self.is_approximate,
        }


@dataclass
class SegmentInfo:
    name: str
    coords: List[GeoPoint]
    properties: Mapping[str, Any]
    metrics: SegmentMetrics


def _input_id(value: Any) -> Any:
    if isinstance(value, Waypoint):
        return value.id
    if isinstance(value, Mapping):
        return value.get("id")
    return None


class RoutingEngine:
    """Builds a continuous route by snapping waypoints onto trail segments.

    Parameters
    ----------
    config:
        Distance tolerances; defaults to :class:`RouterConfig`.
    id_factory:
        Callable returning a fresh waypoint id. Defaults to a counter
        starting at 1.
    """

    def __init__(
        self,
        config: Optional[RouterConfig] = None,
        *,
        id_factory: Optional[Callable[[], Any]] = None,
    ):
        self.config = config or RouterConfig()
        self._new_id = id_factory or itertools.count(1).__next__
        self.store: Optional[SegmentStore] = None
        self.graphs: Optional[ConnectivityGraphs] = None
        self._points: List[Waypoint] = []
        self._selection: List[str] = []
        self._approximate = False

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def load(self, geojson: Any, metadata: Optional[Mapping[str, Any]] = None) -> None:
        """Load a GeoJSON FeatureCollection and build every derived structure."""
        cfg = self.config
        store = SegmentStore.from_geojson(geojson, metadata, cfg)
        graphs = ConnectivityGraphs(store, connection_threshold_m=cfg.connection_threshold_m)
        self.store = store
        self.graphs = graphs
        self.snapper = PointSnapper(store, threshold_m=cfg.snap_threshold_m)
        self.orderer = CoordinateOrderer(
            store, connection_threshold_m=cfg.connection_threshold_m
        )
        self.pathfinder = ShortestPathSearch(graphs)
        self.extender = RouteExtender(
            graphs,
            self.orderer,
            self.pathfinder,
            connection_threshold_m=cfg.connection_threshold_m,
        )
        self.clear_route()

    def _require_loaded(self) -> None:
        if self.store is None:
            raise RoutingError("No segment network loaded")

    # ------------------------------------------------------------------
    # Route state
    # ------------------------------------------------------------------
    @property
    def points(self) -> List[Waypoint]:
        return list(self._points)

    @property
    def selection(self) -> List[str]:
        return list(self._selection)

    def _extend_with(self, waypoint: Waypoint) -> None:
        try:
            ext = self.extender.extend(self._selection, waypoint)
        except UnknownSegmentError as e:
            logger.error("Waypoint %s skipped: %s", waypoint.id, e)
            return
        if ext.fallback:
            self._approximate = True
        self._selection.extend(ext.segments)

    def _recalculate(self) -> None:
        self._selection = []
        self._approximate = False
        for wp in self._points:
            self._extend_with(wp)

    def _snapped_waypoint(self, value: Any, point: GeoPoint) -> Waypoint:
        """Waypoint for ``point``; unsnappable points keep no segment."""
        snapped = self.snapper.snap(point)
        wp_id = _input_id(value)
        if wp_id is None:
            wp_id = self._new_id()
        if snapped is None:
            return Waypoint(point, wp_id)
        return Waypoint(snapped.point, wp_id, snapped.segment_name)

    def _valid_points(self, values: Iterable[Any]) -> List[tuple[Any, GeoPoint]]:
        valid = []
        for value in values:
            try:
                valid.append((value, coerce_point(value)))
            except InvalidInputError:
                logger.debug("Dropping invalid point %r", value)
        return valid

    def add_point(self, point: Any) -> List[str]:
        """Snap ``point`` and extend the route to it.

        Raises :class:`InvalidInputError` when the point has no coordinates.
        A point too far from every segment leaves the route unchanged.
        """
        self._require_loaded()
        snapped = self.snapper.snap(coerce_point(point))
        if snapped is None:
            return self.selection
        wp_id = _input_id(point)
        wp = Waypoint(
            snapped.point,
            self._new_id() if wp_id is None else wp_id,
            snapped.segment_name,
        )
        self._points.append(wp)
        self._extend_with(wp)
        return self.selection

    def remove_point(self, index: int) -> List[str]:
        if not 0 <= index < len(self._points):
            return self.selection
        del self._points[index]
        self._recalculate()
        return self.selection

    def clear_route(self) -> List[str]:
        self._points = []
        self._selection = []
        self._approximate = False
        return []

    def recalculate_route(self, points: Iterable[Any]) -> List[str]:
        """Re-snap ``points`` and rebuild the selection from scratch."""
        self._require_loaded()
        self._points = [
            self._snapped_waypoint(value, geo) for value, geo in self._valid_points(points)
        ]
        self._recalculate()
        return self.selection

    def restore_from_points(self, points: Iterable[Any]) -> List[str]:
        """Rebuild the route from saved points, as used by undo and redo.

        If the rebuilt selection is empty the previous selection is kept.
        """
        self._require_loaded()
        valid = self._valid_points(points)
        if not valid:
            return self.clear_route()

        previous = list(self._selection)
        self.clear_route()
        self._points = [self._snapped_waypoint(value, geo) for value, geo in valid]
        self._recalculate()
        if not self._selection and previous:
            logger.warning("Route recalculation failed; restoring previous segments")
            self._selection = previous
        return self.selection

    def update_internal_state(
        self, points: Sequence[Any], segments: Sequence[str]
    ) -> None:
        """Overwrite points and selection without recomputing anything."""
        restored: List[Waypoint] = []
        for value in points:
            if isinstance(value, Waypoint):
                restored.append(replace(value))
                continue
            seg = None
            if isinstance(value, Mapping):
                seg = value.get("segment_name", value.get("segmentName"))
            wp_id = _input_id(value)
            restored.append(
                Waypoint(coerce_point(value), self._new_id() if wp_id is None else wp_id, seg)
            )
        self._points = restored
        self._selection = list(segments)
        self._approximate = False

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def find_closest_segment(self, point: Any) -> Optional[str]:
        self._require_loaded()
        snapped = self.snapper.snap(coerce_point(point))
        return snapped.segment_name if snapped else None

    def _segment_for(self, value: Any, point: GeoPoint) -> Optional[str]:
        if isinstance(value, Waypoint) and value.segment_name:
            return value.segment_name
        snapped = self.snapper.snap(point)
        return snapped.segment_name if snapped else None

    def find_path_between_points(self, start: Any, end: Any) -> List[str]:
        """Shortest segment path from ``start`` to ``end``, ignoring the current route."""
        self._require_loaded()
        a, b = coerce_point(start), coerce_point(end)
        start_seg = self._segment_for(start, a)
        end_seg = self._segment_for(end, b)
        if not start_seg or not end_seg:
            return []
        result = self.pathfinder.shortest_segment_path(
            start_seg, end_seg, route_endpoint=a, target_point=b
        )
        path = list(result.segments)
        if not path or path[0] != start_seg:
            path.insert(0, start_seg)
        if path[-1] != end_seg:
            path.append(end_seg)
        return path

    def check_segments_continuity(self, segments: Sequence[str]) -> ContinuityResult:
        self._require_loaded()
        if len(segments) <= 1:
            return ContinuityResult(True)
        return check_continuity(
            self.orderer.order(segments), self.config.continuity_tolerance_m
        )

    def get_route_info(self) -> RouteInfo:
        if self.store is None or not self._selection:
            return RouteInfo(points=self.points, segments=self.selection)
        ordered = self.orderer.order(self._selection)
        distance = gain = loss = 0.0
        for leg in ordered.legs:
            metrics = self.store.metrics(leg.name)
            change = metrics.elevation(leg.reversed)
            distance += metrics.length_m
            gain += change.gain
            loss += change.loss
        return RouteInfo(
            points=self.points,
            segments=self.selection,
            distance=distance,
            elevation_gain=gain,
            elevation_loss=loss,
            ordered_coordinates=ordered.coordinates,
            is_approximate=self._approximate,
        )

    def get_segment_info(self, name: str) -> Optional[SegmentInfo]:
        self._require_loaded()
        seg = self.store.get(name)
        if seg is None:
            return None
        return SegmentInfo(seg.name, list(seg.coords), seg.properties, self.store.metrics(name))

    def hover_segments(self, point: Any, threshold_m: float = 100.0) -> List[str]:
        """Names of every segment passing within ``threshold_m`` of ``point``."""
        self._require_loaded()
        try:
            geo = coerce_point(point)
        except InvalidInputError:
            return []
        return self.snapper.segments_near(geo, threshold_m)
