from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from .geo_utils import GeoPoint, haversine_m
from .graph_utils import ConnectivityGraphs
from .ordering import CoordinateOrderer
from .pathfinding import PathResult, ShortestPathSearch

logger = logging.getLogger(__name__)


@dataclass
class Waypoint:
    point: GeoPoint
    id: Any
    segment_name: Optional[str] = None


@dataclass
class Extension:
    segments: List[str] = field(default_factory=list)
    fallback: bool = False


class RouteExtender:
    """Decide which segments to append so a route reaches a new waypoint."""

    def __init__(
        self,
        graphs: ConnectivityGraphs,
        orderer: CoordinateOrderer,
        pathfinder: ShortestPathSearch,
        *,
        connection_threshold_m: float = 50.0,
    ):
        self.graphs = graphs
        self.store = graphs.store
        self.orderer = orderer
        self.pathfinder = pathfinder
        self.connection_threshold_m = connection_threshold_m

    def route_endpoint(self, selection: Sequence[str]) -> Optional[GeoPoint]:
        return self.orderer.order(selection).last_point

    def extend(self, selection: Sequence[str], waypoint: Waypoint) -> Extension:
        """Return the segments to append to ``selection`` to reach ``waypoint``.

        Raises :class:`~trail_router.errors.UnknownSegmentError` when the
        waypoint's segment is not loaded.
        """
        target = waypoint.segment_name
        if not target:
            return Extension()
        target_seg = self.store[target]
        if not selection:
            return Extension([target])

        last = selection[-1]
        if last == target:
            return Extension()

        endpoint = self.route_endpoint(selection)
        if endpoint is None:
            return Extension([target])

        if self.graphs.are_adjacent(last, target):
            # The first segment's direction is not fixed until a third
            # waypoint arrives, so the second one always hooks on directly.
            if len(selection) == 1:
                return Extension([target])
            gap = min(
                haversine_m(endpoint, target_seg.start),
                haversine_m(endpoint, target_seg.end),
            )
            if gap <= self.connection_threshold_m:
                return Extension([target])
            logger.debug("Backtracking across %r to reach %r", last, target)
            return Extension([last, target])

        result: PathResult = self.pathfinder.shortest_segment_path(
            last, target, route_endpoint=endpoint, target_point=waypoint.point
        )
        path = list(result.segments)
        if path and path[-1] != target:
            path.append(target)
        if not path:
            return Extension([target], result.fallback)
        if len(selection) == 1 and path[0] == selection[0]:
            path.pop(0)
        return Extension(path, result.fallback)
