"""Stitching ordered segment lists into one coordinate sequence."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .geo_utils import GeoPoint, haversine_m
from .segment_store import Segment, SegmentStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Leg:
    """One segment of an ordered route.

    ``position`` is the index in the caller's segment list and ``gap_m`` the
    distance from the previous leg's last point to this leg's first point
    (``None`` for the first leg).
    """

    position: int
    name: str
    reversed: bool
    gap_m: Optional[float] = None


@dataclass
class OrderedRoute:
    coordinates: List[GeoPoint] = field(default_factory=list)
    legs: List[Leg] = field(default_factory=list)

    @property
    def last_point(self) -> Optional[GeoPoint]:
        return self.coordinates[-1] if self.coordinates else None


@dataclass(frozen=True)
class ContinuityResult:
    is_continuous: bool
    broken_index: Optional[int] = None


def _first_is_reversed(first: Segment, second: Segment) -> bool:
    # Order matters: ties resolve to the earliest combination.
    distances = [
        haversine_m(first.end, second.start),
        haversine_m(first.end, second.end),
        haversine_m(first.start, second.start),
        haversine_m(first.start, second.end),
    ]
    return distances.index(min(distances)) >= 2


class CoordinateOrderer:
    def __init__(self, store: SegmentStore, *, connection_threshold_m: float = 50.0):
        self.store = store
        self.connection_threshold_m = connection_threshold_m

    def order(self, names: Sequence[str]) -> OrderedRoute:
        """Orient and concatenate the coordinates of ``names``.

        The first segment faces whichever end of the second segment is
        nearest; each later segment is reversed when its end is strictly
        closer to the running last point than its start. Joins within the
        connection threshold drop the duplicated first vertex, wider joins
        keep every vertex so the gap stays visible.
        """
        known = []
        for pos, name in enumerate(names):
            seg = self.store.get(name)
            if seg is None:
                logger.warning("Ignoring unknown segment %r at position %d", name, pos)
                continue
            known.append((pos, seg))

        route = OrderedRoute()
        for i, (pos, seg) in enumerate(known):
            if i == 0:
                rev = len(known) > 1 and _first_is_reversed(seg, known[1][1])
                route.coordinates.extend(seg.coords_oriented(rev))
                route.legs.append(Leg(pos, seg.name, rev))
                continue

            last = route.coordinates[-1]
            rev = haversine_m(last, seg.end) < haversine_m(last, seg.start)
            coords = seg.coords_oriented(rev)
            gap = haversine_m(last, coords[0])
            if gap <= self.connection_threshold_m:
                route.coordinates.extend(coords[1:])
            else:
                route.coordinates.extend(coords)
            route.legs.append(Leg(pos, seg.name, rev, gap))
        return route


def check_continuity(route: OrderedRoute, tolerance_m: float = 100.0) -> ContinuityResult:
    """Report the first join of ``route`` wider than ``tolerance_m``.

    ``broken_index`` is the list position of the segment before the gap.
    """
    for prev, leg in zip(route.legs[:-1], route.legs[1:]):
        if leg.gap_m is not None and leg.gap_m > tolerance_m:
            return ContinuityResult(False, prev.position)
    return ContinuityResult(True)
