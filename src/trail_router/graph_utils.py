from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import List, NamedTuple

import networkx as nx
import numpy as np
from scipy.spatial import cKDTree

from .geo_utils import EARTH_RADIUS_M, GeoPoint, haversine_m
from .segment_store import Segment, SegmentStore

logger = logging.getLogger(__name__)


class End(enum.IntEnum):
    START = 0
    END = 1


class EndpointNode(NamedTuple):
    segment_index: int
    end: End


@dataclass(frozen=True)
class Junction:
    """Two endpoints of different segments lying within the connection threshold."""

    a: EndpointNode
    b: EndpointNode
    distance_m: float


def endpoint_coord(segment: Segment, end: End) -> GeoPoint:
    return segment.start if end is End.START else segment.end


def nearest_end(segment: Segment, point: GeoPoint) -> End:
    """Return the end of ``segment`` nearest ``point``; ties go to the start."""
    d_start = haversine_m(point, segment.start)
    d_end = haversine_m(point, segment.end)
    return End.START if d_start <= d_end else End.END


def _unit_sphere_xyz(points: List[GeoPoint]) -> np.ndarray:
    lat = np.radians([p.lat for p in points])
    lon = np.radians([p.lon for p in points])
    return EARTH_RADIUS_M * np.column_stack(
        (np.cos(lat) * np.cos(lon), np.cos(lat) * np.sin(lon), np.sin(lat))
    )


def find_junctions(segments: List[Segment], threshold_m: float) -> List[Junction]:
    """Return every endpoint pair of distinct segments within ``threshold_m``.

    Candidates come from a KD-tree over earth-centred coordinates. The chord
    between two points is never longer than the arc, so the tree query misses
    nothing; each candidate is then confirmed with the haversine distance.
    """
    nodes: List[EndpointNode] = []
    coords: List[GeoPoint] = []
    for seg in segments:
        for end in End:
            nodes.append(EndpointNode(seg.index, end))
            coords.append(endpoint_coord(seg, end))
    if len(coords) < 2:
        return []

    tree = cKDTree(_unit_sphere_xyz(coords))
    junctions: List[Junction] = []
    for i, j in sorted(tree.query_pairs(r=threshold_m)):
        a, b = nodes[i], nodes[j]
        if a.segment_index == b.segment_index:
            continue
        dist = haversine_m(coords[i], coords[j])
        if dist <= threshold_m:
            junctions.append(Junction(a, b, dist))
    return junctions


class ConnectivityGraphs:
    """Segment adjacency and endpoint graphs built once from a store.

    ``adjacency`` has one node per segment name and an edge between segments
    that touch. ``endpoint_graph`` has two :class:`EndpointNode` per segment
    joined by a ``traverse`` edge weighted by the segment length, plus
    zero-weight ``junction`` edges between touching endpoints.
    """

    def __init__(self, store: SegmentStore, *, connection_threshold_m: float = 50.0):
        self.store = store
        self.connection_threshold_m = connection_threshold_m
        self.adjacency = nx.Graph()
        self.endpoint_graph = nx.Graph()
        self._build()

    def _build(self) -> None:
        for seg in self.store:
            self.adjacency.add_node(seg.name)
            length = self.store.metrics(seg.name).length_m
            self.endpoint_graph.add_edge(
                EndpointNode(seg.index, End.START),
                EndpointNode(seg.index, End.END),
                weight=length,
                kind="traverse",
                segment=seg.name,
            )

        junctions = find_junctions(list(self.store), self.connection_threshold_m)
        for j in junctions:
            self.endpoint_graph.add_edge(j.a, j.b, weight=0.0, kind="junction")
            self.adjacency.add_edge(
                self.store.by_index(j.a.segment_index).name,
                self.store.by_index(j.b.segment_index).name,
            )
        logger.info(
            "Built endpoint graph: %d nodes, %d junctions, %d adjacent segment pairs",
            self.endpoint_graph.number_of_nodes(),
            len(junctions),
            self.adjacency.number_of_edges(),
        )

    def are_adjacent(self, a: str, b: str) -> bool:
        return self.adjacency.has_edge(a, b)

    def neighbors(self, name: str) -> List[str]:
        if name not in self.adjacency:
            return []
        return sorted(self.adjacency.neighbors(name))

    def segment_name(self, node: EndpointNode) -> str:
        return self.store.by_index(node.segment_index).name
