from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import networkx as nx

from .geo_utils import GeoPoint
from .graph_utils import ConnectivityGraphs, End, EndpointNode, nearest_end

logger = logging.getLogger(__name__)


@dataclass
class PathResult:
    """Ordered segment names of a path.

    ``fallback`` is set when source and target are disconnected and the
    segments are a direct jump rather than a path through the network.
    """

    segments: List[str] = field(default_factory=list)
    fallback: bool = False


class ShortestPathSearch:
    """Dijkstra over the endpoint graph of :class:`ConnectivityGraphs`."""

    def __init__(self, graphs: ConnectivityGraphs):
        self.graphs = graphs

    def _dijkstra(
        self, source: EndpointNode, target: EndpointNode
    ) -> Tuple[float, List[EndpointNode]]:
        try:
            return nx.single_source_dijkstra(
                self.graphs.endpoint_graph, source, target, weight="weight"
            )
        except (nx.NetworkXNoPath, nx.NodeNotFound):
            return math.inf, []

    def nodes_to_segments(self, nodes: Sequence[EndpointNode]) -> List[str]:
        """Convert a node path into the segments it traverses.

        A segment is emitted whenever two consecutive nodes are the two ends
        of the same segment; consecutive repeats are collapsed.
        """
        segments: List[str] = []
        for a, b in zip(nodes[:-1], nodes[1:]):
            if a.segment_index == b.segment_index and a.end != b.end:
                name = self.graphs.segment_name(a)
                if not segments or segments[-1] != name:
                    segments.append(name)
        return segments

    def shortest_segment_path(
        self,
        start_segment: str,
        end_segment: str,
        *,
        route_endpoint: Optional[GeoPoint] = None,
        target_point: Optional[GeoPoint] = None,
    ) -> PathResult:
        """Return the segments between ``start_segment`` and ``end_segment``.

        The search leaves ``start_segment`` from its end nearest
        ``route_endpoint`` (its geometric end when not given) and arrives at
        the end of ``end_segment`` nearest ``target_point``. Without a target
        point both ends are tried and the cheaper path wins. Neither
        segment is guaranteed to appear in the result: the start is only
        included when the path crosses it, the end only when arriving
        through it.
        """
        if start_segment == end_segment:
            return PathResult([start_segment])

        store = self.graphs.store
        start_seg = store[start_segment]
        end_seg = store[end_segment]

        start_end = (
            nearest_end(start_seg, route_endpoint)
            if route_endpoint is not None
            else End.END
        )
        source = EndpointNode(start_seg.index, start_end)

        if target_point is not None:
            targets = [EndpointNode(end_seg.index, nearest_end(end_seg, target_point))]
        else:
            targets = [EndpointNode(end_seg.index, end) for end in End]

        best_cost, best_nodes = math.inf, []
        for target in targets:
            cost, nodes = self._dijkstra(source, target)
            if cost < best_cost:
                best_cost, best_nodes = cost, nodes

        if not best_nodes:
            logger.warning(
                "No path between %r and %r; using a direct jump", start_segment, end_segment
            )
            return PathResult([start_segment, end_segment], fallback=True)

        logger.debug(
            "Path %r -> %r: %d nodes, %.1f m", start_segment, end_segment, len(best_nodes), best_cost
        )
        return PathResult(self.nodes_to_segments(best_nodes))
