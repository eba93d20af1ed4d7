import pytest

from trail_router.geo_utils import GeoPoint
from trail_router.graph_utils import (
    ConnectivityGraphs,
    End,
    EndpointNode,
    find_junctions,
    nearest_end,
)
from trail_router.segment_store import SegmentStore


def test_graph_shape(store):
    graphs = ConnectivityGraphs(store)
    g = graphs.endpoint_graph
    assert g.number_of_nodes() == 2 * len(store)
    junctions = [e for e in g.edges(data=True) if e[2]["kind"] == "junction"]
    traverses = [e for e in g.edges(data=True) if e[2]["kind"] == "traverse"]
    assert len(junctions) == 6
    assert len(traverses) == 7
    assert all(d["weight"] == 0 for _, _, d in junctions)


def test_traverse_weight_is_length(store):
    graphs = ConnectivityGraphs(store)
    a = EndpointNode(store["A"].index, End.START)
    b = EndpointNode(store["A"].index, End.END)
    data = graphs.endpoint_graph.edges[a, b]
    assert data["segment"] == "A"
    assert data["weight"] == pytest.approx(store.metrics("A").length_m)


def test_adjacency(store):
    graphs = ConnectivityGraphs(store)
    assert graphs.neighbors("A") == ["B", "F", "H"]
    assert graphs.are_adjacent("B", "C")
    assert graphs.are_adjacent("C", "B")
    assert not graphs.are_adjacent("A", "C")
    assert graphs.neighbors("E") == []
    assert graphs.neighbors("missing") == []


def test_threshold_is_inclusive_and_configurable(collection_factory):
    # Endpoints ~80.5 m apart.
    store = SegmentStore.from_geojson(
        collection_factory(
            {
                "P": [[-116.200, 43.6], [-116.190, 43.6]],
                "Q": [[-116.189, 43.6], [-116.180, 43.6]],
            }
        )
    )
    assert not ConnectivityGraphs(store).are_adjacent("P", "Q")
    assert ConnectivityGraphs(store, connection_threshold_m=81).are_adjacent("P", "Q")


def test_find_junctions_skips_own_ends(collection_factory):
    # A loop whose ends meet must not be joined to itself.
    store = SegmentStore.from_geojson(
        collection_factory(
            {"loop": [[-116.2, 43.6], [-116.19, 43.6], [-116.19, 43.61], [-116.2, 43.6]]}
        )
    )
    assert find_junctions(list(store), 50.0) == []


def test_nearest_end(store, collection_factory):
    seg = store["A"]
    assert nearest_end(seg, GeoPoint(43.6, -116.199)) is End.START
    assert nearest_end(seg, GeoPoint(43.6, -116.191)) is End.END
    loop = SegmentStore.from_geojson(
        collection_factory({"loop": [[-116.2, 43.6], [-116.19, 43.61], [-116.2, 43.6]]})
    )["loop"]
    # Both ends coincide, so the start wins.
    assert nearest_end(loop, GeoPoint(43.7, -116.0)) is End.START


def test_segment_name(store):
    graphs = ConnectivityGraphs(store)
    assert graphs.segment_name(EndpointNode(store["C"].index, End.END)) == "C"
