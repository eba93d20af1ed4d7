import pytest

from trail_router.ordering import CoordinateOrderer, check_continuity
from trail_router.segment_store import SegmentStore


@pytest.fixture
def orderer(store):
    return CoordinateOrderer(store)


def test_joins_drop_shared_vertex(orderer):
    route = orderer.order(["A", "B"])
    assert len(route.coordinates) == 5
    assert [leg.reversed for leg in route.legs] == [False, False]
    assert route.legs[1].gap_m == pytest.approx(0)


def test_first_segment_faces_second(orderer):
    route = orderer.order(["A", "H"])
    assert route.legs[0].reversed
    assert route.coordinates[0].lon == pytest.approx(-116.19)
    assert route.last_point.lon == pytest.approx(-116.21)


def test_backtrack_reverses_repeat(orderer):
    route = orderer.order(["A", "B", "B", "F"])
    assert [leg.reversed for leg in route.legs] == [False, False, True, False]
    assert route.last_point.lat == pytest.approx(43.59)
    assert check_continuity(route).is_continuous


def test_single_segment_is_forward(orderer):
    route = orderer.order(["C"])
    assert not route.legs[0].reversed
    assert len(route.coordinates) == 3
    assert orderer.order([]).last_point is None


def test_unknown_names_are_skipped(orderer):
    route = orderer.order(["A", "missing", "B"])
    assert [leg.name for leg in route.legs] == ["A", "B"]
    assert [leg.position for leg in route.legs] == [0, 2]


def test_wide_join_keeps_vertices(segment_coords, collection_factory):
    coords = segment_coords
    coords["Q"] = [[-116.189, 43.6], [-116.185, 43.6], [-116.180, 43.6]]
    orderer = CoordinateOrderer(SegmentStore.from_geojson(collection_factory(coords)))
    route = orderer.order(["A", "Q"])
    # ~80.5 m gap: above the join threshold, within continuity tolerance.
    assert len(route.coordinates) == 6
    assert check_continuity(route).is_continuous
    assert not check_continuity(route, tolerance_m=50).is_continuous


def test_broken_index_points_before_gap(orderer):
    res = check_continuity(orderer.order(["A", "B", "E"]))
    assert not res.is_continuous
    assert res.broken_index == 1
