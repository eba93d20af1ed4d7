import itertools

import pytest

from trail_router import RoutingEngine
from trail_router.segment_store import SegmentStore

# A small network along latitude 43.6 (1e-3 deg lon ~= 80.5 m, 1e-3 deg lat ~= 111.2 m).
#
#   G      H        A        B        C
#   |------+--------+--------+--------|
#   |               |                 |
#                   F
#
# E runs north from 500 m above A's start and touches nothing.
SEGMENT_COORDS = {
    "A": [[-116.200, 43.600, 800.0], [-116.195, 43.600, 820.0], [-116.190, 43.600, 840.0]],
    "B": [[-116.190, 43.600], [-116.185, 43.600], [-116.180, 43.600]],
    "C": [[-116.180, 43.600], [-116.180, 43.605], [-116.180, 43.610]],
    "F": [[-116.190, 43.600], [-116.190, 43.595], [-116.190, 43.590]],
    "H": [[-116.200, 43.600], [-116.205, 43.600], [-116.210, 43.600]],
    "G": [[-116.210, 43.600], [-116.210, 43.595], [-116.210, 43.590]],
    "E": [[-116.200, 43.6045], [-116.200, 43.6095], [-116.200, 43.6145]],
}

# Click locations, each ~20 m off its segment and nearer one of its ends.
CLICKS = {
    "A": {"lat": 43.6002, "lng": -116.1935},
    "B": {"lat": 43.6002, "lng": -116.1835},
    "C": {"lat": 43.603, "lng": -116.1802},
    "F": {"lat": 43.597, "lng": -116.1902},
    "H": {"lat": 43.6002, "lng": -116.2065},
    "G": {"lat": 43.597, "lng": -116.2102},
    "E": {"lat": 43.610, "lng": -116.2002},
}

FAR_AWAY = {"lat": 43.700, "lng": -116.000}


def make_feature(name, coords, **props):
    return {
        "type": "Feature",
        "properties": {"name": name, **props},
        "geometry": {"type": "LineString", "coordinates": coords},
    }


def make_collection(coords_by_name):
    return {
        "type": "FeatureCollection",
        "features": [make_feature(n, c) for n, c in coords_by_name.items()],
    }


@pytest.fixture
def segment_coords():
    return {name: [list(pt) for pt in coords] for name, coords in SEGMENT_COORDS.items()}


@pytest.fixture
def feature_factory():
    return make_feature


@pytest.fixture
def collection_factory():
    return make_collection


@pytest.fixture
def network_geojson():
    return make_collection(SEGMENT_COORDS)


@pytest.fixture
def metadata():
    return {
        "A": {"id": 1, "difficulty": "easy"},
        "B": {"id": 2},
        "C": {"id": 3},
    }


@pytest.fixture
def store(network_geojson):
    return SegmentStore.from_geojson(network_geojson)


@pytest.fixture
def engine(network_geojson, metadata):
    eng = RoutingEngine(id_factory=itertools.count(1).__next__)
    eng.load(network_geojson, metadata)
    return eng


@pytest.fixture
def clicks():
    return dict(CLICKS)


@pytest.fixture
def far_away():
    return dict(FAR_AWAY)
