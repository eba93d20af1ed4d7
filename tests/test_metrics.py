import numpy as np
import pytest

from trail_router import metrics
from trail_router.geo_utils import GeoPoint, synthetic_elevation


def line(lat_step, elevations, lon=-116.2):
    return [
        GeoPoint(lat=43.6 + i * lat_step, lon=lon, elevation=e)
        for i, e in enumerate(elevations)
    ]


def test_distance_window_smoothing():
    values = np.array([1.0, 2.0, 3.0, 4.0])
    cumulative = np.array([0.0, 50.0, 100.0, 150.0])
    res = metrics.distance_window_smoothing(values, cumulative, 50.0)
    assert res.tolist() == pytest.approx([1.5, 2.0, 3.0, 3.5])
    assert metrics.distance_window_smoothing(np.zeros(0), np.zeros(0), 50.0).size == 0


def test_smoothing_keeps_endpoints():
    # ~55.6 m spacing puts all three points inside the middle window.
    smoothed = metrics.smooth_elevations(line(0.0005, [0.0, 30.0, 0.0]), 100.0)
    assert [p.elevation for p in smoothed] == pytest.approx([0.0, 10.0, 0.0])


def test_smoothing_synthesizes_missing_elevation():
    coords = [GeoPoint(43.6, -116.2), GeoPoint(43.61, -116.2)]
    smoothed = metrics.smooth_elevations(coords)
    assert smoothed[0].elevation == pytest.approx(synthetic_elevation(43.6, -116.2))
    assert smoothed[1].elevation == pytest.approx(synthetic_elevation(43.61, -116.2))


def test_elevation_change_ignores_small_deltas():
    coords = line(0.002, [100.0, 150.0, 149.5, 120.0])
    m = metrics.compute_segment_metrics(coords)
    assert m.forward.gain == pytest.approx(50.0)
    assert m.forward.loss == pytest.approx(29.5)
    assert m.reverse == metrics.ElevationChange(gain=m.forward.loss, loss=m.forward.gain)
    assert m.elevation(True) is m.reverse


def test_smoothed_gain_over_window():
    m = metrics.compute_segment_metrics(line(0.0005, [0.0, 30.0, 0.0]))
    assert m.forward.gain == pytest.approx(10.0)
    assert m.forward.loss == pytest.approx(10.0)


def test_length_and_endpoints():
    coords = line(0.001, [None, None, None])
    m = metrics.compute_segment_metrics(coords)
    assert m.length_m == pytest.approx(2 * 111.19, rel=1e-3)
    assert m.length_km == pytest.approx(m.length_m / 1000)
    assert m.start_point == coords[0]
    assert m.end_point == coords[-1]
    assert len(m.smoothed_coords) == 3


def test_flat_segment_has_no_change():
    m = metrics.compute_segment_metrics(line(0.001, [500.0] * 5))
    assert m.forward.gain == 0
    assert m.forward.loss == 0


def test_cumulative_distances():
    cum = metrics.cumulative_distances(line(0.001, [0, 0, 0]))
    assert cum[0] == 0
    assert np.all(np.diff(cum) > 0)
    assert metrics.cumulative_distances([]).size == 0
