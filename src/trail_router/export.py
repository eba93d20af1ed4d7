from typing import Optional, Sequence

import gpxpy.gpx

from .geo_utils import GeoPoint, resolved_elevation


def route_to_gpx(
    coords: Sequence[GeoPoint],
    name: str = "Planned route",
    creator: Optional[str] = "trail-router",
) -> str:
    """Return a GPX 1.1 document with ``coords`` as a single-segment track.

    Elevations are rounded to whole meters and synthesized when missing.
    """
    gpx = gpxpy.gpx.GPX()
    if creator:
        gpx.creator = creator
    track = gpxpy.gpx.GPXTrack(name=name)
    gpx.tracks.append(track)
    segment = gpxpy.gpx.GPXTrackSegment()
    track.segments.append(segment)
    for pt in coords:
        segment.points.append(
            gpxpy.gpx.GPXTrackPoint(
                latitude=pt.lat,
                longitude=pt.lon,
                elevation=round(resolved_elevation(pt)),
            )
        )
    return gpx.to_xml(version="1.1")


def write_gpx(path: str, coords: Sequence[GeoPoint], name: str = "Planned route") -> None:
    """Write :func:`route_to_gpx` output to ``path``; nothing is written for an empty route."""
    if not coords:
        return
    with open(path, "w") as f:
        f.write(route_to_gpx(coords, name))
