"""Helpers for building GPX fixtures."""

from typing import List, Optional, Sequence

from gpx_analyzer.geometry import CoordinateProjector, Position

GPX_HEADER = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<gpx version="1.1" creator="tests" xmlns="http://www.topografix.com/GPX/1/1">\n'
    "<trk><name>test</name><trkseg>\n"
)
GPX_FOOTER = "</trkseg></trk>\n</gpx>\n"

ORIGIN = Position(latitude=0.0, longitude=0.0)


def trkpt(latitude, longitude, time: Optional[str] = None) -> str:
    """Render one track point; coordinates are written with repr() to keep precision."""
    lat = latitude if isinstance(latitude, str) else repr(float(latitude))
    lon = longitude if isinstance(longitude, str) else repr(float(longitude))
    body = f"<ele>10.0</ele><time>{time}</time>" if time is not None else "<ele>10.0</ele>"
    return f'<trkpt lat="{lat}" lon="{lon}">{body}</trkpt>\n'


def gpx_document(points: Sequence[str]) -> str:
    return GPX_HEADER + "".join(points) + GPX_FOOTER


def equator_points(
    distances: Sequence[float], times: Optional[Sequence[Optional[str]]] = None
) -> List[str]:
    """
    Track points due east of the origin at the given planar distances.

    All points lie on one ray from the reference, so no segment ever passes
    the reference and each point's distance is its own straight-line distance.
    """
    projector = CoordinateProjector(ORIGIN)
    times = times or [None] * len(distances)
    return [
        trkpt(0.0, distance / projector.lon_factor, time)
        for distance, time in zip(distances, times)
    ]


def distances_of(results) -> List[float]:
    return [result.distance for result in results]
