from typing import Iterable

from .source import TrackSegment, Waypoint
from .target import ABSOLUTE, CLAMP_TO_GROUND, DEFAULT_TESSELLATE, Coord, LineString, MultiGeometry, Point


def coord(waypoint: Waypoint) -> Coord:
    return Coord(x=waypoint.longitude, y=waypoint.latitude, z=waypoint.elevation)


def point(waypoint: Waypoint) -> Point:
    """A single waypoint; absolute altitude only when this point has an elevation."""
    return Point(
        coord=coord(waypoint),
        altitude_mode=ABSOLUTE if waypoint.elevation is not None else CLAMP_TO_GROUND,
    )


def line_string(waypoints: Iterable[Waypoint]) -> LineString:
    """A route or one track segment.

    The whole line is absolute as soon as any point carries an elevation,
    even if the others do not.
    """
    coords = []
    elevation_avail = False
    for waypoint in waypoints:
        coords.append(coord(waypoint))
        elevation_avail |= waypoint.elevation is not None
    return LineString(
        coords=tuple(coords),
        tessellate=DEFAULT_TESSELLATE,
        altitude_mode=ABSOLUTE if elevation_avail else CLAMP_TO_GROUND,
    )


def multi_geometry(segments: Iterable[TrackSegment]) -> MultiGeometry:
    # Empty segments still produce an (empty) LineString
    return MultiGeometry(geometries=tuple(line_string(s.points) for s in segments))
