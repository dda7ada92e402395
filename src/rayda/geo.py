"""Great-circle helpers for (longitude, latitude) coordinates."""

import math
from typing import List, Sequence

from .models import Coordinate

EARTH_RADIUS_M = 6371000.0


def haversine_distance(a: Coordinate, b: Coordinate) -> float:
    """Distance in metres between two (lon, lat) points."""
    lon1, lat1 = a
    lon2, lat2 = b
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def path_length(path: Sequence[Coordinate]) -> float:
    """Arc length of a polyline in metres."""
    return sum(haversine_distance(path[i - 1], path[i]) for i in range(1, len(path)))


def cumulative_distances(path: Sequence[Coordinate]) -> List[float]:
    distances = [0.0]
    for i in range(1, len(path)):
        distances.append(distances[-1] + haversine_distance(path[i - 1], path[i]))
    return distances


def interpolate_along_path(path: Sequence[Coordinate], fraction: float) -> Coordinate:
    """
    Point at a fraction of a polyline's arc length.

    Works on distance rather than vertex index so that uneven point density
    along the track does not change the apparent speed of a train.
    """
    if not path:
        raise ValueError("Cannot interpolate along an empty path")
    if len(path) == 1:
        return path[0]

    fraction = max(0.0, min(1.0, fraction))
    distances = cumulative_distances(path)
    total = distances[-1]
    if total == 0:
        return path[0]

    target = total * fraction
    for i in range(1, len(distances)):
        if distances[i] >= target:
            span = distances[i] - distances[i - 1]
            t = (target - distances[i - 1]) / span if span > 0 else 0.0
            start, end = path[i - 1], path[i]
            return (
                start[0] + (end[0] - start[0]) * t,
                start[1] + (end[1] - start[1]) * t,
            )

    return path[-1]


def forward_azimuth(a: Coordinate, b: Coordinate) -> float:
    """Initial bearing from a to b in degrees clockwise from north (0-360)."""
    lon1, lat1 = a
    lon2, lat2 = b
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_lambda = math.radians(lon2 - lon1)

    y = math.sin(d_lambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lambda)
    return (math.degrees(math.atan2(y, x)) + 360.0) % 360.0


def bearing_along_path(path: Sequence[Coordinate], fraction: float, lookahead: float = 0.01) -> float:
    """Heading of travel at a fraction of a path."""
    if len(path) < 2:
        return 0.0

    fraction = max(0.0, min(1.0, fraction))
    if fraction + lookahead <= 1.0:
        start = interpolate_along_path(path, fraction)
        end = interpolate_along_path(path, fraction + lookahead)
    else:
        # At the end of the path look back instead of past the last vertex
        start = interpolate_along_path(path, max(0.0, fraction - lookahead))
        end = interpolate_along_path(path, fraction)

    if start == end:
        return forward_azimuth(path[0], path[-1])
    return forward_azimuth(start, end)


def bounding_box(points: Sequence[Coordinate], margin: float = 0.0):
    """(min_lon, min_lat, max_lon, max_lat) around the points."""
    lons = [p[0] for p in points]
    lats = [p[1] for p in points]
    return (min(lons) - margin, min(lats) - margin, max(lons) + margin, max(lats) + margin)


def in_box(point: Coordinate, box) -> bool:
    min_lon, min_lat, max_lon, max_lat = box
    return min_lon <= point[0] <= max_lon and min_lat <= point[1] <= max_lat
