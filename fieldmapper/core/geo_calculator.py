"""Geodesic and planar calculations for field boundaries.

Provides the geometry kernel used by the boundary model and analysis:
- Distance calculation (Haversine formula)
- Geodesic ring area (spherical approximation, as used by Leaflet.draw)
- Point-in-polygon test (ray casting)
- Closest point on segment / segment distance (edge hit testing)
- Ring simplicity check (self-intersection)

Distances use a spherical Earth (R = 6,371 km). Areas use the WGS84
equatorial radius (R = 6,378,137 m). Planar helpers treat (lat, lng) as
flat coordinates, which is acceptable at field scale only.
"""

from __future__ import annotations

from collections.abc import Sequence
from math import atan2, cos, radians, sin, sqrt
from typing import TYPE_CHECKING

from shapely.geometry import LinearRing

from fieldmapper.constants import InteractionConfig

if TYPE_CHECKING:
    from fieldmapper.model.vertex import Vertex

# Earth's radius in meters (spherical approximation for distances)
EARTH_RADIUS_M = 6_371_000

# WGS84 equatorial radius in meters (used for ring areas)
WGS84_RADIUS_M = 6_378_137.0


class GeoCalculator:
    """Static methods for geometry on field boundaries.

    Coordinates are in decimal degrees (WGS84).
    Distances are in meters, areas in square meters.
    """

    EARTH_RADIUS_M = EARTH_RADIUS_M

    @staticmethod
    def haversine_distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Calculate great-circle distance between two points using Haversine formula.

        Args:
            lat1: Latitude of first point (decimal degrees)
            lon1: Longitude of first point (decimal degrees)
            lat2: Latitude of second point (decimal degrees)
            lon2: Longitude of second point (decimal degrees)

        Returns:
            Distance in meters.
        """
        dlat = radians(lat2 - lat1)
        dlon = radians(lon2 - lon1)
        a = sin(dlat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(dlon / 2) ** 2
        return EARTH_RADIUS_M * 2 * atan2(sqrt(a), sqrt(1 - a))

    @staticmethod
    def degrees_to_meters_approx(degrees: float) -> float:
        """Convert a planar degree distance to meters (flat-earth approximation).

        Uses a fixed factor of InteractionConfig.METERS_PER_DEGREE_APPROX and
        ignores the shrinking of longitude degrees away from the equator.
        """
        return degrees * InteractionConfig.METERS_PER_DEGREE_APPROX

    @staticmethod
    def geodesic_area_m2(ring: Sequence[Vertex]) -> float:
        """Area enclosed by an implicitly closed ring, accounting for curvature.

        Spherical excess approximation:
            A = |sum((lng2 - lng1) * (2 + sin(lat1) + sin(lat2)))| * R^2 / 2

        Args:
            ring: Ordered ring vertices (closing edge implied)

        Returns:
            Area in square meters. 0 for fewer than 3 vertices. The absolute
            value is returned, so winding order does not matter.
        """
        n = len(ring)
        if n < 3:
            return 0.0

        area = 0.0
        for i in range(n):
            p1 = ring[i]
            p2 = ring[(i + 1) % n]
            area += radians(p2.lng - p1.lng) * (2 + sin(radians(p1.lat)) + sin(radians(p2.lat)))
        return abs(area * WGS84_RADIUS_M * WGS84_RADIUS_M / 2.0)

    @staticmethod
    def ring_perimeter_m(ring: Sequence[Vertex]) -> float:
        """Haversine length of a ring.

        Returns:
            0 for fewer than 2 vertices, the single edge length for 2,
            otherwise the closed ring length including the closing edge.
        """
        n = len(ring)
        if n < 2:
            return 0.0
        if n == 2:
            return ring[0].distance_to(ring[1])
        return sum(ring[i].distance_to(ring[(i + 1) % n]) for i in range(n))

    @staticmethod
    def bounding_box(ring: Sequence[Vertex]) -> tuple[float, float, float, float]:
        """Return (south, west, north, east) of a non-empty ring."""
        if not ring:
            raise ValueError("Cannot compute bounding box of an empty ring")
        lats = [v.lat for v in ring]
        lngs = [v.lng for v in ring]
        return min(lats), min(lngs), max(lats), max(lngs)

    @staticmethod
    def point_in_polygon(point: Vertex, ring: Sequence[Vertex]) -> bool:
        """Ray casting parity test on planar (lat, lng) coordinates.

        Membership of points exactly on an edge is undefined.
        """
        inside = False
        n = len(ring)
        j = n - 1
        for i in range(n):
            xi, yi = ring[i].lat, ring[i].lng
            xj, yj = ring[j].lat, ring[j].lng
            if (yi > point.lng) != (yj > point.lng):
                crossing = (xj - xi) * (point.lng - yi) / (yj - yi) + xi
                if point.lat < crossing:
                    inside = not inside
            j = i
        return inside

    @staticmethod
    def closest_point_on_segment(p: Vertex, a: Vertex, b: Vertex) -> Vertex:
        """Orthogonal projection of p onto segment a-b, clamped to the segment.

        Returns:
            The closest Vertex on the segment. For a degenerate segment (a == b)
            returns a.
        """
        from fieldmapper.model.vertex import Vertex  # circular: vertex uses GeoCalculator

        dx = b.lat - a.lat
        dy = b.lng - a.lng
        len_sq = dx * dx + dy * dy
        if len_sq == 0:
            return a

        t = ((p.lat - a.lat) * dx + (p.lng - a.lng) * dy) / len_sq
        if t <= 0:
            return a
        if t >= 1:
            return b
        return Vertex(lat=a.lat + t * dx, lng=a.lng + t * dy)

    @staticmethod
    def segment_distance_m(p: Vertex, a: Vertex, b: Vertex) -> float:
        """Planar distance from p to segment a-b, scaled to meters.

        Uses degrees_to_meters_approx, so it is only meaningful at small scale
        near the equator.
        """
        closest = GeoCalculator.closest_point_on_segment(p, a, b)
        planar = sqrt((p.lat - closest.lat) ** 2 + (p.lng - closest.lng) ** 2)
        return GeoCalculator.degrees_to_meters_approx(planar)

    @staticmethod
    def is_simple_ring(ring: Sequence[Vertex]) -> bool:
        """Check whether a ring is free of self-intersections.

        Rings with fewer than 3 vertices are trivially simple. Callers may use
        this before accepting an edit; the boundary model does not enforce it.
        """
        if len(ring) < 3:
            return True
        return LinearRing([v.lng_lat for v in ring]).is_simple
