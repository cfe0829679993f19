"""Vertex - The fundamental geometry atom of a field boundary.

A Vertex is a single WGS84 coordinate. It is immutable: moving a corner
replaces the Vertex rather than mutating it.
"""

from dataclasses import dataclass
from math import isfinite

from fieldmapper.core.geo_calculator import GeoCalculator


@dataclass(frozen=True)
class Vertex:
    """A geographic coordinate in decimal degrees.

    Attributes:
        lat: Latitude in decimal degrees (WGS84)
        lng: Longitude in decimal degrees (WGS84)

    Example:
        corner = Vertex(lat=20.5937, lng=78.9629)
    """

    lat: float
    lng: float

    def __post_init__(self) -> None:
        """Validate data after initialization."""
        if not (isfinite(self.lat) and isfinite(self.lng)):
            raise ValueError(f"Vertex must have finite coordinates, got ({self.lat}, {self.lng})")
        if not (-90.0 <= self.lat <= 90.0 and -180.0 <= self.lng <= 180.0):
            raise ValueError(f"Vertex out of range, got ({self.lat}, {self.lng})")

    @property
    def lat_lng(self) -> tuple[float, float]:
        """Return (lat, lng) tuple - standard geographic order."""
        return (self.lat, self.lng)

    @property
    def lng_lat(self) -> tuple[float, float]:
        """Return (lng, lat) tuple - GeoJSON/Pydeck order."""
        return (self.lng, self.lat)

    def distance_to(self, other: "Vertex") -> float:
        """Calculate haversine distance to another vertex in meters."""
        return GeoCalculator.haversine_distance_m(
            lat1=self.lat,
            lon1=self.lng,
            lat2=other.lat,
            lon2=other.lng,
        )

    def to_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}

    @classmethod
    def from_dict(cls, data: dict) -> "Vertex":
        """Build from {"lat", "lng"} (or {"lat", "lon"} as geocoders return)."""
        lng = data["lng"] if "lng" in data else data["lon"]
        return cls(lat=float(data["lat"]), lng=float(lng))

    def __repr__(self) -> str:
        return f"Vertex(lat={self.lat:.6f}, lng={self.lng:.6f})"
