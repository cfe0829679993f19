"""Core foundation classes for field measurement.

- GeoCalculator: Geodesic and planar geometry (area, distances, hit testing)
- UnitConverter: Area and distance display formatting
- ElevationAnalyzer: Grid sampling, batch fetching and elevation statistics
- GoogleElevationRelay / RelayElevationClient / LocalRelayElevationClient: Elevation lookup
- GeocodingService: Place search
"""

from fieldmapper.core.geo_calculator import GeoCalculator
from fieldmapper.core.unit_converter import UnitConverter

# The analyzer and the services depend on model.vertex, which depends on GeoCalculator.
# Import directly: from fieldmapper.core.elevation_analyzer import ElevationAnalyzer

__all__ = [
    "GeoCalculator",
    "UnitConverter",
]
