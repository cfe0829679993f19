"""Export of a field boundary snapshot.

An ExportRecord is the only durable artifact of a session. It is produced
on demand from the BoundaryModel and serialized to JSON (the native
format) or GeoJSON.
"""

import json
import logging
from dataclasses import dataclass
from datetime import date

from fieldmapper.constants import ExportConfig
from fieldmapper.core.geo_calculator import GeoCalculator
from fieldmapper.model.boundary import BoundaryModel
from fieldmapper.model.vertex import Vertex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportRecord:
    """Immutable snapshot of a finished boundary.

    Attributes:
        vertices: Ring vertices in order
        area_m2: Geodesic area in square meters
        perimeter_m: Closed ring length in meters
    """

    vertices: tuple[Vertex, ...]
    area_m2: float
    perimeter_m: float

    def to_dict(self) -> dict:
        return {
            "vertices": [v.to_dict() for v in self.vertices],
            "area": self.area_m2,
            "perimeter": self.perimeter_m,
        }


class ExportSerializer:
    """Packages a boundary into an ExportRecord and its file formats."""

    MIN_VERTICES = 3

    @staticmethod
    def snapshot(boundary: BoundaryModel) -> ExportRecord | None:
        """Create a record from the current boundary.

        Returns:
            ExportRecord, or None if the ring has fewer than 3 vertices.
        """
        vertices = boundary.snapshot()
        if len(vertices) < ExportSerializer.MIN_VERTICES:
            logger.info(f"Export not ready: {len(vertices)} corner(s)")
            return None

        n = len(vertices)
        perimeter = sum(vertices[i].distance_to(vertices[(i + 1) % n]) for i in range(n))
        return ExportRecord(
            vertices=vertices,
            area_m2=GeoCalculator.geodesic_area_m2(vertices),
            perimeter_m=perimeter,
        )

    @staticmethod
    def to_json(record: ExportRecord) -> str:
        """Serialize to the native JSON layout {vertices, area, perimeter}."""
        return json.dumps(record.to_dict(), indent=ExportConfig.JSON_INDENT)

    @staticmethod
    def to_geojson(record: ExportRecord) -> str:
        """Serialize to an RFC 7946 Feature with a closed [lng, lat] ring."""
        ring = [list(v.lng_lat) for v in record.vertices]
        ring.append(list(record.vertices[0].lng_lat))
        feature = {
            "type": "Feature",
            "geometry": {"type": "Polygon", "coordinates": [ring]},
            "properties": {
                "area_m2": record.area_m2,
                "perimeter_m": record.perimeter_m,
            },
        }
        return json.dumps(feature, indent=ExportConfig.JSON_INDENT)

    @staticmethod
    def filename(day: date | None = None, extension: str = "json") -> str:
        """File name embedding the export date, e.g. field_boundary_2024-05-01.json."""
        day = day or date.today()
        return f"{ExportConfig.FILENAME_PREFIX}_{day.isoformat()}.{extension}"
