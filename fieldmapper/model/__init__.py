"""Data model classes for a field boundary.

- Vertex: Geometry atom (lat, lng)
- BoundaryModel: The ring, its undo/redo history and derived metrics
- GridSample / ElevationSummary / ElevationCell / ElevationAnalysis: Elevation results
- ExportRecord / ExportSerializer: Export snapshot and file formats
"""

from fieldmapper.model.vertex import Vertex
from fieldmapper.model.boundary import BoundaryMode, BoundaryModel
from fieldmapper.model.elevation import ElevationAnalysis, ElevationCell, ElevationSummary, GridSample
from fieldmapper.model.export_record import ExportRecord, ExportSerializer

__all__ = [
    "Vertex",
    "BoundaryMode",
    "BoundaryModel",
    "GridSample",
    "ElevationSummary",
    "ElevationCell",
    "ElevationAnalysis",
    "ExportRecord",
    "ExportSerializer",
]
