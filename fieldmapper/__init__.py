"""Field Mapper - Measure farm fields on satellite imagery.

Draw a field boundary on the map, read its geodesic area and perimeter,
edit the corners, analyze the terrain inside it and export the result.

Modules:
    core: Geometry, unit conversion, elevation and geocoding services
    model: Data structures (Vertex, BoundaryModel, ExportRecord, messages)
    ui: Streamlit interface components (state machine, controller, renderers)

Example:
    from fieldmapper.model import BoundaryModel, Vertex
    from fieldmapper.ui.controller import InteractionController
"""
