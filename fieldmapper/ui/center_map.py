"""MapRenderer - Pydeck map rendering for field mapper.

Renders the field and its overlays on a raster basemap:
- Elevation cells colored by height (PolygonLayer)
- Field polygon, or the open outline while fewer than 3 corners (PolygonLayer / PathLayer)
- Edge length labels at edge midpoints (TextLayer)
- Corner handles, clickable (ScatterplotLayer)
- Search result and GPS position markers (ScatterplotLayer)

Key pydeck conventions:
- Uses [lng, lat] coordinate order (GeoJSON standard)
- Colors as RGBA lists [R, G, B, A] (0-255)
- Data prepared as list[dict]
- pickable=True enables click detection; only corner handles and cells are pickable
"""

import logging
from dataclasses import dataclass, field

import pydeck as pdk

from fieldmapper.constants import ElevationConfig, MapConfig, StyleConfig
from fieldmapper.core.color_utils import hex_to_rgba
from fieldmapper.core.unit_converter import UnitConverter
from fieldmapper.model.boundary import BoundaryModel
from fieldmapper.model.elevation import ElevationAnalysis
from fieldmapper.model.vertex import Vertex
from fieldmapper.ui.terrain_layer import basemap_style

logger = logging.getLogger(__name__)

VERTEX_OBJECT_TYPE = "vertex"
CELL_OBJECT_TYPE = "elevation_cell"


@dataclass
class LayerCollection:
    """Pydeck layers with correct z-ordering.

    Z-order (back to front): cells → boundary → labels → markers → handles

    Handles sit above everything else so they win click picking.
    """

    cells: list[pdk.Layer] = field(default_factory=list)
    boundary: list[pdk.Layer] = field(default_factory=list)
    labels: list[pdk.Layer] = field(default_factory=list)
    handles: list[pdk.Layer] = field(default_factory=list)
    markers: list[pdk.Layer] = field(default_factory=list)

    def get_ordered_layers(self) -> list[pdk.Layer]:
        """Return all layers in correct z-order (back to front)."""
        return self.cells + self.boundary + self.labels + self.markers + self.handles


class MapRenderer:
    """Renders a BoundaryModel and its overlays on a Pydeck map.

    Example:
        renderer = MapRenderer()
        deck = renderer.render(boundary=boundary)
    """

    def __init__(
        self,
        center_lat: float = MapConfig.START_CENTER_LAT,
        center_lon: float = MapConfig.START_CENTER_LON,
        zoom: float = MapConfig.DEFAULT_ZOOM,
    ) -> None:
        self.center_lat = center_lat
        self.center_lon = center_lon
        self.zoom = zoom

    def get_view_state(self) -> pdk.ViewState:
        return pdk.ViewState(latitude=self.center_lat, longitude=self.center_lon, zoom=self.zoom, pitch=0, bearing=0)

    def update_view(self, lat: float | None = None, lon: float | None = None, zoom: float | None = None) -> None:
        if lat is not None:
            self.center_lat = lat
        if lon is not None:
            self.center_lon = lon
        if zoom is not None:
            self.zoom = zoom

    def render(
        self,
        boundary: BoundaryModel,
        basemap: str,
        show_handles: bool = False,
        dragging_index: int | None = None,
        analysis: ElevationAnalysis | None = None,
        search_marker: tuple[float, float] | None = None,
        gps_fix: Vertex | None = None,
    ) -> pdk.Deck:
        """Render complete map with all layers.

        Args:
            boundary: Field to draw
            basemap: One of BasemapConfig.NAMES
            show_handles: Draw clickable corner handles
            dragging_index: Corner currently picked for moving (highlighted)
            analysis: Elevation overlay to draw, if any
            search_marker: (lat, lon) of the selected search result
            gps_fix: Last device position

        Returns:
            pdk.Deck object ready for display.
        """
        layers = LayerCollection()

        if analysis is not None and analysis.cells:
            layers.cells.append(self.create_cell_layer(analysis))

        layers.boundary.extend(self.create_boundary_layers(boundary))

        if boundary.corner_count >= 2:
            layers.labels.append(self.create_edge_label_layer(boundary))

        if show_handles and not boundary.is_empty:
            layers.handles.append(self.create_handle_layer(boundary, dragging_index=dragging_index))

        if search_marker is not None:
            layers.markers.append(
                self._create_marker_layer(
                    lat=search_marker[0], lon=search_marker[1], color=StyleConfig.SEARCH_MARKER_COLOR, layer_id="search"
                )
            )
        if gps_fix is not None:
            layers.markers.append(
                self._create_marker_layer(lat=gps_fix.lat, lon=gps_fix.lng, color=StyleConfig.GPS_MARKER_COLOR, layer_id="gps")
            )

        return pdk.Deck(
            map_style=basemap_style(basemap),
            map_provider="mapbox",  # Required when map_style is a dict
            initial_view_state=self.get_view_state(),
            layers=layers.get_ordered_layers(),
            tooltip=self._create_tooltip_config(),
            parameters={"pickingRadius": MapConfig.PICKING_RADIUS_PX},
        )

    # =========================================================================
    # BOUNDARY
    # =========================================================================

    @staticmethod
    def create_boundary_layers(boundary: BoundaryModel) -> list[pdk.Layer]:
        """Filled polygon for 3+ corners, open outline for 2, nothing below."""
        vertices = boundary.vertices
        line_color = hex_to_rgba(StyleConfig.BOUNDARY_COLOR)

        if len(vertices) >= 3:
            fill_color = hex_to_rgba(StyleConfig.BOUNDARY_COLOR, alpha=int(255 * StyleConfig.BOUNDARY_FILL_OPACITY))
            return [
                pdk.Layer(
                    "PolygonLayer",
                    [{"polygon": [list(v.lng_lat) for v in vertices], "name": "Field"}],
                    get_polygon="polygon",
                    get_fill_color=fill_color,
                    get_line_color=line_color,
                    line_width_min_pixels=StyleConfig.BOUNDARY_LINE_WIDTH_PX,
                    stroked=True,
                    filled=True,
                    pickable=False,
                    id="boundary",
                )
            ]

        if len(vertices) == 2:
            return [
                pdk.Layer(
                    "PathLayer",
                    [{"path": [list(v.lng_lat) for v in vertices]}],
                    get_path="path",
                    get_color=line_color,
                    width_min_pixels=StyleConfig.BOUNDARY_LINE_WIDTH_PX,
                    pickable=False,
                    id="boundary_outline",
                )
            ]
        return []

    @staticmethod
    def create_edge_label_layer(boundary: BoundaryModel) -> pdk.Layer:
        """Edge length at each edge midpoint ("57 m", "1.23 km")."""
        label_data = [
            {
                "position": [(start.lng + end.lng) / 2, (start.lat + end.lat) / 2],
                "text": UnitConverter.format_distance(length_m),
            }
            for start, end, length_m in boundary.edge_lengths_m()
        ]
        return pdk.Layer(
            "TextLayer",
            label_data,
            get_position="position",
            get_text="text",
            get_size=StyleConfig.EDGE_LABEL_SIZE,
            get_color=hex_to_rgba(StyleConfig.EDGE_LABEL_COLOR),
            background=True,
            get_background_color=hex_to_rgba(StyleConfig.EDGE_LABEL_BACKGROUND, alpha=160),
            pickable=False,
            id="edge_labels",
        )

    @staticmethod
    def create_handle_layer(boundary: BoundaryModel, dragging_index: int | None = None) -> pdk.Layer:
        """Clickable corner handles. The picked corner is drawn in the dragging color."""
        handle_data = [
            {
                "type": VERTEX_OBJECT_TYPE,
                "id": f"v{i}",
                "index": i,
                "position": list(v.lng_lat),
                "name": f"Corner {i + 1}",
                "fill": hex_to_rgba(
                    StyleConfig.VERTEX_DRAGGING_COLOR if i == dragging_index else StyleConfig.VERTEX_FILL_COLOR
                ),
            }
            for i, v in enumerate(boundary.vertices)
        ]
        return pdk.Layer(
            "ScatterplotLayer",
            handle_data,
            get_position="position",
            get_fill_color="fill",
            get_line_color=hex_to_rgba(StyleConfig.VERTEX_BORDER_COLOR),
            get_radius=StyleConfig.VERTEX_RADIUS_PX,
            radius_units="pixels",
            stroked=True,
            line_width_min_pixels=2,
            pickable=True,
            auto_highlight=True,
            highlight_color=[255, 255, 0, 180],
            id="vertex_handles",
        )

    # =========================================================================
    # OVERLAYS
    # =========================================================================

    @staticmethod
    def create_cell_layer(analysis: ElevationAnalysis) -> pdk.Layer:
        """Elevation choropleth, one rectangle per sample."""
        alpha = int(255 * ElevationConfig.CELL_OPACITY)
        cell_data = [
            {
                "type": CELL_OBJECT_TYPE,
                "id": f"c{i}",
                "polygon": cell.polygon,
                "fill": hex_to_rgba(cell.color, alpha=alpha),
                "name": f"Elevation: {cell.elevation:.1f} m",
            }
            for i, cell in enumerate(analysis.cells)
        ]
        return pdk.Layer(
            "PolygonLayer",
            cell_data,
            get_polygon="polygon",
            get_fill_color="fill",
            stroked=False,
            filled=True,
            pickable=True,
            id="elevation_cells",
        )

    @staticmethod
    def _create_marker_layer(lat: float, lon: float, color: str, layer_id: str) -> pdk.Layer:
        return pdk.Layer(
            "ScatterplotLayer",
            [{"position": [lon, lat]}],
            get_position="position",
            get_fill_color=hex_to_rgba(color),
            get_line_color=[255, 255, 255, 255],
            get_radius=8,
            radius_units="pixels",
            stroked=True,
            line_width_min_pixels=2,
            pickable=False,
            id=f"{layer_id}_marker",
        )

    def _create_tooltip_config(self) -> dict[str, str | dict[str, str]]:
        """Name only; details live in the side panel."""
        return {
            "html": "<b>{name}</b>",
            "style": {
                "backgroundColor": "rgba(255, 255, 255, 0.95)",
                "color": "#333",
                "padding": "6px 10px",
                "borderRadius": "4px",
            },
        }
