"""Sidebar UI renderer for field mapper.

Renders the left sidebar with:
- Mode context message
- Drawing controls (draw/finish, edit corners, undo/redo, delete)
- Display settings (area unit, basemap)
- Place search and GPS tracking
- Elevation analysis controls
- Export downloads
"""

import logging

import streamlit as st

from fieldmapper.constants import BasemapConfig, ElevationConfig, MapConfig, UnitConfig
from fieldmapper.core.unit_converter import UnitConverter
from fieldmapper.model.message import ExportReadyMessage, ModeContextMessage
from fieldmapper.ui.actions import (
    apply_position_fix,
    build_export,
    bump_map_version,
    clear_field,
    redo,
    run_elevation_analysis,
    run_place_search,
    select_search_result,
    set_gps_tracking,
    toggle_draw,
    toggle_vertex_editing,
    undo,
)
from fieldmapper.ui.controller import InteractionController

logger = logging.getLogger(__name__)


@st.dialog("Delete Field")
def _confirm_clear_dialog(corner_count: int) -> None:
    """Show confirmation dialog before deleting the field."""
    st.write(f"Delete the field with **{corner_count} corners**? This cannot be undone.")

    col_yes, col_no = st.columns(2)
    with col_yes:
        if st.button("🗑️ Yes, Delete", type="primary", use_container_width=True):
            # Flag for the main render loop; the dialog closes on rerun
            st.session_state._pending_clear = True
            st.rerun()
    with col_no:
        if st.button("✖️ Cancel", use_container_width=True):
            st.rerun()


class SidebarRenderer:
    """Renders the sidebar UI.

    Buttons call into ui.actions directly; nothing is returned.
    """

    def __init__(self, controller: InteractionController) -> None:
        self.controller = controller
        self.sm = controller.sm
        self.ctx = controller.ctx

    def render(self) -> None:
        with st.sidebar:
            ModeContextMessage(
                mode=self.sm.current_state.id,
                corner_count=self.ctx.boundary.corner_count,
                dragging_index=self.ctx.drag.index,
                gps_tracking=self.ctx.gps_tracking,
            ).display()

            self._render_drawing_controls()
            st.divider()
            self._render_display_settings()
            st.divider()
            self._render_search()
            self._render_gps()
            st.divider()
            self._render_elevation_controls()
            st.divider()
            self._render_export()

    def _render_drawing_controls(self) -> None:
        boundary = self.ctx.boundary
        draw_label = "✅ Finish Drawing" if self.sm.is_drawing else "✏️ Draw Field"
        if st.button(draw_label, type="primary", use_container_width=True):
            toggle_draw()

        edit_label = "🔒 Stop Editing" if self.sm.is_editing_vertices else "🔧 Edit Corners"
        if st.button(edit_label, use_container_width=True, disabled=boundary.is_empty):
            toggle_vertex_editing()

        col_undo, col_redo = st.columns(2)
        with col_undo:
            if st.button("↩️ Undo", use_container_width=True, disabled=not boundary.can_undo):
                undo()
        with col_redo:
            if st.button("↪️ Redo", use_container_width=True, disabled=not boundary.can_redo):
                redo()

        if st.button("🗑️ Delete Field", use_container_width=True, disabled=boundary.is_empty):
            _confirm_clear_dialog(corner_count=boundary.corner_count)

        if st.session_state.pop("_pending_clear", False):
            clear_field()

    def _render_display_settings(self) -> None:
        map_ctx = self.ctx.map
        unit = st.selectbox(
            "Area unit",
            options=UnitConfig.UNITS,
            index=UnitConfig.UNITS.index(map_ctx.unit),
            format_func=UnitConverter.label,
        )
        map_ctx.unit = unit

        basemap = st.selectbox(
            "Basemap",
            options=BasemapConfig.NAMES,
            index=BasemapConfig.NAMES.index(map_ctx.basemap),
            format_func=str.title,
        )
        if basemap != map_ctx.basemap:
            map_ctx.basemap = basemap
            bump_map_version()

    def _render_search(self) -> None:
        query = st.text_input("🔍 Search location", key="search_query", placeholder="Village, district...")
        if not query.strip():
            return
        for i, result in enumerate(run_place_search(query)):
            st.button(
                result.display_name,
                key=f"search_result_{i}",
                on_click=select_search_result,
                args=(result,),
                use_container_width=True,
            )

    def _render_gps(self) -> None:
        tracking = st.toggle("📡 GPS tracking", value=self.ctx.gps_tracking)
        if tracking != self.ctx.gps_tracking:
            set_gps_tracking(tracking)
        if not tracking:
            return

        center_lat, center_lon = self.ctx.map.center
        col_lat, col_lon = st.columns(2)
        lat = col_lat.number_input(
            "Lat", min_value=-90.0, max_value=90.0, value=float(center_lat), format="%.6f", key="gps_lat"
        )
        lon = col_lon.number_input(
            "Lon", min_value=-180.0, max_value=180.0, value=float(center_lon), format="%.6f", key="gps_lon"
        )
        if st.button("📍 Add Position Fix", use_container_width=True):
            apply_position_fix(lat=lat, lon=lon)
        st.caption(f"Fixes are added as corners while drawing (zoom {MapConfig.GPS_FIX_ZOOM}).")

    def _render_elevation_controls(self) -> None:
        st.subheader("⛰️ Elevation")
        api_key = st.text_input("Google Maps API key", value=ElevationConfig.API_KEY, type="password")
        density = st.slider(
            "Grid density",
            min_value=ElevationConfig.GRID_DENSITY_MIN,
            max_value=ElevationConfig.GRID_DENSITY_MAX,
            value=ElevationConfig.GRID_DENSITY_DEFAULT,
            help="Samples per side of the field's bounding box",
        )
        if st.button("Analyze Elevation", use_container_width=True, disabled=not self.ctx.boundary.has_polygon):
            run_elevation_analysis(api_key=api_key, density=density)

    def _render_export(self) -> None:
        st.subheader("💾 Export")
        for fmt, label in (("json", "Export JSON"), ("geojson", "Export GeoJSON")):
            payload = build_export(fmt)
            if payload is None:
                st.button(label, disabled=True, use_container_width=True, key=f"export_{fmt}_disabled")
                continue
            data, filename, mime = payload
            if st.download_button(label, data=data, file_name=filename, mime=mime, use_container_width=True):
                ExportReadyMessage(filename=filename).display()
