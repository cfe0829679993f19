"""Field Mapper - Interactive field area measurement.

Draw a field boundary on satellite, terrain or street imagery, read its
geodesic area and perimeter, edit corners, analyze elevation inside the
field and export the boundary.

Run: streamlit run fieldmapper/app.py
"""

import logging
import traceback

import streamlit as st

from fieldmapper.constants import AppConfig, MapConfig
from fieldmapper.core.elevation_analyzer import ElevationAnalyzer
from fieldmapper.core.elevation_service import create_elevation_client
from fieldmapper.core.geocoding_service import GeocodingService
from fieldmapper.model.elevation import ElevationAnalysis
from fieldmapper.model.message import ElevationFailedMessage
from fieldmapper.ui import (
    ElevationHistogram,
    InteractionController,
    MapRenderer,
    SidebarRenderer,
    dispatch_click,
    render_control_panel,
)
from fieldmapper.ui.pydeck_click_handler import render_pydeck_map

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# =============================================================================
# SESSION STATE
# =============================================================================


def init_session_state() -> None:
    """Initialize session state with controller, services and renderer."""
    if "controller" not in st.session_state:
        st.session_state.controller = InteractionController.create(add_ui_listener=True)

    if "analyzer" not in st.session_state:
        st.session_state.analyzer = ElevationAnalyzer(client=create_elevation_client())

    if "geocoder" not in st.session_state:
        st.session_state.geocoder = GeocodingService()

    if "map_renderer" not in st.session_state:
        st.session_state.map_renderer = MapRenderer(
            center_lat=MapConfig.START_CENTER_LAT,
            center_lon=MapConfig.START_CENTER_LON,
            zoom=MapConfig.DEFAULT_ZOOM,
        )

    if "analysis" not in st.session_state:
        st.session_state.analysis = None
    if "analysis_error" not in st.session_state:
        st.session_state.analysis_error = None

    if "map_version" not in st.session_state:
        st.session_state.map_version = 0


def reset_ui_state() -> None:
    """Reset interaction state after an error while preserving the field.

    Resets the state machine to Idle with a fresh context holding the same
    BoundaryModel, clears the overlay and bumps the map version.
    """
    logger.info("Resetting UI state due to error recovery")

    old: InteractionController = st.session_state.controller
    controller = InteractionController.create(add_ui_listener=True, boundary=old.boundary)
    controller.ctx.map = old.ctx.map
    st.session_state.controller = controller

    st.session_state.analysis = None
    st.session_state.analysis_error = None
    st.session_state.map_version = st.session_state.get("map_version", 0) + 1

    logger.info("UI state reset complete - field preserved")


# =============================================================================
# MAP RENDERING
# =============================================================================


def _render_map() -> None:
    """Render the map, the analysis status and handle clicks."""
    controller: InteractionController = st.session_state.controller
    renderer: MapRenderer = st.session_state.map_renderer
    analysis: ElevationAnalysis | None = st.session_state.analysis
    ctx = controller.ctx

    map_version = st.session_state.get("map_version", 0)
    logger.info(f"[RENDER] Map: state={controller.sm.get_state_name()}, map_version={map_version}")

    center_lat, center_lon = ctx.map.center
    renderer.update_view(lat=center_lat, lon=center_lon, zoom=ctx.map.zoom)
    deck = renderer.render(
        boundary=ctx.boundary,
        basemap=ctx.map.basemap,
        show_handles=ctx.handles_enabled or controller.sm.is_drawing,
        dragging_index=ctx.drag.index,
        analysis=analysis,
        search_marker=ctx.map.search_marker,
        gps_fix=ctx.last_fix,
    )

    click_result = render_pydeck_map(deck=deck, key=f"main_map_{map_version}", height=MapConfig.HEIGHT_PX)

    if st.session_state.analysis_error:
        ElevationFailedMessage(error=st.session_state.analysis_error).display()

    if analysis is not None:
        st.plotly_chart(ElevationHistogram().render(analysis=analysis), key="elevation_histogram")

    if click_result.is_object_click or click_result.is_map_click:
        dispatch_click(click_result=click_result)


# =============================================================================
# MAIN
# =============================================================================


def main() -> None:
    """Application entry point."""
    st.set_page_config(page_title=AppConfig.TITLE, page_icon=AppConfig.ICON, layout=AppConfig.LAYOUT)
    init_session_state()

    st.title(f"{AppConfig.ICON} {AppConfig.TITLE}")

    try:
        _run_app_ui()
    except Exception as e:
        error_msg = f"{type(e).__name__}: {e}"
        full_traceback = traceback.format_exc()
        logger.error(f"[UI] UI error caught: {error_msg}\n{full_traceback}")

        st.error(f"⚠️ [UI] Something went wrong: {error_msg}")

        # Reset UI state while preserving the field
        reset_ui_state()

        if st.button("🔄 Reset and Continue", type="primary"):
            st.rerun()


def _run_app_ui() -> None:
    """Run the main application UI. Separated for error handling wrapper."""
    controller: InteractionController = st.session_state.controller
    logger.info(f"[MAIN] Render cycle starting: {controller.ctx!r}")

    SidebarRenderer(controller=controller).render()

    col_map, col_ctrl = st.columns([3, 1])
    with col_map:
        _render_map()
    with col_ctrl:
        render_control_panel(
            boundary=controller.boundary,
            unit=controller.ctx.map.unit,
            analysis=st.session_state.analysis,
        )


if __name__ == "__main__":
    main()
