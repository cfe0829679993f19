"""UI Actions - All action functions for field mapper.

Centralizes the functions that modify UI state, trigger controller
operations or run I/O (elevation analysis, place search).

This module handles:
- Map reloads (reload_map, bump_map_version)
- Mode and history buttons (toggle_draw, toggle_vertex_editing, undo, redo, clear)
- Elevation analysis (run_elevation_analysis)
- Place search and GPS fixes (select_search_result, apply_position_fix)
- Export payloads (build_export)
"""

import logging
from collections.abc import Callable

import streamlit as st

from fieldmapper.constants import ElevationConfig, MapConfig
from fieldmapper.core.elevation_analyzer import AnalysisBusyError, ElevationAnalyzer
from fieldmapper.core.elevation_service import ElevationServiceError, create_elevation_client
from fieldmapper.core.geocoding_service import GeocodingService, SearchResult
from fieldmapper.model.export_record import ExportSerializer
from fieldmapper.model.message import AnalysisBusyMessage, AnalyzingMessage, NoFieldMessage
from fieldmapper.ui.controller import InteractionController
from fieldmapper.ui.validators import validate_analyzer_idle, validate_api_key, validate_has_field

logger = logging.getLogger(__name__)


# =============================================================================
# MAP RELOAD
# =============================================================================


def reload_map(before: "Callable[[], object] | None" = None) -> None:
    """Reload map with optional pre-reload callback.

    The flow is:
    1. Execute before callback (if provided)
    2. Bump map version to clear stale click state
    3. Call st.rerun() which raises StopExecution
    """
    if before is not None:
        before()
    bump_map_version()
    st.rerun()


def bump_map_version() -> None:
    """Increment map_version to create a fresh Pydeck component.

    A new component instance has no memory of previous click events,
    which eliminates ghost clicks after a rerun.
    """
    old_version = st.session_state.get("map_version", 0)
    st.session_state.map_version = old_version + 1
    logger.info(f"[MAP] Bumped map_version: {old_version} -> {old_version + 1}")


# =============================================================================
# MODES AND HISTORY
# =============================================================================


def toggle_draw() -> None:
    """Start or finish drawing. The state listener reruns on success."""
    controller: InteractionController = st.session_state.controller
    if not controller.sm.is_drawing:
        # A fresh ring invalidates the overlay
        clear_analysis()
    bump_map_version()
    controller.toggle_draw()


def toggle_vertex_editing() -> None:
    controller: InteractionController = st.session_state.controller
    bump_map_version()
    message = controller.toggle_vertex_editing()
    if message:
        message.display()


def undo() -> None:
    controller: InteractionController = st.session_state.controller
    reload_map(before=controller.undo)


def redo() -> None:
    controller: InteractionController = st.session_state.controller
    reload_map(before=controller.redo)


def clear_field() -> None:
    """Delete the field and any overlay."""
    controller: InteractionController = st.session_state.controller
    clear_analysis()
    bump_map_version()
    controller.clear()


def set_gps_tracking(enabled: bool) -> None:
    controller: InteractionController = st.session_state.controller
    controller.set_gps_tracking(enabled)


def apply_position_fix(lat: float, lon: float) -> None:
    """Feed one position fix to the controller and center the map on it."""
    controller: InteractionController = st.session_state.controller
    appended = controller.handle_position_fix({"lat": lat, "lon": lon})
    if controller.ctx.last_fix is not None:
        controller.ctx.map.fly_to(lat=lat, lon=lon, zoom=MapConfig.GPS_FIX_ZOOM)
    logger.info(f"[GPS] Fix ({lat:.6f}, {lon:.6f}) appended={appended}")
    reload_map()


# =============================================================================
# ELEVATION ANALYSIS
# =============================================================================


def clear_analysis() -> None:
    st.session_state.analysis = None
    st.session_state.analysis_error = None


def run_elevation_analysis(api_key: str, density: int) -> None:
    """Analyze elevation inside the current field.

    The overlay is cleared before the run and stays cleared on failure.
    Failures are stored in st.session_state.analysis_error for the center
    panel to display.
    """
    controller: InteractionController = st.session_state.controller
    analyzer: ElevationAnalyzer = st.session_state.analyzer
    boundary = controller.boundary

    refusal = (
        validate_has_field(boundary, action="analyze elevation")
        or validate_api_key(api_key)
        or validate_analyzer_idle(analyzer)
    )
    if refusal:
        refusal.display()
        return

    clear_analysis()
    analyzer.client = create_elevation_client(api_key=api_key.strip(), relay_url=ElevationConfig.RELAY_URL)
    ring = boundary.snapshot()

    status = st.empty()
    with status.container():
        message_slot = st.empty()
        progress = st.progress(0.0)

    def show_point_count(point_count: int) -> None:
        with message_slot:
            AnalyzingMessage(point_count=point_count).display()

    try:
        analysis = analyzer.analyze(
            ring=ring,
            density=density,
            revision=boundary.revision,
            progress_callback=lambda p: progress.progress(p),
            start_callback=show_point_count,
        )
    except AnalysisBusyError:
        AnalysisBusyMessage().display()
        return
    except ElevationServiceError as e:
        logger.error(f"[ELEVATION] Analysis failed: {e}")
        st.session_state.analysis_error = str(e)
        return
    finally:
        status.empty()

    if analysis is None:
        NoFieldMessage(action="analyze elevation").display()
        return

    st.session_state.analysis = analysis
    bump_map_version()


# =============================================================================
# SEARCH
# =============================================================================


def run_place_search(query: str) -> list[SearchResult]:
    geocoder: GeocodingService = st.session_state.geocoder
    if query == geocoder.query:
        return geocoder.results
    with st.spinner("Searching..."):
        return geocoder.search(query)


def select_search_result(result: SearchResult) -> None:
    """Fly to a search hit and mark it.

    Runs as a widget on_click callback (it resets the search box), so it
    bumps the map version instead of calling st.rerun().
    """
    controller: InteractionController = st.session_state.controller
    geocoder: GeocodingService = st.session_state.geocoder
    controller.ctx.map.fly_to(lat=result.lat, lon=result.lon, zoom=MapConfig.SEARCH_RESULT_ZOOM)
    controller.ctx.map.search_marker = (result.lat, result.lon)
    geocoder.clear()
    st.session_state.search_query = ""
    logger.info(f"[SEARCH] Selected {result.display_name}")
    bump_map_version()


# =============================================================================
# EXPORT
# =============================================================================


def build_export(fmt: str) -> tuple[str, str, str] | None:
    """Prepare a download payload.

    Args:
        fmt: "json" or "geojson"

    Returns:
        (data, filename, mime type), or None if there is no complete field.
    """
    controller: InteractionController = st.session_state.controller
    record = ExportSerializer.snapshot(controller.boundary)
    if record is None:
        return None
    if fmt == "geojson":
        return ExportSerializer.to_geojson(record), ExportSerializer.filename(extension="geojson"), "application/geo+json"
    if fmt == "json":
        return ExportSerializer.to_json(record), ExportSerializer.filename(), "application/json"
    raise ValueError(f"Unknown export format '{fmt}'")
