"""Click handlers for field mapper.

Routes a PydeckClickResult to the InteractionController:
- Corner handle clicks pick up a corner (or close the ring while drawing)
- Every other click is a map click at its coordinate

Clicks on non-handle objects (elevation cells, the search marker) are
treated as map clicks so overlays never block drawing.
"""

import logging

import streamlit as st

from fieldmapper.model.message import StaleVertexMessage
from fieldmapper.model.vertex import Vertex
from fieldmapper.ui.actions import bump_map_version, reload_map
from fieldmapper.ui.center_map import VERTEX_OBJECT_TYPE
from fieldmapper.ui.controller import ClickOutcome, InteractionController
from fieldmapper.ui.pydeck_click_handler import PydeckClickResult

logger = logging.getLogger(__name__)


def dispatch_click(click_result: PydeckClickResult) -> None:
    """Dispatch a click to the controller and reload the map if anything changed."""
    controller: InteractionController = st.session_state.controller

    if click_result.object_type == VERTEX_OBJECT_TYPE:
        index = int(click_result.clicked_object["index"])
        if handle_vertex_click(controller, index):
            return

    if click_result.clicked_coordinate is None:
        logger.debug("[CLICK] Object click without coordinate ignored")
        return

    lng, lat = click_result.clicked_coordinate
    try:
        vertex = Vertex(lat=lat, lng=lng)
    except ValueError as e:
        # Clicks on a wrapped world copy report longitudes beyond 180
        logger.info(f"[CLICK] Ignored: {e}")
        return
    outcome = controller.handle_map_click(vertex)
    logger.info(f"[CLICK] ({lat:.6f}, {lng:.6f}) in {controller.sm.get_state_name()} -> {outcome.value}")

    if outcome.name != ClickOutcome.IGNORED.name:
        reload_map()


def handle_vertex_click(controller: InteractionController, index: int) -> bool:
    """Handle a click on a corner handle.

    While drawing, clicking the first corner of a 3+ corner ring finishes
    the drawing. Otherwise the corner is picked for moving.

    Returns:
        True if the click was consumed, False to treat it as a map click.
    """
    if controller.sm.is_drawing:
        if index == 0 and controller.boundary.has_polygon:
            bump_map_version()
            controller.toggle_draw()
            return True
        return False

    if not controller.ctx.handles_enabled:
        return False

    if controller.ctx.drag.index == index:
        # Second click on the picked corner drops it in place
        controller.end_drag()
        reload_map()
        return True

    if not controller.begin_drag(index):
        StaleVertexMessage(index=index).display()
        return True

    reload_map()
    return True
