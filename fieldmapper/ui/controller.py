"""InteractionController - turns map input into BoundaryModel mutations.

Pure Python on top of BoundaryStateMachine: no Streamlit calls, so every
gesture can be replayed in tests. Click routing in click_handlers.py reads
Streamlit state and calls into this class.

Malformed or stale input (a drag on a corner that no longer exists, a
position fix without coordinates) is logged and ignored, never raised.
"""

import logging
from enum import Enum

from fieldmapper.constants import InteractionConfig
from fieldmapper.core.geo_calculator import GeoCalculator
from fieldmapper.model.boundary import BoundaryModel
from fieldmapper.model.message import NoFieldMessage, ToastMessage
from fieldmapper.model.vertex import Vertex
from fieldmapper.ui.state_machine import BoundaryStateMachine, InteractionContext

logger = logging.getLogger(__name__)


class ClickOutcome(Enum):
    """What a map click did to the boundary."""

    APPENDED = "appended"
    INSERTED = "inserted"
    MOVED = "moved"
    IGNORED = "ignored"


class InteractionController:
    """Mode-aware entry point for all boundary edits.

    Example:
        controller = InteractionController.create()
        controller.toggle_draw()
        controller.handle_map_click(Vertex(lat=0.0, lng=0.0))
    """

    def __init__(self, state_machine: BoundaryStateMachine, context: InteractionContext) -> None:
        self.sm = state_machine
        self.ctx = context

    @classmethod
    def create(cls, add_ui_listener: bool = False, boundary: BoundaryModel | None = None) -> "InteractionController":
        sm, ctx = BoundaryStateMachine.create(add_ui_listener=add_ui_listener, boundary=boundary)
        return cls(state_machine=sm, context=ctx)

    @property
    def boundary(self) -> BoundaryModel:
        return self.ctx.boundary

    # =========================================================================
    # Modes
    # =========================================================================

    def toggle_draw(self) -> bool:
        """Start a fresh ring, or finish the current one.

        Returns:
            True if the mode changed.
        """
        if self.sm.is_drawing:
            return self.sm.try_transition("finish_drawing")
        return self.sm.try_transition("start_drawing")

    def toggle_vertex_editing(self) -> ToastMessage | None:
        """Enable or disable corner editing.

        Returns:
            NoFieldMessage if there is nothing to edit, else None.
        """
        if self.sm.is_editing_vertices:
            self.sm.try_transition("disable_editing")
            return None
        if self.boundary.is_empty:
            return NoFieldMessage(action="edit corners")
        self.sm.try_transition("enable_editing")
        return None

    def clear(self) -> None:
        """Delete the field from any mode and return to idle."""
        self.sm.try_transition("clear")

    # =========================================================================
    # Clicks
    # =========================================================================

    def handle_map_click(self, vertex: Vertex) -> ClickOutcome:
        """Route a click on empty map space.

        - Active drag gesture: move the picked corner here
        - DRAWING: append a corner
        - Otherwise: insert a corner on the nearest edge if within
          InteractionConfig.EDGE_HIT_THRESHOLD_M
        """
        if self.ctx.drag.is_active:
            moved = self.drag_to(vertex)
            self.end_drag()
            return ClickOutcome.MOVED if moved else ClickOutcome.IGNORED

        if self.sm.is_drawing:
            return ClickOutcome.APPENDED if self.boundary.append_vertex(vertex) else ClickOutcome.IGNORED

        hit = self.find_edge_hit(vertex)
        if hit is None:
            return ClickOutcome.IGNORED

        edge_start, closest, distance_m = hit
        if distance_m >= InteractionConfig.EDGE_HIT_THRESHOLD_M:
            logger.debug(f"[CLICK] Edge miss: nearest edge {edge_start} is {distance_m:.1f}m away")
            return ClickOutcome.IGNORED

        ring = self.boundary.vertices
        if closest in (ring[edge_start], ring[(edge_start + 1) % len(ring)]):
            # Clamped past the segment end: would duplicate a corner
            logger.debug(f"[CLICK] Edge miss: nearest point on edge {edge_start} is a corner")
            return ClickOutcome.IGNORED

        if not self.boundary.insert_vertex(edge_start, closest):
            return ClickOutcome.IGNORED
        logger.info(f"[CLICK] Inserted corner after {edge_start} ({distance_m:.1f}m from click)")
        return ClickOutcome.INSERTED

    def find_edge_hit(self, vertex: Vertex) -> tuple[int, Vertex, float] | None:
        """Nearest edge to a click.

        Projects the click onto every edge (closing edge included) and keeps
        the global minimum by haversine distance.

        Returns:
            (edge start index, closest point, distance in meters), or None
            for fewer than 2 corners.
        """
        ring = self.boundary.vertices
        n = len(ring)
        if n < 2:
            return None

        best: tuple[int, Vertex, float] | None = None
        edge_count = 1 if n == 2 else n
        for i in range(edge_count):
            closest = GeoCalculator.closest_point_on_segment(vertex, ring[i], ring[(i + 1) % n])
            distance_m = vertex.distance_to(closest)
            if best is None or distance_m < best[2]:
                best = (i, closest, distance_m)
        return best

    # =========================================================================
    # Drag gesture
    # =========================================================================

    def begin_drag(self, index: int) -> bool:
        """Pick up a corner. Needs handles and an existing index."""
        if not self.ctx.handles_enabled:
            logger.debug(f"[DRAG] Ignored pick of corner {index}: handles disabled")
            return False
        if not 0 <= index < self.boundary.corner_count:
            logger.debug(f"[DRAG] Ignored pick of stale corner {index}")
            return False
        self.ctx.drag.start(index)
        logger.info(f"[DRAG] Picked corner {index}")
        return True

    def drag_to(self, vertex: Vertex) -> bool:
        """Move the picked corner. A stale index cancels the gesture."""
        if not self.ctx.drag.is_active:
            return False
        if not self.boundary.set_vertex(self.ctx.drag.index, vertex):
            self.ctx.drag.cancel()
            return False
        return True

    def end_drag(self) -> None:
        self.ctx.drag.cancel()

    def move_vertex(self, index: int, vertex: Vertex) -> bool:
        """Complete drag gesture in one call."""
        if not self.begin_drag(index):
            return False
        moved = self.drag_to(vertex)
        self.end_drag()
        return moved

    # =========================================================================
    # History
    # =========================================================================

    def undo(self) -> Vertex | None:
        self.end_drag()
        return self.boundary.undo()

    def redo(self) -> Vertex | None:
        self.end_drag()
        return self.boundary.redo()

    # =========================================================================
    # GPS
    # =========================================================================

    def set_gps_tracking(self, enabled: bool) -> None:
        self.ctx.gps_tracking = enabled
        if not enabled:
            self.ctx.last_fix = None
        logger.info(f"[GPS] Tracking {'on' if enabled else 'off'}")

    def handle_position_fix(self, fix: dict | Vertex) -> bool:
        """Consume a device position fix ({"lat", "lon"} or a Vertex).

        While tracking, the fix becomes the current position. While also
        DRAWING, it is appended as a corner (walking the field boundary).

        Returns:
            True if a corner was appended.
        """
        if not self.ctx.gps_tracking:
            return False
        try:
            vertex = fix if isinstance(fix, Vertex) else Vertex.from_dict(fix)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"[GPS] Ignored malformed fix {fix!r}: {e}")
            return False

        self.ctx.last_fix = vertex
        if not self.sm.is_drawing:
            return False
        return self.boundary.append_vertex(vertex)
