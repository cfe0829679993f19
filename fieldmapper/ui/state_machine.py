"""State machine for the field mapper UI.

Uses python-statemachine with the model pattern: the InteractionContext is
passed as the model and holds everything that persists across transitions
(the BoundaryModel, drag handles, the active drag gesture, GPS tracking and
the map view).

States:
    IDLE: Ring frozen. Clicks near an edge insert a corner. Drag handles
        are on after finishing a drawing, off after disabling editing.
    DRAWING: Every map click (and GPS fix while tracking) appends a corner.
    EDITING_VERTICES: Drag handles on. Corners can be picked and moved.

Transitions:
    IDLE -> DRAWING: start_drawing (fresh ring)
    EDITING_VERTICES -> DRAWING: start_drawing (fresh ring)
    DRAWING -> IDLE: finish_drawing (keeps corners, enables handles)
    IDLE -> EDITING_VERTICES: enable_editing (needs at least one corner)
    DRAWING -> EDITING_VERTICES: enable_editing (needs at least one corner)
    EDITING_VERTICES -> IDLE: disable_editing (removes handles)
    any -> IDLE: clear (empties the ring and its history)

Entry hooks mirror the current state into BoundaryModel.mode so the model
can refuse appends outside DRAWING on its own.

StreamlitUIListener logs each transition and triggers st.rerun(). All
context updates therefore happen inside before_*/on_enter_* hooks, never
after send() returns.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import streamlit as st
from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from fieldmapper.constants import BasemapConfig, MapConfig, UnitConfig
from fieldmapper.model.boundary import BoundaryMode, BoundaryModel
from fieldmapper.model.vertex import Vertex

logger = logging.getLogger(__name__)


@dataclass
class DragGesture:
    """A corner being moved: start (pick), move (set_vertex), end."""

    index: int | None = None

    @property
    def is_active(self) -> bool:
        return self.index is not None

    def start(self, index: int) -> None:
        self.index = index

    def cancel(self) -> None:
        self.index = None


@dataclass
class MapContext:
    """Map view and display settings."""

    center: tuple[float, float] = (MapConfig.START_CENTER_LAT, MapConfig.START_CENTER_LON)
    zoom: float = MapConfig.DEFAULT_ZOOM
    basemap: str = BasemapConfig.DEFAULT
    unit: str = UnitConfig.DEFAULT_UNIT
    search_marker: tuple[float, float] | None = None  # (lat, lon)

    def fly_to(self, lat: float, lon: float, zoom: float) -> None:
        self.center = (lat, lon)
        self.zoom = zoom


@dataclass
class InteractionContext:
    """Shared context/model for the state machine.

    Note: The 'state' field is managed by python-statemachine when this
    object is passed as the model. It stores the current state value.
    """

    # State managed by python-statemachine (model pattern)
    state: str | None = None

    boundary: BoundaryModel = field(default_factory=BoundaryModel)
    handles_enabled: bool = False
    drag: DragGesture = field(default_factory=DragGesture)
    gps_tracking: bool = False
    last_fix: Vertex | None = None
    map: MapContext = field(default_factory=MapContext)

    def __repr__(self) -> str:
        return (
            f"InteractionContext(state={self.state}, corners={self.boundary.corner_count}, "
            f"handles={self.handles_enabled}, drag={self.drag.index}, gps={self.gps_tracking})"
        )


class StreamlitUIListener:
    """Listener that logs transitions and refreshes the Streamlit page.

    Usage:
        sm = BoundaryStateMachine(context=context)
        sm.add_listener(StreamlitUIListener())
    """

    def after_transition(self, event: str, source: State, target: State) -> None:
        """Log the transition and trigger a Streamlit rerun."""
        logger.info(f"[STATE] {source.name} --({event})--> {target.name}")
        st.rerun()


class BoundaryStateMachine(StateMachine):
    """Mode state machine for drawing and editing a field boundary.

    See module docstring for the complete transition table.
    """

    # ==========================================================================
    # State Definitions
    # ==========================================================================

    idle = State("Idle", initial=True)
    drawing = State("Drawing")
    editing_vertices = State("EditingVertices")

    # ==========================================================================
    # Transitions
    # ==========================================================================

    start_drawing = idle.to(drawing) | editing_vertices.to(drawing)
    finish_drawing = drawing.to(idle)
    enable_editing = idle.to(editing_vertices, cond="has_vertices") | drawing.to(
        editing_vertices, cond="has_vertices"
    )
    disable_editing = editing_vertices.to(idle)
    clear = idle.to(idle) | drawing.to(idle) | editing_vertices.to(idle)

    # ==========================================================================
    # Guards (Conditions)
    # ==========================================================================

    def has_vertices(self) -> bool:
        """Guard: Editing needs at least one corner."""
        return not self.context.boundary.is_empty

    # ==========================================================================
    # State Check Properties
    # ==========================================================================

    @property
    def is_idle(self) -> bool:
        return self.idle.is_active

    @property
    def is_drawing(self) -> bool:
        return self.drawing.is_active

    @property
    def is_editing_vertices(self) -> bool:
        return self.editing_vertices.is_active

    # ==========================================================================
    # Entry Hooks
    # ==========================================================================

    def on_enter_idle(self) -> None:
        """Hook: Entering idle state."""
        self.context.boundary.set_mode(BoundaryMode.IDLE)
        self.context.drag.cancel()

    def on_enter_drawing(self) -> None:
        """Hook: Entering drawing state starts a fresh ring."""
        self.context.boundary.clear()
        self.context.boundary.set_mode(BoundaryMode.DRAWING)
        self.context.handles_enabled = False
        self.context.drag.cancel()

    def on_enter_editing_vertices(self) -> None:
        """Hook: Entering vertex editing shows drag handles."""
        self.context.boundary.set_mode(BoundaryMode.EDITING_VERTICES)
        self.context.handles_enabled = True

    # ==========================================================================
    # Transition Actions (before_* hooks)
    # ==========================================================================

    def before_finish_drawing(self) -> None:
        """Freeze the ring and enable drag handles on its corners."""
        self.context.handles_enabled = True

    def before_disable_editing(self) -> None:
        """Remove handles; corner data is untouched."""
        self.context.handles_enabled = False

    def before_clear(self) -> None:
        """Discard the ring and its history."""
        self.context.boundary.clear()
        self.context.handles_enabled = False

    # ==========================================================================
    # Initialization
    # ==========================================================================

    def __init__(self, context: InteractionContext | None = None, start_value: str | None = None) -> None:
        """Initialize state machine with model pattern.

        Args:
            context: Shared context/model (creates new if None)
            start_value: Optional initial state value (for restoring state)
        """
        model = context or InteractionContext()
        super().__init__(model=model, start_value=start_value)

    # ==========================================================================
    # Utility Methods
    # ==========================================================================

    @property
    def context(self) -> InteractionContext:
        """Alias for model."""
        return self.model

    def get_state_name(self) -> str:
        """Get current state name for display."""
        return self.current_state.name

    def __repr__(self) -> str:
        return f"BoundaryStateMachine(state={self.get_state_name()}, model={self.context!r})"

    def try_transition(self, event: str, **kwargs: Any) -> bool:
        """Attempt a transition, returning success/failure.

        Args:
            event: Transition event name
            **kwargs: Arguments for transition

        Returns:
            True if transition succeeded, False otherwise.
        """
        try:
            self.send(event, **kwargs)
            return True
        except TransitionNotAllowed:
            logger.warning(f"Transition '{event}' not allowed from {self.get_state_name()}")
            return False

    @staticmethod
    def create(
        add_ui_listener: bool = True,
        boundary: BoundaryModel | None = None,
    ) -> tuple["BoundaryStateMachine", InteractionContext]:
        """Factory method to create state machine with context and optional UI listener.

        Args:
            add_ui_listener: If True, adds StreamlitUIListener for auto st.rerun().
                             Set to False for testing or non-Streamlit usage.
            boundary: Existing field to adopt (error recovery). A new one if None.

        Returns:
            Tuple of (BoundaryStateMachine, InteractionContext)
        """
        context = InteractionContext(boundary=boundary) if boundary is not None else InteractionContext()
        sm = BoundaryStateMachine(context=context)
        if add_ui_listener:
            sm.add_listener(StreamlitUIListener())
            logger.info("Created BoundaryStateMachine with StreamlitUIListener")
        else:
            logger.info("Created BoundaryStateMachine without UI listener")
        return sm, context
