"""User interface components for field mapper.

File Structure (layout-based naming):
- left_panel.py: Sidebar with drawing controls, settings, search, elevation, export
- center_map.py: Pydeck map with field, corner handles, labels, elevation cells
- right_panel.py: Field measurements and elevation summary
- bottom_chart.py: Plotly elevation histogram

Core Components:
- state_machine.py: BoundaryStateMachine (3 states) + InteractionContext
- controller.py: InteractionController (clicks, drags, history, GPS)
- actions.py: All action functions (toggle, undo, analyze, search, export)
- click_handlers.py: Map click routing
- validators.py: Input validation with Optional[Message] returns
"""

from fieldmapper.ui.bottom_chart import ElevationHistogram
from fieldmapper.ui.center_map import MapRenderer
from fieldmapper.ui.click_handlers import dispatch_click
from fieldmapper.ui.controller import ClickOutcome, InteractionController
from fieldmapper.ui.left_panel import SidebarRenderer
from fieldmapper.ui.right_panel import render_control_panel
from fieldmapper.ui.state_machine import (
    BoundaryStateMachine,
    InteractionContext,
    StreamlitUIListener,
)

__all__ = [
    "BoundaryStateMachine",
    "InteractionContext",
    "StreamlitUIListener",
    "InteractionController",
    "ClickOutcome",
    "MapRenderer",
    "ElevationHistogram",
    "SidebarRenderer",
    "dispatch_click",
    "render_control_panel",
]
