"""Pydeck click handler using streamlit-deckgl.

st_deckgl returns the full deck.gl onClick event, so clicks on empty map
space arrive with a coordinate just like clicks on pickable objects
(st.pydeck_chart only reports object selections).
"""

import logging
from dataclasses import dataclass
from typing import Any

import pydeck as pdk
import streamlit as st
from streamlit_deckgl import st_deckgl  # type: ignore[import-untyped]

from fieldmapper.constants import MapConfig

logger = logging.getLogger(__name__)


@dataclass
class PydeckClickResult:
    """Result from Pydeck click detection.

    Attributes:
        clicked_object: The picked deck.gl object data (dict) or None for a map click
        clicked_coordinate: [lng, lat] of click location
    """

    clicked_object: dict[str, Any] | None
    clicked_coordinate: list[float] | None

    @property
    def is_object_click(self) -> bool:
        return self.clicked_object is not None

    @property
    def is_map_click(self) -> bool:
        """True if empty map space was clicked with valid coordinates."""
        return self.clicked_object is None and self.clicked_coordinate is not None

    @property
    def object_type(self) -> str | None:
        return self.clicked_object.get("type") if self.clicked_object else None

    @staticmethod
    def empty() -> "PydeckClickResult":
        return PydeckClickResult(clicked_object=None, clicked_coordinate=None)

    @staticmethod
    def from_event(event: dict | None) -> "PydeckClickResult":
        """Parse a st_deckgl event.

        st_deckgl spreads object properties into the event dict (no "object" key):
        - Map click: {coordinate: [lng, lat], eventType: "click"}
        - Object click: {type: ..., id: ..., coordinate: [lng, lat], eventType: "click", ...}
        """
        if not event or not isinstance(event, dict):
            return PydeckClickResult.empty()

        clicked_coordinate: list[float] | None = None
        coord = event.get("coordinate")
        if isinstance(coord, (list, tuple)) and len(coord) >= 2:
            clicked_coordinate = [float(coord[0]), float(coord[1])]

        clicked_object: dict[str, Any] | None = None
        if event.get("type") and event["type"] != "click":
            clicked_object = {k: v for k, v in event.items() if k not in ("coordinate", "eventType")}

        return PydeckClickResult(clicked_object=clicked_object, clicked_coordinate=clicked_coordinate)


def render_pydeck_map(
    deck: pdk.Deck,
    key: str,
    height: int = MapConfig.HEIGHT_PX,
) -> PydeckClickResult:
    """Render Pydeck map and return the newest click, deduplicated.

    Args:
        deck: Configured pydeck.Deck object
        key: Unique key for this component instance
        height: Height in pixels

    Returns:
        PydeckClickResult with click info (object and/or coordinate)
    """
    last_click_key = f"_deckgl_last_click_{key}"
    if last_click_key not in st.session_state:
        st.session_state[last_click_key] = None

    # MUST pass events=['click'] to enable click detection
    event = st_deckgl(deck, key=key, height=height, events=["click"])
    result = PydeckClickResult.from_event(event)
    if result.clicked_object is None and result.clicked_coordinate is None:
        return PydeckClickResult.empty()

    # The component keeps returning its last event on every rerun
    click_id = get_click_id(obj=result.clicked_object, coord=result.clicked_coordinate)
    if click_id == st.session_state.get(last_click_key):
        return PydeckClickResult.empty()
    st.session_state[last_click_key] = click_id

    logger.debug(f"[CLICK] object={result.object_type}, coord={result.clicked_coordinate}")
    return result


def get_click_id(obj: dict[str, Any] | None, coord: list[float] | None) -> str:
    """Generate unique ID for click deduplication."""
    parts = []

    if obj:
        obj_type = obj.get("type", "")
        obj_id = obj.get("id", "")
        if obj_type and obj_id:
            parts.append(f"{obj_type}_{obj_id}")

    if coord:
        # Round coordinates for dedup tolerance
        parts.append(f"coord_{coord[0]:.7f}_{coord[1]:.7f}")

    return "_".join(parts) if parts else ""
