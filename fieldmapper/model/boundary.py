"""BoundaryModel - Single source of truth for the field boundary.

Owns the ring of vertices, the undo/redo history and the derived metrics
(area, perimeter, corner count). Every mutation recomputes the metrics
before returning, so readers never see values from a previous ring.

Undo granularity:
    Only appended vertices are undoable. Dragging (set_vertex) and
    edge insertion (insert_vertex) are not recorded in the history, and
    clear() discards the history entirely. This is intentional.

Reference: DESIGN.md (BoundaryModel)
"""

import logging
from enum import Enum

from fieldmapper.core.geo_calculator import GeoCalculator
from fieldmapper.model.vertex import Vertex

logger = logging.getLogger(__name__)


class BoundaryMode(Enum):
    """Interaction mode of the boundary (mirrors the state machine)."""

    IDLE = "idle"
    DRAWING = "drawing"
    EDITING_VERTICES = "editing_vertices"


class BoundaryModel:
    """Mutable polygon state for a single field.

    Example:
        boundary = BoundaryModel()
        boundary.set_mode(BoundaryMode.DRAWING)
        boundary.append_vertex(Vertex(lat=0.0, lng=0.0))
        boundary.undo()
    """

    def __init__(self) -> None:
        """Initialize empty boundary."""
        self._vertices: list[Vertex] = []
        self.undo_history: list[Vertex] = []
        self.redo_history: list[Vertex] = []
        self.mode = BoundaryMode.IDLE
        self.revision = 0

        self._area_m2 = 0.0
        self._perimeter_m = 0.0

    # =========================================================================
    # Derived State
    # =========================================================================

    @property
    def vertices(self) -> tuple[Vertex, ...]:
        """Current ring (read-only copy)."""
        return tuple(self._vertices)

    @property
    def area_m2(self) -> float:
        return self._area_m2

    @property
    def perimeter_m(self) -> float:
        return self._perimeter_m

    @property
    def corner_count(self) -> int:
        return len(self._vertices)

    @property
    def is_empty(self) -> bool:
        return not self._vertices

    @property
    def has_polygon(self) -> bool:
        """True once the ring encloses an area (3+ corners)."""
        return len(self._vertices) >= 3

    @property
    def can_undo(self) -> bool:
        return bool(self._vertices)

    @property
    def can_redo(self) -> bool:
        return bool(self.redo_history)

    def snapshot(self) -> tuple[Vertex, ...]:
        """Immutable copy of the ring for long-running consumers."""
        return tuple(self._vertices)

    def edge_lengths_m(self) -> list[tuple[Vertex, Vertex, float]]:
        """Edges with their haversine lengths, closing edge included.

        A two-vertex ring has a single edge. Used for edge length labels.
        """
        n = len(self._vertices)
        if n < 2:
            return []
        edge_count = 1 if n == 2 else n
        edges = []
        for i in range(edge_count):
            start = self._vertices[i]
            end = self._vertices[(i + 1) % n]
            edges.append((start, end, start.distance_to(end)))
        return edges

    def _recompute_metrics(self) -> None:
        """Recompute area and perimeter from the current ring."""
        self._area_m2 = GeoCalculator.geodesic_area_m2(self._vertices)
        self._perimeter_m = GeoCalculator.ring_perimeter_m(self._vertices)
        self.revision += 1

    # =========================================================================
    # Mutations
    # =========================================================================

    def set_mode(self, mode: BoundaryMode) -> None:
        """Set interaction mode (called by state machine hooks)."""
        self.mode = mode

    def append_vertex(self, vertex: Vertex) -> bool:
        """Append a corner while drawing.

        Returns:
            True if appended, False if not in DRAWING mode.
        """
        # Compare by name: Streamlit module reloads create new enum classes
        if self.mode.name != BoundaryMode.DRAWING.name:
            logger.warning(f"append_vertex ignored in mode {self.mode.value}")
            return False

        self._vertices.append(vertex)
        self.undo_history.append(vertex)
        self.redo_history.clear()
        self._recompute_metrics()
        return True

    def undo(self) -> Vertex | None:
        """Remove the last corner and make it redoable.

        Returns:
            The removed Vertex, or None if the ring is empty.
        """
        if not self._vertices:
            return None

        removed = self._vertices.pop()
        if self.undo_history:
            self.undo_history.pop()
        self.redo_history.append(removed)
        self._recompute_metrics()
        return removed

    def redo(self) -> Vertex | None:
        """Re-append the most recently undone corner.

        Returns:
            The restored Vertex, or None if there is nothing to redo.
        """
        if not self.redo_history:
            return None

        restored = self.redo_history.pop()
        self._vertices.append(restored)
        self.undo_history.append(restored)
        self._recompute_metrics()
        return restored

    def set_vertex(self, index: int, vertex: Vertex) -> bool:
        """Replace the corner at index (drag). Not undoable.

        Returns:
            True if replaced, False if index no longer exists.
        """
        if not 0 <= index < len(self._vertices):
            logger.debug(f"set_vertex ignored: stale index {index} (corners={len(self._vertices)})")
            return False

        self._vertices[index] = vertex
        self.redo_history.clear()
        self._recompute_metrics()
        return True

    def insert_vertex(self, index: int, vertex: Vertex) -> bool:
        """Insert a new corner after index (edge click). Not undoable.

        Returns:
            True if inserted, False if index no longer exists.
        """
        if not 0 <= index < len(self._vertices):
            logger.debug(f"insert_vertex ignored: stale index {index} (corners={len(self._vertices)})")
            return False

        self._vertices.insert(index + 1, vertex)
        self.redo_history.clear()
        self._recompute_metrics()
        return True

    def clear(self) -> None:
        """Remove all corners and history."""
        self._vertices.clear()
        self.undo_history.clear()
        self.redo_history.clear()
        self._recompute_metrics()

    def __repr__(self) -> str:
        return (
            f"BoundaryModel(mode={self.mode.value}, corners={self.corner_count}, "
            f"area={self._area_m2:.1f}m², perimeter={self._perimeter_m:.1f}m)"
        )
