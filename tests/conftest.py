"""Shared pytest fixtures for fieldmapper tests.

Provides MockElevationRelay and reusable field geometry for all fieldmapper tests.
All fixtures use explicit values with documented rationale.

COORDINATE SYSTEM:
    Tests use coordinates near the equator (lat~0) and prime meridian (lon~0)
    where the math is simple: 0.001 degree ≈ 111 meters in both directions.
    A 0.001 x 0.001 degree square is therefore roughly 111 m x 111 m (~1.24 ha).
"""

import pytest

from fieldmapper.constants import InteractionConfig
from fieldmapper.core.elevation_analyzer import ElevationAnalyzer
from fieldmapper.core.elevation_service import ElevationServiceError
from fieldmapper.model.boundary import BoundaryMode, BoundaryModel
from fieldmapper.model.vertex import Vertex
from fieldmapper.ui.controller import InteractionController


# =============================================================================
# MOCK ELEVATION RELAY
# =============================================================================


class MockElevationRelay:
    """Mock elevation client returning a synthetic linear surface.

    Stands in for the Google Maps relay so analyses run without network access.

    Elevation formula:
        elevation = base_elev + lat * METERS_PER_DEGREE * slope_ns_pct / 100

    At lat=0: elevation = base_elev
    Going north (positive lat): elevation rises if slope_ns > 0

    Example with base=300m, slope_ns=10%:
        - lat=0.000: 300m
        - lat=0.001 (111m north): 311.1m
    """

    def __init__(self, base_elevation: float, slope_ns_pct: float, fail_on_batch: int | None = None) -> None:
        """Initialize mock relay.

        Args:
            base_elevation: Elevation on the equator
            slope_ns_pct: North-south slope percentage. Positive = rises going north.
            fail_on_batch: 1-based batch number that raises ElevationServiceError (HTTP 500)
        """
        self.base_elevation = base_elevation
        self.slope_ns_pct = slope_ns_pct
        self.fail_on_batch = fail_on_batch
        self.batch_sizes: list[int] = []

    def get_elevation(self, lat: float) -> float:
        M = InteractionConfig.METERS_PER_DEGREE_APPROX
        return self.base_elevation + lat * M * (self.slope_ns_pct / 100)

    def fetch_batch(self, points: list[Vertex]) -> list[float]:
        self.batch_sizes.append(len(points))
        if self.fail_on_batch is not None and len(self.batch_sizes) == self.fail_on_batch:
            raise ElevationServiceError(
                "Failed to get elevation data", status_code=500, detail="Backend error"
            )
        return [self.get_elevation(lat=p.lat) for p in points]


# =============================================================================
# MOCK RELAY FIXTURES
# =============================================================================


@pytest.fixture
def mock_relay_north_slope() -> MockElevationRelay:
    """Mock relay: 10% slope rising to the north, 300m on the equator.

    Across the 111m square field: 300m (south edge) to ~311m (north edge).
    """
    return MockElevationRelay(base_elevation=300.0, slope_ns_pct=10.0)


@pytest.fixture
def mock_relay_flat() -> MockElevationRelay:
    """Mock relay: perfectly flat field at 250m."""
    return MockElevationRelay(base_elevation=250.0, slope_ns_pct=0.0)


@pytest.fixture
def mock_relay_failing() -> MockElevationRelay:
    """Mock relay whose first batch fails with HTTP 500."""
    return MockElevationRelay(base_elevation=300.0, slope_ns_pct=10.0, fail_on_batch=1)


@pytest.fixture
def analyzer_north_slope(mock_relay_north_slope: MockElevationRelay) -> ElevationAnalyzer:
    """Analyzer on the north slope relay, no delay between batches."""
    return ElevationAnalyzer(client=mock_relay_north_slope, batch_delay_s=0.0)


# =============================================================================
# GEOMETRY FIXTURES
# =============================================================================


@pytest.fixture
def square_ring_111m() -> list[Vertex]:
    """Square field of 0.001 x 0.001 degrees (~111m sides) with SW corner at origin.

    Order: SW (0, 0) → SE (0, 0.001) → NE (0.001, 0.001) → NW (0.001, 0).
    Closing edge NW → SW runs along lng=0.
    """
    return [
        Vertex(lat=0.0, lng=0.0),
        Vertex(lat=0.0, lng=0.001),
        Vertex(lat=0.001, lng=0.001),
        Vertex(lat=0.001, lng=0.0),
    ]


@pytest.fixture
def drawing_boundary() -> BoundaryModel:
    """Empty boundary in DRAWING mode, ready for appends."""
    boundary = BoundaryModel()
    boundary.set_mode(BoundaryMode.DRAWING)
    return boundary


@pytest.fixture
def square_boundary(drawing_boundary: BoundaryModel, square_ring_111m: list[Vertex]) -> BoundaryModel:
    """Boundary holding the 111m square, still in DRAWING mode."""
    for vertex in square_ring_111m:
        drawing_boundary.append_vertex(vertex)
    return drawing_boundary


# =============================================================================
# CONTROLLER FIXTURES
# =============================================================================


@pytest.fixture
def controller() -> InteractionController:
    """Fresh controller in IDLE without the Streamlit listener."""
    return InteractionController.create(add_ui_listener=False)


@pytest.fixture
def controller_with_square(controller: InteractionController, square_ring_111m: list[Vertex]) -> InteractionController:
    """Controller after drawing the 111m square and finishing (IDLE, handles on)."""
    controller.toggle_draw()
    for vertex in square_ring_111m:
        controller.handle_map_click(vertex)
    controller.toggle_draw()
    return controller
