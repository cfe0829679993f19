"""Shared pytest fixtures for fieldmapper workflow tests.

Provides a mock elevation relay and a controller factory for end-to-end
scenarios. Minimal fixtures: each workflow test builds its own field.

COORDINATE SYSTEM:
    Tests use coordinates near the equator (lat~0) and prime meridian (lon~0)
    where 0.001 degree ≈ 111 meters in both directions.
"""

from collections.abc import Callable
from unittest.mock import MagicMock

import pytest

from fieldmapper.constants import InteractionConfig
from fieldmapper.core.elevation_analyzer import ElevationAnalyzer
from fieldmapper.core.elevation_service import RelayElevationClient
from fieldmapper.model.vertex import Vertex
from fieldmapper.ui.controller import InteractionController

# SW → SE → NE → NW, 0.001° sides
SQUARE = [(0.0, 0.0), (0.0, 0.001), (0.001, 0.001), (0.001, 0.0)]


class MockElevationRelay:
    """Mock elevation client: linear surface rising north, never fails.

    elevation = base_elev + lat * METERS_PER_DEGREE * slope_ns_pct / 100
    """

    def __init__(self, base_elevation: float, slope_ns_pct: float) -> None:
        self.base_elevation = base_elevation
        self.slope_ns_pct = slope_ns_pct
        self.calls = 0

    def fetch_batch(self, points: list[Vertex]) -> list[float]:
        self.calls += 1
        M = InteractionConfig.METERS_PER_DEGREE_APPROX
        return [self.base_elevation + p.lat * M * (self.slope_ns_pct / 100) for p in points]


@pytest.fixture
def controller() -> InteractionController:
    """Fresh controller in IDLE, no Streamlit listener."""
    return InteractionController.create(add_ui_listener=False)


@pytest.fixture
def mock_relay_gentle_slope() -> MockElevationRelay:
    """5% slope rising north, 400m on the equator."""
    return MockElevationRelay(base_elevation=400.0, slope_ns_pct=5.0)


@pytest.fixture
def relay_client_http_500() -> RelayElevationClient:
    """HTTP relay client whose relay always answers 500 with the upstream error."""
    session = MagicMock()
    session.post.return_value.status_code = 500
    session.post.return_value.json.return_value = {
        "message": "Failed to get elevation data",
        "error": "You have exceeded your daily request quota for this API.",
    }
    return RelayElevationClient(relay_url="https://relay.example/elevation", api_key="test-key", session=session)


@pytest.fixture
def analyzer_gentle_slope(mock_relay_gentle_slope: MockElevationRelay) -> ElevationAnalyzer:
    return ElevationAnalyzer(client=mock_relay_gentle_slope, batch_size=10, batch_delay_s=0.0)


@pytest.fixture
def draw() -> Callable[..., None]:
    """Helper that draws a ring by clicking each (lat, lng) corner in order."""

    def _draw(controller: InteractionController, corners: list[tuple[float, float]], finish: bool = True) -> None:
        controller.toggle_draw()
        for lat, lng in corners:
            controller.handle_map_click(Vertex(lat=lat, lng=lng))
        if finish:
            controller.toggle_draw()

    return _draw


@pytest.fixture
def square() -> list[tuple[float, float]]:
    """SW → SE → NE → NW, 0.001° sides (~111m)."""
    return list(SQUARE)
