"""Tests for the elevation relay, relay clients and ElevationAnalyzer.

Relay and client tests stub HTTP with unittest.mock. Analyzer tests use the
MockElevationRelay from conftest (linear north-south surface).
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from fieldmapper.constants import ElevationConfig
from fieldmapper.core.elevation_analyzer import AnalysisBusyError, ElevationAnalyzer
from fieldmapper.core.elevation_service import (
    ElevationServiceError,
    GoogleElevationRelay,
    LocalRelayElevationClient,
    RelayElevationClient,
    create_elevation_client,
    parse_relay_response,
)
from fieldmapper.model.elevation import GridSample
from fieldmapper.model.vertex import Vertex

POINTS = [{"lat": 26.9, "lng": 75.8}, {"lat": 26.91, "lng": 75.81}]


def _google_response(payload: dict) -> MagicMock:
    response = MagicMock()
    response.json.return_value = payload
    return response


# =============================================================================
# RELAY (server side)
# =============================================================================


class TestGoogleElevationRelay:
    """Request validation and upstream translation."""

    def test_rejects_non_post(self) -> None:
        status, payload = GoogleElevationRelay().handle({"points": POINTS, "apiKey": "k"}, method="GET")
        assert status == 405
        assert payload == {"message": "Method not allowed"}

    @pytest.mark.parametrize("body", [None, {}, {"points": []}, {"points": "26.9,75.8"}])
    def test_rejects_missing_points(self, body: dict | None) -> None:
        status, payload = GoogleElevationRelay().handle(body)
        assert status == 400
        assert payload["message"] == "Invalid points data"

    def test_rejects_missing_api_key(self) -> None:
        status, payload = GoogleElevationRelay().handle({"points": POINTS})
        assert status == 400
        assert payload["message"] == "API key is required"

    def test_format_locations(self) -> None:
        assert GoogleElevationRelay.format_locations(POINTS) == "26.9,75.8|26.91,75.81"

    def test_ok_passes_payload_through(self) -> None:
        google = {"status": "OK", "results": [{"elevation": 431.2}, {"elevation": 440.0}]}
        with patch("fieldmapper.core.elevation_service.requests.get", return_value=_google_response(google)) as get:
            status, payload = GoogleElevationRelay().handle({"points": POINTS, "apiKey": "secret"})

        assert status == 200
        assert payload == google
        params = get.call_args.kwargs["params"]
        assert params == {"locations": "26.9,75.8|26.91,75.81", "key": "secret"}

    def test_upstream_error_status_is_500(self) -> None:
        google = {"status": "REQUEST_DENIED", "error_message": "The provided API key is invalid."}
        with patch("fieldmapper.core.elevation_service.requests.get", return_value=_google_response(google)):
            status, payload = GoogleElevationRelay().handle({"points": POINTS, "apiKey": "bad"})

        assert status == 500
        assert payload == {"message": "Failed to get elevation data", "error": "The provided API key is invalid."}

    def test_ok_without_results_is_500(self) -> None:
        with patch("fieldmapper.core.elevation_service.requests.get", return_value=_google_response({"status": "OK"})):
            status, payload = GoogleElevationRelay().handle({"points": POINTS, "apiKey": "k"})
        assert status == 500
        assert payload["error"] == "Unknown error"

    def test_transport_failure_is_500(self) -> None:
        with patch(
            "fieldmapper.core.elevation_service.requests.get",
            side_effect=requests.ConnectionError("connection refused"),
        ):
            status, payload = GoogleElevationRelay().handle({"points": POINTS, "apiKey": "k"})
        assert status == 500
        assert payload["message"] == "Failed to fetch elevation data"
        assert "connection refused" in payload["error"]


# =============================================================================
# CLIENTS
# =============================================================================


class TestParseRelayResponse:
    """Tests for parse_relay_response."""

    def test_ok(self) -> None:
        payload = {"status": "OK", "results": [{"elevation": 1.5}, {"elevation": 2}]}
        assert parse_relay_response(200, payload, expected=2) == [1.5, 2.0]

    def test_error_status_carries_message(self) -> None:
        with pytest.raises(ElevationServiceError) as exc_info:
            parse_relay_response(500, {"message": "Failed to get elevation data", "error": "quota"}, expected=1)
        assert exc_info.value.status_code == 500
        assert str(exc_info.value) == "Failed to get elevation data: quota (HTTP 500)"

    def test_count_mismatch(self) -> None:
        payload = {"status": "OK", "results": [{"elevation": 1.0}]}
        with pytest.raises(ElevationServiceError, match="Expected 2 elevations"):
            parse_relay_response(200, payload, expected=2)

    def test_bad_format(self) -> None:
        with pytest.raises(ElevationServiceError, match="Invalid elevation data format"):
            parse_relay_response(200, {"status": "OK", "results": [{"height": 1.0}]}, expected=1)
        with pytest.raises(ElevationServiceError, match="Invalid elevation data format"):
            parse_relay_response(200, {"status": "INVALID_REQUEST"}, expected=1)


class TestRelayClients:
    """Tests for the HTTP and in-process relay clients."""

    def test_http_client_posts_points_and_key(self) -> None:
        session = MagicMock()
        session.post.return_value.status_code = 200
        session.post.return_value.json.return_value = {"status": "OK", "results": [{"elevation": 431.0}]}
        client = RelayElevationClient(relay_url="https://relay.example/elevation", api_key="k", session=session)

        assert client.fetch_batch([Vertex(lat=26.9, lng=75.8)]) == [431.0]
        args, kwargs = session.post.call_args
        assert args == ("https://relay.example/elevation",)
        assert kwargs["json"] == {"points": [{"lat": 26.9, "lng": 75.8}], "apiKey": "k"}

    def test_http_client_wraps_transport_errors(self) -> None:
        session = MagicMock()
        session.post.side_effect = requests.Timeout("timed out")
        client = RelayElevationClient(relay_url="https://relay.example/elevation", api_key="k", session=session)

        with pytest.raises(ElevationServiceError, match="timed out") as exc_info:
            client.fetch_batch([Vertex(lat=0.0, lng=0.0)])
        assert exc_info.value.status_code is None

    def test_http_client_non_json_error_body(self) -> None:
        session = MagicMock()
        session.post.return_value.status_code = 502
        session.post.return_value.json.side_effect = ValueError("no json")
        client = RelayElevationClient(relay_url="https://relay.example/elevation", api_key="k", session=session)

        with pytest.raises(ElevationServiceError) as exc_info:
            client.fetch_batch([Vertex(lat=0.0, lng=0.0)])
        assert exc_info.value.status_code == 502

    def test_local_client_uses_relay_in_process(self) -> None:
        relay = MagicMock()
        relay.handle.return_value = (200, {"status": "OK", "results": [{"elevation": 10.0}, {"elevation": 11.0}]})
        client = LocalRelayElevationClient(api_key="k", relay=relay)

        assert client.fetch_batch([Vertex(lat=0.0, lng=0.0), Vertex(lat=0.001, lng=0.0)]) == [10.0, 11.0]
        body = relay.handle.call_args.args[0]
        assert body["apiKey"] == "k"
        assert len(body["points"]) == 2

    def test_local_client_propagates_relay_validation(self) -> None:
        client = LocalRelayElevationClient(api_key="")
        with pytest.raises(ElevationServiceError) as exc_info:
            client.fetch_batch([Vertex(lat=0.0, lng=0.0)])
        assert exc_info.value.status_code == 400

    def test_factory_picks_transport(self) -> None:
        assert isinstance(create_elevation_client(api_key="k", relay_url=""), LocalRelayElevationClient)
        remote = create_elevation_client(api_key="k", relay_url="https://relay.example/elevation")
        assert isinstance(remote, RelayElevationClient)
        assert remote.relay_url == "https://relay.example/elevation"


# =============================================================================
# ANALYZER
# =============================================================================


class TestSampleGrid:
    """Tests for ElevationAnalyzer.build_sample_grid."""

    def test_square_keeps_every_cell_center(self, square_ring_111m: list[Vertex]) -> None:
        points = ElevationAnalyzer.build_sample_grid(square_ring_111m, density=4)
        assert len(points) == 16
        # Row-major from the south-west cell
        assert points[0].lat == pytest.approx(0.000125)
        assert points[0].lng == pytest.approx(0.000125)
        assert points[1].lng > points[0].lng
        assert points[4].lat > points[0].lat

    def test_triangle_drops_outside_centers(self) -> None:
        triangle = [Vertex(lat=0.0, lng=0.0), Vertex(lat=0.0, lng=0.001), Vertex(lat=0.001, lng=0.0)]
        points = ElevationAnalyzer.build_sample_grid(triangle, density=10)
        assert 0 < len(points) < 100
        # Centers exactly on the hypotenuse may fall either way
        assert all(p.lat + p.lng <= 0.001 + 1e-12 for p in points)

    def test_degenerate_rings_give_empty_grid(self) -> None:
        assert ElevationAnalyzer.build_sample_grid([Vertex(lat=0, lng=0), Vertex(lat=1, lng=1)], density=5) == []
        flat_line = [Vertex(lat=0.0, lng=0.0), Vertex(lat=0.0, lng=0.001), Vertex(lat=0.0, lng=0.002)]
        assert ElevationAnalyzer.build_sample_grid(flat_line, density=5) == []

    def test_density_must_be_positive(self, square_ring_111m: list[Vertex]) -> None:
        with pytest.raises(ValueError, match="density"):
            ElevationAnalyzer.build_sample_grid(square_ring_111m, density=0)


class TestFetchElevations:
    """Tests for batching in ElevationAnalyzer.fetch_elevations."""

    def test_batches_preserve_order(self, mock_relay_north_slope) -> None:
        analyzer = ElevationAnalyzer(client=mock_relay_north_slope, batch_size=3, batch_delay_s=0.0)
        points = [Vertex(lat=0.0001 * i, lng=0.0) for i in range(7)]
        progress: list[float] = []

        samples = analyzer.fetch_elevations(points, progress_callback=progress.append)

        assert mock_relay_north_slope.batch_sizes == [3, 3, 1]
        assert [s.location for s in samples] == points
        assert [s.elevation for s in samples] == [mock_relay_north_slope.get_elevation(p.lat) for p in points]
        assert progress == pytest.approx([1 / 3, 2 / 3, 1.0])

    def test_sleeps_only_between_batches(self, mock_relay_flat) -> None:
        analyzer = ElevationAnalyzer(client=mock_relay_flat, batch_size=2, batch_delay_s=0.1)
        points = [Vertex(lat=0.0, lng=0.0001 * i) for i in range(5)]
        with patch("fieldmapper.core.elevation_analyzer.time.sleep") as sleep:
            analyzer.fetch_elevations(points)
        assert sleep.call_count == 2

    def test_short_batch_answer_raises(self) -> None:
        client = MagicMock()
        client.fetch_batch.return_value = [1.0]
        analyzer = ElevationAnalyzer(client=client, batch_delay_s=0.0)
        with pytest.raises(ElevationServiceError, match="Expected 2"):
            analyzer.fetch_elevations([Vertex(lat=0, lng=0), Vertex(lat=0, lng=0.001)])

    @pytest.mark.parametrize("batch_size", [0, ElevationConfig.MAX_POINTS_PER_REQUEST + 1])
    def test_batch_size_bounds(self, mock_relay_flat, batch_size: int) -> None:
        with pytest.raises(ValueError, match="batch_size"):
            ElevationAnalyzer(client=mock_relay_flat, batch_size=batch_size)


class TestSummaryAndColors:
    """Tests for summarize and color_for."""

    def test_summary_statistics(self) -> None:
        samples = [
            GridSample(location=Vertex(lat=0.0, lng=0.0), elevation=100.0),
            GridSample(location=Vertex(lat=0.001, lng=0.0), elevation=110.0),
            GridSample(location=Vertex(lat=0.0005, lng=0.0), elevation=None),
        ]
        summary = ElevationAnalyzer.summarize(samples, north_south_extent_m=200.0)
        assert summary.min_m == 100.0
        assert summary.max_m == 110.0
        assert summary.mean_m == 105.0
        assert summary.range_slope_pct == pytest.approx(5.0)
        assert summary.sample_count == 2

    def test_extent_defaults_to_sample_span(self) -> None:
        """0.001° between samples = 111m with the flat approximation: 11.1m rise is 10%."""
        samples = [
            GridSample(location=Vertex(lat=0.0, lng=0.0), elevation=300.0),
            GridSample(location=Vertex(lat=0.001, lng=0.0), elevation=311.1),
        ]
        assert ElevationAnalyzer.summarize(samples).range_slope_pct == pytest.approx(10.0)

    def test_zero_extent_gives_zero_slope(self) -> None:
        samples = [GridSample(location=Vertex(lat=0.0, lng=0.0), elevation=5.0)]
        assert ElevationAnalyzer.summarize(samples).range_slope_pct == 0.0

    def test_empty_samples_raise(self) -> None:
        with pytest.raises(ValueError):
            ElevationAnalyzer.summarize([])

    def test_color_ramp_endpoints(self) -> None:
        ramp = ElevationConfig.COLOR_RAMP
        assert ElevationAnalyzer.color_for(100.0, 100.0, 200.0) == ramp[0]
        assert ElevationAnalyzer.color_for(200.0, 100.0, 200.0) == ramp[-1]
        assert ElevationAnalyzer.color_for(150.0, 100.0, 200.0) == ramp[2]

    def test_flat_field_uses_first_color(self) -> None:
        assert ElevationAnalyzer.color_for(250.0, 250.0, 250.0) == ElevationConfig.COLOR_RAMP[0]


class TestAnalyze:
    """Tests for the complete ElevationAnalyzer.analyze run."""

    def test_square_on_north_slope(self, analyzer_north_slope, square_ring_111m: list[Vertex]) -> None:
        analysis = analyzer_north_slope.analyze(ring=square_ring_111m, density=5, revision=7)

        assert analysis is not None
        assert analysis.revision == 7
        assert len(analysis.samples) == 25
        assert len(analysis.cells) == 25
        # 10% over the 111m north-south extent, sampled at cell centers (80% of the extent)
        assert analysis.summary.range_slope_pct == pytest.approx(8.0, abs=0.01)
        assert analysis.summary.min_m < analysis.summary.mean_m < analysis.summary.max_m
        assert not analyzer_north_slope.is_busy

    def test_cells_are_closed_rectangles(self, analyzer_north_slope, square_ring_111m: list[Vertex]) -> None:
        analysis = analyzer_north_slope.analyze(ring=square_ring_111m, density=4)
        cell = analysis.cells[0]
        assert len(cell.polygon) == 5
        assert cell.polygon[0] == cell.polygon[-1]
        # [lng, lat] order; the south-west cell spans 0..0.00025 in both axes
        assert cell.polygon[0] == pytest.approx([0.0, 0.0])
        assert cell.polygon[2] == pytest.approx([0.00025, 0.00025])

    def test_lowest_cell_gets_first_ramp_color(self, analyzer_north_slope, square_ring_111m: list[Vertex]) -> None:
        analysis = analyzer_north_slope.analyze(ring=square_ring_111m, density=4)
        assert analysis.cells[0].color == ElevationConfig.COLOR_RAMP[0]
        assert analysis.cells[-1].color == ElevationConfig.COLOR_RAMP[-1]

    def test_no_field_returns_none_without_requests(self, mock_relay_flat) -> None:
        analyzer = ElevationAnalyzer(client=mock_relay_flat, batch_delay_s=0.0)
        assert analyzer.analyze(ring=[Vertex(lat=0, lng=0), Vertex(lat=0, lng=0.001)]) is None
        assert mock_relay_flat.batch_sizes == []

    def test_zero_density_is_rejected(self, analyzer_north_slope, square_ring_111m: list[Vertex]) -> None:
        with pytest.raises(ValueError, match="positive"):
            analyzer_north_slope.analyze(ring=square_ring_111m, density=0)
        assert not analyzer_north_slope.is_busy

    def test_start_callback_gets_point_count_before_fetching(
        self, analyzer_north_slope, mock_relay_north_slope, square_ring_111m: list[Vertex]
    ) -> None:
        seen: list[tuple[int, int]] = []
        analyzer_north_slope.analyze(
            ring=square_ring_111m,
            density=4,
            start_callback=lambda n: seen.append((n, len(mock_relay_north_slope.batch_sizes))),
        )
        assert seen == [(16, 0)]

    def test_failure_aborts_and_resets_busy(self, mock_relay_failing, square_ring_111m: list[Vertex]) -> None:
        analyzer = ElevationAnalyzer(client=mock_relay_failing, batch_delay_s=0.0)
        with pytest.raises(ElevationServiceError, match="HTTP 500"):
            analyzer.analyze(ring=square_ring_111m, density=5)
        assert not analyzer.is_busy

    def test_busy_analyzer_rejects_second_run(self, analyzer_north_slope, square_ring_111m: list[Vertex]) -> None:
        analyzer_north_slope._busy = True
        with pytest.raises(AnalysisBusyError):
            analyzer_north_slope.analyze(ring=square_ring_111m, density=5)

    def test_reentrant_call_from_progress_is_rejected(self, analyzer_north_slope, square_ring_111m: list[Vertex]) -> None:
        """A second analysis started while batches are in flight is rejected, not queued."""
        rejected: list[bool] = []

        def on_progress(_: float) -> None:
            try:
                analyzer_north_slope.analyze(ring=square_ring_111m, density=3)
            except AnalysisBusyError:
                rejected.append(True)

        analysis = analyzer_north_slope.analyze(ring=square_ring_111m, density=3, progress_callback=on_progress)
        assert analysis is not None
        assert rejected == [True]
