"""Unit tests for fieldmapper model classes.

Tests Vertex, BoundaryModel (mutations, history, derived metrics) and
the export snapshot/serializers.
"""

import json
from datetime import date

import pytest
from hypothesis import given, settings, strategies as st

from fieldmapper.core.geo_calculator import GeoCalculator
from fieldmapper.model.boundary import BoundaryMode, BoundaryModel
from fieldmapper.model.export_record import ExportSerializer
from fieldmapper.model.vertex import Vertex


class TestVertex:
    """Tests for Vertex validation and conversions."""

    def test_orders(self) -> None:
        v = Vertex(lat=26.9, lng=75.8)
        assert v.lat_lng == (26.9, 75.8)
        assert v.lng_lat == (75.8, 26.9)

    @pytest.mark.parametrize("lat,lng", [(float("nan"), 0.0), (0.0, float("inf"))])
    def test_non_finite_coordinates_rejected(self, lat: float, lng: float) -> None:
        with pytest.raises(ValueError, match="finite"):
            Vertex(lat=lat, lng=lng)

    @pytest.mark.parametrize("lat,lng", [(90.5, 0.0), (-91.0, 0.0), (0.0, 180.5), (123.0, 500.0)])
    def test_out_of_range_coordinates_rejected(self, lat: float, lng: float) -> None:
        with pytest.raises(ValueError, match="out of range"):
            Vertex(lat=lat, lng=lng)

    def test_range_limits_are_inclusive(self) -> None:
        assert Vertex(lat=-90.0, lng=180.0).lng_lat == (180.0, -90.0)

    def test_from_dict_accepts_lon_key(self) -> None:
        assert Vertex.from_dict({"lat": "26.9", "lon": 75.8}) == Vertex(lat=26.9, lng=75.8)
        assert Vertex.from_dict({"lat": 1, "lng": 2}) == Vertex(lat=1.0, lng=2.0)

    def test_from_dict_missing_coordinate(self) -> None:
        with pytest.raises(KeyError):
            Vertex.from_dict({"lat": 1.0})

    def test_is_immutable(self) -> None:
        v = Vertex(lat=0.0, lng=0.0)
        with pytest.raises(AttributeError):
            v.lat = 1.0  # type: ignore[misc]


class TestBoundaryAppend:
    """Tests for BoundaryModel.append_vertex and derived metrics."""

    def test_new_boundary_is_empty(self) -> None:
        boundary = BoundaryModel()
        assert boundary.is_empty
        assert boundary.area_m2 == 0.0
        assert boundary.perimeter_m == 0.0
        assert boundary.mode is BoundaryMode.IDLE

    def test_append_refused_outside_drawing(self) -> None:
        boundary = BoundaryModel()
        assert boundary.append_vertex(Vertex(lat=0.0, lng=0.0)) is False
        assert boundary.corner_count == 0

        boundary.set_mode(BoundaryMode.EDITING_VERTICES)
        assert boundary.append_vertex(Vertex(lat=0.0, lng=0.0)) is False

    def test_metrics_follow_every_append(self, drawing_boundary: BoundaryModel, square_ring_111m: list[Vertex]) -> None:
        expected_perimeters = [0.0, 111.195, None, None]
        for i, vertex in enumerate(square_ring_111m):
            drawing_boundary.append_vertex(vertex)
            ring = square_ring_111m[: i + 1]
            assert drawing_boundary.corner_count == i + 1
            assert drawing_boundary.area_m2 == GeoCalculator.geodesic_area_m2(ring)
            assert drawing_boundary.perimeter_m == GeoCalculator.ring_perimeter_m(ring)
            if expected_perimeters[i] is not None:
                assert drawing_boundary.perimeter_m == pytest.approx(expected_perimeters[i], abs=0.01)

    def test_has_polygon_from_three_corners(self, drawing_boundary: BoundaryModel, square_ring_111m: list[Vertex]) -> None:
        for vertex in square_ring_111m[:2]:
            drawing_boundary.append_vertex(vertex)
        assert not drawing_boundary.has_polygon
        drawing_boundary.append_vertex(square_ring_111m[2])
        assert drawing_boundary.has_polygon

    def test_revision_increments_on_mutation(self, square_boundary: BoundaryModel) -> None:
        before = square_boundary.revision
        square_boundary.undo()
        assert square_boundary.revision == before + 1

    def test_vertices_is_a_copy(self, square_boundary: BoundaryModel) -> None:
        snapshot = square_boundary.snapshot()
        square_boundary.undo()
        assert len(snapshot) == 4
        assert square_boundary.corner_count == 3


class TestBoundaryHistory:
    """Tests for undo/redo granularity."""

    def test_undo_removes_last_corner(self, square_boundary: BoundaryModel, square_ring_111m: list[Vertex]) -> None:
        removed = square_boundary.undo()
        assert removed == square_ring_111m[-1]
        assert square_boundary.vertices == tuple(square_ring_111m[:3])
        assert square_boundary.can_redo

    def test_undo_on_empty_is_noop(self) -> None:
        boundary = BoundaryModel()
        assert boundary.undo() is None
        assert boundary.redo() is None

    def test_redo_restores_corner(self, square_boundary: BoundaryModel, square_ring_111m: list[Vertex]) -> None:
        area_before = square_boundary.area_m2
        square_boundary.undo()
        restored = square_boundary.redo()
        assert restored == square_ring_111m[-1]
        assert square_boundary.vertices == tuple(square_ring_111m)
        assert square_boundary.area_m2 == pytest.approx(area_before)

    def test_append_clears_redo(self, square_boundary: BoundaryModel) -> None:
        square_boundary.undo()
        square_boundary.append_vertex(Vertex(lat=0.002, lng=0.0))
        assert not square_boundary.can_redo

    def test_undo_pops_last_even_after_insert(self, square_boundary: BoundaryModel, square_ring_111m: list[Vertex]) -> None:
        """Insertions are not recorded: undo still removes the last corner of the ring."""
        inserted = Vertex(lat=0.0, lng=0.0005)
        square_boundary.insert_vertex(0, inserted)
        assert square_boundary.corner_count == 5

        removed = square_boundary.undo()
        assert removed == square_ring_111m[-1]
        assert inserted in square_boundary.vertices

    def test_drag_and_insert_clear_redo(self, square_boundary: BoundaryModel) -> None:
        square_boundary.undo()
        assert square_boundary.can_redo
        square_boundary.set_vertex(0, Vertex(lat=-0.0001, lng=0.0))
        assert not square_boundary.can_redo

    def test_clear_resets_everything(self, square_boundary: BoundaryModel) -> None:
        square_boundary.undo()
        square_boundary.clear()
        assert square_boundary.vertices == ()
        assert square_boundary.area_m2 == 0.0
        assert square_boundary.perimeter_m == 0.0
        assert square_boundary.corner_count == 0
        assert square_boundary.undo_history == []
        assert square_boundary.redo_history == []

    @given(
        points=st.lists(
            st.tuples(
                st.floats(min_value=-60.0, max_value=60.0, allow_nan=False),
                st.floats(min_value=-179.0, max_value=179.0, allow_nan=False),
            ),
            min_size=1,
            max_size=15,
        ),
        undo_count=st.integers(min_value=1, max_value=15),
    )
    @settings(max_examples=50)
    def test_undo_then_redo_restores_ring(self, points: list[tuple[float, float]], undo_count: int) -> None:
        boundary = BoundaryModel()
        boundary.set_mode(BoundaryMode.DRAWING)
        for lat, lng in points:
            boundary.append_vertex(Vertex(lat=lat, lng=lng))
        before = boundary.vertices
        area_before = boundary.area_m2

        for _ in range(undo_count):
            boundary.undo()
        for _ in range(undo_count):
            boundary.redo()

        assert boundary.vertices == before
        assert boundary.area_m2 == pytest.approx(area_before)


class TestBoundaryEdits:
    """Tests for set_vertex / insert_vertex and stale indices."""

    def test_set_vertex_moves_corner(self, square_boundary: BoundaryModel) -> None:
        area_before = square_boundary.area_m2
        # Pull the NE corner further out: the field grows
        assert square_boundary.set_vertex(2, Vertex(lat=0.002, lng=0.002)) is True
        assert square_boundary.vertices[2] == Vertex(lat=0.002, lng=0.002)
        assert square_boundary.area_m2 > area_before

    @pytest.mark.parametrize("index", [-1, 4, 99])
    def test_stale_index_is_ignored(self, square_boundary: BoundaryModel, index: int) -> None:
        before = square_boundary.vertices
        assert square_boundary.set_vertex(index, Vertex(lat=1.0, lng=1.0)) is False
        assert square_boundary.insert_vertex(index, Vertex(lat=1.0, lng=1.0)) is False
        assert square_boundary.vertices == before

    def test_insert_after_index(self, square_boundary: BoundaryModel) -> None:
        midpoint = Vertex(lat=0.0, lng=0.0005)
        assert square_boundary.insert_vertex(0, midpoint) is True
        assert square_boundary.vertices[1] == midpoint
        assert square_boundary.corner_count == 5

    def test_insert_on_edge_keeps_area(self, square_boundary: BoundaryModel) -> None:
        area_before = square_boundary.area_m2
        square_boundary.insert_vertex(0, Vertex(lat=0.0, lng=0.0005))
        assert square_boundary.area_m2 == pytest.approx(area_before)

    def test_edge_lengths(self, square_boundary: BoundaryModel) -> None:
        edges = square_boundary.edge_lengths_m()
        assert len(edges) == 4
        assert edges[-1][1] == square_boundary.vertices[0]  # closing edge
        assert all(length == pytest.approx(111.195, abs=0.01) for _, _, length in edges)

    def test_two_corner_outline_has_one_edge(self, drawing_boundary: BoundaryModel) -> None:
        drawing_boundary.append_vertex(Vertex(lat=0.0, lng=0.0))
        drawing_boundary.append_vertex(Vertex(lat=0.0, lng=0.001))
        assert len(drawing_boundary.edge_lengths_m()) == 1


class TestExport:
    """Tests for ExportSerializer."""

    def test_snapshot_needs_three_corners(self, drawing_boundary: BoundaryModel) -> None:
        drawing_boundary.append_vertex(Vertex(lat=0.0, lng=0.0))
        drawing_boundary.append_vertex(Vertex(lat=0.0, lng=0.001))
        assert ExportSerializer.snapshot(drawing_boundary) is None

    def test_snapshot_matches_boundary(self, square_boundary: BoundaryModel) -> None:
        record = ExportSerializer.snapshot(square_boundary)
        assert record is not None
        assert record.vertices == square_boundary.vertices
        assert record.area_m2 == pytest.approx(square_boundary.area_m2)
        assert record.perimeter_m == pytest.approx(square_boundary.perimeter_m)

    def test_json_layout(self, square_boundary: BoundaryModel) -> None:
        record = ExportSerializer.snapshot(square_boundary)
        data = json.loads(ExportSerializer.to_json(record))
        assert set(data) == {"vertices", "area", "perimeter"}
        assert data["vertices"][1] == {"lat": 0.0, "lng": 0.001}
        assert data["area"] == pytest.approx(12_392, rel=1e-3)

    def test_geojson_ring_is_closed_lng_lat(self, square_boundary: BoundaryModel) -> None:
        record = ExportSerializer.snapshot(square_boundary)
        feature = json.loads(ExportSerializer.to_geojson(record))
        ring = feature["geometry"]["coordinates"][0]
        assert feature["type"] == "Feature"
        assert feature["geometry"]["type"] == "Polygon"
        assert len(ring) == 5
        assert ring[0] == ring[-1]
        assert ring[1] == [0.001, 0.0]  # [lng, lat]
        assert feature["properties"]["area_m2"] == pytest.approx(record.area_m2)

    def test_filename_embeds_date(self) -> None:
        assert ExportSerializer.filename(day=date(2024, 5, 1)) == "field_boundary_2024-05-01.json"
        assert ExportSerializer.filename(day=date(2024, 5, 1), extension="geojson").endswith(".geojson")
