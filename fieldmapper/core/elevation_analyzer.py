"""Elevation analysis over a field boundary.

Samples a regular grid inside the ring, resolves elevations in batches
through an ElevationClient, reduces them to summary statistics and builds
the colored overlay cells.

Grid layout:
    The ring's bounding box is split into density x density cells. Each
    cell centre that lies inside the ring becomes one sample, in row-major
    order (south to north, west to east within a row).

Reference: DESIGN.md (ElevationAnalyzer)
"""

import logging
import time
from collections.abc import Callable, Sequence
from math import floor

import numpy as np

from fieldmapper.constants import ElevationConfig
from fieldmapper.core.color_utils import lerp_color
from fieldmapper.core.elevation_service import ElevationClient, ElevationServiceError
from fieldmapper.core.geo_calculator import GeoCalculator
from fieldmapper.model.elevation import ElevationAnalysis, ElevationCell, ElevationSummary, GridSample
from fieldmapper.model.vertex import Vertex

logger = logging.getLogger(__name__)


class AnalysisBusyError(RuntimeError):
    """An analysis is already running; new requests are rejected, not queued."""


class ElevationAnalyzer:
    """Runs elevation analyses against an elevation client.

    Example:
        analyzer = ElevationAnalyzer(client=create_elevation_client())
        analysis = analyzer.analyze(ring=boundary.snapshot(), density=10)
    """

    def __init__(
        self,
        client: ElevationClient,
        batch_size: int = ElevationConfig.BATCH_SIZE,
        batch_delay_s: float = ElevationConfig.BATCH_DELAY_S,
    ) -> None:
        if not 0 < batch_size <= ElevationConfig.MAX_POINTS_PER_REQUEST:
            raise ValueError(
                f"batch_size must be in 1..{ElevationConfig.MAX_POINTS_PER_REQUEST}, got {batch_size}"
            )
        self.client = client
        self.batch_size = batch_size
        self.batch_delay_s = batch_delay_s
        self._busy = False

    @property
    def is_busy(self) -> bool:
        return self._busy

    # =========================================================================
    # Grid
    # =========================================================================

    @staticmethod
    def _cell_size(ring: Sequence[Vertex], density: int) -> tuple[float, float]:
        """(cell height in degrees latitude, cell width in degrees longitude)."""
        south, west, north, east = GeoCalculator.bounding_box(ring)
        return (north - south) / density, (east - west) / density

    @staticmethod
    def build_sample_grid(ring: Sequence[Vertex], density: int) -> list[Vertex]:
        """Cell centres of a density x density grid that fall inside the ring.

        Returns:
            Points in row-major order. Empty for fewer than 3 vertices or a
            bounding box with zero extent in either axis.
        """
        if density < 1:
            raise ValueError(f"Grid density must be positive, got {density}")
        if len(ring) < 3:
            return []

        south, west, north, east = GeoCalculator.bounding_box(ring)
        if north == south or east == west:
            return []

        cell_h = (north - south) / density
        cell_w = (east - west) / density
        lats = south + (np.arange(density) + 0.5) * cell_h
        lngs = west + (np.arange(density) + 0.5) * cell_w

        points = []
        for lat in lats:
            for lng in lngs:
                candidate = Vertex(lat=float(lat), lng=float(lng))
                if GeoCalculator.point_in_polygon(candidate, ring):
                    points.append(candidate)
        return points

    # =========================================================================
    # Fetch
    # =========================================================================

    def fetch_elevations(
        self,
        points: list[Vertex],
        progress_callback: Callable[[float], None] | None = None,
    ) -> list[GridSample]:
        """Resolve elevations batch by batch, in submission order.

        Args:
            points: Sample locations
            progress_callback: Optional callback receiving progress 0.0-1.0

        Returns:
            One GridSample per point, same order.

        Raises:
            ElevationServiceError: If any batch fails. Nothing partial is returned.
        """
        samples: list[GridSample] = []
        batch_count = (len(points) + self.batch_size - 1) // self.batch_size

        for batch_idx, start in enumerate(range(0, len(points), self.batch_size)):
            batch = points[start : start + self.batch_size]
            elevations = self.client.fetch_batch(batch)
            if len(elevations) != len(batch):
                raise ElevationServiceError(f"Expected {len(batch)} elevations, got {len(elevations)}")

            samples.extend(GridSample(location=p, elevation=e) for p, e in zip(batch, elevations))
            logger.info(f"[ELEVATION] Batch {batch_idx + 1}/{batch_count}: {len(batch)} points")
            if progress_callback:
                progress_callback((batch_idx + 1) / batch_count)

            if batch_idx + 1 < batch_count and self.batch_delay_s > 0:
                time.sleep(self.batch_delay_s)

        return samples

    # =========================================================================
    # Statistics and coloring
    # =========================================================================

    @staticmethod
    def summarize(samples: list[GridSample], north_south_extent_m: float | None = None) -> ElevationSummary:
        """Reduce samples to min/max/mean and a range slope.

        range_slope_pct = (max - min) / north_south_extent_m * 100. When no
        extent is given, the samples' own latitude span is used.

        Raises:
            ValueError: If there are no resolved samples.
        """
        resolved = [s for s in samples if not s.is_pending]
        if not resolved:
            raise ValueError("Cannot summarize an empty sample set")

        elevations = np.array([s.elevation for s in resolved], dtype=float)
        min_m = float(elevations.min())
        max_m = float(elevations.max())

        if north_south_extent_m is None:
            lats = [s.location.lat for s in resolved]
            north_south_extent_m = GeoCalculator.degrees_to_meters_approx(max(lats) - min(lats))

        slope_pct = (max_m - min_m) / north_south_extent_m * 100 if north_south_extent_m > 0 else 0.0

        return ElevationSummary(
            min_m=min_m,
            max_m=max_m,
            mean_m=float(elevations.mean()),
            range_slope_pct=slope_pct,
            sample_count=len(resolved),
        )

    @staticmethod
    def color_for(elevation: float, min_m: float, max_m: float) -> str:
        """Map an elevation onto the 5-stop ramp. A flat field maps to the first stop."""
        ramp = ElevationConfig.COLOR_RAMP
        if max_m == min_m:
            return ramp[0]

        ratio = max(0.0, min(1.0, (elevation - min_m) / (max_m - min_m)))
        scaled = ratio * (len(ramp) - 1)
        index = min(floor(scaled), len(ramp) - 2)
        return lerp_color(ramp[index], ramp[index + 1], scaled - index)

    @staticmethod
    def build_cells(
        samples: list[GridSample],
        ring: Sequence[Vertex],
        density: int,
        summary: ElevationSummary,
    ) -> list[ElevationCell]:
        """One grid-sized rectangle per resolved sample, colored by elevation."""
        cell_h, cell_w = ElevationAnalyzer._cell_size(ring, density)
        half_h, half_w = cell_h / 2, cell_w / 2

        cells = []
        for sample in samples:
            if sample.is_pending:
                continue
            lat, lng = sample.location.lat, sample.location.lng
            cells.append(
                ElevationCell(
                    polygon=[
                        [lng - half_w, lat - half_h],
                        [lng + half_w, lat - half_h],
                        [lng + half_w, lat + half_h],
                        [lng - half_w, lat + half_h],
                        [lng - half_w, lat - half_h],
                    ],
                    color=ElevationAnalyzer.color_for(sample.elevation, summary.min_m, summary.max_m),
                    elevation=sample.elevation,
                    location=sample.location,
                )
            )
        return cells

    # =========================================================================
    # Full run
    # =========================================================================

    def analyze(
        self,
        ring: Sequence[Vertex],
        density: int | None = None,
        revision: int = 0,
        progress_callback: Callable[[float], None] | None = None,
        start_callback: Callable[[int], None] | None = None,
    ) -> ElevationAnalysis | None:
        """Sample, fetch, summarize and color one ring snapshot.

        start_callback receives the sample count once the grid is built.

        Returns:
            ElevationAnalysis, or None when the grid is empty (no field drawn).

        Raises:
            AnalysisBusyError: If another analysis is in flight.
            ElevationServiceError: If fetching fails.
        """
        if self._busy:
            raise AnalysisBusyError("Elevation analysis already in progress")

        if density is None:
            density = ElevationConfig.GRID_DENSITY_DEFAULT
        snapshot = tuple(ring)
        points = self.build_sample_grid(snapshot, density)
        if not points:
            logger.info("[ELEVATION] No sample points inside the ring")
            return None

        self._busy = True
        try:
            logger.info(f"[ELEVATION] Analyzing {len(points)} points (density={density}, revision={revision})")
            if start_callback is not None:
                start_callback(len(points))
            samples = self.fetch_elevations(points, progress_callback=progress_callback)

            south, _, north, _ = GeoCalculator.bounding_box(snapshot)
            extent_m = GeoCalculator.degrees_to_meters_approx(north - south)
            summary = self.summarize(samples, north_south_extent_m=extent_m)
            cells = self.build_cells(samples, snapshot, density, summary)
        finally:
            self._busy = False

        logger.info(
            f"[ELEVATION] Done: min={summary.min_m:.1f}m max={summary.max_m:.1f}m "
            f"mean={summary.mean_m:.1f}m slope={summary.range_slope_pct:.1f}%"
        )
        return ElevationAnalysis(ring=snapshot, samples=samples, summary=summary, cells=cells, revision=revision)
