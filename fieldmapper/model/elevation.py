"""Elevation analysis results.

Plain frozen dataclasses produced by ElevationAnalyzer and consumed by the
overlay renderer and the stats panel. None of these feed back into the
boundary.
"""

from dataclasses import dataclass, field

from fieldmapper.model.vertex import Vertex


@dataclass(frozen=True)
class GridSample:
    """One elevation probe inside the ring.

    Attributes:
        location: Probe coordinate
        elevation: Elevation in meters, or None while pending
    """

    location: Vertex
    elevation: float | None = None

    @property
    def is_pending(self) -> bool:
        return self.elevation is None


@dataclass(frozen=True)
class ElevationSummary:
    """Aggregate statistics over a set of samples.

    Attributes:
        min_m: Lowest sampled elevation
        max_m: Highest sampled elevation
        mean_m: Mean sampled elevation
        range_slope_pct: (max - min) / north-south extent * 100. An average
            grade approximation, not a terrain slope.
        sample_count: Number of samples reduced
    """

    min_m: float
    max_m: float
    mean_m: float
    range_slope_pct: float
    sample_count: int

    @property
    def range_m(self) -> float:
        return self.max_m - self.min_m


@dataclass(frozen=True)
class ElevationCell:
    """One colored cell of the elevation overlay.

    Attributes:
        polygon: Closed cell outline as [lng, lat] pairs (pydeck order)
        color: Fill color "#rrggbb"
        elevation: Sampled elevation in meters
        location: Sample coordinate at the cell center
    """

    polygon: list[list[float]]
    color: str
    elevation: float
    location: Vertex


@dataclass(frozen=True)
class ElevationAnalysis:
    """Result of one complete analysis run.

    Attributes:
        ring: Ring snapshot the analysis ran against
        samples: Samples in grid order
        summary: Aggregate statistics
        cells: Overlay cells, one per sample
        revision: Boundary revision at analysis start
    """

    ring: tuple[Vertex, ...]
    samples: list[GridSample]
    summary: ElevationSummary
    cells: list[ElevationCell] = field(default_factory=list)
    revision: int = 0
